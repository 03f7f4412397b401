import pytest

from domain.chat.entity import Session, normalize_username
from domain.common.exceptions import UsernameRequiredException
from infrastructure.realtime.registry import RoomRegistry
from shared.codes import BusinessCode


def test_normalize_username_trims():
    assert normalize_username("  alice \n") == "alice"


@pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
def test_normalize_username_rejects_blank(raw):
    with pytest.raises(UsernameRequiredException) as ei:
        normalize_username(raw)
    assert ei.value.code == BusinessCode.USERNAME_REQUIRED


def test_session_close_is_terminal(make_conn):
    s = Session(connection=make_conn(), username="alice")
    assert s.is_live
    assert s.close() is True
    assert s.close() is False
    assert s.removal_pending and not s.is_live


def test_admit_stores_trimmed_username(make_conn):
    reg = RoomRegistry()
    c = make_conn()
    session = reg.admit(c, "  alice ")
    assert session.username == "alice"
    assert reg.get(c) is session
    assert c in reg
    assert len(reg) == 1


def test_admit_blank_username_fails(make_conn):
    reg = RoomRegistry()
    with pytest.raises(UsernameRequiredException):
        reg.admit(make_conn(), "   ")
    assert len(reg) == 0


def test_duplicate_usernames_are_distinct_sessions(make_conn):
    reg = RoomRegistry()
    a, b = make_conn("a"), make_conn("b")
    reg.admit(a, "sam")
    reg.admit(b, "sam")
    assert [s.username for s in reg.snapshot()] == ["sam", "sam"]
    reg.evict(a)
    assert reg.get(b) is not None and reg.get(a) is None


def test_evict_is_idempotent(make_conn):
    reg = RoomRegistry()
    c = make_conn()
    session = reg.admit(c, "alice")
    assert reg.evict(c) is session
    assert session.removal_pending
    assert reg.evict(c) is None
    assert reg.evict(make_conn("never-admitted")) is None
    assert len(reg) == 0


def test_snapshot_is_a_copy(make_conn):
    reg = RoomRegistry()
    conns = [make_conn(str(i)) for i in range(3)]
    for i, c in enumerate(conns):
        reg.admit(c, f"user{i}")
    seen = []
    for session in reg.snapshot():
        seen.append(session.username)
        reg.evict(session.connection)
    assert seen == ["user0", "user1", "user2"]
    assert len(reg) == 0


def test_sweep_removes_only_marked(make_conn):
    reg = RoomRegistry()
    a, b = make_conn("a"), make_conn("b")
    reg.admit(a, "alice")
    sb = reg.admit(b, "bob")
    sb.mark_for_removal()
    assert reg.sweep() == [sb]
    assert [s.username for s in reg.snapshot()] == ["alice"]
    assert reg.sweep() == []
