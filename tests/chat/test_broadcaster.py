import json

from application.ports.chat import ChatMessage, ErrorMessage, UserListMessage
from application.services.presence_service import PresencePublisher
from infrastructure.realtime.broadcaster import Broadcaster
from infrastructure.realtime.registry import RoomRegistry


def _room(make_conn, *specs):
    reg = RoomRegistry()
    conns = []
    for name, fail in specs:
        c = make_conn(name, fail=fail)
        reg.admit(c, name)
        conns.append(c)
    return reg, Broadcaster(reg), conns


def test_broadcast_sends_identical_payload_to_every_session(make_conn):
    reg, bc, conns = _room(make_conn, ("alice", False), ("bob", False), ("carol", False))
    delivered = bc.broadcast(ChatMessage(username="alice", text="hi"))
    assert delivered == 3
    payloads = [c.sent for c in conns]
    assert all(len(p) == 1 for p in payloads)
    assert len({p[0] for p in payloads}) == 1
    frame = json.loads(payloads[0][0])
    assert list(frame) == ["type", "username", "text", "timestamp"]
    assert (frame["type"], frame["username"], frame["text"]) == ("message", "alice", "hi")


def test_broadcast_to_empty_room():
    reg = RoomRegistry()
    assert Broadcaster(reg).broadcast(UserListMessage(users=[])) == 0


def test_failed_send_is_evicted_after_the_pass(make_conn):
    reg, bc, (alice, bob, carol) = _room(make_conn, ("alice", False), ("bob", True), ("carol", False))
    delivered = bc.broadcast(ChatMessage(username="alice", text="hi"))
    assert delivered == 2
    assert bob not in reg
    assert alice in reg and carol in reg
    # carol came after the failing session and still got the frame
    assert len(carol.sent) == 1


def test_failed_send_is_absent_from_next_roster(make_conn):
    reg, bc, (alice, bob) = _room(make_conn, ("alice", False), ("bob", True))
    presence = PresencePublisher(registry=reg, broadcaster=bc)
    bc.broadcast(ChatMessage(username="alice", text="hi"))
    alice.clear()
    presence.publish_roster()
    assert alice.frames() == [{"type": "userList", "users": ["alice"]}]


def test_marked_session_receives_nothing(make_conn):
    reg, bc, (alice, bob) = _room(make_conn, ("alice", False), ("bob", False))
    reg.get(bob).mark_for_removal()
    bc.broadcast(UserListMessage(users=["x"]))
    assert bob.sent == []
    assert bob not in reg


def test_send_to_reaches_only_target(make_conn):
    reg, bc, (alice, bob) = _room(make_conn, ("alice", False), ("bob", False))
    assert bc.send_to(reg.get(alice), ErrorMessage(message="nope")) is True
    assert alice.frames() == [{"type": "error", "message": "nope"}]
    assert bob.sent == []


def test_send_to_failure_evicts_target(make_conn):
    reg, bc, (alice,) = _room(make_conn, ("alice", True))
    assert bc.send_to(reg.get(alice), ErrorMessage(message="nope")) is False
    assert len(reg) == 0


def test_roster_skips_sessions_pending_removal(make_conn):
    reg, bc, (alice, bob) = _room(make_conn, ("alice", False), ("bob", False))
    presence = PresencePublisher(registry=reg, broadcaster=bc)
    reg.get(bob).mark_for_removal()
    assert presence.roster() == ["alice"]
