"""Domain-level business exceptions, shared by domain and infrastructure.

The core layer only maps them to responses; the domain layer never imports
from core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """Base class for business exceptions."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class UsernameRequiredException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.USERNAME_REQUIRED,
            message="Username is required",
            error_type="UsernameRequired",
            field="username",
        )


class UpgradeRequiredException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.UPGRADE_REQUIRED,
            message="Expected WebSocket",
            error_type="UpgradeRequired",
        )
