from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    NETWORK = "NETWORK"
    CONFIG = "CONFIG"
    VALIDATION = "VALIDATION"


class CancelReason(str, Enum):
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class ClientError(Exception):
    """A failed news request, carrying a message that is safe to show to a reader.

    ``code`` is unset when the upstream answered with a well-formed error;
    ``status`` and ``details`` then hold the HTTP status and the raw payload.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        status: int | None = None,
        details: Any | None = None,
        reason: CancelReason | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details
        self.reason = reason

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code}, "
            f"status={self.status}, reason={self.reason})"
        )
