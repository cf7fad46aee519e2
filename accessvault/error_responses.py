"""JSON error bodies returned by the HTTP layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar


class _ErrorResponse:
    error_code: ClassVar[int]

    def __init__(self, message: str) -> None:
        self.message = message
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> dict[str, Any]:
        """Return the body as sent over the wire."""
        return {
            "message": self.message,
            "timestamp": self.timestamp,
            "errorCode": self.error_code,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, timestamp={self.timestamp!r})"


class BadRequest(_ErrorResponse):
    """Error body for a 400 response."""

    error_code: ClassVar[int] = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return the body as sent over the wire."""
        return super().to_dict()


class InternalServerError(_ErrorResponse):
    """Error body for a 500 response."""

    error_code: ClassVar[int] = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Return the body as sent over the wire."""
        return super().to_dict()