"""
Base exception type for the guidance service.

Every error raised on purpose carries a machine-readable code and the HTTP
status the API layer should answer with. The message is the only part that
ever reaches the caller; ``cause`` stays in the logs.
"""
from __future__ import annotations

import traceback
from typing import Any, Optional


class ProjectError(Exception):
    """
    Base exception for all guidance errors.

    Attributes:
        message: Human-readable, caller-safe description.
        code: Machine-readable slug (defaults to the class ``default_code``).
        http_status: HTTP status for API responses.
        details: Extra context for logs (never serialised to callers).
        cause: The underlying exception, if any.
    """

    default_code: str = "ERROR"
    default_http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.http_status = http_status or self.default_http_status
        self.details: dict[str, Any] = details or {}
        self.cause = cause

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, code={self.code!r}, "
            f"http_status={self.http_status})"
        )

    def __str__(self) -> str:
        return self.message

    def to_response(self) -> dict[str, str]:
        """Body sent to API callers: the message only."""
        return {"error": self.message}

    def to_log_dict(self) -> dict[str, Any]:
        """Full context for structured logs, including the chained cause."""
        out: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "http_status": self.http_status,
        }
        if self.details:
            out["details"] = self.details
        if self.cause is not None:
            out["cause"] = repr(self.cause)
            out["cause_traceback"] = "".join(
                traceback.format_exception(
                    type(self.cause), self.cause, self.cause.__traceback__
                )
            )
        return out
