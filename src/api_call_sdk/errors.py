"""Error classes for the API call SDK.

Every failure surfaced to a caller is a ``ClientError`` carrying exactly
one ``ErrorKind``. Transport exceptions are chained, never re-raised.
"""

from __future__ import annotations

import uuid
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed taxonomy of client failures."""

    ABORTED = "Aborted"
    SERVER_ERROR = "ServerError"
    NETWORK_ERROR = "NetworkError"
    SETUP_ERROR = "SetupError"


class ErrorCode(StrEnum):
    """Local error codes for failures without a server-provided code."""

    ABORTED = "ABORTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    SETUP_ERROR = "SETUP_ERROR"
    NO_REFRESH_TOKEN = "NO_REFRESH_TOKEN"
    INVALID_CONFIG = "INVALID_CONFIG"


def generate_correlation_id() -> str:
    """Generate a unique correlation ID."""
    return str(uuid.uuid4())


class ClientError(Exception):
    """Base error with structured information."""

    kind: ErrorKind = ErrorKind.SETUP_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | str | None = None,
        status_code: int | None = None,
        payload: Any = None,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.status_code = status_code
        self.payload = payload
        self.correlation_id = correlation_id or generate_correlation_id()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
            "payload": self.payload,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(kind={self.kind.value!r}, "
            f"code={self.code!r}, status_code={self.status_code!r}, "
            f"message={self.message!r})"
        )


class AbortedError(ClientError):
    """Request was cancelled or timed out."""

    kind = ErrorKind.ABORTED

    def __init__(
        self,
        message: str = "Request aborted",
        *,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.ABORTED,
            correlation_id=correlation_id,
            details=details,
        )


class ServerError(ClientError):
    """The server answered with a non-success status."""

    kind = ErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        payload: Any = None,
        code: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            status_code=status_code,
            payload=payload,
            correlation_id=correlation_id,
        )


class NetworkError(ClientError):
    """Request was sent but no response arrived."""

    kind = ErrorKind.NETWORK_ERROR

    def __init__(
        self,
        message: str = "Network request failed",
        *,
        correlation_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.NETWORK_ERROR,
            correlation_id=correlation_id,
            details={"cause": str(cause)} if cause else None,
        )
        self.__cause__ = cause


class SetupError(ClientError):
    """The request could not be built or sent."""

    kind = ErrorKind.SETUP_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | str = ErrorCode.SETUP_ERROR,
        correlation_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code,
            correlation_id=correlation_id,
            details=details,
        )


class NoRefreshTokenError(SetupError):
    """Refresh was required but no refresh token is stored."""

    def __init__(
        self,
        message: str = "No refresh token available",
        *,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.NO_REFRESH_TOKEN,
            correlation_id=correlation_id,
        )


class InvalidConfigError(SetupError):
    """Invalid SDK configuration."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.INVALID_CONFIG,
            details={"field": field} if field else None,
        )
