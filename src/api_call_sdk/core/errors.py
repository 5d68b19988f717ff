"""Centralized error classification for the API call SDK.

Every failed attempt goes through ``ErrorClassifier.classify`` and comes
out as exactly one ClientError kind, checked in this order: aborted,
server response, network failure, setup failure.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Any

import httpx

from ..errors import (
    AbortedError,
    ClientError,
    NetworkError,
    ServerError,
    SetupError,
)

_CODE_FIELDS = ("code", "error_code", "errorCode")
_MESSAGE_FIELDS = ("message", "error_description", "detail", "error")


def decode_body(response: httpx.Response) -> Any:
    """Decode a response body: JSON when possible, text otherwise, None if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _first_str(body: Any, fields: tuple[str, ...]) -> str | None:
    if not isinstance(body, dict):
        return None
    for name in fields:
        value = body.get(name)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return str(value)
    return None


class ErrorClassifier:
    """Maps transport failures into the closed ClientError taxonomy."""

    @staticmethod
    def from_response(response: httpx.Response) -> ServerError:
        """Create a ServerError from a non-success HTTP response.

        Args:
            response: HTTP response object.

        Returns:
            ServerError carrying status, payload and the embedded code.
        """
        status = response.status_code
        payload = decode_body(response)
        message = _first_str(payload, _MESSAGE_FIELDS) or (
            f"Request failed with status {status}"
        )
        return ServerError(
            message,
            status_code=status,
            payload=payload,
            code=_first_str(payload, _CODE_FIELDS),
        )

    @staticmethod
    def classify(
        exc: BaseException,
        *,
        cancelled: bool = False,
    ) -> ClientError:
        """Create a ClientError from any failure.

        Args:
            exc: Original exception.
            cancelled: Whether the call's cancellation signal fired.

        Returns:
            Appropriate ClientError subclass.
        """
        if isinstance(exc, AbortedError):
            return exc

        if cancelled or isinstance(
            exc, (asyncio.CancelledError, concurrent.futures.CancelledError)
        ):
            return AbortedError("Request aborted")

        if isinstance(exc, ClientError):
            return exc

        if isinstance(exc, httpx.TimeoutException):
            return AbortedError(
                f"Request timed out: {exc}",
                details={"timeout": True},
            )

        if isinstance(exc, httpx.HTTPStatusError):
            return ErrorClassifier.from_response(exc.response)

        if isinstance(exc, httpx.TransportError) and not isinstance(
            exc, httpx.UnsupportedProtocol
        ):
            return NetworkError(f"Network error: {exc}", cause=exc)

        error = SetupError(
            f"Request setup failed: {exc}",
            details={"exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error
