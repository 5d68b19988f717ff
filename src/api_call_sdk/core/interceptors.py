"""Outbound request interceptor injecting bearer credentials."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .request_builder import requires_auth

if TYPE_CHECKING:
    import httpx

    from ..credentials import CredentialStore

AUTHORIZATION_HEADER = "Authorization"


class AuthInterceptor:
    """Attaches ``Authorization: Bearer`` to requests marked requires_auth.

    Requests without the marker pass through untouched.
    """

    def __init__(self, credentials: CredentialStore) -> None:
        self._credentials = credentials
        self._default_token: str | None = None

    @property
    def default_token(self) -> str | None:
        """Token installed by the last successful refresh."""
        return self._default_token

    def set_default_token(self, token: str | None) -> None:
        """Install (or reset) the default outbound token."""
        self._default_token = token

    def apply(self, request: httpx.Request, *, token: str | None = None) -> httpx.Request:
        """Inject the bearer token into request.

        Args:
            request: Outgoing transport request, mutated in place.
            token: Explicit token overriding the stored one.

        Returns:
            The same request.
        """
        if not requires_auth(request):
            return request

        bearer = token or self._credentials.get_access() or self._default_token
        if bearer:
            request.headers[AUTHORIZATION_HEADER] = f"Bearer {bearer}"
        return request
