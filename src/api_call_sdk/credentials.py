"""Credential store for access and refresh tokens.

Tokens are opaque strings; nothing here inspects or validates them.
"""

from __future__ import annotations

from .models import Credentials
from .storage import KeyValueStore, MemoryKeyValueStore

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"


class CredentialStore:
    """Get, set and clear the two credential tokens."""

    def __init__(self, store: KeyValueStore | None = None) -> None:
        self._store = store if store is not None else MemoryKeyValueStore()

    @property
    def backend(self) -> KeyValueStore:
        """Underlying key-value store."""
        return self._store

    def get_access(self) -> str | None:
        """Return the stored access token."""
        return self._store.get(ACCESS_TOKEN_KEY)

    def get_refresh(self) -> str | None:
        """Return the stored refresh token."""
        return self._store.get(REFRESH_TOKEN_KEY)

    def set_tokens(self, access: str, refresh: str | None = None) -> None:
        """Store a new access token and, when given, a new refresh token.

        Args:
            access: Access token.
            refresh: Refresh token; the current one is kept when None.
        """
        self._store.set(ACCESS_TOKEN_KEY, access)
        if refresh is not None:
            self._store.set(REFRESH_TOKEN_KEY, refresh)

    def clear(self) -> None:
        """Remove both tokens."""
        self._store.delete(ACCESS_TOKEN_KEY)
        self._store.delete(REFRESH_TOKEN_KEY)

    def has_refresh(self) -> bool:
        """Check if a refresh token is available."""
        return bool(self.get_refresh())

    def snapshot(self) -> Credentials:
        """Return both tokens as an immutable value."""
        return Credentials(
            access_token=self.get_access(),
            refresh_token=self.get_refresh(),
        )
