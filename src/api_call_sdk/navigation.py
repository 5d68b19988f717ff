"""Login redirect primitive.

The client never renders anything; it only asks the application to move
to the login entry point after a refresh failure.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from .telemetry import get_logger


@runtime_checkable
class Navigator(Protocol):
    """Application navigation used for the login redirect."""

    @property
    def current_path(self) -> str | None:
        """Path the application is currently showing."""
        ...

    def redirect(self, path: str) -> None:
        """Navigate to path."""
        ...


class LoggingNavigator:
    """Default navigator for headless use: records and logs redirects.

    There is no real location to change, so ``current_path`` stays at the
    value given at construction.
    """

    def __init__(self, current_path: str | None = None) -> None:
        self._current_path = current_path
        self.redirects: list[str] = []

    @property
    def current_path(self) -> str | None:
        return self._current_path

    def redirect(self, path: str) -> None:
        get_logger().warning("Redirecting to login", path=path)
        self.redirects.append(path)


class CallbackNavigator:
    """Navigator delegating to application callables."""

    def __init__(
        self,
        on_redirect: Callable[[str], None],
        current_path: Callable[[], str | None] | None = None,
    ) -> None:
        self._on_redirect = on_redirect
        self._current_path = current_path

    @property
    def current_path(self) -> str | None:
        return self._current_path() if self._current_path else None

    def redirect(self, path: str) -> None:
        self._on_redirect(path)


def redirect_to_login(navigator: Navigator, login_path: str) -> bool:
    """Redirect unless the navigator is already at the login path.

    Returns:
        True if a redirect was issued.
    """
    current = navigator.current_path
    if current is not None and current.split("?", 1)[0] == login_path:
        return False
    navigator.redirect(login_path)
    return True
