"""Unit tests for cancellation handles, navigation and configuration."""

import pytest
from pydantic import ValidationError

from api_call_sdk.cancellation import CancellationHandle, create_cancellation_handle
from api_call_sdk.config import ClientConfig, TelemetryConfig
from api_call_sdk.errors import AbortedError, InvalidConfigError
from api_call_sdk.models import HttpMethod, RequestDescriptor, load_descriptor_table
from api_call_sdk.navigation import (
    CallbackNavigator,
    LoggingNavigator,
    Navigator,
    redirect_to_login,
)
from api_call_sdk.telemetry import REDACTED, configure_telemetry, get_logger, redact_credentials


class TestCancellationHandle:
    """Tests for CancellationHandle."""

    def test_starts_uncancelled(self) -> None:
        handle = create_cancellation_handle()

        assert not handle.cancelled
        handle.raise_if_cancelled()

    def test_cancel_runs_callbacks_once(self) -> None:
        handle = CancellationHandle()
        calls: list[int] = []
        handle.add_callback(lambda: calls.append(1))

        handle.cancel("user left")
        handle.cancel("again")

        assert calls == [1]
        assert handle.reason == "user left"

    def test_late_callback_runs_immediately(self) -> None:
        handle = CancellationHandle()
        handle.cancel()
        calls: list[int] = []

        handle.add_callback(lambda: calls.append(1))

        assert calls == [1]

    def test_removed_callback_does_not_run(self) -> None:
        handle = CancellationHandle()
        calls: list[int] = []
        remove = handle.add_callback(lambda: calls.append(1))

        remove()
        handle.cancel()

        assert calls == []

    def test_raise_if_cancelled(self) -> None:
        handle = CancellationHandle()
        handle.cancel("stop")

        with pytest.raises(AbortedError, match="stop"):
            handle.raise_if_cancelled()


class TestNavigation:
    """Tests for the login redirect primitive."""

    def test_redirects_when_elsewhere(self) -> None:
        navigator = LoggingNavigator(current_path="/users")

        assert redirect_to_login(navigator, "/login") is True
        assert navigator.redirects == ["/login"]
        assert navigator.current_path == "/users"

    def test_default_navigator_redirects_every_time(self) -> None:
        navigator = LoggingNavigator()

        assert redirect_to_login(navigator, "/login") is True
        assert redirect_to_login(navigator, "/login") is True
        assert navigator.redirects == ["/login", "/login"]

    def test_no_redirect_when_already_on_login(self) -> None:
        navigator = LoggingNavigator(current_path="/login?next=/users")

        assert redirect_to_login(navigator, "/login") is False
        assert navigator.redirects == []

    def test_callback_navigator(self) -> None:
        seen: list[str] = []
        navigator = CallbackNavigator(seen.append, current_path=lambda: "/home")

        redirect_to_login(navigator, "/login")

        assert seen == ["/login"]
        assert isinstance(navigator, Navigator)


class TestClientConfig:
    """Tests for configuration validation."""

    def test_defaults(self) -> None:
        config = ClientConfig()

        assert config.timeout_ms == 10_000
        assert config.timeout_seconds == 10.0
        assert config.refresh_endpoint == "/api/auth/refresh"
        assert config.login_path == "/login"
        assert config.strict_path_params is True
        assert config.base_url_str == ""

    def test_base_url_trailing_slash_stripped(self) -> None:
        config = ClientConfig(base_url="https://api.example.com/")

        assert config.base_url_str == "https://api.example.com"

    @pytest.mark.parametrize("timeout_ms", [0, -1, 300_001])
    def test_invalid_timeout(self, timeout_ms: int) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(timeout_ms=timeout_ms)

    def test_relative_refresh_endpoint_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(refresh_endpoint="api/auth/refresh")

    def test_frozen(self) -> None:
        config = ClientConfig()

        with pytest.raises(ValidationError):
            config.timeout_ms = 5  # type: ignore[misc]

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_CLIENT_BASE_URL", "https://api.example.com")
        monkeypatch.setenv("API_CLIENT_TIMEOUT_MS", "2500")
        monkeypatch.setenv("API_CLIENT_LOGIN_PATH", "/signin")
        monkeypatch.setenv("API_CLIENT_LOG_LEVEL", "debug")

        config = ClientConfig.from_env()

        assert config.base_url_str == "https://api.example.com"
        assert config.timeout_ms == 2500
        assert config.login_path == "/signin"
        assert config.telemetry.log_level == "DEBUG"

    def test_from_env_bad_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_CLIENT_TIMEOUT_MS", "soon")

        with pytest.raises(InvalidConfigError) as exc_info:
            ClientConfig.from_env()

        assert exc_info.value.details["field"] == "timeout_ms"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            TelemetryConfig(log_level="LOUD")

    def test_configure_telemetry_disabled(self) -> None:
        configure_telemetry(TelemetryConfig(enabled=False))

        assert get_logger() is not None

    def test_log_events_redact_tokens(self) -> None:
        event = {"event": "refreshed", "refresh_token": "secret", "Authorization": "Bearer x"}

        result = redact_credentials(None, "info", event)

        assert result["refresh_token"] == REDACTED
        assert result["Authorization"] == REDACTED
        assert result["event"] == "refreshed"


class TestDescriptors:
    """Tests for request descriptors."""

    def test_camel_case_aliases(self) -> None:
        descriptor = RequestDescriptor.model_validate(
            {
                "endpoint": "/users/:id",
                "method": "patch",
                "timeoutMillis": 5000,
                "extraHeaders": {"X-Api": "1"},
                "requiresAuth": False,
            }
        )

        assert descriptor.method is HttpMethod.PATCH
        assert descriptor.timeout_ms == 5000
        assert descriptor.headers == {"X-Api": "1"}
        assert descriptor.requires_auth is False

    def test_requires_auth_defaults_true(self) -> None:
        assert RequestDescriptor(endpoint="/users").requires_auth is True

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestDescriptor(endpoint="/users", method="TRACE")

    def test_load_descriptor_table(self) -> None:
        table = load_descriptor_table(
            {
                "USERS": {"LIST": {"endpoint": "/users", "method": "GET"}},
                "POSTS": {
                    "LIST": {"endpoint": "/posts", "method": "GET"},
                    "CREATE": RequestDescriptor(endpoint="/posts", method=HttpMethod.POST),
                },
            }
        )

        assert table["USERS"]["LIST"].endpoint == "/users"
        assert table["POSTS"]["CREATE"].method is HttpMethod.POST
