"""
Shared test fixtures for API call SDK tests.

Provides configuration, stores, navigators and an in-memory backend
served through httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import threading
import time

import httpx
import pytest

from api_call_sdk.config import ClientConfig, TelemetryConfig
from api_call_sdk.models import HttpMethod, RequestDescriptor
from api_call_sdk.navigation import LoggingNavigator
from api_call_sdk.storage import MemoryKeyValueStore

BASE_URL = "https://api.example.com"
REFRESH_PATH = "/api/auth/refresh"
FRESH_ACCESS = "fresh-access"
FRESH_REFRESH = "fresh-refresh"


class FakeBackend:
    """API server double.

    ``/api/auth/refresh`` answers with ``refresh_status``/``refresh_body``;
    ``/public/*`` never checks credentials; ``/slow`` sleeps; every other
    path returns 401 unless the bearer token equals ``valid_token``.
    """

    def __init__(
        self,
        *,
        valid_token: str = FRESH_ACCESS,
        refresh_status: int = 200,
        refresh_body: dict | None = None,
        refresh_delay: float = 0.0,
        stale_barrier: threading.Barrier | None = None,
    ) -> None:
        self.valid_token = valid_token
        self.refresh_status = refresh_status
        self.refresh_body = refresh_body or {
            "access_token": FRESH_ACCESS,
            "refresh_token": FRESH_REFRESH,
        }
        self.refresh_delay = refresh_delay
        self.stale_barrier = stale_barrier
        self.refresh_calls = 0
        self.requests: list[httpx.Request] = []

    def _refresh_response(self) -> httpx.Response:
        self.refresh_calls += 1
        return httpx.Response(self.refresh_status, json=self.refresh_body)

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("authorization") == f"Bearer {self.valid_token}"

    def _protected_response(self, request: httpx.Request) -> httpx.Response:
        if self._authorized(request):
            return httpx.Response(
                200,
                json={"path": request.url.path, "query": str(request.url.query, "ascii")},
            )
        return httpx.Response(
            401,
            json={"code": "TOKEN_EXPIRED", "message": "Access token expired"},
        )

    async def async_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == REFRESH_PATH:
            if self.refresh_delay:
                await asyncio.sleep(self.refresh_delay)
            return self._refresh_response()
        if request.url.path.startswith("/public"):
            return httpx.Response(200, json={"public": True})
        if request.url.path == "/slow":
            await asyncio.sleep(10)
        return self._protected_response(request)

    def sync_handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == REFRESH_PATH:
            if self.refresh_delay:
                time.sleep(self.refresh_delay)
            return self._refresh_response()
        if request.url.path.startswith("/public"):
            return httpx.Response(200, json={"public": True})
        if self.stale_barrier is not None and not self._authorized(request):
            self.stale_barrier.wait(timeout=5)
        return self._protected_response(request)

    def async_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.async_handler)

    def sync_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.sync_handler)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def base_config() -> ClientConfig:
    """Provide a basic SDK configuration for testing."""
    return ClientConfig(
        base_url=BASE_URL,
        telemetry=TelemetryConfig(enabled=False, service_name="test-sdk"),
    )


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    """Provide an empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def navigator() -> LoggingNavigator:
    """Provide a navigator positioned on an application page."""
    return LoggingNavigator(current_path="/dashboard")


@pytest.fixture
def backend() -> FakeBackend:
    """Provide a fake backend with a working refresh endpoint."""
    return FakeBackend()


@pytest.fixture
def user_descriptor() -> RequestDescriptor:
    """Provide the single-user lookup descriptor."""
    return RequestDescriptor(
        endpoint="/users/:id",
        method=HttpMethod.GET,
        requires_auth=True,
    )


@pytest.fixture
def public_descriptor() -> RequestDescriptor:
    """Provide a descriptor for an unauthenticated endpoint."""
    return RequestDescriptor(endpoint="/public/status", requires_auth=False)


@pytest.fixture
def backend_factory() -> type[FakeBackend]:
    """Provide the backend class for tests needing custom behaviour."""
    return FakeBackend
