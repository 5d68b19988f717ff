"""Async API client facade.

Composes request building, bearer injection, single-flight refresh,
cancellation and error classification behind one ``call`` operation.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Self

from .cancellation import CancellationHandle, create_cancellation_handle
from .config import ClientConfig
from .core.errors import ErrorClassifier, decode_body
from .core.http_executor import AsyncHTTPExecutor
from .core.interceptors import AuthInterceptor
from .core.refresh import AsyncRefreshCoordinator
from .core.request_builder import RequestBuilder, is_retried, requires_auth
from .credentials import CredentialStore
from .errors import AbortedError, ClientError
from .http import create_async_http_client
from .navigation import LoggingNavigator
from .telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    import httpx

    from .models import CallParameters, Credentials, RequestDescriptor
    from .navigation import Navigator
    from .storage import KeyValueStore


class AsyncApiClient:
    """Asynchronous authenticated API client."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        navigator: Navigator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize async client.

        Args:
            config: SDK configuration.
            store: Key-value store for the credential tokens.
            navigator: Navigation used for the login redirect.
            transport: Optional httpx transport override.
        """
        self.config = config or ClientConfig()
        self._http = create_async_http_client(self.config, transport=transport)
        self._credentials = CredentialStore(store)
        self._interceptor = AuthInterceptor(self._credentials)
        self._builder = RequestBuilder(self.config)
        self._executor = AsyncHTTPExecutor(self._http, self._interceptor)
        self.navigator = navigator or LoggingNavigator()
        self._refresh = AsyncRefreshCoordinator(
            self.config,
            self._credentials,
            self._interceptor,
            self.navigator,
            self._executor,
        )
        self._logger = get_logger()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def credentials(self) -> CredentialStore:
        """Credential store backing this client."""
        return self._credentials

    @property
    def refresh_coordinator(self) -> AsyncRefreshCoordinator:
        """Refresh coordinator owned by this client."""
        return self._refresh

    def tokens(self) -> Credentials:
        """Snapshot of the stored tokens."""
        return self._credentials.snapshot()

    def set_tokens(self, access: str, refresh: str | None = None) -> None:
        """Store tokens obtained from a login."""
        self._credentials.set_tokens(access, refresh)

    def logout(self) -> None:
        """Forget both tokens."""
        self._credentials.clear()
        self._interceptor.set_default_token(None)

    @staticmethod
    def create_cancellation_handle() -> CancellationHandle:
        """Create a handle for cancelling a call."""
        return create_cancellation_handle()

    async def call(
        self,
        descriptor: RequestDescriptor,
        params: CallParameters | None = None,
        cancellation: CancellationHandle | None = None,
    ) -> Any:
        """Perform one API operation.

        Args:
            descriptor: Operation definition.
            params: Path, query and body values.
            cancellation: Caller-owned cancellation handle. When omitted the
                client owns one and fires it once the call settles.

        Returns:
            Decoded response body.

        Raises:
            ClientError: Classified failure.
        """
        owned = cancellation is None
        handle = cancellation or create_cancellation_handle()
        try:
            handle.raise_if_cancelled()
            loop = asyncio.get_running_loop()
            task = loop.create_task(self._dispatch(descriptor, params))
            remove = handle.add_callback(lambda: loop.call_soon_threadsafe(task.cancel))
            try:
                return await task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if handle.cancelled and not (current and current.cancelling()):
                    error = AbortedError(handle.reason or "Request aborted")
                    self._log_failure(descriptor, error)
                    raise error from None
                task.cancel()
                raise
            finally:
                remove()
        finally:
            if owned:
                handle.cancel("Call settled")

    async def _dispatch(
        self,
        descriptor: RequestDescriptor,
        params: CallParameters | None,
    ) -> Any:
        with trace_operation(
            "api_call",
            attributes={
                "api.endpoint": descriptor.endpoint,
                "http.method": descriptor.method.value,
            },
        ):
            try:
                prepared = self._builder.build(descriptor, params)
                response = await self._executor.send(prepared)

                if (
                    response.status_code == 401
                    and requires_auth(response.request)
                    and not is_retried(response.request)
                ):
                    token = await self._refresh.recover(
                        ErrorClassifier.from_response(response)
                    )
                    retry = self._builder.build(descriptor, params).as_retry()
                    response = await self._executor.send(retry, token=token)

                if not response.is_success:
                    raise ErrorClassifier.from_response(response)
                return decode_body(response)

            except ClientError as e:
                self._log_failure(descriptor, e)
                raise
            except Exception as e:
                error = ErrorClassifier.classify(e)
                self._log_failure(descriptor, error)
                raise error from e

    def _log_failure(self, descriptor: RequestDescriptor, error: ClientError) -> None:
        self._logger.warning(
            "API call failed",
            endpoint=descriptor.endpoint,
            method=descriptor.method.value,
            kind=error.kind.value,
            code=error.code,
            status_code=error.status_code,
            correlation_id=error.correlation_id,
        )
