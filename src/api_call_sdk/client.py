"""Synchronous API client facade.

Same pipeline as ``AsyncApiClient`` for threaded callers. The refresh
coordinator is lock-protected so concurrent threads still share a single
refresh per episode. A synchronous transport call cannot be interrupted,
so cancellation is observed before each send, after each response and
while queued behind a refresh.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from .cancellation import CancellationHandle, create_cancellation_handle
from .config import ClientConfig
from .core.errors import ErrorClassifier, decode_body
from .core.http_executor import SyncHTTPExecutor
from .core.interceptors import AuthInterceptor
from .core.refresh import RefreshCoordinator
from .core.request_builder import RequestBuilder, is_retried, requires_auth
from .credentials import CredentialStore
from .errors import ClientError
from .http import create_http_client
from .navigation import LoggingNavigator
from .telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    import httpx

    from .models import CallParameters, Credentials, RequestDescriptor
    from .navigation import Navigator
    from .storage import KeyValueStore


class ApiClient:
    """Synchronous authenticated API client."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        store: KeyValueStore | None = None,
        navigator: Navigator | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._http = create_http_client(self.config, transport=transport)
        self._credentials = CredentialStore(store)
        self._interceptor = AuthInterceptor(self._credentials)
        self._builder = RequestBuilder(self.config)
        self._executor = SyncHTTPExecutor(self._http, self._interceptor)
        self.navigator = navigator or LoggingNavigator()
        self._refresh = RefreshCoordinator(
            self.config,
            self._credentials,
            self._interceptor,
            self.navigator,
            self._executor,
        )
        self._logger = get_logger()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    @property
    def credentials(self) -> CredentialStore:
        """Credential store backing this client."""
        return self._credentials

    @property
    def refresh_coordinator(self) -> RefreshCoordinator:
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

    def call(
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
            return self._dispatch(descriptor, params, handle)
        finally:
            if owned:
                handle.cancel("Call settled")

    def _dispatch(
        self,
        descriptor: RequestDescriptor,
        params: CallParameters | None,
        handle: CancellationHandle,
    ) -> Any:
        with trace_operation(
            "api_call",
            attributes={
                "api.endpoint": descriptor.endpoint,
                "http.method": descriptor.method.value,
            },
        ):
            try:
                handle.raise_if_cancelled()
                prepared = self._builder.build(descriptor, params)
                response = self._executor.send(prepared)
                handle.raise_if_cancelled()

                if (
                    response.status_code == 401
                    and requires_auth(response.request)
                    and not is_retried(response.request)
                ):
                    token = self._refresh.recover(
                        ErrorClassifier.from_response(response), handle
                    )
                    handle.raise_if_cancelled()
                    retry = self._builder.build(descriptor, params).as_retry()
                    response = self._executor.send(retry, token=token)
                    handle.raise_if_cancelled()

                if not response.is_success:
                    raise ErrorClassifier.from_response(response)
                return decode_body(response)

            except ClientError as e:
                self._log_failure(descriptor, e)
                raise
            except Exception as e:
                error = ErrorClassifier.classify(e, cancelled=handle.cancelled)
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
