"""HTTP executors for the API call SDK.

Send one prepared request through the auth interceptor and the
transport, with tracing. No automatic retries happen here; the only
retry path is the refresh coordinator's.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..telemetry import get_logger, trace_operation

if TYPE_CHECKING:
    import httpx

    from .interceptors import AuthInterceptor
    from .request_builder import PreparedRequest


def _span_attributes(request: httpx.Request, prepared: PreparedRequest) -> dict[str, object]:
    return {
        "http.method": request.method,
        "url.path": request.url.path,
        "api.requires_auth": prepared.requires_auth,
        "api.retried": prepared.retried,
    }


class SyncHTTPExecutor:
    """Synchronous request executor."""

    def __init__(self, client: httpx.Client, interceptor: AuthInterceptor) -> None:
        self._client = client
        self._interceptor = interceptor
        self._logger = get_logger()

    def send(
        self,
        prepared: PreparedRequest,
        *,
        token: str | None = None,
    ) -> httpx.Response:
        """Send a prepared request.

        Args:
            prepared: Request produced by the RequestBuilder.
            token: Explicit bearer token for this attempt.

        Returns:
            HTTP response, whatever its status.

        Raises:
            httpx.HTTPError: On transport failure.
        """
        request = self._interceptor.apply(prepared.to_httpx(self._client), token=token)
        with trace_operation(
            "http_request", attributes=_span_attributes(request, prepared)
        ) as span:
            response = self._client.send(request)
            span.set_attribute("http.status_code", response.status_code)

        self._logger.debug(
            "HTTP request completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
        )
        return response


class AsyncHTTPExecutor:
    """Asynchronous request executor."""

    def __init__(self, client: httpx.AsyncClient, interceptor: AuthInterceptor) -> None:
        self._client = client
        self._interceptor = interceptor
        self._logger = get_logger()

    async def send(
        self,
        prepared: PreparedRequest,
        *,
        token: str | None = None,
    ) -> httpx.Response:
        """Send a prepared request.

        Args:
            prepared: Request produced by the RequestBuilder.
            token: Explicit bearer token for this attempt.

        Returns:
            HTTP response, whatever its status.

        Raises:
            httpx.HTTPError: On transport failure.
        """
        request = self._interceptor.apply(prepared.to_httpx(self._client), token=token)
        with trace_operation(
            "http_request", attributes=_span_attributes(request, prepared)
        ) as span:
            response = await self._client.send(request)
            span.set_attribute("http.status_code", response.status_code)

        self._logger.debug(
            "HTTP request completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
        )
        return response
