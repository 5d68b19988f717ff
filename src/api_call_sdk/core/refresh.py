"""Single-flight token refresh for the API call SDK.

State machine with two states, IDLE and REFRESHING. The first request
that fails with 401 while IDLE becomes the leader and performs the one
refresh call of the episode; every 401 observed while REFRESHING gets a
result channel appended to the pending queue. The queue is drained
exactly once per episode, in arrival order, with either the new access
token or the refresh error.

``AsyncRefreshCoordinator`` runs on a single event loop and needs no
lock. ``RefreshCoordinator`` serves threads and guards the state with a
``threading.Lock``.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from ..errors import AbortedError, ClientError, NoRefreshTokenError, ServerError
from ..models import CallParameters, HttpMethod, RefreshResponse, RequestDescriptor
from ..navigation import redirect_to_login
from ..telemetry import get_logger, trace_operation
from .errors import ErrorClassifier, decode_body
from .request_builder import RequestBuilder

if TYPE_CHECKING:
    from ..cancellation import CancellationHandle
    from ..config import ClientConfig
    from ..credentials import CredentialStore
    from ..navigation import Navigator
    from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
    from .interceptors import AuthInterceptor
    from .request_builder import PreparedRequest


@dataclass
class RefreshState:
    """Refresh flag and pending queue owned by one coordinator."""

    is_refreshing: bool = False
    queue: list[Any] = field(default_factory=list)

    def take_queue(self) -> list[Any]:
        """Detach and return the pending queue."""
        queue, self.queue = self.queue, []
        return queue


class _RefreshCoordinatorBase:
    """Refresh logic shared by the sync and async coordinators."""

    def __init__(
        self,
        config: ClientConfig,
        credentials: CredentialStore,
        interceptor: AuthInterceptor,
        navigator: Navigator,
    ) -> None:
        self.config = config
        self.state = RefreshState()
        self.refresh_count = 0
        self._credentials = credentials
        self._interceptor = interceptor
        self._navigator = navigator
        self._builder = RequestBuilder(config)
        self._descriptor = RequestDescriptor(
            endpoint=config.refresh_endpoint,
            method=HttpMethod.POST,
            requires_auth=False,
        )
        self._logger = get_logger()

    @property
    def is_refreshing(self) -> bool:
        """Whether a refresh episode is in flight."""
        return self.state.is_refreshing

    @property
    def pending(self) -> int:
        """Number of requests waiting on the current episode."""
        return len(self.state.queue)

    def _build_refresh_request(self) -> PreparedRequest:
        refresh_token = self._credentials.get_refresh()
        if not refresh_token:
            raise NoRefreshTokenError()
        return self._builder.build(
            self._descriptor,
            CallParameters(body={"refreshToken": refresh_token}),
        )

    def _accept(self, response: httpx.Response) -> str:
        """Validate a refresh response and persist the new tokens."""
        if not response.is_success:
            raise ErrorClassifier.from_response(response)
        try:
            tokens = RefreshResponse.model_validate(response.json())
        except ValueError as e:
            raise ServerError(
                "Malformed refresh response",
                status_code=response.status_code,
                payload=decode_body(response),
            ) from e

        self._credentials.set_tokens(tokens.access_token, tokens.refresh_token)
        self._interceptor.set_default_token(tokens.access_token)
        self._logger.info(
            "Token refresh succeeded",
            rotated_refresh_token=tokens.refresh_token is not None,
        )
        return tokens.access_token

    def _fail(self, error: ClientError) -> None:
        """Clear credentials and send the user to login."""
        self._logger.warning(
            "Token refresh failed",
            kind=error.kind.value,
            code=error.code,
            status_code=error.status_code,
        )
        self._credentials.clear()
        self._interceptor.set_default_token(None)
        redirect_to_login(self._navigator, self.config.login_path)


def _consume_result(task: asyncio.Future[Any]) -> None:
    if not task.cancelled():
        task.exception()


class AsyncRefreshCoordinator(_RefreshCoordinatorBase):
    """Event-loop refresh coordinator."""

    def __init__(
        self,
        config: ClientConfig,
        credentials: CredentialStore,
        interceptor: AuthInterceptor,
        navigator: Navigator,
        executor: AsyncHTTPExecutor,
    ) -> None:
        super().__init__(config, credentials, interceptor, navigator)
        self._executor = executor

    async def recover(self, failure: ClientError) -> str:
        """Obtain a fresh access token after a 401.

        Args:
            failure: Classified 401 of the request asking for recovery.

        Returns:
            New access token to retry with.

        Raises:
            ClientError: ``failure`` (chained from the refresh error) for
                the episode leader, the refresh error itself for queued
                requests.
        """
        if self.state.is_refreshing:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self.state.queue.append(waiter)
            self._logger.debug("Request queued behind token refresh", pending=self.pending)
            return await waiter

        self.state.is_refreshing = True
        self.refresh_count += 1
        # Leader cancellation must not abort the episode other requests wait on
        episode = asyncio.ensure_future(self._run_episode())
        episode.add_done_callback(_consume_result)
        try:
            return await asyncio.shield(episode)
        except ClientError as e:
            raise failure from e

    async def _run_episode(self) -> str:
        try:
            with trace_operation("token_refresh"):
                token = await self._refresh()
        except asyncio.CancelledError:
            self._finish(error=AbortedError("Token refresh cancelled"))
            raise
        except Exception as e:
            error = ErrorClassifier.classify(e)
            self._fail(error)
            self._finish(error=error)
            if error is e:
                raise
            raise error from e
        self._finish(token=token)
        return token

    async def _refresh(self) -> str:
        prepared = self._build_refresh_request()
        try:
            response = await self._executor.send(prepared)
        except httpx.HTTPError as e:
            raise ErrorClassifier.classify(e) from e
        return self._accept(response)

    def _finish(self, *, token: str | None = None, error: ClientError | None = None) -> None:
        queue = self.state.take_queue()
        self.state.is_refreshing = False
        for waiter in queue:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token)


class RefreshCoordinator(_RefreshCoordinatorBase):
    """Thread-safe refresh coordinator for the synchronous client."""

    def __init__(
        self,
        config: ClientConfig,
        credentials: CredentialStore,
        interceptor: AuthInterceptor,
        navigator: Navigator,
        executor: SyncHTTPExecutor,
    ) -> None:
        super().__init__(config, credentials, interceptor, navigator)
        self._executor = executor
        self._lock = threading.Lock()

    def recover(
        self,
        failure: ClientError,
        cancellation: CancellationHandle | None = None,
    ) -> str:
        """Obtain a fresh access token after a 401.

        Args:
            failure: Classified 401 of the request asking for recovery.
            cancellation: Handle that abandons the wait when fired.

        Returns:
            New access token to retry with.

        Raises:
            ClientError: ``failure`` (chained from the refresh error) for
                the episode leader, the refresh error itself for queued
                requests, AbortedError if cancelled while queued.
        """
        with self._lock:
            leader = not self.state.is_refreshing
            if leader:
                self.state.is_refreshing = True
                self.refresh_count += 1
            else:
                waiter: concurrent.futures.Future[str] = concurrent.futures.Future()
                self.state.queue.append(waiter)

        if not leader:
            return self._wait(waiter, cancellation)

        try:
            with trace_operation("token_refresh"):
                token = self._refresh()
        except Exception as e:
            error = ErrorClassifier.classify(e)
            self._fail(error)
            self._finish(error=error)
            raise failure from error
        except BaseException:
            self._finish(error=AbortedError("Token refresh interrupted"))
            raise
        self._finish(token=token)
        return token

    def _wait(
        self,
        waiter: concurrent.futures.Future[str],
        cancellation: CancellationHandle | None,
    ) -> str:
        self._logger.debug("Request queued behind token refresh")
        remove = cancellation.add_callback(waiter.cancel) if cancellation else None
        try:
            return waiter.result()
        except concurrent.futures.CancelledError as e:
            raise AbortedError(
                cancellation.reason if cancellation and cancellation.reason else "Request aborted"
            ) from e
        finally:
            if remove is not None:
                remove()

    def _refresh(self) -> str:
        prepared = self._build_refresh_request()
        try:
            response = self._executor.send(prepared)
        except httpx.HTTPError as e:
            raise ErrorClassifier.classify(e) from e
        return self._accept(response)

    def _finish(self, *, token: str | None = None, error: ClientError | None = None) -> None:
        with self._lock:
            queue = self.state.take_queue()
            self.state.is_refreshing = False
        for waiter in queue:
            try:
                if error is not None:
                    waiter.set_exception(error)
                else:
                    waiter.set_result(token)
            except concurrent.futures.InvalidStateError:
                # Cancelled by its caller while queued
                continue
