"""Core components for the API call SDK.

Request pipeline pieces shared between the sync and async clients.
"""

from __future__ import annotations

from .errors import ErrorClassifier
from .http_executor import AsyncHTTPExecutor, SyncHTTPExecutor
from .interceptors import AuthInterceptor
from .refresh import AsyncRefreshCoordinator, RefreshCoordinator, RefreshState
from .request_builder import PreparedRequest, RequestBuilder

__all__ = [
    "ErrorClassifier",
    "AsyncHTTPExecutor",
    "SyncHTTPExecutor",
    "AuthInterceptor",
    "AsyncRefreshCoordinator",
    "RefreshCoordinator",
    "RefreshState",
    "PreparedRequest",
    "RequestBuilder",
]
