"""API call SDK: authenticated HTTP client with single-flight token refresh."""

from .async_client import AsyncApiClient
from .cancellation import CancellationHandle, create_cancellation_handle
from .client import ApiClient
from .config import ClientConfig, TelemetryConfig
from .credentials import CredentialStore
from .errors import (
    AbortedError,
    ClientError,
    ErrorKind,
    InvalidConfigError,
    NetworkError,
    NoRefreshTokenError,
    ServerError,
    SetupError,
)
from .models import (
    CallParameters,
    Credentials,
    HttpMethod,
    MultipartForm,
    RequestDescriptor,
    load_descriptor_table,
)
from .navigation import CallbackNavigator, LoggingNavigator, Navigator
from .storage import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .telemetry import configure_telemetry

__all__ = [
    "AsyncApiClient",
    "ApiClient",
    "CancellationHandle",
    "create_cancellation_handle",
    "ClientConfig",
    "TelemetryConfig",
    "CredentialStore",
    "AbortedError",
    "ClientError",
    "ErrorKind",
    "InvalidConfigError",
    "NetworkError",
    "NoRefreshTokenError",
    "ServerError",
    "SetupError",
    "CallParameters",
    "Credentials",
    "HttpMethod",
    "MultipartForm",
    "RequestDescriptor",
    "load_descriptor_table",
    "CallbackNavigator",
    "LoggingNavigator",
    "Navigator",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "configure_telemetry",
]

__version__ = "0.1.0"
