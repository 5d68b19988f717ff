"""Property tests for ErrorClassifier."""

from __future__ import annotations

import httpx
from hypothesis import given, settings, strategies as st

from api_call_sdk.core.errors import ErrorClassifier
from api_call_sdk.errors import AbortedError, ClientError, ServerError

REQUEST = httpx.Request("GET", "https://api.example.com/resource")

error_statuses = st.integers(min_value=400, max_value=599)
codes = st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ_", min_size=1, max_size=20)
transport_failures = st.sampled_from(
    [
        httpx.ConnectError("refused", request=REQUEST),
        httpx.ReadTimeout("slow", request=REQUEST),
        httpx.ReadError("reset", request=REQUEST),
        ValueError("bad"),
        ServerError("x", status_code=500),
    ]
)


class TestErrorClassifierProperties:
    """Property tests for classification."""

    @given(status_code=error_statuses, code=codes)
    @settings(max_examples=100)
    def test_error_status_becomes_server_error(self, status_code: int, code: str) -> None:
        response = httpx.Response(status_code, json={"code": code}, request=REQUEST)

        error = ErrorClassifier.from_response(response)

        assert isinstance(error, ServerError)
        assert error.status_code == status_code
        assert error.code == code
        assert error.payload == {"code": code}

    @given(status_code=error_statuses)
    def test_status_error_classification_keeps_status(self, status_code: int) -> None:
        response = httpx.Response(status_code, request=REQUEST)
        exc = httpx.HTTPStatusError("failed", request=REQUEST, response=response)

        error = ErrorClassifier.classify(exc)

        assert isinstance(error, ServerError)
        assert error.status_code == status_code

    @given(exc=transport_failures)
    def test_cancellation_always_wins(self, exc: Exception) -> None:
        error = ErrorClassifier.classify(exc, cancelled=True)

        assert isinstance(error, AbortedError)
        assert error.status_code is None

    @given(exc=transport_failures)
    def test_result_is_always_client_error(self, exc: Exception) -> None:
        assert isinstance(ErrorClassifier.classify(exc), ClientError)
