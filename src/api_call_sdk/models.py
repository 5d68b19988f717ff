"""Pydantic models for the API call SDK.

Request descriptors are frozen so one instance can be shared by every
call of a logical API operation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

Scalar = str | int | float | bool


class HttpMethod(StrEnum):
    """HTTP methods a descriptor may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class RequestDescriptor(BaseModel):
    """Declarative definition of one API operation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    endpoint: str = Field(..., min_length=1)
    method: HttpMethod = HttpMethod.GET
    timeout_ms: int | None = Field(default=None, gt=0, alias="timeoutMillis")
    headers: dict[str, str] = Field(default_factory=dict, alias="extraHeaders")
    requires_auth: bool = Field(default=True, alias="requiresAuth")

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        """Accept lower-case method names."""
        return v.upper() if isinstance(v, str) else v


@dataclass(frozen=True)
class MultipartForm:
    """Binary multipart form payload.

    ``files`` values follow httpx conventions: bytes, a file object, or a
    ``(filename, content[, content_type])`` tuple.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    files: dict[str, Any] = field(default_factory=dict)


class CallParameters(BaseModel):
    """Per-call path, query and body values."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path_params: dict[str, Scalar | None] = Field(default_factory=dict)
    query_params: dict[str, Any] = Field(default_factory=dict)
    body: Any = None


class Credentials(BaseModel):
    """Snapshot of stored tokens."""

    model_config = ConfigDict(frozen=True)

    access_token: str | None = None
    refresh_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        """True when an access token is stored."""
        return self.access_token is not None


class RefreshResponse(BaseModel):
    """Body returned by the refresh endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None


def load_descriptor_table(
    table: Mapping[str, Mapping[str, Mapping[str, Any] | RequestDescriptor]],
) -> dict[str, dict[str, RequestDescriptor]]:
    """Build descriptors from an application's ``{GROUP: {NAME: {...}}}`` table.

    Args:
        table: Nested mapping of raw descriptor definitions.

    Returns:
        The same shape with every leaf validated into a RequestDescriptor.
    """
    return {
        group: {
            name: (
                entry
                if isinstance(entry, RequestDescriptor)
                else RequestDescriptor.model_validate(entry)
            )
            for name, entry in operations.items()
        }
        for group, operations in table.items()
    }
