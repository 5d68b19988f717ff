"""Request building for the API call SDK.

Turns a RequestDescriptor plus per-call parameters into a transport
request: path templating, bracket-notation query strings, header
assembly and the out-of-band auth markers.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlsplit, urlunsplit

import httpx
from pydantic import BaseModel

from ..errors import SetupError
from ..models import CallParameters, MultipartForm

if TYPE_CHECKING:
    from ..config import ClientConfig
    from ..models import RequestDescriptor

REQUIRES_AUTH_EXTENSION = "api_call_sdk.requires_auth"
RETRIED_EXTENSION = "api_call_sdk.retried"

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

# encodeURIComponent leaves these unescaped besides alphanumerics and "-_.~"
_COMPONENT_SAFE = "!*'()"


def stringify_value(value: Any) -> str:
    """Render a scalar the way a browser would put it in a URL."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def encode_component(value: Any) -> str:
    """Percent-encode a single URL component."""
    return quote(stringify_value(value), safe=_COMPONENT_SAFE)


def substitute_path(
    template: str,
    path_params: Mapping[str, Any] | None,
    *,
    strict: bool = True,
) -> str:
    """Replace ``:name`` placeholders with URL-encoded values.

    Only whole placeholder tokens are replaced, so ``:id`` never rewrites
    ``:idx``. Substitution is a single pass: inserted values are not
    rescanned. Placeholders whose value is missing or None stay as they
    are, unless ``strict`` is set.

    Raises:
        SetupError: In strict mode, when a placeholder has no value.
    """
    params = path_params or {}
    missing: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = params.get(name)
        if value is None:
            missing.append(name)
            return match.group(0)
        return encode_component(value)

    # Absolute endpoints only get their path templated, never netloc
    parts = urlsplit(template)
    if parts.scheme and parts.netloc:
        path = _PLACEHOLDER.sub(_replace, parts.path)
        result = urlunsplit(parts._replace(path=path))
    else:
        result = _PLACEHOLDER.sub(_replace, template)

    if missing and strict:
        raise SetupError(
            f"Missing path parameters: {', '.join(sorted(set(missing)))}",
            details={"endpoint": template, "missing": sorted(set(missing))},
        )
    return result


def _flatten_query(key: str, value: Any) -> Iterator[tuple[str, str]]:
    if value is None:
        return
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            yield from _flatten_query(f"{key}[{sub_key}]", sub_value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            yield from _flatten_query(f"{key}[]", item)
    else:
        yield key, stringify_value(value)


def build_query_string(query_params: Mapping[str, Any] | None) -> str:
    """Serialize query params, dropping None entries.

    Sequences use bracket notation (``key[]=a&key[]=b``) and nested
    mappings ``key[sub]=v``. Returns an empty string when nothing remains.
    """
    if not query_params:
        return ""
    pairs = [
        f"{quote(name, safe='[]')}={quote(value, safe=_COMPONENT_SAFE)}"
        for key, value in query_params.items()
        for name, value in _flatten_query(str(key), value)
    ]
    return "&".join(pairs)


def _fields_as_parts(fields: Mapping[str, Any]) -> list[tuple[str, tuple[None, str]]]:
    """Render plain form fields as filename-less multipart parts."""
    parts: list[tuple[str, tuple[None, str]]] = []
    for name, value in fields.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        parts.extend(
            (name, (None, stringify_value(item))) for item in values if item is not None
        )
    return parts


@dataclass(frozen=True)
class PreparedRequest:
    """Concrete, transport-independent request produced by the builder."""

    method: str
    url: str
    headers: dict[str, str]
    timeout: float
    requires_auth: bool
    retried: bool = False
    json: Any = None
    content: bytes | str | None = None
    data: dict[str, Any] | None = None
    files: dict[str, Any] | list[Any] | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def as_retry(self) -> PreparedRequest:
        """Copy of this request marked as already retried once."""
        return replace(self, retried=True)

    def to_httpx(self, client: httpx.Client | httpx.AsyncClient) -> httpx.Request:
        """Build the transport request, resolving against the client's base URL."""
        return client.build_request(
            self.method,
            self.url,
            headers=self.headers,
            json=self.json,
            content=self.content,
            data=self.data,
            files=self.files,
            timeout=self.timeout,
            extensions={
                **self.extensions,
                REQUIRES_AUTH_EXTENSION: self.requires_auth,
                RETRIED_EXTENSION: self.retried,
            },
        )


def requires_auth(request: httpx.Request) -> bool:
    """Read the auth marker attached by the builder."""
    return bool(request.extensions.get(REQUIRES_AUTH_EXTENSION, False))


def is_retried(request: httpx.Request) -> bool:
    """Read the retried marker attached by the builder."""
    return bool(request.extensions.get(RETRIED_EXTENSION, False))


class RequestBuilder:
    """Builds PreparedRequests from descriptors and call parameters."""

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    def build(
        self,
        descriptor: RequestDescriptor,
        params: CallParameters | None = None,
    ) -> PreparedRequest:
        """Build a concrete request.

        Args:
            descriptor: Declarative operation definition.
            params: Path, query and body values for this call.

        Returns:
            Prepared request ready for the transport.

        Raises:
            SetupError: If the request cannot be assembled.
        """
        params = params or CallParameters()

        path = substitute_path(
            descriptor.endpoint,
            params.path_params,
            strict=self.config.strict_path_params,
        )
        query = build_query_string(params.query_params)
        if query:
            path = f"{path}{'&' if '?' in path else '?'}{query}"

        headers = httpx.Headers(self.config.default_headers)
        headers.update(descriptor.headers)

        body_kwargs = self._encode_body(params.body)
        if params.body is None or isinstance(params.body, MultipartForm):
            # Let the transport pick a boundary-aware value
            headers.pop("content-type", None)

        timeout_ms = descriptor.timeout_ms or self.config.timeout_ms

        return PreparedRequest(
            method=descriptor.method.value,
            url=path,
            headers=dict(headers.multi_items()),
            timeout=timeout_ms / 1000,
            requires_auth=descriptor.requires_auth,
            **body_kwargs,
        )

    @staticmethod
    def _encode_body(body: Any) -> dict[str, Any]:
        if body is None:
            return {}
        if isinstance(body, MultipartForm):
            if body.files:
                return {"data": dict(body.fields), "files": dict(body.files)}
            # httpx only switches to multipart when files are present
            return {"files": _fields_as_parts(body.fields)}
        if isinstance(body, (bytes, bytearray)):
            return {"content": bytes(body)}
        if isinstance(body, str):
            return {"content": body}
        if isinstance(body, BaseModel):
            return {"json": body.model_dump(mode="json", by_alias=True)}
        return {"json": body}
