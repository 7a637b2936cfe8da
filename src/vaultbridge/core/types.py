"""
Type definitions for vaultbridge.

This module contains the invocation, detokenization, authentication and
response types passed between pipeline stages. Everything here is
invocation-scoped.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from vaultbridge.core.exceptions import BadRequestError

CONTENT_TYPE = "Content-Type"
ERROR_FROM_CLIENT = "Error-From-Client"
REQUEST_ID_HEADER = "X-Request-Id"


class HeaderMultiMap(Mapping[str, list[str]]):
    """
    Case-insensitive, ordered multimap of inbound headers.

    Invocation headers carry a list of values per name; the pipeline only
    ever consults the first one via ``first()``.
    """

    def __init__(self, headers: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None) -> None:
        self._items: dict[str, tuple[str, list[str]]] = {}
        if headers is None:
            return
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        for name, values in pairs:
            if values is None:
                continue
            if isinstance(values, (str, bytes)):
                values = [values]
            normalized = [v.decode("utf-8") if isinstance(v, bytes) else str(v) for v in values]
            key = name.lower()
            if key in self._items:
                self._items[key][1].extend(normalized)
            else:
                self._items[key] = (name, normalized)

    def first(self, name: str) -> str | None:
        """Return the first value of ``name``, or None when absent or empty."""
        entry = self._items.get(name.lower())
        if not entry or not entry[1]:
            return None
        return entry[1][0]

    def __getitem__(self, name: str) -> list[str]:
        return list(self._items[name.lower()][1])

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"HeaderMultiMap({[name for name in self]})"


@dataclass(frozen=True)
class Invocation:
    """A single function invocation: base64 body plus multi-valued headers."""

    body_content: str
    headers: HeaderMultiMap = field(default_factory=HeaderMultiMap)

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> Invocation:
        """Build an invocation from the runtime event (``BodyContent``/``Headers``)."""
        body = event.get("BodyContent", event.get("body_content")) or ""
        headers = event.get("Headers", event.get("headers")) or {}
        if isinstance(body, bytes):
            body = body.decode("ascii", errors="replace")
        return cls(body_content=str(body), headers=HeaderMultiMap(headers))

    @property
    def request_id(self) -> str | None:
        return self.headers.first(REQUEST_ID_HEADER)

    def decode_body(self) -> bytes:
        """
        Decode the base64 body.

        Raises:
            BadRequestError: If the body is not valid base64
        """
        try:
            return base64.b64decode(self.body_content)
        except (binascii.Error, ValueError) as e:
            raise BadRequestError("Bad request", details={"reason": "body is not valid base64"}) from e


@dataclass
class DetokenizationResult:
    """
    Outcome of one batched detokenize call.

    ``values`` is aligned to the non-skipped tokens in submission order and
    ``positions`` holds the original index of each value.
    """

    success: bool
    values: list[str] = field(default_factory=list)
    positions: list[int] = field(default_factory=list)
    error_body: Any = None
    http_code: int | None = None

    @classmethod
    def failure(cls, error_body: Any, http_code: int | None = None) -> DetokenizationResult:
        return cls(success=False, error_body=error_body, http_code=http_code)

    def aligned(self, size: int) -> list[str | None]:
        """Spread values back over the original token list, None where skipped."""
        out: list[str | None] = [None] * size
        for position, value in zip(self.positions, self.values):
            out[position] = value
        return out


class AuthScheme(str, Enum):
    """How the outbound PSP call is authenticated."""

    NONE = "none"
    HEADERS = "headers"
    MUTUAL_TLS = "mutual_tls"
    HTTP_SIGNATURE = "http_signature"


@dataclass
class AuthContext:
    """Outbound credentials: extra headers and/or a TLS client identity."""

    scheme: AuthScheme = AuthScheme.NONE
    headers: dict[str, str] = field(default_factory=dict)
    client_cert: str | None = None
    client_key: str | None = None

    @property
    def is_mutual_tls(self) -> bool:
        return self.client_cert is not None and self.client_key is not None

    def merge(self, other: AuthContext) -> AuthContext:
        """Combine two contexts; the TLS identity and scheme of ``other`` win when set."""
        scheme = other.scheme if other.scheme != AuthScheme.NONE else self.scheme
        if AuthScheme.MUTUAL_TLS in (self.scheme, other.scheme):
            scheme = AuthScheme.MUTUAL_TLS
        return AuthContext(
            scheme=scheme,
            headers={**self.headers, **other.headers},
            client_cert=other.client_cert or self.client_cert,
            client_key=other.client_key or self.client_key,
        )


@dataclass
class OutboundRequest:
    """A fully composed PSP request, prior to authentication headers."""

    url: str
    body: bytes
    content_type: str
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class PspResponse:
    """Raw PSP response as seen by the forwarder."""

    status_code: int
    text: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_json(self) -> bool:
        return self.data is not None


@dataclass
class FunctionResponse:
    """
    Normalized response envelope returned for every invocation.

    ``headers`` always carries Content-Type and Error-From-Client.
    """

    body_bytes: str = ""
    headers: dict[str, str] = field(
        default_factory=lambda: {CONTENT_TYPE: "application/json", ERROR_FROM_CLIENT: "false"}
    )
    status_code: int = 200

    @property
    def error_from_client(self) -> bool:
        return self.headers.get(ERROR_FROM_CLIENT) == "true"

    def to_dict(self) -> dict[str, Any]:
        return {
            "bodyBytes": self.body_bytes,
            "headers": dict(self.headers),
            "statusCode": self.status_code,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
