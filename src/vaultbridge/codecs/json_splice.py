"""JSON field splicing codecs."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from vaultbridge.codecs.base import PayloadCodec
from vaultbridge.core.exceptions import MalformedPayloadError

CENTURY_PREFIX = "20"


def serialize_json(document: Any) -> bytes:
    """Compact JSON, key order preserved. These bytes are what get digested and sent."""
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _split(path: str) -> list[str]:
    return path.split(".")


def _parent(document: Any, path: str) -> dict[str, Any]:
    node = document
    for part in _split(path)[:-1]:
        if not isinstance(node, dict) or not isinstance(node.get(part), dict):
            raise MalformedPayloadError(
                f"Cannot read properties of missing object '{part}'", details={"path": path}
            )
        node = node[part]
    if not isinstance(node, dict):
        raise MalformedPayloadError("Payload is not a JSON object", details={"path": path})
    return node


def get_path(document: Any, path: str) -> Any:
    """Read a dotted path. A missing leaf is None; a missing parent is malformed."""
    return _parent(document, path).get(_split(path)[-1])


def set_path(document: Any, path: str, value: Any) -> None:
    _parent(document, path)[_split(path)[-1]] = value


def delete_path(document: Any, path: str) -> None:
    _parent(document, path).pop(_split(path)[-1], None)


def expiry_yyyymm(year: str, month: str) -> str:
    """
    Combine expiry year and month into YYYYMM.

    Two-digit years get the fixed "20" century prefix; four-digit years are
    kept. Single-digit months are zero-padded.

    Raises:
        MalformedPayloadError: If either part is not numeric or has an unexpected length
    """
    year = (year or "").strip()
    month = (month or "").strip()
    if not year.isdigit() or len(year) not in (2, 4):
        raise MalformedPayloadError("Expiration year must be 2 or 4 digits")
    if not month.isdigit() or len(month) not in (1, 2) or not 1 <= int(month) <= 12:
        raise MalformedPayloadError("Expiration month must be between 01 and 12")
    if len(year) == 2:
        year = CENTURY_PREFIX + year
    return f"{year}{month.zfill(2)}"


class JsonFieldCodec(PayloadCodec):
    """
    Replaces tokens held at dotted field paths of a JSON object.

    Example:
        >>> codec = JsonFieldCodec(["paymentInformation.card.number"])
        >>> doc = codec.decode(b'{"paymentInformation": {"card": {"number": "tok"}}}')
        >>> codec.tokens(doc)
        ['tok']
    """

    content_type = "application/json"

    def __init__(self, paths: Sequence[str]) -> None:
        if not paths:
            raise ValueError("At least one field path is required")
        self.paths = list(paths)

    def decode(self, body: bytes) -> Any:
        try:
            document = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MalformedPayloadError(f"Invalid JSON payload: {e}") from e
        if not isinstance(document, dict):
            raise MalformedPayloadError("JSON payload must be an object")
        return document

    def tokens(self, document: Any) -> list[str | None]:
        out: list[str | None] = []
        for path in self.paths:
            value = get_path(document, path)
            if value is None or value == "":
                out.append(None)
            else:
                out.append(value if isinstance(value, str) else str(value))
        return out

    def splice(self, document: Any, values: Sequence[str | None]) -> None:
        for path, value in zip(self.paths, values):
            if value is not None:
                set_path(document, path, value)

    def encode(self, document: Any) -> bytes:
        return serialize_json(document)


class ExpirationJsonCodec(JsonFieldCodec):
    """
    JSON codec that also folds separate expiry month/year fields into one.

    After splicing, the month and year fields are removed and ``target`` is
    set to YYYYMM built from their plaintext values.
    """

    def __init__(
        self,
        card_paths: Sequence[str],
        month_path: str,
        year_path: str,
        target: str,
        order: Sequence[str] | None = None,
    ) -> None:
        self.card_paths = list(card_paths)
        self.month_path = month_path
        self.year_path = year_path
        self.target = target
        # Token order sent to the vault
        super().__init__(list(order) if order else [*self.card_paths, year_path, month_path])
        expected = {*self.card_paths, month_path, year_path}
        if set(self.paths) != expected:
            raise ValueError("order must list every card, month and year path exactly once")

    def splice(self, document: Any, values: Sequence[str | None]) -> None:
        plaintext = dict(zip(self.paths, values))
        year = plaintext.get(self.year_path)
        month = plaintext.get(self.month_path)
        if year is None or month is None:
            raise MalformedPayloadError(
                "Expiration month and year are required",
                details={"month": self.month_path, "year": self.year_path},
            )

        for path in self.card_paths:
            if plaintext.get(path) is not None:
                set_path(document, path, plaintext[path])
        delete_path(document, self.month_path)
        delete_path(document, self.year_path)
        set_path(document, self.target, expiry_yyyymm(year, month))
