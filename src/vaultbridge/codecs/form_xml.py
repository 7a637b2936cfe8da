"""Form-encoded envelope carrying an XML document in one field."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl, urlencode

from lxml import etree

from vaultbridge.codecs.base import PayloadCodec
from vaultbridge.codecs.xml_attr import XmlAttributeCodec
from vaultbridge.core.exceptions import MalformedPayloadError

XML_FIELD = "XMLData"


@dataclass
class FormDocument:
    """Decoded form parameters plus the parsed XML of the wrapped field."""

    params: list[tuple[str, str]]
    index: int
    xml: etree._Element


class FormXmlCodec(PayloadCodec):
    """
    Composes XmlAttributeCodec inside an ``application/x-www-form-urlencoded`` body.

    The wrapped field is rewritten in place; every other parameter keeps its
    value and position.
    """

    content_type = "application/x-www-form-urlencoded"

    def __init__(self, xml_codec: XmlAttributeCodec | None = None, field: str = XML_FIELD) -> None:
        self.xml_codec = xml_codec or XmlAttributeCodec()
        self.field = field

    def decode(self, body: bytes) -> FormDocument:
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"Form body is not UTF-8: {e}") from e

        params = parse_qsl(text, keep_blank_values=True)
        for index, (name, value) in enumerate(params):
            if name == self.field:
                if not value:
                    break
                return FormDocument(params=params, index=index, xml=self.xml_codec.decode(value))
        raise MalformedPayloadError(f"{self.field} field not found in the request")

    def tokens(self, document: Any) -> list[str | None]:
        return self.xml_codec.tokens(document.xml)

    def splice(self, document: Any, values: Sequence[str | None]) -> None:
        self.xml_codec.splice(document.xml, values)
        document.params[document.index] = (self.field, self.xml_codec.to_text(document.xml))

    def encode(self, document: Any) -> bytes:
        return urlencode(document.params).encode("utf-8")
