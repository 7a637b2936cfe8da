"""
XML attribute splicing codec.

Parsing is hardened against XML external entity (XXE) and entity-expansion
attacks: entities are never resolved, no DTD is loaded, nothing is fetched
over the network, and documents that declare a DOCTYPE are rejected.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from lxml import etree

from vaultbridge.codecs.base import PayloadCodec
from vaultbridge.core.exceptions import MalformedPayloadError

DEFAULT_PATH = ("data", "authrequest")
DEFAULT_ATTRIBUTES = ("CardNumber", "CVV", "ExpDate")


def safe_parser() -> etree.XMLParser:
    """A parser that never expands entities or touches DTDs/the network."""
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        dtd_validation=False,
        huge_tree=False,
        remove_comments=False,
    )


def parse_xml(text: str | bytes) -> etree._Element:
    """
    Parse an XML document with the hardened parser.

    Raises:
        MalformedPayloadError: If the document is malformed or declares a DOCTYPE
    """
    data = text.encode("utf-8") if isinstance(text, str) else text
    try:
        root = etree.fromstring(data, parser=safe_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedPayloadError(f"Invalid XML: {e}") from e
    if root is None:
        raise MalformedPayloadError("Invalid XML: empty document")
    if root.getroottree().docinfo.doctype:
        raise MalformedPayloadError("XML documents with a DOCTYPE are not accepted")
    return root


def serialize_xml(root: etree._Element) -> str:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", standalone=True).decode("utf-8")


class XmlAttributeCodec(PayloadCodec):
    """
    Replaces token attributes on the element found at ``path``.

    ``path[0]`` must be the root tag; each following name selects the first
    matching child.
    """

    content_type = "text/xml"

    def __init__(
        self,
        path: Sequence[str] = DEFAULT_PATH,
        attributes: Sequence[str] = DEFAULT_ATTRIBUTES,
    ) -> None:
        if not path:
            raise ValueError("path must name at least the root element")
        self.path = tuple(path)
        self.attributes = tuple(attributes)

    def decode(self, body: bytes | str) -> etree._Element:
        return parse_xml(body)

    def element(self, root: etree._Element) -> etree._Element:
        """Locate the element that carries the token attributes."""
        if root.tag != self.path[0]:
            raise MalformedPayloadError(
                f"Expected root element <{self.path[0]}>, found <{root.tag}>"
            )
        node = root
        for name in self.path[1:]:
            child = node.find(name)
            if child is None:
                raise MalformedPayloadError(
                    f"Element <{name}> not found", details={"path": "/".join(self.path)}
                )
            node = child
        return node

    def tokens(self, document: Any) -> list[str | None]:
        node = self.element(document)
        return [node.get(name) or None for name in self.attributes]

    def splice(self, document: Any, values: Sequence[str | None]) -> None:
        node = self.element(document)
        for name, value in zip(self.attributes, values):
            if value is not None:
                node.set(name, value)

    def encode(self, document: Any) -> bytes:
        return serialize_xml(document).encode("utf-8")

    def to_text(self, document: Any) -> str:
        return serialize_xml(document)
