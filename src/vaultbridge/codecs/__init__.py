"""
Payload codecs.

- JsonFieldCodec / ExpirationJsonCodec: splice values into JSON field paths
- XmlAttributeCodec: splice values into attributes of a fixed XML element
- FormXmlCodec: XmlAttributeCodec inside a form-encoded field
"""

from vaultbridge.codecs.base import PayloadCodec
from vaultbridge.codecs.form_xml import FormDocument, FormXmlCodec
from vaultbridge.codecs.json_splice import ExpirationJsonCodec, JsonFieldCodec, expiry_yyyymm
from vaultbridge.codecs.xml_attr import XmlAttributeCodec, parse_xml

__all__ = [
    "PayloadCodec",
    "JsonFieldCodec",
    "ExpirationJsonCodec",
    "XmlAttributeCodec",
    "FormXmlCodec",
    "FormDocument",
    "expiry_yyyymm",
    "parse_xml",
]
