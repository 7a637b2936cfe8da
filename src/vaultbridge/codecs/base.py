"""
Base payload codec interface.

A codec turns the inbound body into a document, lists the tokens it holds,
splices plaintext values back in, and serializes the document for the PSP.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class PayloadCodec(ABC):
    """
    Abstract base class for payload codecs.

    Implementations:
    - JsonFieldCodec / ExpirationJsonCodec: JSON bodies
    - XmlAttributeCodec: attributes of a fixed XML element
    - FormXmlCodec: an XML document carried in a form-encoded field
    """

    content_type: str = "application/json"

    @abstractmethod
    def decode(self, body: bytes) -> Any:
        """
        Parse the inbound body.

        Raises:
            MalformedPayloadError: If the body cannot be parsed
        """
        ...

    @abstractmethod
    def tokens(self, document: Any) -> list[str | None]:
        """Return the tokens held by the document, None where a field is absent."""
        ...

    @abstractmethod
    def splice(self, document: Any, values: Sequence[str | None]) -> None:
        """
        Write plaintext values into the document in place.

        ``values`` lines up with ``tokens()``; None entries are left untouched.
        """
        ...

    @abstractmethod
    def encode(self, document: Any) -> bytes:
        """Serialize the document into the exact bytes sent to the PSP."""
        ...
