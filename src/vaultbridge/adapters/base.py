"""
Base PSP adapter interface.

An adapter binds a payload codec, an authentication strategy and a response
classifier to one PSP endpoint. The Pipeline drives adapters; adapters never
perform I/O themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from vaultbridge.auth.base import AuthStrategy
from vaultbridge.classifier import ResponseClassifier
from vaultbridge.codecs.base import PayloadCodec
from vaultbridge.core.types import OutboundRequest


class PspAdapter(ABC):
    """
    Abstract base class for PSP adapters.

    - AzulAdapter: JSON body, mutual TLS plus passthrough auth headers
    - CybersourceAdapter: JSON body, HMAC HTTP signature
    - SegpayAdapter: XML in a form-encoded field, no auth
    """

    #: Status used when a detokenization failure carries no http_code
    detokenize_failure_status: int = 500
    #: Whether the vault's error.http_code becomes the response status
    uses_vault_http_code: bool = True

    def __init__(
        self,
        codec: PayloadCodec,
        auth: AuthStrategy,
        classifier: ResponseClassifier | None = None,
    ) -> None:
        self.codec = codec
        self.auth = auth
        self.classifier = classifier or ResponseClassifier()

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of this adapter."""
        ...

    @abstractmethod
    def endpoint(self) -> str:
        """URL the composed request is posted to."""
        ...

    def extra_headers(self) -> dict[str, str]:
        """Static headers added to every outbound request."""
        return {}

    def build_request(self, body: bytes) -> OutboundRequest:
        return OutboundRequest(
            url=self.endpoint(),
            body=body,
            content_type=self.codec.content_type,
            headers=self.extra_headers(),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(endpoint={self.endpoint()!r})"
