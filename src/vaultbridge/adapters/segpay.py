"""Segpay: card tokens as attributes of an XML document in the XMLData form field."""

from __future__ import annotations

from vaultbridge.adapters.base import PspAdapter
from vaultbridge.auth.base import NoAuth
from vaultbridge.classifier import ResponseClassifier
from vaultbridge.codecs.form_xml import FormXmlCodec
from vaultbridge.codecs.xml_attr import XmlAttributeCodec
from vaultbridge.core.config import SegpayConfig


class SegpayAdapter(PspAdapter):
    """
    Rewrites ``data/authrequest@CardNumber|CVV|ExpDate`` inside ``XMLData``.

    PSP answers are XML and are returned verbatim as ``text/xml``. Vault
    failures always answer 500.
    """

    uses_vault_http_code = False

    def __init__(self, config: SegpayConfig) -> None:
        self._config = config
        super().__init__(
            codec=FormXmlCodec(
                XmlAttributeCodec(("data", "authrequest"), ("CardNumber", "CVV", "ExpDate"))
            ),
            auth=NoAuth(),
            classifier=ResponseClassifier(upstream_content_type="text/xml", raw_upstream_body=True),
        )

    @property
    def name(self) -> str:
        return "segpay"

    def endpoint(self) -> str:
        return self._config.auth_url
