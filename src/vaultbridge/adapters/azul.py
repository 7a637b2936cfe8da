"""Azul: JSON over mutual TLS, with expiry month/year folded into one field."""

from __future__ import annotations

from vaultbridge.adapters.base import PspAdapter
from vaultbridge.auth.base import CompositeAuth
from vaultbridge.auth.mtls import MutualTlsAuth
from vaultbridge.auth.passthrough import HeaderPassthroughAuth
from vaultbridge.codecs.json_splice import ExpirationJsonCodec
from vaultbridge.core.config import AzulConfig

AUTH_HEADERS = ("Auth1", "Auth2")


class AzulAdapter(PspAdapter):
    """
    Detokenizes ``CardNumber``, ``ExpirationYear``, ``ExpirationMonth`` and ``CVC``.

    The PSP wants ``Expiration`` as YYYYMM, so the separate month and year
    fields are removed after detokenization. The client identity comes from
    the ``Cert``/``Key`` headers and ``Auth1``/``Auth2`` are passed through.
    """

    def __init__(self, config: AzulConfig) -> None:
        self._config = config
        super().__init__(
            codec=ExpirationJsonCodec(
                card_paths=["CardNumber", "CVC"],
                month_path="ExpirationMonth",
                year_path="ExpirationYear",
                target="Expiration",
                order=["CardNumber", "ExpirationYear", "ExpirationMonth", "CVC"],
            ),
            auth=CompositeAuth(HeaderPassthroughAuth(AUTH_HEADERS), MutualTlsAuth(psp_name="Azul")),
        )

    @property
    def name(self) -> str:
        return "azul"

    def endpoint(self) -> str:
        return self._config.psp_url
