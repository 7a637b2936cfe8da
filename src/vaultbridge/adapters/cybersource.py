"""Cybersource: JSON signed with an HMAC-SHA256 HTTP signature."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from vaultbridge.adapters.base import PspAdapter
from vaultbridge.auth.signature import HttpSignatureAuth
from vaultbridge.codecs.json_splice import JsonFieldCodec
from vaultbridge.core.config import CybersourceConfig

CARD_PATHS = (
    "paymentInformation.card.number",
    "paymentInformation.card.expirationMonth",
    "paymentInformation.card.expirationYear",
)


class CybersourceAdapter(PspAdapter):
    """Detokenizes the card number and expiry, then signs the final body."""

    def __init__(
        self,
        config: CybersourceConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        super().__init__(
            codec=JsonFieldCodec(CARD_PATHS),
            auth=HttpSignatureAuth(config, clock=clock),
        )

    @property
    def name(self) -> str:
        return "cybersource"

    def endpoint(self) -> str:
        return self._config.url
