"""
HMAC-SHA256 HTTP signature authentication.

The signature covers five pseudo-headers in a fixed order. The ``date`` and
``digest`` values placed in the canonical string must be exactly the ones
sent on the wire, so both are computed once and reused.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from collections.abc import Callable
from datetime import datetime, timezone
from email.utils import format_datetime

from vaultbridge.auth.base import AuthStrategy
from vaultbridge.core.config import CybersourceConfig
from vaultbridge.core.exceptions import ConfigurationError
from vaultbridge.core.logging import get_logger
from vaultbridge.core.types import AuthContext, AuthScheme, HeaderMultiMap, OutboundRequest

ALGORITHM = "HmacSHA256"
SIGNED_HEADERS = "host date request-target digest v-c-merchant-id"
DIGEST_PREFIX = "SHA-256="

logger = get_logger("auth.signature")


def compute_digest(body: bytes) -> str:
    """Base64 SHA-256 of the serialized body."""
    return base64.b64encode(hashlib.sha256(body).digest()).decode("ascii")


def http_date(now: datetime | None = None) -> str:
    """RFC 1123 date in GMT, e.g. ``Sun, 18 Oct 2026 09:30:00 GMT``."""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def canonical_string(host: str, date: str, resource_path: str, digest: str, merchant_id: str) -> str:
    """Newline-joined signing string; order is significant."""
    return "\n".join(
        [
            f"host: {host}",
            f"date: {date}",
            f"request-target: post {resource_path}",
            f"digest: {DIGEST_PREFIX}{digest}",
            f"v-c-merchant-id: {merchant_id}",
        ]
    )


def compute_signature(secret_key: str, canonical: str) -> str:
    """
    Base64 HMAC-SHA256 of the canonical string keyed by the decoded secret.

    Raises:
        ConfigurationError: If the secret key is not valid base64
    """
    try:
        key = base64.b64decode(secret_key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("merchant secret key is not valid base64") from e
    mac = hmac.new(key, canonical.encode("utf-8"), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode("ascii")


def signature_header(key_id: str, signature: str) -> str:
    return (
        f'keyid="{key_id}", algorithm="{ALGORITHM}", '
        f'headers="{SIGNED_HEADERS}", signature="{signature}"'
    )


class HttpSignatureAuth(AuthStrategy):
    """
    Signs the outbound request with the merchant's shared secret.

    Example:
        >>> auth = HttpSignatureAuth(CybersourceConfig(...))
        >>> context = auth.authenticate(headers, request)
        >>> context.headers["signature"]
        'keyid="k1", algorithm="HmacSHA256", headers="host date ...", signature="..."'
    """

    def __init__(
        self,
        config: CybersourceConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def sign(self, body: bytes, now: datetime | None = None) -> dict[str, str]:
        """Compute the full set of signed headers for ``body``."""
        cfg = self._config
        digest = compute_digest(body)
        date = http_date(now or self._clock())
        canonical = canonical_string(cfg.request_host, date, cfg.resource_path, digest, cfg.merchant_id)
        signature = compute_signature(cfg.merchant_secret_key, canonical)
        logger.debug(f"Signed request for merchant {cfg.merchant_id} with key {cfg.merchant_key_id}")
        return {
            "host": cfg.request_host,
            "v-c-merchant-id": cfg.merchant_id,
            "date": date,
            "digest": f"{DIGEST_PREFIX}{digest}",
            "signature": signature_header(cfg.merchant_key_id, signature),
        }

    def authenticate(self, headers: HeaderMultiMap, request: OutboundRequest) -> AuthContext:
        return AuthContext(scheme=AuthScheme.HTTP_SIGNATURE, headers=self.sign(request.body))
