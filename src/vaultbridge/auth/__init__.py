"""
Outbound authentication strategies.

- HeaderPassthroughAuth: copy inbound authorization headers
- MutualTlsAuth: per-call TLS client identity from inbound headers
- HttpSignatureAuth: HMAC-SHA256 canonical request signature
"""

from vaultbridge.auth.base import AuthStrategy, CompositeAuth, NoAuth
from vaultbridge.auth.mtls import MutualTlsAuth, build_ssl_context, unescape_pem
from vaultbridge.auth.passthrough import HeaderPassthroughAuth
from vaultbridge.auth.signature import HttpSignatureAuth

__all__ = [
    "AuthStrategy",
    "CompositeAuth",
    "NoAuth",
    "HeaderPassthroughAuth",
    "MutualTlsAuth",
    "HttpSignatureAuth",
    "build_ssl_context",
    "unescape_pem",
]
