"""
Mutual TLS client identity supplied per invocation.

The client certificate and private key arrive in inbound headers as
JSON-string-escaped PEM text (newlines as ``\\n``). A new SSL context is
built for every call since the identity may differ between invocations.
"""

from __future__ import annotations

import json
import os
import ssl
import tempfile

from vaultbridge.auth.base import AuthStrategy
from vaultbridge.core.exceptions import BadRequestError
from vaultbridge.core.logging import get_logger
from vaultbridge.core.types import AuthContext, AuthScheme, HeaderMultiMap, OutboundRequest

logger = get_logger("auth.mtls")


def unescape_pem(value: str) -> str:
    """
    Undo JSON string escaping of a PEM header value.

    Raises:
        BadRequestError: If the value is not a valid JSON string body
    """
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError as e:
        raise BadRequestError(f"Bad request. Invalid escaped PEM value: {e.msg}") from e


def build_ssl_context(cert: str, key: str) -> ssl.SSLContext:
    """
    Build a client SSL context presenting ``cert``/``key``.

    The ssl module only loads chains from files, so the PEM text is written
    to a private temporary directory that is removed once loaded.

    Raises:
        ssl.SSLError: If the certificate and key cannot be loaded
    """
    context = ssl.create_default_context()
    with tempfile.TemporaryDirectory(prefix="vaultbridge-mtls-") as tmp:
        cert_path = os.path.join(tmp, "client.crt")
        key_path = os.path.join(tmp, "client.key")
        for path, content in ((cert_path, cert), (key_path, key)):
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
        context.load_cert_chain(certfile=cert_path, keyfile=key_path)
    return context


class MutualTlsAuth(AuthStrategy):
    """Reads the client identity from the ``Cert`` and ``Key`` headers."""

    def __init__(self, cert_header: str = "Cert", key_header: str = "Key", psp_name: str = "the PSP") -> None:
        self.cert_header = cert_header
        self.key_header = key_header
        self.psp_name = psp_name

    def preflight(self, headers: HeaderMultiMap) -> None:
        if not headers.first(self.cert_header) or not headers.first(self.key_header):
            logger.warning("MTLS client identity headers missing")
            raise BadRequestError(
                f"Bad request. Required headers '{self.cert_header.lower()}' and "
                f"'{self.key_header.lower()}' for MTLS with {self.psp_name} are missing."
            )

    def authenticate(self, headers: HeaderMultiMap, request: OutboundRequest) -> AuthContext:
        self.preflight(headers)
        cert = unescape_pem(headers.first(self.cert_header))  # type: ignore[arg-type]
        key = unescape_pem(headers.first(self.key_header))  # type: ignore[arg-type]
        return AuthContext(scheme=AuthScheme.MUTUAL_TLS, client_cert=cert, client_key=key)
