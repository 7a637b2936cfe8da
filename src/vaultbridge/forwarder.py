"""
Outbound PSP call.

Sends exactly one request per invocation and reports the raw status and
body. Error statuses are returned, not raised; only transport failures raise.
"""

from __future__ import annotations

import ssl

import httpx

from vaultbridge.auth.mtls import build_ssl_context
from vaultbridge.core.exceptions import BadRequestError, UpstreamUnavailableError
from vaultbridge.core.logging import get_logger
from vaultbridge.core.types import AuthContext, OutboundRequest, PspResponse


class Forwarder:
    """
    Issues the PSP request with the auth context applied.

    A new httpx.AsyncClient is created per call because the TLS client
    identity can change from one invocation to the next. Never retries.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout
        self._logger = get_logger("forwarder")

    def _verify(self, auth: AuthContext) -> ssl.SSLContext | bool:
        if not auth.is_mutual_tls:
            return True
        try:
            return build_ssl_context(auth.client_cert, auth.client_key)  # type: ignore[arg-type]
        except (ssl.SSLError, OSError) as e:
            raise BadRequestError(f"Bad request. Unable to load MTLS client identity: {e}") from e

    async def send(self, request: OutboundRequest, auth: AuthContext) -> PspResponse:
        """
        POST the composed request.

        Raises:
            BadRequestError: If the mutual TLS client identity cannot be loaded
            UpstreamUnavailableError: If the PSP cannot be reached
        """
        headers = {**request.headers, **auth.headers, "Content-Type": request.content_type}
        verify = self._verify(auth)

        self._logger.info(f"POST {request.url} ({len(request.body)} bytes, auth={auth.scheme.value})")
        try:
            async with httpx.AsyncClient(timeout=self._timeout, verify=verify) as client:
                response = await client.post(request.url, content=request.body, headers=headers)
        except httpx.HTTPError as e:
            self._logger.error(f"PSP unreachable at {request.url}: {e!r}")
            raise UpstreamUnavailableError(f"PSP request failed: {e}", url=request.url) from e

        try:
            data = response.json()
        except ValueError:
            data = None
        self._logger.info(f"PSP responded {response.status_code}")
        return PspResponse(status_code=response.status_code, text=response.text, data=data)
