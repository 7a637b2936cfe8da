"""
Bearer-token providers for the vault API.

The detokenization client asks its provider for a fresh token on every call.
Providers hold no mutable state, so one instance can serve concurrent
invocations.
"""

from __future__ import annotations

import json
import time
from typing import Any, Protocol, runtime_checkable

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from vaultbridge.core.exceptions import ConfigurationError, CredentialError
from vaultbridge.core.logging import get_logger

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_TTL_SECONDS = 3600


@runtime_checkable
class CredentialProvider(Protocol):
    """Anything that can produce a vault bearer token."""

    async def get_bearer_token(self) -> str: ...


class StaticCredentialProvider:
    """Returns a pre-issued token. Useful for tests and externally managed tokens."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ValueError("token is required")
        self._token = token

    async def get_bearer_token(self) -> str:
        return self._token


class ServiceAccountCredentialProvider:
    """
    Exchanges vault service-account credentials for a bearer token.

    The credentials document carries ``clientID``, ``keyID``, ``tokenURI`` and
    an RSA ``privateKey``. A short-lived RS256 assertion is signed with the
    private key and exchanged at ``tokenURI`` for an access token.

    Example:
        >>> provider = ServiceAccountCredentialProvider(os.environ["credentials"])
        >>> token = await provider.get_bearer_token()
    """

    def __init__(
        self,
        credentials: str | dict[str, Any],
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._credentials = self._parse(credentials)
        self._timeout = timeout
        self._http_client = http_client
        self._logger = get_logger("credentials")

    @staticmethod
    def _parse(credentials: str | dict[str, Any]) -> dict[str, str]:
        if isinstance(credentials, str):
            try:
                credentials = json.loads(credentials)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Vault credentials are not valid JSON: {e.msg}") from e
        if not isinstance(credentials, dict):
            raise ConfigurationError("Vault credentials must be a JSON object")

        missing = [k for k in ("clientID", "keyID", "tokenURI", "privateKey") if not credentials.get(k)]
        if missing:
            raise ConfigurationError(
                "Vault credentials are incomplete",
                details={"missing": missing},
            )
        return credentials

    @property
    def client_id(self) -> str:
        return self._credentials["clientID"]

    @property
    def token_uri(self) -> str:
        return self._credentials["tokenURI"]

    def signed_assertion(self, now: float | None = None) -> str:
        """Build the RS256 JWT assertion presented to the token endpoint."""
        issued = int(now if now is not None else time.time())
        claims = {
            "iss": self._credentials["clientID"],
            "key": self._credentials["keyID"],
            "aud": self._credentials["tokenURI"],
            "sub": self._credentials["clientID"],
            "exp": issued + ASSERTION_TTL_SECONDS,
        }
        try:
            key = serialization.load_pem_private_key(
                self._credentials["privateKey"].encode("utf-8"), password=None
            )
            return jwt.encode(claims, key, algorithm="RS256")
        except (ValueError, TypeError, UnsupportedAlgorithm, jwt.PyJWTError) as e:
            raise CredentialError(f"Unable to sign vault assertion: {e}") from e

    async def get_bearer_token(self) -> str:
        assertion = self.signed_assertion()
        body = {"grant_type": JWT_BEARER_GRANT, "assertion": assertion}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.token_uri, json=body)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.token_uri, json=body)
        except httpx.HTTPError as e:
            raise CredentialError(
                f"Token endpoint unreachable: {e}", details={"token_uri": self.token_uri}
            ) from e

        if response.status_code >= 400:
            self._logger.warning(f"Token endpoint returned {response.status_code}")
            raise CredentialError(
                "Token endpoint rejected the service-account assertion",
                details={"status_code": response.status_code, "body": response.text[:500]},
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        token = data.get("accessToken") if isinstance(data, dict) else None
        if not token:
            raise CredentialError("Token endpoint response carried no accessToken")
        return token
