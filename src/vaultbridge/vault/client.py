"""
Vault detokenization client.

Resolves an ordered list of tokens to plaintext values with one batched
call to the vault's detokenize endpoint.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from vaultbridge.core.config import VaultConfig
from vaultbridge.core.exceptions import DetokenizationError
from vaultbridge.core.logging import get_logger
from vaultbridge.core.types import DetokenizationResult
from vaultbridge.resilience.retry import execute_with_retry
from vaultbridge.vault.credentials import CredentialProvider

REDACTION_PLAIN_TEXT = "PLAIN_TEXT"


def build_parameters(tokens: Sequence[str | None]) -> tuple[list[dict[str, str]], list[int]]:
    """
    Build detokenization parameters, skipping absent tokens.

    Returns the parameter list and, for each parameter, the index of its
    token in ``tokens``.
    """
    parameters: list[dict[str, str]] = []
    positions: list[int] = []
    for index, token in enumerate(tokens):
        if not token:
            continue
        parameters.append({"token": token, "redaction": REDACTION_PLAIN_TEXT})
        positions.append(index)
    return parameters, positions


def match_records(parameters: list[dict[str, str]], records: Any) -> list[str]:
    """
    Pair response records with request parameters.

    Records echo the token they resolved, which is used as the correlation
    tag. A record without a token is matched by its position.

    Raises:
        DetokenizationError: If any parameter is left without a value
    """
    if not isinstance(records, list):
        raise DetokenizationError("Vault response has no records list")

    by_token: dict[str, str] = {}
    for record in records:
        if isinstance(record, dict) and record.get("token") is not None and "value" in record:
            by_token[record["token"]] = record["value"]

    values: list[str] = []
    for index, parameter in enumerate(parameters):
        token = parameter["token"]
        if token in by_token:
            values.append(by_token[token])
            continue
        record = records[index] if index < len(records) else None
        if isinstance(record, dict) and record.get("token") is None and "value" in record:
            values.append(record["value"])
            continue
        raise DetokenizationError(
            "Vault response is missing a record for a requested token",
            details={"index": index, "requested": len(parameters), "returned": len(records)},
        )
    return values


def _http_code(error_body: Any) -> int | None:
    if not isinstance(error_body, dict):
        return None
    error = error_body.get("error")
    code = error.get("http_code") if isinstance(error, dict) else None
    if isinstance(code, bool):
        return None
    if isinstance(code, int):
        return code
    if isinstance(code, str) and code.isdigit():
        return int(code)
    return None


class DetokenizationClient:
    """
    Client for the vault detokenize API.

    Example:
        >>> client = DetokenizationClient(config, ServiceAccountCredentialProvider(creds))
        >>> result = await client.detokenize(["tok_c", None, "tok_m"], request_id="req-1")
        >>> result.aligned(3)
        ['4111111111111111', None, '05']
    """

    def __init__(
        self,
        config: VaultConfig,
        credentials: CredentialProvider,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._http_client = http_client
        self._logger = get_logger("vault")

    async def _post(self, url: str, body: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=self._config.http_timeout) as client:
            return await client.post(url, json=body, headers=headers)

    async def detokenize(
        self,
        tokens: Sequence[str | None],
        request_id: str | None = None,
    ) -> DetokenizationResult:
        """
        Resolve tokens to plaintext values.

        Args:
            tokens: Ordered tokens; None or empty entries are skipped
            request_id: Forwarded as ``x-request-id``

        Returns:
            DetokenizationResult whose values follow the non-skipped tokens
        """
        parameters, positions = build_parameters(tokens)
        if not parameters:
            return DetokenizationResult(success=True)

        # A fresh bearer token for every call
        bearer = await self._credentials.get_bearer_token()
        headers = {
            "Authorization": f"Bearer {bearer}",
            "Content-Type": "application/json",
        }
        if request_id:
            headers["x-request-id"] = request_id
        body = {"detokenizationParameters": parameters, "downloadURL": False}
        url = self._config.detokenize_url

        self._logger.debug(f"POST {url} ({len(parameters)} tokens, request_id={request_id})")
        try:
            response = await execute_with_retry(
                self._post, url, body, headers, max_attempts=self._config.vault_max_attempts
            )
        except httpx.TransportError as e:
            self._logger.error(f"Vault unreachable: {e!r}")
            return DetokenizationResult.failure({"error": {"message": f"Vault unreachable: {e}"}})

        if response.status_code >= 400:
            try:
                error_body: Any = response.json()
            except ValueError:
                error_body = response.text
            self._logger.warning(f"Vault detokenize failed with status {response.status_code}")
            return DetokenizationResult.failure(error_body, _http_code(error_body))

        try:
            values = match_records(parameters, response.json().get("records"))
        except (ValueError, AttributeError) as e:
            return DetokenizationResult.failure(
                {"error": {"message": f"Unreadable vault response: {e}"}}
            )
        except DetokenizationError as e:
            return DetokenizationResult.failure({"error": {"message": e.message, **e.details}})

        return DetokenizationResult(success=True, values=values, positions=positions)
