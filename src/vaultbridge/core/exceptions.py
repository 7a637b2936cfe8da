"""
Exception hierarchy for vaultbridge.

All pipeline-specific exceptions inherit from VaultBridgeError. The pipeline
boundary is the only place these are converted into a function response.
"""

from __future__ import annotations

from typing import Any


class VaultBridgeError(Exception):
    """
    Base exception for all vaultbridge errors.

    Example:
        >>> try:
        ...     codec.decode(body)
        ... except VaultBridgeError as e:
        ...     print(f"Pipeline error: {e}")
    """

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(VaultBridgeError):
    """
    Configuration is missing or invalid.

    Raised when:
    - Required environment variables are not set
    - Vault service-account credentials cannot be parsed
    """

    pass


class BadRequestError(VaultBridgeError):
    """
    The inbound invocation is unusable.

    Raised when:
    - The body is empty or not valid base64
    - Required authentication material (e.g. MTLS cert/key headers) is missing
    """

    status_code = 400


class MalformedPayloadError(VaultBridgeError):
    """
    A payload codec could not parse or locate required structure.

    Raised when:
    - The body is not valid JSON / XML / form data
    - A required field, element or form parameter is absent
    """

    pass


class CredentialError(VaultBridgeError):
    """
    A bearer token for the vault could not be obtained.

    Raised when:
    - The token endpoint rejects the signed assertion
    - The token endpoint is unreachable
    - The token response carries no access token
    """

    pass


class DetokenizationError(VaultBridgeError):
    """
    The vault rejected a detokenize call or returned an unusable response.

    Attributes:
        error_body: The vault's error body (parsed JSON or raw text)
        http_code: Status reported by the vault, if any
    """

    def __init__(
        self,
        message: str,
        error_body: Any = None,
        http_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.error_body = error_body
        self.http_code = http_code


class UpstreamUnavailableError(VaultBridgeError):
    """
    The PSP could not be reached (connect error, timeout, TLS failure).

    PSP responses with an error status are not exceptions; they are
    classified from the response itself.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
