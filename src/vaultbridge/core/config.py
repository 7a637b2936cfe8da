"""
Configuration management for vaultbridge.

Configuration is loaded into immutable value objects once per invocation and
passed to each component. Environment variable names match the ones the
deployed functions are provisioned with.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from vaultbridge.core.logging import LOG_FORMATS

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _get_env_var(
    name: str,
    default: str | None = None,
    required: bool = False,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Get environment variable with optional default."""
    source = os.environ if env is None else env
    value = source.get(name, default)
    if required and not value:
        raise ValueError(f"Required environment variable {name} is not set")
    return value


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "****"
    return value[:4] + "..." + value[-4:]


@dataclass(frozen=True)
class VaultConfig:
    """Vault connection settings shared by every adapter."""

    vault_url: str
    vault_id: str
    credentials: str
    # Timeouts (seconds)
    http_timeout: float = 30.0
    # Transport retries for the detokenize call only
    vault_max_attempts: int = 3
    log_level: str = "INFO"
    log_format: str = "text"

    def __post_init__(self) -> None:
        if not self.vault_url:
            raise ValueError("vault_url is required")
        if not self.vault_id:
            raise ValueError("vault_id is required")
        if not self.credentials:
            raise ValueError("credentials is required")
        if self.vault_max_attempts < 1:
            raise ValueError("vault_max_attempts must be at least 1")
        # Level and format names are case-insensitive
        object.__setattr__(self, "log_level", self.log_level.upper())
        object.__setattr__(self, "log_format", self.log_format.lower())
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")

    @property
    def detokenize_url(self) -> str:
        return f"{self.vault_url.rstrip('/')}/v1/vaults/{self.vault_id}/detokenize"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> VaultConfig:
        """Load vault configuration from environment variables."""
        vault_url = overrides.get("vault_url") or _get_env_var("vaultURL", required=True, env=env)
        vault_id = overrides.get("vault_id") or _get_env_var("vaultID", required=True, env=env)
        credentials = overrides.get("credentials") or _get_env_var(
            "credentials", required=True, env=env
        )
        http_timeout = overrides.get("http_timeout") or float(
            _get_env_var("VAULTBRIDGE_HTTP_TIMEOUT", default="30", env=env)  # type: ignore[arg-type]
        )
        vault_max_attempts = overrides.get("vault_max_attempts") or int(
            _get_env_var("VAULTBRIDGE_VAULT_MAX_ATTEMPTS", default="3", env=env)  # type: ignore[arg-type]
        )
        log_level = overrides.get("log_level") or _get_env_var(
            "VAULTBRIDGE_LOG_LEVEL", default="INFO", env=env
        )
        log_format = overrides.get("log_format") or _get_env_var(
            "VAULTBRIDGE_LOG_FORMAT", default="text", env=env
        )

        return cls(
            vault_url=vault_url,  # type: ignore
            vault_id=vault_id,  # type: ignore
            credentials=credentials,  # type: ignore
            http_timeout=http_timeout,
            vault_max_attempts=vault_max_attempts,
            log_level=log_level,  # type: ignore
            log_format=log_format,  # type: ignore
        )

    def with_updates(self, **updates: Any) -> VaultConfig:
        """Create a new VaultConfig with updated values."""
        return replace(self, **updates)


@dataclass(frozen=True)
class AzulConfig:
    """Endpoint for the mutual-TLS JSON PSP."""

    psp_url: str

    def __post_init__(self) -> None:
        if not self.psp_url:
            raise ValueError("psp_url is required")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> AzulConfig:
        psp_url = overrides.get("psp_url") or _get_env_var("pspUrl", required=True, env=env)
        return cls(psp_url=psp_url)  # type: ignore[arg-type]


@dataclass(frozen=True)
class CybersourceConfig:
    """Merchant credentials and target for the HTTP-signature PSP."""

    merchant_secret_key: str
    merchant_key_id: str
    merchant_id: str
    request_host: str
    resource_path: str

    def __post_init__(self) -> None:
        for name in (
            "merchant_secret_key",
            "merchant_key_id",
            "merchant_id",
            "request_host",
            "resource_path",
        ):
            if not getattr(self, name):
                raise ValueError(f"{name} is required")

    @property
    def url(self) -> str:
        return f"https://{self.request_host}{self.resource_path}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> CybersourceConfig:
        def pick(field_name: str, env_name: str) -> str:
            return overrides.get(field_name) or _get_env_var(env_name, required=True, env=env)  # type: ignore[return-value]

        return cls(
            merchant_secret_key=pick("merchant_secret_key", "merchantSecretKey"),
            merchant_key_id=pick("merchant_key_id", "merchantKeyId"),
            merchant_id=pick("merchant_id", "merchantId"),
            request_host=pick("request_host", "requestHost"),
            resource_path=pick("resource_path", "resourcePath"),
        )

    def masked_secret_key(self) -> str:
        """Return the shared secret with most characters masked for safe logging."""
        return _mask(self.merchant_secret_key)


@dataclass(frozen=True)
class SegpayConfig:
    """Endpoint for the form-wrapped XML PSP."""

    auth_url: str

    def __post_init__(self) -> None:
        if not self.auth_url:
            raise ValueError("auth_url is required")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> SegpayConfig:
        auth_url = overrides.get("auth_url") or _get_env_var("authUrl", required=True, env=env)
        return cls(auth_url=auth_url)  # type: ignore[arg-type]
