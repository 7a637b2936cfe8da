"""
Function entry points.

Configuration is read from the environment on every invocation and passed
down explicitly; nothing is cached between invocations.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from vaultbridge.adapters import get_adapter
from vaultbridge.classifier import ResponseClassifier
from vaultbridge.core.config import VaultConfig
from vaultbridge.core.exceptions import ConfigurationError, VaultBridgeError
from vaultbridge.core.logging import configure_logging, get_logger
from vaultbridge.core.types import Invocation
from vaultbridge.forwarder import Forwarder
from vaultbridge.pipeline import Pipeline
from vaultbridge.vault.client import DetokenizationClient
from vaultbridge.vault.credentials import CredentialProvider, ServiceAccountCredentialProvider

logger = get_logger("handler")


def build_pipeline(
    adapter_name: str,
    env: Mapping[str, str] | None = None,
    credentials: CredentialProvider | None = None,
) -> Pipeline:
    """
    Assemble a pipeline for ``adapter_name`` from environment configuration.

    Raises:
        ConfigurationError: If configuration is missing or invalid
    """
    try:
        vault_config = VaultConfig.from_env(env)
    except ValueError as e:
        raise ConfigurationError(f"Invalid vault configuration: {e}") from e

    configure_logging(vault_config.log_level, vault_config.log_format)

    adapter = get_adapter(adapter_name, env)
    provider = credentials or ServiceAccountCredentialProvider(
        vault_config.credentials, timeout=vault_config.http_timeout
    )
    return Pipeline(
        adapter=adapter,
        vault=DetokenizationClient(vault_config, provider),
        forwarder=Forwarder(timeout=vault_config.http_timeout),
    )


async def handle_event(
    event: Mapping[str, Any],
    adapter_name: str,
    env: Mapping[str, str] | None = None,
    credentials: CredentialProvider | None = None,
) -> dict[str, Any]:
    """
    Handle one invocation event and return the response envelope as a dict.

    Never raises: configuration problems become a 500 response.
    """
    try:
        invocation = Invocation.from_event(event)
        pipeline = build_pipeline(adapter_name, env=env, credentials=credentials)
    except VaultBridgeError as e:
        logger.error(f"Unable to start {adapter_name} pipeline: {e}")
        return ResponseClassifier().internal_failure(e).to_dict()
    except Exception as e:
        logger.exception(f"Unable to start {adapter_name} pipeline")
        return ResponseClassifier().internal_failure(e).to_dict()

    response = await pipeline.run(invocation)
    return response.to_dict()


def handle(event: Mapping[str, Any], adapter_name: str, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Synchronous wrapper around ``handle_event`` for runtimes without an event loop."""
    return asyncio.run(handle_event(event, adapter_name, env=env))


def azul_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    return handle(event, "azul")


def cybersource_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    return handle(event, "cybersource")


def segpay_handler(event: Mapping[str, Any], context: Any = None) -> dict[str, Any]:
    return handle(event, "segpay")
