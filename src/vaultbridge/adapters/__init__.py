"""
PSP adapters and their registry.

Adapters bind a payload codec and an authentication strategy to one PSP:
- AzulAdapter: mutual TLS, JSON, expiry merged to YYYYMM
- CybersourceAdapter: HMAC HTTP signature, JSON
- SegpayAdapter: XML attributes inside a form-encoded field
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from vaultbridge.adapters.azul import AzulAdapter
from vaultbridge.adapters.base import PspAdapter
from vaultbridge.adapters.cybersource import CybersourceAdapter
from vaultbridge.adapters.segpay import SegpayAdapter
from vaultbridge.core.config import AzulConfig, CybersourceConfig, SegpayConfig
from vaultbridge.core.exceptions import ConfigurationError

AdapterFactory = Callable[[Mapping[str, str] | None], PspAdapter]

_REGISTRY: dict[str, AdapterFactory] = {
    "azul": lambda env: AzulAdapter(AzulConfig.from_env(env)),
    "cybersource": lambda env: CybersourceAdapter(CybersourceConfig.from_env(env)),
    "segpay": lambda env: SegpayAdapter(SegpayConfig.from_env(env)),
}


def available_adapters() -> list[str]:
    return sorted(_REGISTRY)


def register_adapter(name: str, factory: AdapterFactory) -> None:
    """Register an adapter factory under ``name``, replacing any existing one."""
    _REGISTRY[name.lower()] = factory


def get_adapter(name: str, env: Mapping[str, str] | None = None) -> PspAdapter:
    """
    Build the named adapter from environment configuration.

    Raises:
        ConfigurationError: If the name is unknown or its configuration is incomplete
    """
    factory = _REGISTRY.get(name.lower())
    if factory is None:
        raise ConfigurationError(
            f"Unknown adapter: {name}", details={"available": available_adapters()}
        )
    try:
        return factory(env)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name} configuration: {e}") from e


__all__ = [
    "PspAdapter",
    "AzulAdapter",
    "CybersourceAdapter",
    "SegpayAdapter",
    "available_adapters",
    "get_adapter",
    "register_adapter",
]
