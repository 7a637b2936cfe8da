"""
Resilience layer for vaultbridge.

Retries transient transport failures of the vault call only.
"""

from .retry import execute_with_retry, is_transient_error, vault_retrying

__all__ = [
    "execute_with_retry",
    "is_transient_error",
    "vault_retrying",
]
