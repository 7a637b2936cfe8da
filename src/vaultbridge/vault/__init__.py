"""Vault access: bearer-token providers and the detokenization client."""

from vaultbridge.vault.client import DetokenizationClient
from vaultbridge.vault.credentials import (
    CredentialProvider,
    ServiceAccountCredentialProvider,
    StaticCredentialProvider,
)

__all__ = [
    "DetokenizationClient",
    "CredentialProvider",
    "ServiceAccountCredentialProvider",
    "StaticCredentialProvider",
]
