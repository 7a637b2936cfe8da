"""
vaultbridge - detokenize vaulted card fields and forward them to a PSP.

Each invocation carries a base64 body with vault tokens in place of card
data. The pipeline resolves the tokens, rewrites the body into the PSP's
format, authenticates the outbound call and returns a normalized response.

Usage:
    >>> from vaultbridge import handle_event
    >>> response = await handle_event(event, "cybersource")
    >>> response["statusCode"]
    200
"""

from vaultbridge.adapters import (
    AzulAdapter,
    CybersourceAdapter,
    PspAdapter,
    SegpayAdapter,
    available_adapters,
    get_adapter,
)
from vaultbridge.classifier import ResponseClassifier
from vaultbridge.core.config import AzulConfig, CybersourceConfig, SegpayConfig, VaultConfig
from vaultbridge.core.exceptions import (
    BadRequestError,
    ConfigurationError,
    CredentialError,
    DetokenizationError,
    MalformedPayloadError,
    UpstreamUnavailableError,
    VaultBridgeError,
)
from vaultbridge.core.logging import configure_logging, get_logger
from vaultbridge.core.types import (
    AuthContext,
    AuthScheme,
    DetokenizationResult,
    FunctionResponse,
    HeaderMultiMap,
    Invocation,
    OutboundRequest,
    PspResponse,
)
from vaultbridge.forwarder import Forwarder
from vaultbridge.handler import build_pipeline, handle, handle_event
from vaultbridge.pipeline import Pipeline
from vaultbridge.vault import (
    CredentialProvider,
    DetokenizationClient,
    ServiceAccountCredentialProvider,
    StaticCredentialProvider,
)

__version__ = "0.1.0"
__all__ = [
    # Entry points
    "handle",
    "handle_event",
    "build_pipeline",
    "Pipeline",
    # Components
    "DetokenizationClient",
    "CredentialProvider",
    "ServiceAccountCredentialProvider",
    "StaticCredentialProvider",
    "Forwarder",
    "ResponseClassifier",
    # Adapters
    "PspAdapter",
    "AzulAdapter",
    "CybersourceAdapter",
    "SegpayAdapter",
    "available_adapters",
    "get_adapter",
    # Types
    "AuthContext",
    "AuthScheme",
    "DetokenizationResult",
    "FunctionResponse",
    "HeaderMultiMap",
    "Invocation",
    "OutboundRequest",
    "PspResponse",
    # Config
    "VaultConfig",
    "AzulConfig",
    "CybersourceConfig",
    "SegpayConfig",
    # Exceptions
    "VaultBridgeError",
    "BadRequestError",
    "ConfigurationError",
    "CredentialError",
    "DetokenizationError",
    "MalformedPayloadError",
    "UpstreamUnavailableError",
    # Logging
    "configure_logging",
    "get_logger",
]
