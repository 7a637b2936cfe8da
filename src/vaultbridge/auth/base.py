"""
Base authentication strategy interface.

A strategy validates inbound auth material before any outbound call and
then produces the AuthContext applied to the PSP request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from vaultbridge.core.types import AuthContext, HeaderMultiMap, OutboundRequest


class AuthStrategy(ABC):
    """
    Abstract base class for PSP authentication strategies.

    - HeaderPassthroughAuth: copies inbound authorization headers
    - MutualTlsAuth: client certificate/key from inbound headers
    - HttpSignatureAuth: HMAC-SHA256 HTTP signature over the final body
    """

    def preflight(self, headers: HeaderMultiMap) -> None:
        """
        Validate inbound auth material before the vault is called.

        Raises:
            BadRequestError: If required material is missing
        """
        return None

    @abstractmethod
    def authenticate(self, headers: HeaderMultiMap, request: OutboundRequest) -> AuthContext:
        """Compute outbound credentials for the composed request."""
        ...


class NoAuth(AuthStrategy):
    """The PSP call carries no credentials."""

    def authenticate(self, headers: HeaderMultiMap, request: OutboundRequest) -> AuthContext:
        return AuthContext()


class CompositeAuth(AuthStrategy):
    """Applies several strategies in order and merges their contexts."""

    def __init__(self, *strategies: AuthStrategy) -> None:
        if not strategies:
            raise ValueError("CompositeAuth needs at least one strategy")
        self.strategies = strategies

    def preflight(self, headers: HeaderMultiMap) -> None:
        for strategy in self.strategies:
            strategy.preflight(headers)

    def authenticate(self, headers: HeaderMultiMap, request: OutboundRequest) -> AuthContext:
        context = AuthContext()
        for strategy in self.strategies:
            context = context.merge(strategy.authenticate(headers, request))
        return context
