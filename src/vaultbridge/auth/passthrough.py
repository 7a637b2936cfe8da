"""Copy named authorization headers from the invocation to the PSP call."""

from __future__ import annotations

from collections.abc import Sequence

from vaultbridge.auth.base import AuthStrategy
from vaultbridge.core.types import AuthContext, AuthScheme, HeaderMultiMap, OutboundRequest


class HeaderPassthroughAuth(AuthStrategy):
    """
    Copies the first value of each named header verbatim.

    Absent headers are simply not sent; nothing is validated here.
    """

    def __init__(self, names: Sequence[str]) -> None:
        self.names = tuple(names)

    def authenticate(self, headers: HeaderMultiMap, request: OutboundRequest) -> AuthContext:
        copied = {}
        for name in self.names:
            value = headers.first(name)
            if value is not None:
                copied[name] = value
        return AuthContext(scheme=AuthScheme.HEADERS, headers=copied)
