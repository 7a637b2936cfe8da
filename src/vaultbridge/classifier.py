"""Maps pipeline outcomes onto the normalized FunctionResponse envelope."""

from __future__ import annotations

import json
from typing import Any

from vaultbridge.core.exceptions import VaultBridgeError
from vaultbridge.core.types import (
    CONTENT_TYPE,
    ERROR_FROM_CLIENT,
    DetokenizationResult,
    FunctionResponse,
    PspResponse,
)


def stringify(value: Any) -> str:
    """JSON text for ``value``, compact and without ASCII escaping."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class ResponseClassifier:
    """
    Builds FunctionResponse objects for every pipeline outcome.

    ``Error-From-Client`` is only ever set on PSP-side failures.

    Args:
        content_type: Content-Type used for every response
        upstream_content_type: Overrides Content-Type whenever the PSP answered
            or failed (e.g. ``text/xml``)
        raw_upstream_body: Return the PSP body text verbatim instead of
            re-serializing it as JSON
    """

    def __init__(
        self,
        content_type: str = "application/json",
        upstream_content_type: str | None = None,
        raw_upstream_body: bool = False,
    ) -> None:
        self.content_type = content_type
        self.upstream_content_type = upstream_content_type
        self.raw_upstream_body = raw_upstream_body

    def _response(
        self,
        body: str,
        status_code: int = 200,
        content_type: str | None = None,
        error_from_client: bool = False,
    ) -> FunctionResponse:
        return FunctionResponse(
            body_bytes=body,
            headers={
                CONTENT_TYPE: content_type or self.content_type,
                ERROR_FROM_CLIENT: "true" if error_from_client else "false",
            },
            status_code=status_code,
        )

    def bad_request(self, message: str = "Bad request") -> FunctionResponse:
        return self._response(message, status_code=400)

    def detokenization_failure(
        self,
        result: DetokenizationResult,
        default_status: int = 500,
        use_http_code: bool = True,
    ) -> FunctionResponse:
        body = result.error_body
        text = body if isinstance(body, str) else stringify(body)
        status = result.http_code if use_http_code and result.http_code else default_status
        return self._response(text, status_code=status)

    def _upstream_body(self, response: PspResponse) -> str:
        if self.raw_upstream_body:
            return response.text
        if response.is_json:
            return stringify(response.data)
        return stringify(response.text)

    def upstream(self, response: PspResponse) -> FunctionResponse:
        return self._response(
            self._upstream_body(response),
            status_code=response.status_code or 200,
            content_type=self.upstream_content_type,
            error_from_client=not response.ok,
        )

    def upstream_unavailable(self, error: VaultBridgeError) -> FunctionResponse:
        return self._response(
            stringify(error.message),
            status_code=error.status_code,
            content_type=self.upstream_content_type,
            error_from_client=True,
        )

    def internal_failure(self, error: BaseException) -> FunctionResponse:
        message = error.message if isinstance(error, VaultBridgeError) else str(error)
        return self._response(stringify(message), status_code=500)
