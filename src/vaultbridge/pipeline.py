"""
Pipeline - sequences one invocation through an adapter.

decode body -> auth preflight -> decode payload -> detokenize -> splice ->
encode -> authenticate -> forward -> classify

``run()`` returns exactly one FunctionResponse for every invocation and
never raises.
"""

from __future__ import annotations

from vaultbridge.adapters.base import PspAdapter
from vaultbridge.core.exceptions import BadRequestError, UpstreamUnavailableError
from vaultbridge.core.logging import get_logger
from vaultbridge.core.types import FunctionResponse, Invocation
from vaultbridge.forwarder import Forwarder
from vaultbridge.vault.client import DetokenizationClient


class Pipeline:
    """
    Runs the detokenize-transform-forward flow for one adapter.

    Example:
        >>> pipeline = Pipeline(adapter, DetokenizationClient(vault, creds), Forwarder())
        >>> response = await pipeline.run(Invocation.from_event(event))
        >>> response.to_dict()
        {'bodyBytes': '...', 'headers': {...}, 'statusCode': 200}
    """

    def __init__(
        self,
        adapter: PspAdapter,
        vault: DetokenizationClient,
        forwarder: Forwarder | None = None,
    ) -> None:
        self.adapter = adapter
        self.vault = vault
        self.forwarder = forwarder or Forwarder()
        self._logger = get_logger("pipeline")

    async def run(self, invocation: Invocation) -> FunctionResponse:
        classifier = self.adapter.classifier
        try:
            return await self._run(invocation)
        except BadRequestError as e:
            self._logger.warning(f"[{self.adapter.name}] bad request: {e.message}")
            return classifier.bad_request(e.message)
        except UpstreamUnavailableError as e:
            return classifier.upstream_unavailable(e)
        except Exception as e:
            self._logger.exception(f"[{self.adapter.name}] internal failure: {type(e).__name__}")
            return classifier.internal_failure(e)

    async def _run(self, invocation: Invocation) -> FunctionResponse:
        adapter = self.adapter
        body = invocation.decode_body()
        if not body.strip():
            return adapter.classifier.bad_request()

        adapter.auth.preflight(invocation.headers)

        codec = adapter.codec
        document = codec.decode(body)
        tokens = codec.tokens(document)

        result = await self.vault.detokenize(tokens, request_id=invocation.request_id)
        if not result.success:
            self._logger.warning(
                f"[{adapter.name}] detokenization failed (http_code={result.http_code})"
            )
            return adapter.classifier.detokenization_failure(
                result,
                default_status=adapter.detokenize_failure_status,
                use_http_code=adapter.uses_vault_http_code,
            )

        codec.splice(document, result.aligned(len(tokens)))
        request = adapter.build_request(codec.encode(document))
        auth = adapter.auth.authenticate(invocation.headers, request)

        response = await self.forwarder.send(request, auth)
        if not response.ok:
            self._logger.warning(f"[{adapter.name}] PSP returned {response.status_code}")
        return adapter.classifier.upstream(response)
