"""Active-probe prober.

Listing a catalog only says a model exists; it does not say this project may
call it.  ``VertexModelProber`` confirms callability by issuing a minimal
real request against each candidate, most preferred first, and stops at the
first success so that at most ``len(candidates)`` calls are ever made.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from .config import CapabilityClass, ResolverSettings
from .endpoints import publisher_model_url
from .exceptions import ResolverError
from .interfaces import AccessTokenProvider
from .logging import get_logger
from .models import ProbeOutcome, ProbeResult, ProbeSweep

logger = get_logger(__name__)

NOT_FOUND_MARKERS = ("not found", "does not exist")

PROBE_PROMPT = "test"


def probe_request(capability: CapabilityClass) -> Tuple[str, Dict[str, Any]]:
    """Return ``(method, body)`` of the cheapest call for *capability*."""
    if capability == CapabilityClass.IMAGE:
        return "predict", {
            "instances": [{"prompt": PROBE_PROMPT}],
            "parameters": {"sampleCount": 1, "aspectRatio": "3:4"},
        }
    return "generateContent", {
        "contents": [{"role": "user", "parts": [{"text": PROBE_PROMPT}]}],
        "generationConfig": {"maxOutputTokens": 1},
    }


def classify_probe_response(identifier: str, status: int, body: str) -> ProbeResult:
    """Map an HTTP response from a probe call onto a ``ProbeResult``.

    Args:
        identifier: The probed candidate.
        status: HTTP status code.
        body: Response body text, inspected for not-found markers on 400/404.
    """
    if 200 <= status < 300:
        return ProbeResult(identifier, available=True, http_status=status, outcome=ProbeOutcome.AVAILABLE)

    if status in (400, 404):
        lowered = body.lower()
        if any(marker in lowered for marker in NOT_FOUND_MARKERS):
            return ProbeResult(identifier, available=False, http_status=status, outcome=ProbeOutcome.NOT_FOUND)

    if status == 403:
        return ProbeResult(
            identifier,
            available=False,
            permission_denied=True,
            http_status=status,
            outcome=ProbeOutcome.PERMISSION_DENIED,
        )

    return ProbeResult(identifier, available=False, http_status=status, outcome=ProbeOutcome.UNAVAILABLE)


class VertexModelProber:
    def __init__(
        self,
        settings: ResolverSettings,
        token_provider: AccessTokenProvider,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.token_provider = token_provider
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.request_timeout_seconds, transport=self._transport)

    async def probe(self, capability: CapabilityClass, identifier: str) -> ProbeResult:
        token = await self.token_provider.get_token()
        async with self._client() as client:
            return await self._probe_with(client, token, capability, identifier)

    async def _probe_with(
        self, client: httpx.AsyncClient, token: str, capability: CapabilityClass, identifier: str
    ) -> ProbeResult:
        method, body = probe_request(capability)
        url = publisher_model_url(self.settings, identifier, method)
        headers: Dict[str, Any] = {"Authorization": f"Bearer {token}"}

        logger.debug("Probing %s", identifier)
        try:
            response = await client.post(url, headers=headers, json=body)
        except httpx.HTTPError as exc:
            logger.info("Probe of %s failed with a network error: %s", identifier, exc)
            return ProbeResult(identifier, available=False, outcome=ProbeOutcome.NETWORK_ERROR)

        result = classify_probe_response(identifier, response.status_code, response.text)

        if result.outcome == ProbeOutcome.AVAILABLE:
            logger.info("%s is available", identifier)
        elif result.outcome == ProbeOutcome.PERMISSION_DENIED:
            logger.warning(
                "%s exists but permission was denied; enable the API or grant access for project %s",
                identifier,
                self.settings.project_id,
            )
        elif result.outcome == ProbeOutcome.NOT_FOUND:
            logger.info("%s does not exist in %s", identifier, self.settings.region)
        else:
            logger.info("%s returned status %s", identifier, response.status_code)
        return result

    async def find_available(self, capability: CapabilityClass, candidates: Sequence[str]) -> ProbeSweep:
        capability = CapabilityClass(capability)
        if not candidates:
            return ProbeSweep(capability=capability)

        try:
            token = await self.token_provider.get_token()
        except ResolverError as exc:
            logger.warning("Cannot probe %s models without credentials: %s", capability.value, exc)
            return ProbeSweep(capability=capability)

        results: List[ProbeResult] = []
        async with self._client() as client:
            for candidate in candidates:
                result = await self._probe_with(client, token, capability, candidate)
                results.append(result)
                if result.available:
                    return ProbeSweep(capability=capability, selected=candidate, results=tuple(results))

        logger.warning("No %s candidate out of %d is callable", capability.value, len(results))
        return ProbeSweep(capability=capability, results=tuple(results))
