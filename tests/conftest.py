import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from pico_resolver.clock import ManualClock
from pico_resolver.config import CapabilityClass, ResolutionMode, ResolverSettings
from pico_resolver.interfaces import AccessTokenProvider, ModelCatalog, ModelProber
from pico_resolver.models import ProbeSweep
from pico_resolver.priority import PriorityTable, PriorityTables
from pico_resolver.resolver import CapabilityResolver
from pico_resolver.tracing import TraceService


@pytest.fixture
def settings():
    """Settings with a project configured and a 10 minute cache."""
    return ResolverSettings(
        project_id="test-project",
        region="us-central1",
        cache_ttl_seconds=600,
        min_spacing_seconds=30,
        fallbacks={
            CapabilityClass.TEXT: "text-fallback",
            CapabilityClass.IMAGE: "image-fallback",
        },
        modes={
            CapabilityClass.TEXT: ResolutionMode.LISTING,
            CapabilityClass.IMAGE: ResolutionMode.LISTING,
        },
        probe_candidates={
            CapabilityClass.TEXT: ("text-a", "text-b"),
            CapabilityClass.IMAGE: ("v4-a", "v4-b", "v4-c"),
        },
    )


@pytest.fixture
def clock():
    return ManualClock(start=1_000.0)


@pytest.fixture
def tracer():
    return TraceService()


@pytest.fixture
def tables():
    """Image table from the end-to-end scenario: fast < v3 < v4."""
    return PriorityTables(
        PriorityTable.of(CapabilityClass.TEXT, [r"gemini-1\.5", r"gemini-2\.0", r"gemini-3\.0"]),
        PriorityTable.of(CapabilityClass.IMAGE, [r"fast", r"v3", r"v4"]),
    )


@pytest.fixture
def mock_catalog():
    catalog = MagicMock(spec=ModelCatalog)
    catalog.list_identifiers = AsyncMock(return_value=["v3", "fast", "gemini-2.0-flash-001"])
    return catalog


@pytest.fixture
def mock_prober():
    prober = MagicMock(spec=ModelProber)
    prober.find_available = AsyncMock(
        side_effect=lambda capability, candidates: ProbeSweep(capability=capability)
    )
    return prober


@pytest.fixture
def mock_token_provider():
    provider = MagicMock(spec=AccessTokenProvider)
    provider.get_token = AsyncMock(return_value="test-token")
    return provider


@pytest.fixture
def make_resolver(settings, tables, mock_catalog, mock_prober, clock, tracer):
    """Build a resolver; keyword arguments replace individual collaborators."""

    def _make(**overrides):
        parts = dict(
            settings=settings,
            tables=tables,
            catalog=mock_catalog,
            prober=mock_prober,
            clock=clock,
            tracer=tracer,
        )
        parts.update(overrides)
        return CapabilityResolver(**parts)

    return _make


class RecordingHandler:
    """``httpx.MockTransport`` handler that answers per model id and records calls."""

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default or (404, {"error": {"message": "Publisher model not found"}})
        self.requests = []

    def model_of(self, request: httpx.Request) -> str:
        return request.url.path.rsplit("/", 1)[-1].split(":", 1)[0]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.responses.get(self.model_of(request), self.default)
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})

    @property
    def probed(self):
        return [self.model_of(r) for r in self.requests]


@pytest.fixture
def recording_handler():
    return RecordingHandler
