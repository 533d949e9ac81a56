"""Capability resolution with caching and graceful fallback.

``CapabilityResolver`` answers "which concrete model should I call for
capability X right now?".  Answers are cached per capability for
``ResolverSettings.cache_ttl_seconds``; a stale or forced lookup re-runs the
capability's prober (catalog listing + priority ranking, or an active probe
sweep) and, whatever happens, ends with *some* identifier: the static
fallback is substituted on an empty catalog, no match, or any failure.

Concurrent callers that miss the cache at the same time share one refresh
(single-flight per capability), so a burst of requests after expiry issues a
single listing or probe sweep.
"""

import asyncio
from typing import Dict, Optional, Tuple, Union

from pico_ioc import component

from .config import CapabilityClass, ResolutionMode, ResolverSettings, as_capability
from .interfaces import Clock, ModelCatalog, ModelProber
from .logging import get_logger
from .models import ProbeSweep, ResolvedSelection, SelectionSource
from .priority import PriorityTables, rank_candidates
from .tracing import TraceService

logger = get_logger(__name__)

CapabilityLike = Union[CapabilityClass, str]


@component(scope="singleton")
class CapabilityResolver:
    """Process-wide cache of the best available model per capability class.

    Construct it once at startup (the container does this) and share the
    instance; ``invalidate()`` resets it, for instance between tests.

    Example:
        >>> model = await resolver.resolve(CapabilityClass.IMAGE)
        >>> model
        'imagen-4.0-generate-001'
    """

    def __init__(
        self,
        settings: ResolverSettings,
        tables: PriorityTables,
        catalog: ModelCatalog,
        prober: ModelProber,
        clock: Clock,
        tracer: TraceService,
    ):
        self.settings = settings
        self.tables = tables
        self.catalog = catalog
        self.prober = prober
        self.clock = clock
        self.tracer = tracer
        self._cache: Dict[CapabilityClass, ResolvedSelection] = {}
        self._last_resolved_at: Dict[CapabilityClass, float] = {}
        self._sweeps: Dict[CapabilityClass, ProbeSweep] = {}
        self._locks: Dict[CapabilityClass, asyncio.Lock] = {}
        self._locks_loop: Optional[asyncio.AbstractEventLoop] = None

    def _lock_for(self, capability: CapabilityClass) -> asyncio.Lock:
        # asyncio locks belong to one event loop; start over when it changes.
        loop = asyncio.get_running_loop()
        if self._locks_loop is not loop:
            self._locks = {c: asyncio.Lock() for c in CapabilityClass}
            self._locks_loop = loop
        return self._locks[capability]

    def _is_fresh(self, selection: Optional[ResolvedSelection]) -> bool:
        if selection is None:
            return False
        return self.clock.now() - selection.resolved_at < self.settings.cache_ttl_seconds

    async def resolve(self, capability: CapabilityLike, force_refresh: bool = False) -> str:
        """Return the identifier to use for *capability*.

        Never raises for catalog, probe or credential problems; the static
        fallback identifier is returned instead.

        Args:
            capability: A ``CapabilityClass`` or its value (``"text"``,
                ``"image"``).
            force_refresh: Ignore a fresh cache entry and re-probe.  A forced
                call that waits behind a refresh completing meanwhile shares
                that refresh instead of starting another.

        Returns:
            The selected model identifier.

        Raises:
            ValueError: If *capability* names no known capability class.
        """
        capability = as_capability(capability)
        seen = self._cache.get(capability)

        if not force_refresh and self._is_fresh(seen):
            logger.debug("Using cached %s model: %s", capability.value, seen.identifier)
            return seen.identifier

        async with self._lock_for(capability):
            current = self._cache.get(capability)
            # Another caller refreshed while we waited: share its answer.
            if current is not seen and self._is_fresh(current):
                return current.identifier
            selection = await self._refresh(capability, force_refresh)
            return selection.identifier

    async def _refresh(self, capability: CapabilityClass, forced: bool) -> ResolvedSelection:
        run_id = self.tracer.start_run(
            f"resolve:{capability.value}", "resolve", {"force_refresh": forced}
        )
        try:
            identifier, source = await self._select(capability)
        except Exception as exc:
            logger.error("Resolving %s model failed, using fallback: %s", capability.value, exc)
            identifier, source = None, SelectionSource.FALLBACK

        if identifier is None:
            identifier = self.settings.fallback_for(capability)
            source = SelectionSource.FALLBACK
            logger.warning("Falling back to %s model %s", capability.value, identifier)
        else:
            logger.info("Selected %s model %s (%s)", capability.value, identifier, source.value)

        resolved_at = max(self.clock.now(), self._last_resolved_at.get(capability, 0.0))
        selection = ResolvedSelection(
            capability=capability, identifier=identifier, resolved_at=resolved_at, source=source
        )
        self._cache[capability] = selection
        self._last_resolved_at[capability] = resolved_at
        self.tracer.end_run(run_id, outputs={"identifier": identifier, "source": source.value})
        return selection

    async def _select(self, capability: CapabilityClass) -> Tuple[Optional[str], SelectionSource]:
        if self.settings.mode_for(capability) == ResolutionMode.PROBE:
            return await self._select_by_probe(capability), SelectionSource.PROBE
        return await self._select_by_listing(capability), SelectionSource.LISTING

    async def _select_by_listing(self, capability: CapabilityClass) -> Optional[str]:
        candidates = await self.catalog.list_identifiers()
        if not candidates:
            logger.warning("No models listed for %s", capability.value)
            return None

        winner = rank_candidates(candidates, self.tables.for_capability(capability))
        if winner is None:
            logger.warning(
                "None of %d listed models matches the %s priority table", len(candidates), capability.value
            )
        return winner

    async def _select_by_probe(self, capability: CapabilityClass) -> Optional[str]:
        candidates = self.settings.candidates_for(capability)
        logger.info("Probing %d %s candidates in %s", len(candidates), capability.value, self.settings.region)

        sweep = await self.prober.find_available(capability, candidates)
        self._sweeps[capability] = sweep
        if sweep.permission_denied:
            logger.warning(
                "Permission denied for %s; an operator must enable access for these models",
                ", ".join(sweep.permission_denied),
            )
        return sweep.selected

    def invalidate(self, capability: Optional[CapabilityLike] = None) -> None:
        """Drop cached selections so the next ``resolve`` re-probes.

        Args:
            capability: The capability to clear, or ``None`` for all.
        """
        if capability is None:
            self._cache.clear()
            self._sweeps.clear()
            logger.info("Model cache cleared")
            return
        capability = as_capability(capability)
        self._cache.pop(capability, None)
        self._sweeps.pop(capability, None)
        logger.info("Model cache cleared for %s", capability.value)

    def selection(self, capability: CapabilityLike) -> Optional[ResolvedSelection]:
        return self._cache.get(as_capability(capability))

    def last_sweep(self, capability: CapabilityLike) -> Optional[ProbeSweep]:
        return self._sweeps.get(as_capability(capability))

    async def resolve_all(self, force_refresh: bool = False) -> Dict[CapabilityClass, str]:
        return {c: await self.resolve(c, force_refresh=force_refresh) for c in CapabilityClass}

    async def is_model_available(self, model_name: str) -> bool:
        """Whether *model_name* is the current pick for any capability."""
        selected = await self.resolve_all()
        return model_name in selected.values()
