"""Caller-side spacing between generation requests.

``RequestSpacingGate`` enforces a minimum interval between two inference
requests from the same client session and reports the remaining wait so a UI
can show a countdown.  It complements ``SingleAttemptInvoker``: both protect
the same finite quota, one before the call and one after a failure.

Only sessions still inside their spacing window are remembered.
"""

from typing import Dict, Optional

from pico_ioc import component

from .config import ResolverSettings
from .exceptions import GenerationThrottledError
from .interfaces import Clock
from .logging import get_logger

logger = get_logger(__name__)


@component(scope="singleton")
class RequestSpacingGate:
    def __init__(self, settings: ResolverSettings, clock: Clock):
        self.min_spacing = settings.min_spacing_seconds
        self.clock = clock
        self._last_call: Dict[str, float] = {}

    @property
    def tracked_sessions(self) -> int:
        return len(self._last_call)

    def remaining(self, session_id: str) -> float:
        """Seconds until *session_id* may submit again (0 when open)."""
        last = self._last_call.get(session_id)
        if last is None:
            return 0.0
        wait = self.min_spacing - (self.clock.now() - last)
        if wait <= 0:
            del self._last_call[session_id]
            return 0.0
        return wait

    def _prune(self, now: float) -> None:
        expired = [sid for sid, last in self._last_call.items() if now - last >= self.min_spacing]
        for sid in expired:
            del self._last_call[sid]

    def acquire(self, session_id: str) -> None:
        """Record a request for *session_id*.

        Raises:
            GenerationThrottledError: If the previous request was less than
                ``min_spacing`` seconds ago.  Nothing is recorded then.
        """
        wait = self.remaining(session_id)
        if wait > 0:
            logger.info("Session %s throttled for another %.1fs", session_id, wait)
            raise GenerationThrottledError(session_id, wait)
        now = self.clock.now()
        self._prune(now)
        if self.min_spacing > 0:
            self._last_call[session_id] = now

    def reset(self, session_id: Optional[str] = None) -> None:
        if session_id is None:
            self._last_call.clear()
        else:
            self._last_call.pop(session_id, None)
