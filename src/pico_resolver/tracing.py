"""In-memory diagnostics for resolutions and inference invocations.

``TraceService`` keeps one ``TraceRun`` per resolution refresh and per
inference attempt, so operators can see which model was picked, where it came
from (listing, probe, fallback) and how each invocation failed.  Nesting is
tracked through the ``current_run`` ``ContextVar``: a resolution started while
a generation run is active becomes its child.
"""

import time
import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from pico_ioc import cleanup, component

from .logging import get_logger

logger = get_logger(__name__)

current_run: ContextVar[Optional[str]] = ContextVar("pico_resolver_current_run", default=None)

MAX_TRACES = 1000


@dataclass
class TraceRun:
    """One recorded resolution or invocation.

    Attributes:
        id: Unique run identifier (UUID).
        name: What ran, e.g. ``"resolve:image"`` or ``"invoke:headline"``.
        run_type: ``"resolve"``, ``"invoke"`` or ``"generation"``.
        inputs: Arguments worth keeping for diagnosis.
        parent_id: Enclosing run, if any.
        start_time: Unix timestamp when the run started.
        end_time: Unix timestamp when the run ended.
        outputs: Result summary.
        error: ``str()`` of the raised exception, if any.
        extra: Additional tags, e.g. ``{"category": "rate_limited"}``.
    """

    id: str
    name: str
    run_type: str
    inputs: Dict[str, Any]
    parent_id: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    outputs: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time


@component(scope="singleton")
class TraceService:
    def __init__(self):
        self.traces: List[TraceRun] = []

    def start_run(self, name: str, run_type: str, inputs: Optional[Dict[str, Any]] = None) -> str:
        run_id = str(uuid.uuid4())
        run = TraceRun(id=run_id, name=name, run_type=run_type, inputs=inputs or {}, parent_id=current_run.get())
        self.traces.append(run)
        if len(self.traces) > MAX_TRACES:
            del self.traces[: len(self.traces) - MAX_TRACES]
        current_run.set(run_id)
        return run_id

    def end_run(self, run_id: str, outputs: Any = None, error: Optional[BaseException] = None, **extra: Any) -> None:
        """Close *run_id* and restore its parent as the current run.

        Args:
            run_id: The ID returned by ``start_run()``.
            outputs: Scalars are wrapped as ``{"output": value}``, dicts are
                kept, anything else is stored as its ``str()``.
            error: The exception that ended the run, if any.
            **extra: Tags merged into ``TraceRun.extra``.
        """
        for run in reversed(self.traces):
            if run.id != run_id:
                continue
            run.end_time = time.time()
            run.extra.update(extra)
            if error is not None:
                run.error = str(error)
            elif outputs is not None:
                if isinstance(outputs, dict):
                    run.outputs = outputs
                elif isinstance(outputs, (str, int, float, bool)):
                    run.outputs = {"output": outputs}
                else:
                    run.outputs = {"output": str(outputs)}
            current_run.set(run.parent_id)
            return

    def get_traces(self, run_type: Optional[str] = None) -> List[Dict[str, Any]]:
        runs = self.traces if run_type is None else [t for t in self.traces if t.run_type == run_type]
        return [asdict(t) for t in runs]

    @cleanup
    def _on_shutdown(self):
        logger.debug("TraceService: dropping %d traces", len(self.traces))
        self.traces.clear()
