"""Value objects shared by the resolver, the probers and the services.

Everything here is immutable: a refresh replaces a ``ResolvedSelection``
wholesale and a probe pass produces a fresh ``ProbeSweep``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .config import CapabilityClass


class SelectionSource(str, Enum):
    """How a ``ResolvedSelection`` was obtained."""

    LISTING = "listing"
    PROBE = "probe"
    FALLBACK = "fallback"


class ProbeOutcome(str, Enum):
    AVAILABLE = "available"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class ResolvedSelection:
    """The identifier currently chosen for one capability class.

    Attributes:
        capability: The capability class this selection answers.
        identifier: The concrete model identifier to call.
        resolved_at: Unix timestamp of the refresh that produced it.
        source: Whether it came from listing, probing or the static fallback.
    """

    capability: CapabilityClass
    identifier: str
    resolved_at: float
    source: SelectionSource = SelectionSource.FALLBACK

    def age(self, now: float) -> float:
        return max(0.0, now - self.resolved_at)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one minimal invocation against one candidate."""

    identifier: str
    available: bool
    permission_denied: bool = False
    http_status: Optional[int] = None
    outcome: ProbeOutcome = ProbeOutcome.UNAVAILABLE


@dataclass(frozen=True)
class ProbeSweep:
    """All probes issued by one active-probe pass, in the order issued."""

    capability: CapabilityClass
    selected: Optional[str] = None
    results: Tuple[ProbeResult, ...] = field(default_factory=tuple)

    @property
    def permission_denied(self) -> List[str]:
        return [r.identifier for r in self.results if r.permission_denied]

    @property
    def probed(self) -> List[str]:
        return [r.identifier for r in self.results]


@dataclass(frozen=True)
class ModelInfo:
    name: str
    generation: str
    kind: str


def describe_model(name: str) -> ModelInfo:
    """Summarise a model identifier for display.

    Args:
        name: A model identifier such as ``"gemini-2.0-flash-001"``.

    Returns:
        A ``ModelInfo`` with a coarse generation label (``"3.0"``,
        ``"2.0"`` or ``"1.5"``) and ``"Image"`` or ``"Text"``.
    """
    if "3.0" in name:
        generation = "3.0"
    elif "2.0" in name:
        generation = "2.0"
    else:
        generation = "1.5"
    kind = "Image" if "imagen" in name or "-image" in name else "Text"
    return ModelInfo(name=name, generation=generation, kind=kind)
