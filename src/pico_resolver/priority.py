"""Priority tables and ranking of candidate model identifiers.

A ``PriorityTable`` is an ordered list of predicates; a higher index means a
more preferred model.  ``rank_candidates`` picks the candidate matching the
highest-ranked predicate, breaking ties by input order.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Pattern, Sequence, Tuple, Union

from .config import CapabilityClass

Matcher = Callable[[str], bool]
MatcherSpec = Union[str, Pattern, Matcher]


def _to_matcher(spec: MatcherSpec) -> Matcher:
    if isinstance(spec, str):
        spec = re.compile(spec, re.IGNORECASE)
    if isinstance(spec, re.Pattern):
        pattern = spec
        return lambda candidate: pattern.search(candidate) is not None
    if callable(spec):
        return spec
    raise TypeError(f"Unsupported priority matcher: {spec!r}")


@dataclass(frozen=True)
class PriorityTable:
    """Ordered preference list for one capability class.

    Index 0 is the least preferred pattern.  Build tables with
    ``PriorityTable.of()`` so that strings are compiled as case-insensitive
    regular expressions.
    """

    capability: CapabilityClass
    matchers: Tuple[Matcher, ...]

    @classmethod
    def of(cls, capability: CapabilityClass, specs: Iterable[MatcherSpec]) -> "PriorityTable":
        return cls(capability=capability, matchers=tuple(_to_matcher(s) for s in specs))

    def __len__(self) -> int:
        return len(self.matchers)

    def rank_of(self, candidate: str) -> int:
        """Highest rank matched by *candidate*, or ``-1`` if none."""
        best = -1
        for rank, matches in enumerate(self.matchers):
            if matches(candidate):
                best = rank
        return best


def rank_candidates(candidates: Sequence[str], table: PriorityTable) -> Optional[str]:
    best_candidate: Optional[str] = None
    best_rank = -1

    for candidate in candidates:
        for rank, matches in enumerate(table.matchers):
            # Strictly greater: an earlier candidate keeps a tied rank.
            if rank > best_rank and matches(candidate):
                best_rank = rank
                best_candidate = candidate

    return best_candidate


TEXT_PRIORITY = PriorityTable.of(
    CapabilityClass.TEXT,
    [
        r"gemini-1\.5-flash",
        r"gemini-1\.5-pro",
        r"gemini-2\.0-flash",
        r"gemini-2\.0-pro",
        r"gemini-3\.0-flash",
        r"gemini-3\.0-pro",
    ],
)

IMAGE_PRIORITY = PriorityTable.of(
    CapabilityClass.IMAGE,
    [
        r"imagen-3\.0-fast",
        r"imagen-3\.0-generate-001",
        r"gemini-3-pro-image",
        r"imagen-4\.0-generate-001",
        r"imagen-4",
    ],
)


class PriorityTables:
    """The set of priority tables, one per capability class."""

    def __init__(self, *tables: PriorityTable):
        self._tables = {t.capability: t for t in tables}

    @classmethod
    def defaults(cls) -> "PriorityTables":
        return cls(TEXT_PRIORITY, IMAGE_PRIORITY)

    def for_capability(self, capability: CapabilityClass) -> PriorityTable:
        table = self._tables.get(capability)
        if table is None:
            return PriorityTable(capability=capability, matchers=())
        return table
