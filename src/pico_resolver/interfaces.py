"""Protocol interfaces for the collaborators of the capability resolver.

All seams are ``typing.Protocol`` classes; any conforming object works.
"""

from typing import Dict, List, Optional, Protocol, Sequence, Type, TypeVar

from .config import CapabilityClass
from .models import ProbeResult, ProbeSweep

T = TypeVar("T")


class Clock(Protocol):
    """Source of the current time, in seconds since the epoch."""

    def now(self) -> float:
        ...


class AccessTokenProvider(Protocol):
    """Produces OAuth bearer tokens for the cloud ML platform."""

    async def get_token(self) -> str:
        """Return a currently valid access token.

        Raises:
            ResolverConfigurationError: If no usable credentials exist.
        """
        ...


class ModelCatalog(Protocol):
    """Listing-mode prober: the roster of deployed model identifiers."""

    async def list_identifiers(self) -> List[str]:
        """Return available identifiers, or ``[]`` if the catalog failed.

        Implementations must not raise for transport or authorization
        failures.
        """
        ...


class ModelProber(Protocol):
    """Active-probe prober: confirms candidates are actually callable."""

    async def probe(self, capability: CapabilityClass, identifier: str) -> ProbeResult:
        """Issue one minimal real request against *identifier*."""
        ...

    async def find_available(self, capability: CapabilityClass, candidates: Sequence[str]) -> ProbeSweep:
        """Probe *candidates* in order and stop at the first available one."""
        ...


class LLM(Protocol):
    """Async chat-model adapter used by the text generation services."""

    async def ainvoke(self, messages: List[Dict[str, str]]) -> str:
        """Send role/content messages and return the text response."""
        ...

    async def ainvoke_structured(self, messages: List[Dict[str, str]], output_schema: Type[T]) -> T:
        """Send messages and parse the response into *output_schema*."""
        ...


class LLMFactory(Protocol):
    def create(self, model_name: str, temperature: float, max_tokens: Optional[int] = None) -> LLM:
        """Create an ``LLM`` for *model_name*.

        Args:
            model_name: Model identifier, optionally provider-prefixed
                (``"google:gemini-2.0-flash-001"``).
            temperature: Sampling temperature.
            max_tokens: Response token cap, or ``None`` for the default.
        """
        ...
