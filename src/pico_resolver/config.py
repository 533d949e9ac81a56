import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class CapabilityClass(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class ResolutionMode(str, Enum):
    LISTING = "listing"
    PROBE = "probe"


def as_capability(value: Union[CapabilityClass, str]) -> CapabilityClass:
    if isinstance(value, CapabilityClass):
        return value
    return CapabilityClass(str(value).lower())


ENV_PREFIX = "PICO_RESOLVER_"

DEFAULT_REGION = "us-central1"
DEFAULT_CACHE_TTL_SECONDS = 3600.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_MIN_SPACING_SECONDS = 30.0

DEFAULT_FALLBACKS: Dict[CapabilityClass, str] = {
    CapabilityClass.TEXT: "gemini-2.0-flash-001",
    CapabilityClass.IMAGE: "imagen-3.0-generate-001",
}

DEFAULT_MODES: Dict[CapabilityClass, ResolutionMode] = {
    CapabilityClass.TEXT: ResolutionMode.LISTING,
    CapabilityClass.IMAGE: ResolutionMode.PROBE,
}

# Most preferred first.
DEFAULT_PROBE_CANDIDATES: Dict[CapabilityClass, Tuple[str, ...]] = {
    CapabilityClass.TEXT: (
        "gemini-3.0-pro",
        "gemini-2.0-pro",
        "gemini-2.0-flash-001",
    ),
    CapabilityClass.IMAGE: (
        "imagen-4.0-generate-001",
        "imagen-4-generate-001",
        "imagen-4.0-preview-001",
        "imagen-4-preview-001",
        "imagen-4",
    ),
}


def _env(name: str) -> Optional[str]:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_seconds(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _env_list(name: str) -> Optional[Tuple[str, ...]]:
    raw = _env(name)
    if raw is None:
        return None
    items = tuple(part.strip() for part in raw.split(",") if part.strip())
    return items or None


def _env_mode(name: str, default: ResolutionMode) -> ResolutionMode:
    raw = _env(name)
    if raw is None:
        return default
    try:
        return ResolutionMode(raw.lower())
    except ValueError:
        return default


@dataclass
class ResolverSettings:
    """Runtime configuration for model resolution and inference.

    Attributes:
        project_id: Cloud project that owns the inference quota.
        region: Cloud region hosting the endpoints.
        service_account_key: Service-account JSON document (as text). When
            ``None``, application default credentials are used.
        google_api_key: API key for the Generative Language API used by the
            LangChain text models.
        cache_ttl_seconds: How long a resolved identifier is reused before
            the next ``resolve`` call re-probes.
        request_timeout_seconds: Timeout applied to every listing, probe and
            inference HTTP request.
        min_spacing_seconds: Minimum spacing between two generation requests
            from the same session.
        fallbacks: Static known-good identifier per capability.
        modes: Whether a capability is resolved by catalog listing or by
            active probing.
        probe_candidates: Ordered candidates (most preferred first) for
            active probing.
    """

    project_id: Optional[str] = None
    region: str = DEFAULT_REGION
    service_account_key: Optional[str] = None
    google_api_key: Optional[str] = None
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    min_spacing_seconds: float = DEFAULT_MIN_SPACING_SECONDS
    fallbacks: Dict[CapabilityClass, str] = field(default_factory=lambda: dict(DEFAULT_FALLBACKS))
    modes: Dict[CapabilityClass, ResolutionMode] = field(default_factory=lambda: dict(DEFAULT_MODES))
    probe_candidates: Dict[CapabilityClass, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_PROBE_CANDIDATES)
    )

    @classmethod
    def from_env(cls) -> "ResolverSettings":
        """Build settings from the process environment.

        Unparseable numbers and unknown modes silently keep their defaults.
        """
        fallbacks = dict(DEFAULT_FALLBACKS)
        modes = dict(DEFAULT_MODES)
        candidates = dict(DEFAULT_PROBE_CANDIDATES)

        for capability in CapabilityClass:
            key = capability.name
            fallback = _env(f"{key}_FALLBACK")
            if fallback:
                fallbacks[capability] = fallback
            modes[capability] = _env_mode(f"{key}_MODE", modes[capability])
            override = _env_list(f"{key}_CANDIDATES")
            if override:
                candidates[capability] = override

        return cls(
            project_id=os.getenv("GOOGLE_CLOUD_PROJECT_ID") or None,
            region=os.getenv("GOOGLE_CLOUD_REGION") or DEFAULT_REGION,
            service_account_key=os.getenv("GOOGLE_SERVICE_ACCOUNT_KEY") or None,
            google_api_key=os.getenv("GOOGLE_GENERATIVE_AI_API_KEY") or None,
            cache_ttl_seconds=_env_seconds("CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS),
            request_timeout_seconds=_env_seconds("PROBE_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS),
            min_spacing_seconds=_env_seconds("MIN_SPACING_SECONDS", DEFAULT_MIN_SPACING_SECONDS),
            fallbacks=fallbacks,
            modes=modes,
            probe_candidates=candidates,
        )

    def fallback_for(self, capability: CapabilityClass) -> str:
        return self.fallbacks.get(capability) or DEFAULT_FALLBACKS[capability]

    def mode_for(self, capability: CapabilityClass) -> ResolutionMode:
        return self.modes.get(capability, DEFAULT_MODES[capability])

    def candidates_for(self, capability: CapabilityClass) -> List[str]:
        return list(self.probe_candidates.get(capability, ()))

    def service_account_info(self) -> Optional[dict]:
        """Parse ``service_account_key`` into a dict.

        Raises:
            ValueError: If the key is set but is not a JSON object.
        """
        if not self.service_account_key:
            return None
        try:
            info = json.loads(self.service_account_key)
        except json.JSONDecodeError as exc:
            raise ValueError("GOOGLE_SERVICE_ACCOUNT_KEY is not valid JSON") from exc
        if not isinstance(info, dict):
            raise ValueError("GOOGLE_SERVICE_ACCOUNT_KEY must be a JSON object")
        return info


@dataclass
class LLMConfig:
    api_keys: Dict[str, str] = field(default_factory=dict)
    base_urls: Dict[str, str] = field(default_factory=dict)
