from .config import CapabilityClass, ResolutionMode, ResolverSettings, LLMConfig
from .models import ModelInfo, ProbeOutcome, ProbeResult, ProbeSweep, ResolvedSelection, SelectionSource, describe_model
from .priority import PriorityTable, PriorityTables, rank_candidates, TEXT_PRIORITY, IMAGE_PRIORITY
from .interfaces import AccessTokenProvider, Clock, LLM, LLMFactory, ModelCatalog, ModelProber
from .clock import ManualClock, SystemClock
from .catalog import VertexModelCatalog
from .probe import VertexModelProber
from .resolver import CapabilityResolver
from .invoker import ErrorCategory, SingleAttemptInvoker, classify_error, remediation_message
from .gate import RequestSpacingGate
from .tracing import TraceService, TraceRun
from .generation import CreativeBrief, CreativeDirector, HeadlineService, ImageGenerationService
from .prompts import STYLE_CHIPS, StyleChip, TemplateType, build_imagen_prompt, style_chip
from .factory import ResolverInfrastructureFactory, GenerationServicesFactory
from .exceptions import (
    CatalogUnavailableError,
    GenerationThrottledError,
    InferenceError,
    ResolverConfigurationError,
    ResolverError,
)

__all__ = [
    "CapabilityClass",
    "ResolutionMode",
    "ResolverSettings",
    "LLMConfig",
    "ModelInfo",
    "ProbeOutcome",
    "ProbeResult",
    "ProbeSweep",
    "ResolvedSelection",
    "SelectionSource",
    "describe_model",
    "PriorityTable",
    "PriorityTables",
    "rank_candidates",
    "TEXT_PRIORITY",
    "IMAGE_PRIORITY",
    "AccessTokenProvider",
    "Clock",
    "LLM",
    "LLMFactory",
    "ModelCatalog",
    "ModelProber",
    "ManualClock",
    "SystemClock",
    "VertexModelCatalog",
    "VertexModelProber",
    "CapabilityResolver",
    "ErrorCategory",
    "SingleAttemptInvoker",
    "classify_error",
    "remediation_message",
    "RequestSpacingGate",
    "TraceService",
    "TraceRun",
    "CreativeBrief",
    "CreativeDirector",
    "HeadlineService",
    "ImageGenerationService",
    "STYLE_CHIPS",
    "StyleChip",
    "TemplateType",
    "build_imagen_prompt",
    "style_chip",
    "ResolverInfrastructureFactory",
    "GenerationServicesFactory",
    "CatalogUnavailableError",
    "GenerationThrottledError",
    "InferenceError",
    "ResolverConfigurationError",
    "ResolverError",
]
