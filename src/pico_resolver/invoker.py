"""Single-attempt invocation of inference calls.

``SingleAttemptInvoker.invoke`` runs a remote inference call exactly once.
It never retries, including after a resource-exhaustion error.  Failures
are classified so callers can pick a remediation message and are then
re-raised as the very same exception object.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pico_ioc import component

from .logging import get_logger
from .tracing import TraceService

logger = get_logger(__name__)

R = TypeVar("R")

RATE_LIMIT_MARKERS = ("resource_exhausted", "too many requests", "quota exceeded", "rate limit")
AUTH_MARKERS = ("unauthenticated", "permission_denied", "unable to generate an access token")


class ErrorCategory(str, Enum):
    RATE_LIMITED = "rate_limited"
    AUTHENTICATION = "authentication"
    UNKNOWN = "unknown"


REMEDIATION_MESSAGES = {
    ErrorCategory.RATE_LIMITED: (
        "Quota exceeded: too many generation requests. Please wait a moment and try again. "
        "If this persists, request a quota increase for the project."
    ),
    ErrorCategory.AUTHENTICATION: (
        "Google Cloud authentication failed. Check the service account key and that the "
        "required APIs are enabled for the project."
    ),
    ErrorCategory.UNKNOWN: "Generation failed. Please try again later.",
}


def _as_status(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def error_status(error: BaseException) -> Optional[int]:
    """Best-effort HTTP-like status carried by *error*."""
    for attr in ("status", "status_code", "code"):
        status = _as_status(getattr(error, attr, None))
        if status is not None:
            return status
    response = getattr(error, "response", None)
    if response is not None:
        return _as_status(getattr(response, "status_code", None))
    return None


def classify_error(error: BaseException) -> ErrorCategory:
    """Map *error* onto a remediation category.

    An HTTP-like status decides on its own; message markers are only
    consulted for errors that carry no status.
    """
    status = error_status(error)
    if status == 429:
        return ErrorCategory.RATE_LIMITED
    if status in (401, 403):
        return ErrorCategory.AUTHENTICATION
    if status is not None:
        return ErrorCategory.UNKNOWN

    code = str(getattr(error, "code", "") or "").lower()
    text = f"{code} {error}".lower()
    if any(marker in text for marker in RATE_LIMIT_MARKERS):
        return ErrorCategory.RATE_LIMITED
    if any(marker in text for marker in AUTH_MARKERS):
        return ErrorCategory.AUTHENTICATION
    return ErrorCategory.UNKNOWN


def remediation_message(category: ErrorCategory) -> str:
    return REMEDIATION_MESSAGES[category]


@component(scope="singleton")
class SingleAttemptInvoker:
    """Runs one inference call with no retry, classifying any failure."""

    def __init__(self, tracer: TraceService):
        self.tracer = tracer

    async def invoke(self, call: Callable[[], Awaitable[R]], name: str = "inference") -> R:
        """Await ``call()`` once and return its result.

        Args:
            call: Zero-argument callable returning an awaitable that performs
                one remote inference request.
            name: Label used in logs and traces.

        Returns:
            Whatever the call returned.

        Raises:
            Exception: Exactly the exception raised by *call*, after a single
                attempt, whatever its category.
        """
        run_id = self.tracer.start_run(f"invoke:{name}", "invoke", {})
        logger.debug("Calling %s (single attempt, no retries)", name)
        try:
            result = await call()
        except Exception as exc:
            category = classify_error(exc)
            if category == ErrorCategory.RATE_LIMITED:
                logger.warning("%s hit a rate limit; not retrying: %s", name, exc)
            elif category == ErrorCategory.AUTHENTICATION:
                logger.error("%s was rejected for credentials or permissions: %s", name, exc)
            else:
                logger.error("%s failed: %s", name, exc)
            self.tracer.end_run(run_id, error=exc, category=category.value, status=error_status(exc))
            raise

        self.tracer.end_run(run_id, outputs="ok")
        return result
