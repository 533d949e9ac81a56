from typing import Optional


class ResolverError(Exception):
    pass


class ResolverConfigurationError(ResolverError):
    pass


class CatalogUnavailableError(ResolverError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class InferenceError(ResolverError):
    def __init__(self, status: int, message: str, model: Optional[str] = None):
        super().__init__(f"Inference call failed ({status}): {message}")
        self.status = status
        self.message = message
        self.model = model


class GenerationThrottledError(ResolverError):
    def __init__(self, session_id: str, retry_after: float):
        super().__init__(
            f"Session '{session_id}' must wait {retry_after:.0f}s before the next generation request."
        )
        self.session_id = session_id
        self.retry_after = retry_after
