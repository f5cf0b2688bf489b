"""Domain error taxonomy.

Every error raised across a service boundary derives from VidGenError. The API
layer maps each class to an HTTP status in ``vidgen_engine.api.errors``.
"""

from uuid import UUID

from vidgen_engine.domain.enums import PipelineStage


class VidGenError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthError(VidGenError):
    """Credential rejected.

    Always carries the same message regardless of the underlying cause so
    callers cannot probe which check failed.
    """

    GENERIC_MESSAGE = "Invalid or missing API key"

    def __init__(self) -> None:
        super().__init__(self.GENERIC_MESSAGE)


class ValidationError(VidGenError):
    """Request rejected because of bad input."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(VidGenError):
    """Resource is absent or not owned by the caller."""

    def __init__(self, resource: str, resource_id: UUID | str) -> None:
        super().__init__(f"{resource} not found: {resource_id}")
        self.resource = resource
        self.resource_id = str(resource_id)


class RateLimitExceededError(VidGenError):
    """Per-key request budget for the current window is spent."""

    def __init__(self, limit: int, retry_after_seconds: int) -> None:
        super().__init__(f"Rate limit of {limit} requests per minute exceeded")
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds


class InvalidStateError(VidGenError):
    """Operation not allowed from the entity's current state."""


class ProviderError(VidGenError):
    """An external generation provider failed.

    The stage decides how the failure is handled:

    - narration: terminal, the pipeline has no timing reference without it
    - scene_clip: retried only on explicit demand
    - content_analysis, composition: retried through the render queue backoff
    """

    QUEUE_RETRYABLE_STAGES = frozenset({PipelineStage.CONTENT_ANALYSIS, PipelineStage.COMPOSITION})

    def __init__(self, stage: PipelineStage, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.provider = provider

    @property
    def queue_retryable(self) -> bool:
        return self.stage in self.QUEUE_RETRYABLE_STAGES

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


class QueueExhaustedError(VidGenError):
    """Render job has used every attempt and is permanently failed."""

    def __init__(self, job_id: UUID, attempts: int, max_attempts: int) -> None:
        super().__init__(
            f"Render job {job_id} exhausted its attempts ({attempts}/{max_attempts})"
        )
        self.job_id = job_id
        self.attempts = attempts
        self.max_attempts = max_attempts


class LeaseLostError(VidGenError):
    """The worker's claim on a render job was taken over or already settled."""

    def __init__(self, job_id: UUID) -> None:
        super().__init__(f"Lease on render job {job_id} is no longer held")
        self.job_id = job_id
