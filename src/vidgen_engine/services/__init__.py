"""Application services."""

from vidgen_engine.services.api_keys import ApiKeyService, IssuedApiKey
from vidgen_engine.services.composition import Composer, build_recipe
from vidgen_engine.services.content_analysis import ContentAnalyzer
from vidgen_engine.services.director import Director
from vidgen_engine.services.narration import Narrator
from vidgen_engine.services.queue_worker import QueueWorker, WorkerResult, build_queue_worker
from vidgen_engine.services.rate_limit import RateLimiter
from vidgen_engine.services.scene_clips import SceneClipService
from vidgen_engine.services.storage import StorageService, StoredAsset
from vidgen_engine.services.submission import SubmissionService, build_generation_request
from vidgen_engine.services.webhooks import WebhookDispatcher

__all__ = [
    "ApiKeyService",
    "Composer",
    "ContentAnalyzer",
    "Director",
    "IssuedApiKey",
    "Narrator",
    "QueueWorker",
    "RateLimiter",
    "SceneClipService",
    "StorageService",
    "StoredAsset",
    "SubmissionService",
    "WebhookDispatcher",
    "WorkerResult",
    "build_generation_request",
    "build_queue_worker",
    "build_recipe",
]
