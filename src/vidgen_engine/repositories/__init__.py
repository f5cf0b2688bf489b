"""Narrowly scoped data access, one class per aggregate.

Each repository wraps a caller-provided Session; nothing here opens its own
connection or holds module-level database state.
"""

from vidgen_engine.repositories.api_keys import ApiKeyRepository
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import FailOutcome, QueueStats, RenderQueue
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.repositories.webhooks import WebhookRepository

__all__ = [
    "ApiKeyRepository",
    "FailOutcome",
    "ProjectRepository",
    "QueueStats",
    "RenderQueue",
    "SceneRepository",
    "WebhookRepository",
]
