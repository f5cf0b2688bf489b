"""API route modules."""

from vidgen_engine.api.routes import generate, health, jobs, projects, queue, webhooks

__all__ = ["generate", "health", "jobs", "projects", "queue", "webhooks"]
