"""Shared test helpers."""

from datetime import UTC, datetime, timedelta


class FrozenClock:
    """Controllable clock for queue and webhook timing."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands datetimes back without tzinfo."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def submit(session, owner_id, prompt: str = "A sunrise over the mountains", *, clock=None, **kwargs):
    """Submit a generation request the way the API does and return the receipt."""
    from vidgen_engine.domain.models import ApiPrincipal
    from vidgen_engine.services.submission import SubmissionService, build_generation_request
    from vidgen_engine.utils.clock import utc_now

    principal = ApiPrincipal(key_id=owner_id, owner_id=owner_id, rate_limit_per_minute=10)
    request = build_generation_request(prompt, **kwargs)
    return SubmissionService(session, clock=clock or utc_now).submit(principal, request)


class WebhookReceiver:
    """httpx.MockTransport handler that records requests and answers with a fixed status."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests = []

    def __call__(self, request):
        import httpx

        self.requests.append(request)
        return httpx.Response(self.status_code, text="ok" if self.status_code < 400 else "boom")

    def transport(self):
        import httpx

        return httpx.MockTransport(self)


def build_director(session, queue, storage, *, clock, llm, voiceover, video_gen, renderer):
    from vidgen_engine.services.composition import Composer
    from vidgen_engine.services.content_analysis import ContentAnalyzer
    from vidgen_engine.services.director import Director
    from vidgen_engine.services.narration import Narrator
    from vidgen_engine.services.scene_clips import SceneClipService

    return Director(
        session,
        queue,
        analyzer=ContentAnalyzer(llm),
        narrator=Narrator(voiceover, storage),
        clips=SceneClipService(session, video_gen, clock=clock),
        composer=Composer(renderer, storage),
    )
