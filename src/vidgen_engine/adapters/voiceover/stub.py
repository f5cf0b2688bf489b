"""Stub narration provider for testing."""

from vidgen_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
    estimate_speech_seconds,
)
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)


class StubVoiceoverProvider(VoiceoverProvider):
    """Stub provider that fabricates audio bytes without external calls."""

    @property
    def name(self) -> str:
        return "stub"

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        if not request.text.strip():
            return VoiceoverResult(success=False, error_message="Narration text is empty")

        fake_audio = b"STUB_AUDIO_DATA_" + request.text.encode()[:100]
        duration = estimate_speech_seconds(request.text)

        logger.info(
            "stub_voiceover_generated",
            text_length=len(request.text),
            voice=request.voice_id,
            duration=duration,
        )

        return VoiceoverResult(
            success=True,
            audio_data=fake_audio,
            duration_seconds=duration,
            metadata={"provider": self.name, "voice_id": request.voice_id or "default"},
        )
