"""Base interface for narration (text-to-speech) providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

WORDS_PER_MINUTE = 150


def estimate_speech_seconds(text: str, words_per_minute: int = WORDS_PER_MINUTE) -> float:
    """Rough spoken duration of ``text``."""
    return round(len(text.split()) / words_per_minute * 60, 2)


@dataclass
class VoiceoverRequest:
    """Request for narration audio."""

    text: str
    voice_id: str | None = None  # Provider-specific voice identifier or preset name
    language: str = "en"
    speed: float = 1.0
    output_format: str = "mp3"
    options: dict[str, Any] | None = None


@dataclass
class VoiceoverResult:
    """Result from narration synthesis."""

    success: bool
    audio_data: bytes | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class VoiceoverProvider(ABC):
    """Abstract base class for narration providers.

    Implementations:
    - ElevenLabsProvider: AI voices via the ElevenLabs API
    - StubVoiceoverProvider: Returns mock audio for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Synthesize narration audio from text.

        Args:
            request: Text and voice settings

        Returns:
            VoiceoverResult with audio bytes and measured duration, or an error
        """
        ...

    async def list_voices(self) -> list[dict[str, Any]]:
        """List available voices."""
        return []

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy."""
        return True
