"""Narration adapters."""

from vidgen_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
)
from vidgen_engine.adapters.voiceover.elevenlabs import ElevenLabsProvider
from vidgen_engine.adapters.voiceover.stub import StubVoiceoverProvider

__all__ = [
    "VoiceoverProvider",
    "VoiceoverRequest",
    "VoiceoverResult",
    "ElevenLabsProvider",
    "StubVoiceoverProvider",
]
