"""Adapters for external generation services."""

from vidgen_engine.adapters.llm.base import LLMProvider
from vidgen_engine.adapters.renderer.base import RendererProvider
from vidgen_engine.adapters.video_gen.base import VideoGenProvider
from vidgen_engine.adapters.voiceover.base import VoiceoverProvider

__all__ = [
    "LLMProvider",
    "RendererProvider",
    "VideoGenProvider",
    "VoiceoverProvider",
]
