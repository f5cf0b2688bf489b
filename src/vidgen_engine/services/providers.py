"""Provider selection from configuration."""

from vidgen_engine.adapters.llm import LLMProvider, OpenAIProvider, StubLLMProvider
from vidgen_engine.adapters.renderer import CreatomateProvider, RendererProvider, StubRendererProvider
from vidgen_engine.adapters.video_gen import KlingProvider, StubVideoGenProvider, VideoGenProvider
from vidgen_engine.adapters.voiceover import (
    ElevenLabsProvider,
    StubVoiceoverProvider,
    VoiceoverProvider,
)
from vidgen_engine.config import settings
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)


def get_llm_provider() -> LLMProvider:
    """Get the content analysis LLM based on configuration."""
    provider_name = settings.llm_provider.lower()

    if provider_name == "openai" and settings.openai_api_key:
        return OpenAIProvider()
    if provider_name != "stub":
        logger.warning("llm_provider_unavailable", requested=provider_name)
    return StubLLMProvider()


def get_voiceover_provider() -> VoiceoverProvider:
    provider_name = settings.voiceover_provider.lower()

    if provider_name == "elevenlabs" and settings.elevenlabs_api_key:
        return ElevenLabsProvider()
    if provider_name != "stub":
        logger.warning("voiceover_provider_unavailable", requested=provider_name)
    return StubVoiceoverProvider()


def get_video_gen_provider() -> VideoGenProvider:
    provider_name = settings.video_gen_provider.lower()

    if provider_name == "kling" and settings.fal_api_key:
        return KlingProvider()
    if provider_name != "stub":
        logger.warning("video_gen_provider_unavailable", requested=provider_name)
    return StubVideoGenProvider()


def get_renderer_provider() -> RendererProvider:
    provider_name = settings.renderer_provider.lower()

    if provider_name == "creatomate" and settings.creatomate_api_key:
        return CreatomateProvider()
    if provider_name != "stub":
        logger.warning("renderer_provider_unavailable", requested=provider_name)
    return StubRendererProvider()
