"""Narration synthesis stage."""

from uuid import UUID

from vidgen_engine.adapters.voiceover.base import VoiceoverProvider, VoiceoverRequest
from vidgen_engine.domain.enums import PipelineStage
from vidgen_engine.domain.errors import ProviderError
from vidgen_engine.domain.models import Narration
from vidgen_engine.logging import get_logger
from vidgen_engine.services.storage import StorageService

logger = get_logger(__name__)


class Narrator:
    """Turns the narration script into stored audio with a measured duration."""

    def __init__(self, voiceover: VoiceoverProvider, storage: StorageService) -> None:
        self.voiceover = voiceover
        self.storage = storage

    async def narrate(self, project_id: UUID, script: str, voice: str | None) -> Narration:
        """Synthesize and store narration.

        Raises:
            ProviderError: Synthesis failed. Narration failures are terminal
                for the pipeline and are never retried automatically.
        """
        if not script.strip():
            raise ProviderError(PipelineStage.NARRATION, "Narration script is empty")

        logger.info(
            "narration_started",
            project_id=str(project_id),
            script_length=len(script),
            voice=voice,
            provider=self.voiceover.name,
        )
        result = await self.voiceover.generate(VoiceoverRequest(text=script, voice_id=voice))
        if not result.success or not result.audio_data:
            raise ProviderError(
                PipelineStage.NARRATION,
                result.error_message or "Voiceover returned no audio",
                provider=self.voiceover.name,
            )

        stored = self.storage.store_narration(project_id, result.audio_data)
        narration = Narration(
            audio_url=stored.url,
            duration_seconds=result.duration_seconds or 0.0,
            script=script,
        )
        logger.info(
            "narration_completed",
            project_id=str(project_id),
            audio_url=narration.audio_url,
            duration=narration.duration_seconds,
        )
        return narration
