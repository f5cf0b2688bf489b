"""ElevenLabs narration provider."""

from typing import Any

import httpx

from vidgen_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
    estimate_speech_seconds,
)
from vidgen_engine.config import settings
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)

# mp3_44100_128 output: 128 kbit/s constant bitrate
MP3_BYTES_PER_SECOND = 128_000 / 8


class ElevenLabsProvider(VoiceoverProvider):
    """ElevenLabs text-to-speech.

    Preset names used by style templates map onto stock ElevenLabs voices;
    anything else is passed through as a raw voice id.
    """

    VOICE_PRESETS = {
        "rachel": "21m00Tcm4TlvDq8ikWAM",
        "adam": "pNInz6obpgDQGcFmaJgB",
        "drew": "29vD33N1CtxCmqQRPOHJ",
        "antoni": "ErXwobaYiN019PkySvjV",
        "arnold": "VR6AewLTigWG4xSOukaG",
        "bella": "EXAVITQu4vr4xnSDxMaL",
    }
    DEFAULT_PRESET = "rachel"

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str = "eleven_multilingual_v2",
        base_url: str = "https://api.elevenlabs.io/v1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.elevenlabs_api_key
        self.model_id = model_id
        self.base_url = base_url
        self._transport = transport

        if not self.api_key:
            logger.warning("elevenlabs_api_key_missing")

    @property
    def name(self) -> str:
        return "elevenlabs"

    def resolve_voice(self, voice: str | None) -> str:
        if not voice:
            return self.VOICE_PRESETS[self.DEFAULT_PRESET]
        return self.VOICE_PRESETS.get(voice.lower(), voice)

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Synthesize narration with the ElevenLabs API."""
        if not self.api_key:
            return VoiceoverResult(
                success=False,
                error_message="ElevenLabs API key not configured",
            )

        voice_id = self.resolve_voice(request.voice_id)
        payload: dict[str, Any] = {
            "text": request.text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
                "style": 0.0,
                "use_speaker_boost": True,
                "speed": request.speed,
            },
        }
        if request.language != "en":
            payload["language_code"] = request.language

        logger.info(
            "elevenlabs_generation_started",
            text_length=len(request.text),
            voice_id=voice_id,
            model=self.model_id,
        )

        try:
            async with httpx.AsyncClient(timeout=120.0, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/text-to-speech/{voice_id}",
                    params={"output_format": "mp3_44100_128"},
                    headers={"xi-api-key": self.api_key, "Content-Type": "application/json"},
                    json=payload,
                )
                response.raise_for_status()
                audio_data = response.content

            if audio_data:
                duration = round(len(audio_data) / MP3_BYTES_PER_SECOND, 2)
            else:
                duration = estimate_speech_seconds(request.text)

            logger.info(
                "elevenlabs_generation_completed",
                audio_size=len(audio_data),
                duration=duration,
            )

            return VoiceoverResult(
                success=True,
                audio_data=audio_data,
                duration_seconds=duration,
                metadata={
                    "provider": self.name,
                    "voice_id": voice_id,
                    "model_id": self.model_id,
                },
            )

        except httpx.HTTPStatusError as e:
            error_msg = f"ElevenLabs API error: {e.response.status_code}"
            try:
                detail = e.response.json().get("detail", {})
                if isinstance(detail, dict) and detail.get("message"):
                    error_msg = f"{error_msg} - {detail['message']}"
            except ValueError:
                pass
            logger.error("elevenlabs_api_error", error=error_msg)
            return VoiceoverResult(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("elevenlabs_generation_error", error=str(e))
            return VoiceoverResult(success=False, error_message=str(e))

    async def list_voices(self) -> list[dict[str, Any]]:
        if not self.api_key:
            return []
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            response = await client.get(
                f"{self.base_url}/voices", headers={"xi-api-key": self.api_key}
            )
            response.raise_for_status()
            return response.json().get("voices", [])

    async def health_check(self) -> bool:
        """Check if ElevenLabs API is accessible."""
        if not self.api_key:
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/user", headers={"xi-api-key": self.api_key}
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("elevenlabs_health_check_failed", error=str(e))
            return False
