"""Kling clip generation via fal.ai."""

import os
from typing import Any

import fal_client

from vidgen_engine.adapters.video_gen.base import (
    VideoGenProvider,
    VideoGenRequest,
    VideoGenResult,
)
from vidgen_engine.config import settings
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_NEGATIVE_PROMPT = "blur, distort, low quality"


class KlingProvider(VideoGenProvider):
    """Kling text-to-video through the fal-client SDK.

    ``subscribe_async`` blocks until the fal queue reports completion, so a
    successful result always carries a hosted clip URL.

    Kling only renders 5s or 10s clips; scene durations are rounded onto
    those two buckets and the composer trims or holds to the planned length.
    """

    FAL_MODEL = "fal-ai/kling-video/v2.6/pro/text-to-video"
    SUPPORTED_ASPECT_RATIOS = ("16:9", "9:16", "1:1")

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        self.api_key = api_key or settings.fal_api_key
        self.model = model or self.FAL_MODEL
        if self.api_key:
            os.environ["FAL_KEY"] = self.api_key

        if not self._configured():
            logger.warning("fal_key_missing", provider="kling")

    @property
    def name(self) -> str:
        return "kling"

    def _configured(self) -> bool:
        return bool(self.api_key or os.environ.get("FAL_KEY"))

    @staticmethod
    def map_duration(duration_seconds: float) -> str:
        """Map a scene duration onto fal's "5"/"10" strings."""
        return "5" if duration_seconds <= 7.5 else "10"

    def build_arguments(self, request: VideoGenRequest) -> dict[str, Any]:
        aspect_ratio = request.aspect_ratio
        if aspect_ratio not in self.SUPPORTED_ASPECT_RATIOS:
            aspect_ratio = "16:9"
        arguments: dict[str, Any] = {
            "prompt": request.prompt,
            "duration": self.map_duration(request.duration_seconds),
            "aspect_ratio": aspect_ratio,
            "negative_prompt": request.negative_prompt or DEFAULT_NEGATIVE_PROMPT,
            "generate_audio": False,
        }
        if request.motion_strength is not None:
            # fal exposes prompt adherence as cfg_scale in [0, 1]
            arguments["cfg_scale"] = round(min(max(request.motion_strength, 1), 4) / 4, 2)
        return arguments

    async def generate(self, request: VideoGenRequest) -> VideoGenResult:
        if not self._configured():
            return VideoGenResult(success=False, error_message="FAL_KEY not configured")

        arguments = self.build_arguments(request)
        logger.info(
            "kling_generation_started",
            model=self.model,
            prompt_length=len(request.prompt),
            duration=arguments["duration"],
            aspect_ratio=arguments["aspect_ratio"],
        )

        try:
            result = await fal_client.subscribe_async(self.model, arguments=arguments)
        except Exception as e:  # fal_client raises plain exceptions on queue errors
            logger.error("kling_generation_error", error=str(e))
            return VideoGenResult(success=False, error_message=str(e))

        video_url = (result.get("video") or {}).get("url")
        if not video_url:
            logger.error("kling_no_video_url", result_keys=list(result.keys()))
            return VideoGenResult(
                success=False,
                error_message="Kling generation completed but no video URL returned",
            )

        duration_seconds = float(arguments["duration"])
        logger.info(
            "kling_generation_completed",
            video_url=video_url[:100],
            duration_seconds=duration_seconds,
        )

        return VideoGenResult(
            success=True,
            video_url=video_url,
            duration_seconds=duration_seconds,
            metadata={"provider": self.name, "model": self.model, "video_url": video_url},
        )

    async def check_status(self, job_id: str) -> dict[str, Any]:
        status = await fal_client.status_async(self.model, job_id)
        return {"request_id": job_id, "status": type(status).__name__}

    async def health_check(self) -> bool:
        return self._configured()
