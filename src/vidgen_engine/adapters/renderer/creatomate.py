"""Creatomate composition provider."""

import asyncio
from typing import Any

import httpx

from vidgen_engine.adapters.renderer.base import RendererProvider, RenderResult, clip_duration
from vidgen_engine.config import settings
from vidgen_engine.domain.models import CompositionRecipe
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CAPTION_STYLE: dict[str, Any] = {
    "y": "85%",
    "width": "90%",
    "x_alignment": "50%",
    "y_alignment": "50%",
    "font_family": "Montserrat",
    "font_weight": "700",
    "font_size": "6 vmin",
    "fill_color": "#ffffff",
    "stroke_color": "#000000",
    "stroke_width": "1 vmin",
}

POSITION_Y = {
    "bottom-center": "85%",
    "center-middle": "50%",
    "top-center": "15%",
}


def caption_style(subtitle_style: dict[str, Any] | None) -> dict[str, Any]:
    """Map a subtitle preset onto Creatomate text element properties."""
    style = dict(DEFAULT_CAPTION_STYLE)
    if not subtitle_style:
        return style

    if subtitle_style.get("font_family"):
        style["font_family"] = subtitle_style["font_family"]
    if subtitle_style.get("font_size"):
        style["font_size"] = f"{subtitle_style['font_size']} px"
    if subtitle_style.get("color"):
        style["fill_color"] = subtitle_style["color"]
    if subtitle_style.get("border_color"):
        style["stroke_color"] = subtitle_style["border_color"]
    if subtitle_style.get("background_color"):
        style["background_color"] = subtitle_style["background_color"]
    if subtitle_style.get("bold"):
        style["font_weight"] = "800"
    style["y"] = POSITION_Y.get(subtitle_style.get("position", ""), style["y"])
    return style


def build_creatomate_payload(recipe: CompositionRecipe) -> dict[str, Any]:
    """Translate a composition recipe into a Creatomate render source.

    Clips are laid out back to back on track 1, subtitle cues on track 2 and
    the soundtrack on track 3. The output is a pure function of the recipe.
    """
    elements: list[dict[str, Any]] = []
    current_time = 0.0

    for clip in recipe.clips:
        duration = clip_duration(clip.duration_seconds)
        element: dict[str, Any] = {
            "type": "image" if clip.media_type == "image" else "video",
            "track": 1,
            "source": clip.url,
            "time": round(current_time, 3),
            "duration": duration,
            "fit": "cover",
        }
        if clip.media_type == "image":
            # Gentle push-in so stills don't read as frozen frames
            element["animations"] = [
                {"type": "scale", "scope": "element", "start_scale": "100%", "end_scale": "110%"}
            ]
        elements.append(element)
        current_time += duration

    total_duration = round(current_time, 3)

    if recipe.subtitles:
        style = caption_style(recipe.subtitle_style)
        uppercase = bool((recipe.subtitle_style or {}).get("uppercase"))
        for cue in recipe.subtitles:
            elements.append(
                {
                    "type": "text",
                    "track": 2,
                    "text": cue.text.upper() if uppercase else cue.text,
                    "time": cue.start_seconds,
                    "duration": round(cue.end_seconds - cue.start_seconds, 3),
                    **style,
                }
            )

    if recipe.audio_url:
        elements.append(
            {
                "type": "audio",
                "track": 3,
                "source": recipe.audio_url,
                "time": 0,
                "duration": total_duration,
                "volume": "100%",
                "audio_fade_out": 1.0,
            }
        )

    return {
        "source": {
            "output_format": recipe.output_format,
            "width": recipe.width,
            "height": recipe.height,
            "frame_rate": recipe.fps,
            "duration": total_duration,
            "elements": elements,
        },
        "metadata": recipe.fingerprint,
    }


class CreatomateProvider(RendererProvider):
    """Creatomate API renderer.

    Submits the recipe as a dynamic composition and polls the render until
    it succeeds, fails or the poll budget runs out.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.creatomate.com/v1",
        poll_interval: float = 5.0,
        max_poll_attempts: int = 120,  # 10 minutes max
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.creatomate_api_key
        self.base_url = base_url
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self._transport = transport

        if not self.api_key:
            logger.warning("creatomate_api_key_missing")

    @property
    def name(self) -> str:
        return "creatomate"

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    async def render(self, recipe: CompositionRecipe) -> RenderResult:
        if not self.api_key:
            return RenderResult(success=False, error_message="Creatomate API key not configured")

        payload = build_creatomate_payload(recipe)
        logger.info(
            "creatomate_render_started",
            clip_count=len(recipe.clips),
            has_audio=recipe.audio_url is not None,
            subtitle_count=len(recipe.subtitles),
            output_size=f"{recipe.width}x{recipe.height}",
        )

        try:
            async with self._client(60.0) as client:
                response = await client.post("/renders", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"Creatomate API error: {e.response.status_code} - {e.response.text[:300]}"
            logger.error("creatomate_api_error", error=error_msg)
            return RenderResult(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("creatomate_render_error", error=str(e))
            return RenderResult(success=False, error_message=str(e))

        render_info = data[0] if isinstance(data, list) and data else data
        render_id = render_info.get("id") if isinstance(render_info, dict) else None
        if not render_id:
            return RenderResult(success=False, error_message="No render ID returned from Creatomate")

        logger.info("creatomate_render_submitted", render_id=render_id)
        return await self._poll_for_completion(render_id)

    async def _poll_for_completion(self, render_id: str) -> RenderResult:
        for attempt in range(self.max_poll_attempts):
            await asyncio.sleep(self.poll_interval)

            try:
                async with self._client(30.0) as client:
                    response = await client.get(f"/renders/{render_id}")
                    response.raise_for_status()
                    data = response.json()
            except httpx.HTTPError as e:
                # Transient; keep polling
                logger.warning(
                    "creatomate_poll_error",
                    render_id=render_id,
                    error=str(e),
                    attempt=attempt + 1,
                )
                continue

            status = data.get("status", "unknown")
            logger.debug("creatomate_poll_status", render_id=render_id, status=status, attempt=attempt + 1)

            if status == "succeeded":
                output_url = data.get("url")
                if not output_url:
                    return RenderResult(
                        success=False, error_message="Render succeeded but no URL returned"
                    )
                logger.info("creatomate_render_completed", render_id=render_id, output_url=output_url[:100])
                return RenderResult(
                    success=True,
                    output_url=output_url,
                    file_size_bytes=data.get("file_size"),
                    duration_seconds=data.get("duration"),
                    metadata={"provider": self.name, "render_id": render_id},
                )

            if status == "failed":
                error_msg = data.get("error_message") or "Unknown render failure"
                logger.error("creatomate_render_failed", render_id=render_id, error=error_msg)
                return RenderResult(success=False, error_message=f"Render failed: {error_msg}")

        return RenderResult(
            success=False,
            error_message=f"Render timed out after {self.max_poll_attempts * self.poll_interval} seconds",
            metadata={"render_id": render_id},
        )

    async def health_check(self) -> bool:
        if not self.api_key:
            return False
        try:
            async with self._client(10.0) as client:
                response = await client.get("/renders", params={"limit": 1})
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("creatomate_health_check_failed", error=str(e))
            return False
