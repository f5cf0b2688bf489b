"""Content analysis: prompt and target duration to a scene breakdown."""

import json
from typing import Any

from vidgen_engine.adapters.llm.base import LLMMessage, LLMProvider
from vidgen_engine.domain.enums import PipelineStage
from vidgen_engine.domain.errors import ProviderError
from vidgen_engine.domain.models import ContentAnalysis, ScenePlan
from vidgen_engine.logging import get_logger
from vidgen_engine.presets.templates import StyleTemplate

logger = get_logger(__name__)

MIN_SCENES = 3
MAX_SCENES = 4
SECONDS_PER_SCENE = 3.5
DURATION_TOLERANCE_SECONDS = 5.0

_HAPPY_WORDS = ("happy", "joy", "excited", "love", "great", "amazing", "wonderful")
_SERIOUS_WORDS = ("important", "serious", "critical", "significant", "essential")
_URGENT_WORDS = ("urgent", "now", "immediately", "quick", "fast", "hurry")

_TOPIC_WORDS: list[tuple[str, tuple[str, ...]]] = [
    ("nature", ("nature", "environment", "outdoor")),
    ("tech", ("tech", "technology", "software")),
    ("people", ("people", "person", "human")),
    ("product", ("product", "sell", "buy")),
]


def scene_count_for(duration_seconds: float) -> int:
    """Number of scenes for a target duration, clamped to 3..4."""
    return max(MIN_SCENES, min(MAX_SCENES, round(duration_seconds / SECONDS_PER_SCENE)))


def detect_context(text: str) -> tuple[str, str]:
    """Keyword sentiment and topic for a prompt.

    Returns:
        (sentiment, topic); "neutral"/"general" when nothing stands out.
    """
    lowered = text.lower()
    counts = {
        "happy": sum(word in lowered for word in _HAPPY_WORDS),
        "serious": sum(word in lowered for word in _SERIOUS_WORDS),
        "urgent": sum(word in lowered for word in _URGENT_WORDS),
    }
    sentiment = "neutral"
    best = max(counts, key=lambda k: counts[k])
    if counts[best] > 0 and list(counts.values()).count(counts[best]) == 1:
        sentiment = best

    topic = next(
        (name for name, words in _TOPIC_WORDS if any(word in lowered for word in words)),
        "general",
    )
    return sentiment, topic


def recommend_template(sentiment: str, topic: str) -> str:
    """Pick a style template name from sentiment and topic."""
    if sentiment == "urgent" or topic in ("tech", "product"):
        return "high_energy_promo"
    if sentiment == "professional" or topic == "business":
        return "modern_minimalist"
    if sentiment in ("serious", "inspirational") or topic in ("people", "nature"):
        return "cinematic_story"
    return "modern_minimalist"


class ContentAnalyzer:
    """Breaks a prompt into 3-4 narrated, timed scenes using an LLM.

    The LLM's raw scene prompts are decorated with the style template before
    they are stored, so every clip request carries the template's look.
    """

    SYSTEM_PROMPT = """You are a professional video director and script writer.
Break the user's brief into cinematic scenes for an AI video generator.

Each scene needs:
- description: what the viewer sees
- pikaPrompt: a concise, visual prompt optimised for a text-to-video model
- narration: one or two spoken sentences for this scene
- duration: seconds on screen
- visualElements: key objects or subjects
- mood: one word
- cameraMovement: e.g. "slow push in", "static", "tracking shot"

Scene durations must add up to the target duration.
Also classify the whole brief:
- sentiment: happy | serious | urgent | inspirational | professional
- topic: nature | tech | people | product | abstract | business

Return valid JSON with this exact structure:
{
    "title": "Short title (max 60 characters)",
    "sentiment": "...",
    "topic": "...",
    "scenes": [
        {"sceneNumber": 1, "description": "...", "pikaPrompt": "...", "narration": "...",
         "duration": 8.5, "visualElements": ["..."], "mood": "...", "cameraMovement": "..."}
    ]
}"""

    def __init__(self, llm_provider: LLMProvider) -> None:
        self.llm = llm_provider

    def _build_brief(self, prompt: str, duration_seconds: float, scene_count: int, template: StyleTemplate) -> str:
        return json.dumps(
            {
                "prompt": prompt,
                "target_duration_seconds": duration_seconds,
                "scene_count": scene_count,
                "template": template.name,
                "pacing": template.pacing,
            }
        )

    async def analyze(
        self,
        prompt: str,
        duration_seconds: float,
        template: StyleTemplate,
    ) -> ContentAnalysis:
        """Produce the scene breakdown for a prompt.

        Raises:
            ProviderError: LLM call failed or returned an unusable breakdown.
        """
        scene_count = scene_count_for(duration_seconds)
        logger.info(
            "content_analysis_started",
            prompt_length=len(prompt),
            target_duration=duration_seconds,
            scene_count=scene_count,
            llm_provider=self.llm.name,
        )

        messages = [
            LLMMessage(role="system", content=self.SYSTEM_PROMPT),
            LLMMessage(
                role="user",
                content=self._build_brief(prompt, duration_seconds, scene_count, template),
            ),
        ]

        try:
            response = await self.llm.complete(
                messages=messages,
                temperature=0.7,
                max_tokens=2048,
                json_mode=True,
            )
        except Exception as e:  # provider SDKs raise their own hierarchies
            raise ProviderError(
                PipelineStage.CONTENT_ANALYSIS, f"LLM request failed: {e}", provider=self.llm.name
            ) from e

        try:
            data = json.loads(response.content)
        except json.JSONDecodeError as e:
            logger.error("content_analysis_json_error", error=str(e), content=response.content[:500])
            raise ProviderError(
                PipelineStage.CONTENT_ANALYSIS, f"LLM returned invalid JSON: {e}", provider=self.llm.name
            ) from e

        analysis = self._parse(data, prompt, scene_count, template)

        if abs(analysis.total_duration - duration_seconds) > DURATION_TOLERANCE_SECONDS:
            logger.warning(
                "content_analysis_duration_mismatch",
                target=duration_seconds,
                planned=round(analysis.total_duration, 2),
            )

        logger.info(
            "content_analysis_completed",
            title=analysis.title,
            scene_count=len(analysis.scenes),
            total_duration=round(analysis.total_duration, 2),
            recommended_template=analysis.recommended_template,
        )
        return analysis

    def _parse(
        self,
        data: dict[str, Any],
        prompt: str,
        scene_count: int,
        template: StyleTemplate,
    ) -> ContentAnalysis:
        raw_scenes = data.get("scenes")
        if not isinstance(raw_scenes, list) or len(raw_scenes) < MIN_SCENES:
            raise ProviderError(
                PipelineStage.CONTENT_ANALYSIS,
                f"Expected at least {MIN_SCENES} scenes, got {len(raw_scenes or [])}",
                provider=self.llm.name,
            )

        scenes: list[ScenePlan] = []
        for index, raw in enumerate(raw_scenes[:scene_count]):
            try:
                base_prompt = str(raw.get("pikaPrompt") or raw["description"])
                scenes.append(
                    ScenePlan(
                        scene_index=index,
                        description=str(raw.get("description", "")),
                        prompt=template.inject(base_prompt),
                        narration_text=str(raw.get("narration", "")),
                        duration_seconds=float(raw["duration"]),
                        mood=str(raw.get("mood") or "neutral"),
                        camera_movement=str(raw.get("cameraMovement") or "static"),
                        visual_elements=[str(v) for v in raw.get("visualElements") or []],
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise ProviderError(
                    PipelineStage.CONTENT_ANALYSIS,
                    f"Malformed scene {index + 1}: {e}",
                    provider=self.llm.name,
                ) from e

        fallback_sentiment, fallback_topic = detect_context(prompt)
        sentiment = str(data.get("sentiment") or fallback_sentiment)
        topic = str(data.get("topic") or fallback_topic)

        return ContentAnalysis(
            title=str(data.get("title") or prompt[:60]),
            scenes=scenes,
            sentiment=sentiment,
            topic=topic,
            recommended_template=recommend_template(sentiment, topic),
        )
