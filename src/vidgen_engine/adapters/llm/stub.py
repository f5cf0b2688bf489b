"""Stub LLM provider for testing."""

import json
from typing import Any

from vidgen_engine.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)

_BEATS = [
    ("Establishing wide shot that sets the mood", "calm", "slow push in"),
    ("Close detail revealing the subject", "curious", "static"),
    ("Dynamic movement through the scene", "energetic", "tracking shot"),
    ("Closing image that lands the message", "uplifting", "slow pull out"),
]


class StubLLMProvider(LLMProvider):
    """Stub provider that returns a scene breakdown shaped like the request.

    When the last user message is a JSON brief carrying ``scene_count`` and
    ``target_duration_seconds`` the stub answers with exactly that many scenes
    whose durations add up to the target.
    """

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,  # noqa: ARG002
        max_tokens: int = 4096,  # noqa: ARG002
        json_mode: bool = False,
    ) -> LLMResponse:
        """Return a mock completion response."""
        logger.info("stub_llm_complete", message_count=len(messages), json_mode=json_mode)

        user_message = next((m.content for m in reversed(messages) if m.role == "user"), "")

        if json_mode:
            content = json.dumps(self._scene_breakdown(user_message), indent=2)
        else:
            content = f"This is a stub response for: {user_message[:100]}"

        return LLMResponse(
            content=content,
            model="stub-model",
            usage={
                "prompt_tokens": len(user_message.split()),
                "completion_tokens": len(content.split()),
                "total_tokens": len(user_message.split()) + len(content.split()),
            },
            finish_reason="stop",
        )

    @staticmethod
    def _scene_breakdown(user_message: str) -> dict[str, Any]:
        try:
            brief = json.loads(user_message)
        except ValueError:
            brief = {"prompt": user_message}

        prompt = str(brief.get("prompt", "")).strip() or "an untitled idea"
        count = int(brief.get("scene_count", 4))
        target = float(brief.get("target_duration_seconds", count * 5))
        per_scene = round(target / count, 2)

        scenes = []
        for i in range(count):
            description, mood, camera = _BEATS[i % len(_BEATS)]
            scenes.append(
                {
                    "sceneNumber": i + 1,
                    "description": f"{description}: {prompt[:60]}",
                    "pikaPrompt": f"{description.lower()}, {prompt[:80]}",
                    "narration": f"Part {i + 1} of the story about {prompt[:60]}.",
                    "duration": per_scene,
                    "visualElements": [prompt.split()[0] if prompt.split() else "subject"],
                    "mood": mood,
                    "cameraMovement": camera,
                }
            )

        return {
            "title": f"Short: {prompt[:40]}",
            "sentiment": "inspirational",
            "topic": "general",
            "scenes": scenes,
        }

    async def health_check(self) -> bool:
        """Stub provider is always healthy."""
        return True
