"""Style template definitions for the autonomous director.

A template decides how every generated scene looks and sounds: the visual
suffix and negative prompt injected into each clip prompt, the narration
voice, how much motion the clip model is asked for, and which subtitle
preset is burned in.
"""

from dataclasses import dataclass
from typing import Literal

Pacing = Literal["slow", "normal", "fast"]


def pacing_for(motion_strength: int) -> Pacing:
    """Derive scene pacing from motion strength (1-4)."""
    if motion_strength <= 1:
        return "slow"
    if motion_strength >= 3:
        return "fast"
    return "normal"


@dataclass(frozen=True)
class StyleTemplate:
    """A named visual and audio style.

    Attributes:
        name: Identifier accepted by the generate endpoint
        display_name: Human-readable name
        style_suffix: Visual descriptors appended to every clip prompt
        negative_prompt: Things the clip model should avoid
        voice: Narration voice preset
        motion_strength: 1 (still) to 4 (very dynamic)
        subtitle_style: Subtitle preset name
    """

    name: str
    display_name: str
    style_suffix: str
    negative_prompt: str
    voice: str
    motion_strength: int
    subtitle_style: str

    @property
    def pacing(self) -> Pacing:
        return pacing_for(self.motion_strength)

    def inject(self, prompt: str) -> str:
        """Decorate a scene prompt with this template's style directives."""
        return (
            f"{prompt.rstrip('. ')}. {self.style_suffix}. "
            f"AVOID: {self.negative_prompt}. MOTION: {self.motion_strength}/4"
        )


# =============================================================================
# TEMPLATE DEFINITIONS
# =============================================================================

CINEMATIC_STORY = StyleTemplate(
    name="cinematic_story",
    display_name="Cinematic Story",
    style_suffix="Cinematic lighting, 8k resolution, photorealistic, slow motion, golden hour",
    negative_prompt="cartoon, anime, blurry, distorted, low quality",
    voice="rachel",
    motion_strength=2,
    subtitle_style="cinematic",
)

HIGH_ENERGY_PROMO = StyleTemplate(
    name="high_energy_promo",
    display_name="High Energy Promo",
    style_suffix="Fast motion, dynamic camera angles, bright lighting, vibrant colors, high energy",
    negative_prompt="slow, static, dull, low energy, boring",
    voice="bella",
    motion_strength=4,
    subtitle_style="impact",
)

MODERN_MINIMALIST = StyleTemplate(
    name="modern_minimalist",
    display_name="Modern Minimalist",
    style_suffix="Clean composition, minimal distractions, soft lighting, modern aesthetic, professional grade",
    negative_prompt="cluttered, chaotic, messy, unprofessional",
    voice="adam",
    motion_strength=1,
    subtitle_style="minimal",
)


# =============================================================================
# TEMPLATE REGISTRY
# =============================================================================

DEFAULT_TEMPLATE = CINEMATIC_STORY.name

TEMPLATES: dict[str, StyleTemplate] = {
    CINEMATIC_STORY.name: CINEMATIC_STORY,
    HIGH_ENERGY_PROMO.name: HIGH_ENERGY_PROMO,
    MODERN_MINIMALIST.name: MODERN_MINIMALIST,
}


def get_template(name: str | None) -> StyleTemplate:
    """Look up a template, falling back to the default for unknown names."""
    if not name:
        return TEMPLATES[DEFAULT_TEMPLATE]
    return TEMPLATES.get(name.lower(), TEMPLATES[DEFAULT_TEMPLATE])


def get_template_names() -> list[str]:
    return list(TEMPLATES.keys())
