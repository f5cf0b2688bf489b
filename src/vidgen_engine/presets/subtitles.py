"""Subtitle style presets burned into composed videos."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class SubtitleStyle:
    """Font and placement for burned-in subtitles."""

    font_family: str
    font_size: int
    color: str
    background_color: str
    position: str  # bottom-center, center-middle
    bold: bool = False
    uppercase: bool = False
    border_color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


SUBTITLE_STYLES: dict[str, SubtitleStyle] = {
    "cinematic": SubtitleStyle(
        font_family="Cinzel",
        font_size=32,
        color="#FFFFFF",
        background_color="rgba(0, 0, 0, 0.5)",
        border_color="rgba(0, 0, 0, 0.8)",
        position="bottom-center",
    ),
    "impact": SubtitleStyle(
        font_family="Impact",
        font_size=56,
        color="#FFFFFF",
        background_color="#000000",
        border_color="#FF0000",
        position="center-middle",
        bold=True,
        uppercase=True,
    ),
    "minimal": SubtitleStyle(
        font_family="Arial",
        font_size=28,
        color="#FFFFFF",
        background_color="rgba(0, 0, 0, 0.3)",
        position="bottom-center",
    ),
}

DEFAULT_SUBTITLE_STYLE = "cinematic"


def get_subtitle_style(name: str | None) -> SubtitleStyle:
    if not name:
        return SUBTITLE_STYLES[DEFAULT_SUBTITLE_STYLE]
    return SUBTITLE_STYLES.get(name.lower(), SUBTITLE_STYLES[DEFAULT_SUBTITLE_STYLE])
