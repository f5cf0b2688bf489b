"""Style templates and subtitle presets."""

from vidgen_engine.presets.subtitles import (
    SUBTITLE_STYLES,
    SubtitleStyle,
    get_subtitle_style,
)
from vidgen_engine.presets.templates import (
    DEFAULT_TEMPLATE,
    TEMPLATES,
    StyleTemplate,
    get_template,
    get_template_names,
)

__all__ = [
    "DEFAULT_TEMPLATE",
    "SUBTITLE_STYLES",
    "TEMPLATES",
    "StyleTemplate",
    "SubtitleStyle",
    "get_subtitle_style",
    "get_template",
    "get_template_names",
]
