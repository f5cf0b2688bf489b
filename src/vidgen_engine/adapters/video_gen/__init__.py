"""Scene clip generation adapters."""

from vidgen_engine.adapters.video_gen.base import (
    VideoGenProvider,
    VideoGenRequest,
    VideoGenResult,
)
from vidgen_engine.adapters.video_gen.kling import KlingProvider
from vidgen_engine.adapters.video_gen.stub import StubVideoGenProvider

__all__ = [
    "VideoGenProvider",
    "VideoGenRequest",
    "VideoGenResult",
    "KlingProvider",
    "StubVideoGenProvider",
]
