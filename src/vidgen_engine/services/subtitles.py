"""Subtitle cue timing and SRT rendering."""

import re

from vidgen_engine.domain.models import SubtitleCue

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def split_sentences(script: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_END.split(script.strip()) if s.strip()]


def build_cues(script: str, duration_seconds: float) -> list[SubtitleCue]:
    """Spread the script's sentences across the narration by word count.

    Each sentence gets a share of ``duration_seconds`` proportional to its
    word count; the last cue always ends exactly at ``duration_seconds``.
    """
    sentences = split_sentences(script)
    if not sentences or duration_seconds <= 0:
        return []

    word_counts = [max(len(s.split()), 1) for s in sentences]
    total_words = sum(word_counts)

    cues: list[SubtitleCue] = []
    elapsed_words = 0
    for index, (sentence, words) in enumerate(zip(sentences, word_counts, strict=True)):
        start = duration_seconds * elapsed_words / total_words
        elapsed_words += words
        end = duration_seconds * elapsed_words / total_words
        cues.append(
            SubtitleCue(
                index=index + 1,
                start_seconds=round(start, 3),
                end_seconds=round(end, 3),
                text=sentence,
            )
        )
    return cues


def format_srt_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS,mmm``."""
    total_ms = int(round(seconds * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def to_srt(cues: list[SubtitleCue]) -> str:
    blocks = [
        f"{cue.index}\n"
        f"{format_srt_timestamp(cue.start_seconds)} --> {format_srt_timestamp(cue.end_seconds)}\n"
        f"{cue.text}\n"
        for cue in cues
    ]
    return "\n".join(blocks)
