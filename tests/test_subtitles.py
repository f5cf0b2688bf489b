"""Tests for subtitle timing and SRT output."""

import pytest

from vidgen_engine.services.subtitles import build_cues, format_srt_timestamp, split_sentences, to_srt


def test_split_sentences() -> None:
    assert split_sentences("First one. Second!  Third? ") == ["First one.", "Second!", "Third?"]


def test_cues_proportional_to_word_count() -> None:
    cues = build_cues("One two three. Four.", 8.0)

    assert [(c.index, c.start_seconds, c.end_seconds) for c in cues] == [(1, 0.0, 6.0), (2, 6.0, 8.0)]
    assert cues[0].text == "One two three."


def test_last_cue_ends_at_duration() -> None:
    cues = build_cues("A b c. D e. F g h i. J.", 13.7)

    assert cues[-1].end_seconds == 13.7
    for previous, current in zip(cues, cues[1:]):
        assert previous.end_seconds == current.start_seconds


@pytest.mark.parametrize(("script", "duration"), [("", 10.0), ("Hello.", 0.0)])
def test_no_cues(script: str, duration: float) -> None:
    assert build_cues(script, duration) == []


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "00:00:00,000"), (1.5, "00:00:01,500"), (61.25, "00:01:01,250"), (3723.004, "01:02:03,004")],
)
def test_srt_timestamp(seconds: float, expected: str) -> None:
    assert format_srt_timestamp(seconds) == expected


def test_to_srt() -> None:
    srt = to_srt(build_cues("Hello there. Bye.", 3.0))

    assert srt == (
        "1\n00:00:00,000 --> 00:00:02,000\nHello there.\n"
        "\n"
        "2\n00:00:02,000 --> 00:00:03,000\nBye.\n"
    )
