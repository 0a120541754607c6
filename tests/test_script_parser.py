"""Tests for dialogue script parsing."""

from pamphlet_podcast.models import TranscriptLine
from pamphlet_podcast.script_parser import format_script_for_tts, parse_script, split_segment_breaks


def test_parse_basic_dialogue():
    result = parse_script("Chuck: Hello there.\nJulian Pinter: Hello, Chuck.")
    assert result.lines == [
        TranscriptLine(speaker="Chuck", line="Hello there."),
        TranscriptLine(speaker="Julian Pinter", line="Hello, Chuck."),
    ]
    assert result.dropped == 0


def test_parse_counts_dropped_lines():
    """Stage directions and label-less lines are dropped but counted."""
    result = parse_script("Chuck: Hi.\n(laughter)\nJust some narration\nJulian: Hey.")
    assert [t.speaker for t in result.lines] == ["Chuck", "Julian"]
    assert result.dropped == 2


def test_parse_ignores_blank_lines():
    result = parse_script("\n\nChuck: Hi.\n   \n\nJulian: Hey.\n")
    assert len(result.lines) == 2
    assert result.dropped == 0


def test_parse_empty_dialogue_is_dropped():
    result = parse_script("Chuck:   \nJulian: Fine.")
    assert [t.speaker for t in result.lines] == ["Julian"]
    assert result.dropped == 1


def test_parse_keeps_colons_in_dialogue():
    result = parse_script("Margot: Consider this: the text reads itself.")
    assert result.lines[0].line == "Consider this: the text reads itself."


def test_parse_strips_whitespace():
    result = parse_script("  Chuck  :   Spaced out.  ")
    assert result.lines[0] == TranscriptLine(speaker="Chuck", line="Spaced out.")


def test_parse_strips_bold_labels():
    """Markdown around a speaker label does not leak into the speaker name."""
    result = parse_script("**Chuck:** Bold move.\n**Julian Pinter**: Italic next.\n_Rex_: Underscored.")
    assert [t.speaker for t in result.lines] == ["Chuck", "Julian Pinter", "Rex"]
    assert result.lines[0].line == "Bold move."


def test_parse_with_roster():
    result = parse_script("Chuck: Hi.\nNarrator: Meanwhile.\nJulian: Hey.", roster={"Chuck", "Julian"})
    assert [t.speaker for t in result.lines] == ["Chuck", "Julian"]
    assert result.dropped == 1


def test_split_segment_breaks():
    text = "Chuck: A\nJulian: B\n---SEGMENT BREAK---\nChuck: C\nRex: D"
    chunks = split_segment_breaks(text)
    assert len(chunks) == 2
    assert "Julian: B" in chunks[0]
    assert "Rex: D" in chunks[1]


def test_split_segment_breaks_tolerates_drift():
    """Case and spacing variations of the marker still split."""
    text = "Chuck: A\n  -- segment break --  \nChuck: B\n----Segment Break----\nChuck: C"
    assert len(split_segment_breaks(text)) == 3


def test_split_segment_breaks_keeps_empty_chunks():
    text = "Chuck: A\n---SEGMENT BREAK---\n---SEGMENT BREAK---\nChuck: B"
    chunks = split_segment_breaks(text)
    assert len(chunks) == 3
    assert chunks[1].strip() == ""


def test_split_without_marker():
    assert split_segment_breaks("Chuck: A\nJulian: B") == ["Chuck: A\nJulian: B"]


def test_inline_marker_text_is_not_a_break():
    assert len(split_segment_breaks("Chuck: no ---SEGMENT BREAK--- here")) == 1


def test_format_script_for_tts():
    lines = [TranscriptLine("Chuck", "Hi."), TranscriptLine("Julian Pinter", "Hello.")]
    assert format_script_for_tts(lines) == "Chuck: Hi.\nJulian Pinter: Hello."
