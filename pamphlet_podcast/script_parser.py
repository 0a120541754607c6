"""Parse "Speaker: line" dialogue text into transcript lines."""

import re

from pamphlet_podcast.models import ParseResult, TranscriptLine

# "SpeakerName: dialogue text"
_LINE_RE = re.compile(r"^([^:]+):\s*(.+)$")

# Markdown bold/italic wrapped around a speaker label: "**Chuck:** Hi" or "**Chuck**: Hi"
_BOLD_LABEL_RE = re.compile(r"^[*_]+([^*_:]+?)(:?)[*_]+(:?)")

# SEGMENT_BREAK, tolerating spacing and case drift in generated text
_BREAK_RE = re.compile(r"^\s*-{2,}\s*SEGMENT\s+BREAK\s*-{2,}\s*$", re.MULTILINE | re.IGNORECASE)


def _clean_line(line: str) -> str:
    """Strip markdown emphasis around a leading speaker label."""
    line = line.strip()
    match = _BOLD_LABEL_RE.match(line)
    colon = (match.group(2) or match.group(3)) if match else ""
    if colon:
        line = f"{match.group(1).strip()}{colon}{line[match.end():]}"
    return line


def parse_script(text: str, roster: set[str] | None = None) -> ParseResult:
    """Parse dialogue text into turns.

    Blank lines are ignored. Lines that do not match "Name: text", or whose
    speaker is outside the roster when one is given, are dropped and counted.
    """
    lines = []
    dropped = 0

    for raw in text.split("\n"):
        if not raw.strip():
            continue
        match = _LINE_RE.match(_clean_line(raw))
        if not match:
            dropped += 1
            continue
        speaker = match.group(1).strip()
        dialogue = match.group(2).strip()
        if not speaker or not dialogue or (roster is not None and speaker not in roster):
            dropped += 1
            continue
        lines.append(TranscriptLine(speaker=speaker, line=dialogue))

    return ParseResult(lines=lines, dropped=dropped)


def split_segment_breaks(text: str) -> list[str]:
    """Split text on segment-break marker lines. Empty chunks are kept."""
    return _BREAK_RE.split(text)


def format_script_for_tts(lines: list[TranscriptLine]) -> str:
    """Render turns in the "Speaker: line" layout the speech service expects."""
    return "\n".join(f"{t.speaker}: {t.line}" for t in lines)
