"""Split multi-speaker dialogue into the two-speaker segments TTS can voice.

The speech service accepts exactly two voices per request. Roundtable
scripts are generated with segment-break markers wherever the moderator
turns to another panelist; each marker-delimited chunk becomes a segment.
Chunks that still carry more than one non-moderator voice are force-split
on every change of non-moderator speaker, so each piece pairs the
moderator with one guest. Conversational order is never changed.
"""

import logging

from pamphlet_podcast.constants import MODERATOR, FALLBACK_GUEST
from pamphlet_podcast.models import Segment, TranscriptLine
from pamphlet_podcast.script_parser import parse_script, split_segment_breaks

logger = logging.getLogger(__name__)


def _guests_in(lines: list[TranscriptLine], moderator: str) -> list[str]:
    return list(dict.fromkeys(t.speaker for t in lines if t.speaker != moderator))


def _force_split(lines: list[TranscriptLine], moderator: str) -> list[tuple[str | None, list[TranscriptLine]]]:
    """Close a piece each time the non-moderator speaker changes.

    Moderator lines stay with the piece they were spoken in. A guest who
    returns after someone else has spoken gets a fresh piece.
    """
    pieces = []
    current_guest = None
    current = []

    for turn in lines:
        if turn.speaker != moderator:
            if current_guest is not None and turn.speaker != current_guest:
                pieces.append((current_guest, current))
                current = []
            current_guest = turn.speaker
        current.append(turn)

    if current:
        pieces.append((current_guest, current))
    return pieces


def _pair(encountered: list[str], moderator: str, fallback_guest: str) -> tuple[str, str]:
    """Pad a one-voice speaker list to exactly two distinct names."""
    if len(encountered) >= 2:
        return (encountered[0], encountered[1])
    if not encountered:
        return (moderator, fallback_guest)
    only = encountered[0]
    if only == moderator:
        return (moderator, fallback_guest)
    return (moderator, only)


def segment_lines(
    chunks: list[list[TranscriptLine]],
    moderator: str = MODERATOR,
    default_guest: str = FALLBACK_GUEST,
) -> list[Segment]:
    """Turn marker-delimited chunks of turns into two-speaker segments."""
    all_lines = [t for chunk in chunks for t in chunk]
    all_guests = _guests_in(all_lines, moderator)

    segments = []
    last_guest = None

    def fallback() -> str:
        # Nearest guest already heard, else the first guest anywhere, else the default
        return last_guest or (all_guests[0] if all_guests else default_guest)

    for index, chunk in enumerate(chunks):
        if not chunk:
            continue

        speakers = list(dict.fromkeys(t.speaker for t in chunk))
        guests = _guests_in(chunk, moderator)

        if len(speakers) <= 2 and len(guests) <= 1:
            pair = _pair(speakers, moderator, fallback())
            segments.append(Segment(speakers=pair, script=list(chunk)))
            if guests:
                last_guest = guests[0]
            continue

        pieces = _force_split(chunk, moderator)
        logger.warning(
            "Chunk %d has %d speakers (%s); force-split into %d segments",
            index + 1, len(speakers), ", ".join(speakers), len(pieces),
        )
        for guest, lines in pieces:
            if guest is None:
                guest = fallback()
            segments.append(Segment(speakers=(moderator, guest), script=lines))
            last_guest = guest

    return segments


def segment_transcript(
    text: str,
    moderator: str = MODERATOR,
    roster: set[str] | None = None,
    aliases: dict[str, str] | None = None,
    default_guest: str = FALLBACK_GUEST,
) -> tuple[list[Segment], int]:
    """Parse marker-delimited dialogue text into segments.

    Returns (segments, dropped_line_count). aliases maps spoken variants
    ("Chuck Morrison") to the canonical speaker names used for voices.
    """
    chunks = []
    dropped = 0
    for chunk_text in split_segment_breaks(text):
        result = parse_script(chunk_text)
        dropped += result.dropped
        lines = result.lines
        if aliases:
            lines = [TranscriptLine(speaker=aliases.get(t.speaker, t.speaker), line=t.line) for t in lines]
        if roster is not None:
            kept = [t for t in lines if t.speaker in roster]
            dropped += len(lines) - len(kept)
            lines = kept
        chunks.append(lines)

    return segment_lines(chunks, moderator=moderator, default_guest=default_guest), dropped
