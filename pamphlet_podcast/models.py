"""Data models for podcast production."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


@dataclass
class TranscriptLine:
    speaker: str       # "Chuck", "Julian Pinter", ...
    line: str


@dataclass
class Segment:
    speakers: tuple[str, str]          # exactly two distinct voices
    script: list[TranscriptLine]


@dataclass
class ParseResult:
    lines: list[TranscriptLine]
    dropped: int = 0   # lines that did not match "Name: text" or the roster


@dataclass
class FlatTranscript:
    """Two-speaker dialogue synthesized in one request."""

    lines: list[TranscriptLine]

    def all_lines(self) -> list[TranscriptLine]:
        return list(self.lines)

    def speakers(self) -> list[str]:
        return list(dict.fromkeys(line.speaker for line in self.lines))


@dataclass
class SegmentedTranscript:
    """Multi-speaker dialogue already split into two-speaker segments."""

    segments: list[Segment]

    def all_lines(self) -> list[TranscriptLine]:
        return [line for seg in self.segments for line in seg.script]

    def speakers(self) -> list[str]:
        return list(dict.fromkeys(line.speaker for line in self.all_lines()))


Transcript = Union[FlatTranscript, SegmentedTranscript]


class ProgressStatus(str, Enum):
    GENERATING_SCRIPT = "generating_script"
    GENERATING_AUDIO = "generating_audio"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class PodcastProgress:
    status: ProgressStatus
    progress: int      # 0-100
    message: str
    error: str | None = None


@dataclass
class RateLimitRecord:
    count: int
    reset_time: float  # clock value after which the window is over


@dataclass
class InlineMedia:
    data: bytes
    mime_type: str


@dataclass
class MediaReference:
    type: str          # "inline" or "blob"
    mime_type: str
    data: str | None = None    # base64 payload for inline
    url: str | None = None     # object-storage URL for blob


@dataclass
class Comment:
    username: str
    text: str
    persona_type: str = "user"     # critic type, "user" or "bot"
    critic: str | None = None      # critic type for critic replies
    replies: list["Comment"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Comment":
        return cls(
            username=data.get("username", ""),
            text=data.get("text", ""),
            persona_type=data.get("persona_type", "user"),
            critic=data.get("critic"),
            replies=[cls.from_dict(r) for r in data.get("replies", []) or []],
        )


@dataclass
class Review:
    """Review or editorial as handed over by the UI layer."""

    id: str
    title: str
    artist: str
    score: float
    summary: str
    body: list[str]
    notable_lyrics: str | None = None
    critic: str = "music"
    critic_name: str | None = None
    comments: list[Comment] = field(default_factory=list)
    youtube_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        """Build from the UI's JSON shape (review fields nested under "review")."""
        inner = data.get("review", {}) or {}
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            artist=data.get("artist", ""),
            score=inner.get("score", 0),
            summary=inner.get("summary", ""),
            body=list(inner.get("body", []) or []),
            notable_lyrics=inner.get("notable_lyrics_quoted"),
            critic=inner.get("critic") or "music",
            critic_name=inner.get("criticName"),
            comments=[Comment.from_dict(c) for c in data.get("comments", []) or []],
            youtube_url=data.get("youtubeUrl"),
        )
