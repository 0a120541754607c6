"""Critic roster, voice assignment, and per-speaker delivery directions."""

import hashlib
import logging
from dataclasses import dataclass

from pamphlet_podcast.constants import MODERATOR, DEFAULT_VOICE
from pamphlet_podcast.errors import InvalidInput
from pamphlet_podcast.models import Comment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CriticInfo:
    name: str
    username: str
    title: str
    bio: str
    spoken_name: str = ""   # name used in scripts; defaults to the full name

    @property
    def speaker(self) -> str:
        return self.spoken_name or self.name


CRITICS = {
    "music": CriticInfo(
        name="Julian Pinter",
        username="JulianPinter",
        title="Chief Critic",
        bio="Chief Critic, has a headache.",
    ),
    "film": CriticInfo(
        name="Rex Beaumont",
        username="RexBeaumont",
        title="Film Critic",
        bio="Film Critic, watches everything at 1.5x speed.",
    ),
    "literary": CriticInfo(
        name="Margot Ashford",
        username="MargotAshford",
        title="Literary Critic",
        bio="Literary Critic, three PhDs and counting.",
    ),
    "business": CriticInfo(
        name="Patricia Chen",
        username="PatriciaChen",
        title="Business Editor",
        bio="Business Editor, zero tolerance for corporate jargon.",
    ),
}

EDITOR = CriticInfo(
    name="Chuck Morrison",
    username="ChuckMorrison",
    title="Editor-in-Chief",
    bio="Editor-in-Chief, likes it loud and simple.",
    spoken_name=MODERATOR,
)

# Roster voices, keyed by both first and full names
VOICE_MAP = {
    "Chuck": "Kore",
    "Chuck Morrison": "Kore",
    "Julian": "Puck",
    "Julian Pinter": "Puck",
    "Rex": "Algenib",
    "Rex Beaumont": "Algenib",
    "Margot": "Sadaltager",
    "Margot Ashford": "Sadaltager",
    "Patricia": "Alnilam",
    "Patricia Chen": "Alnilam",
}

# Remaining prebuilt voices for speakers outside the roster
VOICE_POOL = [
    "Zephyr",
    "Charon",
    "Fenrir",
    "Leda",
    "Orus",
    "Aoede",
    "Callirrhoe",
    "Autonoe",
    "Enceladus",
    "Iapetus",
    "Umbriel",
    "Algieba",
    "Despina",
    "Erinome",
    "Laomedeia",
    "Achernar",
    "Schedar",
    "Gacrux",
    "Pulcherrima",
    "Achird",
    "Zubenelgenubi",
    "Vindemiatrix",
    "Sadachbia",
    "Sulafat",
]

VOCAL_STYLES = {
    "Julian Pinter": (
        "Make Julian sound pretentious, sardonic, and slightly dismissive, with dramatic "
        "pauses and sarcastic emphasis."
    ),
    "Rex Beaumont": (
        "Make Rex sound serious and dismissive, with a gravelly, authoritative tone, "
        "speaking slowly and deliberately."
    ),
    "Margot Ashford": (
        "Make Margot sound academic and theoretical, measured and professorial, with "
        "flashes of excitement about literary theory."
    ),
    "Patricia Chen": (
        "Make Patricia sound no-nonsense, direct, and professional, impatient with "
        "corporate jargon."
    ),
}

DEFAULT_VOCAL_STYLE = "Speak naturally with appropriate emotion and emphasis."

# Substring of a lowercased speaker name -> delivery direction for the speech prompt
_TONES = [
    (("chuck", "morrison"), "should sound conversational, friendly, curious, and occasionally amused - like an everyman host engaging with an intellectual guest"),
    (("julian", "pinter"), "should sound intellectual, sardonic, articulate, and world-weary - a pretentious critic who occasionally shows genuine passion"),
    (("rex", "beaumont"), "should sound theatrical, dramatic, and intellectual - a film critic with cinematic gravitas"),
    (("margot", "ashford"), "should sound precise, academic, and measured - a literature professor with quiet authority"),
    (("patricia", "chen"), "should sound professional, confident, and analytical - a business editor with sharp insights"),
]


def get_critic_info(critic_type: str) -> CriticInfo:
    try:
        return CRITICS[critic_type]
    except KeyError:
        raise InvalidInput(f"Unknown critic type: {critic_type}") from None


def get_staff_info(staff_type: str) -> CriticInfo:
    if staff_type == "editor":
        return EDITOR
    return get_critic_info(staff_type)


def speaker_aliases() -> dict[str, str]:
    """Map every spoken variant of a roster name to its canonical script name."""
    aliases = {EDITOR.name: EDITOR.speaker, EDITOR.speaker: EDITOR.speaker}
    for info in CRITICS.values():
        aliases[info.name] = info.speaker
        aliases[info.name.split()[0]] = info.speaker
    return aliases


def _hash_voice(speaker: str, pool: list[str]) -> str:
    """Deterministic voice assignment via sha256 hash."""
    h = hashlib.sha256(speaker.encode()).hexdigest()
    return pool[int(h, 16) % len(pool)]


def get_voice_for_speaker(speaker: str) -> str:
    """Roster voice if known, else a stable hash pick from the unused pool."""
    voice = VOICE_MAP.get(speaker)
    if voice:
        return voice
    used = set(VOICE_MAP.values())
    pool = [v for v in VOICE_POOL if v not in used] or [DEFAULT_VOICE]
    voice = _hash_voice(speaker, pool)
    logger.info("No roster voice for %r, assigned %s", speaker, voice)
    return voice


def get_vocal_style(name: str) -> str:
    return VOCAL_STYLES.get(name, DEFAULT_VOCAL_STYLE)


def get_speaker_tone(speaker: str) -> str:
    lowered = speaker.lower()
    for needles, tone in _TONES:
        if any(n in lowered for n in needles):
            return f"{speaker} {tone}"
    return f"{speaker} should speak naturally with appropriate emotion"


def participating_critics(comments: list[Comment], lead: str | None = None) -> list[str]:
    """Critic types taking part in an editorial thread, in first-seen order.

    Falls back to the lead critic when nobody from the roster commented.
    """
    seen = []

    def add(critic_type: str | None) -> None:
        if critic_type in CRITICS and critic_type not in seen:
            seen.append(critic_type)

    for comment in comments:
        if comment.persona_type not in ("user", "bot"):
            add(comment.persona_type)
        for reply in comment.replies:
            if reply.critic and reply.persona_type != "user":
                add(reply.critic)

    if not seen and lead in CRITICS:
        seen.append(lead)
    return seen
