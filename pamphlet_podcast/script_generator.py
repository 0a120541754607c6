"""Podcast script, title, album-art and banner generation."""

import logging
import re

from pamphlet_podcast.constants import (
    MODERATOR,
    SEGMENT_BREAK,
    PUBLICATION,
    TEXT_MODEL,
    TITLE_MODEL,
    SCRIPT_TEMPERATURE,
    IMAGE_PROMPT_TEMPERATURE,
    IMAGE_PROMPT_MAX_TOKENS,
    TITLE_TEMPERATURE,
    TITLE_MAX_TOKENS,
    ART_SCRIPT_PREVIEW_CHARS,
    TITLE_SCRIPT_PREVIEW_CHARS,
    BANNER_TEXT_PREVIEW_CHARS,
)
from pamphlet_podcast.critics import (
    CriticInfo,
    EDITOR,
    get_critic_info,
    get_vocal_style,
    participating_critics,
    speaker_aliases,
)
from pamphlet_podcast.errors import UpstreamError
from pamphlet_podcast.gemini import GeminiService
from pamphlet_podcast.models import (
    FlatTranscript,
    InlineMedia,
    Review,
    SegmentedTranscript,
    Transcript,
    TranscriptLine,
)
from pamphlet_podcast.script_parser import parse_script, format_script_for_tts
from pamphlet_podcast.segmenter import segment_lines, segment_transcript

logger = logging.getLogger(__name__)

_FORMAT_RULES = (
    'DO NOT include any stage directions, descriptions, or markdown. '
    'JUST the dialogue with "SpeakerName: Line" format.'
)


def build_one_on_one_prompt(review: Review, critic: CriticInfo, host: CriticInfo = EDITOR) -> str:
    body = "\n\n".join(review.body)
    quote = f'- Notable Quote: "{review.notable_lyrics}"\n' if review.notable_lyrics else ""
    return f"""You are a podcast script generator for the "{PUBLICATION}" podcast.

Generate a natural, engaging 3-5 minute conversation between:

**{host.name} (Host)**: {host.bio}
VOCAL STYLE: Make {host.speaker} sound warm, straightforward, and conversational - a confident "regular guy", not pretentious.

**{critic.name} (Guest)**: {critic.bio}
VOCAL STYLE: {get_vocal_style(critic.name)}

CONTEXT:
- Review Title: "{review.title}"
- Artist/Subject: {review.artist}
- Score: {review.score}/10
- Summary: "{review.summary}"
{quote}
REVIEW CONTENT:
{body}

PODCAST GUIDELINES:
1. {host.speaker} opens the show warmly, introduces the guest and the work being discussed
2. {host.speaker} asks the critic to explain their review and score
3. Include interruptions, agreements and disagreements
4. {host.speaker} challenges overly pretentious takes; the critic defends with examples from the review
5. Keep the total conversation to 15-25 exchanges
6. {host.speaker} wraps up with a brief closing statement

FORMAT:
Return ONLY the script in this exact format (no additional commentary):

{host.speaker}: [opening line]
{critic.speaker}: [response]
{host.speaker}: [next line]
...and so on

{_FORMAT_RULES}"""


def build_roundtable_prompt(review: Review, critics: list[CriticInfo], host: CriticInfo = EDITOR) -> str:
    body = "\n\n".join(review.body)
    panel = "\n\n".join(
        f"**{c.name}**: {c.bio}\nVOCAL STYLE: {get_vocal_style(c.name)}" for c in critics
    )
    thread = "\n".join(f"{c.username}: {c.text}" for c in review.comments)
    names = '", "'.join([host.speaker] + [c.speaker for c in critics])
    return f"""You are a podcast script generator for the "{PUBLICATION}" editorial roundtable podcast.

Generate a natural, engaging 5-8 minute roundtable discussion between:

**{host.name} (Host/Moderator)**: {host.bio}
VOCAL STYLE: Make {host.speaker} sound warm but authoritative as a moderator - friendly but in charge.

PANELISTS:
{panel}

DISCUSSION TOPIC:
- Work: "{review.artist}" - "{review.title}"
- Lead Review Score: {review.score}/10
- Lead Review Summary: "{review.summary}"

REVIEW CONTENT:
{body}

EDITORIAL COMMENTS TO REFERENCE:
{thread}

ROUNDTABLE GUIDELINES:
1. {host.speaker} opens the show, introduces the work and all panelists
2. {host.speaker} asks the lead reviewer to present their take first
3. {host.speaker} talks with ONE panelist at a time; panelists respond to points others made earlier
4. Each panelist speaks at least 3-4 times, across several turns with {host.speaker}
5. End with {host.speaker} asking each panelist for a final thought, then a brief closing
6. Total: 25-40 exchanges

SEGMENT PROTOCOL:
Every time {host.speaker} turns from one panelist to a different panelist, put a line containing only
{SEGMENT_BREAK}
Between two markers only {host.speaker} and ONE panelist may speak.

FORMAT:
Return ONLY the script in this exact format (no additional commentary):

{host.speaker}: [opening line]
{critics[0].speaker if critics else "Critic"}: [response]
{SEGMENT_BREAK}
{host.speaker}: [turning to the next panelist]
...and so on

Use exact names: "{names}"

{_FORMAT_RULES}"""


def _script_excerpt(transcript: Transcript, limit: int) -> str:
    if isinstance(transcript, SegmentedTranscript):
        text = "\n\n".join(format_script_for_tts(seg.script) for seg in transcript.segments)
    else:
        text = format_script_for_tts(transcript.lines)
    return text[:limit]


def clean_title(raw: str) -> str:
    title = raw.strip()
    title = re.sub(r"^[\"']|[\"']$", "", title)
    return re.sub(r"\s+", " ", title).strip()


class PodcastScriptGenerator:
    """Builds prompts and turns generated text into a Flat or Segmented transcript."""

    def __init__(self, gemini: GeminiService, model: str = TEXT_MODEL):
        self.gemini = gemini
        self.model = model

    def panel_for(self, review: Review, is_editorial: bool) -> list[CriticInfo]:
        """Guests for the episode. The lead reviewer always sits first."""
        if not is_editorial:
            return [get_critic_info(review.critic)]
        critic_types = participating_critics(review.comments, lead=review.critic)
        if review.critic not in critic_types:
            critic_types.insert(0, review.critic)
        return [get_critic_info(t) for t in critic_types]

    async def generate_script(self, review: Review, is_editorial: bool = False) -> Transcript:
        """Request a dialogue and decide, once, whether it needs segmenting.

        More than one panelist means a Segmented transcript. A single-guest
        script that still comes back with extra voices is segmented too.
        """
        panel = self.panel_for(review, is_editorial)
        if is_editorial:
            prompt = build_roundtable_prompt(review, panel)
        else:
            prompt = build_one_on_one_prompt(review, panel[0])

        logger.info(
            "Generating %s script for %r with %s",
            "roundtable" if is_editorial else "one-on-one", review.title,
            ", ".join(c.name for c in panel),
        )
        text = await self.gemini.generate_text(prompt, model=self.model, temperature=SCRIPT_TEMPERATURE)
        return self.transcript_from_text(text, segmented=len(panel) > 1)

    def transcript_from_text(self, text: str, segmented: bool) -> Transcript:
        aliases = speaker_aliases()

        if segmented:
            segments, dropped = segment_transcript(text, moderator=MODERATOR, aliases=aliases)
            if dropped:
                logger.info("Dropped %d unparseable script lines", dropped)
            if not segments:
                raise UpstreamError("Generated podcast script was empty")
            logger.info("Roundtable script: %d segments", len(segments))
            return SegmentedTranscript(segments=segments)

        result = parse_script(text)
        if result.dropped:
            logger.info("Dropped %d unparseable script lines", result.dropped)
        lines = [TranscriptLine(speaker=aliases.get(t.speaker, t.speaker), line=t.line) for t in result.lines]
        if not lines:
            raise UpstreamError("Generated podcast script was empty")

        flat = FlatTranscript(lines=lines)
        if len(flat.speakers()) > 2:
            logger.warning("One-on-one script has %d speakers, segmenting", len(flat.speakers()))
            return SegmentedTranscript(segments=segment_lines([lines], moderator=MODERATOR))
        return flat

    async def generate_title(
        self,
        transcript: Transcript,
        summary: str | None = None,
        verdicts: list[dict] | None = None,
    ) -> str:
        """Short catchy title for an editorial podcast."""
        context = ""
        if verdicts:
            context += "\n\nMedia discussed:\n"
            for v in verdicts:
                context += f'- "{v.get("mediaTitle")}" by {v.get("mediaArtist")} ({v.get("verdict")})\n'
        if summary:
            context += f"\n\nEditorial summary: {summary}\n"

        prompt = f"""Generate a short, catchy title for this editorial podcast discussion. The title should be 4-6 words that capture the main theme or debate.
{context}
Podcast script excerpt:
{_script_excerpt(transcript, TITLE_SCRIPT_PREVIEW_CHARS)}

Requirements:
- 4-6 words only
- NO quotation marks
- NO generic phrases like "Editorial Discussion" or "Roundtable"
- Focus on the actual topic being debated

Return ONLY the title, nothing else."""

        raw = await self.gemini.generate_text(
            prompt, model=TITLE_MODEL, temperature=TITLE_TEMPERATURE, max_output_tokens=TITLE_MAX_TOKENS,
        )
        title = clean_title(raw)
        if not title:
            raise UpstreamError("No title generated")
        return title

    async def _render_image(self, request: str) -> tuple[InlineMedia, str]:
        """Two-step image flow: text model writes the prompt, image model draws it."""
        image_prompt = await self.gemini.generate_text(
            request,
            model=self.model,
            temperature=IMAGE_PROMPT_TEMPERATURE,
            max_output_tokens=IMAGE_PROMPT_MAX_TOKENS,
        )
        logger.info("Generated image prompt: %s", image_prompt[:200])
        return await self.gemini.generate_image(image_prompt), image_prompt

    async def generate_album_art(
        self,
        review: Review,
        transcript: Transcript,
        is_editorial: bool = False,
        critic_names: list[str] | None = None,
    ) -> tuple[InlineMedia, str]:
        """Square cover art; returns (image, image_prompt)."""
        excerpt = _script_excerpt(transcript, ART_SCRIPT_PREVIEW_CHARS)
        if is_editorial:
            details = (
                f'- Title: "{review.title}"\n- Subject: {review.artist}\n'
                f"- Format: Editorial roundtable discussion\n- Host: {EDITOR.name} ({EDITOR.title})\n"
                f"- Panelists: {', '.join(critic_names) if critic_names else 'Various critics'}"
            )
        else:
            details = (
                f'- Review Title: "{review.title}"\n- Subject/Artist: {review.artist}\n'
                f"- Format: Discussion between {EDITOR.name} (host) and the critic"
            )
        request = f"""Create a vivid, descriptive image generation prompt for podcast album art for the "{PUBLICATION}" podcast.

PODCAST DETAILS:
{details}

PODCAST SCRIPT EXCERPT (first part of the conversation):
{excerpt}
[...continued]

STYLE REQUIREMENTS:
- Bold, vintage newspaper or magazine cover aesthetic
- High contrast, dramatic lighting
- Visual elements representing the subject matter discussed in the script
- Square format (1:1 aspect ratio)

Create a detailed, single-paragraph image generation prompt (150-200 words) describing scene, composition, style, lighting, and mood.

Return ONLY the image prompt, no additional commentary."""
        return await self._render_image(request)

    async def generate_banner(
        self,
        title: str,
        review_text: str | list[str],
        artist: str | None = None,
        is_editorial: bool = False,
        critic_names: list[str] | None = None,
    ) -> tuple[InlineMedia, str]:
        """Wide header image for a review or editorial; returns (image, image_prompt)."""
        if isinstance(review_text, list):
            review_text = "\n\n".join(review_text)
        excerpt = review_text[:BANNER_TEXT_PREVIEW_CHARS]
        kind = "an editorial roundtable discussion" if is_editorial else "a review"
        critics = f"\n- Critics: {', '.join(critic_names)}" if critic_names else ""
        request = f"""Create a vivid, descriptive image generation prompt for a banner image for "{PUBLICATION}".

DETAILS:
- Title: "{title}"
- Subject: {artist or 'Various topics'}
- Format: {kind}{critics}

TEXT EXCERPT:
{excerpt}
[...continued]

STYLE REQUIREMENTS:
- Vintage newspaper masthead or magazine cover style, high contrast, dramatic lighting
- Wide horizontal format (16:9)
- Cinematic, eye-catching composition representing the themes discussed

Create a detailed, single-paragraph image generation prompt (150-200 words).

Return ONLY the image prompt, no additional commentary."""
        return await self._render_image(request)
