"""Text, speech and image generation via the Gemini API, with retry logic."""

import asyncio
import logging
import os

from google import genai
from google.genai import errors, types

from pamphlet_podcast.constants import (
    TEXT_MODEL,
    IMAGE_MODEL,
    TTS_MODELS,
    DEFAULT_QUALITY,
    GEMINI_RETRY_COUNT,
    GEMINI_RETRY_BASE_DELAY,
    RETRYABLE_STATUS_CODES,
    GEMINI_KEY_PREFIX,
)
from pamphlet_podcast.critics import get_speaker_tone
from pamphlet_podcast.errors import InvalidInput, UpstreamError
from pamphlet_podcast.models import InlineMedia
from pamphlet_podcast.wav import ensure_wav

logger = logging.getLogger(__name__)


def get_client() -> genai.Client:
    """Create a Gemini client from GEMINI_API_KEY."""
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise ValueError("GEMINI_API_KEY environment variable is required")
    if not api_key.startswith(GEMINI_KEY_PREFIX):
        raise ValueError("GEMINI_API_KEY appears to be invalid format")
    return genai.Client(api_key=api_key)


def _voice(name: str) -> types.VoiceConfig:
    return types.VoiceConfig(prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=name))


def build_speech_config(speakers: list[tuple[str, str]]) -> types.SpeechConfig:
    """One voice, or a two-speaker config keyed by script speaker name."""
    if not speakers:
        raise InvalidInput("Missing speakers")
    if len(speakers) > 2:
        raise InvalidInput(f"Speech synthesis takes at most 2 speakers, got {len(speakers)}")
    if len(speakers) == 1:
        return types.SpeechConfig(voice_config=_voice(speakers[0][1]))
    return types.SpeechConfig(
        multi_speaker_voice_config=types.MultiSpeakerVoiceConfig(
            speaker_voice_configs=[
                types.SpeakerVoiceConfig(speaker=speaker, voice_config=_voice(voice))
                for speaker, voice in speakers
            ]
        )
    )


def build_speech_prompt(script: str, speakers: list[tuple[str, str]]) -> str:
    directions = ". ".join(get_speaker_tone(speaker) for speaker, _ in speakers)
    return (
        "Generate natural, emotionally expressive speech for this podcast conversation. "
        f"{directions}:\n\n{script}"
    )


def _first_inline_part(response, label: str):
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        raise UpstreamError(f"No candidates in {label} response")
    for part in candidates[0].content.parts or []:
        if part.inline_data and part.inline_data.data:
            return part.inline_data
    raise UpstreamError(f"No inline data in {label} response")


class GeminiService:
    """Async facade over genai.Client used by every pipeline stage."""

    def __init__(
        self,
        client: genai.Client | None = None,
        retry_count: int = GEMINI_RETRY_COUNT,
        retry_base_delay: float = GEMINI_RETRY_BASE_DELAY,
    ):
        self._client = client
        self.retry_count = retry_count
        self.retry_base_delay = retry_base_delay

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def _generate(self, label: str, **kwargs) -> types.GenerateContentResponse:
        """generate_content with exponential backoff on 429/500/503 and connection errors."""
        last_error = None
        for attempt in range(self.retry_count):
            try:
                return await self.client.aio.models.generate_content(**kwargs)
            except errors.APIError as e:
                last_error = UpstreamError(f"{label} failed: {e.message or e}", status=e.code)
                if e.code not in RETRYABLE_STATUS_CODES:
                    raise last_error from e
            except (ConnectionError, TimeoutError) as e:
                last_error = UpstreamError(f"{label} failed: {e}")

            if attempt < self.retry_count - 1:
                delay = self.retry_base_delay * (2 ** attempt)
                logger.warning(
                    "%s attempt %d/%d failed (%s), retrying in %.1fs",
                    label, attempt + 1, self.retry_count, last_error, delay,
                )
                await asyncio.sleep(delay)

        raise last_error

    async def generate_text(
        self,
        prompt: str,
        model: str = TEXT_MODEL,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
        response_mime_type: str | None = None,
    ) -> str:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type=response_mime_type,
        )
        response = await self._generate("Text generation", model=model, contents=prompt, config=config)
        text = response.text
        if not text or not text.strip():
            raise UpstreamError("Text generation returned no text")
        return text.strip()

    async def generate_content(self, model: str, contents: list, generation_config: dict | None = None) -> list[dict]:
        """Pass-through request; returns the first candidate's parts as JSON-ready dicts."""
        response = await self._generate(
            "Content generation",
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(**(generation_config or {})),
        )
        candidates = response.candidates or []
        if not candidates or candidates[0].content is None:
            return []
        return [
            part.model_dump(mode="json", exclude_none=True, by_alias=True)
            for part in candidates[0].content.parts or []
        ]

    async def synthesize_speech(
        self,
        script: str,
        speakers: list[tuple[str, str]],
        quality: str = DEFAULT_QUALITY,
    ) -> InlineMedia:
        """Voice a "Speaker: line" script with one or two (speaker, voice) pairs. Returns WAV."""
        if not script.strip():
            raise InvalidInput("Missing script")
        model = TTS_MODELS.get(quality)
        if model is None:
            raise InvalidInput(f"Unknown quality tier: {quality}")

        config = types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=build_speech_config(speakers),
        )
        logger.info(
            "TTS request (%s): speakers=%s, %d chars",
            model, ", ".join(f"{s}({v})" for s, v in speakers), len(script),
        )
        response = await self._generate(
            "Speech synthesis",
            model=model,
            contents=build_speech_prompt(script, speakers),
            config=config,
        )
        inline = _first_inline_part(response, "speech")
        mime_type = inline.mime_type or "audio/L16;rate=24000"
        return InlineMedia(data=ensure_wav(inline.data, mime_type), mime_type="audio/wav")

    async def generate_image(self, prompt: str, model: str = IMAGE_MODEL) -> InlineMedia:
        response = await self._generate("Image generation", model=model, contents=prompt)
        inline = _first_inline_part(response, "image")
        return InlineMedia(data=inline.data, mime_type=inline.mime_type or "image/png")
