"""Podcast pipeline: script -> art -> audio -> stitch -> store.

States run idle -> generating_script -> generating_audio -> complete, with
error reachable from any non-terminal state. Stored audio short-circuits
the whole run, so a finished review is never synthesized twice.
"""

import asyncio
import base64
import logging
from typing import Callable

from pamphlet_podcast.constants import DEFAULT_QUALITY, MODERATOR, TTS_MODELS
from pamphlet_podcast.critics import get_voice_for_speaker
from pamphlet_podcast.errors import GenerationCancelled, InvalidInput
from pamphlet_podcast.gemini import GeminiService
from pamphlet_podcast.media import encode_data_url
from pamphlet_podcast.models import (
    FlatTranscript,
    PodcastProgress,
    ProgressStatus,
    Review,
    SegmentedTranscript,
    Transcript,
    TranscriptLine,
)
from pamphlet_podcast.script_generator import PodcastScriptGenerator
from pamphlet_podcast.script_parser import format_script_for_tts
from pamphlet_podcast.stitcher import stitch
from pamphlet_podcast.storage import PodcastStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PodcastProgress], None]

# Progress checkpoints (percent)
SCRIPT_START = 10
SCRIPT_DONE = 40
ART_DONE = 45
AUDIO_START = 50
AUDIO_DONE = 90
SAVING = 95
COMPLETE = 100


class CancellationToken:
    """Cooperative cancel flag checked before every remote call."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise GenerationCancelled("Podcast generation was cancelled")


class ProgressReporter:
    """Forwards progress to a callback, keeping it monotonic with one terminal report."""

    def __init__(self, callback: ProgressCallback | None = None):
        self.callback = callback
        self.progress = 0
        self.finished = False

    def _emit(self, report: PodcastProgress) -> None:
        if self.callback is None:
            return
        try:
            self.callback(report)
        except Exception:
            logger.warning("on_progress callback failed for status=%s", report.status.value, exc_info=True)

    def update(self, status: ProgressStatus, progress: int, message: str) -> None:
        if self.finished:
            return
        self.progress = max(self.progress, min(progress, COMPLETE))
        self._emit(PodcastProgress(status=status, progress=self.progress, message=message))

    def complete(self, message: str) -> None:
        if self.finished:
            return
        self.progress = COMPLETE
        self.finished = True
        self._emit(PodcastProgress(status=ProgressStatus.COMPLETE, progress=COMPLETE, message=message))

    def fail(self, error: BaseException) -> None:
        if self.finished:
            return
        self.finished = True
        self._emit(PodcastProgress(
            status=ProgressStatus.ERROR,
            progress=self.progress,
            message="Failed to generate podcast",
            error=str(error) or type(error).__name__,
        ))


def _speakers_for(lines: list[TranscriptLine], pair: tuple[str, str] | None = None) -> list[tuple[str, str]]:
    names = list(pair) if pair else list(dict.fromkeys(t.speaker for t in lines))
    return [(name, get_voice_for_speaker(name)) for name in names]


class PodcastOrchestrator:
    def __init__(
        self,
        gemini: GeminiService,
        store: PodcastStore | None = None,
        script_generator: PodcastScriptGenerator | None = None,
    ):
        self.gemini = gemini
        self.store = store if store is not None else PodcastStore()
        self.script_generator = script_generator or PodcastScriptGenerator(gemini)
        self._in_flight: dict[str, asyncio.Task] = {}

    async def get_existing_podcast(self, review_id: str) -> str | None:
        try:
            return await self.store.get_podcast_audio(review_id) or None
        except Exception:
            logger.error("Error retrieving podcast for %s", review_id, exc_info=True)
            return None

    async def has_podcast(self, review_id: str) -> bool:
        return await self.get_existing_podcast(review_id) is not None

    async def delete_podcast(self, review_id: str) -> None:
        await self.store.delete_podcast(review_id)

    async def generate_podcast(
        self,
        review: Review,
        is_editorial: bool = False,
        on_progress: ProgressCallback | None = None,
        quality: str = DEFAULT_QUALITY,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Generate (or fetch) the podcast for a review; returns an audio data URL.

        Failures are reported through on_progress as an error and re-raised.
        """
        reporter = ProgressReporter(on_progress)
        try:
            if quality not in TTS_MODELS:
                raise InvalidInput(f"Unknown quality tier: {quality}")

            existing = await self.store.get_podcast_audio(review.id)
            if existing:
                reporter.complete("Podcast already exists")
                return existing

            task = self._in_flight.get(review.id)
            if task is None:
                task = asyncio.ensure_future(self._run(review, is_editorial, reporter, quality, cancel_token))
                self._in_flight[review.id] = task
                task.add_done_callback(lambda _t: self._in_flight.pop(review.id, None))
                audio = await task
            else:
                logger.info("Joining in-flight podcast generation for %s", review.id)
                audio = await asyncio.shield(task)
        except BaseException as e:
            reporter.fail(e)
            raise

        reporter.complete("Podcast generated successfully!")
        return audio

    async def _run(
        self,
        review: Review,
        is_editorial: bool,
        reporter: ProgressReporter,
        quality: str,
        cancel_token: CancellationToken | None,
    ) -> str:
        token = cancel_token or CancellationToken()

        token.raise_if_cancelled()
        reporter.update(ProgressStatus.GENERATING_SCRIPT, SCRIPT_START, "Generating conversation script...")
        transcript = await self.script_generator.generate_script(review, is_editorial)
        speakers = transcript.speakers()
        logger.info("Script ready for %s: %d lines, speakers=%s", review.id, len(transcript.all_lines()), speakers)
        reporter.update(ProgressStatus.GENERATING_SCRIPT, SCRIPT_DONE, "Script generated, preparing audio...")

        token.raise_if_cancelled()
        metadata, art = await self._generate_art(review, transcript, is_editorial)
        reporter.update(ProgressStatus.GENERATING_SCRIPT, ART_DONE, "Artwork step finished")

        wav = await self._synthesize(transcript, reporter, quality, token)

        token.raise_if_cancelled()
        reporter.update(ProgressStatus.GENERATING_AUDIO, SAVING, "Audio generated, saving...")
        audio_data_url = encode_data_url(wav, "audio/wav")
        await self.store.save_podcast_audio(review.id, audio_data_url)
        if art is not None:
            await self.store.save_album_art(review.id, *art)
        metadata.update({
            "speakers": speakers,
            "segments": len(transcript.segments) if isinstance(transcript, SegmentedTranscript) else 1,
            "quality": quality,
        })
        await self.store.save_podcast_metadata(review.id, metadata)
        logger.info("Stored podcast for %s (%d WAV bytes)", review.id, len(wav))
        return audio_data_url

    async def _generate_art(
        self, review: Review, transcript: Transcript, is_editorial: bool,
    ) -> tuple[dict, tuple[str, str] | None]:
        """Album art (and an editorial title), held until the audio is stored. Failures are logged, never raised."""
        metadata = {}
        art = None
        critic_names = [name for name in transcript.speakers() if name != MODERATOR]

        try:
            image, prompt = await self.script_generator.generate_album_art(
                review, transcript, is_editorial=is_editorial, critic_names=critic_names,
            )
            art = (base64.b64encode(image.data).decode("ascii"), image.mime_type)
            metadata["artPrompt"] = prompt
        except Exception:
            logger.warning("Album art generation failed for %s, continuing without art", review.id, exc_info=True)

        if is_editorial:
            try:
                metadata["title"] = await self.script_generator.generate_title(transcript, summary=review.summary)
            except Exception:
                logger.warning("Title generation failed for %s, continuing without title", review.id, exc_info=True)

        return metadata, art

    async def _synthesize(
        self,
        transcript: Transcript,
        reporter: ProgressReporter,
        quality: str,
        token: CancellationToken,
    ) -> bytes:
        """One speech call for a flat script; sequential per-segment calls plus stitching otherwise."""
        if isinstance(transcript, FlatTranscript):
            reporter.update(ProgressStatus.GENERATING_AUDIO, AUDIO_START, "Generating audio...")
            token.raise_if_cancelled()
            result = await self.gemini.synthesize_speech(
                format_script_for_tts(transcript.lines), _speakers_for(transcript.lines), quality=quality,
            )
            reporter.update(ProgressStatus.GENERATING_AUDIO, AUDIO_DONE, "Audio generated")
            return result.data

        total = len(transcript.segments)
        buffers = []
        for i, segment in enumerate(transcript.segments):
            reporter.update(
                ProgressStatus.GENERATING_AUDIO,
                AUDIO_START + (AUDIO_DONE - AUDIO_START) * i // total,
                f"Generating audio for segment {i + 1}/{total}...",
            )
            token.raise_if_cancelled()
            logger.info("Synthesizing segment %d/%d (%s)", i + 1, total, " + ".join(segment.speakers))
            result = await self.gemini.synthesize_speech(
                format_script_for_tts(segment.script),
                _speakers_for(segment.script, segment.speakers),
                quality=quality,
            )
            buffers.append(result.data)

        reporter.update(ProgressStatus.GENERATING_AUDIO, AUDIO_DONE, f"Stitching {total} segments...")
        return stitch(buffers)
