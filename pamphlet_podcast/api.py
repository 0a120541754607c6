"""
Pamphlet Podcast HTTP service.

POST /api/gemini/generate                   rate-limited pass-through to Gemini
POST /api/podcast/generate                  full pipeline for one review (rate-limited)
GET  /api/podcast/{review_id}               stored podcast, 404 when absent
POST /api/podcast/generate-audio            speech for a "Speaker: line" script
POST /api/podcast/generate-album-art        square cover art for a podcast
POST /api/podcast/generate-editorial-title  short title for a roundtable
POST /api/podcast/convert-to-mp3            tagged MP3 from WAV
POST /api/podcast/stitch                    join WAV data URLs
POST /api/generate-banner                   wide banner image
POST /api/media/upload                      inline or object-storage placement
GET  /health
"""

import base64
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from pamphlet_podcast.constants import VERSION
from pamphlet_podcast.critics import get_voice_for_speaker
from pamphlet_podcast.errors import (
    FormatMismatch,
    InvalidInput,
    PodcastError,
    RateLimitExceeded,
    UpstreamError,
)
from pamphlet_podcast.exporter import convert_to_mp3
from pamphlet_podcast.gemini import GeminiService
from pamphlet_podcast.media import (
    VercelBlobStore,
    decode_data_url,
    encode_data_url,
    upload_media_if_needed,
)
from pamphlet_podcast.models import FlatTranscript, InlineMedia, PodcastProgress, Review
from pamphlet_podcast.orchestrator import PodcastOrchestrator
from pamphlet_podcast.rate_limiter import RateLimiter
from pamphlet_podcast.schemas import (
    AlbumArtRequest,
    BannerRequest,
    ConvertToMp3Request,
    EditorialTitleRequest,
    EditorialTitleResponse,
    ErrorResponse,
    GeminiGenerateRequest,
    GeminiGenerateResponse,
    GenerateAudioRequest,
    GenerateAudioResponse,
    GeneratePodcastRequest,
    GeneratePodcastResponse,
    ImageResponse,
    MediaReferenceResponse,
    MediaUploadRequest,
    Mp3Response,
    ProgressReport,
    SpeakerVoice,
    StitchRequest,
    StitchResponse,
    StoredPodcastResponse,
)
from pamphlet_podcast.script_parser import parse_script
from pamphlet_podcast.stitcher import stitch_wav_files
from pamphlet_podcast.storage import FileKeyValueStore, PodcastStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

_ERRORS = {400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def client_ip(request: Request) -> str:
    """First x-forwarded-for hop, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def rate_limited(request: Request) -> None:
    request.app.state.limiter.enforce(client_ip(request))


def status_for(e: PodcastError) -> int:
    if isinstance(e, (InvalidInput, FormatMismatch)):
        return 400
    if isinstance(e, RateLimitExceeded):
        return 429
    if isinstance(e, UpstreamError):
        if e.status and 400 <= e.status < 600:
            return e.status
        return 502
    return 500


def _review_from(data: dict) -> Review:
    if "id" not in data:
        raise InvalidInput("Missing review id")
    return Review.from_dict(data)


def _transcript_from(script: str) -> FlatTranscript:
    lines = parse_script(script).lines
    if not lines:
        raise InvalidInput("Script has no \"Speaker: line\" dialogue")
    return FlatTranscript(lines=lines)


def _image_response(image: InlineMedia, prompt: str) -> ImageResponse:
    return ImageResponse(
        image_data=base64.b64encode(image.data).decode("ascii"),
        mime_type=image.mime_type,
        prompt=prompt,
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/gemini/generate", response_model=GeminiGenerateResponse, responses=_ERRORS)
async def gemini_generate(body: GeminiGenerateRequest, request: Request, _limit: None = Depends(rate_limited)):
    parts = await request.app.state.gemini.generate_content(body.model, body.contents, body.generation_config)
    return GeminiGenerateResponse(parts=parts)


@router.post("/podcast/generate", response_model=GeneratePodcastResponse, responses=_ERRORS)
async def generate_podcast(body: GeneratePodcastRequest, request: Request, _limit: None = Depends(rate_limited)):
    """Run the whole pipeline and return the audio with every progress report."""
    review = _review_from(body.review)
    reports: list[PodcastProgress] = []

    logger.info("Podcast requested for review_id=%s (editorial=%s, quality=%s)", review.id, body.is_editorial, body.quality)
    audio = await request.app.state.orchestrator.generate_podcast(
        review, is_editorial=body.is_editorial, on_progress=reports.append, quality=body.quality,
    )

    return GeneratePodcastResponse(
        review_id=review.id,
        audio_data=audio,
        progress=[
            ProgressReport(status=r.status.value, progress=r.progress, message=r.message, error=r.error)
            for r in reports
        ],
    )


@router.get("/podcast/{review_id}", response_model=StoredPodcastResponse)
async def get_podcast(review_id: str, request: Request):
    orchestrator = request.app.state.orchestrator
    audio = await orchestrator.get_existing_podcast(review_id)
    if audio is None:
        raise HTTPException(status_code=404, detail="Podcast not found")
    return StoredPodcastResponse(
        review_id=review_id,
        audio_data=audio,
        metadata=await orchestrator.store.get_podcast_metadata(review_id),
        album_art=await orchestrator.store.get_album_art(review_id),
    )


@router.post("/podcast/generate-audio", response_model=GenerateAudioResponse, responses=_ERRORS)
async def generate_audio(body: GenerateAudioRequest, request: Request):
    if body.speakers:
        speakers = [(s.speaker, s.voice or get_voice_for_speaker(s.speaker)) for s in body.speakers]
    else:
        names = _transcript_from(body.script).speakers()
        speakers = [(name, get_voice_for_speaker(name)) for name in names]

    audio = await request.app.state.gemini.synthesize_speech(body.script, speakers, quality=body.quality)
    ref = await upload_media_if_needed(
        base64.b64encode(audio.data).decode("ascii"),
        audio.mime_type,
        body.filename,
        blob_store=request.app.state.blob_store,
    )
    return GenerateAudioResponse(
        audio=MediaReferenceResponse(**asdict(ref)),
        speakers=[SpeakerVoice(speaker=s, voice=v) for s, v in speakers],
        quality=body.quality,
    )


@router.post("/podcast/generate-album-art", response_model=ImageResponse, responses=_ERRORS)
async def generate_album_art(body: AlbumArtRequest, request: Request):
    image, prompt = await request.app.state.script_generator.generate_album_art(
        _review_from(body.review),
        _transcript_from(body.script),
        is_editorial=body.is_editorial,
        critic_names=body.critic_names,
    )
    return _image_response(image, prompt)


@router.post("/podcast/generate-editorial-title", response_model=EditorialTitleResponse, responses=_ERRORS)
async def generate_editorial_title(body: EditorialTitleRequest, request: Request):
    title = await request.app.state.script_generator.generate_title(
        _transcript_from(body.script), summary=body.summary, verdicts=body.verdicts,
    )
    return EditorialTitleResponse(title=title)


@router.post("/podcast/convert-to-mp3", response_model=Mp3Response, responses=_ERRORS)
def convert_podcast_to_mp3(body: ConvertToMp3Request):
    wav, _ = decode_data_url(body.wav_data)
    album_art = None
    if body.album_art:
        data, mime_type = decode_data_url(body.album_art)
        album_art = InlineMedia(data=data, mime_type=mime_type)

    mp3 = convert_to_mp3(wav, body.title, artist=body.artist, album_art=album_art)
    return Mp3Response(mp3_data=encode_data_url(mp3, "audio/mpeg"), size_bytes=len(mp3))


@router.post("/podcast/stitch", response_model=StitchResponse, responses=_ERRORS)
def stitch_audio(body: StitchRequest):
    return StitchResponse(audio_data=stitch_wav_files(body.audio_files), count=len(body.audio_files))


@router.post("/generate-banner", response_model=ImageResponse, responses=_ERRORS)
async def generate_banner(body: BannerRequest, request: Request):
    image, prompt = await request.app.state.script_generator.generate_banner(
        body.title,
        body.review_text,
        artist=body.artist,
        is_editorial=body.is_editorial,
        critic_names=body.critic_names,
    )
    response = _image_response(image, prompt)
    if body.content_id:
        await request.app.state.orchestrator.store.save_banner(body.content_id, response.image_data, image.mime_type)
    return response


@router.post("/media/upload", response_model=MediaReferenceResponse, responses=_ERRORS)
async def upload_media(body: MediaUploadRequest, request: Request):
    ref = await upload_media_if_needed(
        body.data, body.mime_type, body.filename, blob_store=request.app.state.blob_store,
    )
    return MediaReferenceResponse(**asdict(ref))


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

async def podcast_error_handler(request: Request, exc: PodcastError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s rejected (%d): %s", request.method, request.url.path, status, exc)
    return JSONResponse(status_code=status, content={"error": str(exc), "status": status})


def create_app(
    gemini: GeminiService | None = None,
    store: PodcastStore | None = None,
    orchestrator: PodcastOrchestrator | None = None,
    limiter: RateLimiter | None = None,
    blob_store: VercelBlobStore | None = None,
) -> FastAPI:
    """Build the service. Collaborators default to the environment-configured ones."""
    app = FastAPI(title="Pamphlet Podcast", version=VERSION)

    gemini = gemini or GeminiService()
    if orchestrator is None:
        orchestrator = PodcastOrchestrator(gemini, store or PodcastStore(FileKeyValueStore.from_env()))

    app.state.gemini = gemini
    app.state.orchestrator = orchestrator
    app.state.script_generator = orchestrator.script_generator
    app.state.limiter = limiter or RateLimiter()
    app.state.blob_store = blob_store if blob_store is not None else VercelBlobStore.from_env()

    app.add_exception_handler(PodcastError, podcast_error_handler)
    app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
