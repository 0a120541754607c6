"""
Pydantic models for request/response validation.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pamphlet_podcast.constants import DEFAULT_ARTIST, DEFAULT_QUALITY


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ Request Models ============


class GeminiGenerateRequest(ApiModel):
    """Raw pass-through request to the generative service."""

    model: str = Field(..., min_length=1)
    contents: Any = Field(..., description="Prompt string or list of content objects")
    generation_config: Optional[dict] = None


class SpeakerVoice(ApiModel):
    speaker: str = Field(..., min_length=1)
    voice: Optional[str] = Field(default=None, description="Prebuilt voice; roster/hash pick when omitted")


class GenerateAudioRequest(ApiModel):
    script: str = Field(..., min_length=1, description='"Speaker: line" dialogue')
    speakers: Optional[list[SpeakerVoice]] = Field(
        default=None, description="At most two; derived from the script when omitted"
    )
    quality: Literal["high", "fast"] = DEFAULT_QUALITY
    filename: str = "podcast.wav"


class AlbumArtRequest(ApiModel):
    review: dict = Field(..., description="Review in the UI's JSON shape")
    script: str = Field(..., min_length=1)
    is_editorial: bool = False
    critic_names: Optional[list[str]] = None


class EditorialTitleRequest(ApiModel):
    script: str = Field(..., min_length=1)
    summary: Optional[str] = None
    verdicts: Optional[list[dict]] = None


class ConvertToMp3Request(ApiModel):
    wav_data: str = Field(..., min_length=1, description="WAV as a data URL or bare base64")
    title: str = Field(..., min_length=1)
    artist: str = DEFAULT_ARTIST
    album_art: Optional[str] = Field(default=None, description="Cover image as a data URL")


class StitchRequest(ApiModel):
    audio_files: list[str] = Field(..., description="WAV data URLs in playback order")


class BannerRequest(ApiModel):
    title: str = Field(..., min_length=1)
    review_text: str | list[str]
    artist: Optional[str] = None
    is_editorial: bool = False
    critic_names: Optional[list[str]] = None
    content_id: Optional[str] = Field(default=None, description="Store the banner under this id when set")


class MediaUploadRequest(ApiModel):
    data: str = Field(..., min_length=1, description="Base64, with or without a data URL prefix")
    mime_type: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)


class GeneratePodcastRequest(ApiModel):
    review: dict
    is_editorial: bool = False
    quality: Literal["high", "fast"] = DEFAULT_QUALITY


# ============ Response Models ============


class ErrorResponse(ApiModel):
    """Standard error response model."""

    error: str
    status: int


class GeminiGenerateResponse(ApiModel):
    parts: list[dict]


class MediaReferenceResponse(ApiModel):
    type: str
    mime_type: str
    data: Optional[str] = None
    url: Optional[str] = None


class GenerateAudioResponse(ApiModel):
    audio: MediaReferenceResponse
    speakers: list[SpeakerVoice]
    quality: str


class ImageResponse(ApiModel):
    image_data: str = Field(..., description="Base64 image bytes")
    mime_type: str
    prompt: str


class EditorialTitleResponse(ApiModel):
    title: str


class Mp3Response(ApiModel):
    mp3_data: str = Field(..., description="audio/mpeg data URL")
    size_bytes: int


class StitchResponse(ApiModel):
    audio_data: str = Field(..., description="audio/wav data URL")
    count: int


class ProgressReport(ApiModel):
    status: str
    progress: int
    message: str
    error: Optional[str] = None


class GeneratePodcastResponse(ApiModel):
    review_id: str
    audio_data: str
    progress: list[ProgressReport] = []


class StoredPodcastResponse(ApiModel):
    review_id: str
    audio_data: str
    metadata: Optional[dict] = None
    album_art: Optional[dict] = None
