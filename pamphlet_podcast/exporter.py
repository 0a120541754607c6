"""Export stitched WAV podcasts as tagged MP3 files."""

import io
import logging
import mimetypes
import os
import tempfile

from pydub import AudioSegment

from pamphlet_podcast.constants import MP3_BITRATE, DEFAULT_ARTIST, PUBLICATION, VERSION
from pamphlet_podcast.errors import InvalidInput
from pamphlet_podcast.models import InlineMedia

logger = logging.getLogger(__name__)


def convert_to_mp3(
    wav_bytes: bytes,
    title: str,
    artist: str = DEFAULT_ARTIST,
    album_art: InlineMedia | None = None,
) -> bytes:
    """Encode WAV bytes as MP3 with ID3 tags and optional cover art.

    Stereo input is downmixed to mono. Returns the MP3 bytes.
    """
    if not wav_bytes:
        raise InvalidInput("Missing WAV audio")
    if not title:
        raise InvalidInput("Missing title")

    try:
        audio = AudioSegment.from_wav(io.BytesIO(wav_bytes))
    except Exception as e:
        raise InvalidInput(f"Could not decode WAV audio: {e}") from e

    if audio.channels > 1:
        audio = audio.set_channels(1)

    tags = {
        "title": title,
        "artist": artist,
        "album": f"{PUBLICATION} Podcast",
        "encoder": f"pamphlet-podcast {VERSION}",
    }

    cover_path = None
    try:
        if album_art is not None:
            suffix = mimetypes.guess_extension(album_art.mime_type) or ".png"
            with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as f:
                f.write(album_art.data)
                cover_path = f.name

        out = io.BytesIO()
        audio.export(
            out,
            format="mp3",
            bitrate=MP3_BITRATE,
            tags=tags,
            cover=cover_path,
        )
    finally:
        if cover_path and os.path.exists(cover_path):
            os.remove(cover_path)

    mp3 = out.getvalue()
    logger.info(
        "Encoded %r: %.1fs of audio -> %d MP3 bytes%s",
        title, len(audio) / 1000, len(mp3), " with cover art" if album_art else "",
    )
    return mp3
