"""Shared fixtures for pamphlet podcast tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pamphlet_podcast.models import InlineMedia, Review
from pamphlet_podcast.wav import add_wav_header

ONE_ON_ONE_SCRIPT = """Chuck: Welcome back to the Smudged Pamphlet podcast. Julian, you gave this a four.
Julian: A generous four, Chuck.
**Chuck:** Generous? It's loud guitars.
Julian Pinter: Loud, derivative, and somehow still late.
(laughter)
Chuck: That's our show."""

ROUNDTABLE_SCRIPT = """Chuck: Welcome to the roundtable. Julian, you wrote the lead review.
Julian: I did, and I stand by every adjective.
---SEGMENT BREAK---
Chuck: Rex, you saw the music video.
Rex: At one and a half speed, which helped.
---SEGMENT BREAK---
Chuck: Margot, anything redeeming?
Margot Ashford: The liner notes, structurally.
Chuck: That's the show, folks."""


def _make_wav(pcm=b"\x00\x01" * 50, sample_rate=24000, num_channels=1, bits_per_sample=16):
    return add_wav_header(pcm, sample_rate=sample_rate, num_channels=num_channels, bits_per_sample=bits_per_sample)


@pytest.fixture
def make_wav():
    """Factory for canonical WAV buffers around a given PCM payload."""
    return _make_wav


@pytest.fixture
def review_data():
    """A review in the UI's JSON shape, with film and literary critics in the thread."""
    return {
        "id": "rev-42",
        "title": "Static Bloom",
        "artist": "The Feedback Loops",
        "review": {
            "score": 4.2,
            "summary": "Loud, late, and a little lost.",
            "body": ["The guitars arrive before the ideas do.", "The ideas never arrive."],
            "notable_lyrics_quoted": "we are the noise we made",
            "critic": "music",
            "criticName": "Julian Pinter",
        },
        "comments": [
            {"username": "RexBeaumont", "text": "The video is better.", "persona_type": "film"},
            {
                "username": "vinylhead",
                "text": "Too harsh!",
                "persona_type": "user",
                "replies": [
                    {"username": "MargotAshford", "text": "Not harsh enough.", "persona_type": "literary", "critic": "literary"},
                ],
            },
        ],
    }


@pytest.fixture
def review(review_data):
    return Review.from_dict(review_data)


@pytest.fixture
def fake_gemini(make_wav):
    """GeminiService stand-in; each speech call returns a WAV whose payload is the script text."""

    def make(script=ONE_ON_ONE_SCRIPT, title="Loud Guitars, Quiet Ideas"):
        gemini = MagicMock()

        def generate_text(prompt, model=None, temperature=None, max_output_tokens=None, response_mime_type=None):
            if prompt.startswith("You are a podcast script generator"):
                return script
            if prompt.startswith("Generate a short, catchy title"):
                return f'"{title}"'
            return "A smudged newsprint collage of a guitar, high contrast"

        def synthesize_speech(script, speakers, quality="high"):
            pcm = script.encode()
            if len(pcm) % 2:
                pcm += b" "
            return InlineMedia(data=make_wav(pcm), mime_type="audio/wav")

        gemini.generate_text = AsyncMock(side_effect=generate_text)
        gemini.synthesize_speech = AsyncMock(side_effect=synthesize_speech)
        gemini.generate_image = AsyncMock(return_value=InlineMedia(data=b"\x89PNG fake", mime_type="image/png"))
        gemini.generate_content = AsyncMock(return_value=[{"text": "hello"}])
        return gemini

    return make
