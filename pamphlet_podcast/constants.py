"""All magic numbers and configuration constants."""

WAV_HEADER_SIZE = 44                # canonical RIFF/WAVE/fmt/data header
WAV_PCM_FORMAT = 1                  # format tag for uncompressed PCM
WAV_FMT_CHUNK_SIZE = 16             # fmt sub-chunk size for PCM
TTS_SAMPLE_RATE = 24000             # speech service output: 24 kHz
TTS_NUM_CHANNELS = 1                # mono
TTS_BITS_PER_SAMPLE = 16            # 16-bit signed little-endian
RATE_LIMIT = 50                     # requests per window per client
RATE_WINDOW_SECONDS = 60 * 60       # 1 hour fixed window
RATE_LIMIT_MAX_ENTRIES = 10000      # tracked keys before eviction kicks in
MAX_INLINE_SIZE = 3 * 1024 * 1024   # bytes; above this, hosted deployments use blob storage
SEGMENT_BREAK = "---SEGMENT BREAK---"
MODERATOR = "Chuck"                 # spoken name of the host in every segment
FALLBACK_GUEST = "Guest"            # pads a moderator-only segment with no known guest
TEXT_MODEL = "gemini-2.5-pro"
TITLE_MODEL = "gemini-2.5-flash"
IMAGE_MODEL = "gemini-2.5-flash-image-preview"
TTS_MODELS = {
    "high": "gemini-2.5-pro-preview-tts",
    "fast": "gemini-2.5-flash-preview-tts",
}
DEFAULT_QUALITY = "high"
DEFAULT_VOICE = "Kore"
SCRIPT_TEMPERATURE = 0.9
IMAGE_PROMPT_TEMPERATURE = 0.8
IMAGE_PROMPT_MAX_TOKENS = 4096
TITLE_TEMPERATURE = 0.8
TITLE_MAX_TOKENS = 50
ART_SCRIPT_PREVIEW_CHARS = 1500     # script excerpt fed to the album-art prompt writer
TITLE_SCRIPT_PREVIEW_CHARS = 2000   # script excerpt fed to the title writer
BANNER_TEXT_PREVIEW_CHARS = 2000    # review excerpt fed to the banner prompt writer
GEMINI_RETRY_COUNT = 3              # max attempts per remote call
GEMINI_RETRY_BASE_DELAY = 1.0       # seconds, base delay for exponential backoff
RETRYABLE_STATUS_CODES = (429, 500, 503)
GEMINI_KEY_PREFIX = "AIza"
BLOB_API_URL = "https://blob.vercel-storage.com"
BLOB_TIMEOUT_SECONDS = 60
MP3_BITRATE = "192k"
DEFAULT_ARTIST = "The Smudged Pamphlet"
PUBLICATION = "The Smudged Pamphlet"
STORE_DIR = "pamphlet_store"
VERSION = "0.1.0"
