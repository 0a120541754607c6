"""Exception types raised by the podcast pipeline."""


class PodcastError(Exception):
    """Base class for every error this package raises on purpose."""


class InvalidInput(PodcastError, ValueError):
    """Caller supplied something the pipeline cannot work with."""


class FormatMismatch(PodcastError, ValueError):
    """WAV buffers passed to the stitcher do not share one PCM format."""


class UpstreamError(PodcastError):
    """A remote generation or storage service failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (status {self.status})"


class RateLimitExceeded(PodcastError):
    """Client exhausted its request budget for the current window."""

    def __init__(self, key: str):
        super().__init__(f"Rate limit exceeded for {key}. Try again later.")
        self.key = key


class GenerationCancelled(PodcastError):
    """A cancellation token was tripped between pipeline steps."""
