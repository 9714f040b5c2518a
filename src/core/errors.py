"""
Error taxonomy for the generation pipeline and the image endpoints.

Every error carries the HTTP status and the fixed caller-facing message used
at the request boundary. The exception text itself is diagnostic detail and
only reaches the caller when DEBUG is on.
"""

from typing import Optional


class SlidesmithError(Exception):
    """Base exception for all Slidesmith errors."""

    status_code: int = 500
    user_message: str = "Failed to generate slides."

    def __init__(self, message: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class InvalidRequestError(SlidesmithError):
    """Raised when caller input is unusable (topic, query, upload)."""

    status_code = 400
    user_message = "Invalid request."


class DocumentError(InvalidRequestError):
    """Raised when an uploaded document is rejected or cannot be read."""

    user_message = "The uploaded document could not be processed."


class ConfigurationError(SlidesmithError):
    """Raised when the selected backend is unknown or lacks its credential."""

    status_code = 400
    user_message = "AI service not configured properly. Please check API keys."


class TransportError(SlidesmithError):
    """Raised when a backend cannot be reached."""

    status_code = 503
    user_message = "Network error or AI service is not reachable."


class LocalServiceUnavailableError(TransportError):
    """Raised when the local inference server refuses the connection."""

    user_message = "Local AI service is not running. Please start it and try again."


class BackendTimeoutError(TransportError):
    """Raised when a backend call exceeds the per-request deadline."""

    status_code = 504
    user_message = "AI service timed out. Please try again."


class UpstreamError(SlidesmithError):
    """Raised when a backend is reachable but reports a failure."""

    status_code = 502
    user_message = "AI service returned an error. Please try again later."


class QuotaExceededError(UpstreamError):
    """Raised when a backend reports quota exhaustion or rate limiting."""

    status_code = 429
    user_message = "AI service quota exceeded. Please try again later."


class UpstreamFormatError(UpstreamError):
    """Raised when a backend response envelope lacks the expected fields."""

    user_message = "AI service returned an unexpected response format."


class SchemaError(SlidesmithError):
    """Raised when the recovered output is not a slide sequence."""

    status_code = 502
    user_message = "Failed to parse AI response. The response may be invalid."


class ResponseParseError(SchemaError):
    """Raised when the recovered fragment is not valid JSON."""


class NoStructureFound(ResponseParseError):
    """Raised when no bracketed fragment can be located in the response."""


class EmptyDeckError(SlidesmithError):
    """Raised when assembly produces no slides at all."""

    status_code = 500
    user_message = "No slides generated."


class ImageServiceNotConfiguredError(SlidesmithError):
    """Raised when the image search provider has no access key."""

    status_code = 503
    user_message = "Image service not configured."


class RateLimitedError(SlidesmithError):
    """Raised when an image search arrives inside the throttle window."""

    status_code = 429

    def __init__(self, retry_after: float, window: Optional[float] = None):
        self.retry_after = retry_after
        self.window = window
        seconds = self.retry_after_seconds
        super().__init__(
            f"Image search throttled for another {retry_after:.3f}s",
            user_message=f"Too many requests. Try again in {seconds} seconds."
        )

    @property
    def retry_after_seconds(self) -> int:
        """
        Retry delay rounded up to whole seconds, as sent to the caller.

        Never exceeds the throttle window, so fractional windows are
        floored rather than rounded up.
        """
        whole = int(self.retry_after)
        seconds = whole if whole == self.retry_after else whole + 1
        if self.window is not None:
            seconds = min(seconds, int(self.window))
        return seconds


class ImageNotFoundError(SlidesmithError):
    """Raised when no image matches a search or a served path."""

    status_code = 404
    user_message = "No suitable image found for this query."


class ImageSearchError(SlidesmithError):
    """Raised when the image search provider fails."""

    status_code = 500
    user_message = "Failed to fetch image."


class ForbiddenPathError(SlidesmithError):
    """Raised when a served image path escapes the image root."""

    status_code = 403
    user_message = "Forbidden"
