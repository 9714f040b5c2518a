"""
Error classification for the request boundary.

Maps any exception to the HTTP status and fixed message sent to the caller.
The exception text is only exposed as ``details`` in debug mode.
"""

from typing import Optional, Tuple, Union

from src.core.errors import SlidesmithError

DEFAULT_MESSAGE = "Failed to generate slides."

QUOTA_MARKERS = ("429", "RESOURCE_EXHAUSTED", "quota", "rate limit")


def is_quota_error(exc: Union[BaseException, str]) -> bool:
    """True when an upstream failure reads like quota exhaustion or rate limiting."""
    lowered = str(exc).lower()
    return any(marker.lower() in lowered for marker in QUOTA_MARKERS)


def _classify_foreign(exc: BaseException) -> Tuple[int, str]:
    message = str(exc)
    lowered = message.lower()

    if "api key" in lowered:
        return 400, "AI service not configured properly. Please check API keys."
    if "quota" in lowered:
        return 429, "AI service quota exceeded. Please try again later."
    if "network" in lowered or "fetch" in lowered or "ECONNREFUSED" in message:
        return 503, "Network error or AI service is not reachable."
    if "parse" in lowered or "invalid response" in lowered:
        return 502, "Failed to parse AI response. The response may be invalid."
    return 500, DEFAULT_MESSAGE


def classify_error(exc: BaseException, debug: bool = False) -> Tuple[int, str, Optional[str]]:
    """
    Classify an exception.

    Args:
        exc: The exception that ended the request
        debug: Include the exception text as details

    Returns:
        (status_code, caller_message, details)
    """
    if isinstance(exc, SlidesmithError):
        status, message = exc.status_code, exc.user_message
    else:
        status, message = _classify_foreign(exc)

    details = str(exc) if debug else None
    return status, message, details
