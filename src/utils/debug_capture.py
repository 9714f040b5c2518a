"""
Debug Capture Utility for raw model responses.

Saves the raw backend reply and the failure that rejected it, so parse and
schema failures can be inspected after the fact. Only used when DEBUG is on.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

DEBUG_DIR = Path(__file__).parent.parent.parent / "debug_captures"


def capture_backend_response(
    backend: str,
    topic: str,
    raw_response: str,
    error: Optional[str] = None,
    fragment: Optional[str] = None,
    capture_dir: Optional[Union[str, Path]] = None
) -> Path:
    """
    Save a raw backend response to file for debugging.

    Args:
        backend: Backend that produced the response
        topic: Requested topic
        raw_response: Full model reply
        error: Failure message, if the reply was rejected
        fragment: Recovered fragment, if extraction got that far
        capture_dir: Directory override (defaults to debug_captures/)

    Returns:
        Path to the saved capture file
    """
    folder = Path(capture_dir) if capture_dir else DEBUG_DIR
    folder.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    filename = f"{timestamp}_{backend}.json"

    capture = {
        "timestamp": datetime.now().isoformat(),
        "backend": backend,
        "topic": topic,
        "raw_response": raw_response,
        "fragment": fragment,
        "error": error
    }

    filepath = folder / filename
    filepath.write_text(json.dumps(capture, indent=2))

    return filepath
