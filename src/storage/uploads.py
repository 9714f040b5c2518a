"""
Temporary storage for uploaded source documents.

An upload lives on disk only for the duration of one generation request.
"""

import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import UploadFile

from src.core.errors import DocumentError
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

CHUNK_SIZE = 1024 * 1024


def check_extension(filename: Optional[str], allowed) -> str:
    """Lower-cased extension of ``filename``, if it is allowed."""
    suffix = Path(filename or "").suffix.lower()
    if suffix not in allowed:
        raise DocumentError(
            f"Unsupported file type: {suffix or '(none)'}",
            user_message="Invalid file type. Only PDF, DOCX and TXT files are allowed."
        )
    return suffix


@asynccontextmanager
async def temporary_upload(upload: UploadFile, upload_dir: str, max_bytes: int, allowed) -> AsyncIterator[Path]:
    """
    Stream an upload to disk and yield its path.

    The file is removed on exit whether or not the request succeeded.

    Raises:
        DocumentError: Disallowed extension, or larger than ``max_bytes``
    """
    suffix = check_extension(upload.filename, allowed)

    folder = Path(upload_dir)
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / f"{uuid.uuid4().hex}{suffix}"

    try:
        written = 0
        with path.open("wb") as handle:
            while True:
                chunk = await upload.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise DocumentError(
                        f"Upload exceeds {max_bytes} bytes",
                        user_message=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
                    )
                handle.write(chunk)

        logger.info(
            f"Stored upload {upload.filename} ({written} bytes)",
            extra={"path": str(path)}
        )
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed temporary upload {path.name}")
