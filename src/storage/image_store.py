"""
Per-request image store.

Document images are written to ``<root>/request-<uuid4>/image_<n>.<ext>`` and
served back at ``<url_prefix>/<namespace>/<file>``. Namespaces are discarded
when a request fails and expired by ``cleanup_expired`` (see cleanup_cron.py).
"""

import asyncio
import shutil
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from src.core.errors import ForbiddenPathError, ImageNotFoundError
from src.models.slides import ExtractedImage, ImagePayload
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

NAMESPACE_PREFIX = "request-"


class ImageStore:
    """Filesystem store for images extracted from uploaded documents."""

    def __init__(self, root: Union[str, Path], url_prefix: str = "/api/images"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def new_namespace(self) -> str:
        """Fresh, collision-free namespace for one request."""
        return f"{NAMESPACE_PREFIX}{uuid.uuid4()}"

    def persist(self, namespace: str, index: int, image: ExtractedImage) -> Optional[ImagePayload]:
        """
        Write one image and return its payload.

        Returns None for media types other than JPEG/PNG.
        """
        extension = image.extension
        if extension is None:
            logger.warning(
                f"Skipping image {index + 1}: unsupported type {image.mime_type}",
                extra={"namespace": namespace}
            )
            return None

        folder = self.root / namespace
        folder.mkdir(parents=True, exist_ok=True)
        filename = f"image_{index + 1}{extension}"
        (folder / filename).write_bytes(image.data)

        return ImagePayload(
            url=f"{self.url_prefix}/{namespace}/{filename}",
            width=image.width,
            height=image.height,
        )

    async def persist_all(self, namespace: str, images: Sequence[ExtractedImage]) -> List[ImagePayload]:
        """
        Persist images concurrently.

        Results keep extraction order regardless of completion order. Every
        write has finished when this returns or raises, so a following
        ``discard`` leaves nothing behind.
        """
        if not images:
            return []

        writes = asyncio.gather(*[
            asyncio.to_thread(self.persist, namespace, index, image)
            for index, image in enumerate(images)
        ], return_exceptions=True)
        try:
            results = await asyncio.shield(writes)
        except asyncio.CancelledError:
            # Threads cannot be interrupted; let the pending writes land
            await writes
            raise

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                f"Failed to persist {len(failures)}/{len(images)} images: {failures[0]}",
                extra={"namespace": namespace}
            )
            raise failures[0]

        payloads = [payload for payload in results if payload is not None]

        logger.info(
            f"Persisted {len(payloads)}/{len(images)} images",
            extra={"namespace": namespace}
        )
        return payloads

    def resolve(self, folder: str, filename: str) -> Path:
        """
        Resolve a served image path.

        Raises:
            ForbiddenPathError: The path escapes the store root
            ImageNotFoundError: No such file
        """
        root = self.root.resolve()
        candidate = (root / folder / filename).resolve()
        if not candidate.is_relative_to(root) or candidate == root:
            logger.warning(f"Rejected image path outside store: {folder}/{filename}")
            raise ForbiddenPathError(f"Path escapes image root: {folder}/{filename}")

        if not candidate.is_file():
            raise ImageNotFoundError(
                f"Image not found: {folder}/{filename}",
                user_message="Image not found"
            )
        return candidate

    def discard(self, namespace: str) -> None:
        """Remove a request namespace and everything in it."""
        folder = self.root / namespace
        if folder.exists():
            shutil.rmtree(folder, ignore_errors=True)
            logger.info(f"Discarded image namespace {namespace}")

    def cleanup_expired(self, max_age_hours: float, dry_run: bool = False) -> Dict[str, Any]:
        """
        Remove request namespaces older than ``max_age_hours``.

        Args:
            max_age_hours: Age threshold, measured on directory mtime
            dry_run: Only report what would be removed

        Returns:
            {
                "success": bool,
                "namespaces_found": int,
                "namespaces_deleted": int,
                "dry_run": bool,
                "cutoff_time": str,
                "errors": List[str]
            }
        """
        cutoff = time.time() - max_age_hours * 3600
        cutoff_iso = datetime.fromtimestamp(cutoff).isoformat()

        logger.info(f"[Cleanup] Starting image cleanup (max_age={max_age_hours}h, dry_run={dry_run})")

        result = {
            "success": False,
            "namespaces_found": 0,
            "namespaces_deleted": 0,
            "dry_run": dry_run,
            "cutoff_time": cutoff_iso,
            "errors": []
        }

        if not self.root.exists():
            logger.info("[Cleanup] Image root does not exist, nothing to do")
            result["success"] = True
            return result

        expired = [
            folder for folder in self.root.iterdir()
            if folder.is_dir()
            and folder.name.startswith(NAMESPACE_PREFIX)
            and folder.stat().st_mtime < cutoff
        ]
        result["namespaces_found"] = len(expired)

        if dry_run:
            for folder in expired:
                logger.info(f"[Cleanup] Would delete: {folder.name}")
            result["success"] = True
            return result

        deleted = 0
        for folder in expired:
            try:
                shutil.rmtree(folder)
                deleted += 1
            except OSError as e:
                error_msg = f"Failed to delete {folder.name}: {e}"
                logger.error(f"[Cleanup] {error_msg}")
                result["errors"].append(error_msg)

        result["namespaces_deleted"] = deleted
        result["success"] = not result["errors"]
        logger.info(f"[Cleanup] Completed: deleted {deleted}/{len(expired)} namespaces")
        return result
