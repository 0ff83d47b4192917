"""
Local file store for uploaded source documents.

Stores upload bytes under one directory per job so the background
pipeline can read them back for extraction.

Dependencies: pathlib, asyncio (stdlib)
System role: Upload persistence between enqueue and run
"""

import asyncio
import logging
import re
import shutil
from pathlib import Path
from uuid import UUID

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """
    Reduce a client-supplied filename to a safe basename.

    Args:
        filename: Original filename

    Returns:
        str: Filename without path components or unsafe characters
    """
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "upload"


class FileStore:
    """Filesystem-backed storage for upload bytes."""

    def __init__(self, root: str | Path) -> None:
        """
        Initialize store.

        Args:
            root: Directory holding one sub-directory per job
        """
        self._root = Path(root)

    async def save(self, job_id: UUID, filename: str, content: bytes) -> str:
        """
        Persist upload bytes for a job.

        Args:
            job_id: Owning job UUID
            filename: Original filename
            content: Raw bytes

        Returns:
            str: Path of the stored file
        """
        target = self._root / str(job_id) / safe_filename(filename)
        await asyncio.to_thread(self._write, target, content)
        logger.info(
            f"{__name__}:save - Stored upload",
            extra={"job_id": str(job_id), "path": str(target), "size": len(content)},
        )
        return str(target)

    async def delete(self, job_id: UUID) -> None:
        """Remove everything stored for a job."""
        await asyncio.to_thread(shutil.rmtree, self._root / str(job_id), True)

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
