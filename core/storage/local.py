"""Local document storage for uploaded resumes."""

import asyncio
import uuid
from pathlib import Path
from typing import Optional
import logging

from core.config import settings
from core.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


class LocalDocumentStore:
    """Stores documents under a base directory and hands out relative file refs.

    File refs are POSIX paths relative to ``base_path``; they are what the
    ``resumes.file_ref`` column stores.
    """

    def __init__(self, base_path: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage
            timeout: Seconds allowed for a single read or write
        """
        self.base_path = Path(base_path or settings.document_storage_path).resolve()
        self.timeout = timeout or settings.storage_timeout_seconds

    async def save(
        self,
        file_data: bytes,
        filename: str,
        subfolder: Optional[str] = None,
    ) -> str:
        """
        Save a document and return its file ref.

        Args:
            file_data: Raw document bytes
            filename: Original file name, kept as a suffix for readability
            subfolder: Optional subfolder path

        Returns:
            File ref relative to the storage root
        """
        safe_name = Path(filename).name or "document"
        relative = Path(subfolder or "") / f"{uuid.uuid4().hex}_{safe_name}"
        target = self._resolve(relative.as_posix())

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(file_data)

        await self._run("save", relative.as_posix(), _write)
        logger.info("Saved document %s (%d bytes)", relative.as_posix(), len(file_data))
        return relative.as_posix()

    async def read(self, file_ref: str) -> bytes:
        """
        Read a stored document.

        Raises:
            StorageUnavailable: If the file is missing, unreadable or the read times out
        """
        path = self._resolve(file_ref)
        return await self._run("read", file_ref, path.read_bytes)

    async def delete(self, file_ref: str) -> bool:
        path = self._resolve(file_ref)
        if not path.exists():
            return False
        await self._run("delete", file_ref, path.unlink)
        logger.info("Deleted document %s", file_ref)
        return True

    def _resolve(self, file_ref: str) -> Path:
        path = (self.base_path / file_ref).resolve()
        if self.base_path not in path.parents:
            raise StorageUnavailable(f"File ref escapes storage root: {file_ref}")
        return path

    async def _run(self, operation: str, file_ref: str, func):
        try:
            return await asyncio.wait_for(asyncio.to_thread(func), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Document %s timed out for %s", operation, file_ref)
            raise StorageUnavailable(
                f"Document {operation} timed out for {file_ref}", file_ref=file_ref
            ) from exc
        except OSError as exc:
            logger.error("Document %s failed for %s: %s", operation, file_ref, exc)
            raise StorageUnavailable(
                f"Document {operation} failed for {file_ref}", file_ref=file_ref
            ) from exc
