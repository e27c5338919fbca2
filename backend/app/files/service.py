"""File storage service for Sharebox.

Uploaded payloads are stored flat in the uploads directory as
``{uuid}.{ext}``, where ``ext`` is copied from the client's filename. There is
no metadata database: the message log records the original name, size and
MIME type, and the stored filename is the handle clients use to download.
"""
import logging
import uuid
from pathlib import Path
from typing import Optional, Union

from app.config import get_config
from app.errors import InternalError

from .schemas import StoredFile, get_extension, get_message_type, get_mime_type

logger = logging.getLogger(__name__)


class FileStorageService:
    """Service for storing and locating uploaded files."""

    _instance: Optional["FileStorageService"] = None
    _upload_dir: Path = Path("data/uploads")

    def __init__(self, upload_dir: Optional[Union[str, Path]] = None):
        """Initialize the file storage service.

        The directory itself is created on the first upload.
        """
        if upload_dir:
            self._upload_dir = Path(upload_dir)

    @classmethod
    def get_instance(cls, upload_dir: Optional[Union[str, Path]] = None) -> "FileStorageService":
        """Get or create the singleton instance.

        Without an explicit directory the configured uploads path is used.
        """
        if cls._instance is None:
            if upload_dir is None:
                upload_dir = get_config().storage.uploads_path
            cls._instance = cls(upload_dir)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    @staticmethod
    def make_stored_filename(original_filename: str) -> str:
        """Fresh ``{uuid}.{ext}`` name for an upload (``{uuid}`` without ext)."""
        file_id = str(uuid.uuid4())
        ext = get_extension(original_filename)
        return f"{file_id}.{ext}" if ext else file_id

    async def save_file(self, filename: str, content: bytes) -> StoredFile:
        """Write an uploaded payload to disk.

        Args:
            filename: Original filename from the client.
            content: File content as bytes.

        Returns:
            StoredFile describing the written file.

        Raises:
            InternalError: The uploads directory or the file could not be
                written.
        """
        try:
            self._upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Cannot create uploads directory %s: %s", self._upload_dir, exc)
            raise InternalError(f"Failed to create uploads directory: {exc}") from exc

        stored_filename = self.make_stored_filename(filename)
        file_path = self._upload_dir / stored_filename
        try:
            file_path.write_bytes(content)
        except OSError as exc:
            logger.error("Cannot write upload %s: %s", file_path, exc)
            raise InternalError(f"Failed to save file: {exc}") from exc

        logger.info(f"Saved file: {file_path} ({len(content)} bytes)")

        return StoredFile(
            stored_filename=stored_filename,
            original_filename=filename,
            size_bytes=len(content),
            mime_type=get_mime_type(filename),
            message_type=get_message_type(filename),
        )

    def get_file_path(self, stored_filename: str) -> Optional[Path]:
        """Path of a stored file, or None if absent or outside the directory."""
        if not stored_filename or stored_filename in (".", ".."):
            return None
        if "/" in stored_filename or "\\" in stored_filename or "\x00" in stored_filename:
            return None

        file_path = self._upload_dir / stored_filename
        try:
            resolved = file_path.resolve()
            resolved.relative_to(self._upload_dir.resolve())
        except (OSError, ValueError):
            return None

        if not resolved.is_file():
            return None
        return resolved
