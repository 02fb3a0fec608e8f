"""
Image upload gate.

Checks an uploaded file's declared name and MIME type against the image
allowlist, enforces the size ceiling, and writes accepted files into the
upload directory under a generated name. Nothing rejected is left on disk.
"""

import os
import random
import time
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional

from starlette.datastructures import UploadFile

from app.config import get_settings
from app.errors import ErrorKind, UploadRejected
from app.logging_config import get_logger

logger = get_logger("uploads")

IMAGE_FIELD = "image"
UPLOAD_URL_PREFIX = "/uploads"
FILENAME_PREFIX = "event"
CHUNK_SIZE = 64 * 1024

# Extension -> MIME types accepted for it
ALLOWED_IMAGE_TYPES = {
    "jpg": {"image/jpeg", "image/jpg"},
    "jpeg": {"image/jpeg", "image/jpg"},
    "png": {"image/png"},
    "gif": {"image/gif"},
    "webp": {"image/webp"},
}

INVALID_TYPE_MESSAGE = "Invalid file type. Only images (JPEG, PNG, GIF, WebP) allowed"


@dataclass(frozen=True)
class StoredImage:
    filename: str
    path: Path
    url: str


def is_allowed_image(filename: Optional[str], content_type: Optional[str]) -> bool:
    """Both the extension and the declared MIME type must be on the allowlist."""
    extension = Path(filename or "").suffix.lower().lstrip(".")
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime in ALLOWED_IMAGE_TYPES.get(extension, set())


def generate_filename(original_name: str) -> str:
    """Build a storage name that never reuses the client's file name."""
    timestamp = int(time.time() * 1000)
    random_number = random.randrange(10 ** 9)
    extension = Path(original_name).suffix
    return f"{FILENAME_PREFIX}-{timestamp}-{random_number}{extension}"


def _measure(upload: UploadFile) -> int:
    stream = upload.file
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class ImageStorage:
    """Validates and stores event images in a single directory."""

    def __init__(self, upload_dir, max_size: int = 5 * 1024 * 1024) -> None:
        self.upload_dir = Path(upload_dir)
        self.max_size = max_size

    @classmethod
    def from_settings(cls) -> "ImageStorage":
        settings = get_settings()
        return cls(settings.UPLOAD_DIR, max_size=settings.MAX_UPLOAD_SIZE)

    @property
    def max_size_label(self) -> str:
        return f"{self.max_size / (1024 * 1024):g}MB"

    def _too_large(self) -> UploadRejected:
        return UploadRejected(
            ErrorKind.FILE_TOO_LARGE,
            "File too large",
            message=f"Maximum file size is {self.max_size_label}",
        )

    def inspect(self, upload: UploadFile) -> None:
        """Reject a file by type or size before anything is written.

        Raises:
            UploadRejected: with INVALID_FILE_TYPE or FILE_TOO_LARGE
        """
        if not is_allowed_image(upload.filename, upload.content_type):
            logger.warning(
                f"Rejected upload {upload.filename!r} with type {upload.content_type!r}"
            )
            raise UploadRejected(
                ErrorKind.INVALID_FILE_TYPE,
                "Invalid file type",
                message=INVALID_TYPE_MESSAGE,
            )
        size = upload.size if upload.size is not None else _measure(upload)
        if size > self.max_size:
            logger.warning(f"Rejected upload {upload.filename!r}: {size} bytes")
            raise self._too_large()

    def save(self, upload: UploadFile) -> StoredImage:
        """Copy an inspected upload into the upload directory.

        The size limit is enforced again while streaming; a partially
        written file is removed before the error propagates.
        """
        self.inspect(upload)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        filename = generate_filename(upload.filename)
        destination = self.upload_dir / filename
        written = 0

        upload.file.seek(0)
        try:
            with destination.open("wb") as out:
                while True:
                    chunk = upload.file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_size:
                        raise self._too_large()
                    out.write(chunk)
        except Exception:
            destination.unlink(missing_ok=True)
            raise

        logger.info(f"Stored upload {upload.filename!r} as {filename} ({written} bytes)")
        return StoredImage(
            filename=filename,
            path=destination,
            url=f"{UPLOAD_URL_PREFIX}/{filename}",
        )

    def path_for(self, relative_path: str) -> Path:
        # Only the final component is used, so stored paths cannot escape upload_dir
        return self.upload_dir / Path(relative_path).name

    def remove(self, relative_path: Optional[str]) -> bool:
        """Delete a stored image. Failures are logged, never raised."""
        if not relative_path:
            return False
        path = self.path_for(relative_path)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Image already missing: {relative_path}")
            return False
        except OSError as e:
            logger.error(f"Failed to delete image {relative_path}: {str(e)}")
            return False

        logger.info(f"Deleted image: {relative_path}")
        return True

    @contextmanager
    def cleanup_on_failure(self, image: Optional[StoredImage]) -> Iterator[None]:
        """Remove a freshly stored image if the surrounding block fails."""
        try:
            yield
        except Exception:
            if image is not None:
                logger.info(f"Cleaning up uploaded file after error: {image.url}")
                self.remove(image.url)
            raise


@lru_cache
def get_image_storage() -> ImageStorage:
    """Image storage configured from application settings."""
    return ImageStorage.from_settings()
