# File operations - write uploads to the scratch area, best-effort deletes

from typing import BinaryIO, Optional
from pathlib import Path
import os
import time
import uuid
import logging

from clipconvert.core.errors import InvalidUploadError

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_SUFFIX = ".webm"
UPLOAD_CHUNK_SIZE = 1024 * 1024


def generate_upload_name(filename: Optional[str]) -> str:
    """
    Generate a scratch filename keyed by arrival time

    Args:
        filename: Original client filename (only its extension is kept)

    Returns:
        str: e.g. 1718000000123_3f2a9c1b.webm
    """
    _, ext = os.path.splitext(filename or "")
    ext = ext.lower() or DEFAULT_UPLOAD_SUFFIX

    # Random suffix so two uploads in the same millisecond don't clash
    return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}{ext}"


def save_upload(
    file_obj: BinaryIO,
    filename: Optional[str],
    upload_dir: Path,
    max_bytes: Optional[int] = None,
) -> Path:
    """
    Stream an uploaded file into the scratch directory

    Args:
        file_obj: File-like object to copy from
        filename: Original filename
        upload_dir: Scratch directory
        max_bytes: Optional size cap

    Returns:
        Path: Location of the saved file

    Raises:
        InvalidUploadError: upload is empty or larger than max_bytes
    """
    upload_dir.mkdir(parents=True, exist_ok=True)
    destination = upload_dir / generate_upload_name(filename)

    size = 0
    with open(destination, "wb") as out_file:
        while True:
            chunk = file_obj.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if max_bytes is not None and size > max_bytes:
                break  # Stop before the rest of an oversize body hits the disk
            out_file.write(chunk)

    if max_bytes is not None and size > max_bytes:
        remove_file(destination)
        logger.warning(f"Rejected upload {filename!r}: over {max_bytes:,} bytes")
        raise InvalidUploadError(f"Uploaded video exceeds the {max_bytes // (1024 * 1024)} MB limit")

    logger.info(f"Saved upload {filename!r} -> {destination} ({size:,} bytes)")
    if size == 0:
        remove_file(destination)
        raise InvalidUploadError("Uploaded video file is empty")

    return destination


def remove_file(path: Path) -> bool:
    """
    Delete a file, logging instead of raising

    Returns:
        bool: True if the file was deleted
    """
    try:
        os.remove(path)
        logger.info(f"Cleaned up file: {path}")
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning(f"Failed to cleanup {path}: {e}")
        return False
