"""Utilities for file operations."""

import hashlib
from pathlib import Path
from typing import Union

from loguru import logger


class FileError(Exception):
    """Base exception for file operations."""

    pass


class FileWriteError(FileError):
    """Raised when file operations fail."""

    pass


def compute_checksum(content: Union[str, bytes]) -> str:
    """
    Compute the git blob identifier of content.

    The digest is SHA-1 over ``b"blob <length>\\0"`` followed by the raw
    bytes, which is the object id git (and GitHub) assign to the same
    blob. Text is encoded as UTF-8 first.

    Args:
        content: Text or raw bytes to hash

    Returns:
        40 character lowercase hex digest
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    header = f"blob {len(data)}\0".encode("ascii")
    return hashlib.sha1(header + data).hexdigest()


async def ensure_directory(path: Path) -> None:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure

    Raises:
        FileWriteError: If directory creation fails
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except Exception as e:
        logger.error(f"Failed to create directory: {path}: {e}")
        raise FileWriteError(f"Failed to create directory {path}: {e}")


async def write_file_atomic(path: Path, content: bytes) -> None:
    """
    Write file with atomic operation using temporary file.

    Args:
        path: Target file path
        content: Bytes to write

    Raises:
        FileWriteError: If write operation fails
    """
    temp_path = path.with_name(f".{path.name}.tmp")
    try:
        temp_path.write_bytes(content)
        temp_path.replace(path)
    except Exception as e:
        temp_path.unlink(missing_ok=True)
        logger.error(f"Failed to write file: {path}: {e}")
        raise FileWriteError(f"Failed to write file {path}: {e}")
