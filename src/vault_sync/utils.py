"""Utility functions for vault-sync."""

import base64
import sys
from pathlib import Path, PurePosixPath
from typing import Optional, Union

from loguru import logger

# Extensions synced as UTF-8 text; everything else is treated as binary.
TEXT_EXTENSIONS = frozenset(
    {
        "md",
        "markdown",
        "txt",
        "canvas",
        "json",
        "csv",
        "tsv",
        "yaml",
        "yml",
        "toml",
        "ini",
        "xml",
        "html",
        "htm",
        "css",
        "js",
        "ts",
        "svg",
        "tex",
        "bib",
        "org",
        "rst",
        "log",
        "py",
        "sh",
    }
)


def get_extension(path: str) -> str:
    """Return the lowercased final extension of path, or "" if it has none."""
    name = PurePosixPath(path).name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def is_text_file(path: str) -> bool:
    return get_extension(path) in TEXT_EXTENSIONS


def is_hidden_path(path: str) -> bool:
    """True if any component of the relative POSIX path starts with a dot."""
    return any(part.startswith(".") for part in PurePosixPath(path).parts)


def decode_content(path: str, data: bytes) -> Union[str, bytes]:
    """
    Return text for text files that are valid UTF-8, raw bytes otherwise.

    A text-extension file that isn't valid UTF-8 is kept as bytes so it
    still syncs byte for byte, as a binary blob.
    """
    if not is_text_file(path):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"{path} is not valid UTF-8, syncing it as binary")
        return data


def base64_to_bytes(content: str) -> bytes:
    """Decode base64 as returned by the GitHub blob API (may contain newlines)."""
    return base64.b64decode(content)


def bytes_to_base64(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def setup_logging(log_file: Optional[Path] = None, level: str = "INFO") -> None:
    """
    Configure loguru for the application.

    - Console output on stderr at ``level``
    - File output at DEBUG with rotation when ``log_file`` is given
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<level>{level}</level>: {message}",
        colorize=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="10 MB",
            retention="30 days",
        )
        logger.debug(f"File logging enabled: {log_file}")
