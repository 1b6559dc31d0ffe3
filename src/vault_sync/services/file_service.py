"""Service for reading and writing files in the local folder."""

from pathlib import Path
from typing import List

from loguru import logger

from vault_sync import file_utils
from vault_sync.services.exceptions import FileOperationError
from vault_sync.utils import is_hidden_path


class FileService:
    """
    Service for handling file operations inside the synced folder.

    All paths are relative POSIX strings, the same form GitHub uses in
    tree listings.

    Features:
    - Enumeration that skips hidden files and folders
    - Byte-exact text reads (no newline translation)
    - Atomic writes
    - Error handling
    """

    def __init__(self, base_path: Path):
        self.base_path = base_path

    def get_path(self, path: str) -> Path:
        return self.base_path / path

    async def list_files(self) -> List[str]:
        """
        List every regular file below the base path.

        Files or folders whose name starts with a dot (``.git``,
        ``.vault-sync``, ``.obsidian``) are skipped.

        Returns:
            Relative POSIX paths
        """
        if not self.base_path.exists():
            logger.debug(f"Directory does not exist: {self.base_path}")
            return []

        files = []
        for path in self.base_path.rglob("*"):
            rel_path = path.relative_to(self.base_path)
            rel = rel_path.as_posix()
            if is_hidden_path(rel):
                continue
            if path.is_file():
                files.append(rel)

        logger.debug(f"Found {len(files)} files in {self.base_path}")
        return files

    async def exists(self, path: str) -> bool:
        """
        Check if file exists.

        Args:
            path: Relative path to check

        Returns:
            True if a regular file exists at path, False otherwise
        """
        try:
            return self.get_path(path).is_file()
        except Exception as e:
            logger.error(f"Failed to check file existence {path}: {e}")
            raise FileOperationError(f"Failed to check file existence: {e}")

    async def read_bytes(self, path: str) -> bytes:
        try:
            return self.get_path(path).read_bytes()
        except Exception as e:
            logger.error(f"Failed to read file {path}: {e}")
            raise FileOperationError(f"Failed to read file: {e}")

    async def read_text(self, path: str) -> str:
        """
        Read file as UTF-8 text.

        Line endings are returned untouched so the content hashes the same
        as the blob stored on GitHub.

        Raises:
            FileOperationError: If the file can't be read or isn't valid UTF-8
        """
        content = await self.read_bytes(path)
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"File is not valid UTF-8 {path}: {e}")
            raise FileOperationError(f"File is not valid UTF-8: {path}")

    async def write_bytes(self, path: str, content: bytes) -> None:
        """
        Write content to file, creating missing parent directories.

        Args:
            path: Relative path where to write
            content: Bytes to write

        Raises:
            FileOperationError: If write fails
        """
        full_path = self.get_path(path)
        try:
            await file_utils.ensure_directory(full_path.parent)
            await file_utils.write_file_atomic(full_path, content)
            logger.debug(f"wrote file: {path} ({len(content)} bytes)")
        except Exception as e:
            logger.error(f"Failed to write file {path}: {e}")
            raise FileOperationError(f"Failed to write file: {e}")

    async def write_text(self, path: str, content: str) -> None:
        await self.write_bytes(path, content.encode("utf-8"))

    async def ensure_directory(self, path: str) -> None:
        """Create the directory at path and any missing parents."""
        try:
            await file_utils.ensure_directory(self.get_path(path))
        except Exception as e:
            raise FileOperationError(f"Failed to create directory: {e}")

    async def delete_file(self, path: str) -> None:
        """
        Delete file if it exists.

        Args:
            path: Relative path to delete

        Raises:
            FileOperationError: If deletion fails
        """
        try:
            self.get_path(path).unlink(missing_ok=True)
            logger.debug(f"deleted file: {path}")
        except Exception as e:
            logger.error(f"Failed to delete file {path}: {e}")
            raise FileOperationError(f"Failed to delete file: {e}")
