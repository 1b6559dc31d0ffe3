"""Applies remote changes to the local folder."""

import asyncio
from typing import Dict, List, Tuple, Union

from loguru import logger

from vault_sync.github import GitHubClient
from vault_sync.services import FileService
from vault_sync.sync.utils import DiffResult, FileStates
from vault_sync.utils import base64_to_bytes, decode_content

Content = Union[str, bytes]


class PullService:
    """
    Pulls new, updated and deleted files from the remote branch.

    All needed blobs are downloaded before anything is written. There is
    no rollback: files written before a failure stay written, and the next
    run will see them as already synced.
    """

    def __init__(self, file_service: FileService, github_client: GitHubClient):
        self.file_service = file_service
        self.github_client = github_client

    async def pull_changes(self, diff: DiffResult, file_states: FileStates) -> bool:
        """
        Apply pull actions.

        Returns:
            True if every action was applied, False on any failure
        """
        logger.info(
            f"Pulling changes: {len(diff.pull_new)} new, {len(diff.pull_update)} updated, "
            f"{len(diff.pull_delete)} deleted"
        )
        try:
            remote_files = await self.fetch_remote_files(diff, file_states)

            await self.pull_new_files(diff.pull_new, remote_files)
            await self.pull_updated_files(diff.pull_update, remote_files)
            await self.pull_deleted_files(diff.pull_delete)
            return True
        except Exception as e:
            logger.exception(f"Pull failed: {e}")
            return False

    async def fetch_remote_file(self, path: str, sha: str) -> Tuple[str, Content]:
        """Download a blob and decode it the way the local file will be written."""
        raw = base64_to_bytes(await self.github_client.get_blob(sha))
        logger.debug(f"fetched {path} ({sha[:8]})")
        return path, decode_content(path, raw)

    async def fetch_remote_files(self, diff: DiffResult, file_states: FileStates) -> Dict[str, Content]:
        to_fetch = []
        for path in [*diff.pull_new, *diff.pull_update]:
            state = file_states.get(path)
            if state is None or state.remote_sha is None:
                logger.warning(f"No remote identifier for {path}, skipping")
                continue
            to_fetch.append((path, state.remote_sha))

        if not to_fetch:
            return {}

        entries = await asyncio.gather(*(self.fetch_remote_file(path, sha) for path, sha in to_fetch))
        return dict(entries)

    async def write(self, path: str, content: Content) -> None:
        if isinstance(content, str):
            await self.file_service.write_text(path, content)
        else:
            await self.file_service.write_bytes(path, content)

    async def pull_new_files(self, paths: List[str], remote_files: Dict[str, Content]) -> None:
        for path in paths:
            content = remote_files.get(path)
            if content is None:
                continue

            parent = path.rsplit("/", 1)[0] if "/" in path else ""
            if parent:
                await self.file_service.ensure_directory(parent)

            await self.write(path, content)
            logger.debug(f"pulled new file: {path}")

    async def pull_updated_files(self, paths: List[str], remote_files: Dict[str, Content]) -> None:
        for path in paths:
            content = remote_files.get(path)
            if content is None:
                continue

            if not await self.file_service.exists(path):
                logger.warning(f"Local file disappeared before update, skipping: {path}")
                continue

            await self.write(path, content)
            logger.debug(f"pulled update: {path}")

    async def pull_deleted_files(self, paths: List[str]) -> None:
        for path in paths:
            if await self.file_service.exists(path):
                await self.file_service.delete_file(path)
                logger.debug(f"pulled delete: {path}")
