"""Gathers base, local and remote identifiers for every path."""

import asyncio
from typing import Iterable, List, Optional

from loguru import logger

from vault_sync.file_utils import compute_checksum
from vault_sync.github import GitHubClient, TreeEntry
from vault_sync.services import FileService
from vault_sync.sync.utils import FileSource, FileStates
from vault_sync.utils import decode_content, is_hidden_path


class StateBuilder:
    """
    Builds the FileStates map for one sync run.

    The local scan and both tree fetches run concurrently; ``build`` returns
    only once all three are done. A failure in any of them fails the build,
    since a partial map would produce a wrong diff.

    Hidden paths and the ``ignored`` paths are left out of all three
    sources alike, so they are never pulled, pushed or deleted.
    """

    def __init__(
        self,
        file_service: FileService,
        github_client: GitHubClient,
        ignored: Iterable[str] = (),
    ):
        self.file_service = file_service
        self.github_client = github_client
        self.ignored = frozenset(ignored)

    def is_tracked(self, path: str) -> bool:
        return path not in self.ignored and not is_hidden_path(path)

    async def build(self, base_commit_sha: Optional[str], remote_commit_sha: Optional[str]) -> FileStates:
        file_states = FileStates()

        await asyncio.gather(
            self.scan_local_files(file_states),
            self.load_tree(file_states, base_commit_sha, FileSource.BASE),
            self.load_tree(file_states, remote_commit_sha, FileSource.REMOTE),
        )

        logger.info(f"Built state for {len(file_states)} paths")
        return file_states

    async def scan_local_files(self, file_states: FileStates) -> None:
        paths = [path for path in await self.file_service.list_files() if self.is_tracked(path)]
        await asyncio.gather(*(self.process_local_file(file_states, path) for path in paths))

    async def process_local_file(self, file_states: FileStates, path: str) -> None:
        """Hash one local file and keep its content for a later push."""
        data = await self.file_service.read_bytes(path)
        sha = compute_checksum(data)
        logger.debug(f"local {path} ({sha[:8]})")
        file_states.record(path, FileSource.LOCAL, sha, decode_content(path, data))

    async def load_tree(self, file_states: FileStates, commit_sha: Optional[str], source: FileSource) -> None:
        if not commit_sha:
            return

        entries: List[TreeEntry] = await self.github_client.get_tree(commit_sha)
        for entry in entries:
            if entry.type == "blob" and entry.sha and self.is_tracked(entry.path):
                file_states.record(entry.path, source, entry.sha)

        logger.debug(f"{source.value} tree {commit_sha[:8]} has {len(entries)} blobs")
