"""Commits local changes to the remote branch."""

import asyncio
from typing import List, Optional, Union

from loguru import logger

from vault_sync.github import GitHubClient, TreeNode
from vault_sync.services import FileService
from vault_sync.sync.utils import DiffResult, FileStates
from vault_sync.utils import bytes_to_base64, decode_content


class PushService:
    """
    Pushes new, updated and deleted files as a single commit.

    The new tree is layered on the remote head's tree, the commit's only
    parent is the remote head, and the branch is fast-forwarded. If the
    branch moved since it was read the update is rejected and the push
    fails; nothing is reconciled.
    """

    def __init__(self, file_service: FileService, github_client: GitHubClient):
        self.file_service = file_service
        self.github_client = github_client

    async def push_changes(
        self,
        diff: DiffResult,
        file_states: FileStates,
        remote_commit_sha: Optional[str],
        branch: str,
        message: str = "Sync",
    ) -> Optional[str]:
        """
        Apply push actions.

        Returns:
            The new commit sha, or None if the push failed
        """
        logger.info(
            f"Pushing changes: {len(diff.push_new)} new, {len(diff.push_update)} updated, "
            f"{len(diff.push_delete)} deleted"
        )
        try:
            nodes = await self.create_tree_nodes(diff, file_states)
            nodes.extend(TreeNode(path=path, sha=None) for path in diff.push_delete)

            base_tree_sha = None
            if remote_commit_sha:
                commit = await self.github_client.get_commit(remote_commit_sha)
                base_tree_sha = commit.tree.sha

            tree_sha = await self.github_client.create_tree(nodes, base_tree_sha)
            commit_sha = await self.github_client.create_commit(tree_sha, remote_commit_sha, message)
            logger.debug(f"Created tree {tree_sha[:8]} and commit {commit_sha[:8]}")

            if remote_commit_sha:
                await self.github_client.update_ref(commit_sha, branch)
            else:
                await self.github_client.create_ref(commit_sha, branch)

            logger.info(f"Pushed commit {commit_sha} to {branch}")
            return commit_sha
        except Exception as e:
            logger.exception(f"Push failed: {e}")
            return None

    async def create_tree_nodes(self, diff: DiffResult, file_states: FileStates) -> List[TreeNode]:
        paths = [*diff.push_new, *diff.push_update]
        nodes = await asyncio.gather(*(self.create_tree_node(path, file_states) for path in paths))
        return [node for node in nodes if node is not None]

    async def create_tree_node(self, path: str, file_states: FileStates) -> Optional[TreeNode]:
        """
        Build the tree entry for one file.

        Text goes inline. Binary content can't be sent inline, so it is
        uploaded as a base64 blob first and referenced by sha.
        """
        content = await self.get_file_content(path, file_states)
        if content is None:
            return None

        if isinstance(content, str):
            return TreeNode(path=path, content=content)

        sha = await self.github_client.create_blob(bytes_to_base64(content), "base64")
        logger.debug(f"uploaded blob for {path} ({sha[:8]})")
        return TreeNode(path=path, sha=sha)

    async def get_file_content(self, path: str, file_states: FileStates) -> Optional[Union[str, bytes]]:
        state = file_states.get(path)
        if state is not None and state.content is not None:
            return state.content

        if not await self.file_service.exists(path):
            logger.warning(f"Local file disappeared before push, skipping: {path}")
            return None

        return decode_content(path, await self.file_service.read_bytes(path))
