"""Service for syncing the local folder with a GitHub branch."""

from typing import Optional, Tuple

import logfire
from loguru import logger

from vault_sync.config import SyncConfig
from vault_sync.github import ErrorKind, GitHubClient, RemoteAPIError
from vault_sync.services import FileService
from vault_sync.sync.conflict_service import ConflictService
from vault_sync.sync.diff import get_diff
from vault_sync.sync.pull_service import PullService
from vault_sync.sync.push_service import PushService
from vault_sync.sync.state_builder import StateBuilder
from vault_sync.sync.utils import DiffResult, FileStates, SyncResult


class SyncService:
    """
    Runs one sync between the local folder and the configured branch.

    Order of a run: resolve the branch head (creating a placeholder commit
    on an empty branch), build base/local/remote state, classify, then
    stop on conflicts or pull and finally push. Pull always completes
    before push so the pushed tree is never built on a stale view.

    ``sync`` never raises. Every outcome, including failures, comes back as
    a SyncResult; the caller persists ``result.base_sha`` on success. Only
    one run may be active per folder and branch; the caller serializes.
    """

    def __init__(self, config: SyncConfig, file_service: FileService, github_client: GitHubClient):
        self.config = config
        self.file_service = file_service
        self.github_client = github_client
        self.state_builder = StateBuilder(file_service, github_client, ignored=[config.conflict_file])
        self.conflict_service = ConflictService(file_service, config.conflict_file)
        self.pull_service = PullService(file_service, github_client)
        self.push_service = PushService(file_service, github_client)

    async def sync(self, base_sha: Optional[str]) -> SyncResult:
        """Sync all files, starting from the last synced commit ``base_sha``."""
        with logfire.span("sync", repository=self.config.repo_slug, branch=self.config.branch):
            result = SyncResult(base_sha=base_sha)
            try:
                return await self._sync(base_sha, result)
            except RemoteAPIError as e:
                logger.error(f"Sync failed: {e}")
                result.success = False
                result.messages.append(self.describe_error(e))
                return result
            except Exception as e:
                logger.exception("Sync failed")
                result.success = False
                result.messages.append(f"Sync Aborted: {e}")
                return result

    async def _sync(self, base_sha: Optional[str], result: SyncResult) -> SyncResult:
        await self.check_repository()

        remote_sha = await self.github_client.get_head_commit_sha()
        bootstrapped = False
        if remote_sha is None:
            remote_sha = await self.bootstrap()
            bootstrapped = True

        file_states = await self.state_builder.build(base_sha, remote_sha)
        diff = get_diff(file_states)
        if bootstrapped:
            self.replace_placeholder(diff, file_states)
        result.diff = diff

        logger.info(
            f"Diff: {len(diff.conflicts)} conflicts, {diff.total_pull} to pull, "
            f"{diff.total_push} to push"
        )

        if diff.total_changes == 0:
            result.success = True
            result.base_sha = remote_sha
            result.messages.append("No changes since last sync")
            return result

        if diff.conflicts:
            await self.conflict_service.handle_conflicts(diff.conflicts)
            result.success = False
            result.messages.append("Sync Aborted: Conflicts detected")
            result.messages.append(f"Please check {self.config.conflict_file} for more info")
            return result

        if diff.total_pull > 0:
            pulled = await self.pull_service.pull_changes(diff, file_states)
            if not pulled:
                result.success = False
                result.messages.append("Sync Aborted: Pull failed")
                return result

        latest_sha = remote_sha
        if diff.total_push > 0:
            commit_sha = await self.push_service.push_changes(
                diff, file_states, remote_sha, self.config.branch, self.config.commit_message
            )
            if commit_sha is None:
                result.success = False
                result.messages.append("Sync Aborted: Push failed")
                return result
            latest_sha = commit_sha

        result.success = True
        result.base_sha = latest_sha
        result.messages.append("Sync: Successful")
        return result

    async def preview(self, base_sha: Optional[str]) -> Tuple[Optional[str], FileStates, DiffResult]:
        """
        Classify pending changes without touching either side.

        An empty branch is not bootstrapped; it is treated as having no
        remote files.

        Raises:
            RemoteAPIError: If GitHub can't be reached or rejects the request
        """
        await self.check_repository()
        remote_sha = await self.github_client.get_head_commit_sha()
        file_states = await self.state_builder.build(base_sha, remote_sha)
        return remote_sha, file_states, get_diff(file_states)

    async def check_repository(self) -> None:
        """Fail early on bad credentials or a missing repository."""
        try:
            await self.github_client.get_repository()
        except RemoteAPIError as e:
            if e.kind == ErrorKind.NOT_FOUND:
                raise RemoteAPIError(
                    f"Repository <{self.config.repo_slug}> does not exist",
                    ErrorKind.NOT_FOUND,
                    e.status_code,
                ) from e
            raise

    async def bootstrap(self) -> str:
        """
        Give a missing branch its first commit, so trees can be layered on it.

        An empty repository gets the commit through the contents API; a
        repository that only lacks this branch gets a new root commit.
        """
        config = self.config
        logger.info(f"Branch {config.branch} has no commits, creating initial commit")
        if await self.github_client.repository_is_empty():
            await self.github_client.create_initial_commit(
                config.placeholder_path, config.placeholder_content, "Initial commit"
            )
        else:
            await self.github_client.create_root_commit(
                config.placeholder_path, config.placeholder_content, "Initial commit"
            )
        remote_sha = await self.github_client.get_head_commit_sha()
        if remote_sha is None:
            raise RemoteAPIError(
                f"Branch {self.config.branch} still has no head after the initial commit"
            )
        return remote_sha

    def replace_placeholder(self, diff: DiffResult, file_states: FileStates) -> None:
        """
        Make sure the bootstrap placeholder never outlives this run.

        It is deleted remotely, unless a local file has the same path, in
        which case the local file replaces it.
        """
        path = self.config.placeholder_path
        diff.discard(path)
        state = file_states.get(path)
        if state is not None and state.local_sha is not None:
            if state.local_sha != state.remote_sha:
                diff.push_update.append(path)
        else:
            diff.push_delete.append(path)

    def describe_error(self, error: RemoteAPIError) -> str:
        if error.kind == ErrorKind.AUTHENTICATION:
            return "Sync Aborted: Authentication failed. Please check the access token"
        if error.kind == ErrorKind.NETWORK:
            return f"Sync Aborted: Network error ({error})"
        return f"Sync Aborted: {error}"
