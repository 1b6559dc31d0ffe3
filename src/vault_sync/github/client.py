"""Async client for the GitHub git data API."""

import asyncio
import time
from typing import Any, List, Optional, Type, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from vault_sync.config import SyncConfig
from vault_sync.github.exceptions import (
    ErrorKind,
    RefUpdateTimeoutError,
    RemoteAPIError,
    kind_for_status,
)
from vault_sync.github.schemas import Commit, TreeEntry, TreeListing, TreeNode
from vault_sync.utils import bytes_to_base64

ModelT = TypeVar("ModelT", bound=BaseModel)

GITHUB_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"


class GitHubClient:
    """
    Thin wrapper over the GitHub REST endpoints the sync engine needs.

    Every failure surfaces as a ``RemoteAPIError`` carrying an ``ErrorKind``
    so callers never inspect HTTP details.

    Usage:
        async with GitHubClient(config) as client:
            head = await client.get_head_commit_sha()
    """

    def __init__(self, config: SyncConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers={
                "Authorization": f"Bearer {config.access_token}",
                "Accept": GITHUB_MEDIA_TYPE,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            },
            timeout=config.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.config.owner}/{self.config.repository}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and translate failures into RemoteAPIError."""
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.debug(f"{method} {url} failed with {status}: {e.response.text}")
            raise RemoteAPIError(
                f"{method} {url} returned {status}", kind_for_status(status), status
            ) from e
        except httpx.TransportError as e:
            raise RemoteAPIError(f"{method} {url} failed: {e}", ErrorKind.NETWORK) from e
        except httpx.HTTPError as e:
            raise RemoteAPIError(f"{method} {url} failed: {e}") from e

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = await self._request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteAPIError(f"{method} {url} returned invalid JSON") from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RemoteAPIError(f"Unexpected {model.__name__} payload: {e}") from e

    @staticmethod
    def _sha_of(data: Any, what: str) -> str:
        if not isinstance(data, dict) or not data.get("sha"):
            raise RemoteAPIError(f"{what} response has no sha")
        return data["sha"]

    # Repository and refs

    async def get_repository(self) -> dict:
        """Fetch repository metadata. Raises NOT_FOUND if the repository is absent."""
        return await self._request_json("GET", self.repo_path)

    async def get_head_commit_sha(self, branch: Optional[str] = None) -> Optional[str]:
        """
        Resolve the commit a branch points at.

        Returns:
            The commit sha, or None if the branch (or the whole repository
            history) does not exist yet.
        """
        branch = branch or self.config.branch
        try:
            data = await self._request_json(
                "GET",
                f"{self.repo_path}/git/ref/heads/{branch}",
                # bypass conditional caching so ref polling sees fresh values
                headers={"If-None-Match": ""},
            )
        except RemoteAPIError as e:
            # 409 is GitHub's answer for ref lookups in an empty repository
            if e.kind == ErrorKind.NOT_FOUND or e.status_code == 409:
                return None
            raise

        try:
            return data["object"]["sha"]
        except (KeyError, TypeError) as e:
            raise RemoteAPIError(f"Unexpected ref payload for {branch}") from e

    async def repository_is_empty(self) -> bool:
        """True if the repository has no commits at all (GitHub answers 409)."""
        try:
            await self._request("GET", f"{self.repo_path}/git/refs/heads")
        except RemoteAPIError as e:
            if e.status_code == 409:
                return True
            if e.kind == ErrorKind.NOT_FOUND:
                return False
            raise
        return False

    async def create_initial_commit(self, path: str, content: str, message: str) -> None:
        """
        Create the first commit of an empty repository through the contents API.

        The git data endpoints reject writes until a repository has a commit.
        """
        logger.info(f"Creating initial commit with {path} on {self.config.branch}")
        await self._request(
            "PUT",
            f"{self.repo_path}/contents/{path}",
            json={
                "message": message,
                "content": bytes_to_base64(content.encode("utf-8")),
                "branch": self.config.branch,
            },
        )

    async def create_root_commit(
        self, path: str, content: str, message: str, branch: Optional[str] = None
    ) -> str:
        """Start a new branch with a parentless commit holding a single file."""
        branch = branch or self.config.branch
        logger.info(f"Creating root commit with {path} on new branch {branch}")
        blob_sha = await self.create_blob(bytes_to_base64(content.encode("utf-8")), "base64")
        tree_sha = await self.create_tree([TreeNode(path=path, sha=blob_sha)], None)
        commit_sha = await self.create_commit(tree_sha, None, message)
        await self.create_ref(commit_sha, branch)
        return commit_sha

    async def create_ref(self, sha: str, branch: Optional[str] = None) -> None:
        branch = branch or self.config.branch
        logger.debug(f"Creating ref heads/{branch} -> {sha}")
        await self._request(
            "POST",
            f"{self.repo_path}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        await self.wait_for_ref(sha, branch)

    async def update_ref(self, sha: str, branch: Optional[str] = None) -> None:
        """Fast-forward a branch. Fails instead of overwriting divergent history."""
        branch = branch or self.config.branch
        logger.debug(f"Updating ref heads/{branch} -> {sha}")
        await self._request(
            "PATCH",
            f"{self.repo_path}/git/refs/heads/{branch}",
            json={"sha": sha, "force": False},
        )
        await self.wait_for_ref(sha, branch)

    async def wait_for_ref(self, sha: str, branch: Optional[str] = None) -> None:
        """
        Poll the branch head until it reports sha.

        GitHub's ref reads are eventually consistent, so a fresh update may
        not be visible immediately. Polls with exponential backoff until the
        configured timeout.

        Raises:
            RefUpdateTimeoutError: If the new head is not observed in time
        """
        config = self.config
        start = time.monotonic()
        delay = config.ref_poll_initial_delay
        logger.info("Waiting for GitHub to report the new branch head")

        while True:
            if await self.get_head_commit_sha(branch) == sha:
                return

            remaining = config.ref_poll_timeout - (time.monotonic() - start)
            if remaining <= 0:
                raise RefUpdateTimeoutError(
                    f"Timed out waiting for heads/{branch or config.branch} to reach {sha}"
                )

            # never sleep past the deadline
            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * config.ref_poll_multiplier, config.ref_poll_max_delay)

    # Git objects

    async def get_commit(self, sha: str) -> Commit:
        data = await self._request_json("GET", f"{self.repo_path}/git/commits/{sha}")
        return self._parse(Commit, data)

    async def get_tree(self, commit_sha: str) -> List[TreeEntry]:
        """
        List every blob in a commit's tree, recursively.

        Raises:
            RemoteAPIError: If GitHub truncated the listing
        """
        commit = await self.get_commit(commit_sha)
        data = await self._request_json(
            "GET",
            f"{self.repo_path}/git/trees/{commit.tree.sha}",
            params={"recursive": "true"},
        )
        listing = self._parse(TreeListing, data)
        if listing.truncated:
            raise RemoteAPIError(f"Tree listing for {commit_sha} was truncated by GitHub")
        return listing.blobs

    async def get_blob(self, sha: str) -> str:
        """Fetch a blob's content, base64 encoded."""
        data = await self._request_json("GET", f"{self.repo_path}/git/blobs/{sha}")
        if not isinstance(data, dict) or "content" not in data:
            raise RemoteAPIError(f"Blob {sha} response has no content")
        return data["content"]

    async def create_blob(self, content: str, encoding: str = "base64") -> str:
        data = await self._request_json(
            "POST",
            f"{self.repo_path}/git/blobs",
            json={"content": content, "encoding": encoding},
        )
        return self._sha_of(data, "create blob")

    async def create_tree(self, nodes: List[TreeNode], base_tree_sha: Optional[str]) -> str:
        payload: dict = {"tree": [node.to_payload() for node in nodes]}
        if base_tree_sha:
            payload["base_tree"] = base_tree_sha

        data = await self._request_json("POST", f"{self.repo_path}/git/trees", json=payload)
        return self._sha_of(data, "create tree")

    async def create_commit(self, tree_sha: str, parent_sha: Optional[str], message: str) -> str:
        payload: dict = {"tree": tree_sha, "message": message}
        if parent_sha:
            payload["parents"] = [parent_sha]

        data = await self._request_json("POST", f"{self.repo_path}/git/commits", json=payload)
        return self._sha_of(data, "create commit")
