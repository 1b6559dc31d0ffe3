"""Common test fixtures."""

import base64
import hashlib
import json
import re
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

import httpx
import pytest
import pytest_asyncio

from vault_sync.config import SyncConfig
from vault_sync.file_utils import compute_checksum
from vault_sync.github import GitHubClient
from vault_sync.services import FileService
from vault_sync.sync import SyncService

OWNER = "octo"
REPOSITORY = "notes"
TOKEN = "test-token"

ROUTE = re.compile(rf"^/repos/{OWNER}/{REPOSITORY}(?P<rest>/.*)?$")


class FakeGitHub:
    """In-memory stand-in for the GitHub git data API, served through httpx.MockTransport.

    Stores blobs, trees (flat path -> blob sha), commits and branch refs,
    and implements the endpoints GitHubClient calls.
    """

    def __init__(self, token: str = TOKEN):
        self.token = token
        self.repo_exists = True
        self.blobs: Dict[str, bytes] = {}
        self.trees: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, dict] = {}
        self.refs: Dict[str, str] = {}
        self.requests: List[Tuple[str, str]] = []
        # number of head reads that still report the previous sha after a ref change
        self.ref_lag = 0
        self._stale_heads: Dict[str, Optional[str]] = {}
        self._stale_reads_left: Dict[str, int] = {}
        # (method, path regex) -> status code, or "network" to raise a transport error
        self.failures: Dict[Tuple[str, str], Union[int, str]] = {}
        self.truncate_trees = False
        self._counter = 0

    # helpers for tests

    def add_blob(self, content: Union[str, bytes]) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else content
        sha = compute_checksum(data)
        self.blobs[sha] = data
        return sha

    def add_tree(self, entries: Dict[str, str]) -> str:
        sha = hashlib.sha1(json.dumps(sorted(entries.items())).encode()).hexdigest()
        self.trees[sha] = dict(entries)
        return sha

    def add_commit(self, tree_sha: str, parents: List[str], message: str) -> str:
        self._counter += 1
        payload = json.dumps([tree_sha, parents, message, self._counter])
        sha = hashlib.sha1(payload.encode()).hexdigest()
        self.commits[sha] = {"tree": tree_sha, "parents": parents, "message": message}
        return sha

    def commit_files(
        self, files: Dict[str, Union[str, bytes]], branch: str = "main", message: str = "seed"
    ) -> str:
        """Commit a full snapshot of files on branch and move the branch to it."""
        tree_sha = self.add_tree({path: self.add_blob(content) for path, content in files.items()})
        parent = self.refs.get(branch)
        commit_sha = self.add_commit(tree_sha, [parent] if parent else [], message)
        self.refs[branch] = commit_sha
        return commit_sha

    def files_at(self, commit_sha: str) -> Dict[str, bytes]:
        tree = self.trees[self.commits[commit_sha]["tree"]]
        return {path: self.blobs[sha] for path, sha in tree.items()}

    def head_files(self, branch: str = "main") -> Dict[str, bytes]:
        return self.files_at(self.refs[branch])

    def requested(self, method: str, pattern: str) -> int:
        return sum(1 for m, p in self.requests if m == method and re.search(pattern, p))

    def is_ancestor(self, ancestor: str, commit: str) -> bool:
        todo = [commit]
        seen: Set[str] = set()
        while todo:
            sha = todo.pop()
            if sha == ancestor:
                return True
            if sha in seen or sha not in self.commits:
                continue
            seen.add(sha)
            todo.extend(self.commits[sha]["parents"])
        return False

    def _set_ref(self, branch: str, sha: str) -> None:
        if self.ref_lag:
            self._stale_heads[branch] = self.refs.get(branch)
            self._stale_reads_left[branch] = self.ref_lag
        self.refs[branch] = sha

    # transport

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        for (method, pattern), failure in self.failures.items():
            if method == request.method and re.search(pattern, path):
                if failure == "network":
                    raise httpx.ConnectError("connection refused", request=request)
                return httpx.Response(failure, json={"message": "injected failure"})

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Bad credentials"})

        match = ROUTE.match(path)
        if not match or not self.repo_exists:
            return httpx.Response(404, json={"message": "Not Found"})

        rest = match.group("rest") or ""
        body = json.loads(request.content) if request.content else {}
        return self.route(request.method, rest, body)

    def route(self, method: str, rest: str, body: dict) -> httpx.Response:
        if method == "GET" and rest == "":
            return httpx.Response(200, json={"full_name": f"{OWNER}/{REPOSITORY}"})

        if method == "GET" and rest == "/git/refs/heads":
            if not self.refs:
                return httpx.Response(409, json={"message": "Git Repository is empty."})
            return httpx.Response(
                200,
                json=[
                    {"ref": f"refs/heads/{branch}", "object": {"sha": sha}}
                    for branch, sha in sorted(self.refs.items())
                ],
            )

        if method == "GET" and rest.startswith("/git/ref/heads/"):
            return self.get_ref(rest[len("/git/ref/heads/"):])

        if method == "PATCH" and rest.startswith("/git/refs/heads/"):
            return self.update_ref(rest[len("/git/refs/heads/"):], body)

        if method == "POST" and rest == "/git/refs":
            branch = body["ref"][len("refs/heads/"):]
            if branch in self.refs:
                return httpx.Response(422, json={"message": "Reference already exists"})
            self._set_ref(branch, body["sha"])
            return httpx.Response(201, json={"ref": body["ref"], "object": {"sha": body["sha"]}})

        if method == "GET" and rest.startswith("/git/commits/"):
            sha = rest[len("/git/commits/"):]
            commit = self.commits.get(sha)
            if commit is None:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(
                200,
                json={
                    "sha": sha,
                    "tree": {"sha": commit["tree"]},
                    "message": commit["message"],
                    "parents": [{"sha": p} for p in commit["parents"]],
                },
            )

        if method == "GET" and rest.startswith("/git/trees/"):
            return self.get_tree(rest[len("/git/trees/"):])

        if method == "GET" and rest.startswith("/git/blobs/"):
            sha = rest[len("/git/blobs/"):]
            if sha not in self.blobs:
                return httpx.Response(404, json={"message": "Not Found"})
            encoded = base64.encodebytes(self.blobs[sha]).decode("ascii")
            return httpx.Response(200, json={"sha": sha, "content": encoded, "encoding": "base64"})

        if method == "POST" and rest == "/git/blobs":
            if body["encoding"] == "base64":
                data = base64.b64decode(body["content"])
            else:
                data = body["content"].encode("utf-8")
            return httpx.Response(201, json={"sha": self.add_blob(data)})

        if method == "POST" and rest == "/git/trees":
            return self.create_tree(body)

        if method == "POST" and rest == "/git/commits":
            if body["tree"] not in self.trees:
                return httpx.Response(422, json={"message": "Tree not found"})
            sha = self.add_commit(body["tree"], body.get("parents", []), body["message"])
            return httpx.Response(201, json={"sha": sha})

        if method == "PUT" and rest.startswith("/contents/"):
            return self.put_contents(rest[len("/contents/"):], body)

        return httpx.Response(404, json={"message": "Not Found"})

    def get_ref(self, branch: str) -> httpx.Response:
        if self._stale_reads_left.get(branch):
            self._stale_reads_left[branch] -= 1
            sha = self._stale_heads[branch]
        else:
            sha = self.refs.get(branch)
        if sha is None:
            if not self.refs:
                return httpx.Response(409, json={"message": "Git Repository is empty."})
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"ref": f"refs/heads/{branch}", "object": {"sha": sha}})

    def update_ref(self, branch: str, body: dict) -> httpx.Response:
        current = self.refs.get(branch)
        if current is None:
            return httpx.Response(422, json={"message": "Reference does not exist"})
        if not body.get("force") and not self.is_ancestor(current, body["sha"]):
            return httpx.Response(422, json={"message": "Update is not a fast forward"})
        self._set_ref(branch, body["sha"])
        return httpx.Response(200, json={"object": {"sha": body["sha"]}})

    def get_tree(self, sha: str) -> httpx.Response:
        tree = self.trees.get(sha)
        if tree is None:
            return httpx.Response(404, json={"message": "Not Found"})
        entries = []
        folders = set()
        for path, blob_sha in sorted(tree.items()):
            parts = path.split("/")
            for i in range(1, len(parts)):
                folders.add("/".join(parts[:i]))
            entries.append({"path": path, "mode": "100644", "type": "blob", "sha": blob_sha})
        entries.extend(
            {"path": folder, "mode": "040000", "type": "tree", "sha": "f" * 40}
            for folder in sorted(folders)
        )
        return httpx.Response(
            200, json={"sha": sha, "tree": entries, "truncated": self.truncate_trees}
        )

    def create_tree(self, body: dict) -> httpx.Response:
        base = body.get("base_tree")
        if base is not None and base not in self.trees:
            return httpx.Response(422, json={"message": "Invalid base_tree"})
        entries = dict(self.trees[base]) if base else {}
        for node in body["tree"]:
            if "content" in node:
                entries[node["path"]] = self.add_blob(node["content"])
            elif node.get("sha") is None:
                entries.pop(node["path"], None)
            else:
                if node["sha"] not in self.blobs:
                    return httpx.Response(422, json={"message": "Invalid sha"})
                entries[node["path"]] = node["sha"]
        return httpx.Response(201, json={"sha": self.add_tree(entries)})

    def put_contents(self, path: str, body: dict) -> httpx.Response:
        branch = body.get("branch", "main")
        if self.refs and branch not in self.refs:
            return httpx.Response(404, json={"message": "Branch not found"})
        blob_sha = self.add_blob(base64.b64decode(body["content"]))
        parent = self.refs.get(branch)
        entries = dict(self.trees[self.commits[parent]["tree"]]) if parent else {}
        entries[path] = blob_sha
        commit_sha = self.add_commit(self.add_tree(entries), [parent] if parent else [], body["message"])
        self._set_ref(branch, commit_sha)
        return httpx.Response(201, json={"commit": {"sha": commit_sha}})


@pytest.fixture
def config_home(tmp_path) -> Path:
    home = tmp_path / "vault"
    home.mkdir()
    return home


@pytest.fixture
def config(config_home) -> SyncConfig:
    """Create test configuration with fast ref polling."""
    return SyncConfig(
        home=config_home,
        owner=OWNER,
        repository=REPOSITORY,
        branch="main",
        access_token=TOKEN,
        ref_poll_initial_delay=0.001,
        ref_poll_max_delay=0.005,
        ref_poll_timeout=0.5,
    )


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest_asyncio.fixture
async def github_client(config, fake_github):
    client = GitHubClient(config, transport=httpx.MockTransport(fake_github.handler))
    yield client
    await client.aclose()


@pytest.fixture
def file_service(config) -> FileService:
    return FileService(config.home)


@pytest.fixture
def sync_service(config, file_service, github_client) -> SyncService:
    return SyncService(config, file_service, github_client)


@pytest.fixture
def write_local(config_home):
    """Return a helper that creates a file in the local folder."""

    def _write(path: str, content: Union[str, bytes]) -> Path:
        full_path = config_home / path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8") if isinstance(content, str) else content
        full_path.write_bytes(data)
        return full_path

    return _write
