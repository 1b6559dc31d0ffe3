from .client import GitHubClient
from .exceptions import ErrorKind, RefUpdateTimeoutError, RemoteAPIError
from .schemas import Commit, TreeEntry, TreeNode

__all__ = [
    "Commit",
    "ErrorKind",
    "GitHubClient",
    "RefUpdateTimeoutError",
    "RemoteAPIError",
    "TreeEntry",
    "TreeNode",
]
