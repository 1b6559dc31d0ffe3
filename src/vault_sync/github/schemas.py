"""Pydantic models for the parts of the GitHub git data API we use."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

BLOB_MODE = "100644"


class TreeEntry(BaseModel):
    """One entry of a recursive tree listing."""

    model_config = ConfigDict(extra="ignore")

    path: str
    mode: str
    type: str
    sha: Optional[str] = None


class TreeListing(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sha: str
    tree: List[TreeEntry] = Field(default_factory=list)
    truncated: bool = False

    @property
    def blobs(self) -> List[TreeEntry]:
        return [entry for entry in self.tree if entry.type == "blob" and entry.sha]


class TreeNode(BaseModel):
    """Entry sent to the create-tree endpoint.

    Exactly one of ``sha`` or ``content`` is sent. A ``sha`` of None removes
    the path from the base tree.
    """

    path: str
    mode: Literal["100644"] = BLOB_MODE
    type: Literal["blob", "tree"] = "blob"
    sha: Optional[str] = None
    content: Optional[str] = None

    def to_payload(self) -> dict:
        payload = {"path": self.path, "mode": self.mode, "type": self.type}
        if self.content is not None:
            payload["content"] = self.content
        else:
            payload["sha"] = self.sha
        return payload


class CommitTree(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sha: str


class Commit(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sha: str
    tree: CommitTree
    message: str = ""
