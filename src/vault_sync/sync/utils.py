"""Types and utilities for file sync."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union


class FileSource(str, Enum):
    """Where a file identifier came from."""

    BASE = "base"
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class FileState:
    """Identifiers of one path in the base snapshot, the local folder and the remote branch.

    A None identifier means the path does not exist on that side. ``content``
    holds the local content read while hashing (``str`` for text files,
    ``bytes`` otherwise) so push doesn't read the file twice.
    """

    base_sha: Optional[str] = None
    local_sha: Optional[str] = None
    remote_sha: Optional[str] = None
    content: Optional[Union[str, bytes]] = None


class FileStates:
    """Path keyed map of FileState, filled from three sources.

    Each source only ever sets its own identifier, so concurrent producers
    can't clobber each other's data.
    """

    _fields = {
        FileSource.BASE: "base_sha",
        FileSource.LOCAL: "local_sha",
        FileSource.REMOTE: "remote_sha",
    }

    def __init__(self) -> None:
        self._states: Dict[str, FileState] = {}

    def get_or_create(self, path: str) -> FileState:
        state = self._states.get(path)
        if state is None:
            state = FileState()
            self._states[path] = state
        return state

    def record(
        self,
        path: str,
        source: FileSource,
        sha: str,
        content: Optional[Union[str, bytes]] = None,
    ) -> None:
        """Set the identifier for path from source.

        Raises:
            ValueError: If source already recorded an identifier for path
        """
        state = self.get_or_create(path)
        attr = self._fields[source]
        if getattr(state, attr) is not None:
            raise ValueError(f"{source.value} identifier for {path} recorded twice")

        setattr(state, attr, sha)
        if source == FileSource.LOCAL and content is not None:
            state.content = content

    def get(self, path: str) -> Optional[FileState]:
        return self._states.get(path)

    def items(self) -> Iterator[Tuple[str, FileState]]:
        return iter(self._states.items())

    def __contains__(self, path: object) -> bool:
        return path in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)


@dataclass
class DiffResult:
    """Actions needed to reconcile each path.

    A path appears in at most one list. Paths in no list are already in sync.
    """

    pull_new: List[str] = field(default_factory=list)
    pull_update: List[str] = field(default_factory=list)
    pull_delete: List[str] = field(default_factory=list)
    push_new: List[str] = field(default_factory=list)
    push_update: List[str] = field(default_factory=list)
    push_delete: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)

    @property
    def total_pull(self) -> int:
        return len(self.pull_new) + len(self.pull_update) + len(self.pull_delete)

    @property
    def total_push(self) -> int:
        return len(self.push_new) + len(self.push_update) + len(self.push_delete)

    @property
    def total_changes(self) -> int:
        """Total number of paths that need attention."""
        return len(self.conflicts) + self.total_pull + self.total_push

    def discard(self, path: str) -> None:
        """Remove path from whichever action list holds it."""
        for f in fields(self):
            paths = getattr(self, f.name)
            if path in paths:
                paths.remove(path)


@dataclass
class SyncResult:
    """Outcome of one sync run.

    Attributes:
        success: Whether local and remote are now in sync
        messages: Human readable status lines
        base_sha: Base commit the caller should persist for the next run
        diff: Classified actions, when classification was reached
    """

    success: bool = False
    messages: List[str] = field(default_factory=list)
    base_sha: Optional[str] = None
    diff: Optional[DiffResult] = None
