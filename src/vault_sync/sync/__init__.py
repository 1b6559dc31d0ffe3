from .diff import get_diff
from .state import SyncState, SyncStateManager
from .state_builder import StateBuilder
from .sync_service import SyncService
from .utils import DiffResult, FileSource, FileState, FileStates, SyncResult

__all__ = [
    "DiffResult",
    "FileSource",
    "FileState",
    "FileStates",
    "StateBuilder",
    "SyncResult",
    "SyncService",
    "SyncState",
    "SyncStateManager",
    "get_diff",
]
