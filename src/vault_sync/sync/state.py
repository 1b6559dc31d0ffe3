"""Persistence of the last synced commit.

The base commit is the only state that survives between runs. It is
stored together with the repository and branch it belongs to, so pointing
the config at another repository or branch starts over from no base.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from vault_sync.config import SyncConfig


class SyncState(BaseModel):
    """Root model for the persisted state file."""

    version: int = 1
    owner: str = ""
    repository: str = ""
    branch: str = ""
    base_sha: Optional[str] = None
    last_synced_at: Optional[datetime] = None

    def matches(self, config: SyncConfig) -> bool:
        return (self.owner, self.repository, self.branch) == (
            config.owner,
            config.repository,
            config.branch,
        )


class SyncStateManager:
    """Reads and writes the JSON state file.

    Args:
        state_file: Path to the JSON state file.
    """

    def __init__(self, state_file: Path) -> None:
        self.state_file = state_file

    def load(self) -> SyncState:
        """Load state from disk, returning an empty state if the file is missing or empty."""
        if self.state_file.exists() and self.state_file.stat().st_size > 0:
            return SyncState.model_validate_json(self.state_file.read_text(encoding="utf-8"))
        return SyncState()

    def save(self, state: SyncState) -> None:
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(state.model_dump_json(indent=2) + "\n", encoding="utf-8")

    def base_sha_for(self, config: SyncConfig) -> Optional[str]:
        """Return the stored base commit if it was recorded for the same repository and branch."""
        state = self.load()
        if state.base_sha and not state.matches(config):
            logger.info(
                f"Stored base belongs to {state.owner}/{state.repository}@{state.branch}, ignoring it"
            )
            return None
        return state.base_sha

    def record_sync(self, config: SyncConfig, base_sha: Optional[str]) -> SyncState:
        state = SyncState(
            owner=config.owner,
            repository=config.repository,
            branch=config.branch,
            base_sha=base_sha,
            last_synced_at=datetime.now(timezone.utc),
        )
        self.save(state)
        logger.debug(f"Recorded base {base_sha}")
        return state

    def reset(self) -> None:
        """Forget the stored base commit."""
        state = self.load()
        self.save(state.model_copy(update={"base_sha": None}))
