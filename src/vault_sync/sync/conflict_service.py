"""Writes unresolved conflicts to a checklist in the local folder."""

from typing import List

from loguru import logger

from vault_sync.services import FileService

CONFLICTS_HEADER = (
    "## Conflicts\n\nPlease resolve the following files manually before syncing again:\n\n"
)


def render_conflicts(conflicts: List[str]) -> str:
    return CONFLICTS_HEADER + "\n".join(f"- [ ] {path}" for path in conflicts)


class ConflictService:
    def __init__(self, file_service: FileService, conflict_file: str = "CONFLICTS.md"):
        self.file_service = file_service
        self.conflict_file = conflict_file

    async def handle_conflicts(self, conflicts: List[str]) -> None:
        """Overwrite the conflict file with one checklist item per conflicted path."""
        logger.warning(f"{len(conflicts)} conflicts, writing {self.conflict_file}")
        for path in conflicts:
            logger.debug(f"conflict: {path}")
        await self.file_service.write_text(self.conflict_file, render_conflicts(conflicts))
