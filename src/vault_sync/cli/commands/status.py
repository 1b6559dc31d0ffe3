"""Status command for vault-sync CLI."""

import asyncio
from pathlib import Path
from typing import Optional, Tuple

import typer
from loguru import logger

from vault_sync.cli.app import app
from vault_sync.cli.commands.command_utils import (
    console,
    display_diff,
    home_option,
    load_config,
    sync_service_session,
)
from vault_sync.config import SyncConfig
from vault_sync.github import RemoteAPIError
from vault_sync.services.exceptions import FileOperationError
from vault_sync.sync import DiffResult, SyncStateManager


async def run_status(config: SyncConfig) -> Tuple[Optional[str], Optional[str], DiffResult]:
    """Classify pending changes without writing anything."""
    base_sha = SyncStateManager(config.state_file).base_sha_for(config)
    async with sync_service_session(config) as sync_service:
        remote_sha, _, diff = await sync_service.preview(base_sha)
    return base_sha, remote_sha, diff


@app.command()
def status(home: Optional[Path] = home_option) -> None:
    """Show what the next sync would pull, push or flag as conflicting."""
    config = load_config(home)
    try:
        base_sha, remote_sha, diff = asyncio.run(run_status(config))
    except RemoteAPIError as e:
        logger.error(f"Status failed: {e}")
        console.print(f"[red]Status failed ({e.kind.value}): {e}[/red]")
        raise typer.Exit(1)
    except FileOperationError as e:
        logger.error(f"Status failed: {e}")
        console.print(f"[red]Status failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"Repository: [bold]{config.repo_slug}[/bold] @ {config.branch}")
    console.print(f"Base:   {base_sha[:8] if base_sha else '[dim]none[/dim]'}")
    console.print(f"Remote: {remote_sha[:8] if remote_sha else '[dim]empty branch[/dim]'}")
    display_diff(diff, "Pending changes")
