"""Command module for vault-sync sync operations."""

import asyncio
from pathlib import Path
from typing import Optional

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
from vault_sync.sync import SyncResult, SyncStateManager


async def run_sync(config: SyncConfig) -> SyncResult:
    """Run one sync and persist the new base commit if it succeeded."""
    state_manager = SyncStateManager(config.state_file)
    base_sha = state_manager.base_sha_for(config)

    async with sync_service_session(config) as sync_service:
        result = await sync_service.sync(base_sha)

    if result.success:
        state_manager.record_sync(config, result.base_sha)
    return result


def display_sync_result(result: SyncResult, verbose: bool = False) -> None:
    style = "green" if result.success else "red"
    for message in result.messages:
        console.print(f"[{style}]{message}[/{style}]")

    if verbose and result.diff is not None:
        display_diff(result.diff, "Sync Results")


@app.command()
def sync(
    home: Optional[Path] = home_option,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed sync information.",
    ),
) -> None:
    """Sync the local folder with the GitHub branch."""
    config = load_config(home)
    try:
        result = asyncio.run(run_sync(config))
    except Exception as e:
        logger.exception("Sync failed")
        typer.echo(f"Error during sync: {e}", err=True)
        raise typer.Exit(1)

    display_sync_result(result, verbose)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def reset(home: Optional[Path] = home_option) -> None:
    """Forget the last synced commit. The next sync compares without a base."""
    config = load_config(home)
    SyncStateManager(config.state_file).reset()
    console.print("[yellow]Sync base cleared[/yellow]")
