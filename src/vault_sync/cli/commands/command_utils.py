"""utility functions for commands"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import typer
from rich.console import Console
from rich.tree import Tree

from vault_sync.config import SyncConfig
from vault_sync.github import GitHubClient
from vault_sync.services import FileService
from vault_sync.sync import DiffResult, SyncService
from vault_sync.utils import setup_logging

console = Console()

home_option = typer.Option(
    None,
    "--home",
    help="Folder to sync (defaults to VAULT_SYNC_HOME or the current directory).",
)


def load_config(home: Optional[Path]) -> SyncConfig:
    """Load settings from the environment, validate them and set up logging."""
    config = SyncConfig(home=home) if home else SyncConfig()
    setup_logging(log_file=config.log_file, level=config.log_level)
    try:
        config.validate_remote()
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)
    return config


@asynccontextmanager
async def sync_service_session(config: SyncConfig) -> AsyncIterator[SyncService]:
    """Yield a SyncService whose GitHub client is closed afterwards."""
    async with GitHubClient(config) as github_client:
        yield SyncService(config, FileService(config.home), github_client)


def diff_tree(diff: DiffResult, title: str = "Changes") -> Tree:
    tree = Tree(f"[bold]{title}[/bold]")
    sections = [
        ("Conflicts", "red", diff.conflicts),
        ("Pull new", "green", diff.pull_new),
        ("Pull update", "yellow", diff.pull_update),
        ("Pull delete", "red", diff.pull_delete),
        ("Push new", "green", diff.push_new),
        ("Push update", "yellow", diff.push_update),
        ("Push delete", "red", diff.push_delete),
    ]
    for label, style, paths in sections:
        if not paths:
            continue
        branch = tree.add(f"[{style}]{label}[/{style}] ({len(paths)})")
        for path in sorted(paths):
            branch.add(f"[{style}]{path}[/{style}]")
    return tree


def display_diff(diff: DiffResult, title: str = "Changes") -> None:
    if diff.total_changes == 0:
        console.print("[green]Everything up to date[/green]")
        return
    console.print(diff_tree(diff, title))
