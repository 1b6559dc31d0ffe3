"""Main CLI entry point for vault-sync."""  # pragma: no cover

from vault_sync.cli.app import app  # pragma: no cover

# Register commands
from vault_sync.cli.commands import status, sync  # pragma: no cover

__all__ = ["app", "status", "sync"]  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
