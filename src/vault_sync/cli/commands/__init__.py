"""CLI commands for vault-sync."""

from . import status, sync

__all__ = ["status", "sync"]
