"""Configuration management for vault-sync."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STATE_FILE_NAME = "state.json"
LOG_FILE_NAME = "vault-sync.log"


class SyncConfig(BaseSettings):
    """Settings for syncing one local folder with one GitHub branch.

    Instances are immutable. Use ``with_changes`` to derive a new config
    when a setting changes.
    """

    home: Path = Field(
        default_factory=Path.cwd,
        description="Root of the local folder being synced",
    )

    owner: str = Field(default="", description="Repository owner on GitHub")
    repository: str = Field(default="", description="GitHub repository name")
    branch: str = Field(default="main", description="Branch to sync with")
    access_token: str = Field(default="", description="GitHub personal access token")

    api_url: str = Field(default="https://api.github.com", description="GitHub REST API root")
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    commit_message: str = Field(default="Sync", description="Message for sync commits")
    conflict_file: str = Field(
        default="CONFLICTS.md", description="Path of the conflict checklist in the local folder"
    )
    placeholder_path: str = Field(
        default="README.md", description="File created to initialize an empty branch"
    )
    placeholder_content: str = Field(default="Initialized")

    # Ref propagation polling after a branch update
    ref_poll_initial_delay: float = 0.5
    ref_poll_multiplier: float = 1.5
    ref_poll_max_delay: float = 5.0
    ref_poll_timeout: float = 60.0

    log_level: str = "WARNING"
    state_dir_name: str = ".vault-sync"

    model_config = SettingsConfigDict(
        env_prefix="VAULT_SYNC_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        frozen=True,
    )

    @field_validator("owner", "repository", "branch", "access_token")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    @property
    def state_dir(self) -> Path:
        return self.home / self.state_dir_name

    @property
    def state_file(self) -> Path:
        """Get path of the persisted sync state."""
        return self.state_dir / STATE_FILE_NAME

    @property
    def log_file(self) -> Path:
        return self.state_dir / LOG_FILE_NAME

    @property
    def repo_slug(self) -> str:
        return f"{self.owner}/{self.repository}"

    def validate_remote(self) -> None:
        """Raise ValueError if the settings needed to reach GitHub are missing."""
        for name in ("owner", "repository", "branch", "access_token"):
            if not getattr(self, name):
                raise ValueError(
                    f"{name} is required (set VAULT_SYNC_{name.upper()} or add it to .env)"
                )

    def with_changes(self, **updates) -> "SyncConfig":
        """Return a copy of this config with the given fields replaced."""
        return self.model_copy(update=updates)
