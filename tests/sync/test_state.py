"""Tests for the persisted sync state."""

import pytest

from vault_sync.sync import SyncState, SyncStateManager


@pytest.fixture
def state_manager(config) -> SyncStateManager:
    return SyncStateManager(config.state_file)


def test_load_missing_file(state_manager):
    state = state_manager.load()
    assert state == SyncState()
    assert state.base_sha is None


def test_load_empty_file(state_manager, config):
    config.state_dir.mkdir(parents=True)
    config.state_file.write_text("")
    assert state_manager.load().base_sha is None


def test_record_and_read_base(state_manager, config):
    state_manager.record_sync(config, "abc123")

    assert config.state_file.exists()
    loaded = state_manager.load()
    assert loaded.base_sha == "abc123"
    assert loaded.last_synced_at is not None
    assert state_manager.base_sha_for(config) == "abc123"


def test_base_ignored_for_other_branch(state_manager, config):
    state_manager.record_sync(config, "abc123")

    assert state_manager.base_sha_for(config.with_changes(branch="dev")) is None
    assert state_manager.base_sha_for(config.with_changes(repository="other")) is None
    assert state_manager.base_sha_for(config.with_changes(owner="someone")) is None


def test_reset_keeps_repository(state_manager, config):
    state_manager.record_sync(config, "abc123")

    state_manager.reset()

    state = state_manager.load()
    assert state.base_sha is None
    assert state.repository == config.repository
    assert state_manager.base_sha_for(config) is None


def test_invalid_state_file_raises(state_manager, config):
    config.state_dir.mkdir(parents=True)
    config.state_file.write_text("{not json")
    with pytest.raises(ValueError):
        state_manager.load()
