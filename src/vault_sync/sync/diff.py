"""Three-way classification of file states."""

from loguru import logger

from vault_sync.sync.utils import DiffResult, FileStates


def get_diff(file_states: FileStates) -> DiffResult:
    """
    Classify every path by comparing base, local and remote identifiers.

    Rules are checked in order and the first match wins. "Already synced"
    and "changed on both sides" must be tested before the one-sided rules,
    or a divergent pair would be taken for a plain pull or push. A path
    deleted on both sides matches nothing and is left alone.

    Args:
        file_states: Identifiers per path

    Returns:
        DiffResult with each out-of-sync path in exactly one list
    """
    result = DiffResult()

    for path, state in file_states.items():
        base = state.base_sha
        local = state.local_sha
        remote = state.remote_sha

        if base is None:
            if local is not None and remote is not None:
                if local != remote:
                    result.conflicts.append(path)
                continue
            if local is None and remote is not None:
                result.pull_new.append(path)
                continue
            if local is not None and remote is None:
                result.push_new.append(path)
                continue

        if local == base and remote == base:
            continue

        if remote != local and local != base and remote != base:
            result.conflicts.append(path)
        elif local == base and remote != local and remote is not None:
            result.pull_update.append(path)
        elif remote == base and remote != local and local is not None:
            result.push_update.append(path)
        elif local == base and remote is None:
            result.pull_delete.append(path)
        elif remote == base and local is None:
            result.push_delete.append(path)

    logger.debug(
        f"Diff: {len(result.pull_new)} pull new, {len(result.pull_update)} pull update, "
        f"{len(result.pull_delete)} pull delete, {len(result.push_new)} push new, "
        f"{len(result.push_update)} push update, {len(result.push_delete)} push delete, "
        f"{len(result.conflicts)} conflicts"
    )
    return result
