"""
Task discovery - which tasks of a network are still pending, in what order.

Layout:
    tasks/
        eth/
            001-upgrade-fault-proofs/
                config.toml
                README.md          # "Status: EXECUTED" marks it done
                state_diff.json    # optional expectation
            002-gas-config/
                config.toml
        sep/
            ...

The returned order is the execution order the orchestrator trusts.
"""

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from chainops.errors import ConfigError
from chainops.task_config import CONFIG_FILENAMES, find_config_file

logger = logging.getLogger(__name__)

# "Status: EXECUTED", "Status: [CANCELLED]", "**Status**: executed", ...
DONE_STATUS_PATTERN = re.compile(
    r"status\W*:\s*\[?\s*(executed|cancelled)\b", re.IGNORECASE
)


@runtime_checkable
class TaskDiscovery(Protocol):
    """List pending task config paths for a network, in execution order."""

    def list_pending_tasks(self, network: str) -> list[Path]:
        ...


def is_task_done(task_dir: Path) -> bool:
    """Whether the task's README declares it executed or cancelled."""
    readme = task_dir / "README.md"
    if not readme.exists():
        return False
    return DONE_STATUS_PATTERN.search(readme.read_text()) is not None


class FilesystemTaskDiscovery:
    """
    Discover tasks from a directory tree, one subdirectory per network.

    Tasks are ordered by directory name; number prefixes ("001-", "002-")
    give the intended order.
    """

    def __init__(self, tasks_root: Path | str):
        self._tasks_root = Path(tasks_root)

    @property
    def tasks_root(self) -> Path:
        return self._tasks_root

    def list_networks(self) -> list[str]:
        if not self._tasks_root.exists():
            return []
        return sorted(p.name for p in self._tasks_root.iterdir() if p.is_dir())

    def list_tasks(self, network: str) -> list[Path]:
        """All task directories of a network holding a config file, by name."""
        network_dir = self._tasks_root / network
        if not network_dir.is_dir():
            raise ConfigError(f"Unknown network '{network}': {network_dir} does not exist")

        return sorted(
            d for d in network_dir.iterdir()
            if d.is_dir() and any((d / name).exists() for name in CONFIG_FILENAMES)
        )

    def list_pending_tasks(self, network: str) -> list[Path]:
        pending = []
        for task_dir in self.list_tasks(network):
            if is_task_done(task_dir):
                logger.debug(f"Skipping completed task {task_dir.name}")
                continue
            pending.append(find_config_file(task_dir))
        logger.info(f"Found {len(pending)} pending tasks for {network}")
        return pending
