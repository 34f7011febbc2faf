"""
Task topology resolver - which multisig governs a task, and is it nested.

The template declares its task type and a symbolic name for its governing
multisig. The task type picks the address registry (a strategy table keyed
by TaskType); the nestedness judgment itself belongs to the template.

Chain-scoped task types resolve against the first configured chain only.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from chainops.address_registry import ChainAddressRegistry, FlatAddressRegistry
from chainops.errors import ConfigError, InvalidTaskTypeError
from chainops.schemas import TaskType
from chainops.templates.base import TaskTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Topology:
    """Resolved signing topology of a task."""
    is_nested: bool
    parent_multisig: str


def _resolve_flat(config_path: Path, safe_name: str, registry_path: Optional[Path]) -> str:
    return FlatAddressRegistry(config_path).get(safe_name)


def _resolve_first_chain(config_path: Path, safe_name: str, registry_path: Optional[Path]) -> str:
    registry = ChainAddressRegistry(config_path, registry_path=registry_path)
    chains = registry.get_chains()
    if not chains:
        raise ConfigError(f"{config_path}: chain-scoped task requires at least one entry in l2chains")
    return registry.get_address(safe_name, chains[0].chain_id)


SAFE_RESOLVERS: dict[TaskType, Callable[[Path, str, Optional[Path]], str]] = {
    task_type: _resolve_first_chain if task_type.requires_chains else _resolve_flat
    for task_type in TaskType
}


def task_type_of(template: TaskTemplate) -> TaskType:
    """
    Normalize a template's declared task type.

    Raises:
        InvalidTaskTypeError: If the declared type is unknown
    """
    declared = template.task_type()
    if isinstance(declared, TaskType):
        return declared
    try:
        return TaskType.from_string(declared)
    except (TypeError, ValueError) as e:
        raise InvalidTaskTypeError(
            f"{type(template).__name__} declares invalid task type {declared!r}"
        ) from e


def resolve_topology(
    config_path: Path,
    template: TaskTemplate,
    registry_path: Optional[Path] = None,
) -> Topology:
    """
    Resolve the governing multisig of a task and whether it is nested.

    Args:
        config_path: Path of the task config file
        template: Template instance for the task's templateName
        registry_path: Chain address registry file; defaults to the
                       template context's registry_path, then the config

    Raises:
        InvalidTaskTypeError: Unknown task type
        NotFoundError: The multisig name is not in the registry
        ConfigError: Registry source malformed
    """
    task_type = task_type_of(template)
    if registry_path is None:
        registry_path = template.context.registry_path

    safe_name = template.safe_address_string()
    parent = SAFE_RESOLVERS[task_type](Path(config_path), safe_name, registry_path)
    is_nested = bool(template.is_nested_safe(parent))

    logger.debug(
        f"{config_path}: {task_type.value} safe {safe_name}={parent} nested={is_nested}"
    )
    return Topology(is_nested=is_nested, parent_multisig=parent)
