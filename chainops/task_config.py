"""
Task config loader.

Task descriptor (TOML, YAML or JSON, in the task directory):

    templateName = "GasConfigTemplate"
    l2chains = [{name = "OP Mainnet", chainId = 10}]   # optional
    dependsOn = {task = "001-upgrade-fault-proofs"}    # optional

Loading a config also resolves the task's signing topology, which
instantiates the task's template.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chainops.errors import ConfigError, MissingFieldError
from chainops.schemas import ChainScope, TaskConfig, parse_chain_scopes
from chainops.templates.registry import TemplateRegistry
from chainops.topology import resolve_topology
from chainops.utils import load_document

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("config.toml", "config.yaml", "config.yml", "config.json")


def find_config_file(path: Path | str) -> Path:
    """
    Locate a task's config file.

    Args:
        path: Task directory or config file

    Raises:
        ConfigError: If a directory holds none of CONFIG_FILENAMES
    """
    path = Path(path)
    if path.is_dir():
        for filename in CONFIG_FILENAMES:
            candidate = path / filename
            if candidate.exists():
                return candidate
        raise ConfigError(f"No task config found in {path} (looked for {', '.join(CONFIG_FILENAMES)})")
    return path


@dataclass(frozen=True)
class TaskDescriptor:
    """The declarative part of a task config, before topology resolution."""
    path: Path
    template_name: str
    l2chains: tuple[ChainScope, ...] = ()
    depends_on: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.parent.name


def read_descriptor(path: Path | str) -> TaskDescriptor:
    """
    Read a task descriptor without touching template code.

    Raises:
        MissingFieldError: templateName absent
        ConfigError: Malformed file or fields
    """
    config_path = find_config_file(path)
    data = load_document(config_path)

    template_name = data.get("templateName")
    if template_name is None:
        raise MissingFieldError("templateName", config_path)
    if not isinstance(template_name, str) or not template_name:
        raise ConfigError(f"{config_path}: templateName must be a non-empty string")

    l2chains = parse_chain_scopes(data.get("l2chains"), source=str(config_path))

    depends_on = None
    dep = data.get("dependsOn")
    if dep is not None:
        if not isinstance(dep, dict) or not isinstance(dep.get("task"), str) or not dep["task"]:
            raise ConfigError(f"{config_path}: dependsOn must be a table with a 'task' name")
        depends_on = dep["task"]

    return TaskDescriptor(
        path=config_path,
        template_name=template_name,
        l2chains=l2chains,
        depends_on=depends_on,
    )


def parse_config(
    path: Path | str,
    templates: TemplateRegistry,
    registry_path: Optional[Path] = None,
) -> TaskConfig:
    """
    Load a task config and resolve its signing topology.

    Args:
        path: Task directory or config file
        templates: Registry used to instantiate the task's template
        registry_path: Optional chain address registry file

    Returns:
        Read-only TaskConfig

    Raises:
        MissingFieldError, ConfigError: Bad descriptor
        InvalidTaskTypeError, NotFoundError: Topology cannot be resolved
    """
    descriptor = read_descriptor(path)
    template = templates.create(descriptor.template_name)
    topology = resolve_topology(descriptor.path, template, registry_path=registry_path)

    config = TaskConfig(
        template_name=descriptor.template_name,
        path=descriptor.path,
        parent_multisig=topology.parent_multisig,
        is_nested=topology.is_nested,
        l2chains=descriptor.l2chains,
        depends_on=descriptor.depends_on,
    )
    logger.debug(f"Parsed task config {config.name}: {config.to_dict()}")
    return config
