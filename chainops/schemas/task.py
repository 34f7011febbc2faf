"""
Task schemas - chain scopes, task types, and the resolved task config.

A TaskConfig is built once per task per run (config file + resolved
signing topology) and is read-only afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from chainops.errors import ConfigError


class TaskType(str, Enum):
    """
    Template base kinds.

    SIMPLE: chain-independent, resolved against a flat address registry
    L2: iterates over L2 chains, resolved against the chain registry
    OPCM: delegate-calls the contracts manager; chain-scoped like L2
    """
    SIMPLE = "SimpleBase"
    L2 = "L2TaskBase"
    OPCM = "OPCMBaseTask"

    @property
    def requires_chains(self) -> bool:
        return self is not TaskType.SIMPLE

    @classmethod
    def from_string(cls, value: str) -> "TaskType":
        """Parse a declared task type; raises ValueError if unknown."""
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(f"Unknown task type: {value!r}")


@dataclass(frozen=True)
class ChainScope:
    """One L2 chain a task applies to."""
    chain_id: int
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainScope":
        chain_id = data.get("chainId")
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 0:
            raise ValueError(f"chainId must be an unsigned integer, got {chain_id!r}")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"name must be a non-empty string, got {name!r}")
        return cls(chain_id=chain_id, name=name)

    def to_dict(self) -> dict[str, Any]:
        return {"chainId": self.chain_id, "name": self.name}


def parse_chain_scopes(value: Any, source: str = "config") -> tuple[ChainScope, ...]:
    """
    Parse an `l2chains` list; absent means a chain-independent task.

    Raises:
        ConfigError: If the list or one of its entries is malformed
    """
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"{source}: l2chains must be a list")

    chains = []
    for i, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ConfigError(f"{source}: l2chains[{i}] must be a table")
        try:
            chains.append(ChainScope.from_dict(entry))
        except ValueError as e:
            raise ConfigError(f"{source}: l2chains[{i}]: {e}") from e
    return tuple(chains)


@dataclass(frozen=True)
class TaskConfig:
    """
    A task's declarative descriptor plus its resolved signing topology.

    Attributes:
        template_name: Template implementing the task's effect
        path: Path of the config file
        l2chains: Chains the task applies to (empty: chain-independent)
        depends_on: Name of another task this one assumes already ran
        parent_multisig: Resolved address of the governing multisig
        is_nested: Whether that multisig is owned by another multisig
    """
    template_name: str
    path: Path
    parent_multisig: str
    is_nested: bool
    l2chains: tuple[ChainScope, ...] = field(default_factory=tuple)
    depends_on: Optional[str] = None

    @property
    def name(self) -> str:
        """Task name, i.e. the directory holding the config."""
        return self.path.parent.name

    @property
    def directory(self) -> Path:
        return self.path.parent

    def to_dict(self) -> dict[str, Any]:
        return {
            "templateName": self.template_name,
            "path": str(self.path),
            **({"l2chains": [c.to_dict() for c in self.l2chains]} if self.l2chains else {}),
            **({"dependsOn": {"task": self.depends_on}} if self.depends_on else {}),
            "parentMultisig": self.parent_multisig,
            "isNested": self.is_nested,
        }
