"""
Template base class.

A template is the reusable logic implementing a task's effect. Every
governance action shares one behavioral contract; the orchestrator only
talks to templates through it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from chainops.execution import InMemoryChainState
from chainops.safe import SafeIntrospector
from chainops.schemas import ExecutionTrace, TaskType


@dataclass
class TemplateContext:
    """
    Shared collaborators handed to every template instance of a run.

    Attributes:
        state: Cumulative execution state of the run
        safes: Owner lookups for multisigs
        registry_path: Chain address registry used by chain-scoped templates
    """
    state: Optional[InMemoryChainState] = None
    safes: Optional[SafeIntrospector] = None
    registry_path: Optional[Path] = None


class TaskTemplate(ABC):
    """
    Abstract base class for governance action templates.

    The flows return the ExecutionTrace of the effect when they have one;
    the orchestrator then verifies it against the task's state-diff
    expectation, if the task ships one.
    """

    def __init__(self, context: Optional[TemplateContext] = None):
        self.context = context or TemplateContext()

    @abstractmethod
    def task_type(self) -> TaskType | str:
        """Declared base kind; decides which address registry applies."""
        pass

    @abstractmethod
    def safe_address_string(self) -> str:
        """Symbolic registry name of the multisig that governs this template."""
        pass

    @abstractmethod
    def is_nested_safe(self, address: str) -> bool:
        """Whether the multisig at address is itself owned by multisigs."""
        pass

    @abstractmethod
    def simulate_run(self, config_path: Path) -> Optional[ExecutionTrace]:
        """Simulate the task directly against the run's state."""
        pass

    @abstractmethod
    def sign_from_child_multisig(self, config_path: Path, owner: str) -> Optional[ExecutionTrace]:
        """Simulate approval and execution through the given child multisig."""
        pass
