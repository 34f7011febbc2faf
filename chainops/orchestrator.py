"""Task orchestrator - sequential execution of a network's pending tasks.

For each pending task, in discovery order:
1. Parse the config (resolves the governing multisig and nestedness)
2. Instantiate a fresh template
3. Nested: take the parent multisig's first owner and sign through it
   Direct: simulate the task
4. If the flow produced a trace and the task ships a state-diff
   expectation, verify the actual diff against it

Execution is cumulative: task N+1 sees the state left by task N. Any
failure aborts the run; there is no skip, no partial completion, no retry.
Re-run from the beginning to recover.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from chainops.errors import (
    ChainopsError,
    ConfigError,
    DependencyOrderError,
    ExecutionError,
    NoOwnersError,
)
from chainops.execution import ExecutionEngine
from chainops.discovery import TaskDiscovery
from chainops.safe import SafeIntrospector
from chainops.schemas import ExecutionTrace, TaskConfig
from chainops.state_diff import check_state_diff, extract_actual, load_state_diff_spec
from chainops.task_config import TaskDescriptor, parse_config, read_descriptor
from chainops.templates import TemplateRegistry

logger = logging.getLogger(__name__)

DEFAULT_STATE_DIFF_FILENAME = "state_diff.json"


@dataclass
class TaskResult:
    """Outcome of one executed task."""
    task: str
    template_name: str
    nested: bool
    parent_multisig: str
    signer: Optional[str] = None
    state_diff_verified: bool = False
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        result = {
            "task": self.task,
            "template_name": self.template_name,
            "nested": self.nested,
            "parent_multisig": self.parent_multisig,
            "state_diff_verified": self.state_diff_verified,
            "duration_ms": self.duration_ms,
        }
        if self.signer:
            result["signer"] = self.signer
        return result


@dataclass
class RunResult:
    """Result of a completed run. Failed runs raise instead."""
    network: str
    tasks: list[TaskResult] = field(default_factory=list)
    duration_ms: int = 0
    artifact_path: Optional[Path] = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "network": self.network,
            "total": len(self.tasks),
            "tasks": [t.to_dict() for t in self.tasks],
            "duration_ms": self.duration_ms,
        }
        if self.artifact_path:
            result["artifact_path"] = str(self.artifact_path)
        return result


def validate_dependency_order(descriptors: list[TaskDescriptor]) -> None:
    """
    Check dependsOn against the execution order.

    A dependency that is still pending must run strictly before its
    dependent. A dependency missing from the list is taken as executed.

    Raises:
        DependencyOrderError: If a task is scheduled at or before a
                              pending task it depends on
    """
    positions = {d.name: i for i, d in enumerate(descriptors)}
    for i, descriptor in enumerate(descriptors):
        dep = descriptor.depends_on
        if dep is None or dep not in positions:
            continue
        if positions[dep] >= i:
            raise DependencyOrderError(
                f"Task {descriptor.name} depends on {dep}, which is scheduled "
                f"at position {positions[dep]}, not before position {i}"
            )


class TaskOrchestrator:
    """
    Drives every pending task of a network through its signing flow.

    Usage:
        orchestrator = TaskOrchestrator(
            discovery=FilesystemTaskDiscovery("tasks"),
            templates=TemplateRegistry.from_entry_points(context),
            safes=JsonRpcSafeClient(rpc_url),
            engine=context.state,
        )
        orchestrator.run("eth")
        orchestrator.run_and_dump(Path("state.json"), "eth")
    """

    def __init__(
        self,
        discovery: TaskDiscovery,
        templates: TemplateRegistry,
        safes: SafeIntrospector,
        engine: Optional[ExecutionEngine] = None,
        registry_path: Optional[Path] = None,
        state_diff_filename: str = DEFAULT_STATE_DIFF_FILENAME,
        progress_callback: Callable[..., Any] | None = None,
    ):
        """
        Args:
            discovery: Lists pending task configs in execution order
            templates: Instantiates templates by name
            safes: Owner lookups for nested parent multisigs
            engine: Execution state shared by the run; required to dump state
            registry_path: Chain address registry file for chain-scoped tasks
            state_diff_filename: Expectation file looked up in each task directory
            progress_callback: Optional callback(event, **kwargs).
                Events: 'run_start', 'task_start', 'task_ok', 'task_fail'
        """
        self.discovery = discovery
        self.templates = templates
        self.safes = safes
        self.engine = engine
        self.registry_path = registry_path
        self.state_diff_filename = state_diff_filename
        self.progress_callback = progress_callback

    def _emit(self, event: str, **kwargs: Any) -> None:
        if self.progress_callback:
            self.progress_callback(event, **kwargs)

    def run(self, network: str, artifact_path: Optional[Path] = None) -> RunResult:
        """
        Execute all pending tasks of a network, in order.

        Args:
            network: Network name (e.g. "eth", "sep")
            artifact_path: If set, persist the accumulated state there after
                           every task succeeded

        Returns:
            RunResult describing each executed task

        Raises:
            ChainopsError: The first failure; the remaining tasks do not run
        """
        start_time = time.time()
        paths = self.discovery.list_pending_tasks(network)

        if artifact_path is not None and self.engine is None:
            raise ConfigError("An execution engine is required to persist run state")

        descriptors = [read_descriptor(p) for p in paths]
        validate_dependency_order(descriptors)

        logger.info(f"Starting run: {network} ({len(paths)} pending tasks)")
        self._emit("run_start", network=network, task_count=len(paths))

        result = RunResult(network=network)
        for descriptor in descriptors:
            task_start = time.time()
            self._emit("task_start", task=descriptor.name)
            try:
                task_result = self._execute_task(descriptor)
            except ChainopsError as e:
                duration = int((time.time() - task_start) * 1000)
                logger.error(f"  FAIL {descriptor.name}: {e}")
                self._emit("task_fail", task=descriptor.name, duration_ms=duration, error=str(e))
                raise

            task_result.duration_ms = int((time.time() - task_start) * 1000)
            result.tasks.append(task_result)
            logger.info(f"  ok {task_result.task} ({task_result.duration_ms}ms)")
            self._emit("task_ok", task=task_result.task, duration_ms=task_result.duration_ms)

        if artifact_path is not None:
            self.engine.dump_state(Path(artifact_path))
            result.artifact_path = Path(artifact_path)

        result.duration_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Run {network}: {len(result.tasks)} tasks, duration={result.duration_ms}ms")
        return result

    def run_and_dump(self, artifact_path: Path, network: str) -> RunResult:
        """Run, then persist the accumulated state to artifact_path."""
        return self.run(network, artifact_path=artifact_path)

    def _execute_task(self, descriptor: TaskDescriptor) -> TaskResult:
        # parse_config and create both run template code
        config = self._call_template(
            descriptor.name, parse_config,
            descriptor.path, self.templates, registry_path=self.registry_path,
        )
        template = self._call_template(descriptor.name, self.templates.create, config.template_name)
        result = TaskResult(
            task=config.name,
            template_name=config.template_name,
            nested=config.is_nested,
            parent_multisig=config.parent_multisig,
        )

        if config.is_nested:
            owners = self.safes.get_owners(config.parent_multisig)
            if not owners:
                raise NoOwnersError(config.parent_multisig)
            result.signer = owners[0]
            logger.info(f"    {config.name}: nested, signing as {result.signer}")
            trace = self._call_template(
                config.name, template.sign_from_child_multisig, config.path, result.signer
            )
        else:
            logger.info(f"    {config.name}: simulating as {config.parent_multisig}")
            trace = self._call_template(config.name, template.simulate_run, config.path)

        result.state_diff_verified = self._verify_state_diff(config, trace)
        return result

    @staticmethod
    def _call_template(task: str, flow: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run template code; non-chainops failures become ExecutionError naming the task."""
        try:
            return flow(*args, **kwargs)
        except ChainopsError:
            raise
        except Exception as e:
            raise ExecutionError(f"{type(e).__name__}: {e}", task=task) from e

    def _verify_state_diff(self, config: TaskConfig, trace: Optional[ExecutionTrace]) -> bool:
        """Check the trace against the task's expectation file, if both exist."""
        spec_path = config.directory / self.state_diff_filename
        if not spec_path.exists():
            return False
        if trace is None:
            logger.warning(f"    {config.name}: {spec_path.name} present but template returned no trace")
            return False

        expected = load_state_diff_spec(spec_path)
        actual = extract_actual(trace)
        check_state_diff(expected, actual)
        logger.info(f"    {config.name}: state diff verified ({len(actual)} storage writes)")
        return True

