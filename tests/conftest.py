from pathlib import Path
from typing import Optional

import pytest

from chainops.execution import InMemoryChainState
from chainops.safe import StaticSafeIntrospector
from chainops.schemas import ExecutionTrace, TaskType
from chainops.templates import TaskTemplate, TemplateContext, TemplateRegistry

# Digit-only addresses are their own checksum form.
SAFE = "0x1111111111111111111111111111111111111111"
PARENT_SAFE = "0x2222222222222222222222222222222222222222"
OWNER_A = "0x3333333333333333333333333333333333333333"
OWNER_B = "0x4444444444444444444444444444444444444444"
OWNER_C = "0x5555555555555555555555555555555555555555"
TARGET = "0x1234000000000000000000000000000000005678"


def write_task(
    root: Path,
    network: str,
    name: str,
    body: str,
    readme: Optional[str] = None,
    state_diff: Optional[str] = None,
) -> Path:
    """Create tasks/<network>/<name>/config.toml and return the config path."""
    task_dir = root / network / name
    task_dir.mkdir(parents=True, exist_ok=True)
    config = task_dir / "config.toml"
    config.write_text(body)
    if readme is not None:
        (task_dir / "README.md").write_text(readme)
    if state_diff is not None:
        (task_dir / "state_diff.json").write_text(state_diff)
    return config


def simple_task_toml(template: str = "SimpleTemplate", safe_name: str = "ProxyAdminOwner",
                     safe: str = SAFE, extra: str = "") -> str:
    return (
        f'templateName = "{template}"\n'
        f"{extra}"
        f"\n[addresses]\n"
        f'{safe_name} = "{safe}"\n'
    )


class RecordingTemplate(TaskTemplate):
    """
    Test template: writes `writes` into the run state and records calls.

    calls is shared across instances through the class attribute set by
    the factory fixture.
    """

    kind: TaskType | str = TaskType.SIMPLE
    safe_name = "ProxyAdminOwner"
    nested = False
    writes: list[tuple[str, int, int]] = []
    calls: list[tuple] = []
    fail_with: Optional[Exception] = None

    def task_type(self):
        return self.kind

    def safe_address_string(self) -> str:
        return self.safe_name

    def is_nested_safe(self, address: str) -> bool:
        self.calls.append(("is_nested_safe", address))
        return self.nested

    def _execute(self) -> Optional[ExecutionTrace]:
        if self.fail_with is not None:
            raise self.fail_with
        state = self.context.state
        if state is None:
            return None
        with state.record() as recorder:
            for account, slot, value in self.writes:
                state.store(account, slot, value)
        return recorder.trace

    def simulate_run(self, config_path: Path) -> Optional[ExecutionTrace]:
        self.calls.append(("simulate_run", Path(config_path).parent.name))
        return self._execute()

    def sign_from_child_multisig(self, config_path: Path, owner: str) -> Optional[ExecutionTrace]:
        self.calls.append(("sign_from_child_multisig", Path(config_path).parent.name, owner))
        return self._execute()


def make_template(**attrs) -> type[RecordingTemplate]:
    """Subclass RecordingTemplate with overridden attributes and a fresh call log."""
    attrs.setdefault("calls", [])
    attrs.setdefault("writes", [])
    return type("RecordingTemplate", (RecordingTemplate,), attrs)


@pytest.fixture
def state() -> InMemoryChainState:
    return InMemoryChainState(chain_id=31337)


@pytest.fixture
def safes() -> StaticSafeIntrospector:
    return StaticSafeIntrospector({PARENT_SAFE: [OWNER_A, OWNER_B, OWNER_C]})


@pytest.fixture
def context(state, safes) -> TemplateContext:
    return TemplateContext(state=state, safes=safes)


@pytest.fixture
def templates(context) -> TemplateRegistry:
    registry = TemplateRegistry(context)
    registry.register("SimpleTemplate", make_template())
    return registry
