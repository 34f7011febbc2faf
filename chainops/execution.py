"""
Execution engine - cumulative chain state shared by the tasks of one run.

Templates read and write storage through InMemoryChainState. Inside a
`record()` block every access is appended to an ExecutionTrace, which the
state-diff extractor later reduces to the actual diff.

State written by task N is visible to task N+1 of the same run. After the
run, dump_state() persists the accumulated state so downstream verification
can start from it instead of re-executing every prior task.

Dump format:
    {"chainId": 31337, "storage": {"0xAccount": {"0xslot": "0xvalue"}}}
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol, runtime_checkable

from chainops.encoding import ZERO_WORD, to_address, to_word, word_from_int
from chainops.errors import ConfigError, ExecutionError
from chainops.schemas import ExecutionTrace, StorageAccess

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = 31337


@runtime_checkable
class ExecutionEngine(Protocol):
    """What the orchestrator needs from the engine: persist accumulated state."""

    def dump_state(self, path: Path) -> None:
        ...


def _as_word(value: int | str) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return word_from_int(value)
    return to_word(value)


class TraceRecorder:
    """Collects accesses while a record() block is active."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        self.accesses: list[StorageAccess] = []

    @property
    def trace(self) -> ExecutionTrace:
        return ExecutionTrace(accesses=tuple(self.accesses), chain_id=self.chain_id)


class InMemoryChainState:
    """
    Storage of one chain, keyed by account then slot.

    Unset slots read as zero. Writing zero keeps the slot in the map so the
    dump reflects every slot a task touched.
    """

    def __init__(
        self,
        chain_id: int = DEFAULT_CHAIN_ID,
        storage: Optional[dict[str, dict[str, str]]] = None,
    ):
        self._chain_id = chain_id
        self._storage: dict[str, dict[str, str]] = {}
        self._recorder: Optional[TraceRecorder] = None
        for account, slots in (storage or {}).items():
            for slot, value in slots.items():
                self._storage.setdefault(to_address(account), {})[to_word(slot)] = to_word(value)

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def load(self, account: str, slot: int | str) -> str:
        """Read a storage word, recording the access."""
        account = to_address(account)
        slot = _as_word(slot)
        value = self._storage.get(account, {}).get(slot, ZERO_WORD)
        if self._recorder is not None:
            self._recorder.accesses.append(StorageAccess(
                account=account,
                slot=slot,
                previous_value=value,
                new_value=value,
                is_write=False,
            ))
        return value

    def store(self, account: str, slot: int | str, value: int | str) -> None:
        """Write a storage word, recording the access."""
        account = to_address(account)
        slot = _as_word(slot)
        value = _as_word(value)
        previous = self._storage.get(account, {}).get(slot, ZERO_WORD)
        self._storage.setdefault(account, {})[slot] = value
        if self._recorder is not None:
            self._recorder.accesses.append(StorageAccess(
                account=account,
                slot=slot,
                previous_value=previous,
                new_value=value,
                is_write=True,
            ))

    @contextmanager
    def record(self) -> Iterator[TraceRecorder]:
        """
        Record every storage access made inside the block.

        Usage:
            with state.record() as recorder:
                template.execute(state)
            trace = recorder.trace
        """
        if self._recorder is not None:
            raise ExecutionError("A trace is already being recorded on this state")
        recorder = TraceRecorder(self._chain_id)
        self._recorder = recorder
        try:
            yield recorder
        finally:
            self._recorder = None

    def dump_state(self, path: Path) -> None:
        """Write the accumulated storage to path as JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"chainId": self._chain_id, "storage": self._storage}
        with open(path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        logger.info(f"Dumped state of {len(self._storage)} accounts to {path}")

    @classmethod
    def from_dump(cls, path: Path) -> "InMemoryChainState":
        """
        Restore state written by dump_state().

        Raises:
            ConfigError: If the file is missing or malformed
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = json.load(f)
            return cls(chain_id=int(data["chainId"]), storage=data.get("storage", {}))
        except FileNotFoundError as e:
            raise ConfigError(f"State dump not found: {path}") from e
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid state dump {path}: {e}") from e
