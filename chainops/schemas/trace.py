"""
Execution trace schemas.

An ExecutionTrace is the ordered record of storage accesses produced by
executing a task's effect. It is consumed once by the state-diff extractor.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from chainops.encoding import to_address, to_word


@dataclass(frozen=True)
class StorageAccess:
    """
    A single storage read or write.

    chain_id is set when the access carries its own execution context;
    otherwise the trace's chain id applies.
    """
    account: str
    slot: str
    previous_value: str
    new_value: str
    is_write: bool
    chain_id: Optional[int] = None


@dataclass(frozen=True)
class ExecutionTrace:
    """Ordered storage accesses plus the chain id of the execution context."""
    accesses: tuple[StorageAccess, ...] = field(default_factory=tuple)
    chain_id: Optional[int] = None

    def writes(self) -> Iterable[StorageAccess]:
        """Storage writes, in execution order."""
        return (a for a in self.accesses if a.is_write)

    def chain_ids(self) -> set[int]:
        """Every chain id the trace's accesses executed under."""
        ids = {a.chain_id for a in self.accesses if a.chain_id is not None}
        if self.chain_id is not None and (
            not self.accesses or any(a.chain_id is None for a in self.accesses)
        ):
            ids.add(self.chain_id)
        return ids

    @classmethod
    def from_account_accesses(cls, accesses: list[dict[str, Any]]) -> "ExecutionTrace":
        """
        Build a trace from Foundry `vm.stopAndReturnStateDiff()` JSON.

        Each account access carries `chainInfo.chainId` and an ordered
        `storageAccesses` list of {account, slot, isWrite, previousValue,
        newValue}.

        Raises:
            ValueError: If an access is malformed
        """
        if not isinstance(accesses, list):
            raise ValueError(f"accesses: expected a list, got {type(accesses).__name__}")

        records = []
        for i, access in enumerate(accesses):
            if not isinstance(access, dict):
                raise ValueError(f"accesses[{i}]: expected an object, got {type(access).__name__}")
            chain_info = access.get("chainInfo") or {}
            if not isinstance(chain_info, dict):
                raise ValueError(f"accesses[{i}].chainInfo: expected an object")
            chain_id = chain_info.get("chainId")
            if chain_id is not None:
                try:
                    chain_id = int(chain_id, 0) if isinstance(chain_id, str) else int(chain_id)
                except (TypeError, ValueError) as e:
                    raise ValueError(f"accesses[{i}].chainInfo.chainId: {e}") from e
            storage_accesses = access.get("storageAccesses", [])
            if not isinstance(storage_accesses, list):
                raise ValueError(f"accesses[{i}].storageAccesses: expected a list")
            for j, storage in enumerate(storage_accesses):
                if not isinstance(storage, dict):
                    raise ValueError(f"accesses[{i}].storageAccesses[{j}]: expected an object")
                try:
                    records.append(StorageAccess(
                        account=to_address(storage["account"]),
                        slot=to_word(storage["slot"]),
                        previous_value=to_word(storage["previousValue"]),
                        new_value=to_word(storage["newValue"]),
                        is_write=bool(storage.get("isWrite", False)),
                        chain_id=chain_id,
                    ))
                except KeyError as e:
                    raise ValueError(f"accesses[{i}].storageAccesses[{j}]: missing {e}") from e
                except ValueError as e:
                    raise ValueError(f"accesses[{i}].storageAccesses[{j}]: {e}") from e
        return cls(accesses=tuple(records))
