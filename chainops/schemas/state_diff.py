"""
State-diff schemas.

A StateDiffSpec is a target chain id plus an ordered sequence of storage
diff entries. Two exist per task per run: the expected one (authored, static)
and the actual one (derived from an execution trace, ephemeral).
"""

from dataclasses import dataclass, field
from typing import Any

from chainops.encoding import ZERO_WORD

# Comparison order of entry fields; also their document keys.
ENTRY_FIELDS = ("account", "slot", "newValue", "previousValue")


@dataclass(frozen=True)
class StorageDiffEntry:
    """
    One (account, slot) before/after pair.

    Values are normalized: account checksummed, words lowercase 0x + 64 hex.
    """
    account: str
    slot: str
    new_value: str
    previous_value: str = ZERO_WORD

    def get(self, document_field: str) -> str:
        """Value of a field by its document key ("newValue", ...)."""
        return {
            "account": self.account,
            "slot": self.slot,
            "newValue": self.new_value,
            "previousValue": self.previous_value,
        }[document_field]

    def to_dict(self) -> dict[str, str]:
        return {name: self.get(name) for name in ENTRY_FIELDS}


@dataclass(frozen=True)
class StateDiffSpec:
    """Target chain id + ordered storage diff entries."""
    chain_id: int
    storage_specs: tuple[StorageDiffEntry, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.storage_specs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "storageSpecs": [e.to_dict() for e in self.storage_specs],
        }
