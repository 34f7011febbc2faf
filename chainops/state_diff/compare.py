"""
State-diff comparison.

check_state_diff is the verification primitive: strictly positional,
fail-fast, and side-effect free apart from raising MismatchError.

Order of checks:
1. chainId
2. storageSpecs.length (stops here on mismatch)
3. for i in 0..n-1, in field order account, slot, newValue, previousValue

Positional comparison breaks when writes are reordered between authoring
and execution. diff_state_keyed / check_state_diff_keyed compare by
(account, slot) instead and are kept as a separate, opt-in check.
"""

from dataclasses import dataclass
from typing import Any, Literal, Optional

from chainops.errors import MismatchError
from chainops.schemas import ENTRY_FIELDS, StateDiffSpec


def check_state_diff(expected: StateDiffSpec, actual: StateDiffSpec) -> None:
    """
    Verify that actual storage changes equal the expected ones.

    Raises:
        MismatchError: At the first divergence (lowest index, then field order)
    """
    if expected.chain_id != actual.chain_id:
        raise MismatchError("chainId", expected.chain_id, actual.chain_id)

    if len(expected.storage_specs) != len(actual.storage_specs):
        raise MismatchError(
            "storageSpecs.length",
            len(expected.storage_specs),
            len(actual.storage_specs),
        )

    for i, (want, got) in enumerate(zip(expected.storage_specs, actual.storage_specs)):
        for name in ENTRY_FIELDS:
            if want.get(name) != got.get(name):
                raise MismatchError(f"storageSpecs[{i}].{name}", want.get(name), got.get(name))


@dataclass(frozen=True)
class KeyedMismatch:
    """One difference found by keyed comparison."""
    kind: Literal["missing", "unexpected", "value"]
    account: str
    slot: str
    field: Optional[str] = None
    expected: Any = None
    actual: Any = None

    @property
    def path(self) -> str:
        base = f"storageSpecs[{self.account}:{self.slot}]"
        return f"{base}.{self.field}" if self.field else base


def _net_changes(spec: StateDiffSpec) -> dict[tuple[str, str], tuple[str, str]]:
    """(account, slot) -> (first previous value, last new value), in first-seen order."""
    changes: dict[tuple[str, str], tuple[str, str]] = {}
    for entry in spec.storage_specs:
        key = (entry.account, entry.slot)
        if key in changes:
            changes[key] = (changes[key][0], entry.new_value)
        else:
            changes[key] = (entry.previous_value, entry.new_value)
    return changes


def diff_state_keyed(expected: StateDiffSpec, actual: StateDiffSpec) -> list[KeyedMismatch]:
    """
    Compare net changes keyed by (account, slot).

    Repeated writes to one slot collapse to (first previous, last new).
    Chain ids are not compared here; callers check them first.

    Returns:
        Missing and value mismatches in expected order, then unexpected
        entries in actual order. Empty when the diffs agree.
    """
    want = _net_changes(expected)
    got = _net_changes(actual)
    mismatches: list[KeyedMismatch] = []

    for (account, slot), (prev, new) in want.items():
        if (account, slot) not in got:
            mismatches.append(KeyedMismatch("missing", account, slot, expected=new))
            continue
        got_prev, got_new = got[(account, slot)]
        if new != got_new:
            mismatches.append(KeyedMismatch("value", account, slot, "newValue", new, got_new))
        if prev != got_prev:
            mismatches.append(KeyedMismatch("value", account, slot, "previousValue", prev, got_prev))

    for (account, slot), (_, new) in got.items():
        if (account, slot) not in want:
            mismatches.append(KeyedMismatch("unexpected", account, slot, actual=new))

    return mismatches


def check_state_diff_keyed(expected: StateDiffSpec, actual: StateDiffSpec) -> None:
    """
    Keyed counterpart of check_state_diff.

    Raises:
        MismatchError: On chain id mismatch, or for the first keyed mismatch
    """
    if expected.chain_id != actual.chain_id:
        raise MismatchError("chainId", expected.chain_id, actual.chain_id)

    mismatches = diff_state_keyed(expected, actual)
    if mismatches:
        first = mismatches[0]
        raise MismatchError(first.path, first.expected, first.actual)
