"""Tests for chainops.state_diff.compare.

Tests cover:
- Reflexivity of check_state_diff
- chainId and length mismatches
- Fail-fast on the lowest divergent index, in field order
- Per-field mismatch paths
- Keyed comparison (separate, opt-in)
"""

from dataclasses import replace

import pytest

from chainops.encoding import word_from_int
from chainops.errors import MismatchError
from chainops.schemas import StateDiffSpec, StorageDiffEntry
from chainops.state_diff import (
    check_state_diff,
    check_state_diff_keyed,
    diff_state_keyed,
)

from tests.conftest import SAFE, TARGET


def _entry(slot: int, new: int, prev: int = 0, account: str = TARGET) -> StorageDiffEntry:
    return StorageDiffEntry(
        account=account,
        slot=word_from_int(slot),
        new_value=word_from_int(new),
        previous_value=word_from_int(prev),
    )


@pytest.fixture
def spec() -> StateDiffSpec:
    return StateDiffSpec(
        chain_id=31337,
        storage_specs=tuple(_entry(slot=i, new=i + 100, prev=i) for i in range(6)),
    )


def _with_entry(spec: StateDiffSpec, index: int, entry: StorageDiffEntry) -> StateDiffSpec:
    entries = list(spec.storage_specs)
    entries[index] = entry
    return replace(spec, storage_specs=tuple(entries))


class TestCheckStateDiff:
    """Positional comparison."""

    def test_reflexive(self, spec):
        check_state_diff(spec, spec)

    def test_reflexive_empty(self):
        empty = StateDiffSpec(chain_id=1)
        check_state_diff(empty, empty)

    def test_equal_copies_pass(self, spec):
        check_state_diff(spec, StateDiffSpec(spec.chain_id, tuple(spec.storage_specs)))

    def test_chain_id_mismatch(self, spec):
        actual = replace(spec, chain_id=31338)
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, actual)
        err = exc_info.value
        assert err.field == "chainId"
        assert err.expected == 31337
        assert err.actual == 31338

    def test_chain_id_checked_before_length(self, spec):
        actual = StateDiffSpec(chain_id=1, storage_specs=())
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, actual)
        assert exc_info.value.field == "chainId"

    def test_length_mismatch(self, spec):
        truncated = replace(spec, storage_specs=spec.storage_specs[:-1])
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, truncated)
        err = exc_info.value
        assert err.field == "storageSpecs.length"
        assert err.expected == 6
        assert err.actual == 5

    def test_length_mismatch_stops_before_entries(self, spec):
        # Entry 0 differs as well; only the length is reported.
        shorter = spec.storage_specs[1:]
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, replace(spec, storage_specs=shorter))
        assert exc_info.value.field == "storageSpecs.length"

    def test_fail_fast_on_lowest_index(self, spec):
        actual = _with_entry(spec, 2, _entry(slot=2, new=999, prev=2))
        actual = _with_entry(actual, 5, _entry(slot=5, new=999, prev=5))
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, actual)
        err = exc_info.value
        assert err.field == "storageSpecs[2].newValue"
        assert err.expected == word_from_int(102)
        assert err.actual == word_from_int(999)

    def test_field_order_within_entry(self, spec):
        # slot and previousValue both differ: slot comes first
        actual = _with_entry(spec, 1, _entry(slot=77, new=101, prev=78))
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, actual)
        assert exc_info.value.field == "storageSpecs[1].slot"

    @pytest.mark.parametrize("field,attr,value", [
        ("account", "account", SAFE),
        ("slot", "slot", word_from_int(42)),
        ("newValue", "new_value", word_from_int(42)),
        ("previousValue", "previous_value", word_from_int(42)),
    ])
    def test_each_field_mismatch(self, spec, field, attr, value):
        original = spec.storage_specs[0]
        actual = _with_entry(spec, 0, replace(original, **{attr: value}))
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, actual)
        err = exc_info.value
        assert err.field == f"storageSpecs[0].{field}"
        assert err.expected == getattr(original, attr)
        assert err.actual == value

    def test_positional_comparison_rejects_reordering(self, spec):
        swapped = list(spec.storage_specs)
        swapped[0], swapped[1] = swapped[1], swapped[0]
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff(spec, replace(spec, storage_specs=tuple(swapped)))
        assert exc_info.value.field == "storageSpecs[0].slot"

    def test_mismatch_message_names_field(self, spec):
        with pytest.raises(MismatchError, match=r"storageSpecs\.length"):
            check_state_diff(spec, replace(spec, storage_specs=()))


class TestKeyedComparison:
    """(account, slot) keyed comparison."""

    def test_reordering_is_accepted(self, spec):
        reordered = replace(spec, storage_specs=tuple(reversed(spec.storage_specs)))
        assert diff_state_keyed(spec, reordered) == []
        check_state_diff_keyed(spec, reordered)

    def test_repeated_writes_collapse_to_net_change(self):
        expected = StateDiffSpec(31337, (_entry(slot=0, new=3, prev=1),))
        actual = StateDiffSpec(31337, (
            _entry(slot=0, new=2, prev=1),
            _entry(slot=0, new=3, prev=2),
        ))
        check_state_diff_keyed(expected, actual)

    def test_missing_value_and_unexpected(self):
        expected = StateDiffSpec(31337, (
            _entry(slot=0, new=1),
            _entry(slot=1, new=1),
        ))
        actual = StateDiffSpec(31337, (
            _entry(slot=1, new=2),
            _entry(slot=9, new=1),
        ))
        mismatches = diff_state_keyed(expected, actual)
        assert [m.kind for m in mismatches] == ["missing", "value", "unexpected"]
        assert mismatches[1].field == "newValue"
        assert mismatches[1].path.endswith(".newValue")
        assert mismatches[2].slot == word_from_int(9)

    def test_keyed_check_raises_first_mismatch(self):
        expected = StateDiffSpec(31337, (_entry(slot=0, new=1),))
        actual = StateDiffSpec(31337, ())
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff_keyed(expected, actual)
        assert exc_info.value.field == f"storageSpecs[{TARGET}:{word_from_int(0)}]"
        assert exc_info.value.actual is None

    def test_keyed_check_compares_chain_id(self, spec):
        with pytest.raises(MismatchError) as exc_info:
            check_state_diff_keyed(spec, replace(spec, chain_id=10))
        assert exc_info.value.field == "chainId"
