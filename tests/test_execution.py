"""Tests for chainops.execution."""

import json

import pytest

from chainops.encoding import ZERO_WORD, word_from_int
from chainops.errors import ConfigError, ExecutionError
from chainops.execution import ExecutionEngine, InMemoryChainState

from tests.conftest import SAFE, TARGET


class TestInMemoryChainState:

    def test_unset_slot_reads_zero(self, state):
        assert state.load(TARGET, 0) == ZERO_WORD

    def test_store_and_load(self, state):
        state.store(TARGET, 1, 0xABBA)
        assert state.load(TARGET, word_from_int(1)) == word_from_int(0xABBA)

    def test_nothing_recorded_outside_block(self, state):
        state.store(TARGET, 0, 1)
        with state.record() as recorder:
            pass
        assert recorder.trace.accesses == ()
        assert recorder.trace.chain_id == 31337

    def test_records_reads_and_writes(self, state):
        state.store(TARGET, 0, 1)
        with state.record() as recorder:
            state.load(TARGET, 0)
            state.store(TARGET, 0, 2)

        read, write = recorder.trace.accesses
        assert read.is_write is False
        assert read.previous_value == read.new_value == word_from_int(1)
        assert write.is_write is True
        assert write.previous_value == word_from_int(1)
        assert write.new_value == word_from_int(2)

    def test_nested_recording_rejected(self, state):
        with state.record():
            with pytest.raises(ExecutionError, match="already being recorded"):
                with state.record():
                    pass

    def test_recording_ends_on_error(self, state):
        with pytest.raises(RuntimeError):
            with state.record():
                raise RuntimeError("boom")
        with state.record() as recorder:
            state.store(TARGET, 0, 1)
        assert len(recorder.trace.accesses) == 1

    def test_rejects_malformed_values(self, state):
        with pytest.raises(ValueError):
            state.store(TARGET, "0x01", 1)
        with pytest.raises(ValueError):
            state.store("0x1234", 0, 1)

    def test_is_execution_engine(self, state):
        assert isinstance(state, ExecutionEngine)


class TestStateDump:

    def test_dump_and_restore(self, tmp_path):
        state = InMemoryChainState(chain_id=10)
        state.store(TARGET, 0, 1)
        state.store(SAFE, 5, 0)
        path = tmp_path / "nested" / "state.json"

        state.dump_state(path)
        data = json.loads(path.read_text())
        assert data["chainId"] == 10
        assert data["storage"][SAFE] == {word_from_int(5): ZERO_WORD}

        restored = InMemoryChainState.from_dump(path)
        assert restored.chain_id == 10
        assert restored.load(TARGET, 0) == word_from_int(1)

    def test_missing_dump(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            InMemoryChainState.from_dump(tmp_path / "missing.json")

    @pytest.mark.parametrize("content", ["{", "{}", '{"chainId": 1, "storage": {"0x12": {"0x00": "0x00"}}}'])
    def test_invalid_dump(self, tmp_path, content):
        path = tmp_path / "state.json"
        path.write_text(content)
        with pytest.raises(ConfigError, match="Invalid state dump"):
            InMemoryChainState.from_dump(path)
