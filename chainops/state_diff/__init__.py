"""
chainops.state_diff - State-diff verification engine.

expected = load_state_diff_spec(path)     # authored expectation
actual = extract_actual(trace)            # what execution did
check_state_diff(expected, actual)        # raises MismatchError
"""

from .compare import (
    KeyedMismatch,
    check_state_diff,
    check_state_diff_keyed,
    diff_state_keyed,
)
from .extract import extract_actual
from .spec import load_state_diff_spec, parse_state_diff_spec

__all__ = [
    "KeyedMismatch",
    "check_state_diff",
    "check_state_diff_keyed",
    "diff_state_keyed",
    "extract_actual",
    "load_state_diff_spec",
    "parse_state_diff_spec",
]
