"""
Error classes for chainops.

Every error is terminal for the current run: the orchestrator never retries
or skips a task. Errors propagate to the caller as exceptions.

- ConfigError: Malformed or missing descriptor fields
- NotFoundError: Address registry lookup misses
- TopologyError: No owners on a nested parent, unresolvable task type
- ParseError: Malformed state-diff expectation (carries the field path)
- MismatchError: State-diff comparison failure (field path + both values)
- AmbiguousChainError: Execution trace spans zero or several chain ids
- ExecutionError: Failure surfaced from template / execution collaborators
"""

from typing import Any, Optional


class ChainopsError(Exception):
    """Base exception for chainops."""
    pass


class ConfigError(ChainopsError):
    """Configuration or task descriptor validation error."""
    pass


class MissingFieldError(ConfigError):
    """A required descriptor field is absent."""

    def __init__(self, field: str, source: Any = None):
        self.field = field
        self.source = source
        where = f" in {source}" if source is not None else ""
        super().__init__(f"Missing required field '{field}'{where}")


class DependencyOrderError(ConfigError):
    """A task is scheduled before a pending task it depends on."""
    pass


class NotFoundError(ChainopsError):
    """Raised when a symbolic name is not configured in a registry."""
    pass


class TopologyError(ChainopsError):
    """Signing topology cannot be resolved."""
    pass


class NoOwnersError(TopologyError):
    """Nested parent multisig reports an empty owner list."""

    def __init__(self, safe: str):
        self.safe = safe
        super().__init__(f"Parent multisig {safe} has no owners")


class InvalidTaskTypeError(TopologyError):
    """Template declared a task type chainops does not know."""
    pass


class ParseError(ChainopsError):
    """
    State-diff expectation could not be parsed.

    Attributes:
        field: Path of the offending field (e.g. "storageSpecs[2].slot")
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class MismatchError(ChainopsError):
    """
    Expected and actual state diffs differ.

    The field path tells a reviewer exactly which expected change did not
    happen (or which unexpected change did) without re-deriving the diff.

    Attributes:
        field: "chainId", "storageSpecs.length" or "storageSpecs[i].<field>"
        expected: Value from the authored expectation
        actual: Value derived from the execution trace
    """

    def __init__(self, field: str, expected: Any, actual: Any):
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"State diff mismatch at {field}: expected {expected!r}, got {actual!r}"
        )


class AmbiguousChainError(ChainopsError):
    """Execution trace does not identify exactly one chain id."""

    def __init__(self, chain_ids: set[int] | frozenset[int]):
        self.chain_ids = frozenset(chain_ids)
        if chain_ids:
            found = ", ".join(str(c) for c in sorted(chain_ids))
            message = f"Execution trace spans multiple chain ids: {found}"
        else:
            message = "Execution trace carries no chain id"
        super().__init__(message)


class ExecutionError(ChainopsError):
    """
    Opaque failure from the execution collaborator.

    The orchestrator wraps unexpected exceptions raised by template code in
    this type, keeping the original as __cause__.
    """

    def __init__(self, message: str, task: Optional[str] = None):
        self.task = task
        super().__init__(f"Task {task} failed: {message}" if task else message)
