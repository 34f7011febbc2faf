"""Reduce an execution trace to the normalized StateDiffSpec shape."""

import logging

from chainops.errors import AmbiguousChainError
from chainops.schemas import ExecutionTrace, StateDiffSpec, StorageDiffEntry

logger = logging.getLogger(__name__)


def extract_actual(trace: ExecutionTrace) -> StateDiffSpec:
    """
    Build the actual state diff of an execution.

    Every storage write becomes its own positional entry, in execution
    order. Repeated writes to the same (account, slot) are not merged.

    Raises:
        AmbiguousChainError: If the trace does not span exactly one chain id
    """
    chain_ids = trace.chain_ids()
    if len(chain_ids) != 1:
        raise AmbiguousChainError(chain_ids)
    (chain_id,) = chain_ids

    entries = tuple(
        StorageDiffEntry(
            account=access.account,
            slot=access.slot,
            new_value=access.new_value,
            previous_value=access.previous_value,
        )
        for access in trace.writes()
    )
    logger.debug(f"Extracted {len(entries)} storage writes on chain {chain_id}")
    return StateDiffSpec(chain_id=chain_id, storage_specs=entries)
