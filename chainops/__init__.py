"""
chainops - Governance task orchestrator and state-diff verifier

Runs a network's pending multisig governance tasks in order, resolving who
signs and through which multisig, and proves that each task changes exactly
the storage slots its author declared.
"""

__version__ = "0.1.0"


__all__ = ["ChainopsConfig", "load_config", "get_chainops_home"]

from .config import ChainopsConfig, load_config, get_chainops_home
