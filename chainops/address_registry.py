"""
Address registries - resolve symbolic names to concrete addresses.

Two variants share the lookup contract "configured name -> address, or
NotFoundError, never a guess":

- FlatAddressRegistry: single namespace, for chain-independent tasks.
  Reads the `addresses` table of a task config:

      [addresses]
      SecurityCouncil = "0xc2819DC788505Aac350142A7A707BF9D03E3Bd03"

- ChainAddressRegistry: chain-scoped namespace, for tasks that iterate over
  L2 chains. Chains come from `l2chains` in the task config; addresses come
  from an `addresses` table keyed by decimal chain id:

      l2chains = [{name = "OP Mainnet", chainId = 10}]

      [addresses.10]
      ProxyAdminOwner = "0x5a0Aae59D09fccBdDb6C6CcEB07B7279367C3d2A"

Both are loaded once and are read-only afterwards.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from chainops.encoding import to_address
from chainops.errors import ConfigError, NotFoundError
from chainops.schemas import ChainScope, parse_chain_scopes
from chainops.utils import load_document

logger = logging.getLogger(__name__)


def _parse_address_table(table: Any, source: str) -> dict[str, str]:
    """Validate a name -> address table, normalizing to checksum form."""
    if not isinstance(table, dict):
        raise ConfigError(f"{source}: expected a table of name -> address")

    addresses = {}
    for name, value in table.items():
        try:
            addresses[str(name)] = to_address(value)
        except ValueError as e:
            raise ConfigError(f"{source}.{name}: {e}") from e
    return addresses


class FlatAddressRegistry:
    """
    Single-namespace registry: get(name) -> address.

    Usage:
        registry = FlatAddressRegistry("tasks/eth/001-fund/config.toml")
        registry.get("SecurityCouncil")
    """

    def __init__(self, path: Path | str):
        """
        Load the registry.

        Args:
            path: Task config or registry file with an `addresses` table

        Raises:
            ConfigError: If the file is malformed or an address is invalid
        """
        self._path = Path(path)
        data = load_document(self._path)
        table = data.get("addresses", {})
        self._addresses: Mapping[str, str] = MappingProxyType(
            _parse_address_table(table, f"{self._path}:addresses")
        )
        logger.debug(f"Loaded {len(self._addresses)} addresses from {self._path}")

    @property
    def path(self) -> Path:
        """Source file of this registry."""
        return self._path

    def get(self, name: str) -> str:
        """
        Resolve a symbolic name.

        Raises:
            NotFoundError: If name is not configured
        """
        if name not in self._addresses:
            raise NotFoundError(f"Address not found for '{name}' in {self._path}")
        return self._addresses[name]

    def names(self) -> list[str]:
        """Sorted list of configured names."""
        return sorted(self._addresses)

    def __contains__(self, name: object) -> bool:
        return name in self._addresses

    def __repr__(self) -> str:
        return f"FlatAddressRegistry(path={self._path}, names={len(self._addresses)})"


class ChainAddressRegistry:
    """
    Chain-scoped registry: get_address(name, chain_id) -> address.

    Usage:
        registry = ChainAddressRegistry(config_path, registry_path="superchain.toml")
        chain = registry.get_chains()[0]
        registry.get_address("ProxyAdminOwner", chain.chain_id)
    """

    def __init__(self, path: Path | str, registry_path: Optional[Path | str] = None):
        """
        Load the registry.

        Args:
            path: Task config with the `l2chains` list
            registry_path: Optional separate file holding the per-chain
                           `addresses` table; defaults to path itself

        Raises:
            ConfigError: If either file is malformed or an address is invalid
        """
        self._path = Path(path)
        self._registry_path = Path(registry_path) if registry_path is not None else self._path

        config = load_document(self._path)
        self._chains: tuple[ChainScope, ...] = parse_chain_scopes(
            config.get("l2chains"), source=str(self._path)
        )

        data = config if self._registry_path == self._path else load_document(self._registry_path)
        tables = data.get("addresses", {})
        if not isinstance(tables, dict):
            raise ConfigError(f"{self._registry_path}: 'addresses' must be a table keyed by chain id")

        by_chain: dict[int, Mapping[str, str]] = {}
        for key, table in tables.items():
            try:
                chain_id = int(key)
            except (TypeError, ValueError) as e:
                raise ConfigError(
                    f"{self._registry_path}: address table key must be a chain id, got {key!r}"
                ) from e
            by_chain[chain_id] = MappingProxyType(
                _parse_address_table(table, f"{self._registry_path}:addresses.{key}")
            )
        self._addresses: Mapping[int, Mapping[str, str]] = MappingProxyType(by_chain)

        logger.debug(
            f"Loaded chain registry for {[c.chain_id for c in self._chains]} from {self._registry_path}"
        )

    def get_chains(self) -> list[ChainScope]:
        """Configured chains, in declaration order."""
        return list(self._chains)

    def get_address(self, name: str, chain_id: int) -> str:
        """
        Resolve a symbolic name on one chain.

        Raises:
            NotFoundError: If the chain is not configured for this task or
                           the name is not configured for that chain
        """
        if not any(c.chain_id == chain_id for c in self._chains):
            raise NotFoundError(f"Chain {chain_id} is not configured in {self._path}")
        chain_addresses = self._addresses.get(chain_id, {})
        if name not in chain_addresses:
            raise NotFoundError(
                f"Address not found for '{name}' on chain {chain_id} in {self._registry_path}"
            )
        return chain_addresses[name]

    def __repr__(self) -> str:
        return f"ChainAddressRegistry(path={self._path}, chains={len(self._chains)})"
