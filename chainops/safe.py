"""
Multisig introspection - who owns a Safe.

SafeIntrospector is the contract the orchestrator consumes. Two
implementations:
- StaticSafeIntrospector: fixed owner lists (offline runs, tests)
- JsonRpcSafeClient: `getOwners()` via eth_call on a JSON-RPC node
"""

import logging
from pathlib import Path
from typing import Mapping, Protocol, Sequence, runtime_checkable

import requests
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from chainops.encoding import to_address
from chainops.errors import ConfigError, ExecutionError
from chainops.utils import load_document

logger = logging.getLogger(__name__)

GET_OWNERS_SELECTOR = "0x" + function_signature_to_4byte_selector("getOwners()").hex()


@runtime_checkable
class SafeIntrospector(Protocol):
    """Query the owner list of a multisig."""

    def get_owners(self, address: str) -> list[str]:
        """Owners of the Safe at address, in the order the Safe reports them."""
        ...


class StaticSafeIntrospector:
    """Owner lists known up front, keyed by Safe address."""

    def __init__(self, owners: Mapping[str, Sequence[str]] | None = None):
        self._owners: dict[str, list[str]] = {}
        for safe, safe_owners in (owners or {}).items():
            self.set_owners(safe, safe_owners)

    def set_owners(self, safe: str, owners: Sequence[str]) -> None:
        self._owners[to_address(safe)] = [to_address(o) for o in owners]

    def get_owners(self, address: str) -> list[str]:
        return list(self._owners.get(to_address(address), []))

    @classmethod
    def from_file(cls, path: Path | str) -> "StaticSafeIntrospector":
        """
        Load a `safe -> [owners]` map from a YAML, JSON or TOML file.

        Addresses must be strings; in YAML an unquoted 0x... value parses
        as an integer, so quote them.

        Raises:
            ConfigError: If the file is malformed or an address is invalid
        """
        path = Path(path)
        data = load_document(path)
        introspector = cls()
        for safe, owners in data.items():
            if not isinstance(safe, str):
                raise ConfigError(f"{path}: Safe address {safe!r} must be a quoted string")
            if not isinstance(owners, list) or not all(isinstance(o, str) for o in owners):
                raise ConfigError(f"{path}: owners of {safe} must be a list of quoted address strings")
            try:
                introspector.set_owners(safe, owners)
            except ValueError as e:
                raise ConfigError(f"{path}: {safe}: {e}") from e
        return introspector


def decode_address_array(data: str) -> list[str]:
    """
    ABI-decode a single dynamic `address[]` return value.

    Raises:
        ValueError: If the data is not a valid `address[]` encoding
    """
    try:
        raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
        (owners,) = decode(["address[]"], raw)
    except (DecodingError, ValueError) as e:
        raise ValueError(f"malformed address[] return data: {e}") from e
    return [to_address(owner) for owner in owners]


class JsonRpcSafeClient:
    """
    Read Safe owners from a node over JSON-RPC.

    Usage:
        client = JsonRpcSafeClient("http://127.0.0.1:8545")
        client.get_owners("0x847B5c174615B1B7fDF770882256e2D3E95b9D92")
    """

    def __init__(self, rpc_url: str, block: str = "latest", timeout: int = 30):
        self.rpc_url = rpc_url
        self.block = block
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self._request_id = 0

    def _call(self, method: str, params: list) -> object:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ExecutionError(f"RPC {method} to {self.rpc_url} failed: {e}") from e

        if "error" in body:
            raise ExecutionError(f"RPC {method} returned error: {body['error']}")
        return body.get("result")

    def get_owners(self, address: str) -> list[str]:
        safe = to_address(address)
        result = self._call("eth_call", [{"to": safe, "data": GET_OWNERS_SELECTOR}, self.block])
        if not isinstance(result, str):
            raise ExecutionError(f"getOwners() on {safe} returned {result!r}")
        try:
            owners = decode_address_array(result)
        except ValueError as e:
            raise ExecutionError(f"getOwners() on {safe}: {e}") from e
        logger.debug(f"Safe {safe} has {len(owners)} owners")
        return owners
