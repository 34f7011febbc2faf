"""
State-diff expectation parser.

Document shape (JSON, YAML or TOML):

    {
      "chainId": 31337,
      "storageSpecs": [
        {
          "account": "0x5615dEB798BB3E4dFa0139dFa1b3D433Cc23b72f",
          "slot": "0x00...00",
          "previousValue": "0x00...01",
          "newValue": "0x00...00"
        }
      ]
    }

`previousValue` defaults to zero. `account` falls back to the caller's
default account; with no default it is required on every entry.
"""

from pathlib import Path
from typing import Any, Optional

from chainops.encoding import ZERO_WORD, to_address, to_word
from chainops.errors import ConfigError, ParseError
from chainops.schemas import StateDiffSpec, StorageDiffEntry
from chainops.utils import load_document


def _parse_chain_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ParseError("chainId", f"expected an unsigned integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value, 16) if value.lower().startswith("0x") else int(value, 10)
        except ValueError as e:
            raise ParseError("chainId", f"expected an unsigned integer, got {value!r}") from e
    if not isinstance(value, int) or value < 0:
        raise ParseError("chainId", f"expected an unsigned integer, got {value!r}")
    return value


def _parse_entry(
    data: Any,
    index: int,
    default_account: Optional[str],
) -> StorageDiffEntry:
    path = f"storageSpecs[{index}]"
    if not isinstance(data, dict):
        raise ParseError(path, "expected a table")

    for required in ("slot", "newValue"):
        if required not in data:
            raise ParseError(f"{path}.{required}", "missing required field")

    if "account" in data:
        try:
            account = to_address(data["account"])
        except ValueError as e:
            raise ParseError(f"{path}.account", str(e)) from e
    elif default_account is not None:
        account = default_account
    else:
        raise ParseError(f"{path}.account", "missing and no default account given")

    words = {}
    for key in ("slot", "newValue", "previousValue"):
        if key not in data:
            continue
        try:
            words[key] = to_word(data[key])
        except ValueError as e:
            raise ParseError(f"{path}.{key}", str(e)) from e

    return StorageDiffEntry(
        account=account,
        slot=words["slot"],
        new_value=words["newValue"],
        previous_value=words.get("previousValue", ZERO_WORD),
    )


def parse_state_diff_spec(
    document: dict[str, Any],
    default_account: Optional[str] = None,
) -> StateDiffSpec:
    """
    Parse a state-diff expectation.

    Args:
        document: Parsed expectation document
        default_account: Account implied for entries that omit `account`

    Returns:
        The expected StateDiffSpec, entries in document order

    Raises:
        ParseError: On any missing field or malformed value; the error's
                    `field` names the offending path
    """
    if not isinstance(document, dict):
        raise ParseError("$", "expected a table at top level")
    if "chainId" not in document:
        raise ParseError("chainId", "missing required field")
    chain_id = _parse_chain_id(document["chainId"])

    if "storageSpecs" not in document:
        raise ParseError("storageSpecs", "missing required field")
    specs = document["storageSpecs"]
    if not isinstance(specs, list):
        raise ParseError("storageSpecs", "expected a list")

    if default_account is not None:
        try:
            default_account = to_address(default_account)
        except ValueError as e:
            raise ParseError("account", f"invalid default account: {e}") from e

    entries = tuple(
        _parse_entry(entry, i, default_account) for i, entry in enumerate(specs)
    )
    return StateDiffSpec(chain_id=chain_id, storage_specs=entries)


def load_state_diff_spec(
    path: Path | str,
    default_account: Optional[str] = None,
) -> StateDiffSpec:
    """
    Load and parse a state-diff expectation file.

    Raises:
        ParseError: If the file cannot be read or parsed
    """
    try:
        document = load_document(Path(path))
    except ConfigError as e:
        raise ParseError("$", str(e)) from e
    return parse_state_diff_spec(document, default_account=default_account)
