"""
Configuration management for chainops.

Loads $CHAINOPS_HOME/config.yaml (default ~/.config/chainops/config.yaml):

    tasks_root: ~/superchain-ops/tasks
    rpc_url: ${ETH_RPC_URL}
    superchain_registry_path: ~/superchain-ops/registry.toml
    state_diff_filename: state_diff.json
    log_level: INFO
    log_format: pretty
    log_file: ~/.config/chainops/logs/chainops.log
    env_file: ~/.config/chainops/.env

`rpc_url` may reference environment variables; env_file is loaded first.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from chainops.errors import ConfigError

DEFAULT_HOME = "~/.config/chainops"

REQUIRED_KEYS = ("tasks_root",)


def get_chainops_home() -> Path:
    """Config directory: $CHAINOPS_HOME, else ~/.config/chainops."""
    return Path(os.environ.get("CHAINOPS_HOME", DEFAULT_HOME)).expanduser()


@dataclass
class ChainopsConfig:
    """Resolved chainops settings."""
    tasks_root: str
    rpc_url: Optional[str] = None
    superchain_registry_path: Optional[str] = None
    state_diff_filename: str = "state_diff.json"
    log_level: str = "INFO"
    log_format: str = "pretty"
    log_file: Optional[str] = None
    env_file: Optional[str] = None

    @property
    def tasks_root_path(self) -> Path:
        return Path(self.tasks_root).expanduser()

    @property
    def registry_path(self) -> Optional[Path]:
        if not self.superchain_registry_path:
            return None
        return Path(self.superchain_registry_path).expanduser()

    @property
    def log_file_path(self) -> Optional[Path]:
        return Path(self.log_file).expanduser() if self.log_file else None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChainopsConfig":
        missing = [k for k in REQUIRED_KEYS if not data.get(k)]
        if missing:
            raise ConfigError(f"chainops config missing required keys: {', '.join(missing)}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"chainops config has unknown keys: {', '.join(unknown)}")
        return cls(**data)


def load_config(config_path: Optional[Path] = None) -> ChainopsConfig:
    """
    Load chainops configuration.

    Args:
        config_path: Path to config file. Defaults to <home>/config.yaml

    Returns:
        ChainopsConfig instance

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigError: If the YAML is invalid or required keys are missing
    """
    if config_path is None:
        config_path = get_chainops_home() / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"chainops config.yaml not found at {config_path}. Run 'chainops init'."
        )

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file is empty or not a mapping: {config_path}")

    env_file = data.get("env_file")
    if env_file:
        env_path = Path(env_file).expanduser()
        if env_path.exists():
            load_dotenv(env_path)

    if isinstance(data.get("rpc_url"), str):
        data["rpc_url"] = os.path.expandvars(data["rpc_url"])

    return ChainopsConfig.from_dict(data)
