"""Configuration management for the KVM controller."""

import warnings
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

from .protocol import MAX_PORTS


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "kvmctl" / "config.toml"


@dataclass(frozen=True)
class DeviceConfig:
    """Connection settings for a single KVM.

    Built once at startup and handed to the client.

    Configuration file format::

        [device]
        host = "192.168.1.10"
        port = 5000
        timeout = 5.0
        delay = 1.0
        num_ports = 8
        attempts = 3
    """

    host: str = "192.168.1.10"
    port: int = 5000
    timeout: float = 5.0
    delay: float = 1.0
    num_ports: int = 8
    attempts: int = 3

    def __post_init__(self):
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Invalid TCP port: {self.port}. Must be between 1 and 65535")
        if self.timeout <= 0:
            raise ValueError(f"Invalid timeout: {self.timeout}. Must be greater than 0")
        if self.delay < 0:
            raise ValueError(f"Invalid delay: {self.delay}. Must not be negative")
        if not 1 <= self.num_ports <= MAX_PORTS:
            raise ValueError(
                f"Invalid number of ports: {self.num_ports}. Must be between 1 and {MAX_PORTS}"
            )
        if self.attempts < 1:
            raise ValueError(f"Invalid attempts: {self.attempts}. Must be at least 1")

    def with_overrides(self, **overrides: Any) -> "DeviceConfig":
        """Return a copy with every non-None override applied.

        Raises:
            ValueError: If an override is out of range
        """
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_FIELD_TYPES = {
    "host": str,
    "port": int,
    "timeout": float,
    "delay": float,
    "num_ports": int,
    "attempts": int,
}


def _coerce(key: str, raw: Any) -> Any:
    """Convert a TOML value to the field's type.

    Raises:
        ValueError: If the value is a boolean or would lose its fraction
    """
    field_type = _FIELD_TYPES[key]
    if field_type is not str and isinstance(raw, bool):
        raise ValueError(f"{key} must be a number")
    if field_type is int and isinstance(raw, float) and not raw.is_integer():
        raise ValueError(f"{key} must be a whole number")
    return field_type(raw)


def _parse_device_table(table: Dict[str, Any], config_path: Path) -> Dict[str, Any]:
    """Coerce the [device] table, dropping values that do not parse."""
    known = {f.name for f in fields(DeviceConfig)}
    values = {}
    for key, raw in table.items():
        if key not in known:
            warnings.warn(f"Unknown setting '{key}' in {config_path}. Ignoring.", UserWarning)
            continue
        try:
            values[key] = _coerce(key, raw)
        except (TypeError, ValueError):
            warnings.warn(f"Setting '{key}' in {config_path} has invalid value {raw!r}. Ignoring.", UserWarning)
    return values


def load_config(config_path: Optional[Path] = None) -> DeviceConfig:
    """Load configuration from file.

    A missing file yields the defaults. A file that cannot be read or holds
    invalid values yields the defaults with a warning.

    Args:
        config_path: Path to config file (default: ~/.config/kvmctl/config.toml)

    Returns:
        DeviceConfig instance
    """
    config_path = config_path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return DeviceConfig()

    try:
        with open(config_path, "rb") as f:
            toml_config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        warnings.warn(
            f"Failed to load config from {config_path}: {e}. Using default configuration.",
            UserWarning,
        )
        return DeviceConfig()

    table = toml_config.get("device", {})
    if not isinstance(table, dict):
        warnings.warn(
            f"Invalid config format in {config_path}: [device] must be a table. "
            "Using default configuration.",
            UserWarning,
        )
        return DeviceConfig()

    try:
        return DeviceConfig(**_parse_device_table(table, config_path))
    except ValueError as e:
        warnings.warn(f"Invalid configuration in {config_path}: {e}. Using default configuration.", UserWarning)
        return DeviceConfig()
