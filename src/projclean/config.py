"""Configuration management for projclean."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret a YAML or environment value as a boolean.

    Args:
        value: Raw value (bool, int, str or None).
        default: Returned when value is None.

    Returns:
        Parsed boolean.

    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def _as_str_list(key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of strings")
    return [str(item) for item in value]


@dataclass
class ProjcleanConfig:
    """Configuration for a projclean run."""

    # Rule strings, e.g. "target@Cargo.toml"
    rules: list[str] = field(default_factory=list)

    # Directory names never entered
    exclude: list[str] = field(default_factory=list)

    # Filters, e.g. "+30" days and "+1M"
    time: str | None = None
    size: str | None = None

    # Thread pool size (None = CPU count)
    workers: int | None = None

    # Delete everything found without asking
    force: bool = False

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None

    @classmethod
    def get_config_path(cls) -> Path:
        """Get the default configuration file path."""
        base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
        return Path(base) / "projclean" / "config.yaml"

    @classmethod
    def load(cls, config_path: Path | None = None) -> ProjcleanConfig:
        """Load configuration from YAML file.

        Args:
            config_path: Path to config file. Uses default if None.

        Returns:
            Loaded configuration; defaults if the file does not exist.

        Raises:
            ConfigError: If the file is not valid YAML or holds invalid values.

        """
        if config_path is None:
            config_path = cls.get_config_path()

        if not config_path.exists():
            return cls()

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Invalid YAML in {config_path}: expected a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ProjcleanConfig:
        """Create config from dictionary."""
        config = cls()

        if "rules" in data:
            config.rules = _as_str_list("rules", data["rules"])
        if "exclude" in data:
            config.exclude = _as_str_list("exclude", data["exclude"])

        # Filters are kept as strings and parsed when the scan starts
        if data.get("time") is not None:
            config.time = str(data["time"])
        if data.get("size") is not None:
            config.size = str(data["size"])

        if data.get("workers") is not None:
            try:
                config.workers = int(data["workers"])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid workers value: {data['workers']!r}") from e
        if "force" in data:
            config.force = parse_bool(data["force"], config.force)

        if "logging" in data:
            logging_cfg = data["logging"] or {}
            if "file" in logging_cfg and logging_cfg["file"]:
                config.log_file = Path(os.path.expanduser(logging_cfg["file"]))
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"]).upper()

        config.validate()
        return config

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigError: If a value is out of range.

        """
        if self.workers is not None and self.workers < 1:
            raise ConfigError(f"workers must be positive, got {self.workers}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"Invalid log_level: {self.log_level}")

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save config. Uses default if None.

        """
        if config_path is None:
            config_path = self.get_config_path()

        # Ensure directory exists
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data: dict[str, Any] = {
            "rules": list(self.rules),
            "exclude": list(self.exclude),
            "time": self.time,
            "size": self.size,
            "workers": self.workers,
            "force": self.force,
            "logging": {
                "file": str(self.log_file) if self.log_file else None,
                "level": self.log_level,
            },
        }

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
