"""Application settings.

Environment variables:
- SPLITR_CONFIG: Optional YAML file with the keys below (lower-case)
- SPLITR_DB_PATH: SQLite database file
- SPLITR_LOG_LEVEL: debug, info, warn, error (default: info)
- SPLITR_LOG_FILE: Main log file
- SPLITR_LOG_MAX_SIZE: Max log file size in MB (default: 25)
- SPLITR_LOG_BACKUPS: Rotated files to keep (default: 5)
- SPLITR_LOG_STDERR: "1"/"true" to also log to stderr
"""
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "splitr"


def default_app_data_dir() -> Path:
    """macOS per-user application data directory."""
    return Path.home() / "Library" / "Application Support" / APP_NAME


def default_log_dir() -> Path:
    return Path.home() / "Library" / "Logs" / APP_NAME


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for storage and logging."""
    db_path: Path = field(default_factory=lambda: default_app_data_dir() / f"{APP_NAME}.db")
    log_level: str = "info"
    log_file: Path = field(default_factory=lambda: default_log_dir() / f"{APP_NAME}.log")
    log_max_size_mb: int = 25
    log_backups: int = 5
    log_stderr: bool = False

    @property
    def log_dir(self) -> Path:
        return self.log_file.parent

    @classmethod
    def _coerce(cls, raw: dict[str, Any]) -> dict[str, Any]:
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in raw.items():
            if key not in known:
                logger.warning(f"Ignoring unknown setting: {key}")
                continue
            if value is None:
                continue
            if key in ("db_path", "log_file"):
                values[key] = Path(os.path.expanduser(str(value)))
            elif key in ("log_max_size_mb", "log_backups"):
                try:
                    values[key] = int(value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"Setting {key} must be an integer, got {value!r}") from e
            elif key == "log_stderr":
                values[key] = _parse_bool(value)
            else:
                values[key] = str(value)
        return values

    @classmethod
    def from_env(cls, base: Optional["Settings"] = None) -> "Settings":
        """Load settings from SPLITR_* environment variables.

        Args:
            base: Settings to start from (defaults when omitted)
        """
        env_map = {
            "db_path": "SPLITR_DB_PATH",
            "log_level": "SPLITR_LOG_LEVEL",
            "log_file": "SPLITR_LOG_FILE",
            "log_max_size_mb": "SPLITR_LOG_MAX_SIZE",
            "log_backups": "SPLITR_LOG_BACKUPS",
            "log_stderr": "SPLITR_LOG_STDERR",
        }
        raw = {key: os.environ[var] for key, var in env_map.items() if var in os.environ}
        current = base or cls()
        merged = {f.name: getattr(current, f.name) for f in fields(cls)}
        merged.update(cls._coerce(raw))
        return cls(**merged)

    @classmethod
    def from_file(cls, path: Path) -> "Settings":
        """Load settings from a YAML file; a missing file yields defaults."""
        if not path.exists():
            logger.warning(f"Settings file not found: {path}")
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read settings file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Settings file must contain a mapping: {path}")

        return cls(**cls._coerce(data))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """YAML file (explicit path or SPLITR_CONFIG) overlaid by environment."""
        if path is None and os.environ.get("SPLITR_CONFIG"):
            path = Path(os.path.expanduser(os.environ["SPLITR_CONFIG"]))

        base = cls.from_file(path) if path is not None else cls()
        return cls.from_env(base)
