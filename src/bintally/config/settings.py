"""Centralized configuration.

Loads configuration from a .env file and the environment and provides typed
access to settings.

- A fresh checkout boots with a single .env
- Missing or invalid config produces clear errors
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..rollups.time_windows import DEFAULT_EPOCH_YEAR, HOUR_LABEL_END, HOUR_LABEL_START, CalendarConfig

__all__ = [
    "ConfigError",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
]


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Centralized settings for bintally.

    Attributes
    ----------
    db_path : Path
        Path to the SQLite detections database (required)
    default_timezone : str
        Timezone of the bins; days roll over at local midnight
    epoch_year : int
        First year shown by the yearly chart
    hourly_start : int
        First hour of the hourly view (inclusive)
    hourly_end : int
        Last hour of the hourly view (exclusive)
    export_dir : Path
        Directory CSV exports are written to
    log_level : str
        Logging level
    log_dir : Path
        Directory for JSONL log files
    """

    db_path: Path

    default_timezone: str = "UTC"

    # Charts
    epoch_year: int = DEFAULT_EPOCH_YEAR
    hourly_start: int = HOUR_LABEL_START
    hourly_end: int = HOUR_LABEL_END

    # Export
    export_dir: Path = Path("exports")

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    def __post_init__(self):
        """Validate settings after initialization."""
        if not self.db_path:
            raise ConfigError("BINTALLY_DB_PATH is required. Set it in .env or environment (e.g., BINTALLY_DB_PATH=data/bins.db)")

        for name in ("db_path", "export_dir", "log_dir"):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, Path(value))

        self.log_level = self.log_level.upper()
        if self.log_level not in ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"BINTALLY_LOG_LEVEL has an unknown level: {self.log_level}")

        try:
            self.calendar()
        except ValueError as exc:
            raise ConfigError(f"Invalid calendar settings: {exc}") from exc

    def calendar(self) -> CalendarConfig:
        """Calendar settings for windowing and aggregation."""
        return CalendarConfig(
            timezone=self.default_timezone,
            epoch_year=self.epoch_year,
            hourly_start=self.hourly_start,
            hourly_end=self.hourly_end,
        )

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, otherwise from os.environ.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If required settings are missing or invalid
        """
        if env_file is None:
            env_file = Path(".env")

        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        try:
            db_path = os.environ.get("BINTALLY_DB_PATH")
            if not db_path:
                raise ConfigError(
                    "BINTALLY_DB_PATH is required.\n\n"
                    "Quick fix:\n"
                    "  1. Run `bintally config example > .env`\n"
                    "  2. Set BINTALLY_DB_PATH=data/bins.db in .env\n"
                    "  3. Run your command again\n\n"
                    "Or set it in environment: export BINTALLY_DB_PATH=data/bins.db"
                )

            return cls(
                db_path=Path(db_path),
                default_timezone=os.environ.get("BINTALLY_DEFAULT_TZ", "UTC"),
                epoch_year=int(os.environ.get("BINTALLY_EPOCH_YEAR", str(DEFAULT_EPOCH_YEAR))),
                hourly_start=int(os.environ.get("BINTALLY_HOURLY_START", str(HOUR_LABEL_START))),
                hourly_end=int(os.environ.get("BINTALLY_HOURLY_END", str(HOUR_LABEL_END))),
                export_dir=Path(os.environ.get("BINTALLY_EXPORT_DIR", "exports")),
                log_level=os.environ.get("BINTALLY_LOG_LEVEL", "INFO"),
                log_dir=Path(os.environ.get("BINTALLY_LOG_DIR", "logs")),
            )

        except (ValueError, KeyError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Parameters
    ----------
    env_file
        Path to .env file
    """
    with open(env_file) as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ[key] = value


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from environment and cache them.

    Raises
    ------
    ConfigError
        If required settings missing (clear error message)
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Raises
    ------
    ConfigError
        If settings not loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first or set BINTALLY_DB_PATH.")
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings.

    Parameters
    ----------
    output_path
        Optional path to write .env file

    Returns
    -------
    str
        Example .env contents
    """
    example = f"""# bintally configuration
# Copy this to .env and adjust values

# ====================
# Core Settings
# ====================

# Path to the SQLite detections database (required)
BINTALLY_DB_PATH=data/bins.db

# Timezone of the bins (optional, default: UTC)
# Counters roll over at local midnight
BINTALLY_DEFAULT_TZ=UTC

# ====================
# Charts
# ====================

# First year of the yearly chart (optional, default: {DEFAULT_EPOCH_YEAR})
BINTALLY_EPOCH_YEAR={DEFAULT_EPOCH_YEAR}

# Hourly view range, end exclusive (optional, default: {HOUR_LABEL_START}-{HOUR_LABEL_END})
BINTALLY_HOURLY_START={HOUR_LABEL_START}
BINTALLY_HOURLY_END={HOUR_LABEL_END}

# ====================
# Export
# ====================

# Directory for CSV exports (optional, default: exports)
BINTALLY_EXPORT_DIR=exports

# ====================
# Logging
# ====================

# Log level (optional, default: INFO)
# Options: DEBUG, INFO, WARNING, ERROR, CRITICAL
BINTALLY_LOG_LEVEL=INFO

# Directory for JSONL logs (optional, default: logs)
BINTALLY_LOG_DIR=logs
"""

    if output_path:
        output_path.write_text(example)

    return example
