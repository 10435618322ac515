"""
Configuration for the Elaro CLI and engines.

Layers, lowest precedence first:

    config/default.toml     committed defaults
    config/local.toml       per-install overrides next to the base file
    .env                    loaded into the environment by python-dotenv
    ELARO_* variables       see ``_ENV_OVERRIDES``

``load_config()`` returns one frozen ``AppConfig``. The CLI hands its
``engine`` section to ``build_engines``; engines never read the environment.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from elaro.taxonomy.action_taxonomy import DEFAULT_FOCUS_NAMES, DEFAULT_STRESS_KEYWORDS

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite history store settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/elaro.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class DataConfig(BaseModel):
    """Filesystem paths for content files."""

    model_config = ConfigDict(frozen=True)

    content_file: str = "config/content/actions_seed.json"


class EngineConfig(BaseModel):
    """Parameters shared by the signals, recommender, and weekly engines.

    ``timezone`` is the family's wall clock: it decides which hour bucket a
    logged action falls into and where a week begins. The ``*_days`` values
    are the default lookback windows for each signal.
    """

    model_config = ConfigDict(frozen=True)

    timezone: str = "UTC"
    first_weekday: int = 0              # 0 = Monday … 6 = Sunday
    stress_keywords: list[str] = list(DEFAULT_STRESS_KEYWORDS)
    stress_lookback_hours: int = 24     # contraindication filter window
    focus_names: dict[str, str] = dict(DEFAULT_FOCUS_NAMES)

    success_window_days: int = 7
    heatmap_window_days: int = 14
    bandwidth_window_days: int = 14
    novelty_window_days: int = 14
    friction_window_days: int = 7

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{v}'.") from exc
        return v

    @field_validator("first_weekday")
    @classmethod
    def validate_first_weekday(cls, v: int) -> int:
        if not 0 <= v <= 6:
            raise ValueError(f"first_weekday must be in 0..6 (Monday=0), got {v}.")
        return v

    @field_validator("stress_keywords")
    @classmethod
    def validate_stress_keywords(cls, v: list[str]) -> list[str]:
        cleaned = [kw.strip().lower() for kw in v if kw.strip()]
        if not cleaned:
            raise ValueError("stress_keywords must contain at least one keyword.")
        return cleaned

    @field_validator(
        "stress_lookback_hours",
        "success_window_days",
        "heatmap_window_days",
        "bandwidth_window_days",
        "novelty_window_days",
        "friction_window_days",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Window lengths must be >= 1, got {v}.")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/elaro.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    data: DataConfig = DataConfig()
    engine: EngineConfig = EngineConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PACKAGE_DIR = Path(__file__).resolve().parent

# env var → (section or None for top level, key)
_ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "ELARO_DB_PATH":   ("database", "db_path"),
    "ELARO_LOG_LEVEL": ("logging", "level"),
    "ELARO_TIMEZONE":  ("engine", "timezone"),
    "ELARO_DEBUG":     (None, "debug"),
}


def project_root() -> Path:
    """Nearest ancestor of the package that holds ``pyproject.toml``.

    Falls back to the package's parent directory for non-editable installs.
    """
    for candidate in _PACKAGE_DIR.parents:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return _PACKAGE_DIR.parent


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as fh:
        return tomllib.load(fh)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Build the validated ``AppConfig``.

    Args:
        config_path: TOML file to start from; ``config/default.toml`` under
            the project root when omitted. A ``local.toml`` next to it, if
            present, is layered on top.

    Raises:
        FileNotFoundError: ``config_path`` does not exist.
        pydantic.ValidationError: A merged value is invalid.
    """
    root = project_root()
    load_dotenv(dotenv_path=root / ".env", override=False)

    base_path = Path(config_path) if config_path is not None else root / "config" / "default.toml"
    if not base_path.is_file():
        raise FileNotFoundError(
            f"No config at {base_path}. Pass --config or restore config/default.toml."
        )

    raw = _read_toml(base_path)
    local_path = base_path.with_name("local.toml")
    if local_path.is_file():
        raw = _merge(raw, _read_toml(local_path))

    return AppConfig.model_validate(_env_layer(raw))


def _merge(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Nested-dict merge; tables merge key by key, anything else is replaced."""
    merged = {**base}
    for key, value in top.items():
        below = merged.get(key)
        merged[key] = _merge(below, value) if isinstance(below, dict) and isinstance(value, dict) else value
    return merged


def _env_layer(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay the ``ELARO_*`` variables listed in ``_ENV_OVERRIDES``."""
    layered = {**raw}
    for var, (section, key) in _ENV_OVERRIDES.items():
        value: Any = os.environ.get(var)
        if not value:
            continue
        if key == "debug":
            value = value.strip().lower() in {"1", "true", "yes", "on"}
        if section is None:
            layered[key] = value
        else:
            layered[section] = {**layered.get(section, {}), key: value}
    return layered
