"""
Logging setup for the Elaro recommender.

``configure_logging(config)`` is called exactly once, by the CLI, before any
engine is built. Library modules only ever do::

    logger = logging.getLogger(__name__)

and never touch handlers, levels, or ``basicConfig`` themselves.

Engines log decisions at DEBUG (signal values, filtered candidates) and
degraded paths at WARNING (a repository read that failed and was treated as
"no data"). Swallowed write failures are logged at ERROR with the traceback.

With ``json_format = true`` under ``[logging]`` each record is emitted as one
JSON object per line::

    {"ts": "2026-10-19T07:30:00Z", "level": "INFO", "logger": "elaro.weekly.adjuster",
     "msg": "Applied tweak scale_up", "focus_id": "independence"}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from elaro.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Render a record as a single JSON line.

    Fields: ``ts``, ``level``, ``logger``, ``msg``, ``exc`` (when present),
    plus any ``extra=`` keys passed at the call site.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                payload[key] = val
        return json.dumps(payload, default=str)


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from a ``LoggingConfig``.

    Installs a stdout handler and, when ``config.log_file`` is non-empty, a
    UTF-8 file handler (parent directories are created). Re-running replaces
    previously installed handlers.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter: logging.Formatter = (
        JsonLineFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
