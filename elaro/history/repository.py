"""
History repository contract.

The engines never touch a database. They see history only through
``HistoryRepository``, which returns plain, immutable models:

    fetch_action_templates(focus_id)            -> list[ActionTemplate]
    fetch_action_instances(date_range, focus_id) -> list[ActionInstance]
    fetch_focus_area(focus_id)                  -> FocusArea | None
    fetch_weekly_summaries(focus_id, limit)     -> list[WeeklySummary]
    save_action_instance(instance)              -> None   (append-only, idempotent on id)
    save_weekly_summary(summary)                -> None   (upsert on (focus_id, week_start))

"Not found" is an empty list or ``None``, never an exception.

Failure policy
--------------
Implementations may raise on genuine storage failures. ``ResilientHistory``
wraps any implementation for engine use:

  - read failure  → logged at WARNING, treated as "no data" (``[]`` / ``None``)
  - write failure → logged at ERROR with traceback, swallowed

so ``rank()`` and ``analyze_week()`` are total over whatever the store can
return at call time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from elaro.models.action import ActionInstance, ActionTemplate
from elaro.models.focus import FocusArea
from elaro.models.summary import WeeklySummary
from elaro.utils.time_utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    """Half-open time interval ``[start, end)``.

    Attributes:
        start: Inclusive lower bound (timezone-aware).
        end:   Exclusive upper bound (timezone-aware).
    """

    start: datetime
    end:   datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "end", ensure_aware(self.end))
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must be >= start ({self.start}).")

    @classmethod
    def lookback(cls, days: float, as_of: Optional[datetime] = None) -> "DateRange":
        """Window of ``days`` ending (exclusively) at ``as_of`` (default: now)."""
        end = ensure_aware(as_of) if as_of is not None else utcnow()
        return cls(start=end - timedelta(days=days), end=end)

    @classmethod
    def week_of(cls, week_start: datetime) -> "DateRange":
        """Seven-day window starting at ``week_start``."""
        return cls(start=week_start, end=ensure_aware(week_start) + timedelta(days=7))

    def contains(self, moment: datetime) -> bool:
        return self.start <= ensure_aware(moment) < self.end


class HistoryRepository(ABC):
    """Read-only and append-only access to templates, history, and focus config."""

    @abstractmethod
    def fetch_action_templates(self, focus_id: str) -> list[ActionTemplate]:
        """Templates for ``focus_id`` in catalog order."""

    @abstractmethod
    def fetch_action_instances(
        self,
        date_range: DateRange,
        focus_id: Optional[str] = None,
    ) -> list[ActionInstance]:
        """Instances inside ``date_range`` (all focuses when ``focus_id`` is None), oldest first."""

    @abstractmethod
    def fetch_focus_area(self, focus_id: str) -> Optional[FocusArea]:
        """The focus area, or ``None`` if unknown."""

    @abstractmethod
    def fetch_weekly_summaries(self, focus_id: str, limit: int = 10) -> list[WeeklySummary]:
        """Summaries for ``focus_id``, newest week first."""

    @abstractmethod
    def save_action_instance(self, instance: ActionInstance) -> None:
        """Append ``instance``; re-saving the same id is a no-op."""

    @abstractmethod
    def save_weekly_summary(self, summary: WeeklySummary) -> None:
        """Upsert ``summary`` keyed by ``(focus_id, week_start)``."""


class ResilientHistory(HistoryRepository):
    """Wrap a ``HistoryRepository`` so storage failures never reach the engines.

    Use ``ResilientHistory.wrap(repo)`` rather than the constructor; it
    avoids double wrapping.
    """

    def __init__(self, inner: HistoryRepository) -> None:
        self.inner = inner

    @classmethod
    def wrap(cls, repo: HistoryRepository) -> "ResilientHistory":
        return repo if isinstance(repo, ResilientHistory) else cls(repo)

    def fetch_action_templates(self, focus_id: str) -> list[ActionTemplate]:
        try:
            return list(self.inner.fetch_action_templates(focus_id))
        except Exception as exc:
            logger.warning("Template fetch failed for focus '%s'; treating as empty: %s", focus_id, exc)
            return []

    def fetch_action_instances(
        self,
        date_range: DateRange,
        focus_id: Optional[str] = None,
    ) -> list[ActionInstance]:
        try:
            return list(self.inner.fetch_action_instances(date_range, focus_id))
        except Exception as exc:
            logger.warning(
                "Instance fetch failed (focus=%s, %s..%s); treating as empty: %s",
                focus_id, date_range.start, date_range.end, exc,
            )
            return []

    def fetch_focus_area(self, focus_id: str) -> Optional[FocusArea]:
        try:
            return self.inner.fetch_focus_area(focus_id)
        except Exception as exc:
            logger.warning("Focus fetch failed for '%s'; treating as unknown: %s", focus_id, exc)
            return None

    def fetch_weekly_summaries(self, focus_id: str, limit: int = 10) -> list[WeeklySummary]:
        try:
            return list(self.inner.fetch_weekly_summaries(focus_id, limit))
        except Exception as exc:
            logger.warning("Summary fetch failed for '%s'; treating as empty: %s", focus_id, exc)
            return []

    def save_action_instance(self, instance: ActionInstance) -> None:
        try:
            self.inner.save_action_instance(instance)
        except Exception:
            logger.exception("Failed to save action instance %s", instance.id)

    def save_weekly_summary(self, summary: WeeklySummary) -> None:
        try:
            self.inner.save_weekly_summary(summary)
        except Exception:
            logger.exception(
                "Failed to save weekly summary for %s week of %s",
                summary.focus_id, summary.week_start.date(),
            )
