"""
Composition root for the engines.

``build_engines(history, config)`` is the one place engines are
constructed. The repository is wrapped once in ``ResilientHistory`` and the
same wrapped instance is injected into every engine, so a storage failure
anywhere downstream reads as "no data" instead of an exception.

Usage::

    with get_connection(cfg.database.db_path) as conn:
        engines = build_engines(SQLiteHistoryRepository(conn), cfg.engine)
        suggestion = engines.recommender.rank("independence")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from elaro.config import EngineConfig
from elaro.history.repository import HistoryRepository, ResilientHistory
from elaro.recommendations.explain import ExplainWhyBuilder
from elaro.recommendations.ranker import RecommenderEngine
from elaro.signals.engine import SignalsEngine
from elaro.weekly.adjuster import WeeklyAdjuster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineContainer:
    """The wired engine graph, passed explicitly to call sites."""

    history:     ResilientHistory
    signals:     SignalsEngine
    explainer:   ExplainWhyBuilder
    recommender: RecommenderEngine
    weekly:      WeeklyAdjuster


def build_engines(
    history: HistoryRepository,
    config: Optional[EngineConfig] = None,
) -> EngineContainer:
    """Construct SignalsEngine → ExplainWhyBuilder → RecommenderEngine → WeeklyAdjuster.

    Args:
        history: Any ``HistoryRepository``; wrapped in ``ResilientHistory``.
        config:  ``[engine]`` section of ``AppConfig`` (defaults when None).

    Returns:
        ``EngineContainer`` sharing one wrapped repository.
    """
    config = config or EngineConfig()
    resilient = ResilientHistory.wrap(history)

    signals = SignalsEngine(
        resilient,
        tz=config.tzinfo,
        stress_keywords=config.stress_keywords,
        success_window_days=config.success_window_days,
        heatmap_window_days=config.heatmap_window_days,
        bandwidth_window_days=config.bandwidth_window_days,
        novelty_window_days=config.novelty_window_days,
        friction_window_days=config.friction_window_days,
        stress_lookback_hours=config.stress_lookback_hours,
    )
    explainer = ExplainWhyBuilder(config.focus_names)
    recommender = RecommenderEngine(resilient, signals, explainer)
    weekly = WeeklyAdjuster(resilient, signals, tz=config.tzinfo, first_weekday=config.first_weekday)

    logger.debug("Built engines (tz=%s, first_weekday=%d)", config.timezone, config.first_weekday)
    return EngineContainer(
        history=resilient,
        signals=signals,
        explainer=explainer,
        recommender=recommender,
        weekly=weekly,
    )
