"""
JSON export helpers.

``*_to_dict`` converters flatten engine results into JSON-ready dicts for
the CLI's ``--json`` flag; ``export_to_json`` writes any such payload to
disk.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from elaro.models.summary import WeeklySummary
from elaro.recommendations.ranker import RankedSuggestion
from elaro.signals.engine import SignalSnapshot
from elaro.weekly.adjuster import WeeklyAnalysis


def suggestion_to_dict(suggestion: RankedSuggestion) -> dict:
    return {
        "focus_id": suggestion.focus_id,
        "headline": suggestion.headline,
        "why_summary": suggestion.why_summary,
        "filter_applied": suggestion.filter_applied,
        "actions": [
            {
                "template_id": t.id,
                "title": t.title,
                "rationale_line": t.rationale_line,
                "duration_minutes": suggestion.chosen_variants.get(t.id),
                "score": round(suggestion.scores[t.id].total, 4) if t.id in suggestion.scores else None,
                "components": asdict(suggestion.scores[t.id]) if t.id in suggestion.scores else None,
            }
            for t in suggestion.actions
        ],
    }


def snapshot_to_dict(snapshot: SignalSnapshot) -> dict:
    payload = asdict(snapshot)
    payload["as_of"] = snapshot.as_of.isoformat()
    payload["novelty_tolerance"] = str(snapshot.novelty_tolerance)
    # JSON object keys must be strings.
    payload["heatmap"] = {str(h): v for h, v in snapshot.heatmap.items()}
    return payload


def analysis_to_dict(analysis: WeeklyAnalysis) -> dict:
    payload = asdict(analysis)
    payload["week_start"] = analysis.week_start.isoformat()
    payload["suggested_tweak"] = str(analysis.suggested_tweak)
    return payload


def summary_to_dict(summary: WeeklySummary) -> dict:
    return summary.model_dump(mode="json")


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed UTF-8 JSON file (parents created)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path
