"""
ASCII terminal formatters for CLI commands.

All formatters accept engine result objects and return plain multi-line
strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from elaro.models.summary import WeeklySummary
from elaro.recommendations.ranker import RankedSuggestion
from elaro.signals.engine import SignalSnapshot
from elaro.weekly.adjuster import WeeklyAnalysis


# ── Recommendation ────────────────────────────────────────────────────────────


def format_suggestion(suggestion: RankedSuggestion, show_scores: bool = False) -> str:
    """Format today's suggestion as a numbered action list.

    Example::

        === You pick the plan; I'm backup ===
          1. Try first, ask for help after             10 min
             - Pick two small tasks
             - Offer help only when asked
          2. Lay out two options                        5 min
             ...
          Because mornings and 10-minute actions work for you, ...

    Args:
        suggestion:  Result of ``RecommenderEngine.rank``.
        show_scores: Append each action's score breakdown.

    Returns:
        Multi-line string.
    """
    lines: list[str] = ["", f"=== {suggestion.headline} ==="]

    if suggestion.is_empty:
        lines.append("  (no actions available for this focus — run 'import-content' first)")
        return "\n".join(lines)

    if suggestion.filter_applied:
        lines.append("  [NOTE] Recent stress noted; intensive activities are hidden today.")

    for rank, template in enumerate(suggestion.actions, start=1):
        minutes = suggestion.chosen_variants.get(template.id)
        lines.append(f"  {rank}. {template.title[:40]:<40}  {minutes:>3} min")
        variant = template.variant_for(minutes) if minutes is not None else None
        for step in (variant.steps if variant else []):
            lines.append(f"       - {step}")
        if show_scores and template.id in suggestion.scores:
            c = suggestion.scores[template.id]
            lines.append(
                f"       score {c.total:.3f}  (focus {c.focus_match:.2f}, success {c.success_prob:.2f}, "
                f"bandwidth {c.bandwidth_fit:.2f}, hour {c.hour_fit:.2f}, "
                f"novelty {c.novelty_boost:.2f}, friction {c.friction:.2f})"
            )

    lines.append("")
    lines.append(f"  {suggestion.why_summary}")
    return "\n".join(lines)


# ── Signals ───────────────────────────────────────────────────────────────────


def format_signals(snapshot: SignalSnapshot) -> str:
    """Format a signal snapshot as an aligned key/value block."""
    rates = snapshot.success_rate_by_tag
    rate_str = (
        ", ".join(f"{tag} {rate:.0%}" for tag, rate in sorted(rates.items()))
        if rates else "(no data)"
    )
    peaks = ", ".join(f"{h:02d}:00" for h in snapshot.peak_hours)
    if not any(snapshot.heatmap.values()):
        peaks = "(no completions)"

    lines = [
        "",
        f"=== Signals: {snapshot.focus_id} ===",
        f"  As of:                {snapshot.as_of.isoformat()}",
        f"  Success by tag:       {rate_str}",
        f"  Peak hours:           {peaks}",
        f"  Bandwidth preference: {snapshot.bandwidth_preference} min",
        f"  Novelty tolerance:    {snapshot.novelty_tolerance}",
        f"  Friction index:       {snapshot.friction_index:.2f}",
        f"  Streak momentum:      {snapshot.streak_momentum:.0%}",
        f"  Recent performance:   {snapshot.recent_performance:.0%}",
        f"  Recent stress:        {'yes' if snapshot.recent_stress else 'no'}",
    ]
    return "\n".join(lines)


# ── Weekly review ─────────────────────────────────────────────────────────────


def format_analysis(analysis: WeeklyAnalysis) -> str:
    lines = [
        "",
        f"=== Week of {analysis.week_start.date().isoformat()}: {analysis.focus_id} ===",
        f"  Actions logged:  {analysis.instance_count}",
        f"  Completion rate: {analysis.completion_rate:.0%}",
        f"  Friction index:  {analysis.friction_index:.0%}",
        f"  Win:             {analysis.win_text}",
        f"  Hard:            {analysis.hard_text}",
        f"  Suggested tweak: {analysis.suggested_tweak.display_name}",
        "",
        f"  {analysis.rationale}",
    ]
    return "\n".join(lines)


def format_summaries(focus_id: str, summaries: list[WeeklySummary]) -> str:
    """Format recorded weekly summaries as a table, newest first."""
    lines = ["", f"=== Weekly Summaries: {focus_id} ==="]
    if not summaries:
        lines.append("  (no summaries recorded — confirm one with 'apply-tweak')")
        return "\n".join(lines)

    header = f"    {'Week':<10}  {'Tweak':<10}  {'Win':<40}  Hard"
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for s in summaries:
        lines.append(
            f"    {s.week_start.date().isoformat():<10}  {s.suggested_tweak.display_name:<10}  "
            f"{s.win_text[:40]:<40}  {s.hard_text}"
        )
    return "\n".join(lines)
