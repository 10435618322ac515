"""
Weekly review: aggregate one week of history into a keep / scale-down /
scale-up decision and persist the confirmed decision as a WeeklySummary.

Modules
-------
adjuster : WeeklyAnalysis dataclass, the pure text / decision helpers, and
           WeeklyAdjuster (analyze_week, apply_tweak, summaries).
"""
