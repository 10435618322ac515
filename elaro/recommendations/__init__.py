"""
Recommendation engine: ranks a focus area's action templates against the
family's history and explains the pick in one sentence.

Modules
-------
explain : ExplainWhyBuilder — hour / friction / duration → rationale copy.
scorer  : ScoreComponents dataclass + compute_score() and the per-component
          scoring helpers — pure functions, no repository access.
ranker  : RecommenderEngine.rank() + RankedSuggestion, plus the pure
          selection helpers (contraindication filter, top-N selection,
          variant choice).
"""
