"""Deterministic chess position analysis and coaching explanations."""

from position_coach.explainer import (  # noqa: F401
    EndPosition,
    MoveExplanation,
    PositionExplanation,
    describe_end_position,
    explain_moves,
)
from position_coach.scoring import (  # noqa: F401
    ReportStats,
    Sample,
    compute_report_stats,
    derive_leak_tags,
    derive_tactic_tags,
)
