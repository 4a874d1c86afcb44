"""Report scoring: summary statistics over a batch of evaluation-loss samples.

Each sample is one recurring position: the centipawn loss of the move the
player chose there and how often the position was reached. The constants
and clamp bounds below are part of the scoring contract; rounding is
half-up so that scores match those computed by the web client.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import chess

from position_coach.analysis.constants import CENTER_SQUARES

logger = logging.getLogger(__name__)

__all__ = [
    "NO_PATTERN",
    "Sample",
    "ReportStats",
    "compute_report_stats",
    "derive_leak_tags",
    "derive_tactic_tags",
]

NO_PATTERN = "No big leak pattern"

_MAX_LEAK_TAGS = 3


@dataclass(frozen=True)
class Sample:
    cp_loss: float
    reach_count: int
    tags: tuple[str, ...] = ()


@dataclass
class ReportStats:
    estimated_accuracy: float
    estimated_rating: int
    weighted_cp_loss: float
    severe_leak_rate: float
    p75_cp_loss: float
    consistency_score: int
    confidence: int
    top_tag: str
    sample_size: int


def _clamp(lo: float, hi: float, x: float) -> float:
    return max(lo, min(hi, x))


def _round(x: float) -> int:
    """Round half up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(x + 0.5)


def _top_tag(samples: Sequence[Sample]) -> str:
    counts: dict[str, int] = {}
    for s in samples:
        for tag in s.tags:
            counts[tag] = counts.get(tag, 0) + 1
    best, best_count = NO_PATTERN, 0
    # dicts keep first-seen order, so ties go to the earlier tag
    for tag, count in counts.items():
        if count > best_count:
            best, best_count = tag, count
    return best


def _estimate_rating(weighted: float, severe_rate: float, n: int, actual_rating: float | None) -> int:
    if actual_rating is not None and actual_rating > 0:
        expected_loss = max(2, 50 - actual_rating / 60)
        diff = expected_loss - max(1, weighted)  # positive: better than expected for the level
        adjustment = _clamp(-200, 200, diff * 8)
        leak_adjustment = severe_rate * -150
        return _round(_clamp(400, 2800, actual_rating + adjustment + leak_adjustment))

    base_rating = 1800 - 400 * math.log10(max(2, weighted))
    leak_penalty = severe_rate * 400
    sample_factor = _clamp(0, 1, n / 50)
    adjusted = 1200 + (base_rating - leak_penalty - 1200) * sample_factor
    return _round(_clamp(400, 2400, adjusted))


def compute_report_stats(
    samples: Sequence[Sample],
    cp_threshold: float,
    actual_rating: float | None = None,
) -> ReportStats:
    """Summarise a session. Raises ValueError for an empty batch."""
    if not samples:
        raise ValueError("cannot score an empty sample batch")

    n = len(samples)
    losses = [s.cp_loss for s in samples]
    ordered = sorted(losses)
    p75 = ordered[min(n - 1, math.floor(n * 0.75))]

    mean = sum(losses) / n
    std_dev = math.sqrt(sum((x - mean) ** 2 for x in losses) / n)

    total_weight = sum(s.reach_count for s in samples)
    weighted = sum(s.cp_loss * s.reach_count for s in samples) / total_weight if total_weight > 0 else 0.0
    severe_rate = sum(1 for x in losses if x >= cp_threshold) / n

    accuracy = _clamp(25, 99.5, 100 * math.exp(-weighted / 120))

    return ReportStats(
        estimated_accuracy=accuracy,
        estimated_rating=_estimate_rating(weighted, severe_rate, n, actual_rating),
        weighted_cp_loss=weighted,
        severe_leak_rate=severe_rate,
        p75_cp_loss=p75,
        consistency_score=int(_clamp(0, 100, _round(100 - std_dev / 4))),
        confidence=int(_clamp(10, 99, _round(n / 40 * 100))),
        top_tag=_top_tag(samples),
        sample_size=n,
    )


def _uci_and_san(board: chess.Board, uci: str | None) -> tuple[chess.Move | None, str | None]:
    if not uci:
        return None, None
    try:
        move = board.parse_uci(uci)
    except ValueError:
        return None, None
    return move, board.san(move)


def derive_leak_tags(
    fen_before: str,
    user_move: str,
    best_move: str | None,
    cp_loss: float,
    reach_count: int,
    move_count: int,
) -> list[str]:
    """Up to three weakness tags for a recurring position.

    `move_count` is how many of the `reach_count` visits the player chose
    `user_move`. Moves are UCI. Falls back to "Inaccuracy" when nothing
    more specific applies.
    """
    tags: list[str] = []

    def add(tag: str) -> None:
        if tag not in tags:
            tags.append(tag)

    if cp_loss >= 250:
        add("Major Blunder")
    elif cp_loss >= 150:
        add("Tactical Miss")

    if reach_count > 0 and move_count / reach_count >= 0.7:
        add("Repeated Habit")

    try:
        board = chess.Board(fen_before)
    except ValueError as e:
        logger.warning("Cannot parse position %r: %s", fen_before, e)
        board = None

    if board is not None:
        user, user_san = _uci_and_san(board, user_move)
        best, best_san = _uci_and_san(board, best_move)
        user_san = user_san or ""

        if best_san is not None:
            if "O-O" in best_san and "O-O" not in user_san:
                add("King Safety")
            if "+" in best_san and "+" not in user_san:
                add("Missed Check")
            if "x" in best_san and "x" not in user_san:
                add("Missed Capture")
        if best is not None and user is not None:
            if best.to_square in CENTER_SQUARES and user.to_square not in CENTER_SQUARES:
                add("Center Control")
        if board.fullmove_number <= 10 and user is not None:
            moved = board.piece_type_at(user.from_square)
            if moved in (chess.QUEEN, chess.KING):
                add("Opening Development")

    if not tags:
        add("Inaccuracy")
    return tags[:_MAX_LEAK_TAGS]


def derive_tactic_tags(
    fen_before: str,
    best_move: str,
    cp_loss: float,
    cp_before: float,
) -> list[str]:
    """Up to three tags describing a missed tactic.

    `best_move` is UCI; `cp_before` is the evaluation before the miss from
    the player's side. Severity always comes first. Tags that need the SAN
    of the best move are skipped when the position or move cannot be read.
    """
    tags: list[str] = []
    if cp_loss >= 600:
        tags.append("Winning Blunder")
    elif cp_loss >= 400:
        tags.append("Major Miss")
    else:
        tags.append("Tactical Miss")

    try:
        board = chess.Board(fen_before)
    except ValueError as e:
        logger.warning("Cannot parse position %r: %s", fen_before, e)
        board = None
    san = _uci_and_san(board, best_move)[1] if board is not None else None
    san = san or ""

    if "#" in san:
        tags.append("Missed Mate")
    elif "+" in san and "x" in san:
        tags.append("Forcing Capture")
    elif "+" in san:
        tags.append("Missed Check")
    elif "x" in san:
        tags.append("Missed Capture")

    if cp_before >= 200:
        tags.append("Converting Advantage")
    elif -50 <= cp_before <= 50:
        tags.append("Equal Position")

    if san.startswith("N") and "x" in san:
        tags.append("Knight Fork?")
    elif san.startswith("Q") and "x" in san:
        tags.append("Queen Tactic")

    if board is not None and ("+" in san or "#" in san):
        king = board.king(not board.turn)
        if king is not None and chess.square_rank(king) == (7 if board.turn == chess.WHITE else 0):
            tags.append("Back Rank")

    return tags[:_MAX_LEAK_TAGS]
