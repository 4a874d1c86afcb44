"""What the opponent can do right after a poor played move."""

import chess

from position_coach.analysis.constants import piece_value
from position_coach.analysis.tactics.finders import detect_fork
from position_coach.analysis.tactics.rays import detect_pins
from position_coach.analysis.tactics.types import Motif, TacticalTheme
from position_coach.board import apply_move, back_rank, piece_at

__all__ = [
    "walks_into_fork",
    "walks_into_pin",
    "hangs_material",
    "back_rank_mate_threat",
]

_VALUABLE = (chess.KING, chess.QUEEN, chess.ROOK)


def walks_into_fork(after: chess.Board) -> TacticalTheme | None:
    """First opponent reply that forks two pieces, at least one of them K, Q or R."""
    for m in after.legal_moves:
        reply = apply_move(after, m)
        landed = piece_at(reply.after, m.to_square)
        if landed is None:
            continue
        forked = detect_fork(reply.after, m.to_square, landed)
        if len(forked) >= 2 and any(p.piece_type in _VALUABLE for p in forked):
            targets = " and ".join(p.title for p in forked)
            return TacticalTheme.of(
                Motif.WALKS_INTO_FORK,
                f"Your move allows **{reply.san}**, a {landed.name} fork attacking your "
                f"{targets}. This leads to severe material loss.",
            )
    return None


def walks_into_pin(before: chess.Board, after: chess.Board, mover: chess.Color) -> TacticalTheme | None:
    """A pin against the mover that did not exist before the move."""
    existing = {(p.pinned.square, p.pinner.square) for p in detect_pins(before, mover)}
    for pin in detect_pins(after, mover):
        if (pin.pinned.square, pin.pinner.square) in existing:
            continue
        return TacticalTheme.of(
            Motif.WALKS_INTO_PIN,
            f"Your move allows the opponent's {pin.pinner.name} on {pin.pinner.square_name} "
            f"to pin your {pin.pinned.name} on {pin.pinned.square_name} to your "
            f"{pin.target.name}. The pinned piece cannot move safely.",
        )
    return None


def hangs_material(after: chess.Board) -> TacticalTheme | None:
    """An opponent capture of something worth ≥3 and worth more than the capturer."""
    for m in after.legal_moves:
        if not after.is_capture(m):
            continue
        victim = after.piece_at(m.to_square)
        attacker = after.piece_at(m.from_square)
        if victim is None or attacker is None:
            continue
        cap_value = piece_value(victim.piece_type)
        if cap_value >= 3 and cap_value > piece_value(attacker.piece_type):
            return TacticalTheme.of(
                Motif.HANGS_MATERIAL,
                f"Your move leaves the {chess.piece_name(victim.piece_type).capitalize()} on "
                f"{chess.square_name(m.to_square)} unprotected. The opponent can capture it "
                f"with **{after.san(m)}**, winning material.",
            )
    return None


def back_rank_mate_threat(after: chess.Board, mover: chess.Color) -> TacticalTheme | None:
    """The mover's king sits on its back rank and the opponent has mate in one."""
    king = after.king(mover)
    if king is None or chess.square_rank(king) != back_rank(mover):
        return None
    for m in after.legal_moves:
        reply = apply_move(after, m)
        if reply.after.is_checkmate():
            return TacticalTheme.of(
                Motif.BACK_RANK_MATE_THREAT,
                f"Your move allows **{reply.san}** — back-rank checkmate! The king has no "
                f"escape because the back rank is blocked.",
            )
    return None
