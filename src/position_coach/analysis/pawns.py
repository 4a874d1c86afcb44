"""Pawn structure analysis: doubled, isolated and passed pawns."""

from dataclasses import dataclass, field

import chess

from position_coach.analysis.constants import _opponent
from position_coach.board import FILES, Piece, all_pieces

__all__ = [
    "PawnReport",
    "pawn_structure",
    "is_passed_pawn",
    "relative_rank",
]

# 1-based rank, counted from the pawn owner's side, at which a passer is "advanced"
_ADVANCED_RANK = 6


@dataclass
class PawnReport:
    issues: list[str] = field(default_factory=list)
    assets: list[str] = field(default_factory=list)

    @property
    def has_passed_pawn(self) -> bool:
        return any("passed" in a for a in self.assets)


def relative_rank(square: chess.Square, color: chess.Color) -> int:
    """1-based rank as seen from `color`'s side of the board."""
    r = chess.square_rank(square)
    return r + 1 if color == chess.WHITE else 8 - r


def is_passed_pawn(pawn: Piece, enemy_pawns: list[Piece]) -> bool:
    """No enemy pawn on the same or an adjacent file ahead of `pawn`."""
    f = chess.square_file(pawn.square)
    r = chess.square_rank(pawn.square)
    for op in enemy_pawns:
        if abs(chess.square_file(op.square) - f) > 1:
            continue
        op_r = chess.square_rank(op.square)
        if pawn.color == chess.WHITE and op_r > r:
            return False
        if pawn.color == chess.BLACK and op_r < r:
            return False
    return True


def pawn_structure(board: chess.Board, color: chess.Color) -> PawnReport:
    pawns = [p for p in all_pieces(board, color) if p.piece_type == chess.PAWN]
    enemy_pawns = [p for p in all_pieces(board, _opponent(color)) if p.piece_type == chess.PAWN]
    report = PawnReport()

    file_counts: dict[int, int] = {}
    for p in pawns:
        f = chess.square_file(p.square)
        file_counts[f] = file_counts.get(f, 0) + 1
    for f, count in file_counts.items():
        if count >= 2:
            report.issues.append(f"doubled pawns on the {FILES[f]}-file")

    for p in pawns:
        f = chess.square_file(p.square)
        if not any(abs(chess.square_file(q.square) - f) == 1 for q in pawns):
            report.issues.append(f"isolated pawn on {p.square_name}")

    for p in pawns:
        if is_passed_pawn(p, enemy_pawns):
            suffix = " (advanced!)" if relative_rank(p.square, color) >= _ADVANCED_RANK else ""
            report.assets.append(f"passed pawn on {p.square_name}{suffix}")

    return report
