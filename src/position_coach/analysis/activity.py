"""Piece activity from legal-move counts."""

from dataclasses import dataclass, field

import chess

from position_coach.board import LegalMoves, all_pieces, legal_moves_for

__all__ = [
    "ActivityInfo",
    "piece_activity",
]

_ACTIVE_MOVES = 5
_PASSIVE_MOVES = 1


@dataclass
class ActivityInfo:
    active: list[str] = field(default_factory=list)
    passive: list[str] = field(default_factory=list)


def piece_activity(board: chess.Board, color: chess.Color) -> ActivityInfo:
    """Very active / passive pieces. Empty unless `color` is on move."""
    info = ActivityInfo()
    moves = legal_moves_for(board, color)
    if not isinstance(moves, LegalMoves):
        return info

    per_square: dict[chess.Square, int] = {}
    for m in moves.moves:
        per_square[m.from_square] = per_square.get(m.from_square, 0) + 1

    for p in all_pieces(board, color):
        if p.piece_type in (chess.KING, chess.PAWN):
            continue
        count = per_square.get(p.square, 0)
        if count >= _ACTIVE_MOVES:
            info.active.append(
                f"{p.title} on {p.square_name} is very active ({count} available moves)"
            )
        elif count <= _PASSIVE_MOVES:
            plural = "" if count == 1 else "s"
            info.passive.append(
                f"{p.title} on {p.square_name} is passive (only {count} move{plural})"
            )
    return info
