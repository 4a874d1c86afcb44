"""King safety scoring: pawn shield, central king, open files near the king."""

from dataclasses import dataclass, field

import chess

from position_coach.analysis.constants import _opponent
from position_coach.board import FILES, back_rank, piece_at, square_at, total_pieces

__all__ = [
    "KingSafety",
    "king_safety_score",
    "is_king_exposed",
]

_FULL_SCORE = 100
_NO_SHIELD_PENALTY = 30
_THIN_SHIELD_PENALTY = 15
_CENTRAL_KING_PENALTY = 25
_OPEN_FILE_PENALTY = 20
# A position with more pieces than this is treated as a middlegame
_MIDDLEGAME_PIECES = 10
_EXPOSED_BELOW = 50


@dataclass
class KingSafety:
    score: int  # 0-100, higher is safer
    issues: list[str] = field(default_factory=list)


def king_safety_score(board: chess.Board, color: chess.Color) -> KingSafety:
    king = board.king(color)
    if king is None:
        return KingSafety(score=0)

    enemy = _opponent(color)
    issues = []
    score = _FULL_SCORE
    k_file = chess.square_file(king)
    k_rank = chess.square_rank(king)
    shield_rank = k_rank + 1 if color == chess.WHITE else k_rank - 1
    near_files = range(max(0, k_file - 1), min(7, k_file + 1) + 1)

    shield = 0
    for f in near_files:
        sq = square_at(f, shield_rank)
        if sq is None:
            continue
        p = piece_at(board, sq)
        if p is not None and p.piece_type == chess.PAWN and p.color == color:
            shield += 1
    if shield == 0:
        score -= _NO_SHIELD_PENALTY
        issues.append("no pawn shield in front of the king")
    elif shield == 1:
        score -= _THIN_SHIELD_PENALTY
        issues.append("thin pawn shield (only 1 pawn)")

    # d- or e-file king still at home
    if total_pieces(board) > _MIDDLEGAME_PIECES and k_rank == back_rank(color) and k_file in (3, 4):
        score -= _CENTRAL_KING_PENALTY
        issues.append("king still in the center during middlegame")

    own_pawns = board.pieces(chess.PAWN, color)
    heavy = board.pieces(chess.ROOK, enemy) | board.pieces(chess.QUEEN, enemy)
    for f in near_files:
        file_bb = chess.BB_FILES[f]
        if own_pawns & file_bb:
            continue
        if heavy & file_bb:
            score -= _OPEN_FILE_PENALTY
            issues.append(f"open {FILES[f]}-file near king with enemy heavy piece")

    return KingSafety(score=max(0, score), issues=issues)


def is_king_exposed(board: chess.Board, color: chess.Color) -> bool:
    return king_safety_score(board, color).score < _EXPOSED_BELOW
