"""Game phase, endgame type and the coarse position profile."""

from dataclasses import dataclass

import chess

from position_coach.analysis.constants import GamePhase
from position_coach.board import all_pieces, total_pieces

__all__ = [
    "PositionProfile",
    "classify_game_phase",
    "classify_endgame_type",
    "profile_position",
]


@dataclass(frozen=True)
class PositionProfile:
    phase: str      # "opening" | "middlegame" | "endgame"
    structure: str  # "open" | "closed" | "semi-open"
    tension: str    # "high" | "low"
    advantage: str  # "winning" | "better" | "equal" | "worse" | "losing"


def classify_game_phase(board: chess.Board) -> GamePhase:
    total = total_pieces(board)
    queens = len(board.pieces(chess.QUEEN, chess.WHITE)) + len(board.pieces(chess.QUEEN, chess.BLACK))
    if board.fullmove_number <= 12 and total >= 28:
        return GamePhase.OPENING
    if total <= 12 or (queens == 0 and total <= 16):
        return GamePhase.ENDGAME
    return GamePhase.MIDDLEGAME


_SINGLE_TYPE_ENDINGS = {
    chess.ROOK: "Rook Endgame",
    chess.BISHOP: "Bishop Endgame",
    chess.KNIGHT: "Knight Endgame",
    chess.QUEEN: "Queen Endgame",
}


def classify_endgame_type(board: chess.Board) -> str | None:
    pieces = all_pieces(board)
    types = {p.piece_type for p in pieces if p.piece_type not in (chess.KING, chess.PAWN)}
    has_pawns = any(p.piece_type == chess.PAWN for p in pieces)

    if not types and has_pawns:
        return "Pawn Endgame"
    if len(types) == 1:
        return _SINGLE_TYPE_ENDINGS[next(iter(types))]
    if types == {chess.QUEEN, chess.ROOK}:
        return "Queen and Rook"
    return None


def _structure(board: chess.Board) -> str:
    # Pawns on the c-f files; a locked pair is a pawn blocked head-on by an enemy pawn
    central = [
        p for p in all_pieces(board)
        if p.piece_type == chess.PAWN and 2 <= chess.square_file(p.square) <= 5
    ]
    locked = 0
    for p in central:
        f = chess.square_file(p.square)
        ahead = chess.square_rank(p.square) + (1 if p.color == chess.WHITE else -1)
        if any(
            q.color != p.color
            and chess.square_file(q.square) == f
            and chess.square_rank(q.square) == ahead
            for q in central
        ):
            locked += 1
    if locked >= 4:
        return "closed"
    if len(central) <= 2:
        return "open"
    return "semi-open"


def profile_position(board: chess.Board, eval_cp: float, perspective: chess.Color) -> PositionProfile:
    """Classify a position for context-aware commentary.

    `eval_cp` is from the side to move's point of view; the advantage label
    is from `perspective`.
    """
    total = total_pieces(board)
    if total >= 26:
        phase = "opening"
    elif total >= 14:
        phase = "middlegame"
    else:
        phase = "endgame"

    captures = sum(1 for m in board.legal_moves if board.is_capture(m))
    tension = "high" if captures >= 4 else "low"

    user_eval = eval_cp if board.turn == perspective else -eval_cp
    if user_eval > 300:
        advantage = "winning"
    elif user_eval > 80:
        advantage = "better"
    elif user_eval > -80:
        advantage = "equal"
    elif user_eval > -300:
        advantage = "worse"
    else:
        advantage = "losing"

    return PositionProfile(phase=phase, structure=_structure(board), tension=tension, advantage=advantage)
