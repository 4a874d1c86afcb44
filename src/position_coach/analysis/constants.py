"""Constants and small utility functions shared across analysis submodules."""

import enum

import chess

__all__ = [
    "PIECE_VALUES",
    "CENTER_SQUARES",
    "EXTENDED_CENTER",
    "piece_value",
    "_color_name",
    "_opponent",
    "GamePhase",
]

PIECE_VALUES: dict[chess.PieceType, int] = {
    chess.PAWN: 1,
    chess.KNIGHT: 3,
    chess.BISHOP: 3,
    chess.ROOK: 5,
    chess.QUEEN: 9,
    chess.KING: 0,
}

CENTER_SQUARES = frozenset([chess.D4, chess.D5, chess.E4, chess.E5])

# c3-f6 rectangle
EXTENDED_CENTER = frozenset(
    chess.square(f, r) for f in range(2, 6) for r in range(2, 6)
)


def piece_value(piece_type: chess.PieceType) -> int:
    """Material points for a piece type; the king counts as 0."""
    return PIECE_VALUES[piece_type]


def _color_name(color: chess.Color) -> str:
    """Convert chess.Color bool to 'White' / 'Black'."""
    return "White" if color == chess.WHITE else "Black"


def _opponent(color: chess.Color) -> chess.Color:
    return not color


class GamePhase(enum.Enum):
    OPENING = "Opening"
    MIDDLEGAME = "Middlegame"
    ENDGAME = "Endgame"
