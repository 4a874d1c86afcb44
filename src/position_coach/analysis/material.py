"""Material counting, development and castling state."""

from dataclasses import dataclass, field

import chess

from position_coach.analysis.constants import PIECE_VALUES, _opponent
from position_coach.board import all_pieces, back_rank

__all__ = [
    "MaterialCount",
    "Development",
    "material_count",
    "material_value",
    "material_balance",
    "describe_material_diff",
    "count_developed",
    "has_castled",
    "can_still_castle",
    "has_bishop_pair",
]

# describe_material_diff order, heaviest first
_DIFF_ORDER = (chess.QUEEN, chess.ROOK, chess.BISHOP, chess.KNIGHT, chess.PAWN)


@dataclass
class MaterialCount:
    pawns: int = 0
    knights: int = 0
    bishops: int = 0
    rooks: int = 0
    queens: int = 0

    def of(self, piece_type: chess.PieceType) -> int:
        return {
            chess.PAWN: self.pawns, chess.KNIGHT: self.knights,
            chess.BISHOP: self.bishops, chess.ROOK: self.rooks,
            chess.QUEEN: self.queens, chess.KING: 0,
        }[piece_type]


@dataclass
class Development:
    developed: int
    total: int
    details: list[str] = field(default_factory=list)
    has_castled: bool = False
    can_still_castle: bool = False

    @property
    def remaining(self) -> int:
        return self.total - self.developed


def material_count(board: chess.Board, color: chess.Color) -> MaterialCount:
    return MaterialCount(
        pawns=len(board.pieces(chess.PAWN, color)),
        knights=len(board.pieces(chess.KNIGHT, color)),
        bishops=len(board.pieces(chess.BISHOP, color)),
        rooks=len(board.pieces(chess.ROOK, color)),
        queens=len(board.pieces(chess.QUEEN, color)),
    )


def material_value(board: chess.Board, color: chess.Color) -> int:
    mc = material_count(board, color)
    return sum(mc.of(pt) * PIECE_VALUES[pt] for pt in _DIFF_ORDER)


def material_balance(board: chess.Board) -> int:
    """White material minus black material, in points."""
    return material_value(board, chess.WHITE) - material_value(board, chess.BLACK)


def describe_material_diff(board: chess.Board, perspective: chess.Color) -> str:
    """Signed per-type difference, e.g. '+1 rook, -2 pawns'."""
    mine = material_count(board, perspective)
    theirs = material_count(board, _opponent(perspective))
    diffs = []
    for pt in _DIFF_ORDER:
        diff = mine.of(pt) - theirs.of(pt)
        if diff == 0:
            continue
        plural = "s" if abs(diff) > 1 else ""
        sign = "+" if diff > 0 else ""
        diffs.append(f"{sign}{diff} {chess.piece_name(pt)}{plural}")
    return ", ".join(diffs) if diffs else "equal material"


def has_castled(board: chess.Board, color: chess.Color) -> bool:
    """King-position heuristic: a king on g1/c1 (g8/c8) has castled."""
    king = board.king(color)
    if color == chess.WHITE:
        return king in (chess.G1, chess.C1)
    return king in (chess.G8, chess.C8)


def can_still_castle(board: chess.Board, color: chess.Color) -> bool:
    return board.has_castling_rights(color)


def count_developed(board: chess.Board, color: chess.Color) -> Development:
    """Knights, bishops, rooks and queens that have left the back rank."""
    home = back_rank(color)
    developed = 0
    total = 0
    details = []
    for p in all_pieces(board, color):
        if p.piece_type in (chess.KING, chess.PAWN):
            continue
        total += 1
        if chess.square_rank(p.square) != home:
            developed += 1
        else:
            details.append(f"{p.title} on {p.square_name} is still undeveloped")
    return Development(
        developed=developed,
        total=total,
        details=details,
        has_castled=has_castled(board, color),
        can_still_castle=can_still_castle(board, color),
    )


def has_bishop_pair(board: chess.Board, color: chess.Color) -> bool:
    bishops = board.pieces(chess.BISHOP, color)
    return bool(bishops & chess.BB_LIGHT_SQUARES) and bool(bishops & chess.BB_DARK_SQUARES)
