"""Board model and geometric attack primitives.

Positions are python-chess boards. Nothing in this package mutates a board
it is handed: positions after a move are fresh copies. The attack tests here
are pure geometry and never consult legality (pins, checks against the
attacker's own king), which is what the motif detectors want.
"""

from __future__ import annotations

from dataclasses import dataclass

import chess

__all__ = [
    "FILES",
    "Piece",
    "LegalMoves",
    "NotApplicable",
    "AppliedMove",
    "square_at",
    "piece_at",
    "all_pieces",
    "total_pieces",
    "back_rank",
    "is_path_clear",
    "is_attacking",
    "get_checkers",
    "adjacent_squares",
    "slider_directions",
    "is_aligned",
    "parse_position",
    "parse_move",
    "apply_move",
    "legal_moves_for",
    "with_side_to_move",
]

FILES = "abcdefgh"

_DIAGONAL = ((1, 1), (1, -1), (-1, 1), (-1, -1))
_ORTHOGONAL = ((1, 0), (-1, 0), (0, 1), (0, -1))
_SLIDER_DIRS: dict[chess.PieceType, tuple[tuple[int, int], ...]] = {
    chess.BISHOP: _DIAGONAL,
    chess.ROOK: _ORTHOGONAL,
    chess.QUEEN: _DIAGONAL + _ORTHOGONAL,
}


@dataclass(frozen=True)
class Piece:
    piece_type: chess.PieceType
    color: chess.Color
    square: chess.Square

    @property
    def name(self) -> str:
        """Lowercase piece name: 'knight'."""
        return chess.piece_name(self.piece_type)

    @property
    def title(self) -> str:
        """Capitalized piece name: 'Knight'."""
        return self.name.capitalize()

    @property
    def square_name(self) -> str:
        return chess.square_name(self.square)


@dataclass(frozen=True)
class LegalMoves:
    """Legal moves for a side that is actually on move."""
    moves: tuple[chess.Move, ...]


@dataclass(frozen=True)
class NotApplicable:
    """Move enumeration was asked for the side that is not on move."""
    reason: str


@dataclass(frozen=True)
class AppliedMove:
    move: chess.Move
    san: str
    after: chess.Board

    @property
    def uci(self) -> str:
        return self.move.uci()


def square_at(file: int, rank: int) -> chess.Square | None:
    if not (0 <= file <= 7 and 0 <= rank <= 7):
        return None
    return chess.square(file, rank)


def piece_at(board: chess.Board, square: chess.Square) -> Piece | None:
    p = board.piece_at(square)
    if p is None:
        return None
    return Piece(p.piece_type, p.color, square)


def all_pieces(board: chess.Board, color: chess.Color | None = None) -> list[Piece]:
    """Every piece on the board, scanning file by file from a1 up to h8.

    The scan order is fixed so that detectors reporting "the first" match
    are deterministic.
    """
    pieces = []
    for f in range(8):
        for r in range(8):
            sq = chess.square(f, r)
            p = board.piece_at(sq)
            if p is not None and (color is None or p.color == color):
                pieces.append(Piece(p.piece_type, p.color, sq))
    return pieces


def total_pieces(board: chess.Board) -> int:
    """Number of pieces on the board, kings and pawns included."""
    return len(board.piece_map())


def back_rank(color: chess.Color) -> int:
    return 0 if color == chess.WHITE else 7


def _sign(x: int) -> int:
    return (x > 0) - (x < 0)


def is_path_clear(board: chess.Board, from_sq: chess.Square, to_sq: chess.Square) -> bool:
    """True when every square strictly between from_sq and to_sq is empty.

    Walks one step at a time along the sign of the file and rank deltas, so
    squares that are not on a common line run off the board and return False.
    """
    tf, tr = chess.square_file(to_sq), chess.square_rank(to_sq)
    step_f = _sign(tf - chess.square_file(from_sq))
    step_r = _sign(tr - chess.square_rank(from_sq))
    f = chess.square_file(from_sq) + step_f
    r = chess.square_rank(from_sq) + step_r
    while f != tf or r != tr:
        sq = square_at(f, r)
        if sq is None or board.piece_at(sq) is not None:
            return False
        f += step_f
        r += step_r
    return True


def is_attacking(
    board: chess.Board,
    from_sq: chess.Square,
    attacker: Piece,
    target: chess.Square,
) -> bool:
    """Geometric attack test for `attacker` standing on from_sq."""
    if from_sq == target:
        return False
    d_file = chess.square_file(target) - chess.square_file(from_sq)
    d_rank = chess.square_rank(target) - chess.square_rank(from_sq)
    pt = attacker.piece_type

    if pt == chess.KNIGHT:
        return (abs(d_file), abs(d_rank)) in ((1, 2), (2, 1))
    if pt == chess.PAWN:
        direction = 1 if attacker.color == chess.WHITE else -1
        return d_rank == direction and abs(d_file) == 1
    if pt == chess.KING:
        return abs(d_file) <= 1 and abs(d_rank) <= 1 and (d_file != 0 or d_rank != 0)
    if pt == chess.BISHOP:
        if abs(d_file) != abs(d_rank) or d_file == 0:
            return False
        return is_path_clear(board, from_sq, target)
    if pt == chess.ROOK:
        if d_file != 0 and d_rank != 0:
            return False
        return is_path_clear(board, from_sq, target)
    if pt == chess.QUEEN:
        if d_file != 0 and d_rank != 0 and abs(d_file) != abs(d_rank):
            return False
        return is_path_clear(board, from_sq, target)
    return False


def get_checkers(
    board: chess.Board,
    king_sq: chess.Square,
    attacker_color: chess.Color,
) -> list[Piece]:
    """Pieces of attacker_color giving check to the king on king_sq.

    Knights and pawns are tested by pattern alone, sliders need a clear
    line and kings never count.
    """
    checkers = []
    for a in all_pieces(board, attacker_color):
        if a.piece_type == chess.KING:
            continue
        if not is_attacking(board, a.square, a, king_sq):
            continue
        if a.piece_type in (chess.KNIGHT, chess.PAWN) or is_path_clear(board, a.square, king_sq):
            checkers.append(a)
    return checkers


def adjacent_squares(square: chess.Square) -> list[chess.Square]:
    f, r = chess.square_file(square), chess.square_rank(square)
    result = []
    for df in (-1, 0, 1):
        for dr in (-1, 0, 1):
            if df == 0 and dr == 0:
                continue
            sq = square_at(f + df, r + dr)
            if sq is not None:
                result.append(sq)
    return result


def slider_directions(piece_type: chess.PieceType) -> tuple[tuple[int, int], ...]:
    return _SLIDER_DIRS.get(piece_type, ())


def is_aligned(from_sq: chess.Square, to_sq: chess.Square, d_file: int, d_rank: int) -> bool:
    """True when to_sq lies on the ray leaving from_sq in direction (d_file, d_rank)."""
    df = chess.square_file(to_sq) - chess.square_file(from_sq)
    dr = chess.square_rank(to_sq) - chess.square_rank(from_sq)
    if d_file == 0 and d_rank == 0:
        return False
    if d_file == 0:
        return df == 0 and _sign(dr) == _sign(d_rank)
    if d_rank == 0:
        return dr == 0 and _sign(df) == _sign(d_file)
    return abs(df) == abs(dr) and _sign(df) == _sign(d_file) and _sign(dr) == _sign(d_rank)


# ---------------------------------------------------------------------------
# Position source: parsing, move application, move enumeration
# ---------------------------------------------------------------------------


def parse_position(fen: str) -> chess.Board:
    """Parse a FEN. Raises ValueError on malformed input."""
    return chess.Board(fen)


def parse_move(board: chess.Board, text: str) -> chess.Move:
    """Parse a legal move in UCI or SAN. Raises ValueError if neither works."""
    try:
        move = board.parse_uci(text)
    except ValueError:
        move = board.parse_san(text)
    if not move:
        raise ValueError(f"null move is not playable: {text!r}")
    return move


def apply_move(board: chess.Board, move: chess.Move) -> AppliedMove:
    """Play `move` on a copy of `board`; the input board is left untouched."""
    san = board.san(move)
    after = board.copy(stack=False)
    after.push(move)
    return AppliedMove(move=move, san=san, after=after)


def legal_moves_for(board: chess.Board, color: chess.Color) -> LegalMoves | NotApplicable:
    if board.turn != color:
        side = "white" if color == chess.WHITE else "black"
        return NotApplicable(f"{side} is not on move")
    return LegalMoves(tuple(board.legal_moves))


def with_side_to_move(board: chess.Board, color: chess.Color) -> chess.Board | None:
    """Copy of `board` with `color` on move, or None if that position is impossible.

    Handing the move over is only sound when the side giving it up is not
    in check; otherwise the new mover could capture the king.
    """
    flipped = board.copy(stack=False)
    if flipped.turn == color:
        return flipped
    flipped.turn = color
    flipped.ep_square = None
    if flipped.was_into_check():
        return None
    return flipped
