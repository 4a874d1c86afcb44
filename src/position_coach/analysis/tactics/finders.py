"""Single-move motif finders: forks, hanging and trapped pieces, special moves."""

import chess

from position_coach.analysis.constants import _opponent, piece_value
from position_coach.analysis.tactics.types import MoveContext
from position_coach.board import (
    LegalMoves,
    Piece,
    all_pieces,
    get_checkers,
    is_attacking,
    legal_moves_for,
    piece_at,
    square_at,
    with_side_to_move,
)

__all__ = [
    "detect_fork",
    "detect_hanging_pieces",
    "is_piece_trapped",
    "detect_weakened_squares",
    "detect_advanced_pawns",
    "castling_side",
    "is_discovered_check",
    "is_double_check",
    "is_sacrifice",
    "is_en_passant",
    "is_promotion",
    "is_underpromotion",
    "is_attacking_f2_f7",
]


def detect_fork(board: chess.Board, square: chess.Square, piece: Piece) -> list[Piece]:
    """Enemy non-pawn pieces attacked by `piece` standing on `square`.

    Each target appears once, and only enemy pieces are considered, so a
    piece never forks itself or its own side.
    """
    return [
        target for target in all_pieces(board, _opponent(piece.color))
        if target.piece_type != chess.PAWN and is_attacking(board, square, piece, target.square)
    ]


def detect_hanging_pieces(board: chess.Board, color: chess.Color) -> list[Piece]:
    """`color`'s pieces worth ≥3 that the side on move can capture.

    Only meaningful when the opponent of `color` is on move; otherwise the
    capture list cannot be enumerated and nothing is reported.
    """
    moves = legal_moves_for(board, _opponent(color))
    if not isinstance(moves, LegalMoves):
        return []
    attacked = {m.to_square for m in moves.moves if board.is_capture(m)}
    return [
        p for p in all_pieces(board, color)
        if p.piece_type != chess.KING and p.square in attacked and piece_value(p.piece_type) >= 3
    ]


def is_piece_trapped(board: chess.Board, square: chess.Square, color: chess.Color) -> bool:
    """Fewer than two of the piece's moves avoid losing it to a recapture.

    The piece's moves are enumerated on a copy with `color` on move. When
    that hand-over is impossible (the opponent is in check) the piece is
    not reported as trapped.
    """
    flipped = with_side_to_move(board, color)
    piece = piece_at(board, square)
    if flipped is None or piece is None:
        return False

    safe = 0
    for m in flipped.legal_moves:
        if m.from_square != square:
            continue
        victim = flipped.piece_at(m.to_square)
        captured_value = piece_value(victim.piece_type) if victim is not None else 0
        after = flipped.copy(stack=False)
        after.push(m)
        recaptured = any(
            om.to_square == m.to_square and after.is_capture(om)
            for om in after.legal_moves
        )
        if not recaptured or captured_value >= piece_value(piece.piece_type):
            safe += 1
            if safe >= 2:
                return False
    return True


def detect_weakened_squares(
    before: chess.Board,
    after: chess.Board,
    pawn_from: chess.Square,
    color: chess.Color,
) -> list[str]:
    """Squares the advanced pawn used to guard that no friendly pawn guards now."""
    direction = 1 if color == chess.WHITE else -1
    f = chess.square_file(pawn_from)
    r = chess.square_rank(pawn_from)
    pawns = [p for p in all_pieces(after, color) if p.piece_type == chess.PAWN]
    weakened = []
    for df in (-1, 1):
        gs = square_at(f + df, r + direction)
        if gs is None:
            continue
        g_file, g_rank = chess.square_file(gs), chess.square_rank(gs)
        still_guarded = any(
            abs(chess.square_file(p.square) - g_file) == 1
            and chess.square_rank(p.square) + direction == g_rank
            for p in pawns
        )
        if not still_guarded:
            weakened.append(chess.square_name(gs))
    return weakened


def detect_advanced_pawns(board: chess.Board, color: chess.Color) -> list[Piece]:
    """Pawns on the 5th rank or beyond (white) / the 4th rank or below (black)."""
    return [
        p for p in all_pieces(board, color)
        if p.piece_type == chess.PAWN
        and (chess.square_rank(p.square) >= 4 if color == chess.WHITE else chess.square_rank(p.square) <= 3)
    ]


def castling_side(board: chess.Board, color: chess.Color) -> str | None:
    """'kingside' for a king on f-h, 'queenside' for a-c, else None."""
    king = board.king(color)
    if king is None:
        return None
    f = chess.square_file(king)
    if f >= 5:
        return "kingside"
    if f <= 2:
        return "queenside"
    return None


def is_discovered_check(before: chess.Board, move: chess.Move, after: chess.Board) -> bool:
    """The side to move is in check, but not from the piece that just moved."""
    if not after.is_check():
        return False
    moved = piece_at(after, move.to_square)
    king = after.king(_opponent(before.turn))
    if moved is None or king is None:
        return False
    return not is_attacking(after, move.to_square, moved, king)


def is_double_check(before: chess.Board, move: chess.Move, after: chess.Board) -> bool:
    """Two or more distinct pieces give check after the move."""
    if not after.is_check():
        return False
    king = after.king(_opponent(before.turn))
    if king is None:
        return False
    return len(get_checkers(after, king, before.turn)) >= 2


def is_sacrifice(before: chess.Board, move: chess.Move, ctx: MoveContext) -> bool:
    """Capturing with a piece worth more than the victim plus one point.

    For the played move this only counts when the oracle did not punish it.
    """
    moved = piece_at(before, move.from_square)
    captured = piece_at(before, move.to_square)
    if moved is None or captured is None:
        return False
    gives_up = piece_value(moved.piece_type) > piece_value(captured.piece_type) + 1
    return gives_up and (not ctx.is_user_move or ctx.cp_loss < 50)


def is_en_passant(before: chess.Board, move: chess.Move) -> bool:
    return before.is_en_passant(move)


def is_promotion(move: chess.Move) -> bool:
    return move.promotion is not None


def is_underpromotion(move: chess.Move) -> bool:
    return move.promotion in (chess.KNIGHT, chess.ROOK, chess.BISHOP)


def is_attacking_f2_f7(
    before: chess.Board,
    after: chess.Board,
    move: chess.Move,
    mover: chess.Color,
) -> bool:
    """The move lands on, or newly hits, the opponent's f-pawn home square."""
    target = chess.F7 if mover == chess.WHITE else chess.F2
    if move.to_square == target:
        return True
    landed = piece_at(after, move.to_square)
    if landed is None or not is_attacking(after, move.to_square, landed, target):
        return False
    home_pawn = piece_at(before, target)
    return home_pawn is not None and home_pawn.piece_type == chess.PAWN and home_pawn.color != mover
