"""Named checkmate patterns.

Each predicate takes a position and answers for the side to move being
mated; a position that is not checkmate matches nothing. `classify_mate`
walks MATE_PATTERNS in order and returns the first hit only, so patterns
never stack.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable

import chess
from chess import BISHOP, KNIGHT, PAWN, QUEEN, ROOK, Board

from position_coach.board import (
    Piece,
    adjacent_squares,
    all_pieces,
    back_rank,
    get_checkers,
    is_attacking,
    piece_at,
    square_at,
)

__all__ = [
    "MatePattern",
    "MateRule",
    "MATE_PATTERNS",
    "classify_mate",
    "smothered_mate",
    "back_rank_mate",
    "arabian_mate",
    "anastasia_mate",
    "boden_mate",
    "corner_mate",
    "dovetail_mate",
    "swallows_tail_mate",
    "epaulette_mate",
    "double_bishop_mate",
    "kill_box_mate",
    "opera_mate",
    "pillsbury_mate",
    "hook_mate",
    "vukovic_mate",
    "blind_swine_mate",
]


class MatePattern(enum.Enum):
    SMOTHERED = "Smothered Mate"
    BACK_RANK = "Back-Rank Mate"
    ARABIAN = "Arabian Mate"
    ANASTASIA = "Anastasia's Mate"
    BODEN = "Boden's Mate"
    CORNER = "Corner Mate"
    DOVETAIL = "Dovetail Mate"
    SWALLOWS_TAIL = "Swallow's Tail Mate"
    EPAULETTE = "Epaulette Mate"
    DOUBLE_BISHOP = "Double Bishop Mate"
    KILL_BOX = "Kill Box Mate"
    OPERA = "Opera Mate"
    PILLSBURY = "Pillsbury's Mate"
    HOOK = "Hook Mate"
    VUKOVIC = "Vukovic Mate"
    BLIND_SWINE = "Blind Swine Mate"


@dataclass(frozen=True)
class _Mate:
    loser: chess.Color
    winner: chess.Color
    king: chess.Square
    checkers: list[Piece]

    def own(self, board: Board, square: chess.Square | None) -> bool:
        """Square holds one of the mated side's own pieces."""
        if square is None:
            return False
        p = piece_at(board, square)
        return p is not None and p.color == self.loser

    def winner_pieces(self, board: Board, piece_type: chess.PieceType) -> list[Piece]:
        return [p for p in all_pieces(board, self.winner) if p.piece_type == piece_type]

    def checker(self, piece_type: chess.PieceType) -> Piece | None:
        return next((c for c in self.checkers if c.piece_type == piece_type), None)


def _mate(board: Board) -> _Mate | None:
    if not board.is_checkmate():
        return None
    loser = board.turn
    king = board.king(loser)
    if king is None:
        return None
    return _Mate(loser=loser, winner=not loser, king=king, checkers=get_checkers(board, king, not loser))


def smothered_mate(board: Board) -> bool:
    """Knight mate with every square around the king held by its own pieces."""
    m = _mate(board)
    if m is None:
        return False
    if not all(m.own(board, s) for s in adjacent_squares(m.king)):
        return False
    return any(is_attacking(board, n.square, n, m.king) for n in m.winner_pieces(board, KNIGHT))


def back_rank_mate(board: Board) -> bool:
    """King mated on its back rank with an own piece in front of it."""
    m = _mate(board)
    if m is None or chess.square_rank(m.king) != back_rank(m.loser):
        return False
    next_rank = 1 if m.loser == chess.WHITE else 6
    k_file = chess.square_file(m.king)
    return any(m.own(board, square_at(k_file + df, next_rank)) for df in (-1, 0, 1))


def arabian_mate(board: Board) -> bool:
    """Rook on the edge mates a king in or next to a corner, with a knight in play."""
    m = _mate(board)
    if m is None:
        return False
    kf, kr = chess.square_file(m.king), chess.square_rank(m.king)
    if not ((kf <= 1 or kf >= 6) and (kr <= 1 or kr >= 6)):
        return False
    rook = m.checker(ROOK)
    if rook is None:
        return False
    rf, rr = chess.square_file(rook.square), chess.square_rank(rook.square)
    if not (rf in (0, 7) or rr in (0, 7)):
        return False
    return bool(m.winner_pieces(board, KNIGHT))


def anastasia_mate(board: Board) -> bool:
    """Rook or queen mates a king near the edge file, knight present, own piece beside the king."""
    m = _mate(board)
    if m is None:
        return False
    kf = chess.square_file(m.king)
    if not (kf <= 1 or kf >= 6):
        return False
    if m.checker(ROOK) is None and m.checker(QUEEN) is None:
        return False
    if not m.winner_pieces(board, KNIGHT):
        return False
    return any(m.own(board, s) for s in adjacent_squares(m.king))


def boden_mate(board: Board) -> bool:
    """A bishop gives mate and the winner has a second bishop."""
    m = _mate(board)
    if m is None or m.checker(BISHOP) is None:
        return False
    return len(m.winner_pieces(board, BISHOP)) >= 2


def corner_mate(board: Board) -> bool:
    m = _mate(board)
    if m is None or m.king not in (chess.A1, chess.A8, chess.H1, chess.H8):
        return False
    return m.checker(KNIGHT) is not None


def dovetail_mate(board: Board) -> bool:
    """Queen mates from an adjacent square, two diagonal neighbours blocked by own pieces."""
    m = _mate(board)
    if m is None:
        return False
    queen = m.checker(QUEEN)
    if queen is None or chess.square_distance(queen.square, m.king) > 1:
        return False
    kf, kr = chess.square_file(m.king), chess.square_rank(m.king)
    diagonal = [
        s for s in adjacent_squares(m.king)
        if abs(chess.square_file(s) - kf) == 1
        and abs(chess.square_rank(s) - kr) == 1
        and s != queen.square
    ]
    return sum(1 for s in diagonal if m.own(board, s)) >= 2


def swallows_tail_mate(board: Board) -> bool:
    """Queen mates; both diagonal squares behind the king hold own pieces."""
    m = _mate(board)
    if m is None:
        return False
    queen = m.checker(QUEEN)
    if queen is None:
        return False
    kf, kr = chess.square_file(m.king), chess.square_rank(m.king)
    qr = chess.square_rank(queen.square)
    if kr == qr:
        return False
    behind = 1 if kr > qr else -1
    return m.own(board, square_at(kf - 1, kr + behind)) and m.own(board, square_at(kf + 1, kr + behind))


def epaulette_mate(board: Board) -> bool:
    """Both squares beside the king on its rank hold own pieces."""
    m = _mate(board)
    if m is None:
        return False
    kf, kr = chess.square_file(m.king), chess.square_rank(m.king)
    return m.own(board, square_at(kf - 1, kr)) and m.own(board, square_at(kf + 1, kr))


def double_bishop_mate(board: Board) -> bool:
    """Same test as boden_mate, which is listed first, so classify_mate never returns this pattern."""
    m = _mate(board)
    if m is None or m.checker(BISHOP) is None:
        return False
    return len(m.winner_pieces(board, BISHOP)) >= 2


def kill_box_mate(board: Board) -> bool:
    """Queen mates from exactly two squares away."""
    m = _mate(board)
    if m is None:
        return False
    queen = m.checker(QUEEN)
    return queen is not None and chess.square_distance(queen.square, m.king) == 2


def opera_mate(board: Board) -> bool:
    """Rook mates on the back rank while a bishop covers a flight square."""
    m = _mate(board)
    if m is None or chess.square_rank(m.king) != back_rank(m.loser):
        return False
    if m.checker(ROOK) is None:
        return False
    flights = adjacent_squares(m.king)
    return any(
        is_attacking(board, b.square, b, s)
        for b in m.winner_pieces(board, BISHOP)
        for s in flights
    )


def pillsbury_mate(board: Board) -> bool:
    """Checking rook is defended by a bishop."""
    m = _mate(board)
    if m is None:
        return False
    rook = m.checker(ROOK)
    if rook is None:
        return False
    return any(is_attacking(board, b.square, b, rook.square) for b in m.winner_pieces(board, BISHOP))


def hook_mate(board: Board) -> bool:
    """Rook mates with a knight on the board and a pawn within two squares of the king."""
    m = _mate(board)
    if m is None or m.checker(ROOK) is None:
        return False
    if not m.winner_pieces(board, KNIGHT):
        return False
    return any(
        chess.square_distance(p.square, m.king) <= 2
        for p in m.winner_pieces(board, PAWN)
    )


def vukovic_mate(board: Board) -> bool:
    """Rook and knight: one gives the check, the other is on the board."""
    m = _mate(board)
    if m is None:
        return False
    if m.checker(ROOK) is not None:
        return bool(m.winner_pieces(board, KNIGHT))
    if m.checker(KNIGHT) is not None:
        return bool(m.winner_pieces(board, ROOK))
    return False


def blind_swine_mate(board: Board) -> bool:
    """Two rooks on the winner's seventh rank, one of them giving mate."""
    m = _mate(board)
    if m is None:
        return False
    seventh = 6 if m.winner == chess.WHITE else 1
    rooks = [r for r in m.winner_pieces(board, ROOK) if chess.square_rank(r.square) == seventh]
    if len(rooks) < 2:
        return False
    return any(
        c.piece_type == ROOK and chess.square_rank(c.square) == seventh
        for c in m.checkers
    )


@dataclass(frozen=True)
class MateRule:
    pattern: MatePattern
    description: str
    predicate: Callable[[Board], bool]


MATE_PATTERNS: list[MateRule] = [
    MateRule(
        MatePattern.SMOTHERED,
        "A knight delivers checkmate while the king is smothered by its own pieces — a classic tactical pattern",
        smothered_mate,
    ),
    MateRule(
        MatePattern.BACK_RANK,
        "Checkmate on the back rank — the king is trapped behind its own pawns",
        back_rank_mate,
    ),
    MateRule(
        MatePattern.ARABIAN,
        "Rook and knight cooperate to checkmate a king driven into a corner — one of the oldest known mating patterns",
        arabian_mate,
    ),
    MateRule(
        MatePattern.ANASTASIA,
        "A knight and rook deliver checkmate along an edge file — the king's own pieces block its escape",
        anastasia_mate,
    ),
    MateRule(
        MatePattern.BODEN,
        "Two bishops deliver checkmate on crisscrossing diagonals — typically after a sacrifice opens the position",
        boden_mate,
    ),
    MateRule(
        MatePattern.CORNER,
        "A knight delivers checkmate to a king trapped in the corner of the board",
        corner_mate,
    ),
    MateRule(
        MatePattern.DOVETAIL,
        "The queen delivers checkmate adjacent to the king — the king's diagonal escape squares are blocked by its own pieces",
        dovetail_mate,
    ),
    MateRule(
        MatePattern.SWALLOWS_TAIL,
        "The queen delivers checkmate — the two escape squares diagonally behind the king are blocked by its own pieces, forming a swallow's tail",
        swallows_tail_mate,
    ),
    MateRule(
        MatePattern.EPAULETTE,
        "The king is flanked on both sides by its own pieces like epaulettes, leaving it helpless against checkmate",
        epaulette_mate,
    ),
    MateRule(
        MatePattern.DOUBLE_BISHOP,
        "Two bishops cooperate to deliver checkmate — demonstrating the power of the bishop pair",
        double_bishop_mate,
    ),
    MateRule(
        MatePattern.KILL_BOX,
        "The queen creates a lethal box around the king, controlling all escape squares from a distance",
        kill_box_mate,
    ),
    MateRule(
        MatePattern.OPERA,
        "A bishop and rook deliver checkmate on the back rank — named after Morphy's famous Opera Game",
        opera_mate,
    ),
    MateRule(
        MatePattern.PILLSBURY,
        "A rook delivers mate supported by a bishop on the diagonal — a classic coordination pattern",
        pillsbury_mate,
    ),
    MateRule(
        MatePattern.HOOK,
        "Rook, knight, and pawn cooperate in a lethal combination to deliver checkmate",
        hook_mate,
    ),
    MateRule(
        MatePattern.VUKOVIC,
        "Rook and knight combine to deliver checkmate — a coordinated mating pattern",
        vukovic_mate,
    ),
    MateRule(
        MatePattern.BLIND_SWINE,
        "Two rooks on the 7th rank cooperate to deliver checkmate — the 'pigs' finish the job",
        blind_swine_mate,
    ),
]


def classify_mate(board: Board) -> MateRule | None:
    """First matching mate pattern, or None (also None when not checkmate)."""
    if not board.is_checkmate():
        return None
    for rule in MATE_PATTERNS:
        if rule.predicate(board):
            return rule
    return None
