"""Combination motifs that look one ply past the move.

Attraction replays the forced recapture, intermezzo replays the oracle's
best move, and the rest test line geometry directly.
"""

import chess

from position_coach.analysis.constants import _opponent, piece_value
from position_coach.analysis.tactics.finders import detect_fork
from position_coach.analysis.tactics.rays import detect_pins, detect_skewers
from position_coach.board import Piece, all_pieces, apply_move, is_attacking, is_path_clear, piece_at

__all__ = [
    "detect_capturing_defender",
    "detect_attraction",
    "detect_deflection",
    "detect_interference",
    "detect_clearance",
    "detect_intermezzo",
    "is_quiet_move",
    "is_defensive_move",
    "is_zugzwang_like",
]

_SLIDERS = (chess.ROOK, chess.BISHOP, chess.QUEEN)


def _defends(board: chess.Board, defender: Piece, square: chess.Square) -> bool:
    return is_attacking(board, defender.square, defender, square)


def detect_capturing_defender(before: chess.Board, after: chess.Board, move: chess.Move) -> str | None:
    """The captured piece was the only guard of another piece worth ≥3."""
    enemy = _opponent(before.turn)
    captured = piece_at(before, move.to_square)
    if captured is None or captured.color != enemy:
        return None
    to_name = chess.square_name(move.to_square)
    wards = [
        p for p in all_pieces(before, enemy)
        if p.square != move.to_square and piece_value(p.piece_type) >= 3
    ]
    for ward in wards:
        if not is_attacking(before, move.to_square, captured, ward.square):
            continue
        if piece_at(after, ward.square) is None:
            continue
        still_defended = any(
            _defends(after, d, ward.square)
            for d in all_pieces(after, enemy)
            if d.square != ward.square
        )
        if not still_defended:
            return (
                f"Captures the {captured.name} on {to_name}, which was the key defender of "
                f"the {ward.name} on {ward.square_name} — now it's unprotected"
            )
    return None


def detect_attraction(before: chess.Board, after: chess.Board, move: chess.Move) -> str | None:
    """A sacrifice whose recapture walks into a fork, skewer or pin."""
    moved = piece_at(before, move.from_square)
    captured = piece_at(before, move.to_square)
    if moved is None or captured is None:
        return None
    if not (piece_value(moved.piece_type) > piece_value(captured.piece_type) or after.is_check()):
        return None

    recapture = next((m for m in after.legal_moves if m.to_square == move.to_square), None)
    if recapture is None:
        return None
    sim = apply_move(after, recapture).after
    to_name = chess.square_name(move.to_square)
    side = moved.color

    for p in all_pieces(sim, side):
        if p.piece_type in (chess.KING, chess.PAWN):
            continue
        if len(detect_fork(sim, p.square, p)) >= 2:
            return (
                f"The sacrifice on {to_name} lures the {captured.name} into position, "
                f"allowing a devastating fork"
            )
    if detect_skewers(sim, side):
        return (
            f"The sacrifice on {to_name} attracts the opponent's piece to a square where "
            f"it falls victim to a skewer"
        )
    if detect_pins(sim, _opponent(side)):
        return f"The sacrifice on {to_name} draws the opponent's piece into a pin"
    return None


def detect_deflection(before: chess.Board, after: chess.Board, move: chess.Move) -> str | None:
    """The moved piece hits an enemy piece that is guarding something worth ≥3."""
    enemy = _opponent(before.turn)
    landed = piece_at(after, move.to_square)
    if landed is None:
        return None
    enemies = all_pieces(after, enemy)
    for defender in enemies:
        if defender.piece_type in (chess.KING, chess.PAWN):
            continue
        if not is_attacking(after, move.to_square, landed, defender.square):
            continue
        for ward in enemies:
            if ward.square == defender.square or piece_value(ward.piece_type) < 3:
                continue
            if _defends(after, defender, ward.square):
                return (
                    f"Attacks the {defender.name} on {defender.square_name}, deflecting it "
                    f"from defending the {ward.name} on {ward.square_name}"
                )
    return None


def _between(a: int, t: int, b: int) -> bool:
    return a < t < b or b < t < a


def detect_interference(before: chess.Board, after: chess.Board, move: chess.Move) -> str | None:
    """The moved piece now stands on a line that joined two enemy pieces."""
    enemy = _opponent(before.turn)
    to = move.to_square
    to_name = chess.square_name(to)
    tf, tr = chess.square_file(to), chess.square_rank(to)
    sliders = [p for p in all_pieces(after, enemy) if p.piece_type in _SLIDERS]

    for i, a in enumerate(sliders):
        af, ar = chess.square_file(a.square), chess.square_rank(a.square)
        for b in sliders[i + 1:]:
            bf, br = chess.square_file(b.square), chess.square_rank(b.square)
            connected = is_path_clear(before, a.square, b.square)
            pair = (
                f"the opponent's {a.name} on {a.square_name} and {b.name} on {b.square_name}"
            )
            if af == bf == tf and _between(ar, tr, br) and connected:
                return f"Places a piece on {to_name} between {pair}, disrupting their coordination"
            if ar == br == tr and _between(af, tf, bf) and connected:
                return f"Places a piece on {to_name} between {pair}, cutting their connection"
            on_diagonal = (
                abs(af - bf) == abs(ar - br)
                and abs(af - tf) == abs(ar - tr)
                and abs(bf - tf) == abs(br - tr)
            )
            if on_diagonal and _between(af, tf, bf) and connected:
                return f"Places a piece on {to_name} on the diagonal between {pair}"

    for slider in sliders:
        sf, sr = chess.square_file(slider.square), chess.square_rank(slider.square)
        for ward in all_pieces(after, enemy):
            if ward.square == slider.square or piece_value(ward.piece_type) < 3:
                continue
            wf, wr = chess.square_file(ward.square), chess.square_rank(ward.square)
            on_file = sf == wf == tf and _between(sr, tr, wr)
            on_rank = sr == wr == tr and _between(sf, tf, wf)
            on_diag = (
                abs(sf - wf) == abs(sr - wr)
                and abs(sf - tf) == abs(sr - tr)
                and abs(wf - tf) == abs(wr - tr)
                and _between(sf, tf, wf)
            )
            if (on_file or on_rank or on_diag) and is_path_clear(before, slider.square, ward.square):
                return (
                    f"Interferes between the {slider.name} on {slider.square_name} and the "
                    f"{ward.name} on {ward.square_name} it was protecting"
                )
    return None


def detect_clearance(before: chess.Board, after: chess.Board, move: chess.Move) -> str | None:
    """Vacating the from-square opens a line for a friendly slider."""
    mover = before.turn
    if piece_at(before, move.from_square) is None:
        return None
    ff, fr = chess.square_file(move.from_square), chess.square_rank(move.from_square)
    for fp in all_pieces(after, mover):
        if fp.square == move.to_square or fp.piece_type not in _SLIDERS:
            continue
        if not is_attacking(after, fp.square, fp, move.from_square):
            continue
        pf, pr = chess.square_file(fp.square), chess.square_rank(fp.square)
        if ff == pf:
            line = "file"
        elif fr == pr:
            line = "rank"
        else:
            line = "diagonal"
        return f"Clears the line for the {fp.name} on {fp.square_name}, which now has access to the {line}"
    return None


def detect_intermezzo(before: chess.Board, move: chess.Move, best: chess.Move) -> str | None:
    """The played move captured, but the best move was a forcing in-between move."""
    if piece_at(before, move.to_square) is None:
        return None
    if best.to_square == move.to_square:
        return None
    to_name = chess.square_name(move.to_square)
    applied = apply_move(before, best)
    if applied.after.is_check():
        return (
            f"Instead of recapturing on {to_name}, the in-between check **{applied.san}** is "
            f"even stronger — a zwischenzug that gains tempo"
        )
    if applied.after.legal_moves.count() <= 3:
        return (
            f"Instead of the expected recapture on {to_name}, **{applied.san}** is an "
            f"intermezzo — a forcing in-between move"
        )
    return None


def is_quiet_move(before: chess.Board, move: chess.Move, after: chess.Board) -> bool:
    """No check, no capture, and the opponent has no capture in reply."""
    if after.is_check() or piece_at(before, move.to_square) is not None:
        return False
    return not any(after.is_capture(m) for m in after.legal_moves)


def is_defensive_move(
    before: chess.Board,
    move: chess.Move,
    after: chess.Board,
    played: chess.Move | None,
    played_san: str | None,
) -> bool:
    """A quiet best move where the played move was a capture or a check."""
    if piece_at(before, move.to_square) is not None or after.is_check():
        return False
    if played is None or played not in before.legal_moves:
        return False
    return before.is_capture(played) or "+" in (played_san or "")


def is_zugzwang_like(after: chess.Board) -> bool:
    """The side to move has one to three legal moves and is not in check."""
    count = after.legal_moves.count()
    return 0 < count <= 3 and not after.is_check()
