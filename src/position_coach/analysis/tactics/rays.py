"""Ray-based tactical detection: pins, skewers, x-rays, discovered attacks."""

from typing import Iterator

import chess

from position_coach.analysis.constants import _opponent, piece_value
from position_coach.analysis.tactics.types import PinInfo, SkewerInfo, XRayInfo
from position_coach.board import (
    Piece,
    all_pieces,
    is_aligned,
    piece_at,
    slider_directions,
    square_at,
)

__all__ = [
    "detect_pins",
    "detect_skewers",
    "detect_xrays",
    "detect_discovered_attack",
]

_SLIDERS = (chess.BISHOP, chess.ROOK, chess.QUEEN)
_PIN_TARGETS = (chess.KING, chess.QUEEN, chess.ROOK)


def _ray(start_sq: chess.Square, direction: tuple[int, int]) -> Iterator[chess.Square]:
    """Squares leaving start_sq in `direction`, up to the board edge."""
    df, dr = direction
    f = chess.square_file(start_sq) + df
    r = chess.square_rank(start_sq) + dr
    while (sq := square_at(f, r)) is not None:
        yield sq
        f += df
        r += dr


def _sliders(board: chess.Board, color: chess.Color) -> list[Piece]:
    return [p for p in all_pieces(board, color) if p.piece_type in _SLIDERS]


def detect_pins(board: chess.Board, pinned_color: chess.Color) -> list[PinInfo]:
    """Pins against pinned_color's king, queen or rooks.

    A pin needs exactly one piece between slider and target, belonging to
    the pinned side and not itself a king.
    """
    pins = []
    targets = [p for p in all_pieces(board, pinned_color) if p.piece_type in _PIN_TARGETS]
    for slider in _sliders(board, _opponent(pinned_color)):
        for target in targets:
            for direction in slider_directions(slider.piece_type):
                if not is_aligned(slider.square, target.square, *direction):
                    continue
                between = []
                for sq in _ray(slider.square, direction):
                    if sq == target.square:
                        break
                    p = piece_at(board, sq)
                    if p is not None:
                        between.append(p)
                if (
                    len(between) == 1
                    and between[0].color == pinned_color
                    and between[0].piece_type != chess.KING
                ):
                    pins.append(PinInfo(pinner=slider, pinned=between[0], target=target))
    return pins


def detect_skewers(board: chess.Board, color: chess.Color) -> list[SkewerInfo]:
    """Skewers by `color`: two enemy pieces on a line, the front one worth more.

    Both the front and the rear piece must be worth at least a minor piece.
    """
    skewers = []
    victim = _opponent(color)
    for slider in _sliders(board, color):
        for direction in slider_directions(slider.piece_type):
            line: list[Piece] = []
            for sq in _ray(slider.square, direction):
                p = piece_at(board, sq)
                if p is None:
                    continue
                if p.color != victim:
                    break
                line.append(p)
                if len(line) == 2:
                    break
            if len(line) < 2:
                continue
            front_val = piece_value(line[0].piece_type)
            behind_val = piece_value(line[1].piece_type)
            if front_val > behind_val and behind_val >= 3:
                skewers.append(SkewerInfo(attacker=slider, front=line[0], behind=line[1]))
    return skewers


def detect_xrays(board: chess.Board, color: chess.Color) -> list[XRayInfo]:
    """Sliders of `color` looking through an enemy piece at an enemy K, Q or R."""
    xrays = []
    enemy = _opponent(color)
    for slider in _sliders(board, color):
        for direction in slider_directions(slider.piece_type):
            through = None
            for sq in _ray(slider.square, direction):
                p = piece_at(board, sq)
                if p is None:
                    continue
                if through is None and p.color == enemy:
                    through = p
                    continue
                if through is not None and p.color == enemy and p.piece_type in _PIN_TARGETS:
                    xrays.append(XRayInfo(attacker=slider, through=through, target=sq))
                break
    return xrays


def detect_discovered_attack(
    before: chess.Board,
    after: chess.Board,
    from_sq: chess.Square,
    mover: chess.Color,
) -> str | None:
    """Describe a line opened by vacating from_sq onto an enemy piece worth ≥3."""
    enemy = _opponent(mover)
    for slider in _sliders(before, mover):
        if slider.square == from_sq:
            continue
        for direction in slider_directions(slider.piece_type):
            if not is_aligned(slider.square, from_sq, *direction):
                continue
            passed_from = False
            for sq in _ray(slider.square, direction):
                if sq == from_sq:
                    passed_from = True
                    continue
                if not passed_from:
                    if before.piece_at(sq) is not None:
                        break
                    continue
                p = piece_at(after, sq)
                if p is None:
                    continue
                if p.color == enemy and piece_value(p.piece_type) >= 3:
                    return (
                        f"Moving the piece from {chess.square_name(from_sq)} uncovers an attack "
                        f"by the {slider.name} on {slider.square_name} against the "
                        f"{p.name} on {chess.square_name(sq)}"
                    )
                break
    return None
