"""Center control and open / semi-open files."""

from dataclasses import dataclass, field

import chess

from position_coach.analysis.constants import CENTER_SQUARES, EXTENDED_CENTER, _opponent
from position_coach.board import FILES, LegalMoves, legal_moves_for

__all__ = [
    "CenterControl",
    "FileReport",
    "center_control",
    "open_files",
]


@dataclass
class CenterControl:
    pawns_in_center: int
    # Moves landing in the (extended) center; 0 when `color` is not on move
    pieces_attacking_center: int
    observations: list[str] = field(default_factory=list)


@dataclass
class FileReport:
    open: list[str] = field(default_factory=list)       # no pawns at all
    semi_open: list[str] = field(default_factory=list)  # only enemy pawns


def center_control(board: chess.Board, color: chess.Color) -> CenterControl:
    pawns_in_center = len(board.pieces(chess.PAWN, color) & chess.SquareSet(CENTER_SQUARES))

    attacking = 0
    moves = legal_moves_for(board, color)
    if isinstance(moves, LegalMoves):
        attacking = sum(
            1 for m in moves.moves
            if m.to_square in CENTER_SQUARES or m.to_square in EXTENDED_CENTER
        )

    if pawns_in_center >= 2:
        obs = "strong pawn center"
    elif pawns_in_center == 1:
        obs = "one central pawn"
    else:
        obs = "no central pawns"
    return CenterControl(
        pawns_in_center=pawns_in_center,
        pieces_attacking_center=attacking,
        observations=[obs],
    )


def open_files(board: chess.Board, color: chess.Color) -> FileReport:
    own = board.pieces(chess.PAWN, color)
    enemy = board.pieces(chess.PAWN, _opponent(color))
    report = FileReport()
    for f in range(8):
        file_bb = chess.BB_FILES[f]
        if own & file_bb:
            continue
        if enemy & file_bb:
            report.semi_open.append(f"{FILES[f]}-file")
        else:
            report.open.append(f"{FILES[f]}-file")
    return report
