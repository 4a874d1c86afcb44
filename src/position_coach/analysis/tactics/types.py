"""Tactical motif types: the closed motif enum, theme records and ray findings."""

import enum
from dataclasses import dataclass

import chess

from position_coach.board import Piece

__all__ = [
    "Motif",
    "TacticalTheme",
    "MoveContext",
    "PinInfo",
    "SkewerInfo",
    "XRayInfo",
]


class Motif(enum.Enum):
    """Every kind of theme the detectors can emit.

    The value is the display name. Kinds whose name depends on the position
    (fork by piece, game phase, endgame type, mate pattern) carry a generic
    value and the concrete name lives on the theme.
    """
    WINNING_EXCHANGE = "Winning Exchange"
    LOSING_EXCHANGE = "Losing Exchange"
    CHECK = "Check"
    CHECKMATE = "Checkmate"
    FORK = "Fork"
    PIN = "Pin"
    DISCOVERED_ATTACK = "Discovered Attack"
    BACK_RANK = "Back Rank"
    HANGING_PIECE = "Hanging Piece"
    TRAPPED_PIECE = "Trapped Piece"
    WEAKENING_MOVE = "Weakening Move"
    GAME_PHASE = "Game Phase"
    ENDGAME_TYPE = "Endgame Type"
    SKEWER = "Skewer"
    DISCOVERED_CHECK = "Discovered Check"
    DOUBLE_CHECK = "Double Check"
    EXPOSED_KING = "Exposed King"
    ADVANCED_PAWN = "Advanced Pawn"
    KINGSIDE_ATTACK = "Kingside Attack"
    QUEENSIDE_ATTACK = "Queenside Attack"
    ATTACKING_F2_F7 = "Attacking f2/f7"
    XRAY_ATTACK = "X-Ray Attack"
    EN_PASSANT = "En Passant"
    PROMOTION = "Promotion"
    UNDERPROMOTION = "Underpromotion"
    CASTLING = "Castling"
    SACRIFICE = "Sacrifice"
    MATE_PATTERN = "Mate Pattern"
    CAPTURING_DEFENDER = "Capturing Defender"
    CRUSHING = "Crushing"
    ADVANTAGE = "Advantage"
    EQUALITY = "Equality"
    ATTRACTION = "Attraction"
    DEFLECTION = "Deflection"
    INTERFERENCE = "Interference"
    CLEARANCE = "Clearance"
    INTERMEZZO = "Intermezzo"
    QUIET_MOVE = "Quiet Move"
    DEFENSIVE_MOVE = "Defensive Move"
    ZUGZWANG = "Zugzwang"
    WALKS_INTO_FORK = "Walks Into Fork"
    WALKS_INTO_PIN = "Walks Into Pin"
    HANGS_MATERIAL = "Hangs Material"
    BACK_RANK_MATE_THREAT = "Back-Rank Mate Threat"


@dataclass(frozen=True)
class TacticalTheme:
    motif: Motif
    name: str
    description: str

    @classmethod
    def of(cls, motif: Motif, description: str, name: str | None = None) -> "TacticalTheme":
        return cls(motif=motif, name=name or motif.value, description=description)


@dataclass(frozen=True)
class MoveContext:
    """Who played the move and how the oracle judged it.

    `best_move` is the oracle's alternative when explaining the played move;
    `played_move` is what the user actually played when explaining the best
    move.
    """
    is_user_move: bool
    cp_loss: float
    best_move: chess.Move | None = None
    played_move: chess.Move | None = None


@dataclass(frozen=True)
class PinInfo:
    pinner: Piece
    pinned: Piece
    target: Piece


@dataclass(frozen=True)
class SkewerInfo:
    attacker: Piece
    front: Piece
    behind: Piece


@dataclass(frozen=True)
class XRayInfo:
    attacker: Piece
    through: Piece
    target: chess.Square
