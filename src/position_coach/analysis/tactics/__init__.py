"""Tactical theme detection for a single move.

`detect_tactical_themes` runs an ordered list of detector steps over the
position before and after one move. Each step is isolated: a step that
raises is logged and contributes nothing, and the remaining steps still run.
"""

import logging
from dataclasses import dataclass
from typing import Callable

import chess

from position_coach.analysis.constants import GamePhase, _opponent, piece_value
from position_coach.analysis.king_safety import is_king_exposed
from position_coach.analysis.mates import classify_mate
from position_coach.analysis.phase import classify_endgame_type, classify_game_phase
from position_coach.analysis.tactics.combinations import (
    detect_attraction,
    detect_capturing_defender,
    detect_clearance,
    detect_deflection,
    detect_interference,
    detect_intermezzo,
    is_defensive_move,
    is_quiet_move,
    is_zugzwang_like,
)
from position_coach.analysis.tactics.finders import (
    castling_side,
    detect_advanced_pawns,
    detect_fork,
    detect_hanging_pieces,
    detect_weakened_squares,
    is_attacking_f2_f7,
    is_discovered_check,
    is_double_check,
    is_en_passant,
    is_piece_trapped,
    is_promotion,
    is_sacrifice,
    is_underpromotion,
)
from position_coach.analysis.tactics.rays import (
    detect_discovered_attack,
    detect_pins,
    detect_skewers,
    detect_xrays,
)
from position_coach.analysis.tactics.threats import (
    back_rank_mate_threat,
    hangs_material,
    walks_into_fork,
    walks_into_pin,
)
from position_coach.analysis.tactics.types import (
    Motif,
    MoveContext,
    PinInfo,
    SkewerInfo,
    TacticalTheme,
    XRayInfo,
)
from position_coach.board import AppliedMove, Piece, back_rank, piece_at

logger = logging.getLogger(__name__)

__all__ = [
    "Motif",
    "MoveContext",
    "PinInfo",
    "SkewerInfo",
    "TacticalTheme",
    "XRayInfo",
    "detect_fork",
    "detect_pins",
    "detect_skewers",
    "detect_xrays",
    "detect_discovered_attack",
    "detect_hanging_pieces",
    "is_piece_trapped",
    "is_discovered_check",
    "is_double_check",
    "detect_tactical_themes",
]

MAX_PINS = 2
MAX_HANGING = 2
# Played moves losing at least this much get the opponent-threat scan
THREAT_SCAN_CP = 100


@dataclass(frozen=True)
class _Scan:
    before: chess.Board
    after: chess.Board
    move: chess.Move
    san: str
    ctx: MoveContext
    mover: chess.Color
    moved: Piece | None
    captured: Piece | None
    landed: Piece | None

    @property
    def opponent(self) -> chess.Color:
        return _opponent(self.mover)

    @property
    def to_name(self) -> str:
        return chess.square_name(self.move.to_square)

    @property
    def is_best(self) -> bool:
        return not self.ctx.is_user_move

    @property
    def costly(self) -> bool:
        return self.ctx.is_user_move and self.ctx.cp_loss >= THREAT_SCAN_CP


_Step = Callable[[_Scan], list[TacticalTheme]]


def _exchange(s: _Scan) -> list[TacticalTheme]:
    if s.captured is None or s.moved is None or s.captured.color != s.opponent:
        return []
    mv, cv = piece_value(s.moved.piece_type), piece_value(s.captured.piece_type)
    if mv < cv:
        return [TacticalTheme.of(
            Motif.WINNING_EXCHANGE,
            f"Captures a {s.captured.name} ({cv} pts) with a {s.moved.name} ({mv} pts)",
        )]
    if mv > cv:
        return [TacticalTheme.of(
            Motif.LOSING_EXCHANGE,
            f"Trades a {s.moved.name} ({mv} pts) for a {s.captured.name} ({cv} pts)",
        )]
    return []


def _check(s: _Scan) -> list[TacticalTheme]:
    if not s.after.is_check():
        return []
    checker = s.landed.name if s.landed else "pawn"
    themes = [TacticalTheme.of(Motif.CHECK, f"Gives check with the {checker}")]
    if s.after.is_checkmate():
        themes.append(TacticalTheme.of(Motif.CHECKMATE, "Delivers checkmate!"))
    return themes


def _fork(s: _Scan) -> list[TacticalTheme]:
    if s.landed is None:
        return []
    forked = detect_fork(s.after, s.move.to_square, s.landed)
    if len(forked) < 2:
        return []
    targets = " and ".join(p.title for p in forked)
    return [TacticalTheme.of(
        Motif.FORK,
        f"The {s.landed.name} on {s.to_name} attacks both the {targets}",
        name=f"{s.landed.title} Fork",
    )]


def _pins(s: _Scan) -> list[TacticalTheme]:
    return [
        TacticalTheme.of(
            Motif.PIN,
            f"{pin.pinner.title} on {pin.pinner.square_name} pins the {pin.pinned.name} on "
            f"{pin.pinned.square_name} to the {pin.target.name} on {pin.target.square_name}",
        )
        for pin in detect_pins(s.after, s.opponent)[:MAX_PINS]
    ]


def _discovered_attack(s: _Scan) -> list[TacticalTheme]:
    if s.moved is None:
        return []
    desc = detect_discovered_attack(s.before, s.after, s.move.from_square, s.mover)
    return [TacticalTheme.of(Motif.DISCOVERED_ATTACK, desc)] if desc else []


def _back_rank(s: _Scan) -> list[TacticalTheme]:
    king = s.after.king(s.opponent)
    if king is None or chess.square_rank(king) != back_rank(s.opponent) or not s.after.is_check():
        return []
    return [TacticalTheme.of(
        Motif.BACK_RANK, "Check on the back rank — the king has no escape squares",
    )]


def _hanging(s: _Scan) -> list[TacticalTheme]:
    if not s.costly:
        return []
    return [
        TacticalTheme.of(
            Motif.HANGING_PIECE,
            f"The {h.name} on {h.square_name} is undefended and can be captured",
        )
        for h in detect_hanging_pieces(s.after, s.mover)[:MAX_HANGING]
    ]


def _trapped(s: _Scan) -> list[TacticalTheme]:
    if not s.ctx.is_user_move or s.moved is None:
        return []
    if s.moved.piece_type in (chess.PAWN, chess.KING):
        return []
    if not is_piece_trapped(s.after, s.move.to_square, s.mover):
        return []
    return [TacticalTheme.of(
        Motif.TRAPPED_PIECE,
        f"The {s.moved.name} on {s.to_name} may be trapped with limited safe squares",
    )]


def _weakening(s: _Scan) -> list[TacticalTheme]:
    if not s.ctx.is_user_move or s.moved is None or s.moved.piece_type != chess.PAWN:
        return []
    weakened = detect_weakened_squares(s.before, s.after, s.move.from_square, s.mover)
    if not weakened:
        return []
    return [TacticalTheme.of(
        Motif.WEAKENING_MOVE, f"Advancing the pawn weakens {', '.join(weakened)}",
    )]


def _phase(s: _Scan) -> list[TacticalTheme]:
    phase = classify_game_phase(s.before)
    themes = [TacticalTheme.of(
        Motif.GAME_PHASE,
        f"This position is in the {phase.value.lower()} phase",
        name=phase.value,
    )]
    if phase == GamePhase.ENDGAME:
        eg_type = classify_endgame_type(s.before)
        if eg_type:
            themes.append(TacticalTheme.of(
                Motif.ENDGAME_TYPE,
                f"A {eg_type.lower()} with specific strategic considerations",
                name=eg_type,
            ))
    return themes


def _skewer(s: _Scan) -> list[TacticalTheme]:
    themes = []
    if s.is_best:
        own = detect_skewers(s.after, s.mover)
        if own:
            sk = own[0]
            themes.append(TacticalTheme.of(
                Motif.SKEWER,
                f"The {sk.attacker.name} on {sk.attacker.square_name} skewers the "
                f"{sk.front.name} on {sk.front.square_name} — when it moves, the "
                f"{sk.behind.name} behind it can be captured",
            ))
    if s.costly:
        theirs = detect_skewers(s.after, s.opponent)
        if theirs:
            sk = theirs[0]
            themes.append(TacticalTheme.of(
                Motif.SKEWER,
                f"Your move allows a skewer: the opponent's {sk.attacker.name} attacks your "
                f"{sk.front.name} on {sk.front.square_name}, and your {sk.behind.name} on "
                f"{sk.behind.square_name} is behind it",
            ))
    return themes


def _discovered_check(s: _Scan) -> list[TacticalTheme]:
    if not is_discovered_check(s.before, s.move, s.after):
        return []
    moved = s.moved.name if s.moved else "pawn"
    return [TacticalTheme.of(
        Motif.DISCOVERED_CHECK,
        f"Moving the {moved} reveals a check from a hidden attacking piece — a powerful forcing move",
    )]


def _double_check(s: _Scan) -> list[TacticalTheme]:
    if not is_double_check(s.before, s.move, s.after):
        return []
    return [TacticalTheme.of(
        Motif.DOUBLE_CHECK,
        "Two pieces give check simultaneously — the king must move since you can't block both attacks",
    )]


def _exposed_king(s: _Scan) -> list[TacticalTheme]:
    if s.ctx.is_user_move:
        if is_king_exposed(s.after, s.mover) and not is_king_exposed(s.before, s.mover):
            return [TacticalTheme.of(
                Motif.EXPOSED_KING,
                "Your king is poorly protected after this move, making it vulnerable to attacks",
            )]
        return []
    if is_king_exposed(s.after, s.opponent):
        return [TacticalTheme.of(
            Motif.EXPOSED_KING,
            "The opponent's king has few defenders, creating attacking opportunities",
        )]
    return []


def _advanced_pawn(s: _Scan) -> list[TacticalTheme]:
    if s.moved is None or s.moved.piece_type != chess.PAWN:
        return []
    if len(detect_advanced_pawns(s.after, s.mover)) <= len(detect_advanced_pawns(s.before, s.mover)):
        return []
    promo_rank = 7 if s.mover == chess.WHITE else 0
    distance = abs(promo_rank - chess.square_rank(s.move.to_square))
    if distance <= 2:
        soon = " in one move" if distance == 1 else ""
        desc = f"Pawn on {s.to_name} is deep in enemy territory and threatens to promote{soon}"
    else:
        desc = f"Pawn on {s.to_name} is well advanced into the opponent's position"
    return [TacticalTheme.of(Motif.ADVANCED_PAWN, desc)]


def _wing_attack(s: _Scan) -> list[TacticalTheme]:
    if not s.is_best or not s.after.is_check():
        return []
    side = castling_side(s.before, s.opponent)
    if side == "kingside":
        return [TacticalTheme.of(
            Motif.KINGSIDE_ATTACK, "An attack targeting the opponent's castled king on the kingside",
        )]
    if side == "queenside":
        return [TacticalTheme.of(
            Motif.QUEENSIDE_ATTACK, "An attack targeting the opponent's castled king on the queenside",
        )]
    return []


def _f2_f7(s: _Scan) -> list[TacticalTheme]:
    if not is_attacking_f2_f7(s.before, s.after, s.move, s.mover):
        return []
    target = "f7" if s.mover == chess.WHITE else "f2"
    return [TacticalTheme.of(
        Motif.ATTACKING_F2_F7,
        f"Targets the vulnerable {target} pawn — the weakest point in the opponent's position at the start",
    )]


def _xray(s: _Scan) -> list[TacticalTheme]:
    if not s.is_best:
        return []
    xrays = detect_xrays(s.after, s.mover)
    if not xrays:
        return []
    xr = xrays[0]
    return [TacticalTheme.of(
        Motif.XRAY_ATTACK,
        f"The {xr.attacker.name} on {xr.attacker.square_name} attacks through the "
        f"{xr.through.name} on {xr.through.square_name}",
    )]


def _special_moves(s: _Scan) -> list[TacticalTheme]:
    themes = []
    if is_en_passant(s.before, s.move):
        themes.append(TacticalTheme.of(
            Motif.EN_PASSANT,
            "Captures the opponent's pawn en passant — a special pawn capture after the opponent's two-square advance",
        ))
    if is_promotion(s.move):
        if is_underpromotion(s.move):
            themes.append(TacticalTheme.of(
                Motif.UNDERPROMOTION,
                f"Promotes to a {chess.piece_name(s.move.promotion)} instead of a queen — "
                f"sometimes the stronger tactical choice",
            ))
        else:
            themes.append(TacticalTheme.of(
                Motif.PROMOTION, "Promotes a pawn to a queen — a decisive gain in material",
            ))
    if s.before.is_castling(s.move):
        if s.before.is_kingside_castling(s.move):
            desc = "Castles kingside — securing the king and activating the rook"
        else:
            desc = "Castles queenside — the king is safe on the long side while the rook enters the game"
        themes.append(TacticalTheme.of(Motif.CASTLING, desc))
    if is_sacrifice(s.before, s.move, s.ctx):
        themes.append(TacticalTheme.of(
            Motif.SACRIFICE,
            "Gives up material for a tactical or positional advantage — the opponent must accept, but the followup is strong",
        ))
    return themes


def _mate_pattern(s: _Scan) -> list[TacticalTheme]:
    rule = classify_mate(s.after)
    if rule is None:
        return []
    return [TacticalTheme.of(Motif.MATE_PATTERN, rule.description, name=rule.pattern.value)]


def _capturing_defender(s: _Scan) -> list[TacticalTheme]:
    if not s.is_best:
        return []
    desc = detect_capturing_defender(s.before, s.after, s.move)
    return [TacticalTheme.of(Motif.CAPTURING_DEFENDER, desc)] if desc else []


def _eval_swing(s: _Scan) -> list[TacticalTheme]:
    if not s.ctx.is_user_move:
        return []
    loss = s.ctx.cp_loss
    if loss >= 600:
        return [TacticalTheme.of(
            Motif.CRUSHING, "This move gave away a crushing advantage or allowed one for the opponent",
        )]
    if loss >= 200:
        return [TacticalTheme.of(Motif.ADVANTAGE, "A significant advantage was lost with this move")]
    if 0 <= loss <= 20:
        return [TacticalTheme.of(
            Motif.EQUALITY,
            "This move maintains rough equality — neither side gains a meaningful advantage",
        )]
    return []


def _attraction(s: _Scan) -> list[TacticalTheme]:
    if not s.is_best:
        return []
    desc = detect_attraction(s.before, s.after, s.move)
    return [TacticalTheme.of(Motif.ATTRACTION, desc)] if desc else []


def _deflection(s: _Scan) -> list[TacticalTheme]:
    if s.is_best:
        desc = detect_deflection(s.before, s.after, s.move)
        return [TacticalTheme.of(Motif.DEFLECTION, desc)] if desc else []
    if s.costly and detect_deflection(s.before, s.after, s.move):
        return [TacticalTheme.of(
            Motif.DEFLECTION,
            "Your move deflects a piece from a key defensive duty, worsening your position",
        )]
    return []


def _line_play(s: _Scan) -> list[TacticalTheme]:
    if not s.is_best:
        return []
    themes = []
    desc = detect_interference(s.before, s.after, s.move)
    if desc:
        themes.append(TacticalTheme.of(Motif.INTERFERENCE, desc))
    desc = detect_clearance(s.before, s.after, s.move)
    if desc:
        themes.append(TacticalTheme.of(Motif.CLEARANCE, desc))
    return themes


def _intermezzo(s: _Scan) -> list[TacticalTheme]:
    if not s.ctx.is_user_move or s.ctx.best_move is None:
        return []
    desc = detect_intermezzo(s.before, s.move, s.ctx.best_move)
    return [TacticalTheme.of(Motif.INTERMEZZO, desc)] if desc else []


def _quiet_defensive(s: _Scan) -> list[TacticalTheme]:
    if not s.is_best:
        return []
    themes = []
    if s.ctx.cp_loss == 0 and is_quiet_move(s.before, s.move, s.after):
        themes.append(TacticalTheme.of(
            Motif.QUIET_MOVE,
            "A subtle move that doesn't capture or check, but sets up an unavoidable threat for later",
        ))
    played = s.ctx.played_move
    if played is not None and is_defensive_move(s.before, s.move, s.after, played, _san_or_none(s.before, played)):
        themes.append(TacticalTheme.of(
            Motif.DEFENSIVE_MOVE,
            "A precise defensive move that parries the attack while maintaining the position",
        ))
    if is_zugzwang_like(s.after):
        themes.append(TacticalTheme.of(
            Motif.ZUGZWANG,
            "The opponent has very few moves, and any move they make will worsen their position",
        ))
    return themes


def _opponent_threats(s: _Scan) -> list[TacticalTheme]:
    if not s.costly:
        return []
    found = [
        walks_into_fork(s.after),
        walks_into_pin(s.before, s.after, s.mover),
        hangs_material(s.after),
        back_rank_mate_threat(s.after, s.mover),
    ]
    return [t for t in found if t is not None]


def _san_or_none(board: chess.Board, move: chess.Move) -> str | None:
    if move not in board.legal_moves:
        return None
    return board.san(move)


# Order matters: it is the order themes are surfaced in, and the best-move
# headline is built from the first few names.
_STEPS: list[tuple[str, _Step]] = [
    ("exchange", _exchange),
    ("check", _check),
    ("fork", _fork),
    ("pin", _pins),
    ("discovered_attack", _discovered_attack),
    ("back_rank", _back_rank),
    ("hanging", _hanging),
    ("trapped", _trapped),
    ("weakening", _weakening),
    ("phase", _phase),
    ("skewer", _skewer),
    ("discovered_check", _discovered_check),
    ("double_check", _double_check),
    ("exposed_king", _exposed_king),
    ("advanced_pawn", _advanced_pawn),
    ("wing_attack", _wing_attack),
    ("f2_f7", _f2_f7),
    ("xray", _xray),
    ("special_moves", _special_moves),
    ("mate_pattern", _mate_pattern),
    ("capturing_defender", _capturing_defender),
    ("eval_swing", _eval_swing),
    ("attraction", _attraction),
    ("deflection", _deflection),
    ("line_play", _line_play),
    ("intermezzo", _intermezzo),
    ("quiet_defensive", _quiet_defensive),
    ("opponent_threats", _opponent_threats),
]


def detect_tactical_themes(
    before: chess.Board,
    applied: AppliedMove,
    ctx: MoveContext,
) -> list[TacticalTheme]:
    """All themes for one move, in surfacing order."""
    move = applied.move
    scan = _Scan(
        before=before,
        after=applied.after,
        move=move,
        san=applied.san,
        ctx=ctx,
        mover=before.turn,
        moved=piece_at(before, move.from_square),
        captured=piece_at(before, move.to_square),
        landed=piece_at(applied.after, move.to_square),
    )
    themes: list[TacticalTheme] = []
    for name, step in _STEPS:
        try:
            themes.extend(step(scan))
        except Exception as e:
            logger.warning("%s detector failed on %s: %s", name, before.fen(), e)
    return themes
