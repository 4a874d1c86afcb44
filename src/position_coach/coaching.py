"""Coaching intelligence: what a move was for, and which principles it broke.

Classifies the purpose of a move, checks it against phase-appropriate chess
principles, and produces the contrast sentence and the one-line lesson that
close a played-move explanation.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Sequence

import chess

from position_coach.analysis.constants import _opponent, piece_value
from position_coach.analysis.material import count_developed, has_castled, can_still_castle, material_balance
from position_coach.analysis.pawns import pawn_structure
from position_coach.analysis.phase import PositionProfile
from position_coach.analysis.tactics.types import TacticalTheme
from position_coach.board import Piece, back_rank, piece_at, total_pieces

__all__ = [
    "MoveFunction",
    "PrincipleViolation",
    "classify_move_function",
    "detect_principle_violations",
    "generate_contrast_insight",
    "generate_coaching_takeaway",
    "how_to_find",
]


# ---------------------------------------------------------------------------
# Public types
# ---------------------------------------------------------------------------


class MoveFunction(enum.Enum):
    DEVELOPING = "developing"
    CASTLING = "castling"
    ATTACKING = "attacking"
    DEFENDING = "defending"
    PROPHYLACTIC = "prophylactic"
    PAWN_ADVANCE = "pawn-advance"
    TRADING = "trading"
    RETREATING = "retreating"
    REPOSITIONING = "repositioning"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PrincipleViolation:
    principle: str
    explanation: str
    tip: str  # used verbatim as the coaching takeaway


# ---------------------------------------------------------------------------
# Move function
# ---------------------------------------------------------------------------


def classify_move_function(
    board: chess.Board,
    move: chess.Move,
    san: str,
    after: chess.Board | None,
) -> MoveFunction:
    """Label the purpose of `move`, first matching rule wins.

    Castling, then captures (trading when values are within one point and
    the capturer is not a pawn, else attacking), then checks, pawn pushes,
    retreats to the back rank, development off it, and finally
    repositioning.
    """
    if san.startswith("O-O"):
        return MoveFunction.CASTLING

    piece = piece_at(board, move.from_square)
    if piece is None:
        return MoveFunction.UNKNOWN

    captured = piece_at(board, move.to_square)
    if captured is not None:
        if abs(piece_value(piece.piece_type) - piece_value(captured.piece_type)) <= 1 and piece.piece_type != chess.PAWN:
            return MoveFunction.TRADING
        return MoveFunction.ATTACKING

    if after is not None and after.is_check():
        return MoveFunction.ATTACKING

    if piece.piece_type == chess.PAWN:
        return MoveFunction.PAWN_ADVANCE

    home = back_rank(board.turn)
    from_rank = chess.square_rank(move.from_square)
    to_rank = chess.square_rank(move.to_square)
    if to_rank == home and from_rank != home:
        return MoveFunction.RETREATING
    if from_rank == home and to_rank != home and piece.piece_type != chess.KING:
        return MoveFunction.DEVELOPING
    return MoveFunction.REPOSITIONING


# ---------------------------------------------------------------------------
# Principle violations
# ---------------------------------------------------------------------------

# Piece-count bands used by the principle rules
_OPENING_PIECES = 28
_ENDGAME_PIECES = 14


@dataclass(frozen=True)
class _MoveFacts:
    before: chess.Board
    after: chess.Board | None
    move: chess.Move
    best: chess.Move | None
    cp_loss: float
    func: MoveFunction
    piece: Piece
    total: int

    @property
    def mover(self) -> chess.Color:
        return self.before.turn

    @property
    def is_opening(self) -> bool:
        return self.total >= _OPENING_PIECES

    @property
    def is_endgame(self) -> bool:
        return self.total < _ENDGAME_PIECES


_Rule = Callable[[_MoveFacts], "PrincipleViolation | None"]


def _edge_distance(square: chess.Square) -> int:
    f, r = chess.square_file(square), chess.square_rank(square)
    return min(f, 7 - f, r, 7 - r)


def _develop_new_pieces(f: _MoveFacts) -> PrincipleViolation | None:
    dev = count_developed(f.before, f.mover)
    if not f.is_opening or dev.developed >= dev.total or f.piece.piece_type == chess.PAWN:
        return None
    home = back_rank(f.mover)
    if chess.square_rank(f.move.from_square) == home or chess.square_rank(f.move.to_square) == home:
        return None
    remaining = dev.remaining
    waiting = "pieces are" if remaining > 1 else "piece is"
    return PrincipleViolation(
        principle="Develop New Pieces First",
        explanation=(
            f"You moved your already-developed {f.piece.name} again while {remaining} "
            f"{waiting} still on the back rank."
        ),
        tip=(
            "In the opening, prioritise getting all your minor pieces out before manoeuvring "
            "pieces that are already in play. Each new piece adds firepower."
        ),
    )


def _early_queen(f: _MoveFacts) -> PrincipleViolation | None:
    if not f.is_opening or f.piece.piece_type != chess.QUEEN:
        return None
    dev = count_developed(f.before, f.mover)
    if dev.developed >= dev.total - 1:
        return None
    return PrincipleViolation(
        principle="Don't Develop the Queen Early",
        explanation=(
            "Moving the queen out while minor pieces are still undeveloped invites "
            "tempo-gaining attacks by the opponent."
        ),
        tip=(
            "Develop knights and bishops first — they can't be chased as easily. The queen "
            "is most powerful when the position is already open."
        ),
    )


def _castle_early(f: _MoveFacts) -> PrincipleViolation | None:
    if not f.is_opening or f.func == MoveFunction.CASTLING or f.cp_loss < 50:
        return None
    if has_castled(f.before, f.mover) or not can_still_castle(f.before, f.mover):
        return None
    if not any(f.before.is_castling(m) for m in f.before.legal_moves):
        return None
    return PrincipleViolation(
        principle="Castle Early for King Safety",
        explanation=(
            "Castling was available but you chose a different move, leaving your king in the centre."
        ),
        tip=(
            "When castling is available and there's no urgent tactical need, castle! It tucks "
            "the king away safely and connects the rooks."
        ),
    )


def _keep_development_lead(f: _MoveFacts) -> PrincipleViolation | None:
    if f.func != MoveFunction.TRADING or not f.is_opening:
        return None
    dev = count_developed(f.before, f.mover)
    if dev.developed <= dev.total / 2:
        return None
    if dev.developed <= count_developed(f.before, _opponent(f.mover)).developed + 1:
        return None
    return PrincipleViolation(
        principle="Don't Simplify When Ahead in Development",
        explanation=(
            "Trading pieces when you have a development lead removes the advantage — you want "
            "more pieces on the board to exploit your faster mobilisation."
        ),
        tip=(
            "Keep the tension! When you're ahead in development, look for ways to open the "
            "position and create tactics instead of simplifying."
        ),
    )


def _stay_central(f: _MoveFacts) -> PrincipleViolation | None:
    if f.piece.piece_type in (chess.PAWN, chess.KING, chess.ROOK) or f.cp_loss < 80:
        return None
    to_edge = _edge_distance(f.move.to_square)
    if to_edge != 0 or to_edge >= _edge_distance(f.move.from_square):
        return None
    if f.piece.piece_type == chess.KNIGHT:
        tip = (
            "\"A knight on the rim is dim\" — knights need central outposts to be effective. "
            "Look for protected squares like d4, e5, c5."
        )
    else:
        tip = (
            "Bishops are strong on long diagonals aimed at the centre. Corner squares often "
            "result in a passive bishop."
        )
    return PrincipleViolation(
        principle="Knights and Bishops Belong in the Centre",
        explanation=(
            f"Moving the {f.piece.name} to the edge ({chess.square_name(f.move.to_square)}) "
            f"reduces its scope — a {f.piece.name} in the centre controls more squares."
        ),
        tip=tip,
    )


def _no_free_pawn_weakness(f: _MoveFacts) -> PrincipleViolation | None:
    if f.piece.piece_type != chess.PAWN or f.after is None or f.cp_loss < 60:
        return None
    issues_before = pawn_structure(f.before, f.mover).issues
    new_issues = [i for i in pawn_structure(f.after, f.mover).issues if i not in issues_before]
    if not new_issues:
        return None
    return PrincipleViolation(
        principle="Don't Create Pawn Weaknesses Without Compensation",
        explanation=(
            f"This pawn move creates {' and '.join(new_issues)} — a static weakness that "
            f"persists for the rest of the game."
        ),
        tip=(
            "Every pawn move is permanent. Before pushing a pawn, ask: 'What squares am I "
            "weakening?' and 'Do I get enough in return (space, open lines, attack)?'"
        ),
    )


def _captures_first(f: _MoveFacts) -> PrincipleViolation | None:
    if f.best is None or f.cp_loss < 150 or f.after is None:
        return None
    missed = piece_at(f.before, f.best.to_square)
    if missed is None or piece_value(missed.piece_type) < 3:
        return None
    return PrincipleViolation(
        principle="Check for Captures and Threats First",
        explanation=(
            f"There was a {missed.name} available for capture on {missed.square_name}, but you "
            f"played a different move and missed the opportunity."
        ),
        tip=(
            "Before each move, scan the board with the checklist: **Checks → Captures → "
            "Threats**. This simple habit catches most tactical opportunities."
        ),
    )


def _attack_when_ahead(f: _MoveFacts) -> PrincipleViolation | None:
    if f.func != MoveFunction.RETREATING or f.cp_loss < 100:
        return None
    balance = material_balance(f.before)
    ahead = balance if f.mover == chess.WHITE else -balance
    if ahead < 2:
        return None
    return PrincipleViolation(
        principle="When Ahead, Don't Retreat — Attack",
        explanation=(
            "You have a material advantage. Retreating gives the opponent time to consolidate. "
            "Convert the advantage by keeping pressure."
        ),
        tip=(
            "When you're up material, trade pieces (not pawns) and keep the initiative. Every "
            "piece exchange when ahead brings you closer to a winning endgame."
        ),
    )


def _activate_king(f: _MoveFacts) -> PrincipleViolation | None:
    if not f.is_endgame or f.piece.piece_type == chess.KING or f.cp_loss < 50:
        return None
    king = f.before.king(f.mover)
    if king is None or chess.square_rank(king) != back_rank(f.mover):
        return None
    return PrincipleViolation(
        principle="Activate the King in the Endgame",
        explanation=(
            "Your king is still on the back rank. In the endgame, the king is a fighting piece "
            "— it should march towards the centre."
        ),
        tip=(
            "Once queens are off the board, the king belongs in the centre (d4/e4/d5/e5). An "
            "active king can support passed pawns and dominate the opponent's."
        ),
    )


def _push_passed_pawns(f: _MoveFacts) -> PrincipleViolation | None:
    if not f.is_endgame or f.piece.piece_type == chess.PAWN:
        return None
    if not pawn_structure(f.before, f.mover).has_passed_pawn:
        return None
    return PrincipleViolation(
        principle="Push Your Passed Pawns",
        explanation=(
            "You have a passed pawn that could advance, but you moved a piece instead. Passed "
            "pawns are the main winning technique in endgames."
        ),
        tip=(
            "Passed pawns must be pushed! Support them with your king and pieces. A passed pawn "
            "on the 6th or 7th rank often wins by itself."
        ),
    )


# Checked in order; the first violation's tip becomes the lesson
PRINCIPLE_RULES: list[_Rule] = [
    _develop_new_pieces,
    _early_queen,
    _castle_early,
    _keep_development_lead,
    _stay_central,
    _no_free_pawn_weakness,
    _captures_first,
    _attack_when_ahead,
    _activate_king,
    _push_passed_pawns,
]


def detect_principle_violations(
    before: chess.Board,
    after: chess.Board | None,
    move: chess.Move,
    best: chess.Move | None,
    cp_loss: float,
    func: MoveFunction,
) -> list[PrincipleViolation]:
    """Principles the played move breaks, in rule order.

    `after` is the position after the played move, or None when it could
    not be produced; rules that compare before and after are then skipped.
    """
    piece = piece_at(before, move.from_square)
    if piece is None:
        return []
    facts = _MoveFacts(
        before=before,
        after=after,
        move=move,
        best=best,
        cp_loss=cp_loss,
        func=func,
        piece=piece,
        total=total_pieces(before),
    )
    return [v for rule in PRINCIPLE_RULES if (v := rule(facts)) is not None]


# ---------------------------------------------------------------------------
# Contrast and takeaway
# ---------------------------------------------------------------------------

_F = MoveFunction

# (played function, best-move function) -> template taking the best move's SAN
_CONTRASTS: dict[tuple[MoveFunction, MoveFunction], str] = {
    (_F.RETREATING, _F.ATTACKING): (
        "Instead of retreating, the key idea was **{san}** — staying aggressive and maintaining "
        "the initiative. In chess, a move forward in a strong position is almost always better "
        "than a move backward."
    ),
    (_F.PAWN_ADVANCE, _F.DEVELOPING): (
        "Rather than pushing a pawn, the priority was **{san}** — getting a new piece into the "
        "game. Pieces create threats; extra pawn moves in the opening often just waste time."
    ),
    (_F.PAWN_ADVANCE, _F.CASTLING): (
        "Instead of a pawn push, you should have castled with **{san}**. King safety almost "
        "always takes priority over gaining space."
    ),
    (_F.TRADING, _F.DEVELOPING): (
        "Rather than exchanging pieces, **{san}** develops a new piece with more impact. "
        "Simplifying too early can let the opponent equalise."
    ),
    (_F.REPOSITIONING, _F.ATTACKING): (
        "Instead of a quiet repositioning move, **{san}** creates a concrete threat that the "
        "opponent must deal with immediately. Active moves that force a response are usually "
        "stronger."
    ),
    (_F.DEVELOPING, _F.ATTACKING): (
        "While developing is usually good, here **{san}** was stronger because it creates an "
        "immediate tactical threat. When a forcing move is available, it often takes priority."
    ),
    (_F.ATTACKING, _F.DEFENDING): (
        "Your attacking move was premature. **{san}** first shores up a defensive weakness, "
        "which is essential before launching an attack. Sound attacks are built on a stable "
        "position."
    ),
}


def generate_contrast_insight(
    before: chess.Board,
    played_func: MoveFunction,
    best: chess.Move | None,
    best_san: str | None,
    best_after: chess.Board | None,
    cp_loss: float,
) -> str | None:
    """One sentence on why the best move beats the played one, or None."""
    if best is None or not best_san:
        return None

    best_func = classify_move_function(before, best, best_san, best_after)
    template = _CONTRASTS.get((played_func, best_func))
    if template is not None:
        return template.format(san=best_san)
    if best_func == MoveFunction.CASTLING:
        return (
            f"The best move was simply **{best_san}** — getting the king to safety. When you can "
            f"castle, it should almost always be done before starting any middlegame plans."
        )

    if cp_loss >= 200:
        return (
            f"The critical difference is that **{best_san}** avoids the tactical problem your move "
            f"ran into. Always look for the opponent's strongest reply before committing to a move."
        )
    if cp_loss >= 100:
        return (
            f"**{best_san}** is more accurate because it maintains the balance of the position "
            f"without creating the weakness your move introduced."
        )
    return None


_LESSON = "💡 **Lesson**: "

# Substring of a lower-cased theme name -> lesson, checked in order
_THEME_LESSONS = (
    ("fork", (
        "Always scan for knight forks after every opponent move — check which pieces are on the "
        "same colour squares as a potential knight outpost."
    )),
    ("pin", (
        "When pieces are lined up on a rank, file, or diagonal, look for pin opportunities. "
        "Pinned pieces can't move without exposing a more valuable piece behind them."
    )),
    ("hanging", (
        "Before playing any move, do a quick \"blunder check\" — scan whether any of your pieces "
        "will be left undefended."
    )),
)

_PHASE_LESSONS = {
    "opening": (
        "In the opening, follow the three golden rules: (1) control the centre, (2) develop all "
        "minor pieces, (3) castle early. Don't get fancy until you've completed your development."
    ),
    "endgame": (
        "Endgame priorities: (1) activate your king, (2) push passed pawns, (3) restrict the "
        "opponent's king. Piece activity matters even more than material in endgames."
    ),
}


def generate_coaching_takeaway(
    profile: PositionProfile,
    violations: Sequence[PrincipleViolation],
    themes: Sequence[TacticalTheme],
    cp_loss: float,
) -> str:
    """The lesson line: a violation's tip, else a theme, phase or generic lesson."""
    if violations:
        return _LESSON + violations[0].tip

    names = [t.name.lower() for t in themes]
    for needle, lesson in _THEME_LESSONS:
        if any(needle in n for n in names):
            return _LESSON + lesson

    if profile.phase in _PHASE_LESSONS:
        return _LESSON + _PHASE_LESSONS[profile.phase]

    if cp_loss >= 200:
        return _LESSON + (
            "Before playing a move, always ask \"What does my opponent do next?\" Imagining their "
            "strongest reply is the single best habit to reduce blunders."
        )
    return _LESSON + (
        "Take a moment before each move to consider: are there any checks, captures, or threats "
        "I should address before continuing with my plan?"
    )


_HOW_TO_FIND = {
    MoveFunction.ATTACKING: (
        "Look for forcing moves first — checks, captures, and threats that demand an immediate response."
    ),
    MoveFunction.DEVELOPING: (
        "Ask yourself \"which piece is doing the least?\" and find the most active square for it."
    ),
    MoveFunction.CASTLING: (
        "When in doubt, consider castling. King safety is almost always the top priority before "
        "starting middlegame plans."
    ),
    MoveFunction.DEFENDING: (
        "Before continuing your own plan, always check — does my opponent have a serious threat? "
        "If so, deal with it first."
    ),
    MoveFunction.PROPHYLACTIC: (
        "Think about your opponent's ideal move, then prevent it. This prophylactic thinking is a "
        "hallmark of strong players."
    ),
    MoveFunction.REPOSITIONING: (
        "When there are no immediate tactics, improve your worst-placed piece. Find the piece with "
        "the fewest squares and reroute it."
    ),
}


def how_to_find(func: MoveFunction) -> str | None:
    """Thought-process hint for finding a move of this kind, if there is one."""
    hint = _HOW_TO_FIND.get(func)
    return f"🧠 **How to find this**: {hint}" if hint else None
