"""Move explanations: why the played move hurt and why the best move is better.

`explain_moves` is the single-move entry point. It runs the tactical
detectors on the played move and, independently, on the oracle's best move,
then builds two parallel `PositionExplanation`s. It never raises: anything
that fails is logged and the explanation degrades to what could be built.

`describe_end_position` summarises the position reached at the end of a
suggested line.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

import chess

from position_coach.analysis.activity import piece_activity
from position_coach.analysis.constants import CENTER_SQUARES, _color_name, _opponent, piece_value
from position_coach.analysis.king_safety import king_safety_score
from position_coach.analysis.material import (
    count_developed,
    describe_material_diff,
    has_bishop_pair,
    material_balance,
)
from position_coach.analysis.pawns import pawn_structure
from position_coach.analysis.phase import PositionProfile, profile_position
from position_coach.analysis.structure import center_control, open_files
from position_coach.analysis.tactics import MoveContext, TacticalTheme, detect_pins, detect_tactical_themes
from position_coach.board import (
    FILES,
    AppliedMove,
    apply_move,
    back_rank,
    parse_move,
    parse_position,
    piece_at,
    total_pieces,
)
from position_coach.coaching import (
    MoveFunction,
    PrincipleViolation,
    classify_move_function,
    detect_principle_violations,
    generate_coaching_takeaway,
    generate_contrast_insight,
    how_to_find,
)

logger = logging.getLogger(__name__)

__all__ = [
    "PositionExplanation",
    "MoveExplanation",
    "EndPosition",
    "explain_moves",
    "headline_for",
    "describe_end_position",
]


# ---------------------------------------------------------------------------
# Public types
# ---------------------------------------------------------------------------


@dataclass
class PositionExplanation:
    headline: str
    coaching: str
    themes: list[str] = field(default_factory=list)  # unique, first occurrence order
    observations: list[str] = field(default_factory=list)


@dataclass
class MoveExplanation:
    played: PositionExplanation
    best: PositionExplanation

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EndPosition:
    summary: str
    details: list[str] = field(default_factory=list)


@dataclass
class _Coaching:
    played_func: MoveFunction
    violations: list[PrincipleViolation]
    profile: PositionProfile
    contrast: str | None


# Opponent-threat theme names, in headline priority order
_MATE_THREAT = "Back-Rank Mate Threat"
_FORK_THREAT = "Walks Into Fork"
_HANGS = "Hangs Material"
_PIN_THREAT = "Walks Into Pin"

_MAX_VIOLATIONS = 2


def _pawns(cp: float) -> str:
    return f"{cp / 100:.1f}"


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def explain_moves(
    fen_before: str,
    user_move: str,
    best_move: str | None,
    cp_loss: float,
    eval_before: float,
    eval_after: float,
) -> MoveExplanation:
    """Explain a played move against the oracle's best move.

    `user_move` may be UCI or SAN; `best_move` is normally UCI but SAN is
    accepted too. Evaluations are in centipawns from the mover's side.
    """
    try:
        board = parse_position(fen_before)
    except ValueError as e:
        logger.warning("Cannot parse position %r: %s", fen_before, e)
        board = None

    played = _apply(board, user_move)
    best = _apply(board, best_move) if best_move else None
    user_san = played.san if played else user_move
    best_san = best.san if best else best_move

    coaching = None
    if board is not None and played is not None:
        coaching = _coaching_context(board, played, best, cp_loss, eval_before)

    played_themes: list[TacticalTheme] = []
    if board is not None and played is not None:
        played_themes = detect_tactical_themes(
            board, played, MoveContext(is_user_move=True, cp_loss=cp_loss, best_move=best.move if best else None),
        )
    best_themes: list[TacticalTheme] = []
    if board is not None and best is not None:
        best_themes = detect_tactical_themes(
            board, best, MoveContext(is_user_move=False, cp_loss=0, played_move=played.move if played else None),
        )

    return MoveExplanation(
        played=_explain_played(board, played, user_san, cp_loss, eval_before, eval_after, played_themes, coaching),
        best=_explain_best(board, best, best_san, eval_before, best_themes, coaching),
    )


def _apply(board: chess.Board | None, text: str | None) -> AppliedMove | None:
    if board is None or not text:
        return None
    try:
        return apply_move(board, parse_move(board, text))
    except ValueError as e:
        logger.warning("Cannot play %r in %s: %s", text, board.fen(), e)
        return None


def _coaching_context(
    board: chess.Board,
    played: AppliedMove,
    best: AppliedMove | None,
    cp_loss: float,
    eval_before: float,
) -> _Coaching | None:
    try:
        func = classify_move_function(board, played.move, played.san, played.after)
        return _Coaching(
            played_func=func,
            violations=detect_principle_violations(
                board, played.after, played.move, best.move if best else None, cp_loss, func,
            ),
            profile=profile_position(board, eval_before, board.turn),
            contrast=generate_contrast_insight(
                board,
                func,
                best.move if best else None,
                best.san if best else None,
                best.after if best else None,
                cp_loss,
            ),
        )
    except Exception as e:
        logger.warning("Coaching context failed for %s: %s", board.fen(), e)
        return None


# ---------------------------------------------------------------------------
# Played move
# ---------------------------------------------------------------------------


def headline_for(theme_names: list[str], cp_loss: float) -> str:
    """Severity headline for a played move.

    Opponent-threat themes take priority over the plain centipawn bands.
    """
    loss = _pawns(cp_loss)
    names = set(theme_names)
    if _MATE_THREAT in names:
        return "Blunder — allows back-rank mate"
    if _FORK_THREAT in names:
        label = "Blunder" if cp_loss >= 300 else "Mistake"
        return f"{label} — walks into a fork, losing {loss} pawns"
    if _HANGS in names and cp_loss >= 200:
        return f"Blunder — hangs material, losing {loss} pawns"
    if _PIN_THREAT in names and cp_loss >= 200:
        label = "Blunder" if cp_loss >= 300 else "Mistake"
        return f"{label} — walks into a pin, losing {loss} pawns"
    if cp_loss >= 300:
        return f"Blunder — loses {loss} pawns of eval"
    if cp_loss >= 150:
        return f"Mistake — loses {loss} pawns of eval"
    return f"Inaccuracy — loses {loss} pawns of eval"


_THREAT_CONSEQUENCES = (
    (_MATE_THREAT, (
        "This allows a devastating back-rank checkmate — the king is trapped behind its own "
        "pawns with no escape."
    )),
    (_FORK_THREAT, (
        "This walks directly into a fork, allowing the opponent to attack two pieces "
        "simultaneously and win material."
    )),
    (_HANGS, "This leaves a piece unprotected, allowing the opponent to capture it for free."),
    (_PIN_THREAT, (
        "This allows the opponent to pin one of your pieces, restricting your options and likely "
        "winning material."
    )),
)


def _explain_played(
    board: chess.Board | None,
    played: AppliedMove | None,
    user_san: str,
    cp_loss: float,
    eval_before: float,
    eval_after: float,
    themes: list[TacticalTheme],
    coaching: _Coaching | None,
) -> PositionExplanation:
    theme_names = [t.name for t in themes]
    headline = headline_for(theme_names, cp_loss)
    observations: list[str] = []
    sentences: list[str] = []

    try:
        if board is None or played is None:
            raise ValueError(f"cannot play {user_san!r}")
        _describe_played(board, played, user_san, themes, sentences, observations, theme_names)

        if eval_before >= 200 and eval_after < 50:
            sentences.append(
                "You had a winning advantage but this move throws it away, returning the position "
                "to roughly equal."
            )
            theme_names.append("Squandered Advantage")
        elif eval_before >= 0 and eval_after < -200:
            sentences.append("This move turns a balanced position into a clearly losing one.")
            theme_names.append("Decisive Error")
        elif eval_after < -500:
            sentences.append("After this move the position is almost certainly lost.")
    except Exception as e:
        logger.warning("Played-move explanation degraded for %s: %s", user_san, e)
        sentences.append(f"You played **{user_san}**, losing approximately {_pawns(cp_loss)} pawns of evaluation.")

    if coaching is not None:
        for v in coaching.violations[:_MAX_VIOLATIONS]:
            observations.append(f"⚠️ **{v.principle}**: {v.explanation}")
            theme_names.append(v.principle)
        if coaching.contrast:
            observations.append(coaching.contrast)
        observations.append(
            generate_coaching_takeaway(coaching.profile, coaching.violations, themes, cp_loss)
        )

    return PositionExplanation(
        headline=headline,
        coaching=" ".join(sentences),
        themes=_unique(theme_names),
        observations=observations,
    )


def _describe_played(
    board: chess.Board,
    played: AppliedMove,
    user_san: str,
    themes: list[TacticalTheme],
    sentences: list[str],
    observations: list[str],
    theme_names: list[str],
) -> None:
    mover = board.turn
    move = played.move
    after = played.after
    moved = piece_at(board, move.from_square)
    captured = piece_at(board, move.to_square)
    from_name = chess.square_name(move.from_square)
    to_name = chess.square_name(move.to_square)

    if moved is not None:
        if captured is not None:
            sentences.append(
                f"You played **{user_san}**, capturing the {captured.name} on {to_name} with your {moved.name}."
            )
        else:
            sentences.append(f"You played **{user_san}**, moving your {moved.name} from {from_name} to {to_name}.")

    for t in themes:
        observations.append(f"**{t.name}**: {t.description}")

    home = back_rank(mover)
    if moved is not None and moved.piece_type not in (chess.PAWN, chess.KING):
        if chess.square_rank(move.to_square) == home and chess.square_rank(move.from_square) != home:
            sentences.append("This retreats an active piece back to the first rank, losing tempo.")
            theme_names.append("Piece Retreat")

    if (
        moved is not None
        and moved.piece_type == chess.PAWN
        and move.from_square in CENTER_SQUARES
        and move.to_square not in CENTER_SQUARES
    ):
        sentences.append("This gives up central control by moving a pawn out of the center.")
        theme_names.append("Center Abandonment")

    ks_before = king_safety_score(board, mover)
    ks_after = king_safety_score(after, mover)
    if ks_after.score < ks_before.score - 15:
        new_issues = [i for i in ks_after.issues if i not in ks_before.issues]
        if new_issues:
            sentences.append(f"This weakens your king safety: {'; '.join(new_issues)}.")
            theme_names.append("King Safety")

    pawns_before = pawn_structure(board, mover).issues
    new_pawn_issues = [i for i in pawn_structure(after, mover).issues if i not in pawns_before]
    if new_pawn_issues:
        sentences.append(f"This creates pawn weaknesses: {'; '.join(new_pawn_issues)}.")
        theme_names.append("Pawn Structure")

    opp_activity = piece_activity(after, _opponent(mover))
    if opp_activity.active:
        observations.append(opp_activity.active[0])

    direction = 1 if mover == chess.WHITE else -1
    if (material_balance(after) - material_balance(board)) * direction < -2:
        sentences.append(f"This loses material ({describe_material_diff(after, mover)}).")
        theme_names.append("Material Loss")

    names = {t.name for t in themes}
    for threat, consequence in _THREAT_CONSEQUENCES:
        if threat in names:
            sentences.append(consequence)
            break


# ---------------------------------------------------------------------------
# Best move
# ---------------------------------------------------------------------------


def _explain_best(
    board: chess.Board | None,
    best: AppliedMove | None,
    best_san: str | None,
    eval_before: float,
    themes: list[TacticalTheme],
    coaching: _Coaching | None,
) -> PositionExplanation:
    if not best_san:
        return PositionExplanation(
            headline="No alternative found",
            coaching="The engine did not suggest an alternative move for this position.",
        )

    observations: list[str] = []
    theme_names = [t.name for t in themes]
    sentences: list[str] = []

    try:
        if board is None or best is None:
            raise ValueError(f"cannot play {best_san!r}")
        _describe_best(board, best, eval_before, themes, sentences, observations, theme_names)
    except Exception as e:
        logger.warning("Best-move explanation degraded for %s: %s", best_san, e)
        sentences.append(f"The engine recommends **{best_san}** to maintain the best position.")

    if coaching is not None and board is not None and best is not None:
        try:
            best_func = classify_move_function(board, best.move, best.san, best.after)
            if hint := how_to_find(best_func):
                observations.append(hint)
            if coaching.profile.structure == "closed" and best_func != MoveFunction.PAWN_ADVANCE:
                observations.append(
                    "📋 In closed positions, manoeuvring is key — slowly improve your pieces to "
                    "optimal squares before looking for pawn breaks."
                )
            elif coaching.profile.structure == "open" and best_func == MoveFunction.DEVELOPING:
                observations.append(
                    "📋 In open positions, piece activity is everything. Get your pieces to active "
                    "squares quickly — the first player to mobilise usually gets the initiative."
                )
        except Exception as e:
            logger.warning("Best-move guidance failed for %s: %s", best_san, e)

    headline = " · ".join(theme_names[:3]) if theme_names else "Engine recommendation"
    return PositionExplanation(
        headline=headline,
        coaching=" ".join(sentences),
        themes=_unique(theme_names),
        observations=observations,
    )


def _describe_best(
    board: chess.Board,
    best: AppliedMove,
    eval_before: float,
    themes: list[TacticalTheme],
    sentences: list[str],
    observations: list[str],
    theme_names: list[str],
) -> None:
    mover = board.turn
    move = best.move
    after = best.after
    san = best.san
    moved = piece_at(board, move.from_square)
    captured = piece_at(board, move.to_square)
    to_name = chess.square_name(move.to_square)
    castles = san.startswith("O-O")

    if moved is None:
        sentences.append(f"The best move is **{san}**.")
    elif captured is not None:
        sentences.append(
            f"The best move is **{san}**, capturing the {captured.name} on {to_name} with the {moved.name}."
        )
    elif castles:
        sentences.append(f"The best move is **{san}**, castling to bring the king to safety and activate the rook.")
        theme_names.append("Castling")
    else:
        sentences.append(f"The best move is **{san}**, placing the {moved.name} on {to_name}.")

    for t in themes:
        observations.append(f"**{t.name}**: {t.description}")

    dev_before = count_developed(board, mover)
    dev_after = count_developed(after, mover)
    if dev_after.developed > dev_before.developed:
        still = f", {dev_after.remaining} still to go" if dev_after.remaining > 0 else ""
        sentences.append(f"This develops a piece ({dev_after.developed}/{dev_after.total} developed{still}).")
        theme_names.append("Development")

    if center_control(after, mover).pawns_in_center > center_control(board, mover).pawns_in_center:
        sentences.append("This strengthens control of the center with a pawn.")
        theme_names.append("Center Control")

    if castles:
        theme_names.append("King Safety")
    elif king_safety_score(after, mover).score > king_safety_score(board, mover).score + 10:
        sentences.append("This improves king safety.")
        theme_names.append("King Safety")

    if after.is_check():
        sentences.append("This gives check, gaining the initiative.")
        theme_names.append("Initiative")

    if moved is not None and moved.piece_type == chess.PAWN:
        open_before = open_files(board, mover).open
        new_open = [f for f in open_files(after, mover).open if f not in open_before]
        rook_files = {FILES[chess.square_file(sq)] for sq in after.pieces(chess.ROOK, mover)}
        if new_open and any(f[0] in rook_files for f in new_open):
            sentences.append(f"This opens the {new_open[0]} for your rook.")
            theme_names.append("Open File")

    if has_bishop_pair(after, mover) and not has_bishop_pair(after, _opponent(mover)):
        observations.append("You maintain the bishop pair, which is a long-term advantage in open positions")
        theme_names.append("Bishop Pair")

    if captured is not None and moved is not None and piece_value(captured.piece_type) >= 3:
        sentences.append(f"This wins the {captured.name} (worth {piece_value(captured.piece_type)} points).")
        theme_names.append("Material Gain")

    pins = detect_pins(after, _opponent(mover))
    if pins:
        pin = pins[0]
        observations.append(
            f"Creates a pin: {pin.pinner.title} on {pin.pinner.square_name} pins the "
            f"{pin.pinned.name} on {pin.pinned.square_name}"
        )
        if "Pin" not in theme_names:
            theme_names.append("Pin")

    assets = pawn_structure(after, mover).assets
    if assets:
        observations.append(assets[0])

    if eval_before < -100:
        sentences.append("This is the best way to defend a difficult position and minimise the damage.")
        theme_names.append("Defense")
    elif eval_before > 300:
        sentences.append("This continues to press the advantage and convert the winning position.")
        theme_names.append("Converting")


# ---------------------------------------------------------------------------
# End of a suggested line
# ---------------------------------------------------------------------------


def _eval_detail(user_eval: float, side: str) -> str:
    pawns = _pawns(user_eval)
    if user_eval > 500:
        return f"Eval **+{pawns}** — {side} has a **winning advantage**"
    if user_eval > 200:
        return f"Eval **+{pawns}** — {side} has a **clear advantage**"
    if user_eval > 50:
        return f"Eval **+{pawns}** — {side} has a **slight edge**"
    if user_eval > -50:
        return "The position is **roughly equal**"
    if user_eval > -200:
        return f"Eval **{pawns}** — {side} is **slightly worse**"
    if user_eval > -500:
        return f"Eval **{pawns}** — {side} is **clearly worse**"
    return f"Eval **{pawns}** — {side} is in a **losing position**"


def _eval_summary(user_eval: float, side: str) -> str:
    if user_eval > 200:
        return f"After this line plays out, **{side} emerges with a clear advantage**."
    if user_eval > 50:
        return f"The resulting position gives **{side} a slight edge** to work with."
    if user_eval > -50:
        return "The line leads to a **balanced position** where both sides have chances."
    if user_eval > -200:
        return f"The resulting position is **slightly uncomfortable for {side}** — precision is needed."
    return f"After this line, **{side} faces a difficult position** and must fight for survival."


def describe_end_position(
    fen: str,
    perspective: chess.Color,
    eval_cp: float | None = None,
) -> EndPosition:
    """What the position at the end of a line looks like for `perspective`.

    `eval_cp` is the oracle's score for `fen` from the side to move.
    """
    try:
        board = parse_position(fen)
        side = _color_name(perspective)
        opp = _opponent(perspective)

        if board.is_checkmate():
            return EndPosition(f"The line ends in **checkmate** — {_color_name(board.turn)} is mated.")
        if board.is_stalemate():
            return EndPosition("The line ends in **stalemate** — the game would be drawn.")
        if board.is_insufficient_material() or board.is_fifty_moves():
            return EndPosition("The line ends in a **drawn position** (insufficient material or repetition).")

        details: list[str] = []
        user_eval = None
        if eval_cp is not None:
            user_eval = eval_cp if board.turn == perspective else -eval_cp
            details.append(_eval_detail(user_eval, side))

        material = describe_material_diff(board, perspective)
        if material != "equal material":
            details.append(f"Material: {material}")

        own_ks = king_safety_score(board, perspective)
        opp_ks = king_safety_score(board, opp)
        if own_ks.issues and own_ks.score < 70:
            details.append(f"{side}'s king safety concerns: {'; '.join(own_ks.issues[:2])}")
        if opp_ks.issues and opp_ks.score < 60:
            details.append(f"Opponent's king is exposed: {'; '.join(opp_ks.issues[:2])}")

        own_pawns = pawn_structure(board, perspective)
        opp_pawns = pawn_structure(board, opp)
        if own_pawns.assets:
            details.append(f"{side} has {', '.join(own_pawns.assets[:2])}")
        if own_pawns.issues:
            details.append(f"{side} has pawn weaknesses: {', '.join(own_pawns.issues[:2])}")
        if opp_pawns.issues:
            details.append(f"Opponent has pawn weaknesses: {', '.join(opp_pawns.issues[:2])}")

        activity = piece_activity(board, perspective)
        if activity.active:
            details.append(activity.active[0])
        if activity.passive:
            details.append(activity.passive[0])

        files = open_files(board, perspective).open
        rook_files = {FILES[chess.square_file(sq)] for sq in board.pieces(chess.ROOK, perspective)}
        if files and any(f[0] in rook_files for f in files):
            details.append(f"Rook is well placed on the open {files[0]}")

        if has_bishop_pair(board, perspective) and not has_bishop_pair(board, opp):
            details.append(f"{side} has the bishop pair — a long-term advantage")

        pins = detect_pins(board, opp)
        if pins:
            pin = pins[0]
            details.append(
                f"{pin.pinned.title} on {pin.pinned.square_name} is pinned to the "
                f"{pin.target.name} — restricting opponent's options"
            )

        if total_pieces(board) > 20:
            dev = count_developed(board, perspective)
            if dev.total > 0 and dev.remaining > 0:
                plural = "s" if dev.remaining > 1 else ""
                details.append(f"{side} still has {dev.remaining} piece{plural} to develop")

        if board.turn != perspective and board.legal_moves.count() <= 3 and not board.is_check():
            details.append("Opponent has very few moves — near-zugzwang might be possible")

        if not details:
            summary = "The resulting position is roughly balanced with chances for both sides."
        elif user_eval is not None:
            summary = _eval_summary(user_eval, side)
        else:
            summary = "Here is what the resulting position looks like:"
        return EndPosition(summary, details)
    except Exception as e:
        logger.warning("Cannot describe end position %r: %s", fen, e)
        return EndPosition("Could not analyze the resulting position.")
