"""Tests for move-function classification, principles and coaching lessons."""

import chess

from position_coach.analysis import PositionProfile
from position_coach.analysis.tactics import Motif, TacticalTheme
from position_coach.coaching import (
    MoveFunction,
    PrincipleViolation,
    classify_move_function,
    detect_principle_violations,
    generate_coaching_takeaway,
    generate_contrast_insight,
    how_to_find,
)


# ---------------------------------------------------------------------------
# Test positions (FEN)
# ---------------------------------------------------------------------------

STARTING = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
ITALIAN = "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"
OPEN_E_FILE = "r3r1k1/ppp2ppp/8/3p4/3P4/8/PPP2PPP/R3R1K1 w - - 0 1"
AFTER_E4_E5 = "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
PAWNS_TAKE_KNIGHT = "4k3/8/8/8/8/1n6/1PP5/4K3 w - - 0 1"
HANGING_KNIGHT = "4k3/8/8/3n4/8/8/8/3RK3 w - - 0 1"
TWO_ROOKS_UP = "4k3/8/8/8/3R4/8/8/R3K3 w - - 0 1"
ROOK_ENDING = "4k3/8/8/8/8/8/8/R3K3 w - - 0 1"
ROOK_AND_PASSER = "4k3/8/8/8/8/8/4P3/R3K3 w - - 0 1"

MIDDLEGAME = PositionProfile(phase="middlegame", structure="open", tension="low", advantage="equal")
OPENING = PositionProfile(phase="opening", structure="semi-open", tension="low", advantage="equal")


def _classify(fen: str, uci: str) -> MoveFunction:
    board = chess.Board(fen)
    move = chess.Move.from_uci(uci)
    san = board.san(move)
    after = board.copy(stack=False)
    after.push(move)
    return classify_move_function(board, move, san, after)


class TestMoveFunction:
    def test_castling(self):
        assert _classify(ITALIAN, "e1g1") == MoveFunction.CASTLING

    def test_pawn_advance(self):
        assert _classify(STARTING, "e2e4") == MoveFunction.PAWN_ADVANCE

    def test_developing(self):
        assert _classify(STARTING, "g1f3") == MoveFunction.DEVELOPING

    def test_retreating(self):
        assert _classify(ITALIAN, "c4f1") == MoveFunction.RETREATING

    def test_equal_capture_is_trading(self):
        assert _classify(OPEN_E_FILE, "e1e8") == MoveFunction.TRADING

    def test_empty_square_is_unknown(self):
        board = chess.Board(STARTING)
        move = chess.Move.from_uci("e4e5")
        assert classify_move_function(board, move, "e5", None) == MoveFunction.UNKNOWN


def _principles(fen, uci, best, cp_loss, func):
    board = chess.Board(fen)
    move = chess.Move.from_uci(uci)
    after = board.copy(stack=False)
    after.push(move)
    best_move = chess.Move.from_uci(best) if best else None
    return [v.principle for v in detect_principle_violations(board, after, move, best_move, cp_loss, func)]


class TestPrinciples:
    def test_early_queen(self):
        board = chess.Board(AFTER_E4_E5)
        move = chess.Move.from_uci("d1h5")
        after = board.copy(stack=False)
        after.push(move)
        violations = detect_principle_violations(
            board, after, move, chess.Move.from_uci("g1f3"), 40, MoveFunction.REPOSITIONING,
        )
        assert "Don't Develop the Queen Early" in [v.principle for v in violations]

    def test_developing_knight_is_fine(self):
        board = chess.Board(STARTING)
        move = chess.Move.from_uci("g1f3")
        after = board.copy(stack=False)
        after.push(move)
        assert detect_principle_violations(board, after, move, move, 0, MoveFunction.DEVELOPING) == []

    def test_castle_early(self):
        principles = _principles(ITALIAN, "d2d3", "e1g1", 60, MoveFunction.PAWN_ADVANCE)
        assert "Castle Early for King Safety" in principles

    def test_castling_move_is_not_flagged(self):
        principles = _principles(ITALIAN, "e1g1", "d2d3", 60, MoveFunction.CASTLING)
        assert "Castle Early for King Safety" not in principles

    def test_knight_on_the_rim(self):
        principles = _principles(ITALIAN, "f3h4", "e1g1", 100, MoveFunction.REPOSITIONING)
        assert "Knights and Bishops Belong in the Centre" in principles

    def test_pawn_weakness(self):
        principles = _principles(PAWNS_TAKE_KNIGHT, "c2b3", None, 80, MoveFunction.ATTACKING)
        assert "Don't Create Pawn Weaknesses Without Compensation" in principles

    def test_missed_capture(self):
        principles = _principles(HANGING_KNIGHT, "e1e2", "d1d5", 300, MoveFunction.REPOSITIONING)
        assert "Check for Captures and Threats First" in principles

    def test_retreat_when_ahead(self):
        principles = _principles(TWO_ROOKS_UP, "d4d1", None, 150, MoveFunction.RETREATING)
        assert "When Ahead, Don't Retreat — Attack" in principles

    def test_activate_king(self):
        principles = _principles(ROOK_ENDING, "a1a3", None, 60, MoveFunction.REPOSITIONING)
        assert principles == ["Activate the King in the Endgame"]

    def test_push_passed_pawn(self):
        principles = _principles(ROOK_AND_PASSER, "a1a3", None, 0, MoveFunction.REPOSITIONING)
        assert principles == ["Push Your Passed Pawns"]


class TestContrast:
    def test_pawn_push_versus_development(self):
        board = chess.Board(STARTING)
        best = chess.Move.from_uci("g1f3")
        after = board.copy(stack=False)
        after.push(best)
        insight = generate_contrast_insight(board, MoveFunction.PAWN_ADVANCE, best, "Nf3", after, 50)
        assert insight.startswith("Rather than pushing a pawn, the priority was **Nf3**")

    def test_large_loss_fallback(self):
        board = chess.Board(STARTING)
        best = chess.Move.from_uci("g1f3")
        insight = generate_contrast_insight(board, MoveFunction.ATTACKING, best, "Nf3", None, 250)
        assert insight.startswith("The critical difference is that **Nf3**")

    def test_small_loss_without_template(self):
        board = chess.Board(STARTING)
        best = chess.Move.from_uci("g1f3")
        assert generate_contrast_insight(board, MoveFunction.ATTACKING, best, "Nf3", None, 30) is None

    def test_no_best_move(self):
        board = chess.Board(STARTING)
        assert generate_contrast_insight(board, MoveFunction.ATTACKING, None, None, None, 300) is None


class TestTakeaway:
    def test_violation_tip_wins(self):
        violation = PrincipleViolation(principle="P", explanation="E", tip="Castle first.")
        fork = TacticalTheme(Motif.FORK, "Knight Fork", "d")
        takeaway = generate_coaching_takeaway(OPENING, [violation], [fork], 300)
        assert takeaway == "💡 **Lesson**: Castle first."

    def test_theme_before_phase(self):
        fork = TacticalTheme(Motif.FORK, "Knight Fork", "d")
        takeaway = generate_coaching_takeaway(OPENING, [], [fork], 300)
        assert "knight forks" in takeaway

    def test_phase_lesson(self):
        takeaway = generate_coaching_takeaway(OPENING, [], [], 0)
        assert "three golden rules" in takeaway

    def test_generic_lessons(self):
        assert "What does my opponent do next?" in generate_coaching_takeaway(MIDDLEGAME, [], [], 250)
        assert "checks, captures, or threats" in generate_coaching_takeaway(MIDDLEGAME, [], [], 50)

    def test_how_to_find(self):
        assert how_to_find(MoveFunction.CASTLING).startswith("🧠 **How to find this**: ")
        assert how_to_find(MoveFunction.TRADING) is None
