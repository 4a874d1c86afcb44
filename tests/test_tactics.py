"""Tests for the tactical motif detectors."""

import chess

from position_coach.analysis.tactics import (
    Motif,
    MoveContext,
    detect_fork,
    detect_hanging_pieces,
    detect_pins,
    detect_skewers,
    detect_tactical_themes,
    is_double_check,
    is_piece_trapped,
)
from position_coach.analysis.tactics.combinations import (
    detect_attraction,
    detect_capturing_defender,
    detect_clearance,
    detect_deflection,
    detect_intermezzo,
    detect_interference,
)
from position_coach.analysis.tactics.rays import detect_discovered_attack, detect_xrays
from position_coach.analysis.tactics.threats import (
    back_rank_mate_threat,
    hangs_material,
    walks_into_fork,
    walks_into_pin,
)
from position_coach.board import apply_move, piece_at


# ---------------------------------------------------------------------------
# Test positions (FEN)
# ---------------------------------------------------------------------------

KNIGHT_FORK_SETUP = "3q2k1/r7/8/8/3N4/8/8/6K1 w - - 0 1"
PIN_POSITION = "4k3/8/8/8/4n3/8/8/4R2K w - - 0 1"
PIN_DOUBLE_BLOCKED = "4k3/8/4p3/8/4n3/8/8/4R2K w - - 0 1"
KING_SKEWER = "8/8/8/8/R3k2q/8/8/K7 b - - 0 1"
QUEEN_SKEWER = "7k/8/8/8/R2q3r/8/8/1K6 b - - 0 1"
HANGING_KNIGHT = "4k3/8/8/3n4/8/8/8/3RK3 w - - 0 1"
TRAPPED_BISHOP = "2r1k3/B1p5/1p6/8/8/8/8/4K3 b - - 0 1"
BLACK_IN_CHECK = "4k3/8/8/8/8/8/8/4R1K1 b - - 0 1"
ITALIAN = "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"
PROMOTION = "8/4P3/8/8/8/8/k7/4K3 w - - 0 1"
SMOTHERED_SETUP = "6rk/6pp/8/6N1/8/8/8/6K1 w - - 0 1"
DOUBLE_CHECK_SETUP = "4k3/8/8/8/4N3/8/8/4R1K1 w - - 0 1"

TAKE_THE_GUARD = "7k/1b6/8/n7/8/8/8/R5K1 w - - 0 1"
TAKE_THE_GUARD_WITH_QUEEN = "7k/1b6/8/n7/8/8/8/R2Q2K1 w - - 0 1"
BISHOP_SAC_F7 = "6k1/R2n1p2/8/8/2B5/8/8/6K1 w - - 0 1"
OVERLOADED_KNIGHT = "7k/4b3/2n5/8/8/8/8/R5K1 w - - 0 1"
CONNECTED_ROOKS = "7k/8/8/r6r/8/5N2/8/6K1 w - - 0 1"
KNIGHT_BLOCKS_ROOK = "7k/8/8/8/8/8/7K/R2N4 w - - 0 1"
ROOK_BEHIND_KNIGHT = "q6k/8/8/8/n7/8/8/R5K1 w - - 0 1"
KNIGHT_IN_FRONT_OF_ROOK = "7k/q7/8/8/8/N7/8/R6K w - - 0 1"

HANGING_AFTER_NE4 = "4k3/8/8/3p4/8/6N1/8/4K3 w - - 0 1"
FORK_AFTER_KE1 = "7k/8/8/8/3n4/8/8/R4K2 w - - 0 1"
PIN_AFTER_KE1 = "4r2k/8/8/8/8/8/4N3/3K4 w - - 0 1"
BACK_RANK_AFTER_RD3 = "4r2k/8/8/8/8/8/5PPP/3R2K1 w - - 0 1"


def _themes(fen: str, uci: str, *, user: bool = False, cp_loss: float = 0):
    board = chess.Board(fen)
    applied = apply_move(board, chess.Move.from_uci(uci))
    return detect_tactical_themes(board, applied, MoveContext(is_user_move=user, cp_loss=cp_loss))


class TestFork:
    def test_knight_fork_after_nc6(self):
        board = chess.Board(KNIGHT_FORK_SETUP)
        after = apply_move(board, chess.Move.from_uci("d4c6")).after
        knight = piece_at(after, chess.C6)
        forked = detect_fork(after, chess.C6, knight)
        assert [p.square for p in forked] == [chess.A7, chess.D8]

    def test_fork_theme_named_by_piece(self):
        themes = _themes(KNIGHT_FORK_SETUP, "d4c6")
        forks = [t for t in themes if t.motif == Motif.FORK]
        assert len(forks) == 1
        assert forks[0].name == "Knight Fork"
        assert forks[0].description == "The knight on c6 attacks both the Rook and Queen"

    def test_fork_never_targets_own_side_or_twice(self):
        board = chess.Board(KNIGHT_FORK_SETUP)
        after = apply_move(board, chess.Move.from_uci("d4c6")).after
        knight = piece_at(after, chess.C6)
        forked = detect_fork(after, chess.C6, knight)
        assert all(p.color == chess.BLACK for p in forked)
        assert len({p.square for p in forked}) == len(forked)


class TestPinsAndSkewers:
    def test_pin_to_king(self):
        pins = detect_pins(chess.Board(PIN_POSITION), chess.BLACK)
        assert len(pins) == 1
        pin = pins[0]
        assert pin.pinner.square == chess.E1
        assert pin.pinned.square == chess.E4
        assert pin.target.square == chess.E8

    def test_second_blocker_suppresses_pin(self):
        assert detect_pins(chess.Board(PIN_DOUBLE_BLOCKED), chess.BLACK) == []

    def test_no_pin_against_own_color(self):
        assert detect_pins(chess.Board(PIN_POSITION), chess.WHITE) == []

    def test_king_in_front_is_not_a_skewer(self):
        assert detect_skewers(chess.Board(KING_SKEWER), chess.WHITE) == []

    def test_queen_skewer(self):
        skewers = detect_skewers(chess.Board(QUEEN_SKEWER), chess.WHITE)
        assert len(skewers) == 1
        assert skewers[0].front.square == chess.D4
        assert skewers[0].behind.square == chess.H4

    def test_xray_through_knight(self):
        xrays = detect_xrays(chess.Board(ROOK_BEHIND_KNIGHT), chess.WHITE)
        assert len(xrays) == 1
        assert xrays[0].through.square == chess.A4
        assert xrays[0].target == chess.A8

    def test_discovered_attack(self):
        before = chess.Board(KNIGHT_IN_FRONT_OF_ROOK)
        after = apply_move(before, chess.Move.from_uci("a3b5")).after
        assert detect_discovered_attack(before, after, chess.A3, chess.WHITE) == (
            "Moving the piece from a3 uncovers an attack by the rook on a1 against the queen on a7"
        )


class TestHangingAndTrapped:
    def test_hanging_knight(self):
        hanging = detect_hanging_pieces(chess.Board(HANGING_KNIGHT), chess.BLACK)
        assert [p.square for p in hanging] == [chess.D5]

    def test_hanging_needs_opponent_on_move(self):
        assert detect_hanging_pieces(chess.Board(HANGING_KNIGHT), chess.WHITE) == []

    def test_trapped_bishop(self):
        assert is_piece_trapped(chess.Board(TRAPPED_BISHOP), chess.A7, chess.WHITE)

    def test_not_trapped_in_open_board(self):
        assert not is_piece_trapped(chess.Board(ITALIAN), chess.C4, chess.WHITE)

    def test_trapped_degrades_when_side_cannot_move(self):
        assert not is_piece_trapped(chess.Board(BLACK_IN_CHECK), chess.E1, chess.WHITE)


class TestThemes:
    def test_castling(self):
        themes = _themes(ITALIAN, "e1g1")
        castling = [t for t in themes if t.motif == Motif.CASTLING]
        assert castling[0].description == "Castles kingside — securing the king and activating the rook"

    def test_promotion_and_underpromotion(self):
        promoted = {t.motif for t in _themes(PROMOTION, "e7e8q")}
        under = {t.motif for t in _themes(PROMOTION, "e7e8n")}
        assert Motif.PROMOTION in promoted
        assert Motif.UNDERPROMOTION not in promoted
        assert Motif.UNDERPROMOTION in under

    def test_smothered_mate_themes(self):
        themes = _themes(SMOTHERED_SETUP, "g5f7")
        names = [t.name for t in themes]
        assert "Check" in names
        assert "Checkmate" in names
        assert "Smothered Mate" in names
        assert names.index("Check") < names.index("Smothered Mate")

    def test_double_check(self):
        board = chess.Board(DOUBLE_CHECK_SETUP)
        move = chess.Move.from_uci("e4f6")
        after = apply_move(board, move).after
        assert is_double_check(board, move, after)
        motifs = {t.motif for t in _themes(DOUBLE_CHECK_SETUP, "e4f6")}
        assert Motif.DOUBLE_CHECK in motifs

    def test_discovered_check(self):
        board = chess.Board(DOUBLE_CHECK_SETUP)
        move = chess.Move.from_uci("e4c3")
        after = apply_move(board, move).after
        assert not is_double_check(board, move, after)
        motifs = {t.motif for t in _themes(DOUBLE_CHECK_SETUP, "e4c3")}
        assert Motif.DISCOVERED_CHECK in motifs
        assert Motif.DOUBLE_CHECK not in motifs

    def test_user_move_eval_swing(self):
        themes = _themes(ITALIAN, "d2d3", user=True, cp_loss=650)
        assert Motif.CRUSHING in {t.motif for t in themes}

    def test_best_move_gets_no_eval_swing(self):
        themes = _themes(ITALIAN, "d2d3")
        assert not {Motif.CRUSHING, Motif.ADVANTAGE, Motif.EQUALITY} & {t.motif for t in themes}

    def test_pure(self):
        assert _themes(ITALIAN, "f3g5") == _themes(ITALIAN, "f3g5")


def _applied(fen: str, uci: str):
    board = chess.Board(fen)
    move = chess.Move.from_uci(uci)
    return board, apply_move(board, move).after, move


class TestCombinations:
    def test_capturing_the_defender(self):
        before, after, move = _applied(TAKE_THE_GUARD, "a1a5")
        assert detect_capturing_defender(before, after, move) == (
            "Captures the knight on a5, which was the key defender of the bishop on b7 — now it's unprotected"
        )

    def test_attraction_into_pin(self):
        # Bxf7+ Kxf7 leaves the knight pinned by the rook on the seventh
        before, after, move = _applied(BISHOP_SAC_F7, "c4f7")
        assert detect_attraction(before, after, move) == (
            "The sacrifice on f7 draws the opponent's piece into a pin"
        )

    def test_quiet_move_is_not_attraction(self):
        before, after, move = _applied(BISHOP_SAC_F7, "c4d5")
        assert detect_attraction(before, after, move) is None

    def test_deflection(self):
        before, after, move = _applied(OVERLOADED_KNIGHT, "a1a6")
        assert detect_deflection(before, after, move) == (
            "Attacks the knight on c6, deflecting it from defending the bishop on e7"
        )

    def test_interference_on_rank(self):
        before, after, move = _applied(CONNECTED_ROOKS, "f3e5")
        assert detect_interference(before, after, move) == (
            "Places a piece on e5 between the opponent's rook on a5 and rook on h5, cutting their connection"
        )

    def test_clearance(self):
        before, after, move = _applied(KNIGHT_BLOCKS_ROOK, "d1e3")
        assert detect_clearance(before, after, move) == (
            "Clears the line for the rook on a1, which now has access to the rank"
        )

    def test_intermezzo_check(self):
        board = chess.Board(TAKE_THE_GUARD_WITH_QUEEN)
        played = chess.Move.from_uci("a1a5")
        best = chess.Move.from_uci("d1d4")
        text = detect_intermezzo(board, played, best)
        assert text.startswith("Instead of recapturing on a5, the in-between check **Qd4+**")

    def test_intermezzo_needs_capture(self):
        board = chess.Board(TAKE_THE_GUARD_WITH_QUEEN)
        played = chess.Move.from_uci("d1d2")
        best = chess.Move.from_uci("d1d4")
        assert detect_intermezzo(board, played, best) is None


class TestOpponentThreats:
    def test_hangs_material(self):
        _, after, _ = _applied(HANGING_AFTER_NE4, "g3e4")
        theme = hangs_material(after)
        assert theme.motif == Motif.HANGS_MATERIAL
        assert "**dxe4**" in theme.description

    def test_walks_into_fork(self):
        _, after, _ = _applied(FORK_AFTER_KE1, "f1e1")
        theme = walks_into_fork(after)
        assert theme.motif == Motif.WALKS_INTO_FORK
        assert "**Nc2+**" in theme.description

    def test_walks_into_pin(self):
        before, after, _ = _applied(PIN_AFTER_KE1, "d1e1")
        theme = walks_into_pin(before, after, chess.WHITE)
        assert theme.motif == Motif.WALKS_INTO_PIN
        assert "rook on e8 to pin your knight on e2" in theme.description

    def test_back_rank_mate_threat(self):
        _, after, _ = _applied(BACK_RANK_AFTER_RD3, "d1d3")
        theme = back_rank_mate_threat(after, chess.WHITE)
        assert theme.motif == Motif.BACK_RANK_MATE_THREAT
        assert "**Re1#**" in theme.description

    def test_guarded_back_rank(self):
        _, after, _ = _applied(BACK_RANK_AFTER_RD3, "d1c1")
        assert back_rank_mate_threat(after, chess.WHITE) is None

    def test_threats_on_user_blunder(self):
        cases = [
            (HANGING_AFTER_NE4, "g3e4", Motif.HANGS_MATERIAL),
            (FORK_AFTER_KE1, "f1e1", Motif.WALKS_INTO_FORK),
            (PIN_AFTER_KE1, "d1e1", Motif.WALKS_INTO_PIN),
            (BACK_RANK_AFTER_RD3, "d1d3", Motif.BACK_RANK_MATE_THREAT),
        ]
        for fen, uci, motif in cases:
            motifs = {t.motif for t in _themes(fen, uci, user=True, cp_loss=200)}
            assert motif in motifs, uci

    def test_no_threats_on_small_loss(self):
        motifs = {t.motif for t in _themes(HANGING_AFTER_NE4, "g3e4", user=True, cp_loss=50)}
        assert Motif.HANGS_MATERIAL not in motifs

    def test_no_threats_on_best_move(self):
        motifs = {t.motif for t in _themes(FORK_AFTER_KE1, "f1e1", cp_loss=200)}
        assert Motif.WALKS_INTO_FORK not in motifs
