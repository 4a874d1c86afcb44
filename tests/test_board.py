"""Tests for the board model and geometric attack primitives."""

import chess
import pytest

from position_coach.board import (
    AppliedMove,
    LegalMoves,
    NotApplicable,
    Piece,
    adjacent_squares,
    all_pieces,
    apply_move,
    get_checkers,
    is_attacking,
    is_path_clear,
    legal_moves_for,
    parse_move,
    parse_position,
    piece_at,
    with_side_to_move,
)


# ---------------------------------------------------------------------------
# Test positions (FEN)
# ---------------------------------------------------------------------------

STARTING = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
ITALIAN = "r1bqk1nr/pppp1ppp/2n5/2b1p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"
OPEN_MIDDLEGAME = "r3r1k1/ppp2ppp/2n5/3q4/3P4/2N2Q2/PP3PPP/R3R1K1 w - - 0 1"
ROOK_BLOCKED = "4k3/8/8/4p3/8/8/8/4R1K1 w - - 0 1"
BLACK_IN_CHECK = "4k3/8/8/8/8/8/8/4R1K1 b - - 0 1"


class TestPieces:
    def test_piece_at_empty(self):
        board = chess.Board(STARTING)
        assert piece_at(board, chess.E4) is None

    def test_piece_at_knight(self):
        board = chess.Board(STARTING)
        p = piece_at(board, chess.G1)
        assert p == Piece(chess.KNIGHT, chess.WHITE, chess.G1)
        assert p.name == "knight"
        assert p.title == "Knight"
        assert p.square_name == "g1"

    def test_all_pieces_count(self):
        board = chess.Board(STARTING)
        assert len(all_pieces(board)) == 32
        assert len(all_pieces(board, chess.BLACK)) == 16

    def test_all_pieces_scan_order(self):
        board = chess.Board(STARTING)
        squares = [p.square for p in all_pieces(board, chess.WHITE)][:3]
        # file by file: a1, a2, then b1
        assert squares == [chess.A1, chess.A2, chess.B1]


class TestGeometry:
    def test_knight_pattern(self):
        board = chess.Board(STARTING)
        knight = piece_at(board, chess.G1)
        assert is_attacking(board, chess.G1, knight, chess.F3)
        assert is_attacking(board, chess.G1, knight, chess.E2)
        assert not is_attacking(board, chess.G1, knight, chess.G3)

    def test_pawn_attacks_forward_diagonal_only(self):
        board = chess.Board(STARTING)
        white_pawn = piece_at(board, chess.E2)
        black_pawn = piece_at(board, chess.E7)
        assert is_attacking(board, chess.E2, white_pawn, chess.D3)
        assert not is_attacking(board, chess.E2, white_pawn, chess.E3)
        assert is_attacking(board, chess.E7, black_pawn, chess.F6)
        assert not is_attacking(board, chess.E7, black_pawn, chess.F8)

    def test_rook_blocked(self):
        board = chess.Board(ROOK_BLOCKED)
        rook = piece_at(board, chess.E1)
        assert is_attacking(board, chess.E1, rook, chess.E5)
        assert not is_attacking(board, chess.E1, rook, chess.E8)

    def test_path_clear(self):
        board = chess.Board(ROOK_BLOCKED)
        assert is_path_clear(board, chess.E1, chess.E5)
        assert not is_path_clear(board, chess.E1, chess.E8)

    def test_path_not_on_a_line(self):
        board = chess.Board(ROOK_BLOCKED)
        assert not is_path_clear(board, chess.A1, chess.B3)

    def test_never_attacks_own_square(self):
        board = chess.Board(OPEN_MIDDLEGAME)
        for p in all_pieces(board):
            assert not is_attacking(board, p.square, p, p.square)

    @pytest.mark.parametrize("fen", [STARTING, ITALIAN, OPEN_MIDDLEGAME, ROOK_BLOCKED])
    def test_matches_python_chess_attack_sets(self, fen):
        board = chess.Board(fen)
        for p in all_pieces(board):
            expected = board.attacks(p.square)
            for target in chess.SQUARES:
                assert is_attacking(board, p.square, p, target) == (target in expected), (
                    f"{p.name} on {p.square_name} -> {chess.square_name(target)}"
                )

    def test_adjacent_squares_corner(self):
        assert sorted(adjacent_squares(chess.H8)) == sorted([chess.G8, chess.G7, chess.H7])

    def test_adjacent_squares_center(self):
        assert len(adjacent_squares(chess.E4)) == 8

    def test_get_checkers(self):
        board = chess.Board(BLACK_IN_CHECK)
        checkers = get_checkers(board, chess.E8, chess.WHITE)
        assert [c.square for c in checkers] == [chess.E1]


class TestPositionSource:
    def test_parse_position_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_position("not a fen")

    def test_parse_move_uci_and_san(self):
        board = chess.Board(STARTING)
        assert parse_move(board, "e2e4") == chess.Move.from_uci("e2e4")
        assert parse_move(board, "Nf3") == chess.Move.from_uci("g1f3")

    def test_parse_move_illegal(self):
        board = chess.Board(STARTING)
        with pytest.raises(ValueError):
            parse_move(board, "e2e5")

    def test_apply_move_does_not_mutate(self):
        board = chess.Board(STARTING)
        applied = apply_move(board, chess.Move.from_uci("e2e4"))
        assert isinstance(applied, AppliedMove)
        assert board.fen() == STARTING
        assert applied.san == "e4"
        assert applied.uci == "e2e4"
        assert applied.after.piece_at(chess.E4) == chess.Piece(chess.PAWN, chess.WHITE)

    def test_apply_move_reproduces_push(self):
        board = chess.Board(ITALIAN)
        move = chess.Move.from_uci("f3g5")
        applied = apply_move(board, move)
        pushed = chess.Board(ITALIAN)
        pushed.push(move)
        assert applied.after.board_fen() == pushed.board_fen()

    def test_legal_moves_for_side_on_move(self):
        board = chess.Board(STARTING)
        result = legal_moves_for(board, chess.WHITE)
        assert isinstance(result, LegalMoves)
        assert len(result.moves) == 20

    def test_legal_moves_for_side_not_on_move(self):
        board = chess.Board(STARTING)
        assert isinstance(legal_moves_for(board, chess.BLACK), NotApplicable)

    def test_with_side_to_move_flips_copy(self):
        board = chess.Board(STARTING)
        flipped = with_side_to_move(board, chess.BLACK)
        assert flipped is not None
        assert flipped.turn == chess.BLACK
        assert board.turn == chess.WHITE

    def test_with_side_to_move_refuses_when_opponent_in_check(self):
        board = chess.Board(BLACK_IN_CHECK)
        assert with_side_to_move(board, chess.WHITE) is None
