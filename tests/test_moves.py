"""Unit tests for move generation."""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chessagon import Board, Move, Color, PieceType, Piece
from chessagon.coordinate import index
from chessagon.errors import IllegalMove
from chessagon.movegen import attacked_tiles, is_attacked, pseudo_legal_moves


def moves_from(board, origin):
    return [m for m in board.generate_moves() if m.origin == origin]


class TestOpeningMoves:
    """Test move counts from the starting position."""

    def test_white_has_51_moves(self):
        assert len(Board().generate_moves()) == 51

    def test_black_has_51_moves(self):
        board = Board(side_to_move=Color.BLACK)
        assert len(board.generate_moves()) == 51

    def test_opening_breakdown(self):
        board = Board()
        counts = {}
        for move in board.generate_moves():
            piece_type = board.at(move.origin).piece_type
            counts[piece_type] = counts.get(piece_type, 0) + 1

        assert counts == {
            PieceType.PAWN: 17,
            PieceType.KNIGHT: 8,
            PieceType.BISHOP: 12,
            PieceType.ROOK: 6,
            PieceType.QUEEN: 6,
            PieceType.KING: 2,
        }

    def test_moves_are_unique(self):
        moves = Board().generate_moves()
        assert len(set(moves)) == len(moves)


class TestPieceMoves:
    """Test individual piece patterns on an open board."""

    def kings(self):
        return {(0, 1): "wK", (9, 10): "bK"}

    def test_rook_on_center(self):
        setup = self.kings()
        setup[(5, 5)] = "wR"
        board = Board(setup)
        # Six rays of five cells each from the centre
        assert len(moves_from(board, (5, 5))) == 30

    def test_bishop_on_center(self):
        setup = self.kings()
        setup[(5, 5)] = "wB"
        board = Board(setup)
        # Each diagonal reaches two cells before leaving the board
        assert len(moves_from(board, (5, 5))) == 12

    def test_knight_on_center(self):
        setup = self.kings()
        setup[(5, 5)] = "wN"
        board = Board(setup)
        assert len(moves_from(board, (5, 5))) == 12

    def test_king_on_center(self):
        board = Board({(5, 5): "wK", (9, 10): "bK"})
        assert len(moves_from(board, (5, 5))) == 12

    def test_king_in_corner(self):
        board = Board({(0, 0): "wK", (9, 10): "bK"})
        targets = {m.target for m in moves_from(board, (0, 0))}
        assert targets == {(0, 1), (1, 1), (1, 0), (2, 1), (1, 2)}

    def test_slider_stops_at_blockers(self):
        setup = self.kings()
        setup[(5, 5)] = "wR"
        setup[(5, 7)] = "wP"
        setup[(7, 7)] = "bP"
        board = Board(setup)
        targets = {m.target for m in moves_from(board, (5, 5))}

        assert (5, 6) in targets
        assert (5, 7) not in targets
        assert (6, 6) in targets
        assert (7, 7) in targets
        assert (8, 8) not in targets

    def test_kings_are_never_captured(self):
        board = Board({(0, 1): "wK", (5, 5): "wR", (5, 8): "bK"}, side_to_move=Color.WHITE)
        assert all(m.target != (5, 8) for m in pseudo_legal_moves(board))


class TestPawnMoves:
    """Test pawn steps, captures, en passant and promotion."""

    def test_single_and_double_step(self):
        board = Board()
        targets = {m.target for m in moves_from(board, (4, 0))}
        assert targets == {(5, 1), (6, 2)}

    def test_double_step_blocked(self):
        """The centre pawn faces the black pawn two steps ahead."""
        board = Board()
        targets = {m.target for m in moves_from(board, (4, 4))}
        assert targets == {(5, 5)}

    def test_no_double_step_off_start(self):
        board = Board({(0, 1): "wK", (9, 10): "bK", (5, 2): "wP"})
        targets = {m.target for m in moves_from(board, (5, 2))}
        assert targets == {(6, 3)}

    def test_double_step_sets_en_passant(self):
        board = Board()
        board.make_move(Move((4, 0), (6, 2)))
        assert board.en_passant_position() == (5, 1)

        board.make_move(Move((10, 6), (9, 5)))
        assert board.en_passant is None

    def test_pawn_captures(self):
        board = Board({(0, 1): "wK", (9, 10): "bK", (5, 5): "wP", (5, 6): "bN", (6, 5): "bR", (6, 6): "bP"})
        targets = {m.target for m in moves_from(board, (5, 5))}
        # Straight step is blocked, both captures available
        assert targets == {(5, 6), (6, 5)}

    def test_black_pawn_direction(self):
        board = Board({(0, 1): "wK", (9, 10): "bK", (5, 5): "bP", (5, 4): "wN"}, side_to_move=Color.BLACK)
        targets = {m.target for m in moves_from(board, (5, 5))}
        assert targets == {(4, 4), (5, 4)}

    def test_en_passant(self):
        board = Board({(0, 1): "wK", (9, 10): "bK", (5, 6): "wP", (6, 8): "bP"}, side_to_move=Color.BLACK)
        board.make_move(Move((6, 8), (4, 6)))
        assert board.en_passant_position() == (5, 7)

        capture = [m for m in moves_from(board, (5, 6)) if m.target == (5, 7)]
        assert len(capture) == 1
        assert capture[0].en_passant

        before = board.snapshot()
        board.make_move(Move((5, 6), (5, 7)))
        assert board.at((5, 7)) == Piece(Color.WHITE, PieceType.PAWN)
        assert board.at((4, 6)) is None
        assert board.material(Color.BLACK) == 0

        board.undo_move()
        assert board.snapshot() == before
        assert board.at((4, 6)) == Piece(Color.BLACK, PieceType.PAWN)

    def test_en_passant_expires(self):
        board = Board(
            {(0, 1): "wK", (9, 10): "bK", (5, 6): "wP", (6, 8): "bP", (3, 0): "wR"},
            side_to_move=Color.BLACK,
        )
        board.make_move(Move((6, 8), (4, 6)))
        board.make_move(Move((3, 0), (3, 1)))
        board.make_move(Move((9, 10), (9, 9)))
        assert all(m.target != (5, 7) for m in moves_from(board, (5, 6)))

    def test_promotion_choices(self):
        board = Board({(0, 1): "wK", (5, 10): "bK", (9, 8): "wP"})
        promotions = {m.promotion for m in moves_from(board, (9, 8))}
        assert promotions == {PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT}

    def test_promotion_defaults_to_queen(self):
        board = Board({(0, 1): "wK", (5, 10): "bK", (9, 8): "wP"})
        move = board.move_from_tuple(9, 8, 10, 9)
        assert move.promotion == PieceType.QUEEN

        board.make_move(Move((9, 8), (10, 9)))
        assert board.at((10, 9)) == Piece(Color.WHITE, PieceType.QUEEN)

    def test_underpromotion(self):
        board = Board({(0, 1): "wK", (5, 10): "bK", (9, 8): "wP"})
        board.make_move(Move((9, 8), (10, 9), PieceType.KNIGHT))
        assert board.at((10, 9)) == Piece(Color.WHITE, PieceType.KNIGHT)

    def test_promotion_requires_piece_on_apply(self):
        board = Board({(0, 1): "wK", (5, 10): "bK", (9, 8): "wP"})
        with pytest.raises(IllegalMove):
            board.apply(Move((9, 8), (10, 9)))


class TestLegality:
    """Test that legal moves never leave the king attacked."""

    def test_legal_moves_never_leave_check(self):
        board = Board()
        line = [Move((4, 2), (5, 3)), Move((8, 6), (7, 5)), Move((1, 0), (3, 2)), Move((7, 5), (6, 4))]
        for move in line:
            board.make_move(move)
            mover = board.side_to_move.other()
            assert not board.is_in_check(mover)
            for reply in board.generate_moves():
                token = board.apply(reply)
                assert not board.is_in_check(board.side_to_move.other())
                board.undo(token)

    def test_pinned_piece_cannot_move_off_line(self):
        board = Board({(0, 1): "wK", (2, 1): "wR", (5, 1): "bR", (9, 10): "bK"})
        targets = {m.target for m in moves_from(board, (2, 1))}
        assert targets == {(1, 1), (3, 1), (4, 1), (5, 1)}

    def test_king_cannot_step_into_attack(self):
        board = Board({(0, 1): "wK", (1, 5): "bR", (9, 10): "bK"})
        targets = {m.target for m in moves_from(board, (0, 1))}
        assert (1, 1) not in targets
        assert (1, 0) not in targets
        assert (0, 2) in targets


class TestAttacks:
    """Test the attack lookup."""

    def test_pawn_attacks(self):
        board = Board({(0, 1): "wK", (9, 10): "bK", (5, 5): "wP"})
        assert is_attacked(board, index((5, 6)), Color.WHITE)
        assert is_attacked(board, index((6, 5)), Color.WHITE)
        assert not is_attacked(board, index((6, 6)), Color.WHITE)

    def test_attacked_tiles_matches_rook_moves(self):
        board = Board({(0, 1): "wK", (9, 10): "bK", (5, 5): "wR"})
        rook_targets = {index(m.target) for m in moves_from(board, (5, 5))}
        assert rook_targets <= attacked_tiles(board, Color.WHITE)
