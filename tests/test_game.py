"""Unit tests for timed games, the matcher, the plain-function API and configuration."""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pydantic import ValidationError

from chessagon import (
    Board, Move, Color, PieceType, Engine, SearchConfig,
    Game, GameStatus, TimeControl, WinReason, DrawReason, match_engines, load_config,
)
from chessagon import api
from chessagon.errors import DrawNotOffered, GameIsFinished, IllegalMove, NoLegalMoves, NotYourTurn


class FakeClock:
    """Manually advanced clock for timing tests."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


OPENING = [(4, 0, 5, 1), (10, 6, 9, 5), (0, 4, 1, 5), (6, 10, 5, 9)]


class TestTimeControl:
    """Test time control presets and budgets."""

    def test_presets(self):
        assert TimeControl.bullet().base_time == (60.0, 60.0)
        assert TimeControl.bullet().increment == (0.0, 0.0)
        assert TimeControl.blitz().base_time == (180.0, 180.0)
        assert TimeControl.blitz().increment == (2.0, 2.0)
        assert TimeControl.rapid().base_time == (600.0, 600.0)
        assert TimeControl.rapid().increment == (5.0, 5.0)

    def test_preset_by_name(self):
        assert TimeControl.preset("blitz") == TimeControl.blitz()
        with pytest.raises(ValueError):
            TimeControl.preset("classical")

    def test_from_minutes(self):
        tc = TimeControl.from_minutes(5, 3)
        assert tc.base_time == (300.0, 300.0)
        assert tc.increment == (3.0, 3.0)

    def test_canonical_duration(self):
        assert TimeControl.blitz().canonical_duration() == 260.0
        assert TimeControl.rapid().canonical_duration() == 800.0

    def test_move_budget(self):
        tc = TimeControl.blitz()
        assert tc.move_budget(300.0) == pytest.approx(11.5)
        # Never more than half of what is left
        assert tc.move_budget(2.0) == pytest.approx(1.0)


class TestGamePlay:
    """Test playing moves through a Game."""

    def test_turns_alternate(self):
        game = Game()
        assert game.turn == Color.WHITE
        game.play(OPENING[0])
        assert game.turn == Color.BLACK

    def test_not_your_turn(self):
        game = Game()
        with pytest.raises(NotYourTurn):
            game.play(OPENING[1], Color.BLACK)

    def test_illegal_move(self):
        game = Game()
        with pytest.raises(IllegalMove):
            game.play((4, 0, 7, 3))
        assert game.moves == []

    def test_wrong_length_tuple(self):
        game = Game()
        with pytest.raises(IllegalMove):
            game.play((4, 0, 5))
        with pytest.raises(IllegalMove):
            game.play((4, 0, 5, 1, 0))
        assert game.moves == []
        assert game.turn == Color.WHITE

    def test_move_tuples(self):
        game = Game()
        for move in OPENING:
            game.play(move)
        assert game.move_tuples() == OPENING
        assert len(game.moves_from(Color.WHITE)) == 2
        assert game.status_code == GameStatus.ONGOING

    def test_checkmate_ends_game(self):
        board = Board({(0, 0): "bK", (2, 6): "wQ", (5, 5): "wK"})
        game = Game(board)
        game.play((2, 6, 2, 2), Color.WHITE)

        assert game.is_finished
        assert game.winner == Color.WHITE
        assert game.result.reason == WinReason.CHECKMATE
        assert game.status_code == 1

        with pytest.raises(GameIsFinished):
            game.play((0, 0, 0, 1))

    def test_stalemate_ends_game(self):
        board = Board({(0, 0): "bK", (1, 4): "wQ", (3, 2): "wK"})
        game = Game(board)
        game.play((1, 4, 1, 3))

        assert game.result.reason == DrawReason.STALEMATE
        assert game.winner is None
        assert game.status_code == 7

    def test_repetition_ends_game(self):
        game = Game()
        shuffle = [(2, 0, 5, 1), (10, 8, 9, 5), (5, 1, 2, 0), (9, 5, 10, 8)]
        for move in shuffle + shuffle:
            game.play(move)
        assert game.result.reason == DrawReason.REPETITION
        assert game.status_code == 8

    def test_resignation(self):
        game = Game()
        game.resign(Color.WHITE)
        assert game.winner == Color.BLACK
        assert game.status_code == 4

    def test_draw_by_agreement(self):
        game = Game()
        game.offer_draw(Color.WHITE)
        with pytest.raises(DrawNotOffered):
            game.accept_draw(Color.WHITE)
        game.accept_draw(Color.BLACK)

        assert game.result.reason == DrawReason.AGREEMENT
        assert game.result.offered_by == Color.WHITE
        assert game.status_code == 10

    def test_accept_without_offer(self):
        game = Game()
        with pytest.raises(DrawNotOffered):
            game.accept_draw(Color.BLACK)

    def test_retract_draw(self):
        game = Game()
        game.offer_draw(Color.BLACK)
        game.retract_draw(Color.BLACK)
        assert game.draw_offer is None


class TestGameClock:
    """Test clock bookkeeping with an injected clock."""

    def test_first_moves_are_free(self):
        clock = FakeClock()
        game = Game(time_control=TimeControl.blitz(), clock=clock)
        clock.now = 5.0
        game.play(OPENING[0])
        clock.now = 12.0
        game.play(OPENING[1])

        assert game.move_duration(0) == 0.0
        assert game.move_duration(1) == 0.0
        assert game.move_duration(2) == pytest.approx(0.0)
        assert game.time_remaining(Color.WHITE) == pytest.approx(182.0)
        assert game.time_remaining(Color.BLACK) == pytest.approx(182.0)

    def test_time_is_charged(self):
        clock = FakeClock()
        game = Game(time_control=TimeControl.blitz(), clock=clock)
        game.play(OPENING[0])
        game.play(OPENING[1])
        clock.now = 15.0
        game.play(OPENING[2])

        assert game.move_duration(2) == pytest.approx(15.0)
        assert game.time_remaining(Color.WHITE) == pytest.approx(180.0 + 2.0 - 15.0 + 2.0)

        clock.now = 25.0
        # Black's clock runs while it thinks
        assert game.time_remaining(Color.BLACK) == pytest.approx(182.0 - 10.0)
        assert game.move_duration(4) is None

    def test_timeout(self):
        clock = FakeClock()
        game = Game(time_control=TimeControl.bullet(), clock=clock)
        game.play(OPENING[0])
        game.play(OPENING[1])
        clock.now = 61.0
        game.play(OPENING[2])

        assert game.result.reason == WinReason.TIMEOUT
        assert game.winner == Color.BLACK
        assert game.status_code == 6

    def test_check_timeout_flags_side_to_move(self):
        clock = FakeClock()
        game = Game(time_control=TimeControl.bullet(), clock=clock)
        game.play(OPENING[0])
        game.play(OPENING[1])
        clock.now = 70.0

        assert game.check_timeout()
        assert game.status_code == GameStatus.BLACK_TIMEOUT

    def test_untimed_game(self):
        game = Game()
        assert game.move_budget() is None
        assert game.time_remaining(Color.WHITE) == float("inf")


class TestMatcher:
    """Test playing two choosers against each other."""

    def test_plies_limit(self):
        def first_move(game):
            return game.board.generate_moves()[0]

        game = match_engines(first_move, first_move, max_plies=4)
        assert len(game.moves) == 4
        assert not game.is_finished

    def test_engine_delivers_mate(self):
        board = Board({(0, 0): "bK", (2, 6): "wQ", (5, 5): "wK"})
        engine = Engine(SearchConfig(max_depth=2))

        game = match_engines(engine, engine, board=board)

        assert len(game.moves) == 1
        assert game.status_code == GameStatus.WHITE_CHECKMATE

    def test_timed_engine_game(self):
        engine = Engine(SearchConfig(max_depth=1))
        game = match_engines(engine, engine, time_control=TimeControl.blitz(), max_plies=2)
        assert len(game.moves) == 2


class TestApi:
    """Test the plain-function interface."""

    def test_new_game(self):
        board = api.new_game()
        assert board.side_to_move == Color.WHITE
        assert len(api.legal_moves(board)) == 51

    def test_apply_move_tuple(self):
        board = api.new_game()
        api.apply_move(board, (4, 0, 6, 2))
        assert board.en_passant_position() == (5, 1)

    def test_apply_illegal_move(self):
        board = api.new_game()
        before = board.snapshot()
        with pytest.raises(IllegalMove):
            api.apply_move(board, (4, 0, 8, 4))
        with pytest.raises(IllegalMove):
            api.apply_move(board, (4, 0, 5))
        assert board.snapshot() == before

    def test_best_move(self):
        board = api.new_game()
        move = api.best_move(board, None, SearchConfig(max_depth=2))
        assert move in api.legal_moves(board)

    def test_best_move_with_time_control(self):
        board = Board({(0, 0): "bK", (2, 6): "wQ", (5, 5): "wK"})
        move = api.best_move(board, TimeControl.rapid(), SearchConfig(max_depth=2))
        api.apply_move(board, move)
        assert api.is_checkmate(board)

    def test_best_move_no_legal_moves(self):
        board = Board({(0, 0): "bK", (2, 2): "wQ", (5, 5): "wK"}, side_to_move=Color.BLACK)
        with pytest.raises(NoLegalMoves):
            api.best_move(board, 1.0)

    def test_status_codes(self):
        assert api.status_code(api.new_game()) == 0
        mate = Board({(0, 0): "bK", (2, 2): "wQ", (5, 5): "wK"}, side_to_move=Color.BLACK)
        assert api.status_code(mate) == 1
        assert api.is_in_check(mate)
        stalemate = Board({(0, 0): "bK", (1, 3): "wQ", (3, 2): "wK"}, side_to_move=Color.BLACK)
        assert api.status_code(stalemate) == 7
        assert api.is_stalemate(stalemate)

    def test_move_tuple_conversion(self):
        board = Board({(0, 1): "wK", (5, 10): "bK", (9, 8): "wP"})
        move = api.move_from_tuple(board, (9, 8, 10, 9))
        assert move.promotion == PieceType.QUEEN
        assert api.move_to_tuple(move) == (9, 8, 10, 9)


class TestConfig:
    """Test configuration loading."""

    def test_defaults(self):
        config = load_config(env={})
        assert config.search.max_depth == 3
        assert config.search.threads == 1
        assert config.evaluation.queen == 900

    def test_environment_overrides(self):
        config = load_config(env={"CHESSAGON_SEARCH_DEPTH": "5", "CHESSAGON_THREADS": "2",
                                  "CHESSAGON_TIME_LIMIT": "1.5"})
        assert config.search.max_depth == 5
        assert config.search.threads == 2
        assert config.search.time_limit == 1.5

    def test_keyword_overrides_environment(self):
        config = load_config(env={"CHESSAGON_SEARCH_DEPTH": "5"}, max_depth=2, threads=None)
        assert config.search.max_depth == 2

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            load_config(env={"CHESSAGON_SEARCH_DEPTH": "0"})
        with pytest.raises(ValidationError):
            load_config(env={"CHESSAGON_THREADS": "many"})
