"""Timed games: clocks, results, draw offers and resignation."""

import time
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .board import Board, Color, Move
from .errors import DrawNotOffered, GameIsFinished, IllegalMove, NotYourTurn

# Moves assumed for a whole game when averaging increments
CANONICAL_MOVES = 40


class TimeControl(BaseModel):
    """Per-colour base time and increment, in seconds, indexed by ``Color.value``."""

    base_time: Tuple[float, float] = Field(default=(600.0, 600.0))
    increment: Tuple[float, float] = Field(default=(5.0, 5.0))

    @classmethod
    def new(cls, base_time: float, increment: float = 0.0) -> "TimeControl":
        return cls(base_time=(base_time, base_time), increment=(increment, increment))

    @classmethod
    def bullet(cls) -> "TimeControl":
        """1+0"""
        return cls.new(60.0)

    @classmethod
    def blitz(cls) -> "TimeControl":
        """3+2"""
        return cls.new(180.0, 2.0)

    @classmethod
    def rapid(cls) -> "TimeControl":
        """10+5"""
        return cls.new(600.0, 5.0)

    @classmethod
    def from_minutes(cls, minutes: float, increment: float) -> "TimeControl":
        """Build from the stored ``tc_minutes`` / ``tc_increment`` pair."""
        return cls.new(minutes * 60.0, increment)

    @classmethod
    def preset(cls, name: str) -> "TimeControl":
        presets = {"bullet": cls.bullet, "blitz": cls.blitz, "rapid": cls.rapid}
        if name not in presets:
            raise ValueError(f"Unknown time control {name!r}, expected one of {sorted(presets)}")
        return presets[name]()

    def canonical_duration(self) -> float:
        """Expected game length per player: base time plus forty increments, averaged."""
        white = self.base_time[0] + self.increment[0] * CANONICAL_MOVES
        black = self.base_time[1] + self.increment[1] * CANONICAL_MOVES
        return (white + black) / 2

    def move_budget(self, remaining: float, color: Color = Color.WHITE) -> float:
        """Seconds to spend on one move given the time left on the clock."""
        budget = remaining / 30 + 0.75 * self.increment[color.value]
        return max(0.0, min(budget, remaining / 2))


class WinReason(Enum):
    CHECKMATE = "checkmate"
    RESIGNATION = "resignation"
    TIMEOUT = "timeout"


class DrawReason(Enum):
    STALEMATE = "stalemate"
    REPETITION = "repetition"
    FIFTY_MOVES = "fifty_moves"
    AGREEMENT = "agreement"


class GameStatus(IntEnum):
    """Status codes as stored alongside finished games."""

    ONGOING = 0
    WHITE_CHECKMATE = 1
    BLACK_CHECKMATE = 2
    WHITE_RESIGNATION = 3
    BLACK_RESIGNATION = 4
    WHITE_TIMEOUT = 5
    BLACK_TIMEOUT = 6
    STALEMATE = 7
    REPETITION = 8
    FIFTY_MOVES = 9
    AGREEMENT = 10


_WIN_STATUS = {
    (Color.WHITE, WinReason.CHECKMATE): GameStatus.WHITE_CHECKMATE,
    (Color.BLACK, WinReason.CHECKMATE): GameStatus.BLACK_CHECKMATE,
    (Color.WHITE, WinReason.RESIGNATION): GameStatus.WHITE_RESIGNATION,
    (Color.BLACK, WinReason.RESIGNATION): GameStatus.BLACK_RESIGNATION,
    (Color.WHITE, WinReason.TIMEOUT): GameStatus.WHITE_TIMEOUT,
    (Color.BLACK, WinReason.TIMEOUT): GameStatus.BLACK_TIMEOUT,
}

_DRAW_STATUS = {
    DrawReason.STALEMATE: GameStatus.STALEMATE,
    DrawReason.REPETITION: GameStatus.REPETITION,
    DrawReason.FIFTY_MOVES: GameStatus.FIFTY_MOVES,
    DrawReason.AGREEMENT: GameStatus.AGREEMENT,
}


@dataclass(frozen=True)
class GameResult:
    """Outcome of a finished game. ``winner`` is None for draws."""

    winner: Optional[Color]
    reason: Union[WinReason, DrawReason]
    offered_by: Optional[Color] = None  # Set for draws by agreement

    @classmethod
    def win(cls, winner: Color, reason: WinReason) -> "GameResult":
        return cls(winner, reason)

    @classmethod
    def draw(cls, reason: DrawReason, offered_by: Optional[Color] = None) -> "GameResult":
        return cls(None, reason, offered_by)

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    @property
    def status(self) -> GameStatus:
        if self.winner is None:
            return _DRAW_STATUS[self.reason]
        return _WIN_STATUS[(self.winner, self.reason)]


def result_for_board(board: Board) -> Optional[GameResult]:
    """The result implied by the position alone, if the game is over."""
    if not board.generate_moves():
        if board.is_in_check(board.side_to_move):
            return GameResult.win(board.side_to_move.other(), WinReason.CHECKMATE)
        return GameResult.draw(DrawReason.STALEMATE)
    if board.is_draw_by_repetition():
        return GameResult.draw(DrawReason.REPETITION)
    if board.is_fifty_move_draw():
        return GameResult.draw(DrawReason.FIFTY_MOVES)
    return None


class Game:
    """A game between two players with an optional clock.

    Moves are stored together with the clock reading at which they were
    played. Each player's first move is free; after that a move costs the
    time since the opponent's previous move.
    """

    def __init__(
        self,
        board: Optional[Board] = None,
        time_control: Optional[TimeControl] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.board = board if board is not None else Board()
        self.time_control = time_control
        self.moves: List[Tuple[Move, float]] = []
        self.result: Optional[GameResult] = None
        self.draw_offer: Optional[Color] = None
        self.first_mover = self.board.side_to_move
        self._clock = clock

    @property
    def turn(self) -> Color:
        return self.board.side_to_move

    def play(self, move, color: Optional[Color] = None) -> Move:
        """Play a move for ``color`` (the side to move when omitted).

        ``move`` may be a :class:`Move` or a 4-tuple of integers.

        Raises:
            NotYourTurn: If ``color`` is not the side to move.
            GameIsFinished: If the game already has a result.
            IllegalMove: If the move is not legal.
        """
        if color is not None and color != self.turn:
            raise NotYourTurn()
        if self.is_finished:
            raise GameIsFinished()
        color = self.turn

        if not isinstance(move, Move):
            if len(move) != 4:
                raise IllegalMove(move, "expected four integers")
            move = Move.from_tuple(move)
        now = self._clock()
        played = self.board.make_move(move)
        self.moves.append((played, now))
        if self.draw_offer == color.other():
            # Playing on declines the offer
            self.draw_offer = None

        if self.time_control is not None and self.time_remaining(color) <= 0:
            self.result = GameResult.win(color.other(), WinReason.TIMEOUT)
        else:
            self.result = result_for_board(self.board)
        return played

    def check_timeout(self) -> bool:
        """Flag the side to move if its clock has run out."""
        if self.is_finished or self.time_control is None:
            return self.is_finished
        if self.time_remaining(self.turn) <= 0:
            self.result = GameResult.win(self.turn.other(), WinReason.TIMEOUT)
            return True
        return False

    def resign(self, color: Color):
        if self.is_finished:
            raise GameIsFinished()
        self.result = GameResult.win(color.other(), WinReason.RESIGNATION)

    def offer_draw(self, color: Color):
        if self.is_finished:
            raise GameIsFinished()
        self.draw_offer = color

    def retract_draw(self, color: Color):
        if self.draw_offer == color:
            self.draw_offer = None

    def accept_draw(self, color: Color):
        if self.is_finished:
            raise GameIsFinished()
        offered_by = self.draw_offer
        if offered_by is None or offered_by == color:
            raise DrawNotOffered()
        self.draw_offer = None
        self.result = GameResult.draw(DrawReason.AGREEMENT, offered_by)

    def moves_from(self, color: Color) -> List[Tuple[Move, float]]:
        """Moves played by one colour, relative to the first mover."""
        start = 0 if color == self.first_mover else 1
        return self.moves[start::2]

    def move_duration(self, i: int) -> Optional[float]:
        """Seconds spent on the ``i``-th move of the game, counting both colours.

        The first move of each player is free. For the move currently being
        thought about the time so far is returned. None if move ``i`` has not
        started yet.
        """
        if i < 2:
            return 0.0 if i < len(self.moves) else None
        if i - 1 >= len(self.moves):
            return None
        start = self.moves[i - 1][1]
        end = self.moves[i][1] if i < len(self.moves) else self._clock()
        return abs(end - start)

    def time_remaining(self, color: Color) -> float:
        """Seconds left on ``color``'s clock, never below zero."""
        if self.time_control is None:
            return float("inf")
        i = 0 if color == self.first_mover else 1
        remaining = self.time_control.base_time[color.value]
        increment = self.time_control.increment[color.value]
        while True:
            duration = self.move_duration(i)
            if duration is None:
                break
            if remaining < duration:
                return 0.0
            remaining -= duration
            if i < len(self.moves):
                remaining += increment
            i += 2
        return remaining

    def move_budget(self) -> Optional[float]:
        """Seconds the side to move should think, or None for untimed games."""
        if self.time_control is None:
            return None
        return self.time_control.move_budget(self.time_remaining(self.turn), self.turn)

    @property
    def winner(self) -> Optional[Color]:
        return None if self.result is None else self.result.winner

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    @property
    def status_code(self) -> int:
        return int(GameStatus.ONGOING if self.result is None else self.result.status)

    def move_tuples(self) -> List[Tuple[int, int, int, int]]:
        """Moves in the four-integer form used for storage."""
        return [move.to_tuple() for move, _ in self.moves]
