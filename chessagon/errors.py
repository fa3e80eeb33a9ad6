"""Exceptions raised by the chessagon core."""

from typing import Optional


class ChessagonError(Exception):
    """Base class for every error raised by the package."""


class OutOfRange(ChessagonError, ValueError):
    """A coordinate or tile index outside the 91-cell board."""

    def __init__(self, value, message: Optional[str] = None):
        self.value = value
        super().__init__(message or f"{value!r} is not on the board")


class IllegalMove(ChessagonError, ValueError):
    """A move that cannot be played in the current position."""

    def __init__(self, move, reason: str):
        self.move = move
        self.reason = reason
        super().__init__(f"Illegal move {move}: {reason}")


class NoLegalMoves(ChessagonError):
    """The side to move has no legal moves (checkmate or stalemate).

    This is a game status rather than an engine failure.
    """

    def __init__(self, checkmate: bool):
        self.checkmate = checkmate
        super().__init__("Checkmate" if checkmate else "Stalemate")


class InvariantViolation(ChessagonError, RuntimeError):
    """Internal board state is inconsistent. Never recoverable."""


class GameActionError(ChessagonError):
    """An action that is not allowed in the current game state."""


class NotYourTurn(GameActionError):
    def __init__(self):
        super().__init__("It is your opponent's turn")


class GameIsFinished(GameActionError):
    def __init__(self):
        super().__init__("Game is finished, cannot do any more moves")


class DrawNotOffered(GameActionError):
    def __init__(self):
        super().__init__("Opponent has not offered a draw")
