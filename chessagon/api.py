"""Plain-function interface to the chessagon core.

These are the operations the web front end and the game server call; each
takes and returns ordinary values so callers need not touch engine
internals.
"""

from typing import Optional, Set, Tuple, Union

from .board import Board, Color, Move
from .config import SearchConfig
from .engine import Engine
from .errors import IllegalMove, NoLegalMoves
from .game import GameStatus, TimeControl, result_for_board

MoveTuple = Tuple[int, int, int, int]


def new_game() -> Board:
    """Board with Gliński's starting position, white to move."""
    return Board()


def legal_moves(board: Board) -> Set[Move]:
    return set(board.generate_moves())


def apply_move(board: Board, move: Union[Move, MoveTuple]) -> Board:
    """Play a legal move on ``board`` and return it.

    Raises:
        IllegalMove: If the move is not legal; the board is left unchanged.
    """
    if not isinstance(move, Move):
        if len(move) != 4:
            raise IllegalMove(move, "expected four integers")
        move = Move.from_tuple(move)
    board.make_move(move)
    return board


def best_move(
    board: Board,
    time_budget: Union[float, TimeControl, None] = None,
    config: Optional[SearchConfig] = None,
) -> Move:
    """Search the position and return the chosen move.

    ``time_budget`` is either seconds for this move or a time control, in
    which case the side to move is assumed to have its full base time left.

    Raises:
        NoLegalMoves: If the position is checkmate or stalemate.
    """
    if isinstance(time_budget, TimeControl):
        color = board.side_to_move
        time_budget = time_budget.move_budget(time_budget.base_time[color.value], color)
    engine = Engine(config)
    return engine.search(board, time_limit=time_budget).move


def is_in_check(board: Board, color: Optional[Color] = None) -> bool:
    return board.is_in_check(color)


def is_checkmate(board: Board) -> bool:
    return board.is_checkmate()


def is_stalemate(board: Board) -> bool:
    return board.is_stalemate()


def status_code(board: Board) -> int:
    """Stored game status for the position alone (0 while the game goes on)."""
    result = result_for_board(board)
    return int(GameStatus.ONGOING if result is None else result.status)


def move_to_tuple(move: Move) -> MoveTuple:
    return move.to_tuple()


def move_from_tuple(board: Board, values: MoveTuple) -> Move:
    """Resolve four stored integers into the legal move they denote on ``board``."""
    if len(values) != 4:
        raise IllegalMove(values, "expected four integers")
    return board.move_from_tuple(*values)


__all__ = [
    "new_game", "legal_moves", "apply_move", "best_move",
    "is_in_check", "is_checkmate", "is_stalemate", "status_code",
    "move_to_tuple", "move_from_tuple", "NoLegalMoves",
]
