"""Play two move choosers against each other."""

import logging
from typing import Callable, Optional, Union

from .board import Board, Color, Move
from .engine import Engine
from .game import Game, TimeControl

logger = logging.getLogger(__name__)

MoveChooser = Callable[[Game], Move]


def _as_chooser(player: Union[Engine, MoveChooser]) -> MoveChooser:
    return player.choose_move if isinstance(player, Engine) else player


def match_engines(
    white: Union[Engine, MoveChooser],
    black: Union[Engine, MoveChooser],
    board: Optional[Board] = None,
    time_control: Optional[TimeControl] = None,
    max_plies: int = 400,
) -> Game:
    """Play a game between two players and return it.

    A player is an :class:`Engine` or any callable taking the :class:`Game`
    and returning a move. The game stops at a result, or unfinished after
    ``max_plies`` plies.
    """
    game = Game(board=board, time_control=time_control)
    choosers = {Color.WHITE: _as_chooser(white), Color.BLACK: _as_chooser(black)}

    for ply in range(max_plies):
        if game.is_finished or game.check_timeout():
            break
        color = game.turn
        move = choosers[color](game)
        played = game.play(move, color)
        logger.debug("ply %d: %s plays %s", ply + 1, color, played)

    if game.result is not None:
        logger.info("Game over after %d plies: %s", len(game.moves), game.result)
    else:
        logger.info("Game stopped unfinished after %d plies", len(game.moves))
    return game
