"""Static evaluation of chessagon positions."""

from typing import Optional

import numpy as np

from .board import Board, Color, PieceType
from .config import EvalConfig
from .coordinate import CENTER, POSITIONS, hex_distance, rank, MAX_RANK

# Row of the piece-square table for (color, piece type)
_ROWS = len(Color) * len(PieceType)


def _row(color: Color, piece_type: PieceType) -> int:
    return color.value * len(PieceType) + piece_type.value


class Evaluator:
    """Material plus positional evaluation.

    All terms live in one integer table of shape (12, 91), one row per
    coloured piece type. Black rows hold negated values, so a white-relative
    score is a plain sum over the occupied tiles.
    """

    def __init__(self, config: Optional[EvalConfig] = None):
        self.config = config or EvalConfig()
        self.table = self._build_table(self.config)

    @staticmethod
    def _build_table(config: EvalConfig) -> np.ndarray:
        values = config.piece_values()
        table = np.zeros((_ROWS, len(POSITIONS)), dtype=np.int64)
        centrality = np.array(
            [5 - hex_distance(pos, CENTER) for pos in POSITIONS], dtype=np.int64
        )
        ranks = np.array([rank(pos) for pos in POSITIONS], dtype=np.int64)

        for piece_type in PieceType:
            white = np.full(len(POSITIONS), values[piece_type.name], dtype=np.int64)
            black = white.copy()
            if piece_type == PieceType.PAWN:
                white += ranks * config.pawn_advance_weight
                black += (MAX_RANK - ranks) * config.pawn_advance_weight
            elif piece_type != PieceType.KING:
                white += centrality * config.centrality_weight
                black += centrality * config.centrality_weight
            table[_row(Color.WHITE, piece_type)] = white
            table[_row(Color.BLACK, piece_type)] = -black
        return table

    def evaluate_white(self, board: Board) -> int:
        """Score from white's point of view."""
        rows = []
        tiles = []
        for tile, piece in enumerate(board.squares):
            if piece is not None:
                rows.append(_row(piece.color, piece.piece_type))
                tiles.append(tile)
        return int(self.table[np.asarray(rows, dtype=np.intp), np.asarray(tiles, dtype=np.intp)].sum())

    def evaluate(self, board: Board) -> int:
        """Score from the side to move's point of view."""
        score = self.evaluate_white(board)
        return score if board.side_to_move == Color.WHITE else -score

