"""Zobrist hashing for fast position fingerprints.

Zobrist hashing XORs together random 64-bit integers, one per feature of the
position. Because XOR is self-inverse the fingerprint can be updated
incrementally when a move is applied or undone.

Features hashed:
- Each piece type of each colour on each of the 91 tiles
- Side to move
- En-passant target tile (two positions that differ only in that right must
  not share a fingerprint)
"""

import random
from typing import Optional, TYPE_CHECKING

from .coordinate import NUMBER_OF_TILES

if TYPE_CHECKING:
    from .board import Board

# Fixed seed so fingerprints are stable across runs
ZOBRIST_SEED = 0x4845584147304E


class ZobristHash:
    """Zobrist keys for chessagon positions.

    Keys are laid out as ``piece_keys[color][piece_type][tile_index]``, with
    colour and piece type given by their enum values.
    """

    COLORS = 2
    PIECE_TYPES = 6

    def __init__(self, seed: int = ZOBRIST_SEED):
        rng = random.Random(seed)
        self.piece_keys = [
            [
                [rng.getrandbits(64) for _ in range(NUMBER_OF_TILES)]
                for _ in range(self.PIECE_TYPES)
            ]
            for _ in range(self.COLORS)
        ]
        # XOR'd in when black is to move
        self.side_key = rng.getrandbits(64)
        self.en_passant_keys = [rng.getrandbits(64) for _ in range(NUMBER_OF_TILES)]

    def piece_key(self, color: int, piece_type: int, tile: int) -> int:
        """Key for a piece of the given colour and type on a tile index."""
        return self.piece_keys[color][piece_type][tile]

    def compute_hash(self, board: "Board") -> int:
        """Compute the full fingerprint of a board from scratch."""
        from .board import Color

        h = 0
        for tile, piece in enumerate(board.squares):
            if piece is not None:
                h ^= self.piece_keys[piece.color.value][piece.piece_type.value][tile]

        if board.side_to_move == Color.BLACK:
            h ^= self.side_key

        if board.en_passant is not None:
            h ^= self.en_passant_keys[board.en_passant]

        return h


_zobrist_instance: Optional[ZobristHash] = None


def get_zobrist() -> ZobristHash:
    """Get the shared Zobrist key set, creating it on first use."""
    global _zobrist_instance
    if _zobrist_instance is None:
        _zobrist_instance = ZobristHash()
    return _zobrist_instance
