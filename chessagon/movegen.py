"""Move generation for Gliński's hexagonal chess."""

from typing import List, Set, TYPE_CHECKING

from .board import PAWN_START_TILES, PROMOTION_TYPES, Color, Move, PieceType
from .coordinate import (
    BISHOP_RAYS,
    INDICES,
    KING_TARGETS,
    KNIGHT_TARGETS,
    POSITIONS,
    ROOK_RAYS,
    is_valid,
    step,
)

if TYPE_CHECKING:
    from .board import Board


def _pawn_capture_tiles(tile: int, color: Color) -> List[int]:
    """Tiles a pawn on ``tile`` attacks: one step along (0, d) and (d, 0)."""
    d = color.direction
    pos = POSITIONS[tile]
    targets = []
    for direction in ((0, d), (d, 0)):
        cell = step(pos, direction)
        if is_valid(cell):
            targets.append(INDICES[cell])
    return targets


# PAWN_ATTACKS[color][tile]
PAWN_ATTACKS = tuple(
    [_pawn_capture_tiles(tile, color) for tile in range(len(POSITIONS))]
    for color in Color
)


def _add_pawn_move(moves: List[Move], board: "Board", origin: int, target: int, color: Color,
                   en_passant: bool = False):
    src, dst = POSITIONS[origin], POSITIONS[target]
    if board.is_promotion_tile(target, color):
        for promotion in PROMOTION_TYPES:
            moves.append(Move(src, dst, promotion))
    else:
        moves.append(Move(src, dst, en_passant=en_passant))


def _pawn_moves(board: "Board", tile: int, color: Color, moves: List[Move]):
    squares = board.squares
    d = color.direction
    pos = POSITIONS[tile]

    forward = step(pos, (d, d))
    if is_valid(forward) and squares[INDICES[forward]] is None:
        _add_pawn_move(moves, board, tile, INDICES[forward], color)
        if tile in PAWN_START_TILES[color.value]:
            double = step(pos, (d, d), 2)
            if is_valid(double) and squares[INDICES[double]] is None:
                moves.append(Move(pos, double))

    for target in PAWN_ATTACKS[color.value][tile]:
        victim = squares[target]
        if victim is not None:
            if victim.color != color and victim.piece_type != PieceType.KING:
                _add_pawn_move(moves, board, tile, target, color)
        elif target == board.en_passant:
            _add_pawn_move(moves, board, tile, target, color, en_passant=True)


def _slide(board: "Board", tile: int, color: Color, rays, moves: List[Move]):
    squares = board.squares
    origin = POSITIONS[tile]
    for ray in rays:
        for target in ray:
            occupant = squares[target]
            if occupant is None:
                moves.append(Move(origin, POSITIONS[target]))
                continue
            if occupant.color != color and occupant.piece_type != PieceType.KING:
                moves.append(Move(origin, POSITIONS[target]))
            break


def _jump(board: "Board", tile: int, color: Color, targets, moves: List[Move]):
    squares = board.squares
    origin = POSITIONS[tile]
    for target in targets:
        occupant = squares[target]
        if occupant is None or (occupant.color != color and occupant.piece_type != PieceType.KING):
            moves.append(Move(origin, POSITIONS[target]))


def pseudo_legal_moves(board: "Board") -> List[Move]:
    """Moves for the side to move, ignoring whether they expose the king.

    Kings are never captured; a move onto a king's cell is not generated.
    """
    color = board.side_to_move
    moves: List[Move] = []
    for tile, piece in enumerate(board.squares):
        if piece is None or piece.color != color:
            continue
        kind = piece.piece_type
        if kind == PieceType.PAWN:
            _pawn_moves(board, tile, color, moves)
        elif kind == PieceType.KNIGHT:
            _jump(board, tile, color, KNIGHT_TARGETS[tile], moves)
        elif kind == PieceType.BISHOP:
            _slide(board, tile, color, BISHOP_RAYS[tile], moves)
        elif kind == PieceType.ROOK:
            _slide(board, tile, color, ROOK_RAYS[tile], moves)
        elif kind == PieceType.QUEEN:
            _slide(board, tile, color, ROOK_RAYS[tile], moves)
            _slide(board, tile, color, BISHOP_RAYS[tile], moves)
        else:
            _jump(board, tile, color, KING_TARGETS[tile], moves)
    return moves


def legal_moves(board: "Board") -> List[Move]:
    """Pseudo-legal moves that do not leave the mover's own king attacked."""
    color = board.side_to_move
    legal = []
    for move in pseudo_legal_moves(board):
        token = board.apply(move)
        try:
            if not board.is_in_check(color):
                legal.append(move)
        finally:
            board.undo(token)
    return legal


def has_legal_move(board: "Board") -> bool:
    """Stop at the first legal move instead of collecting them all."""
    color = board.side_to_move
    for move in pseudo_legal_moves(board):
        token = board.apply(move)
        try:
            if not board.is_in_check(color):
                return True
        finally:
            board.undo(token)
    return False


def _ray_hits(board: "Board", rays, by_color: Color, kinds) -> bool:
    squares = board.squares
    for ray in rays:
        for target in ray:
            occupant = squares[target]
            if occupant is None:
                continue
            if occupant.color == by_color and occupant.piece_type in kinds:
                return True
            break
    return False


_ROOK_LIKE = (PieceType.ROOK, PieceType.QUEEN)
_BISHOP_LIKE = (PieceType.BISHOP, PieceType.QUEEN)


def is_attacked(board: "Board", tile: int, by_color: Color) -> bool:
    """Check if any ``by_color`` piece attacks the tile index ``tile``.

    Works backwards from the tile: every move pattern except the pawn's is
    symmetric, and a pawn of ``by_color`` attacks ``tile`` exactly when a pawn
    of the other colour on ``tile`` would attack it.
    """
    squares = board.squares

    for source in PAWN_ATTACKS[by_color.other().value][tile]:
        piece = squares[source]
        if piece is not None and piece.color == by_color and piece.piece_type == PieceType.PAWN:
            return True

    for source in KNIGHT_TARGETS[tile]:
        piece = squares[source]
        if piece is not None and piece.color == by_color and piece.piece_type == PieceType.KNIGHT:
            return True

    for source in KING_TARGETS[tile]:
        piece = squares[source]
        if piece is not None and piece.color == by_color and piece.piece_type == PieceType.KING:
            return True

    if _ray_hits(board, ROOK_RAYS[tile], by_color, _ROOK_LIKE):
        return True
    return _ray_hits(board, BISHOP_RAYS[tile], by_color, _BISHOP_LIKE)


def attacked_tiles(board: "Board", color: Color) -> Set[int]:
    """All tile indices attacked by ``color``, regardless of occupancy."""
    return {tile for tile in range(len(POSITIONS)) if is_attacked(board, tile, color)}
