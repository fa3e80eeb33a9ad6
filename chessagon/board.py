"""Chessagon board representation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .coordinate import (
    MIRROR_INDEX,
    NUMBER_OF_TILES,
    POSITIONS,
    Position,
    file,
    index,
    is_valid,
    mirror,
    rank,
    step,
)
from .errors import IllegalMove, InvariantViolation
from .zobrist import get_zobrist


class Color(Enum):
    """Player colours."""

    WHITE = 0  # Moves first, starts at the low ranks
    BLACK = 1

    @property
    def direction(self) -> int:
        """The sign of a forward step: 1 for white, -1 for black."""
        return 1 if self == Color.WHITE else -1

    def other(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE

    def __str__(self) -> str:
        return self.name.lower()


class PieceType(Enum):
    """Piece types."""

    PAWN = 0
    KNIGHT = 1
    BISHOP = 2
    ROOK = 3
    QUEEN = 4
    KING = 5

    @property
    def letter(self) -> str:
        return "N" if self == PieceType.KNIGHT else self.name[0]

    @classmethod
    def from_letter(cls, letter: str) -> "PieceType":
        for piece_type in cls:
            if piece_type.letter == letter.upper():
                return piece_type
        raise ValueError(f"Unknown piece letter {letter!r}")


PROMOTION_TYPES = (PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT)

# Conventional values in centipawns
PIECE_VALUES = {
    PieceType.PAWN: 100,
    PieceType.KNIGHT: 300,
    PieceType.BISHOP: 300,
    PieceType.ROOK: 500,
    PieceType.QUEEN: 900,
    PieceType.KING: 0,
}


@dataclass(frozen=True)
class Piece:
    """Represents a piece on the board."""

    color: Color
    piece_type: PieceType

    @property
    def code(self) -> str:
        """Two-letter code such as ``wK`` or ``bP``."""
        return ("w" if self.color == Color.WHITE else "b") + self.piece_type.letter

    @property
    def symbol(self) -> str:
        """Single letter, upper case for white."""
        letter = self.piece_type.letter
        return letter if self.color == Color.WHITE else letter.lower()

    @classmethod
    def from_code(cls, code: str) -> "Piece":
        if len(code) != 2 or code[0] not in "wb":
            raise ValueError(f"Invalid piece code {code!r}")
        color = Color.WHITE if code[0] == "w" else Color.BLACK
        return cls(color, PieceType.from_letter(code[1]))

    def __str__(self) -> str:
        return f"{self.color}_{self.piece_type.name.lower()}"


@dataclass(frozen=True)
class Move:
    """Represents a move.

    Only origin, target and promotion take part in equality. The en-passant
    flag is re-derived from the board when a move is resolved.
    """

    origin: Position
    target: Position
    promotion: Optional[PieceType] = None
    en_passant: bool = field(default=False, compare=False)

    def to_tuple(self) -> Tuple[int, int, int, int]:
        """The ``(origin_x, origin_y, target_x, target_y)`` form used for storage."""
        return (self.origin[0], self.origin[1], self.target[0], self.target[1])

    @classmethod
    def from_tuple(cls, values) -> "Move":
        """Build a plain move from four integers.

        Use :meth:`Board.move_from_tuple` to re-derive promotion and en
        passant from a position.
        """
        ox, oy, tx, ty = (int(v) for v in values)
        return cls((ox, oy), (tx, ty))

    def __str__(self) -> str:
        text = f"{self.origin[0]},{self.origin[1]}-{self.target[0]},{self.target[1]}"
        if self.promotion is not None:
            text += f"={self.promotion.letter}"
        return text


@dataclass(frozen=True)
class UndoToken:
    """Everything :meth:`Board.undo` needs to restore the prior state."""

    move: Move
    piece: Piece
    captured: Optional[Piece]
    captured_tile: int
    en_passant: Optional[int]
    halfmove_clock: int
    zobrist_hash: int


# Starting cells, white side. Black uses the mirrored cells.
WHITE_SETUP: Dict[Position, PieceType] = {
    (0, 1): PieceType.KING,
    (1, 0): PieceType.QUEEN,
    (0, 0): PieceType.BISHOP,
    (1, 1): PieceType.BISHOP,
    (2, 2): PieceType.BISHOP,
    (0, 2): PieceType.KNIGHT,
    (2, 0): PieceType.KNIGHT,
    (0, 3): PieceType.ROOK,
    (3, 0): PieceType.ROOK,
}

WHITE_PAWN_CELLS: Tuple[Position, ...] = (
    (4, 0), (4, 1), (4, 2), (4, 3), (4, 4), (3, 4), (2, 4), (1, 4), (0, 4),
)

# Tiles from which a pawn of each colour may double step
PAWN_START_TILES = (
    frozenset(index(p) for p in WHITE_PAWN_CELLS),
    frozenset(index(mirror(p)) for p in WHITE_PAWN_CELLS),
)

# Tiles with no further straight step: reaching one promotes
PROMOTION_TILES = tuple(
    frozenset(
        i for i, pos in enumerate(POSITIONS)
        if not is_valid(step(pos, (color.direction, color.direction)))
    )
    for color in Color
)


class Board:
    """Chessagon board representation.

    Tiles are stored in a flat list of 91 entries indexed through
    :mod:`chessagon.coordinate`. State changes only through :meth:`apply`
    and :meth:`undo` (or :meth:`make_move` / :meth:`undo_move` for callers
    that want legality checked).
    """

    def __init__(
        self,
        custom_setup: Optional[Dict[Position, str]] = None,
        side_to_move: Color = Color.WHITE,
    ):
        """Initialize a board.

        Args:
            custom_setup: Optional mapping of cells to piece codes, e.g.
                ``{(0, 1): "wK", (9, 10): "bK"}``. The standard starting
                position is used when omitted.
            side_to_move: Colour to move first.
        """
        self.squares: List[Optional[Piece]] = [None] * NUMBER_OF_TILES
        self.side_to_move = side_to_move
        self.en_passant: Optional[int] = None  # Tile skipped by a double step
        self.halfmove_clock = 0  # Plies since the last pawn move or capture
        self.ply = 0
        self.move_history: List[Move] = []
        self.position_history: List[int] = []
        self._undo_stack: List[UndoToken] = []
        self._zobrist = get_zobrist()

        if custom_setup is not None:
            self._initialize_custom_position(custom_setup)
        else:
            self._initialize_starting_position()

        self._king_tiles = self._find_kings()
        self._current_hash = self._zobrist.compute_hash(self)
        self.position_history.append(self._current_hash)

    @classmethod
    def empty(cls, side_to_move: Color = Color.WHITE) -> "Board":
        return cls(custom_setup={}, side_to_move=side_to_move)

    def _initialize_starting_position(self):
        """Set up Gliński's starting position."""
        for pos, piece_type in WHITE_SETUP.items():
            self.squares[index(pos)] = Piece(Color.WHITE, piece_type)
            self.squares[index(mirror(pos))] = Piece(Color.BLACK, piece_type)

        for pos in WHITE_PAWN_CELLS:
            self.squares[index(pos)] = Piece(Color.WHITE, PieceType.PAWN)
            self.squares[index(mirror(pos))] = Piece(Color.BLACK, PieceType.PAWN)

    def _initialize_custom_position(self, custom_setup: Dict[Position, str]):
        for pos, code in custom_setup.items():
            self.squares[index(tuple(pos))] = Piece.from_code(code)

    def _find_kings(self) -> List[Optional[int]]:
        kings: List[Optional[int]] = [None, None]
        for tile, piece in enumerate(self.squares):
            if piece is not None and piece.piece_type == PieceType.KING:
                if kings[piece.color.value] is not None:
                    raise InvariantViolation(f"More than one {piece.color} king")
                kings[piece.color.value] = tile
        return kings

    # --- Queries ---------------------------------------------------------

    def at(self, pos: Position) -> Optional[Piece]:
        """Get the piece on a cell, if any."""
        return self.squares[index(pos)]

    def get_zobrist_hash(self) -> int:
        """The position fingerprint, maintained incrementally."""
        return self._current_hash

    def king_position(self, color: Color) -> Optional[Position]:
        tile = self._king_tiles[color.value]
        return None if tile is None else POSITIONS[tile]

    def king_tile(self, color: Color) -> Optional[int]:
        return self._king_tiles[color.value]

    def pieces(self, color: Optional[Color] = None) -> Iterator[Tuple[Position, Piece]]:
        """Yield ``(position, piece)`` pairs, optionally for one colour."""
        for tile, piece in enumerate(self.squares):
            if piece is not None and (color is None or piece.color == color):
                yield POSITIONS[tile], piece

    def material(self, color: Color) -> int:
        """Sum of conventional piece values for one side."""
        return sum(PIECE_VALUES[p.piece_type] for _, p in self.pieces(color))

    def en_passant_position(self) -> Optional[Position]:
        return None if self.en_passant is None else POSITIONS[self.en_passant]

    def is_promotion_tile(self, tile: int, color: Color) -> bool:
        return tile in PROMOTION_TILES[color.value]

    # --- Applying moves --------------------------------------------------

    def apply(self, move: Move) -> UndoToken:
        """Apply a move, checking only structural preconditions.

        Whether the move leaves the mover's king attacked is not checked
        here; that is the move generator's job.

        Returns:
            Token to pass to :meth:`undo`.

        Raises:
            IllegalMove: origin not holding a piece of the side to move,
                target holding an own piece or a king, or a malformed
                promotion / en-passant capture.
        """
        origin = index(move.origin)
        target = index(move.target)
        if origin == target:
            raise IllegalMove(move, "origin and target are the same tile")

        piece = self.squares[origin]
        if piece is None:
            raise IllegalMove(move, f"there is no piece on {move.origin}")
        if piece.color != self.side_to_move:
            raise IllegalMove(move, f"the piece on {move.origin} is {piece.color}")

        captured = self.squares[target]
        captured_tile = target
        if captured is not None:
            if captured.color == piece.color:
                raise IllegalMove(move, "cannot capture a piece of your own colour")
            if captured.piece_type == PieceType.KING:
                raise IllegalMove(move, "kings cannot be captured")

        is_pawn = piece.piece_type == PieceType.PAWN
        d = piece.color.direction
        delta = (move.target[0] - move.origin[0], move.target[1] - move.origin[1])

        if is_pawn and captured is None and target == self.en_passant and delta in ((0, d), (d, 0)):
            captured_tile = index(step(move.target, (-d, -d)))
            captured = self.squares[captured_tile]
            if captured is None or captured.piece_type != PieceType.PAWN or captured.color == piece.color:
                raise IllegalMove(move, "no pawn to capture en passant")

        placed = piece
        if move.promotion is not None:
            if not is_pawn or not self.is_promotion_tile(target, piece.color):
                raise IllegalMove(move, "only pawns reaching the last cell of a file promote")
            if move.promotion not in PROMOTION_TYPES:
                raise IllegalMove(move, f"cannot promote to {move.promotion.name.lower()}")
            placed = Piece(piece.color, move.promotion)
        elif is_pawn and self.is_promotion_tile(target, piece.color):
            raise IllegalMove(move, "a promotion piece is required")

        token = UndoToken(
            move=move,
            piece=piece,
            captured=captured,
            captured_tile=captured_tile,
            en_passant=self.en_passant,
            halfmove_clock=self.halfmove_clock,
            zobrist_hash=self._current_hash,
        )

        z = self._zobrist
        h = self._current_hash
        color = piece.color.value

        self.squares[origin] = None
        h ^= z.piece_keys[color][piece.piece_type.value][origin]
        if captured is not None:
            self.squares[captured_tile] = None
            h ^= z.piece_keys[captured.color.value][captured.piece_type.value][captured_tile]
        self.squares[target] = placed
        h ^= z.piece_keys[color][placed.piece_type.value][target]

        if piece.piece_type == PieceType.KING:
            self._king_tiles[color] = target

        if self.en_passant is not None:
            h ^= z.en_passant_keys[self.en_passant]
        self.en_passant = None
        if is_pawn and delta == (2 * d, 2 * d):
            self.en_passant = index(step(move.origin, (d, d)))
            h ^= z.en_passant_keys[self.en_passant]

        self.halfmove_clock = 0 if is_pawn or captured is not None else self.halfmove_clock + 1
        self.side_to_move = self.side_to_move.other()
        h ^= z.side_key
        self.ply += 1

        self._current_hash = h
        self.move_history.append(move)
        self.position_history.append(h)
        self._undo_stack.append(token)
        return token

    def undo(self, token: UndoToken) -> None:
        """Restore the state from before the move that produced ``token``.

        Tokens must be undone in reverse order of application.
        """
        if not self._undo_stack or self._undo_stack[-1] is not token:
            raise InvariantViolation("Undo tokens must be used in reverse order of application")
        self._undo_stack.pop()
        self.move_history.pop()
        self.position_history.pop()

        origin = index(token.move.origin)
        target = index(token.move.target)
        self.squares[target] = None
        self.squares[origin] = token.piece
        if token.captured is not None:
            self.squares[token.captured_tile] = token.captured
        if token.piece.piece_type == PieceType.KING:
            self._king_tiles[token.piece.color.value] = origin

        self.en_passant = token.en_passant
        self.halfmove_clock = token.halfmove_clock
        self.side_to_move = self.side_to_move.other()
        self.ply -= 1
        self._current_hash = token.zobrist_hash

    def make_move(self, move: Move) -> Move:
        """Play a move after checking it is legal.

        A move without a promotion piece that reaches the last cell of its
        file promotes to a queen.

        Returns:
            The move as it was applied (with promotion and en-passant
            information filled in).

        Raises:
            IllegalMove: If the move is not legal in this position.
        """
        resolved = self._resolve(move)
        self.apply(resolved)
        return resolved

    def undo_move(self) -> Move:
        """Take back the last move."""
        if not self._undo_stack:
            raise IllegalMove(None, "no moves to undo")
        token = self._undo_stack[-1]
        self.undo(token)
        return token.move

    def move_from_tuple(self, ox: int, oy: int, tx: int, ty: int) -> Move:
        """Re-derive the full legal move from its stored four integers."""
        return self._resolve(Move((ox, oy), (tx, ty)))

    def _resolve(self, move: Move) -> Move:
        candidates = [
            m for m in self.generate_moves()
            if m.origin == move.origin and m.target == move.target
        ]
        if not candidates:
            raise IllegalMove(move, "not a legal move in this position")
        wanted = move.promotion
        if wanted is None and candidates[0].promotion is not None:
            wanted = PieceType.QUEEN
        for candidate in candidates:
            if candidate.promotion == wanted:
                return candidate
        raise IllegalMove(move, "invalid promotion piece")

    # --- Rules -----------------------------------------------------------

    def generate_moves(self) -> List[Move]:
        """Generate all legal moves for the side to move."""
        from .movegen import legal_moves

        return legal_moves(self)

    def has_legal_move(self) -> bool:
        from .movegen import has_legal_move

        return has_legal_move(self)

    def is_in_check(self, color: Optional[Color] = None) -> bool:
        """Check if the given side's king is attacked."""
        from .movegen import is_attacked

        if color is None:
            color = self.side_to_move
        king = self._king_tiles[color.value]
        if king is None:
            return False
        return is_attacked(self, king, color.other())

    def is_checkmate(self) -> bool:
        """Check if the side to move is checkmated."""
        if not self.is_in_check(self.side_to_move):
            return False
        return not self.has_legal_move()

    def is_stalemate(self) -> bool:
        """Check if the side to move has no moves but is not in check."""
        if self.is_in_check(self.side_to_move):
            return False
        return not self.has_legal_move()

    def is_repetition(self, count: int = 3) -> bool:
        """Check if the current position occurred at least ``count`` times.

        Only positions since the last pawn move or capture can repeat, so
        the scan is limited to those.
        """
        window = self.position_history[-(self.halfmove_clock + 1):]
        if len(window) < count:
            return False
        return window.count(self._current_hash) >= count

    def is_draw_by_repetition(self) -> bool:
        return self.is_repetition(count=3)

    def is_fifty_move_draw(self) -> bool:
        return self.halfmove_clock >= 100

    # --- Copies and views ------------------------------------------------

    def copy(self) -> "Board":
        """Independent copy sharing no mutable state."""
        other = Board.__new__(Board)
        other.squares = list(self.squares)
        other.side_to_move = self.side_to_move
        other.en_passant = self.en_passant
        other.halfmove_clock = self.halfmove_clock
        other.ply = self.ply
        other.move_history = list(self.move_history)
        other.position_history = list(self.position_history)
        other._undo_stack = list(self._undo_stack)
        other._zobrist = self._zobrist
        other._king_tiles = list(self._king_tiles)
        other._current_hash = self._current_hash
        return other

    def mirrored(self) -> "Board":
        """The same position with colours swapped and cells mirrored."""
        other = Board.empty(self.side_to_move.other())
        for tile, piece in enumerate(self.squares):
            if piece is not None:
                other.squares[MIRROR_INDEX[tile]] = Piece(piece.color.other(), piece.piece_type)
        if self.en_passant is not None:
            other.en_passant = MIRROR_INDEX[self.en_passant]
        other.halfmove_clock = self.halfmove_clock
        other._king_tiles = other._find_kings()
        other._current_hash = self._zobrist.compute_hash(other)
        other.position_history = [other._current_hash]
        return other

    def snapshot(self) -> tuple:
        """Every piece of state, for exact equality checks."""
        return (
            tuple(self.squares),
            self.side_to_move,
            self.en_passant,
            self.halfmove_clock,
            self.ply,
            tuple(self.move_history),
            tuple(self.position_history),
            tuple(self._undo_stack),
            tuple(self._king_tiles),
            self._current_hash,
        )

    def render(self) -> str:
        """Text diagram, highest rank on top, files left to right."""
        lines = []
        for r in range(20, -1, -1):
            row = [" "] * 21
            for tile, pos in enumerate(POSITIONS):
                if rank(pos) == r:
                    piece = self.squares[tile]
                    row[2 * file(pos)] = piece.symbol if piece else "."
            lines.append("".join(row).rstrip())
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Board(side_to_move={self.side_to_move}, ply={self.ply})"
