"""Hexagonal board geometry.

Axial coordinates (x, y) with the three neighbour axes (1, 0), (0, 1) and (1, 1).
Valid cells satisfy 0 <= x, y <= 10 and |x - y| <= 5, which carves a regular
hexagon of 91 cells out of the 11x11 grid.

- Rank: x + y (0..20), the hexagonal analogue of a row.
- File: 5 + y - x (0..10), the hexagonal analogue of a column.

Cells are numbered rank-major and then by y inside the rank, so index 0 is
(0, 0) and index 90 is (10, 10).
"""

from typing import Dict, Iterator, List, Set, Tuple

from .errors import InvariantViolation, OutOfRange

Position = Tuple[int, int]

MAX = 10
WIDTH = 5
MAX_RANK = 20
NUMBER_OF_TILES = 91
CENTER: Position = (5, 5)

# One step towards each of the six touching cells
ROOK_DIRECTIONS: Tuple[Position, ...] = (
    (0, 1),
    (1, 1),
    (1, 0),
    (0, -1),
    (-1, -1),
    (-1, 0),
)

# Slides through the edge between two touching cells; keeps the tile colour
BISHOP_DIRECTIONS: Tuple[Position, ...] = (
    (1, -1),
    (2, 1),
    (1, 2),
    (-1, 1),
    (-2, -1),
    (-1, -2),
)

KING_OFFSETS: Tuple[Position, ...] = ROOK_DIRECTIONS + BISHOP_DIRECTIONS

# Rook step followed by an outward bishop step: the cells at distance 3 that
# are not on a rook line.
KNIGHT_OFFSETS: Tuple[Position, ...] = (
    (3, 1),
    (3, 2),
    (1, 3),
    (2, 3),
    (-1, 2),
    (-2, 1),
    (-3, -1),
    (-3, -2),
    (-1, -3),
    (-2, -3),
    (1, -2),
    (2, -1),
)


def is_valid(pos: Position) -> bool:
    """Check if (x, y) is a cell of the board."""
    x, y = pos
    return 0 <= x <= MAX and 0 <= y <= MAX and abs(x - y) <= WIDTH


def rank(pos: Position) -> int:
    return pos[0] + pos[1]


def file(pos: Position) -> int:
    return WIDTH + pos[1] - pos[0]


def tile_color(pos: Position) -> int:
    """The tile colour, 0, 1 or 2. Touching tiles never share it."""
    return (pos[0] + pos[1]) % 3


def rank_width(r: int) -> int:
    """Number of valid cells whose coordinates sum to ``r``."""
    return min(min(r, MAX_RANK - r) // 2, 2) * 2 + 1 + r % 2


def min_valid_rank_coordinate(r: int) -> int:
    """Lowest y that is valid on rank ``r``.

    From x + y == r with x <= MAX we need y >= r - MAX, and from
    x - y <= WIDTH we need 2y >= r - WIDTH.
    """
    h = r - MAX
    w = (r - WIDTH + 1) // 2
    return max(h, w, 0)


def hex_distance(a: Position, b: Position) -> int:
    """Number of single steps between two cells."""
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if dx * dy >= 0:
        return max(abs(dx), abs(dy))
    return abs(dx) + abs(dy)


def mirror(pos: Position) -> Position:
    """The cell seen from the other player's side.

    Keeps the file and reverses the rank, mapping each side's starting
    setup onto the other's.
    """
    return (MAX - pos[1], MAX - pos[0])


def _build_tables() -> Tuple[List[int], List[Position], Dict[Position, int]]:
    rank_starts = []
    total = 0
    for r in range(MAX_RANK + 1):
        rank_starts.append(total)
        total += rank_width(r)

    positions = []
    indices = {}
    for r in range(MAX_RANK + 1):
        first_y = min_valid_rank_coordinate(r)
        for offset in range(rank_width(r)):
            y = first_y + offset
            pos = (r - y, y)
            indices[pos] = len(positions)
            positions.append(pos)
    if len(positions) != NUMBER_OF_TILES or total != NUMBER_OF_TILES:
        raise InvariantViolation(f"Board envelope has {len(positions)} cells")
    return rank_starts, positions, indices


RANK_STARTS, POSITIONS, INDICES = _build_tables()


def index(pos: Position) -> int:
    """Flat tile index of a valid cell."""
    if not is_valid(pos):
        raise OutOfRange(pos)
    r = rank(pos)
    return RANK_STARTS[r] + pos[1] - min_valid_rank_coordinate(r)


def position_of(idx: int) -> Position:
    """Inverse of :func:`index`."""
    if not 0 <= idx < NUMBER_OF_TILES:
        raise OutOfRange(idx, f"Tile index {idx} is outside [0, {NUMBER_OF_TILES})")
    r = 0
    while RANK_STARTS[r] + rank_width(r) <= idx:
        r += 1
    y = idx - RANK_STARTS[r] + min_valid_rank_coordinate(r)
    return (r - y, y)


def all_positions() -> Iterator[Position]:
    """All valid cells in index order."""
    return iter(POSITIONS)


def step(pos: Position, direction: Position, distance: int = 1) -> Position:
    return (pos[0] + direction[0] * distance, pos[1] + direction[1] * distance)


def neighbors(pos: Position) -> Set[Position]:
    """The (up to six) touching cells."""
    if not is_valid(pos):
        raise OutOfRange(pos)
    return {step(pos, d) for d in ROOK_DIRECTIONS if is_valid(step(pos, d))}


def direction_rays(pos: Position, direction: Position) -> Iterator[Position]:
    """Cells from ``pos`` (exclusive) along ``direction`` up to the edge."""
    current = step(pos, direction)
    while is_valid(current):
        yield current
        current = step(current, direction)


def _precompute_rays(directions) -> List[List[Tuple[int, ...]]]:
    return [
        [tuple(INDICES[p] for p in direction_rays(pos, d)) for d in directions]
        for pos in POSITIONS
    ]


def _precompute_jumps(offsets) -> List[Tuple[int, ...]]:
    return [
        tuple(INDICES[step(pos, o)] for o in offsets if is_valid(step(pos, o)))
        for pos in POSITIONS
    ]


# Per-index lookup tables for the move generator: rays are tuples of tile
# indices ordered outwards, one tuple per direction.
ROOK_RAYS = _precompute_rays(ROOK_DIRECTIONS)
BISHOP_RAYS = _precompute_rays(BISHOP_DIRECTIONS)
KNIGHT_TARGETS = _precompute_jumps(KNIGHT_OFFSETS)
KING_TARGETS = _precompute_jumps(KING_OFFSETS)
MIRROR_INDEX = [INDICES[mirror(pos)] for pos in POSITIONS]
