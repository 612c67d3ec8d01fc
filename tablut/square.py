"""Board geometry: squares, rook-move tables, and move notation.

Squares are identified by (col, row), both 0-indexed from the lower-left
corner, and written as a column letter followed by a row number (``e5`` is
the throne). All lookup tables are built once at import time and are
read-only afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

SIZE = 9

COLUMN_LETTERS = "abcdefghi"

# Direction indices and their (dcol, drow) steps
N, E, S, W = 0, 1, 2, 3
DIRECTIONS = [
    (0, 1),
    (1, 0),
    (0, -1),
    (-1, 0),
]


@dataclass(frozen=True)
class Square:
    col: int
    row: int

    @property
    def index(self) -> int:
        return self.row * SIZE + self.col

    @property
    def is_edge(self) -> bool:
        return self.col in (0, SIZE - 1) or self.row in (0, SIZE - 1)

    def rook_move(self, direction: int, steps: int) -> Square | None:
        """Return the square STEPS away in DIRECTION, or None if off the board."""
        dc, dr = DIRECTIONS[direction]
        col, row = self.col + dc * steps, self.row + dr * steps
        if not exists(col, row):
            return None
        return sq(col, row)

    def is_rook_move(self, to: Square) -> bool:
        return self != to and (self.col == to.col or self.row == to.row)

    def direction(self, to: Square) -> int:
        """Direction of the rook move from this square to TO, or -1."""
        if not self.is_rook_move(to):
            return -1
        if self.col == to.col:
            return N if to.row > self.row else S
        return E if to.col > self.col else W

    def adjacent(self) -> list[Square]:
        result = []
        for direction in range(4):
            neighbor = self.rook_move(direction, 1)
            if neighbor is not None:
                result.append(neighbor)
        return result

    def __str__(self) -> str:
        return f"{COLUMN_LETTERS[self.col]}{self.row + 1}"


def exists(col: int, row: int) -> bool:
    return 0 <= col < SIZE and 0 <= row < SIZE


SQUARE_LIST: tuple[Square, ...] = tuple(
    Square(index % SIZE, index // SIZE) for index in range(SIZE * SIZE)
)


def sq(col: int, row: int) -> Square:
    if not exists(col, row):
        raise ValueError(f"Square ({col}, {row}) is off the board")
    return SQUARE_LIST[row * SIZE + col]


def sq_from_index(index: int) -> Square:
    if not 0 <= index < SIZE * SIZE:
        raise ValueError(f"Square index {index} is off the board")
    return SQUARE_LIST[index]


_SQUARE_PATTERN = re.compile(r"^([a-i])([1-9])$")


def parse_square(text: str) -> Square:
    """Parse ``e5``-style notation into a Square."""
    match = _SQUARE_PATTERN.match(text.strip().lower())
    if match is None:
        raise ValueError(f"Invalid square: {text!r}")
    return sq(COLUMN_LETTERS.index(match.group(1)), int(match.group(2)) - 1)


def between(a: Square, b: Square) -> Square | None:
    """Return the square midway between A and B if they are two apart on a line."""
    if a.col == b.col and abs(a.row - b.row) == 2:
        return sq(a.col, (a.row + b.row) // 2)
    if a.row == b.row and abs(a.col - b.col) == 2:
        return sq((a.col + b.col) // 2, a.row)
    return None


def diagonal_pair(a: Square, b: Square) -> tuple[Square | None, Square | None]:
    """The two squares diagonally adjacent to both A and B.

    A and B must be two apart on a line. The results are the neighbors of
    the square between them that lie off that line.
    """
    middle = between(a, b)
    if middle is None:
        raise ValueError(f"{a} and {b} are not two apart on a line")
    if a.col == b.col:
        return middle.rook_move(W, 1), middle.rook_move(E, 1)
    return middle.rook_move(S, 1), middle.rook_move(N, 1)


THRONE = sq(4, 4)
NTHRONE = sq(4, 5)
STHRONE = sq(4, 3)
WTHRONE = sq(3, 4)
ETHRONE = sq(5, 4)

THRONE_NEIGHBORS = (NTHRONE, ETHRONE, STHRONE, WTHRONE)


@dataclass(frozen=True)
class Move:
    from_sq: Square
    to_sq: Square

    _PATTERN = re.compile(r"^([a-i][1-9])-(?:([a-i][1-9])|([1-9])|([a-i]))$")

    def __str__(self) -> str:
        return f"{self.from_sq}-{self.to_sq}"

    @classmethod
    def parse(cls, text: str) -> Move:
        """Parse ``e5-e8``, ``e5-8`` (same column) or ``e5-h`` (same row)."""
        match = cls._PATTERN.match(text.strip().lower())
        if match is None:
            raise ValueError(f"Invalid move: {text!r}")
        from_sq = parse_square(match.group(1))
        full, row_only, col_only = match.group(2), match.group(3), match.group(4)
        if full:
            to_sq = parse_square(full)
        elif row_only:
            to_sq = sq(from_sq.col, int(row_only) - 1)
        else:
            to_sq = sq(COLUMN_LETTERS.index(col_only), from_sq.row)
        if not from_sq.is_rook_move(to_sq):
            raise ValueError(f"Not a rook move: {text!r}")
        return cls(from_sq, to_sq)


def _build_rook_squares() -> tuple[tuple[tuple[Square, ...], ...], ...]:
    table = []
    for square in SQUARE_LIST:
        per_direction = []
        for direction in range(4):
            targets = []
            steps = 1
            target = square.rook_move(direction, steps)
            while target is not None:
                targets.append(target)
                steps += 1
                target = square.rook_move(direction, steps)
            per_direction.append(tuple(targets))
        table.append(tuple(per_direction))
    return tuple(table)


# ROOK_SQUARES[index][direction]: squares reachable along DIRECTION, nearest first
ROOK_SQUARES = _build_rook_squares()

# ROOK_MOVES[index][direction]: the matching moves, in the same order
ROOK_MOVES: tuple[tuple[tuple[Move, ...], ...], ...] = tuple(
    tuple(
        tuple(Move(square, target) for target in ROOK_SQUARES[square.index][direction])
        for direction in range(4)
    )
    for square in SQUARE_LIST
)


def rook_directions_and_targets(square: Square) -> list[tuple[int, tuple[Square, ...]]]:
    return [(direction, ROOK_SQUARES[square.index][direction]) for direction in range(4)]
