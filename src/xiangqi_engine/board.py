"""
Xiangqi board representation and geometry.
Board: 10 rows x 9 columns (row 0 = BLACK side top, row 9 = RED side bottom)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from .pieces import Color, Piece, PieceType

ROWS = 10
COLS = 9


class Cell(NamedTuple):
    row: int
    col: int


@dataclass(frozen=True)
class Move:
    origin: Cell
    destination: Cell
    piece: Piece
    captured: Piece | None = None

    @property
    def is_capture(self) -> bool:
        return self.captured is not None


# Encoding: piece_type * color  (RED=+, BLACK=-)
def encode(color: Color, pt: PieceType) -> int:
    return int(color) * int(pt)


def decode(val: int) -> tuple[Color, PieceType]:
    if val == 0:
        raise ValueError("Cannot decode empty square")
    color = Color.RED if val > 0 else Color.BLACK
    return color, PieceType(abs(val))


# ---------------------------------------------------------------------------
# Zobrist hashing: fixed seed, identical keys on every run.
# Table indexed by [piece_val+7, row*9+col].  Index 7 (val=0) is never used.
# ---------------------------------------------------------------------------
_rng = np.random.default_rng(0xCCECBEEF)
_Z_PIECES: NDArray[np.int64] = _rng.integers(-(2**62), 2**62, size=(15, ROWS * COLS), dtype=np.int64)
_Z_SIDE: int = int(_rng.integers(-(2**62), 2**62, dtype=np.int64))

# Palace bounds
RED_PALACE_ROWS = (7, 9)
BLACK_PALACE_ROWS = (0, 2)
PALACE_COLS = (3, 5)

# River: rows 0-4 = BLACK territory, rows 5-9 = RED territory
RED_SIDE = range(5, 10)
BLACK_SIDE = range(0, 5)


def in_bounds(cell: Cell) -> bool:
    return 0 <= cell[0] < ROWS and 0 <= cell[1] < COLS


def in_palace(cell: Cell, color: Color) -> bool:
    r0, r1 = RED_PALACE_ROWS if color == Color.RED else BLACK_PALACE_ROWS
    return r0 <= cell[0] <= r1 and PALACE_COLS[0] <= cell[1] <= PALACE_COLS[1]


def in_own_territory(cell: Cell, color: Color) -> bool:
    return cell[0] in (RED_SIDE if color == Color.RED else BLACK_SIDE)


def straight_path(start: Cell, end: Cell) -> list[Cell]:
    """Cells strictly between `start` and `end` on a shared row or column.

    Empty when the two cells are not aligned (or are adjacent).
    """
    dr = end[0] - start[0]
    dc = end[1] - start[1]
    if dr != 0 and dc != 0:
        return []
    step_r = (dr > 0) - (dr < 0)
    step_c = (dc > 0) - (dc < 0)
    path: list[Cell] = []
    r, c = start[0] + step_r, start[1] + step_c
    while (r, c) != (end[0], end[1]):
        path.append(Cell(r, c))
        r += step_r
        c += step_c
    return path


def path_blocked(board: Board, path: Sequence[Cell]) -> bool:
    return any(board[cell] is not None for cell in path)


class Board:
    def __init__(self) -> None:
        self._cells: list[list[Piece | None]] = [[None] * COLS for _ in range(ROWS)]

    @classmethod
    def from_array(cls, grid: Sequence[Sequence[int]]) -> Board:
        """Build a board from encoded values (see `encode`), creating fresh pieces."""
        b = cls()
        for r, row in enumerate(grid):
            for c, val in enumerate(row):
                if val:
                    color, pt = decode(int(val))
                    b._cells[r][c] = Piece.create(pt, color, r, c)
        return b

    def __getitem__(self, cell: Cell) -> Piece | None:
        return self._cells[cell[0]][cell[1]]

    def place(self, cell: Cell, piece: Piece | None) -> None:
        self._cells[cell[0]][cell[1]] = piece

    def remove(self, cell: Cell) -> Piece | None:
        piece = self._cells[cell[0]][cell[1]]
        self._cells[cell[0]][cell[1]] = None
        return piece

    def copy(self) -> Board:
        # Rows are copied; pieces are immutable and shared.
        b = Board()
        b._cells = [row[:] for row in self._cells]
        return b

    def pieces(self, color: Color | None = None) -> Iterator[tuple[Cell, Piece]]:
        """Yield (cell, piece) pairs in row-major order, optionally for one color."""
        for r in range(ROWS):
            for c in range(COLS):
                piece = self._cells[r][c]
                if piece is not None and (color is None or piece.color == color):
                    yield Cell(r, c), piece

    def find_general(self, color: Color) -> Cell | None:
        for cell, piece in self.pieces(color):
            if piece.type == PieceType.GENERAL:
                return cell
        return None

    def make_move(self, origin: Cell, destination: Cell) -> Piece | None:
        """Move the piece at `origin` in-place. Returns the captured piece (None if none).

        No legality check is made here; see `rules.is_legal_move`.
        """
        piece = self[origin]
        if piece is None:
            raise ValueError(f"No piece at {tuple(origin)}")
        captured = self[destination]
        self.place(destination, piece)
        self.place(origin, None)
        return captured

    def unmake_move(self, move: Move) -> None:
        """Undo a previously applied `move` in-place, restoring any captured piece."""
        self.place(move.origin, move.piece)
        self.place(move.destination, move.captured)

    def apply(self, move: Move) -> Board:
        b = self.copy()
        b.make_move(move.origin, move.destination)
        return b

    def encoded(self) -> NDArray[np.int8]:
        """Grid of `encode(color, type)` values, 0 for empty squares."""
        grid = np.zeros((ROWS, COLS), dtype=np.int8)
        for (r, c), piece in self.pieces():
            grid[r, c] = encode(piece.color, piece.type)
        return grid

    def zobrist_hash(self, side: Color = Color.RED) -> int:
        """Zobrist hash of this position with `side` to move."""
        flat = self.encoded().ravel()
        squares = np.flatnonzero(flat)
        keys = _Z_PIECES[flat[squares].astype(np.int64) + 7, squares]
        h = int(np.bitwise_xor.reduce(keys)) if len(keys) else 0
        if side == Color.BLACK:
            h ^= _Z_SIDE
        return h

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._cells == other._cells

    def display(self) -> str:
        lines = []
        lines.append("   a b c d e f g h i")
        lines.append("  ╔═══════════════════╗")
        for r in range(ROWS):
            row_str = f"{9 - r} ║"
            for c in range(COLS):
                piece = self._cells[r][c]
                row_str += " ·" if piece is None else " " + piece.symbol
            row_str += " ║"
            lines.append(row_str)
        lines.append("  ╚═══════════════════╝")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.display()


_BACK_RANK = [
    PieceType.CHARIOT,
    PieceType.HORSE,
    PieceType.ELEPHANT,
    PieceType.ADVISOR,
    PieceType.GENERAL,
    PieceType.ADVISOR,
    PieceType.ELEPHANT,
    PieceType.HORSE,
    PieceType.CHARIOT,
]


def initial_board() -> Board:
    """Canonical starting layout: 16 pieces per side, BLACK on top."""
    b = Board()
    for color, back, cannons, soldiers in (
        (Color.BLACK, 0, 2, 3),
        (Color.RED, 9, 7, 6),
    ):
        for c, pt in enumerate(_BACK_RANK):
            b.place(Cell(back, c), Piece.create(pt, color, back, c))
        for c in (1, 7):
            b.place(Cell(cannons, c), Piece.create(PieceType.CANNON, color, cannons, c))
        for c in range(0, COLS, 2):
            b.place(Cell(soldiers, c), Piece.create(PieceType.SOLDIER, color, soldiers, c))
    return b


def move_to_str(move: Move) -> str:
    (r1, c1), (r2, c2) = move.origin, move.destination
    cols = "abcdefghi"
    sep = "x" if move.is_capture else "-"
    return f"{move.piece.symbol}{cols[c1]}{9 - r1}{sep}{cols[c2]}{9 - r2}"
