"""
Static position evaluation: material plus small positional bonuses.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .board import COLS, ROWS, Board
from .pieces import Color, PieceType
from .rules import is_in_check

# The general outweighs every other term combined (~4 800 material per side
# plus bonuses).
_PIECE_VALUES: dict[PieceType, int] = {
    PieceType.GENERAL: 10_000,
    PieceType.CHARIOT: 900,
    PieceType.CANNON: 450,
    PieceType.HORSE: 400,
    PieceType.ADVISOR: 200,
    PieceType.ELEPHANT: 200,
    PieceType.SOLDIER: 100,
}

CHECK_BONUS = 500

# _EVAL_TABLE[val+7] = RED's material contribution for an encoded value `val`.
_EVAL_TABLE: NDArray[np.int32] = np.zeros(15, dtype=np.int32)
for _v in range(1, 8):
    _EVAL_TABLE[_v + 7] = _PIECE_VALUES[PieceType(_v)]
    _EVAL_TABLE[-_v + 7] = -_PIECE_VALUES[PieceType(_v)]

# Positional tables from RED's side of the board (row 0 = BLACK's back rank).
# BLACK pieces read the same tables flipped vertically.
_SOLDIER_TABLE: NDArray[np.int32] = np.array(
    [
        [9, 9, 9, 11, 13, 11, 9, 9, 9],
        [19, 24, 34, 42, 44, 42, 34, 24, 19],
        [19, 24, 32, 37, 37, 37, 32, 24, 19],
        [19, 23, 27, 29, 30, 29, 27, 23, 19],
        [14, 18, 20, 27, 29, 27, 20, 18, 14],
        [7, 0, 13, 0, 16, 0, 13, 0, 7],
        [7, 0, 7, 0, 15, 0, 7, 0, 7],
        [0] * COLS,
        [0] * COLS,
        [0] * COLS,
    ],
    dtype=np.int32,
)

_GENERAL_TABLE: NDArray[np.int32] = np.zeros((ROWS, COLS), dtype=np.int32)
_GENERAL_TABLE[7:10, 3:6] = [[8, 9, 8], [9, 10, 9], [8, 9, 8]]

# Horses are worth more near the centre file.
_HORSE_TABLE: NDArray[np.int32] = np.tile(
    np.array([max(0, 3 - abs(c - 4)) * 10 for c in range(COLS)], dtype=np.int32), (ROWS, 1)
)

_POSITION_TABLES: dict[PieceType, NDArray[np.int32]] = {
    PieceType.SOLDIER: _SOLDIER_TABLE,
    PieceType.GENERAL: _GENERAL_TABLE,
    PieceType.HORSE: _HORSE_TABLE,
}


def piece_value(pt: PieceType) -> int:
    return _PIECE_VALUES[pt]


def _positional(grid: NDArray[np.int8]) -> int:
    """RED's positional bonus minus BLACK's."""
    total = 0
    for pt, table in _POSITION_TABLES.items():
        total += int(table[grid == int(pt)].sum())
        total -= int(np.flipud(table)[grid == -int(pt)].sum())
    return total


def evaluate(board: Board, perspective: Color) -> int:
    """Score `board` for `perspective`; positive is good for that side.

    Antisymmetric by construction: evaluate(b, RED) == -evaluate(b, BLACK).
    """
    grid = board.encoded()
    score = int(_EVAL_TABLE[grid.astype(np.int16) + 7].sum())
    score += _positional(grid)
    if is_in_check(board, Color.BLACK):
        score += CHECK_BONUS
    if is_in_check(board, Color.RED):
        score -= CHECK_BONUS
    return score * int(perspective)
