"""
Xiangqi piece definitions.
Pieces: 將/帥(General), 士/仕(Advisor), 象/相(Elephant), 馬/傌(Horse),
        車/俥(Chariot), 炮/砲(Cannon), 卒/兵(Soldier)
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import IntEnum


class Color(IntEnum):
    RED = 1
    BLACK = -1


class PieceType(IntEnum):
    GENERAL = 1  # 將/帥
    ADVISOR = 2  # 士/仕
    ELEPHANT = 3  # 象/相
    HORSE = 4  # 馬/傌
    CHARIOT = 5  # 車/俥
    CANNON = 6  # 炮/砲
    SOLDIER = 7  # 卒/兵


_FLIP: dict[Color, Color] = {Color.RED: Color.BLACK, Color.BLACK: Color.RED}


def opponent(color: Color) -> Color:
    return _FLIP[color]


# Process-wide serial so two pieces created on the same cell never share an id.
_serial = itertools.count(1)


@dataclass(frozen=True)
class Piece:
    type: PieceType
    color: Color
    id: str

    @classmethod
    def create(cls, pt: PieceType, color: Color, row: int, col: int) -> Piece:
        """New piece with a fresh identity derived from its setup cell."""
        ident = f"{color.name.lower()}-{pt.name.lower()}-{row}-{col}-{next(_serial)}"
        return cls(pt, color, ident)

    @property
    def symbol(self) -> str:
        return PIECE_SYMBOLS[(self.color, self.type)]

    def __repr__(self) -> str:
        return f"Piece({self.color.name} {self.type.name} {self.id!r})"


PIECE_SYMBOLS = {
    (Color.RED, PieceType.GENERAL): "帥",
    (Color.RED, PieceType.ADVISOR): "仕",
    (Color.RED, PieceType.ELEPHANT): "相",
    (Color.RED, PieceType.HORSE): "傌",
    (Color.RED, PieceType.CHARIOT): "俥",
    (Color.RED, PieceType.CANNON): "砲",
    (Color.RED, PieceType.SOLDIER): "兵",
    (Color.BLACK, PieceType.GENERAL): "將",
    (Color.BLACK, PieceType.ADVISOR): "士",
    (Color.BLACK, PieceType.ELEPHANT): "象",
    (Color.BLACK, PieceType.HORSE): "馬",
    (Color.BLACK, PieceType.CHARIOT): "車",
    (Color.BLACK, PieceType.CANNON): "炮",
    (Color.BLACK, PieceType.SOLDIER): "卒",
}
