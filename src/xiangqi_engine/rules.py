"""
Move legality, check and checkmate detection.

Legality comes in two tiers:

* *basic*: piece geometry and obstruction only (`is_basic_move`);
* *full*: basic plus the self-check filter (`is_legal_move`).

Check detection is built on the basic tier so that asking "is this move
legal?" never recurses back into itself.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger

from .board import (
    COLS,
    ROWS,
    Board,
    Cell,
    Move,
    in_bounds,
    in_own_territory,
    in_palace,
    path_blocked,
    straight_path,
)
from .pieces import Color, Piece, PieceType, opponent


class GameStatus(Enum):
    PLAYING = "playing"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


def is_basic_move(board: Board, piece: Piece, origin: Cell, destination: Cell) -> bool:
    """Geometry-and-obstruction legality of moving `piece` from `origin` to `destination`.

    Does not look at whether the move exposes the mover's own general.
    """
    if not in_bounds(destination):
        return False
    if origin[0] == destination[0] and origin[1] == destination[1]:
        return False
    target = board[destination]
    if target is not None and target.color == piece.color:
        return False

    pt = piece.type
    dr = destination[0] - origin[0]
    dc = destination[1] - origin[1]

    if pt == PieceType.GENERAL:
        if in_palace(destination, piece.color) and abs(dr) + abs(dc) == 1:
            return True
        # Flying general: capture the opposing general down an open file.
        if dc == 0 and target is not None and target.type == PieceType.GENERAL:
            return not path_blocked(board, straight_path(origin, destination))
        return False

    elif pt == PieceType.ADVISOR:
        return in_palace(destination, piece.color) and abs(dr) == 1 and abs(dc) == 1

    elif pt == PieceType.ELEPHANT:
        if not in_own_territory(destination, piece.color):
            return False
        if abs(dr) != 2 or abs(dc) != 2:
            return False
        return board[Cell(origin[0] + dr // 2, origin[1] + dc // 2)] is None

    elif pt == PieceType.HORSE:
        if (abs(dr), abs(dc)) == (2, 1):
            leg = Cell(origin[0] + dr // 2, origin[1])
        elif (abs(dr), abs(dc)) == (1, 2):
            leg = Cell(origin[0], origin[1] + dc // 2)
        else:
            return False
        return board[leg] is None

    elif pt == PieceType.CHARIOT:
        if dr != 0 and dc != 0:
            return False
        return not path_blocked(board, straight_path(origin, destination))

    elif pt == PieceType.CANNON:
        if dr != 0 and dc != 0:
            return False
        screens = sum(1 for cell in straight_path(origin, destination) if board[cell] is not None)
        return screens == 1 if target is not None else screens == 0

    elif pt == PieceType.SOLDIER:
        if abs(dr) + abs(dc) != 1:
            return False
        forward = -1 if piece.color == Color.RED else 1
        if dc == 0:
            return dr == forward
        # Sideways only once the soldier stands on the far side of the river.
        return not in_own_territory(origin, piece.color)

    return False


def is_in_check(board: Board, color: Color) -> bool:
    """True if some opposing piece can reach `color`'s general with a basic move."""
    general = board.find_general(color)
    if general is None:
        return False
    return any(
        is_basic_move(board, piece, cell, general) for cell, piece in board.pieces(opponent(color))
    )


def _simulate(board: Board, piece: Piece, origin: Cell, destination: Cell) -> Board:
    b = board.copy()
    b.place(destination, piece)
    b.place(origin, None)
    return b


def is_legal_move(board: Board, piece: Piece, origin: Cell, destination: Cell) -> bool:
    """Full legality: basic legality plus "does not leave own general in check"."""
    if not is_basic_move(board, piece, origin, destination):
        return False
    if is_in_check(_simulate(board, piece, origin, destination), piece.color):
        logger.trace(
            "Rejected {} {} {}->{}: leaves own general in check",
            piece.color.name,
            piece.type.name,
            tuple(origin),
            tuple(destination),
        )
        return False
    return True


def _destinations(board: Board, piece: Piece, origin: Cell) -> list[Cell]:
    # Exhaustive scan of all 90 cells, row-major.
    return [
        Cell(r, c)
        for r in range(ROWS)
        for c in range(COLS)
        if is_legal_move(board, piece, origin, Cell(r, c))
    ]


def legal_moves(board: Board, piece: Piece, origin: Cell) -> set[Cell]:
    return set(_destinations(board, piece, origin))


def all_legal_moves(board: Board, color: Color) -> list[Move]:
    """Every fully legal move for `color`, in row-major origin then destination order."""
    moves: list[Move] = []
    for origin, piece in board.pieces(color):
        for dst in _destinations(board, piece, origin):
            moves.append(Move(origin, dst, piece, board[dst]))
    return moves


def has_legal_move(board: Board, color: Color) -> bool:
    for origin, piece in board.pieces(color):
        for r in range(ROWS):
            for c in range(COLS):
                if is_legal_move(board, piece, origin, Cell(r, c)):
                    return True
    return False


def is_checkmate(board: Board, color: Color) -> bool:
    if not is_in_check(board, color):
        return False
    for origin, piece in list(board.pieces(color)):
        for dst in _destinations(board, piece, origin):
            if not is_in_check(_simulate(board, piece, origin, dst), color):
                return False
    return True


def is_stalemate(board: Board, color: Color) -> bool:
    """No legal move while not in check. Distinct from checkmate; the caller scores it."""
    return not is_in_check(board, color) and not has_legal_move(board, color)


def game_status(board: Board, color: Color) -> GameStatus:
    """Status from the point of view of `color`, the side to move."""
    in_check = is_in_check(board, color)
    if has_legal_move(board, color):
        return GameStatus.CHECK if in_check else GameStatus.PLAYING
    return GameStatus.CHECKMATE if in_check else GameStatus.STALEMATE
