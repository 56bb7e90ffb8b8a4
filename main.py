"""
Xiangqi Engine: computer-vs-computer replay in the terminal.
Puzzle: RED forces checkmate with two chariots; both sides are played by the engine.
"""

import sys

from colorama import Fore, Style, init
from loguru import logger

from xiangqi_engine import (
    Board,
    Color,
    Difficulty,
    GameStatus,
    PieceType,
    encode,
    game_status,
    get_difficulty,
    initial_board,
    search,
)
from xiangqi_engine.board import move_to_str
from xiangqi_engine.pieces import PIECE_SYMBOLS

init(autoreset=True)

# ── Color palette ──────────────────────────────────────────────────────────────
RED_PIECE = Fore.RED + Style.BRIGHT
BLACK_PIECE = Fore.CYAN + Style.BRIGHT
BOARD_FG = Fore.WHITE
DIM = Style.DIM
GOLD = Fore.YELLOW + Style.BRIGHT
GREEN = Fore.GREEN + Style.BRIGHT
RESET = Style.RESET_ALL

_SYMBOL_OWNER = {symbol: color for (color, _), symbol in PIECE_SYMBOLS.items()}


def _paint(ch: str) -> str:
    owner = _SYMBOL_OWNER.get(ch)
    if owner is not None:
        return (RED_PIECE if owner == Color.RED else BLACK_PIECE) + ch + RESET
    if ch == "·":
        return DIM + ch + RESET
    return BOARD_FG + ch + RESET if not ch.isspace() else ch


def colored_board(board: Board, turn: Color) -> str:
    """Colorize `Board.display()` and append whose turn it is."""
    lines = ["".join(_paint(ch) for ch in line) for line in board.display().splitlines()]
    turn_label = (RED_PIECE + "RED (紅)" if turn == Color.RED else BLACK_PIECE + "BLACK (黑)") + RESET
    lines.append(f"  Turn: {turn_label}")
    return "\n".join(lines)


def puzzle_two_chariots() -> Board:
    """
    RED to move, two-chariot scissors mate.

      . . . . 將 . . . .   rank 10  BLACK general
      . . . . . . . . .
      . . . . . . . . .
      . . . . . 俥 . . .   rank 7   RED chariot 1
      . . . . . . . . .
      . . . 俥 . . . . .   rank 5   RED chariot 2
      ...
      . . . 帥 . . . . .   rank 1   RED general
    """
    grid = [[0] * 9 for _ in range(10)]
    grid[0][4] = encode(Color.BLACK, PieceType.GENERAL)
    grid[3][5] = encode(Color.RED, PieceType.CHARIOT)
    grid[5][3] = encode(Color.RED, PieceType.CHARIOT)
    grid[9][3] = encode(Color.RED, PieceType.GENERAL)
    return Board.from_array(grid)


def play_through(
    board: Board,
    red: Difficulty,
    black: Difficulty,
    max_plies: int = 20,
) -> None:
    W = 50
    sep = BOARD_FG + "─" * W + RESET
    heading = GOLD + "=" * W + RESET

    print(heading)
    print(GOLD + "    Xiangqi Engine — Computer vs Computer" + RESET)
    print(heading)

    turn = Color.RED
    print("\nInitial position:")
    print(colored_board(board, turn))
    print(sep)

    for i in range(max_plies):
        status = game_status(board, turn)
        if status == GameStatus.CHECKMATE:
            winner = "RED" if turn == Color.BLACK else "BLACK"
            w_col = RED_PIECE if winner == "RED" else BLACK_PIECE
            print(GOLD + "\n  ★  CHECKMATE — " + w_col + f"{winner} wins!" + GOLD + "  ★" + RESET)
            return
        if status == GameStatus.STALEMATE:
            print(DIM + "\n  — Stalemate —" + RESET)
            return
        if status == GameStatus.CHECK:
            print(GOLD + "  將軍!" + RESET)

        difficulty = red if turn == Color.RED else black
        result = search(board, difficulty, turn)
        assert result.move is not None

        is_red = turn == Color.RED
        side_col = RED_PIECE if is_red else BLACK_PIECE
        side_lbl = "RED  (紅)" if is_red else "BLACK (黑)"
        prefix = GREEN + f"Move {i // 2 + 1}" + RESET if i % 2 == 0 else "      …"
        print(
            f"{prefix}  [{side_col}{side_lbl}{RESET}]  {Style.BRIGHT}{move_to_str(result.move)}{RESET}"
            f"  {DIM}score={result.score} depth={result.depth} nodes={result.nodes}{RESET}"
        )
        board = board.apply(result.move)
        turn = Color.BLACK if is_red else Color.RED
        print(colored_board(board, turn))
        print(sep)

    print(DIM + f"\n  — Stopped after {max_plies} plies —" + RESET)


if __name__ == "__main__":
    logger.enable("xiangqi_engine")
    logger.remove()
    logger.add(sys.stderr, level="INFO")
    if len(sys.argv) > 1 and sys.argv[1] == "opening":
        play_through(initial_board(), get_difficulty("medium"), get_difficulty("easy"), max_plies=10)
    else:
        solver = Difficulty("solver", depth=3, thinking_time=30.0)
        play_through(puzzle_two_chariots(), solver, solver)
