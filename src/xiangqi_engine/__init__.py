from loguru import logger

from .board import Board, Cell, Move, decode, encode, initial_board
from .config import DIFFICULTIES, Difficulty, get_difficulty
from .evaluate import evaluate
from .pieces import Color, Piece, PieceType, opponent
from .rules import (
    GameStatus,
    all_legal_moves,
    game_status,
    is_basic_move,
    is_checkmate,
    is_in_check,
    is_legal_move,
    is_stalemate,
    legal_moves,
)
from .search import SearchResult, best_move, search

# Silent when embedded; hosts opt in with logger.enable("xiangqi_engine").
logger.disable(__name__)

__all__ = [
    "Board",
    "Cell",
    "Color",
    "DIFFICULTIES",
    "Difficulty",
    "GameStatus",
    "Move",
    "Piece",
    "PieceType",
    "SearchResult",
    "all_legal_moves",
    "best_move",
    "decode",
    "encode",
    "evaluate",
    "game_status",
    "get_difficulty",
    "initial_board",
    "is_basic_move",
    "is_checkmate",
    "is_in_check",
    "is_legal_move",
    "is_stalemate",
    "legal_moves",
    "opponent",
    "search",
]
