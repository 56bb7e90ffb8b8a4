"""
Computer opponent: minimax with alpha-beta pruning, scaled by a `Difficulty`.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass

import numpy as np
from loguru import logger

from .board import Board, Move, move_to_str
from .config import Difficulty
from .evaluate import evaluate, piece_value
from .pieces import Color, opponent
from .rules import all_legal_moves, is_checkmate, is_in_check

INF = 1_000_000
MATE_SCORE = 900_000
# Any absolute score above this threshold is treated as a mate score.
_MATE_BOUND = MATE_SCORE - 500

DEFAULT_CACHE_SIZE = 50_000

_TT_EXACT = 0  # score is exact
_TT_LOWER = 1  # fail-high (β-cutoff): score is a lower bound
_TT_UPPER = 2  # fail-low  (α-cutoff): score is an upper bound


@dataclass
class _TTEntry:
    depth: int
    score: int
    flag: int  # one of _TT_EXACT / _TT_LOWER / _TT_UPPER
    best_move: Move | None


class TranspositionCache:
    """Bounded position cache keyed by Zobrist hash, evicting the least recently used entry."""

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.hits = 0
        self._entries: OrderedDict[int, _TTEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: int) -> bool:
        return key in self._entries

    def get(self, key: int) -> _TTEntry | None:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
            self.hits += 1
        return entry

    def put(self, key: int, entry: _TTEntry) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)


def _tt_store_score(score: int, ply: int) -> int:
    """Normalise a mate score for storage by removing the ply distance."""
    if score > _MATE_BOUND:
        return score + ply
    if score < -_MATE_BOUND:
        return score - ply
    return score


def _tt_get_score(score: int, ply: int) -> int:
    """Denormalise a stored score by re-adding the current ply distance."""
    if score > _MATE_BOUND:
        return score - ply
    if score < -_MATE_BOUND:
        return score + ply
    return score


@dataclass(frozen=True)
class SearchResult:
    move: Move | None
    score: int
    depth: int  # deepest fully completed iteration
    nodes: int
    cache_hits: int
    elapsed: float
    timed_out: bool = False
    randomized: bool = False

    @property
    def mate_in(self) -> int | None:
        """Moves until mate for the searching side (negative if it is being mated)."""
        if abs(self.score) <= _MATE_BOUND:
            return None
        plies = MATE_SCORE - abs(self.score)
        moves = (plies + 1) // 2
        return moves if self.score > 0 else -moves


class _Timeout(Exception):
    """Raised inside alphabeta when the search deadline has passed."""


@dataclass
class _Context:
    """Per-call search state; never outlives a single `search` invocation."""

    color: Color
    cache: TranspositionCache
    deadline: float = float("inf")
    nodes: int = 0


def _terminal_score(mover_is_root: bool, ply: int) -> int:
    # Xiangqi rules: a side with no legal move loses, whether checkmated or stalemated.
    return -MATE_SCORE + ply if mover_is_root else MATE_SCORE - ply


def _move_order_score(move: Move, hint: Move | None) -> int:
    """Higher value = searched first: hinted move, then captures by MVV-LVA."""
    if hint is not None and move.origin == hint.origin and move.destination == hint.destination:
        return 60_000
    if move.captured is not None:
        return 40_000 + piece_value(move.captured.type) * 10 - piece_value(move.piece.type)
    return 0


def _ordered(moves: list[Move], hint: Move | None) -> list[Move]:
    return sorted(moves, key=lambda m: _move_order_score(m, hint), reverse=True)


def alphabeta(
    board: Board,
    depth: int,
    alpha: int,
    beta: int,
    side: Color,
    ply: int,
    ctx: _Context,
) -> tuple[int, Move | None]:
    """Score `board` with `side` to move, from the point of view of `ctx.color`.

    Returns (score, best move at this node). Raises _Timeout past the deadline.
    """
    ctx.nodes += 1
    if time.perf_counter() > ctx.deadline:
        raise _Timeout()

    maximizing = side == ctx.color

    if depth == 0:
        if is_checkmate(board, side):
            return _terminal_score(maximizing, ply), None
        return evaluate(board, ctx.color), None

    # --- Transposition table probe -------------------------------------------
    key = board.zobrist_hash(side)
    entry = ctx.cache.get(key)
    tt_move: Move | None = None
    if entry is not None:
        tt_move = entry.best_move
        if entry.depth >= depth:
            s = _tt_get_score(entry.score, ply)
            if entry.flag == _TT_EXACT:
                return s, tt_move
            elif entry.flag == _TT_LOWER:
                alpha = max(alpha, s)
            elif entry.flag == _TT_UPPER:
                beta = min(beta, s)
            if alpha >= beta:
                return s, tt_move
    # -------------------------------------------------------------------------

    # Window after any narrowing by the cache; the stored flag is relative to it.
    alpha_orig = alpha
    beta_orig = beta

    moves = all_legal_moves(board, side)
    if not moves:
        return _terminal_score(maximizing, ply), None

    best = -INF if maximizing else INF
    best_move: Move | None = None
    for move in _ordered(moves, tt_move):
        score, _ = alphabeta(board.apply(move), depth - 1, alpha, beta, opponent(side), ply + 1, ctx)
        if maximizing:
            if score > best:
                best, best_move = score, move
            alpha = max(alpha, best)
        else:
            if score < best:
                best, best_move = score, move
            beta = min(beta, best)
        if beta <= alpha:
            break

    flag = _TT_EXACT
    if best <= alpha_orig:
        flag = _TT_UPPER
    elif best >= beta_orig:
        flag = _TT_LOWER
    ctx.cache.put(key, _TTEntry(depth, _tt_store_score(best, ply), flag, best_move))

    return best, best_move


def _search_root(
    board: Board, moves: list[Move], depth: int, ctx: _Context, pv_move: Move | None
) -> tuple[int, Move]:
    alpha, beta = -INF, INF
    best = -INF
    best_move = moves[0]
    for move in _ordered(moves, pv_move):
        score, _ = alphabeta(board.apply(move), depth - 1, alpha, beta, opponent(ctx.color), 1, ctx)
        logger.trace("depth={} {} → {}", depth, move_to_str(move), score)
        if score > best:
            best, best_move = score, move
        alpha = max(alpha, best)
    return best, best_move


def search(
    board: Board,
    difficulty: Difficulty,
    color: Color,
    rng: np.random.Generator | None = None,
    cache_size: int = DEFAULT_CACHE_SIZE,
) -> SearchResult:
    """Find the best move for `color` by iterative deepening up to `difficulty.depth`.

    Depth 1 always runs to completion; deeper iterations stop at the
    `difficulty.thinking_time` deadline and the deepest completed iteration
    wins. The caller's board is never modified.
    """
    t0 = time.perf_counter()
    root = board.copy()
    logger.info("Searching | color={} | difficulty={} | depth={}", color.name, difficulty.name, difficulty.depth)

    moves = all_legal_moves(root, color)
    if not moves:
        status = "checkmate" if is_in_check(root, color) else "stalemate"
        logger.info("No legal moves for {} ({})", color.name, status)
        return SearchResult(None, _terminal_score(True, 0), 0, 0, 0, time.perf_counter() - t0)

    ctx = _Context(color, TranspositionCache(cache_size))
    chosen: Move | None = None
    best_score = -INF
    completed = 0
    timed_out = False

    for depth in range(1, difficulty.depth + 1):
        if depth > 1:
            ctx.deadline = t0 + difficulty.thinking_time
            if time.perf_counter() >= ctx.deadline:
                timed_out = True
                logger.debug("Time limit reached before starting depth {}", depth)
                break
        try:
            best_score, chosen = _search_root(root, moves, depth, ctx, chosen)
        except _Timeout:
            timed_out = True
            logger.debug("Timeout during depth {} search | {:.3f}s", depth, time.perf_counter() - t0)
            break
        completed = depth
        logger.debug(
            "Depth {} done | best={} | score={} | nodes={}",
            depth,
            move_to_str(chosen),
            best_score,
            ctx.nodes,
        )
        if abs(best_score) > _MATE_BOUND:
            logger.debug("Forced mate found at depth {}, stopping early", depth)
            break

    assert chosen is not None
    randomized = False
    if difficulty.randomness > 0:
        if rng is None:
            rng = np.random.default_rng()
        if rng.random() < difficulty.randomness:
            chosen = moves[int(rng.integers(len(moves)))]
            randomized = True
            logger.debug("Randomness fired, playing {}", move_to_str(chosen))

    elapsed = time.perf_counter() - t0
    logger.info(
        "Result | {} | score={} | depth={} | nodes={} | {:.3f}s",
        move_to_str(chosen),
        best_score,
        completed,
        ctx.nodes,
        elapsed,
    )
    return SearchResult(
        chosen,
        best_score,
        completed,
        ctx.nodes,
        ctx.cache.hits,
        elapsed,
        timed_out=timed_out,
        randomized=randomized,
    )


def best_move(
    board: Board,
    difficulty: Difficulty,
    color: Color,
    rng: np.random.Generator | None = None,
) -> Move | None:
    """Best move for `color`, or None when it has no legal move (game over)."""
    return search(board, difficulty, color, rng=rng).move
