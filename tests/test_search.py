"""Search engine tests."""

import numpy as np
import pytest

from xiangqi_engine import (
    Board,
    Cell,
    Color,
    Difficulty,
    PieceType,
    all_legal_moves,
    best_move,
    encode,
    evaluate,
    get_difficulty,
    initial_board,
    is_checkmate,
    is_legal_move,
    opponent,
    search,
)
from xiangqi_engine.search import (
    _TT_LOWER,
    _TT_UPPER,
    INF,
    MATE_SCORE,
    TranspositionCache,
    _Context,
    _terminal_score,
    _TTEntry,
    alphabeta,
)


def _grid_board(*placements: tuple[int, int, Color, PieceType]) -> Board:
    grid = [[0] * 9 for _ in range(10)]
    for r, c, color, pt in placements:
        grid[r][c] = encode(color, pt)
    return Board.from_array(grid)


def _mate_in_1_board(mirrored: bool = False) -> tuple[Board, Color, Cell, Cell]:
    """One chariot covers the second rank, the other mates along the back rank.

    Returns (board, side to move, mating origin, mating destination).
    """
    attacker, defender = Color.RED, Color.BLACK
    placements = [
        (0, 4, defender, PieceType.GENERAL),
        (5, 0, attacker, PieceType.CHARIOT),
        (1, 8, attacker, PieceType.CHARIOT),
        (9, 3, attacker, PieceType.GENERAL),
    ]
    origin, dest = Cell(5, 0), Cell(0, 0)
    if mirrored:
        flip = {Color.RED: Color.BLACK, Color.BLACK: Color.RED}
        placements = [(9 - r, c, flip[color], pt) for r, c, color, pt in placements]
        attacker = Color.BLACK
        origin, dest = Cell(4, 0), Cell(9, 0)
    return _grid_board(*placements), attacker, origin, dest


def _mated_board() -> Board:
    return _grid_board(
        (0, 4, Color.BLACK, PieceType.GENERAL),
        (0, 0, Color.RED, PieceType.CHARIOT),
        (1, 8, Color.RED, PieceType.CHARIOT),
        (9, 3, Color.RED, PieceType.GENERAL),
    )


def _stalemated_board() -> Board:
    return _grid_board(
        (0, 4, Color.BLACK, PieceType.GENERAL),
        (1, 0, Color.RED, PieceType.CHARIOT),
        (2, 5, Color.RED, PieceType.CHARIOT),
        (9, 3, Color.RED, PieceType.GENERAL),
    )


@pytest.mark.parametrize("mirrored", [False, True])
@pytest.mark.parametrize("depth", [1, 2])
def test_finds_mate_in_1(mirrored: bool, depth: int) -> None:
    board, side, origin, dest = _mate_in_1_board(mirrored)
    result = search(board, Difficulty("test", depth=depth, thinking_time=30.0), side)
    assert result.move is not None
    assert (result.move.origin, result.move.destination) == (origin, dest)
    assert is_checkmate(board.apply(result.move), Color.BLACK if side == Color.RED else Color.RED)
    assert result.mate_in == 1
    assert result.score == MATE_SCORE - 1


def test_mate_stops_iterative_deepening_early() -> None:
    board, side, _, _ = _mate_in_1_board()
    result = search(board, Difficulty("test", depth=3, thinking_time=30.0), side)
    assert result.depth == 1
    assert not result.timed_out


@pytest.mark.parametrize("depth", [1, 2])
def test_takes_free_chariot(depth: int) -> None:
    board = _grid_board(
        (9, 3, Color.RED, PieceType.GENERAL),
        (0, 5, Color.BLACK, PieceType.GENERAL),
        (5, 0, Color.RED, PieceType.CHARIOT),
        (5, 8, Color.BLACK, PieceType.CHARIOT),
    )
    move = best_move(board, Difficulty("test", depth=depth, thinking_time=30.0), Color.RED)
    assert move is not None
    assert move.destination == Cell(5, 8)
    assert move.captured is not None and move.captured.type == PieceType.CHARIOT


def test_search_does_not_modify_board() -> None:
    board = initial_board()
    before = board.copy()
    result = search(board, Difficulty("test", depth=1, thinking_time=5.0), Color.RED)
    assert board == before
    assert result.move is not None
    assert is_legal_move(board, result.move.piece, result.move.origin, result.move.destination)
    assert result.nodes == 44
    assert result.depth == 1


def test_search_is_deterministic_without_randomness() -> None:
    board = initial_board()
    difficulty = Difficulty("test", depth=1, thinking_time=5.0)
    first = search(board, difficulty, Color.BLACK).move
    second = search(board, difficulty, Color.BLACK).move
    assert first is not None and second is not None
    assert (first.origin, first.destination) == (second.origin, second.destination)


def test_no_moves_when_checkmated() -> None:
    result = search(_mated_board(), get_difficulty("medium"), Color.BLACK)
    assert result.move is None
    assert result.depth == 0
    assert result.score == -MATE_SCORE


def test_no_moves_when_stalemated() -> None:
    assert best_move(_stalemated_board(), get_difficulty("easy"), Color.BLACK) is None


def test_randomness_substitutes_a_legal_move() -> None:
    board = initial_board()
    rng = np.random.default_rng(42)
    result = search(board, Difficulty("chaos", depth=1, thinking_time=5.0, randomness=1.0), Color.RED, rng=rng)
    assert result.randomized
    assert result.move is not None
    legal = {(m.origin, m.destination) for m in all_legal_moves(board, Color.RED)}
    assert (result.move.origin, result.move.destination) in legal


def test_zero_randomness_never_substitutes() -> None:
    board, side, origin, dest = _mate_in_1_board()
    rng = np.random.default_rng(0)
    for _ in range(3):
        result = search(board, Difficulty("test", depth=1, thinking_time=5.0, randomness=0.0), side, rng=rng)
        assert not result.randomized
        assert (result.move.origin, result.move.destination) == (origin, dest)


def test_time_budget_keeps_last_completed_depth() -> None:
    board = initial_board()
    result = search(board, Difficulty("rushed", depth=3, thinking_time=0.0), Color.RED)
    assert result.move is not None
    assert result.depth == 1
    assert result.timed_out


def test_transposition_cache_evicts_least_recently_used() -> None:
    cache = TranspositionCache(capacity=2)
    cache.put(1, _TTEntry(1, 10, 0, None))
    cache.put(2, _TTEntry(1, 20, 0, None))
    assert cache.get(1) is not None  # 1 is now the most recent
    cache.put(3, _TTEntry(1, 30, 0, None))
    assert 2 not in cache
    assert 1 in cache and 3 in cache
    assert len(cache) == 2
    assert cache.hits == 1
    assert cache.get(2) is None
    assert cache.hits == 1


def test_transposition_cache_rejects_zero_capacity() -> None:
    with pytest.raises(ValueError):
        TranspositionCache(capacity=0)


def _minimax(board: Board, depth: int, side: Color, color: Color, ply: int = 0) -> int:
    """Plain minimax with the same leaf and terminal scoring as the engine."""
    if depth == 0:
        if is_checkmate(board, side):
            return _terminal_score(side == color, ply)
        return evaluate(board, color)
    moves = all_legal_moves(board, side)
    if not moves:
        return _terminal_score(side == color, ply)
    scores = [_minimax(board.apply(m), depth - 1, opponent(side), color, ply + 1) for m in moves]
    return max(scores) if side == color else min(scores)


def _playout_positions(seed: int, plies: int) -> list[tuple[Board, Color]]:
    rng = np.random.default_rng(seed)
    board, side = initial_board(), Color.RED
    positions = [(board, side)]
    for _ in range(plies):
        moves = all_legal_moves(board, side)
        if not moves:
            break
        board = board.apply(moves[int(rng.integers(len(moves)))])
        side = opponent(side)
        positions.append((board, side))
    return positions


def test_alphabeta_with_cache_matches_minimax() -> None:
    for board, side in _playout_positions(11, 10)[::5]:
        ctx = _Context(side, TranspositionCache())
        score, move = alphabeta(board, 2, -INF, INF, side, 0, ctx)
        assert score == _minimax(board, 2, side, side)
        assert move is not None


def test_fail_low_under_cached_lower_bound_is_stored_as_upper_bound() -> None:
    board = initial_board()
    key = board.zobrist_hash(Color.RED)
    cache = TranspositionCache()
    # A deeper lower bound far above anything a one-ply search can reach.
    cache.put(key, _TTEntry(5, 50_000, _TT_LOWER, None))
    ctx = _Context(Color.RED, cache)
    score, _ = alphabeta(board, 1, -INF, INF, Color.RED, 0, ctx)
    assert score < 50_000
    entry = cache.get(key)
    assert entry is not None
    assert entry.depth == 1
    assert entry.flag == _TT_UPPER


def test_stalemated_side_is_scored_as_lost() -> None:
    ctx = _Context(Color.RED, TranspositionCache())
    score, move = alphabeta(_stalemated_board(), 1, -INF, INF, Color.BLACK, 1, ctx)
    assert move is None
    assert score == MATE_SCORE - 1
