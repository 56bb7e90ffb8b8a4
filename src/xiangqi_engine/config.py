"""
Difficulty settings for the computer opponent.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Difficulty:
    """How hard the engine tries.

    depth          maximum search depth in plies
    thinking_time  wall-clock budget in seconds for iterations beyond depth 1
    randomness     probability of replacing the searched move with a random legal one
    """

    name: str
    depth: int
    thinking_time: float
    randomness: float = 0.0

    def __post_init__(self) -> None:
        if self.depth < 1:
            raise ValueError(f"depth must be >= 1, got {self.depth}")
        if self.thinking_time < 0:
            raise ValueError(f"thinking_time must be >= 0, got {self.thinking_time}")
        if not 0.0 <= self.randomness <= 1.0:
            raise ValueError(f"randomness must be within [0, 1], got {self.randomness}")


DIFFICULTIES: dict[str, Difficulty] = {
    "easy": Difficulty("easy", depth=1, thinking_time=0.5, randomness=0.15),
    "medium": Difficulty("medium", depth=2, thinking_time=0.8, randomness=0.05),
    "hard": Difficulty("hard", depth=2, thinking_time=1.2, randomness=0.01),
    "expert": Difficulty("expert", depth=3, thinking_time=1.5, randomness=0.0),
}


def get_difficulty(name: str) -> Difficulty:
    try:
        return DIFFICULTIES[name]
    except KeyError:
        raise KeyError(f"Unknown difficulty {name!r}; expected one of {sorted(DIFFICULTIES)}") from None
