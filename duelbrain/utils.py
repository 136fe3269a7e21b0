from __future__ import annotations

from enum import Enum, IntEnum
from typing import Union

import numpy as np

from .errors import InvalidMoveError


class Move(IntEnum):
    ROCK = 0
    PAPER = 1
    SCISSOR = 2

    @classmethod
    def parse(cls, value: Union["Move", int, str]) -> "Move":
        """Accept a Move, its int value or its name ("scissors" is allowed)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidMoveError(value)
        if isinstance(value, (int, np.integer)):
            try:
                return cls(int(value))
            except ValueError:
                raise InvalidMoveError(value) from None
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "SCISSORS":
                name = "SCISSOR"
            if name in cls.__members__:
                return cls[name]
        raise InvalidMoveError(value)


class Outcome(str, Enum):
    HUMAN_WINS = "human_wins"
    BOT_WINS = "bot_wins"
    DRAW = "draw"


MOVES = [Move.ROCK, Move.PAPER, Move.SCISSOR]

# PAYOFF[i, j] = result of playing i against j (1 win, 0 draw, -1 lose)
# indices: 0=Rock,1=Paper,2=Scissor
PAYOFF = np.array([
    [0, -1, 1],   # Rock vs [R,P,S]
    [1, 0, -1],   # Paper
    [-1, 1, 0],   # Scissor
], dtype=np.int8)


def counter(move: Move) -> Move:
    # the move that beats `move` is always the next one in the cycle
    return Move((int(move) + 1) % 3)


def beats(a: Move, b: Move) -> bool:
    return bool(PAYOFF[int(a), int(b)] == 1)


def outcome(human: Move, bot: Move) -> Outcome:
    if human == bot:
        return Outcome.DRAW
    if beats(human, bot):
        return Outcome.HUMAN_WINS
    return Outcome.BOT_WINS


def normalize(p: np.ndarray) -> np.ndarray:
    """Clamp negatives to zero and rescale to sum 1; uniform if nothing is left."""
    p = np.clip(np.asarray(p, dtype=np.float64), 0.0, None)
    s = float(np.sum(p))
    if s <= 0 or not np.isfinite(s):
        return np.ones(3, dtype=np.float64) / 3.0
    return p / s


def most_frequent(moves) -> Move:
    counts = np.bincount(np.asarray([int(m) for m in moves], dtype=np.int64), minlength=3)
    # argmax returns the first maximum, so ties go to Rock, then Paper
    return Move(int(np.argmax(counts)))
