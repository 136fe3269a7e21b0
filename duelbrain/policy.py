from __future__ import annotations

import random
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from .config import Difficulty, profile_for
from .utils import MOVES, Move, counter, most_frequent, normalize


class BiasPolicy:
    """Opponent that leans against the human's most common recent move.

    The distribution starts uniform, shifts mass toward the counter of the
    favourite move in the recent history, and on Medium/Hard gets an extra
    nudge toward Paper when the human commits inside the decision window.
    The random source is injected so callers can seed it.
    """

    def __init__(self, random_seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random(random_seed)

    def distribution(
        self,
        difficulty: Difficulty,
        recent_moves: Iterable[Move],
        committed_fast: bool = False,
    ) -> np.ndarray:
        profile = profile_for(difficulty)
        p = np.ones(3, dtype=np.float64) / 3.0

        history = list(recent_moves)
        if history:
            fav = most_frequent(history)
            target = counter(fav)
            shift = profile.bias_strength * 0.5
            for m in MOVES:
                if m == target:
                    p[m] += shift
                else:
                    p[m] -= shift / 2.0

        if committed_fast and profile.fast_nudge > 0:
            p = self._nudge(p, profile.fast_nudge)

        return normalize(p)

    @staticmethod
    def _nudge(p: np.ndarray, amount: float) -> np.ndarray:
        # push mass toward Paper (beats Rock), the most common human opener
        out = np.array(p, dtype=np.float64)
        out[Move.ROCK] = max(0.05, out[Move.ROCK] - amount / 3.0)
        out[Move.PAPER] = min(0.9, out[Move.PAPER] + amount / 2.0)
        out[Move.SCISSOR] = max(0.05, out[Move.SCISSOR] - amount / 6.0)
        return out

    def choose(
        self,
        difficulty: Difficulty,
        recent_moves: Iterable[Move],
        committed_fast: bool = False,
    ) -> Tuple[Move, Dict[str, float]]:
        probs = self.distribution(difficulty, recent_moves, committed_fast)
        r = self.rng.random()
        if r < probs[Move.ROCK]:
            move = Move.ROCK
        elif r < probs[Move.ROCK] + probs[Move.PAPER]:
            move = Move.PAPER
        else:
            move = Move.SCISSOR
        meta = {m.name.lower(): float(probs[m]) for m in MOVES}
        return move, meta
