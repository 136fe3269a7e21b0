from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

BEST_SCORE_KEY = "rps_best_score"
BEST_ROUNDS_KEY = "rps_best_rounds"

BASE_WIN_SCORE = 100
FAST_BONUS_RATE = 0.1


def score_for_win(fast: bool) -> int:
    bonus = BASE_WIN_SCORE * FAST_BONUS_RATE if fast else 0
    return int(round(BASE_WIN_SCORE + bonus))


@dataclass(frozen=True)
class BestRecord:
    best_score: int = 0
    best_rounds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"best_score": self.best_score, "best_rounds": self.best_rounds}


def _as_int(v: Any) -> int:
    if v is None:
        return 0
    return int(float(v))


class RecordKeeper:
    """Best-score record backed by a key-value store.

    Values are read once at construction. Any store failure switches the
    keeper to in-memory mode for the rest of the session; the match never
    sees the error.
    """

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store
        self.degraded = store is None
        self.best = BestRecord()
        if store is not None:
            try:
                self.best = BestRecord(
                    best_score=_as_int(store.load(BEST_SCORE_KEY)),
                    best_rounds=_as_int(store.load(BEST_ROUNDS_KEY)),
                )
            except Exception as e:
                logger.warning("Could not read best record, keeping it in memory: %s", e)
                self.degraded = True

    def maybe_update_best_record(self, current_score: int, current_round: int) -> bool:
        # ties do not overwrite, so a repeated call with the same score is a no-op
        if current_score <= self.best.best_score:
            return False
        self.best = BestRecord(best_score=int(current_score), best_rounds=int(current_round))
        logger.info("New best score %d in %d rounds", self.best.best_score, self.best.best_rounds)
        if not self.degraded and self.store is not None:
            try:
                self.store.save(BEST_SCORE_KEY, self.best.best_score)
                self.store.save(BEST_ROUNDS_KEY, self.best.best_rounds)
            except Exception as e:
                logger.warning("Could not save best record, keeping it in memory: %s", e)
                self.degraded = True
        return True
