from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class DifficultyProfile:
    bias_strength: float  # how hard the bot leans on the counter of the human's favourite move
    damage: int  # HP taken from the loser of a round
    fast_nudge: float  # extra edge when the human locks in inside the window


DIFFICULTY_PROFILES: Dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: DifficultyProfile(bias_strength=0.3, damage=12, fast_nudge=0.0),
    Difficulty.MEDIUM: DifficultyProfile(bias_strength=0.5, damage=15, fast_nudge=0.05),
    Difficulty.HARD: DifficultyProfile(bias_strength=0.7, damage=18, fast_nudge=0.08),
}

MAX_HP = 100
HISTORY_SIZE = 10
DECISION_WINDOW_MS = 5000
REVEAL_DELAY_MS = 600
CLEAR_DELAY_MS = 400
MATCH_END_DELAY_MS = 1500


def profile_for(difficulty: Difficulty) -> DifficultyProfile:
    return DIFFICULTY_PROFILES[Difficulty(difficulty)]


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass
class EngineSettings:
    difficulty: Difficulty = Difficulty.MEDIUM
    decision_window_ms: int = DECISION_WINDOW_MS
    reveal_delay_ms: int = REVEAL_DELAY_MS
    clear_delay_ms: int = CLEAR_DELAY_MS
    match_end_delay_ms: int = MATCH_END_DELAY_MS
    seed: Optional[int] = None
    state_dir: str = "./rps_state"
    redis_url: Optional[str] = None
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "EngineSettings":
        seed = os.getenv("RPS_SEED")
        return EngineSettings(
            difficulty=Difficulty(os.getenv("RPS_DIFFICULTY", Difficulty.MEDIUM.value).lower()),
            decision_window_ms=_int_env("RPS_DECISION_WINDOW_MS", DECISION_WINDOW_MS),
            reveal_delay_ms=_int_env("RPS_REVEAL_DELAY_MS", REVEAL_DELAY_MS),
            clear_delay_ms=_int_env("RPS_CLEAR_DELAY_MS", CLEAR_DELAY_MS),
            match_end_delay_ms=_int_env("RPS_MATCH_END_DELAY_MS", MATCH_END_DELAY_MS),
            seed=int(seed) if seed else None,
            state_dir=os.getenv("STATE_DIR", "./rps_state"),
            redis_url=os.getenv("REDIS_URL") or None,
            log_level=os.getenv("RPS_LOG_LEVEL", "INFO"),
        )
