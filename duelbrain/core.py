from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from .config import (
    CLEAR_DELAY_MS,
    HISTORY_SIZE,
    MATCH_END_DELAY_MS,
    MAX_HP,
    REVEAL_DELAY_MS,
    Difficulty,
    EngineSettings,
    profile_for,
)
from .errors import IllegalStateError
from .policy import BiasPolicy
from .records import RecordKeeper, score_for_win
from .scheduler import AsyncioScheduler, CancelHandle, ManualScheduler, Scheduler
from .storage import KeyValueStore
from .timer import RoundTimer
from .utils import Move, Outcome, outcome

logger = logging.getLogger(__name__)

PICK_MESSAGE = "Pick a card"


class Phase(str, Enum):
    AWAITING_PICK = "awaiting_pick"
    RESOLVING = "resolving"
    ROUND_ADVANCE = "round_advance"
    MATCH_END = "match_end"


class MatchResult(str, Enum):
    HUMAN_WON = "human_won"
    HUMAN_LOST = "human_lost"


@dataclass
class PendingRound:
    human_move: Move
    bot_move: Move
    fast: bool
    damage: int
    bot_probs: Dict[str, float] = field(default_factory=dict)


@dataclass
class MatchState:
    user_hp: int = MAX_HP
    bot_hp: int = MAX_HP
    round: int = 1
    streak: int = 0
    has_shield: bool = False
    shield_armed: bool = False
    recent_human_moves: Deque[Move] = field(default_factory=lambda: deque(maxlen=HISTORY_SIZE))
    score: int = 0
    timer_started_at: float = 0.0
    pending: Optional[PendingRound] = None
    # renderer-facing
    message: str = PICK_MESSAGE
    last_human_move: Optional[Move] = None
    last_bot_move: Optional[Move] = None
    last_fast: bool = False
    last_bot_probs: Dict[str, float] = field(default_factory=dict)
    match_result: Optional[MatchResult] = None
    user_wins: int = 0
    bot_wins: int = 0

    @property
    def live(self) -> bool:
        return self.user_hp > 0 and self.bot_hp > 0


@dataclass(frozen=True)
class Snapshot:
    phase: Phase
    difficulty: Difficulty
    user_hp: int
    bot_hp: int
    round: int
    streak: int
    has_shield: bool
    shield_armed: bool
    score: int
    message: str
    last_human_move: Optional[Move]
    last_bot_move: Optional[Move]
    fast: bool
    remaining_ms: int
    match_result: Optional[MatchResult]
    best_score: int
    best_rounds: int
    user_wins: int
    bot_wins: int
    bot_probs: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "difficulty": self.difficulty.value,
            "user_hp": self.user_hp,
            "bot_hp": self.bot_hp,
            "round": self.round,
            "streak": self.streak,
            "has_shield": self.has_shield,
            "shield_armed": self.shield_armed,
            "score": self.score,
            "message": self.message,
            "last_human_move": self.last_human_move.name.lower() if self.last_human_move is not None else None,
            "last_bot_move": self.last_bot_move.name.lower() if self.last_bot_move is not None else None,
            "fast": self.fast,
            "remaining_ms": self.remaining_ms,
            "match_result": self.match_result.value if self.match_result is not None else None,
            "best_score": self.best_score,
            "best_rounds": self.best_rounds,
            "user_wins": self.user_wins,
            "bot_wins": self.bot_wins,
            "bot_probs": dict(self.bot_probs),
        }


Listener = Callable[[Snapshot], None]


class MatchEngine:
    """Round-resolution state machine for one human-vs-bot match.

    AWAITING_PICK -> RESOLVING -> ROUND_ADVANCE | MATCH_END. The delayed steps
    (reveal, clear, automatic reset after a match) go through the scheduler so
    that reset() can cancel anything still pending from the previous match.
    All calls are expected from a single thread of control.
    """

    def __init__(
        self,
        difficulty: Difficulty = Difficulty.MEDIUM,
        policy: Optional[BiasPolicy] = None,
        records: Optional[RecordKeeper] = None,
        timer: Optional[RoundTimer] = None,
        scheduler: Optional[Scheduler] = None,
        reveal_delay_ms: int = REVEAL_DELAY_MS,
        clear_delay_ms: int = CLEAR_DELAY_MS,
        match_end_delay_ms: int = MATCH_END_DELAY_MS,
        random_seed: Optional[int] = None,
    ):
        self.difficulty = Difficulty(difficulty)
        self.policy = policy if policy is not None else BiasPolicy(random_seed=random_seed)
        self.records = records if records is not None else RecordKeeper()
        if scheduler is None:
            scheduler = ManualScheduler()
            if timer is None:
                timer = RoundTimer(clock=scheduler.clock)
        self.scheduler = scheduler
        self.timer = timer if timer is not None else RoundTimer()
        self.reveal_delay_ms = reveal_delay_ms
        self.clear_delay_ms = clear_delay_ms
        self.match_end_delay_ms = match_end_delay_ms

        self.state = MatchState()
        self.phase = Phase.AWAITING_PICK
        self._handles: List[CancelHandle] = []
        self._listeners: List[Listener] = []
        self.start_round()

    @staticmethod
    def from_settings(
        settings: EngineSettings,
        store: Optional[KeyValueStore] = None,
        scheduler: Optional[Scheduler] = None,
        timer: Optional[RoundTimer] = None,
    ) -> "MatchEngine":
        """Build a real-time engine: wall-clock timer and asyncio-driven delays by default."""
        return MatchEngine(
            difficulty=settings.difficulty,
            records=RecordKeeper(store),
            timer=timer if timer is not None else RoundTimer(window_ms=settings.decision_window_ms),
            scheduler=scheduler if scheduler is not None else AsyncioScheduler(),
            reveal_delay_ms=settings.reveal_delay_ms,
            clear_delay_ms=settings.clear_delay_ms,
            match_end_delay_ms=settings.match_end_delay_ms,
            random_seed=settings.seed,
        )

    # ---------------- Listeners ----------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self) -> Snapshot:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("Snapshot listener failed")
        return snap

    # ---------------- Read side ----------------
    def remaining_ms(self) -> int:
        if self.phase != Phase.AWAITING_PICK:
            return 0
        return int(self.timer.remaining(self.state.timer_started_at))

    def snapshot(self) -> Snapshot:
        s = self.state
        best = self.records.best
        return Snapshot(
            phase=self.phase,
            difficulty=self.difficulty,
            user_hp=s.user_hp,
            bot_hp=s.bot_hp,
            round=s.round,
            streak=s.streak,
            has_shield=s.has_shield,
            shield_armed=s.shield_armed,
            score=s.score,
            message=s.message,
            last_human_move=s.last_human_move,
            last_bot_move=s.last_bot_move,
            fast=s.last_fast,
            remaining_ms=self.remaining_ms(),
            match_result=s.match_result,
            best_score=best.best_score,
            best_rounds=best.best_rounds,
            user_wins=s.user_wins,
            bot_wins=s.bot_wins,
            bot_probs=dict(s.last_bot_probs),
        )

    def damage_for_difficulty(self) -> int:
        return profile_for(self.difficulty).damage

    # ---------------- Intents ----------------
    def set_difficulty(self, difficulty: Union[Difficulty, str]) -> Snapshot:
        # rounds already submitted keep the damage they were submitted with
        self.difficulty = Difficulty(difficulty)
        logger.debug("Difficulty set to %s", self.difficulty.value)
        return self._emit()

    def start_round(self) -> Snapshot:
        s = self.state
        s.timer_started_at = self.timer.now()
        s.pending = None
        s.message = PICK_MESSAGE
        self.phase = Phase.AWAITING_PICK
        return self._emit()

    def submit_human_move(self, move: Union[Move, int, str]) -> Snapshot:
        human = Move.parse(move)
        if self.phase != Phase.AWAITING_PICK:
            raise IllegalStateError("submit a move", self.phase.value)
        s = self.state
        fast = self.timer.committed_fast(s.timer_started_at)
        # the bot sees the history before this move is added
        bot, probs = self.policy.choose(self.difficulty, s.recent_human_moves, fast)
        s.recent_human_moves.append(human)
        # damage is fixed at submit time; a later difficulty change only affects the next round
        s.pending = PendingRound(
            human_move=human, bot_move=bot, fast=fast, damage=self.damage_for_difficulty(), bot_probs=probs
        )
        s.last_fast = fast
        self.phase = Phase.RESOLVING
        logger.debug("Round %d: human=%s bot=%s fast=%s", s.round, human.name, bot.name, fast)
        self._schedule(self.reveal_delay_ms, self.resolve)
        return self._emit()

    def arm_shield(self) -> Snapshot:
        s = self.state
        if s.has_shield:
            s.shield_armed = not s.shield_armed
        return self._emit()

    def resolve(self) -> Snapshot:
        if self.phase != Phase.RESOLVING or self.state.pending is None:
            return self.snapshot()
        self._cancel_pending()
        s = self.state
        pending = s.pending
        res = outcome(pending.human_move, pending.bot_move)
        dmg = pending.damage
        s.last_human_move = pending.human_move
        s.last_bot_move = pending.bot_move
        s.last_bot_probs = dict(pending.bot_probs)

        if res == Outcome.DRAW:
            s.message = "Draw. No damage."
            s.streak = 0
        elif res == Outcome.HUMAN_WINS:
            s.bot_hp = max(0, s.bot_hp - dmg)
            s.user_wins += 1
            s.streak += 1
            if s.streak >= 2:
                s.has_shield = True
            s.score += score_for_win(pending.fast)
            s.message = f"You win the round! {dmg} dmg"
        else:
            applied = dmg
            if s.has_shield and s.shield_armed:
                applied = dmg // 2
                s.has_shield = False
                s.shield_armed = False
            s.user_hp = max(0, s.user_hp - applied)
            s.bot_wins += 1
            s.streak = 0
            s.message = f"Bot wins the round! {applied} dmg to you"

        if s.live:
            self.phase = Phase.ROUND_ADVANCE
            self._schedule(self.clear_delay_ms, self.advance_round)
        else:
            self._end_match()
        return self._emit()

    def advance_round(self) -> Snapshot:
        if self.phase != Phase.ROUND_ADVANCE:
            return self.snapshot()
        self._cancel_pending()
        self.state.round += 1
        return self.start_round()

    def reset(self) -> Snapshot:
        self._cancel_pending()
        self.state = MatchState()
        logger.debug("Match reset")
        return self.start_round()

    # ---------------- Internals ----------------
    def _end_match(self) -> None:
        s = self.state
        s.match_result = MatchResult.HUMAN_WON if s.bot_hp == 0 else MatchResult.HUMAN_LOST
        self.phase = Phase.MATCH_END
        logger.info(
            "Match over after %d rounds: %s (score %d)", s.round, s.match_result.value, s.score
        )
        self.records.maybe_update_best_record(s.score, s.round)
        self._schedule(self.match_end_delay_ms, self.reset)

    def _cancel_pending(self) -> None:
        # at most one continuation is outstanding; a manual step supersedes it
        for handle in self._handles:
            handle.cancel()
        self._handles = []

    def _schedule(self, delay_ms: int, fn: Callable[[], Any]) -> None:
        self._handles = [h for h in self._handles if h.pending]
        self._handles.append(self.scheduler.schedule_after(delay_ms, fn))
