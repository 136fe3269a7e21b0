from typing import List, Optional, Tuple

from duelbrain import (
    Difficulty,
    ManualScheduler,
    MatchEngine,
    MemoryStore,
    Move,
    RecordKeeper,
    RoundTimer,
)


class FixedPolicy:
    """Plays the given moves in order, repeating the last one."""

    def __init__(self, *moves: Move):
        self.moves: List[Move] = list(moves)
        self.calls: List[Tuple[Difficulty, List[Move], bool]] = []

    def choose(self, difficulty, recent_moves, committed_fast=False):
        self.calls.append((difficulty, list(recent_moves), committed_fast))
        move = self.moves.pop(0) if len(self.moves) > 1 else self.moves[0]
        return move, {}


def make_engine(
    difficulty: Difficulty = Difficulty.MEDIUM,
    *bot_moves: Move,
    store: Optional[MemoryStore] = None,
) -> Tuple[MatchEngine, ManualScheduler]:
    scheduler = ManualScheduler()
    engine = MatchEngine(
        difficulty=difficulty,
        policy=FixedPolicy(*(bot_moves or (Move.ROCK,))),
        records=RecordKeeper(store if store is not None else MemoryStore()),
        timer=RoundTimer(clock=scheduler.clock),
        scheduler=scheduler,
    )
    return engine, scheduler


def play(engine: MatchEngine, scheduler: ManualScheduler, move, think_ms: int = 1000):
    """Wait think_ms, submit, then let the reveal delay run out."""
    scheduler.advance(think_ms)
    engine.submit_human_move(move)
    scheduler.advance(engine.reveal_delay_ms)
    return engine.snapshot()
