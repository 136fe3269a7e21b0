import random

from duelbrain import Difficulty, ManualScheduler, MatchEngine, MemoryStore, RecordKeeper, RoundTimer
from duelbrain.core import Phase
from duelbrain.logging_config import configure_logging


def play_round(engine: MatchEngine, scheduler: ManualScheduler, rng: random.Random):
    # Simulated human: thinks for 1-7 seconds, favours Rock
    scheduler.advance(rng.randint(1000, 7000))
    human = rng.choices(["rock", "paper", "scissor"], weights=[0.5, 0.25, 0.25])[0]
    engine.submit_human_move(human)
    scheduler.advance(engine.reveal_delay_ms)
    snap = engine.snapshot()
    if snap.phase == Phase.ROUND_ADVANCE:
        scheduler.advance(engine.clear_delay_ms)
    return snap


def main():
    configure_logging()
    scheduler = ManualScheduler()
    engine = MatchEngine(
        difficulty=Difficulty.HARD,
        records=RecordKeeper(MemoryStore()),
        timer=RoundTimer(clock=scheduler.clock),
        scheduler=scheduler,
        random_seed=7,
    )
    rng = random.Random(7)
    while True:
        snap = play_round(engine, scheduler, rng)
        print(
            f"Round {snap.round}: you={snap.last_human_move.name} bot={snap.last_bot_move.name} "
            f"hp={snap.user_hp}/{snap.bot_hp} score={snap.score} {snap.message}"
        )
        if snap.phase == Phase.MATCH_END:
            print(f"Result: {snap.match_result.value}  best={snap.best_score} in {snap.best_rounds} rounds")
            break


if __name__ == "__main__":
    main()
