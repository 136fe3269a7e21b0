from collections import Counter

from duelbrain import BiasPolicy, Difficulty, Move

# Simple smoke test: human always plays Rock, count what the bot answers with
policy = BiasPolicy(random_seed=1234)
history = [Move.ROCK] * 10

for difficulty in Difficulty:
    for fast in (False, True):
        counts = Counter()
        for _ in range(5000):
            move, meta = policy.choose(difficulty, history, committed_fast=fast)
            counts[move] += 1
        freqs = " ".join(f"{m.name.lower()}={counts[m] / 5000:.3f}" for m in Move)
        print(f"difficulty={difficulty.value} fast={fast} {freqs} expected_paper={meta['paper']:.3f}")
