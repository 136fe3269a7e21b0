import itertools

import pytest

from duelbrain import InvalidMoveError, Move, Outcome, beats, counter, outcome


def test_outcome_is_total_and_draw_iff_equal():
    for a, b in itertools.product(Move, Move):
        res = outcome(a, b)
        assert res in (Outcome.DRAW, Outcome.HUMAN_WINS, Outcome.BOT_WINS)
        assert (res == Outcome.DRAW) == (a == b)
        if a != b:
            assert (res == Outcome.HUMAN_WINS) == beats(a, b)


def test_beats_is_a_three_cycle():
    assert beats(Move.ROCK, Move.SCISSOR)
    assert beats(Move.SCISSOR, Move.PAPER)
    assert beats(Move.PAPER, Move.ROCK)
    for a in Move:
        assert not beats(a, a)
    for a, b in itertools.permutations(Move, 2):
        # exactly one direction wins for distinct moves
        assert beats(a, b) != beats(b, a)


def test_counter_beats_its_argument():
    assert counter(Move.ROCK) == Move.PAPER
    assert counter(Move.PAPER) == Move.SCISSOR
    assert counter(Move.SCISSOR) == Move.ROCK
    for m in Move:
        assert beats(counter(m), m)


def test_parse_accepts_names_ints_and_alias():
    assert Move.parse("rock") == Move.ROCK
    assert Move.parse(" Paper ") == Move.PAPER
    assert Move.parse("scissors") == Move.SCISSOR
    assert Move.parse(2) == Move.SCISSOR
    assert Move.parse(Move.PAPER) is Move.PAPER


@pytest.mark.parametrize("bad", ["lizard", "", 3, -1, None, True, 1.5])
def test_parse_rejects_anything_else(bad):
    with pytest.raises(InvalidMoveError):
        Move.parse(bad)
