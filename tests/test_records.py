from duelbrain import Difficulty, FileStore, MemoryStore, Move, Phase, RecordKeeper, get_store
from duelbrain.records import BEST_ROUNDS_KEY, BEST_SCORE_KEY, score_for_win
from duelbrain.storage import KeyValueStore

from conftest import make_engine, play


class CountingStore(MemoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    def save(self, key, value):
        self.writes.append((key, value))
        super().save(key, value)


class BrokenStore(KeyValueStore):
    def __init__(self, fail_load=True):
        self.fail_load = fail_load

    def load(self, key):
        if self.fail_load:
            raise ConnectionError("store offline")
        return None

    def save(self, key, value):
        raise ConnectionError("store offline")


def test_score_for_win():
    assert score_for_win(False) == 100
    assert score_for_win(True) == 110


def test_reads_existing_record_once():
    keeper = RecordKeeper(MemoryStore({BEST_SCORE_KEY: 450, BEST_ROUNDS_KEY: 9}))
    assert keeper.best.best_score == 450
    assert keeper.best.best_rounds == 9
    assert not keeper.degraded


def test_update_is_idempotent_for_equal_scores():
    store = CountingStore()
    keeper = RecordKeeper(store)

    assert keeper.maybe_update_best_record(300, 4)
    assert store.writes == [(BEST_SCORE_KEY, 300), (BEST_ROUNDS_KEY, 4)]

    assert not keeper.maybe_update_best_record(300, 4)
    assert not keeper.maybe_update_best_record(300, 2)
    assert not keeper.maybe_update_best_record(120, 1)
    assert len(store.writes) == 2

    assert keeper.maybe_update_best_record(410, 6)
    assert store.load(BEST_SCORE_KEY) == 410
    assert store.load(BEST_ROUNDS_KEY) == 6


def test_unreadable_store_degrades_to_memory():
    keeper = RecordKeeper(BrokenStore(fail_load=True))
    assert keeper.degraded
    assert keeper.best.best_score == 0
    assert keeper.maybe_update_best_record(200, 3)
    assert keeper.best.best_score == 200


def test_unwritable_store_degrades_to_memory():
    keeper = RecordKeeper(BrokenStore(fail_load=False))
    assert not keeper.degraded
    assert keeper.maybe_update_best_record(200, 3)
    assert keeper.degraded
    assert keeper.best.best_rounds == 3


def test_match_finishes_with_broken_store():
    engine, scheduler = make_engine(Difficulty.EASY, Move.ROCK)
    engine.records = RecordKeeper(BrokenStore(fail_load=False))
    engine.state.bot_hp = 12
    snap = play(engine, scheduler, Move.PAPER)
    assert snap.phase == Phase.MATCH_END
    assert snap.best_score == 110


def test_file_store_persists_across_instances(tmp_path):
    state_dir = str(tmp_path / "state")
    keeper = RecordKeeper(FileStore(state_dir))
    assert keeper.best.best_score == 0
    keeper.maybe_update_best_record(330, 5)

    reloaded = RecordKeeper(FileStore(state_dir))
    assert reloaded.best.best_score == 330
    assert reloaded.best.best_rounds == 5


def test_get_store_falls_back_to_files(tmp_path, monkeypatch):
    monkeypatch.delenv("REDIS_URL", raising=False)
    store = get_store(str(tmp_path))
    assert isinstance(store, FileStore)
