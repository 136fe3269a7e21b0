from .config import Difficulty, EngineSettings
from .core import MatchEngine, MatchResult, MatchState, Phase, Snapshot
from .errors import EngineError, IllegalStateError, InvalidMoveError
from .policy import BiasPolicy
from .records import BestRecord, RecordKeeper
from .scheduler import AsyncioScheduler, ManualScheduler
from .storage import FileStore, MemoryStore, get_store
from .timer import RoundTimer
from .utils import Move, Outcome, beats, counter, outcome

__all__ = [
    "AsyncioScheduler",
    "BestRecord",
    "BiasPolicy",
    "Difficulty",
    "EngineError",
    "EngineSettings",
    "FileStore",
    "IllegalStateError",
    "InvalidMoveError",
    "ManualScheduler",
    "MatchEngine",
    "MatchResult",
    "MatchState",
    "MemoryStore",
    "Move",
    "Outcome",
    "Phase",
    "RecordKeeper",
    "RoundTimer",
    "Snapshot",
    "beats",
    "counter",
    "get_store",
    "outcome",
]
