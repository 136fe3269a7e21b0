from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised by the match engine."""


class InvalidMoveError(EngineError, ValueError):
    """Raised when renderer input does not name one of the three moves."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid move {value!r}. Valid moves are: rock, paper, scissor")


class IllegalStateError(EngineError):
    """Raised when an intent arrives in a phase that cannot accept it."""

    def __init__(self, action: str, phase: str):
        self.action = action
        self.phase = phase
        super().__init__(f"Cannot {action} while {phase}")
