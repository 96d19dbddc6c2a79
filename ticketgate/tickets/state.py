from __future__ import annotations

from enum import Enum


class ScanState(str, Enum):
    """States a ticket passes through during one verification at the gate."""

    UNKNOWN = "unknown"
    NOT_FOUND = "not_found"
    VALID = "valid"
    USED = "used"
    ALREADY_USED = "already_used"


class ScanStateMachine:
    """Validate gate-side transitions; ``used`` never goes back."""

    _TRANSITIONS: dict[ScanState, set[ScanState]] = {
        ScanState.UNKNOWN: {ScanState.NOT_FOUND, ScanState.VALID, ScanState.ALREADY_USED},
        ScanState.VALID: {ScanState.USED, ScanState.ALREADY_USED},
        ScanState.NOT_FOUND: set(),
        ScanState.USED: set(),
        ScanState.ALREADY_USED: set(),
    }

    @classmethod
    def initial_state(cls) -> ScanState:
        return ScanState.UNKNOWN

    @classmethod
    def is_terminal(cls, state: ScanState) -> bool:
        return not cls._TRANSITIONS.get(state)

    @classmethod
    def can_transition(cls, current: ScanState, new: ScanState) -> bool:
        if current == new:
            return True
        return new in cls._TRANSITIONS.get(current, set())

    @classmethod
    def assert_transition(cls, current: ScanState, new: ScanState) -> None:
        if not cls.can_transition(current, new):
            raise ValueError(f"Invalid scan state transition: {current!s} -> {new!s}")
