from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .models import TableState


class ErrorCode(str, Enum):
    SEAT_TAKEN = "SEAT_TAKEN"
    ALREADY_SEATED = "ALREADY_SEATED"
    INVALID_PHASE_FOR_SEATING = "INVALID_PHASE_FOR_SEATING"
    INVALID_SEAT = "INVALID_SEAT"
    NOT_SEATED = "NOT_SEATED"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    INSUFFICIENT_CHIPS = "INSUFFICIENT_CHIPS"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
    HAND_IN_PROGRESS = "HAND_IN_PROGRESS"
    INVALID_ACTION = "INVALID_ACTION"


@dataclass(frozen=True)
class EngineError:
    code: ErrorCode
    msg: str


class ChipConservationError(AssertionError):
    """Chips were created or destroyed inside a hand. Always an engine bug."""


@dataclass
class Outcome:
    """Result of one transition: the new table, or the untouched one plus an error."""

    table: TableState
    error: Optional[EngineError] = None
    events: List[Dict[str, object]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def rejected(table: TableState, code: ErrorCode, msg: str) -> Outcome:
    return Outcome(table=table, error=EngineError(code, msg))
