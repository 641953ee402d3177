"""Texas Hold'em table engine: pure state transitions, no I/O."""

from .betting import LegalActions, legal_actions
from .cards import Card, RANKS, SUITS, create_deck, deal, parse_cards, shuffle
from .commentary import Commentator, narrate_hand
from .errors import ChipConservationError, EngineError, ErrorCode, Outcome
from .evaluator import HandCategory, HandEvaluation, compare_hands, evaluate_cards, evaluate_hand
from .game import advance_after_timeout, apply_action, new_table, sit_down, stand_up, start_hand
from .models import (
    Action,
    ActionType,
    HandResult,
    Phase,
    Player,
    PlayerStatus,
    TableConfig,
    TableState,
)
from .snapshot import table_snapshot

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "create_deck",
    "deal",
    "parse_cards",
    "shuffle",
    "HandCategory",
    "HandEvaluation",
    "compare_hands",
    "evaluate_cards",
    "evaluate_hand",
    "Action",
    "ActionType",
    "HandResult",
    "Phase",
    "Player",
    "PlayerStatus",
    "TableConfig",
    "TableState",
    "ChipConservationError",
    "EngineError",
    "ErrorCode",
    "Outcome",
    "LegalActions",
    "legal_actions",
    "new_table",
    "sit_down",
    "stand_up",
    "start_hand",
    "apply_action",
    "advance_after_timeout",
    "Commentator",
    "narrate_hand",
    "table_snapshot",
]
