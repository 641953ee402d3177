from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .cards import Card
from .evaluator import HandCategory, HandEvaluation


class Phase(str, Enum):
    SETUP = "SETUP"
    PRE_FLOP = "PRE_FLOP"
    FLOP = "FLOP"
    TURN = "TURN"
    RIVER = "RIVER"
    SHOWDOWN = "SHOWDOWN"


BETTING_PHASES = (Phase.PRE_FLOP, Phase.FLOP, Phase.TURN, Phase.RIVER)


class PlayerStatus(str, Enum):
    ACTIVE = "ACTIVE"
    FOLDED = "FOLDED"
    ALL_IN = "ALL_IN"
    BUSTED = "BUSTED"


class ActionType(str, Enum):
    FOLD = "FOLD"
    CHECK_OR_CALL = "CHECK_OR_CALL"
    RAISE = "RAISE"


@dataclass(frozen=True)
class Action:
    type: ActionType
    # Raise size on top of the current bet; only used by RAISE.
    amount: Optional[int] = None

    @classmethod
    def fold(cls) -> "Action":
        return cls(ActionType.FOLD)

    @classmethod
    def check_or_call(cls) -> "Action":
        return cls(ActionType.CHECK_OR_CALL)

    @classmethod
    def raise_by(cls, amount: int) -> "Action":
        return cls(ActionType.RAISE, amount)


@dataclass
class TableConfig:
    seats: int = 9
    starting_stack: int = 1_000
    sb: int = 10
    bb: int = 20
    move_time_ms: int = 0
    next_hand_delay_ms: int = 8_000
    fold_win_delay_ms: int = 4_000


@dataclass
class Player:
    id: str
    name: str
    chips: int
    seat_index: int
    bet: int = 0
    contributed: int = 0
    hand: List[Card] = field(default_factory=list)
    status: PlayerStatus = PlayerStatus.ACTIVE
    is_dealer: bool = False
    is_small_blind: bool = False
    is_big_blind: bool = False

    @property
    def in_hand(self) -> bool:
        return self.status in (PlayerStatus.ACTIVE, PlayerStatus.ALL_IN)

    def reset_for_hand(self) -> None:
        self.bet = 0
        self.contributed = 0
        self.hand = []
        self.is_dealer = False
        self.is_small_blind = False
        self.is_big_blind = False
        self.status = PlayerStatus.ACTIVE if self.chips > 0 else PlayerStatus.BUSTED

    def reset_for_round(self) -> None:
        self.bet = 0


@dataclass
class LogEntry:
    seq: int
    message: str
    kind: str = "info"


@dataclass
class HandResult:
    hand_number: int
    pot: int
    awards: Dict[str, int] = field(default_factory=dict)
    refunds: Dict[str, int] = field(default_factory=dict)
    winner_ids: List[str] = field(default_factory=list)
    category: Optional[HandCategory] = None
    showdown: Dict[str, HandEvaluation] = field(default_factory=dict)

    @property
    def by_default(self) -> bool:
        return self.category is None


@dataclass
class TableState:
    config: TableConfig = field(default_factory=TableConfig)
    players: List[Player] = field(default_factory=list)
    deck: List[Card] = field(default_factory=list)
    community: List[Card] = field(default_factory=list)
    pot: int = 0
    current_bet: int = 0
    min_raise: int = 0
    dealer_idx: Optional[int] = None
    active_player_idx: Optional[int] = None
    last_aggressor_idx: Optional[int] = None
    pending: Set[int] = field(default_factory=set)
    phase: Phase = Phase.SETUP
    winner_idx: Optional[int] = None
    hand_number: int = 0
    action_seq: int = 0
    chip_total: int = 0
    last_result: Optional[HandResult] = None
    log: List[LogEntry] = field(default_factory=list)

    def clone(self) -> "TableState":
        return copy.deepcopy(self)

    def add_log(self, message: str, kind: str = "info") -> None:
        self.log.append(LogEntry(seq=len(self.log), message=message, kind=kind))

    def find_index(self, player_id: str) -> Optional[int]:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return None

    @property
    def active_player(self) -> Optional[Player]:
        if self.active_player_idx is None:
            return None
        return self.players[self.active_player_idx]

    @property
    def in_hand(self) -> bool:
        return self.phase in BETTING_PHASES

    def chips_in_play(self) -> int:
        return self.pot + sum(player.chips for player in self.players)
