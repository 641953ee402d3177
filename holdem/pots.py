from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from .evaluator import HandEvaluation
from .models import TableState


@dataclass
class Pot:
    amount: int
    eligible: List[int]
    # Chips each player paid into this pot.
    shares: Dict[int, int] = field(default_factory=dict)

    @property
    def contested(self) -> bool:
        return len(self.shares) > 1


@dataclass
class PotAward:
    pot: Pot
    winners: List[int] = field(default_factory=list)
    payouts: Dict[int, int] = field(default_factory=dict)


def build_pots(table: TableState) -> List[Pot]:
    """Split everything committed this hand into a main pot and side pots.

    Each layer is capped by the smallest remaining contribution, so an all-in
    player is only eligible for the layers it fully matched. Folded chips stay
    in the layers they paid into. Adjacent layers merge only when they have
    the same eligible players and are both contested (or both uncalled).
    """
    remaining = {idx: player.contributed for idx, player in enumerate(table.players) if player.contributed > 0}
    pots: List[Pot] = []
    while True:
        payers = [idx for idx, amount in remaining.items() if amount > 0]
        if not payers:
            break
        layer = min(remaining[idx] for idx in payers)
        for idx in payers:
            remaining[idx] -= layer
        eligible = [idx for idx in payers if table.players[idx].in_hand]
        contested = len(payers) > 1
        if pots and pots[-1].eligible == eligible and pots[-1].contested == contested:
            pot = pots[-1]
        else:
            pot = Pot(amount=0, eligible=eligible)
            pots.append(pot)
        pot.amount += layer * len(payers)
        for idx in payers:
            pot.shares[idx] = pot.shares.get(idx, 0) + layer
    return pots


def split_pot(pot: Pot, evaluations: Mapping[int, HandEvaluation]) -> PotAward:
    """Share one pot among the best hands; odd chips go out in seat order.

    Uncalled chips, and layers no live player matched, go back to whoever
    paid them.
    """
    award = PotAward(pot=pot)
    if not pot.contested or not pot.eligible:
        award.payouts = dict(pot.shares)
        return award
    if len(pot.eligible) == 1:
        award.winners = list(pot.eligible)
    else:
        best = max(evaluations[idx].key for idx in pot.eligible)
        award.winners = sorted(idx for idx in pot.eligible if evaluations[idx].key == best)
    share, remainder = divmod(pot.amount, len(award.winners))
    for position, idx in enumerate(award.winners):
        award.payouts[idx] = share + (1 if position < remainder else 0)
    return award


def distribute(table: TableState, evaluations: Mapping[int, HandEvaluation]) -> List[PotAward]:
    return [split_pot(pot, evaluations) for pot in build_pots(table)]
