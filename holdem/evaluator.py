from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .cards import Card


class HandCategory(IntEnum):
    HIGH_CARD = 0
    PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()

    @property
    def slug(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, order=True)
class HandEvaluation:
    """Best five-card hand from a pool; compares by ``key`` only."""

    key: Tuple[int, ...]
    category: HandCategory = field(compare=False)
    best_five: Tuple[Card, ...] = field(compare=False, default=())

    @property
    def label(self) -> str:
        return self.category.label


def evaluate_hand(hole_cards: Sequence[Card], community: Sequence[Card]) -> HandEvaluation:
    if len(hole_cards) != 2:
        raise ValueError(f"Expected 2 hole cards, got {len(hole_cards)}")
    if len(community) > 5:
        raise ValueError(f"Expected at most 5 community cards, got {len(community)}")
    return evaluate_cards(list(hole_cards) + list(community))


def evaluate_cards(cards: Sequence[Card]) -> HandEvaluation:
    """Rank a pool of 1-7 cards. Higher keys are better hands."""
    if not 1 <= len(cards) <= 7:
        raise ValueError(f"Cannot evaluate {len(cards)} cards")
    if len(set(cards)) != len(cards):
        raise ValueError("Duplicate cards in pool")

    ordered = sorted(cards, key=lambda card: card.value, reverse=True)
    by_rank: Dict[int, List[Card]] = defaultdict(list)
    by_suit: Dict[str, List[Card]] = defaultdict(list)
    for card in ordered:
        by_rank[card.value].append(card)
        by_suit[card.suit].append(card)

    flush_cards = next((suited for suited in by_suit.values() if len(suited) >= 5), None)

    if flush_cards:
        high = _straight_high(card.value for card in flush_cards)
        if high:
            return _result(HandCategory.STRAIGHT_FLUSH, [high], _straight_cards(flush_cards, high))

    quads = sorted((rank for rank, group in by_rank.items() if len(group) == 4), reverse=True)
    trips = sorted((rank for rank, group in by_rank.items() if len(group) == 3), reverse=True)
    pairs = sorted((rank for rank, group in by_rank.items() if len(group) == 2), reverse=True)

    if quads:
        quad = quads[0]
        kickers = _kickers(ordered, {quad}, 1)
        return _result(
            HandCategory.FOUR_OF_A_KIND,
            [quad] + [card.value for card in kickers],
            by_rank[quad] + kickers,
        )

    if trips and (len(trips) > 1 or pairs):
        top = trips[0]
        pair = max(trips[1:] + pairs)
        return _result(HandCategory.FULL_HOUSE, [top, pair], by_rank[top] + by_rank[pair][:2])

    if flush_cards:
        best = flush_cards[:5]
        return _result(HandCategory.FLUSH, [card.value for card in best], best)

    high = _straight_high(by_rank)
    if high:
        return _result(HandCategory.STRAIGHT, [high], _straight_cards(ordered, high))

    if trips:
        top = trips[0]
        kickers = _kickers(ordered, {top}, 2)
        return _result(
            HandCategory.THREE_OF_A_KIND,
            [top] + [card.value for card in kickers],
            by_rank[top] + kickers,
        )

    if len(pairs) >= 2:
        high_pair, low_pair = pairs[:2]
        kickers = _kickers(ordered, {high_pair, low_pair}, 1)
        return _result(
            HandCategory.TWO_PAIR,
            [high_pair, low_pair] + [card.value for card in kickers],
            by_rank[high_pair] + by_rank[low_pair] + kickers,
        )

    if pairs:
        pair = pairs[0]
        kickers = _kickers(ordered, {pair}, 3)
        return _result(
            HandCategory.PAIR,
            [pair] + [card.value for card in kickers],
            by_rank[pair] + kickers,
        )

    best = ordered[:5]
    return _result(HandCategory.HIGH_CARD, [card.value for card in best], best)


def compare_hands(first: HandEvaluation, second: HandEvaluation) -> int:
    if first.key > second.key:
        return 1
    if first.key < second.key:
        return -1
    return 0


def _result(category: HandCategory, ranks: List[int], cards: List[Card]) -> HandEvaluation:
    return HandEvaluation(key=(int(category), *ranks), category=category, best_five=tuple(cards))


def _kickers(ordered: Sequence[Card], exclude: set, count: int) -> List[Card]:
    return [card for card in ordered if card.value not in exclude][:count]


def _straight_high(values: Iterable[int]) -> Optional[int]:
    ranks = set(values)
    if 14 in ranks:  # Ace low
        ranks.add(1)
    for high in range(14, 4, -1):
        if all(rank in ranks for rank in range(high - 4, high + 1)):
            return high
    return None


def _straight_cards(ordered: Sequence[Card], high: int) -> List[Card]:
    picked: List[Card] = []
    for value in range(high, high - 5, -1):
        wanted = 14 if value == 1 else value
        picked.append(next(card for card in ordered if card.value == wanted))
    return picked
