from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Sequence, Union

RANKS = "23456789TJQKA"
SUITS = "hdcs"
RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}
SUIT_SYMBOLS = {"h": "♥", "d": "♦", "c": "♣", "s": "♠"}

RandomSource = Union[random.Random, int, None]


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def pretty(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"


def create_deck() -> List[Card]:
    """All 52 cards, suit by suit, ranks ascending."""
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def make_rng(rng: RandomSource = None) -> random.Random:
    if isinstance(rng, random.Random):
        return rng
    return random.Random(rng)


def shuffle(deck: Sequence[Card], rng: RandomSource = None) -> List[Card]:
    """Fisher-Yates over a copy of ``deck``; the input is left untouched."""
    source = make_rng(rng)
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = source.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if len(label) != 2:
        raise ValueError(f"Invalid card label: {label}")
    return Card(label[0], label[1])


def parse_cards(labels: Union[str, Sequence[str]]) -> List[Card]:
    if isinstance(labels, str):
        labels = labels.split()
    return [parse_label(label) for label in labels]


def describe_cards(cards: Sequence[Card], *, pretty: bool = False) -> str:
    return " ".join(card.pretty if pretty else card.label for card in cards)
