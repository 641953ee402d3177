from __future__ import annotations

from typing import Iterable, List, Optional

from holdem import Action, TableConfig, TableState, apply_action, new_table, sit_down, start_hand
from holdem import game
from holdem.cards import create_deck, parse_cards
from holdem.evaluator import HandEvaluation, evaluate_cards


def create_table(
    *,
    players: int = 3,
    stacks: Optional[List[int]] = None,
    seats: int = 9,
    sb: int = 10,
    bb: int = 20,
) -> TableState:
    """Table with players P0..Pn in seats 0..n-1, still in SETUP."""
    table = new_table(TableConfig(seats=seats, sb=sb, bb=bb))
    for idx, chips in enumerate(stacks or [1_000] * players):
        outcome = sit_down(table, idx, f"P{idx}", f"Player{idx}", chips)
        assert outcome.ok, outcome.error
        table = outcome.table
    return table


def begin(table: TableState, seed: int = 42) -> TableState:
    outcome = start_hand(table, seed)
    assert outcome.ok, outcome.error
    return outcome.table


def act(table: TableState, player_id: str, action: Action) -> TableState:
    outcome = apply_action(table, player_id, action)
    assert outcome.ok, outcome.error
    return outcome.table


def act_current(table: TableState, action: Action) -> TableState:
    assert table.active_player is not None
    return act(table, table.active_player.id, action)


def perform_actions(table: TableState, actions: Iterable[Action]) -> TableState:
    """Apply a scripted sequence of actions, each by whoever is to act."""
    for action in actions:
        table = act_current(table, action)
    return table


def auto_complete_hand(table: TableState) -> TableState:
    """Check or call down until the hand is over."""
    while table.in_hand:
        table = act_current(table, Action.check_or_call())
    return table


def rig_deck(monkeypatch, labels: str) -> None:
    """Make every shuffle return ``labels`` on top of an otherwise ordered deck.

    Hole cards go out one at a time starting left of the dealer, then the
    board is dealt straight off the top.
    """
    top = parse_cards(labels)
    rest = [card for card in create_deck() if card not in top]
    monkeypatch.setattr(game, "shuffle", lambda deck, rng=None: top + rest)


def evaluate_labels(labels: str) -> HandEvaluation:
    return evaluate_cards(parse_cards(labels))
