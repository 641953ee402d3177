from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .betting import (
    advance_turn,
    apply_bet_action,
    commit_chips,
    contender_indices,
    next_live_index,
    open_round,
)
from .cards import RandomSource, cards_to_labels, create_deck, deal, describe_cards, shuffle
from .errors import ChipConservationError, ErrorCode, Outcome, rejected
from .evaluator import HandEvaluation, evaluate_hand
from .models import (
    BETTING_PHASES,
    Action,
    HandResult,
    Phase,
    Player,
    PlayerStatus,
    TableConfig,
    TableState,
)
from .pots import distribute

# Hand lifecycle for a single table. Every public function takes a table and
# returns a new one; the caller's table is never modified. No timers or I/O
# live here: the host decides when to call advance_after_timeout.

LOGGER = logging.getLogger("holdem.engine")

Event = Dict[str, object]

_STREETS = {
    Phase.PRE_FLOP: (Phase.FLOP, 3, "The Flop"),
    Phase.FLOP: (Phase.TURN, 1, "The Turn"),
    Phase.TURN: (Phase.RIVER, 1, "The River"),
}


def new_table(config: Optional[TableConfig] = None) -> TableState:
    return TableState(config=config or TableConfig())


# Seating -------------------------------------------------------------


def sit_down(table: TableState, seat_index: int, player_id: str, name: str, buy_in: int) -> Outcome:
    if table.phase != Phase.SETUP:
        return rejected(table, ErrorCode.INVALID_PHASE_FOR_SEATING, "Players can only sit down between games")
    if not 0 <= seat_index < table.config.seats:
        return rejected(table, ErrorCode.INVALID_SEAT, f"Seat {seat_index} does not exist")
    if table.find_index(player_id) is not None:
        return rejected(table, ErrorCode.ALREADY_SEATED, f"Player {player_id} is already seated")
    if any(player.seat_index == seat_index for player in table.players):
        return rejected(table, ErrorCode.SEAT_TAKEN, f"Seat {seat_index} is taken")
    if isinstance(buy_in, bool) or not isinstance(buy_in, int) or buy_in <= 0:
        return rejected(table, ErrorCode.INVALID_ACTION, "Buy-in must be a positive number of chips")

    t = table.clone()
    player = Player(id=player_id, name=name, chips=buy_in, seat_index=seat_index)
    position = sum(1 for other in t.players if other.seat_index < seat_index)
    if t.dealer_idx is not None and position <= t.dealer_idx:
        t.dealer_idx += 1
    t.players.insert(position, player)
    t.winner_idx = None
    t.add_log(f"{name} sits down at seat {seat_index} with {buy_in} chips.")
    LOGGER.debug("Seat %s claimed by %s (%s)", seat_index, player_id, buy_in)
    return Outcome(t, events=[{"ev": "SIT", "player_id": player_id, "seat": seat_index, "chips": buy_in}])


def stand_up(table: TableState, player_id: str) -> Outcome:
    if table.phase != Phase.SETUP:
        return rejected(table, ErrorCode.INVALID_PHASE_FOR_SEATING, "Players can only stand up between games")
    idx = table.find_index(player_id)
    if idx is None:
        return rejected(table, ErrorCode.NOT_SEATED, f"Player {player_id} is not seated")

    t = table.clone()
    player = t.players.pop(idx)
    if t.dealer_idx is not None:
        # Keep the button on the same rotation: removing the dealer (or anyone
        # before it) hands the button back one place.
        if not t.players:
            t.dealer_idx = None
        elif idx <= t.dealer_idx:
            t.dealer_idx = (t.dealer_idx - 1) % len(t.players)
    t.winner_idx = None
    t.add_log(f"{player.name} stands up with {player.chips} chips.")
    return Outcome(t, events=[{"ev": "STAND", "player_id": player_id, "seat": player.seat_index, "chips": player.chips}])


# Hand lifecycle ------------------------------------------------------


def start_hand(table: TableState, rng: RandomSource = None) -> Outcome:
    if table.phase in BETTING_PHASES:
        return rejected(table, ErrorCode.HAND_IN_PROGRESS, "A hand is already in progress")
    live = [player for player in table.players if player.chips > 0]
    if len(live) < 2:
        if live:
            msg = f"Not enough players with chips: only {live[0].name} remains"
        else:
            msg = "Not enough players with chips: the table is empty"
        return rejected(table, ErrorCode.INSUFFICIENT_PLAYERS, msg)

    t = table.clone()
    events = _begin_hand(t, rng)
    _check_chips(t)
    return Outcome(t, events=events)


def apply_action(
    table: TableState,
    player_id: str,
    action: Action,
    expected_seq: Optional[int] = None,
) -> Outcome:
    if table.phase not in BETTING_PHASES:
        return rejected(table, ErrorCode.NOT_YOUR_TURN, "No betting round in progress")
    idx = table.find_index(player_id)
    if idx is None or idx != table.active_player_idx:
        return rejected(table, ErrorCode.NOT_YOUR_TURN, f"It is not {player_id}'s turn")
    if expected_seq is not None and expected_seq != table.action_seq:
        return rejected(table, ErrorCode.NOT_YOUR_TURN, "Action refers to a stale table state")
    if not isinstance(action, Action):
        return rejected(table, ErrorCode.INVALID_ACTION, "Malformed action")

    t = table.clone()
    error, events = apply_bet_action(t, idx, action)
    if error is not None:
        LOGGER.debug("Rejected %s from %s: %s", action, player_id, error.msg)
        return Outcome(table, error=error)

    t.action_seq += 1
    events.extend(_progress(t, idx))
    _check_chips(t)
    return Outcome(t, events=events)


def advance_after_timeout(table: TableState, rng: RandomSource = None) -> TableState:
    """Start the next hand once the host's post-showdown pause is over.

    When the next hand cannot start the table goes back to SETUP and the
    survivor (if any) is reported as the winner of the game.
    """
    if table.phase != Phase.SHOWDOWN:
        return table
    outcome = start_hand(table, rng)
    if outcome.ok:
        return outcome.table

    t = table.clone()
    for player in t.players:
        player.reset_for_hand()
    survivors = [idx for idx, player in enumerate(t.players) if player.chips > 0]
    t.phase = Phase.SETUP
    t.active_player_idx = None
    t.pending = set()
    t.winner_idx = survivors[0] if survivors else None
    if t.winner_idx is not None:
        t.add_log(f"Game over! {t.players[t.winner_idx].name} wins the table.", "winner")
    else:
        t.add_log("Game over: no players have chips left.", "winner")
    LOGGER.info("Game over after hand %s; winner=%s", t.hand_number, t.winner_idx)
    return t


# Internals -------------------------------------------------------------


def _begin_hand(t: TableState, rng: RandomSource) -> List[Event]:
    config = t.config
    t.hand_number += 1
    for player in t.players:
        player.reset_for_hand()
    t.deck = shuffle(create_deck(), rng)
    t.community = []
    t.pot = 0
    t.current_bet = 0
    t.min_raise = config.bb
    t.winner_idx = None
    t.last_result = None
    t.pending = set()
    t.chip_total = t.chips_in_play()

    if t.dealer_idx is None:
        dealer = next_live_index(t, len(t.players) - 1)
    else:
        dealer = next_live_index(t, t.dealer_idx)
    assert dealer is not None
    t.dealer_idx = dealer

    live_count = sum(1 for player in t.players if player.status != PlayerStatus.BUSTED)
    if live_count == 2:
        sb_idx = dealer
    else:
        sb_idx = next_live_index(t, dealer)
    bb_idx = next_live_index(t, sb_idx)
    assert sb_idx is not None and bb_idx is not None

    dealer_player = t.players[dealer]
    sb_player = t.players[sb_idx]
    bb_player = t.players[bb_idx]
    dealer_player.is_dealer = True
    sb_player.is_small_blind = True
    bb_player.is_big_blind = True

    t.phase = Phase.PRE_FLOP
    t.add_log(f"New hand #{t.hand_number} started. Blinds {config.sb}/{config.bb}.")
    LOGGER.info("Hand %s started; dealer=%s sb=%s bb=%s", t.hand_number, dealer_player.id, sb_player.id, bb_player.id)

    order: List[int] = []
    idx = dealer
    for _ in range(live_count):
        idx = next_live_index(t, idx)
        order.append(idx)
    for _ in range(2):
        for idx in order:
            t.players[idx].hand.extend(deal(t.deck, 1))

    sb_paid = commit_chips(t, sb_player, config.sb)
    bb_paid = commit_chips(t, bb_player, config.bb)
    t.current_bet = max(sb_player.bet, bb_player.bet)
    t.last_aggressor_idx = bb_idx

    events: List[Event] = [
        {
            "ev": "START_HAND",
            "hand_number": t.hand_number,
            "dealer": dealer_player.id,
        },
        {
            "ev": "POST_BLINDS",
            "sb_player": sb_player.id,
            "bb_player": bb_player.id,
            "sb": sb_paid,
            "bb": bb_paid,
        },
    ]

    start = dealer if live_count == 2 else next_live_index(t, bb_idx)
    open_round(t, start)
    if not t.pending:
        events.extend(_close_street(t))
    return events


def _progress(t: TableState, from_idx: int) -> List[Event]:
    contenders = contender_indices(t)
    if len(contenders) == 1:
        return _award_uncontested(t, contenders[0])
    if not advance_turn(t, from_idx):
        return []
    return _close_street(t)


def _close_street(t: TableState) -> List[Event]:
    """Close the current street and keep dealing until someone can bet again."""
    events: List[Event] = []
    while True:
        for player in t.players:
            player.reset_for_round()
        t.current_bet = 0
        t.min_raise = t.config.bb
        t.last_aggressor_idx = None

        if t.phase not in _STREETS:
            events.extend(_showdown(t))
            return events

        next_phase, count, title = _STREETS[t.phase]
        t.phase = next_phase
        cards = deal(t.deck, count)
        t.community.extend(cards)
        t.add_log(f"{title}: {describe_cards(cards, pretty=True)}")
        events.append({"ev": next_phase.value, "cards": cards_to_labels(cards)})

        open_round(t, (t.dealer_idx + 1) % len(t.players))
        if t.pending:
            return events


def _showdown(t: TableState) -> List[Event]:
    events: List[Event] = []
    t.phase = Phase.SHOWDOWN
    t.active_player_idx = None
    t.pending = set()

    evaluations: Dict[int, HandEvaluation] = {}
    for idx in contender_indices(t):
        player = t.players[idx]
        evaluation = evaluate_hand(player.hand, t.community)
        evaluations[idx] = evaluation
        events.append(
            {
                "ev": "SHOWDOWN",
                "player_id": player.id,
                "hand": cards_to_labels(player.hand),
                "board": cards_to_labels(t.community),
                "rank": evaluation.category.slug,
            }
        )

    total = t.pot
    result = HandResult(
        hand_number=t.hand_number,
        pot=total,
        showdown={t.players[idx].id: evaluation for idx, evaluation in evaluations.items()},
    )
    winners, paid = _pay_pots(t, evaluations, result)
    events.extend(paid)

    result.winner_ids = [t.players[idx].id for idx in winners]
    if winners:
        t.winner_idx = winners[0]
        result.category = evaluations[winners[0]].category
    for idx in winners:
        player = t.players[idx]
        t.add_log(
            f"{player.name} wins {result.awards[player.id]} chips with {evaluations[idx].label}!",
            "winner",
        )
    t.last_result = result
    events.extend(_finish_hand(t))
    return events


def _award_uncontested(t: TableState, idx: int) -> List[Event]:
    winner = t.players[idx]
    t.phase = Phase.SHOWDOWN
    t.active_player_idx = None
    t.pending = set()
    t.winner_idx = idx
    result = HandResult(hand_number=t.hand_number, pot=t.pot, winner_ids=[winner.id])
    # Layers only the folders paid into go back to them, not to a short all-in winner.
    _, events = _pay_pots(t, {}, result)
    for player in t.players:
        player.reset_for_round()
    t.last_result = result
    t.add_log(f"{winner.name} wins {result.awards.get(winner.id, 0)} chips by default!", "winner")
    events.extend(_finish_hand(t))
    return events


def _pay_pots(
    t: TableState, evaluations: Dict[int, HandEvaluation], result: HandResult
) -> Tuple[List[int], List[Event]]:
    """Pay every pot out; won chips are awards, uncalled chips are refunds."""
    winners: List[int] = []
    events: List[Event] = []
    for award in distribute(t, evaluations):
        for idx, amount in award.payouts.items():
            player = t.players[idx]
            player.chips += amount
            t.pot -= amount
            if idx in award.winners:
                result.awards[player.id] = result.awards.get(player.id, 0) + amount
                if idx not in winners:
                    winners.append(idx)
                events.append({"ev": "POT_AWARD", "player_id": player.id, "amount": amount})
            else:
                result.refunds[player.id] = result.refunds.get(player.id, 0) + amount
                t.add_log(f"{amount} uncalled chips returned to {player.name}.")
                events.append({"ev": "REFUND", "player_id": player.id, "amount": amount})

    if t.pot != 0:
        raise ChipConservationError(f"{t.pot} chips left undistributed in hand {t.hand_number}")
    return winners, events


def _finish_hand(t: TableState) -> List[Event]:
    events: List[Event] = []
    for player in t.players:
        if player.chips == 0 and player.status != PlayerStatus.BUSTED:
            player.status = PlayerStatus.BUSTED
            t.add_log(f"{player.name} is out of chips.")
            events.append({"ev": "ELIMINATED", "player_id": player.id})
    events.append({"ev": "END_HAND", "hand_number": t.hand_number})
    LOGGER.info(
        "Hand %s finished; stacks=%s",
        t.hand_number,
        {player.id: player.chips for player in t.players},
    )
    return events


def _check_chips(t: TableState) -> None:
    if t.chips_in_play() != t.chip_total:
        raise ChipConservationError(
            f"Chip total drifted in hand {t.hand_number}: expected {t.chip_total}, found {t.chips_in_play()}"
        )
