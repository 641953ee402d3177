import pytest

from holdem import Action, ActionType, ErrorCode, Phase, apply_action, new_table, sit_down, stand_up, start_hand

from .helpers import act, begin, create_table


def assert_rejected(outcome, table, code):
    assert not outcome.ok
    assert outcome.error.code == code
    assert outcome.table is table
    assert outcome.events == []


def test_seat_taken():
    table = create_table(players=2)
    outcome = sit_down(table, 1, "P9", "Late", 500)
    assert_rejected(outcome, table, ErrorCode.SEAT_TAKEN)


def test_already_seated():
    table = create_table(players=2)
    outcome = sit_down(table, 5, "P0", "Again", 500)
    assert_rejected(outcome, table, ErrorCode.ALREADY_SEATED)


@pytest.mark.parametrize("seat", [-1, 9, 42])
def test_seat_out_of_range(seat):
    table = new_table()
    assert_rejected(sit_down(table, seat, "P0", "Zero", 500), table, ErrorCode.INVALID_SEAT)


@pytest.mark.parametrize("buy_in", [0, -50, True, "100"])
def test_bad_buy_in(buy_in):
    table = new_table()
    assert_rejected(sit_down(table, 0, "P0", "Zero", buy_in), table, ErrorCode.INVALID_ACTION)


def test_seating_blocked_during_hand():
    table = begin(create_table(players=2))
    assert_rejected(sit_down(table, 4, "P9", "Late", 500), table, ErrorCode.INVALID_PHASE_FOR_SEATING)
    assert_rejected(stand_up(table, "P0"), table, ErrorCode.INVALID_PHASE_FOR_SEATING)


def test_stand_up_unknown_player():
    table = create_table(players=2)
    assert_rejected(stand_up(table, "ghost"), table, ErrorCode.NOT_SEATED)


def test_start_needs_two_funded_players():
    empty = new_table()
    outcome = start_hand(empty)
    assert_rejected(outcome, empty, ErrorCode.INSUFFICIENT_PLAYERS)

    lonely = create_table(players=1)
    outcome = start_hand(lonely)
    assert_rejected(outcome, lonely, ErrorCode.INSUFFICIENT_PLAYERS)
    assert "Player0" in outcome.error.msg


def test_start_rejected_mid_hand():
    table = begin(create_table(players=2))
    assert_rejected(start_hand(table), table, ErrorCode.HAND_IN_PROGRESS)


def test_out_of_turn_action():
    table = begin(create_table(players=3))
    assert table.active_player.id == "P0"
    outcome = apply_action(table, "P1", Action.check_or_call())
    assert_rejected(outcome, table, ErrorCode.NOT_YOUR_TURN)


def test_unknown_player_action():
    table = begin(create_table(players=3))
    assert_rejected(apply_action(table, "ghost", Action.fold()), table, ErrorCode.NOT_YOUR_TURN)


def test_action_outside_betting_round():
    table = create_table(players=2)
    assert_rejected(apply_action(table, "P0", Action.fold()), table, ErrorCode.NOT_YOUR_TURN)


def test_stale_sequence_is_rejected():
    table = begin(create_table(players=3))
    seq = table.action_seq
    outcome = apply_action(table, "P0", Action.check_or_call(), expected_seq=seq)
    assert outcome.ok
    after = outcome.table

    # The same message delivered twice must not act twice.
    replay = apply_action(after, "P0", Action.check_or_call(), expected_seq=seq)
    assert_rejected(replay, after, ErrorCode.NOT_YOUR_TURN)
    stale = apply_action(after, "P1", Action.check_or_call(), expected_seq=seq)
    assert_rejected(stale, after, ErrorCode.NOT_YOUR_TURN)
    assert apply_action(after, "P1", Action.check_or_call(), expected_seq=seq + 1).ok


def test_raise_beyond_stack():
    table = begin(create_table(stacks=[100, 1_000, 1_000]))
    outcome = apply_action(table, "P0", Action.raise_by(500))
    assert_rejected(outcome, table, ErrorCode.INSUFFICIENT_CHIPS)
    assert table.players[0].chips == 100
    assert table.pot == 30


@pytest.mark.parametrize("amount", [0, -20, None, 2.5, True])
def test_raise_needs_positive_whole_amount(amount):
    table = begin(create_table(players=3))
    outcome = apply_action(table, "P0", Action(ActionType.RAISE, amount))
    assert_rejected(outcome, table, ErrorCode.INVALID_ACTION)


def test_malformed_action_object():
    table = begin(create_table(players=3))
    assert_rejected(apply_action(table, "P0", "RAISE"), table, ErrorCode.INVALID_ACTION)


def test_rejected_action_leaves_hand_playable():
    table = begin(create_table(players=2))
    apply_action(table, "P1", Action.fold())
    apply_action(table, "P0", Action.raise_by(5_000))
    table = act(table, "P0", Action.check_or_call())
    assert table.phase == Phase.PRE_FLOP
    assert table.active_player.id == "P1"
