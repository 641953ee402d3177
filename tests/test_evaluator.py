import pytest

from holdem.cards import parse_cards
from holdem.evaluator import HandCategory, compare_hands, evaluate_cards, evaluate_hand

from .helpers import evaluate_labels


def evaluate(labels: str):
    return evaluate_labels(labels)


def test_trips_kings_with_ace_nine_kickers():
    result = evaluate_hand(parse_cards("Ks Kd"), parse_cards("2s 7d 9c Kh As"))
    assert result.category == HandCategory.THREE_OF_A_KIND
    assert result.key == (3, 13, 14, 9)
    assert len(result.best_five) == 5


@pytest.mark.parametrize(
    "labels, category, key",
    [
        ("Ah Kh Qh Jh Th 2c 3d", HandCategory.STRAIGHT_FLUSH, (8, 14)),
        ("9h 9d 9c 9s Ah 2c 3d", HandCategory.FOUR_OF_A_KIND, (7, 9, 14)),
        ("Kh Kd Kc 7s 7d 2h 3c", HandCategory.FULL_HOUSE, (6, 13, 7)),
        ("2h 5h 9h Jh Kh Qd Tc", HandCategory.FLUSH, (5, 13, 11, 9, 5, 2)),
        ("9c Td Jh Qs Kd 2c 2h", HandCategory.STRAIGHT, (4, 13)),
        ("Jh Jd Ac 8s 4d 3c 2h", HandCategory.PAIR, (1, 11, 14, 8, 4)),
        ("Ah Qd 9c 7s 5d 3c 2h", HandCategory.HIGH_CARD, (0, 14, 12, 9, 7, 5)),
    ],
)
def test_categories_and_keys(labels, category, key):
    result = evaluate(labels)
    assert result.category == category
    assert result.key == key


def test_wheel_is_five_high_straight():
    wheel = evaluate("Ah 2d 3c 4s 5h 9d Kc")
    assert wheel.category == HandCategory.STRAIGHT
    assert wheel.key == (4, 5)
    six_high = evaluate("2d 3c 4s 5h 6d Kc Qs")
    assert compare_hands(six_high, wheel) == 1


def test_steel_wheel_is_straight_flush():
    result = evaluate("Ah 2h 3h 4h 5h")
    assert result.category == HandCategory.STRAIGHT_FLUSH
    assert result.key == (8, 5)


def test_two_trips_make_full_house():
    result = evaluate("Kh Kd Kc 7s 7d 7h 2c")
    assert result.category == HandCategory.FULL_HOUSE
    assert result.key == (6, 13, 7)


def test_three_pairs_use_best_two_and_best_kicker():
    result = evaluate("Ah Ad Kh Kd Qh Qd 2c")
    assert result.category == HandCategory.TWO_PAIR
    assert result.key == (2, 14, 13, 12)


def test_flush_beats_straight_in_same_pool():
    result = evaluate("2h 5h 9h Jh Kh Qd Tc")
    assert result.category == HandCategory.FLUSH


def test_kicker_breaks_tie_and_suits_do_not():
    board = parse_cards("Kh 9d 7c 4s 2h")
    ace_kicker = evaluate_hand(parse_cards("Kd As"), board)
    queen_kicker = evaluate_hand(parse_cards("Ks Qs"), board)
    assert compare_hands(ace_kicker, queen_kicker) == 1
    assert compare_hands(queen_kicker, ace_kicker) == -1

    same = evaluate_hand(parse_cards("Kc Ad"), board)
    assert compare_hands(ace_kicker, same) == 0
    assert ace_kicker == same


def test_category_order_is_total():
    ladder = [
        evaluate("Ah Qd 9c 7s 5d"),
        evaluate("2h 2d 9c 7s 5d"),
        evaluate("2h 2d 9c 9s 5d"),
        evaluate("2h 2d 2c 9s 5d"),
        evaluate("2h 3d 4c 5s 6d"),
        evaluate("2h 4h 6h 8h Th"),
        evaluate("2h 2d 2c 9s 9d"),
        evaluate("2h 2d 2c 2s 9d"),
        evaluate("2h 3h 4h 5h 6h"),
    ]
    assert [result.category for result in ladder] == list(HandCategory)
    assert ladder == sorted(ladder)


def test_partial_pools_are_ranked():
    assert evaluate("Ah").key == (0, 14)
    assert evaluate("Ah Ad").category == HandCategory.PAIR


def test_rejects_bad_pools():
    with pytest.raises(ValueError):
        evaluate_cards([])
    with pytest.raises(ValueError):
        evaluate("Ah Ah 2c")
    with pytest.raises(ValueError):
        evaluate_hand(parse_cards("Ah Kd Qc"), [])
    with pytest.raises(ValueError):
        evaluate_hand(parse_cards("Ah Kd"), parse_cards("2c 3c 4c 5c 6c 7c"))


def test_labels():
    assert HandCategory.FULL_HOUSE.label == "Full House"
    assert HandCategory.FULL_HOUSE.slug == "full_house"
