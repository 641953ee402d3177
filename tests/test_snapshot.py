import json

from holdem import Action, table_snapshot

from .helpers import act, auto_complete_hand, begin, create_table, rig_deck


def test_only_owner_sees_hole_cards():
    table = begin(create_table(players=3))
    view = table_snapshot(table, "P1")
    holes = {player["id"]: player["hole"] for player in view["players"]}
    assert holes["P0"] == ["??", "??"]
    assert holes["P2"] == ["??", "??"]
    assert holes["P1"] == [card.label for card in table.players[1].hand]


def test_anonymous_viewer_sees_no_cards_and_omniscient_sees_all():
    table = begin(create_table(players=3))
    hidden = table_snapshot(table)
    assert all(player["hole"] == ["??", "??"] for player in hidden["players"])
    full = table_snapshot(table, omniscient=True)
    assert all("??" not in player["hole"] for player in full["players"])


def test_active_viewer_gets_legal_actions():
    table = begin(create_table(players=3))
    view = table_snapshot(table, "P0")
    assert view["next_actor"] == "P0"
    assert view["legal"] == ["FOLD", "CHECK_OR_CALL", "RAISE"]
    assert view["to_call"] == 20
    assert view["min_raise_by"] == 20
    assert view["max_raise_by"] == 980
    assert "legal" not in table_snapshot(table, "P1")


def test_short_stack_cannot_raise():
    table = begin(create_table(stacks=[15, 1_000, 1_000]))
    view = table_snapshot(table, "P0")
    assert view["legal"] == ["FOLD", "CHECK_OR_CALL"]
    assert view["to_call"] == 15


def test_showdown_reveals_contenders_only(monkeypatch):
    rig_deck(monkeypatch, "Kh 2c 9d Ah 7d 9s 2s 3h 9c Jd 4s")
    table = begin(create_table(players=3))
    table = act(table, "P0", Action.fold())
    table = auto_complete_hand(table)
    view = table_snapshot(table, "P2")
    holes = {player["id"]: player["hole"] for player in view["players"]}
    assert holes["P0"] == ["??", "??"]
    assert holes["P1"] == ["Kh", "Ah"]
    assert view["result"]["rank"] == "pair"
    assert view["result"]["winners"] == ["P2"]


def test_fold_win_keeps_cards_hidden():
    table = begin(create_table(players=2))
    table = act(table, "P0", Action.fold())
    view = table_snapshot(table, "P0")
    assert view["players"][1]["hole"] == ["??", "??"]
    assert view["result"]["rank"] is None
    assert view["winner_idx"] == 1


def test_snapshot_is_json_ready():
    table = begin(create_table(players=2))
    view = table_snapshot(table, "P0")
    decoded = json.loads(json.dumps(view))
    assert decoded["phase"] == "PRE_FLOP"
    assert decoded["pot"] == 30
    assert decoded["log"][-1]["message"].startswith("New hand #1")
