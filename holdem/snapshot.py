from __future__ import annotations

from typing import Dict, List, Optional

from .betting import legal_actions
from .cards import cards_to_labels
from .models import Phase, Player, TableState


def table_snapshot(table: TableState, viewer_id: Optional[str] = None, *, omniscient: bool = False) -> Dict[str, object]:
    """JSON-ready view of the table for one viewer.

    Hole cards are shown to their owner, to everyone for hands that reached a
    real showdown, and to omniscient viewers (spectator consoles).
    """
    active = table.active_player
    shown = set()
    if table.phase == Phase.SHOWDOWN and table.last_result is not None:
        shown = set(table.last_result.showdown)

    players: List[Dict[str, object]] = []
    for idx, player in enumerate(table.players):
        visible = omniscient or player.id == viewer_id or player.id in shown
        players.append(_player_view(player, idx, visible))

    payload: Dict[str, object] = {
        "hand_number": table.hand_number,
        "phase": table.phase.value,
        "pot": table.pot,
        "current_bet": table.current_bet,
        "min_raise": table.min_raise,
        "community": cards_to_labels(table.community),
        "dealer_idx": table.dealer_idx,
        "active_player_idx": table.active_player_idx,
        "next_actor": active.id if active else None,
        "winner_idx": table.winner_idx,
        "seq": table.action_seq,
        "players": players,
        "log": [{"seq": entry.seq, "message": entry.message, "kind": entry.kind} for entry in table.log[-20:]],
        "sb": table.config.sb,
        "bb": table.config.bb,
    }

    if table.last_result is not None:
        result = table.last_result
        payload["result"] = {
            "hand_number": result.hand_number,
            "pot": result.pot,
            "awards": dict(result.awards),
            "refunds": dict(result.refunds),
            "winners": list(result.winner_ids),
            "rank": result.category.slug if result.category is not None else None,
        }

    if viewer_id is not None and active is not None and active.id == viewer_id:
        window = legal_actions(table, viewer_id)
        payload["legal"] = [action.value for action in window.actions]
        payload["to_call"] = window.to_call
        payload["min_raise_by"] = window.min_raise
        payload["max_raise_by"] = window.max_raise

    return payload


def _player_view(player: Player, idx: int, visible: bool) -> Dict[str, object]:
    return {
        "idx": idx,
        "id": player.id,
        "name": player.name,
        "seat": player.seat_index,
        "chips": player.chips,
        "bet": player.bet,
        "status": player.status.value,
        "is_dealer": player.is_dealer,
        "is_small_blind": player.is_small_blind,
        "is_big_blind": player.is_big_blind,
        "hole": cards_to_labels(player.hand) if visible else ["??"] * len(player.hand),
    }
