from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .cards import Card
from .models import Phase, Player, TableState

LOGGER = logging.getLogger("holdem.commentary")

# (community cards, winner, hand description, pot size) -> one or two sentences.
Commentator = Callable[[List[Card], Player, str, int], str]


def fallback_commentary(winner: Player) -> str:
    return f"Congratulations {winner.name} on the big win!"


def narrate_hand(table: TableState, commentator: Optional[Commentator] = None) -> TableState:
    """Append commentary for the finished hand to the log.

    The commentator is a host collaborator (often a remote text model). Its
    output never feeds back into game state; any failure falls back to a
    static line.
    """
    result = table.last_result
    if table.phase != Phase.SHOWDOWN or result is None or not result.winner_ids:
        return table
    idx = table.find_index(result.winner_ids[0])
    if idx is None:
        return table

    t = table.clone()
    winner = t.players[idx]
    description = result.category.label if result.category is not None else "everyone else folding"
    text = ""
    if commentator is not None:
        try:
            text = commentator(list(t.community), winner, description, result.pot)
        except Exception:
            LOGGER.warning("Commentary failed for hand %s", result.hand_number, exc_info=True)
            text = ""
    if not isinstance(text, str) or not text.strip():
        text = fallback_commentary(winner)
    t.add_log(text.strip(), "commentary")
    return t
