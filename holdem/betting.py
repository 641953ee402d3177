from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .errors import EngineError, ErrorCode
from .models import Action, ActionType, BETTING_PHASES, Player, PlayerStatus, TableState

# Betting rules for one street. Every function here works in place on a table
# the orchestrator has already cloned.


@dataclass
class LegalActions:
    actions: List[ActionType] = field(default_factory=list)
    to_call: int = 0
    # Raise sizes are on top of the current bet, matching Action.amount.
    min_raise: Optional[int] = None
    max_raise: Optional[int] = None


def next_index(table: TableState, start: int, predicate: Callable[[int], bool]) -> Optional[int]:
    """First index after ``start`` (wrapping, ``start`` itself last) matching ``predicate``."""
    count = len(table.players)
    for step in range(1, count + 1):
        idx = (start + step) % count
        if predicate(idx):
            return idx
    return None


def next_live_index(table: TableState, start: int) -> Optional[int]:
    return next_index(table, start, lambda idx: table.players[idx].status != PlayerStatus.BUSTED)


def active_indices(table: TableState) -> List[int]:
    return [idx for idx, player in enumerate(table.players) if player.status == PlayerStatus.ACTIVE]


def contender_indices(table: TableState) -> List[int]:
    return [idx for idx, player in enumerate(table.players) if player.in_hand]


def commit_chips(table: TableState, player: Player, amount: int) -> int:
    amount = min(amount, player.chips)
    player.chips -= amount
    player.bet += amount
    player.contributed += amount
    table.pot += amount
    if player.chips == 0 and player.status == PlayerStatus.ACTIVE:
        player.status = PlayerStatus.ALL_IN
    return amount


def open_round(table: TableState, start: int) -> None:
    """Mark who owes action this street and point the turn at the first of them.

    ``start`` is the first index allowed to act; scanning wraps from there.
    """
    active = active_indices(table)
    if len(active) < 2:
        # Nobody left to bet against: only a player still facing a bet may act.
        active = [idx for idx in active if table.players[idx].bet < table.current_bet]
    table.pending = set(active)
    if table.pending:
        table.active_player_idx = next_index(table, start - 1, lambda idx: idx in table.pending)
    else:
        table.active_player_idx = None


def apply_bet_action(
    table: TableState, idx: int, action: Action
) -> Tuple[Optional[EngineError], List[Dict[str, object]]]:
    player = table.players[idx]
    events: List[Dict[str, object]] = []

    if action.type == ActionType.FOLD:
        player.status = PlayerStatus.FOLDED
        events.append(_event("FOLD", player))
        table.add_log(f"{player.name} folds.", "action")
    elif action.type == ActionType.CHECK_OR_CALL:
        owed = max(table.current_bet - player.bet, 0)
        paid = commit_chips(table, player, owed)
        if player.status == PlayerStatus.ALL_IN:
            events.append(_event("CALL", player, amount=paid, all_in=True))
            table.add_log(f"{player.name} goes all in for {paid}!", "action")
        elif paid == 0:
            events.append(_event("CHECK", player))
            table.add_log(f"{player.name} checks.", "action")
        else:
            events.append(_event("CALL", player, amount=paid))
            table.add_log(f"{player.name} calls {paid}.", "action")
    elif action.type == ActionType.RAISE:
        amount = action.amount
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return EngineError(ErrorCode.INVALID_ACTION, "Raise requires a positive amount"), []
        new_total = table.current_bet + amount
        required = new_total - player.bet
        if required > player.chips:
            return (
                EngineError(
                    ErrorCode.INSUFFICIENT_CHIPS,
                    f"Raise to {new_total} needs {required} chips, {player.name} has {player.chips}",
                ),
                [],
            )
        commit_chips(table, player, required)
        table.current_bet = new_total
        table.min_raise = max(table.config.bb, amount)
        table.last_aggressor_idx = idx
        table.pending = {other for other in active_indices(table) if other != idx}
        all_in = player.status == PlayerStatus.ALL_IN
        events.append(_event("RAISE", player, amount=required, to=new_total, all_in=all_in))
        table.add_log(f"{player.name} raises to {new_total}{' (all in)' if all_in else ''}.", "action")
    else:
        return EngineError(ErrorCode.INVALID_ACTION, f"Unsupported action {action.type}"), []

    table.pending.discard(idx)
    return None, events


def advance_turn(table: TableState, from_idx: int) -> bool:
    """Move the turn to the next player owing action. True when the round is closed."""
    table.pending = {idx for idx in table.pending if table.players[idx].status == PlayerStatus.ACTIVE}
    if not table.pending:
        table.active_player_idx = None
        return True
    table.active_player_idx = next_index(table, from_idx, lambda idx: idx in table.pending)
    return False


def legal_actions(table: TableState, player_id: str) -> LegalActions:
    idx = table.find_index(player_id)
    if idx is None or table.phase not in BETTING_PHASES:
        return LegalActions()
    player = table.players[idx]
    if player.status != PlayerStatus.ACTIVE:
        return LegalActions()

    window = LegalActions(actions=[ActionType.FOLD, ActionType.CHECK_OR_CALL])
    window.to_call = min(max(table.current_bet - player.bet, 0), player.chips)
    max_raise = player.chips + player.bet - table.current_bet
    if max_raise > 0:
        window.actions.append(ActionType.RAISE)
        window.max_raise = max_raise
        window.min_raise = min(max(table.min_raise, table.config.bb), max_raise)
    return window


def _event(name: str, player: Player, **extra: object) -> Dict[str, object]:
    event: Dict[str, object] = {"ev": name, "player_id": player.id, "seat": player.seat_index}
    event.update(extra)
    return event
