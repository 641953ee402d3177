from __future__ import annotations

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import websockets

from holdem import (
    Action,
    ActionType,
    Commentator,
    Phase,
    TableConfig,
    advance_after_timeout,
    apply_action,
    legal_actions,
    narrate_hand,
    new_table,
    sit_down,
    stand_up,
    start_hand,
    table_snapshot,
)
from holdem.errors import Outcome

LOGGER = logging.getLogger("holdem_host")

# HostServer is the single writer for one table. It owns sockets, pacing and
# the idle/next-hand timers; every rule decision goes through the engine.


@dataclass
class ClientSession:
    player_id: str
    name: str
    websocket: Any


class HostServer:
    def __init__(
        self,
        config: TableConfig,
        commentator: Optional[Commentator] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.table = new_table(config)
        self.rng = random.Random(seed)
        self.commentator = commentator
        self.sessions: Dict[str, ClientSession] = {}
        self.spectators: Set[Any] = set()
        self.lock = asyncio.Lock()
        self.move_timer: Optional[asyncio.Task] = None
        self.next_hand_timer: Optional[asyncio.Task] = None

    @property
    def config(self) -> TableConfig:
        return self.table.config

    async def start(self, host: str = "0.0.0.0", port: int = 8765) -> None:
        # websockets.serve keeps accepting clients until the process stops.
        async with websockets.serve(self._handle_connection, host, port):
            LOGGER.info("Table host listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: Any) -> None:
        # First message must be "hello" so we know who we are talking to.
        hello = await self._read_message(websocket)
        if hello is None or hello.get("type") != "hello":
            await self._send_error(websocket, code="BAD_HELLO", msg="Expected hello")
            await websocket.close()
            return
        if hello.get("role") == "spectator":
            await self._handle_spectator_session(websocket)
            return

        session = await self._claim_seat(websocket, hello)
        if session is None:
            await websocket.close()
            return

        try:
            async for raw in websocket:
                await self._handle_message(session, self._decode(raw))
        except websockets.ConnectionClosed:
            pass
        finally:
            if self.sessions.get(session.player_id) is session:
                self.sessions.pop(session.player_id, None)
            LOGGER.info("Player %s disconnected", session.player_id)

    async def _claim_seat(self, websocket: Any, hello: Dict[str, object]) -> Optional[ClientSession]:
        player_id = hello.get("player_id")
        name = hello.get("name") or player_id
        if not isinstance(player_id, str) or not player_id.strip() or not isinstance(name, str):
            await self._send_error(websocket, code="BAD_SCHEMA", msg="player_id required")
            return None

        async with self.lock:
            if self.table.find_index(player_id) is None:
                seat = hello.get("seat")
                buy_in = hello.get("buy_in", self.config.starting_stack)
                if not isinstance(seat, int):
                    seat = self._first_free_seat()
                if seat is None:
                    await self._send_error(websocket, code="TABLE_FULL", msg="No seats available")
                    return None
                outcome = sit_down(self.table, seat, player_id, name, buy_in)
                if not outcome.ok:
                    await self._send_error(websocket, code=outcome.error.code.value, msg=outcome.error.msg)
                    return None
                self.table = outcome.table
                LOGGER.info("Seat %s claimed by %s (stack=%s)", seat, player_id, buy_in)

        # Replace existing connection if any.
        previous = self.sessions.get(player_id)
        if previous:
            await previous.websocket.close(code=4000, reason="Replaced by new connection")
        session = ClientSession(player_id=player_id, name=name, websocket=websocket)
        self.sessions[player_id] = session

        await self._send_json(
            websocket,
            "welcome",
            {
                "player_id": player_id,
                "config": {
                    "seats": self.config.seats,
                    "starting_stack": self.config.starting_stack,
                    "sb": self.config.sb,
                    "bb": self.config.bb,
                    "move_time_ms": self.config.move_time_ms,
                },
            },
        )
        await self._broadcast_state()
        return session

    async def _handle_spectator_session(self, websocket: Any) -> None:
        LOGGER.info("Spectator connected")
        self.spectators.add(websocket)
        async with self.lock:
            payload = table_snapshot(self.table, omniscient=True)
        await self._send_json(websocket, "spectator/state", payload)
        try:
            async for _ in websocket:
                LOGGER.warning("Spectator sent a message; closing connection")
                await websocket.close(code=4403, reason="Spectators are read-only")
                break
        except websockets.ConnectionClosed:
            pass
        finally:
            self.spectators.discard(websocket)
            LOGGER.info("Spectator disconnected")

    async def _handle_message(self, session: ClientSession, message: Dict[str, object]) -> None:
        msg_type = message.get("type")
        if msg_type == "action":
            await self._handle_action(session, message)
        elif msg_type == "start":
            await self._handle_start(session)
        elif msg_type == "stand":
            await self._handle_stand(session)
        else:
            await self._send_error(session.websocket, code="UNKNOWN_TYPE", msg="Unsupported message type")

    async def _handle_action(self, session: ClientSession, message: Dict[str, object]) -> None:
        action_name = message.get("action")
        amount = message.get("amount")
        seq = message.get("seq")

        try:
            action_type = ActionType(action_name)
        except ValueError:
            await self._send_error(session.websocket, code="INVALID_ACTION", msg="Unknown action")
            return
        if action_type == ActionType.RAISE and not isinstance(amount, int):
            await self._send_error(session.websocket, code="BAD_SCHEMA", msg="amount required for raise")
            return

        async with self.lock:
            outcome = apply_action(
                self.table,
                session.player_id,
                Action(action_type, amount if action_type == ActionType.RAISE else None),
                expected_seq=seq if isinstance(seq, int) else None,
            )
            if not outcome.ok:
                LOGGER.warning(
                    "Rejected action player=%s action=%s amount=%s reason=%s",
                    session.player_id,
                    action_type.value,
                    amount,
                    outcome.error.msg,
                )
                await self._send_error(session.websocket, code=outcome.error.code.value, msg=outcome.error.msg)
                return
            self.table = outcome.table

        LOGGER.debug("Applied action player=%s action=%s amount=%s", session.player_id, action_type.value, amount)
        await self._after_transition(outcome)

    async def _handle_start(self, session: ClientSession) -> None:
        async with self.lock:
            outcome = start_hand(self.table, self.rng)
            if not outcome.ok:
                await self._send_error(session.websocket, code=outcome.error.code.value, msg=outcome.error.msg)
                return
            self.table = outcome.table
            self._cancel(self.next_hand_timer)
            self.next_hand_timer = None
        LOGGER.info("Hand %s started by %s", self.table.hand_number, session.player_id)
        await self._after_transition(outcome)

    async def _handle_stand(self, session: ClientSession) -> None:
        async with self.lock:
            outcome = stand_up(self.table, session.player_id)
            if not outcome.ok:
                await self._send_error(session.websocket, code=outcome.error.code.value, msg=outcome.error.msg)
                return
            self.table = outcome.table
        self.sessions.pop(session.player_id, None)
        await self._send_json(session.websocket, "goodbye", {"chips": outcome.events[0]["chips"]})
        await self._broadcast_events(outcome.events)
        await self._broadcast_state()

    async def _after_transition(self, outcome: Outcome) -> None:
        await self._broadcast_events(outcome.events)
        if self.table.phase == Phase.SHOWDOWN:
            self._cancel(self.move_timer)
            self.move_timer = None
            await self._narrate()
            self._schedule_next_hand()
        else:
            self._schedule_move_timer()
        await self._broadcast_state()

    async def _narrate(self) -> None:
        snapshot = self.table
        # The commentator may block on a remote service; keep it off the loop.
        narrated = await asyncio.to_thread(narrate_hand, snapshot, self.commentator)
        async with self.lock:
            if self.table is snapshot:
                self.table = narrated

    # Host-side timers -----------------------------------------------------

    def _schedule_next_hand(self) -> None:
        result = self.table.last_result
        if result is not None and result.by_default:
            delay_ms = self.config.fold_win_delay_ms
        else:
            delay_ms = self.config.next_hand_delay_ms
        self._cancel(self.next_hand_timer)
        self.next_hand_timer = asyncio.create_task(self._next_hand_after(delay_ms / 1000))

    async def _next_hand_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self.lock:
            if self.table.phase != Phase.SHOWDOWN:
                return
            self.table = advance_after_timeout(self.table, self.rng)
            phase = self.table.phase
        self.next_hand_timer = None
        if phase == Phase.SETUP:
            winner = None
            if self.table.winner_idx is not None:
                winner = self.table.players[self.table.winner_idx].id
            LOGGER.info("Match over: %s", winner)
            await self._broadcast("match_end", {"winner": winner})
        else:
            self._schedule_move_timer()
        await self._broadcast_state()

    def _schedule_move_timer(self) -> None:
        self._cancel(self.move_timer)
        self.move_timer = None
        active = self.table.active_player
        if self.config.move_time_ms <= 0 or active is None:
            return
        self.move_timer = asyncio.create_task(
            self._expire_turn(active.id, self.table.action_seq, self.config.move_time_ms / 1000)
        )

    async def _expire_turn(self, player_id: str, seq: int, delay: float) -> None:
        await asyncio.sleep(delay)
        async with self.lock:
            action = self._fallback_action_locked(player_id)
            outcome = apply_action(self.table, player_id, action, expected_seq=seq)
            if not outcome.ok:
                # The player acted (or the hand moved on) while we slept.
                return
            self.table = outcome.table
        LOGGER.info("Move timer expired for %s; applied %s", player_id, action.type.value)
        self.move_timer = None
        await self._broadcast("admin", {"event": "TIMEOUT", "player_id": player_id})
        await self._after_transition(outcome)

    def _fallback_action_locked(self, player_id: str) -> Action:
        # Idle players check when it is free, otherwise fold.
        window = legal_actions(self.table, player_id)
        if window.actions and window.to_call == 0:
            return Action.check_or_call()
        return Action.fold()

    def _first_free_seat(self) -> Optional[int]:
        taken = {player.seat_index for player in self.table.players}
        for seat in range(self.config.seats):
            if seat not in taken:
                return seat
        return None

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    # Messaging -----------------------------------------------------------

    async def _broadcast_state(self) -> None:
        async with self.lock:
            personal = [
                (session.websocket, table_snapshot(self.table, session.player_id))
                for session in self.sessions.values()
            ]
            spectator_payload = table_snapshot(self.table, omniscient=True)
            spectators = list(self.spectators)
        await asyncio.gather(
            *(self._send_json(socket, "state", payload) for socket, payload in personal),
            *(self._send_json(socket, "spectator/state", spectator_payload) for socket in spectators),
        )

    async def _broadcast(self, msg_type: str, payload: Dict[str, object]) -> None:
        targets = [session.websocket for session in self.sessions.values()] + list(self.spectators)
        if not targets:
            return
        message = self._envelope(msg_type, payload)
        await asyncio.gather(*(socket.send(message) for socket in targets), return_exceptions=True)

    async def _broadcast_events(self, events: List[Dict[str, object]]) -> None:
        for event in events:
            await self._broadcast("event", event)

    async def _send_json(self, websocket: Any, msg_type: str, payload: Dict[str, object]) -> None:
        try:
            await websocket.send(self._envelope(msg_type, payload))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: Any, code: str, msg: str) -> None:
        await self._send_json(websocket, "error", {"code": code, "msg": msg})

    def _envelope(self, msg_type: str, payload: Dict[str, object]) -> str:
        body = {"type": msg_type, "v": 1, "ts": datetime.now(timezone.utc).isoformat()}
        body.update(payload)
        return json.dumps(body)

    async def _read_message(self, websocket: Any) -> Optional[Dict[str, object]]:
        try:
            raw = await asyncio.wait_for(websocket.recv(), timeout=5)
        except (asyncio.TimeoutError, websockets.ConnectionClosed):
            return None
        return self._decode(raw)

    def _decode(self, raw: str) -> Dict[str, object]:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return message if isinstance(message, dict) else {}
