"""Rooms: seating two players at a GameState and relaying its moves."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable
from uuid import uuid4

from fastapi import WebSocket
from pydantic import BaseModel

from tablut.config import DISCONNECT_GRACE, MOVE_LIMIT, TIMER_INTERVAL, TURN_TIMEOUT
from tablut.game import GameState
from tablut.models import (
    ErrorMsg,
    GameOverMsg,
    GameStartedMsg,
    MoveMadeMsg,
    OpponentDisconnectedMsg,
    OpponentReconnectedMsg,
    PlayerJoinedMsg,
    RoomCreatedMsg,
    StateSyncMsg,
    TurnTimerMsg,
)
from tablut.piece import Piece, opponent, side_name
from tablut.square import Move

logger = logging.getLogger(__name__)


def new_game() -> GameState:
    game = GameState()
    if MOVE_LIMIT > 0:
        game.set_move_limit(MOVE_LIMIT)
    return game


def end_reason(game: GameState) -> str | None:
    """Why the engine declared a winner, or None if the game goes on."""
    if game.winner is None:
        return None
    if game.forfeited:
        return "move_limit"
    if game.winner is Piece.BLACK and not game.has_king:
        return "king_captured"
    if game.repeated_position:
        return "repetition"
    return "king_escaped"


@dataclass
class Player:
    ws: WebSocket
    token: str
    color: Piece  # BLACK attacks and moves first, WHITE defends the king
    connected: bool = True


@dataclass
class TurnClock:
    """Countdown for the side to move; at most one runs per room."""

    task: asyncio.Task | None = field(default=None, repr=False)
    started_at: float = 0.0

    @property
    def remaining(self) -> float:
        if self.started_at == 0.0:
            return float(TURN_TIMEOUT)
        return max(TURN_TIMEOUT - (time.monotonic() - self.started_at), 0.0)

    def restart(self, tick: Callable[[float], Awaitable[None]], expire: Callable[[], Awaitable[None]]):
        self.stop()
        self.started_at = time.monotonic()

        async def run():
            left = float(TURN_TIMEOUT)
            while left > 0:
                await asyncio.sleep(min(TIMER_INTERVAL, left))
                left -= TIMER_INTERVAL
                await tick(max(left, 0.0))
            await expire()

        self.task = asyncio.create_task(run())

    def stop(self):
        if self.task and not self.task.done() and self.task is not asyncio.current_task():
            self.task.cancel()


@dataclass
class Room:
    room_id: str
    players: list[Player] = field(default_factory=list)
    game: GameState = field(default_factory=new_game)
    game_started: bool = False
    winner: Piece | None = None
    end_reason: str | None = None
    clock: TurnClock = field(default_factory=TurnClock)
    disconnect_tasks: dict[str, asyncio.Task] = field(default_factory=dict, repr=False)

    @property
    def is_game_over(self) -> bool:
        return self.end_reason is not None

    def seat_of(self, ws: WebSocket) -> Player | None:
        return next((p for p in self.players if p.ws is ws), None)

    def seat_for_token(self, token: str) -> Player | None:
        return next((p for p in self.players if p.token == token), None)

    def other(self, player: Player) -> Player | None:
        return next((p for p in self.players if p is not player), None)

    async def send_to(self, player: Player, msg: BaseModel):
        if not player.connected:
            return
        try:
            await player.ws.send_json(msg.model_dump())
        except Exception:
            # The socket is going away; its disconnect handler cleans up
            pass

    async def broadcast(self, msg: BaseModel):
        for p in self.players:
            await self.send_to(p, msg)

    def state_for(self, player: Player) -> StateSyncMsg:
        return StateSyncMsg(
            board=self.game.rows(),
            current_turn=side_name(self.game.turn),
            move_count=self.game.move_count,
            your_color=side_name(player.color),
            timer_remaining=self.clock.remaining,
        )

    def start_turn(self):
        async def tick(left: float):
            if not self.is_game_over:
                await self.broadcast(TurnTimerMsg(remaining=left))

        async def expire():
            if not self.is_game_over:
                await self.finish(opponent(self.game.turn), "timeout")

        self.clock.restart(tick, expire)

    async def finish(self, winner: Piece | None, reason: str):
        """End the game and tell both players."""
        self.winner = winner
        self.end_reason = reason
        self.clock.stop()
        winner_name = side_name(winner) if winner is not None else None
        logger.info("Room %s over: %s (%s)", self.room_id, winner_name, reason)
        await self.broadcast(GameOverMsg(winner=winner_name, reason=reason))

    def close(self):
        self.clock.stop()
        current = asyncio.current_task()
        for task in self.disconnect_tasks.values():
            if not task.done() and task is not current:
                task.cancel()


async def reject(ws: WebSocket, message: str):
    await ws.send_json(ErrorMsg(message=message).model_dump())


class RoomManager:
    def __init__(self):
        self.rooms: dict[str, Room] = {}
        self._ws_to_room: dict[WebSocket, str] = {}

    def get_room_for_ws(self, ws: WebSocket) -> Room | None:
        return self.rooms.get(self._ws_to_room.get(ws, ""))

    def _seat(self, room: Room, ws: WebSocket, color: Piece) -> Player:
        player = Player(ws=ws, token=str(uuid4()), color=color)
        room.players.append(player)
        self._ws_to_room[ws] = room.room_id
        return player

    async def create_room(self, ws: WebSocket) -> Room:
        room_id = secrets.token_hex(3)
        while room_id in self.rooms:
            room_id = secrets.token_hex(3)
        room = self.rooms[room_id] = Room(room_id=room_id)
        player = self._seat(room, ws, Piece.BLACK)
        logger.info("Room %s created", room_id)
        await room.send_to(
            player, RoomCreatedMsg(room_id=room_id, player_token=player.token, color="black")
        )
        return room

    async def join_room(self, ws: WebSocket, room_id: str) -> Room | None:
        room = self.rooms.get(room_id)
        problem = None
        if room is None:
            problem = "Room not found"
        elif len(room.players) >= 2:
            problem = "Room is full"
        elif room.is_game_over:
            problem = "Game already ended"
        if problem:
            await reject(ws, problem)
            return None

        attacker = room.players[0]
        defender = self._seat(room, ws, Piece.WHITE)
        await room.send_to(
            defender, RoomCreatedMsg(room_id=room_id, player_token=defender.token, color="white")
        )
        await room.send_to(attacker, PlayerJoinedMsg(color="white"))

        room.game_started = True
        logger.info("Room %s started", room_id)
        for p in room.players:
            await room.send_to(
                p, GameStartedMsg(your_color=side_name(p.color), move_limit=room.game.move_limit)
            )
        room.start_turn()
        return room

    async def make_move(self, ws: WebSocket, notation: str):
        room = self.get_room_for_ws(ws)
        player = room.seat_of(ws) if room else None
        if room is None:
            await reject(ws, "Not in a room")
            return
        if not room.game_started:
            await reject(ws, "Game not started yet")
            return
        if player is None:
            return

        problem = self._check_move(room, player, notation)
        if problem:
            await reject(ws, problem)
            return

        game = room.game
        move = Move.parse(notation)
        game.make_move(move)
        reason = end_reason(game)

        if not game.forfeited:
            await room.broadcast(
                MoveMadeMsg(
                    move=str(move),
                    color=side_name(player.color),
                    captured=[str(capture.square) for capture in game.last_captures],
                    next_turn=side_name(game.turn) if reason is None else None,
                )
            )
        if reason is None:
            room.start_turn()
        else:
            await room.finish(game.winner, reason)

    @staticmethod
    def _check_move(room: Room, player: Player, notation: str) -> str | None:
        """Return an error message if the move is invalid, or None if valid."""
        if room.is_game_over:
            return "Game is already over"
        if player.color is not room.game.turn:
            return "Not your turn"
        try:
            move = Move.parse(notation)
        except ValueError:
            return f"Invalid move notation: {notation}"
        if not room.game.is_legal(move):
            return f"Illegal move: {move}"
        return None

    async def reconnect(self, ws: WebSocket, room_id: str, player_token: str):
        room = self.rooms.get(room_id)
        player = room.seat_for_token(player_token) if room else None
        if room is None:
            await reject(ws, "Room not found")
            return
        if player is None:
            await reject(ws, "Invalid player token")
            return

        pending = room.disconnect_tasks.pop(player_token, None)
        if pending and not pending.done():
            pending.cancel()

        player.ws = ws
        player.connected = True
        self._ws_to_room[ws] = room_id
        logger.info("Player %s reconnected to room %s", side_name(player.color), room_id)

        await room.send_to(player, room.state_for(player))
        rival = room.other(player)
        if rival is not None:
            await room.send_to(rival, OpponentReconnectedMsg())

    async def handle_disconnect(self, ws: WebSocket):
        room = self.rooms.get(self._ws_to_room.pop(ws, ""))
        player = room.seat_of(ws) if room else None
        if player is None:
            return

        player.connected = False
        rival = room.other(player)
        if rival is None or not rival.connected:
            self._close(room)
            return

        await room.send_to(rival, OpponentDisconnectedMsg())
        room.disconnect_tasks[player.token] = asyncio.create_task(
            self._forfeit_after_grace(room, player, rival)
        )

    async def _forfeit_after_grace(self, room: Room, player: Player, rival: Player):
        await asyncio.sleep(DISCONNECT_GRACE)
        if player.connected:
            return
        if room.game_started and not room.is_game_over:
            await room.finish(rival.color, "disconnect")
        self._close(room)

    def _close(self, room: Room):
        if self.rooms.pop(room.room_id, None) is not None:
            logger.info("Room %s closed", room.room_id)
            room.close()


room_manager = RoomManager()
