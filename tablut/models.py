"""Pydantic models for WebSocket message protocol."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ValidationError


# ---------------------------------------------------------------------------
# Client → Server
# ---------------------------------------------------------------------------

class CreateRoomMsg(BaseModel):
    type: Literal["create_room"] = "create_room"


class JoinRoomMsg(BaseModel):
    type: Literal["join_room"] = "join_room"
    room_id: str


class MakeMoveMsg(BaseModel):
    type: Literal["make_move"] = "make_move"
    move: str  # "e1-e3", "e1-3" or "a4-c"


class LeaveRoomMsg(BaseModel):
    type: Literal["leave_room"] = "leave_room"


class ReconnectMsg(BaseModel):
    type: Literal["reconnect"] = "reconnect"
    room_id: str
    player_token: str


ClientMessage = CreateRoomMsg | JoinRoomMsg | MakeMoveMsg | LeaveRoomMsg | ReconnectMsg


# ---------------------------------------------------------------------------
# Server → Client
# ---------------------------------------------------------------------------

class RoomCreatedMsg(BaseModel):
    type: Literal["room_created"] = "room_created"
    room_id: str
    player_token: str
    color: str


class PlayerJoinedMsg(BaseModel):
    type: Literal["player_joined"] = "player_joined"
    color: str


class GameStartedMsg(BaseModel):
    type: Literal["game_started"] = "game_started"
    your_color: str
    move_limit: int | None


class MoveMadeMsg(BaseModel):
    type: Literal["move_made"] = "move_made"
    move: str
    color: str
    captured: list[str]
    next_turn: str | None


class GameOverMsg(BaseModel):
    type: Literal["game_over"] = "game_over"
    winner: str | None
    # "king_escaped" | "king_captured" | "repetition" | "move_limit" | "timeout" | "disconnect"
    reason: str


class StateSyncMsg(BaseModel):
    type: Literal["state_sync"] = "state_sync"
    board: list[list[str]]
    current_turn: str
    move_count: int
    your_color: str
    timer_remaining: float


class TurnTimerMsg(BaseModel):
    type: Literal["turn_timer"] = "turn_timer"
    remaining: float


class OpponentDisconnectedMsg(BaseModel):
    type: Literal["opponent_disconnected"] = "opponent_disconnected"


class OpponentReconnectedMsg(BaseModel):
    type: Literal["opponent_reconnected"] = "opponent_reconnected"


class ErrorMsg(BaseModel):
    type: Literal["error"] = "error"
    message: str


def parse_client_message(data: dict) -> ClientMessage | None:
    """Parse a raw dict into a typed client message, or None if invalid."""
    msg_type = data.get("type")
    mapping: dict[str, type[BaseModel]] = {
        "create_room": CreateRoomMsg,
        "join_room": JoinRoomMsg,
        "make_move": MakeMoveMsg,
        "leave_room": LeaveRoomMsg,
        "reconnect": ReconnectMsg,
    }
    model = mapping.get(msg_type)  # type: ignore[arg-type]
    if model is None:
        return None
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError:
        return None
