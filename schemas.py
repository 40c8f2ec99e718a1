from typing import Optional

from pydantic import BaseModel

from models import GameState


class CreateGameResponse(BaseModel):
    trace_id: str
    game_id: str
    state: GameState


class JoinGameResponse(BaseModel):
    trace_id: str
    message: str


class GameStatusResponse(BaseModel):
    trace_id: str
    game_status: GameState


class CancelGameResponse(BaseModel):
    trace_id: str


class ErrorResponse(BaseModel):
    trace_id: str
    error_message: str
    # only set for internal consistency faults
    error_code: Optional[int] = None
