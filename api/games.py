"""
Game lobby endpoints

Each request gets a fresh trace_id, which is attached to every log line and
returned in every response body (success or error).
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from core.lobby_manager import LobbyManager
from core.storage import StorageGateway
from core.tracing import bind, new_trace_id
from core.exceptions import (
    GameConflict,
    GameNotFound,
    InternalInconsistency,
    LobbyException,
)
from schemas import (
    CancelGameResponse,
    CreateGameResponse,
    ErrorResponse,
    GameStatusResponse,
    JoinGameResponse,
)

router = APIRouter(prefix="/games", tags=["games"])
logger = logging.getLogger(__name__)


def get_storage(request: Request) -> StorageGateway:
    """Storage gateway created by the app lifespan (overridable in tests)."""
    return request.app.state.storage


def get_lobby_manager(storage: StorageGateway = Depends(get_storage)) -> LobbyManager:
    return LobbyManager(storage)


def _status_code_for(exc: LobbyException) -> int:
    if isinstance(exc, GameNotFound):
        return 404
    if isinstance(exc, GameConflict):
        return 409
    return 500


def _error_response(trace_id: str, exc: LobbyException) -> JSONResponse:
    status_code = _status_code_for(exc)
    log = bind(logger, trace_id)
    if status_code >= 500:
        log.error(exc.message, exc_info=exc)
    else:
        log.info(exc.message)

    body = ErrorResponse(
        trace_id=trace_id,
        error_message=exc.message,
        error_code=exc.error_code if isinstance(exc, InternalInconsistency) else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _unexpected_error(trace_id: str, exc: Exception) -> JSONResponse:
    bind(logger, trace_id).error(f"Unexpected error: {exc}", exc_info=True)
    body = ErrorResponse(trace_id=trace_id, error_message="Internal error")
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


@router.post("", status_code=201, response_model=CreateGameResponse)
def create_game(manager: LobbyManager = Depends(get_lobby_manager)):
    """Create a new game lobby in state Pending."""
    trace_id = new_trace_id()
    bind(logger, trace_id).info("Received create game request")
    try:
        game_id, state = manager.create_game(trace_id)
        return CreateGameResponse(trace_id=trace_id, game_id=game_id, state=state)
    except LobbyException as e:
        return _error_response(trace_id, e)
    except Exception as e:
        return _unexpected_error(trace_id, e)


@router.put("/{game_id}", response_model=JoinGameResponse)
def join_game(game_id: str, manager: LobbyManager = Depends(get_lobby_manager)):
    """
    Join a game (second party).

    404 if the game does not exist, 409 if it is not Pending.
    """
    trace_id = new_trace_id()
    bind(logger, trace_id).info(f"Received join game request for id: {game_id}")
    try:
        manager.join_game(trace_id, game_id)
        return JoinGameResponse(trace_id=trace_id, message="Joined the game.")
    except LobbyException as e:
        return _error_response(trace_id, e)
    except Exception as e:
        return _unexpected_error(trace_id, e)


@router.get("/{game_id}", response_model=GameStatusResponse)
def get_game_status(game_id: str, manager: LobbyManager = Depends(get_lobby_manager)):
    trace_id = new_trace_id()
    bind(logger, trace_id).info(f"Received get game status request for id: {game_id}")
    try:
        state = manager.get_status(trace_id, game_id)
        return GameStatusResponse(trace_id=trace_id, game_status=state)
    except LobbyException as e:
        return _error_response(trace_id, e)
    except Exception as e:
        return _unexpected_error(trace_id, e)


@router.put("/{game_id}/cancel", response_model=CancelGameResponse)
def cancel_game(game_id: str, manager: LobbyManager = Depends(get_lobby_manager)):
    """
    Cancel a Pending or Ongoing game.

    404 if the game does not exist, 409 if it is Finished or Cancelled.
    """
    trace_id = new_trace_id()
    bind(logger, trace_id).info(f"Received cancel game request for id: {game_id}")
    try:
        manager.cancel_game(trace_id, game_id)
        return CancelGameResponse(trace_id=trace_id)
    except LobbyException as e:
        return _error_response(trace_id, e)
    except Exception as e:
        return _unexpected_error(trace_id, e)
