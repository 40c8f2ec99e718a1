"""
Lobby Manager: the lifecycle of a game lobby.

Responsibilities:
1. Create a game (Pending)
2. Join a game (Pending -> Ongoing)
3. Report a game's state
4. Cancel a game (Pending/Ongoing -> Cancelled)

Every mutation is fetch -> check -> transition -> replace. The state checks
live here and in GameStateMachine; the API layer only maps exceptions.
"""
from typing import Tuple
import logging

from models import GameState
from core.records import GameRecord
from core.state_machine import GameStateMachine
from core.storage import StorageGateway
from core.tracing import bind
from core.exceptions import (
    GameNotFound,
    GameNotJoinable,
    GameNotCancellable,
    InternalInconsistency,
    StorageFailure,
)

logger = logging.getLogger(__name__)


class LobbyManager:
    """Game lobby lifecycle manager."""

    def __init__(self, storage: StorageGateway):
        self.storage = storage

    def create_game(self, trace_id: str) -> Tuple[str, GameState]:
        """
        Create a new Pending game.

        Returns:
            (game_id, GameState.PENDING)

        Raises:
            StorageFailure: write failed, or storage reported no record
            InternalInconsistency: storage reported more than one record
        """
        log = bind(logger, trace_id)
        record = GameRecord.new()

        created = self.storage.create(record)
        if len(created) > 1:
            log.error(f"Storage created {len(created)} records for a single game")
            raise InternalInconsistency(
                "Something went wrong.",
                error_code=InternalInconsistency.MULTIPLE_RECORDS_CREATED
            )
        if not created:
            raise StorageFailure("Storage did not report the created game.")

        game_id = created[0]
        log.info(f"Created game with id: {game_id}")
        return game_id, record.state

    def join_game(self, trace_id: str, game_id: str) -> GameRecord:
        """
        Join a Pending game, moving it to Ongoing.

        A game can be joined exactly once. If two joins race, the version
        check in StorageGateway.replace lets only one of them through.

        Raises:
            GameNotFound: no such game
            GameNotJoinable: game is not Pending
            ConcurrentModification: another request changed the game first
            StorageFailure: update failed (including the game vanishing)
        """
        log = bind(logger, trace_id)
        game = self.storage.fetch(game_id)

        if game.state != GameState.PENDING:
            log.info(f"Game with id {game_id} does exist, but is not available to join ({game.state.value})")
            raise GameNotJoinable(game_id)

        joined = self._persist(game_id, GameStateMachine.transition(game, GameState.ONGOING))
        log.info(f"Joined game with id {game_id}")
        return joined

    def get_status(self, trace_id: str, game_id: str) -> GameState:
        """
        Raises:
            GameNotFound: no such game
        """
        game = self.storage.fetch(game_id)
        bind(logger, trace_id).info(f"Game {game_id} has status {game.state.value}")
        return game.state

    def cancel_game(self, trace_id: str, game_id: str) -> GameRecord:
        """
        Cancel a Pending or Ongoing game.

        Raises:
            GameNotFound: no such game
            GameNotCancellable: game is Finished or Cancelled
            ConcurrentModification: another request changed the game first
            StorageFailure: update failed
        """
        log = bind(logger, trace_id)
        game = self.storage.fetch(game_id)

        if GameStateMachine.is_terminal(game.state):
            log.info(f"Game with id {game_id} can not be cancelled ({game.state.value})")
            raise GameNotCancellable(game_id)

        cancelled = self._persist(game_id, GameStateMachine.transition(game, GameState.CANCELLED))
        log.info(f"Cancelled the game with id {game_id}")
        return cancelled

    def _persist(self, game_id: str, record: GameRecord) -> GameRecord:
        try:
            return self.storage.replace(game_id, record)
        except GameNotFound as e:
            # fetched a moment ago, so the record vanished mid-request
            raise StorageFailure(f"Game {game_id} disappeared before it could be updated.") from e
