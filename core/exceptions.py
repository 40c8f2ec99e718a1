"""
Custom exceptions.

All lobby failures live here so the API layer can map each one to a status code.
"""


class LobbyException(Exception):
    """Base class for every lobby failure."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ============ Lookup ============

class GameNotFound(LobbyException):
    """No game record exists for the identifier."""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__("Couldn't find the game you're looking for.")


# ============ State conflicts ============

class GameConflict(LobbyException):
    """The operation is not valid for the game's current state."""
    pass


class GameNotJoinable(GameConflict):
    """Only Pending games can be joined."""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__("The game is already active or finished.")


class GameNotCancellable(GameConflict):
    """Finished and Cancelled games are terminal."""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__(
            "Game can not be cancelled. Either the game is already cancelled "
            "or it is already finished."
        )


class ConcurrentModification(GameConflict):
    """The record changed between fetch and replace."""
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__("The game was modified by another request. Please retry.")


class InvalidStateTransition(GameConflict):
    pass


# ============ Storage ============

class StorageFailure(LobbyException):
    """The persistence backend reported an error."""
    pass


class InternalInconsistency(LobbyException):
    """A defensive invariant check failed."""

    # storage created more than one record for a single create request
    MULTIPLE_RECORDS_CREATED = 1

    def __init__(self, message: str, error_code: int):
        self.error_code = error_code
        super().__init__(message)
