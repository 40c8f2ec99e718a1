"""
Game state machine: the single place that knows which transitions are legal.

    Pending ──► Ongoing ──► Finished
       │           │
       └──► Cancelled ◄──┘

Finished and Cancelled are terminal.
"""
from typing import Dict, FrozenSet

from models import GameState
from core.records import GameRecord
from core.exceptions import InvalidStateTransition


class GameStateMachine:

    TRANSITIONS: Dict[GameState, FrozenSet[GameState]] = {
        GameState.PENDING: frozenset({GameState.ONGOING, GameState.CANCELLED}),
        GameState.ONGOING: frozenset({GameState.FINISHED, GameState.CANCELLED}),
        GameState.FINISHED: frozenset(),
        GameState.CANCELLED: frozenset(),
    }

    @classmethod
    def can_transition(cls, current: GameState, target: GameState) -> bool:
        return target in cls.TRANSITIONS[current]

    @classmethod
    def is_terminal(cls, state: GameState) -> bool:
        return not cls.TRANSITIONS[state]

    @classmethod
    def transition(cls, record: GameRecord, target: GameState) -> GameRecord:
        """
        Return a copy of `record` moved to `target`.

        Raises:
            InvalidStateTransition: the table does not allow current -> target
        """
        if not cls.can_transition(record.state, target):
            raise InvalidStateTransition(
                f"Invalid transition for game {record.id}: "
                f"{record.state.value} -> {target.value}"
            )
        return record.with_state(target)

