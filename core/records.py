"""
In-memory game record.

Records are immutable per-request copies of what storage holds. A transition
returns a new record instead of mutating the fetched one.
"""
import uuid
from dataclasses import dataclass, replace

from models import Game, GameState


@dataclass(frozen=True)
class GameRecord:
    id: str
    state: GameState
    version: int = 1

    @classmethod
    def new(cls) -> "GameRecord":
        return cls(id=str(uuid.uuid4()), state=GameState.PENDING)

    @classmethod
    def from_row(cls, row: Game) -> "GameRecord":
        return cls(id=row.id, state=GameState(row.state), version=row.version)

    def with_state(self, state: GameState) -> "GameRecord":
        return replace(self, state=state)
