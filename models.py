"""
Persistence models and the game lifecycle states.
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Integer, String

from database import Base


class GameState(str, enum.Enum):
    PENDING = "Pending"
    ONGOING = "Ongoing"
    FINISHED = "Finished"
    CANCELLED = "Cancelled"


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True)
    state = Column(
        Enum(GameState, name="game_state", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=GameState.PENDING,
    )
    # compared and bumped on every replace, see core/storage.py
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
