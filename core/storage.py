"""
Storage gateway: the only code that talks to the persistence backend.

Every call is one round-trip in its own session/transaction, with no retries.
Backend faults of any kind are folded into StorageFailure; the lobby manager
only distinguishes "not found" from everything else.

replace() is a conditional update keyed by (id, version). If another request
replaced the record after our fetch, no row matches and ConcurrentModification
is raised instead of silently overwriting the other write.
"""
from typing import List
import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import Base, Settings, build_engine, build_session_factory, transactional
from models import Game
from core.records import GameRecord
from core.exceptions import ConcurrentModification, GameNotFound, StorageFailure

logger = logging.getLogger(__name__)


@transactional
def _insert_game(db: Session, record: GameRecord) -> List[str]:
    row = Game(id=record.id, state=record.state, version=record.version)
    db.add(row)
    db.flush()
    return [row.id]


def _select_game(db: Session, game_id: str) -> Game:
    return db.query(Game).filter(Game.id == game_id).first()


@transactional
def _update_game(db: Session, game_id: str, record: GameRecord) -> int:
    return db.query(Game).filter(
        Game.id == game_id,
        Game.version == record.version
    ).update(
        {Game.state: record.state, Game.version: record.version + 1},
        synchronize_session=False
    )


class StorageGateway:
    """Create / fetch / replace game records by id."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = build_session_factory(engine)

    @classmethod
    def connect(cls, settings: Settings) -> "StorageGateway":
        """
        Build the engine, verify the backend is reachable and create tables.

        Raises:
            StorageFailure: backend unreachable or schema creation failed
        """
        gateway = cls(build_engine(settings))
        gateway.ping()
        try:
            Base.metadata.create_all(bind=gateway.engine)
        except SQLAlchemyError as e:
            raise StorageFailure(f"Could not prepare the games table: {e}") from e
        logger.info(f"Connected to storage backend {gateway.engine.url.render_as_string(hide_password=True)}")
        return gateway

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageFailure(f"Storage backend is unreachable: {e}") from e

    def close(self) -> None:
        self.engine.dispose()

    def create(self, record: GameRecord) -> List[str]:
        """
        Persist a new record.

        Returns:
            ids of the created records (exactly one when the backend behaves)
        """
        try:
            with self._session_factory() as db:
                return _insert_game(db, record)
        except SQLAlchemyError as e:
            raise StorageFailure(str(e)) from e

    def fetch(self, game_id: str) -> GameRecord:
        """
        Raises:
            GameNotFound: no record for game_id
            StorageFailure: backend error
        """
        try:
            with self._session_factory() as db:
                row = _select_game(db, game_id)
                if row is None:
                    raise GameNotFound(game_id)
                return GameRecord.from_row(row)
        except SQLAlchemyError as e:
            raise StorageFailure(str(e)) from e

    def replace(self, game_id: str, record: GameRecord) -> GameRecord:
        """
        Overwrite the stored record if it still has record.version.

        Returns:
            the stored record with its new version

        Raises:
            GameNotFound: the record no longer exists
            ConcurrentModification: the record exists with another version
            StorageFailure: backend error
        """
        try:
            with self._session_factory() as db:
                updated = _update_game(db, game_id, record)
                if updated == 1:
                    return GameRecord(id=game_id, state=record.state, version=record.version + 1)
                if _select_game(db, game_id) is None:
                    raise GameNotFound(game_id)
                raise ConcurrentModification(game_id)
        except SQLAlchemyError as e:
            raise StorageFailure(str(e)) from e
