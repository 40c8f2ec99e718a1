"""Shared fixtures: a storage gateway on a throwaway SQLite file."""

import pytest
from fastapi.testclient import TestClient

from api.games import get_storage
from core.lobby_manager import LobbyManager
from core.records import GameRecord
from core.storage import StorageGateway
from database import Settings
from main import app


@pytest.fixture
def settings(tmp_path):
    return Settings(db_url=f"sqlite:///{tmp_path / 'lobby.db'}")


@pytest.fixture
def storage(settings):
    gateway = StorageGateway.connect(settings)
    yield gateway
    gateway.close()


@pytest.fixture
def manager(storage):
    return LobbyManager(storage)


@pytest.fixture
def client(storage):
    """App client wired to the test storage (lifespan is not run)."""
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seed_game(storage):
    """Insert a game directly in the given state and return its id."""
    def _seed(state):
        record = GameRecord.new().with_state(state)
        storage.create(record)
        return record.id
    return _seed
