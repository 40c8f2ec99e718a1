import threading

import pytest

from core.exceptions import (
    ConcurrentModification,
    GameConflict,
    GameNotCancellable,
    GameNotFound,
    GameNotJoinable,
    InternalInconsistency,
    StorageFailure,
)
from core.lobby_manager import LobbyManager
from core.storage import StorageGateway
from models import GameState

TRACE = "test-trace"


# ---- create ----

def test_create_returns_unseen_ids_in_pending(manager):
    ids = set()
    for _ in range(5):
        game_id, state = manager.create_game(TRACE)
        assert state == GameState.PENDING
        assert game_id not in ids
        ids.add(game_id)
        assert manager.get_status(TRACE, game_id) == GameState.PENDING


def test_create_multiple_records_is_internal_inconsistency(manager, storage, monkeypatch):
    monkeypatch.setattr(storage, "create", lambda record: ["a", "b"])
    with pytest.raises(InternalInconsistency) as exc:
        manager.create_game(TRACE)
    assert exc.value.error_code == InternalInconsistency.MULTIPLE_RECORDS_CREATED


def test_create_with_no_record_reported_is_storage_failure(manager, storage, monkeypatch):
    monkeypatch.setattr(storage, "create", lambda record: [])
    with pytest.raises(StorageFailure):
        manager.create_game(TRACE)


# ---- join ----

def test_join_then_second_join_conflicts(manager):
    game_id, _ = manager.create_game(TRACE)

    joined = manager.join_game(TRACE, game_id)
    assert joined.state == GameState.ONGOING

    with pytest.raises(GameNotJoinable):
        manager.join_game(TRACE, game_id)
    assert manager.get_status(TRACE, game_id) == GameState.ONGOING


@pytest.mark.parametrize("state", [GameState.ONGOING, GameState.FINISHED, GameState.CANCELLED])
def test_join_non_pending_fails_and_leaves_state(manager, storage, seed_game, state):
    game_id = seed_game(state)

    with pytest.raises(GameConflict):
        manager.join_game(TRACE, game_id)

    stored = storage.fetch(game_id)
    assert stored.state == state
    assert stored.version == 1


def test_join_after_record_vanished_is_storage_failure(manager, storage, monkeypatch):
    game_id, _ = manager.create_game(TRACE)

    def vanished(game_id, record):
        raise GameNotFound(game_id)

    monkeypatch.setattr(storage, "replace", vanished)
    with pytest.raises(StorageFailure):
        manager.join_game(TRACE, game_id)


def test_join_with_stale_fetch_loses_race(manager, storage, monkeypatch):
    game_id, _ = manager.create_game(TRACE)
    stale = storage.fetch(game_id)

    manager.join_game(TRACE, game_id)

    # replay the Pending copy as if it had been fetched before the first join
    monkeypatch.setattr(storage, "fetch", lambda _id: stale)
    with pytest.raises(ConcurrentModification):
        manager.join_game(TRACE, game_id)

    monkeypatch.undo()
    assert storage.fetch(game_id).state == GameState.ONGOING


class BarrierStorage(StorageGateway):
    """Holds every fetch until both racing requests have fetched."""

    def __init__(self, engine, barrier):
        super().__init__(engine)
        self.barrier = barrier

    def fetch(self, game_id):
        record = super().fetch(game_id)
        self.barrier.wait(timeout=5)
        return record


def test_concurrent_joins_exactly_one_wins(storage):
    game_id, _ = LobbyManager(storage).create_game(TRACE)
    racing = BarrierStorage(storage.engine, threading.Barrier(2))
    manager = LobbyManager(racing)
    outcomes = []

    def join():
        try:
            manager.join_game(TRACE, game_id)
            outcomes.append("joined")
        except GameConflict:
            outcomes.append("conflict")

    threads = [threading.Thread(target=join) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(outcomes) == ["conflict", "joined"]
    assert storage.fetch(game_id).state == GameState.ONGOING


# ---- cancel ----

@pytest.mark.parametrize("state", [GameState.PENDING, GameState.ONGOING])
def test_cancel_active_game(manager, seed_game, state):
    game_id = seed_game(state)

    cancelled = manager.cancel_game(TRACE, game_id)

    assert cancelled.state == GameState.CANCELLED
    assert manager.get_status(TRACE, game_id) == GameState.CANCELLED


@pytest.mark.parametrize("state", [GameState.FINISHED, GameState.CANCELLED])
def test_cancel_terminal_game_conflicts(manager, storage, seed_game, state):
    game_id = seed_game(state)

    with pytest.raises(GameNotCancellable):
        manager.cancel_game(TRACE, game_id)
    assert storage.fetch(game_id).state == state


def test_cancel_twice(manager):
    game_id, _ = manager.create_game(TRACE)
    manager.cancel_game(TRACE, game_id)
    with pytest.raises(GameNotCancellable):
        manager.cancel_game(TRACE, game_id)


# ---- not found ----

@pytest.mark.parametrize("operation", ["join_game", "get_status", "cancel_game"])
def test_unknown_id_is_not_found(manager, operation):
    with pytest.raises(GameNotFound):
        getattr(manager, operation)(TRACE, "lmao")


def test_status_does_not_mutate(manager, storage, seed_game):
    game_id = seed_game(GameState.FINISHED)
    for _ in range(3):
        assert manager.get_status(TRACE, game_id) == GameState.FINISHED
    assert storage.fetch(game_id).version == 1
