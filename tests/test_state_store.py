from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.models.board import BOARD_TITLE, Board
from taskboard.services.normalizer import parse_timestamp
from taskboard.services.persistence import BoardStorage, PersistenceScheduler
from taskboard.services.state_store import StateStore
from tests.board_utils import board_payload


class RecordingScheduler(PersistenceScheduler):
    def __init__(self, storage: BoardStorage) -> None:
        super().__init__(storage, delay=10)
        self.scheduled: list[Board] = []

    def schedule(self, board: Board) -> None:
        self.scheduled.append(board)
        super().schedule(board)


@pytest.fixture
def storage(tmp_path: Path) -> BoardStorage:
    return BoardStorage(tmp_path / "tasks.json")


@pytest.mark.asyncio
async def test_open_seeds_missing_document(storage):
    store = StateStore.open(storage)
    assert store.current().sections[0].title == "Entré"
    assert storage.path.exists()


@pytest.mark.asyncio
async def test_apply_replaces_board_and_schedules_write(storage):
    scheduler = RecordingScheduler(storage)
    store = StateStore.open(storage, scheduler)
    before = store.current()

    board = store.apply(board_payload({"id": "s1", "title": "Entry", "tasks": [{"id": "t1", "text": "Lay tile"}]}))

    assert board is store.current()
    assert board.title == BOARD_TITLE
    assert board.sections[0].tasks[0].text == "Lay tile"
    assert scheduler.scheduled == [board]
    assert before.sections[0].title == "Entré"
    await store.close()
    assert storage.load().sections[0].tasks[0].text == "Lay tile"


@pytest.mark.asyncio
async def test_rejected_update_leaves_state(storage):
    scheduler = RecordingScheduler(storage)
    store = StateStore.open(storage, scheduler)
    before = store.current()

    assert store.apply(["not", "a", "board"]) is None
    assert store.current() is before
    assert scheduler.scheduled == []


@pytest.mark.asyncio
async def test_updated_at_strictly_increases(storage):
    store = StateStore.open(storage, RecordingScheduler(storage))
    stamps = [store.current().updated_at]
    for index in range(20):
        stamps.append(store.apply(board_payload({"id": "s1", "title": str(index)})).updated_at)

    parsed = [parse_timestamp(stamp) for stamp in stamps]
    assert all(later > earlier for earlier, later in zip(parsed, parsed[1:]))


@pytest.mark.asyncio
async def test_identical_update_still_gets_new_timestamp(storage):
    store = StateStore.open(storage, RecordingScheduler(storage))
    first = store.apply(board_payload({"id": "s1", "title": "Entry"}))
    second = store.apply(first.wire())
    assert second.sections == first.sections
    assert second.updated_at != first.updated_at
