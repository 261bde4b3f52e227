"""Tests for board normalisation."""

from __future__ import annotations

import json

import pytest

from taskboard.models.board import BOARD_TITLE, Board
from taskboard.services.normalizer import (
    Accepted,
    Rejected,
    content_signature,
    default_board,
    normalize,
    normalize_text,
    parse_timestamp,
    utc_timestamp,
)
from tests.board_utils import board_payload


def _accepted(raw) -> Board:
    result = normalize(raw)
    assert isinstance(result, Accepted)
    return result.board


def _content(board: Board) -> dict:
    return board.model_dump(include={"sections"})


class TestRejection:
    @pytest.mark.parametrize("raw", [None, "board", 42, True, ["sections"], b"{}"])
    def test_non_objects_are_rejected(self, raw) -> None:
        result = normalize(raw)
        assert isinstance(result, Rejected)
        assert result.reason

    def test_empty_object_is_an_empty_board(self) -> None:
        board = _accepted({})
        assert board.sections == []
        assert board.title == BOARD_TITLE


class TestNormalizeText:
    def test_collapses_whitespace_and_trims(self) -> None:
        assert normalize_text("  Lay \n\t tile  ", 220) == "Lay tile"

    def test_clamps_and_retrims(self) -> None:
        value = "a" * 219 + " b"
        assert normalize_text(value, 220) == "a" * 219

    @pytest.mark.parametrize("value", [None, "", 0, False, {}, [], "   "])
    def test_empty_values(self, value) -> None:
        assert normalize_text(value, 80) == ""

    def test_numbers_are_stringified(self) -> None:
        assert normalize_text(12, 80) == "12"


class TestSections:
    def test_title_fallback_and_clamp(self) -> None:
        board = _accepted(
            board_payload(
                {"id": "s1", "title": "   "},
                {"id": "s2", "title": "x" * 100},
            )
        )
        assert board.sections[0].title == "Untitled"
        assert board.sections[1].title == "x" * 80

    def test_section_limit(self) -> None:
        board = _accepted(board_payload(*[{"id": f"s{i}", "title": str(i + 1)} for i in range(150)]))
        assert len(board.sections) == 100
        assert board.sections[-1].id == "s99"

    def test_non_object_entries_are_skipped(self) -> None:
        board = _accepted({"sections": ["junk", None, {"id": "s1", "title": "Entry"}]})
        assert [s.id for s in board.sections] == ["s1"]

    def test_non_list_sections_become_empty(self) -> None:
        assert _accepted({"sections": {"id": "s1"}}).sections == []

    @pytest.mark.parametrize("bad_id", [None, "", 7, ["s"]])
    def test_missing_ids_are_generated(self, bad_id) -> None:
        board = _accepted(board_payload({"id": bad_id, "title": "Entry"}))
        assert board.sections[0].id.startswith("section-")

    def test_duplicate_section_ids_are_replaced(self) -> None:
        board = _accepted(board_payload({"id": "s1", "title": "A"}, {"id": "s1", "title": "B"}))
        assert board.sections[0].id == "s1"
        assert board.sections[1].id != "s1"
        assert board.sections[1].title == "B"


class TestTasks:
    def test_tasks_are_normalised(self) -> None:
        board = _accepted(
            board_payload(
                {
                    "id": "s1",
                    "title": "Entry",
                    "tasks": [
                        {"id": "t1", "text": "  Lay   tile ", "done": 1, "starred": ""},
                        {"id": "t2", "text": "   "},
                        {"text": "Grout"},
                        "junk",
                    ],
                }
            )
        )
        tasks = board.sections[0].tasks
        assert [t.text for t in tasks] == ["Lay tile", "Grout"]
        assert tasks[0].done is True
        assert tasks[0].starred is False
        assert tasks[1].id.startswith("task-")

    def test_task_limit_and_text_clamp(self) -> None:
        tasks = [{"id": f"t{i}", "text": "y" * 300} for i in range(600)]
        board = _accepted(board_payload({"id": "s1", "tasks": tasks}))
        assert len(board.sections[0].tasks) == 500
        assert all(len(t.text) == 220 for t in board.sections[0].tasks)

    def test_task_ids_unique_within_section_only(self) -> None:
        board = _accepted(
            board_payload(
                {"id": "s1", "tasks": [{"id": "t1", "text": "a"}, {"id": "t1", "text": "b"}]},
                {"id": "s2", "tasks": [{"id": "t1", "text": "c"}]},
            )
        )
        first, second = board.sections
        assert first.tasks[0].id == "t1"
        assert first.tasks[1].id != "t1"
        assert second.tasks[0].id == "t1"


class TestServerOwnedFields:
    def test_title_and_timestamp_are_never_client_supplied(self) -> None:
        board = _accepted({"title": "Hacked", "updatedAt": "1999-01-01T00:00:00.000Z", "sections": []})
        assert board.title == BOARD_TITLE
        assert board.updated_at != "1999-01-01T00:00:00.000Z"
        assert parse_timestamp(board.updated_at) is not None

    def test_explicit_now(self) -> None:
        result = normalize({}, now="2026-10-17T10:00:00.000Z")
        assert isinstance(result, Accepted)
        assert result.board.updated_at == "2026-10-17T10:00:00.000Z"

    def test_timestamp_format(self) -> None:
        stamp = utc_timestamp()
        assert stamp.endswith("Z")
        assert len(stamp) == len("2026-10-17T10:00:00.000Z")


class TestIdempotence:
    @pytest.mark.parametrize(
        "raw",
        [
            {},
            board_payload({"title": " Entry ", "tasks": [{"text": "Lay  tile", "done": True}]}),
            board_payload({"id": "s", "title": "z" * 79 + " q", "tasks": [{"id": "t", "text": "w" * 219 + " v"}]}),
            board_payload({"id": "s"}, {"id": "s"}, {"id": "", "tasks": [{"id": 3, "text": 5}]}),
        ],
    )
    def test_normalising_twice_keeps_content(self, raw) -> None:
        once = _accepted(raw)
        twice = _accepted(once.wire())
        assert _content(twice) == _content(once)

    def test_invariants_hold(self) -> None:
        raw = board_payload(
            *[
                {"id": "dup", "tasks": [{"id": "dup", "text": f"task {i}"} for i in range(3)] + [{"text": ""}]}
                for _ in range(5)
            ]
        )
        board = _accepted(raw)
        section_ids = [s.id for s in board.sections]
        assert len(set(section_ids)) == len(section_ids)
        for section in board.sections:
            task_ids = [t.id for t in section.tasks]
            assert len(set(task_ids)) == len(task_ids)
            assert all(t.text for t in section.tasks)


class TestSignature:
    def test_signature_ignores_timestamp(self) -> None:
        board = _accepted(board_payload({"id": "s1", "title": "Entry"}))
        later = board.model_copy(update={"updated_at": "2030-01-01T00:00:00.000Z"})
        assert content_signature(board) == content_signature(later)

    def test_signature_sees_flags(self) -> None:
        board = _accepted(board_payload({"id": "s1", "tasks": [{"id": "t1", "text": "a"}]}))
        toggled = _accepted(board_payload({"id": "s1", "tasks": [{"id": "t1", "text": "a", "done": True}]}))
        assert content_signature(board) != content_signature(toggled)


def test_default_board_is_canonical() -> None:
    board = default_board()
    assert board.sections[0].title == "Entré"
    assert len(board.sections[0].tasks) == 6
    again = _accepted(json.loads(json.dumps(board.wire())))
    assert _content(again) == _content(board)
