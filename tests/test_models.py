from __future__ import annotations

import pytest

from kanban_realtime.domain.models import (
    Task,
    editable_fields,
    next_updated_at,
    parse_task_id,
)


class TestParseTaskId:
    @pytest.mark.parametrize("value,expected", [(7, 7), ("12", 12), (" 3 ", 3), (4.0, 4)])
    def test_accepts_positive_ids(self, value, expected) -> None:
        assert parse_task_id(value) == expected

    @pytest.mark.parametrize("value", [None, 0, -1, "0", "abc", "", True, 2.5, [1], {"id": 1}])
    def test_rejects_everything_else(self, value) -> None:
        assert parse_task_id(value) is None


def test_editable_fields_drops_store_owned_keys() -> None:
    fields = editable_fields({
        "id": 9,
        "title": "Ship it",
        "dueDate": "2026-01-01",
        "createdAt": 1,
        "updatedAt": 2,
        "bogus": "x",
    })
    assert fields == {"title": "Ship it", "dueDate": "2026-01-01"}


def test_editable_fields_keeps_explicit_clear() -> None:
    assert editable_fields({"assignee": None}) == {"assignee": ""}


def test_new_task_applies_defaults() -> None:
    task = Task.new({"title": "X"}, task_id=5, stamp=1000)
    assert task.id == 5
    assert task.column == "backlog"
    assert task.priority == "medium"
    assert task.description == ""
    assert task.assignee == ""
    assert task.created_at == task.updated_at == 1000


def test_to_dict_uses_wire_names() -> None:
    task = Task(id=1, title="A", due_date="2026-02-03", created_at=10, updated_at=11)
    data = task.to_dict()
    assert data["dueDate"] == "2026-02-03"
    assert data["createdAt"] == 10
    assert data["updatedAt"] == 11
    assert "due_date" not in data
    assert Task.from_dict(data) == task


def test_from_dict_fills_missing_values() -> None:
    task = Task.from_dict({"id": "3", "title": "Legacy"})
    assert task.id == 3
    assert task.column == "backlog"
    assert task.priority == "medium"
    assert task.updated_at == 0


def test_apply_changes_only_given_fields() -> None:
    task = Task.new({"title": "Old", "description": "keep"}, task_id=1, stamp=1)
    task.apply({"title": "New", "column": "done"})
    assert task.title == "New"
    assert task.column == "done"
    assert task.description == "keep"
    assert task.updated_at == 1


def test_next_updated_at_is_strictly_increasing() -> None:
    far_future = 10**15
    assert next_updated_at(far_future) == far_future + 1
    assert next_updated_at(None) > 0
    assert next_updated_at(0) > 0
