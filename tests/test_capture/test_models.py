"""Tests for WorkItem and Capture."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from backgrounder.capture.models import Capture, WorkItem


class TestWorkItem:
    def test_args_are_stored_as_tuple(self):
        item = WorkItem("mail:send", [1, 2])
        assert item.args == (1, 2)

    def test_empty_task_is_rejected(self):
        with pytest.raises(ValueError):
            WorkItem("")

    def test_dict_round_trip(self):
        item = WorkItem("mail:send", (1, "two"))
        assert WorkItem.from_dict(item.to_dict()) == item


class TestCapture:
    def test_defaults(self):
        capture = Capture(WorkItem("mail:send"))

        assert capture.values == {}
        assert capture.owner is None
        assert len(capture.id) == 32
        assert capture.created_at.tzinfo is not None

    def test_ids_are_unique(self):
        assert Capture(WorkItem("t")).id != Capture(WorkItem("t")).id

    def test_task_shortcut(self):
        assert Capture(WorkItem("reports:rebuild")).task == "reports:rebuild"

    def test_call_args_without_owner(self):
        capture = Capture(WorkItem("t", (1, 2)))
        assert capture.call_args == (1, 2)

    def test_call_args_put_owner_first(self):
        capture = Capture(WorkItem("t", (1, 2)), owner="account-7")
        assert capture.call_args == ("account-7", 1, 2)

    def test_captures_are_immutable(self):
        capture = Capture(WorkItem("t"))
        with pytest.raises(AttributeError):
            capture.owner = "someone"  # type: ignore[misc]

    def test_values_are_copied(self):
        values = {"a": 1}
        capture = Capture(WorkItem("t"), values=values)
        values["a"] = 2
        assert capture.values == {"a": 1}

    def test_dict_round_trip(self):
        created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        capture = Capture(
            WorkItem("t", (1,)),
            values={"copy_to": "ops"},
            owner={"account": 7},
            created_at=created,
        )
        data = capture.to_dict()

        assert data["created_at"] == created.isoformat()
        assert Capture.from_dict(data) == capture
