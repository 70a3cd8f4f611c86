from datetime import datetime, timezone

import pytest

from warehouse_store.db import RepositoryError
from warehouse_store.records import UserSummary
from warehouse_store.scan_event_repository import (
    ScanEvent,
    ScanEventFilter,
    ScanEventRepository,
)

SCANNED = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


class FakeDB:
    def __init__(self, rows=None, row=None, error=None):
        self.rows = rows or []
        self.row = row
        self.error = error
        self.calls = []

    def exec(self, sql, *args):
        self.calls.append((sql, args))
        if self.error:
            raise self.error
        return 1

    def query(self, sql, *args):
        self.calls.append((sql, args))
        if self.error:
            raise self.error
        return list(self.rows)

    def query_row(self, sql, *args):
        self.calls.append((sql, args))
        if self.error:
            raise self.error
        return self.row


def test_create_passes_actor_and_builds_event():
    actor = UserSummary(id=3, login="carol", full_name="Carol C", role="worker", is_super_admin=False)
    db = FakeDB(row=(10, "MK-1", 3, 3, "carol", "Carol C", "worker", False, "scanner-a", True, SCANNED))
    repo = ScanEventRepository(db)

    event = repo.create("MK-1", 3, actor, "scanner-a", True)

    _, args = db.calls[0]
    assert args == ("MK-1", 3, 3, "carol", "Carol C", "worker", False, "scanner-a", True)
    assert event == ScanEvent(
        id=10,
        marker_code="MK-1",
        success=True,
        scanned_at=SCANNED,
        user_id=3,
        actor=actor,
        device_info="scanner-a",
    )


def test_create_anonymous_scan_has_no_actor():
    db = FakeDB(row=(11, "MK-2", None, None, None, None, None, False, None, False, SCANNED))
    repo = ScanEventRepository(db)

    event = repo.create("MK-2", None, None, None, False)

    _, args = db.calls[0]
    assert args == ("MK-2", None, None, None, None, None, False, None, False)
    assert event.actor is None
    assert event.device_info is None
    assert event.success is False


def test_create_wraps_driver_errors():
    repo = ScanEventRepository(FakeDB(error=RuntimeError("boom")))
    with pytest.raises(RepositoryError, match="create scan event"):
        repo.create("MK-1", None, None, None, True)


def test_list_without_filters():
    db = FakeDB()
    repo = ScanEventRepository(db)

    assert repo.list(ScanEventFilter(limit=20)) == []

    sql, args = db.calls[0]
    assert "WHERE" not in sql
    assert args == (20,)
    assert "LIMIT $1" in sql


def test_list_with_user_and_marker_filters():
    db = FakeDB()
    repo = ScanEventRepository(db)

    repo.list(ScanEventFilter(limit=15, user_id=2, marker_code="MK-9"))

    sql, args = db.calls[0]
    assert args == (2, "MK-9", 15)
    assert "se.user_id = $1 AND se.marker_code = $2" in sql
    assert "LIMIT $3" in sql


def test_list_with_marker_only():
    db = FakeDB()
    repo = ScanEventRepository(db)

    repo.list(ScanEventFilter(limit=15, marker_code="MK-9"))

    sql, args = db.calls[0]
    assert args == ("MK-9", 15)
    assert "se.marker_code = $1" in sql


def test_list_prefers_live_user():
    row = (
        1, "MK-1", 3,
        3, "old", "Old", "worker", False,
        "scanner-a", True, SCANNED,
        3, "carol", "Carol C", "admin", True,
    )
    repo = ScanEventRepository(FakeDB(rows=[row]))

    [event] = repo.list(ScanEventFilter(limit=1))

    assert event.actor == UserSummary(id=3, login="carol", full_name="Carol C", role="admin", is_super_admin=True)
    assert event.device_info == "scanner-a"


def test_list_falls_back_to_snapshot():
    row = (
        2, "MK-2", None,
        5, "dave", "Dave D", "worker", True,
        None, False, SCANNED,
        None, None, None, None, False,
    )
    repo = ScanEventRepository(FakeDB(rows=[row]))

    [event] = repo.list(ScanEventFilter(limit=1))

    assert event.actor == UserSummary(id=5, login="dave", full_name="Dave D", role="worker", is_super_admin=True)
    assert event.user_id is None


def test_list_without_actor_data():
    row = (3, "MK-3", None, None, None, None, None, False, None, True, SCANNED, None, None, None, None, False)
    repo = ScanEventRepository(FakeDB(rows=[row]))

    [event] = repo.list(ScanEventFilter(limit=1))

    assert event.actor is None
    assert event.marker_code == "MK-3"


def test_list_wraps_driver_errors():
    repo = ScanEventRepository(FakeDB(error=RuntimeError("down")))
    with pytest.raises(RepositoryError, match="list scan events"):
        repo.list(ScanEventFilter(limit=1))