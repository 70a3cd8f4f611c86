import pytest

from warehouse_store.db import ConflictError, NotFoundError, RepositoryError
from warehouse_store.rack_repository import Rack, RackRepository
from warehouse_store.records import ObjectContentStats


class UniqueViolation(Exception):
    sqlstate = "23505"


class RackDB:
    def __init__(self, rows=(), row=None, affected=0, error=None):
        self.rows, self.row, self.affected, self.error = list(rows), row, affected, error
        self.calls = []

    def _reply(self, sql, args, value):
        self.calls.append((sql, args))
        if self.error is not None:
            raise self.error
        return value

    def exec(self, sql, *args):
        return self._reply(sql, args, self.affected)

    def query(self, sql, *args):
        return iter(self._reply(sql, args, self.rows))

    def query_row(self, sql, *args):
        return self._reply(sql, args, self.row)


ROW = (1, "R-1", "Rack one", None, "active")


def test_list_returns_racks():
    db = RackDB(rows=[ROW, (2, "R-2", "Rack two", "A", "active")])
    racks = RackRepository(db).list(100)
    assert racks[0] == Rack(1, "R-1", "Rack one", None, "active")
    assert racks[1].zone == "A"
    assert db.calls[0][1] == (100,)


def test_list_by_ids():
    db = RackDB(rows=[ROW])
    repo = RackRepository(db)
    assert repo.list_by_ids([]) == []
    assert db.calls == []
    assert repo.list_by_ids((1,))[0].id == 1
    assert db.calls[0][1] == ([1],)


def test_get_create_update_return_rack():
    db = RackDB(row=ROW)
    repo = RackRepository(db)
    assert repo.get_by_id(1).code == "R-1"
    assert repo.create("R-1", "Rack one", None, "active") == Rack(*ROW)
    assert repo.update(1, "R-1", "Rack one", None, "active").name == "Rack one"
    assert [args for _, args in db.calls] == [
        (1,),
        ("R-1", "Rack one", None, "active"),
        (1, "R-1", "Rack one", None, "active"),
    ]


@pytest.mark.parametrize(
    "db, call",
    [
        (RackDB(row=None), lambda repo: repo.get_by_id(1)),
        (RackDB(row=None), lambda repo: repo.update(1, "R", "n", None, "active")),
        (RackDB(affected=0), lambda repo: repo.delete_by_id(1)),
    ],
)
def test_not_found(db, call):
    with pytest.raises(NotFoundError):
        call(RackRepository(db))


@pytest.mark.parametrize(
    "call",
    [
        lambda repo: repo.create("R-1", "x", None, "active"),
        lambda repo: repo.update(1, "R", "n", None, "active"),
    ],
)
def test_unique_violation_is_conflict(call):
    with pytest.raises(ConflictError):
        call(RackRepository(RackDB(error=UniqueViolation())))


@pytest.mark.parametrize(
    "call, message",
    [
        (lambda repo: repo.get_by_id(1), "get rack by id: down"),
        (lambda repo: repo.create("R-1", "x", None, "active"), "create rack"),
        (lambda repo: repo.get_content_stats(1), "get rack content stats"),
    ],
)
def test_driver_errors_are_wrapped(call, message):
    with pytest.raises(RepositoryError, match=message) as info:
        call(RackRepository(RackDB(error=OSError("down"))))
    assert not isinstance(info.value, ConflictError)


@pytest.mark.parametrize("flag", [True, False])
def test_has_any_storage_cells(flag):
    assert RackRepository(RackDB(row=(flag,))).has_any_storage_cells(1) is flag


def test_delete_by_id():
    db = RackDB(affected=1)
    RackRepository(db).delete_by_id(1)
    assert db.calls[0][1] == (1,)


def test_get_content_stats():
    stats = RackRepository(RackDB(row=(2, 3, 4, 1, 40))).get_content_stats(1)
    assert stats == ObjectContentStats(
        cells_count=2, boxes_count=3, batches_count=4, products_count=1, total_quantity=40
    )
    assert stats.product_sku is None