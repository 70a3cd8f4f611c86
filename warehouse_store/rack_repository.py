"""Racks: shelving units that group storage cells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .db import NotFoundError, Querier, _errors
from .records import ObjectContentStats

_COLUMNS = "id, code, name, zone, status"

_STATS_SQL = """
WITH rack_cells AS (
    SELECT id FROM storage_cells WHERE rack_id = $1
),
rack_boxes AS (
    SELECT id FROM boxes WHERE storage_cell_id IN (SELECT id FROM rack_cells)
),
rack_batches AS (
    SELECT b.product_id, b.quantity
    FROM batches b
    WHERE b.storage_cell_id IN (SELECT id FROM rack_cells)
       OR b.box_id IN (SELECT id FROM rack_boxes)
),
product_counts AS (
    SELECT COUNT(DISTINCT product_id)::INT AS products_count FROM rack_batches
)
SELECT
    (SELECT COUNT(*)::INT FROM rack_cells),
    (SELECT COUNT(*)::INT FROM rack_boxes),
    (SELECT COUNT(*)::INT FROM rack_batches),
    COALESCE((SELECT products_count FROM product_counts), 0),
    COALESCE((SELECT SUM(quantity)::INT FROM rack_batches), 0)
"""


@dataclass
class Rack:
    id: int
    code: str
    name: str
    zone: str | None
    status: str


def _select(tail: str) -> str:
    return f"SELECT {_COLUMNS} FROM racks {tail}"


class RackRepository:
    """Reads and writes racks."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def list(self, limit: int) -> list[Rack]:
        return self._many("list racks", _select("ORDER BY id LIMIT $1"), limit)

    def get_by_id(self, rack_id: int) -> Rack:
        return Rack(*self._one("get rack by id", _select("WHERE id = $1"), rack_id))

    def list_by_ids(self, ids: Sequence[int]) -> list[Rack]:
        if not ids:
            return []
        return self._many("list racks by ids", _select("WHERE id = ANY($1)"), list(ids))

    def create(self, code: str, name: str, zone: str | None, status: str) -> Rack:
        sql = f"INSERT INTO racks (code, name, zone, status) VALUES ($1, $2, $3, $4) RETURNING {_COLUMNS}"
        row = self._one("create rack", sql, code, name, zone, status, conflict=True, required=True)
        return Rack(*row)

    def update(self, rack_id: int, code: str, name: str, zone: str | None, status: str) -> Rack:
        sql = (
            "UPDATE racks SET code = $2, name = $3, zone = $4, status = $5"
            f" WHERE id = $1 RETURNING {_COLUMNS}"
        )
        return Rack(*self._one("update rack", sql, rack_id, code, name, zone, status, conflict=True))

    def has_any_storage_cells(self, rack_id: int) -> bool:
        sql = "SELECT EXISTS (SELECT 1 FROM storage_cells WHERE rack_id = $1)"
        return bool(self._one("check rack storage cells", sql, rack_id, required=True)[0])

    def delete_by_id(self, rack_id: int) -> None:
        with _errors("delete rack"):
            affected = self._db.exec("DELETE FROM racks WHERE id = $1", rack_id)
        if affected == 0:
            raise NotFoundError()

    def get_content_stats(self, rack_id: int) -> ObjectContentStats:
        """Count the cells, boxes, batches and products held by a rack."""
        cells, boxes, batches, products, total = self._one(
            "get rack content stats", _STATS_SQL, rack_id, required=True
        )
        return ObjectContentStats(
            cells_count=cells,
            boxes_count=boxes,
            batches_count=batches,
            products_count=products,
            total_quantity=total,
        )

    def _many(self, action: str, sql: str, *args: Any) -> list[Rack]:
        with _errors(action):
            return [Rack(*row) for row in self._db.query(sql, *args)]

    def _one(self, action: str, sql: str, *args: Any, conflict: bool = False, required: bool = False):
        """Fetch one row; a missing row is NotFoundError, or a driver fault if required."""
        with _errors(action, conflict=conflict):
            row = self._db.query_row(sql, *args)
            if row is None and required:
                raise RuntimeError("no row returned")
        if row is None:
            raise NotFoundError()
        return row