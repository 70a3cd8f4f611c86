"""Boxes: containers that hold batches and sit in storage cells."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .db import NotFoundError, Querier, _errors
from .records import ObjectContentStats

_COLUMNS = "id, code, status, storage_cell_id"

_STATS_SQL = """
WITH box_batches AS (
    SELECT b.product_id, b.quantity FROM batches b WHERE b.box_id = $1
),
product_counts AS (
    SELECT COUNT(DISTINCT product_id)::INT AS products_count FROM box_batches
),
single_product AS (
    SELECT p.sku, p.name, p.unit
    FROM box_batches bb
    JOIN products p ON p.id = bb.product_id
    GROUP BY p.id, p.sku, p.name, p.unit
    HAVING (SELECT products_count FROM product_counts) = 1
    LIMIT 1
)
SELECT
    (SELECT COUNT(*)::INT FROM box_batches),
    COALESCE((SELECT products_count FROM product_counts), 0),
    COALESCE((SELECT SUM(quantity)::INT FROM box_batches), 0),
    sp.sku, sp.name, sp.unit
FROM single_product sp
RIGHT JOIN (SELECT 1) anchor ON TRUE
"""


@dataclass
class Box:
    id: int
    code: str
    status: str
    storage_cell_id: int | None


class BoxRepository:
    """Reads and writes boxes."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def get_by_id(self, box_id: int) -> Box:
        return self._find("get box by id", "WHERE id = $1", box_id)

    def get_by_code(self, code: str) -> Box:
        """Find a box by code, ignoring letter case."""
        return self._find("get box by code", "WHERE LOWER(code) = LOWER($1) LIMIT 1", code)

    def list(self, limit: int) -> list[Box]:
        return self._select_all("list boxes", "ORDER BY id LIMIT $1", limit)

    def list_by_ids(self, ids: Sequence[int]) -> list[Box]:
        if not ids:
            return []
        return self._select_all("list boxes by ids", "WHERE id = ANY($1)", list(ids))

    def create(self, code: str, status: str, storage_cell_id: int | None) -> Box:
        sql = f"INSERT INTO boxes (code, status, storage_cell_id) VALUES ($1, $2, $3) RETURNING {_COLUMNS}"
        with _errors("create box", conflict=True):
            row = self._db.query_row(sql, code, status, storage_cell_id)
            if row is None:
                raise RuntimeError("no row returned")
        return Box(*row)

    def update(self, box_id: int, code: str, status: str, storage_cell_id: int | None) -> Box:
        sql = (
            "UPDATE boxes SET code = $2, status = $3, storage_cell_id = $4"
            f" WHERE id = $1 RETURNING {_COLUMNS}"
        )
        with _errors("update box", conflict=True):
            row = self._db.query_row(sql, box_id, code, status, storage_cell_id)
        if row is None:
            raise NotFoundError()
        return Box(*row)

    def move_to_storage_cell(self, box_id: int, storage_cell_id: int) -> None:
        sql = "UPDATE boxes SET storage_cell_id = $2 WHERE id = $1"
        self._expect_rows("move box to storage cell", 1, sql, box_id, storage_cell_id)

    def mark_shipped(self, box_ids: Sequence[int]) -> None:
        """Mark every listed box shipped; raise NotFoundError unless all were updated."""
        if not box_ids:
            return
        sql = "UPDATE boxes SET status = 'shipped', storage_cell_id = NULL WHERE id = ANY($1)"
        self._expect_rows("mark boxes shipped", len(box_ids), sql, list(box_ids))

    def has_any_in_storage_cell(self, storage_cell_id: int) -> bool:
        sql = "SELECT EXISTS (SELECT 1 FROM boxes WHERE storage_cell_id = $1)"
        return bool(self._single("check storage cell box occupancy", sql, storage_cell_id)[0])

    def get_content_stats(self, box_id: int) -> ObjectContentStats:
        """Count the batches and products in a box; name the product if only one."""
        batches, products, total, sku, name, unit = self._single(
            "get box content stats", _STATS_SQL, box_id
        )
        return ObjectContentStats(
            batches_count=batches,
            products_count=products,
            total_quantity=total,
            product_sku=sku,
            product_name=name,
            product_unit=unit,
        )

    def delete_by_id(self, box_id: int) -> None:
        self._expect_rows("delete box", 1, "DELETE FROM boxes WHERE id = $1", box_id)

    def _find(self, action: str, tail: str, *args: Any) -> Box:
        with _errors(action):
            row = self._db.query_row(f"SELECT {_COLUMNS} FROM boxes {tail}", *args)
        if row is None:
            raise NotFoundError()
        return Box(*row)

    def _select_all(self, action: str, tail: str, *args: Any) -> list[Box]:
        with _errors(action):
            return [Box(*row) for row in self._db.query(f"SELECT {_COLUMNS} FROM boxes {tail}", *args)]

    def _single(self, action: str, sql: str, *args: Any):
        with _errors(action):
            row = self._db.query_row(sql, *args)
            if row is None:
                raise RuntimeError("no row returned")
        return row

    def _expect_rows(self, action: str, expected: int, sql: str, *args: Any) -> None:
        """Run a change; for a single row any hit counts, otherwise all must match."""
        with _errors(action):
            affected = self._db.exec(sql, *args)
        if (expected == 1 and affected == 0) or (expected != 1 and affected != expected):
            raise NotFoundError()