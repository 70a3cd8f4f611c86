"""Batches: quantities of one product kept in a box or a storage cell."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from .db import NotFoundError, Querier, _errors

_COLUMNS = "id, code, product_id, quantity, status, box_id, storage_cell_id"


@dataclass
class Batch:
    id: int
    code: str
    product_id: int
    quantity: int
    status: str
    box_id: int | None
    storage_cell_id: int | None


class BatchRepository:
    """Reads and writes the ``batches`` table."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def _exists(self, context: str, sql: str, *args: Any) -> bool:
        with _errors(context):
            row = self._db.query_row(sql, *args)
            if row is None:
                raise RuntimeError("no row returned")
            return bool(row[0])

    def get_by_id(self, batch_id: int) -> Batch:
        sql = f"""
SELECT {_COLUMNS}
FROM batches
WHERE id = $1
"""
        with _errors("get batch by id"):
            row = self._db.query_row(sql, batch_id)
        if row is None:
            raise NotFoundError()
        return Batch(*row)

    def list(self, limit: int) -> list[Batch]:
        sql = f"""
SELECT {_COLUMNS}
FROM batches
ORDER BY id
LIMIT $1
"""
        with _errors("list batches"):
            return [Batch(*row) for row in self._db.query(sql, limit)]

    def list_by_ids(self, ids: Sequence[int]) -> list[Batch]:
        if not ids:
            return []
        sql = f"""
SELECT {_COLUMNS}
FROM batches
WHERE id = ANY($1)
"""
        with _errors("list batches by ids"):
            return [Batch(*row) for row in self._db.query(sql, list(ids))]

    def list_by_box_ids_and_product_id(self, box_ids: Sequence[int], product_id: int) -> list[Batch]:
        """Active, non-empty batches of one product in the given boxes."""
        if not box_ids:
            return []
        sql = f"""
SELECT {_COLUMNS}
FROM batches
WHERE box_id = ANY($1)
  AND product_id = $2
  AND quantity > 0
  AND status = 'active'
ORDER BY box_id, id
"""
        with _errors("list batches by box ids and product id"):
            return [Batch(*row) for row in self._db.query(sql, list(box_ids), product_id)]

    def has_other_product_in_box(
        self, box_id: int, product_id: int, exclude_batch_id: int | None
    ) -> bool:
        sql = """
SELECT EXISTS (
    SELECT 1
    FROM batches
    WHERE box_id = $1
      AND product_id <> $2
      AND ($3::BIGINT IS NULL OR id <> $3)
)
"""
        return self._exists(
            "check box product compatibility", sql, box_id, product_id, exclude_batch_id
        )

    def list_product_ids_in_box(self, box_id: int) -> list[int]:
        sql = """
SELECT DISTINCT product_id
FROM batches
WHERE box_id = $1
ORDER BY product_id
"""
        with _errors("list box product ids"):
            return [row[0] for row in self._db.query(sql, box_id)]

    def has_other_product_in_storage_cell(
        self,
        storage_cell_id: int,
        product_id: int,
        exclude_batch_id: int | None,
        exclude_box_id: int | None,
    ) -> bool:
        """Tell whether the cell, directly or through its boxes, holds another product."""
        sql = """
SELECT EXISTS (
    SELECT 1
    FROM batches b
    WHERE b.storage_cell_id = $1
      AND b.product_id <> $2
      AND ($3::BIGINT IS NULL OR b.id <> $3)
    UNION ALL
    SELECT 1
    FROM batches b
    JOIN boxes bx ON bx.id = b.box_id
    WHERE bx.storage_cell_id = $1
      AND b.product_id <> $2
      AND ($3::BIGINT IS NULL OR b.id <> $3)
      AND ($4::BIGINT IS NULL OR bx.id <> $4)
)
"""
        return self._exists(
            "check storage cell product compatibility",
            sql,
            storage_cell_id,
            product_id,
            exclude_batch_id,
            exclude_box_id,
        )

    def has_any_in_box(self, box_id: int) -> bool:
        sql = """
SELECT EXISTS (
    SELECT 1
    FROM batches
    WHERE box_id = $1
)
"""
        return self._exists("check box occupancy", sql, box_id)

    def has_any_in_storage_cell(self, storage_cell_id: int) -> bool:
        sql = """
SELECT EXISTS (
    SELECT 1
    FROM batches
    WHERE storage_cell_id = $1
)
"""
        return self._exists("check storage cell occupancy", sql, storage_cell_id)

    def has_any_for_product(self, product_id: int) -> bool:
        sql = """
SELECT EXISTS (
    SELECT 1
    FROM batches
    WHERE product_id = $1
)
"""
        return self._exists("check product batch existence", sql, product_id)

    def move_to_box(self, batch_id: int, box_id: int) -> None:
        sql = """
UPDATE batches
SET box_id = $2,
    storage_cell_id = NULL
WHERE id = $1
"""
        with _errors("move batch to box"):
            affected = self._db.exec(sql, batch_id, box_id)
        if affected == 0:
            raise NotFoundError()

    def move_to_storage_cell(self, batch_id: int, storage_cell_id: int) -> None:
        sql = """
UPDATE batches
SET box_id = NULL,
    storage_cell_id = $2
WHERE id = $1
"""
        with _errors("move batch to storage cell"):
            affected = self._db.exec(sql, batch_id, storage_cell_id)
        if affected == 0:
            raise NotFoundError()

    def create(
        self,
        code: str,
        product_id: int,
        quantity: int,
        status: str,
        box_id: int | None,
        storage_cell_id: int | None,
    ) -> Batch:
        sql = f"""
INSERT INTO batches (code, product_id, quantity, status, box_id, storage_cell_id)
VALUES ($1, $2, $3, $4, $5, $6)
RETURNING {_COLUMNS}
"""
        with _errors("create batch", conflict=True):
            row = self._db.query_row(
                sql, code, product_id, quantity, status, box_id, storage_cell_id
            )
            if row is None:
                raise RuntimeError("no row returned")
        return Batch(*row)

    def update(
        self,
        batch_id: int,
        code: str,
        product_id: int,
        quantity: int,
        status: str,
        box_id: int | None,
        storage_cell_id: int | None,
    ) -> Batch:
        sql = f"""
UPDATE batches
SET code = $2,
    product_id = $3,
    quantity = $4,
    status = $5,
    box_id = $6,
    storage_cell_id = $7
WHERE id = $1
RETURNING {_COLUMNS}
"""
        with _errors("update batch", conflict=True):
            row = self._db.query_row(
                sql, batch_id, code, product_id, quantity, status, box_id, storage_cell_id
            )
        if row is None:
            raise NotFoundError()
        return Batch(*row)

    def delete_by_id(self, batch_id: int) -> None:
        sql = """
DELETE FROM batches
WHERE id = $1
"""
        with _errors("delete batch"):
            affected = self._db.exec(sql, batch_id)
        if affected == 0:
            raise NotFoundError()

    def delete_by_ids(self, ids: Sequence[int]) -> None:
        """Delete every listed batch; raise NotFoundError unless all were removed."""
        if not ids:
            return
        sql = """
DELETE FROM batches
WHERE id = ANY($1)
"""
        with _errors("delete batches"):
            affected = self._db.exec(sql, list(ids))
        if affected != len(ids):
            raise NotFoundError()