"""Markers: printable codes attached to warehouse objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .db import NotFoundError, Querier, _errors

_COLUMNS = """
SELECT id, marker_code, object_type::text, object_id
FROM markers
"""


@dataclass
class Marker:
    id: int
    marker_code: str
    object_type: str
    object_id: int


class MarkerRepository:
    """Reads and writes the ``markers`` table."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def get_by_code(self, marker_code: str) -> Marker:
        with _errors("get marker by code"):
            row = self._db.query_row(_COLUMNS + "WHERE marker_code = $1\n", marker_code)
        if row is None:
            raise NotFoundError()
        return Marker(*row)

    def list(self, object_type: str, limit: int) -> list[Marker]:
        sql = _COLUMNS
        args: list[object] = []
        if object_type:
            sql += "WHERE object_type = $1\n"
            args.append(object_type)
        args.append(limit)
        sql += f"ORDER BY id LIMIT ${len(args)}"
        with _errors("list markers"):
            return [Marker(*row) for row in self._db.query(sql, *args)]

    def list_by_codes(self, object_type: str, marker_codes: Sequence[str]) -> list[Marker]:
        sql = _COLUMNS + "WHERE marker_code = ANY($1)\n"
        args: list[object] = [list(marker_codes)]
        if object_type:
            sql += "AND object_type = $2\n"
            args.append(object_type)
        sql += "ORDER BY array_position($1::text[], marker_code), id"
        with _errors("list markers by codes"):
            return [Marker(*row) for row in self._db.query(sql, *args)]

    def create(self, marker_code: str, object_type: str, object_id: int) -> Marker:
        sql = """
INSERT INTO markers (marker_code, object_type, object_id)
VALUES ($1, $2::object_type, $3)
RETURNING id, marker_code, object_type::text, object_id
"""
        with _errors("create marker"):
            row = self._db.query_row(sql, marker_code.strip(), object_type.strip(), object_id)
            if row is None:
                raise RuntimeError("no row returned")
        return Marker(*row)

    def delete_by_object(self, object_type: str, object_id: int) -> None:
        sql = """
DELETE FROM markers
WHERE object_type = $1::object_type
  AND object_id = $2
"""
        with _errors("delete marker by object"):
            self._db.exec(sql, object_type.strip(), object_id)

    def delete_by_object_ids(self, object_type: str, object_ids: Sequence[int]) -> None:
        if not object_ids:
            return
        sql = """
DELETE FROM markers
WHERE object_type = $1::object_type
  AND object_id = ANY($2)
"""
        with _errors("delete markers by object ids"):
            self._db.exec(sql, object_type.strip(), list(object_ids))