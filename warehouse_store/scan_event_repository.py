"""Log of marker scans made by users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from .db import Querier, _errors
from .records import UserSummary, actor_params, merge_actor, snapshot_actor


@dataclass
class ScanEvent:
    """One scan of a marker code, with the user who made it when known."""

    id: int
    marker_code: str
    success: bool
    scanned_at: datetime
    user_id: int | None = None
    actor: UserSummary | None = None
    device_info: str | None = None


@dataclass
class ScanEventFilter:
    """Which scan events to list; an empty ``marker_code`` matches every code."""

    limit: int
    user_id: int | None = None
    marker_code: str = ""


class ScanEventRepository:
    """Reads and writes the ``scan_events`` table."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def create(
        self,
        marker_code: str,
        user_id: int | None,
        actor: UserSummary | None,
        device_info: str | None,
        success: bool,
    ) -> ScanEvent:
        """Record a scan together with a snapshot of the scanning user."""
        sql = """
INSERT INTO scan_events (
    marker_code,
    user_id,
    actor_user_id,
    actor_login,
    actor_full_name,
    actor_role,
    actor_is_super_admin,
    device_info,
    success
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
RETURNING id, marker_code, user_id, actor_user_id, actor_login, actor_full_name, actor_role, actor_is_super_admin, device_info, success, scanned_at
"""
        with _errors("create scan event"):
            row = self._db.query_row(
                sql, marker_code, user_id, *actor_params(actor), device_info, success
            )
            if row is None:
                raise RuntimeError("no row returned")
        (
            event_id,
            code,
            db_user_id,
            actor_id,
            login,
            full_name,
            role,
            is_super_admin,
            db_device_info,
            db_success,
            scanned_at,
        ) = row
        return ScanEvent(
            id=event_id,
            marker_code=code,
            success=db_success,
            scanned_at=scanned_at,
            user_id=db_user_id,
            actor=snapshot_actor(actor_id, login, full_name, role, is_super_admin),
            device_info=db_device_info,
        )

    def list(self, filter: ScanEventFilter) -> list[ScanEvent]:
        """Scan events matching ``filter``, newest first."""
        sql = """
SELECT
    se.id,
    se.marker_code,
    se.user_id,
    se.actor_user_id,
    se.actor_login,
    se.actor_full_name,
    se.actor_role,
    se.actor_is_super_admin,
    se.device_info,
    se.success,
    se.scanned_at,
    u.id,
    u.login,
    u.full_name,
    u.role,
    COALESCE(u.is_super_admin, FALSE)
FROM scan_events se
LEFT JOIN users u ON u.id = se.user_id
"""
        args: list[Any] = []
        conditions: list[str] = []

        if filter.user_id is not None:
            args.append(filter.user_id)
            conditions.append(f"se.user_id = ${len(args)}")

        if filter.marker_code:
            args.append(filter.marker_code)
            conditions.append(f"se.marker_code = ${len(args)}")

        if conditions:
            sql += "WHERE " + " AND ".join(conditions) + "\n"

        args.append(filter.limit)
        sql += f"ORDER BY se.scanned_at DESC, se.id DESC\nLIMIT ${len(args)}\n"

        with _errors("list scan events"):
            return [self._from_row(row) for row in self._db.query(sql, *args)]

    @staticmethod
    def _from_row(row: Sequence[Any]) -> ScanEvent:
        (
            event_id,
            marker_code,
            user_id,
            snap_id,
            snap_login,
            snap_full_name,
            snap_role,
            snap_is_super_admin,
            device_info,
            success,
            scanned_at,
            live_id,
            live_login,
            live_full_name,
            live_role,
            live_is_super_admin,
        ) = row
        return ScanEvent(
            id=event_id,
            marker_code=marker_code,
            success=success,
            scanned_at=scanned_at,
            user_id=user_id,
            actor=merge_actor(
                snap_id,
                snap_login,
                snap_full_name,
                snap_role,
                snap_is_super_admin,
                live_id,
                live_login,
                live_full_name,
                live_role,
                live_is_super_admin,
            ),
            device_info=device_info,
        )