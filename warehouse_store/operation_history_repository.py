"""Audit trail of operations performed on warehouse objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from .db import Querier, _errors
from .records import UserSummary, actor_params, merge_actor, snapshot_actor


@dataclass
class OperationHistory:
    """One recorded operation, with the user who performed it when known."""

    id: int
    object_type: str
    object_id: int
    operation_type: str
    created_at: datetime
    user_id: int | None = None
    actor: UserSummary | None = None
    details: bytes | None = None


@dataclass
class OperationHistoryFilter:
    """Which operations to list; the object filter applies only when ``object_id`` is set."""

    limit: int
    user_id: int | None = None
    object_type: str = ""
    object_id: int | None = None


def _raw(details: Any) -> bytes | None:
    return None if details is None else bytes(details)


class OperationHistoryRepository:
    """Reads and writes the ``operation_history`` table."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def create(
        self,
        object_type: str,
        object_id: int,
        operation_type: str,
        user_id: int | None,
        actor: UserSummary | None,
        details: bytes | None,
    ) -> OperationHistory:
        """Record an operation together with a snapshot of the acting user."""
        sql = """
INSERT INTO operation_history (
    object_type,
    object_id,
    operation_type,
    user_id,
    actor_user_id,
    actor_login,
    actor_full_name,
    actor_role,
    actor_is_super_admin,
    details
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
RETURNING id, object_type::text, object_id, operation_type, user_id, actor_user_id, actor_login, actor_full_name, actor_role, actor_is_super_admin, details, created_at
"""
        with _errors("create operation history"):
            row = self._db.query_row(
                sql,
                object_type,
                object_id,
                operation_type,
                user_id,
                *actor_params(actor),
                details,
            )
            if row is None:
                raise RuntimeError("no row returned")
        (
            op_id,
            op_object_type,
            op_object_id,
            op_type,
            db_user_id,
            actor_id,
            login,
            full_name,
            role,
            is_super_admin,
            db_details,
            created_at,
        ) = row
        return OperationHistory(
            id=op_id,
            object_type=op_object_type,
            object_id=op_object_id,
            operation_type=op_type,
            created_at=created_at,
            user_id=db_user_id,
            actor=snapshot_actor(actor_id, login, full_name, role, is_super_admin),
            details=_raw(db_details),
        )

    def list(self, filter: OperationHistoryFilter) -> list[OperationHistory]:
        """Operations matching ``filter``, newest first."""
        sql = """
SELECT
    oh.id,
    oh.object_type::text,
    oh.object_id,
    oh.operation_type,
    oh.user_id,
    oh.actor_user_id,
    oh.actor_login,
    oh.actor_full_name,
    oh.actor_role,
    oh.actor_is_super_admin,
    oh.details,
    oh.created_at,
    u.id,
    u.login,
    u.full_name,
    u.role,
    COALESCE(u.is_super_admin, FALSE)
FROM operation_history oh
LEFT JOIN users u ON u.id = oh.user_id
"""
        args: list[Any] = []
        conditions: list[str] = []

        if filter.user_id is not None:
            args.append(filter.user_id)
            conditions.append(f"oh.user_id = ${len(args)}")

        if filter.object_id is not None:
            args.append(filter.object_type)
            conditions.append(f"oh.object_type = ${len(args)}")
            args.append(filter.object_id)
            conditions.append(f"oh.object_id = ${len(args)}")

        if conditions:
            sql += "WHERE " + " AND ".join(conditions) + "\n"

        args.append(filter.limit)
        sql += f"ORDER BY oh.created_at DESC, oh.id DESC\nLIMIT ${len(args)}\n"

        with _errors("list operation history"):
            return [self._from_row(row) for row in self._db.query(sql, *args)]

    @staticmethod
    def _from_row(row: Sequence[Any]) -> OperationHistory:
        (
            op_id,
            object_type,
            object_id,
            operation_type,
            user_id,
            snap_id,
            snap_login,
            snap_full_name,
            snap_role,
            snap_is_super_admin,
            details,
            created_at,
            live_id,
            live_login,
            live_full_name,
            live_role,
            live_is_super_admin,
        ) = row
        return OperationHistory(
            id=op_id,
            object_type=object_type,
            object_id=object_id,
            operation_type=operation_type,
            created_at=created_at,
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
            details=_raw(details),
        )