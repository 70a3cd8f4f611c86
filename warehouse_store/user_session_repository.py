"""Login sessions identified by opaque tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .db import NotFoundError, Querier, _errors

_TABLE = "user_sessions"
_FIELDS = ("id", "token", "user_id", "created_at", "expires_at", "last_seen_at")
_RETURNING = ", ".join(_FIELDS)


@dataclass
class UserSession:
    id: int
    token: str
    user_id: int
    created_at: datetime
    expires_at: datetime
    last_seen_at: datetime | None


class UserSessionRepository:
    """Reads and writes login sessions."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def create(self, token: str, user_id: int, expires_at: datetime) -> UserSession:
        sql = (
            f"INSERT INTO {_TABLE} (token, user_id, expires_at)"
            f" VALUES ($1, $2, $3) RETURNING {_RETURNING}"
        )
        with _errors("create user session"):
            row = self._db.query_row(sql, token, user_id, expires_at)
            if row is None:
                raise RuntimeError("no row returned")
        return UserSession(*row)

    def get_by_token(self, token: str) -> UserSession:
        sql = f"SELECT {_RETURNING} FROM {_TABLE} WHERE token = $1"
        with _errors("get user session by token"):
            row = self._db.query_row(sql, token)
        if row is None:
            raise NotFoundError()
        return UserSession(*row)

    def touch(self, token: str, last_seen_at: datetime) -> None:
        """Record when the session was last used."""
        self._change_one(
            "touch user session",
            f"UPDATE {_TABLE} SET last_seen_at = $2 WHERE token = $1",
            token,
            last_seen_at,
        )

    def delete_by_token(self, token: str) -> None:
        self._change_one("delete user session", f"DELETE FROM {_TABLE} WHERE token = $1", token)

    def _change_one(self, action: str, sql: str, *args: object) -> None:
        with _errors(action):
            affected = self._db.exec(sql, *args)
        if not affected:
            raise NotFoundError()