"""Users who sign in to the warehouse service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .db import NotFoundError, Querier, _errors

_COLUMNS = "id, login, email, full_name, role, is_super_admin, password_hash"


@dataclass
class User:
    id: int
    login: str
    email: str
    full_name: str
    role: str
    is_super_admin: bool
    password_hash: str


class UserRepository:
    """Reads and writes the ``users`` table."""

    def __init__(self, db: Querier) -> None:
        self._db = db

    def get_by_login(self, login: str) -> User:
        sql = f"""
SELECT {_COLUMNS}
FROM users
WHERE login = $1
"""
        with _errors("get user by login"):
            row = self._db.query_row(sql, login)
        if row is None:
            raise NotFoundError()
        return User(*row)

    def get_by_id(self, user_id: int) -> User:
        sql = f"""
SELECT {_COLUMNS}
FROM users
WHERE id = $1
"""
        with _errors("get user by id"):
            row = self._db.query_row(sql, user_id)
        if row is None:
            raise NotFoundError()
        return User(*row)

    def list_by_role(self, role: str, limit: int) -> list[User]:
        return self.list_by_roles([role], limit)

    def list_by_roles(self, roles: Sequence[str], limit: int) -> list[User]:
        """Users holding any of ``roles``, super admins first."""
        sql = f"""
SELECT {_COLUMNS}
FROM users
WHERE role = ANY($1)
ORDER BY is_super_admin DESC, role, full_name, id
LIMIT $2
"""
        with _errors("list users by roles"):
            return [User(*row) for row in self._db.query(sql, list(roles), limit)]

    def create(
        self, login: str, email: str, full_name: str, role: str, password_hash: str
    ) -> User:
        sql = f"""
INSERT INTO users (login, email, full_name, role, password_hash)
VALUES ($1, $2, $3, $4, $5)
RETURNING {_COLUMNS}
"""
        with _errors("create user", conflict=True):
            row = self._db.query_row(sql, login, email, full_name, role, password_hash)
            if row is None:
                raise RuntimeError("no row returned")
        return User(*row)

    def delete_by_id(self, user_id: int) -> None:
        sql = """
DELETE FROM users
WHERE id = $1
"""
        with _errors("delete user by id"):
            affected = self._db.exec(sql, user_id)
        if affected == 0:
            raise NotFoundError()