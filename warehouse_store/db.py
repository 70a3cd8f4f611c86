"""Database access primitives shared by the repositories."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Protocol, Sequence

UNIQUE_VIOLATION = "23505"

MAX_CONNS = 10
MIN_CONNS = 1
MAX_CONN_IDLE_TIME = 5 * 60.0
PING_ATTEMPTS = 10
PING_TIMEOUT = 5.0
PING_RETRY_DELAY = 3.0


class Querier(Protocol):
    """Anything that can run SQL with positional ``$n`` parameters."""

    def exec(self, sql: str, *args: Any) -> int:
        """Run a statement and return the number of rows it affected."""
        ...

    def query(self, sql: str, *args: Any) -> Iterable[Sequence[Any]]:
        """Run a query and return its rows."""
        ...

    def query_row(self, sql: str, *args: Any) -> Sequence[Any] | None:
        """Run a query and return its first row, or None when it has none."""
        ...


class Pool(Querier, Protocol):
    """A connection pool that can be pinged and closed."""

    def ping(self, timeout: float) -> None:
        ...

    def close(self) -> None:
        ...


class RepositoryError(Exception):
    """A repository operation failed."""


class NotFoundError(RepositoryError):
    """The requested record does not exist."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


class ConflictError(RepositoryError):
    """The change would violate a uniqueness constraint."""

    def __init__(self, message: str = "conflict") -> None:
        super().__init__(message)


def _chain(exc: BaseException | None) -> Iterator[BaseException]:
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        exc = exc.__cause__ or exc.__context__


def is_unique_violation(exc: BaseException | None) -> bool:
    """Tell whether an exception, or one it was raised from, is a unique violation."""
    return any(
        getattr(err, attr, None) == UNIQUE_VIOLATION
        for err in _chain(exc)
        for attr in ("pgcode", "sqlstate")
    )


@contextmanager
def _errors(context: str, *, conflict: bool = False) -> Iterator[None]:
    """Turn driver errors into repository errors carrying ``context``."""
    try:
        yield
    except RepositoryError:
        raise
    except Exception as exc:
        if conflict and is_unique_violation(exc):
            raise ConflictError() from exc
        raise RepositoryError(f"{context}: {exc}") from exc


def open_pool(
    database_url: str,
    factory: Callable[..., Pool],
    sleep: Callable[[float], None] = time.sleep,
) -> Pool:
    """Create a pool through ``factory`` and wait until the database answers."""
    try:
        pool = factory(
            database_url,
            max_conns=MAX_CONNS,
            min_conns=MIN_CONNS,
            max_conn_idle_time=MAX_CONN_IDLE_TIME,
        )
    except ValueError as exc:
        raise RepositoryError(f"parse pg config: {exc}") from exc
    except Exception as exc:
        raise RepositoryError(f"create pg pool: {exc}") from exc

    last_error: Exception | None = None
    for _ in range(PING_ATTEMPTS):
        try:
            pool.ping(timeout=PING_TIMEOUT)
        except Exception as exc:
            last_error = exc
        else:
            return pool
        try:
            sleep(PING_RETRY_DELAY)
        except BaseException:
            pool.close()
            raise

    pool.close()
    raise RepositoryError(f"ping pg after retries: {last_error}") from last_error