"""Records shared between several repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class UserSummary:
    """A short description of the user who performed an action."""

    id: int = 0
    login: str = ""
    full_name: str = ""
    role: str = ""
    is_super_admin: bool = False


@dataclass
class ObjectContentStats:
    """What a rack, storage cell or box holds."""

    cells_count: int = 0
    boxes_count: int = 0
    batches_count: int = 0
    products_count: int = 0
    total_quantity: int = 0
    product_sku: str | None = None
    product_name: str | None = None
    product_unit: str | None = None


def actor_params(actor: UserSummary | None) -> tuple[Any, Any, Any, Any, bool]:
    """Query parameters that store an actor snapshot."""
    if actor is None:
        return None, None, None, None, False
    return actor.id, actor.login, actor.full_name, actor.role, actor.is_super_admin


def snapshot_actor(
    actor_id: int | None,
    login: str | None,
    full_name: str | None,
    role: str | None,
    is_super_admin: bool | None,
) -> UserSummary | None:
    """Build an actor from stored snapshot columns, or None if none were stored."""
    if actor_id is None and login is None and full_name is None and role is None:
        return None
    return UserSummary(
        id=actor_id if actor_id is not None else 0,
        login=login or "",
        full_name=full_name or "",
        role=role or "",
        is_super_admin=bool(is_super_admin),
    )


def _pick(current: Any, snapshot: Any, default: Any) -> Any:
    if current is not None:
        return current
    return snapshot if snapshot is not None else default


def merge_actor(
    snapshot_id: int | None,
    snapshot_login: str | None,
    snapshot_full_name: str | None,
    snapshot_role: str | None,
    snapshot_is_super_admin: bool | None,
    user_id: int | None,
    user_login: str | None,
    user_full_name: str | None,
    user_role: str | None,
    user_is_super_admin: bool | None,
) -> UserSummary | None:
    """Combine the live user row with the stored snapshot; live values win."""
    values = (
        snapshot_id,
        snapshot_login,
        snapshot_full_name,
        snapshot_role,
        user_id,
        user_login,
        user_full_name,
        user_role,
    )
    if all(value is None for value in values):
        return None
    return UserSummary(
        id=_pick(user_id, snapshot_id, 0),
        login=_pick(user_login, snapshot_login, ""),
        full_name=_pick(user_full_name, snapshot_full_name, ""),
        role=_pick(user_role, snapshot_role, ""),
        is_super_admin=bool(user_is_super_admin if user_id is not None else snapshot_is_super_admin),
    )