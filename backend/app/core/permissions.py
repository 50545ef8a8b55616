from __future__ import annotations

from collections.abc import Iterable, Mapping
from functools import lru_cache

from app.core.config import get_settings
from app.models.user import UserRole


class RolePermissions:
    """Immutable role -> permission table, built once per process."""

    def __init__(self, table: Mapping[str, Iterable[str]]) -> None:
        self._table: dict[str, frozenset[str]] = {
            str(role): frozenset(str(item).strip() for item in permissions if str(item).strip())
            for role, permissions in table.items()
        }

    def allows(self, role: UserRole | str, permission: str) -> bool:
        key = role.value if isinstance(role, UserRole) else str(role)
        return permission in self._table.get(key, frozenset())

    def permissions_for(self, role: UserRole | str) -> frozenset[str]:
        key = role.value if isinstance(role, UserRole) else str(role)
        return self._table.get(key, frozenset())


@lru_cache
def get_role_permissions() -> RolePermissions:
    return RolePermissions(get_settings().role_permissions)
