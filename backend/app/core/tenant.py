from __future__ import annotations

from dataclasses import dataclass

from app.models.user import UserRole


@dataclass(frozen=True)
class TenantContext:
    """The authenticated principal every scheduling call runs on behalf of.

    ``tenant_id`` always comes from the principal's own user record, never from
    request input.
    """

    tenant_id: str
    user_id: str
    role: UserRole
