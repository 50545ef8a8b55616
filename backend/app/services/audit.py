from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.tenant import TenantContext
from app.models.activity_log import ActivityLog


def log_activity(
    db: Session,
    *,
    ctx: TenantContext,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    record = ActivityLog(
        tenant_id=ctx.tenant_id,
        user_id=ctx.user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
