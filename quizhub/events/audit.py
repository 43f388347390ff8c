from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.models.domain import AuditLog


async def record_audit(
    db: AsyncSession,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str,
    payload: dict | None = None,
) -> AuditLog:
    row = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        payload_json=payload or {},
    )
    db.add(row)
    await db.flush()
    return row
