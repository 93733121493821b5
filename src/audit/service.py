import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditEvent, AuditEventType
from src.shared.availability import degrade_when_unavailable

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, db: Optional[AsyncSession]):
        self.db = db

    def record(
        self,
        entity_type: str,
        entity_id: UUID,
        event_type: AuditEventType,
        actor_id: Optional[UUID] = None,
        previous_status: Optional[str] = None,
        new_status: Optional[str] = None,
        notes: Optional[str] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Stage an audit row in the caller's transaction. The caller commits."""
        event = AuditEvent(
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            actor_id=actor_id,
            previous_status=previous_status,
            new_status=new_status,
            notes=notes,
            detail=detail,
        )
        self.db.add(event)
        return event

    @degrade_when_unavailable(list)
    async def list_events(self, entity_type: str, entity_id: UUID) -> List[AuditEvent]:
        result = await self.db.execute(
            select(AuditEvent)
            .where(AuditEvent.entity_type == entity_type, AuditEvent.entity_id == entity_id)
            .order_by(desc(AuditEvent.created_at))
        )
        return list(result.scalars().all())
