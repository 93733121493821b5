from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.audit.models import AuditEventType


class AuditEventResponse(BaseModel):
    id: UUID
    entity_type: str
    entity_id: UUID
    event_type: AuditEventType
    actor_id: Optional[UUID] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    notes: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
