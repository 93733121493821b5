from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.audit.schemas import AuditEventResponse
from src.audit.service import AuditService

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/{entity_type}/{entity_id}", response_model=List[AuditEventResponse])
async def list_audit_events(
    entity_type: str,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await AuditService(db).list_events(entity_type, entity_id)
