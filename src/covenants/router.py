from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.exceptions import ABFIError
from src.shared.errors import to_http_exception
from src.shared.models import to_naive_utc
from src.covenants.evaluator import check_covenant_compliance
from src.covenants.schemas import (
    ActiveAlert,
    ComplianceCheckRequest,
    ComplianceCheckResponse,
    CovenantBreachResponse,
    RecordBreachRequest,
    ResolveBreachRequest,
)
from src.covenants.service import CovenantService

router = APIRouter(tags=["covenants"])


@router.post("/projects/{project_id}/covenants/check", response_model=ComplianceCheckResponse)
async def check_compliance_endpoint(
    project_id: UUID,
    request: ComplianceCheckRequest,
    db: AsyncSession = Depends(get_db),
):
    if not request.record:
        results = check_covenant_compliance(project_id, request.covenants, request.current_metrics)
        return ComplianceCheckResponse(results=results)

    service = CovenantService(db)
    try:
        results, breach_ids = await service.run_compliance_check(
            project_id, request.covenants, request.current_metrics
        )
    except ABFIError as e:
        raise to_http_exception(e)
    return ComplianceCheckResponse(results=results, recorded_breach_ids=breach_ids)


@router.post("/projects/{project_id}/covenants/breaches", status_code=201)
async def record_breach_endpoint(
    project_id: UUID,
    request: RecordBreachRequest,
    db: AsyncSession = Depends(get_db),
):
    service = CovenantService(db)
    try:
        breach_id = await service.record_covenant_breach(project_id, **request.model_dump())
    except ABFIError as e:
        raise to_http_exception(e)
    return {"id": breach_id}


@router.get("/projects/{project_id}/covenants/breaches", response_model=List[CovenantBreachResponse])
async def list_breaches(
    project_id: UUID,
    unresolved: bool = False,
    since: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
):
    return await CovenantService(db).get_covenant_breach_history(
        project_id, unresolved=unresolved, since=to_naive_utc(since) if since else None
    )


@router.post("/covenants/breaches/{breach_id}/resolve", response_model=CovenantBreachResponse)
async def resolve_breach_endpoint(
    breach_id: UUID,
    request: ResolveBreachRequest,
    db: AsyncSession = Depends(get_db),
):
    service = CovenantService(db)
    try:
        return await service.resolve_covenant_breach(
            breach_id, request.resolution_notes, request.resolved_by
        )
    except ABFIError as e:
        raise to_http_exception(e)


@router.get("/projects/{project_id}/alerts", response_model=List[ActiveAlert])
async def list_active_alerts(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await CovenantService(db).get_active_alerts(project_id)
