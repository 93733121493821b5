from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.exceptions import ABFIError
from src.shared.errors import to_http_exception
from src.lender.schemas import (
    FinalizeReportRequest,
    GenerateReportRequest,
    LenderDashboard,
    LenderReportResponse,
)
from src.lender.notifications import (
    CovenantBreachNotification,
    NotificationResult,
    notify_lenders_of_covenant_breach,
)
from src.lender.service import LenderReportService
from src.covenants.models import CovenantBreachEvent
from src.covenants.service import CovenantService
from src.projects.models import Project

router = APIRouter(tags=["lender"])


@router.post("/projects/{project_id}/lender-reports", status_code=201)
async def generate_report_endpoint(
    project_id: UUID,
    request: GenerateReportRequest,
    db: AsyncSession = Depends(get_db),
):
    service = LenderReportService(db)
    try:
        report_id = await service.generate_monthly_report(
            project_id,
            request.report_month,
            generated_by=request.generated_by,
            executive_summary=request.executive_summary,
            score_changes_narrative=request.score_changes_narrative,
            supply_position=request.supply_position,
        )
    except ABFIError as e:
        raise to_http_exception(e)
    return {"id": report_id}


@router.get("/projects/{project_id}/lender-reports", response_model=List[LenderReportResponse])
async def list_project_reports(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await LenderReportService(db).get_project_reports(project_id)


@router.get("/projects/{project_id}/lender-reports/latest", response_model=LenderReportResponse)
async def get_latest_report(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    report = await LenderReportService(db).get_latest_report(project_id)
    if not report:
        raise HTTPException(status_code=404, detail="No lender report found")
    return report


@router.get("/projects/{project_id}/lender-dashboard", response_model=LenderDashboard)
async def get_lender_dashboard(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    dashboard = await LenderReportService(db).get_lender_dashboard_data(project_id)
    if dashboard is None:
        raise HTTPException(status_code=503, detail="Dashboard data unavailable")
    return dashboard


@router.get("/lender-reports/{report_id}", response_model=LenderReportResponse)
async def get_report(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    report = await LenderReportService(db).get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Lender report not found")
    return report


@router.post("/lender-reports/{report_id}/finalize", response_model=LenderReportResponse)
async def finalize_report_endpoint(
    report_id: UUID,
    request: FinalizeReportRequest,
    db: AsyncSession = Depends(get_db),
):
    service = LenderReportService(db)
    try:
        return await service.finalize_report(
            report_id, request.report_pdf_url, request.evidence_pack_url
        )
    except ABFIError as e:
        raise to_http_exception(e)


@router.post("/lender-reports/{report_id}/send", response_model=LenderReportResponse)
async def mark_report_sent_endpoint(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = LenderReportService(db)
    try:
        return await service.mark_report_sent(report_id)
    except ABFIError as e:
        raise to_http_exception(e)


@router.post("/covenants/breaches/{breach_id}/notify-lenders", response_model=NotificationResult)
async def notify_lenders_endpoint(
    breach_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    if db is None:
        raise HTTPException(status_code=503, detail="Database not available")
    breach = await db.get(CovenantBreachEvent, breach_id)
    if not breach:
        raise HTTPException(status_code=404, detail="Covenant breach not found")
    if breach.lender_notified:
        return NotificationResult(success=True, notified_count=0)
    project = await db.get(Project, breach.project_id)

    result = await notify_lenders_of_covenant_breach(
        db,
        CovenantBreachNotification(
            project_id=breach.project_id,
            project_name=project.name if project else str(breach.project_id),
            breach_type=breach.covenant_type,
            severity=breach.severity,
            current_value=breach.actual_value,
            threshold_value=breach.threshold_value,
            impact_narrative=breach.impact_assessment or breach.narrative_explanation or "",
            detected_at=breach.detected_date,
        ),
    )
    if result.success:
        try:
            await CovenantService(db).mark_lender_notified(breach_id)
        except ABFIError as e:
            raise to_http_exception(e)
    return result
