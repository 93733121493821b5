from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.exceptions import ABFIError
from src.shared.errors import to_http_exception
from src.audit.schemas import AuditEventResponse
from src.ci_reports.models import CIReportStatus
from src.ci_reports.schemas import (
    CIReportCreate,
    CIReportResponse,
    CIReportSubmit,
    CIReportUpdate,
    CIReportVerify,
)
from src.ci_reports.service import CIReportService

router = APIRouter(prefix="/ci-reports", tags=["ci-reports"])


@router.post("", response_model=CIReportResponse, status_code=201)
async def create_ci_report(
    report_in: CIReportCreate,
    db: AsyncSession = Depends(get_db),
):
    fields = report_in.model_dump(exclude={"supplier_id"})
    try:
        return await CIReportService(db).create_report(report_in.supplier_id, fields)
    except ABFIError as e:
        raise to_http_exception(e)


@router.get("", response_model=List[CIReportResponse])
async def list_ci_reports(
    supplier_id: Optional[UUID] = None,
    status: Optional[CIReportStatus] = None,
    db: AsyncSession = Depends(get_db),
):
    return await CIReportService(db).list_reports(supplier_id=supplier_id, status=status)


@router.get("/{report_id}", response_model=CIReportResponse)
async def get_ci_report(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    report = await CIReportService(db).get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="CI report not found")
    return report


@router.patch("/{report_id}", response_model=CIReportResponse)
async def update_ci_report(
    report_id: UUID,
    report_in: CIReportUpdate,
    db: AsyncSession = Depends(get_db),
):
    fields = report_in.model_dump(exclude={"supplier_id"})
    try:
        return await CIReportService(db).update_report(report_id, report_in.supplier_id, fields)
    except ABFIError as e:
        raise to_http_exception(e)


@router.delete("/{report_id}", status_code=204)
async def delete_ci_report(
    report_id: UUID,
    supplier_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    try:
        await CIReportService(db).delete_report(report_id, supplier_id)
    except ABFIError as e:
        raise to_http_exception(e)


@router.post("/{report_id}/submit", response_model=CIReportResponse)
async def submit_ci_report(
    report_id: UUID,
    request: CIReportSubmit,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CIReportService(db).submit_report(report_id, request.supplier_id)
    except ABFIError as e:
        raise to_http_exception(e)


@router.post("/{report_id}/verify", response_model=CIReportResponse)
async def verify_ci_report(
    report_id: UUID,
    request: CIReportVerify,
    db: AsyncSession = Depends(get_db),
):
    try:
        return await CIReportService(db).verify_report(
            report_id,
            request.auditor_id,
            request.action,
            notes=request.notes,
            rejection_reason=request.rejection_reason,
            expiry_days=request.expiry_days,
        )
    except ABFIError as e:
        raise to_http_exception(e)


@router.get("/{report_id}/verify", response_model=List[AuditEventResponse])
async def get_ci_report_audit_history(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await CIReportService(db).get_audit_history(report_id)
