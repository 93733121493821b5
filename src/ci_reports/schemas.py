from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.ci_reports.models import CIMethodology, CIReportStatus, VerifyAction
from src.feedstocks.models import VerificationLevel


class CIReportFields(BaseModel):
    reporting_period_start: Optional[date] = None
    reporting_period_end: Optional[date] = None
    methodology: Optional[CIMethodology] = None
    calculation_notes: Optional[str] = None

    scope1_cultivation: Optional[float] = None
    scope1_processing: Optional[float] = None
    scope1_transport: Optional[float] = None
    scope2_electricity: Optional[float] = None
    scope2_steam_heat: Optional[float] = None
    scope3_upstream_inputs: Optional[float] = None
    scope3_land_use_change: Optional[float] = None
    scope3_distribution: Optional[float] = None
    scope3_end_of_life: Optional[float] = None


class CIReportCreate(CIReportFields):
    supplier_id: UUID
    feedstock_id: Optional[UUID] = None


class CIReportUpdate(CIReportFields):
    supplier_id: UUID


class CIReportSubmit(BaseModel):
    supplier_id: UUID


class CIReportVerify(BaseModel):
    auditor_id: UUID
    action: VerifyAction
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    expiry_days: int = Field(365, gt=0)


class CIReportResponse(BaseModel):
    id: UUID
    supplier_id: UUID
    feedstock_id: Optional[UUID] = None
    reporting_period_start: Optional[date] = None
    reporting_period_end: Optional[date] = None
    methodology: CIMethodology
    calculation_notes: Optional[str] = None

    scope1_cultivation: float
    scope1_processing: float
    scope1_transport: float
    scope2_electricity: float
    scope2_steam_heat: float
    scope3_upstream_inputs: float
    scope3_land_use_change: float
    scope3_distribution: float
    scope3_end_of_life: float
    total_emissions: float

    status: CIReportStatus
    verification_level: Optional[VerificationLevel] = None
    submitted_at: Optional[datetime] = None
    assigned_auditor_id: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[UUID] = None
    auditor_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    expiry_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
