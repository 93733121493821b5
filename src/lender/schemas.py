from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.covenants.schemas import ActiveAlert, CovenantBreachResponse
from src.lender.models import LenderReportStatus


class CovenantComplianceStatus(BaseModel):
    compliant: bool
    breaches: int
    warnings: int


class SupplyPositionSummary(BaseModel):
    tier1_coverage: float = 0
    tier2_coverage: float = 0
    total_suppliers: int = 0
    hhi: float = 0


class GenerateReportRequest(BaseModel):
    report_month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", examples=["2025-03"])
    generated_by: Optional[UUID] = None
    executive_summary: Optional[str] = None
    score_changes_narrative: Optional[str] = None
    supply_position: Optional[SupplyPositionSummary] = None


class FinalizeReportRequest(BaseModel):
    report_pdf_url: Optional[str] = None
    evidence_pack_url: Optional[str] = None


class LenderReportResponse(BaseModel):
    id: UUID
    project_id: UUID
    report_month: str
    report_year: int
    report_quarter: Optional[int] = None
    generated_date: datetime
    generated_by: Optional[UUID] = None
    executive_summary: Optional[str] = None
    score_changes_narrative: Optional[str] = None
    covenant_compliance_status: Optional[CovenantComplianceStatus] = None
    supply_position_summary: Optional[SupplyPositionSummary] = None
    evidence_count: int = 0
    evidence_types: Optional[List[str]] = None
    status: LenderReportStatus
    finalized_date: Optional[datetime] = None
    sent_date: Optional[datetime] = None
    report_pdf_url: Optional[str] = None
    evidence_pack_url: Optional[str] = None
    recipient_emails: Optional[List[str]] = None

    model_config = ConfigDict(from_attributes=True)


class DashboardSummary(BaseModel):
    active_alerts: int
    critical_alerts: int
    unresolved_breaches: int
    last_report_date: Optional[datetime] = None


class LenderDashboard(BaseModel):
    alerts: List[ActiveAlert]
    recent_breaches: List[CovenantBreachResponse]
    latest_report: Optional[LenderReportResponse] = None
    summary: DashboardSummary
