from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.covenants.models import CovenantSeverity


class Covenant(BaseModel):
    type: str = Field(..., description="e.g. 'min_tier1_coverage', 'max_hhi'")
    threshold: float


class CovenantMetrics(BaseModel):
    tier1_coverage: float = 0
    tier2_coverage: float = 0
    hhi: float = 0
    supply_shortfall: float = 0
    min_supplier_count: float = 0
    actual_supplier_count: float = 0


class CovenantCheckResult(BaseModel):
    covenant_type: str
    compliant: bool
    actual_value: float
    threshold_value: float
    variance_percent: int
    severity: CovenantSeverity


class ComplianceCheckRequest(BaseModel):
    covenants: List[Covenant]
    current_metrics: CovenantMetrics
    record: bool = Field(False, description="Persist every non-info result as a breach event")


class ComplianceCheckResponse(BaseModel):
    results: List[CovenantCheckResult]
    recorded_breach_ids: List[UUID] = []


class RecordBreachRequest(BaseModel):
    covenant_type: str
    actual_value: float
    threshold_value: float
    variance_percent: int
    severity: CovenantSeverity
    narrative_explanation: Optional[str] = None
    impact_assessment: Optional[str] = None


class ResolveBreachRequest(BaseModel):
    resolution_notes: str = Field(..., min_length=1)
    resolved_by: UUID


class CovenantBreachResponse(BaseModel):
    id: UUID
    project_id: UUID
    covenant_type: str
    breach_date: datetime
    detected_date: datetime
    severity: CovenantSeverity
    actual_value: float
    threshold_value: float
    variance_percent: int
    narrative_explanation: Optional[str] = None
    impact_assessment: Optional[str] = None
    resolved: bool
    resolved_date: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    resolved_by: Optional[UUID] = None
    lender_notified: bool
    notified_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ActiveAlert(BaseModel):
    id: UUID
    type: Literal["covenant_breach"] = "covenant_breach"
    severity: CovenantSeverity
    title: str
    message: str
    date: datetime
    actual_value: float
    threshold_value: float
    variance_percent: int
