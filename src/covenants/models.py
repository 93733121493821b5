from enum import Enum
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from src.database import Base
from src.shared.models import AuditMixin, enum_type


class CovenantSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    BREACH = "breach"
    CRITICAL = "critical"


# Higher ranks sort first on dashboards
SEVERITY_RANK = {
    CovenantSeverity.CRITICAL: 3,
    CovenantSeverity.BREACH: 2,
    CovenantSeverity.WARNING: 1,
    CovenantSeverity.INFO: 0,
}


class CovenantBreachEvent(Base, AuditMixin):
    """A detected non-compliance or near-threshold condition. Never deleted."""

    __tablename__ = "covenant_breach_events"

    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    covenant_type = Column(String(100), nullable=False)  # e.g. "min_tier1_coverage"

    breach_date = Column(DateTime, nullable=False, index=True)
    detected_date = Column(DateTime, nullable=False)
    severity = Column(enum_type(CovenantSeverity), nullable=False, index=True)

    actual_value = Column(Float, nullable=False)
    threshold_value = Column(Float, nullable=False)
    variance_percent = Column(Integer, nullable=False)

    narrative_explanation = Column(Text, nullable=True)
    impact_assessment = Column(Text, nullable=True)

    resolved = Column(Boolean, default=False, nullable=False, index=True)
    resolved_date = Column(DateTime, nullable=True)
    resolution_notes = Column(Text, nullable=True)
    resolved_by = Column(Uuid, nullable=True)

    lender_notified = Column(Boolean, default=False, nullable=False)
    notified_date = Column(DateTime, nullable=True)
