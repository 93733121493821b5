from enum import Enum
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from src.database import Base
from src.shared.models import AuditMixin, JSONType, enum_type


class LenderReportStatus(str, Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"
    SENT = "sent"


class LenderReport(Base, AuditMixin):
    __tablename__ = "lender_reports"

    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)

    report_month = Column(String(7), nullable=False, index=True)  # YYYY-MM
    report_year = Column(Integer, nullable=False)
    report_quarter = Column(Integer, nullable=True)  # 1-4

    generated_date = Column(DateTime, nullable=False)
    generated_by = Column(Uuid, nullable=True)

    report_pdf_url = Column(String(500), nullable=True)
    evidence_pack_url = Column(String(500), nullable=True)

    executive_summary = Column(Text, nullable=True)
    score_changes_narrative = Column(Text, nullable=True)
    covenant_compliance_status = Column(JSONType, nullable=True)  # {compliant, breaches, warnings}
    supply_position_summary = Column(JSONType, nullable=True)  # {tier1_coverage, tier2_coverage, total_suppliers, hhi}

    evidence_count = Column(Integer, default=0, nullable=False)
    evidence_types = Column(JSONType, nullable=True)

    status = Column(enum_type(LenderReportStatus), default=LenderReportStatus.DRAFT, nullable=False, index=True)
    finalized_date = Column(DateTime, nullable=True)
    sent_date = Column(DateTime, nullable=True)

    recipient_emails = Column(JSONType, nullable=True)
