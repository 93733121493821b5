from enum import Enum
from sqlalchemy import Column, String, Text, Uuid
from src.database import Base
from src.shared.models import AuditMixin, JSONType, enum_type


class AuditEventType(str, Enum):
    ENTITY_CREATED = "ENTITY_CREATED"
    VERSION_CREATED = "VERSION_CREATED"
    BREACH_RECORDED = "BREACH_RECORDED"
    BREACH_RESOLVED = "BREACH_RESOLVED"
    LENDER_NOTIFIED = "LENDER_NOTIFIED"
    REPORT_GENERATED = "REPORT_GENERATED"
    REPORT_FINALIZED = "REPORT_FINALIZED"
    REPORT_SENT = "REPORT_SENT"
    CI_REPORT_CREATED = "CI_REPORT_CREATED"
    CI_REPORT_UPDATED = "CI_REPORT_UPDATED"
    CI_REPORT_SUBMITTED = "CI_REPORT_SUBMITTED"
    CI_REVIEW_STARTED = "CI_REVIEW_STARTED"
    CI_REPORT_APPROVED = "CI_REPORT_APPROVED"
    CI_REPORT_REJECTED = "CI_REPORT_REJECTED"
    CI_REVISION_REQUESTED = "CI_REVISION_REQUESTED"


class AuditEvent(Base, AuditMixin):
    """Append-only trail of state changes across the core."""

    __tablename__ = "audit_events"

    entity_type = Column(String(50), nullable=False, index=True)  # "feedstock" | "lender_report" | "ci_report" ...
    entity_id = Column(Uuid, nullable=False, index=True)
    event_type = Column(enum_type(AuditEventType), nullable=False)
    actor_id = Column(Uuid, nullable=True)
    previous_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    detail = Column(JSONType, nullable=True)
