from enum import Enum
from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, String, Text, Uuid
from src.database import Base
from src.shared.models import AuditMixin, enum_type
from src.feedstocks.models import VerificationLevel


class CIReportStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    VERIFIED = "verified"
    REJECTED = "rejected"

class CIMethodology(str, Enum):
    RED_II = "RED_II"
    RFS = "RFS"
    ISO_14064 = "ISO_14064"
    GHG_PROTOCOL = "GHG_PROTOCOL"
    ABFI_DEFAULT = "ABFI_DEFAULT"

class VerifyAction(str, Enum):
    START_REVIEW = "start_review"
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"


# gCO2e/MJ per lifecycle stage
EMISSION_FIELDS = (
    "scope1_cultivation",
    "scope1_processing",
    "scope1_transport",
    "scope2_electricity",
    "scope2_steam_heat",
    "scope3_upstream_inputs",
    "scope3_land_use_change",
    "scope3_distribution",
    "scope3_end_of_life",
)


class CarbonIntensityReport(Base, AuditMixin):
    __tablename__ = "carbon_intensity_reports"

    supplier_id = Column(Uuid, nullable=False, index=True)
    feedstock_id = Column(Uuid, ForeignKey("feedstocks.id"), nullable=True, index=True)

    reporting_period_start = Column(Date, nullable=True)
    reporting_period_end = Column(Date, nullable=True)
    methodology = Column(enum_type(CIMethodology), default=CIMethodology.ABFI_DEFAULT, nullable=False)
    calculation_notes = Column(Text, nullable=True)

    scope1_cultivation = Column(Float, default=0, nullable=False)
    scope1_processing = Column(Float, default=0, nullable=False)
    scope1_transport = Column(Float, default=0, nullable=False)
    scope2_electricity = Column(Float, default=0, nullable=False)
    scope2_steam_heat = Column(Float, default=0, nullable=False)
    scope3_upstream_inputs = Column(Float, default=0, nullable=False)
    scope3_land_use_change = Column(Float, default=0, nullable=False)  # may be negative (sequestration)
    scope3_distribution = Column(Float, default=0, nullable=False)
    scope3_end_of_life = Column(Float, default=0, nullable=False)
    total_emissions = Column(Float, default=0, nullable=False)

    status = Column(enum_type(CIReportStatus), default=CIReportStatus.DRAFT, nullable=False, index=True)
    verification_level = Column(enum_type(VerificationLevel), nullable=True)

    submitted_at = Column(DateTime, nullable=True)
    assigned_auditor_id = Column(Uuid, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    verified_by = Column(Uuid, nullable=True)
    auditor_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    expiry_date = Column(Date, nullable=True)
