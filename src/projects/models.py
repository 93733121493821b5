from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid, ForeignKey
from src.database import Base
from src.shared.models import AuditMixin, JSONType, enum_type
from src.feedstocks.models import AustralianState
from src.temporal.models import VersionedMixin


class AgreementTier(str, Enum):
    TIER1 = "tier1"
    TIER2 = "tier2"
    OPTION = "option"
    ROFR = "rofr"

class PricingMechanism(str, Enum):
    FIXED = "fixed"
    FIXED_WITH_ESCALATION = "fixed_with_escalation"
    INDEX_LINKED = "index_linked"
    INDEX_WITH_FLOOR_CEILING = "index_with_floor_ceiling"
    SPOT_REFERENCE = "spot_reference"

class AgreementStatus(str, Enum):
    DRAFT = "draft"
    NEGOTIATION = "negotiation"
    EXECUTED = "executed"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"

class BankabilityRating(str, Enum):
    AAA = "AAA"
    AA = "AA"
    A = "A"
    BBB = "BBB"
    BB = "BB"
    B = "B"
    CCC = "CCC"

class AssessmentStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Project(Base, AuditMixin):
    __tablename__ = "projects"

    name = Column(String(255), nullable=False)
    developer_name = Column(String(255), nullable=True)
    state = Column(enum_type(AustralianState), nullable=True)
    nameplate_capacity_tonnes = Column(Integer, nullable=True)


class SupplyAgreement(Base, AuditMixin, VersionedMixin):
    __tablename__ = "supply_agreements"
    __reason_field__ = "amendment_reason"

    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    supplier_id = Column(Uuid, nullable=False, index=True)
    supplier_name = Column(String(255), nullable=True)

    tier = Column(enum_type(AgreementTier), nullable=False)
    annual_volume = Column(Integer, nullable=False)  # tonnes per annum

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    term_years = Column(Integer, nullable=False)

    pricing_mechanism = Column(enum_type(PricingMechanism), nullable=False)
    base_price = Column(Integer, nullable=True)  # cents per tonne
    take_or_pay_percent = Column(Integer, nullable=True)
    quality_specs = Column(JSONType, nullable=True)

    status = Column(enum_type(AgreementStatus), default=AgreementStatus.DRAFT, nullable=False)

    amendment_reason = Column(Text, nullable=True)


class BankabilityAssessment(Base, AuditMixin, VersionedMixin):
    __tablename__ = "bankability_assessments"
    __reason_field__ = "reassessment_reason"

    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    assessment_number = Column(String(50), nullable=False, index=True)  # ABFI-BANK-YYYY-NNNNN
    assessment_date = Column(DateTime, nullable=False)

    # Category scores (0-100)
    volume_security_score = Column(Integer, nullable=False)
    counterparty_quality_score = Column(Integer, nullable=False)
    contract_structure_score = Column(Integer, nullable=False)
    concentration_risk_score = Column(Integer, nullable=False)
    operational_readiness_score = Column(Integer, nullable=False)

    composite_score = Column(Integer, nullable=False)
    rating = Column(enum_type(BankabilityRating), nullable=False)

    tier1_percent = Column(Integer, nullable=True)
    tier2_percent = Column(Integer, nullable=True)
    supplier_hhi = Column(Integer, nullable=True)

    strengths = Column(JSONType, nullable=True)
    monitoring_items = Column(JSONType, nullable=True)

    status = Column(enum_type(AssessmentStatus), default=AssessmentStatus.DRAFT, nullable=False)

    reassessment_reason = Column(Text, nullable=True)
