from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid, ForeignKey
from src.database import Base
from src.shared.models import AuditMixin, JSONType, enum_type
from src.temporal.models import VersionedMixin


class FeedstockCategory(str, Enum):
    OILSEED = "oilseed"
    UCO = "UCO"
    TALLOW = "tallow"
    LIGNOCELLULOSIC = "lignocellulosic"
    WASTE = "waste"
    ALGAE = "algae"
    BAMBOO = "bamboo"
    OTHER = "other"

class AustralianState(str, Enum):
    NSW = "NSW"
    VIC = "VIC"
    QLD = "QLD"
    SA = "SA"
    WA = "WA"
    TAS = "TAS"
    NT = "NT"
    ACT = "ACT"

class ProductionMethod(str, Enum):
    CROP = "crop"
    WASTE = "waste"
    RESIDUE = "residue"
    PROCESSING_BYPRODUCT = "processing_byproduct"

class FeedstockStatus(str, Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    ACTIVE = "active"
    SUSPENDED = "suspended"

class VerificationLevel(str, Enum):
    SELF_DECLARED = "self_declared"
    DOCUMENT_VERIFIED = "document_verified"
    THIRD_PARTY_AUDITED = "third_party_audited"
    ABFI_CERTIFIED = "abfi_certified"

class CertificateType(str, Enum):
    ISCC_EU = "ISCC_EU"
    ISCC_PLUS = "ISCC_PLUS"
    RSB = "RSB"
    RED_II = "RED_II"
    GO = "GO"
    ABFI = "ABFI"
    OTHER = "OTHER"

class CertificateStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class Feedstock(Base, AuditMixin, VersionedMixin):
    __tablename__ = "feedstocks"

    # ABFI-[TYPE]-[STATE]-[XXXXXX]; shared by every version of the feedstock
    abfi_id = Column(String(50), nullable=False, index=True)
    supplier_id = Column(Uuid, nullable=False, index=True)

    category = Column(enum_type(FeedstockCategory), nullable=False)
    type = Column(String(100), nullable=False)

    state = Column(enum_type(AustralianState), nullable=False)
    latitude = Column(String(20), nullable=False)
    longitude = Column(String(20), nullable=False)

    production_method = Column(enum_type(ProductionMethod), nullable=False)
    annual_capacity_tonnes = Column(Integer, nullable=False)
    available_volume_current = Column(Integer, nullable=False)

    abfi_score = Column(Integer, nullable=True)
    carbon_intensity_value = Column(Integer, nullable=True)  # gCO2e/MJ
    quality_parameters = Column(JSONType, nullable=True)
    price_per_tonne = Column(Integer, nullable=True)  # cents

    status = Column(enum_type(FeedstockStatus), default=FeedstockStatus.DRAFT, nullable=False)
    verification_level = Column(
        enum_type(VerificationLevel), default=VerificationLevel.SELF_DECLARED, nullable=False
    )
    description = Column(Text, nullable=True)

    version_reason = Column(Text, nullable=True)


class Certificate(Base, AuditMixin, VersionedMixin):
    __tablename__ = "certificates"

    feedstock_id = Column(Uuid, ForeignKey("feedstocks.id"), nullable=False, index=True)
    type = Column(enum_type(CertificateType), nullable=False)
    certificate_number = Column(String(100), nullable=True)

    issued_date = Column(DateTime, nullable=True)
    expiry_date = Column(DateTime, nullable=True, index=True)
    status = Column(enum_type(CertificateStatus), default=CertificateStatus.ACTIVE, nullable=False)

    rating_grade = Column(String(10), nullable=True)  # A+, A, B+, ...
    renewal_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    version_reason = Column(Text, nullable=True)
