import uuid
from enum import Enum
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import declared_attr

from src.shared.models import utcnow


class EntityType(str, Enum):
    FEEDSTOCK = "feedstock"
    CERTIFICATE = "certificate"
    SUPPLY_AGREEMENT = "supply_agreement"
    BANKABILITY_ASSESSMENT = "bankability_assessment"


# Columns owned by the versioning machinery rather than the business entity
BOOKKEEPING_FIELDS = frozenset({
    "id",
    "lineage_id",
    "version_number",
    "valid_from",
    "valid_to",
    "superseded_by_id",
    "is_current",
    "created_at",
    "updated_at",
})

REASON_FIELDS = frozenset({"version_reason", "amendment_reason", "reassessment_reason"})


class VersionedMixin:
    """
    Valid-time versioning columns shared by every versioned entity.

    A logical entity is the set of rows sharing ``lineage_id``. Each row is
    authoritative over ``[valid_from, valid_to)``; the open row
    (``valid_to IS NULL``) is the only one with ``is_current`` set.
    """

    # Name of the column holding the free-text reason for a new version
    __reason_field__ = "version_reason"

    lineage_id = Column(Uuid, nullable=False, index=True, default=uuid.uuid4)
    version_number = Column(Integer, nullable=False, default=1)
    valid_from = Column(DateTime, nullable=False, default=utcnow)
    valid_to = Column(DateTime, nullable=True)
    is_current = Column(Boolean, nullable=False, default=True)

    @declared_attr
    def superseded_by_id(cls):
        return Column(Uuid, ForeignKey(f"{cls.__tablename__}.id"), nullable=True)

    @declared_attr
    def __table_args__(cls):
        return (
            UniqueConstraint(
                "lineage_id", "version_number",
                name=f"uq_{cls.__tablename__}_lineage_version",
            ),
            # At most one current row per lineage
            Index(
                f"uq_{cls.__tablename__}_lineage_current",
                "lineage_id",
                unique=True,
                postgresql_where=text("is_current"),
                sqlite_where=text("is_current = 1"),
            ),
        )
