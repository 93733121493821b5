import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, JSON, Uuid, Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class UUIDMixin:
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

class TimestampMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

class AuditMixin(UUIDMixin, TimestampMixin):
    """Combines UUID and Timestamps for standard entities."""
    pass


def enum_type(enum_cls, **kwargs) -> SAEnum:
    """Enum column storing member values (``"oilseed"``), not member names."""
    return SAEnum(enum_cls, values_callable=lambda members: [m.value for m in members], **kwargs)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
