from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VersionTimelineEntry(BaseModel):
    id: UUID
    version_number: int
    valid_from: datetime
    valid_to: Optional[datetime] = None
    is_current: bool
    reason: Optional[str] = None
    superseded_by_id: Optional[UUID] = None


class EntityVersionResponse(BaseModel):
    """One version row: versioning metadata plus the entity's business fields."""

    id: UUID
    lineage_id: UUID
    version_number: int
    valid_from: datetime
    valid_to: Optional[datetime] = None
    is_current: bool
    superseded_by_id: Optional[UUID] = None
    reason: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    days_until_expiry: Optional[int] = None
    is_expiring_soon: bool = False
    is_expired: bool = False

    model_config = ConfigDict(from_attributes=True)


class CreateEntityRequest(BaseModel):
    data: Dict[str, Any]
    reason: Optional[str] = None
    actor_id: Optional[UUID] = None


class CreateVersionRequest(BaseModel):
    data: Dict[str, Any] = Field(..., description="Business fields to change; others carry over")
    reason: str = Field(..., min_length=1, description="Why this version was created")
    actor_id: Optional[UUID] = None


class CreateVersionResponse(BaseModel):
    id: UUID


class FieldChange(BaseModel):
    old: Any = None
    new: Any = None


class VersionDiffResponse(BaseModel):
    old_version_id: UUID
    new_version_id: UUID
    changes: Dict[str, FieldChange]
