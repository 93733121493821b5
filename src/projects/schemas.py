from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.feedstocks.models import AustralianState


class ProjectCreate(BaseModel):
    name: str
    developer_name: Optional[str] = None
    state: Optional[AustralianState] = None
    nameplate_capacity_tonnes: Optional[int] = None


class ProjectResponse(ProjectCreate):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
