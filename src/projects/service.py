from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.projects.models import Project
from src.projects.schemas import ProjectCreate
from src.shared.availability import degrade_when_unavailable, require_store


class ProjectService:
    def __init__(self, db: Optional[AsyncSession]):
        self.db = db

    async def create_project(self, project_in: ProjectCreate) -> Project:
        require_store(self.db)
        project = Project(**project_in.model_dump())
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        return project

    @degrade_when_unavailable()
    async def get_project(self, project_id: UUID) -> Optional[Project]:
        return await self.db.get(Project, project_id)

    @degrade_when_unavailable(list)
    async def list_projects(self, skip: int = 0, limit: int = 100) -> List[Project]:
        result = await self.db.execute(
            select(Project).order_by(Project.name).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
