from datetime import datetime
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.database import get_db
from src.exceptions import ABFIError
from src.shared.errors import to_http_exception
from src.shared.models import to_naive_utc
from src.temporal import helpers
from src.temporal.models import EntityType
from src.temporal.registry import get_version_store
from src.temporal.schemas import (
    CreateEntityRequest,
    CreateVersionRequest,
    CreateVersionResponse,
    EntityVersionResponse,
    FieldChange,
    VersionDiffResponse,
    VersionTimelineEntry,
)
from src.temporal.service import TemporalService

router = APIRouter(prefix="/entities", tags=["temporal"])


def _to_response(entity_type: EntityType, entity) -> EntityVersionResponse:
    store = get_version_store(None, entity_type)
    return EntityVersionResponse(
        id=entity.id,
        lineage_id=entity.lineage_id,
        version_number=entity.version_number,
        valid_from=entity.valid_from,
        valid_to=entity.valid_to,
        is_current=entity.is_current,
        superseded_by_id=entity.superseded_by_id,
        reason=getattr(entity, store.reason_field),
        data=store.snapshot(entity),
        days_until_expiry=helpers.days_until_expiry(entity),
        is_expiring_soon=helpers.is_expiring_soon(entity, settings.EXPIRY_WARNING_DAYS),
        is_expired=helpers.is_expired(entity),
    )


@router.post("/{entity_type}", response_model=EntityVersionResponse, status_code=201)
async def create_entity(
    entity_type: EntityType,
    request: CreateEntityRequest,
    db: AsyncSession = Depends(get_db),
):
    service = TemporalService(db)
    try:
        entity = await service.create_entity(
            entity_type, request.data, reason=request.reason, actor_id=request.actor_id
        )
    except ABFIError as e:
        raise to_http_exception(e)
    return _to_response(entity_type, entity)


@router.get("/{entity_type}/compare", response_model=VersionDiffResponse)
async def compare_entity_versions(
    entity_type: EntityType,
    old_id: UUID,
    new_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    service = TemporalService(db)
    old_version = await service.get_version(entity_type, old_id)
    new_version = await service.get_version(entity_type, new_id)
    if old_version is None or new_version is None:
        raise HTTPException(status_code=404, detail="Version not found")
    changes = helpers.compare_versions(old_version, new_version)
    return VersionDiffResponse(
        old_version_id=old_id,
        new_version_id=new_id,
        changes={key: FieldChange(**change) for key, change in changes.items()},
    )


@router.get("/{entity_type}/{entity_id}/current", response_model=EntityVersionResponse)
async def get_current_version(
    entity_type: EntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    entity = await TemporalService(db).get_current_version(entity_type, entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail="Current version not found")
    return _to_response(entity_type, entity)


@router.get("/{entity_type}/{entity_id}/as-of", response_model=EntityVersionResponse)
async def get_entity_as_of_date(
    entity_type: EntityType,
    entity_id: UUID,
    at: datetime = Query(..., description="Point in time (ISO-8601)"),
    db: AsyncSession = Depends(get_db),
):
    entity = await TemporalService(db).get_entity_as_of_date(
        entity_type, entity_id, to_naive_utc(at)
    )
    if entity is None:
        raise HTTPException(status_code=404, detail="No version valid at that time")
    return _to_response(entity_type, entity)


@router.get("/{entity_type}/{entity_id}/history", response_model=List[EntityVersionResponse])
async def get_entity_history(
    entity_type: EntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    history = await TemporalService(db).get_entity_history(entity_type, entity_id)
    return [_to_response(entity_type, version) for version in history]


@router.get("/{entity_type}/{entity_id}/timeline", response_model=List[VersionTimelineEntry])
async def get_version_timeline(
    entity_type: EntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await TemporalService(db).get_version_timeline(entity_type, entity_id)


@router.post("/{entity_type}/{entity_id}/versions", response_model=CreateVersionResponse, status_code=201)
async def create_new_version(
    entity_type: EntityType,
    entity_id: UUID,
    request: CreateVersionRequest,
    db: AsyncSession = Depends(get_db),
):
    service = TemporalService(db)
    try:
        new_id = await service.create_new_version(
            entity_type, entity_id, request.data, request.reason, actor_id=request.actor_id
        )
    except ABFIError as e:
        raise to_http_exception(e)
    return CreateVersionResponse(id=new_id)
