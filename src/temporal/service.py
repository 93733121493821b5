import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.models import AuditEventType
from src.audit.service import AuditService
from src.exceptions import InvalidVersionDataError, NotFoundError, VersionConflictError
from src.shared.availability import degrade_when_unavailable, require_store
from src.shared.models import utcnow
from src.temporal.registry import get_version_store, resolve_entity_type
from src.temporal.schemas import VersionTimelineEntry

logger = logging.getLogger(__name__)


class TemporalService:
    """
    Point-in-time and current-state queries over versioned entities, and the
    supersession transaction that creates a successor version.

    Any row id of a lineage identifies the logical entity for reads. Writes
    name the exact row being superseded, which must still be current.
    """

    def __init__(self, db: Optional[AsyncSession]):
        self.db = db

    async def _lineage(self, entity_type, entity_id: UUID):
        store = get_version_store(self.db, entity_type)
        return store, await store.resolve_lineage(entity_id)

    @degrade_when_unavailable()
    async def get_version(self, entity_type, entity_id: UUID):
        """A single version row by its own id."""
        return await get_version_store(self.db, entity_type).get(entity_id)

    @degrade_when_unavailable()
    async def get_entity_as_of_date(self, entity_type, entity_id: UUID, as_of_date: datetime):
        """The version whose [valid_from, valid_to) contains ``as_of_date``, or None."""
        store, lineage_id = await self._lineage(entity_type, entity_id)
        if lineage_id is None:
            return None
        return await store.select_as_of(lineage_id, as_of_date)

    @degrade_when_unavailable()
    async def get_current_version(self, entity_type, entity_id: UUID):
        store, lineage_id = await self._lineage(entity_type, entity_id)
        if lineage_id is None:
            return None
        return await store.select_current(lineage_id)

    @degrade_when_unavailable(list)
    async def get_entity_history(self, entity_type, entity_id: UUID) -> List:
        """All versions of the logical entity, ascending by version number."""
        store, lineage_id = await self._lineage(entity_type, entity_id)
        if lineage_id is None:
            return []
        return await store.select_history(lineage_id)

    async def get_version_timeline(self, entity_type, entity_id: UUID) -> List[VersionTimelineEntry]:
        store = get_version_store(self.db, entity_type)
        history = await self.get_entity_history(entity_type, entity_id)
        return [
            VersionTimelineEntry(
                id=version.id,
                version_number=version.version_number,
                valid_from=version.valid_from,
                valid_to=version.valid_to,
                is_current=version.is_current,
                reason=getattr(version, store.reason_field),
                superseded_by_id=version.superseded_by_id,
            )
            for version in history
        ]

    async def create_entity(
        self,
        entity_type,
        data: Dict[str, Any],
        reason: Optional[str] = None,
        actor_id: Optional[UUID] = None,
    ):
        """Insert version 1 of a new logical entity."""
        require_store(self.db)
        entity_type = resolve_entity_type(entity_type)
        store = get_version_store(self.db, entity_type)
        values = store.validate_data(data)
        values.update(
            lineage_id=uuid.uuid4(),
            version_number=1,
            valid_from=utcnow(),
            valid_to=None,
            is_current=True,
            superseded_by_id=None,
        )
        values[store.reason_field] = reason

        try:
            entity = await store.insert_version(values)
            AuditService(self.db).record(
                entity_type.value, entity.id, AuditEventType.ENTITY_CREATED,
                actor_id=actor_id, notes=reason, detail={"version_number": 1},
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise InvalidVersionDataError(f"Cannot create {entity_type.value}: {e.orig}") from e
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(entity)
        logger.info(f"Created {entity_type.value} {entity.id} (lineage {entity.lineage_id})")
        return entity

    async def create_new_version(
        self,
        entity_type,
        old_entity_id: UUID,
        new_data: Dict[str, Any],
        reason: str,
        actor_id: Optional[UUID] = None,
    ) -> UUID:
        """
        Supersede ``old_entity_id`` with a successor version and return its id.

        The successor starts from the old version's business fields overlaid
        with ``new_data``. Closing the old interval, inserting the successor
        and linking the two happen in one transaction; the old row is locked
        and closed with a compare-and-swap on ``is_current``, so of two
        concurrent writers exactly one wins and the other gets
        VersionConflictError.
        """
        require_store(self.db)
        entity_type = resolve_entity_type(entity_type)
        store = get_version_store(self.db, entity_type)
        changes = store.validate_data(new_data)
        now = utcnow()

        try:
            current = await store.lock_row(old_entity_id)
            if current is None:
                raise NotFoundError(entity_type.value, old_entity_id)
            if not current.is_current:
                raise VersionConflictError(entity_type.value, old_entity_id)

            if not await store.supersede(current.id, now):
                raise VersionConflictError(entity_type.value, old_entity_id)

            values = store.snapshot(current)
            values.update(changes)
            values.update(
                lineage_id=current.lineage_id,
                version_number=current.version_number + 1,
                valid_from=now,
                valid_to=None,
                is_current=True,
                superseded_by_id=None,
            )
            values[store.reason_field] = reason

            successor = await store.insert_version(values)
            await store.link_successor(current.id, successor.id)

            AuditService(self.db).record(
                entity_type.value, successor.id, AuditEventType.VERSION_CREATED,
                actor_id=actor_id,
                notes=reason,
                detail={
                    "superseded_id": str(current.id),
                    "version_number": successor.version_number,
                    "changed_fields": sorted(changes),
                },
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise VersionConflictError(entity_type.value, old_entity_id) from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Superseded {entity_type.value} {old_entity_id} with version "
            f"{successor.version_number} ({successor.id})"
        )
        return successor.id
