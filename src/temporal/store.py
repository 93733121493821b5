from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import DateTime, Uuid, inspect as sa_inspect, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import InvalidVersionDataError
from src.shared.models import to_naive_utc
from src.temporal.models import BOOKKEEPING_FIELDS


def _coerce(column_type, value):
    if not isinstance(value, str):
        return value
    if isinstance(column_type, DateTime):
        return to_naive_utc(datetime.fromisoformat(value))
    if isinstance(column_type, Uuid):
        return UUID(value)
    return value


class VersionStore:
    """Storage accessor for one versioned model: thin query wrappers, no policy."""

    def __init__(self, db: AsyncSession, model):
        self.db = db
        self.model = model

    @property
    def reason_field(self) -> str:
        return self.model.__reason_field__

    @property
    def business_fields(self) -> frozenset:
        columns = {attr.key for attr in sa_inspect(self.model).column_attrs}
        return frozenset(columns - BOOKKEEPING_FIELDS - {self.reason_field})

    def validate_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Reject keys that are not business fields of the model and parse the
        string forms JSON clients send for timestamp and UUID columns.
        """
        unknown = sorted(set(data) - self.business_fields)
        if unknown:
            raise InvalidVersionDataError(
                f"Fields not settable on {self.model.__tablename__}: {', '.join(unknown)}"
            )
        columns = sa_inspect(self.model).columns
        values = {}
        for key, value in data.items():
            try:
                values[key] = _coerce(columns[key].type, value)
            except ValueError as e:
                raise InvalidVersionDataError(f"Invalid value for {key}: {value!r}") from e
        return values

    def snapshot(self, entity) -> Dict[str, Any]:
        return {field: getattr(entity, field) for field in self.business_fields}

    async def resolve_lineage(self, entity_id: UUID) -> Optional[UUID]:
        result = await self.db.execute(
            select(self.model.lineage_id).where(self.model.id == entity_id)
        )
        return result.scalar_one_or_none()

    async def select_as_of(self, lineage_id: UUID, as_of: datetime):
        model = self.model
        result = await self.db.execute(
            select(model)
            .where(
                model.lineage_id == lineage_id,
                model.valid_from <= as_of,
                or_(model.valid_to > as_of, model.valid_to.is_(None)),
            )
            .order_by(model.version_number.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def select_current(self, lineage_id: UUID):
        result = await self.db.execute(
            select(self.model).where(
                self.model.lineage_id == lineage_id,
                self.model.is_current == True,
            ).limit(1)
        )
        return result.scalar_one_or_none()

    async def select_history(self, lineage_id: UUID) -> List:
        result = await self.db.execute(
            select(self.model)
            .where(self.model.lineage_id == lineage_id)
            .order_by(self.model.version_number)
        )
        return list(result.scalars().all())

    async def lock_row(self, entity_id: UUID):
        """Load a row with a row-level lock (FOR UPDATE on Postgres)."""
        result = await self.db.execute(
            select(self.model).where(self.model.id == entity_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def supersede(self, entity_id: UUID, now: datetime) -> bool:
        """Close the row's interval iff it is still current. False when another writer won."""
        result = await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id, self.model.is_current == True)
            .values(is_current=False, valid_to=now)
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def insert_version(self, values: Dict[str, Any]):
        entity = self.model(**values)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def link_successor(self, entity_id: UUID, successor_id: UUID) -> None:
        await self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .values(superseded_by_id=successor_id)
            .execution_options(synchronize_session="evaluate")
        )

    async def get(self, entity_id: UUID):
        return await self.db.get(self.model, entity_id)
