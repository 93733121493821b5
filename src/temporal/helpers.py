"""
Side-effect-free predicates and accessors over a single version snapshot.

A snapshot is either an ORM row or a mapping with the same field names
(``valid_from``, ``valid_to``, ``is_current``...). Timestamps may be
``datetime`` objects or ISO-8601 strings.
"""
import json
import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, NamedTuple, Optional

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable

from src.shared.models import utcnow
from src.temporal.models import BOOKKEEPING_FIELDS, REASON_FIELDS

SECONDS_PER_DAY = 24 * 60 * 60

COMPARISON_EXCLUDED_FIELDS = BOOKKEEPING_FIELDS | REASON_FIELDS


class ValidityPeriod(NamedTuple):
    valid_from: datetime
    valid_to: Optional[datetime]


def _get(entity, name: str):
    if isinstance(entity, Mapping):
        return entity.get(name)
    return getattr(entity, name, None)


def _as_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def as_mapping(entity) -> Dict[str, Any]:
    """Column values of an ORM row, or a copy of a mapping."""
    if isinstance(entity, Mapping):
        return dict(entity)
    try:
        mapper = sa_inspect(type(entity))
    except NoInspectionAvailable:
        return dict(vars(entity))
    return {attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs}


def is_entity_current(entity) -> bool:
    return _get(entity, "is_current") is True and _get(entity, "valid_to") is None


def was_entity_valid_at(entity, date: datetime) -> bool:
    valid_from = _as_datetime(_get(entity, "valid_from"))
    valid_to = _as_datetime(_get(entity, "valid_to"))
    return valid_from <= date and (valid_to is None or valid_to > date)


def get_validity_period(entity) -> ValidityPeriod:
    return ValidityPeriod(
        valid_from=_as_datetime(_get(entity, "valid_from")),
        valid_to=_as_datetime(_get(entity, "valid_to")),
    )


def days_until_expiry(entity, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days (rounded up) until ``valid_to``; None for an open interval."""
    valid_to = _as_datetime(_get(entity, "valid_to"))
    if valid_to is None:
        return None
    now = now or utcnow()
    return math.ceil((valid_to - now).total_seconds() / SECONDS_PER_DAY)


def is_expiring_soon(entity, threshold_days: int = 30, now: Optional[datetime] = None) -> bool:
    days = days_until_expiry(entity, now=now)
    return days is not None and 0 < days <= threshold_days


def is_expired(entity, now: Optional[datetime] = None) -> bool:
    days = days_until_expiry(entity, now=now)
    return days is not None and days < 0


def _canonical(value) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def compare_versions(old_version, new_version) -> Dict[str, Dict[str, Any]]:
    """
    Field-level diff between two versions of an entity.

    Versioning bookkeeping and reason fields are ignored. Values are compared
    structurally (nested dicts and lists included, key order irrelevant).
    Returns ``{field: {"old": ..., "new": ...}}`` for every changed field.
    """
    old = as_mapping(old_version)
    new = as_mapping(new_version)

    differences = {}
    for key in sorted(set(old) | set(new)):
        if key in COMPARISON_EXCLUDED_FIELDS:
            continue
        old_value = old.get(key)
        new_value = new.get(key)
        if _canonical(old_value) != _canonical(new_value):
            differences[key] = {"old": old_value, "new": new_value}
    return differences
