from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import UnknownEntityTypeError
from src.feedstocks.models import Certificate, Feedstock
from src.projects.models import BankabilityAssessment, SupplyAgreement
from src.temporal.models import EntityType
from src.temporal.store import VersionStore

# Entity-type tag -> versioned model. Adding an entity type is one entry here.
VERSIONED_MODELS = {
    EntityType.FEEDSTOCK: Feedstock,
    EntityType.CERTIFICATE: Certificate,
    EntityType.SUPPLY_AGREEMENT: SupplyAgreement,
    EntityType.BANKABILITY_ASSESSMENT: BankabilityAssessment,
}


def resolve_entity_type(entity_type) -> EntityType:
    try:
        key = EntityType(entity_type)
    except ValueError:
        raise UnknownEntityTypeError(entity_type)
    if key not in VERSIONED_MODELS:
        raise UnknownEntityTypeError(entity_type)
    return key


def get_version_store(db: AsyncSession, entity_type) -> VersionStore:
    return VersionStore(db, VERSIONED_MODELS[resolve_entity_type(entity_type)])
