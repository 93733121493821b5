import asyncio
import uuid
from datetime import datetime, timedelta
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from src.database import Base
from src.projects.models import Project, SupplyAgreement, BankabilityAssessment
from src.feedstocks.models import Feedstock, Certificate
from src.covenants.models import CovenantBreachEvent
from src.lender.models import LenderReport
from src.ci_reports.models import CarbonIntensityReport
from src.audit.models import AuditEvent
from src.covenants.schemas import Covenant, CovenantMetrics
from src.covenants.service import CovenantService
from src.temporal.models import EntityType
from src.temporal.service import TemporalService
from src.config import settings
from src.shared.models import utcnow

engine = create_async_engine(str(settings.SQLALCHEMY_DATABASE_URI), echo=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

DEMO_PROJECT_ID = uuid.UUID("123e4567-e89b-12d3-a456-426614174000")
DEMO_SUPPLIER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

async def seed_data():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        if await session.get(Project, DEMO_PROJECT_ID):
            print("Demo project already present.")
            return

        # Project
        session.add(Project(
            id=DEMO_PROJECT_ID,
            name="Riverina Renewable Diesel",
            developer_name="Murray Bioenergy Pty Ltd",
            state="NSW",
            nameplate_capacity_tonnes=120000,
        ))
        await session.commit()

        temporal = TemporalService(session)

        # Feedstock with one amendment so the history has two versions
        feedstock = await temporal.create_entity(EntityType.FEEDSTOCK, {
            "abfi_id": "ABFI-OS-NSW-000123",
            "supplier_id": DEMO_SUPPLIER_ID,
            "category": "oilseed",
            "type": "Canola",
            "state": "NSW",
            "latitude": "-34.7500",
            "longitude": "146.5500",
            "production_method": "crop",
            "annual_capacity_tonnes": 45000,
            "available_volume_current": 30000,
            "abfi_score": 78,
            "carbon_intensity_value": 32,
            "status": "active",
            "verification_level": "document_verified",
        }, reason="Initial registration")
        await temporal.create_new_version(
            EntityType.FEEDSTOCK, feedstock.id,
            {"available_volume_current": 26000, "abfi_score": 81},
            reason="Harvest estimate revised",
        )

        # Tier 1 supply agreement
        await temporal.create_entity(EntityType.SUPPLY_AGREEMENT, {
            "project_id": DEMO_PROJECT_ID,
            "supplier_id": DEMO_SUPPLIER_ID,
            "supplier_name": "Riverina Grain Co-op",
            "tier": "tier1",
            "annual_volume": 40000,
            "start_date": datetime(2025, 1, 1),
            "end_date": utcnow() + timedelta(days=25),
            "term_years": 1,
            "pricing_mechanism": "fixed_with_escalation",
            "base_price": 64000,
            "take_or_pay_percent": 85,
            "status": "active",
        }, reason="Offtake executed")

        # Covenant check that records a warning and a critical breach
        await CovenantService(session).run_compliance_check(
            DEMO_PROJECT_ID,
            [
                Covenant(type="min_tier1_coverage", threshold=80),
                Covenant(type="max_hhi", threshold=2500),
            ],
            CovenantMetrics(tier1_coverage=60, tier2_coverage=20, hhi=4000),
        )

        print("Seeding complete.")

if __name__ == "__main__":
    asyncio.run(seed_data())
