import asyncio
from src.database import engine, Base

# Import all models to ensure they are registered in Base.metadata
from src.projects.models import Project, SupplyAgreement, BankabilityAssessment
from src.feedstocks.models import Feedstock, Certificate
from src.covenants.models import CovenantBreachEvent
from src.lender.models import LenderReport
from src.ci_reports.models import CarbonIntensityReport
from src.audit.models import AuditEvent

async def init_models():
    if engine is None:
        print("DATABASE_ENABLED is false; nothing to create.")
        return
    async with engine.begin() as conn:
        # await conn.run_sync(Base.metadata.drop_all) # Optional: Reset DB
        await conn.run_sync(Base.metadata.create_all)
    print("Database tables created.")

if __name__ == "__main__":
    asyncio.run(init_models())
