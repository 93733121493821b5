from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from src.config import settings

engine = None
AsyncSessionLocal = None

if settings.DATABASE_ENABLED:
    engine = create_async_engine(settings.SQLALCHEMY_DATABASE_URI, echo=False)
    AsyncSessionLocal = sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

Base = declarative_base()

# Dependency
async def get_db():
    # No configured store: services treat a None session as "unavailable"
    if AsyncSessionLocal is None:
        yield None
        return
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
