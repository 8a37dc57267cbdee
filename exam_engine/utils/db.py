# exam_engine/utils/db.py
# Async storage for finished exam results (exam_results, attempt_logs).
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from exam_engine.utils.config import settings

engine = create_async_engine(settings.database_url, echo=False)

# Stored records are read back after commit when a result is saved.
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

async def get_db() -> AsyncSession:
    """Request-scoped session for the results endpoints."""
    async with AsyncSessionLocal() as session:
        yield session
