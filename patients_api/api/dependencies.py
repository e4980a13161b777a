from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from patients_api.db.session import AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one database session per request."""
    async with AsyncSessionLocal() as session:
        yield session
