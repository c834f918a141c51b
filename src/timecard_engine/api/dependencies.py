"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from timecard_engine.config import get_settings
from timecard_engine.database import init_db
from timecard_engine.services.generation import GenerationService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_generation_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> GenerationService:
    return GenerationService(session)


def resolve_client_id(client_id: str | None) -> str:
    """Request client, or the configured default client."""
    return client_id or get_settings().default_client_id


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Generation = Annotated[GenerationService, Depends(get_generation_service)]
