"""
FastAPI Dependencies

Provides dependency injection for the database session, the generation
service gateway and the caller's owner identifier. Routes receive these as
parameters; tests swap them through ``app.dependency_overrides``.
"""

from typing import Annotated, Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.config import settings
from app.services.ai_gateway import AIGateway, get_ai_gateway


async def get_owner_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-Id")] = None,
) -> str:
    """Owner stamped on saved surveys; there is no login, so this is a plain label."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return settings.DEFAULT_OWNER_ID


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
Gateway = Annotated[AIGateway, Depends(get_ai_gateway)]
OwnerId = Annotated[str, Depends(get_owner_id)]
