"""FastAPI dependency factories for session and repository injection."""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .user_repo import SQLAlchemyUserRepository


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session and one transaction per request: the write path commits or rolls back as a unit."""
    async with request.app.state.session_factory() as session:
        async with session.begin():
            yield session


async def get_user_repo(session: AsyncSession = Depends(get_session)) -> SQLAlchemyUserRepository:
    """User directory lookups for routes that resolve a username before calling the core."""
    return SQLAlchemyUserRepository(session)
