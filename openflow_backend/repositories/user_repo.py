"""User directory repository (read side used by the core)."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import User
from ..db.types import GUID


@runtime_checkable
class UserRepository(Protocol):
    async def get_by_id(self, id: str) -> User | None: ...
    async def get_by_username(self, username: str) -> User | None: ...
    async def get_usernames(self, ids: Iterable[str]) -> dict[str, str]: ...
    async def create(self, username: str, email: str | None = None, display_name: str | None = None) -> User: ...


class SQLAlchemyUserRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, id: str) -> User | None:
        return await self._session.get(User, id)

    async def get_by_username(self, username: str) -> User | None:
        result = await self._session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_usernames(self, ids: Iterable[str]) -> dict[str, str]:
        """Resolve many ids in one query; unknown ids are simply absent."""
        wanted = {GUID.canonical(i) for i in ids if i is not None}
        if not wanted:
            return {}
        result = await self._session.execute(select(User.id, User.username).where(User.id.in_(wanted)))
        return {row.id: row.username for row in result}

    async def create(self, username: str, email: str | None = None, display_name: str | None = None) -> User:
        user = User(id=GUID.new(), username=username, email=email, display_name=display_name)
        self._session.add(user)
        await self._session.flush()
        return user
