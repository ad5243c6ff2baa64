"""Board access grant repository."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.enums import AccessLevel
from ..db.models import BoardAccess
from ..db.types import GUID


@runtime_checkable
class BoardAccessRepository(Protocol):
    async def get(self, board_id: str, user_id: str) -> BoardAccess | None: ...
    async def create(self, board_id: str, user_id: str, level: AccessLevel, granted_by: str) -> BoardAccess: ...
    async def set_level(self, grant: BoardAccess, level: AccessLevel) -> BoardAccess: ...
    async def delete(self, grant: BoardAccess) -> None: ...
    async def list_for_board(self, board_id: str) -> list[BoardAccess]: ...
    async def list_for_user(self, user_id: str) -> list[BoardAccess]: ...


class SQLAlchemyBoardAccessRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, board_id: str, user_id: str) -> BoardAccess | None:
        result = await self._session.execute(
            select(BoardAccess).where(BoardAccess.board_id == board_id, BoardAccess.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create(self, board_id: str, user_id: str, level: AccessLevel, granted_by: str) -> BoardAccess:
        """Insert inside a SAVEPOINT; a duplicate (board, user) pair leaves the outer transaction usable."""
        grant = BoardAccess(
            id=GUID.new(),
            board_id=board_id,
            user_id=user_id,
            access_level=level,
            granted_by=granted_by,
        )
        async with self._session.begin_nested():
            self._session.add(grant)
            await self._session.flush()
        return grant

    async def set_level(self, grant: BoardAccess, level: AccessLevel) -> BoardAccess:
        grant.access_level = level
        await self._session.flush()
        return grant

    async def delete(self, grant: BoardAccess) -> None:
        await self._session.delete(grant)
        await self._session.flush()

    async def list_for_board(self, board_id: str) -> list[BoardAccess]:
        result = await self._session.execute(
            select(BoardAccess).where(BoardAccess.board_id == board_id).order_by(BoardAccess.created_at)
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str) -> list[BoardAccess]:
        result = await self._session.execute(
            select(BoardAccess).where(BoardAccess.user_id == user_id).order_by(BoardAccess.created_at)
        )
        return list(result.scalars().all())
