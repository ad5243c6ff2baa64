"""Board repository (the board service owns writes; the core reads)."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Board
from ..db.types import GUID


@runtime_checkable
class BoardRepository(Protocol):
    async def get_by_id(self, id: str) -> Board | None: ...
    async def get_many(self, ids: Iterable[str]) -> list[Board]: ...
    async def list_owned(self, owner_id: str) -> list[Board]: ...
    async def create(self, owner_id: str, name: str, description: str | None = None,
                     is_public: bool = False, is_template: bool = False) -> Board: ...


class SQLAlchemyBoardRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, id: str) -> Board | None:
        return await self._session.get(Board, id)

    async def get_many(self, ids: Iterable[str]) -> list[Board]:
        wanted = {GUID.canonical(i) for i in ids}
        if not wanted:
            return []
        result = await self._session.execute(
            select(Board).where(Board.id.in_(wanted)).order_by(Board.created_at)
        )
        return list(result.scalars().all())

    async def list_owned(self, owner_id: str) -> list[Board]:
        result = await self._session.execute(
            select(Board).where(Board.owner_id == owner_id).order_by(Board.created_at)
        )
        return list(result.scalars().all())

    async def create(
        self,
        owner_id: str,
        name: str,
        description: str | None = None,
        is_public: bool = False,
        is_template: bool = False,
    ) -> Board:
        board = Board(
            id=GUID.new(),
            owner_id=owner_id,
            name=name,
            description=description,
            is_public=is_public,
            is_template=is_template,
        )
        self._session.add(board)
        await self._session.flush()
        return board
