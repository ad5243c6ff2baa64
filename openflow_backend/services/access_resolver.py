"""AccessResolver: decides whether a user may read, write or administer a board.

Decisions are never cached. Every call reads the board and the grant as they
are committed right now, so a revoked grant stops working on the next check and
the owner bypass always wins over any stale grant row.
"""

from __future__ import annotations

from ..core.enums import AccessLevel
from ..core.exceptions import NotFoundError, UnauthorizedError
from ..core.logging import get_logger
from ..db.models import Board
from ..db.types import GUID
from ..repositories.access_repo import BoardAccessRepository
from ..repositories.board_repo import BoardRepository

logger = get_logger(__name__)


def is_owner(board: Board, user_id: str | None) -> bool:
    return user_id is not None and board.owner_id == GUID.canonical(user_id)


class AccessResolver:
    def __init__(self, boards: BoardRepository, grants: BoardAccessRepository):
        self._boards = boards
        self._grants = grants

    async def authorize(self, board: Board, user_id: str | None, required_level: AccessLevel | str) -> bool:
        required = AccessLevel.parse(required_level)
        if is_owner(board, user_id):
            return True
        if user_id is None:
            return False

        grant = await self._grants.get(board.id, GUID.canonical(user_id))
        if grant is None:
            return False
        return grant.access_level.satisfies(required)

    async def require_access(self, board_id: str, user_id: str | None, level: AccessLevel | str) -> Board:
        """Return the board or raise ``NotFoundError`` / ``UnauthorizedError``.

        The board is loaded before authorizing so "missing" and "no access" stay
        distinguishable.
        """
        required = AccessLevel.parse(level)
        board = await self._boards.get_by_id(board_id)
        if board is None:
            raise NotFoundError("Board not found", details={"board_id": board_id})
        if not await self.authorize(board, user_id, required):
            logger.info(
                "Board access denied",
                data={"board_id": board_id, "user_id": user_id, "required": required.value},
            )
            raise UnauthorizedError("Unauthorized access to board")
        return board

    async def has_access(self, board_id: str, user_id: str | None, level: AccessLevel | str) -> bool:
        board = await self._boards.get_by_id(board_id)
        if board is None:
            return False
        return await self.authorize(board, user_id, level)

    async def has_authority(self, board: Board, user_id: str) -> bool:
        """Owner or ADMIN: what managing a board's grants requires."""
        return is_owner(board, user_id) or await self.authorize(board, user_id, AccessLevel.ADMIN)

    async def accessible_boards(self, user_id: str) -> list[Board]:
        """Boards the user owns followed by boards shared with them, without duplicates."""
        user_id = GUID.canonical(user_id)
        boards = await self._boards.list_owned(user_id)
        seen = {b.id for b in boards}
        shared_ids = [g.board_id for g in await self._grants.list_for_user(user_id) if g.board_id not in seen]
        boards.extend(await self._boards.get_many(shared_ids))
        return boards
