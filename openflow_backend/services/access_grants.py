"""AccessGrantManager: the only writer of board access grants.

Every operation re-resolves the requester's authority (board owner or ADMIN
grant) against current data before acting; a caller-supplied role is never
trusted.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..core.enums import OWNER_LABEL, AccessLevel, EntityType
from ..core.exceptions import ConflictError, NotFoundError, OwnerAccessError, UnauthorizedError
from ..core.logging import get_logger
from ..db.models import Board, BoardAccess
from ..db.types import GUID
from ..repositories.access_repo import BoardAccessRepository
from ..repositories.board_repo import BoardRepository
from ..repositories.user_repo import UserRepository
from .access_resolver import AccessResolver, is_owner
from .change_audit import ChangeAuditLog
from .schemas import UNKNOWN_USER, AccessGrantView

logger = get_logger(__name__)

ACCESS_FIELD = "access"


class AccessGrantManager:
    def __init__(
        self,
        resolver: AccessResolver,
        boards: BoardRepository,
        grants: BoardAccessRepository,
        users: UserRepository,
        audit: ChangeAuditLog,
    ):
        self._resolver = resolver
        self._boards = boards
        self._grants = grants
        self._users = users
        self._audit = audit

    async def grant(
        self,
        board_id: str,
        target_user_id: str,
        level: AccessLevel | str,
        requester_id: str,
    ) -> AccessGrantView:
        level = AccessLevel.parse(level)
        board = await self._load_board(board_id)
        target = await self._users.get_by_id(target_user_id)
        if target is None:
            raise NotFoundError("User not found", details={"user_id": target_user_id})
        await self._require_authority(board, requester_id, "grant access")

        if is_owner(board, target.id):
            raise OwnerAccessError("Cannot grant access to board owner")
        if await self._grants.get(board.id, target.id) is not None:
            raise ConflictError("User already has access to this board")

        try:
            grant = await self._grants.create(board.id, target.id, level, GUID.canonical(requester_id))
        except IntegrityError:
            # A concurrent request inserted the same pair after the check above.
            raise ConflictError("User already has access to this board") from None
        await self._audit.record_field_change(
            EntityType.BOARD, board.id, requester_id,
            ACCESS_FIELD, "granted", f"{level.value} to {target.username}",
        )
        logger.info(
            "Board access granted",
            data={"board_id": board.id, "user_id": target.id, "level": level.value, "granted_by": requester_id},
        )
        return await self._to_view(grant)

    async def update(
        self,
        board_id: str,
        target_user_id: str,
        new_level: AccessLevel | str,
        requester_id: str,
    ) -> AccessGrantView:
        """Set a new level. The change is written and audited even when the level is unchanged."""
        new_level = AccessLevel.parse(new_level)
        board = await self._load_board(board_id)
        await self._require_authority(board, requester_id, "update access levels")

        grant = await self._grants.get(board.id, GUID.canonical(target_user_id))
        if grant is None:
            raise NotFoundError("Access not found")

        old_level = grant.access_level
        await self._grants.set_level(grant, new_level)
        username = await self._username(grant.user_id)
        await self._audit.record_field_change(
            EntityType.BOARD, board.id, requester_id,
            ACCESS_FIELD, old_level.value, f"{new_level.value} for {username}",
        )
        logger.info(
            "Board access level changed",
            data={"board_id": board.id, "user_id": grant.user_id, "old": old_level.value, "new": new_level.value},
        )
        return await self._to_view(grant)

    async def revoke(self, board_id: str, target_user_id: str, requester_id: str) -> None:
        board = await self._load_board(board_id)
        await self._require_authority(board, requester_id, "revoke access")

        if is_owner(board, target_user_id):
            raise OwnerAccessError("Cannot revoke access from board owner")
        grant = await self._grants.get(board.id, GUID.canonical(target_user_id))
        if grant is None:
            raise NotFoundError("Access not found")

        level = grant.access_level
        username = await self._username(grant.user_id)
        await self._grants.delete(grant)
        await self._audit.record_field_change(
            EntityType.BOARD, board.id, requester_id,
            ACCESS_FIELD, level.value, "revoked",
        )
        logger.info(
            "Board access revoked",
            data={"board_id": board.id, "user_id": grant.user_id, "username": username, "level": level.value},
        )

    async def list_accesses(self, board_id: str, requester_id: str) -> list[AccessGrantView]:
        """Every grant on the board; reading the list itself needs owner or ADMIN."""
        board = await self._load_board(board_id)
        await self._require_authority(board, requester_id, "view the access list")

        grants = await self._grants.list_for_board(board.id)
        usernames = await self._users.get_usernames(
            {g.user_id for g in grants} | {g.granted_by for g in grants}
        )
        return [self._view(g, usernames) for g in grants]

    async def effective_level(self, board_id: str, user_id: str) -> str | None:
        """``OWNER``, the granted level name, or None. Needs no elevated authority."""
        board = await self._load_board(board_id)
        if is_owner(board, user_id):
            return OWNER_LABEL
        grant = await self._grants.get(board.id, GUID.canonical(user_id))
        return grant.access_level.value if grant is not None else None

    async def _load_board(self, board_id: str) -> Board:
        board = await self._boards.get_by_id(board_id)
        if board is None:
            raise NotFoundError("Board not found", details={"board_id": board_id})
        return board

    async def _require_authority(self, board: Board, requester_id: str, action: str) -> None:
        if not await self._resolver.has_authority(board, requester_id):
            logger.warning(
                "Grant management refused",
                data={"board_id": board.id, "requester_id": requester_id, "action": action},
            )
            raise UnauthorizedError(
                f"Unauthorized: Only board owner or users with ADMIN access can {action}"
            )

    async def _username(self, user_id: str) -> str:
        user = await self._users.get_by_id(user_id)
        return user.username if user is not None else UNKNOWN_USER

    async def _to_view(self, grant: BoardAccess) -> AccessGrantView:
        usernames = await self._users.get_usernames({grant.user_id, grant.granted_by})
        return self._view(grant, usernames)

    @staticmethod
    def _view(grant: BoardAccess, usernames: dict[str, str]) -> AccessGrantView:
        return AccessGrantView(
            id=grant.id,
            board_id=grant.board_id,
            user_id=grant.user_id,
            username=usernames.get(grant.user_id, UNKNOWN_USER),
            access_level=grant.access_level,
            granted_by=grant.granted_by,
            granted_by_username=usernames.get(grant.granted_by, UNKNOWN_USER),
            created_at=grant.created_at,
        )
