"""Test AccessGrantManager: authority checks, owner protection and audit trail."""

from __future__ import annotations

import pytest

from openflow_backend.core.enums import OWNER_LABEL, AccessLevel
from openflow_backend.core.exceptions import (
    ConflictError,
    NotFoundError,
    OwnerAccessError,
    UnauthorizedError,
    ValidationFailureError,
)
from openflow_backend.db.types import GUID
from openflow_backend.repositories.access_repo import SQLAlchemyBoardAccessRepository
from openflow_backend.repositories.board_repo import SQLAlchemyBoardRepository
from openflow_backend.repositories.user_repo import SQLAlchemyUserRepository
from openflow_backend.services.access_grants import AccessGrantManager

pytestmark = pytest.mark.asyncio


class StaleAccessRepository(SQLAlchemyBoardAccessRepository):
    """Misses on its first lookup, as if another request inserted the grant just after it."""

    def __init__(self, session):
        super().__init__(session)
        self._stale = True

    async def get(self, board_id, user_id):
        if self._stale:
            self._stale = False
            return None
        return await super().get(board_id, user_id)


class TestGrant:
    async def test_owner_grants_access(self, core, users, board):
        view = await core.grants.grant(board.id, users["alice"].id, "write", users["owner"].id)
        assert view.access_level is AccessLevel.WRITE
        assert view.username == "alice"
        assert view.granted_by == users["owner"].id
        assert view.granted_by_username == "owner"
        assert await core.resolver.authorize(board, users["alice"].id, AccessLevel.WRITE)

    async def test_grant_is_audited(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)
        history = await core.audit.history("BOARD", board.id)
        assert len(history) == 1
        entry = history[0]
        assert entry.action == "UPDATE"
        assert entry.field_name == "access"
        assert entry.old_value == "granted"
        assert entry.new_value == "READ to alice"
        assert entry.username == "owner"

    async def test_admin_may_grant(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.ADMIN, users["owner"].id)
        view = await core.grants.grant(board.id, users["bob"].id, AccessLevel.READ, users["alice"].id)
        assert view.granted_by_username == "alice"

    @pytest.mark.parametrize("level", [AccessLevel.READ, AccessLevel.WRITE])
    async def test_non_admin_may_not_grant(self, core, users, board, level):
        await core.grants.grant(board.id, users["alice"].id, level, users["owner"].id)
        with pytest.raises(UnauthorizedError) as exc_info:
            await core.grants.grant(board.id, users["bob"].id, AccessLevel.READ, users["alice"].id)
        assert "Only board owner or users with ADMIN access" in exc_info.value.message

    async def test_owner_cannot_be_granted(self, core, users, board):
        with pytest.raises(OwnerAccessError) as exc_info:
            await core.grants.grant(board.id, users["owner"].id, AccessLevel.READ, users["owner"].id)
        assert exc_info.value.message == "Cannot grant access to board owner"
        assert exc_info.value.status_code == 422
        assert await core.audit.history("BOARD", board.id) == []

    async def test_duplicate_grant_conflicts(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)
        with pytest.raises(ConflictError):
            await core.grants.grant(board.id, users["alice"].id, AccessLevel.WRITE, users["owner"].id)
        assert await core.grants.effective_level(board.id, users["alice"].id) == "READ"

    async def test_concurrent_duplicate_grant_conflicts(self, session, core, users, board):
        board_id, alice_id, owner_id = board.id, users["alice"].id, users["owner"].id
        await core.grants.grant(board_id, alice_id, AccessLevel.READ, owner_id)
        manager = AccessGrantManager(
            core.resolver,
            SQLAlchemyBoardRepository(session),
            StaleAccessRepository(session),
            SQLAlchemyUserRepository(session),
            core.audit,
        )

        with pytest.raises(ConflictError) as exc_info:
            await manager.grant(board_id, alice_id, AccessLevel.WRITE, owner_id)
        assert exc_info.value.status_code == 409

        # The transaction is still usable and the first grant stands.
        assert await core.grants.effective_level(board_id, alice_id) == "READ"
        assert len(await core.audit.history("BOARD", board_id)) == 1

    async def test_unknown_board(self, core, users):
        with pytest.raises(NotFoundError):
            await core.grants.grant(GUID.new(), users["alice"].id, AccessLevel.READ, users["owner"].id)

    async def test_unknown_target_user(self, core, users, board):
        with pytest.raises(NotFoundError) as exc_info:
            await core.grants.grant(board.id, GUID.new(), AccessLevel.READ, users["owner"].id)
        assert exc_info.value.message == "User not found"

    async def test_invalid_level(self, core, users, board):
        with pytest.raises(ValidationFailureError):
            await core.grants.grant(board.id, users["alice"].id, "OWNER", users["owner"].id)


class TestUpdate:
    async def test_change_level_is_audited(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)
        view = await core.grants.update(board.id, users["alice"].id, AccessLevel.ADMIN, users["owner"].id)
        assert view.access_level is AccessLevel.ADMIN

        latest = (await core.audit.history("BOARD", board.id))[0]
        assert latest.old_value == "READ"
        assert latest.new_value == "ADMIN for alice"

    async def test_same_level_is_still_audited(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.WRITE, users["owner"].id)
        view = await core.grants.update(board.id, users["alice"].id, "WRITE", users["owner"].id)
        assert view.access_level is AccessLevel.WRITE

        history = await core.audit.history("BOARD", board.id)
        assert len(history) == 2
        assert (history[0].old_value, history[0].new_value) == ("WRITE", "WRITE for alice")

    async def test_missing_grant(self, core, users, board):
        with pytest.raises(NotFoundError) as exc_info:
            await core.grants.update(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)
        assert exc_info.value.message == "Access not found"

    async def test_requires_authority(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.WRITE, users["owner"].id)
        with pytest.raises(UnauthorizedError):
            await core.grants.update(board.id, users["alice"].id, AccessLevel.ADMIN, users["alice"].id)


class TestRevoke:
    async def test_revoke_removes_access(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.WRITE, users["owner"].id)
        await core.grants.revoke(board.id, users["alice"].id, users["owner"].id)

        assert not await core.resolver.authorize(board, users["alice"].id, AccessLevel.READ)
        assert await core.grants.effective_level(board.id, users["alice"].id) is None

        latest = (await core.audit.history("BOARD", board.id))[0]
        assert latest.field_name == "access"
        assert latest.old_value == "WRITE"
        assert latest.new_value == "revoked"

    async def test_owner_cannot_be_revoked(self, core, users, board):
        with pytest.raises(OwnerAccessError) as exc_info:
            await core.grants.revoke(board.id, users["owner"].id, users["owner"].id)
        assert exc_info.value.message == "Cannot revoke access from board owner"

    async def test_missing_grant(self, core, users, board):
        with pytest.raises(NotFoundError):
            await core.grants.revoke(board.id, users["bob"].id, users["owner"].id)

    async def test_admin_may_revoke(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.ADMIN, users["owner"].id)
        await core.grants.grant(board.id, users["bob"].id, AccessLevel.READ, users["owner"].id)
        await core.grants.revoke(board.id, users["bob"].id, users["alice"].id)
        assert await core.grants.effective_level(board.id, users["bob"].id) is None


class TestListAndEffectiveLevel:
    async def test_list_accesses(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)
        await core.grants.grant(board.id, users["bob"].id, AccessLevel.ADMIN, users["owner"].id)

        listing = await core.grants.list_accesses(board.id, users["bob"].id)
        assert {(v.username, v.access_level) for v in listing} == {
            ("alice", AccessLevel.READ),
            ("bob", AccessLevel.ADMIN),
        }
        assert all(v.granted_by_username == "owner" for v in listing)

    async def test_list_requires_authority(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.WRITE, users["owner"].id)
        with pytest.raises(UnauthorizedError):
            await core.grants.list_accesses(board.id, users["alice"].id)

    async def test_effective_level(self, core, users, board):
        await core.grants.grant(board.id, users["alice"].id, AccessLevel.WRITE, users["owner"].id)
        assert await core.grants.effective_level(board.id, users["owner"].id) == OWNER_LABEL
        assert await core.grants.effective_level(board.id, users["alice"].id) == "WRITE"
        assert await core.grants.effective_level(board.id, users["carol"].id) is None

    async def test_effective_level_unknown_board(self, core, users):
        with pytest.raises(NotFoundError):
            await core.grants.effective_level(GUID.new(), users["owner"].id)
