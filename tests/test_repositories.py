"""Test repository layer: reads and writes against the board core tables."""

from __future__ import annotations

import pytest

from openflow_backend.core.enums import AccessLevel
from openflow_backend.db.types import GUID
from openflow_backend.repositories.access_repo import SQLAlchemyBoardAccessRepository
from openflow_backend.repositories.board_repo import SQLAlchemyBoardRepository
from openflow_backend.repositories.change_log_repo import SQLAlchemyChangeLogRepository
from openflow_backend.repositories.notification_repo import SQLAlchemyNotificationRepository
from openflow_backend.repositories.subscription_repo import SQLAlchemySubscriptionRepository
from openflow_backend.repositories.user_repo import SQLAlchemyUserRepository

pytestmark = pytest.mark.asyncio


class TestUserRepository:
    async def test_create_and_get(self, session):
        repo = SQLAlchemyUserRepository(session)
        user = await repo.create(username="alice", email="alice@example.com")
        assert user.id is not None

        fetched = await repo.get_by_id(user.id)
        assert fetched is not None
        assert fetched.email == "alice@example.com"

    async def test_get_by_username(self, session):
        repo = SQLAlchemyUserRepository(session)
        await repo.create(username="bob", display_name="Bob")
        fetched = await repo.get_by_username("bob")
        assert fetched is not None
        assert fetched.display_name == "Bob"

    async def test_get_usernames_skips_unknown_ids(self, session):
        repo = SQLAlchemyUserRepository(session)
        a = await repo.create(username="a")
        b = await repo.create(username="b")
        names = await repo.get_usernames([a.id, b.id, GUID.new(), None])
        assert names == {a.id: "a", b.id: "b"}

    async def test_get_usernames_empty(self, session):
        assert await SQLAlchemyUserRepository(session).get_usernames([]) == {}


class TestBoardRepository:
    async def test_list_owned_and_get_many(self, session, users):
        repo = SQLAlchemyBoardRepository(session)
        b1 = await repo.create(owner_id=users["alice"].id, name="One")
        b2 = await repo.create(owner_id=users["alice"].id, name="Two")
        await repo.create(owner_id=users["bob"].id, name="Other")

        owned = await repo.list_owned(users["alice"].id)
        assert {b.id for b in owned} == {b1.id, b2.id}

        many = await repo.get_many([b2.id, b1.id.upper()])
        assert {b.id for b in many} == {b1.id, b2.id}
        assert await repo.get_many([]) == []


class TestBoardAccessRepository:
    async def test_create_get_update_delete(self, session, users, board):
        repo = SQLAlchemyBoardAccessRepository(session)
        grant = await repo.create(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)

        fetched = await repo.get(board.id, users["alice"].id)
        assert fetched is grant
        assert fetched.access_level is AccessLevel.READ

        await repo.set_level(grant, AccessLevel.ADMIN)
        assert (await repo.get(board.id, users["alice"].id)).access_level is AccessLevel.ADMIN

        await repo.delete(grant)
        assert await repo.get(board.id, users["alice"].id) is None

    async def test_list_for_board_and_user(self, session, users, board):
        repo = SQLAlchemyBoardAccessRepository(session)
        await repo.create(board.id, users["alice"].id, AccessLevel.READ, users["owner"].id)
        await repo.create(board.id, users["bob"].id, AccessLevel.WRITE, users["owner"].id)

        assert len(await repo.list_for_board(board.id)) == 2
        mine = await repo.list_for_user(users["bob"].id)
        assert [g.board_id for g in mine] == [board.id]


class TestChangeLogRepository:
    async def test_append_and_list_newest_first(self, session, users):
        repo = SQLAlchemyChangeLogRepository(session)
        first = await repo.append("TASK", "7", users["alice"].id, "CREATE")
        second = await repo.append("TASK", "7", users["alice"].id, "UPDATE", "title", "a", "b")
        await repo.append("TASK", "8", users["bob"].id, "CREATE")

        entries = await repo.list_for_entity("TASK", "7")
        assert [e.id for e in entries] == [second.id, first.id]
        assert isinstance(first.id, int)

        by_actor = await repo.list_for_actor(users["bob"].id)
        assert [e.entity_id for e in by_actor] == ["8"]

    async def test_limit(self, session):
        repo = SQLAlchemyChangeLogRepository(session)
        for i in range(5):
            await repo.append("BOARD", "b1", None, "UPDATE", "name", str(i), str(i + 1))
        entries = await repo.list_for_entity("BOARD", "b1", limit=3)
        assert len(entries) == 3
        assert entries[0].new_value == "5"


class TestSubscriptionRepository:
    async def test_create_get_delete(self, session, users):
        repo = SQLAlchemySubscriptionRepository(session)
        sub = await repo.create(users["alice"].id, "TASK", "42", email_enabled=False, in_app_enabled=True)
        assert await repo.get(users["alice"].id, "TASK", "42") is sub

        assert await repo.delete(users["alice"].id, "TASK", "42") is True
        assert await repo.delete(users["alice"].id, "TASK", "42") is False
        assert await repo.get(users["alice"].id, "TASK", "42") is None

    async def test_delete_for_entity(self, session, users):
        repo = SQLAlchemySubscriptionRepository(session)
        await repo.create(users["alice"].id, "TASK", "42", True, True)
        await repo.create(users["bob"].id, "TASK", "42", True, True)
        await repo.create(users["bob"].id, "TASK", "43", True, True)

        assert await repo.delete_for_entity("TASK", "42") == 2
        assert await repo.list_for_entity("TASK", "42") == []
        assert len(await repo.list_for_user(users["bob"].id)) == 1


class TestNotificationRepository:
    async def test_create_list_and_mark(self, session, users):
        repo = SQLAlchemyNotificationRepository(session)
        uid = users["alice"].id
        n1 = await repo.create(uid, "TASK_UPDATED", "first", "TASK", "1")
        n2 = await repo.create(uid, "TASK_UPDATED", "second", "TASK", "1")

        assert [n.id for n in await repo.list_for_user(uid)] == [n2.id, n1.id]
        assert await repo.count_unread(uid) == 2

        await repo.mark_read(n1)
        assert [n.id for n in await repo.list_unread(uid)] == [n2.id]

        assert await repo.mark_all_read(uid) == 1
        assert await repo.count_unread(uid) == 0
        assert await repo.mark_all_read(uid) == 0
