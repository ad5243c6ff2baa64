"""Test fixtures: async SQLite in-memory database and a recording mail gateway."""

from __future__ import annotations

import pytest
import pytest_asyncio

from openflow_backend.db.models import Base
from openflow_backend.db.session import make_engine, make_session_factory
from openflow_backend.mail.gateway import MailResult
from openflow_backend.repositories.board_repo import SQLAlchemyBoardRepository
from openflow_backend.repositories.user_repo import SQLAlchemyUserRepository
from openflow_backend.services import build_core


class RecordingMailGateway:
    """Collects sends instead of delivering them; can be told to fail per address."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set[str] = set()
        self.raise_for: set[str] = set()

    async def send_notification(self, to_email, notification_type, message, reference_type, reference_id):
        if to_email in self.raise_for:
            raise ConnectionError("smtp unreachable")
        if to_email in self.fail_for:
            return MailResult.failed("550 mailbox unavailable")
        self.sent.append(
            {
                "to_email": to_email,
                "type": notification_type,
                "message": message,
                "reference_type": reference_type,
                "reference_id": reference_id,
            }
        )
        return MailResult.sent()

    @property
    def recipients(self) -> list[str]:
        return [m["to_email"] for m in self.sent]


@pytest_asyncio.fixture
async def engine():
    """Create an async in-memory SQLite engine for tests."""
    eng = make_engine("sqlite+aiosqlite://")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    """Provide a single async session for test use."""
    async with session_factory() as sess:
        async with sess.begin():
            yield sess


@pytest.fixture
def mail():
    return RecordingMailGateway()


@pytest.fixture
def core(session, mail):
    return build_core(session, mail)


@pytest_asyncio.fixture
async def users(session):
    repo = SQLAlchemyUserRepository(session)
    return {
        name: await repo.create(username=name, email=f"{name}@example.com", display_name=name.title())
        for name in ("owner", "alice", "bob", "carol")
    }


@pytest_asyncio.fixture
async def board(session, users):
    return await SQLAlchemyBoardRepository(session).create(owner_id=users["owner"].id, name="Roadmap")
