# tests/conftest.py
from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from motd_bot.database.queries import ReactionQueries
from motd_bot.services.errors import ExternalPostError
from motd_bot.services.motd_store import MOTDStore

EMOJI = "🦋"
BOT_ID = 1000


class FakePublisher:
    """Records publish calls; fails the first `failures` calls."""

    def __init__(self, failures: int = 0, delay: float = 0.0, error: type[Exception] = ExternalPostError):
        self.calls: list[str] = []
        self.failures = failures
        self.delay = delay
        self.error = error

    async def publish(self, text: str) -> str:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures > 0:
            self.failures -= 1
            raise self.error("platform unavailable")
        return f"at://did:plc:test/app.bsky.feed.post/{len(self.calls)}"


class FakeChat:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[tuple[int, str]] = []
        self.reactions: list[tuple[int, int, str]] = []

    async def send_message(self, channel_ref: int, text: str) -> None:
        if self.fail:
            raise RuntimeError("discord down")
        self.messages.append((channel_ref, text))

    async def add_reaction(self, channel_ref: int, message_ref: int, emoji: str) -> None:
        if self.fail:
            raise RuntimeError("discord down")
        self.reactions.append((channel_ref, message_ref, emoji))


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    await ReactionQueries.ensure_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def store(tmp_path) -> MOTDStore:
    return MOTDStore(tmp_path / "data" / "motd.json", "default message")


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()
