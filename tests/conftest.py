from collections.abc import Callable
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from deckvault.models.db import Base
from deckvault.models.deck import DeckDraft, create_deck_draft
from deckvault.models.schemas import DeckCreateRequest

DeckPayloadFactory = Callable[..., dict[str, Any]]


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def deck_payload() -> DeckPayloadFactory:
    """Factory for valid create-deck request bodies (camelCase, as sent over HTTP)."""

    def make(**overrides: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": "Lightning Aggro",
            "description": "Fast red deck that burns the opponent out",
            "colors": ["R"],
            "tierRating": "S",
            "hasCardSleeves": True,
            "isComplete": True,
            "deckType": "AGGRO",
            "gameStage": "EARLY",
            "storageLocation": "Shelf A - Box 1",
        }
        payload.update(overrides)
        return payload

    return make


@pytest.fixture
def create_request(deck_payload: DeckPayloadFactory) -> Callable[..., DeckCreateRequest]:
    """Factory for validated create requests."""

    def make(**overrides: Any) -> DeckCreateRequest:
        return DeckCreateRequest.model_validate(deck_payload(**overrides))

    return make


@pytest.fixture
def make_draft(create_request) -> Callable[..., DeckDraft]:
    """Factory for validated drafts, ready for the repository."""

    def make(**overrides: Any) -> DeckDraft:
        return create_deck_draft(**create_request(**overrides).draft_values())

    return make
