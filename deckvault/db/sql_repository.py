"""
SQL implementation of the deck persistence port.

Works on any SQLAlchemy async backend; production runs on PostgreSQL
(asyncpg) and the test suite on SQLite (aiosqlite).
"""

import logging
import re
import uuid
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import ColumnElement, case, func, literal, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from deckvault.db.repository import KEYWORD_WEIGHTS, DeckRepository
from deckvault.models.db import DeckColorDB, DeckDB
from deckvault.models.deck import (
    Deck,
    DeckDraft,
    DeckType,
    GameStage,
    MagicColor,
    TierRating,
    apply_deck_update,
    utc_now,
)
from deckvault.models.failure import ConflictError
from deckvault.models.query import (
    DeckFilters,
    PaginatedResult,
    PaginationOptions,
    SortField,
    SortOrder,
)

logger = logging.getLogger(__name__)

DECK_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")

# Tier letters sort alphabetically as A..D, S; rank them S..D instead
_TIER_ORDER = case(
    {tier.value: tier.rank for tier in TierRating},
    value=DeckDB.tier_rating,
    else_=len(TierRating),
)

SORT_COLUMNS: dict[SortField, ColumnElement[Any]] = {
    SortField.CREATED_AT: DeckDB.created_at,
    SortField.UPDATED_AT: DeckDB.updated_at,
    SortField.NAME: DeckDB.name,
    SortField.TIER_RATING: _TIER_ORDER,
    SortField.DECK_TYPE: DeckDB.deck_type,
    SortField.GAME_STAGE: DeckDB.game_stage,
    SortField.STORAGE_LOCATION: DeckDB.storage_location,
}


def is_valid_deck_id(deck_id: str) -> bool:
    """True if the value has the shape of a deck identifier."""
    return bool(deck_id) and DECK_ID_PATTERN.match(deck_id) is not None


def new_deck_id() -> str:
    return uuid.uuid4().hex


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def deck_to_model(db_deck: DeckDB) -> Deck:
    """Convert a database deck to a domain model."""
    return Deck(
        id=db_deck.id,
        name=db_deck.name,
        description=db_deck.description,
        colors=tuple(MagicColor(entry.color) for entry in db_deck.colors),
        tier_rating=TierRating(db_deck.tier_rating),
        deck_type=DeckType(db_deck.deck_type),
        game_stage=GameStage(db_deck.game_stage),
        has_card_sleeves=db_deck.has_card_sleeves,
        is_complete=db_deck.is_complete,
        storage_location=db_deck.storage_location,
        descriptive_image=db_deck.descriptive_image,
        planeswalker=db_deck.planeswalker,
        created_at=_as_utc(db_deck.created_at),
        updated_at=_as_utc(db_deck.updated_at),
    )


def _color_rows(colors: Sequence[MagicColor]) -> list[DeckColorDB]:
    return [DeckColorDB(position=index, color=color.value) for index, color in enumerate(colors)]


def build_filter_conditions(filters: DeckFilters | None) -> list[ColumnElement[bool]]:
    """
    Translate listing filters into WHERE conditions.

    Only filters that are set produce a condition; the caller AND-combines
    the result.
    """
    if filters is None:
        return []

    conditions: list[ColumnElement[bool]] = []
    if filters.deck_type is not None:
        conditions.append(DeckDB.deck_type == filters.deck_type.value)
    if filters.game_stage is not None:
        conditions.append(DeckDB.game_stage == filters.game_stage.value)
    if filters.tier_rating is not None:
        conditions.append(DeckDB.tier_rating == filters.tier_rating.value)
    if filters.is_complete is not None:
        conditions.append(DeckDB.is_complete == filters.is_complete)
    if filters.has_card_sleeves is not None:
        conditions.append(DeckDB.has_card_sleeves == filters.has_card_sleeves)
    if filters.storage_location:
        conditions.append(DeckDB.storage_location.icontains(filters.storage_location, autoescape=True))
    if filters.colors:
        wanted = sorted({color.value for color in filters.colors})
        conditions.append(DeckDB.colors.any(DeckColorDB.color.in_(wanted)))
    return conditions


def build_order_by(pagination: PaginationOptions) -> list[ColumnElement[Any]]:
    """ORDER BY for a listing; ties fall back to id so pages stay stable."""
    column = SORT_COLUMNS[pagination.sort_by]
    if pagination.sort_order is SortOrder.ASC:
        return [column.asc(), DeckDB.id.asc()]
    return [column.desc(), DeckDB.id.asc()]


def keyword_score(terms: Sequence[str]) -> ColumnElement[int]:
    """
    Relevance of a deck for the given keyword terms.

    Each term adds the field weight of every field containing it
    (case-insensitive), so a name hit outranks a description hit.
    """
    columns = {
        "name": DeckDB.name,
        "planeswalker": DeckDB.planeswalker,
        "description": DeckDB.description,
    }
    score: ColumnElement[int] = literal(0)
    for term in terms:
        for field_name, weight in KEYWORD_WEIGHTS.items():
            matched = columns[field_name].icontains(term, autoescape=True)
            score = score + case((matched, weight), else_=0)
    return score


class SqlDeckRepository(DeckRepository):
    """Deck repository bound to one async session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_row(self, deck_id: str) -> DeckDB | None:
        if not is_valid_deck_id(deck_id):
            return None
        return await self._session.get(DeckDB, deck_id.lower())

    async def _flush_or_conflict(self, name: str) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            logger.warning("Name constraint rejected deck %r", name)
            raise ConflictError("name", name) from e

    async def _select(self, *conditions: ColumnElement[bool]) -> list[Deck]:
        result = await self._session.execute(
            select(DeckDB).where(*conditions).order_by(DeckDB.created_at.desc(), DeckDB.id)
        )
        return [deck_to_model(row) for row in result.scalars().all()]

    # --- CRUD ---

    async def create(self, draft: DeckDraft) -> Deck:
        now = utc_now()
        db_deck = DeckDB(
            id=new_deck_id(),
            name=draft.name,
            description=draft.description,
            tier_rating=draft.tier_rating.value,
            deck_type=draft.deck_type.value,
            game_stage=draft.game_stage.value,
            has_card_sleeves=draft.has_card_sleeves,
            is_complete=draft.is_complete,
            storage_location=draft.storage_location,
            planeswalker=draft.planeswalker,
            descriptive_image=draft.descriptive_image,
            created_at=now,
            updated_at=now,
            colors=_color_rows(draft.colors),
        )
        self._session.add(db_deck)
        await self._flush_or_conflict(draft.name)
        return deck_to_model(db_deck)

    async def find_by_id(self, deck_id: str) -> Deck | None:
        db_deck = await self._get_row(deck_id)
        return deck_to_model(db_deck) if db_deck else None

    async def find_all(
        self,
        filters: DeckFilters | None = None,
        pagination: PaginationOptions | None = None,
    ) -> PaginatedResult[Deck]:
        options = pagination or PaginationOptions()
        conditions = build_filter_conditions(filters)

        total = await self._count(conditions)
        result = await self._session.execute(
            select(DeckDB)
            .where(*conditions)
            .order_by(*build_order_by(options))
            .offset(options.skip)
            .limit(options.limit)
        )
        decks = [deck_to_model(row) for row in result.scalars().all()]

        return PaginatedResult(data=decks, total=total, page=options.page, limit=options.limit)

    async def update(self, deck_id: str, changes: Mapping[str, Any]) -> Deck | None:
        db_deck = await self._get_row(deck_id)
        if db_deck is None:
            return None

        updated = apply_deck_update(deck_to_model(db_deck), changes)

        db_deck.name = updated.name
        db_deck.description = updated.description
        db_deck.tier_rating = updated.tier_rating.value
        db_deck.deck_type = updated.deck_type.value
        db_deck.game_stage = updated.game_stage.value
        db_deck.has_card_sleeves = updated.has_card_sleeves
        db_deck.is_complete = updated.is_complete
        db_deck.storage_location = updated.storage_location
        db_deck.planeswalker = updated.planeswalker
        db_deck.descriptive_image = updated.descriptive_image
        db_deck.updated_at = updated.updated_at
        if "colors" in changes:
            db_deck.colors = _color_rows(updated.colors)

        await self._flush_or_conflict(updated.name)
        return updated

    async def delete(self, deck_id: str) -> bool:
        db_deck = await self._get_row(deck_id)
        if db_deck is None:
            return False

        await self._session.delete(db_deck)
        await self._session.flush()
        return True

    # --- Domain lookups ---

    async def find_by_name(self, name: str) -> Deck | None:
        result = await self._session.execute(
            select(DeckDB).where(func.lower(DeckDB.name) == name.strip().lower())
        )
        db_deck = result.scalar_one_or_none()
        return deck_to_model(db_deck) if db_deck else None

    async def find_by_tier_rating(self, tier_rating: TierRating) -> list[Deck]:
        return await self._select(DeckDB.tier_rating == tier_rating.value)

    async def find_by_deck_type(self, deck_type: DeckType) -> list[Deck]:
        return await self._select(DeckDB.deck_type == deck_type.value)

    async def find_by_storage_location(self, location: str) -> list[Deck]:
        return await self._select(DeckDB.storage_location.icontains(location, autoescape=True))

    async def count_by_filters(self, filters: DeckFilters) -> int:
        return await self._count(build_filter_conditions(filters))

    async def _count(self, conditions: Sequence[ColumnElement[bool]]) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(DeckDB).where(*conditions)
        )
        return int(result.scalar_one())

    async def search_by_keyword(self, keyword: str) -> list[Deck]:
        terms = keyword.split()
        if not terms:
            return []

        score = keyword_score(terms)
        result = await self._session.execute(
            select(DeckDB)
            .where(score > 0)
            .order_by(score.desc(), DeckDB.created_at.desc(), DeckDB.id)
        )
        return [deck_to_model(row) for row in result.scalars().all()]

    async def find_incomplete(self) -> list[Deck]:
        return await self._select(DeckDB.is_complete.is_(False))

    async def find_by_colors(self, colors: Sequence[MagicColor]) -> list[Deck]:
        if not colors:
            return []
        return await self._select(*build_filter_conditions(DeckFilters(colors=tuple(colors))))
