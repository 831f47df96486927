"""
FastAPI dependencies shared by the deck endpoints.

Query and path parameters arrive as plain strings. They are parsed here,
before any service code runs, and every invalid parameter is reported in
a single ValidationError.
"""

from typing import Annotated, TypeVar

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from deckvault.db.database import get_session
from deckvault.db.sql_repository import SqlDeckRepository, is_valid_deck_id
from deckvault.models.deck import (
    DeckEnum,
    DeckType,
    GameStage,
    MagicColor,
    TierRating,
    colors_from_values,
)
from deckvault.models.failure import FieldViolation, ValidationError
from deckvault.models.query import DeckFilters, PaginationOptions, SortField, SortOrder
from deckvault.services.deck_service import DeckService

E = TypeVar("E", bound=DeckEnum)

_TRUE_VALUES = {"true", "1"}
_FALSE_VALUES = {"false", "0"}


async def get_deck_service(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeckService:
    """Service bound to the request's database session."""
    return DeckService(SqlDeckRepository(session))


def valid_deck_id(deck_id: str) -> str:
    """
    Path parameter check for deck ids.

    Raises:
        ValidationError: If the id is not a 32-char hex string
    """
    if not is_valid_deck_id(deck_id):
        raise ValidationError.single("id", "Invalid deck ID format")
    return deck_id.lower()


class _ParamParser:
    """Collects violations while parsing several parameters."""

    def __init__(self) -> None:
        self.violations: list[FieldViolation] = []

    def member(self, enum_cls: type[E], value: str | None, field: str) -> E | None:
        if value is None or value == "":
            return None
        try:
            return enum_cls.parse(value, field)
        except ValidationError as e:
            self.violations.extend(e.details)
            return None

    def flag(self, value: str | None, field: str) -> bool | None:
        if value is None or value == "":
            return None
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        self.violations.append(FieldViolation(field=field, message="Must be true or false"))
        return None

    def colors(self, value: str | None) -> tuple[MagicColor, ...]:
        if not value:
            return ()
        raw = [part.strip().upper() for part in value.split(",") if part.strip()]
        try:
            return colors_from_values(raw)
        except ValidationError as e:
            self.violations.extend(e.details)
            return ()

    def raise_if_invalid(self) -> None:
        if self.violations:
            raise ValidationError(self.violations)


def deck_filters(
    deck_type: Annotated[str | None, Query(alias="deckType")] = None,
    game_stage: Annotated[str | None, Query(alias="gameStage")] = None,
    tier_rating: Annotated[str | None, Query(alias="tierRating")] = None,
    is_complete: Annotated[str | None, Query(alias="isComplete")] = None,
    has_card_sleeves: Annotated[str | None, Query(alias="hasCardSleeves")] = None,
    storage_location: Annotated[str | None, Query(alias="storageLocation")] = None,
    colors: Annotated[str | None, Query(description="Comma separated, e.g. R,G")] = None,
) -> DeckFilters:
    """Listing filters from query parameters."""
    parser = _ParamParser()
    filters = DeckFilters(
        deck_type=parser.member(DeckType, deck_type, "deckType"),
        game_stage=parser.member(GameStage, game_stage, "gameStage"),
        tier_rating=parser.member(TierRating, tier_rating, "tierRating"),
        is_complete=parser.flag(is_complete, "isComplete"),
        has_card_sleeves=parser.flag(has_card_sleeves, "hasCardSleeves"),
        storage_location=storage_location.strip() if storage_location else None,
        colors=parser.colors(colors),
    )
    parser.raise_if_invalid()
    return filters


def pagination_options(
    page: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str | None, Query(alias="sortOrder")] = None,
) -> PaginationOptions:
    """
    Pagination from query parameters.

    Bad page/limit values are clamped rather than rejected; unknown sort
    fields or directions are rejected.
    """
    parser = _ParamParser()
    parsed_sort_by = parser.member(SortField, sort_by, "sortBy")
    parsed_order = parser.member(SortOrder, sort_order.lower() if sort_order else None, "sortOrder")
    parser.raise_if_invalid()

    return PaginationOptions.normalized(
        page=page,
        limit=limit,
        sort_by=parsed_sort_by,
        sort_order=parsed_order,
    )


def search_keyword(keyword: Annotated[str | None, Query()] = None) -> str:
    """
    Required, non-blank search keyword.

    Raises:
        ValidationError: If the keyword is missing or blank
    """
    if keyword is None or not keyword.strip():
        raise ValidationError.single(
            "keyword", "Search keyword is required and must be a non-empty string"
        )
    return keyword.strip()


def color_list(colors: Annotated[str | None, Query()] = None) -> list[MagicColor]:
    """Required, comma separated list of colors."""
    parser = _ParamParser()
    parsed = parser.colors(colors)
    parser.raise_if_invalid()
    if not parsed:
        raise ValidationError.single("colors", "At least one color is required")
    return list(parsed)


DeckServiceDep = Annotated[DeckService, Depends(get_deck_service)]
DeckIdDep = Annotated[str, Depends(valid_deck_id)]
