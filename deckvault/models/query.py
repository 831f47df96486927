"""Filter and pagination value objects for deck listings."""

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from deckvault.config import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from deckvault.models.deck import DeckEnum, DeckType, GameStage, MagicColor, TierRating

T = TypeVar("T")
U = TypeVar("U")


class SortField(DeckEnum):
    """Deck attributes a listing can be ordered by (API names)."""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    NAME = "name"
    TIER_RATING = "tierRating"
    DECK_TYPE = "deckType"
    GAME_STAGE = "gameStage"
    STORAGE_LOCATION = "storageLocation"


class SortOrder(DeckEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class DeckFilters:
    """
    Optional listing predicates.

    Every field left as None imposes no constraint. The ones that are set
    are AND-combined. `storage_location` is a case-insensitive substring
    match, `colors` matches decks containing any of the given colors, all
    others are exact.
    """

    deck_type: DeckType | None = None
    game_stage: GameStage | None = None
    tier_rating: TierRating | None = None
    is_complete: bool | None = None
    has_card_sleeves: bool | None = None
    storage_location: str | None = None
    colors: tuple[MagicColor, ...] = ()


def _coerce_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class PaginationOptions:
    """Page window and ordering for a listing."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @classmethod
    def normalized(
        cls,
        page: Any = None,
        limit: Any = None,
        sort_by: SortField | None = None,
        sort_order: SortOrder | None = None,
    ) -> "PaginationOptions":
        """
        Build options from loosely typed input, clamping bad values.

        - page below 1 or not a number -> 1
        - limit outside [1, MAX_PAGE_LIMIT] or not a number -> DEFAULT_PAGE_LIMIT
        - missing sort -> newest first
        """
        parsed_page = _coerce_int(page)
        if parsed_page is None or parsed_page < 1:
            parsed_page = DEFAULT_PAGE

        parsed_limit = _coerce_int(limit)
        if parsed_limit is None or not 1 <= parsed_limit <= MAX_PAGE_LIMIT:
            parsed_limit = DEFAULT_PAGE_LIMIT

        return cls(
            page=parsed_page,
            limit=parsed_limit,
            sort_by=sort_by or SortField.CREATED_AT,
            sort_order=sort_order or SortOrder.DESC,
        )

    @property
    def skip(self) -> int:
        """Number of records before this page."""
        return (self.page - 1) * self.limit


def total_pages(total: int, limit: int) -> int:
    """Pages needed to show `total` records, `limit` per page."""
    if limit < 1:
        raise ValueError("limit must be positive")
    return math.ceil(total / limit)


@dataclass
class PaginatedResult(Generic[T]):
    """One page of a listing plus the size of the full result."""

    data: list[T] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.limit)

    def with_data(self, data: list[U]) -> "PaginatedResult[U]":
        """Same window, different items (used for response mapping)."""
        return PaginatedResult(data=data, total=self.total, page=self.page, limit=self.limit)
