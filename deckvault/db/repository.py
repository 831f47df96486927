"""
Persistence port for decks.

The service layer depends only on this contract; `SqlDeckRepository` is the
production implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from deckvault.models.deck import Deck, DeckDraft, DeckType, MagicColor, TierRating
from deckvault.models.query import DeckFilters, PaginatedResult, PaginationOptions

# Keyword relevance weight per matched field
KEYWORD_WEIGHTS: dict[str, int] = {
    "name": 3,
    "planeswalker": 2,
    "description": 1,
}


class DeckRepository(ABC):
    """Storage contract for deck records."""

    # --- CRUD ---

    @abstractmethod
    async def create(self, draft: DeckDraft) -> Deck:
        """
        Persist a new deck, assigning its id and timestamps.

        Raises:
            ConflictError: If the name collides case-insensitively
        """

    @abstractmethod
    async def find_by_id(self, deck_id: str) -> Deck | None:
        """Return the deck, or None if missing or the id is malformed."""

    @abstractmethod
    async def find_all(
        self,
        filters: DeckFilters | None = None,
        pagination: PaginationOptions | None = None,
    ) -> PaginatedResult[Deck]:
        """Return one page of decks matching every supplied filter."""

    @abstractmethod
    async def update(self, deck_id: str, changes: Mapping[str, Any]) -> Deck | None:
        """
        Merge changes into a deck and persist the new version.

        Returns None if the deck does not exist.

        Raises:
            ValidationError: If the merged deck is invalid
            ConflictError: If the new name collides with another deck
        """

    @abstractmethod
    async def delete(self, deck_id: str) -> bool:
        """Delete a deck. Returns True if a record was removed."""

    # --- Domain lookups ---

    @abstractmethod
    async def find_by_name(self, name: str) -> Deck | None:
        """Exact, case-insensitive name lookup."""

    @abstractmethod
    async def find_by_tier_rating(self, tier_rating: TierRating) -> list[Deck]: ...

    @abstractmethod
    async def find_by_deck_type(self, deck_type: DeckType) -> list[Deck]: ...

    @abstractmethod
    async def find_by_storage_location(self, location: str) -> list[Deck]:
        """Case-insensitive substring match on storage location."""

    @abstractmethod
    async def count_by_filters(self, filters: DeckFilters) -> int: ...

    @abstractmethod
    async def search_by_keyword(self, keyword: str) -> list[Deck]:
        """
        Relevance-ranked keyword search.

        Scores each deck with KEYWORD_WEIGHTS for every keyword term found
        in the corresponding field. Only decks scoring above zero are
        returned, best first.
        """

    @abstractmethod
    async def find_incomplete(self) -> list[Deck]: ...

    @abstractmethod
    async def find_by_colors(self, colors: Sequence[MagicColor]) -> list[Deck]:
        """Decks containing at least one of the given colors."""
