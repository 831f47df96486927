"""
Deck service.

Business rules on top of the persistence port:
- deck names are unique, compared case-insensitively
- updates and deletes require the deck to exist

The name pre-checks only exist to produce a clear error early. Two
concurrent requests can both pass them; the storage layer's unique index
then rejects the second write with the same ConflictError.
"""

import logging

from deckvault.db.repository import DeckRepository
from deckvault.models.deck import MagicColor, create_deck_draft, same_deck_name
from deckvault.models.failure import ConflictError, NotFoundError
from deckvault.models.query import DeckFilters, PaginatedResult, PaginationOptions
from deckvault.models.schemas import DeckCreateRequest, DeckResponse, DeckUpdateRequest

logger = logging.getLogger(__name__)


class DeckService:
    """Deck use cases, bound to one repository."""

    def __init__(self, repository: DeckRepository) -> None:
        self._repository = repository

    async def create_deck(self, request: DeckCreateRequest) -> DeckResponse:
        """
        Create a new deck.

        Raises:
            ConflictError: If a deck with the same name (any case) exists
            ValidationError: If the request breaks a deck rule
        """
        existing = await self._repository.find_by_name(request.name)
        if existing is not None:
            logger.warning("Rejected duplicate deck name %r", request.name)
            raise ConflictError("name", request.name)

        draft = create_deck_draft(**request.draft_values())
        deck = await self._repository.create(draft)

        logger.info("Created deck %s (%s)", deck.id, deck.name)
        return DeckResponse.from_deck(deck)

    async def get_deck_by_id(self, deck_id: str) -> DeckResponse | None:
        deck = await self._repository.find_by_id(deck_id)
        return DeckResponse.from_deck(deck) if deck else None

    async def get_all_decks(
        self,
        filters: DeckFilters | None = None,
        pagination: PaginationOptions | None = None,
    ) -> PaginatedResult[DeckResponse]:
        result = await self._repository.find_all(filters, pagination)
        return result.with_data([DeckResponse.from_deck(deck) for deck in result.data])

    async def update_deck(self, deck_id: str, request: DeckUpdateRequest) -> DeckResponse:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If the deck does not exist
            ConflictError: If the new name belongs to another deck
            ValidationError: If the merged deck breaks a deck rule
        """
        existing = await self._repository.find_by_id(deck_id)
        if existing is None:
            logger.warning("Update of unknown deck %s", deck_id)
            raise NotFoundError(deck_id)

        changes = request.changes()
        new_name = changes.get("name")
        if new_name is not None and not same_deck_name(new_name, existing.name):
            clash = await self._repository.find_by_name(new_name)
            if clash is not None and clash.id != existing.id:
                logger.warning("Rejected rename of %s to taken name %r", deck_id, new_name)
                raise ConflictError("name", new_name)

        updated = await self._repository.update(deck_id, changes)
        if updated is None:
            # Deleted between the existence check and the write
            raise NotFoundError(deck_id)

        logger.info("Updated deck %s fields=%s", updated.id, sorted(changes))
        return DeckResponse.from_deck(updated)

    async def delete_deck(self, deck_id: str) -> bool:
        """
        Delete a deck.

        Raises:
            NotFoundError: If the deck does not exist
        """
        existing = await self._repository.find_by_id(deck_id)
        if existing is None:
            logger.warning("Delete of unknown deck %s", deck_id)
            raise NotFoundError(deck_id)

        deleted = await self._repository.delete(deck_id)
        if not deleted:
            raise NotFoundError(deck_id)

        logger.info("Deleted deck %s (%s)", existing.id, existing.name)
        return True

    async def search_decks(self, keyword: str) -> list[DeckResponse]:
        decks = await self._repository.search_by_keyword(keyword)
        return [DeckResponse.from_deck(deck) for deck in decks]

    async def get_incomplete_decks(self) -> list[DeckResponse]:
        decks = await self._repository.find_incomplete()
        return [DeckResponse.from_deck(deck) for deck in decks]

    async def get_decks_by_storage_location(self, location: str) -> list[DeckResponse]:
        decks = await self._repository.find_by_storage_location(location)
        return [DeckResponse.from_deck(deck) for deck in decks]

    async def get_decks_by_colors(self, colors: list[MagicColor]) -> list[DeckResponse]:
        decks = await self._repository.find_by_colors(colors)
        return [DeckResponse.from_deck(deck) for deck in decks]
