"""
Deck API endpoints.

CRUD plus keyword search and a few canned listings. Every response uses the
`ApiResponse` envelope; failures are raised as DeckError subclasses and
rendered by the handlers in `deckvault.api.errors`.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from deckvault.api.dependencies import (
    DeckIdDep,
    DeckServiceDep,
    color_list,
    deck_filters,
    pagination_options,
    search_keyword,
)
from deckvault.models.deck import MagicColor
from deckvault.models.failure import ApiResponse, NotFoundError, PaginationInfo, ValidationError
from deckvault.models.query import DeckFilters, PaginationOptions
from deckvault.models.schemas import DeckCreateRequest, DeckResponse, DeckUpdateRequest

router = APIRouter(prefix="/decks", tags=["decks"])


@router.post(
    "",
    response_model=ApiResponse[DeckResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_deck(
    request: DeckCreateRequest,
    service: DeckServiceDep,
) -> ApiResponse[DeckResponse]:
    """
    Create a deck.

    The name is stored title-cased and must be unique regardless of case
    (409 CONFLICT otherwise).
    """
    deck = await service.create_deck(request)
    return ApiResponse.ok(deck, message="Deck created successfully")


@router.get(
    "",
    response_model=ApiResponse[list[DeckResponse]],
    response_model_exclude_none=True,
)
async def list_decks(
    service: DeckServiceDep,
    filters: Annotated[DeckFilters, Depends(deck_filters)],
    pagination: Annotated[PaginationOptions, Depends(pagination_options)],
) -> ApiResponse[list[DeckResponse]]:
    """
    List decks matching all given filters, one page at a time.

    Defaults to 10 decks per page, newest first.
    """
    result = await service.get_all_decks(filters, pagination)
    return ApiResponse.ok(
        result.data,
        pagination=PaginationInfo(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get(
    "/search/keyword",
    response_model=ApiResponse[list[DeckResponse]],
    response_model_exclude_none=True,
)
async def search_decks(
    service: DeckServiceDep,
    keyword: Annotated[str, Depends(search_keyword)],
) -> ApiResponse[list[DeckResponse]]:
    """
    Keyword search over name, planeswalker and description.

    Name matches rank above planeswalker matches, which rank above
    description matches.
    """
    decks = await service.search_decks(keyword)
    return ApiResponse.ok(decks, count=len(decks))


@router.get(
    "/filter/incomplete",
    response_model=ApiResponse[list[DeckResponse]],
    response_model_exclude_none=True,
)
async def get_incomplete_decks(service: DeckServiceDep) -> ApiResponse[list[DeckResponse]]:
    """Decks that are still missing cards."""
    decks = await service.get_incomplete_decks()
    return ApiResponse.ok(decks, count=len(decks))


@router.get(
    "/filter/colors",
    response_model=ApiResponse[list[DeckResponse]],
    response_model_exclude_none=True,
)
async def get_decks_by_colors(
    service: DeckServiceDep,
    colors: Annotated[list[MagicColor], Depends(color_list)],
) -> ApiResponse[list[DeckResponse]]:
    """Decks playing at least one of the given colors (e.g. ?colors=R,G)."""
    decks = await service.get_decks_by_colors(colors)
    return ApiResponse.ok(decks, count=len(decks))


@router.get(
    "/location/{location}",
    response_model=ApiResponse[list[DeckResponse]],
    response_model_exclude_none=True,
)
async def get_decks_by_location(
    location: str,
    service: DeckServiceDep,
) -> ApiResponse[list[DeckResponse]]:
    """Decks whose storage location contains the given text (any case)."""
    if not location.strip():
        raise ValidationError.single("location", "Storage location is required")
    decks = await service.get_decks_by_storage_location(location.strip())
    return ApiResponse.ok(decks, count=len(decks))


@router.get(
    "/{deck_id}",
    response_model=ApiResponse[DeckResponse],
    response_model_exclude_none=True,
)
async def get_deck(deck_id: DeckIdDep, service: DeckServiceDep) -> ApiResponse[DeckResponse]:
    """Get a single deck. Returns 404 if it does not exist."""
    deck = await service.get_deck_by_id(deck_id)
    if deck is None:
        raise NotFoundError(deck_id)
    return ApiResponse.ok(deck)


@router.put(
    "/{deck_id}",
    response_model=ApiResponse[DeckResponse],
    response_model_exclude_none=True,
)
async def update_deck(
    deck_id: DeckIdDep,
    request: DeckUpdateRequest,
    service: DeckServiceDep,
) -> ApiResponse[DeckResponse]:
    """
    Partially update a deck.

    Only the fields present in the body change; createdAt and id never do.
    """
    deck = await service.update_deck(deck_id, request)
    return ApiResponse.ok(deck, message="Deck updated successfully")


@router.delete(
    "/{deck_id}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
)
async def delete_deck(deck_id: DeckIdDep, service: DeckServiceDep) -> ApiResponse[None]:
    """Delete a deck permanently. Returns 404 if it does not exist."""
    await service.delete_deck(deck_id)
    return ApiResponse.ok(message="Deck deleted successfully")
