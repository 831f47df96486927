from deckvault.models.deck import (
    Deck,
    DeckDraft,
    DeckType,
    GameStage,
    MagicColor,
    TierRating,
    apply_deck_update,
    create_deck_draft,
    normalize_deck_name,
)
from deckvault.models.failure import (
    ApiResponse,
    ConflictError,
    DeckError,
    ErrorCode,
    FieldViolation,
    InternalError,
    NotFoundError,
    PaginationInfo,
    ValidationError,
)
from deckvault.models.query import (
    DeckFilters,
    PaginatedResult,
    PaginationOptions,
    SortField,
    SortOrder,
)
from deckvault.models.schemas import DeckCreateRequest, DeckResponse, DeckUpdateRequest

__all__ = [
    "ApiResponse",
    "ConflictError",
    "Deck",
    "DeckCreateRequest",
    "DeckDraft",
    "DeckError",
    "DeckFilters",
    "DeckResponse",
    "DeckType",
    "DeckUpdateRequest",
    "ErrorCode",
    "FieldViolation",
    "GameStage",
    "InternalError",
    "MagicColor",
    "NotFoundError",
    "PaginatedResult",
    "PaginationInfo",
    "PaginationOptions",
    "SortField",
    "SortOrder",
    "TierRating",
    "ValidationError",
    "apply_deck_update",
    "create_deck_draft",
    "normalize_deck_name",
]
