"""
Request and response shapes exchanged with API clients.

Field names are camelCase on the wire and snake_case in Python. Unknown
request fields are ignored, and pydantic reports every invalid field at once.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from deckvault.models.deck import (
    DESCRIPTION_MAX_LENGTH,
    IMAGE_URL_PATTERN,
    MAX_COLORS,
    NAME_MAX_LENGTH,
    PLANESWALKER_MAX_LENGTH,
    STORAGE_LOCATION_MAX_LENGTH,
    Deck,
    DeckType,
    GameStage,
    MagicColor,
    TierRating,
)


class CamelModel(BaseModel):
    """Base model using camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


def _check_image_url(value: str) -> str:
    if not IMAGE_URL_PATTERN.match(value):
        raise ValueError(
            "Descriptive image must be an http(s) URL ending in .jpg, .jpeg, .png, .gif or .webp"
        )
    return value


ImageUrl = Annotated[str, AfterValidator(_check_image_url)]


class DeckCreateRequest(CamelModel):
    """Request body for creating a deck. All fields but the last two are required."""

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH, examples=["Lightning Aggro"])
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    colors: list[MagicColor] = Field(..., min_length=1, max_length=MAX_COLORS, examples=[["R"]])
    tier_rating: TierRating
    # JSON true/false only; "yes", 1 and "true" are rejected
    has_card_sleeves: StrictBool
    is_complete: StrictBool
    deck_type: DeckType
    game_stage: GameStage
    storage_location: str = Field(..., min_length=1, max_length=STORAGE_LOCATION_MAX_LENGTH)
    descriptive_image: ImageUrl | None = None
    planeswalker: str | None = Field(default=None, min_length=1, max_length=PLANESWALKER_MAX_LENGTH)

    def draft_values(self) -> dict[str, Any]:
        """Values for `create_deck_draft()`."""
        return self.model_dump()


# Fields a deck can never be without; sending null for them is an error
_NON_NULLABLE_FIELDS = (
    "name",
    "description",
    "colors",
    "tier_rating",
    "has_card_sleeves",
    "is_complete",
    "deck_type",
    "game_stage",
    "storage_location",
)


class DeckUpdateRequest(CamelModel):
    """
    Request body for a partial update.

    Only the fields present in the body are changed. At least one known
    field is required; `null` clears `planeswalker` or `descriptiveImage`.
    """

    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    colors: list[MagicColor] | None = Field(default=None, min_length=1, max_length=MAX_COLORS)
    tier_rating: TierRating | None = None
    has_card_sleeves: StrictBool | None = None
    is_complete: StrictBool | None = None
    deck_type: DeckType | None = None
    game_stage: GameStage | None = None
    storage_location: str | None = Field(
        default=None, min_length=1, max_length=STORAGE_LOCATION_MAX_LENGTH
    )
    descriptive_image: ImageUrl | None = None
    planeswalker: str | None = Field(default=None, min_length=1, max_length=PLANESWALKER_MAX_LENGTH)

    @field_validator(*_NON_NULLABLE_FIELDS, mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        # Only runs for values present in the body, never for defaults
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @model_validator(mode="after")
    def require_a_field(self) -> "DeckUpdateRequest":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class DeckResponse(CamelModel):
    """A deck as returned to clients."""

    id: str
    name: str
    description: str
    colors: list[MagicColor]
    tier_rating: TierRating
    has_card_sleeves: bool
    is_complete: bool
    deck_type: DeckType
    game_stage: GameStage
    storage_location: str
    descriptive_image: str | None = None
    planeswalker: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_deck(cls, deck: Deck) -> "DeckResponse":
        return cls(
            id=deck.id,
            name=deck.name,
            description=deck.description,
            colors=list(deck.colors),
            tier_rating=deck.tier_rating,
            has_card_sleeves=deck.has_card_sleeves,
            is_complete=deck.is_complete,
            deck_type=deck.deck_type,
            game_stage=deck.game_stage,
            storage_location=deck.storage_location,
            descriptive_image=deck.descriptive_image,
            planeswalker=deck.planeswalker,
            created_at=deck.created_at,
            updated_at=deck.updated_at,
        )
