"""
Deck entity and its validation rules.

A `Deck` is immutable. New decks start life as a `DeckDraft` produced by
`create_deck_draft()`, and changes are applied with `apply_deck_update()`,
which returns a new `Deck` instead of mutating the old one.

Both entry points validate the complete result and raise `ValidationError`
listing every violated rule, not just the first.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import MISSING, dataclass, fields, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, TypeVar

from deckvault.models.failure import FieldViolation, ValidationError

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
STORAGE_LOCATION_MAX_LENGTH = 100
PLANESWALKER_MAX_LENGTH = 50
MAX_COLORS = 5

IMAGE_URL_PATTERN = re.compile(r"^https?://.+\.(jpg|jpeg|png|gif|webp)$", re.IGNORECASE)

# Internal attribute name -> name exposed over the API
EXTERNAL_FIELD_NAMES: dict[str, str] = {
    "id": "id",
    "name": "name",
    "description": "description",
    "colors": "colors",
    "tier_rating": "tierRating",
    "deck_type": "deckType",
    "game_stage": "gameStage",
    "has_card_sleeves": "hasCardSleeves",
    "is_complete": "isComplete",
    "storage_location": "storageLocation",
    "planeswalker": "planeswalker",
    "descriptive_image": "descriptiveImage",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})

E = TypeVar("E", bound="DeckEnum")


class DeckEnum(str, Enum):
    """String enum with a strict parser for untyped boundary input."""

    @classmethod
    def parse(cls: type[E], value: Any, field_name: str) -> E:
        """
        Convert raw input into a member of this enum.

        Raises:
            ValidationError: If the value is not one of the members' values
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        allowed = ", ".join(member.value for member in cls)
        raise ValidationError.single(field_name, f"Must be one of: {allowed}")


class MagicColor(DeckEnum):
    WHITE = "W"
    BLUE = "U"
    BLACK = "B"
    RED = "R"
    GREEN = "G"
    COLORLESS = "C"


class TierRating(DeckEnum):
    """Competitive tier, best first."""

    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def rank(self) -> int:
        """0 for the best tier, increasing as the tier gets worse."""
        return list(TierRating).index(self)


class DeckType(DeckEnum):
    AGGRO = "AGGRO"
    COMBO = "COMBO"
    CONTROL = "CONTROL"


class GameStage(DeckEnum):
    EARLY = "EARLY"
    MID = "MID"
    LATE = "LATE"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_deck_name(name: str) -> str:
    """
    Title-case a deck name word by word.

    Words are split on single spaces; each word gets an upper-case first
    character and a lower-cased remainder ("lIGHTNING aggro" -> "Lightning Aggro").
    """
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split(" "))


@dataclass(frozen=True)
class DeckDraft:
    """
    A validated deck that has not been persisted yet.

    Has no id or timestamps; the persistence layer assigns those.
    """

    name: str
    description: str
    colors: tuple[MagicColor, ...]
    tier_rating: TierRating
    deck_type: DeckType
    game_stage: GameStage
    has_card_sleeves: bool
    is_complete: bool
    storage_location: str
    descriptive_image: str | None = None
    planeswalker: str | None = None


@dataclass(frozen=True)
class Deck:
    """
    A persisted deck collection record.

    Attributes:
        id: 32-char lowercase hex identifier
        name: Unique (case-insensitive), title-cased name
        description: Free text, 1-500 chars
        colors: 1-5 colors; duplicates are kept as given
        tier_rating: Competitive tier
        deck_type: Play style
        game_stage: Stage of the game the deck aims to win in
        has_card_sleeves: Whether the physical deck is sleeved
        is_complete: Whether every card of the list is owned
        storage_location: Where the physical deck is kept
        descriptive_image: Optional image URL
        planeswalker: Optional signature planeswalker
        created_at: Creation time (UTC), never changes
        updated_at: Last mutation time (UTC), strictly increasing
    """

    id: str
    name: str
    description: str
    colors: tuple[MagicColor, ...]
    tier_rating: TierRating
    deck_type: DeckType
    game_stage: GameStage
    has_card_sleeves: bool
    is_complete: bool
    storage_location: str
    created_at: datetime
    updated_at: datetime
    descriptive_image: str | None = None
    planeswalker: str | None = None


DRAFT_FIELDS = frozenset(f.name for f in fields(DeckDraft))


# --- Validation ---


def _check_text(
    violations: list[FieldViolation],
    attr: str,
    value: Any,
    max_length: int,
    required: bool = True,
) -> None:
    name = EXTERNAL_FIELD_NAMES[attr]
    if value is None:
        if required:
            violations.append(FieldViolation(field=name, message=f"{name} is required"))
        return
    if not isinstance(value, str):
        violations.append(FieldViolation(field=name, message=f"{name} must be a string"))
        return
    if required and not value.strip():
        violations.append(FieldViolation(field=name, message=f"{name} is required"))
    elif len(value) > max_length:
        violations.append(
            FieldViolation(field=name, message=f"{name} cannot exceed {max_length} characters")
        )


def _check_member(
    violations: list[FieldViolation], attr: str, value: Any, enum_cls: type[DeckEnum]
) -> None:
    if not isinstance(value, enum_cls):
        allowed = ", ".join(member.value for member in enum_cls)
        violations.append(
            FieldViolation(field=EXTERNAL_FIELD_NAMES[attr], message=f"Must be one of: {allowed}")
        )


def _check_flag(violations: list[FieldViolation], attr: str, value: Any) -> None:
    if not isinstance(value, bool):
        name = EXTERNAL_FIELD_NAMES[attr]
        violations.append(FieldViolation(field=name, message=f"{name} must be a boolean"))


def find_violations(deck: DeckDraft | Deck) -> list[FieldViolation]:
    """Check every field rule and return all violations found."""
    violations: list[FieldViolation] = []

    _check_text(violations, "name", deck.name, NAME_MAX_LENGTH)
    _check_text(violations, "description", deck.description, DESCRIPTION_MAX_LENGTH)
    _check_text(violations, "storage_location", deck.storage_location, STORAGE_LOCATION_MAX_LENGTH)
    _check_text(
        violations, "planeswalker", deck.planeswalker, PLANESWALKER_MAX_LENGTH, required=False
    )

    if not deck.colors:
        violations.append(FieldViolation(field="colors", message="At least one color is required"))
    elif len(deck.colors) > MAX_COLORS:
        violations.append(
            FieldViolation(field="colors", message=f"A deck cannot have more than {MAX_COLORS} colors")
        )
    else:
        for index, color in enumerate(deck.colors):
            if not isinstance(color, MagicColor):
                violations.append(
                    FieldViolation(field=f"colors.{index}", message="Invalid magic color")
                )

    _check_member(violations, "tier_rating", deck.tier_rating, TierRating)
    _check_member(violations, "deck_type", deck.deck_type, DeckType)
    _check_member(violations, "game_stage", deck.game_stage, GameStage)
    _check_flag(violations, "has_card_sleeves", deck.has_card_sleeves)
    _check_flag(violations, "is_complete", deck.is_complete)

    image = deck.descriptive_image
    if image is not None and (not isinstance(image, str) or not IMAGE_URL_PATTERN.match(image)):
        violations.append(
            FieldViolation(field="descriptiveImage", message="Invalid image URL format")
        )

    return violations


def _normalize(values: Mapping[str, Any]) -> dict[str, Any]:
    """Trim text fields, title-case the name and freeze the colors."""
    normalized = dict(values)
    for attr in ("name", "description", "storage_location", "planeswalker", "descriptive_image"):
        value = normalized.get(attr)
        if isinstance(value, str):
            normalized[attr] = value.strip()
    if isinstance(normalized.get("name"), str):
        normalized["name"] = normalize_deck_name(normalized["name"])
    if "colors" in normalized and normalized["colors"] is not None:
        normalized["colors"] = tuple(normalized["colors"])
    return normalized


def create_deck_draft(**values: Any) -> DeckDraft:
    """
    Build and validate a new deck.

    Raises:
        ValidationError: If a required field is missing or any rule fails
    """
    unknown = set(values) - DRAFT_FIELDS
    if unknown:
        raise ValidationError(
            [FieldViolation(field=name, message="Unknown field") for name in sorted(unknown)]
        )

    required = [f.name for f in fields(DeckDraft) if f.default is MISSING]
    missing = [
        FieldViolation(
            field=EXTERNAL_FIELD_NAMES[name],
            message=f"{EXTERNAL_FIELD_NAMES[name]} is required",
        )
        for name in required
        if name not in values
    ]
    if missing:
        raise ValidationError(missing)

    draft = DeckDraft(**_normalize(values))
    violations = find_violations(draft)
    if violations:
        raise ValidationError(violations)
    return draft


def apply_deck_update(
    deck: Deck,
    changes: Mapping[str, Any],
    now: datetime | None = None,
) -> Deck:
    """
    Merge partial changes into a deck and return the new version.

    The original deck is left untouched. `updated_at` of the result is
    always strictly later than the original's, even when the clock has
    not advanced.

    Raises:
        ValidationError: If the changes touch immutable/unknown fields or
            the merged deck breaks any rule
    """
    forbidden = sorted(set(changes) & IMMUTABLE_FIELDS)
    unknown = sorted(set(changes) - DRAFT_FIELDS - IMMUTABLE_FIELDS)
    if forbidden or unknown:
        raise ValidationError(
            [
                FieldViolation(field=EXTERNAL_FIELD_NAMES[name], message="Field cannot be modified")
                for name in forbidden
            ]
            + [FieldViolation(field=name, message="Unknown field") for name in unknown]
        )

    timestamp = now or utc_now()
    minimum = deck.updated_at + timedelta(microseconds=1)
    updated = replace(deck, **_normalize(changes), updated_at=max(timestamp, minimum))

    violations = find_violations(updated)
    if violations:
        raise ValidationError(violations)
    return updated


def same_deck_name(left: str, right: str) -> bool:
    """Case-insensitive name comparison after normalization."""
    return normalize_deck_name(left.strip()).lower() == normalize_deck_name(right.strip()).lower()


def colors_from_values(values: Iterable[Any]) -> tuple[MagicColor, ...]:
    """Parse raw color values, collecting every invalid entry."""
    parsed: list[MagicColor] = []
    violations: list[FieldViolation] = []
    for index, value in enumerate(values):
        try:
            parsed.append(MagicColor.parse(value, f"colors.{index}"))
        except ValidationError as e:
            violations.extend(e.details)
    if violations:
        raise ValidationError(violations)
    return tuple(parsed)
