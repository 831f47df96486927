"""
SQLAlchemy ORM models for persistent storage.

Models mirror the `Deck` dataclass but add database persistence.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from deckvault.models.deck import (
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PLANESWALKER_MAX_LENGTH,
    STORAGE_LOCATION_MAX_LENGTH,
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class DeckDB(Base):
    """
    A deck collection record stored in the database.

    Name uniqueness is enforced by the unique index on lower(name) declared
    below the class; it is the only guard against concurrent creates.
    """

    __tablename__ = "decks"
    __table_args__ = (
        Index("ix_decks_type_stage", "deck_type", "game_stage"),
        Index("ix_decks_tier_complete", "tier_rating", "is_complete"),
        Index("ix_decks_location_complete", "storage_location", "is_complete"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH))
    description: Mapped[str] = mapped_column(String(DESCRIPTION_MAX_LENGTH))
    tier_rating: Mapped[str] = mapped_column(String(1), index=True)
    deck_type: Mapped[str] = mapped_column(String(20), index=True)
    game_stage: Mapped[str] = mapped_column(String(20), index=True)
    has_card_sleeves: Mapped[bool] = mapped_column(Boolean, default=False)
    is_complete: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    storage_location: Mapped[str] = mapped_column(String(STORAGE_LOCATION_MAX_LENGTH), index=True)
    planeswalker: Mapped[str | None] = mapped_column(
        String(PLANESWALKER_MAX_LENGTH), nullable=True
    )
    descriptive_image: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps are assigned by the application so the domain model stays authoritative
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    # Colors keep their order and may repeat, so they live in their own table
    colors: Mapped[list["DeckColorDB"]] = relationship(
        back_populates="deck",
        cascade="all, delete-orphan",
        order_by="DeckColorDB.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<DeckDB(id={self.id}, name={self.name})>"


# Case-insensitive uniqueness of deck names
Index("uq_decks_name_lower", func.lower(DeckDB.name), unique=True)


class DeckColorDB(Base):
    """One color entry of a deck."""

    __tablename__ = "deck_colors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deck_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("decks.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer)
    color: Mapped[str] = mapped_column(String(1), index=True)

    # Relationship back to deck
    deck: Mapped["DeckDB"] = relationship(back_populates="colors")

    def __repr__(self) -> str:
        return f"<DeckColorDB(deck={self.deck_id}, color={self.color})>"
