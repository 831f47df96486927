from deckvault.db.database import Database, get_session
from deckvault.db.repository import KEYWORD_WEIGHTS, DeckRepository
from deckvault.db.sql_repository import (
    SqlDeckRepository,
    build_filter_conditions,
    deck_to_model,
    is_valid_deck_id,
)

__all__ = [
    "KEYWORD_WEIGHTS",
    "Database",
    "DeckRepository",
    "SqlDeckRepository",
    "build_filter_conditions",
    "deck_to_model",
    "get_session",
    "is_valid_deck_id",
]
