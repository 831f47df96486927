from deckvault.services.deck_service import DeckService

__all__ = ["DeckService"]
