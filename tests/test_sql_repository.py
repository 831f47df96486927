"""Tests for the SQL deck repository."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from deckvault.db.sql_repository import SqlDeckRepository, is_valid_deck_id
from deckvault.models.deck import Deck, DeckType, GameStage, MagicColor, TierRating
from deckvault.models.failure import ConflictError, ValidationError
from deckvault.models.query import DeckFilters, PaginationOptions, SortField, SortOrder


@pytest.fixture
def repository(session: AsyncSession) -> SqlDeckRepository:
    return SqlDeckRepository(session)


@pytest.fixture
async def seeded_decks(repository: SqlDeckRepository, make_draft) -> list[Deck]:
    """Four decks covering every filter dimension."""
    drafts = [
        make_draft(),
        make_draft(
            name="Azorius Control",
            description="Counter everything, then win late",
            colors=["W", "U"],
            tierRating="A",
            deckType="CONTROL",
            gameStage="LATE",
            isComplete=False,
            storageLocation="Shelf B - Box 2",
            planeswalker="Jace",
        ),
        make_draft(
            name="Elf Combo",
            description="Lots of lightning fast mana",
            colors=["G"],
            tierRating="B",
            deckType="COMBO",
            gameStage="MID",
            hasCardSleeves=False,
            storageLocation="Drawer 100%",
        ),
        make_draft(
            name="Gruul Stompy",
            description="Big creatures",
            colors=["R", "G"],
            tierRating="S",
            deckType="AGGRO",
            gameStage="MID",
            isComplete=False,
            storageLocation="shelf a - box 3",
        ),
    ]
    return [await repository.create(draft) for draft in drafts]


def names(decks) -> list[str]:
    return [deck.name for deck in decks]


class TestIdentifiers:
    @pytest.mark.parametrize("deck_id", ["a" * 32, "0123456789ABCDEFabcdef0123456789"])
    def test_valid_ids(self, deck_id: str) -> None:
        assert is_valid_deck_id(deck_id)

    @pytest.mark.parametrize("deck_id", ["", "a" * 31, "a" * 33, "g" * 32, "not-a-valid-id"])
    def test_invalid_ids(self, deck_id: str) -> None:
        assert not is_valid_deck_id(deck_id)


class TestCrud:
    async def test_create_assigns_id_and_timestamps(
        self, repository: SqlDeckRepository, make_draft
    ) -> None:
        deck = await repository.create(make_draft(planeswalker="Chandra"))

        assert is_valid_deck_id(deck.id)
        assert deck.created_at == deck.updated_at
        assert deck.created_at.tzinfo is not None
        assert deck.planeswalker == "Chandra"

    async def test_find_by_id_round_trip(
        self, repository: SqlDeckRepository, make_draft
    ) -> None:
        created = await repository.create(make_draft(colors=["R", "G", "R"]))

        found = await repository.find_by_id(created.id)

        assert found is not None
        assert found.name == "Lightning Aggro"
        assert found.colors == (MagicColor.RED, MagicColor.GREEN, MagicColor.RED)

    async def test_find_by_id_ignores_case(
        self, repository: SqlDeckRepository, make_draft
    ) -> None:
        created = await repository.create(make_draft())
        assert await repository.find_by_id(created.id.upper()) is not None

    async def test_find_by_id_missing(self, repository: SqlDeckRepository) -> None:
        assert await repository.find_by_id("f" * 32) is None

    async def test_find_by_id_malformed(self, repository: SqlDeckRepository) -> None:
        assert await repository.find_by_id("not-a-valid-id") is None

    async def test_duplicate_name_conflicts(
        self, session: AsyncSession, repository: SqlDeckRepository, make_draft
    ) -> None:
        await repository.create(make_draft())
        await session.commit()

        with pytest.raises(ConflictError):
            await repository.create(make_draft(name="LIGHTNING AGGRO"))

        assert await repository.count_by_filters(DeckFilters()) == 1

    async def test_update(self, repository: SqlDeckRepository, make_draft) -> None:
        created = await repository.create(make_draft())

        updated = await repository.update(
            created.id, {"is_complete": False, "colors": [MagicColor.BLUE]}
        )

        assert updated is not None
        assert updated.is_complete is False
        assert updated.updated_at > created.updated_at
        assert updated.created_at == created.created_at

        reloaded = await repository.find_by_id(created.id)
        assert reloaded is not None
        assert reloaded.colors == (MagicColor.BLUE,)
        assert reloaded.is_complete is False

    async def test_update_keeps_colors_when_not_changed(
        self, repository: SqlDeckRepository, make_draft
    ) -> None:
        created = await repository.create(make_draft(colors=["R", "W"]))

        await repository.update(created.id, {"description": "New"})

        reloaded = await repository.find_by_id(created.id)
        assert reloaded is not None
        assert reloaded.colors == (MagicColor.RED, MagicColor.WHITE)

    async def test_update_missing(self, repository: SqlDeckRepository) -> None:
        assert await repository.update("f" * 32, {"description": "New"}) is None

    async def test_update_invalid_merge(
        self, repository: SqlDeckRepository, make_draft
    ) -> None:
        created = await repository.create(make_draft())
        with pytest.raises(ValidationError):
            await repository.update(created.id, {"colors": []})

    async def test_delete(self, repository: SqlDeckRepository, make_draft) -> None:
        created = await repository.create(make_draft())

        assert await repository.delete(created.id) is True
        assert await repository.find_by_id(created.id) is None
        assert await repository.delete(created.id) is False


class TestFindAll:
    async def test_filters_are_combined(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        filters = DeckFilters(tier_rating=TierRating.S, deck_type=DeckType.AGGRO)

        result = await repository.find_all(filters)

        assert sorted(names(result.data)) == ["Gruul Stompy", "Lightning Aggro"]
        assert result.total == 2

        filters = DeckFilters(
            tier_rating=TierRating.S, deck_type=DeckType.AGGRO, game_stage=GameStage.MID
        )
        result = await repository.find_all(filters)
        assert names(result.data) == ["Gruul Stompy"]

    async def test_boolean_filters(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        result = await repository.find_all(DeckFilters(has_card_sleeves=False))
        assert names(result.data) == ["Elf Combo"]

        result = await repository.find_all(DeckFilters(is_complete=True))
        assert sorted(names(result.data)) == ["Elf Combo", "Lightning Aggro"]

    async def test_storage_location_substring_any_case(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        result = await repository.find_all(DeckFilters(storage_location="SHELF A"))
        assert sorted(names(result.data)) == ["Gruul Stompy", "Lightning Aggro"]

    async def test_storage_location_is_literal_text(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        result = await repository.find_all(DeckFilters(storage_location="100%"))
        assert names(result.data) == ["Elf Combo"]

        result = await repository.find_all(DeckFilters(storage_location="%"))
        assert names(result.data) == ["Elf Combo"]

        result = await repository.find_all(DeckFilters(storage_location="Shelf _"))
        assert result.total == 0

    async def test_colors_match_any(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        result = await repository.find_all(DeckFilters(colors=(MagicColor.GREEN, MagicColor.BLUE)))
        assert sorted(names(result.data)) == ["Azorius Control", "Elf Combo", "Gruul Stompy"]

    async def test_pagination_window(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        options = PaginationOptions.normalized(
            page=2, limit=3, sort_by=SortField.NAME, sort_order=SortOrder.ASC
        )

        result = await repository.find_all(pagination=options)

        assert names(result.data) == ["Lightning Aggro"]
        assert result.total == 4
        assert result.total_pages == 2

    async def test_page_beyond_range_is_empty(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        result = await repository.find_all(pagination=PaginationOptions.normalized(page=9))

        assert result.data == []
        assert result.total == 4
        assert result.page == 9

    async def test_sort_by_name(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        asc = PaginationOptions.normalized(sort_by=SortField.NAME, sort_order=SortOrder.ASC)
        desc = PaginationOptions.normalized(sort_by=SortField.NAME, sort_order=SortOrder.DESC)

        expected = ["Azorius Control", "Elf Combo", "Gruul Stompy", "Lightning Aggro"]
        assert names((await repository.find_all(pagination=asc)).data) == expected
        assert names((await repository.find_all(pagination=desc)).data) == expected[::-1]

    async def test_sort_by_tier_best_first(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        options = PaginationOptions.normalized(
            sort_by=SortField.TIER_RATING, sort_order=SortOrder.ASC
        )

        result = await repository.find_all(pagination=options)

        tiers = [deck.tier_rating for deck in result.data]
        assert tiers == [TierRating.S, TierRating.S, TierRating.A, TierRating.B]

    async def test_count_by_filters(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        assert await repository.count_by_filters(DeckFilters()) == 4
        assert await repository.count_by_filters(DeckFilters(is_complete=False)) == 2
        assert await repository.count_by_filters(DeckFilters(deck_type=DeckType.COMBO)) == 1


class TestLookups:
    async def test_find_by_name_ignores_case(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        deck = await repository.find_by_name("  elf COMBO ")
        assert deck is not None
        assert deck.name == "Elf Combo"
        assert await repository.find_by_name("Elf") is None

    async def test_find_by_tier_and_type(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        assert sorted(names(await repository.find_by_tier_rating(TierRating.S))) == [
            "Gruul Stompy",
            "Lightning Aggro",
        ]
        assert names(await repository.find_by_deck_type(DeckType.CONTROL)) == ["Azorius Control"]

    async def test_find_by_storage_location(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        decks = await repository.find_by_storage_location("box 2")
        assert names(decks) == ["Azorius Control"]

    async def test_find_incomplete(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        decks = await repository.find_incomplete()
        assert sorted(names(decks)) == ["Azorius Control", "Gruul Stompy"]

    async def test_find_by_colors(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        assert sorted(names(await repository.find_by_colors([MagicColor.RED]))) == [
            "Gruul Stompy",
            "Lightning Aggro",
        ]
        assert await repository.find_by_colors([MagicColor.BLACK]) == []
        assert await repository.find_by_colors([]) == []


class TestKeywordSearch:
    async def test_name_match_outranks_description_match(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        decks = await repository.search_by_keyword("lightning")

        # "Lightning Aggro" by name, "Elf Combo" only by description
        assert names(decks) == ["Lightning Aggro", "Elf Combo"]

    async def test_planeswalker_match(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        assert names(await repository.search_by_keyword("JACE")) == ["Azorius Control"]

    async def test_terms_add_up(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        decks = await repository.search_by_keyword("big stompy")
        assert names(decks) == ["Gruul Stompy"]

    async def test_no_match(
        self,
        repository: SqlDeckRepository,
        seeded_decks: list[Deck],  # noqa: ARG002
    ) -> None:
        assert await repository.search_by_keyword("vampires") == []
        assert await repository.search_by_keyword("   ") == []
