"""
Tests for deck list parsing and loading.
"""

import pytest

from src.data.card_db import UnknownCardError
from src.data.deck_loader import (
    BUNDLED_DECK_PATH,
    DeckParseError,
    load_deck,
    load_decklist,
    parse_deck_text,
    write_deck,
)
from src.game.card import SPIDER_MAN


class TestParseDeckText:
    def test_parses_counts_and_names(self):
        text = """
        # Reanimator
        4 Bringer of the Last Gift
        // lands
        2x Watery Grave

        1 Kiora, the Rising Tide
        """
        assert parse_deck_text(text) == [
            (4, "Bringer of the Last Gift"),
            (2, "Watery Grave"),
            (1, "Kiora, the Rising Tide"),
        ]

    def test_malformed_line(self):
        with pytest.raises(DeckParseError) as exc_info:
            parse_deck_text("4 Island\nBringer of the Last Gift\n")
        assert exc_info.value.line_number == 2
        assert isinstance(exc_info.value, ValueError)

    def test_zero_count(self):
        with pytest.raises(DeckParseError) as exc_info:
            parse_deck_text("0 Island")
        assert exc_info.value.line_number == 1

    def test_empty(self):
        assert parse_deck_text("# nothing here\n\n") == []


class TestLoadDeck:
    def test_bundled_deck(self, card_db):
        deck = load_deck(BUNDLED_DECK_PATH, card_db)
        assert deck.name == "reanimator"
        assert deck.size == 60
        assert deck.land_count == 24
        assert deck.counts()[SPIDER_MAN] == 4
        assert sum(deck.nonland_counts().values()) == 36
        assert sum(deck.land_counts().values()) == 24

    def test_list_order_is_kept(self, card_db):
        deck = load_deck("2 Island\n1 Swamp\n1 Island", card_db)
        assert deck.name == "custom"
        assert [c.name for c in deck.cards] == ["Island", "Island", "Swamp", "Island"]

    def test_path_given_as_string(self, card_db, tmp_path):
        path = tmp_path / "lands.txt"
        path.write_text("3 Forest\n")
        deck = load_deck(str(path), card_db)
        assert deck.name == "lands"
        assert deck.size == 3

    def test_printed_name_resolves(self, card_db):
        deck = load_decklist(["4 Kavaero, Mind-Bitten"], card_db)
        assert {c.name for c in deck.cards} == {SPIDER_MAN}

    def test_unknown_card(self, card_db):
        with pytest.raises(UnknownCardError):
            load_decklist(["4 Island", "1 Black Lotus"], card_db)

    def test_missing_file(self, card_db, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_deck(tmp_path / "missing.txt", card_db)


class TestWriteDeck:
    def test_write_then_load(self, card_db, tmp_path):
        path = tmp_path / "out" / "deck.txt"
        write_deck(
            path,
            lands={"Island": 3, "Forest": 0, "Swamp": 1},
            fixed={"Bringer of the Last Gift": 2},
            header_lines=["Best config"],
        )

        lines = path.read_text().splitlines()
        assert lines[0] == "# Best config"
        assert "0 Forest" not in lines

        deck = load_deck(path, card_db)
        assert deck.counts() == {"Bringer of the Last Gift": 2, "Island": 3, "Swamp": 1}
