"""
Tests for the goldfish player's heuristics.
"""

from src.game.card import BRINGER, KIORA, OVERLORD, SPIDER_MAN, TERROR, Color
from src.game.decisions import (
    choose_cavern_type,
    choose_land_to_play,
    choose_passage_color,
    choose_spell_to_cast,
    land_enters_tapped,
    select_best_from_mill,
    select_discards,
)
from src.game.resolver import is_combo_lethal


def cards(card_db, *names):
    return [card_db.get(name) for name in names]


class TestLandEntersTapped:
    def test_shock_untapped_with_life_to_pay(self, state, card_db):
        grave = card_db.get("Watery Grave")
        assert not land_enters_tapped(grave, state)
        state.life = 2
        assert land_enters_tapped(grave, state)

    def test_fastland(self, state, card_db):
        marsh = card_db.get("Blooming Marsh")
        for land in cards(card_db, "Island", "Swamp"):
            state.put_onto_battlefield(land)
        assert not land_enters_tapped(marsh, state)

        state.put_onto_battlefield(card_db.get("Forest"))
        assert land_enters_tapped(marsh, state)

    def test_starting_town_after_turn_three(self, state, card_db):
        town = card_db.get("Starting Town")
        state.turn = 3
        assert not land_enters_tapped(town, state)
        state.turn = 4
        assert land_enters_tapped(town, state)

    def test_always_tapped(self, state, card_db):
        assert land_enters_tapped(card_db.get("Undercity Sewers"), state)
        assert not land_enters_tapped(card_db.get("Island"), state)


class TestChooseLand:
    def test_no_land_in_hand(self, state, card_db):
        state.hand.extend(cards(card_db, BRINGER))
        assert choose_land_to_play(state) is None

    def test_prefers_land_that_enables_a_cast(self, state, card_db):
        state.put_onto_battlefield(card_db.get("Island"))
        state.hand.extend(cards(card_db, "Town Greeter", "Undercity Sewers", "Forest"))
        assert choose_land_to_play(state).name == "Forest"

    def test_prefers_missing_color_when_nothing_to_cast(self, state, card_db):
        state.hand.extend(cards(card_db, BRINGER, "Island", "Undercity Sewers"))
        # Only the Sewers adds the black Bringer needs
        assert choose_land_to_play(state).name == "Undercity Sewers"


class TestCavernAndPassage:
    def test_first_cavern_names_human(self, state, card_db):
        state.hand.extend(cards(card_db, BRINGER))
        assert choose_cavern_type(state) == "Human"

    def test_second_cavern_covers_bringer(self, state, card_db):
        cavern = state.put_onto_battlefield(card_db.get("Cavern of Souls"))
        cavern.chosen_type = "Human"
        state.hand.extend(cards(card_db, BRINGER))
        assert choose_cavern_type(state) == "Demon"

    def test_kiora_first_when_combo_piece_stuck(self, state, card_db):
        state.hand.extend(cards(card_db, KIORA, TERROR, "Cavern of Souls"))
        assert choose_cavern_type(state) == "Noble"

    def test_passage_fills_missing_color(self, state, card_db):
        state.put_onto_battlefield(card_db.get("Island"))
        state.hand.extend(cards(card_db, "Town Greeter"))
        assert choose_passage_color(state) == Color.GREEN


class TestMillSelection:
    def test_never_returns_combo_pieces(self, state, card_db):
        assert select_best_from_mill(cards(card_db, BRINGER, TERROR), state) is None

    def test_spider_man_first(self, state, card_db):
        milled = cards(card_db, "Island", SPIDER_MAN, KIORA)
        assert select_best_from_mill(milled, state).name == SPIDER_MAN

    def test_land_when_short_on_lands(self, state, card_db):
        state.hand.extend(cards(card_db, SPIDER_MAN))
        milled = cards(card_db, "Cache Grab", "Island")
        assert select_best_from_mill(milled, state).name == "Island"

    def test_empty(self, state):
        assert select_best_from_mill([], state) is None


class TestDiscards:
    def test_combo_pieces_go_first(self, state, card_db):
        state.hand.extend(cards(card_db, SPIDER_MAN, KIORA, BRINGER, "Island"))
        chosen = select_discards(state, 2)
        assert [c.name for c in chosen] == [BRINGER, "Island"]

    def test_discard_is_mandatory(self, state, card_db):
        state.hand.extend(cards(card_db, SPIDER_MAN, KIORA))
        chosen = select_discards(state, 2)
        assert [c.name for c in chosen] == [KIORA, SPIDER_MAN]

    def test_short_hand(self, state, card_db):
        state.hand.extend(cards(card_db, "Island"))
        assert len(select_discards(state, 2)) == 1


class TestSpellChoice:
    def test_spider_man_held_without_bringer(self, state, card_db):
        for land in cards(card_db, "Watery Grave", "Island", "Swamp", "Forest"):
            state.put_onto_battlefield(land)
        state.hand.extend(cards(card_db, SPIDER_MAN))
        assert choose_spell_to_cast(state, combo_is_lethal=False) is None

    def test_spider_man_when_lethal(self, state, card_db):
        for land in cards(card_db, "Watery Grave", "Island", "Swamp", "Forest"):
            state.put_onto_battlefield(land)
        state.hand.extend(cards(card_db, "Cache Grab", SPIDER_MAN))
        state.graveyard.add(card_db.get(BRINGER))
        assert choose_spell_to_cast(state, combo_is_lethal=True).name == SPIDER_MAN

    def test_mill_spell_before_others(self, state, card_db):
        for land in cards(card_db, "Island", "Forest", "Swamp"):
            state.put_onto_battlefield(land)
        state.hand.extend(cards(card_db, KIORA, "Cache Grab"))
        assert choose_spell_to_cast(state, combo_is_lethal=False).name == "Cache Grab"

    def test_spider_man_held_when_combo_falls_short(self, state, card_db):
        for land in cards(card_db, "Watery Grave", "Island", "Swamp", "Forest"):
            state.put_onto_battlefield(land)
        state.hand.extend(cards(card_db, SPIDER_MAN))
        # No Terror anywhere, so reanimating the Overlord deals nothing
        state.graveyard.extend(cards(card_db, BRINGER, OVERLORD))

        lethal = is_combo_lethal(state)
        assert not lethal
        assert choose_spell_to_cast(state, lethal) is None
