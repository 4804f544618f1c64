"""
Tests for ability resolution and the reanimation combo.
"""

import pytest

from src.game.card import (
    AWAKEN,
    BRINGER,
    KIORA,
    OVERLORD,
    POLLEN,
    SPEAKER,
    SPIDER_MAN,
    TERROR,
    TOWN_GREETER,
)
from src.game.resolver import (
    calculate_combo_damage,
    cast_creature,
    cast_spell,
    advance_sagas,
    is_combo_lethal,
    resolve_kiora_etb,
    resolve_mass_reanimation,
    resolve_spider_man_copy,
    resolve_speaker_etb,
    resolve_starscourge,
    resolve_surveil,
    resolve_terror_triggers,
    resolve_analyze_the_pollen,
    resolve_town_greeter_etb,
)
from src.game.state import Counter, Library


def cards(card_db, *names):
    return [card_db.get(name) for name in names]


class TestTerrorTriggers:
    def test_single_terror(self, state, card_db):
        state.put_onto_battlefield(card_db.get(TERROR))
        bringer = state.put_onto_battlefield(card_db.get(BRINGER))

        assert resolve_terror_triggers(state, [bringer]) == 6
        assert state.opponent_life == 14

    def test_each_terror_triggers(self, state, card_db):
        state.put_onto_battlefield(card_db.get(TERROR))
        state.put_onto_battlefield(card_db.get(TERROR))
        kiora = state.put_onto_battlefield(card_db.get(KIORA))

        assert resolve_terror_triggers(state, [kiora]) == 6

    def test_terror_does_not_trigger_for_itself(self, state, card_db):
        terror = state.put_onto_battlefield(card_db.get(TERROR))
        assert resolve_terror_triggers(state, [terror]) == 0

    def test_entering_terrors_trigger_each_other(self, state, card_db):
        first = state.put_onto_battlefield(card_db.get(TERROR))
        second = state.put_onto_battlefield(card_db.get(TERROR))
        assert resolve_terror_triggers(state, [first, second]) == 10

    def test_no_terror(self, state, card_db):
        bringer = state.put_onto_battlefield(card_db.get(BRINGER))
        assert resolve_terror_triggers(state, [bringer]) == 0
        assert state.opponent_life == 20


class TestCombo:
    def test_spider_man_copies_bringer(self, state, card_db):
        state.graveyard.extend(cards(card_db, BRINGER, TERROR, OVERLORD))
        estimate = calculate_combo_damage(state)

        spider = state.put_onto_battlefield(card_db.get(SPIDER_MAN))
        resolve_spider_man_copy(state, spider)

        # 6 for the Bringer copy plus 5 for Overlord from the returning Terror
        assert estimate == 11
        assert state.opponent_life == 20 - estimate
        assert spider.copy_of.name == BRINGER
        assert spider.power == 6
        assert state.exile.contains(BRINGER)
        assert len(state.graveyard) == 0
        assert state.battlefield.controls(TERROR)
        assert state.battlefield.controls(OVERLORD)

    def test_returning_terrors_trigger_for_each_other(self, state, card_db):
        state.graveyard.extend(cards(card_db, BRINGER, TERROR, TERROR, KIORA))
        estimate = calculate_combo_damage(state)

        spider = state.put_onto_battlefield(card_db.get(SPIDER_MAN))
        resolve_spider_man_copy(state, spider)

        # Copy 6 and Kiora 3 hit by both Terrors, each Terror 5 by the other
        assert estimate == 6 * 2 + 3 * 2 + 5 + 5
        assert 20 - state.opponent_life == estimate
        assert state.battlefield.count_acting_as(TERROR) == 2

    def test_reanimation_spares_impending(self, state, card_db):
        overlord = cast_creature(state, card_db.get(OVERLORD), impending=True)
        greeter = state.put_onto_battlefield(card_db.get(TOWN_GREETER))
        bringer = state.put_onto_battlefield(card_db.get(BRINGER))

        resolve_mass_reanimation(state, bringer)

        permanents = list(state.battlefield)
        assert any(p is overlord for p in permanents)
        assert any(p is bringer for p in permanents)
        # Greeter was sacrificed and came straight back as a new permanent
        assert not any(p is greeter for p in permanents)
        assert state.battlefield.controls(TOWN_GREETER)

    def test_returning_spider_man_copies_terror(self, state, card_db):
        state.graveyard.extend(cards(card_db, SPIDER_MAN, TERROR))
        bringer = state.put_onto_battlefield(card_db.get(BRINGER))

        damage = resolve_mass_reanimation(state, bringer)

        assert damage == 6
        assert state.exile.contains(TERROR)
        assert state.battlefield.count_acting_as(TERROR) == 1

    def test_spider_man_without_targets_is_plain(self, state, card_db):
        spider = state.put_onto_battlefield(card_db.get(SPIDER_MAN))
        resolve_spider_man_copy(state, spider)
        assert spider.copy_of is None
        assert spider.power == 4

    def test_combo_damage_with_terror_in_play(self, state, card_db):
        state.put_onto_battlefield(card_db.get(TERROR))
        state.graveyard.extend(cards(card_db, BRINGER, OVERLORD))
        state.turn = 2

        # Copy 6 + reanimated 11 from the Terror in play, plus its attack
        assert calculate_combo_damage(state) == 22
        assert is_combo_lethal(state)

    def test_not_lethal_without_terror(self, state, card_db):
        state.graveyard.extend(cards(card_db, BRINGER, OVERLORD))
        assert calculate_combo_damage(state) == 0
        assert not is_combo_lethal(state)


class TestStarscourge:
    def test_exiles_best_creature(self, state, card_db):
        state.graveyard.extend(cards(card_db, OVERLORD, BRINGER))
        token = resolve_starscourge(state)

        assert token.is_token
        assert token.power == 5
        assert token.copy_of.name == BRINGER
        assert token.has_creature_type("Demon")
        assert state.exile.contains(BRINGER)
        assert state.graveyard.contains(OVERLORD)

    def test_token_ceases_to_exist(self, state, card_db):
        state.graveyard.add(card_db.get(OVERLORD))
        token = resolve_starscourge(state)
        state.leave_battlefield(token)
        assert len(state.graveyard) == 0
        assert len(state.battlefield) == 0

    def test_nothing_to_exile(self, state):
        assert resolve_starscourge(state) is None


class TestGraveyardFilling:
    def test_surveil_stops_at_first_kept_card(self, state, card_db):
        state.library = Library(cards(card_db, BRINGER, "Island", TERROR))
        binned = resolve_surveil(state, 2)

        assert [c.name for c in binned] == [BRINGER]
        assert state.library.peek().name == "Island"

    def test_kiora_draws_then_discards(self, state, card_db):
        state.library = Library(cards(card_db, BRINGER, "Island"))
        state.hand.extend(cards(card_db, SPIDER_MAN))

        resolve_kiora_etb(state)

        assert [c.name for c in state.hand] == [SPIDER_MAN]
        assert [c.name for c in state.graveyard] == [BRINGER, "Island"]

    def test_town_greeter_returns_best_land(self, state, card_db):
        state.library = Library(
            cards(card_db, "Undercity Sewers", BRINGER, "Watery Grave", TERROR, "Island")
        )
        resolve_town_greeter_etb(state)

        assert [c.name for c in state.hand] == ["Watery Grave"]
        assert [c.name for c in state.graveyard] == ["Undercity Sewers", BRINGER, TERROR]
        assert [c.name for c in state.library] == ["Island"]

    def test_speaker_pitches_bringer_for_spider_man(self, state, card_db):
        state.library = Library(cards(card_db, "Island", SPIDER_MAN, "Forest"))
        state.hand.extend(cards(card_db, BRINGER))

        resolve_speaker_etb(state)

        assert [c.name for c in state.hand] == [SPIDER_MAN]
        assert state.graveyard.contains(BRINGER)
        assert len(state.library) == 2

    def test_speaker_declines(self, state, card_db):
        state.library = Library(cards(card_db, "Island"))
        state.hand.extend(cards(card_db, "Forest"))

        resolve_speaker_etb(state)

        assert [c.name for c in state.hand] == ["Forest"]
        assert len(state.graveyard) == 0

    def test_pollen_without_evidence_finds_basic(self, state, card_db):
        state.library = Library(cards(card_db, BRINGER, "Watery Grave", "Forest"))
        found = resolve_analyze_the_pollen(state)

        assert found.name == "Forest"
        assert state.hand.contains("Forest")
        assert len(state.library) == 2

    def test_pollen_with_evidence(self, state, card_db):
        state.graveyard.extend(cards(card_db, "Cache Grab", "Dredger's Insight", OVERLORD, BRINGER))
        state.library = Library(cards(card_db, "Island", KIORA))

        found = resolve_analyze_the_pollen(state)

        assert found.name == KIORA
        # Instants, then enchantments, then creatures, until 8 mana value
        assert [c.name for c in state.exile] == ["Cache Grab", "Dredger's Insight", OVERLORD]
        assert state.graveyard.contains(BRINGER)


class TestCasting:
    def test_instant_goes_to_graveyard(self, state, card_db):
        state.library = Library(cards(card_db, "Island", "Forest", "Swamp", "Island"))
        assert cast_spell(state, card_db.get("Cache Grab")) is None
        assert state.graveyard.contains("Cache Grab")

    def test_enchantment_stays(self, state, card_db):
        permanent = cast_spell(state, card_db.get("Dredger's Insight"))
        assert permanent is not None
        assert state.battlefield.controls("Dredger's Insight")

    def test_land_cannot_be_cast(self, state, card_db):
        with pytest.raises(ValueError):
            cast_spell(state, card_db.get("Island"))

    def test_impending_creature_gets_time_counters(self, state, card_db):
        overlord = cast_creature(state, card_db.get(OVERLORD), impending=True)
        assert overlord.get_counter(Counter.TIME) == 5
        assert overlord.is_impending

    def test_speaker_etb_dispatches_by_ability(self, state, card_db):
        state.library = Library(cards(card_db, SPIDER_MAN))
        state.hand.extend(cards(card_db, TERROR))
        cast_creature(state, card_db.get(SPEAKER))
        assert state.hand.contains(SPIDER_MAN)


class TestSaga:
    def test_awaken_chapters(self, state, card_db):
        state.library = Library(cards(card_db, "Island", "Forest", "Swamp", "Island"))
        saga = cast_spell(state, card_db.get(AWAKEN))
        assert saga.get_counter(Counter.LORE) == 1

        # Not advanced on the turn it was cast
        advance_sagas(state)
        assert saga.get_counter(Counter.LORE) == 1

        state.turn = 2
        advance_sagas(state)
        assert saga.get_counter(Counter.LORE) == 2
        assert [c.name for c in state.graveyard] == ["Island", "Forest", "Swamp"]

        state.turn = 3
        state.hand.add(card_db.get(TERROR))
        advance_sagas(state)

        assert [c.name for c in state.hand] == ["Island"]
        assert state.graveyard.contains(TERROR)
        assert state.graveyard.contains(AWAKEN)
        assert not state.battlefield.controls(AWAKEN)

    def test_pollen_is_a_sorcery(self, state, card_db):
        state.library = Library(cards(card_db, "Forest"))
        cast_spell(state, card_db.get(POLLEN))
        assert state.graveyard.contains(POLLEN)
        assert state.hand.contains("Forest")
