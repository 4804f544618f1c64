"""
Card ability resolution, including the reanimation combo chain.

Abilities are dispatched on the ``Ability`` tag a card carries, never on the
card's name, so a new card reusing an existing tag needs no code here. The
heuristics that pick targets live in ``decisions``; this module only moves
cards between zones and deals damage.
"""

import logging
from typing import Callable, Optional

from .card import (
    ARDYN,
    BRINGER,
    COMBO_PIECES,
    KIORA,
    OVERLORD,
    SPIDER_MAN,
    TERROR,
    TOWN_GREETER,
    Ability,
    Card,
    CardKind,
    CreatureCard,
    LandCard,
    LandSubtype,
    SagaCard,
)
from .decisions import MILL_CREATURES, select_best_from_mill, select_discards
from .state import Counter, GameState, Permanent

logger = logging.getLogger(__name__)

# Bringer's power; Spider-Man enters as a copy of it
BRINGER_POWER = 6

STARSCOURGE_TOKEN_POWER = 5

# ETBs that still fire when a creature is put onto the battlefield by Bringer
REANIMATION_ETBS = frozenset(
    {
        Ability.ETB_DRAW_2_DISCARD_2,
        Ability.ETB_MILL_4_RETURN_LAND,
        Ability.ETB_OR_ATTACK_MILL_4_RETURN,
        Ability.ETB_DISCARD_TUTOR_CREATURE,
    }
)


def _names(cards) -> str:
    return ", ".join(c.name for c in cards) or "(none)"


# =============================================================================
# Casting
# =============================================================================


def cast_creature(state: GameState, card: CreatureCard, impending: bool = False) -> Permanent:
    """Put a paid-for creature onto the battlefield and resolve its ETB."""
    permanent = state.put_onto_battlefield(card)
    if impending and card.impending_counters > 0:
        permanent.add_counter(Counter.TIME, card.impending_counters)
    logger.debug(f"  [Cast] {card.name}{' (impending)' if impending else ''}")
    resolve_etb(state, permanent)
    return permanent


def cast_spell(state: GameState, card: Card) -> Optional[Permanent]:
    """
    Resolve a paid-for non-creature spell.

    Instants and sorceries resolve then go to the graveyard. Enchantments
    stay on the battlefield; a saga enters with one lore counter and its first
    chapter resolves at once.
    """
    logger.debug(f"  [Cast] {card.name}")

    match card.kind:
        case CardKind.INSTANT | CardKind.SORCERY:
            for ability in card.abilities:
                resolve_ability(state, ability)
            state.graveyard.add(card)
            return None
        case CardKind.ENCHANTMENT:
            permanent = state.put_onto_battlefield(card)
            for ability in card.abilities:
                resolve_ability(state, ability, permanent)
            return permanent
        case CardKind.SAGA:
            permanent = state.put_onto_battlefield(card)
            permanent.add_counter(Counter.LORE)
            _resolve_chapter(state, permanent, 1)
            return permanent
        case CardKind.CREATURE:
            return cast_creature(state, card)
        case CardKind.LAND:
            raise ValueError(f"{card.name} is a land and cannot be cast")


def resolve_etb(state: GameState, permanent: Permanent) -> None:
    """Run every enter-the-battlefield ability of a permanent."""
    for ability in permanent.card.abilities:
        resolve_ability(state, ability, permanent)


def resolve_ability(
    state: GameState,
    ability: Ability,
    source: Optional[Permanent] = None,
) -> None:
    """Resolve one ability tag. ``source`` is the permanent it belongs to, if any."""
    match ability:
        case Ability.ETB_DAMAGE_TRIGGER | Ability.IMPENDING_5 | Ability.STARSCOURGE:
            # Static or triggered elsewhere
            pass
        case Ability.DESTROY:
            # Goldfish opponent has nothing to destroy
            pass
        case Ability.ETB_MASS_REANIMATE:
            resolve_mass_reanimation(state, source)
        case Ability.ETB_OR_ATTACK_MILL_4_RETURN:
            resolve_overlord_etb(state)
        case Ability.ETB_DRAW_2_DISCARD_2:
            resolve_kiora_etb(state)
        case Ability.ETB_MILL_4_RETURN_LAND:
            resolve_town_greeter_etb(state)
        case Ability.MIND_SWAP_COPY:
            if source is not None:
                resolve_spider_man_copy(state, source)
        case Ability.ETB_DISCARD_TUTOR_CREATURE:
            resolve_speaker_etb(state)
        case Ability.MILL_4_RETURN_PERMANENT:
            mill_with_selection(state, 4, lambda c: not c.is_instant_or_sorcery)
        case Ability.ETB_MILL_4_RETURN_ARTIFACT_CREATURE_LAND:
            mill_with_selection(
                state,
                4,
                lambda c: c.kind in (CardKind.CREATURE, CardKind.LAND, CardKind.ENCHANTMENT),
            )
        case Ability.SEARCH_LAND_OR_CREATURE_WITH_EVIDENCE:
            resolve_analyze_the_pollen(state)
        case Ability.MILL_3:
            milled = state.mill(3)
            logger.debug(f"    Mill 3: {_names(milled)}")
        case Ability.DISCARD_RETURN:
            _resolve_discard_return(state)


# =============================================================================
# Graveyard filling
# =============================================================================


def resolve_surveil(state: GameState, count: int) -> list[Card]:
    """
    Surveil: bin wanted cards off the top, stop at the first card kept.

    Cards below a kept card are never looked at. Returns the binned cards.
    """
    binned: list[Card] = []
    for _ in range(count):
        top = state.library.peek()
        if top is None:
            break

        wanted = top.name in (BRINGER, TERROR, OVERLORD, TOWN_GREETER) or (
            top.name == KIORA and state.hand.contains(KIORA)
        )
        if not wanted:
            logger.debug(f"    Surveil -> kept on top: {top.name}")
            break

        binned.extend(state.mill(1))

    if binned:
        logger.debug(f"    Surveil -> graveyard: {_names(binned)}")
    return binned


def mill_with_selection(
    state: GameState,
    count: int,
    allowed: Callable[[Card], bool],
) -> Optional[Card]:
    """
    Mill cards, then return the best allowed one from the graveyard to hand.

    Returns the card put into hand, if any.
    """
    milled = state.mill(count)
    logger.debug(f"    Mill {count}: {_names(milled)}")

    selected = select_best_from_mill([c for c in milled if allowed(c)], state)
    if selected is None:
        return None

    state.graveyard.remove(selected)
    state.hand.add(selected)
    logger.debug(f"    -> Returned to hand: {selected.name}")
    return selected


def _split_milled(state: GameState, milled: list[Card], keep: Optional[int]) -> None:
    """Put milled cards into the graveyard, except index ``keep`` which goes to hand."""
    for i, card in enumerate(milled):
        if i == keep:
            state.hand.add(card)
            logger.debug(f"    -> Returned to hand: {card.name}")
        else:
            state.graveyard.add(card)


def resolve_overlord_etb(state: GameState) -> None:
    """
    Mill 4 and maybe return one creature.

    Only returns a card that advances the combo; otherwise everything stays
    in the graveyard as reanimation fodder.
    """
    milled = state.library.draw_many(4)
    logger.debug(f"    Mill 4: {_names(milled)}")

    names = [c.name for c in milled]
    keep = None
    if state.graveyard.contains(BRINGER) and not state.hand.contains(SPIDER_MAN):
        keep = names.index(SPIDER_MAN) if SPIDER_MAN in names else None
    if keep is None and state.hand.contains(BRINGER):
        keep = names.index(KIORA) if KIORA in names else None
    if keep is None and state.lands_on_battlefield < 4:
        keep = names.index(TOWN_GREETER) if TOWN_GREETER in names else None

    _split_milled(state, milled, keep)


def _town_greeter_score(land: LandCard) -> int:
    score = 0
    if not land.enters_tapped:
        score += 100
    if len(land.colors) > 1:
        score += 50
    if land.has_surveil:
        score += 25
    if land.subtype is LandSubtype.UTILITY:
        score += 75
    return score


def resolve_town_greeter_etb(state: GameState) -> None:
    """Mill 4 and return the best land: untapped, multicolor, surveil, utility."""
    milled = state.library.draw_many(4)
    logger.debug(f"    Mill 4: {_names(milled)}")

    keep = None
    best_score = -1
    for i, card in enumerate(milled):
        if isinstance(card, LandCard):
            score = _town_greeter_score(card)
            if score > best_score:
                best_score = score
                keep = i

    _split_milled(state, milled, keep)


def resolve_kiora_etb(state: GameState) -> None:
    """Draw two, then discard two chosen by discard priority."""
    drawn = [c for c in (state.draw(), state.draw()) if c is not None]
    logger.debug(f"    Drew: {_names(drawn)}")

    discards = select_discards(state, 2)
    for card in discards:
        state.discard(card)
    logger.debug(f"    Discarded: {_names(discards)}")


def _speaker_plan(state: GameState) -> tuple[Optional[Card], Optional[str]]:
    """Work out Formidable Speaker's (discard, tutor target) pair."""
    hand = state.hand
    has_spider_man = hand.contains(SPIDER_MAN)
    bringer_in_gy = state.graveyard.contains(BRINGER)
    terror_in_gy = state.graveyard.contains(TERROR)
    spider_in_library = state.library.contains(SPIDER_MAN)

    def in_hand(name: str) -> Optional[Card]:
        return hand.find(lambda c: c.name == name)

    # Pitch a combo piece (or Ardyn) to find Spider-Man
    if not has_spider_man and spider_in_library:
        for name in (BRINGER, TERROR, ARDYN):
            card = in_hand(name)
            if card is not None:
                return card, SPIDER_MAN

    # Bringer is already binned: pitch a mill creature, duplicates first
    if not has_spider_man and bringer_in_gy and spider_in_library:
        if hand.count(KIORA) > 1:
            return in_hand(KIORA), SPIDER_MAN
        if hand.count(TOWN_GREETER) > 1:
            return in_hand(TOWN_GREETER), SPIDER_MAN
        for name in (KIORA, TOWN_GREETER, OVERLORD):
            card = in_hand(name)
            if card is not None:
                return card, SPIDER_MAN

    # Spider-Man ready but Bringer stuck in hand
    if has_spider_man and not bringer_in_gy and hand.contains(BRINGER):
        if not terror_in_gy and not hand.contains(TERROR):
            return in_hand(BRINGER), TERROR
        if not hand.contains(OVERLORD):
            return in_hand(BRINGER), OVERLORD
        if not hand.contains(KIORA):
            return in_hand(BRINGER), KIORA
        return in_hand(BRINGER), SPIDER_MAN

    # Combo assembled except for a Terror: pitch a land for one
    if has_spider_man and bringer_in_gy and not terror_in_gy and not hand.contains(TERROR):
        land = hand.find(lambda c: c.is_land)
        if land is not None:
            return land, TERROR

    return None, None


def resolve_speaker_etb(state: GameState) -> None:
    """Optionally discard a card to tutor a creature, then shuffle."""
    discard, target = _speaker_plan(state)
    if discard is None or target is None:
        logger.debug("    Formidable Speaker: chose not to discard")
        return

    state.discard(discard)
    found = state.library.take(target)
    if found is not None:
        state.hand.add(found)
    logger.debug(
        f"    Formidable Speaker discards {discard.name}, "
        f"tutors {found.name if found else f'nothing ({target} not in library)'}"
    )
    state.library.shuffle(state.rng)


def _evidence_order(card: Card) -> tuple[int, int]:
    if card.is_instant_or_sorcery:
        group = 0
    elif card.kind in (CardKind.ENCHANTMENT, CardKind.SAGA):
        group = 1
    elif card.is_creature:
        group = 2
    else:
        group = 3
    return group, -card.mana_value


def resolve_analyze_the_pollen(state: GameState) -> Optional[Card]:
    """
    Collect evidence 8 if possible and tutor accordingly.

    Evidence never exiles lands or combo pieces. With evidence, fetch
    Spider-Man (when Bringer is binned and none in hand), else Kiora, else
    any land. Without, fetch a basic land. Returns the card found.
    """
    exilable = [c for c in state.graveyard if not c.is_land and c.name not in COMBO_PIECES]

    if sum(c.mana_value for c in exilable) >= 8:
        evidence = 0
        exiled = []
        for card in sorted(exilable, key=_evidence_order):
            if evidence >= 8:
                break
            state.graveyard.remove(card)
            state.exile.add(card)
            exiled.append(card)
            evidence += card.mana_value
        logger.debug(f"    Evidence collected ({evidence} MV): {_names(exiled)}")

        target = None
        if not state.hand.contains(SPIDER_MAN) and state.graveyard.contains(BRINGER):
            target = state.library.find(lambda c: c.name == SPIDER_MAN)
        if target is None:
            target = state.library.find(lambda c: c.name == KIORA)
        if target is None:
            target = state.library.find(lambda c: c.is_land)
    else:
        target = state.library.find(
            lambda c: isinstance(c, LandCard) and c.subtype is LandSubtype.BASIC
        )

    if target is None:
        logger.debug("    -> Nothing found")
        return None

    state.library.remove(target)
    state.hand.add(target)
    state.library.shuffle(state.rng)
    logger.debug(f"    -> Searched for: {target.name}")
    return target


# =============================================================================
# Sagas
# =============================================================================


def advance_sagas(state: GameState) -> None:
    """Add a lore counter to each saga that was not cast this turn and resolve it."""
    for permanent in list(state.battlefield):
        if not isinstance(permanent.card, SagaCard):
            continue
        if permanent.turn_entered >= state.turn:
            continue
        permanent.add_counter(Counter.LORE)
        _resolve_chapter(state, permanent, permanent.get_counter(Counter.LORE))


def _resolve_chapter(state: GameState, permanent: Permanent, chapter: int) -> None:
    saga = permanent.card
    chapters = saga.abilities
    if chapter <= len(chapters):
        logger.debug(f"    {saga.name} chapter {chapter}")
        resolve_ability(state, chapters[chapter - 1], permanent)
    if chapter >= len(chapters):
        state.leave_battlefield(permanent)


def _resolve_discard_return(state: GameState) -> None:
    """Discard a combo piece to return a creature or land from the graveyard."""
    pitch = state.hand.find(lambda c: c.name in COMBO_PIECES)
    if pitch is None:
        return

    state.discard(pitch)
    returned = state.graveyard.find(
        lambda c: (c.is_creature and c.name not in COMBO_PIECES) or c.is_land
    )
    if returned is not None:
        state.graveyard.remove(returned)
        state.hand.add(returned)
    logger.debug(
        f"    Discarded {pitch.name}, returned {returned.name if returned else 'nothing'}"
    )


# =============================================================================
# The combo
# =============================================================================


def resolve_spider_man_copy(state: GameState, permanent: Permanent) -> None:
    """
    Superior Spider-Man's Mind Swap.

    Copy Bringer if it is in the graveyard; else Ardyn when another creature
    is there for Starscourge; else, holding a second Spider-Man, copy a mill
    creature to keep digging. The copied card is exiled.
    """
    graveyard = state.graveyard

    bringer = graveyard.find(lambda c: c.name == BRINGER)
    if bringer is not None:
        logger.debug("    *** Superior Spider-Man copies Bringer of the Last Gift ***")
        _copy_from_graveyard(state, permanent, bringer)
        resolve_mass_reanimation(state, permanent)
        return

    ardyn = graveyard.find(lambda c: c.name == ARDYN)
    others = [c for c in graveyard.creatures if c.name != ARDYN]
    if ardyn is not None and others:
        logger.debug(f"    Superior Spider-Man copies {ARDYN}")
        _copy_from_graveyard(state, permanent, ardyn)
        return

    if not state.hand.contains(SPIDER_MAN):
        logger.debug("    Superior Spider-Man enters as a 4/4")
        return

    for name in MILL_CREATURES:
        target = graveyard.find(lambda c, name=name: c.name == name)
        if target is not None:
            logger.debug(f"    Superior Spider-Man copies {name} to dig")
            _copy_from_graveyard(state, permanent, target)
            for ability in target.abilities:
                resolve_ability(state, ability, permanent)
            return

    logger.debug("    Superior Spider-Man enters as a 4/4 (no mill creature to copy)")


def _copy_from_graveyard(state: GameState, permanent: Permanent, card: Card) -> None:
    permanent.copy_of = card
    state.graveyard.remove(card)
    state.exile.add(card)


def resolve_mass_reanimation(state: GameState, source: Optional[Permanent]) -> int:
    """
    Bringer of the Last Gift's ETB.

    Sacrifice every other creature (impending ones are not creatures yet),
    return every creature card from the graveyard at once, resolve their
    ETBs, then let Terrors trigger for the batch. Returns the trigger damage.
    """
    for permanent in list(state.battlefield.creatures):
        if permanent is source or permanent.is_impending:
            continue
        state.leave_battlefield(permanent)

    returning = list(state.graveyard.creatures)

    # A returning Spider-Man copies a Terror, which is exiled instead of returning
    spider_man_copy = None
    if any(c.name == SPIDER_MAN for c in returning):
        terror = state.graveyard.find(lambda c: c.name == TERROR)
        if terror is not None:
            returning.remove(terror)
            state.graveyard.remove(terror)
            state.exile.add(terror)
            spider_man_copy = terror

    logger.debug(f"    Reanimate: {_names(returning)}")

    entered: list[Permanent] = []
    for card in returning:
        state.graveyard.remove(card)
        permanent = state.put_onto_battlefield(card)
        if spider_man_copy is not None and card.name == SPIDER_MAN:
            permanent.copy_of = spider_man_copy
            spider_man_copy = None
        entered.append(permanent)

    for permanent in entered:
        for ability in permanent.card.abilities:
            if ability in REANIMATION_ETBS:
                resolve_ability(state, ability, permanent)

    # Bringer (or the Spider-Man copying it) entered alongside the batch
    if source is not None and any(p is source for p in state.battlefield):
        entered.insert(0, source)
    return resolve_terror_triggers(state, entered)


def resolve_terror_triggers(state: GameState, entered: list[Permanent]) -> int:
    """
    Damage from Terror of the Peaks for a batch of creatures entering together.

    Every permanent acting as Terror triggers for each entering creature
    except itself, so an entering Terror is hit by all the other Terrors.
    Returns the damage dealt.
    """
    terrors = state.battlefield.count_acting_as(TERROR)
    if terrors == 0:
        return 0

    damage = 0
    for p in entered:
        if not p.is_creature:
            continue
        triggers = terrors - 1 if p.acts_as(TERROR) else terrors
        damage += p.power * triggers

    state.opponent_life -= damage
    if damage:
        logger.debug(
            f"    Terror triggers: {damage} damage "
            f"({terrors} Terror(s), {len(entered)} creature(s) entered)"
        )
    return damage


def resolve_starscourge(state: GameState) -> Optional[Permanent]:
    """
    Ardyn's beginning-of-combat trigger.

    Exile the best creature card from the graveyard (Bringer, then Terror,
    then highest power) and create a 5/5 Demon token copy of it.
    """
    best = None
    best_score = 0
    for card in state.graveyard.creatures:
        boost = 100 if card.name == BRINGER else 50 if card.name == TERROR else 0
        score = card.power + boost
        if score > best_score:
            best, best_score = card, score

    if best is None:
        return None

    state.graveyard.remove(best)
    state.exile.add(best)
    token = CreatureCard(
        name=f"{best.name} (Starscourge Token)",
        power=STARSCOURGE_TOKEN_POWER,
        toughness=STARSCOURGE_TOKEN_POWER,
        creature_types=("Demon",),
        is_token=True,
    )
    permanent = state.put_onto_battlefield(token)
    permanent.copy_of = best
    logger.debug(f"    [Starscourge] Exiled {best.name}, created a 5/5 Demon token")

    resolve_terror_triggers(state, [permanent])
    return permanent


# =============================================================================
# Lethality estimate
# =============================================================================


def has_ardyn(state: GameState) -> bool:
    return state.battlefield.count_acting_as(ARDYN) > 0


def calculate_combo_damage(state: GameState) -> int:
    """
    Estimate the damage if Spider-Man copied Bringer right now.

    Terrors already on the battlefield trigger for the 6-power copy and for
    every reanimated creature. Terrors coming back from the graveyard
    trigger for the rest of the batch but not for themselves. Creatures
    that can already attack add their power; reanimated creatures can't,
    except Demons while Ardyn is out.
    """
    creatures_in_gy = state.graveyard.creatures
    terrors_on_field = state.battlefield.count_acting_as(TERROR)
    terrors_in_gy = sum(1 for c in creatures_in_gy if c.name == TERROR)

    damage = 0
    if terrors_on_field > 0:
        damage += BRINGER_POWER * terrors_on_field
        damage += sum(c.power for c in creatures_in_gy) * terrors_on_field

    if terrors_in_gy > 0:
        for card in creatures_in_gy:
            if card.name == TERROR:
                damage += card.power * (terrors_in_gy - 1)
            else:
                damage += card.power * terrors_in_gy

    ardyn = has_ardyn(state)
    for permanent in state.battlefield.creatures:
        if permanent.is_impending:
            continue
        sick = permanent.has_summoning_sickness(state.turn)
        if not sick or (ardyn and permanent.has_creature_type("Demon")):
            damage += permanent.power

    if ardyn:
        damage += sum(c.power for c in creatures_in_gy if c.has_type("Demon"))

    return damage


def is_combo_lethal(state: GameState) -> bool:
    return calculate_combo_damage(state) >= state.opponent_life
