"""
Tests for damage, healing and temporary hit points.
"""

import pytest

from combat_tracker.combat import (
    CombatantKilled,
    DamageApplied,
    EventStream,
    HealingApplied,
    apply_damage,
    apply_damage_to_many,
    apply_healing,
    apply_temporary_hp,
    roll_damage,
    set_hp,
    set_max_hp,
    set_temporary_hp,
    stabilize_combatant,
)
from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import DamageModifier, DamageType
from combat_tracker.core.dice import ScriptedRollSource
from combat_tracker.core.errors import ConfigurationError, InvariantViolation, NoOpError


@pytest.fixture
def hero():
    return Combatant(name="Hero", kind="pc", max_hp=20)


@pytest.fixture
def goblin():
    return Combatant(name="Goblin", kind="monster", max_hp=5)


@pytest.fixture
def events():
    return EventStream()


def test_fire_resistance_halves_damage(hero):
    hero.add_resistance("fire")
    outcome = apply_damage(hero, 20, damage_type="fire")
    assert outcome.modifier == DamageModifier.RESISTANT
    assert outcome.final_damage == 10
    assert hero.hp == 10


def test_resistance_rounds_down(hero):
    hero.add_resistance(DamageType.COLD)
    assert apply_damage(hero, 7, damage_type=DamageType.COLD).final_damage == 3


def test_vulnerability_doubles_damage(hero):
    hero.add_vulnerability("radiant")
    assert apply_damage(hero, 6, damage_type="radiant").final_damage == 12


def test_immunity_ignores_damage(hero):
    hero.add_immunity("poison")
    outcome = apply_damage(hero, 15, damage_type="poison")
    assert outcome.final_damage == 0
    assert outcome.modifier == DamageModifier.IMMUNE
    assert hero.hp == 20


def test_resistant_and_vulnerable_takes_resistance_damage(hero):
    hero.add_resistance("fire")
    hero.add_vulnerability("fire")
    outcome = apply_damage(hero, 10, damage_type="fire")
    assert outcome.modifier == DamageModifier.RESISTANT
    assert outcome.final_damage == 5


def test_ignore_flags_suppress_modifiers(hero):
    hero.add_resistance("fire")
    outcome = apply_damage(hero, 10, damage_type="fire", ignore_resistance=True)
    assert outcome.final_damage == 10


def test_untyped_damage_has_no_modifier(hero):
    hero.add_immunity("fire")
    outcome = apply_damage(hero, 4, damage_type="")
    assert outcome.damage_type is None
    assert outcome.final_damage == 4


def test_unknown_damage_type_is_an_error(hero):
    with pytest.raises(ConfigurationError):
        apply_damage(hero, 4, damage_type="plasma")
    assert hero.hp == 20


def test_monster_reduced_to_zero_dies(goblin, events):
    received = []
    events.subscribe(received.append)
    outcome = apply_damage(goblin, 5, events=events)
    assert goblin.hp == 0
    assert goblin.is_dead
    assert outcome.is_dead
    assert outcome.was_unconscious
    assert [type(e) for e in received] == [DamageApplied, CombatantKilled]


def test_hp_never_goes_below_zero(goblin):
    apply_damage(goblin, 50)
    assert goblin.hp == 0


def test_temporary_hp_absorbs_first(hero):
    apply_temporary_hp(hero, 5)
    outcome = apply_damage(hero, 8)
    assert outcome.absorbed_by_temp_hp == 5
    assert outcome.new_temp_hp == 0
    assert hero.hp == 17
    assert outcome.hp_lost == 3


def test_temporary_hp_fully_absorbs_small_hits(hero):
    apply_temporary_hp(hero, 5)
    apply_damage(hero, 3)
    assert hero.temp_hp == 2
    assert hero.hp == 20


@pytest.mark.parametrize("amount", [0, -4])
def test_non_positive_damage_is_rejected(hero, amount):
    with pytest.raises(NoOpError):
        apply_damage(hero, amount)
    assert hero.hp == 20
    assert hero.temp_hp == 0


def test_noop_is_an_invariant_violation(hero):
    with pytest.raises(InvariantViolation):
        apply_healing(hero, 0)


def test_pc_drops_to_dying_with_fresh_counters(hero):
    outcome = apply_damage(hero, 25)
    assert outcome.was_unconscious
    assert not outcome.is_dead
    assert hero.is_dying
    assert hero.health.failures == 0


def test_pc_instant_death_from_overflow():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=4)
    outcome = apply_damage(hero, 14)
    assert outcome.instant_death
    assert outcome.is_dead
    assert hero.is_dead


def test_pc_survives_just_below_instant_death():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=4)
    outcome = apply_damage(hero, 13)
    assert not outcome.instant_death
    assert hero.is_dying


def test_instant_death_counts_damage_absorbed_by_temporary_hp():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=5, temp_hp=10)
    outcome = apply_damage(hero, 20)
    assert outcome.absorbed_by_temp_hp == 10
    assert outcome.new_hp == 0
    assert outcome.instant_death
    assert outcome.is_dead
    assert not outcome.massive_damage_check_required
    assert hero.is_dead


def test_temporary_hp_still_needs_hp_to_reach_zero_for_instant_death():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=5, temp_hp=20)
    outcome = apply_damage(hero, 24)
    assert outcome.new_hp == 1
    assert not outcome.is_dead
    assert outcome.massive_damage_check_required


def test_damage_to_dying_pc_adds_no_failures():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=0)
    apply_damage(hero, 3)
    assert hero.is_dying
    assert hero.health.failures == 0


def test_damage_to_stable_pc_makes_it_dying_again():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=0)
    stabilize_combatant(hero)
    assert hero.is_stable
    apply_damage(hero, 2)
    assert hero.is_dying
    assert not hero.is_stable


def test_concentration_check_is_signalled(hero):
    hero.health.commit(concentrating=True, concentration_spell="Bless")
    small = apply_damage(hero, 6)
    assert small.concentration_check_required
    assert small.concentration_dc == 10
    hero.health.commit(hp=20)
    large = apply_damage(hero, 18)
    assert large.concentration_dc == 10
    hero.health.commit(hp=20, temp_hp=10)
    huge = apply_damage(hero, 26)
    assert huge.concentration_dc == 13


def test_no_concentration_check_without_concentration(hero):
    outcome = apply_damage(hero, 6)
    assert not outcome.concentration_check_required
    assert outcome.concentration_dc is None


def test_massive_damage_is_signalled_for_survivors():
    hero = Combatant(name="Hero", kind="pc", max_hp=10)
    outcome = apply_damage(hero, 10)
    assert outcome.massive_damage_check_required
    assert outcome.massive_damage_dc == 15


def test_massive_damage_rule_can_be_disabled():
    hero = Combatant(name="Hero", kind="pc", max_hp=10)
    outcome = apply_damage(hero, 10, massive_damage_rule=False)
    assert not outcome.massive_damage_check_required


def test_no_massive_damage_save_for_the_dead():
    ogre = Combatant(name="Ogre", kind="monster", max_hp=10)
    outcome = apply_damage(ogre, 12)
    assert outcome.is_dead
    assert not outcome.massive_damage_check_required


def test_apply_damage_to_many(hero, goblin):
    outcomes = apply_damage_to_many([hero, goblin], 4, damage_type="fire", source="Fireball")
    assert [o.final_damage for o in outcomes] == [4, 4]
    assert goblin.hp == 1
    assert all(o.source == "Fireball" for o in outcomes)


def test_roll_damage_feeds_apply_damage(hero):
    rolled = roll_damage("2d6+3", ScriptedRollSource([1, 2]))
    assert rolled.value == 6
    apply_damage(hero, rolled.value)
    assert hero.hp == 14


def test_healing_is_capped_at_max(hero):
    apply_damage(hero, 5)
    outcome = apply_healing(hero, 10)
    assert outcome.healed == 5
    assert hero.hp == 20


def test_healing_a_dying_pc_restores_consciousness(events):
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=0)
    hero.health.commit(successes=2, failures=1)
    received = []
    events.subscribe(received.append, HealingApplied)
    outcome = apply_healing(hero, 4, events=events)
    assert outcome.regained_consciousness
    assert hero.hp == 4
    assert hero.health.successes == 0
    assert hero.health.failures == 0
    assert len(received) == 1


def test_healing_the_dead_is_rejected(goblin):
    apply_damage(goblin, 5)
    with pytest.raises(InvariantViolation):
        apply_healing(goblin, 3)
    assert goblin.hp == 0


def test_temporary_hp_keeps_the_higher_value(hero):
    apply_temporary_hp(hero, 5)
    outcome = apply_temporary_hp(hero, 3)
    assert hero.temp_hp == 5
    assert outcome.healed == 0
    apply_healing(hero, 8, temporary=True)
    assert hero.temp_hp == 8


def test_set_hp_resets_death_saves():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=0)
    hero.health.commit(failures=2)
    set_hp(hero, 6)
    assert hero.hp == 6
    assert hero.health.failures == 0


def test_set_hp_out_of_range(hero):
    with pytest.raises(InvariantViolation):
        set_hp(hero, 21)
    assert hero.hp == 20


def test_set_max_hp_lowers_current_hp(hero):
    set_max_hp(hero, 12)
    assert hero.max_hp == 12
    assert hero.hp == 12


def test_set_temporary_hp_replaces_value(hero):
    apply_temporary_hp(hero, 8)
    set_temporary_hp(hero, 2)
    assert hero.temp_hp == 2
    with pytest.raises(InvariantViolation):
        set_temporary_hp(hero, -1)
