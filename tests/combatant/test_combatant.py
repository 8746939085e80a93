"""
Tests for the Combatant type and its health ledger.
"""

import pytest

from combat_tracker.combatant import AbilityScores, ActiveCondition, Combatant, HealthLedger
from combat_tracker.core.constants import Ability, CombatantKind, Condition, DamageType
from combat_tracker.core.errors import ConfigurationError, InvariantViolation


@pytest.fixture
def fighter():
    return Combatant(
        name="Fighter",
        kind="pc",
        max_hp=20,
        armor_class=16,
        abilities=AbilityScores(dexterity=14, constitution=16),
        resistances=["fire"],
        initiative_bonus=2,
    )


def test_defaults_are_resolved_at_creation(fighter):
    assert fighter.kind == CombatantKind.PC
    assert fighter.hp == 20
    assert fighter.max_hp == 20
    assert fighter.temp_hp == 0
    assert fighter.conditions == []
    assert fighter.initiative is None
    assert fighter.health.death_saves.successes == 0
    assert fighter.health.death_saves.failures == 0
    assert not fighter.concentrating
    assert fighter.id


def test_modifiers_are_derived_from_scores(fighter):
    assert fighter.dex_modifier == 2
    assert fighter.initiative_modifier == 4
    assert fighter.abilities.CON == 3
    assert fighter.save_modifier(Ability.WISDOM) == 0


def test_save_bonus_overrides_ability_modifier():
    rogue = Combatant(
        name="Rogue", kind="pc", max_hp=10, save_bonuses={"dex": 7}
    )
    assert rogue.save_modifier(Ability.DEXTERITY) == 7


def test_damage_type_sets_are_parsed(fighter):
    assert fighter.is_resistant(DamageType.FIRE)
    fighter.add_vulnerability("cold")
    fighter.add_immunity(DamageType.POISON)
    assert fighter.is_vulnerable(DamageType.COLD)
    assert fighter.is_immune(DamageType.POISON)
    fighter.remove_resistance("fire")
    assert not fighter.is_resistant(DamageType.FIRE)


def test_unknown_damage_type_is_rejected():
    with pytest.raises(ConfigurationError):
        Combatant(name="Imp", kind="monster", max_hp=5, immunities=["plasma"])


def test_unknown_kind_is_rejected():
    with pytest.raises(ConfigurationError):
        Combatant(name="Ghost", kind="spirit", max_hp=5)


@pytest.mark.parametrize("max_hp", [0, -3])
def test_non_positive_max_hp_is_rejected(max_hp):
    with pytest.raises(InvariantViolation):
        Combatant(name="Nobody", kind="pc", max_hp=max_hp)


def test_hp_above_max_is_rejected():
    with pytest.raises(InvariantViolation):
        Combatant(name="Nobody", kind="pc", max_hp=10, hp=11)


def test_empty_name_is_rejected():
    with pytest.raises(InvariantViolation):
        Combatant(name="  ", kind="pc", max_hp=10)


def test_monster_at_zero_hp_is_dead():
    goblin = Combatant(name="Goblin", kind="monster", max_hp=7, hp=0)
    assert goblin.is_dead
    assert not goblin.is_dying
    assert goblin.is_defeated


def test_pc_at_zero_hp_is_dying():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=0)
    assert hero.is_dying
    assert not hero.is_dead
    assert not hero.is_stable


def test_defeated_flag(fighter):
    assert not fighter.is_defeated
    fighter.defeated = True
    assert fighter.is_defeated


def test_poisoned_imposes_initiative_disadvantage(fighter):
    assert not fighter.has_initiative_disadvantage
    fighter.conditions.append(ActiveCondition(condition=Condition.POISONED))
    assert fighter.has_initiative_disadvantage


def test_ledger_commit_is_atomic():
    ledger = HealthLedger(max_hp=10, hp=6, temp_hp=2)
    with pytest.raises(InvariantViolation):
        ledger.commit(hp=3, temp_hp=-1)
    assert ledger.hp == 6
    assert ledger.temp_hp == 2


@pytest.mark.parametrize(
    "changes",
    [
        {"hp": 11},
        {"hp": -1},
        {"failures": 4},
        {"successes": -1},
        {"stable": True},
        {"max_hp": 0},
        {"mana": 3},
    ],
)
def test_ledger_rejects_invalid_states(changes):
    ledger = HealthLedger(max_hp=10)
    with pytest.raises(InvariantViolation):
        ledger.commit(**changes)
    assert ledger.snapshot()["hp"] == 10


def test_combatants_compare_by_id(fighter):
    twin = Combatant(name="Fighter", kind="pc", max_hp=20)
    assert twin != fighter
    assert fighter == fighter
    assert len({fighter, fighter}) == 1
