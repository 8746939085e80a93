"""
Tests for the Encounter session object.
"""

import pytest

from combat_tracker.combat import Encounter
from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import Condition, InitiativeSystem
from combat_tracker.core.dice import ScriptedRollSource
from combat_tracker.core.errors import InvariantViolation
from combat_tracker.core.settings import CombatSettings


def make_roster():
    return [
        Combatant(name="Aria", kind="pc", max_hp=20),
        Combatant(name="Brute", kind="monster", max_hp=8),
        Combatant(name="Cora", kind="pc", max_hp=20),
    ]


def started(settings=None, rolls=(20, 15, 10)):
    encounter = Encounter(settings=settings, source=ScriptedRollSource(rolls))
    roster = make_roster()
    for combatant in roster:
        encounter.add_combatant(combatant)
    encounter.start()
    return encounter, roster


def test_duplicate_combatant_is_rejected():
    encounter = Encounter(source=ScriptedRollSource([]))
    aria = Combatant(name="Aria", kind="pc", max_hp=20)
    encounter.add_combatant(aria)
    with pytest.raises(InvariantViolation):
        encounter.add_combatant(aria)


def test_unknown_combatant_is_rejected():
    encounter = Encounter(source=ScriptedRollSource([]))
    with pytest.raises(InvariantViolation):
        encounter.get("missing")


def test_next_turn_before_start_is_rejected():
    encounter = Encounter(source=ScriptedRollSource([]))
    with pytest.raises(InvariantViolation):
        encounter.next_turn()


def test_start_rolls_initiative_and_writes_it_back():
    encounter, roster = started()
    assert encounter.started
    assert encounter.round_number == 1
    assert encounter.active_combatant == roster[0]
    assert [c.initiative for c in roster] == [20, 15, 10]


def test_turns_cycle_through_the_order():
    encounter, roster = started()
    assert encounter.next_turn() == roster[1]
    assert encounter.next_turn() == roster[2]
    assert encounter.next_turn() == roster[0]
    assert encounter.round_number == 2


def test_defeated_are_skipped_when_configured():
    encounter, roster = started(CombatSettings(skip_defeated=True))
    encounter.damage(roster[1].id, 8)
    assert encounter.next_turn() == roster[2]


def test_defeated_still_get_turns_by_default():
    encounter, roster = started()
    encounter.damage(roster[1].id, 8)
    assert encounter.next_turn() == roster[1]


def test_conditions_expire_at_the_new_round():
    encounter, roster = started()
    encounter.add_condition(roster[2].id, "frightened", duration=1)
    encounter.add_condition(roster[0].id, Condition.PRONE)
    encounter.next_turn()
    encounter.next_turn()
    assert roster[2].has_condition(Condition.FRIGHTENED)
    encounter.next_turn()
    assert not roster[2].has_condition(Condition.FRIGHTENED)
    assert roster[0].has_condition(Condition.PRONE)


def test_dropping_to_zero_breaks_concentration():
    encounter, roster = started()
    aria = roster[0]
    encounter.begin_concentration(aria.id, "Bless")
    outcome = encounter.damage(aria.id, 20)
    assert outcome.concentration_check_required
    assert not aria.concentrating
    assert encounter.save_log == []


def test_concentration_save_is_owed_but_not_rolled_by_default():
    encounter, roster = started()
    aria = roster[0]
    encounter.begin_concentration(aria.id, "Bless")
    outcome = encounter.damage(aria.id, 12)
    assert outcome.concentration_dc == 10
    assert aria.concentrating
    assert encounter.save_log == []


def test_auto_resolved_concentration_save():
    encounter, roster = started(
        CombatSettings(auto_resolve_saves=True), rolls=(20, 15, 10, 5)
    )
    aria = roster[0]
    encounter.begin_concentration(aria.id, "Bless")
    encounter.damage(aria.id, 12)
    assert len(encounter.save_log) == 1
    assert not encounter.save_log[0].success
    assert not aria.concentrating


def test_auto_resolved_massive_damage_save():
    encounter, roster = started(
        CombatSettings(auto_resolve_saves=True), rolls=(20, 15, 10, 3)
    )
    aria = roster[0]
    outcome = encounter.damage(aria.id, 20)
    assert outcome.massive_damage_check_required
    assert encounter.save_log[0].dc == 15
    assert aria.is_dead


def test_massive_damage_rule_disabled():
    encounter, roster = started(
        CombatSettings(auto_resolve_saves=True, massive_damage_rule=False)
    )
    encounter.damage(roster[0].id, 20)
    assert encounter.save_log == []
    assert roster[0].is_dying


def test_death_saves_through_the_encounter():
    encounter, roster = started(rolls=(20, 15, 10, 14))
    aria = roster[0]
    encounter.damage(aria.id, 20)
    encounter.death_save(aria.id, roll=5)
    outcome = encounter.death_save(aria.id)
    assert outcome.roll == 14
    assert (outcome.successes, outcome.failures) == (1, 1)
    encounter.stabilize(aria.id)
    assert aria.is_stable
    encounter.revive(aria.id, hp=3)
    assert aria.hp == 3


def test_kill_and_heal():
    encounter, roster = started()
    cora = roster[2]
    encounter.damage(cora.id, 5)
    encounter.heal(cora.id, 2, source="Potion")
    encounter.grant_temporary_hp(cora.id, 4)
    assert cora.hp == 17
    assert cora.temp_hp == 4
    assert encounter.kill(cora.id)
    with pytest.raises(InvariantViolation):
        encounter.heal(cora.id, 5)


def test_statistics_follow_the_event_stream():
    encounter, roster = started()
    encounter.damage(roster[1].id, 3, damage_type="fire", source="Aria")
    encounter.heal(roster[1].id, 1)
    stats = encounter.statistics()
    assert stats.total_damage == 3
    assert stats.damage_by_source == {"Aria": 3}
    assert stats.total_healing == 1


def test_removing_the_active_combatant_passes_the_turn():
    encounter, roster = started()
    encounter.remove_combatant(roster[0].id)
    assert encounter.active_combatant == roster[1]
    assert encounter.next_turn() == roster[2]


def test_removing_a_later_combatant_keeps_the_turn():
    encounter, roster = started()
    encounter.next_turn()
    encounter.remove_combatant(roster[2].id)
    assert encounter.active_combatant == roster[1]
    assert encounter.next_turn() == roster[0]


def test_popcorn_encounter():
    encounter, roster = started(CombatSettings(initiative_system=InitiativeSystem.POPCORN))
    assert encounter.next_turn(nominee=roster[2].id) == roster[2]
    with pytest.raises(InvariantViolation):
        encounter.next_turn()
