"""
Tests for concentration DCs and concentration checks.
"""

import pytest

from combat_tracker.combat import (
    ConcentrationBroken,
    ConcentrationStarted,
    EventStream,
    begin_concentration,
    break_concentration,
    compute_concentration_dc,
    resolve_concentration_check,
)
from combat_tracker.combatant import AbilityScores, Combatant
from combat_tracker.core.dice import ScriptedRollSource
from combat_tracker.core.errors import InvariantViolation


@pytest.fixture
def cleric():
    return Combatant(
        name="Cleric",
        kind="pc",
        max_hp=20,
        abilities=AbilityScores(constitution=14),
    )


@pytest.mark.parametrize(
    "damage, dc",
    [(0, 10), (1, 10), (20, 10), (21, 10), (22, 11), (40, 20), (101, 50)],
)
def test_dc_is_half_damage_with_a_floor(damage, dc):
    assert compute_concentration_dc(damage) == dc


def test_negative_damage_is_rejected():
    with pytest.raises(InvariantViolation):
        compute_concentration_dc(-1)


def test_begin_and_break(cleric):
    events = EventStream()
    received = []
    events.subscribe(received.append)
    begin_concentration(cleric, "Bless", events=events)
    assert cleric.concentrating
    assert cleric.health.concentration_spell == "Bless"
    assert break_concentration(cleric, events=events)
    assert not cleric.concentrating
    assert not break_concentration(cleric, events=events)
    assert [type(e) for e in received] == [ConcentrationStarted, ConcentrationBroken]


def test_new_concentration_replaces_the_old_one(cleric):
    events = EventStream()
    broken = []
    events.subscribe(broken.append, ConcentrationBroken)
    begin_concentration(cleric, "Bless")
    begin_concentration(cleric, "Spirit Guardians", events=events)
    assert cleric.health.concentration_spell == "Spirit Guardians"
    assert broken[0].spell == "Bless"


def test_unconscious_combatants_cannot_concentrate():
    hero = Combatant(name="Hero", kind="pc", max_hp=10, hp=0)
    with pytest.raises(InvariantViolation):
        begin_concentration(hero, "Bless")


def test_failed_check_breaks_concentration(cleric):
    begin_concentration(cleric, "Bless")
    result = resolve_concentration_check(cleric, 15, ScriptedRollSource([12]))
    assert result.total == 14
    assert not result.success
    assert not cleric.concentrating


def test_passed_check_keeps_concentration(cleric):
    begin_concentration(cleric, "Bless")
    result = resolve_concentration_check(cleric, 10, ScriptedRollSource([8]))
    assert result.success
    assert cleric.concentrating
