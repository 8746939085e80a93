"""
Tests for applying, removing and expiring conditions.
"""

import pytest

from combat_tracker.combat import (
    ConditionAdded,
    ConditionRemoved,
    EventStream,
    add_condition,
    expire_conditions,
    has_condition,
    remove_condition,
)
from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import Condition
from combat_tracker.core.errors import ConfigurationError, InvariantViolation


@pytest.fixture
def rogue():
    return Combatant(name="Rogue", kind="pc", max_hp=18)


def test_add_and_remove(rogue):
    events = EventStream()
    received = []
    events.subscribe(received.append)
    add_condition(rogue, "poisoned", events=events)
    assert has_condition(rogue, Condition.POISONED)
    assert remove_condition(rogue, "poisoned", events=events)
    assert not has_condition(rogue, "poisoned")
    assert [type(e) for e in received] == [ConditionAdded, ConditionRemoved]


def test_remove_missing_condition(rogue):
    assert not remove_condition(rogue, Condition.PRONE)


def test_reapplying_refreshes_the_entry(rogue):
    add_condition(rogue, "frightened", duration=1, current_round=1)
    add_condition(rogue, "frightened", duration=3, current_round=2)
    assert len(rogue.conditions) == 1
    assert rogue.get_condition(Condition.FRIGHTENED).expires_at == 5


def test_conditions_expire_after_their_duration(rogue):
    add_condition(rogue, "blinded", duration=2, current_round=1)
    add_condition(rogue, "prone")
    assert expire_conditions(rogue, 2) == []
    assert expire_conditions(rogue, 3) == [Condition.BLINDED]
    assert has_condition(rogue, "prone")
    assert not has_condition(rogue, "blinded")


def test_zero_duration_is_rejected(rogue):
    with pytest.raises(InvariantViolation):
        add_condition(rogue, "stunned", duration=0)
    assert rogue.conditions == []


def test_unknown_condition_is_rejected(rogue):
    with pytest.raises(ConfigurationError):
        add_condition(rogue, "sleepy")
