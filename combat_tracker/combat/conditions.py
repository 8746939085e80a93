"""
Conditions module for the combat tracker.

Adds, removes and expires conditions on combatants. Damage and condition
events coming from external rule sources go through these functions exactly
like conditions applied by hand.
"""

from combat_tracker.combatant import ActiveCondition, Combatant
from combat_tracker.core.constants import Condition
from combat_tracker.core.errors import require_int, require_positive_int
from combat_tracker.core.logging import log_debug

from .events import ConditionAdded, ConditionRemoved, EventStream, emit


def has_condition(combatant: Combatant, condition: Condition | str) -> bool:
    return combatant.has_condition(Condition.parse(condition))


def add_condition(
    combatant: Combatant,
    condition: Condition | str,
    duration: int | None = None,
    current_round: int = 0,
    source: str | None = None,
    events: EventStream | None = None,
) -> ActiveCondition:
    """
    Applies a condition. Applying a condition the combatant already has
    replaces the old entry, refreshing its duration.

    Args:
        combatant (Combatant): The target.
        condition (Condition | str): The condition or its tag.
        duration (int | None): Duration in rounds, None for indefinite.
        current_round (int): The round the condition is applied on.
        source (str | None): What applied the condition.
        events (EventStream | None): Receives a ConditionAdded event.

    Returns:
        ActiveCondition: The stored entry.

    """
    condition = Condition.parse(condition)
    context = {"combatant": combatant.name, "condition": condition.value}
    if duration is not None:
        require_positive_int(duration, "duration", context)
    require_int(current_round, "current_round", context)

    active = ActiveCondition(
        condition=condition,
        duration=duration,
        applied_round=current_round,
        source=source,
    )
    combatant.conditions = [
        existing for existing in combatant.conditions if existing.condition != condition
    ] + [active]
    log_debug(f"{combatant.name} is {condition.value}", {**context, "duration": duration})
    emit(
        events,
        ConditionAdded(combatant_id=combatant.id, condition=condition, duration=duration),
    )
    return active


def remove_condition(
    combatant: Combatant,
    condition: Condition | str,
    events: EventStream | None = None,
) -> bool:
    """
    Removes a condition.

    Returns:
        bool: False if the combatant did not have it.

    """
    condition = Condition.parse(condition)
    if not combatant.has_condition(condition):
        return False
    combatant.conditions = [
        existing for existing in combatant.conditions if existing.condition != condition
    ]
    log_debug(f"{combatant.name} is no longer {condition.value}")
    emit(events, ConditionRemoved(combatant_id=combatant.id, condition=condition))
    return True


def expire_conditions(
    combatant: Combatant,
    current_round: int,
    events: EventStream | None = None,
) -> list[Condition]:
    """
    Removes every condition whose duration has run out by the given round.

    Returns:
        list[Condition]: The conditions that expired.

    """
    expired = [
        active.condition
        for active in combatant.conditions
        if active.is_expired(current_round)
    ]
    for condition in expired:
        remove_condition(combatant, condition, events=events)
    return expired
