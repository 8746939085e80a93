"""
Death saves module for the combat tracker.

Drives a dying player character through death saving throws to
stabilization, revival or death, and provides the life-state operations
that bypass the dice: stabilize, revive and kill.

A death save is only accepted from a dying combatant. Monsters, conscious,
stabilized and dead combatants are rejected with InvariantViolation.
"""

from typing import Any

from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import (
    DEATH_SAVE_DC,
    DEATH_SAVE_LIMIT,
    DeathSaveResult,
    HealthStatus,
)
from combat_tracker.core.dice import RollSource, roll_d20
from combat_tracker.core.errors import InvariantViolation, require_int_in_range
from combat_tracker.core.logging import log_debug, log_info

from .events import (
    CombatantKilled,
    CombatantRevived,
    CombatantStabilized,
    DeathSaveResolved,
    EventStream,
    emit,
)
from .outcomes import DeathSaveOutcome


def _describe_state(combatant: Combatant) -> str:
    if combatant.is_dead:
        return "dead"
    if combatant.is_stable:
        return "stable"
    if combatant.is_monster:
        return "a monster"
    return "conscious"


def _require_dying(combatant: Combatant, action: str) -> None:
    if not combatant.is_dying:
        raise InvariantViolation(
            f"Cannot {action} {combatant.name}: combatant is "
            f"{_describe_state(combatant)}, not dying"
        )


def apply_death_save(
    combatant: Combatant, roll: int, events: EventStream | None = None
) -> DeathSaveOutcome:
    """
    Applies a natural d20 result as a death saving throw.

    A 20 revives the combatant at 1 hp. A 1 counts as two failures. Otherwise
    10 or higher is a success and anything lower a failure. Three successes
    stabilize the combatant and reset the counters; three failures kill it.

    Args:
        combatant (Combatant): A dying player character.
        roll (int): The natural d20 result, in [1, 20].
        events (EventStream | None): Receives the resulting events.

    Returns:
        DeathSaveOutcome: What the roll resolved to and the new counters.

    Raises:
        InvariantViolation: If the roll is out of range or the combatant is
            not dying.

    """
    require_int_in_range(roll, "death save roll", 1, 20, {"combatant": combatant.name})
    _require_dying(combatant, "roll a death save for")

    health = combatant.health
    successes, failures = health.successes, health.failures
    changes: dict[str, Any]

    if roll == 20:
        result = DeathSaveResult.REVIVED
        changes = {"hp": 1, "successes": 0, "failures": 0, "stable": False}
    elif roll == 1:
        failures = min(DEATH_SAVE_LIMIT, failures + 2)
        result = DeathSaveResult.DOUBLE_FAILURE
        changes = {"failures": failures}
    elif roll >= DEATH_SAVE_DC:
        successes += 1
        result = DeathSaveResult.SUCCESS
        changes = {"successes": successes}
    else:
        failures += 1
        result = DeathSaveResult.FAILURE
        changes = {"failures": failures}

    if result != DeathSaveResult.REVIVED:
        if failures >= DEATH_SAVE_LIMIT:
            result = DeathSaveResult.DEAD
        elif successes >= DEATH_SAVE_LIMIT:
            result = DeathSaveResult.STABILIZED
            changes = {"successes": 0, "failures": 0, "stable": True}

    health.commit(**changes)
    outcome = DeathSaveOutcome(
        combatant_id=combatant.id,
        roll=roll,
        result=result,
        successes=health.successes,
        failures=health.failures,
        hp=health.hp,
    )

    log_debug(
        f"{combatant.name} death save: {roll} ({result.value})",
        {"successes": outcome.successes, "failures": outcome.failures},
    )
    emit(events, DeathSaveResolved(combatant_id=combatant.id, outcome=outcome))
    if result == DeathSaveResult.REVIVED:
        emit(events, CombatantRevived(combatant_id=combatant.id, hp=1))
    elif result == DeathSaveResult.STABILIZED:
        emit(events, CombatantStabilized(combatant_id=combatant.id))
    elif result == DeathSaveResult.DEAD:
        emit(events, CombatantKilled(combatant_id=combatant.id, cause="death saves"))
    return outcome


def roll_death_save(
    combatant: Combatant, source: RollSource, events: EventStream | None = None
) -> DeathSaveOutcome:
    """Rolls a d20 from the source and applies it as a death save."""
    _require_dying(combatant, "roll a death save for")
    return apply_death_save(combatant, roll_d20(source).value, events=events)


def stabilize_combatant(combatant: Combatant, events: EventStream | None = None) -> None:
    """
    Stabilizes a dying combatant without a roll, e.g. after a Medicine check.

    Raises:
        InvariantViolation: If the combatant is not dying.

    """
    _require_dying(combatant, "stabilize")
    combatant.health.commit(successes=0, failures=0, stable=True)
    log_info(f"{combatant.name} is stabilized", {"id": combatant.id})
    emit(events, CombatantStabilized(combatant_id=combatant.id))


def revive_combatant(
    combatant: Combatant, hp: int = 1, events: EventStream | None = None
) -> None:
    """
    Brings a combatant at 0 hp back with the given hit points, clearing its
    death saves. Works on dying, stable and dead combatants alike.

    Raises:
        InvariantViolation: If the combatant is conscious or hp is outside
            [1, max_hp].

    """
    health = combatant.health
    require_int_in_range(hp, "revive hp", 1, health.max_hp, {"combatant": combatant.name})
    if not combatant.is_unconscious:
        raise InvariantViolation(f"Cannot revive {combatant.name}: combatant is conscious")
    health.commit(hp=hp, successes=0, failures=0, stable=False)
    combatant.defeated = False
    log_info(f"{combatant.name} is revived with {hp} HP", {"id": combatant.id})
    emit(events, CombatantRevived(combatant_id=combatant.id, hp=hp))


def kill_combatant(
    combatant: Combatant, cause: str = "killed", events: EventStream | None = None
) -> bool:
    """
    Kills a combatant outright.

    Returns:
        bool: False if the combatant was already dead.

    """
    if combatant.is_dead:
        return False
    changes: dict[str, Any] = {"hp": 0, "stable": False}
    if combatant.is_pc:
        changes.update(successes=0, failures=DEATH_SAVE_LIMIT)
    combatant.health.commit(**changes)
    log_info(f"{combatant.name} dies", {"id": combatant.id, "cause": cause})
    emit(events, CombatantKilled(combatant_id=combatant.id, cause=cause))
    return True


def hp_percentage(combatant: Combatant) -> int:
    """Returns current hit points as a whole percentage of the maximum."""
    return combatant.hp * 100 // combatant.max_hp


def get_health_status(combatant: Combatant) -> HealthStatus:
    """
    Describes how hurt a combatant is.

    Above 75% is healthy, then wounded down to 50%, bloodied down to 25% and
    critical below that. At 0 hp the status is dying, stable or dead.
    """
    if combatant.is_dead:
        return HealthStatus.DEAD
    if combatant.is_stable:
        return HealthStatus.STABLE
    if combatant.is_dying:
        return HealthStatus.DYING
    ratio = combatant.hp / combatant.max_hp
    if ratio > 0.75:
        return HealthStatus.HEALTHY
    if ratio > 0.5:
        return HealthStatus.WOUNDED
    if ratio > 0.25:
        return HealthStatus.BLOODIED
    return HealthStatus.CRITICAL
