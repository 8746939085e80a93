"""
Concentration module for the combat tracker.

Computes concentration save DCs and starts or breaks concentration. Removing
the effect that was being concentrated on is left to the caller.
"""

from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import CONCENTRATION_MIN_DC, Ability, RollMode
from combat_tracker.core.dice import RollSource
from combat_tracker.core.errors import InvariantViolation, require_non_negative_int
from combat_tracker.core.logging import log_debug

from .events import ConcentrationBroken, ConcentrationStarted, EventStream, emit
from .outcomes import SavingThrowResult
from .saves import saving_throw


def compute_concentration_dc(damage: int) -> int:
    """
    Returns the DC of a concentration save: half the damage, at least 10.

    Raises:
        InvariantViolation: If the damage is negative.

    """
    require_non_negative_int(damage, "damage")
    return max(CONCENTRATION_MIN_DC, damage // 2)


def begin_concentration(
    combatant: Combatant,
    spell: str | None = None,
    events: EventStream | None = None,
) -> None:
    """
    Starts concentrating on an effect, dropping any previous one.

    Raises:
        InvariantViolation: If the combatant is unconscious.

    """
    if combatant.is_unconscious:
        raise InvariantViolation(f"{combatant.name} is unconscious and cannot concentrate")
    if combatant.concentrating:
        break_concentration(combatant, events=events)
    combatant.health.commit(concentrating=True, concentration_spell=spell)
    log_debug(f"{combatant.name} begins concentrating", {"spell": spell})
    emit(events, ConcentrationStarted(combatant_id=combatant.id, spell=spell))


def break_concentration(combatant: Combatant, events: EventStream | None = None) -> bool:
    """
    Clears the concentration flag.

    Returns:
        bool: False if the combatant was not concentrating.

    """
    if not combatant.concentrating:
        return False
    spell = combatant.health.concentration_spell
    combatant.health.commit(concentrating=False, concentration_spell=None)
    log_debug(f"{combatant.name} loses concentration", {"spell": spell})
    emit(events, ConcentrationBroken(combatant_id=combatant.id, spell=spell))
    return True


def resolve_concentration_check(
    combatant: Combatant,
    dc: int,
    source: RollSource,
    mode: RollMode = RollMode.NORMAL,
    events: EventStream | None = None,
) -> SavingThrowResult:
    """
    Rolls an owed concentration save, breaking concentration on a failure.
    """
    result = saving_throw(combatant, Ability.CONSTITUTION, dc, source, mode=mode)
    if not result.success:
        break_concentration(combatant, events=events)
    return result
