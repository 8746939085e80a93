"""
Saving throws module for the combat tracker.

Rolls saving throws against a DC using the injected roll source, and
resolves the massive damage save owed after a very large hit.
"""

from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import MASSIVE_DAMAGE_DC, Ability, RollMode
from combat_tracker.core.dice import RollSource, roll_d20
from combat_tracker.core.errors import require_int
from combat_tracker.core.logging import log_debug

from .death_saves import kill_combatant
from .events import EventStream
from .outcomes import SavingThrowResult


def saving_throw(
    combatant: Combatant,
    ability: Ability | str,
    dc: int,
    source: RollSource,
    mode: RollMode = RollMode.NORMAL,
    bonus: int = 0,
) -> SavingThrowResult:
    """
    Rolls a saving throw.

    The total is the d20 plus the combatant's explicit save bonus for the
    ability, or its ability modifier when it has none, plus any extra bonus.
    The save succeeds when the total meets or beats the DC.

    Args:
        combatant (Combatant): The combatant making the save.
        ability (Ability | str): The ability to save with.
        dc (int): The difficulty class.
        source (RollSource): The injected die.
        mode (RollMode): Advantage or disadvantage on the d20.
        bonus (int): An extra situational bonus.

    Returns:
        SavingThrowResult: The roll, the total and whether it succeeded.

    """
    ability = Ability.parse(ability)
    require_int(dc, "dc", {"combatant": combatant.name})
    roll = roll_d20(source, mode)
    modifier = combatant.save_modifier(ability) + bonus
    total = roll.value + modifier
    result = SavingThrowResult(
        combatant_id=combatant.id,
        ability=ability,
        dc=dc,
        roll=roll,
        modifier=modifier,
        total=total,
        success=total >= dc,
        mode=mode,
    )
    log_debug(
        f"{combatant.name} {ability.short_name} save: {total} vs DC {dc}",
        {"roll": roll.description, "modifier": modifier, "success": result.success},
    )
    return result


def resolve_massive_damage_save(
    combatant: Combatant,
    source: RollSource,
    mode: RollMode = RollMode.NORMAL,
    events: EventStream | None = None,
) -> SavingThrowResult:
    """
    Rolls the DC 15 Constitution save owed after massive damage. The
    combatant dies on a failure.
    """
    result = saving_throw(
        combatant, Ability.CONSTITUTION, MASSIVE_DAMAGE_DC, source, mode=mode
    )
    if not result.success:
        kill_combatant(combatant, cause="massive damage", events=events)
    return result
