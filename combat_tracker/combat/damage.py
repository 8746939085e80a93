"""
Damage module for the combat tracker.

Resolves damage, healing and temporary hit points against a combatant's
health ledger. The resolver never rolls dice for follow-up saves: it only
reports, through the returned outcome, which saves are owed. Every function
computes its full outcome first and commits the ledger in a single write.
"""

from collections.abc import Iterable
from typing import Any

from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import (
    DEATH_SAVE_LIMIT,
    MASSIVE_DAMAGE_DC,
    DamageModifier,
    DamageType,
)
from combat_tracker.core.dice import DiceParser, RollBreakdown, RollSource
from combat_tracker.core.errors import (
    InvariantViolation,
    NoOpError,
    require_int_in_range,
    require_non_negative_int,
    require_positive_int,
)
from combat_tracker.core.logging import log_debug

from .concentration import compute_concentration_dc
from .events import (
    CombatantKilled,
    CombatantRevived,
    DamageApplied,
    EventStream,
    HealingApplied,
    emit,
)
from .outcomes import DamageOutcome, HealingOutcome


def _context(combatant: Combatant, source: str | None = None) -> dict[str, Any]:
    return {"combatant": combatant.name, "id": combatant.id, "source": source}


# ============================================================================
# DAMAGE TYPE MODIFIERS
# ============================================================================


def resolve_damage_modifier(
    combatant: Combatant,
    damage_type: DamageType | None,
    ignore_resistance: bool = False,
    ignore_immunity: bool = False,
    ignore_vulnerability: bool = False,
) -> DamageModifier:
    """
    Resolves the single modifier a damage type gets against a combatant.

    Precedence is immune, then resistant, then vulnerable. A combatant both
    resistant and vulnerable to a type takes resistance-level damage.

    Args:
        combatant (Combatant): The target.
        damage_type (DamageType | None): The damage type, None for untyped.
        ignore_resistance (bool): Suppresses resistance for this call.
        ignore_immunity (bool): Suppresses immunity for this call.
        ignore_vulnerability (bool): Suppresses vulnerability for this call.

    Returns:
        DamageModifier: The modifier to apply.

    """
    if damage_type is None:
        return DamageModifier.NORMAL
    if not ignore_immunity and combatant.is_immune(damage_type):
        return DamageModifier.IMMUNE
    if not ignore_resistance and combatant.is_resistant(damage_type):
        return DamageModifier.RESISTANT
    if not ignore_vulnerability and combatant.is_vulnerable(damage_type):
        return DamageModifier.VULNERABLE
    return DamageModifier.NORMAL


def modify_damage(amount: int, modifier: DamageModifier) -> int:
    """Applies a damage modifier, rounding resistance down."""
    if modifier == DamageModifier.IMMUNE:
        return 0
    if modifier == DamageModifier.RESISTANT:
        return amount // 2
    if modifier == DamageModifier.VULNERABLE:
        return amount * 2
    return amount


# ============================================================================
# DAMAGE
# ============================================================================


def apply_damage(
    combatant: Combatant,
    amount: int,
    damage_type: DamageType | str | None = None,
    critical: bool = False,
    source: str | None = None,
    ignore_resistance: bool = False,
    ignore_immunity: bool = False,
    ignore_vulnerability: bool = False,
    massive_damage_rule: bool = True,
    events: EventStream | None = None,
) -> DamageOutcome:
    """
    Applies one damage instruction to a combatant.

    Temporary hit points absorb damage first; hit points never go below 0.
    A monster reaching 0 hp is dead. A player character dropped to 0 dies
    outright when the final damage of the hit, temporary hit points
    included, is at least its maximum hit points plus the hit points it had
    before the hit. Damage to a stabilized player
    character puts it back to dying.

    Args:
        combatant (Combatant): The target.
        amount (int): Raw damage, must be positive.
        damage_type (DamageType | str | None): Damage type or tag, empty for untyped.
        critical (bool): Whether the hit was critical (informational).
        source (str | None): What dealt the damage.
        ignore_resistance (bool): Suppresses resistance for this call.
        ignore_immunity (bool): Suppresses immunity for this call.
        ignore_vulnerability (bool): Suppresses vulnerability for this call.
        massive_damage_rule (bool): Signals a massive damage save when enabled.
        events (EventStream | None): Receives the resulting events.

    Returns:
        DamageOutcome: The resolved damage and the saves it owes.

    Raises:
        NoOpError: If the amount is zero or negative.
        ConfigurationError: If the damage type tag is unknown.

    """
    context = _context(combatant, source)
    require_positive_int(amount, "damage amount", context, error_class=NoOpError)
    resolved_type = DamageType.parse_optional(damage_type)

    modifier = resolve_damage_modifier(
        combatant,
        resolved_type,
        ignore_resistance=ignore_resistance,
        ignore_immunity=ignore_immunity,
        ignore_vulnerability=ignore_vulnerability,
    )
    final_damage = modify_damage(amount, modifier)

    health = combatant.health
    old_hp, old_temp_hp = health.hp, health.temp_hp
    absorbed = min(old_temp_hp, final_damage)
    new_temp_hp = old_temp_hp - absorbed
    remaining = final_damage - absorbed
    new_hp = max(0, old_hp - remaining)

    was_unconscious = old_hp > 0 and new_hp == 0
    was_dead = combatant.is_dead
    changes: dict[str, Any] = {"hp": new_hp, "temp_hp": new_temp_hp}

    instant_death = False
    if combatant.is_monster:
        is_dead = new_hp == 0
    elif was_dead:
        is_dead = True
    elif new_hp == 0 and final_damage >= health.max_hp + old_hp:
        instant_death = True
        is_dead = True
        changes.update(successes=0, failures=DEATH_SAVE_LIMIT, stable=False)
    else:
        is_dead = False
        if was_unconscious:
            changes.update(successes=0, failures=0, stable=False)
        elif new_hp == 0 and health.stable and remaining > 0:
            changes.update(stable=False)

    concentration_dc = None
    if health.concentrating and final_damage > 0:
        concentration_dc = compute_concentration_dc(final_damage)

    massive_damage_required = (
        massive_damage_rule and not is_dead and final_damage >= health.max_hp
    )

    outcome = DamageOutcome(
        combatant_id=combatant.id,
        raw_damage=amount,
        final_damage=final_damage,
        damage_type=resolved_type,
        modifier=modifier,
        critical=critical,
        source=source,
        absorbed_by_temp_hp=absorbed,
        old_hp=old_hp,
        new_hp=new_hp,
        old_temp_hp=old_temp_hp,
        new_temp_hp=new_temp_hp,
        was_unconscious=was_unconscious,
        is_dead=is_dead,
        instant_death=instant_death,
        concentration_check_required=concentration_dc is not None,
        concentration_dc=concentration_dc,
        massive_damage_check_required=massive_damage_required,
        massive_damage_dc=MASSIVE_DAMAGE_DC if massive_damage_required else None,
    )

    health.commit(**changes)

    log_debug(
        f"{combatant.name} takes {final_damage} damage",
        {
            **context,
            "raw": amount,
            "type": resolved_type,
            "modifier": modifier,
            "hp": f"{new_hp}/{health.max_hp}",
            "absorbed": absorbed,
        },
    )
    emit(events, DamageApplied(combatant_id=combatant.id, outcome=outcome))
    if is_dead and not was_dead:
        emit(
            events,
            CombatantKilled(
                combatant_id=combatant.id,
                cause="instant death" if instant_death else "damage",
            ),
        )
    return outcome


def roll_damage(
    expression: str, source: RollSource, critical: bool = False
) -> RollBreakdown:
    """
    Rolls a damage expression such as '2d6+3'.

    The result can be fed to apply_damage; a total of 0 or less is rejected
    there like any other non-positive amount.
    """
    return DiceParser.roll(expression, source, critical=critical)


def apply_damage_to_many(
    combatants: Iterable[Combatant], amount: int, **options: Any
) -> list[DamageOutcome]:
    """Applies the same damage instruction to each combatant in turn."""
    return [apply_damage(combatant, amount, **options) for combatant in combatants]


# ============================================================================
# HEALING
# ============================================================================


def apply_healing(
    combatant: Combatant,
    amount: int,
    temporary: bool = False,
    source: str | None = None,
    events: EventStream | None = None,
) -> HealingOutcome:
    """
    Heals a combatant, or grants temporary hit points.

    Regular healing never exceeds maximum hit points. A dying or stable
    player character healed above 0 hp regains consciousness with its death
    saves reset.

    Raises:
        NoOpError: If the amount is zero or negative.
        InvariantViolation: If the combatant is dead.

    """
    if temporary:
        return apply_temporary_hp(combatant, amount, source=source, events=events)

    context = _context(combatant, source)
    require_positive_int(amount, "healing amount", context, error_class=NoOpError)
    if combatant.is_dead:
        raise InvariantViolation(
            f"{combatant.name} is dead and cannot be healed, revive it instead"
        )

    health = combatant.health
    old_hp = health.hp
    new_hp = min(health.max_hp, old_hp + amount)
    regained = old_hp == 0 and new_hp > 0

    outcome = HealingOutcome(
        combatant_id=combatant.id,
        amount=amount,
        healed=new_hp - old_hp,
        temporary=False,
        source=source,
        old_hp=old_hp,
        new_hp=new_hp,
        old_temp_hp=health.temp_hp,
        new_temp_hp=health.temp_hp,
        regained_consciousness=regained,
    )

    changes: dict[str, Any] = {"hp": new_hp}
    if regained:
        changes.update(successes=0, failures=0, stable=False)
    health.commit(**changes)

    log_debug(
        f"{combatant.name} heals for {outcome.healed} HP",
        {**context, "hp": f"{new_hp}/{health.max_hp}"},
    )
    emit(events, HealingApplied(combatant_id=combatant.id, outcome=outcome))
    if regained:
        emit(events, CombatantRevived(combatant_id=combatant.id, hp=new_hp))
    return outcome


def apply_temporary_hp(
    combatant: Combatant,
    amount: int,
    source: str | None = None,
    events: EventStream | None = None,
) -> HealingOutcome:
    """
    Grants temporary hit points. They do not stack: the combatant keeps the
    greater of its current and the new amount.

    Raises:
        NoOpError: If the amount is zero or negative.

    """
    context = _context(combatant, source)
    require_positive_int(amount, "temporary hp", context, error_class=NoOpError)

    health = combatant.health
    old_temp_hp = health.temp_hp
    new_temp_hp = max(old_temp_hp, amount)

    outcome = HealingOutcome(
        combatant_id=combatant.id,
        amount=amount,
        healed=new_temp_hp - old_temp_hp,
        temporary=True,
        source=source,
        old_hp=health.hp,
        new_hp=health.hp,
        old_temp_hp=old_temp_hp,
        new_temp_hp=new_temp_hp,
    )
    health.commit(temp_hp=new_temp_hp)

    if new_temp_hp > old_temp_hp:
        log_debug(f"{combatant.name} gains {new_temp_hp} temporary HP", context)
    else:
        log_debug(
            f"{combatant.name} already has {old_temp_hp} temporary HP "
            f"(higher than {amount})",
            context,
        )
    emit(events, HealingApplied(combatant_id=combatant.id, outcome=outcome))
    return outcome


def apply_healing_to_many(
    combatants: Iterable[Combatant], amount: int, **options: Any
) -> list[HealingOutcome]:
    """Applies the same healing to each combatant in turn."""
    return [apply_healing(combatant, amount, **options) for combatant in combatants]


# ============================================================================
# DIRECT HP MANAGEMENT
# ============================================================================


def set_hp(combatant: Combatant, hp: int) -> None:
    """
    Overwrites current hit points.

    Setting a player character above 0 clears its death saves; setting it to
    0 starts a fresh dying episode.

    Raises:
        InvariantViolation: If hp is outside [0, max_hp].

    """
    health = combatant.health
    require_int_in_range(hp, "hp", 0, health.max_hp, _context(combatant))
    changes: dict[str, Any] = {"hp": hp}
    if hp > 0 or health.hp > 0:
        changes.update(successes=0, failures=0, stable=False)
    health.commit(**changes)
    log_debug(f"{combatant.name} HP set to {hp}", _context(combatant))


def set_max_hp(combatant: Combatant, max_hp: int) -> None:
    """
    Overwrites maximum hit points, lowering current hit points to fit.

    Raises:
        InvariantViolation: If max_hp is not positive.

    """
    require_positive_int(max_hp, "max_hp", _context(combatant))
    health = combatant.health
    health.commit(max_hp=max_hp, hp=min(health.hp, max_hp))
    log_debug(f"{combatant.name} max HP set to {max_hp}", _context(combatant))


def set_temporary_hp(combatant: Combatant, temp_hp: int) -> None:
    """
    Overwrites temporary hit points, for corrections and removal.

    Unlike apply_temporary_hp this replaces the value even when it is lower.

    Raises:
        InvariantViolation: If temp_hp is negative.

    """
    require_non_negative_int(temp_hp, "temp_hp", _context(combatant))
    combatant.health.commit(temp_hp=temp_hp)
    log_debug(f"{combatant.name} temporary HP set to {temp_hp}", _context(combatant))
