"""
Combatant management module.

Defines the Combatant class: one explicit type for every participant of an
encounter, with every default resolved once at creation time. Hit points and
death saves live in the composed HealthLedger, raw ability scores in the
composed AbilityScores; modifiers are always derived from the scores.
"""

import uuid
from collections.abc import Iterable
from typing import Any

from combat_tracker.core.constants import (
    DEATH_SAVE_LIMIT,
    INITIATIVE_DISADVANTAGE_CONDITIONS,
    Ability,
    CombatantKind,
    Condition,
    DamageType,
)
from combat_tracker.core.errors import (
    require_int,
    require_non_empty_string,
    require_positive_int,
)

from .ability_scores import AbilityScores
from .active_condition import ActiveCondition
from .health import HealthLedger


def _damage_type_set(values: Iterable[Any] | None) -> set[DamageType]:
    if not values:
        return set()
    return {DamageType.parse(value) for value in values}


class Combatant:
    """
    Represents a participant of an encounter.

    Attributes:
        id (str):
            Unique identifier of the combatant.
        name (str):
            Display name, also used for tie-breaking and grouping.
        kind (CombatantKind):
            Whether the combatant is a player character or a monster.
        armor_class (int):
            The armor class of the combatant.
        abilities (AbilityScores):
            The raw ability scores.
        health (HealthLedger):
            Hit points, temporary hit points, death saves and concentration.
        resistances (set[DamageType]):
            Damage types dealing half damage.
        immunities (set[DamageType]):
            Damage types dealing no damage.
        vulnerabilities (set[DamageType]):
            Damage types dealing double damage.
        conditions (list[ActiveCondition]):
            The conditions currently affecting the combatant.
        initiative (int | None):
            The last computed initiative, None before the first roll.
        initiative_bonus (int):
            Externally supplied bonus added to the DEX modifier.
        initiative_advantage (bool):
            Rolls initiative with advantage.
        initiative_disadvantage (bool):
            Rolls initiative with disadvantage.
        save_bonuses (dict[Ability, int]):
            Explicit saving throw bonuses replacing the ability modifier.
        defeated (bool):
            Externally set flag used by the turn clock's skip policy.

    """

    def __init__(
        self,
        name: str,
        kind: CombatantKind | str,
        max_hp: int,
        hp: int | None = None,
        temp_hp: int = 0,
        armor_class: int = 10,
        abilities: AbilityScores | None = None,
        resistances: Iterable[Any] | None = None,
        immunities: Iterable[Any] | None = None,
        vulnerabilities: Iterable[Any] | None = None,
        conditions: list[ActiveCondition] | None = None,
        initiative: int | None = None,
        initiative_bonus: int = 0,
        initiative_advantage: bool = False,
        initiative_disadvantage: bool = False,
        save_bonuses: dict[Ability, int] | None = None,
        concentrating: bool = False,
        concentration_spell: str | None = None,
        combatant_id: str | None = None,
    ) -> None:
        context = {"name": name}
        self.id = combatant_id or uuid.uuid4().hex
        self.name = require_non_empty_string(name, "name", context).strip()
        self.kind = CombatantKind.parse(kind)
        self.armor_class = require_int(armor_class, "armor_class", context)
        self.abilities = abilities or AbilityScores()
        self.health = HealthLedger(
            max_hp=require_positive_int(max_hp, "max_hp", context),
            hp=hp,
            temp_hp=temp_hp,
            concentrating=concentrating,
            concentration_spell=concentration_spell,
        )
        self.resistances = _damage_type_set(resistances)
        self.immunities = _damage_type_set(immunities)
        self.vulnerabilities = _damage_type_set(vulnerabilities)
        self.conditions = list(conditions or [])
        self.initiative = initiative
        self.initiative_bonus = require_int(initiative_bonus, "initiative_bonus", context)
        self.initiative_advantage = initiative_advantage
        self.initiative_disadvantage = initiative_disadvantage
        self.save_bonuses = {
            Ability.parse(ability): bonus for ability, bonus in (save_bonuses or {}).items()
        }
        self.defeated = False

    # ============================================================================
    # HEALTH PROPERTIES
    # ============================================================================

    @property
    def hp(self) -> int:
        return self.health.hp

    @property
    def max_hp(self) -> int:
        return self.health.max_hp

    @property
    def temp_hp(self) -> int:
        return self.health.temp_hp

    @property
    def concentrating(self) -> bool:
        return self.health.concentrating

    @property
    def is_pc(self) -> bool:
        return self.kind == CombatantKind.PC

    @property
    def is_monster(self) -> bool:
        return self.kind == CombatantKind.MONSTER

    @property
    def is_unconscious(self) -> bool:
        """True while the combatant is at 0 hit points."""
        return self.health.hp == 0

    @property
    def is_dead(self) -> bool:
        """
        Monsters die as soon as they reach 0 hp. Player characters die after
        three failed death saves.
        """
        if self.health.hp > 0:
            return False
        if self.is_monster:
            return True
        return self.health.failures >= DEATH_SAVE_LIMIT

    @property
    def is_dying(self) -> bool:
        """True for a player character at 0 hp who still rolls death saves."""
        return (
            self.is_pc
            and self.health.hp == 0
            and not self.health.stable
            and self.health.failures < DEATH_SAVE_LIMIT
        )

    @property
    def is_stable(self) -> bool:
        """True for a player character stabilized at 0 hp."""
        return self.is_pc and self.health.hp == 0 and self.health.stable

    @property
    def is_defeated(self) -> bool:
        """True when the combatant is dead or flagged as defeated."""
        return self.defeated or self.is_dead

    # ============================================================================
    # MODIFIERS
    # ============================================================================

    @property
    def colored_name(self) -> str:
        """Returns the name with color coding based on the combatant kind."""
        return self.kind.colorize(self.name)

    @property
    def dex_modifier(self) -> int:
        return self.abilities.DEX

    @property
    def initiative_modifier(self) -> int:
        """DEX modifier plus any externally supplied initiative bonus."""
        return self.abilities.DEX + self.initiative_bonus

    def save_modifier(self, ability: Ability) -> int:
        """Returns the explicit save bonus, or the ability modifier."""
        if ability in self.save_bonuses:
            return self.save_bonuses[ability]
        return self.abilities.modifier(ability)

    @property
    def has_initiative_disadvantage(self) -> bool:
        return self.initiative_disadvantage or any(
            self.has_condition(condition)
            for condition in INITIATIVE_DISADVANTAGE_CONDITIONS
        )

    # ============================================================================
    # DAMAGE TYPE MODIFIERS
    # ============================================================================

    def is_resistant(self, damage_type: DamageType) -> bool:
        return damage_type in self.resistances

    def is_immune(self, damage_type: DamageType) -> bool:
        return damage_type in self.immunities

    def is_vulnerable(self, damage_type: DamageType) -> bool:
        return damage_type in self.vulnerabilities

    def add_resistance(self, damage_type: DamageType | str) -> None:
        self.resistances.add(DamageType.parse(damage_type))

    def remove_resistance(self, damage_type: DamageType | str) -> None:
        self.resistances.discard(DamageType.parse(damage_type))

    def add_immunity(self, damage_type: DamageType | str) -> None:
        self.immunities.add(DamageType.parse(damage_type))

    def remove_immunity(self, damage_type: DamageType | str) -> None:
        self.immunities.discard(DamageType.parse(damage_type))

    def add_vulnerability(self, damage_type: DamageType | str) -> None:
        self.vulnerabilities.add(DamageType.parse(damage_type))

    def remove_vulnerability(self, damage_type: DamageType | str) -> None:
        self.vulnerabilities.discard(DamageType.parse(damage_type))

    # ============================================================================
    # CONDITIONS
    # ============================================================================

    def has_condition(self, condition: Condition) -> bool:
        return any(active.condition == condition for active in self.conditions)

    def get_condition(self, condition: Condition) -> ActiveCondition | None:
        for active in self.conditions:
            if active.condition == condition:
                return active
        return None

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Combatant):
            return NotImplemented
        return self.id == other.id

    def __repr__(self) -> str:
        return (
            f"Combatant(name={self.name!r}, kind={self.kind.value}, "
            f"hp={self.hp}/{self.max_hp}, temp_hp={self.temp_hp})"
        )
