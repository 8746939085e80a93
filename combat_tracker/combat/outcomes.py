"""
Outcome models returned by the resolution operations.

Outcomes are plain values: they describe what an operation did and which
follow-up saves it owes, and never reference the combatant object itself.
"""

from pydantic import BaseModel, Field

from combat_tracker.core.constants import (
    Ability,
    DamageModifier,
    DamageType,
    DeathSaveResult,
    RollMode,
)
from combat_tracker.core.dice import RollBreakdown


class DamageOutcome(BaseModel):
    """The result of applying one damage instruction."""

    combatant_id: str = Field(description="The combatant that took the damage.")
    raw_damage: int = Field(description="Damage before type modifiers.")
    final_damage: int = Field(description="Damage after type modifiers.")
    damage_type: DamageType | None = Field(
        default=None,
        description="The damage type, None for untyped damage.",
    )
    modifier: DamageModifier = Field(
        default=DamageModifier.NORMAL,
        description="The single type modifier applied.",
    )
    critical: bool = Field(default=False, description="Whether the hit was critical.")
    source: str | None = Field(default=None, description="What dealt the damage.")
    absorbed_by_temp_hp: int = Field(
        default=0,
        description="Damage consumed by temporary hit points.",
    )
    old_hp: int = Field(description="Hit points before the damage.")
    new_hp: int = Field(description="Hit points after the damage.")
    old_temp_hp: int = Field(description="Temporary hit points before the damage.")
    new_temp_hp: int = Field(description="Temporary hit points after the damage.")
    was_unconscious: bool = Field(
        default=False,
        description="Hit points went from above 0 to 0 with this hit.",
    )
    is_dead: bool = Field(
        default=False,
        description="The combatant is dead after this hit.",
    )
    instant_death: bool = Field(
        default=False,
        description="A player character was killed outright by the overflow.",
    )
    concentration_check_required: bool = Field(
        default=False,
        description="A concentration saving throw is owed.",
    )
    concentration_dc: int | None = Field(
        default=None,
        description="DC of the owed concentration save.",
    )
    massive_damage_check_required: bool = Field(
        default=False,
        description="A massive damage Constitution save is owed.",
    )
    massive_damage_dc: int | None = Field(
        default=None,
        description="DC of the owed massive damage save.",
    )

    @property
    def hp_lost(self) -> int:
        return self.old_hp - self.new_hp


class HealingOutcome(BaseModel):
    """The result of applying healing or temporary hit points."""

    combatant_id: str = Field(description="The combatant that was healed.")
    amount: int = Field(description="The requested amount.")
    healed: int = Field(
        description="Hit points actually restored, or temporary hit points gained.",
    )
    temporary: bool = Field(
        default=False,
        description="Whether the amount was granted as temporary hit points.",
    )
    source: str | None = Field(default=None, description="What provided the healing.")
    old_hp: int = Field(description="Hit points before the healing.")
    new_hp: int = Field(description="Hit points after the healing.")
    old_temp_hp: int = Field(description="Temporary hit points before the healing.")
    new_temp_hp: int = Field(description="Temporary hit points after the healing.")
    regained_consciousness: bool = Field(
        default=False,
        description="Hit points went from 0 to above 0.",
    )


class DeathSaveOutcome(BaseModel):
    """The result of one death saving throw."""

    combatant_id: str = Field(description="The combatant that rolled.")
    roll: int = Field(description="The natural d20 result.")
    result: DeathSaveResult = Field(description="What the roll resolved to.")
    successes: int = Field(description="Successes after the roll.")
    failures: int = Field(description="Failures after the roll.")
    hp: int = Field(description="Hit points after the roll.")

    @property
    def is_terminal(self) -> bool:
        return self.result in (
            DeathSaveResult.DEAD,
            DeathSaveResult.STABILIZED,
            DeathSaveResult.REVIVED,
        )


class SavingThrowResult(BaseModel):
    """The result of a saving throw."""

    combatant_id: str = Field(description="The combatant that rolled.")
    ability: Ability = Field(description="The ability used for the save.")
    dc: int = Field(description="The difficulty class to meet.")
    roll: RollBreakdown = Field(description="The d20 roll.")
    modifier: int = Field(description="The bonus added to the d20.")
    total: int = Field(description="The d20 plus the modifier.")
    success: bool = Field(description="Whether the total met the DC.")
    mode: RollMode = Field(default=RollMode.NORMAL, description="How the d20 was rolled.")
