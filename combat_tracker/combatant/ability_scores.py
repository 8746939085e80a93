"""
Ability scores module.

Raw ability scores are the only stored source of truth; modifiers are always
computed from them.
"""

from typing import Any

from pydantic import BaseModel, Field

from combat_tracker.core.constants import Ability
from combat_tracker.core.utils import get_stat_modifier


class AbilityScores(BaseModel):
    """The six ability scores of a combatant."""

    strength: int = Field(default=10, ge=1, le=30, description="Strength score")
    dexterity: int = Field(default=10, ge=1, le=30, description="Dexterity score")
    constitution: int = Field(default=10, ge=1, le=30, description="Constitution score")
    intelligence: int = Field(default=10, ge=1, le=30, description="Intelligence score")
    wisdom: int = Field(default=10, ge=1, le=30, description="Wisdom score")
    charisma: int = Field(default=10, ge=1, le=30, description="Charisma score")

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "AbilityScores":
        """
        Builds scores from full names ('dexterity') or abbreviations ('dex').
        """
        if not data:
            return cls()
        scores: dict[str, Any] = {}
        for key, value in data.items():
            ability = Ability.parse(key)
            scores[ability.name.lower()] = value
        return cls(**scores)

    def score(self, ability: Ability) -> int:
        """Returns the raw score of an ability."""
        return getattr(self, ability.name.lower())

    def modifier(self, ability: Ability) -> int:
        """Returns the modifier of an ability."""
        return get_stat_modifier(self.score(ability))

    @property
    def STR(self) -> int:
        return self.modifier(Ability.STRENGTH)

    @property
    def DEX(self) -> int:
        return self.modifier(Ability.DEXTERITY)

    @property
    def CON(self) -> int:
        return self.modifier(Ability.CONSTITUTION)

    @property
    def INT(self) -> int:
        return self.modifier(Ability.INTELLIGENCE)

    @property
    def WIS(self) -> int:
        return self.modifier(Ability.WISDOM)

    @property
    def CHA(self) -> int:
        return self.modifier(Ability.CHARISMA)
