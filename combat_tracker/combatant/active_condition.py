"""
Active condition module.

A condition applied to a combatant, with an optional duration counted in
rounds from the round it was applied.
"""

from pydantic import BaseModel, Field

from combat_tracker.core.constants import Condition


class ActiveCondition(BaseModel):
    """A condition currently affecting a combatant."""

    condition: Condition = Field(
        description="The condition being applied.",
    )
    duration: int | None = Field(
        default=None,
        description="Duration in rounds, None for an indefinite condition.",
    )
    applied_round: int = Field(
        default=0,
        description="The round the condition was applied on.",
    )
    source: str | None = Field(
        default=None,
        description="What applied the condition.",
    )

    @property
    def expires_at(self) -> int | None:
        """The first round in which the condition is no longer active."""
        if self.duration is None:
            return None
        return self.applied_round + self.duration

    def is_expired(self, current_round: int) -> bool:
        expires_at = self.expires_at
        return expires_at is not None and current_round >= expires_at

    def __str__(self) -> str:
        label = f"{self.condition.emoji} {self.condition.display_name}"
        if self.duration is not None:
            label += f" ({self.duration} rounds)"
        return label
