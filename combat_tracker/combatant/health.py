"""
Health ledger module.

Holds the mutable hit-point and death-save state of one combatant. Every
write goes through HealthLedger.commit, which validates the complete candidate
state before assigning anything, so a rejected write leaves the ledger as it
was.
"""

from typing import Any

from pydantic import BaseModel, Field

from combat_tracker.core.constants import DEATH_SAVE_LIMIT
from combat_tracker.core.errors import InvariantViolation


class DeathSaves(BaseModel):
    """Snapshot of the death-save counters."""

    successes: int = Field(default=0, description="Successful death saves.")
    failures: int = Field(default=0, description="Failed death saves.")


class HealthLedger:
    """
    Per-combatant hit-point state.

    Attributes:
        max_hp (int):
            Maximum hit points, always positive.
        hp (int):
            Current hit points, in [0, max_hp].
        temp_hp (int):
            Temporary hit points, consumed before hp, never negative.
        successes (int):
            Death-save successes, in [0, 3].
        failures (int):
            Death-save failures, in [0, 3].
        stable (bool):
            True once a dying combatant has been stabilized at 0 hp.
        concentrating (bool):
            True while the combatant maintains a concentration effect.
        concentration_spell (str | None):
            Name of the effect being concentrated on, if known.

    """

    _FIELDS = (
        "max_hp",
        "hp",
        "temp_hp",
        "successes",
        "failures",
        "stable",
        "concentrating",
        "concentration_spell",
    )

    def __init__(
        self,
        max_hp: int,
        hp: int | None = None,
        temp_hp: int = 0,
        successes: int = 0,
        failures: int = 0,
        stable: bool = False,
        concentrating: bool = False,
        concentration_spell: str | None = None,
    ) -> None:
        state = {
            "max_hp": max_hp,
            "hp": max_hp if hp is None else hp,
            "temp_hp": temp_hp,
            "successes": successes,
            "failures": failures,
            "stable": stable,
            "concentrating": concentrating,
            "concentration_spell": concentration_spell,
        }
        self._validate(state)
        self._state = state

    # ============================================================================
    # READ ACCESSORS
    # ============================================================================

    @property
    def max_hp(self) -> int:
        return self._state["max_hp"]

    @property
    def hp(self) -> int:
        return self._state["hp"]

    @property
    def temp_hp(self) -> int:
        return self._state["temp_hp"]

    @property
    def successes(self) -> int:
        return self._state["successes"]

    @property
    def failures(self) -> int:
        return self._state["failures"]

    @property
    def stable(self) -> bool:
        return self._state["stable"]

    @property
    def concentrating(self) -> bool:
        return self._state["concentrating"]

    @property
    def concentration_spell(self) -> str | None:
        return self._state["concentration_spell"]

    @property
    def death_saves(self) -> DeathSaves:
        return DeathSaves(successes=self.successes, failures=self.failures)

    # ============================================================================
    # WRITES
    # ============================================================================

    def commit(self, **changes: Any) -> None:
        """
        Applies a set of field changes atomically.

        Raises:
            InvariantViolation: If a field is unknown or the resulting state
                breaks an invariant. Nothing is written in that case.

        """
        unknown = set(changes) - set(self._FIELDS)
        if unknown:
            raise InvariantViolation(f"Unknown ledger fields: {sorted(unknown)}")
        candidate = {**self._state, **changes}
        self._validate(candidate)
        self._state = candidate

    def snapshot(self) -> dict[str, Any]:
        """Returns a copy of the current state."""
        return dict(self._state)

    @staticmethod
    def _validate(state: dict[str, Any]) -> None:
        for name in ("max_hp", "hp", "temp_hp", "successes", "failures"):
            value = state[name]
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvariantViolation(f"{name} must be an integer, got: {value!r}")
        if state["max_hp"] <= 0:
            raise InvariantViolation(f"max_hp must be positive, got: {state['max_hp']}")
        if not 0 <= state["hp"] <= state["max_hp"]:
            raise InvariantViolation(
                f"hp must be between 0 and {state['max_hp']}, got: {state['hp']}"
            )
        if state["temp_hp"] < 0:
            raise InvariantViolation(f"temp_hp must be non-negative, got: {state['temp_hp']}")
        for name in ("successes", "failures"):
            if not 0 <= state[name] <= DEATH_SAVE_LIMIT:
                raise InvariantViolation(
                    f"Death-save {name} must be between 0 and {DEATH_SAVE_LIMIT}, "
                    f"got: {state[name]}"
                )
        if state["stable"] and state["hp"] > 0:
            raise InvariantViolation("Only a combatant at 0 hp can be stable")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(hp={self.hp}/{self.max_hp}, "
            f"temp_hp={self.temp_hp}, death_saves={self.successes}/{self.failures})"
        )
