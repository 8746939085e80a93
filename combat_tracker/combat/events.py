"""
Event stream module for the combat tracker.

Every state change made by the engine is published as a typed event on an
EventStream. Renderers, persistence and the damage history subscribe to the
stream instead of registering callbacks on each subsystem.
"""

from collections.abc import Callable

from catchery import log_critical
from pydantic import BaseModel, Field
from typing_extensions import TypeVar

from combat_tracker.core.constants import Condition

from .outcomes import DamageOutcome, DeathSaveOutcome, HealingOutcome


class CombatEvent(BaseModel):
    """Base class for all combat events."""

    combatant_id: str | None = Field(
        default=None,
        description="The combatant the event concerns, if any.",
    )


class DamageApplied(CombatEvent):
    """Published after damage has been applied."""

    outcome: DamageOutcome = Field(description="The resolved damage.")


class HealingApplied(CombatEvent):
    """Published after healing or temporary hit points have been applied."""

    outcome: HealingOutcome = Field(description="The resolved healing.")


class DeathSaveResolved(CombatEvent):
    """Published after a death saving throw."""

    outcome: DeathSaveOutcome = Field(description="The resolved death save.")


class CombatantStabilized(CombatEvent):
    """Published when a dying combatant becomes stable."""


class CombatantRevived(CombatEvent):
    """Published when a downed combatant regains hit points."""

    hp: int = Field(description="Hit points after the revival.")


class CombatantKilled(CombatEvent):
    """Published when a combatant dies."""

    cause: str = Field(description="What killed the combatant.")


class ConcentrationStarted(CombatEvent):
    """Published when a combatant starts concentrating."""

    spell: str | None = Field(default=None, description="The concentration effect.")


class ConcentrationBroken(CombatEvent):
    """Published when a combatant stops concentrating."""

    spell: str | None = Field(default=None, description="The concentration effect.")


class ConditionAdded(CombatEvent):
    """Published when a condition is applied."""

    condition: Condition = Field(description="The applied condition.")
    duration: int | None = Field(default=None, description="Duration in rounds.")


class ConditionRemoved(CombatEvent):
    """Published when a condition ends."""

    condition: Condition = Field(description="The removed condition.")


class TurnAdvanced(CombatEvent):
    """Published when the active combatant changes."""

    index: int = Field(description="Position of the active combatant in the order.")
    round_number: int = Field(description="The current round.")
    turn_number: int = Field(description="The overall turn count.")


class RoundStarted(CombatEvent):
    """Published when a new round begins."""

    round_number: int = Field(description="The round that just started.")


EventT = TypeVar("EventT", bound=CombatEvent, default=CombatEvent)
EventHandler = Callable[[EventT], None]


class EventStream:
    """
    A single typed channel for every combat event.

    Subscribers register for some event classes (or for all of them) and are
    called in subscription order. A subscriber that raises is logged and the
    remaining subscribers still run.
    """

    def __init__(self) -> None:
        self._subscribers: list[tuple[EventHandler, tuple[type[CombatEvent], ...]]] = []

    def subscribe(
        self, handler: EventHandler, *event_types: type[CombatEvent]
    ) -> Callable[[], None]:
        """
        Registers a handler.

        Args:
            handler (EventHandler): Called with each matching event.
            *event_types (type[CombatEvent]): Event classes to receive, all
                events when omitted.

        Returns:
            Callable[[], None]: A function that removes the subscription.

        """
        entry = (handler, tuple(event_types))
        self._subscribers.append(entry)

        def unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return unsubscribe

    def publish(self, event: CombatEvent) -> None:
        """Delivers an event to every matching subscriber."""
        for handler, event_types in list(self._subscribers):
            if event_types and not isinstance(event, event_types):
                continue
            try:
                handler(event)
            except Exception as e:
                log_critical(
                    f"Event handler failed on {type(event).__name__}: {e}",
                    {"handler": getattr(handler, "__name__", repr(handler))},
                    e,
                )

    def __len__(self) -> int:
        return len(self._subscribers)


def emit(stream: EventStream | None, event: CombatEvent) -> None:
    """Publishes an event when a stream is given."""
    if stream is not None:
        stream.publish(event)
