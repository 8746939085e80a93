"""
Combat clock module for the combat tracker.

Tracks whose turn it is within an initiative order. The clock never changes
the order or the combatants: every call takes the current TurnState and
returns a new one.
"""

from collections.abc import Callable

from pydantic import BaseModel, Field

from combat_tracker.core.constants import InitiativeSystem
from combat_tracker.core.errors import InvariantViolation
from combat_tracker.core.logging import log_debug

from .events import EventStream, RoundStarted, TurnAdvanced, emit
from .initiative import InitiativeEntry, InitiativeOrder

DefeatedCheck = Callable[[str], bool]


class TurnState(BaseModel):
    """Position of the clock within an initiative order."""

    current_index: int = Field(description="Slot of the active combatant.")
    round_number: int = Field(default=1, description="The current round, from 1.")
    turn_number: int = Field(default=1, description="Turns taken since the start, from 1.")
    acted: list[str] = Field(
        default_factory=list,
        description="Combatants that acted this round, used by popcorn initiative.",
    )


def _skipped(
    entry: InitiativeEntry, skip_defeated: bool, is_defeated: DefeatedCheck | None
) -> bool:
    return skip_defeated and is_defeated is not None and is_defeated(entry.combatant_id)


def _announce(
    order: InitiativeOrder,
    state: TurnState,
    new_round: bool,
    events: EventStream | None,
) -> None:
    entry = order.entries[state.current_index]
    if new_round:
        log_debug(f"Round {state.round_number} begins")
        emit(events, RoundStarted(round_number=state.round_number))
    log_debug(
        f"{entry.name}'s turn",
        {"round": state.round_number, "turn": state.turn_number},
    )
    emit(
        events,
        TurnAdvanced(
            combatant_id=entry.combatant_id,
            index=state.current_index,
            round_number=state.round_number,
            turn_number=state.turn_number,
        ),
    )


def active_entry(order: InitiativeOrder, state: TurnState) -> InitiativeEntry:
    """Returns the entry whose turn it is."""
    if not 0 <= state.current_index < len(order.entries):
        raise InvariantViolation(
            f"Turn index {state.current_index} is outside an order of {len(order.entries)}"
        )
    return order.entries[state.current_index]


def start_combat(
    order: InitiativeOrder,
    skip_defeated: bool = False,
    is_defeated: DefeatedCheck | None = None,
    events: EventStream | None = None,
) -> TurnState:
    """
    Starts round 1 on the first eligible combatant of the order.

    Raises:
        InvariantViolation: If the order is empty or every combatant is skipped.

    """
    if not order.entries:
        raise InvariantViolation("Cannot start combat with an empty initiative order")
    for index, entry in enumerate(order.entries):
        if not _skipped(entry, skip_defeated, is_defeated):
            state = TurnState(current_index=index, acted=[entry.combatant_id])
            _announce(order, state, True, events)
            return state
    raise InvariantViolation("Cannot start combat: every combatant is defeated")


def advance_turn(
    order: InitiativeOrder,
    state: TurnState,
    skip_defeated: bool = False,
    is_defeated: DefeatedCheck | None = None,
    nominee: str | None = None,
    events: EventStream | None = None,
) -> TurnState:
    """
    Moves the clock to the next turn.

    Under popcorn initiative the caller must name the next combatant; a new
    round starts once every eligible combatant has acted. Otherwise the clock
    moves to the next slot, wrapping to the top of the order and incrementing
    the round.

    Args:
        order (InitiativeOrder): The order being run.
        state (TurnState): The current position.
        skip_defeated (bool): Skip combatants reported as defeated.
        is_defeated (DefeatedCheck | None): Tells whether a combatant id is defeated.
        nominee (str | None): The next combatant id, popcorn initiative only.
        events (EventStream | None): Receives RoundStarted and TurnAdvanced.

    Returns:
        TurnState: The new position.

    Raises:
        InvariantViolation: On an empty order, when every combatant is
            skipped, or on a missing or invalid popcorn nominee.

    """
    if not order.entries:
        raise InvariantViolation("Cannot advance turns over an empty initiative order")
    active_entry(order, state)

    if order.system == InitiativeSystem.POPCORN:
        new_state = _advance_popcorn(order, state, skip_defeated, is_defeated, nominee)
    else:
        if nominee is not None:
            raise InvariantViolation(
                f"A nominee can only be given under popcorn initiative, not {order.system.value}"
            )
        new_state = _advance_sequential(order, state, skip_defeated, is_defeated)

    _announce(order, new_state, new_state.round_number != state.round_number, events)
    return new_state


def _advance_sequential(
    order: InitiativeOrder,
    state: TurnState,
    skip_defeated: bool,
    is_defeated: DefeatedCheck | None,
) -> TurnState:
    count = len(order.entries)
    index, round_number = state.current_index, state.round_number
    for _ in range(count):
        index += 1
        if index >= count:
            index = 0
            round_number += 1
        if not _skipped(order.entries[index], skip_defeated, is_defeated):
            return TurnState(
                current_index=index,
                round_number=round_number,
                turn_number=state.turn_number + 1,
            )
    raise InvariantViolation("Cannot advance: every combatant is defeated")


def _advance_popcorn(
    order: InitiativeOrder,
    state: TurnState,
    skip_defeated: bool,
    is_defeated: DefeatedCheck | None,
    nominee: str | None,
) -> TurnState:
    if nominee is None:
        raise InvariantViolation("Popcorn initiative needs the next combatant to be nominated")
    index = order.index_of(nominee)
    if _skipped(order.entries[index], skip_defeated, is_defeated):
        raise InvariantViolation(f"Nominee '{order.entries[index].name}' is defeated")

    eligible = {
        entry.combatant_id
        for entry in order.entries
        if not _skipped(entry, skip_defeated, is_defeated)
    }
    round_number, acted = state.round_number, list(state.acted)
    if eligible <= set(acted):
        round_number, acted = round_number + 1, []
    if nominee in acted:
        raise InvariantViolation(
            f"'{order.entries[index].name}' has already acted in round {round_number}"
        )
    return TurnState(
        current_index=index,
        round_number=round_number,
        turn_number=state.turn_number + 1,
        acted=acted + [nominee],
    )
