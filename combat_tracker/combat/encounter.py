"""
Encounter module for the combat tracker.

The Encounter ties the resolution functions together for one combat session:
it owns the combatants, the settings, the roll source, the event stream and
the damage history, and runs the turn clock over the initiative order.
"""

from catchery import log_warning

from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import Condition, DamageType
from combat_tracker.core.dice import RandomRollSource, RollSource
from combat_tracker.core.errors import InvariantViolation
from combat_tracker.core.logging import log_debug
from combat_tracker.core.settings import CombatSettings

from .clock import TurnState, active_entry, advance_turn, start_combat
from .concentration import (
    begin_concentration,
    break_concentration,
    resolve_concentration_check,
)
from .conditions import add_condition, expire_conditions, remove_condition
from .damage import apply_damage, apply_healing, apply_temporary_hp
from .death_saves import (
    apply_death_save,
    kill_combatant,
    revive_combatant,
    roll_death_save,
    stabilize_combatant,
)
from .events import EventStream
from .history import DamageHistory, DamageStatistics
from .initiative import InitiativeOrder, apply_initiative, compute_order
from .outcomes import DamageOutcome, DeathSaveOutcome, HealingOutcome, SavingThrowResult
from .saves import resolve_massive_damage_save


class Encounter:
    """
    Manages one combat session.

    Attributes:
        settings (CombatSettings):
            The encounter configuration.
        source (RollSource):
            The die every roll of the encounter comes from.
        events (EventStream):
            The stream every state change is published on.
        history (DamageHistory):
            Damage and healing recorded from the stream.
        order (InitiativeOrder | None):
            The current turn order, None before initiative is rolled.
        state (TurnState | None):
            The clock position, None before combat starts.
        save_log (list[SavingThrowResult]):
            Saves rolled automatically when auto_resolve_saves is enabled.

    """

    def __init__(
        self,
        settings: CombatSettings | None = None,
        source: RollSource | None = None,
        events: EventStream | None = None,
    ) -> None:
        self.settings = settings or CombatSettings()
        self.source = source or RandomRollSource()
        self.events = events or EventStream()
        self.history = DamageHistory()
        self.history.attach(self.events)
        self.order: InitiativeOrder | None = None
        self.state: TurnState | None = None
        self.save_log: list[SavingThrowResult] = []
        self._combatants: dict[str, Combatant] = {}

    # ============================================================================
    # ROSTER
    # ============================================================================

    @property
    def combatants(self) -> list[Combatant]:
        return list(self._combatants.values())

    def add_combatant(self, combatant: Combatant) -> Combatant:
        """
        Adds a combatant. Combatants added after initiative was rolled join
        the turn order at the next roll.

        Raises:
            InvariantViolation: If a combatant with the same id is present.

        """
        if combatant.id in self._combatants:
            raise InvariantViolation(f"Combatant '{combatant.id}' is already in the encounter")
        self._combatants[combatant.id] = combatant
        if self.order is not None:
            log_warning(
                f"{combatant.name} joins after initiative, reroll to add it to the order",
                {"combatant": combatant.name, "id": combatant.id},
            )
        log_debug(f"Added {combatant.name} to the encounter", {"id": combatant.id})
        return combatant

    def remove_combatant(self, combatant_id: str) -> Combatant:
        """
        Removes a combatant from the roster and from the turn order. When the
        active combatant is removed, the turn passes to the next slot without
        advancing the clock.
        """
        combatant = self.get(combatant_id)
        del self._combatants[combatant_id]
        if self.order is not None and combatant_id in self.order.ids:
            self._drop_from_order(combatant_id)
        log_debug(f"Removed {combatant.name} from the encounter", {"id": combatant_id})
        return combatant

    def _drop_from_order(self, combatant_id: str) -> None:
        assert self.order is not None
        removed = self.order.index_of(combatant_id)
        entries = [e for e in self.order.entries if e.combatant_id != combatant_id]
        self.order = self.order.model_copy(update={"entries": entries})
        if self.state is None:
            return
        if not entries:
            self.state = None
            return
        index = self.state.current_index
        if removed < index:
            index -= 1
        elif index >= len(entries):
            index = 0
        self.state = self.state.model_copy(
            update={
                "current_index": index,
                "acted": [cid for cid in self.state.acted if cid != combatant_id],
            }
        )

    def get(self, combatant_id: str) -> Combatant:
        """
        Returns a combatant by id.

        Raises:
            InvariantViolation: If no such combatant is in the encounter.

        """
        try:
            return self._combatants[combatant_id]
        except KeyError:
            raise InvariantViolation(f"Unknown combatant '{combatant_id}'") from None

    def _is_defeated(self, combatant_id: str) -> bool:
        combatant = self._combatants.get(combatant_id)
        return combatant is None or combatant.is_defeated

    # ============================================================================
    # TURN ORDER
    # ============================================================================

    def roll_initiative(self, reroll: bool = False) -> InitiativeOrder:
        """
        Computes the turn order with the configured system and writes the
        results back onto the combatants. Resets the clock.

        Args:
            reroll (bool): Roll for everyone, ignoring preset initiatives.

        """
        order = compute_order(
            self.combatants,
            self.settings.initiative_system,
            self.source,
            use_preset=not reroll,
        )
        apply_initiative(self.combatants, order)
        self.order = order
        self.state = None
        return order

    def start(self) -> Combatant:
        """Starts round 1, rolling initiative first if needed."""
        if self.order is None:
            self.roll_initiative()
        assert self.order is not None
        self.state = start_combat(
            self.order,
            skip_defeated=self.settings.skip_defeated,
            is_defeated=self._is_defeated,
            events=self.events,
        )
        return self._active()

    @property
    def started(self) -> bool:
        return self.state is not None

    @property
    def round_number(self) -> int:
        return self.state.round_number if self.state else 0

    @property
    def active_combatant(self) -> Combatant | None:
        if self.order is None or self.state is None:
            return None
        return self._active()

    def _active(self) -> Combatant:
        assert self.order is not None and self.state is not None
        return self.get(active_entry(self.order, self.state).combatant_id)

    def next_turn(self, nominee: str | None = None) -> Combatant:
        """
        Passes the turn. Under popcorn initiative the active combatant
        nominates the next one. Conditions that ran out expire when a new
        round starts.

        Raises:
            InvariantViolation: If combat has not started.

        """
        if self.order is None or self.state is None:
            raise InvariantViolation("Combat has not started")
        previous_round = self.state.round_number
        self.state = advance_turn(
            self.order,
            self.state,
            skip_defeated=self.settings.skip_defeated,
            is_defeated=self._is_defeated,
            nominee=nominee,
            events=self.events,
        )
        if self.state.round_number != previous_round:
            for combatant in self.combatants:
                expire_conditions(combatant, self.state.round_number, events=self.events)
        return self._active()

    # ============================================================================
    # HIT POINTS
    # ============================================================================

    def damage(
        self,
        combatant_id: str,
        amount: int,
        damage_type: DamageType | str | None = None,
        critical: bool = False,
        source: str | None = None,
        ignore_resistance: bool = False,
        ignore_immunity: bool = False,
        ignore_vulnerability: bool = False,
    ) -> DamageOutcome:
        """
        Applies damage. A combatant reduced to 0 hp loses concentration. With
        auto_resolve_saves the owed concentration and massive damage saves are
        rolled immediately and stored in save_log.
        """
        combatant = self.get(combatant_id)
        outcome = apply_damage(
            combatant,
            amount,
            damage_type=damage_type,
            critical=critical,
            source=source,
            ignore_resistance=ignore_resistance,
            ignore_immunity=ignore_immunity,
            ignore_vulnerability=ignore_vulnerability,
            massive_damage_rule=self.settings.massive_damage_rule,
            events=self.events,
        )
        if combatant.concentrating and combatant.is_unconscious:
            break_concentration(combatant, events=self.events)
        if self.settings.auto_resolve_saves:
            self._resolve_owed_saves(combatant, outcome)
        return outcome

    def _resolve_owed_saves(self, combatant: Combatant, outcome: DamageOutcome) -> None:
        if (
            outcome.concentration_check_required
            and outcome.concentration_dc is not None
            and combatant.concentrating
        ):
            self.save_log.append(
                resolve_concentration_check(
                    combatant, outcome.concentration_dc, self.source, events=self.events
                )
            )
        if outcome.massive_damage_check_required and not combatant.is_dead:
            self.save_log.append(
                resolve_massive_damage_save(combatant, self.source, events=self.events)
            )

    def heal(self, combatant_id: str, amount: int, source: str | None = None) -> HealingOutcome:
        return apply_healing(self.get(combatant_id), amount, source=source, events=self.events)

    def grant_temporary_hp(
        self, combatant_id: str, amount: int, source: str | None = None
    ) -> HealingOutcome:
        return apply_temporary_hp(
            self.get(combatant_id), amount, source=source, events=self.events
        )

    # ============================================================================
    # LIFE STATE
    # ============================================================================

    def death_save(self, combatant_id: str, roll: int | None = None) -> DeathSaveOutcome:
        """Applies a given d20 result, or rolls one from the encounter source."""
        combatant = self.get(combatant_id)
        if roll is None:
            return roll_death_save(combatant, self.source, events=self.events)
        return apply_death_save(combatant, roll, events=self.events)

    def stabilize(self, combatant_id: str) -> None:
        stabilize_combatant(self.get(combatant_id), events=self.events)

    def revive(self, combatant_id: str, hp: int = 1) -> None:
        revive_combatant(self.get(combatant_id), hp=hp, events=self.events)

    def kill(self, combatant_id: str) -> bool:
        return kill_combatant(self.get(combatant_id), events=self.events)

    # ============================================================================
    # CONCENTRATION AND CONDITIONS
    # ============================================================================

    def begin_concentration(self, combatant_id: str, spell: str | None = None) -> None:
        begin_concentration(self.get(combatant_id), spell=spell, events=self.events)

    def break_concentration(self, combatant_id: str) -> bool:
        return break_concentration(self.get(combatant_id), events=self.events)

    def add_condition(
        self,
        combatant_id: str,
        condition: Condition | str,
        duration: int | None = None,
        source: str | None = None,
    ) -> None:
        add_condition(
            self.get(combatant_id),
            condition,
            duration=duration,
            current_round=self.round_number,
            source=source,
            events=self.events,
        )

    def remove_condition(self, combatant_id: str, condition: Condition | str) -> bool:
        return remove_condition(self.get(combatant_id), condition, events=self.events)

    def statistics(self) -> DamageStatistics:
        return self.history.statistics()
