"""
Combat resolution module for the combat tracker.

This module resolves damage, healing, death saves, concentration, saving
throws and conditions against combatants, computes initiative orders, runs
the turn clock, and publishes every change on a typed event stream.
"""

from .clock import TurnState, active_entry, advance_turn, start_combat
from .concentration import (
    begin_concentration,
    break_concentration,
    compute_concentration_dc,
    resolve_concentration_check,
)
from .conditions import add_condition, expire_conditions, has_condition, remove_condition
from .damage import (
    apply_damage,
    apply_damage_to_many,
    apply_healing,
    apply_healing_to_many,
    apply_temporary_hp,
    modify_damage,
    resolve_damage_modifier,
    roll_damage,
    set_hp,
    set_max_hp,
    set_temporary_hp,
)
from .death_saves import (
    apply_death_save,
    get_health_status,
    hp_percentage,
    kill_combatant,
    revive_combatant,
    roll_death_save,
    stabilize_combatant,
)
from .encounter import Encounter
from .events import (
    CombatantKilled,
    CombatantRevived,
    CombatantStabilized,
    CombatEvent,
    ConcentrationBroken,
    ConcentrationStarted,
    ConditionAdded,
    ConditionRemoved,
    DamageApplied,
    DeathSaveResolved,
    EventStream,
    HealingApplied,
    RoundStarted,
    TurnAdvanced,
)
from .history import DamageHistory, DamageStatistics, HistoryRecord, RecordKind
from .initiative import (
    GroupInitiative,
    InitiativeEntry,
    InitiativeOrder,
    InitiativeRoll,
    apply_initiative,
    calculate_initiative_modifier,
    compute_order,
    group_key,
    reroll_initiative,
    roll_for_combatant,
    sort_by_initiative,
)
from .outcomes import DamageOutcome, DeathSaveOutcome, HealingOutcome, SavingThrowResult
from .saves import resolve_massive_damage_save, saving_throw

__all__ = [
    # Import from clock.py
    "TurnState",
    "active_entry",
    "advance_turn",
    "start_combat",
    # Import from concentration.py
    "begin_concentration",
    "break_concentration",
    "compute_concentration_dc",
    "resolve_concentration_check",
    # Import from conditions.py
    "add_condition",
    "expire_conditions",
    "has_condition",
    "remove_condition",
    # Import from damage.py
    "apply_damage",
    "apply_damage_to_many",
    "apply_healing",
    "apply_healing_to_many",
    "apply_temporary_hp",
    "modify_damage",
    "resolve_damage_modifier",
    "roll_damage",
    "set_hp",
    "set_max_hp",
    "set_temporary_hp",
    # Import from death_saves.py
    "apply_death_save",
    "get_health_status",
    "hp_percentage",
    "kill_combatant",
    "revive_combatant",
    "roll_death_save",
    "stabilize_combatant",
    # Import from encounter.py
    "Encounter",
    # Import from events.py
    "CombatEvent",
    "CombatantKilled",
    "CombatantRevived",
    "CombatantStabilized",
    "ConcentrationBroken",
    "ConcentrationStarted",
    "ConditionAdded",
    "ConditionRemoved",
    "DamageApplied",
    "DeathSaveResolved",
    "EventStream",
    "HealingApplied",
    "RoundStarted",
    "TurnAdvanced",
    # Import from history.py
    "DamageHistory",
    "DamageStatistics",
    "HistoryRecord",
    "RecordKind",
    # Import from initiative.py
    "GroupInitiative",
    "InitiativeEntry",
    "InitiativeOrder",
    "InitiativeRoll",
    "apply_initiative",
    "calculate_initiative_modifier",
    "compute_order",
    "group_key",
    "reroll_initiative",
    "roll_for_combatant",
    "sort_by_initiative",
    # Import from outcomes.py
    "DamageOutcome",
    "DeathSaveOutcome",
    "HealingOutcome",
    "SavingThrowResult",
    # Import from saves.py
    "resolve_massive_damage_save",
    "saving_throw",
]
