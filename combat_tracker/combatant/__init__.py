"""
Combatant module for the combat tracker.

This module defines the participants of an encounter: their ability scores,
their health ledger, their active conditions, and the loading of combatant
records.
"""

from .ability_scores import AbilityScores
from .active_condition import ActiveCondition
from .health import DeathSaves, HealthLedger
from .main import Combatant
from .serialization import combatant_from_dict, combatant_to_dict, load_combatants

__all__ = [
    # Import from ability_scores.py
    "AbilityScores",
    # Import from active_condition.py
    "ActiveCondition",
    # Import from health.py
    "DeathSaves",
    "HealthLedger",
    # Import from main.py
    "Combatant",
    # Import from serialization.py
    "combatant_from_dict",
    "combatant_to_dict",
    "load_combatants",
]
