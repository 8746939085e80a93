"""
Core system module for the combat tracker.

This module contains the fundamental components shared by the engine: rule
constants and enumerations, the error taxonomy, logging, dice rolling,
settings and display utilities.
"""

from .constants import (
    CONCENTRATION_MIN_DC,
    DEATH_SAVE_DC,
    DEATH_SAVE_LIMIT,
    MASSIVE_DAMAGE_DC,
    Ability,
    CombatantKind,
    Condition,
    DamageModifier,
    DamageType,
    DeathSaveResult,
    HealthStatus,
    InitiativeSystem,
    RollMode,
)
from .dice import (
    DiceParser,
    RandomRollSource,
    RollBreakdown,
    RollSource,
    ScriptedRollSource,
    roll_d20,
)
from .errors import (
    CombatError,
    ConfigurationError,
    InvariantViolation,
    NoOpError,
    RollSourceExhausted,
)
from .logging import get_logger, setup_logging
from .settings import CombatSettings, load_settings, load_settings_file
from .utils import ccapture, cprint, crule, format_modifier, get_stat_modifier

__all__ = [
    # Import from constants.py
    "CONCENTRATION_MIN_DC",
    "DEATH_SAVE_DC",
    "DEATH_SAVE_LIMIT",
    "MASSIVE_DAMAGE_DC",
    "Ability",
    "CombatantKind",
    "Condition",
    "DamageModifier",
    "DamageType",
    "DeathSaveResult",
    "HealthStatus",
    "InitiativeSystem",
    "RollMode",
    # Import from dice.py
    "DiceParser",
    "RandomRollSource",
    "RollBreakdown",
    "RollSource",
    "ScriptedRollSource",
    "roll_d20",
    # Import from errors.py
    "CombatError",
    "ConfigurationError",
    "InvariantViolation",
    "NoOpError",
    "RollSourceExhausted",
    # Import from logging.py
    "get_logger",
    "setup_logging",
    # Import from settings.py
    "CombatSettings",
    "load_settings",
    "load_settings_file",
    # Import from utils.py
    "ccapture",
    "cprint",
    "crule",
    "format_modifier",
    "get_stat_modifier",
]
