"""
Settings module for the combat tracker.

Encounter-wide configuration. Settings are validated once when loaded: an
unknown initiative system or an unknown key is a ConfigurationError, never a
silent fallback to the defaults.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from combat_tracker.core.constants import InitiativeSystem
from combat_tracker.core.errors import ConfigurationError
from combat_tracker.core.logging import log_debug

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CombatSettings(BaseModel):
    """Configuration for one encounter session."""

    initiative_system: InitiativeSystem = Field(
        default=InitiativeSystem.STANDARD,
        description="Convention used to compute the turn order.",
    )
    skip_defeated: bool = Field(
        default=False,
        description="Skip defeated combatants when advancing turns.",
    )
    massive_damage_rule: bool = Field(
        default=True,
        description="Signal a DC 15 Constitution save after a hit of at least max HP.",
    )
    auto_resolve_saves: bool = Field(
        default=False,
        description="Roll owed concentration and massive damage saves immediately.",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level used by the console entry point.",
    )


def load_settings(data: dict[str, Any] | None = None) -> CombatSettings:
    """
    Builds validated settings from a plain dictionary.

    Args:
        data (dict[str, Any] | None): Raw settings, missing keys use defaults.

    Returns:
        CombatSettings: The validated settings.

    Raises:
        ConfigurationError: On unknown keys, an unknown initiative system,
            an unknown log level, or non-boolean flags.

    """
    data = dict(data or {})
    unknown = sorted(set(data) - set(CombatSettings.model_fields))
    if unknown:
        raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")

    if "initiative_system" in data:
        data["initiative_system"] = InitiativeSystem.parse(data["initiative_system"])

    for flag in ("skip_defeated", "massive_damage_rule", "auto_resolve_saves"):
        if flag in data and not isinstance(data[flag], bool):
            raise ConfigurationError(f"Setting '{flag}' must be a boolean, got: {data[flag]!r}")

    if "log_level" in data:
        level = str(data["log_level"]).upper()
        if level not in _LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level '{data['log_level']}'")
        data["log_level"] = level

    settings = CombatSettings(**data)
    log_debug("Settings loaded", settings.model_dump(mode="json"))
    return settings


def load_settings_file(path: Path | str) -> CombatSettings:
    """
    Loads settings from a JSON file.

    Raises:
        ConfigurationError: If the file is not a JSON object or fails validation.

    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Settings file '{path}' is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file '{path}' must contain a JSON object")
    return load_settings(data)
