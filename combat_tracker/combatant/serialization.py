"""
Combatant serialization and deserialization functions.

Loosely-typed combatant records (optional fields, legacy key names, nested
damage modifier blocks) are resolved here, once, into the explicit Combatant
type. Nothing downstream checks for missing fields.
"""

import json
from pathlib import Path
from typing import Any

from catchery import log_warning
from pydantic import ValidationError

from combat_tracker.core.constants import Ability, Condition
from combat_tracker.core.errors import ConfigurationError
from combat_tracker.core.logging import log_debug

from .ability_scores import AbilityScores
from .active_condition import ActiveCondition
from .main import Combatant

# Legacy kind tags accepted on load.
_KIND_ALIASES = {
    "player": "pc",
    "hero": "pc",
    "character": "pc",
    "npc": "monster",
    "enemy": "monster",
    "creature": "monster",
}

# Legacy key names mapped to their current name.
_KEY_ALIASES = {
    "type": "kind",
    "currentHp": "hp",
    "current_hp": "hp",
    "maxHp": "max_hp",
    "tempHp": "temp_hp",
    "ac": "armor_class",
    "armorClass": "armor_class",
    "initiativeBonus": "initiative_bonus",
    "initiativeModifier": "initiative_bonus",
    "initiativeAdvantage": "initiative_advantage",
    "initiativeDisadvantage": "initiative_disadvantage",
    "saveBonuses": "save_bonuses",
    "concentrationSpell": "concentration_spell",
    "stats": "abilities",
    "abilityScores": "abilities",
}

_ABILITY_KEYS = {
    "str", "dex", "con", "int", "wis", "cha",
    "strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma",
}

_KNOWN_KEYS = {
    "id",
    "name",
    "kind",
    "hp",
    "max_hp",
    "temp_hp",
    "armor_class",
    "abilities",
    "resistances",
    "immunities",
    "vulnerabilities",
    "damageModifiers",
    "conditions",
    "initiative",
    "initiative_bonus",
    "initiative_advantage",
    "initiative_disadvantage",
    "save_bonuses",
    "concentrating",
    "concentration_spell",
    "death_saves",
    "deathSaves",
    "stable",
    "defeated",
}


def _normalize_keys(data: dict[str, Any], name: str) -> dict[str, Any]:
    record: dict[str, Any] = {}
    abilities: dict[str, Any] = {}
    for key, value in data.items():
        if key in _KEY_ALIASES:
            log_warning(
                f"Legacy combatant key '{key}', use '{_KEY_ALIASES[key]}'",
                {"combatant": name, "key": key},
            )
            key = _KEY_ALIASES[key]
        if key.lower() in _ABILITY_KEYS:
            abilities[key.lower()] = value
            continue
        if key not in _KNOWN_KEYS:
            log_warning(
                f"Ignoring unknown combatant key '{key}'",
                {"combatant": name, "key": key},
            )
            continue
        record[key] = value
    if abilities:
        record["abilities"] = {**abilities, **record.get("abilities", {})}
    return record


def _resolve_kind(value: Any, name: str) -> str:
    if value is None:
        raise ConfigurationError(f"Combatant '{name}' has no kind")
    tag = str(value).strip().lower()
    if tag in _KIND_ALIASES:
        log_warning(
            f"Legacy combatant kind '{value}', use '{_KIND_ALIASES[tag]}'",
            {"combatant": name, "kind": value},
        )
        return _KIND_ALIASES[tag]
    return tag


def _resolve_damage_modifiers(record: dict[str, Any]) -> None:
    nested = record.pop("damageModifiers", None) or {}
    for field in ("resistances", "immunities", "vulnerabilities"):
        merged = list(record.get(field) or []) + list(nested.get(field) or [])
        record[field] = merged


def _resolve_conditions(values: list[Any]) -> list[ActiveCondition]:
    conditions: list[ActiveCondition] = []
    for value in values:
        if isinstance(value, dict):
            conditions.append(
                ActiveCondition(
                    condition=Condition.parse(value.get("condition", value.get("name"))),
                    duration=value.get("duration"),
                    applied_round=value.get("applied_round", 0),
                    source=value.get("source"),
                )
            )
        else:
            conditions.append(ActiveCondition(condition=Condition.parse(value)))
    return conditions


def combatant_from_dict(data: dict[str, Any]) -> Combatant:
    """
    Creates a Combatant from a dictionary of data.

    Legacy key names and kind tags are accepted with a warning. Missing
    current hit points default to the maximum.

    Args:
        data (dict[str, Any]):
            The dictionary containing combatant data.

    Returns:
        Combatant:
            The created Combatant instance.

    Raises:
        ConfigurationError: If the record names an unknown kind, damage type,
            ability or condition, or if its ability scores are invalid.
        InvariantViolation: If the hit point values break an invariant.

    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"A combatant record must be a mapping, got: {data!r}")
    name = str(data.get("name", "")).strip() or "<unnamed>"
    record = _normalize_keys(data, name)
    _resolve_damage_modifiers(record)

    try:
        abilities = AbilityScores.from_mapping(record.get("abilities"))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid ability scores for '{name}': {e}") from e

    combatant = Combatant(
        name=record.get("name", ""),
        kind=_resolve_kind(record.get("kind"), name),
        max_hp=record.get("max_hp"),
        hp=record.get("hp"),
        temp_hp=record.get("temp_hp", 0),
        armor_class=record.get("armor_class", 10),
        abilities=abilities,
        resistances=record["resistances"],
        immunities=record["immunities"],
        vulnerabilities=record["vulnerabilities"],
        conditions=_resolve_conditions(record.get("conditions") or []),
        initiative=record.get("initiative"),
        initiative_bonus=record.get("initiative_bonus", 0),
        initiative_advantage=bool(record.get("initiative_advantage", False)),
        initiative_disadvantage=bool(record.get("initiative_disadvantage", False)),
        save_bonuses={
            Ability.parse(key): value
            for key, value in (record.get("save_bonuses") or {}).items()
        },
        concentrating=bool(record.get("concentrating", False)),
        concentration_spell=record.get("concentration_spell"),
        combatant_id=record.get("id"),
    )

    death_saves = record.get("death_saves") or record.get("deathSaves") or {}
    if death_saves or record.get("stable"):
        combatant.health.commit(
            successes=death_saves.get("successes", 0),
            failures=death_saves.get("failures", 0),
            stable=bool(record.get("stable", False)),
        )
    combatant.defeated = bool(record.get("defeated", False))

    log_debug("Combatant loaded", {"id": combatant.id, "name": combatant.name})
    return combatant


def combatant_to_dict(combatant: Combatant) -> dict[str, Any]:
    """
    Converts a Combatant to a dictionary representation.

    Args:
        combatant (Combatant):
            The combatant to convert.

    Returns:
        dict[str, Any]:
            The dictionary representation of the combatant.

    """
    health = combatant.health
    return {
        "id": combatant.id,
        "name": combatant.name,
        "kind": combatant.kind.value,
        "hp": health.hp,
        "max_hp": health.max_hp,
        "temp_hp": health.temp_hp,
        "armor_class": combatant.armor_class,
        "abilities": combatant.abilities.model_dump(),
        "resistances": sorted(t.value for t in combatant.resistances),
        "immunities": sorted(t.value for t in combatant.immunities),
        "vulnerabilities": sorted(t.value for t in combatant.vulnerabilities),
        "conditions": [
            {
                "condition": active.condition.value,
                "duration": active.duration,
                "applied_round": active.applied_round,
                "source": active.source,
            }
            for active in combatant.conditions
        ],
        "initiative": combatant.initiative,
        "initiative_bonus": combatant.initiative_bonus,
        "initiative_advantage": combatant.initiative_advantage,
        "initiative_disadvantage": combatant.initiative_disadvantage,
        "save_bonuses": {
            ability.value: bonus for ability, bonus in combatant.save_bonuses.items()
        },
        "concentrating": health.concentrating,
        "concentration_spell": health.concentration_spell,
        "death_saves": health.death_saves.model_dump(),
        "stable": health.stable,
        "defeated": combatant.defeated,
    }


def load_combatants(file_path: Path | str) -> list[Combatant]:
    """
    Loads a list of combatants from a JSON file.

    Args:
        file_path (Path | str):
            Path to a JSON file holding a list of combatant records.

    Returns:
        list[Combatant]:
            The loaded combatants, in file order.

    Raises:
        ConfigurationError: If the file is not a JSON list or a record is invalid.

    """
    file_path = Path(file_path)
    try:
        with file_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Combatant file '{file_path}' is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ConfigurationError(f"Combatant file '{file_path}' must contain a JSON list")
    return [combatant_from_dict(entry) for entry in data]
