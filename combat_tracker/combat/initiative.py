"""
Initiative module for the combat tracker.

Computes the turn order of an encounter under one of the supported
conventions. The order is a pure function of the combatants, the values the
injected roll source produces and the chosen system: combatants are never
modified here, and every tie is broken by a deterministic key.

Systems:
    standard: each combatant rolls (or keeps a preset initiative), sorted by
        initiative, then DEX modifier, then name.
    group: each PC is its own group, monsters sharing a base name form one
        group that rolls once with its best modifier.
    side: all PCs roll once, all monsters roll once, the higher side acts
        first (players win ties). Within a side, members are sorted by their
        own initiative.
    popcorn: only a seed order, built like standard. The caller nominates
        each following combatant through the turn clock.
"""

import re
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from combat_tracker.combatant import AbilityScores, Combatant
from combat_tracker.core.constants import CombatantKind, InitiativeSystem, RollMode
from combat_tracker.core.dice import RollBreakdown, RollSource, roll_d20
from combat_tracker.core.errors import InvariantViolation
from combat_tracker.core.logging import log_debug

# Trailing sequence numbers of numbered monsters: 'Goblin 2', 'Goblin #3'.
_SEQUENCE_SUFFIX = re.compile(r"\s+#?\d+$")


class InitiativeRoll(BaseModel):
    """One combatant's initiative roll."""

    combatant_id: str = Field(description="The combatant that rolled.")
    roll: RollBreakdown = Field(description="The d20 roll.")
    modifier: int = Field(description="The initiative modifier added.")
    total: int = Field(description="The resulting initiative.")
    mode: RollMode = Field(default=RollMode.NORMAL, description="How the d20 was rolled.")


class GroupInitiative(BaseModel):
    """The single roll made for a group or a side."""

    key: str = Field(description="Identifier of the group.")
    name: str = Field(description="Display name of the group.")
    kind: CombatantKind = Field(description="The kind of the group members.")
    modifier: int = Field(description="Highest initiative modifier among the members.")
    roll: RollBreakdown | None = Field(
        default=None,
        description="The d20 roll, None when a preset initiative was used.",
    )
    initiative: int = Field(description="The group initiative.")
    member_ids: list[str] = Field(default_factory=list, description="The members.")


class InitiativeEntry(BaseModel):
    """One slot of an initiative order."""

    combatant_id: str = Field(description="The combatant in this slot.")
    name: str = Field(description="The combatant name.")
    kind: CombatantKind = Field(description="The combatant kind.")
    initiative: int = Field(description="The initiative used for ordering.")
    dex_modifier: int = Field(description="DEX modifier, the first tie-breaker.")
    roll: RollBreakdown | None = Field(
        default=None,
        description="The individual d20 roll, None when not rolled individually.",
    )
    group_key: str | None = Field(
        default=None,
        description="The group or side the combatant acted with.",
    )
    group_initiative: int | None = Field(
        default=None,
        description="The initiative of that group or side.",
    )


class InitiativeOrder(BaseModel):
    """The turn order of an encounter."""

    system: InitiativeSystem = Field(description="The system that produced the order.")
    entries: list[InitiativeEntry] = Field(default_factory=list, description="The slots.")
    group_rolls: list[GroupInitiative] = Field(
        default_factory=list,
        description="Group or side rolls, in rolling order.",
    )

    @property
    def ids(self) -> list[str]:
        return [entry.combatant_id for entry in self.entries]

    def index_of(self, combatant_id: str) -> int:
        """
        Returns the slot of a combatant.

        Raises:
            InvariantViolation: If the combatant is not in the order.

        """
        for index, entry in enumerate(self.entries):
            if entry.combatant_id == combatant_id:
                return index
        raise InvariantViolation(f"Combatant '{combatant_id}' is not in the initiative order")

    def __len__(self) -> int:
        return len(self.entries)


# ============================================================================
# MODIFIERS AND ROLLS
# ============================================================================


def calculate_initiative_modifier(abilities: AbilityScores, bonus: int = 0) -> int:
    """Returns the DEX modifier plus an externally supplied bonus."""
    return abilities.DEX + bonus


def initiative_roll_mode(combatant: Combatant) -> RollMode:
    """Advantage and disadvantage from flags and conditions, cancelling out."""
    return RollMode.combine(
        combatant.initiative_advantage, combatant.has_initiative_disadvantage
    )


def roll_for_combatant(combatant: Combatant, source: RollSource) -> InitiativeRoll:
    """
    Rolls initiative for one combatant: a d20, kept high under advantage and
    low under disadvantage, plus the initiative modifier.
    """
    mode = initiative_roll_mode(combatant)
    roll = roll_d20(source, mode)
    modifier = combatant.initiative_modifier
    return InitiativeRoll(
        combatant_id=combatant.id,
        roll=roll,
        modifier=modifier,
        total=roll.value + modifier,
        mode=mode,
    )


def group_key(combatant: Combatant) -> str:
    """
    Returns the group a combatant rolls with under group initiative: PCs are
    keyed by id, monsters by name without a trailing sequence number.
    """
    if combatant.kind == CombatantKind.PC:
        return f"pc:{combatant.id}"
    return f"monster:{base_name(combatant.name)}"


def base_name(name: str) -> str:
    return _SEQUENCE_SUFFIX.sub("", name.strip())


# ============================================================================
# SORTING
# ============================================================================


def _entry_sort_key(entry: InitiativeEntry) -> tuple:
    return (
        -entry.initiative,
        -entry.dex_modifier,
        entry.name.casefold(),
        entry.name,
        entry.combatant_id,
    )


def sort_by_initiative(entries: Iterable[InitiativeEntry]) -> list[InitiativeEntry]:
    """
    Sorts entries by initiative descending, then DEX modifier descending,
    then name ascending. The combatant id settles identical names.
    """
    return sorted(entries, key=_entry_sort_key)


def _individual_entry(
    combatant: Combatant,
    source: RollSource,
    use_preset: bool,
    group: GroupInitiative | None = None,
    shares_group_initiative: bool = True,
) -> InitiativeEntry:
    roll = None
    if use_preset and combatant.initiative is not None:
        initiative = combatant.initiative
    elif group is not None and shares_group_initiative:
        initiative = group.initiative
    else:
        result = roll_for_combatant(combatant, source)
        roll, initiative = result.roll, result.total
    return InitiativeEntry(
        combatant_id=combatant.id,
        name=combatant.name,
        kind=combatant.kind,
        initiative=initiative,
        dex_modifier=combatant.dex_modifier,
        roll=roll,
        group_key=group.key if group else None,
        group_initiative=group.initiative if group else None,
    )


# ============================================================================
# SYSTEMS
# ============================================================================


def _standard_order(
    combatants: Sequence[Combatant], source: RollSource, use_preset: bool
) -> list[InitiativeEntry]:
    entries = [_individual_entry(c, source, use_preset) for c in combatants]
    return sort_by_initiative(entries)


def _roll_group(
    key: str,
    name: str,
    members: list[Combatant],
    source: RollSource,
    preset: int | None = None,
) -> GroupInitiative:
    modifier = max(member.initiative_modifier for member in members)
    roll = None
    if preset is not None:
        initiative = preset
    else:
        roll = roll_d20(source)
        initiative = roll.value + modifier
    return GroupInitiative(
        key=key,
        name=name,
        kind=members[0].kind,
        modifier=modifier,
        roll=roll,
        initiative=initiative,
        member_ids=[member.id for member in members],
    )


def _group_order(
    combatants: Sequence[Combatant], source: RollSource, use_preset: bool
) -> tuple[list[InitiativeEntry], list[GroupInitiative]]:
    groups: dict[str, list[Combatant]] = {}
    for combatant in combatants:
        groups.setdefault(group_key(combatant), []).append(combatant)

    rolls: list[GroupInitiative] = []
    for key, members in groups.items():
        leader = members[0]
        if leader.kind == CombatantKind.PC:
            preset = leader.initiative if use_preset else None
            rolls.append(_roll_group(key, leader.name, members, source, preset))
        else:
            rolls.append(_roll_group(key, base_name(leader.name), members, source))

    ordered_groups = sorted(
        rolls,
        key=lambda g: (
            -g.initiative,
            0 if g.kind == CombatantKind.PC else 1,
            -g.modifier,
            g.name.casefold(),
            g.key,
        ),
    )

    entries: list[InitiativeEntry] = []
    for group in ordered_groups:
        members = groups[group.key]
        group_entries = [
            _individual_entry(member, source, use_preset=False, group=group)
            for member in members
        ]
        group_entries.sort(
            key=lambda e: (
                0 if e.kind == CombatantKind.PC else 1,
                -e.initiative if e.kind == CombatantKind.PC else 0,
                e.name.casefold(),
                e.name,
                e.combatant_id,
            )
        )
        entries.extend(group_entries)
    return entries, rolls


def _side_order(
    combatants: Sequence[Combatant], source: RollSource, use_preset: bool
) -> tuple[list[InitiativeEntry], list[GroupInitiative]]:
    sides: list[tuple[str, str, list[Combatant]]] = [
        ("side:pc", "Players", [c for c in combatants if c.kind == CombatantKind.PC]),
        ("side:monster", "Monsters", [c for c in combatants if c.kind == CombatantKind.MONSTER]),
    ]
    sides = [(key, name, members) for key, name, members in sides if members]
    rolls = [_roll_group(key, name, members, source) for key, name, members in sides]

    # Members without a preset roll individually, after both side rolls.
    blocks: dict[str, list[InitiativeEntry]] = {}
    for side, (_, _, members) in zip(rolls, sides):
        blocks[side.key] = sort_by_initiative(
            _individual_entry(
                member, source, use_preset, group=side, shares_group_initiative=False
            )
            for member in members
        )

    # Players act first on a tie.
    ordered = sorted(rolls, key=lambda side: (-side.initiative, side.key != "side:pc"))
    entries: list[InitiativeEntry] = []
    for side in ordered:
        entries.extend(blocks[side.key])
    return entries, rolls


def compute_order(
    combatants: Iterable[Combatant],
    system: InitiativeSystem | str,
    source: RollSource,
    use_preset: bool = True,
) -> InitiativeOrder:
    """
    Computes the turn order of a set of combatants.

    Rolls are drawn from the source in input order, so identical inputs and
    identical roll values always give the same order.

    Args:
        combatants (Iterable[Combatant]): The participants.
        system (InitiativeSystem | str): The initiative convention.
        source (RollSource): The injected die.
        use_preset (bool): Keep initiatives already set on combatants
            instead of rolling for them.

    Returns:
        InitiativeOrder: The ordered entries and any group or side rolls.

    Raises:
        ConfigurationError: If the system is unknown.
        InvariantViolation: If two combatants share an id.

    """
    system = InitiativeSystem.parse(system)
    combatants = list(combatants)
    ids = [c.id for c in combatants]
    if len(set(ids)) != len(ids):
        raise InvariantViolation("Combatant ids must be unique in an initiative order")
    if not combatants:
        return InitiativeOrder(system=system)

    group_rolls: list[GroupInitiative] = []
    if system == InitiativeSystem.GROUP:
        entries, group_rolls = _group_order(combatants, source, use_preset)
    elif system == InitiativeSystem.SIDE:
        entries, group_rolls = _side_order(combatants, source, use_preset)
    else:
        entries = _standard_order(combatants, source, use_preset)

    order = InitiativeOrder(system=system, entries=entries, group_rolls=group_rolls)
    log_debug(
        f"Initiative order computed ({system.value})",
        {"order": ", ".join(f"{e.name}={e.initiative}" for e in entries)},
    )
    return order


def apply_initiative(combatants: Iterable[Combatant], order: InitiativeOrder) -> None:
    """Writes the initiative of each entry back onto its combatant."""
    by_id = {entry.combatant_id: entry for entry in order.entries}
    for combatant in combatants:
        entry = by_id.get(combatant.id)
        if entry is not None:
            combatant.initiative = entry.initiative


def reroll_initiative(
    combatants: Iterable[Combatant],
    system: InitiativeSystem | str,
    source: RollSource,
) -> InitiativeOrder:
    """
    Rolls a fresh order, ignoring preset initiatives, and writes the results
    back onto the combatants.
    """
    combatants = list(combatants)
    order = compute_order(combatants, system, source, use_preset=False)
    apply_initiative(combatants, order)
    return order
