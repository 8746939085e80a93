"""
Module for printing combatant sheets and other combat elements in a formatted way.
"""

from collections.abc import Mapping

from rich.padding import Padding

from combat_tracker.combat import (
    DamageOutcome,
    DamageStatistics,
    InitiativeOrder,
    TurnState,
    get_health_status,
)
from combat_tracker.combatant import Combatant
from combat_tracker.core.constants import Ability, DamageModifier
from combat_tracker.core.utils import cprint, crule, format_modifier, make_bar


def combatant_status_line(combatant: Combatant, show_bar: bool = True) -> str:
    """
    Builds a one-line summary of a combatant's health.

    Args:
        combatant (Combatant): The combatant to describe.
        show_bar (bool): Include an HP bar.

    Returns:
        str: The rich-markup status line.

    """
    status = get_health_status(combatant)
    line = f"{combatant.kind.emoji} {combatant.colored_name} "
    if show_bar:
        line += make_bar(combatant.hp, combatant.max_hp, color=status.color) + " "
    line += f"{combatant.hp}/{combatant.max_hp}"
    if combatant.temp_hp:
        line += f" [cyan](+{combatant.temp_hp})[/]"
    line += f" {status.colorize(status.display_name)}"
    if combatant.is_dying or combatant.is_stable:
        saves = combatant.health.death_saves
        line += f" [green]{'●' * saves.successes}[/][red]{'●' * saves.failures}[/]"
    if combatant.concentrating:
        line += " 🧠"
    return line


def print_combatant_sheet(combatant: Combatant) -> None:
    """
    Prints the details of a combatant in a formatted way.

    Args:
        combatant (Combatant): The combatant to display.

    """
    cprint(combatant_status_line(combatant))
    cprint(
        f"  AC: [yellow]{combatant.armor_class}[/], "
        f"Initiative: [cyan]{format_modifier(combatant.initiative_modifier)}[/]"
        + (f" (rolled {combatant.initiative})" if combatant.initiative is not None else "")
    )
    scores = [
        f"{ability.short_name}: {combatant.abilities.score(ability)} "
        f"({format_modifier(combatant.abilities.modifier(ability))})"
        for ability in Ability
    ]
    cprint(f"  {', '.join(scores)}")

    for label, damage_types in (
        ("Resistances", combatant.resistances),
        ("Immunities", combatant.immunities),
        ("Vulnerabilities", combatant.vulnerabilities),
    ):
        if damage_types:
            names = ", ".join(
                t.colorize(t.display_name) for t in sorted(damage_types, key=lambda t: t.value)
            )
            cprint(f"  {label}: {names}")

    if combatant.conditions:
        cprint("  [blue]Conditions[/]:")
        for active in combatant.conditions:
            cprint(Padding(str(active), (0, 4)))

    if combatant.concentrating:
        spell = combatant.health.concentration_spell or "an effect"
        cprint(f"  Concentrating on [magenta]{spell}[/]")


def print_initiative_order(
    order: InitiativeOrder,
    combatants: Mapping[str, Combatant],
    state: TurnState | None = None,
) -> None:
    """
    Prints an initiative order, marking the active slot.

    Args:
        order (InitiativeOrder): The order to display.
        combatants (Mapping[str, Combatant]): Combatants by id.
        state (TurnState | None): The clock position, if combat has started.

    """
    title = f"Initiative ({order.system.display_name})"
    if state is not None:
        title += f", round {state.round_number}"
    crule(title, style="cyan")
    for group in order.group_rolls:
        roll = group.roll.description if group.roll else "preset"
        cprint(
            f"  [dim]{group.name}: {group.initiative} "
            f"({roll} {format_modifier(group.modifier)})[/]"
        )
    for index, entry in enumerate(order.entries):
        marker = "▶" if state is not None and state.current_index == index else " "
        combatant = combatants.get(entry.combatant_id)
        line = combatant_status_line(combatant) if combatant else entry.name
        cprint(f"  {marker} 🎲 {entry.initiative:3}  {line}")


def print_damage_outcome(outcome: DamageOutcome, name: str) -> None:
    """Prints a one-line summary of a damage outcome."""
    if outcome.damage_type is not None:
        damage = (
            f"{outcome.damage_type.colorize(str(outcome.final_damage))} "
            f"{outcome.damage_type.emoji} {outcome.damage_type.display_name}"
        )
    else:
        damage = f"[bold]{outcome.final_damage}[/]"
    line = f"  {name} takes {damage} damage"
    if outcome.modifier != DamageModifier.NORMAL:
        line += f" [dim]({outcome.modifier.value}, {outcome.raw_damage} raw)[/]"
    if outcome.absorbed_by_temp_hp:
        line += f" [cyan]({outcome.absorbed_by_temp_hp} absorbed)[/]"
    line += f", HP {outcome.old_hp} → {outcome.new_hp}"
    cprint(line)
    if outcome.instant_death:
        cprint("    [bold red]Killed outright![/]")
    elif outcome.is_dead:
        cprint("    [bold red]Dead.[/]")
    elif outcome.was_unconscious:
        cprint("    [red]Falls unconscious.[/]")
    if outcome.concentration_check_required:
        cprint(f"    [magenta]Concentration save DC {outcome.concentration_dc}[/]")
    if outcome.massive_damage_check_required:
        cprint(f"    [yellow]Massive damage: CON save DC {outcome.massive_damage_dc}[/]")


def print_statistics(stats: DamageStatistics, names: Mapping[str, str]) -> None:
    """
    Prints damage and healing statistics.

    Args:
        stats (DamageStatistics): The aggregated figures.
        names (Mapping[str, str]): Combatant names by id.

    """
    crule("Statistics", style="cyan")
    cprint(
        f"  Damage dealt: [red]{stats.total_damage}[/], "
        f"healing done: [green]{stats.total_healing}[/], "
        f"temporary HP: [cyan]{stats.total_temporary_hp}[/]"
    )
    for label, values, resolve in (
        ("Damage by type", stats.damage_by_type, False),
        ("Damage by source", stats.damage_by_source, False),
        ("Damage taken", stats.damage_by_target, True),
        ("Healing by source", stats.healing_by_source, False),
        ("Healing received", stats.healing_by_target, True),
    ):
        if not values:
            continue
        items = ", ".join(
            f"{names.get(key, key) if resolve else key}: {amount}"
            for key, amount in sorted(values.items(), key=lambda item: -item[1])
        )
        cprint(f"  {label}: {items}")
