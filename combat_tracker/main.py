"""
Main entry point for the combat tracker.

Runs a scripted demo encounter on the console: it loads (or builds) a roster,
rolls initiative with the configured system, and plays a few rounds in which
every combatant attacks a random opponent, showing damage outcomes, death
saves and the final statistics.
"""

import argparse
from collections.abc import Sequence
from pathlib import Path

from combat_tracker.combat import Encounter, roll_damage
from combat_tracker.combatant import AbilityScores, Combatant, load_combatants
from combat_tracker.core.constants import CombatantKind, InitiativeSystem
from combat_tracker.core.dice import RandomRollSource
from combat_tracker.core.errors import CombatError
from combat_tracker.core.logging import setup_logging
from combat_tracker.core.settings import CombatSettings, load_settings, load_settings_file
from combat_tracker.core.utils import cprint, crule
from combat_tracker.sheets import (
    print_combatant_sheet,
    print_damage_outcome,
    print_initiative_order,
    print_statistics,
)

# Damage expression and type used by each demo combatant.
_ATTACKS = {
    "Aria": ("1d8+3", "piercing"),
    "Borin": ("1d10+2", "slashing"),
    "Goblin": ("1d6+2", "slashing"),
    "Ogre": ("2d8+4", "bludgeoning"),
}


def build_demo_roster() -> list[Combatant]:
    """Returns the default demo party and monsters."""
    return [
        Combatant(
            name="Aria",
            kind=CombatantKind.PC,
            max_hp=24,
            armor_class=15,
            abilities=AbilityScores(dexterity=16, wisdom=14),
        ),
        Combatant(
            name="Borin",
            kind=CombatantKind.PC,
            max_hp=31,
            armor_class=18,
            abilities=AbilityScores(strength=16, constitution=16),
            resistances=["poison"],
        ),
        Combatant(
            name="Goblin 1",
            kind=CombatantKind.MONSTER,
            max_hp=7,
            armor_class=15,
            abilities=AbilityScores(dexterity=14),
        ),
        Combatant(
            name="Goblin 2",
            kind=CombatantKind.MONSTER,
            max_hp=7,
            armor_class=15,
            abilities=AbilityScores(dexterity=14),
        ),
        Combatant(
            name="Ogre",
            kind=CombatantKind.MONSTER,
            max_hp=59,
            armor_class=11,
            abilities=AbilityScores(strength=19, dexterity=8, constitution=16),
        ),
    ]


def _attack_for(combatant: Combatant) -> tuple[str, str]:
    for prefix, attack in _ATTACKS.items():
        if combatant.name.startswith(prefix):
            return attack
    return ("1d6", "bludgeoning")


def _opponents(encounter: Encounter, combatant: Combatant) -> list[Combatant]:
    return [
        other
        for other in encounter.combatants
        if other.kind != combatant.kind and not other.is_defeated
    ]


def _side_defeated(encounter: Encounter, kind: CombatantKind) -> bool:
    return all(
        c.is_defeated or c.is_unconscious for c in encounter.combatants if c.kind == kind
    )


def _popcorn_nominee(encounter: Encounter) -> str | None:
    if encounter.order is None or encounter.state is None:
        return None
    if encounter.order.system != InitiativeSystem.POPCORN:
        return None
    eligible = [
        cid for cid in encounter.order.ids if not encounter.get(cid).is_defeated
    ]
    waiting = [cid for cid in eligible if cid not in encounter.state.acted]
    # Once everyone acted, the active combatant starts the next round.
    return (waiting or eligible)[0]


def play_turn(encounter: Encounter, combatant: Combatant) -> None:
    """Plays one demo turn for the active combatant."""
    if combatant.is_dying:
        outcome = encounter.death_save(combatant.id)
        cprint(
            f"  {combatant.colored_name} death save: {outcome.roll} "
            f"({outcome.result.display_name})"
        )
        return
    if combatant.is_unconscious:
        cprint(f"  {combatant.colored_name} is unconscious.")
        return
    targets = _opponents(encounter, combatant)
    if not targets:
        return
    target = targets[encounter.source.roll(len(targets)) - 1]
    expression, damage_type = _attack_for(combatant)
    rolled = roll_damage(expression, encounter.source)
    cprint(f"  {combatant.colored_name} attacks {target.colored_name} ({rolled.description})")
    if rolled.value <= 0:
        cprint("  The attack deals no damage.")
        return
    outcome = encounter.damage(
        target.id, rolled.value, damage_type=damage_type, source=combatant.name
    )
    print_damage_outcome(outcome, target.colored_name)


def run_demo(
    settings: CombatSettings,
    seed: int | None = None,
    rounds: int = 3,
    combatants: list[Combatant] | None = None,
) -> Encounter:
    """
    Plays a demo encounter.

    Args:
        settings (CombatSettings): The encounter settings.
        seed (int | None): Seed of the roll source.
        rounds (int): The maximum number of rounds to play.
        combatants (list[Combatant] | None): The roster, the demo party by default.

    Returns:
        Encounter: The finished encounter.

    """
    encounter = Encounter(settings=settings, source=RandomRollSource(seed))
    for combatant in combatants or build_demo_roster():
        encounter.add_combatant(combatant)

    crule("Combatants", style="bold green")
    for combatant in encounter.combatants:
        print_combatant_sheet(combatant)

    encounter.roll_initiative()
    active = encounter.start()
    by_id = {c.id: c for c in encounter.combatants}
    assert encounter.order is not None
    print_initiative_order(encounter.order, by_id, encounter.state)

    while not (
        _side_defeated(encounter, CombatantKind.PC)
        or _side_defeated(encounter, CombatantKind.MONSTER)
    ):
        crule(f"{active.colored_name}'s turn", style="cyan", characters="-")
        play_turn(encounter, active)
        previous_round = encounter.round_number
        try:
            active = encounter.next_turn(nominee=_popcorn_nominee(encounter))
        except CombatError as e:
            cprint(f"[red]{e}[/]")
            break
        if encounter.round_number != previous_round:
            if encounter.round_number > rounds:
                break
            print_initiative_order(encounter.order, by_id, encounter.state)

    print_statistics(
        encounter.statistics(), {cid: c.colored_name for cid, c in by_id.items()}
    )
    return encounter


def main(argv: Sequence[str] | None = None) -> int:
    """Parses the command line and runs the demo."""
    parser = argparse.ArgumentParser(
        prog="combat-tracker",
        description="Run a demo encounter with the combat resolution engine.",
    )
    parser.add_argument("--seed", type=int, default=None, help="seed of the dice")
    parser.add_argument("--rounds", type=int, default=3, help="maximum rounds to play")
    parser.add_argument(
        "--system",
        default=None,
        help="initiative system: " + ", ".join(s.value for s in InitiativeSystem),
    )
    parser.add_argument("--settings", type=Path, default=None, help="JSON settings file")
    parser.add_argument("--roster", type=Path, default=None, help="JSON combatant list")
    parser.add_argument("--log-level", default=None, help="logging level")
    args = parser.parse_args(argv)

    try:
        settings = load_settings_file(args.settings) if args.settings else load_settings()
        overrides = settings.model_dump()
        overrides["skip_defeated"] = True
        if args.system is not None:
            overrides["initiative_system"] = args.system
        if args.log_level is not None:
            overrides["log_level"] = args.log_level
        settings = load_settings(overrides)
        setup_logging(settings.log_level)
        roster = load_combatants(args.roster) if args.roster else None
        crule("Combat Tracker", style="bold green")
        cprint(settings.initiative_system.description, style="bold blue")
        run_demo(settings, seed=args.seed, rounds=args.rounds, combatants=roster)
    except CombatError as e:
        cprint(f"[bold red]Error:[/] {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
