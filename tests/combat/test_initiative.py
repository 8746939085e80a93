"""
Tests for initiative orders under every supported system.
"""

import pytest

from combat_tracker.combat import (
    calculate_initiative_modifier,
    compute_order,
    group_key,
    reroll_initiative,
    roll_for_combatant,
)
from combat_tracker.combatant import AbilityScores, ActiveCondition, Combatant
from combat_tracker.core.constants import Condition, InitiativeSystem, RollMode
from combat_tracker.core.dice import ScriptedRollSource
from combat_tracker.core.errors import ConfigurationError, InvariantViolation


def pc(name, dex=10, **kwargs):
    return Combatant(
        name=name, kind="pc", max_hp=10, abilities=AbilityScores(dexterity=dex), **kwargs
    )


def monster(name, dex=10, **kwargs):
    return Combatant(
        name=name,
        kind="monster",
        max_hp=10,
        abilities=AbilityScores(dexterity=dex),
        **kwargs,
    )


def names(order):
    return [entry.name for entry in order.entries]


def test_modifier_is_dex_plus_bonus():
    assert calculate_initiative_modifier(AbilityScores(dexterity=16), 2) == 5


def test_standard_sorts_by_total():
    roster = [pc("Aria"), monster("Goblin"), pc("Borin")]
    order = compute_order(roster, "standard", ScriptedRollSource([8, 17, 12]))
    assert names(order) == ["Goblin", "Borin", "Aria"]
    assert [e.initiative for e in order.entries] == [17, 12, 8]


def test_ties_break_on_dex_modifier():
    quick = pc("Zed", dex=16)
    slow = pc("Abe", dex=12)
    order = compute_order([slow, quick], "standard", ScriptedRollSource([12, 10]))
    assert [e.initiative for e in order.entries] == [13, 13]
    assert names(order) == ["Zed", "Abe"]


def test_full_ties_break_on_name():
    order = compute_order(
        [monster("beta"), monster("Alpha")], "standard", ScriptedRollSource([9, 9])
    )
    assert names(order) == ["Alpha", "beta"]


def test_same_inputs_give_the_same_order():
    roster = [pc("Aria"), monster("Goblin 1"), monster("Goblin 2"), pc("Borin")]
    first = compute_order(roster, "standard", ScriptedRollSource([11, 11, 4, 19]))
    second = compute_order(roster, "standard", ScriptedRollSource([11, 11, 4, 19]))
    assert first.ids == second.ids


def test_order_does_not_modify_combatants():
    aria = pc("Aria")
    compute_order([aria], "standard", ScriptedRollSource([14]))
    assert aria.initiative is None


def test_preset_initiative_is_kept():
    aria = pc("Aria", initiative=18)
    source = ScriptedRollSource([5])
    order = compute_order([aria, monster("Ogre")], "standard", source)
    assert names(order) == ["Aria", "Ogre"]
    assert order.entries[0].roll is None
    assert source.remaining == 0


def test_reroll_ignores_presets_and_writes_back():
    aria = pc("Aria", initiative=18)
    ogre = monster("Ogre")
    order = reroll_initiative([aria, ogre], "standard", ScriptedRollSource([3, 16]))
    assert names(order) == ["Ogre", "Aria"]
    assert aria.initiative == 3
    assert ogre.initiative == 16


def test_poisoned_rolls_with_disadvantage():
    aria = pc("Aria", conditions=[ActiveCondition(condition=Condition.POISONED)])
    result = roll_for_combatant(aria, ScriptedRollSource([17, 4]))
    assert result.mode == RollMode.DISADVANTAGE
    assert result.total == 4


def test_advantage_and_poisoned_cancel_out():
    aria = pc(
        "Aria",
        initiative_advantage=True,
        conditions=[ActiveCondition(condition=Condition.POISONED)],
    )
    source = ScriptedRollSource([9, 20])
    assert roll_for_combatant(aria, source).total == 9
    assert source.remaining == 1


def test_initiative_bonus_is_added():
    aria = pc("Aria", dex=14, initiative_bonus=3)
    assert roll_for_combatant(aria, ScriptedRollSource([10])).total == 15


def test_unknown_system_is_an_error():
    with pytest.raises(ConfigurationError):
        compute_order([pc("Aria")], "lightning", ScriptedRollSource([10]))


def test_duplicate_ids_are_an_error():
    aria = pc("Aria")
    with pytest.raises(InvariantViolation):
        compute_order([aria, aria], "standard", ScriptedRollSource([10, 10]))


def test_empty_roster_gives_an_empty_order():
    order = compute_order([], InitiativeSystem.GROUP, ScriptedRollSource([]))
    assert len(order) == 0


def test_group_keys():
    assert group_key(monster("Goblin 2")) == "monster:Goblin"
    assert group_key(monster("Goblin #3")) == "monster:Goblin"
    assert group_key(monster("Ogre")) == "monster:Ogre"
    aria = pc("Aria")
    assert group_key(aria) == f"pc:{aria.id}"


def test_group_monsters_roll_once():
    roster = [pc("Aria"), monster("Goblin 2"), monster("Goblin 1"), monster("Ogre")]
    source = ScriptedRollSource([15, 5, 10])
    order = compute_order(roster, InitiativeSystem.GROUP, source)
    assert names(order) == ["Aria", "Ogre", "Goblin 1", "Goblin 2"]
    assert [e.initiative for e in order.entries] == [15, 10, 5, 5]
    assert [g.name for g in order.group_rolls] == ["Aria", "Goblin", "Ogre"]
    assert source.remaining == 0
    goblins = order.group_rolls[1]
    assert len(goblins.member_ids) == 2


def test_group_uses_best_member_modifier():
    roster = [monster("Goblin 1", dex=10), monster("Goblin 2", dex=16)]
    order = compute_order(roster, "group", ScriptedRollSource([7]))
    assert order.group_rolls[0].modifier == 3
    assert all(e.initiative == 10 for e in order.entries)


def test_group_pc_keeps_preset_initiative():
    roster = [pc("Aria", initiative=19), monster("Ogre")]
    source = ScriptedRollSource([12])
    order = compute_order(roster, "group", source)
    assert names(order) == ["Aria", "Ogre"]
    assert order.group_rolls[0].roll is None
    assert source.remaining == 0


def test_group_pc_wins_a_tie_against_a_quicker_monster_group():
    roster = [pc("Aria", dex=12), monster("Ogre", dex=16)]
    order = compute_order(roster, InitiativeSystem.GROUP, ScriptedRollSource([14, 12]))
    assert [g.initiative for g in order.group_rolls] == [15, 15]
    assert names(order) == ["Aria", "Ogre"]


def test_side_players_roll_first():
    roster = [monster("Goblin"), pc("Borin"), pc("Aria")]
    source = ScriptedRollSource([15, 5, 12, 7, 9])
    order = compute_order(roster, InitiativeSystem.SIDE, source)
    assert names(order) == ["Borin", "Aria", "Goblin"]
    assert [g.name for g in order.group_rolls] == ["Players", "Monsters"]
    assert order.group_rolls[0].initiative == 15
    assert [e.initiative for e in order.entries] == [12, 7, 9]
    assert all(e.group_initiative == 15 for e in order.entries[:2])
    assert source.remaining == 0


def test_side_monsters_can_win():
    roster = [pc("Aria"), monster("Goblin")]
    order = compute_order(roster, "side", ScriptedRollSource([4, 18, 10, 10]))
    assert names(order) == ["Goblin", "Aria"]


def test_side_players_win_ties():
    roster = [monster("Goblin"), pc("Aria")]
    order = compute_order(roster, "side", ScriptedRollSource([11, 11, 2, 19]))
    assert names(order) == ["Aria", "Goblin"]


def test_side_members_keep_preset_initiative():
    roster = [pc("Aria", initiative=4), pc("Borin", initiative=16), monster("Goblin")]
    source = ScriptedRollSource([13, 6, 8])
    order = compute_order(roster, "side", source)
    assert names(order) == ["Borin", "Aria", "Goblin"]
    assert order.entries[0].roll is None
    assert source.remaining == 0


def test_side_reroll_orders_members_by_their_own_rolls():
    aria = pc("Aria", initiative=19)
    borin = pc("Borin", initiative=2)
    order = reroll_initiative(
        [aria, borin, monster("Goblin")], "side", ScriptedRollSource([14, 9, 5, 17, 3])
    )
    assert names(order) == ["Borin", "Aria", "Goblin"]
    assert aria.initiative == 5
    assert borin.initiative == 17


def test_side_with_a_single_side():
    source = ScriptedRollSource([9, 3, 4])
    order = compute_order([monster("Goblin 1"), monster("Goblin 2")], "side", source)
    assert len(order.group_rolls) == 1
    assert names(order) == ["Goblin 2", "Goblin 1"]
    assert source.remaining == 0


def test_popcorn_seed_order_is_standard():
    roster = [pc("Aria"), monster("Goblin")]
    order = compute_order(roster, "popcorn", ScriptedRollSource([3, 14]))
    assert order.system == InitiativeSystem.POPCORN
    assert names(order) == ["Goblin", "Aria"]
