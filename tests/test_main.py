"""
Tests for the console demo.
"""

import json

import pytest

from combat_tracker.core.constants import InitiativeSystem
from combat_tracker.core.settings import load_settings
from combat_tracker.main import build_demo_roster, main, run_demo


def test_demo_roster():
    roster = build_demo_roster()
    assert [c.name for c in roster] == ["Aria", "Borin", "Goblin 1", "Goblin 2", "Ogre"]


@pytest.mark.parametrize("system", [s.value for s in InitiativeSystem])
def test_demo_runs_under_every_system(system):
    assert main(["--seed", "3", "--rounds", "2", "--system", system]) == 0


def test_unknown_system_fails_cleanly():
    assert main(["--system", "bogus"]) == 1


def test_roster_file(tmp_path):
    path = tmp_path / "roster.json"
    path.write_text(
        json.dumps(
            [
                {"name": "Aria", "kind": "pc", "max_hp": 24, "dex": 16},
                {"name": "Goblin 1", "kind": "monster", "max_hp": 7},
            ]
        )
    )
    assert main(["--seed", "1", "--roster", str(path)]) == 0


def test_run_demo_is_reproducible():
    settings = load_settings({"skip_defeated": True})
    first = run_demo(settings, seed=11, rounds=2)
    second = run_demo(settings, seed=11, rounds=2)
    assert [c.hp for c in first.combatants] == [c.hp for c in second.combatants]
    assert len(first.history) == len(second.history)
