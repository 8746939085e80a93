"""
Console and rule helpers shared by the sheets and the demo.
"""

from typing import Any

from rich.console import Console
from rich.rule import Rule

console = Console(markup=True, width=120, force_terminal=True, force_jupyter=False)


def cprint(*renderables: Any, **options: Any) -> None:
    """Prints markup or rich renderables on the shared console."""
    console.print(*renderables, **options)


def crule(title: str = "", **options: Any) -> None:
    """Prints a horizontal rule, e.g. between turns."""
    console.print(Rule(title, **options))


def ccapture(renderable: Any) -> str:
    """Renders to a string instead of the terminal, used by the tests."""
    with console.capture() as captured:
        console.print(renderable, end="")
    return captured.get()


def get_stat_modifier(score: int) -> int:
    """Ability modifier of a raw score, floor((score - 10) / 2)."""
    return (score - 10) // 2


def format_modifier(modifier: int) -> str:
    """Signed modifier text: '+2', '+0', '-1'."""
    return f"{modifier:+d}"


def make_bar(current: int, maximum: int, length: int = 10, color: str = "white") -> str:
    """
    Hit point bar as rich markup, filled in proportion to current/maximum.

    A non-positive maximum gives an empty bar.
    """
    filled = current * length // maximum if maximum > 0 else 0
    filled = max(0, min(length, filled))
    return f"[{color}]{'▮' * filled}[/][dim white]{'▯' * (length - filled)}[/]"
