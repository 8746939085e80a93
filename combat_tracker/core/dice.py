"""
Dice module for the combat tracker.

Every random number in the engine comes from an injected RollSource, never
from an ambient generator. This module provides the protocol, a seeded random
implementation, a scripted implementation for replays and tests, d20 rolling
with advantage/disadvantage, and a small parser for damage expressions.
"""

import random
import re
from collections import deque
from collections.abc import Iterable
from typing import Protocol

from pydantic import BaseModel, Field

from combat_tracker.core.constants import RollMode
from combat_tracker.core.errors import (
    ConfigurationError,
    InvariantViolation,
    RollSourceExhausted,
)


class RollSource(Protocol):
    """Something that can roll an N-sided die."""

    def roll(self, sides: int) -> int:
        """Returns a result in [1, sides]."""
        ...


class RandomRollSource:
    """Roll source backed by its own random.Random instance."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def roll(self, sides: int) -> int:
        if sides < 1:
            raise InvariantViolation(f"A die needs at least one side, got: {sides}")
        return self._rng.randint(1, sides)


class ScriptedRollSource:
    """
    Roll source that replays a fixed sequence of results.

    Raises RollSourceExhausted once the sequence is used up, and
    InvariantViolation when a scripted value cannot come from the die asked for.
    """

    def __init__(self, values: Iterable[int]) -> None:
        self._values: deque[int] = deque(values)

    @property
    def remaining(self) -> int:
        return len(self._values)

    def roll(self, sides: int) -> int:
        if not self._values:
            raise RollSourceExhausted(f"No scripted result left for a d{sides}")
        value = self._values.popleft()
        if not 1 <= value <= sides:
            raise InvariantViolation(
                f"Scripted result {value} is not a valid d{sides} result"
            )
        return value


class RollBreakdown(BaseModel):
    """Class to hold roll breakdown information."""

    value: int = Field(
        description="Total roll result",
    )
    description: str = Field(
        description="Description of the roll",
    )
    rolls: list[int] = Field(
        description="List of individual dice rolls",
        default_factory=list,
    )

    def is_critical(self) -> bool:
        """Determines if the kept d20 is a natural 20."""
        return self.natural == 20

    def is_fumble(self) -> bool:
        """Determines if the kept d20 is a natural 1."""
        return self.natural == 1

    @property
    def natural(self) -> int | None:
        """The kept die of a d20 roll, before modifiers."""
        return self.value if self.rolls else None


def roll_d20(source: RollSource, mode: RollMode = RollMode.NORMAL) -> RollBreakdown:
    """
    Rolls a d20, twice under advantage or disadvantage.

    Args:
        source (RollSource): The injected die.
        mode (RollMode): Keep the higher (advantage) or lower (disadvantage) die.

    Returns:
        RollBreakdown: The kept result, with every die rolled.

    """
    if mode == RollMode.NORMAL:
        value = source.roll(20)
        return RollBreakdown(value=value, description=str(value), rolls=[value])
    first, second = source.roll(20), source.roll(20)
    kept = max(first, second) if mode == RollMode.ADVANTAGE else min(first, second)
    tag = "adv" if mode == RollMode.ADVANTAGE else "dis"
    return RollBreakdown(
        value=kept,
        description=f"{first}, {second} ({tag})",
        rolls=[first, second],
    )


class DiceParser:
    """Parser for damage expressions such as '2d6+3' or '1d8 + 1d6 - 1'."""

    TERM_PATTERN = re.compile(r"^(\d*)d(\d+)$", re.IGNORECASE)
    SPLIT_PATTERN = re.compile(r"\s*([+-])\s*")

    MAX_DICE = 100
    MAX_SIDES = 1000

    @classmethod
    def tokenize(cls, expression: str) -> list[tuple[int, str]]:
        """
        Splits an expression into signed terms.

        Returns:
            list[tuple[int, str]]: (sign, term) pairs.

        Raises:
            ConfigurationError: If the expression is empty.

        """
        if not expression or not expression.strip():
            raise ConfigurationError("Invalid dice expression: empty")
        parts = cls.SPLIT_PATTERN.split(expression.strip())
        terms: list[tuple[int, str]] = []
        sign = 1
        # A leading sign yields an empty first part.
        if parts and parts[0] == "":
            parts = parts[1:]
            if parts:
                sign = -1 if parts[0] == "-" else 1
                parts = parts[1:]
        for index, part in enumerate(parts):
            if index % 2 == 1:
                sign = -1 if part == "-" else 1
                continue
            if not part:
                raise ConfigurationError(f"Invalid dice expression: '{expression}'")
            terms.append((sign, part))
        return terms

    @classmethod
    def roll(
        cls, expression: str, source: RollSource, critical: bool = False
    ) -> RollBreakdown:
        """
        Rolls a dice expression.

        Args:
            expression (str): Terms like 'NdM' or integers joined by '+'/'-'.
            source (RollSource): The injected die.
            critical (bool): Doubles the number of dice of every dice term.

        Returns:
            RollBreakdown: Total, description and every die rolled.

        Raises:
            ConfigurationError: If the expression is malformed.

        """
        total = 0
        details: list[str] = []
        all_rolls: list[int] = []
        for sign, term in cls.tokenize(expression):
            prefix = "-" if sign < 0 else ("+" if details else "")
            if term.isdigit():
                total += sign * int(term)
                details.append(f"{prefix}{term}")
                continue
            match = cls.TERM_PATTERN.match(term)
            if not match:
                raise ConfigurationError(f"Invalid dice term '{term}' in '{expression}'")
            count = int(match.group(1)) if match.group(1) else 1
            sides = int(match.group(2))
            if count <= 0 or count > cls.MAX_DICE:
                raise ConfigurationError(f"Invalid dice count: {count}")
            if sides <= 0 or sides > cls.MAX_SIDES:
                raise ConfigurationError(f"Invalid dice sides: {sides}")
            if critical:
                count *= 2
            rolls = [source.roll(sides) for _ in range(count)]
            all_rolls.extend(rolls)
            total += sign * sum(rolls)
            details.append(f"{prefix}{count}d{sides}{rolls}")
        return RollBreakdown(value=total, description=" ".join(details), rolls=all_rolls)
