"""
Constants and enumerations for the combat tracker.

Defines the closed enumerations used throughout the engine: combatant kinds,
damage types and modifiers, initiative systems, roll modes, abilities,
conditions and health states, along with the fixed rule numbers.
"""

from enum import Enum
from typing import Any

from combat_tracker.core.errors import ConfigurationError

# Concentration saves never go below this DC.
CONCENTRATION_MIN_DC = 10
# Constitution save owed after a single hit of at least max HP.
MASSIVE_DAMAGE_DC = 15
# Death saving throws succeed on this roll or higher.
DEATH_SAVE_DC = 10
# Counters reaching this value end the dying episode.
DEATH_SAVE_LIMIT = 3


class NiceEnum(Enum):
    """An enumeration that provides a nicer string representation."""

    def __str__(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.lower().replace("_", " ").capitalize()

    @classmethod
    def parse(cls, value: Any) -> Any:
        """
        Resolves an enum member from a member, its value or its name.

        Args:
            value (Any): The tag to resolve.

        Returns:
            The matching member.

        Raises:
            ConfigurationError: If the tag does not name a member.

        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            tag = value.strip()
            for member in cls:
                if tag.lower() == str(member.value).lower() or tag.upper() == member.name:
                    return member
        raise ConfigurationError(
            f"Unknown {cls.__name__} '{value}', expected one of: "
            f"{', '.join(str(m.value) for m in cls)}"
        )


class CombatantKind(NiceEnum):
    """Defines which side a combatant fights on."""

    PC = "pc"
    MONSTER = "monster"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this kind."""
        return {
            CombatantKind.PC: "👤",
            CombatantKind.MONSTER: "👹",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this kind."""
        return {
            CombatantKind.PC: "bold blue",
            CombatantKind.MONSTER: "bold red",
        }.get(self, "dim white")

    def colorize(self, message: str) -> str:
        """Applies kind color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class DamageType(NiceEnum):
    """Defines the types of damage that can be inflicted."""

    ACID = "acid"
    BLUDGEONING = "bludgeoning"
    COLD = "cold"
    FIRE = "fire"
    FORCE = "force"
    LIGHTNING = "lightning"
    NECROTIC = "necrotic"
    PIERCING = "piercing"
    POISON = "poison"
    PSYCHIC = "psychic"
    RADIANT = "radiant"
    SLASHING = "slashing"
    THUNDER = "thunder"

    @classmethod
    def parse_optional(cls, value: Any) -> "DamageType | None":
        """
        Resolves an optional damage-type tag. Empty tags mean untyped damage.

        Raises:
            ConfigurationError: If the tag is not a known damage type.

        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return cls.parse(value)

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this damage type."""
        return {
            DamageType.ACID: "🧪",
            DamageType.BLUDGEONING: "🔨",
            DamageType.COLD: "❄️",
            DamageType.FIRE: "🔥",
            DamageType.FORCE: "🌀",
            DamageType.LIGHTNING: "⚡",
            DamageType.NECROTIC: "🖤",
            DamageType.PIERCING: "🗡️",
            DamageType.POISON: "☠️",
            DamageType.PSYCHIC: "💫",
            DamageType.RADIANT: "✨",
            DamageType.SLASHING: "🪓",
            DamageType.THUNDER: "🌩️",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this damage type."""
        return {
            DamageType.ACID: "green",
            DamageType.BLUDGEONING: "bold red",
            DamageType.COLD: "bold cyan",
            DamageType.FIRE: "bold red",
            DamageType.FORCE: "cyan",
            DamageType.LIGHTNING: "bold blue",
            DamageType.NECROTIC: "dim white",
            DamageType.PIERCING: "bold magenta",
            DamageType.POISON: "bold green",
            DamageType.PSYCHIC: "magenta",
            DamageType.RADIANT: "bold white",
            DamageType.SLASHING: "bold yellow",
            DamageType.THUNDER: "bold purple",
        }.get(self, "dim white")

    def colorize(self, message: str) -> str:
        """Applies damage type color formatting to a message."""
        return f"[{self.color}]{message}[/]"


class DamageModifier(NiceEnum):
    """The single multiplier resolved for one hit."""

    NORMAL = "normal"
    IMMUNE = "immune"
    RESISTANT = "resistant"
    VULNERABLE = "vulnerable"


class InitiativeSystem(NiceEnum):
    """Defines the supported turn-ordering conventions."""

    STANDARD = "standard"
    GROUP = "group"
    SIDE = "side"
    POPCORN = "popcorn"

    @property
    def description(self) -> str:
        return {
            InitiativeSystem.STANDARD: "Each combatant rolls initiative individually and acts in initiative order.",
            InitiativeSystem.GROUP: "Monsters of the same type share initiative. Players roll individually.",
            InitiativeSystem.SIDE: "Players roll as a group, monsters roll as a group. Highest side goes first.",
            InitiativeSystem.POPCORN: "After a combatant acts, they choose who goes next.",
        }[self]


class RollMode(NiceEnum):
    """Defines how a d20 is rolled."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"

    @staticmethod
    def combine(advantage: bool, disadvantage: bool) -> "RollMode":
        """Advantage and disadvantage cancel each other out."""
        if advantage and not disadvantage:
            return RollMode.ADVANTAGE
        if disadvantage and not advantage:
            return RollMode.DISADVANTAGE
        return RollMode.NORMAL


class Ability(NiceEnum):
    """Defines the six ability scores."""

    STRENGTH = "str"
    DEXTERITY = "dex"
    CONSTITUTION = "con"
    INTELLIGENCE = "int"
    WISDOM = "wis"
    CHARISMA = "cha"

    @property
    def short_name(self) -> str:
        """Returns the 3-letter abbreviation for the ability."""
        return str(self.value).upper()


class Condition(NiceEnum):
    """Defines the standard conditions a combatant can suffer."""

    BLINDED = "blinded"
    CHARMED = "charmed"
    DEAFENED = "deafened"
    FRIGHTENED = "frightened"
    GRAPPLED = "grappled"
    INCAPACITATED = "incapacitated"
    INVISIBLE = "invisible"
    PARALYZED = "paralyzed"
    PETRIFIED = "petrified"
    POISONED = "poisoned"
    PRONE = "prone"
    RESTRAINED = "restrained"
    STUNNED = "stunned"
    UNCONSCIOUS = "unconscious"
    EXHAUSTION = "exhaustion"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this condition."""
        return {
            Condition.BLINDED: "👁️",
            Condition.CHARMED: "💕",
            Condition.DEAFENED: "🔇",
            Condition.FRIGHTENED: "😨",
            Condition.GRAPPLED: "✋",
            Condition.INCAPACITATED: "💫",
            Condition.INVISIBLE: "👻",
            Condition.PARALYZED: "⚡",
            Condition.PETRIFIED: "🗿",
            Condition.POISONED: "☠️",
            Condition.PRONE: "🛌",
            Condition.RESTRAINED: "🔒",
            Condition.STUNNED: "💫",
            Condition.UNCONSCIOUS: "💤",
            Condition.EXHAUSTION: "😩",
        }.get(self, "❔")


# Conditions that impose disadvantage on initiative rolls.
INITIATIVE_DISADVANTAGE_CONDITIONS = frozenset(
    {Condition.POISONED, Condition.FRIGHTENED}
)


class HealthStatus(NiceEnum):
    """Describes how hurt a combatant is."""

    HEALTHY = "healthy"
    WOUNDED = "wounded"
    BLOODIED = "bloodied"
    CRITICAL = "critical"
    DYING = "dying"
    STABLE = "stable"
    DEAD = "dead"

    @property
    def color(self) -> str:
        return {
            HealthStatus.HEALTHY: "bold green",
            HealthStatus.WOUNDED: "green",
            HealthStatus.BLOODIED: "bold yellow",
            HealthStatus.CRITICAL: "bold red",
            HealthStatus.DYING: "red",
            HealthStatus.STABLE: "yellow",
            HealthStatus.DEAD: "dim white",
        }.get(self, "dim white")

    def colorize(self, message: str) -> str:
        return f"[{self.color}]{message}[/]"


class DeathSaveResult(NiceEnum):
    """The outcome of a single death saving throw."""

    SUCCESS = "success"
    FAILURE = "failure"
    DOUBLE_FAILURE = "double-failure"
    REVIVED = "revived"
    STABILIZED = "stabilized"
    DEAD = "dead"
