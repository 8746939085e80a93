"""
Damage history module for the combat tracker.

Records damage and healing as they are published on an event stream and
aggregates them into per-type, per-source and per-target statistics.
"""

from collections import defaultdict
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, Field

from combat_tracker.core.constants import DamageType

from .events import CombatEvent, DamageApplied, EventStream, HealingApplied


class RecordKind(Enum):
    DAMAGE = "damage"
    HEALING = "healing"
    TEMPORARY_HP = "temporary_hp"


class HistoryRecord(BaseModel):
    """A single damage or healing entry."""

    sequence: int = Field(description="Position in the history, from 1.")
    kind: RecordKind = Field(description="What the record describes.")
    combatant_id: str = Field(description="The affected combatant.")
    amount: int = Field(description="Final damage, hit points healed or temporary hp gained.")
    damage_type: DamageType | None = Field(default=None, description="Damage type, if any.")
    source: str | None = Field(default=None, description="What caused it.")


class DamageStatistics(BaseModel):
    """Aggregated damage and healing figures."""

    total_damage: int = Field(default=0, description="Sum of final damage.")
    total_healing: int = Field(default=0, description="Sum of hit points healed.")
    total_temporary_hp: int = Field(default=0, description="Sum of temporary hp gained.")
    damage_by_type: dict[str, int] = Field(default_factory=dict)
    damage_by_source: dict[str, int] = Field(default_factory=dict)
    damage_by_target: dict[str, int] = Field(default_factory=dict)
    healing_by_source: dict[str, int] = Field(default_factory=dict)
    healing_by_target: dict[str, int] = Field(default_factory=dict)


class DamageHistory:
    """Keeps the damage and healing records of an encounter."""

    def __init__(self) -> None:
        self.records: list[HistoryRecord] = []
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self, stream: EventStream) -> None:
        """Starts recording the events published on a stream."""
        self.detach()
        self._unsubscribe = stream.subscribe(self.record, DamageApplied, HealingApplied)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def record(self, event: CombatEvent) -> None:
        if isinstance(event, DamageApplied):
            outcome = event.outcome
            self._append(
                RecordKind.DAMAGE,
                outcome.combatant_id,
                outcome.final_damage,
                outcome.source,
                outcome.damage_type,
            )
        elif isinstance(event, HealingApplied):
            outcome = event.outcome
            kind = RecordKind.TEMPORARY_HP if outcome.temporary else RecordKind.HEALING
            self._append(kind, outcome.combatant_id, outcome.healed, outcome.source)

    def _append(
        self,
        kind: RecordKind,
        combatant_id: str,
        amount: int,
        source: str | None,
        damage_type: DamageType | None = None,
    ) -> None:
        self.records.append(
            HistoryRecord(
                sequence=len(self.records) + 1,
                kind=kind,
                combatant_id=combatant_id,
                amount=amount,
                damage_type=damage_type,
                source=source,
            )
        )

    def for_combatant(self, combatant_id: str) -> list[HistoryRecord]:
        return [r for r in self.records if r.combatant_id == combatant_id]

    def recent(self, limit: int = 10) -> list[HistoryRecord]:
        """Returns the latest records, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.records[-limit:]))

    def clear(self) -> None:
        self.records.clear()

    def statistics(self) -> DamageStatistics:
        """Aggregates every record."""
        totals: dict[str, defaultdict[str, int]] = {
            name: defaultdict(int)
            for name in (
                "damage_by_type",
                "damage_by_source",
                "damage_by_target",
                "healing_by_source",
                "healing_by_target",
            )
        }
        stats = DamageStatistics()
        for record in self.records:
            if record.kind == RecordKind.DAMAGE:
                stats.total_damage += record.amount
                totals["damage_by_target"][record.combatant_id] += record.amount
                if record.damage_type is not None:
                    totals["damage_by_type"][record.damage_type.value] += record.amount
                if record.source:
                    totals["damage_by_source"][record.source] += record.amount
            elif record.kind == RecordKind.HEALING:
                stats.total_healing += record.amount
                totals["healing_by_target"][record.combatant_id] += record.amount
                if record.source:
                    totals["healing_by_source"][record.source] += record.amount
            else:
                stats.total_temporary_hp += record.amount
        for name, values in totals.items():
            setattr(stats, name, dict(values))
        return stats

    def __len__(self) -> int:
        return len(self.records)
