import datetime
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any

from recurrence.constants import (
    EntityType,
    MonthlyType,
    RecurrenceEndType,
    RecurrenceFrequency,
)


@dataclass(frozen=True)
class RecurrenceConfig:
    """
    Typed view of a recurrence rule, owned by a template task or event.

    The config is replaced wholesale on every edit. ``weekdays`` is only meaningful
    for weekly rules (active days) and for monthly rules repeating on the anchor's
    nth weekday (the anchor's weekday code).

    ``month_day`` and ``week_position`` pin the day of month (monthly and yearly
    rules) and the signed nth-weekday position (monthly rules). When left unset
    both are taken from the anchor date.
    """

    frequency: RecurrenceFrequency = RecurrenceFrequency.NONE
    interval: int = 1
    weekdays: frozenset[str] = frozenset()
    monthly_type: MonthlyType = MonthlyType.DAY
    end_type: RecurrenceEndType = RecurrenceEndType.NEVER
    end_date: datetime.date | None = None
    end_count: int | None = None
    timezone: str = "UTC"
    month_day: int | None = None
    week_position: int | None = None

    @property
    def is_recurring(self) -> bool:
        return self.frequency != RecurrenceFrequency.NONE


def default_config(timezone: str) -> RecurrenceConfig:
    """Return a fresh non-recurring config for ``timezone``."""
    return RecurrenceConfig(
        frequency=RecurrenceFrequency.NONE,
        interval=1,
        weekdays=frozenset(),
        monthly_type=MonthlyType.DAY,
        end_type=RecurrenceEndType.NEVER,
        timezone=timezone,
    )


@dataclass(frozen=True)
class NthWeekday:
    position: int  # 1..5, or -1 for the last one in the month
    label: str


@dataclass(frozen=True)
class OccurrenceWindow:
    start: datetime.date
    end: datetime.date


@dataclass(frozen=True)
class CompletionData:
    occurrence_start_at: datetime.datetime
    completed_at: datetime.datetime
    completed_by_id: int | None = None
    id: int | None = None  # noqa: A003


@dataclass(frozen=True)
class OverrideData:
    occurrence_date: datetime.date
    modified_fields: dict[str, Any] = dataclass_field(default_factory=dict)


@dataclass
class Occurrence:
    occurrence_date: datetime.date
    occurrence_start_at: datetime.datetime
    is_exception: bool = False
    is_override: bool = False
    override_fields: dict[str, Any] = dataclass_field(default_factory=dict)
    is_completed: bool = False
    completed_at: datetime.datetime | None = None
    completed_by_id: int | None = None


@dataclass(frozen=True)
class SeriesTemplateData:
    series_id: int
    entity_type: EntityType
    anchor: datetime.datetime
    rule_string: str | None
    timezone: str
