import datetime
import zoneinfo
from collections.abc import Collection, Iterable, Mapping
from typing import Any

from recurrence.constants import EntityType
from recurrence.dataclasses import CompletionData, Occurrence


def occurrence_start_at(
    occurrence_date: datetime.date, start_time: datetime.time, timezone: str
) -> datetime.datetime:
    """Aware start of the occurrence on ``occurrence_date`` at the series' wall-clock time."""
    return datetime.datetime.combine(
        occurrence_date, start_time, tzinfo=zoneinfo.ZoneInfo(timezone)
    )


def materialize(
    raw_dates: Iterable[datetime.date],
    *,
    start_time: datetime.time,
    timezone: str,
    exceptions: Collection[datetime.date] = (),
    overrides: Mapping[datetime.date, Mapping[str, Any]] | None = None,
    completions: Iterable[CompletionData] = (),
    entity_type: EntityType = EntityType.EVENT,
) -> list[Occurrence]:
    """
    Merge expanded dates with the persisted exceptions, overrides and completions.

    Exception dates are dropped entirely. Overridden dates stay in the stream with
    ``is_override`` set. Completion data is only attached for task series and is
    matched on the occurrence start timestamp. Input order is preserved.
    """
    overrides = overrides or {}
    skipped = set(exceptions)
    completions_by_start = (
        {completion.occurrence_start_at: completion for completion in completions}
        if entity_type == EntityType.TASK
        else {}
    )

    occurrences: list[Occurrence] = []
    for occurrence_date in raw_dates:
        if occurrence_date in skipped:
            continue

        start_at = occurrence_start_at(occurrence_date, start_time, timezone)
        occurrence = Occurrence(occurrence_date=occurrence_date, occurrence_start_at=start_at)

        if occurrence_date in overrides:
            occurrence.is_override = True
            occurrence.override_fields = dict(overrides[occurrence_date])

        # Aware datetimes compare and hash by instant, so stored UTC values match.
        if completion := completions_by_start.get(start_at):
            occurrence.is_completed = True
            occurrence.completed_at = completion.completed_at
            occurrence.completed_by_id = completion.completed_by_id

        occurrences.append(occurrence)

    return occurrences


def upcoming(
    occurrences: Iterable[Occurrence], entity_type: EntityType, max_count: int
) -> list[Occurrence]:
    """The "still to do" view: no exceptions and, for tasks, nothing already completed."""
    pending = [
        occurrence
        for occurrence in occurrences
        if not occurrence.is_exception
        and (entity_type != EntityType.TASK or not occurrence.is_completed)
    ]
    return pending[:max_count]
