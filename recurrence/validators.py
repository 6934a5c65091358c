import datetime
import zoneinfo
from collections.abc import Iterable, Mapping

from django.core.exceptions import ValidationError

from recurrence.calendar_math import CANONICAL_WEEKDAY_ORDER, ORDINAL_LABELS
from recurrence.constants import (
    EVENT_PATCHABLE_FIELDS,
    TASK_PATCHABLE_FIELDS,
    EntityType,
    MonthlyType,
    RecurrenceEndType,
    RecurrenceFrequency,
)
from recurrence.dataclasses import RecurrenceConfig


def validate_timezone(timezone: str) -> None:
    try:
        zoneinfo.ZoneInfo(timezone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Invalid IANA timezone: {timezone}") from e


def validate_recurrence_config(config: RecurrenceConfig, anchor_date: datetime.date) -> None:
    """
    Validate a recurrence config before its rule string is persisted.

    Raises ``ValidationError`` listing every problem found.
    """
    validate_timezone(config.timezone)

    if config.frequency == RecurrenceFrequency.NONE:
        return

    errors = []

    if config.interval < 1:
        errors.append("Interval must be at least 1.")

    invalid_weekdays = sorted(day for day in config.weekdays if day not in CANONICAL_WEEKDAY_ORDER)
    if invalid_weekdays:
        errors.append(
            f"Invalid weekdays: {', '.join(invalid_weekdays)}. "
            "Valid options are: MO, TU, WE, TH, FR, SA, SU"
        )

    if config.frequency == RecurrenceFrequency.WEEKLY and not config.weekdays:
        errors.append("A weekly recurrence needs at least one weekday.")

    if (
        config.frequency == RecurrenceFrequency.MONTHLY
        and config.monthly_type == MonthlyType.WEEKDAY
        and len(config.weekdays) > 1
    ):
        errors.append("A monthly recurrence on the nth weekday accepts a single weekday.")

    if config.month_day is not None and not 1 <= config.month_day <= 31:
        errors.append("The day of month must be between 1 and 31.")

    if config.week_position is not None and config.week_position not in ORDINAL_LABELS:
        errors.append("The weekday position must be 1 to 5, or -1 for the last one.")

    if config.end_type == RecurrenceEndType.DATE:
        if config.end_date is None:
            errors.append("An end date is required when the recurrence ends on a date.")
        elif config.end_date < anchor_date:
            errors.append("The recurrence end date cannot be before the series start date.")

    if config.end_type == RecurrenceEndType.COUNT and (
        config.end_count is None or config.end_count < 1
    ):
        errors.append("The number of occurrences must be at least 1.")

    if errors:
        raise ValidationError(errors)


def validate_field_patch(field_patch: Mapping, entity_type: EntityType) -> None:
    allowed: Iterable[str] = (
        TASK_PATCHABLE_FIELDS if entity_type == EntityType.TASK else EVENT_PATCHABLE_FIELDS
    )
    unknown_fields = sorted(set(field_patch) - set(allowed))
    if unknown_fields:
        raise ValidationError(
            f"Fields cannot be modified on a {entity_type} occurrence: {', '.join(unknown_fields)}"
        )
