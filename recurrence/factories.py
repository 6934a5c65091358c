import datetime

from .constants import MonthlyType, RecurrenceEndType, RecurrenceFrequency
from .dataclasses import RecurrenceConfig
from .models import Event, Task


def build_recurrence_config(
    frequency: str,
    interval: int = 1,
    weekdays: str | None = None,
    monthly_type: str = MonthlyType.DAY,
    count: int | None = None,
    until: datetime.date | None = None,
    timezone: str = "UTC",
) -> RecurrenceConfig:
    """
    Build a ``RecurrenceConfig`` from loose arguments.

    Args:
        frequency: Recurrence frequency (daily, weekly, monthly, yearly, custom)
        interval: Interval between occurrences (default: 1)
        weekdays: Comma-separated weekday codes (e.g., "MO,WE,FR")
        monthly_type: "day" or "weekday" for monthly rules
        count: Total number of occurrences (optional)
        until: Last date the series may occur on (optional)
        timezone: IANA timezone of the series
    """
    end_type = RecurrenceEndType.NEVER
    if count is not None:
        end_type = RecurrenceEndType.COUNT
    elif until is not None:
        end_type = RecurrenceEndType.DATE

    return RecurrenceConfig(
        frequency=RecurrenceFrequency(frequency),
        interval=interval,
        weekdays=frozenset(weekdays.split(",")) if weekdays else frozenset(),
        monthly_type=MonthlyType(monthly_type),
        end_type=end_type,
        end_date=until,
        end_count=count,
        timezone=timezone,
    )


class RecurringSeriesFactory:
    @staticmethod
    def create_recurring_task(
        title: str,
        start_time: datetime.datetime,
        frequency: str,
        timezone: str = "UTC",
        **kwargs,
    ) -> Task:
        """
        Create a recurring task. Recurrence arguments (interval, weekdays,
        monthly_type, count, until) are forwarded to ``build_recurrence_config``,
        anything else is set on the task.
        """
        config_kwargs = {
            key: kwargs.pop(key)
            for key in ("interval", "weekdays", "monthly_type", "count", "until")
            if key in kwargs
        }
        task = Task(title=title, start_time=start_time, **kwargs)
        task.set_recurrence_config(
            build_recurrence_config(frequency, timezone=timezone, **config_kwargs)
        )
        task.save()
        return task

    @staticmethod
    def create_recurring_event(
        title: str,
        start_time: datetime.datetime,
        frequency: str,
        timezone: str = "UTC",
        **kwargs,
    ) -> Event:
        """Create a recurring event. Arguments work as in ``create_recurring_task``."""
        config_kwargs = {
            key: kwargs.pop(key)
            for key in ("interval", "weekdays", "monthly_type", "count", "until")
            if key in kwargs
        }
        event = Event(title=title, start_time=start_time, **kwargs)
        event.set_recurrence_config(
            build_recurrence_config(frequency, timezone=timezone, **config_kwargs)
        )
        event.save()
        return event
