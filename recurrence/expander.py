"""
Expansion of a recurrence rule into concrete civil dates.

Rules are evaluated with naive datetimes at midnight, i.e. on the civil calendar
of the series timezone, so "every month on the 15th" never drifts across DST
changes. Functions here are pure: the same arguments always give the same
output.
"""

import datetime
import itertools
import zoneinfo

from dateutil.rrule import DAILY, FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, YEARLY, rrule

from recurrence.calendar_math import rule_month_day, rule_nth_weekday, sort_weekdays
from recurrence.constants import MonthlyType, RecurrenceEndType, RecurrenceFrequency
from recurrence.dataclasses import OccurrenceWindow, RecurrenceConfig


DEFAULT_HARD_CAP = 2000

RRULE_WEEKDAYS = {"MO": MO, "TU": TU, "WE": WE, "TH": TH, "FR": FR, "SA": SA, "SU": SU}


def anchor_civil_date(anchor: datetime.date, timezone: str) -> datetime.date:
    """Civil date of ``anchor`` in ``timezone``; aware datetimes are converted first."""
    if isinstance(anchor, datetime.datetime):
        if anchor.tzinfo is not None:
            anchor = anchor.astimezone(zoneinfo.ZoneInfo(timezone))
        return anchor.date()
    return anchor


def _clamped_month_day(day: int) -> dict:
    # Days past the 28th select the latest existing day up to ``day``, so a rule
    # anchored on the 31st lands on the 30th (or Feb 28/29) in shorter months.
    if day <= 28:
        return {"bymonthday": day}
    return {"bymonthday": tuple(range(28, day + 1)), "bysetpos": -1}


def build_rrule(anchor_date: datetime.date, config: RecurrenceConfig) -> rrule | None:
    """
    Build the dateutil rule equivalent to ``config`` anchored on ``anchor_date``.

    Returns ``None`` when the config can never produce an occurrence
    (non-recurring, weekly without active weekdays, or a count below 1).
    """
    if config.frequency == RecurrenceFrequency.NONE:
        return None

    kwargs: dict = {
        "dtstart": datetime.datetime.combine(anchor_date, datetime.time()),
        "interval": max(config.interval, 1),
        "wkst": MO,
    }
    if config.end_type == RecurrenceEndType.DATE and config.end_date is not None:
        kwargs["until"] = datetime.datetime.combine(config.end_date, datetime.time.max)
    elif config.end_type == RecurrenceEndType.COUNT and config.end_count is not None:
        if config.end_count < 1:
            return None
        kwargs["count"] = config.end_count

    if config.frequency in (RecurrenceFrequency.DAILY, RecurrenceFrequency.CUSTOM):
        return rrule(DAILY, **kwargs)

    if config.frequency == RecurrenceFrequency.WEEKLY:
        if not config.weekdays:
            return None
        byweekday = [RRULE_WEEKDAYS[code] for code in sort_weekdays(config.weekdays)]
        return rrule(WEEKLY, byweekday=byweekday, **kwargs)

    if config.frequency == RecurrenceFrequency.MONTHLY:
        if config.monthly_type == MonthlyType.WEEKDAY:
            position, code = rule_nth_weekday(config, anchor_date)
            return rrule(MONTHLY, byweekday=RRULE_WEEKDAYS[code](position), **kwargs)
        return rrule(MONTHLY, **_clamped_month_day(rule_month_day(config, anchor_date)), **kwargs)

    if config.frequency == RecurrenceFrequency.YEARLY:
        return rrule(
            YEARLY,
            bymonth=anchor_date.month,
            **_clamped_month_day(rule_month_day(config, anchor_date)),
            **kwargs,
        )

    return None


def expand(
    anchor: datetime.date,
    config: RecurrenceConfig,
    window: OccurrenceWindow,
    hard_cap: int = DEFAULT_HARD_CAP,
) -> list[datetime.date]:
    """
    Return the occurrence dates of the series that fall inside ``window``.

    The output is strictly increasing and stops at the window end, the rule's
    end date, its total count (measured from the series start, not from the
    window start) or after ``hard_cap`` dates, whichever comes first.
    """
    anchor_date = anchor_civil_date(anchor, config.timezone)
    rule = build_rrule(anchor_date, config)
    if rule is None or window.end < window.start or hard_cap <= 0:
        return []

    start = datetime.datetime.combine(max(window.start, anchor_date), datetime.time())
    end = datetime.datetime.combine(window.end, datetime.time.max)

    in_window = itertools.takewhile(lambda dt: dt <= end, rule.xafter(start, inc=True))
    return [dt.date() for dt in itertools.islice(in_window, hard_cap)]


def is_occurrence(
    anchor: datetime.date, config: RecurrenceConfig, occurrence_date: datetime.date
) -> bool:
    """True if the rule produces ``occurrence_date`` (exceptions are not considered)."""
    return bool(
        expand(anchor, config, OccurrenceWindow(occurrence_date, occurrence_date), hard_cap=1)
    )


def next_occurrence(
    anchor: datetime.date,
    config: RecurrenceConfig,
    after: datetime.date,
    inclusive: bool = False,
) -> datetime.date | None:
    anchor_date = anchor_civil_date(anchor, config.timezone)
    rule = build_rrule(anchor_date, config)
    if rule is None:
        return None

    found = rule.after(datetime.datetime.combine(after, datetime.time()), inc=inclusive)
    return found.date() if found else None


def count_occurrences_before(
    anchor: datetime.date,
    config: RecurrenceConfig,
    before: datetime.date,
    hard_cap: int = DEFAULT_HARD_CAP,
) -> int:
    """Number of occurrences strictly before ``before``, counted from the series start."""
    anchor_date = anchor_civil_date(anchor, config.timezone)
    if before <= anchor_date:
        return 0
    window = OccurrenceWindow(anchor_date, before - datetime.timedelta(days=1))
    return len(expand(anchor_date, config, window, hard_cap=hard_cap))
