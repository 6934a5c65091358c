"""Civil-calendar helpers shared by the rule codec and the expander.

Every function here works on ``datetime.date`` values (the civil date in the
series timezone), never on instants, so results do not depend on time of day
or UTC offsets.
"""

import calendar
import dataclasses
import datetime
import math
from collections.abc import Iterable

from recurrence.constants import MonthlyType, RecurrenceFrequency
from recurrence.dataclasses import NthWeekday, RecurrenceConfig


# Indexed by day of week with Sunday = 0.
WEEKDAY_CODES_FROM_SUNDAY = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")

# Canonical order used for sorting and for dateutil weekday indexes (Monday = 0).
CANONICAL_WEEKDAY_ORDER = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")

ORDINAL_LABELS = {
    1: "first",
    2: "second",
    3: "third",
    4: "fourth",
    5: "fifth",
    -1: "last",
}


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def ordinal_label(position: int) -> str:
    return ORDINAL_LABELS[position]


def nth_weekday_ordinal(date: datetime.date) -> NthWeekday:
    """
    Return which occurrence of its weekday ``date`` is within its month.

    A date that is the final occurrence of its weekday in the month is always
    reported as ``last`` (position -1), even when it is also the 4th or 5th.
    """
    if date.day + 7 > days_in_month(date.year, date.month):
        return NthWeekday(position=-1, label=ORDINAL_LABELS[-1])

    position = math.ceil(date.day / 7)
    return NthWeekday(position=position, label=ORDINAL_LABELS[position])


def weekday_code(date: datetime.date) -> str:
    # isoweekday() is Monday=1..Sunday=7, so modulo 7 gives Sunday=0.
    return WEEKDAY_CODES_FROM_SUNDAY[date.isoweekday() % 7]


def weekday_index(code: str) -> int:
    """Monday-based index of a weekday code, matching ``datetime.date.weekday()``."""
    return CANONICAL_WEEKDAY_ORDER.index(code)


def sort_weekdays(codes: Iterable[str]) -> list[str]:
    return sorted(set(codes), key=weekday_index)


def rule_month_day(config: RecurrenceConfig, anchor_date: datetime.date) -> int:
    """Day of month a monthly or yearly rule repeats on."""
    return config.month_day if config.month_day is not None else anchor_date.day


def rule_nth_weekday(config: RecurrenceConfig, anchor_date: datetime.date) -> tuple[int, str]:
    """Signed position and weekday code a monthly nth-weekday rule repeats on."""
    if config.week_position is None:
        return nth_weekday_ordinal(anchor_date).position, weekday_code(anchor_date)

    codes = [code for code in config.weekdays if code in CANONICAL_WEEKDAY_ORDER]
    if len(codes) == 1:
        return config.week_position, codes[0]
    return config.week_position, weekday_code(anchor_date)


def pin_anchor_position(config: RecurrenceConfig, anchor_date: datetime.date) -> RecurrenceConfig:
    """
    Return ``config`` with its day of month or nth-weekday position fixed to the
    values ``anchor_date`` gives it.

    A pinned config keeps repeating on the same positions once it is anchored on
    a later occurrence, e.g. a rule on the 31st anchored on a clamped April 30th.
    """
    if (
        config.frequency == RecurrenceFrequency.MONTHLY
        and config.monthly_type == MonthlyType.WEEKDAY
    ):
        position, code = rule_nth_weekday(config, anchor_date)
        return dataclasses.replace(config, week_position=position, weekdays=frozenset({code}))

    if config.frequency in (RecurrenceFrequency.MONTHLY, RecurrenceFrequency.YEARLY):
        return dataclasses.replace(config, month_day=rule_month_day(config, anchor_date))

    return config
