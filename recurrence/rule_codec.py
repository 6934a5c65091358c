"""
Conversion between ``RecurrenceConfig`` and the persisted rule string.

The rule string is an RFC 5545 flavored subset: ``;``-separated ``KEY=VALUE``
tokens emitted in the fixed order FREQ, INTERVAL, BYDAY, BYMONTHDAY, UNTIL,
COUNT. Decoding is deliberately lenient, since a rule may have been written by
a newer version of the system: unknown frequencies fall back to daily and
unknown tokens are ignored. Nothing outside this module parses rule strings.
"""

import calendar
import dataclasses
import datetime
import re

from recurrence.calendar_math import (
    CANONICAL_WEEKDAY_ORDER,
    ORDINAL_LABELS,
    ordinal_label,
    rule_month_day,
    rule_nth_weekday,
    sort_weekdays,
    weekday_index,
)
from recurrence.constants import (
    RULE_FREQUENCY_TOKENS,
    MonthlyType,
    RecurrenceEndType,
    RecurrenceFrequency,
)
from recurrence.dataclasses import RecurrenceConfig, default_config


FREQUENCIES_BY_TOKEN = {
    "DAILY": RecurrenceFrequency.DAILY,
    "WEEKLY": RecurrenceFrequency.WEEKLY,
    "MONTHLY": RecurrenceFrequency.MONTHLY,
    "YEARLY": RecurrenceFrequency.YEARLY,
}

FREQ_RE = re.compile(r"FREQ=(\w+)")
INTERVAL_RE = re.compile(r"INTERVAL=(\d+)")
BYDAY_RE = re.compile(r"BYDAY=([^;]+)")
POSITIONAL_BYDAY_RE = re.compile(r"^-?\d+[A-Z]{2}$")
BYMONTHDAY_RE = re.compile(r"BYMONTHDAY=(-?\d+)")
UNTIL_RE = re.compile(r"UNTIL=(\d{8})")
COUNT_RE = re.compile(r"COUNT=(\d+)")


def encode(config: RecurrenceConfig | None, anchor_date: datetime.date) -> str | None:
    """
    Serialize ``config`` into a rule string, or ``None`` for a non-recurring config.

    ``anchor_date`` supplies the day of month and the nth-weekday position of
    monthly rules unless the config pins them. Yearly rules only carry a
    BYMONTHDAY when the day is pinned.
    """
    if config is None or config.frequency == RecurrenceFrequency.NONE:
        return None

    parts = [f"FREQ={RULE_FREQUENCY_TOKENS[config.frequency]}"]

    if config.interval > 1:
        parts.append(f"INTERVAL={config.interval}")

    if config.frequency == RecurrenceFrequency.WEEKLY and config.weekdays:
        parts.append(f"BYDAY={','.join(sort_weekdays(config.weekdays))}")

    if config.frequency == RecurrenceFrequency.MONTHLY:
        if config.monthly_type == MonthlyType.WEEKDAY:
            position, code = rule_nth_weekday(config, anchor_date)
            parts.append(f"BYDAY={position}{code}")
        else:
            parts.append(f"BYMONTHDAY={rule_month_day(config, anchor_date)}")

    if config.frequency == RecurrenceFrequency.YEARLY and config.month_day is not None:
        parts.append(f"BYMONTHDAY={config.month_day}")

    if config.end_type == RecurrenceEndType.DATE and config.end_date is not None:
        parts.append(f"UNTIL={config.end_date.strftime('%Y%m%d')}T235959Z")
    elif config.end_type == RecurrenceEndType.COUNT and config.end_count is not None:
        parts.append(f"COUNT={config.end_count}")

    return ";".join(parts)


def decode(rule_string: str | None, timezone: str) -> RecurrenceConfig | None:
    """
    Parse a rule string into a ``RecurrenceConfig``.

    Returns ``None`` for an empty or missing rule. Tokens absent from the string
    keep the values of ``default_config``.
    """
    if not rule_string:
        return None

    if rule_string.startswith("RRULE:"):
        rule_string = rule_string[6:]

    config = default_config(timezone)
    changes: dict = {}

    if freq_match := FREQ_RE.search(rule_string):
        changes["frequency"] = FREQUENCIES_BY_TOKEN.get(
            freq_match.group(1), RecurrenceFrequency.DAILY
        )

    if interval_match := INTERVAL_RE.search(rule_string):
        changes["interval"] = int(interval_match.group(1))

    if byday_match := BYDAY_RE.search(rule_string):
        byday_value = byday_match.group(1)
        if POSITIONAL_BYDAY_RE.match(byday_value):
            # Monthly nth weekday such as "2TU" or "-1FR"
            changes["monthly_type"] = MonthlyType.WEEKDAY
            changes["weekdays"] = frozenset({byday_value[-2:]})
            position = int(byday_value[:-2])
            if position in ORDINAL_LABELS:
                changes["week_position"] = position
        else:
            weekdays = {re.sub(r"^[+-]?\d+", "", day.strip()) for day in byday_value.split(",")}
            changes["weekdays"] = frozenset(
                day for day in weekdays if day in CANONICAL_WEEKDAY_ORDER
            )

    if bymonthday_match := BYMONTHDAY_RE.search(rule_string):
        changes["monthly_type"] = MonthlyType.DAY
        month_day = int(bymonthday_match.group(1))
        if 1 <= month_day <= 31:
            changes["month_day"] = month_day

    if until_match := UNTIL_RE.search(rule_string):
        try:
            changes["end_date"] = datetime.datetime.strptime(until_match.group(1), "%Y%m%d").date()
            changes["end_type"] = RecurrenceEndType.DATE
        except ValueError:
            pass  # an impossible calendar date leaves the rule open-ended

    if count_match := COUNT_RE.search(rule_string):
        changes["end_type"] = RecurrenceEndType.COUNT
        changes["end_count"] = int(count_match.group(1))

    return dataclasses.replace(config, **changes)


def describe(config: RecurrenceConfig | None, anchor_date: datetime.date | None = None) -> str:
    """Render a short human readable summary, e.g. ``Every 2 weeks on MO, WE, 4 times``."""
    if config is None or config.frequency == RecurrenceFrequency.NONE:
        return "Does not repeat"

    interval = config.interval
    if config.frequency == RecurrenceFrequency.DAILY:
        text = "Daily" if interval == 1 else f"Every {interval} days"
    elif config.frequency == RecurrenceFrequency.WEEKLY:
        text = "Weekly" if interval == 1 else f"Every {interval} weeks"
        if config.weekdays:
            text += f" on {', '.join(sort_weekdays(config.weekdays))}"
    elif config.frequency == RecurrenceFrequency.MONTHLY:
        text = "Monthly" if interval == 1 else f"Every {interval} months"
        if anchor_date:
            if config.monthly_type == MonthlyType.DAY:
                text += f" on day {rule_month_day(config, anchor_date)}"
            else:
                position, code = rule_nth_weekday(config, anchor_date)
                weekday_name = calendar.day_name[weekday_index(code)]
                text += f" on the {ordinal_label(position)} {weekday_name}"
    elif config.frequency == RecurrenceFrequency.YEARLY:
        text = "Yearly" if interval == 1 else f"Every {interval} years"
    else:
        text = "Custom"

    if config.end_type == RecurrenceEndType.DATE and config.end_date is not None:
        end_date = config.end_date
        text += f" until {end_date:%b} {end_date.day}, {end_date.year}"
    elif config.end_type == RecurrenceEndType.COUNT and config.end_count is not None:
        text += f", {config.end_count} times"

    return text
