import datetime

import pytest

from recurrence.constants import MonthlyType, RecurrenceEndType, RecurrenceFrequency
from recurrence.dataclasses import RecurrenceConfig, default_config
from recurrence.rule_codec import decode, describe, encode


MONDAY = datetime.date(2024, 1, 1)


def test_encode_weekly_with_interval_and_count():
    config = RecurrenceConfig(
        frequency=RecurrenceFrequency.WEEKLY,
        interval=2,
        weekdays=frozenset({"MO"}),
        end_type=RecurrenceEndType.COUNT,
        end_count=4,
    )

    assert encode(config, MONDAY) == "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO;COUNT=4"


def test_encode_sorts_weekdays_in_canonical_order():
    config = RecurrenceConfig(
        frequency=RecurrenceFrequency.WEEKLY, weekdays=frozenset({"FR", "MO", "WE"})
    )

    assert encode(config, MONDAY) == "FREQ=WEEKLY;BYDAY=MO,WE,FR"


def test_encode_monthly_on_nth_weekday_uses_anchor_position():
    config = RecurrenceConfig(
        frequency=RecurrenceFrequency.MONTHLY,
        monthly_type=MonthlyType.WEEKDAY,
        weekdays=frozenset({"TU"}),
    )

    # 2024-03-12 is the second Tuesday of March
    assert encode(config, datetime.date(2024, 3, 12)) == "FREQ=MONTHLY;BYDAY=2TU"
    # 2024-03-29 is the last Friday of March
    assert encode(config, datetime.date(2024, 3, 29)) == "FREQ=MONTHLY;BYDAY=-1FR"


def test_encode_monthly_on_day_and_until():
    config = RecurrenceConfig(
        frequency=RecurrenceFrequency.MONTHLY,
        end_type=RecurrenceEndType.DATE,
        end_date=datetime.date(2024, 12, 31),
    )

    assert (
        encode(config, datetime.date(2024, 1, 31))
        == "FREQ=MONTHLY;BYMONTHDAY=31;UNTIL=20241231T235959Z"
    )


def test_encode_non_recurring_returns_none():
    assert encode(default_config("UTC"), MONDAY) is None
    assert encode(None, MONDAY) is None


def test_encode_custom_collapses_to_daily():
    config = RecurrenceConfig(frequency=RecurrenceFrequency.CUSTOM, interval=3)

    rule = encode(config, MONDAY)

    assert rule == "FREQ=DAILY;INTERVAL=3"
    assert decode(rule, "UTC").frequency == RecurrenceFrequency.DAILY


@pytest.mark.parametrize(
    "config, anchor",
    [
        (RecurrenceConfig(frequency=RecurrenceFrequency.DAILY, interval=5), MONDAY),
        (
            RecurrenceConfig(
                frequency=RecurrenceFrequency.WEEKLY,
                interval=2,
                weekdays=frozenset({"MO", "TH"}),
                end_type=RecurrenceEndType.COUNT,
                end_count=10,
            ),
            MONDAY,
        ),
        (
            RecurrenceConfig(
                frequency=RecurrenceFrequency.MONTHLY,
                monthly_type=MonthlyType.WEEKDAY,
                weekdays=frozenset({"TU"}),
                end_type=RecurrenceEndType.DATE,
                end_date=datetime.date(2025, 3, 1),
                week_position=2,
            ),
            datetime.date(2024, 3, 12),
        ),
        (
            RecurrenceConfig(frequency=RecurrenceFrequency.MONTHLY, month_day=31),
            datetime.date(2024, 1, 31),
        ),
        (
            RecurrenceConfig(frequency=RecurrenceFrequency.YEARLY, month_day=29),
            datetime.date(2025, 2, 28),
        ),
        (RecurrenceConfig(frequency=RecurrenceFrequency.YEARLY, interval=2), MONDAY),
    ],
)
def test_decode_reproduces_encoded_config(config, anchor):
    assert decode(encode(config, anchor), config.timezone) == config


def test_encode_pinned_positions_ignore_the_anchor():
    monthly_day = RecurrenceConfig(frequency=RecurrenceFrequency.MONTHLY, month_day=31)
    monthly_weekday = RecurrenceConfig(
        frequency=RecurrenceFrequency.MONTHLY,
        monthly_type=MonthlyType.WEEKDAY,
        weekdays=frozenset({"TU"}),
        week_position=4,
    )
    yearly = RecurrenceConfig(frequency=RecurrenceFrequency.YEARLY, month_day=29)

    assert encode(monthly_day, datetime.date(2024, 4, 30)) == "FREQ=MONTHLY;BYMONTHDAY=31"
    # 2024-02-27 would be encoded as the last Tuesday if the anchor were used
    assert encode(monthly_weekday, datetime.date(2024, 2, 27)) == "FREQ=MONTHLY;BYDAY=4TU"
    assert encode(yearly, datetime.date(2025, 2, 28)) == "FREQ=YEARLY;BYMONTHDAY=29"


def test_decode_keeps_positional_data():
    assert decode("FREQ=MONTHLY;BYMONTHDAY=31", "UTC").month_day == 31
    assert decode("FREQ=MONTHLY;BYDAY=-1FR", "UTC").week_position == -1
    assert decode("FREQ=MONTHLY;BYDAY=4TU", "UTC").week_position == 4


@pytest.mark.parametrize("rule", ["FREQ=MONTHLY;BYMONTHDAY=0", "FREQ=MONTHLY;BYMONTHDAY=-1"])
def test_decode_ignores_out_of_range_month_day(rule):
    config = decode(rule, "UTC")

    assert config.monthly_type == MonthlyType.DAY
    assert config.month_day is None


def test_decode_ignores_out_of_range_week_position():
    config = decode("FREQ=MONTHLY;BYDAY=7TU", "UTC")

    assert config.monthly_type == MonthlyType.WEEKDAY
    assert config.week_position is None


def test_zero_count_survives_a_round_trip():
    config = decode("FREQ=DAILY;COUNT=0", "UTC")

    assert config.end_type == RecurrenceEndType.COUNT
    assert config.end_count == 0
    assert encode(config, MONDAY) == "FREQ=DAILY;COUNT=0"


def test_decode_empty_rule_returns_none():
    assert decode("", "UTC") is None
    assert decode(None, "UTC") is None


def test_decode_strips_rrule_prefix_and_keeps_timezone():
    config = decode("RRULE:FREQ=WEEKLY;BYDAY=MO,WE", "Europe/Lisbon")

    assert config.frequency == RecurrenceFrequency.WEEKLY
    assert config.weekdays == frozenset({"MO", "WE"})
    assert config.timezone == "Europe/Lisbon"


@pytest.mark.parametrize("rule", ["FREQ=HOURLY", "FREQ=weekly", "FREQ=SECONDLY;INTERVAL=2"])
def test_decode_unknown_frequency_falls_back_to_daily(rule):
    assert decode(rule, "UTC").frequency == RecurrenceFrequency.DAILY


def test_decode_positional_byday_is_monthly_weekday():
    config = decode("FREQ=MONTHLY;BYDAY=-1FR", "UTC")

    assert config.monthly_type == MonthlyType.WEEKDAY
    assert config.weekdays == frozenset({"FR"})


def test_decode_plain_byday_list_strips_numeric_prefixes():
    config = decode("FREQ=WEEKLY;BYDAY=1MO,+3WE,XX", "UTC")

    assert config.weekdays == frozenset({"MO", "WE"})
    assert config.monthly_type == MonthlyType.DAY


def test_decode_bymonthday_and_count():
    config = decode("FREQ=MONTHLY;BYMONTHDAY=15;COUNT=6", "UTC")

    assert config.monthly_type == MonthlyType.DAY
    assert config.end_type == RecurrenceEndType.COUNT
    assert config.end_count == 6


def test_decode_until_reads_the_date_prefix():
    config = decode("FREQ=DAILY;UNTIL=20240131T235959Z", "UTC")

    assert config.end_type == RecurrenceEndType.DATE
    assert config.end_date == datetime.date(2024, 1, 31)


def test_decode_impossible_until_leaves_rule_open_ended():
    config = decode("FREQ=DAILY;UNTIL=20240230T235959Z", "UTC")

    assert config.end_type == RecurrenceEndType.NEVER
    assert config.end_date is None


def test_decode_missing_fields_keep_defaults():
    config = decode("INTERVAL=3", "UTC")

    assert config.frequency == RecurrenceFrequency.NONE
    assert config.interval == 3
    assert config.end_type == RecurrenceEndType.NEVER


def test_decode_ignores_unknown_tokens():
    config = decode("FREQ=DAILY;WKST=SU;BYSETPOS=2;X-CUSTOM=1", "UTC")

    assert config == RecurrenceConfig(frequency=RecurrenceFrequency.DAILY)


@pytest.mark.parametrize(
    "config, anchor, expected",
    [
        (None, None, "Does not repeat"),
        (RecurrenceConfig(frequency=RecurrenceFrequency.DAILY), None, "Daily"),
        (
            RecurrenceConfig(
                frequency=RecurrenceFrequency.WEEKLY,
                interval=2,
                weekdays=frozenset({"WE", "MO"}),
                end_type=RecurrenceEndType.COUNT,
                end_count=4,
            ),
            MONDAY,
            "Every 2 weeks on MO, WE, 4 times",
        ),
        (
            RecurrenceConfig(frequency=RecurrenceFrequency.MONTHLY),
            datetime.date(2024, 1, 15),
            "Monthly on day 15",
        ),
        (
            RecurrenceConfig(
                frequency=RecurrenceFrequency.MONTHLY,
                monthly_type=MonthlyType.WEEKDAY,
                weekdays=frozenset({"TU"}),
            ),
            datetime.date(2024, 3, 12),
            "Monthly on the second Tuesday",
        ),
        (
            RecurrenceConfig(
                frequency=RecurrenceFrequency.MONTHLY,
                monthly_type=MonthlyType.WEEKDAY,
                weekdays=frozenset({"TU"}),
                week_position=4,
            ),
            datetime.date(2024, 2, 27),
            "Monthly on the fourth Tuesday",
        ),
        (
            RecurrenceConfig(frequency=RecurrenceFrequency.MONTHLY, month_day=31),
            datetime.date(2024, 4, 30),
            "Monthly on day 31",
        ),
        (
            RecurrenceConfig(
                frequency=RecurrenceFrequency.YEARLY,
                end_type=RecurrenceEndType.DATE,
                end_date=datetime.date(2030, 1, 5),
            ),
            MONDAY,
            "Yearly until Jan 5, 2030",
        ),
        (RecurrenceConfig(frequency=RecurrenceFrequency.CUSTOM), MONDAY, "Custom"),
    ],
)
def test_describe(config, anchor, expected):
    assert describe(config, anchor) == expected
