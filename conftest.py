import datetime

import pytest
from model_bakery import baker


@pytest.fixture
def user():
    return baker.make("auth.User", username="planner")


@pytest.fixture
def di_container():
    """Fixture to create a DI container."""
    from di_core.containers import container

    return container


@pytest.fixture
def series_service(di_container):
    return di_container.series_service()


@pytest.fixture
def weekly_task():
    """Task repeating every Monday, Wednesday and Friday from Monday 2024-01-01 09:00 UTC."""
    from recurrence.factories import RecurringSeriesFactory

    return RecurringSeriesFactory.create_recurring_task(
        title="Standup notes",
        start_time=datetime.datetime(2024, 1, 1, 9, 0, tzinfo=datetime.UTC),
        frequency="weekly",
        weekdays="MO,WE,FR",
    )


@pytest.fixture
def daily_event():
    """Event repeating every day from 2024-01-01 18:00 UTC."""
    from recurrence.factories import RecurringSeriesFactory

    return RecurringSeriesFactory.create_recurring_event(
        title="Evening review",
        start_time=datetime.datetime(2024, 1, 1, 18, 0, tzinfo=datetime.UTC),
        frequency="daily",
    )
