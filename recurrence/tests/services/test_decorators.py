from unittest.mock import Mock, call, patch

from django.db import IntegrityError, OperationalError

import pytest

from recurrence.services.decorators import retry_on_transient_db_error


def _operation(side_effect):
    """A plain function backed by a mock, so the decorator sees real function metadata."""
    calls = Mock(side_effect=side_effect)

    def operation(*args, **kwargs):
        return calls(*args, **kwargs)

    return operation, calls


@pytest.fixture
def sleep_mock():
    with patch("recurrence.services.decorators.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def outside_transaction():
    connection = Mock(in_atomic_block=False)
    with patch(
        "recurrence.services.decorators.transaction.get_connection", return_value=connection
    ):
        yield connection


def test_retries_transient_errors_with_exponential_backoff(
    settings, sleep_mock, outside_transaction
):
    settings.RECURRENCE_DB_RETRIES = 3
    settings.RECURRENCE_DB_RETRY_BASE_WAIT = 0.5
    operation, calls = _operation(
        [OperationalError("database is locked"), OperationalError("again"), "done"]
    )

    result = retry_on_transient_db_error(operation)("arg", key="value")

    assert result == "done"
    assert calls.call_count == 3
    calls.assert_called_with("arg", key="value")
    assert sleep_mock.call_args_list == [call(0.5), call(1.0)]


def test_gives_up_after_the_last_retry(settings, sleep_mock, outside_transaction):
    settings.RECURRENCE_DB_RETRIES = 2
    settings.RECURRENCE_DB_RETRY_BASE_WAIT = 0
    operation, calls = _operation(OperationalError("server closed the connection"))

    with pytest.raises(OperationalError):
        retry_on_transient_db_error(operation)()

    assert calls.call_count == 3
    assert sleep_mock.call_count == 2


def test_does_not_retry_inside_an_outer_transaction(settings, sleep_mock):
    settings.RECURRENCE_DB_RETRIES = 3
    operation, calls = _operation(OperationalError("deadlock detected"))

    with (
        patch(
            "recurrence.services.decorators.transaction.get_connection",
            return_value=Mock(in_atomic_block=True),
        ),
        pytest.raises(OperationalError),
    ):
        retry_on_transient_db_error(operation)()

    assert calls.call_count == 1
    sleep_mock.assert_not_called()


def test_other_database_errors_are_not_retried(settings, sleep_mock, outside_transaction):
    settings.RECURRENCE_DB_RETRIES = 3
    operation, calls = _operation(IntegrityError("duplicate key"))

    with pytest.raises(IntegrityError):
        retry_on_transient_db_error(operation)()

    assert calls.call_count == 1
    sleep_mock.assert_not_called()


def test_preserves_wrapped_function_metadata():
    def mark_done():
        """Mark something as done."""

    wrapped = retry_on_transient_db_error(mark_done)

    assert wrapped.__name__ == "mark_done"
    assert wrapped.__doc__ == "Mark something as done."
