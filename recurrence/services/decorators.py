"""Decorators for series service methods."""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.conf import settings
from django.db import OperationalError, transaction


logger = logging.getLogger(__name__)


def retry_on_transient_db_error(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator that retries the wrapped storage operation on ``OperationalError``
    (lost connection, lock timeout, serialization failure) with exponential backoff.

    Must wrap the outermost atomic block: when called inside a transaction that
    belongs to the caller, the error is re-raised immediately since the broken
    transaction can only be rolled back by its owner.

    Raises:
        OperationalError: If the operation still fails after all retries.
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        retries = settings.RECURRENCE_DB_RETRIES
        base_wait = settings.RECURRENCE_DB_RETRY_BASE_WAIT

        for attempt in range(retries + 1):  # +1 for the initial attempt
            try:
                return func(*args, **kwargs)
            except OperationalError as e:
                if transaction.get_connection().in_atomic_block or attempt >= retries:
                    logger.error(
                        "%s failed after %d attempt(s): %s", func.__qualname__, attempt + 1, e
                    )
                    raise

                wait_time = base_wait * 2**attempt
                logger.warning(
                    "%s hit a transient database error (attempt %d/%d): %s. Retrying in %ss...",
                    func.__qualname__,
                    attempt + 1,
                    retries + 1,
                    e,
                    wait_time,
                )
                time.sleep(wait_time)

        # Unreachable: the last attempt either returns or raises
        raise AssertionError("retry loop exited without a result")

    return wrapper
