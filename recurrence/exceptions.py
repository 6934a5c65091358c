from django.core.exceptions import ImproperlyConfigured


class SeriesServiceNotInjectedError(ImproperlyConfigured):
    pass


# Service Layer/Internal Errors
class RecurrenceError(Exception):
    """Base exception for recurrence engine errors"""

    default_message = ""

    def __init__(self, message: str | None = None):
        if message is None:
            message = self.default_message
        super().__init__(message)


class RecurrenceOperationError(RecurrenceError):
    """Base class for errors raised by series mutations before anything is written"""

    pass


class NonRecurringSeriesError(RecurrenceOperationError):
    default_message = "Series has no recurrence rule"


class CompletionNotSupportedError(RecurrenceOperationError):
    default_message = "Only task occurrences can be completed"


class SplitNotSupportedError(RecurrenceOperationError):
    default_message = "Only task series can be split"


class InvalidSplitDateError(RecurrenceOperationError):
    default_message = "A series can only be split after its first occurrence"


class NotAnOccurrenceError(RecurrenceOperationError):
    def __init__(self, occurrence_date):
        super().__init__(f"{occurrence_date} is not an occurrence of this series")


class SkippedOccurrenceError(RecurrenceOperationError):
    def __init__(self, occurrence_date):
        super().__init__(f"Occurrence on {occurrence_date} was skipped and cannot be changed")
