import datetime

from django.db import models
from django.db.models import Q


class RecurringSeriesQuerySet(models.QuerySet):
    """
    QuerySet for recurring templates (tasks and events).
    """

    def filter_recurring(self):
        """Filter to get series that have a recurrence rule."""
        return self.exclude(recurrence_rule="")

    def filter_non_recurring(self):
        """Filter to get one-off templates."""
        return self.filter(recurrence_rule="")

    def filter_continuations_of(self, series):
        """Filter to get series created by splitting ``series``."""
        return self.filter(split_from=series)


class OccurrenceRecordQuerySet(models.QuerySet):
    """
    QuerySet for exceptions, overrides and completions, which hang off a series.
    """

    date_field = "occurrence_date"

    def for_series(self, series):
        return self.filter(series=series)

    def on_or_after(self, date: datetime.date):
        return self.filter(**{f"{self.date_field}__gte": date})

    def on_date(self, date: datetime.date):
        return self.filter(**{self.date_field: date})


class RecurrenceExceptionQuerySet(OccurrenceRecordQuerySet):
    date_field = "exception_date"


class OccurrenceOverrideQuerySet(OccurrenceRecordQuerySet):
    date_field = "occurrence_date"


class OccurrenceCompletionQuerySet(models.QuerySet):
    """
    Completions are keyed by the aware occurrence start, not by a civil date.
    """

    def for_series(self, series):
        return self.filter(series=series)

    def starting_from(self, moment: datetime.datetime):
        return self.filter(occurrence_start_at__gte=moment)

    def between(self, start: datetime.datetime, end: datetime.datetime):
        """Completions whose occurrence starts in the half-open range ``[start, end)``."""
        return self.filter(Q(occurrence_start_at__gte=start) & Q(occurrence_start_at__lt=end))

    def newest_first(self):
        return self.order_by("-occurrence_start_at")
