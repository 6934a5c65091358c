from django.db import models

from recurrence.querysets import (
    OccurrenceCompletionQuerySet,
    OccurrenceOverrideQuerySet,
    RecurrenceExceptionQuerySet,
    RecurringSeriesQuerySet,
)


class RecurringSeriesManager(models.Manager):
    """
    Custom manager for recurring templates to handle series lookups.
    """

    def get_queryset(self) -> RecurringSeriesQuerySet:
        return RecurringSeriesQuerySet(self.model, using=self._db)

    def filter_recurring(self):
        return self.get_queryset().filter_recurring()

    def filter_non_recurring(self):
        return self.get_queryset().filter_non_recurring()

    def filter_continuations_of(self, series):
        return self.get_queryset().filter_continuations_of(series)


class RecurrenceExceptionManager(models.Manager):
    def get_queryset(self) -> RecurrenceExceptionQuerySet:
        return RecurrenceExceptionQuerySet(self.model, using=self._db)

    def for_series(self, series):
        return self.get_queryset().for_series(series)


class OccurrenceOverrideManager(models.Manager):
    def get_queryset(self) -> OccurrenceOverrideQuerySet:
        return OccurrenceOverrideQuerySet(self.model, using=self._db)

    def for_series(self, series):
        return self.get_queryset().for_series(series)


class OccurrenceCompletionManager(models.Manager):
    def get_queryset(self) -> OccurrenceCompletionQuerySet:
        return OccurrenceCompletionQuerySet(self.model, using=self._db)

    def for_series(self, series):
        return self.get_queryset().for_series(series)
