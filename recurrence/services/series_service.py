import dataclasses
import datetime
import logging
import zoneinfo
from collections.abc import Mapping
from typing import Any

from django.db import transaction
from django.utils import timezone

from dateutil.relativedelta import relativedelta

from recurrence.calendar_math import pin_anchor_position
from recurrence.constants import RecurrenceEndType, TaskPriority, TaskStatus
from recurrence.dataclasses import (
    CompletionData,
    Occurrence,
    OccurrenceWindow,
    OverrideData,
    RecurrenceConfig,
    SeriesTemplateData,
)
from recurrence.exceptions import (
    CompletionNotSupportedError,
    InvalidSplitDateError,
    NonRecurringSeriesError,
    NotAnOccurrenceError,
    SkippedOccurrenceError,
    SplitNotSupportedError,
)
from recurrence.expander import (
    DEFAULT_HARD_CAP,
    count_occurrences_before,
    expand,
    is_occurrence,
    next_occurrence,
)
from recurrence.models import (
    Event,
    RecurringTemplateMixin,
    Task,
    TaskOccurrenceCompletion,
    TaskOccurrenceOverride,
    TaskRecurrenceException,
)
from recurrence.reconciler import materialize, occurrence_start_at, upcoming
from recurrence.rule_codec import describe
from recurrence.services.decorators import retry_on_transient_db_error
from recurrence.utils import clone_model_instance
from recurrence.validators import validate_field_patch


logger = logging.getLogger(__name__)


class SeriesService:
    """
    Reads and mutates recurring series (tasks and events) and their per-occurrence
    records: exceptions (skipped dates), overrides (edited occurrences) and, for
    tasks, completions.

    Occurrences are never stored. They are computed on demand from the template's
    anchor and recurrence rule, then reconciled against the stored records.
    Every mutation runs in a single atomic block.
    """

    def __init__(
        self,
        hard_cap: int = DEFAULT_HARD_CAP,
        default_max_occurrences: int = 10,
        default_months_ahead: int = 3,
    ) -> None:
        self.hard_cap = hard_cap
        self.default_max_occurrences = default_max_occurrences
        self.default_months_ahead = default_months_ahead

    # Collaborator reads

    def get_template(self, series: RecurringTemplateMixin) -> SeriesTemplateData:
        return SeriesTemplateData(
            series_id=series.pk,
            entity_type=series.entity_type,
            anchor=series.start_time,
            rule_string=series.recurrence_rule or None,
            timezone=series.timezone,
        )

    def list_exceptions(self, series: RecurringTemplateMixin) -> list[datetime.date]:
        return list(
            series.recurrence_exceptions.order_by("exception_date").values_list(
                "exception_date", flat=True
            )
        )

    def list_overrides(self, series: RecurringTemplateMixin) -> list[OverrideData]:
        return [
            OverrideData(
                occurrence_date=override.occurrence_date,
                modified_fields=override.modified_fields,
            )
            for override in series.occurrence_overrides.order_by("occurrence_date")
        ]

    def list_completions(self, series: RecurringTemplateMixin) -> list[CompletionData]:
        if not isinstance(series, Task):
            return []

        return [
            CompletionData(
                id=completion.pk,
                occurrence_start_at=completion.occurrence_start_at,
                completed_at=completion.completed_at,
                completed_by_id=completion.completed_by_id,
            )
            for completion in series.occurrence_completions.order_by("occurrence_start_at")
        ]

    # Occurrence views

    def _today(self, series: RecurringTemplateMixin) -> datetime.date:
        return timezone.now().astimezone(zoneinfo.ZoneInfo(series.timezone)).date()

    def _materialize_window(
        self, series: RecurringTemplateMixin, window: OccurrenceWindow
    ) -> list[Occurrence]:
        config = series.get_recurrence_config()
        if config is None:
            # A one-off template has a single occurrence on its anchor date
            anchor_date = series.anchor_date
            raw_dates = [anchor_date] if window.start <= anchor_date <= window.end else []
        else:
            raw_dates = expand(series.start_time, config, window, hard_cap=self.hard_cap)

        return materialize(
            raw_dates,
            start_time=series.local_start_time.time(),
            timezone=series.timezone,
            exceptions=set(self.list_exceptions(series)),
            overrides={
                override.occurrence_date: override.modified_fields
                for override in self.list_overrides(series)
            },
            completions=self.list_completions(series),
            entity_type=series.entity_type,
        )

    def get_upcoming(
        self,
        series: RecurringTemplateMixin,
        max_count: int | None = None,
        months_ahead: int | None = None,
    ) -> list[Occurrence]:
        """
        The "still to do" view: occurrences from today up to ``months_ahead``
        months ahead, without skipped dates and, for tasks, without completed
        occurrences. At most ``max_count`` occurrences are returned.
        """
        if max_count is None:
            max_count = self.default_max_occurrences
        if months_ahead is None:
            months_ahead = self.default_months_ahead

        today = self._today(series)
        window = OccurrenceWindow(start=today, end=today + relativedelta(months=months_ahead))
        return upcoming(
            self._materialize_window(series, window), series.entity_type, max_count
        )

    def get_history(
        self, series: RecurringTemplateMixin, until: datetime.date | None = None
    ) -> list[Occurrence]:
        """
        Every occurrence from the series start up to ``until`` (today by default),
        completed ones included. Skipped dates are not part of the history.
        """
        if until is None:
            until = self._today(series)
        return self._materialize_window(series, OccurrenceWindow(series.anchor_date, until))

    def get_next_occurrence(
        self, series: RecurringTemplateMixin, after: datetime.date | None = None
    ) -> Occurrence | None:
        """First occurrence strictly after ``after`` (yesterday by default) that was not skipped."""
        config = self._require_recurring(series)
        if after is None:
            after = self._today(series) - datetime.timedelta(days=1)

        skipped = set(self.list_exceptions(series))
        candidate = next_occurrence(series.start_time, config, after)
        for _ in range(self.hard_cap):
            if candidate is None or candidate not in skipped:
                break
            candidate = next_occurrence(series.start_time, config, candidate)
        else:
            return None

        if candidate is None:
            return None

        occurrences = self._materialize_window(series, OccurrenceWindow(candidate, candidate))
        return occurrences[0] if occurrences else None

    def get_completion_history(
        self, series: RecurringTemplateMixin, limit: int = 50
    ) -> list[CompletionData]:
        """Most recent completions of a task series, newest occurrence first."""
        if not isinstance(series, Task):
            raise CompletionNotSupportedError()

        return [
            CompletionData(
                id=completion.pk,
                occurrence_start_at=completion.occurrence_start_at,
                completed_at=completion.completed_at,
                completed_by_id=completion.completed_by_id,
            )
            for completion in TaskOccurrenceCompletion.objects.for_series(series).newest_first()[
                :limit
            ]
        ]

    def get_skipped_dates(
        self, series: RecurringTemplateMixin, limit: int = 20
    ) -> list[datetime.date]:
        """Most recently dated skipped occurrences, newest first."""
        return list(
            series.recurrence_exceptions.order_by("-exception_date").values_list(
                "exception_date", flat=True
            )[:limit]
        )

    def describe_recurrence(self, series: RecurringTemplateMixin) -> str:
        return describe(series.get_recurrence_config(), series.anchor_date)

    # Template creation and edition

    @retry_on_transient_db_error
    @transaction.atomic()
    def create_task_series(
        self,
        title: str,
        start_time: datetime.datetime,
        recurrence_config: RecurrenceConfig | None = None,
        description: str = "",
        priority: str = TaskPriority.MEDIUM,
        status: str = TaskStatus.TODO,
        assignee=None,
    ) -> Task:
        task = Task(
            title=title,
            description=description,
            start_time=start_time,
            priority=priority,
            status=status,
            assignee=assignee,
        )
        return self._save_template(task, recurrence_config)

    @retry_on_transient_db_error
    @transaction.atomic()
    def create_event_series(
        self,
        title: str,
        start_time: datetime.datetime,
        recurrence_config: RecurrenceConfig | None = None,
        description: str = "",
        location: str = "",
        duration: datetime.timedelta | None = None,
    ) -> Event:
        event = Event(
            title=title,
            description=description,
            start_time=start_time,
            location=location,
        )
        if duration is not None:
            event.duration = duration
        return self._save_template(event, recurrence_config)

    def _save_template(self, series, recurrence_config: RecurrenceConfig | None):
        if recurrence_config is not None:
            series.set_recurrence_config(recurrence_config)
        series.save()
        logger.info(
            "Created %s series %s with rule %r",
            series.entity_type,
            series.pk,
            series.recurrence_rule,
        )
        return series

    @retry_on_transient_db_error
    @transaction.atomic()
    def update_recurrence(
        self, series: RecurringTemplateMixin, recurrence_config: RecurrenceConfig
    ) -> RecurringTemplateMixin:
        """
        Replace the recurrence of ``series`` wholesale. The config is validated
        before anything is written.
        """
        series.set_recurrence_config(recurrence_config)
        series.save()
        logger.info("Updated recurrence of series %s to %r", series.pk, series.recurrence_rule)
        return series

    # Occurrence mutations

    def _require_recurring(self, series: RecurringTemplateMixin) -> RecurrenceConfig:
        config = series.get_recurrence_config()
        if config is None or not config.is_recurring:
            raise NonRecurringSeriesError()
        return config

    def _require_occurrence(
        self,
        series: RecurringTemplateMixin,
        config: RecurrenceConfig,
        occurrence_date: datetime.date,
    ) -> None:
        if not is_occurrence(series.start_time, config, occurrence_date):
            raise NotAnOccurrenceError(occurrence_date)

    def _require_not_skipped(
        self, series: RecurringTemplateMixin, occurrence_date: datetime.date
    ) -> None:
        if series.recurrence_exceptions.filter(exception_date=occurrence_date).exists():
            raise SkippedOccurrenceError(occurrence_date)

    def _civil_day_start(
        self, series: RecurringTemplateMixin, day: datetime.date
    ) -> datetime.datetime:
        return datetime.datetime.combine(
            day, datetime.time.min, tzinfo=zoneinfo.ZoneInfo(series.timezone)
        )

    @retry_on_transient_db_error
    @transaction.atomic()
    def skip(self, series: RecurringTemplateMixin, occurrence_date: datetime.date) -> None:
        """
        Remove one occurrence from the series. Skipping an already skipped date
        is a no-op. Any completion or override on that date is deleted with it.
        """
        config = self._require_recurring(series)
        self._require_occurrence(series, config, occurrence_date)

        _, created = series.recurrence_exceptions.get_or_create(exception_date=occurrence_date)
        if not created:
            logger.debug("Occurrence %s of series %s already skipped", occurrence_date, series.pk)
            return

        series.occurrence_overrides.filter(occurrence_date=occurrence_date).delete()
        if isinstance(series, Task):
            TaskOccurrenceCompletion.objects.for_series(series).between(
                self._civil_day_start(series, occurrence_date),
                self._civil_day_start(series, occurrence_date + datetime.timedelta(days=1)),
            ).delete()

        logger.info("Skipped occurrence %s of series %s", occurrence_date, series.pk)

    @retry_on_transient_db_error
    @transaction.atomic()
    def complete(
        self,
        series: RecurringTemplateMixin,
        occurrence_start: datetime.datetime,
        was_completed: bool,
        user=None,
    ) -> TaskOccurrenceCompletion | None:
        """
        Toggle the completion of one task occurrence. When ``was_completed`` is
        true the completion is removed, otherwise it is recorded for ``user`` at
        the current time. Concurrent toggles resolve to the last write.
        """
        if not isinstance(series, Task):
            raise CompletionNotSupportedError()

        config = self._require_recurring(series)
        occurrence_date = occurrence_start.astimezone(zoneinfo.ZoneInfo(series.timezone)).date()
        self._require_occurrence(series, config, occurrence_date)
        expected_start = occurrence_start_at(
            occurrence_date, series.local_start_time.time(), series.timezone
        )
        if occurrence_start != expected_start:
            raise NotAnOccurrenceError(occurrence_start)
        self._require_not_skipped(series, occurrence_date)

        if was_completed:
            series.occurrence_completions.filter(occurrence_start_at=expected_start).delete()
            logger.info("Uncompleted occurrence %s of task %s", expected_start, series.pk)
            return None

        completion, _ = series.occurrence_completions.update_or_create(
            occurrence_start_at=expected_start,
            defaults={"completed_at": timezone.now(), "completed_by": user},
        )
        logger.info("Completed occurrence %s of task %s", expected_start, series.pk)
        return completion

    @retry_on_transient_db_error
    @transaction.atomic()
    def edit_one(
        self,
        series: RecurringTemplateMixin,
        occurrence_date: datetime.date,
        field_patch: Mapping[str, Any],
    ):
        """Override the content of a single occurrence. Other occurrences are unaffected."""
        validate_field_patch(field_patch, series.entity_type)
        config = self._require_recurring(series)
        self._require_occurrence(series, config, occurrence_date)
        self._require_not_skipped(series, occurrence_date)

        override, _ = series.occurrence_overrides.update_or_create(
            occurrence_date=occurrence_date,
            defaults={"modified_fields": dict(field_patch)},
        )
        logger.info(
            "Overrode occurrence %s of series %s: %s",
            occurrence_date,
            series.pk,
            sorted(field_patch),
        )
        return override

    @retry_on_transient_db_error
    @transaction.atomic()
    def edit_this_and_future(
        self,
        series: RecurringTemplateMixin,
        occurrence_date: datetime.date,
        field_patch: Mapping[str, Any],
    ) -> Task:
        """
        Split a task series at ``occurrence_date``.

        The existing series ends the day before ``occurrence_date``. A new series
        with the same rule shape, including the day of month or weekday position of
        the original anchor, starts on ``occurrence_date`` with ``field_patch``
        applied. A count-limited rule keeps its total: the new series gets the
        occurrences the old one had left. Skipped dates, overrides and completions
        on or after the split date move to the new series.
        """
        if not isinstance(series, Task):
            raise SplitNotSupportedError()

        validate_field_patch(field_patch, series.entity_type)
        config = self._require_recurring(series)
        if occurrence_date <= series.anchor_date:
            raise InvalidSplitDateError()
        self._require_occurrence(series, config, occurrence_date)
        self._require_not_skipped(series, occurrence_date)

        continuation_config = pin_anchor_position(config, series.anchor_date)
        if config.end_type == RecurrenceEndType.COUNT and config.end_count is not None:
            already_emitted = count_occurrences_before(
                series.start_time, config, occurrence_date, hard_cap=self.hard_cap
            )
            continuation_config = dataclasses.replace(
                continuation_config, end_count=config.end_count - already_emitted
            )

        truncated_config = dataclasses.replace(
            config,
            end_type=RecurrenceEndType.DATE,
            end_date=occurrence_date - datetime.timedelta(days=1),
            end_count=None,
        )
        series.set_recurrence_config(truncated_config)
        series.save()

        new_series = clone_model_instance(
            series,
            save=False,
            start_time=occurrence_start_at(
                occurrence_date, series.local_start_time.time(), series.timezone
            ),
            split_from=series,
            **field_patch,
        )
        new_series.set_recurrence_config(continuation_config)
        new_series.save()

        split_start = self._civil_day_start(series, occurrence_date)
        moved_exceptions = (
            TaskRecurrenceException.objects.for_series(series)
            .on_or_after(occurrence_date)
            .update(series=new_series)
        )
        moved_overrides = (
            TaskOccurrenceOverride.objects.for_series(series)
            .on_or_after(occurrence_date)
            .update(series=new_series)
        )
        moved_completions = (
            TaskOccurrenceCompletion.objects.for_series(series)
            .starting_from(split_start)
            .update(series=new_series)
        )

        logger.info(
            "Split task %s at %s into task %s (moved %d exceptions, %d overrides, "
            "%d completions)",
            series.pk,
            occurrence_date,
            new_series.pk,
            moved_exceptions,
            moved_overrides,
            moved_completions,
        )
        return new_series

