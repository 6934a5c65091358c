import datetime
import zoneinfo
from typing import TYPE_CHECKING, ClassVar

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

from model_utils.fields import AutoCreatedField, AutoLastModifiedField

from recurrence.constants import EntityType, TaskPriority, TaskStatus
from recurrence.dataclasses import RecurrenceConfig
from recurrence.managers import (
    OccurrenceCompletionManager,
    OccurrenceOverrideManager,
    RecurrenceExceptionManager,
    RecurringSeriesManager,
)
from recurrence.rule_codec import decode, encode
from recurrence.validators import validate_recurrence_config, validate_timezone


if TYPE_CHECKING:
    from django_stubs_ext.db.models.manager import RelatedManager


class IndexedTimeStampedModel(models.Model):
    created = AutoCreatedField(_("created"), db_index=True)
    modified = AutoLastModifiedField(_("modified"), db_index=True)

    class Meta:
        abstract = True


class RecurringTemplateMixin(IndexedTimeStampedModel):
    """
    Abstract template of a recurring series (a task or an event).

    ``start_time`` is the anchor: the start of the first occurrence. Occurrences
    repeat at the same wall-clock time in ``timezone``. The recurrence itself is
    stored as a rule string and exposed as a ``RecurrenceConfig``.
    """

    entity_type: ClassVar[EntityType]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    start_time = models.DateTimeField(help_text="Start of the first occurrence (series anchor)")
    timezone = models.CharField(
        max_length=64,
        default="UTC",
        help_text="IANA timezone the recurrence is evaluated in",
    )
    recurrence_rule = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Rule string, e.g. 'FREQ=WEEKLY;INTERVAL=2;BYDAY=MO'. Empty when not recurring",
    )
    split_from = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="continuations",
        help_text="If this series continues a series split by an edit of this and future "
        "occurrences, points to the original series",
    )

    objects = RecurringSeriesManager()

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.title} ({self.start_time})"

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_rule)

    @property
    def local_start_time(self) -> datetime.datetime:
        """Anchor expressed in the series timezone."""
        return self.start_time.astimezone(zoneinfo.ZoneInfo(self.timezone))

    @property
    def anchor_date(self) -> datetime.date:
        return self.local_start_time.date()

    def get_recurrence_config(self) -> RecurrenceConfig | None:
        return decode(self.recurrence_rule, self.timezone)

    def set_recurrence_config(self, config: RecurrenceConfig | None) -> None:
        """Replace the recurrence wholesale. Validates before touching the rule string."""
        if config is None:
            self.recurrence_rule = ""
            return

        validate_timezone(config.timezone)
        anchor_date = self.start_time.astimezone(zoneinfo.ZoneInfo(config.timezone)).date()
        validate_recurrence_config(config, anchor_date)
        self.timezone = config.timezone
        self.recurrence_rule = encode(config, anchor_date) or ""

    def clean(self):
        validate_timezone(self.timezone)
        config = self.get_recurrence_config()
        if config is not None:
            validate_recurrence_config(config, self.anchor_date)

    def save(self, *args, **kwargs):
        """Override save to run validation."""
        self.clean()
        super().save(*args, **kwargs)


class Task(RecurringTemplateMixin):
    entity_type = EntityType.TASK

    priority = models.CharField(
        max_length=10, choices=TaskPriority, default=TaskPriority.MEDIUM
    )
    status = models.CharField(max_length=20, choices=TaskStatus, default=TaskStatus.TODO)
    assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recurring_tasks",
    )

    recurrence_exceptions: "RelatedManager[TaskRecurrenceException]"
    occurrence_overrides: "RelatedManager[TaskOccurrenceOverride]"
    occurrence_completions: "RelatedManager[TaskOccurrenceCompletion]"


class Event(RecurringTemplateMixin):
    entity_type = EntityType.EVENT

    location = models.CharField(max_length=255, blank=True)
    duration = models.DurationField(default=datetime.timedelta(hours=1))

    recurrence_exceptions: "RelatedManager[EventRecurrenceException]"
    occurrence_overrides: "RelatedManager[EventOccurrenceOverride]"


class RecurrenceExceptionMixin(IndexedTimeStampedModel):
    """
    Removes a single occurrence from a series. The rest of the series is untouched.
    """

    exception_date = models.DateField(
        help_text="Civil date (in the series timezone) of the skipped occurrence"
    )

    objects = RecurrenceExceptionManager()

    class Meta:
        abstract = True

    def __str__(self):
        return f"Exception for {self.series} on {self.exception_date}"


class TaskRecurrenceException(RecurrenceExceptionMixin):
    series = models.ForeignKey(
        Task, on_delete=models.CASCADE, related_name="recurrence_exceptions"
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["series", "exception_date"], name="unique_task_exception_per_date"
            )
        ]


class EventRecurrenceException(RecurrenceExceptionMixin):
    series = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="recurrence_exceptions"
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["series", "exception_date"], name="unique_event_exception_per_date"
            )
        ]


class OccurrenceOverrideMixin(IndexedTimeStampedModel):
    """
    Replaces the displayed content of one occurrence, which stays in the series.
    """

    occurrence_date = models.DateField(
        help_text="Civil date (in the series timezone) of the modified occurrence"
    )
    modified_fields = models.JSONField(default=dict, blank=True)

    objects = OccurrenceOverrideManager()

    class Meta:
        abstract = True

    def __str__(self):
        return f"Override for {self.series} on {self.occurrence_date}"


class TaskOccurrenceOverride(OccurrenceOverrideMixin):
    series = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="occurrence_overrides")

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["series", "occurrence_date"], name="unique_task_override_per_date"
            )
        ]


class EventOccurrenceOverride(OccurrenceOverrideMixin):
    series = models.ForeignKey(
        Event, on_delete=models.CASCADE, related_name="occurrence_overrides"
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["series", "occurrence_date"], name="unique_event_override_per_date"
            )
        ]


class TaskOccurrenceCompletion(IndexedTimeStampedModel):
    """
    Marks one occurrence of a recurring task as done, keyed by its start timestamp.
    """

    series = models.ForeignKey(
        Task, on_delete=models.CASCADE, related_name="occurrence_completions"
    )
    occurrence_start_at = models.DateTimeField()
    completed_at = models.DateTimeField()
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="task_occurrence_completions",
    )

    objects = OccurrenceCompletionManager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["series", "occurrence_start_at"],
                name="unique_task_completion_per_occurrence",
            )
        ]

    def __str__(self):
        return f"Completion of {self.series} at {self.occurrence_start_at}"
