"""Django admin interface for recurring tasks and events."""

from django.contrib import admin

from recurrence.models import (
    Event,
    EventOccurrenceOverride,
    EventRecurrenceException,
    Task,
    TaskOccurrenceCompletion,
    TaskOccurrenceOverride,
    TaskRecurrenceException,
)
from recurrence.rule_codec import describe


class TaskRecurrenceExceptionInline(admin.TabularInline):
    model = TaskRecurrenceException
    fields = ("exception_date", "created")
    readonly_fields = ("created",)
    extra = 0


class TaskOccurrenceOverrideInline(admin.TabularInline):
    model = TaskOccurrenceOverride
    fields = ("occurrence_date", "modified_fields", "modified")
    readonly_fields = ("modified",)
    extra = 0


class TaskOccurrenceCompletionInline(admin.TabularInline):
    model = TaskOccurrenceCompletion
    fields = ("occurrence_start_at", "completed_at", "completed_by")
    readonly_fields = ("completed_at",)
    extra = 0
    max_num = 50  # Limit to recent completions


class EventRecurrenceExceptionInline(admin.TabularInline):
    model = EventRecurrenceException
    fields = ("exception_date", "created")
    readonly_fields = ("created",)
    extra = 0


class EventOccurrenceOverrideInline(admin.TabularInline):
    model = EventOccurrenceOverride
    fields = ("occurrence_date", "modified_fields", "modified")
    readonly_fields = ("modified",)
    extra = 0


class RecurringTemplateAdmin(admin.ModelAdmin):
    """Shared admin setup for recurring templates."""

    list_display = (
        "id",
        "title",
        "start_time",
        "timezone",
        "recurrence_display",
        "split_from",
        "created",
    )
    search_fields = ("title", "recurrence_rule")
    readonly_fields = ("created", "modified", "split_from")
    ordering = ("-created",)

    @admin.display(description="Recurrence")
    def recurrence_display(self, obj) -> str:
        return describe(obj.get_recurrence_config(), obj.anchor_date)


@admin.register(Task)
class TaskAdmin(RecurringTemplateAdmin):
    list_filter = ("priority", "status")
    raw_id_fields = ("assignee",)
    inlines = (
        TaskRecurrenceExceptionInline,
        TaskOccurrenceOverrideInline,
        TaskOccurrenceCompletionInline,
    )


@admin.register(Event)
class EventAdmin(RecurringTemplateAdmin):
    inlines = (EventRecurrenceExceptionInline, EventOccurrenceOverrideInline)
