from django.db.models import TextChoices


class RecurrenceFrequency(TextChoices):
    NONE = "none", "Does not repeat"
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"
    YEARLY = "yearly", "Yearly"
    CUSTOM = "custom", "Custom"


class MonthlyType(TextChoices):
    DAY = "day", "Day of month"
    WEEKDAY = "weekday", "Nth weekday of month"


class RecurrenceEndType(TextChoices):
    NEVER = "never", "Never"
    DATE = "date", "On date"
    COUNT = "count", "After a number of occurrences"


class RecurrenceWeekday(TextChoices):
    MONDAY = "MO", "Monday"
    TUESDAY = "TU", "Tuesday"
    WEDNESDAY = "WE", "Wednesday"
    THURSDAY = "TH", "Thursday"
    FRIDAY = "FR", "Friday"
    SATURDAY = "SA", "Saturday"
    SUNDAY = "SU", "Sunday"


class EntityType(TextChoices):
    TASK = "task", "Task"
    EVENT = "event", "Event"


class TaskPriority(TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class TaskStatus(TextChoices):
    TODO = "todo", "To Do"
    IN_PROGRESS = "in_progress", "In Progress"
    DONE = "done", "Done"


# Fields an occurrence override or a series split may patch, per entity type.
TASK_PATCHABLE_FIELDS = frozenset({"title", "description", "priority", "status"})
EVENT_PATCHABLE_FIELDS = frozenset({"title", "description", "location"})

# Frequencies the rule string can carry. `custom` has no token of its own.
RULE_FREQUENCY_TOKENS = {
    RecurrenceFrequency.DAILY: "DAILY",
    RecurrenceFrequency.WEEKLY: "WEEKLY",
    RecurrenceFrequency.MONTHLY: "MONTHLY",
    RecurrenceFrequency.YEARLY: "YEARLY",
    RecurrenceFrequency.CUSTOM: "DAILY",
}
