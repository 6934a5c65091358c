from django.apps import AppConfig


class RecurrenceAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "recurrence"
    verbose_name = "Recurrence"
