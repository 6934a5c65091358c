from dependency_injector import containers, providers

from recurrence.services.series_service import SeriesService


class AppContainer(containers.DeclarativeContainer):
    config = providers.Configuration()

    series_service = providers.Factory(
        SeriesService,
        hard_cap=config.RECURRENCE_HARD_CAP,
        default_max_occurrences=config.RECURRENCE_DEFAULT_MAX_OCCURRENCES,
        default_months_ahead=config.RECURRENCE_DEFAULT_MONTHS_AHEAD,
    )


container: AppContainer | None = None  # set during app startup
