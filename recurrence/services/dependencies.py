"""Access to the series service from outside the DI container."""

from typing import TYPE_CHECKING, Annotated, cast

from dependency_injector.wiring import Provide, inject

from recurrence.exceptions import SeriesServiceNotInjectedError


if TYPE_CHECKING:
    from recurrence.services.series_service import SeriesService


@inject
def get_series_service(
    series_service: Annotated["SeriesService | None", Provide["series_service"]] = None,
) -> "SeriesService":
    """Get a series service from the DI container."""
    if series_service is None:
        raise SeriesServiceNotInjectedError("Missing required dependency series_service")
    return cast("SeriesService", series_service)
