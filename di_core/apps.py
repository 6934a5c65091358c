from django.apps import AppConfig
from django.conf import settings


class DICoreConfig(AppConfig):
    name = "di_core"

    def ready(self) -> None:
        from di_core import containers

        container = containers.AppContainer()
        container.config.from_dict(
            {name: getattr(settings, name) for name in dir(settings) if name.isupper()}
        )

        container.wire(
            modules=getattr(settings, "DI_WIRED_MODULES", []),
        )

        containers.container = container
