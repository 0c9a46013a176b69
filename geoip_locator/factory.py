from geoip_locator.config import Settings
from geoip_locator.errors import UnknownProviderError
from geoip_locator.models.location import Location
from geoip_locator.providers import BaseLocationProvider, IpApiCoProvider, IpApiComProvider, MaxMindProvider


class LocationProviderFactory:
    """Factory for geolocation providers.

    Given a provider name from configuration, returns a concrete provider built
    from the provider's settings section.
    """

    PROVIDERS_MAP: dict[str, type[BaseLocationProvider]] = {
        MaxMindProvider.name: MaxMindProvider,
        IpApiComProvider.name: IpApiComProvider,
        IpApiCoProvider.name: IpApiCoProvider,
    }

    def __init__(self, settings: Settings, default_location: Location) -> None:
        self._settings = settings
        self._default_location = default_location

    @property
    def names(self) -> list[str]:
        return sorted(self.PROVIDERS_MAP)

    def __call__(self, name: str) -> BaseLocationProvider:
        provider_cls = self.PROVIDERS_MAP.get(name)
        if provider_cls is None:
            raise UnknownProviderError(
                f"GeoIP service {name!r} is not supported. Expected one of: {', '.join(self.names)}"
            )
        return provider_cls.from_settings(self._settings, self._default_location)
