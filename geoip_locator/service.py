from threading import Lock

from geoip_locator.config import Settings
from geoip_locator.context import RequestContext
from geoip_locator.defaults import build_default
from geoip_locator.errors import ConfigurationError
from geoip_locator.factory import LocationProviderFactory
from geoip_locator.logger import logger
from geoip_locator.models.location import Location
from geoip_locator.providers import BaseLocationProvider
from geoip_locator.resolver import LocationResolver
from geoip_locator.session import SessionStore
from geoip_locator.validators import normalize_public_ip


class GeoIPService:
    """Process-wide entry point: default location, provider registry and lookups.

    The configured provider is built when the service is created, so a missing
    or unknown `service` name fails before any lookup is attempted. Other
    providers are built on first use by name and cached.
    """

    def __init__(
        self,
        service_name: str | None,
        default_location: Location,
        factory: LocationProviderFactory,
    ) -> None:
        if not service_name:
            raise ConfigurationError("GeoIP service is not set up. Configure GEOIP_SERVICE.")

        self._service_name = service_name
        self._default_location = default_location
        self._factory = factory
        self._providers: dict[str, BaseLocationProvider] = {}
        self._lock = Lock()

        self.provider()

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeoIPService":
        default_location = build_default(settings.default_location)
        return cls(
            service_name=settings.service,
            default_location=default_location,
            factory=LocationProviderFactory(settings, default_location),
        )

    @property
    def service_name(self) -> str:
        return self._service_name

    @property
    def default_location(self) -> Location:
        return self._default_location

    def provider(self, name: str | None = None) -> BaseLocationProvider:
        """Return the provider registered under `name`, or the configured one."""
        name = name or self._service_name
        with self._lock:
            provider = self._providers.get(name)
            if provider is None:
                provider = self._factory(name)
                self._providers[name] = provider
                logger.info(f"Registered GeoIP provider provider={name}")
        return provider

    async def lookup(self, ip: str | None, provider: str | None = None) -> Location:
        """Locate `ip` without touching any session.

        Addresses that are not publicly routable resolve to the default location
        without calling the provider.
        """
        location_provider = self.provider(provider)

        address = normalize_public_ip(ip)
        if address is None:
            logger.debug(f"Address is not publicly routable, using default location ip={ip}")
            return self._default_location

        return await location_provider.locate(address)

    def resolver(self, context: RequestContext, session: SessionStore) -> LocationResolver:
        """Create the per-request resolver for the visitor described by `context`."""
        return LocationResolver(self, context, session)

    async def aclose(self) -> None:
        with self._lock:
            providers = list(self._providers.values())
            self._providers.clear()
        for provider in providers:
            await provider.aclose()
