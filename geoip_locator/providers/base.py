from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from geoip_locator.errors import IpProviderError, ProviderNotFoundError
from geoip_locator.logger import diagnostic_logger
from geoip_locator.models.location import Location

if TYPE_CHECKING:
    from geoip_locator.config import Settings


class BaseLocationProvider(ABC):
    """Abstract base for all geolocation providers.

    Concrete implementations (e.g. MaxMind, ip-api.com, ipapi.co) implement
    `_lookup` and map provider-specific responses into a `Location`. Failures
    are signalled with `IpProviderError` subclasses; `locate` decides which of
    them are absorbed (logged to the diagnostic sink, default location
    returned) and which propagate.
    """

    name: ClassVar[str]

    def __init__(self, default_location: Location, absorb_errors: bool = True) -> None:
        self._default_location = default_location
        self._absorb_errors = absorb_errors

    @classmethod
    def from_settings(cls, settings: "Settings", default_location: Location) -> "BaseLocationProvider":
        """Build the provider from its section of the application settings."""
        raise NotImplementedError

    @property
    def default_location(self) -> Location:
        return self._default_location

    async def locate(self, ip: str) -> Location:
        """Look up `ip`, falling back to the default location on absorbed failures."""
        try:
            return await self._lookup(ip)
        except ProviderNotFoundError as exc:
            self._report_failure(ip, exc)
        except IpProviderError as exc:
            if not self._absorb_errors:
                raise
            self._report_failure(ip, exc)
        return self._default_location

    @abstractmethod
    async def _lookup(self, ip: str) -> Location:
        """Look up geolocation information for a validated public IP address."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release any handle opened by the provider."""
        return None

    def _report_failure(self, ip: str, exc: IpProviderError) -> None:
        diagnostic_logger.error(
            f"Location lookup failed, using default location provider={self.name} ip={ip} error={exc!r}"
        )
