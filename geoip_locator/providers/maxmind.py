from typing import Any

import geoip2.database
import geoip2.errors
import geoip2.webservice

from geoip_locator.config import Settings
from geoip_locator.errors import ConfigurationError, ProviderNotFoundError, ProviderTransportError
from geoip_locator.lazy import LazyHandle
from geoip_locator.models.location import Location
from geoip_locator.providers.base import BaseLocationProvider

WEB_SERVICE = "web_service"
LOCAL_DATABASE = "local_database"


class MaxMindProvider(BaseLocationProvider):
    """Provider backed by MaxMind GeoIP2, either a local City database or the web service.

    The reader (or web-service client) is opened on first use and kept for the
    lifetime of the provider.

    "Address not found" is always absorbed and resolved to the default
    location. Other failures are absorbed as well unless `strict_errors` is
    set, in which case they propagate as `ProviderTransportError`.
    """

    name = "maxmind"

    def __init__(
        self,
        default_location: Location,
        service_type: str = LOCAL_DATABASE,
        user_id: int | None = None,
        license_key: str | None = None,
        database_path: str | None = None,
        host: str = "geoip.maxmind.com",
        timeout_seconds: float = 5.0,
        strict_errors: bool = False,
    ) -> None:
        super().__init__(default_location, absorb_errors=not strict_errors)

        if service_type == WEB_SERVICE:
            if user_id is None or not license_key:
                raise ConfigurationError("MaxMind web service requires both user_id and license_key.")
        elif service_type == LOCAL_DATABASE:
            if not database_path:
                raise ConfigurationError("MaxMind local database requires database_path.")
        else:
            raise ConfigurationError(f"Unsupported MaxMind type: {service_type!r}")

        self._type = service_type
        self._user_id = user_id
        self._license_key = license_key
        self._database_path = database_path
        self._host = host
        self._timeout_seconds = timeout_seconds
        self._handle: LazyHandle[Any] = LazyHandle(self._open)

    @classmethod
    def from_settings(cls, settings: Settings, default_location: Location) -> "MaxMindProvider":
        maxmind = settings.maxmind
        return cls(
            default_location,
            service_type=maxmind.type,
            user_id=maxmind.user_id,
            license_key=maxmind.license_key,
            database_path=maxmind.database_path,
            host=maxmind.host,
            timeout_seconds=maxmind.timeout_seconds,
            strict_errors=maxmind.strict_errors,
        )

    async def _lookup(self, ip: str) -> Location:
        try:
            record = await self._city(ip)
        except geoip2.errors.AddressNotFoundError as exc:
            raise ProviderNotFoundError(str(exc)) from exc
        except Exception as exc:
            raise ProviderTransportError(f"MaxMind lookup failed: {repr(exc)}") from exc

        return self._normalize_record(ip, record)

    async def aclose(self) -> None:
        handle = self._handle.reset()
        if handle is None:
            return
        if self._type == WEB_SERVICE:
            await handle.close()
        else:
            handle.close()

    def _open(self) -> Any:
        if self._type == WEB_SERVICE:
            return geoip2.webservice.AsyncClient(
                self._user_id,
                self._license_key,
                host=self._host,
                timeout=self._timeout_seconds,
            )
        return geoip2.database.Reader(self._database_path)

    async def _city(self, ip: str) -> Any:
        handle = self._handle.get()
        if self._type == WEB_SERVICE:
            return await handle.city(ip)
        return handle.city(ip)

    @staticmethod
    def _normalize_record(ip: str, record: Any) -> Location:
        """Map a GeoIP2 City record into a `Location`."""
        return Location(
            ip=ip,
            iso_code=record.country.iso_code,
            country=record.country.name,
            city=record.city.name,
            state=record.subdivisions.most_specific.iso_code,
            postal_code=record.postal.code,
            lat=record.location.latitude,
            lon=record.location.longitude,
            timezone=record.location.time_zone,
            continent=record.continent.code,
            is_default=False,
        )
