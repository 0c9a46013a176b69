from typing import TYPE_CHECKING

from pydantic import ValidationError

from geoip_locator.context import RequestContext
from geoip_locator.logger import logger
from geoip_locator.models.location import Location
from geoip_locator.session import SESSION_KEY, SessionStore

if TYPE_CHECKING:
    from geoip_locator.service import GeoIPService


class LocationResolver:
    """Resolve locations for one request.

    The visitor IP is taken from the request context once, at construction.
    Lookups for the visitor (no explicit IP) are cached in the session; lookups
    for an explicit IP never read or write the session.
    """

    def __init__(self, service: "GeoIPService", context: RequestContext, session: SessionStore) -> None:
        self._service = service
        self._session = session
        self._visitor_ip = context.visitor_ip(fallback=service.default_location.ip)
        self.location: Location | None = None

    @property
    def visitor_ip(self) -> str:
        return self._visitor_ip

    async def get_location(self, ip: str | None = None) -> Location:
        """Return the location for `ip`, or for the current visitor when `ip` is omitted."""
        if ip is None:
            cached = self._cached_location()
            if cached is not None:
                self.location = cached
                return cached

        self.location = await self._service.lookup(ip if ip is not None else self._visitor_ip)

        if ip is None:
            self._session.set(SESSION_KEY, self.location.model_dump(mode="json"))

        return self.location

    def _cached_location(self) -> Location | None:
        cached = self._session.get(SESSION_KEY)
        if not cached:
            return None
        if isinstance(cached, Location):
            return cached

        try:
            return Location.model_validate(cached)
        except ValidationError as exc:
            logger.warning(f"Ignoring invalid cached location key={SESSION_KEY} errors={exc.errors()}")
            return None
