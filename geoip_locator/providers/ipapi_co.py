from http import HTTPStatus
from typing import Any

import httpx

from geoip_locator.config import Settings
from geoip_locator.errors import InvalidIpError, ProviderNotFoundError, ProviderTransportError, ReservedIpError
from geoip_locator.lazy import LazyHandle
from geoip_locator.models.location import Location
from geoip_locator.providers.base import BaseLocationProvider


class IpApiCoProvider(BaseLocationProvider):
    """Provider for the https://ipapi.co/ IP geolocation API.

    Like the ip-api.com provider, every failure is absorbed and resolved to the
    default location.
    """

    name = "ipapi_co"

    def __init__(
        self,
        default_location: Location,
        key: str | None = None,
        base_url: str = "https://ipapi.co",
        timeout_seconds: float = 5.0,
    ) -> None:
        super().__init__(default_location, absorb_errors=True)
        self._key = key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client: LazyHandle[httpx.AsyncClient] = LazyHandle(self._build_client)

    @classmethod
    def from_settings(cls, settings: Settings, default_location: Location) -> "IpApiCoProvider":
        return cls(
            default_location,
            key=settings.ipapi_co.key,
            base_url=settings.ipapi_co.base_url,
            timeout_seconds=settings.ipapi_co.timeout_seconds,
        )

    async def _lookup(self, ip: str) -> Location:
        """Perform the HTTP request and normalize the response.

        The ipapi.co API returns a JSON payload that may contain an "error" flag
        even when using HTTP 200, following the documented error semantics:
        https://ipapi.co/api/#specific-location-field6
        """
        client = self._client.get()
        try:
            response = await client.get(f"/{ip}/json/")
        except httpx.RequestError as exc:
            raise ProviderTransportError(f"Request to IP provider failed: {repr(exc)}") from exc

        self._handle_http_errors(response)

        data = self._parse_json(response)
        self._handle_provider_error(data)

        return self._normalize_payload(ip, data)

    async def aclose(self) -> None:
        client = self._client.reset()
        if client is not None:
            await client.aclose()

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            params={"key": self._key} if self._key else None,
            timeout=self._timeout_seconds,
        )

    def _handle_http_errors(self, response: httpx.Response) -> None:
        """Map HTTP status codes from the provider to domain-specific errors."""
        status_code = response.status_code

        if status_code == HTTPStatus.FORBIDDEN:
            # 403 Authentication Failed.
            raise ProviderTransportError("Authentication with IP provider failed (HTTP 403).")
        if status_code == HTTPStatus.TOO_MANY_REQUESTS:
            # 429 Quota exceeded / rate limit hit.
            raise ProviderTransportError("IP provider rate limit or quota exceeded (HTTP 429).")
        if status_code == HTTPStatus.NOT_FOUND:
            raise ProviderNotFoundError("No geolocation information found for this IP address.")
        if status_code >= HTTPStatus.BAD_REQUEST:
            raise ProviderTransportError(f"IP provider returned HTTP {status_code}: {response.text}")

    def _handle_provider_error(self, data: dict[str, Any]) -> None:
        """Normalize provider-specific error payloads into domain exceptions.

        Examples:
            { "error": true, "reason": "Invalid IP Address", "ip": "..." }
            { "error": true, "reason": "Reserved IP Address", "ip": "127.0.0.1", "reserved": true }
            { "error": true, "reason": "RateLimited", "message": "..." }
        """
        if not data.get("error"):
            return

        reason = str(data.get("reason") or data.get("message") or "Unknown error from ipapi.co")
        lower_reason = reason.lower()

        if "invalid" in lower_reason:
            raise InvalidIpError(reason)

        if "reserved" in lower_reason or data.get("reserved") is True:
            raise ReservedIpError(reason)

        if "ratelimited" in lower_reason or "quota" in lower_reason:
            raise ProviderTransportError(f"IP provider rate limit or quota exceeded: {reason}")

        raise ProviderTransportError(reason)

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderTransportError(f"Failed to decode IP provider response as JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise ProviderTransportError("IP provider response is not a JSON object.")
        return data

    @staticmethod
    def _normalize_payload(ip: str, data: dict[str, Any]) -> Location:
        """Map ipapi.co's response into a `Location`.

        Latitude/longitude may arrive as strings; the `Location` model coerces
        them into floats.
        """
        return Location(
            ip=ip,
            iso_code=data.get("country_code") or data.get("country"),
            country=data.get("country_name"),
            city=data.get("city"),
            state=data.get("region_code") or data.get("region"),
            postal_code=data.get("postal"),
            lat=data.get("latitude"),
            lon=data.get("longitude"),
            timezone=data.get("timezone"),
            continent=data.get("continent_code"),
            is_default=False,
        )
