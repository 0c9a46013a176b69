import json
import os
from http import HTTPStatus
from typing import Any

import httpx

from geoip_locator.config import Settings
from geoip_locator.errors import InvalidIpError, ProviderNotFoundError, ProviderTransportError, ReservedIpError
from geoip_locator.lazy import LazyHandle
from geoip_locator.logger import diagnostic_logger
from geoip_locator.models.location import Location
from geoip_locator.providers.base import BaseLocationProvider

FREE_BASE_URL = "http://ip-api.com"
PRO_HOST = "pro.ip-api.com"
USER_AGENT = "geoip-locator"
# status, message, country, countryCode, region, regionName, city, zip, lat, lon, timezone
RESPONSE_FIELDS = 49663
UNKNOWN_CONTINENT = "Unknown"


class IpApiComProvider(BaseLocationProvider):
    """Provider for the ip-api.com JSON API.

    A single `httpx.AsyncClient` is created on first use and reused for every
    lookup. Continent codes are not part of the response; they are derived from
    an optional JSON table mapping country codes to continent codes.

    Every failure (network, decoding, non-success status) is absorbed and
    resolved to the default location.
    """

    name = "ipapi"

    def __init__(
        self,
        default_location: Location,
        key: str | None = None,
        secure: bool = False,
        continent_path: str | None = None,
        timeout_seconds: float = 5.0,
    ) -> None:
        super().__init__(default_location, absorb_errors=True)
        self._key = key
        self._base_url = f"{'https' if secure else 'http'}://{PRO_HOST}" if key else FREE_BASE_URL
        self._continent_path = continent_path
        self._timeout_seconds = timeout_seconds
        self._client: LazyHandle[httpx.AsyncClient] = LazyHandle(self._build_client)
        self._continents: LazyHandle[dict[str, str]] = LazyHandle(self._load_continents)

    @classmethod
    def from_settings(cls, settings: Settings, default_location: Location) -> "IpApiComProvider":
        return cls(
            default_location,
            key=settings.ipapi.key,
            secure=settings.ipapi.secure,
            continent_path=settings.ipapi.continent_path,
            timeout_seconds=settings.ipapi.timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _lookup(self, ip: str) -> Location:
        """Perform the HTTP request and normalize the response.

        The ip-api.com API returns a JSON payload with a `status` field that can
        be "success" or "fail". We normalize that into typed exceptions and a
        `Location`.
        """
        client = self._client.get()
        try:
            response = await client.get(f"/json/{ip}")
        except httpx.RequestError as exc:
            raise ProviderTransportError(f"Request to IP provider failed: {repr(exc)}") from exc

        self._handle_http_errors(response)

        data = self._parse_json(response)
        self._handle_provider_status(data)

        return self._normalize_payload(ip, data)

    async def aclose(self) -> None:
        client = self._client.reset()
        if client is not None:
            await client.aclose()

    def _build_client(self) -> httpx.AsyncClient:
        params: dict[str, Any] = {"fields": RESPONSE_FIELDS}
        if self._key:
            params["key"] = self._key

        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT},
            params=params,
            timeout=self._timeout_seconds,
        )

    def _load_continents(self) -> dict[str, str]:
        """Load the country code -> continent code table, if one is configured."""
        if not self._continent_path or not os.path.isfile(self._continent_path):
            return {}

        try:
            with open(self._continent_path, encoding="utf-8") as fp:
                table = json.load(fp)
        except (OSError, ValueError) as exc:
            diagnostic_logger.error(f"Failed to load continent table path={self._continent_path} error={exc!r}")
            return {}

        if not isinstance(table, dict):
            diagnostic_logger.error(f"Continent table is not a JSON object path={self._continent_path}")
            return {}

        return {str(code).upper(): str(continent) for code, continent in table.items()}

    def _continent_for(self, country_code: Any) -> str:
        if not country_code:
            return UNKNOWN_CONTINENT
        return self._continents.get().get(str(country_code).upper(), UNKNOWN_CONTINENT)

    def _handle_http_errors(self, response: httpx.Response) -> None:
        """Map HTTP status codes from the provider to domain-specific errors."""
        status_code = response.status_code

        if status_code == HTTPStatus.NOT_FOUND:
            raise ProviderNotFoundError("No geolocation information found for this IP address.")

        if status_code == HTTPStatus.TOO_MANY_REQUESTS:
            # 429 Quota exceeded / rate limit hit.
            raise ProviderTransportError("IP provider rate limit or quota exceeded (HTTP 429).")

        if status_code >= HTTPStatus.BAD_REQUEST:
            raise ProviderTransportError(f"IP provider returned HTTP {status_code}: {response.text}")

    def _handle_provider_status(self, data: dict[str, Any]) -> None:
        """Normalize ip-api.com status/message into domain exceptions."""
        status_value = str(data.get("status") or "").lower()

        if status_value == "success":
            return

        # status is "fail" or unknown
        message = str(data.get("message") or "Unknown error from ip-api.com")
        lower_msg = message.lower()

        if "private range" in lower_msg or "reserved range" in lower_msg:
            raise ReservedIpError(f"Request failed ({message})")

        if "invalid" in lower_msg:
            raise InvalidIpError(f"Request failed ({message})")

        if "quota" in lower_msg or "limit" in lower_msg:
            raise ProviderTransportError(f"IP provider rate limit or quota exceeded: {message}")

        if "not found" in lower_msg:
            raise ProviderNotFoundError(f"Request failed ({message})")

        raise ProviderTransportError(f"Request failed ({message})")

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderTransportError(f"Failed to decode IP provider response as JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise ProviderTransportError("IP provider response is not a JSON object.")
        return data

    def _normalize_payload(self, ip: str, data: dict[str, Any]) -> Location:
        """Map ip-api.com's response into a `Location`."""
        return Location(
            ip=ip,
            iso_code=data.get("countryCode"),
            country=data.get("country"),
            city=data.get("city"),
            state=data.get("region"),
            postal_code=data.get("zip"),
            lat=data.get("lat"),
            lon=data.get("lon"),
            timezone=data.get("timezone"),
            continent=self._continent_for(data.get("countryCode")),
            is_default=False,
        )
