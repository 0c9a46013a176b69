from typing import Any

import httpx

from geoip_locator.defaults import build_default
from geoip_locator.errors import UnknownProviderError
from geoip_locator.models.location import Location
from geoip_locator.providers.base import BaseLocationProvider


class MockResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def json(self) -> Any:
        return self._payload


class MockAsyncClient:
    """Minimal mock for a reusable httpx.AsyncClient.

    Keeps the constructor kwargs and requested URLs so tests can assert on them.
    """

    def __init__(self, response: MockResponse, **kwargs: Any) -> None:
        self._response = response
        self.kwargs = kwargs
        self.requested_urls: list[str] = []
        self.closed = False

    async def get(self, url: str) -> MockResponse:
        self.requested_urls.append(url)
        return self._response

    async def aclose(self) -> None:
        self.closed = True


class FailingAsyncClient:
    """Async client whose requests raise a RequestError to simulate network failure.

    The target URL is provided at construction time, so tests for different providers
    can reuse this implementation with different base URLs.
    """

    def __init__(self, url: str, *args: Any, **kwargs: Any) -> None:
        self._url = url

    async def get(self, url: str) -> MockResponse:
        request = httpx.Request("GET", self._url + url)
        raise httpx.RequestError("Network failure", request=request)

    async def aclose(self) -> None:
        return None


def make_location(ip: str = "8.8.8.8", **overrides: Any) -> Location:
    """A resolved, non-default location for tests."""
    values: dict[str, Any] = {
        "ip": ip,
        "iso_code": "US",
        "country": "United States",
        "city": "Mountain View",
        "state": "CA",
        "postal_code": "94043",
        "lat": 37.386,
        "lon": -122.0838,
        "timezone": "America/Los_Angeles",
        "continent": "NA",
        "is_default": False,
    }
    values.update(overrides)
    return Location(**values)


class StubProvider(BaseLocationProvider):
    """Provider test double that returns a fixed location or raises a configured error."""

    name = "stub"

    def __init__(
        self,
        default_location: Location | None = None,
        result: Location | None = None,
        error: Exception | None = None,
        absorb_errors: bool = True,
    ) -> None:
        super().__init__(default_location or build_default(), absorb_errors=absorb_errors)
        self._result = result
        self._error = error
        self.calls: list[str] = []
        self.closed = False

    async def _lookup(self, ip: str) -> Location:
        self.calls.append(ip)
        if self._error is not None:
            raise self._error
        return self._result or make_location(ip)

    async def aclose(self) -> None:
        self.closed = True


class StubFactory:
    """Provider factory test double serving pre-built providers by name."""

    def __init__(self, **providers: BaseLocationProvider) -> None:
        self._providers = providers
        self.built: list[str] = []

    def __call__(self, name: str) -> BaseLocationProvider:
        if name not in self._providers:
            raise UnknownProviderError(f"GeoIP service {name!r} is not supported.")
        self.built.append(name)
        return self._providers[name]

