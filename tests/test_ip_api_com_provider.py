import json
import logging
from collections.abc import Callable
from http import HTTPStatus
from pathlib import Path
from typing import Any

import httpx
import pytest

from geoip_locator.defaults import build_default
from geoip_locator.errors import InvalidIpError, ProviderNotFoundError, ProviderTransportError, ReservedIpError
from geoip_locator.models.location import Location
from geoip_locator.providers.ip_api_com import RESPONSE_FIELDS, IpApiComProvider
from tests.common import FailingAsyncClient, MockAsyncClient, MockResponse

SUCCESS_PAYLOAD = {
    "status": "success",
    "countryCode": "US",
    "country": "United States",
    "region": "CA",
    "regionName": "California",
    "city": "Mountain View",
    "zip": "94043",
    "lat": 37.386,
    "lon": -122.0838,
    "timezone": "America/Los_Angeles",
}


def make_fake_async_client(
    response: MockResponse, created: list[MockAsyncClient] | None = None
) -> Callable[..., MockAsyncClient]:
    """Factory for a fake httpx.AsyncClient returning a fixed response."""

    def _fake_client(*args: Any, **kwargs: Any) -> MockAsyncClient:
        client = MockAsyncClient(response, **kwargs)
        if created is not None:
            created.append(client)
        return client

    return _fake_client


def _geoip_errors(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == "geoip" and r.levelno == logging.ERROR]


@pytest.mark.asyncio
async def test_locate_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """Happy path: successful lookup mapped into a non-default location."""
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    provider = IpApiComProvider(build_default())
    result = await provider.locate("8.8.8.8")

    assert isinstance(result, Location)
    assert result.ip == "8.8.8.8"
    assert result.iso_code == "US"
    assert result.country == "United States"
    assert result.city == "Mountain View"
    assert result.state == "CA"
    assert result.postal_code == "94043"
    assert result.lat == pytest.approx(37.386)
    assert result.lon == pytest.approx(-122.0838)
    assert result.timezone == "America/Los_Angeles"
    assert result.continent == "Unknown"
    assert result.is_default is False


@pytest.mark.asyncio
async def test_client_is_built_once_with_free_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    """The HTTP client is created lazily, once, and reused for every lookup."""
    created: list[MockAsyncClient] = []
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response, created))

    provider = IpApiComProvider(build_default())
    assert created == []

    await provider.locate("8.8.8.8")
    await provider.locate("1.1.1.1")

    assert len(created) == 1
    client = created[0]
    assert client.kwargs["base_url"] == "http://ip-api.com"
    assert client.kwargs["params"] == {"fields": RESPONSE_FIELDS}
    assert client.kwargs["headers"]["User-Agent"] == "geoip-locator"
    assert client.requested_urls == ["/json/8.8.8.8", "/json/1.1.1.1"]


@pytest.mark.parametrize(
    ("secure", "expected_base_url"),
    [(True, "https://pro.ip-api.com"), (False, "http://pro.ip-api.com")],
)
@pytest.mark.asyncio
async def test_api_key_selects_pro_endpoint(
    monkeypatch: pytest.MonkeyPatch, secure: bool, expected_base_url: str
) -> None:
    created: list[MockAsyncClient] = []
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response, created))

    provider = IpApiComProvider(build_default(), key="secret", secure=secure)
    await provider.locate("8.8.8.8")

    assert provider.base_url == expected_base_url
    assert created[0].kwargs["base_url"] == expected_base_url
    assert created[0].kwargs["params"] == {"fields": RESPONSE_FIELDS, "key": "secret"}


@pytest.mark.asyncio
async def test_continent_is_read_from_table(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    continent_path = tmp_path / "continents.json"
    continent_path.write_text(json.dumps({"US": "NA", "DE": "EU"}))
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    provider = IpApiComProvider(build_default(), continent_path=str(continent_path))
    result = await provider.locate("8.8.8.8")

    assert result.continent == "NA"


@pytest.mark.asyncio
async def test_continent_defaults_to_unknown_for_unmapped_country(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    continent_path = tmp_path / "continents.json"
    continent_path.write_text(json.dumps({"DE": "EU"}))
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    provider = IpApiComProvider(build_default(), continent_path=str(continent_path))
    result = await provider.locate("8.8.8.8")

    assert result.continent == "Unknown"


@pytest.mark.asyncio
async def test_continent_table_is_loaded_once(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    continent_path = tmp_path / "continents.json"
    continent_path.write_text(json.dumps({"US": "NA"}))
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    provider = IpApiComProvider(build_default(), continent_path=str(continent_path))
    await provider.locate("8.8.8.8")
    continent_path.write_text(json.dumps({"US": "XX"}))
    result = await provider.locate("8.8.8.8")

    assert result.continent == "NA"


@pytest.mark.asyncio
async def test_fail_status_returns_default_location_and_logs(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """A non-success status resolves to the default location with one diagnostic entry."""
    caplog.set_level(logging.ERROR, logger="geoip")
    payload = {"status": "fail", "message": "reserved range"}
    response = MockResponse(status_code=HTTPStatus.OK, payload=payload)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    default_location = build_default()
    provider = IpApiComProvider(default_location)
    result = await provider.locate("8.8.8.8")

    assert result == default_location
    assert result.is_default is True
    errors = _geoip_errors(caplog)
    assert len(errors) == 1
    assert "reserved range" in errors[0].getMessage()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code",
    [
        HTTPStatus.BAD_REQUEST,
        HTTPStatus.FORBIDDEN,
        HTTPStatus.NOT_FOUND,
        HTTPStatus.TOO_MANY_REQUESTS,
        HTTPStatus.INTERNAL_SERVER_ERROR,
    ],
)
async def test_http_errors_return_default_location(
    monkeypatch: pytest.MonkeyPatch,
    status_code: HTTPStatus,
) -> None:
    response = MockResponse(status_code=status_code, payload={}, text="Some error")
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    default_location = build_default()
    result = await IpApiComProvider(default_location).locate("8.8.8.8")

    assert result == default_location


@pytest.mark.asyncio
async def test_network_failure_returns_default_location(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    """Network failures from httpx are absorbed and logged."""
    caplog.set_level(logging.ERROR, logger="geoip")
    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda *args, **kwargs: FailingAsyncClient("http://ip-api.com", *args, **kwargs),
    )

    default_location = build_default()
    result = await IpApiComProvider(default_location).locate("8.8.8.8")

    assert result == default_location
    assert len(_geoip_errors(caplog)) == 1


@pytest.mark.asyncio
async def test_invalid_json_returns_default_location(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-JSON responses are absorbed via the JSON decode failure."""

    class BadJsonResponse(MockResponse):
        def json(self) -> dict[str, Any]:
            raise ValueError("not json")

    response = BadJsonResponse(status_code=HTTPStatus.OK, payload={})
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    default_location = build_default()
    result = await IpApiComProvider(default_location).locate("8.8.8.8")

    assert result == default_location


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("message", "error_cls"),
    [
        ("invalid query", InvalidIpError),
        ("private range", ReservedIpError),
        ("reserved range", ReservedIpError),
        ("quota exceeded for this key", ProviderTransportError),
        ("not found", ProviderNotFoundError),
        ("something else", ProviderTransportError),
    ],
)
async def test_fail_status_is_mapped_to_typed_errors(
    monkeypatch: pytest.MonkeyPatch, message: str, error_cls: type[Exception]
) -> None:
    response = MockResponse(status_code=HTTPStatus.OK, payload={"status": "fail", "message": message})
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response))

    provider = IpApiComProvider(build_default())
    with pytest.raises(error_cls, match=message):
        await provider._lookup("8.8.8.8")


@pytest.mark.asyncio
async def test_aclose_closes_client(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[MockAsyncClient] = []
    response = MockResponse(status_code=HTTPStatus.OK, payload=SUCCESS_PAYLOAD)
    monkeypatch.setattr(httpx, "AsyncClient", make_fake_async_client(response, created))

    provider = IpApiComProvider(build_default())
    await provider.aclose()
    assert created == []

    await provider.locate("8.8.8.8")
    await provider.aclose()

    assert created[0].closed is True
