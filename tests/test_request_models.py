from typing import Any

from geoip_locator.models.request_models import LocationRequest


def _build_request(ip: Any = None, provider: Any = None) -> LocationRequest:
    """Helper to construct LocationRequest, used to keep tests small."""
    return LocationRequest(ip=ip, provider=provider)


def test_location_request_keeps_valid_ip() -> None:
    assert _build_request("8.8.8.8").ip == "8.8.8.8"
    assert _build_request("2001:4860:4860::8888").ip == "2001:4860:4860::8888"


def test_location_request_strips_whitespace() -> None:
    req = _build_request(" 8.8.8.8 ", " ipapi ")

    assert req.ip == "8.8.8.8"
    assert req.provider == "ipapi"


def test_location_request_normalizes_blank_to_none() -> None:
    """Blank values mean "visitor lookup" and "configured provider"."""
    req = _build_request("   ", "")

    assert req.ip is None
    assert req.provider is None


def test_location_request_allows_none() -> None:
    req = _build_request()

    assert req.ip is None
    assert req.provider is None


def test_location_request_does_not_reject_malformed_ip() -> None:
    """Malformed addresses are resolved to the default location, not rejected."""
    assert _build_request("qwerty").ip == "qwerty"
