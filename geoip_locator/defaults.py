import math
from collections.abc import Mapping
from typing import Any

from geoip_locator.errors import ConfigurationError
from geoip_locator.logger import logger
from geoip_locator.models.location import Location

DEFAULT_LOCATION: dict[str, Any] = {
    "ip": "127.0.0.0",
    "iso_code": "US",
    "country": "United States",
    "city": "New Haven",
    "state": "CT",
    "postal_code": "06510",
    "lat": 41.31,
    "lon": -72.92,
    "timezone": "America/New_York",
    "continent": "NA",
    "is_default": True,
}

# Override keys may use the camelCase names of the record.
_KEY_ALIASES = {
    "isoCode": "iso_code",
    "postalCode": "postal_code",
    "isDefault": "is_default",
    "default": "is_default",
}

_COORDINATE_FIELDS = ("lat", "lon")


def build_default(overrides: Mapping[str, Any] | None = None) -> Location:
    """Build the default location from the built-in baseline and configured overrides.

    Present keys replace the baseline value, missing keys keep it. The result is
    always flagged as a default regardless of the overrides.

    Override coordinates must be numeric; a malformed value is a configuration
    error rather than a silent 0.0.
    """
    merged = dict(DEFAULT_LOCATION)
    for key, value in (overrides or {}).items():
        field = _KEY_ALIASES.get(key, key)
        if field not in merged:
            logger.warning(f"Ignoring unknown default location key key={key}")
            continue
        if field in _COORDINATE_FIELDS:
            value = _coordinate(key, value)
        merged[field] = value
    merged["is_default"] = True
    return Location.model_validate(merged)


def _coordinate(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"Default location {key} must be a number, got {value!r}.")
    try:
        coordinate = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Default location {key} must be a number, got {value!r}.") from exc
    if not math.isfinite(coordinate):
        raise ConfigurationError(f"Default location {key} must be a number, got {value!r}.")
    return coordinate
