from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Location(BaseModel):
    """Canonical location record returned by every lookup path.

    Real resolutions and the default location share this shape; `is_default`
    tells them apart. Every field is always populated so callers never need
    per-field null checks.
    """

    model_config = ConfigDict(frozen=True)

    ip: str
    iso_code: str = Field(validation_alias=AliasChoices("iso_code", "isoCode"))
    country: str
    city: str
    state: str
    postal_code: str = Field(validation_alias=AliasChoices("postal_code", "postalCode"))
    lat: float
    lon: float
    timezone: str
    continent: str
    is_default: bool = Field(default=False, validation_alias=AliasChoices("is_default", "isDefault", "default"))

    @field_validator(
        "ip", "iso_code", "country", "city", "state", "postal_code", "timezone", "continent", mode="before"
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        """Providers leave fields out for many addresses; missing values become empty strings."""
        if value is None:
            return ""
        return str(value)

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coerce_lat_lon(cls, value: Any) -> float:
        """Allow latitude/longitude to be provided as strings, numbers, or null.

        Missing or invalid coordinates normalize to 0.0.
        """
        if value is None:
            return 0.0
        try:
            # For general GPS and mapping, 5-6 decimal places (e.g., 34.052235)
            return round(float(value), 6)
        except (TypeError, ValueError):
            return 0.0
