"""Settings for the GeoIP locator.

Values are read from environment variables (or a `.env` file) prefixed with
`GEOIP_`; nested sections use a double underscore, e.g.
`GEOIP_MAXMIND__DATABASE_PATH` or `GEOIP_DEFAULT_LOCATION__CITY`.
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MaxMindSettings(BaseModel):
    """MaxMind GeoIP2 provider settings (local database or web service)."""

    type: Literal["web_service", "local_database"] = "local_database"
    user_id: int | None = None
    license_key: str | None = None
    database_path: str = "./geodb/GeoLite2-City.mmdb"
    host: str = "geoip.maxmind.com"
    timeout_seconds: float = 5.0
    # When true, failures other than "address not found" propagate to the caller
    # instead of resolving to the default location.
    strict_errors: bool = False


class IpApiSettings(BaseModel):
    """ip-api.com provider settings.

    Without a `key` the free endpoint is used; with a key the pro endpoint is
    used over https when `secure` is set.
    """

    key: str | None = None
    secure: bool = False
    continent_path: str | None = None
    timeout_seconds: float = 5.0


class IpApiCoSettings(BaseModel):
    """ipapi.co provider settings."""

    key: str | None = None
    base_url: str = "https://ipapi.co"
    timeout_seconds: float = 5.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GEOIP_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Name of the provider used for lookups: "maxmind", "ipapi" or "ipapi_co".
    service: str | None = None

    # Partial override of the built-in default location.
    default_location: dict[str, Any] = Field(default_factory=dict)

    maxmind: MaxMindSettings = Field(default_factory=MaxMindSettings)
    ipapi: IpApiSettings = Field(default_factory=IpApiSettings)
    ipapi_co: IpApiCoSettings = Field(default_factory=IpApiCoSettings)

    # Enables cookie-backed sessions so the visitor location is cached across requests.
    session_secret: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
