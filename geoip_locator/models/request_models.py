from pydantic import BaseModel, Field, field_validator


class LocationRequest(BaseModel):
    """Request model for location lookup via query parameters.

    If `ip` is provided, the service looks up that explicit IP address and
    leaves the visitor's session untouched. If `ip` is omitted or blank, the
    visitor's IP is used and the result is cached in the session.

    The optional `provider` parameter queries a specific provider directly,
    bypassing the configured one and the session cache.
    """

    ip: str | None = Field(
        default=None,
        description=(
            "IPv4 or IPv6 address to look up. If omitted, the visitor's IP is used. "
            "Addresses that are malformed or not publicly routable resolve to the default location."
        ),
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )
    provider: str | None = Field(
        default=None,
        description="Provider to query directly. Defaults to the configured provider.",
        examples=["maxmind", "ipapi", "ipapi_co"],
    )

    @field_validator("ip", "provider", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        """None or blank string -> None; other values are stripped."""
        if value is None:
            return None

        value_str = str(value).strip()
        return value_str or None
