from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str


class LocationResponse(BaseModel):
    """Response model for location lookup."""

    provider: str
    ip: str
    iso_code: str
    country: str
    city: str
    state: str
    postal_code: str
    lat: float
    lon: float
    timezone: str
    continent: str
    is_default: bool
