from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse

from geoip_locator.errors import ConfigurationError
from geoip_locator.logger import logger


def _get_provider_from_request(request: Request) -> str | None:
    """Best-effort extraction of the provider value from the incoming request.

    Currently this looks at the `provider` query parameter used by /v1/location.
    For other endpoints this will typically be None.
    """
    return request.query_params.get("provider")


async def configuration_exception_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """GeoIP is not set up correctly; there is no location to fall back to."""
    provider = _get_provider_from_request(request)
    logger.error(
        "GeoIP configuration error while processing request: "
        f"{exc} path={request.url.path} method={request.method} provider={provider}"
    )
    content: dict[str, Any] = {
        "code": "configuration_error",
        "message": str(exc),
        "provider": provider,
    }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors to return a structured 500 response."""
    provider = _get_provider_from_request(request)
    logger.exception(
        "Unhandled exception while processing request: "
        f"{repr(exc)} path={request.url.path} method={request.method} provider={provider}"
    )
    content: dict[str, Any] = {
        "code": "internal_error",
        "message": "An unexpected error occurred while processing the request.",
        "provider": provider,
    }
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )
