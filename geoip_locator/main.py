from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request, status
from starlette.middleware.sessions import SessionMiddleware

from geoip_locator.config import get_settings
from geoip_locator.context import RequestContext
from geoip_locator.errors import ConfigurationError, IpProviderError, UnknownProviderError
from geoip_locator.exception_handlers import configuration_exception_handler, unhandled_exception_handler
from geoip_locator.logger import logger
from geoip_locator.models.location import Location
from geoip_locator.models.request_models import LocationRequest
from geoip_locator.models.response_models import HealthResponse, LocationResponse
from geoip_locator.resolver import LocationResolver
from geoip_locator.service import GeoIPService
from geoip_locator.session import MappingSessionStore, SessionStore


@lru_cache
def get_geoip_service() -> GeoIPService:
    """Dependency providing the process-wide GeoIPService."""
    return GeoIPService.from_settings(get_settings())


def get_session_store(request: Request) -> SessionStore:
    """Dependency providing the visitor's session.

    Without SessionMiddleware there is no session to persist to, and the
    visitor location is resolved on every request.
    """
    if "session" in request.scope:
        return MappingSessionStore(request.session)
    return MappingSessionStore()


def get_location_resolver(
    request: Request,
    service: Annotated[GeoIPService, Depends(get_geoip_service)],
    session: Annotated[SessionStore, Depends(get_session_store)],
) -> LocationResolver:
    """Dependency providing a resolver bound to the current request."""
    return service.resolver(RequestContext.from_request(request), session)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Fail at startup, not on the first lookup, when GeoIP is misconfigured.
    service = get_geoip_service()
    logger.info(f"Started GeoIP Locator Service provider={service.service_name}")
    yield
    await service.aclose()


app = FastAPI(
    title="GeoIP Locator Service",
    version="0.1.0",
    description="Resolves visitor IP addresses to approximate locations with a default-location fallback.",
    lifespan=lifespan,
)

settings = get_settings()
if settings.session_secret:
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)

app.add_exception_handler(ConfigurationError, configuration_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health() -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(status="ok")


@app.get(
    "/v1/location",
    response_model=LocationResponse,
    status_code=status.HTTP_200_OK,
    tags=["location"],
    summary="Look up the location of an IP address or of the current visitor.",
)
async def location_lookup(
    request: Request,
    query: Annotated[LocationRequest, Depends()],
    service: Annotated[GeoIPService, Depends(get_geoip_service)],
    resolver: Annotated[LocationResolver, Depends(get_location_resolver)],
) -> LocationResponse:
    """Look up the location of either a specific IP or the current visitor.

    - If `query.ip` is provided, that IP is looked up and the session is left untouched.
    - Otherwise the visitor IP is taken from the request headers and the result is
      cached in the session.
    - If `query.provider` is provided, that provider is queried directly for
      `query.ip` (or the visitor IP), bypassing the configured provider and the session.
    - Lookups that cannot be resolved return the default location with `is_default=true`.
    """
    ip = query.ip
    provider = query.provider or service.service_name

    try:
        if query.provider:
            target = ip or resolver.visitor_ip
            logger.info(
                "Performing direct provider lookup "
                f"path={request.url.path} method={request.method} ip={target} provider={provider}"
            )
            location: Location = await service.lookup(target, provider=query.provider)
        elif ip:
            logger.info(
                "Performing explicit IP lookup "
                f"path={request.url.path} method={request.method} ip={ip} provider={provider}"
            )
            location = await resolver.get_location(ip)
        else:
            logger.info(
                "Performing visitor lookup "
                f"path={request.url.path} method={request.method} "
                f"visitor_ip={resolver.visitor_ip} provider={provider}"
            )
            location = await resolver.get_location()
    except UnknownProviderError as exc:
        logger.error(
            "Unknown provider requested "
            f"path={request.url.path} method={request.method} ip={ip} provider={provider} error={exc}"
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "unknown_provider",
                "message": str(exc),
                "provider": provider,
            },
        ) from exc
    except IpProviderError as exc:
        logger.exception(
            "Upstream IP provider error during lookup "
            f"path={request.url.path} method={request.method} ip={ip} provider={provider} error={exc}"
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "code": "upstream_error",
                "message": str(exc),
                "provider": provider,
            },
        ) from exc

    return LocationResponse(provider=provider, **location.model_dump())
