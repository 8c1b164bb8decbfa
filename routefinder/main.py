from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings, get_settings
from .exceptions import (
    ExternalServiceError,
    RouteFinderError,
    RouteNotFoundError,
    ValidationError,
    get_error_response,
)
from .models import (
    AnalyticsResponse,
    HealthResponse,
    MatchRequest,
    MatchResponse,
    OptionsResponse,
    QualificationsResponse,
    Route,
    RouteQuery,
    UpdateResponse,
)
from .services.analytics import UsageAnalytics
from .services.catalog_service import get_route_catalog
from .services.update_service import RouteUpdateService
from .utils.geographies import canonicalize_country, canonicalize_region

settings: Settings = get_settings()

logger = logging.getLogger("routefinder")
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

analytics = UsageAnalytics(settings.analytics_file)

ELIGIBLE_MESSAGE = (
    "You meet the requirements for this route. "
    "Follow the steps below to progress your licensing application."
)
NOT_ELIGIBLE_MESSAGE = (
    "Based on the information provided, there are no available licensing routes. "
    "You may need additional qualifications or experience."
)


def get_update_service() -> RouteUpdateService:
    return RouteUpdateService(
        get_route_catalog(),
        analytics=analytics,
        url=settings.routes_update_url,
        timeout=settings.update_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the catalog (seed + synthesis) before serving any query."""
    catalog = get_route_catalog()
    summary = catalog.summary()
    logger.info(
        f"Route catalog loaded: {summary.total} routes "
        f"({summary.seed} seed, synthesized {summary.synthesized})"
    )
    yield


app = FastAPI(title="Licensing Route Finder API", version=__version__, lifespan=lifespan)

DEV_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]
cors_origins = settings.allowed_origins or (DEV_ORIGINS if settings.dev_mode else [])

if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


def _status_for(error: RouteFinderError) -> int:
    if isinstance(error, ValidationError):
        # Starlette renamed the 422 constant, so use the number
        return 422
    if isinstance(error, RouteNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ExternalServiceError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(RouteFinderError)
async def route_finder_error_handler(request: Request, exc: RouteFinderError) -> JSONResponse:
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=get_error_response(exc))


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.environment or "development",
        catalog=get_route_catalog().summary(),
        updatesEnabled=settings.updates_enabled,
        analyticsEnabled=settings.show_analytics,
    )


@app.get("/api/options", response_model=OptionsResponse)
async def options() -> OptionsResponse:
    """Choice lists for the route finder form."""
    catalog = get_route_catalog()
    return OptionsResponse(
        incomingCountries=catalog.unique_values("incomingCountry"),
        destinationCountries=catalog.unique_values("destinationCountry"),
        specialties=catalog.unique_values("specialty"),
        provincesByDestination=catalog.provinces_by_destination(),
        qualifications=catalog.all_qualifications(),
    )


@app.get("/api/qualifications", response_model=QualificationsResponse)
async def qualifications(
    country: str = Query(..., description="Incoming country"),
    specialty: str = Query(..., description="Specialty"),
) -> QualificationsResponse:
    """Qualifications relevant to a country/specialty, or the full list when none are."""
    catalog = get_route_catalog()
    applicable = catalog.qualifications_for(country, specialty)
    if applicable:
        return QualificationsResponse(country=country, specialty=specialty, qualifications=applicable)
    return QualificationsResponse(
        country=country,
        specialty=specialty,
        qualifications=catalog.all_qualifications(),
        fallback=True,
    )


@app.post("/api/routes/match", response_model=MatchResponse)
async def match_routes(request: MatchRequest) -> MatchResponse:
    destination_country = canonicalize_country(request.destinationCountry)
    query = RouteQuery.from_inputs(
        incoming_country=canonicalize_country(request.incomingCountry),
        destination_country=destination_country,
        specialty=request.specialty.strip(),
        qualifications=[q.strip() for q in request.qualifications if q.strip()],
        experience_years=request.experienceYears,
        destination_province=canonicalize_region(destination_country, request.destinationProvince),
    )

    routes = get_route_catalog().find_matching_routes(query)

    try:
        analytics.record(query)
    except OSError:
        logger.warning("Usage counter for this search was not persisted")

    return MatchResponse(
        eligible=bool(routes),
        message=ELIGIBLE_MESSAGE if routes else NOT_ELIGIBLE_MESSAGE,
        query=query,
        routes=routes,
    )


@app.get("/api/routes/{route_id}", response_model=Route)
async def get_route(route_id: int) -> Route:
    return get_route_catalog().get_route(route_id)


@app.post("/api/routes/replace", response_model=UpdateResponse)
async def replace_routes(records: Any = Body(..., description="Full replacement list of routes")) -> UpdateResponse:
    """Replace the seed routes wholesale; synthesis passes are re-run on the new data."""
    return get_update_service().apply_update(records)


@app.post("/api/routes/check-updates", response_model=UpdateResponse)
async def check_for_updates() -> UpdateResponse:
    return await get_update_service().check_for_updates()


@app.get("/api/analytics", response_model=AnalyticsResponse)
async def usage_analytics() -> AnalyticsResponse:
    """Search counters. Internal use only; hidden unless SHOW_ANALYTICS is set."""
    if not settings.show_analytics:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return AnalyticsResponse(
        entries=analytics.entries(),
        top=analytics.top(),
        heatmap=analytics.heatmap(),
    )


@app.get("/")
async def root():
    return {"status": "ok"}
