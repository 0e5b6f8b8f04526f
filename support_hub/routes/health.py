"""
Health check endpoints with dependency monitoring

Provides two endpoints:
- GET /api/health - Basic health check
- GET /api/health/dependencies - Detailed dependency status check
"""
import time
from datetime import datetime
from typing import Dict, Optional
from fastapi import APIRouter, status
from pydantic import BaseModel, Field
from supabase import create_client
import httpx
import asyncio

from support_hub.config import get_settings
from support_hub.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

APP_VERSION = "1.0.0"

# Application start time for uptime calculation
APP_START_TIME = time.time()

# Cache for dependency check results (30 seconds TTL)
_dependency_cache: Optional["DependencyHealth"] = None
_cache_timestamp: float = 0.0
CACHE_TTL_SECONDS = 30.0

CHECK_TIMEOUT_SECONDS = 5.0


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")


class DependencyStatus(BaseModel):
    """Status of a single dependency"""
    name: str = Field(..., description="Dependency name")
    status: str = Field(..., description="Status: healthy, degraded, unhealthy")
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    error_message: Optional[str] = Field(None, description="Error message if unhealthy")


class DependencyHealth(BaseModel):
    """Comprehensive dependency health check response"""
    overall_status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    dependencies: Dict[str, DependencyStatus] = Field(..., description="Individual dependency statuses")
    checked_at: datetime = Field(default_factory=datetime.utcnow, description="Check timestamp")


# ============================================================================
# Dependency Check Functions
# ============================================================================

async def check_supabase() -> DependencyStatus:
    """
    Check Supabase connectivity with a one-row read of the tickets table

    Returns:
        DependencyStatus with health information
    """
    settings = get_settings()
    if not settings.supabase_configured:
        return DependencyStatus(
            name="supabase",
            status="unhealthy",
            error_message="Supabase URL/key not configured"
        )

    try:
        start = time.time()

        client = create_client(settings.supabase_url, settings.supabase_key)

        await asyncio.wait_for(
            asyncio.to_thread(
                lambda: client.table(settings.tickets_table).select("id").limit(1).execute()
            ),
            timeout=CHECK_TIMEOUT_SECONDS
        )

        latency = (time.time() - start) * 1000

        return DependencyStatus(
            name="supabase",
            status="healthy",
            latency_ms=round(latency, 2)
        )

    except asyncio.TimeoutError:
        logger.error("Supabase health check timed out")
        return DependencyStatus(
            name="supabase",
            status="unhealthy",
            error_message="Request timed out after 5 seconds"
        )
    except Exception as e:
        logger.error(f"Supabase health check failed: {e}")
        return DependencyStatus(
            name="supabase",
            status="unhealthy",
            error_message=str(e)
        )


async def check_analysis_webhook() -> DependencyStatus:
    """
    Check that the analysis webhook host answers

    Sends HEAD so the workflow is not triggered; any HTTP response
    (including 404/405) counts as reachable.

    Returns:
        DependencyStatus with health information
    """
    settings = get_settings()
    if not settings.analysis_webhook_url:
        return DependencyStatus(
            name="analysis_webhook",
            status="degraded",
            error_message="Webhook URL not configured"
        )

    try:
        start = time.time()

        async with httpx.AsyncClient(timeout=CHECK_TIMEOUT_SECONDS) as client:
            await client.head(settings.analysis_webhook_url)

        latency = (time.time() - start) * 1000

        return DependencyStatus(
            name="analysis_webhook",
            status="healthy",
            latency_ms=round(latency, 2)
        )

    except httpx.TimeoutException:
        logger.error("Analysis webhook health check timed out")
        return DependencyStatus(
            name="analysis_webhook",
            status="unhealthy",
            error_message="Request timed out after 5 seconds"
        )
    except Exception as e:
        logger.error(f"Analysis webhook health check failed: {e}")
        return DependencyStatus(
            name="analysis_webhook",
            status="unhealthy",
            error_message=str(e)
        )


async def check_all_dependencies() -> Dict[str, DependencyStatus]:
    """
    Check all external dependencies in parallel

    Returns:
        Dictionary mapping dependency names to their status
    """
    results = await asyncio.gather(
        check_supabase(),
        check_analysis_webhook(),
        return_exceptions=True
    )

    dependencies = {}
    dep_names = ["supabase", "analysis_webhook"]

    for name, result in zip(dep_names, results):
        if isinstance(result, Exception):
            logger.error(f"Unexpected error checking {name}: {result}")
            dependencies[name] = DependencyStatus(
                name=name,
                status="unhealthy",
                error_message=f"Unexpected error: {str(result)}"
            )
        else:
            dependencies[name] = result

    return dependencies


def determine_overall_status(dependencies: Dict[str, DependencyStatus]) -> str:
    """
    Determine overall system status based on dependency health

    Critical services: Supabase
    Non-critical services: analysis webhook (tickets still save with defaults)

    Rules:
    - Any critical service unhealthy → "unhealthy"
    - Any non-critical service degraded/unhealthy → "degraded"
    - All healthy → "healthy"
    """
    critical_services = ["supabase"]

    for service in critical_services:
        if service in dependencies and dependencies[service].status == "unhealthy":
            return "unhealthy"

    degraded_count = sum(
        1 for dep in dependencies.values()
        if dep.status in ["degraded", "unhealthy"]
    )

    if degraded_count >= 1:
        return "degraded"

    return "healthy"


def reset_dependency_cache() -> None:
    global _dependency_cache, _cache_timestamp
    _dependency_cache = None
    _cache_timestamp = 0.0


# ============================================================================
# API Endpoints
# ============================================================================

@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns basic application health status and uptime"
)
async def basic_health_check() -> HealthResponse:
    """
    Basic health check endpoint

    Always returns 200 OK with current status.
    Does not check external dependencies.
    """
    uptime = time.time() - APP_START_TIME

    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=APP_VERSION,
        uptime_seconds=round(uptime, 2)
    )


@router.get(
    "/dependencies",
    response_model=DependencyHealth,
    status_code=status.HTTP_200_OK,
    summary="Dependency health check",
    description="Checks all external dependencies and returns detailed status"
)
async def dependency_health_check() -> DependencyHealth:
    """
    Dependency health check endpoint

    Results are cached for 30 seconds. Always returns 200 OK.
    """
    global _dependency_cache, _cache_timestamp

    current_time = time.time()
    if _dependency_cache and (current_time - _cache_timestamp) < CACHE_TTL_SECONDS:
        logger.debug("Returning cached dependency health check results")
        return _dependency_cache

    logger.info("Performing dependency health checks")
    dependencies = await check_all_dependencies()

    response = DependencyHealth(
        overall_status=determine_overall_status(dependencies),
        dependencies=dependencies,
        checked_at=datetime.utcnow()
    )

    _dependency_cache = response
    _cache_timestamp = current_time

    unhealthy_deps = [
        name for name, dep in dependencies.items()
        if dep.status == "unhealthy"
    ]
    if unhealthy_deps:
        logger.warning(f"Unhealthy dependencies: {', '.join(unhealthy_deps)}")

    return response
