"""
Health check routes.
"""
from datetime import datetime, timezone

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_search_client
from app.core.config import settings
from app.core.database import get_db
from app.core.logging import get_logger
from app.schemas.queue import HealthResponse
from app.search.client import SearchIndexClient

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


async def check_redis() -> str:
    client = redis.from_url(settings.redis_url)
    try:
        await client.ping()
        return "healthy"
    except (RedisError, OSError) as e:
        logger.warning("health_check_failed", component="redis", error=str(e))
        return f"unhealthy: {e}"
    finally:
        await client.aclose()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    search: SearchIndexClient = Depends(get_search_client),
):
    """
    Health check endpoint for monitoring.

    Reports "healthy" only when the database, the broker and the search
    index all respond; otherwise "degraded" with the failing checks.
    """
    checks = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.warning("health_check_failed", component="database", error=str(e))
        checks["database"] = f"unhealthy: {e}"

    checks["redis"] = await check_redis()
    checks["search"] = "healthy" if await search.health() else "unhealthy"

    all_healthy = all(v == "healthy" for v in checks.values())
    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        checks=checks,
    )
