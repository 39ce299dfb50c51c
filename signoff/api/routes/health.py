"""Service health: course store, reminder queue and the reference calendar day."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter
from redis import asyncio as aioredis
from sqlalchemy import func, select

from signoff.core.clock import local_today
from signoff.core.config import get_settings
from signoff.infrastructure.db.models import CourseModel
from signoff.infrastructure.db.session import get_session_factory

router = APIRouter(tags=["Observability"])
logger = structlog.get_logger()


async def check_course_store() -> dict:
    """Count courses; proves both the connection and the schema."""
    try:
        async with get_session_factory()() as session:
            course_count = await session.scalar(select(func.count(CourseModel.id)))
        return {"status": "ok", "course_count": int(course_count or 0)}
    except Exception as e:
        return {"status": "error", "message": str(e)[:100]}


async def check_reminder_queue() -> dict:
    """Ping the redis instance backing the reminder worker."""
    client = None
    try:
        client = aioredis.from_url(get_settings().redis_url)
        await client.ping()
        return {"status": "ok"}
    except Exception as e:
        return {"status": "error", "message": str(e)[:100]}
    finally:
        if client is not None:
            await client.aclose()


@router.get("/health", summary="Service health check")
async def health_check() -> dict:
    """Report datastore status and the calendar day courses are evaluated against."""
    settings = get_settings()

    datastores = {
        "database": await check_course_store(),
        "redis": await check_reminder_queue(),
    }
    degraded = any(check["status"] != "ok" for check in datastores.values())

    payload = {
        "service": settings.app_name,
        "version": settings.version,
        "status": "degraded" if degraded else "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "timezone": settings.timezone,
        "today": local_today().isoformat(),
        "datastores": datastores,
    }
    logger.info("health_checked", **payload)
    return payload
