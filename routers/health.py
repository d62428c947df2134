"""
Health check and system monitoring endpoints.
"""
import time
import psutil
from datetime import datetime, timezone
from typing import Dict, Any
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text, select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from db_config import get_async_db
from core.config import settings
from models.models import User

router = APIRouter(prefix="/health", tags=["Health"])
logger = structlog.get_logger("health")


class HealthChecker:
    """Service for performing various health checks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def check_database(self) -> Dict[str, Any]:
        """Check database connectivity and basic operations."""
        try:
            start_time = time.time()
            await self.db.execute(text("SELECT 1"))
            user_count = (await self.db.execute(select(func.count()).select_from(User))).scalar_one()
            response_time = (time.time() - start_time) * 1000

            return {
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
                "user_count": user_count,
                "details": "Database connection successful"
            }
        except SQLAlchemyError as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "details": "Database connection failed"
            }

    @staticmethod
    def check_system_resources() -> Dict[str, Any]:
        """Check system resource usage."""
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        return {
            "status": "healthy",
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory": {
                "total_gb": round(memory.total / (1024**3), 2),
                "available_gb": round(memory.available / (1024**3), 2),
                "percent_used": memory.percent
            },
            "disk": {
                "total_gb": round(disk.total / (1024**3), 2),
                "free_gb": round(disk.free / (1024**3), 2),
                "percent_used": round((disk.used / disk.total) * 100, 2)
            }
        }


@router.get("", summary="Basic health check")
async def health_check():
    """Liveness probe."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "version": settings.app_version
    }


@router.get("/database", summary="Database health check")
async def database_health_check(db: AsyncSession = Depends(get_async_db)):
    result = await HealthChecker(db).check_database()
    if result["status"] != "healthy":
        return JSONResponse(status_code=503, content=result)
    return result


@router.get("/system", summary="System resource check")
async def system_health_check():
    result = HealthChecker.check_system_resources()
    if result["cpu_percent"] > 90 or result["memory"]["percent_used"] > 90 or result["disk"]["percent_used"] > 90:
        result["status"] = "degraded"
    logger.info("System health check performed", status=result["status"])
    return result
