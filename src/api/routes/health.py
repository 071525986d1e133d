from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from src.models.engine import get_db

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Liveness and database check

    Returns:
        {status, timestamp, environment, services}; 503 when the database is unreachable
    """
    services_status = {}

    try:
        await db.execute(text("SELECT 1"))
        services_status["database"] = {"status": "ok"}
    except SQLAlchemyError as e:
        services_status["database"] = {"status": "error", "message": str(e)}

    services_status["storage"] = {
        "status": "ok",
        "backend": config.settings.storage_backend,
    }

    healthy = all(service["status"] == "ok" for service in services_status.values())
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.settings.environment,
        "services": services_status,
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
