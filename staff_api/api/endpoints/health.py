from __future__ import annotations

from fastapi import APIRouter, Depends

from staff_api.core.config import settings
from staff_api.core.dependencies import get_employee_service
from staff_api.services.employee_service import EmployeeService

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(service: EmployeeService = Depends(get_employee_service)):  # noqa: B008
    services: dict[str, str] = {}

    if service.initialized:
        ok = await service.check_connection()
        services["mongodb"] = "ok" if ok else "error"
    else:
        services["mongodb"] = "not_configured"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
