"""System configuration router."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES, UserRole
from ..schemas.system_config import PublicConfig, SystemConfigOut, SystemConfigUpdate
from ..services.config_service import SystemConfigService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system-config"])

DB_DEPENDENCY = Depends(get_db)
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))
ADMIN_DEPENDENCY = Depends(require_roles(UserRole.ADMIN))


@router.get("/api/system-config")
async def get_system_config(
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Active configuration; the default one is created on first access."""
    config = await SystemConfigService(db).get_active_config()
    return success_response(SystemConfigOut.model_validate(config))


@router.put("/api/system-config")
async def update_system_config(
    request: SystemConfigUpdate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        config = await SystemConfigService(db).update_config(request)
        logger.info("System configuration updated via API", extra={"updated_by": user["user_id"]})
        return success_response(SystemConfigOut.model_validate(config), message="Configuración actualizada exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in configuration update",
            extra={"user_id": user["user_id"], "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/api/public/config")
async def get_public_config(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Booking window, time blocks and rest days for the public booking form."""
    config = await SystemConfigService(db).public_config()
    return success_response(PublicConfig.model_validate(config))
