"""Access router: role catalogue and page access checks."""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import OptionalUser
from ..core.responses import success_response
from ..core.roles import DEFAULT_ROLE, ROLE_HIERARCHY, ROLES, resolve_page_access

router = APIRouter(prefix="/api/access", tags=["access"])


@router.get("/check")
async def check_access(
    path: str = Query("/"),
    user: Optional[dict] = OptionalUser,
) -> JSONResponse:
    """
    Tell the front end whether the caller may open ``path``.

    Anonymous callers are checked as customers.
    """
    role = user["role"] if user else DEFAULT_ROLE
    redirect_to = resolve_page_access(path, role)
    return success_response(
        {
            "role": role.value,
            "path": path,
            "allowed": redirect_to is None,
            "redirectTo": redirect_to,
        }
    )


@router.get("/roles")
async def list_roles() -> JSONResponse:
    return success_response(
        [{"role": role.value, **ROLES[role]} for role in ROLE_HIERARCHY]
    )
