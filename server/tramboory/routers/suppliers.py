"""Supplier router: supplier records, penalties and the supplier portal."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES, STAFF_ROLES, SUPPLIER_PORTAL_ROLES
from ..models.purchase_order import PurchaseOrderStatus
from ..models.supplier import PenaltyStatus
from ..schemas.common import Pagination
from ..schemas.supplier import (
    PenaltyCreate,
    PenaltyOut,
    PenaltyUpdate,
    PurchaseOrderOut,
    RatingUpdate,
    SupplierCreate,
    SupplierLinkRequest,
    SupplierOrderStatusRequest,
    SupplierOut,
    SupplierUpdate,
)
from ..services.purchase_order_service import order_view
from ..services.supplier_service import (
    PenaltyService,
    SupplierPortalService,
    SupplierService,
    penalty_concept_catalogue,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/suppliers", tags=["suppliers"])

DB_DEPENDENCY = Depends(get_db)
STAFF_DEPENDENCY = Depends(require_roles(*STAFF_ROLES))
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))
PORTAL_DEPENDENCY = Depends(require_roles(*SUPPLIER_PORTAL_ROLES))


@router.get("")
async def list_suppliers(
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    suppliers, total = await SupplierService(db).list_suppliers(
        search=search, is_active=is_active, page=page, limit=limit
    )
    return success_response(
        [SupplierOut.model_validate(supplier) for supplier in suppliers],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", status_code=201)
async def create_supplier(
    request: SupplierCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        supplier = await SupplierService(db).create_supplier(request, created_by=user["user_id"])
        return success_response(SupplierOut.model_validate(supplier), status_code=201, message="Proveedor creado exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in supplier creation",
            extra={"code": request.code, "user_id": user["user_id"], "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


# Penalties; declared before the /{supplier_id} routes


@router.get("/penalties/concepts")
async def list_penalty_concepts(user: dict = STAFF_DEPENDENCY) -> JSONResponse:
    return success_response(penalty_concept_catalogue())


@router.get("/penalties")
async def list_penalties(
    supplier_id: Optional[UUID] = Query(None, alias="supplierId"),
    status: Optional[PenaltyStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    penalties, total = await PenaltyService(db).list_penalties(
        supplier_id=supplier_id, status=status, page=page, limit=limit
    )
    return success_response(
        [PenaltyOut.model_validate(penalty) for penalty in penalties],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("/penalties", status_code=201)
async def create_penalty(
    request: PenaltyCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Apply a penalty to a supplier.

    Points and severity default to the concept's catalogue values and are
    subtracted from the supplier's penalty score.
    """
    try:
        penalty = await PenaltyService(db).create_penalty(request, applied_by=user["user_id"])
        return success_response(
            PenaltyOut.model_validate(penalty), status_code=201, message="Penalización aplicada exitosamente"
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in penalty creation",
            extra={"supplier_id": str(request.supplier_id), "concept": request.concept, "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/penalties/{penalty_id}")
async def get_penalty(
    penalty_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    penalty = await PenaltyService(db).get_penalty_or_raise(penalty_id)
    return success_response(PenaltyOut.model_validate(penalty))


@router.put("/penalties/{penalty_id}")
async def update_penalty(
    penalty_id: UUID,
    request: PenaltyUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Only status, notes and expiry may change."""
    penalty = await PenaltyService(db).update_penalty(penalty_id, request, updated_by=user["user_id"])
    return success_response(PenaltyOut.model_validate(penalty), message="Penalización actualizada exitosamente")


@router.delete("/penalties/{penalty_id}")
async def reverse_penalty(
    penalty_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    penalty = await PenaltyService(db).reverse_penalty(penalty_id, user["user_id"])
    return success_response(PenaltyOut.model_validate(penalty), message="Penalización revertida exitosamente")


@router.get("/{supplier_id}")
async def get_supplier(
    supplier_id: UUID,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    supplier = await SupplierService(db).get_supplier_or_raise(supplier_id)
    return success_response(SupplierOut.model_validate(supplier))


@router.put("/{supplier_id}")
async def update_supplier(
    supplier_id: UUID,
    request: SupplierUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    supplier = await SupplierService(db).update_supplier(supplier_id, request)
    return success_response(SupplierOut.model_validate(supplier), message="Proveedor actualizado exitosamente")


@router.delete("/{supplier_id}")
async def deactivate_supplier(
    supplier_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    supplier = await SupplierService(db).deactivate_supplier(supplier_id)
    return success_response(SupplierOut.model_validate(supplier), message="Proveedor desactivado exitosamente")


@router.post("/{supplier_id}/rating")
async def rate_supplier(
    supplier_id: UUID,
    request: RatingUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    supplier = await SupplierService(db).rate_supplier(supplier_id, request)
    return success_response(SupplierOut.model_validate(supplier), message="Calificación actualizada exitosamente")


@router.post("/{supplier_id}/link")
async def link_supplier_user(
    supplier_id: UUID,
    request: SupplierLinkRequest,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Link the supplier to a portal user, or unlink it with a null ``userId``."""
    supplier = await SupplierService(db).link_user(supplier_id, request.user_id)
    message = "Proveedor vinculado exitosamente" if request.user_id else "Proveedor desvinculado exitosamente"
    return success_response(SupplierOut.model_validate(supplier), message=message)


# Supplier portal

portal_router = APIRouter(prefix="/api/supplier", tags=["supplier-portal"])


@portal_router.get("/profile")
async def get_portal_profile(
    supplier_id: Optional[UUID] = Query(None, alias="supplierId"),
    user: dict = PORTAL_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    supplier = await SupplierPortalService(db).resolve_supplier(user, supplier_id)
    return success_response(SupplierOut.model_validate(supplier))


@portal_router.get("/orders")
async def list_portal_orders(
    supplier_id: Optional[UUID] = Query(None, alias="supplierId"),
    status: Optional[PurchaseOrderStatus] = Query(None),
    user: dict = PORTAL_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    portal = SupplierPortalService(db)
    supplier = await portal.resolve_supplier(user, supplier_id)
    orders = await portal.list_orders(supplier, status)
    return success_response([PurchaseOrderOut.model_validate(order_view(order)) for order in orders])


@portal_router.patch("/orders/{order_id}/status")
async def update_portal_order_status(
    order_id: UUID,
    request: SupplierOrderStatusRequest,
    user: dict = PORTAL_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Record a status reported by the supplier on one of its orders."""
    try:
        order = await SupplierPortalService(db).update_order_status(user, order_id, request)
        return success_response(
            PurchaseOrderOut.model_validate(order_view(order)), message="Estado de la orden actualizado"
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in supplier order status update",
            extra={"order_id": str(order_id), "user_id": user["user_id"], "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e
