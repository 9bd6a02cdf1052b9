"""Purchase order router: CRUD and status transitions."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_roles
from ..core.exceptions import InternalServerError, NotFoundError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES, STAFF_ROLES
from ..models.purchase_order import PurchaseOrder, PurchaseOrderStatus
from ..schemas.common import Pagination
from ..schemas.supplier import PurchaseOrderCreate, PurchaseOrderOut, PurchaseOrderUpdate, TransitionRequest
from ..services.purchase_order_service import PurchaseOrderService, order_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])

DB_DEPENDENCY = Depends(get_db)
STAFF_DEPENDENCY = Depends(require_roles(*STAFF_ROLES))
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))

TRANSITION_MESSAGES = {
    "submit": "Orden enviada a aprobación",
    "approve": "Orden aprobada exitosamente",
    "order": "Orden enviada al proveedor",
    "receive": "Orden recibida exitosamente",
    "cancel": "Orden cancelada exitosamente",
}


def purchase_order_out(order: PurchaseOrder) -> PurchaseOrderOut:
    return PurchaseOrderOut.model_validate(order_view(order))


@router.get("")
async def list_purchase_orders(
    status: Optional[PurchaseOrderStatus] = Query(None),
    supplier_id: Optional[UUID] = Query(None, alias="supplierId"),
    overdue: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    orders, total = await PurchaseOrderService(db).list_orders(
        status=status, supplier_id=supplier_id, overdue=overdue, page=page, limit=limit
    )
    return success_response(
        [purchase_order_out(order) for order in orders],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", status_code=201)
async def create_purchase_order(
    request: PurchaseOrderCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Create a purchase order as a draft or pending approval.

    Totals are computed from the items; a client-sent subtotal must agree with them.
    """
    try:
        order = await PurchaseOrderService(db).create_order(request, created_by=user["user_id"])
        return success_response(
            purchase_order_out(order), status_code=201, message="Orden de compra creada exitosamente"
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in purchase order creation",
            extra={"supplier_id": str(request.supplier_id), "items": len(request.items), "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/{order_id}")
async def get_purchase_order(
    order_id: UUID,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    order = await PurchaseOrderService(db).get_order_or_raise(order_id)
    return success_response(purchase_order_out(order))


@router.put("/{order_id}")
async def update_purchase_order(
    order_id: UUID,
    request: PurchaseOrderUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    order = await PurchaseOrderService(db).update_order(order_id, request, updated_by=user["user_id"])
    return success_response(purchase_order_out(order), message="Orden de compra actualizada exitosamente")


@router.delete("/{order_id}")
async def delete_purchase_order(
    order_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await PurchaseOrderService(db).delete_order(order_id)
    return success_response(message="Orden de compra eliminada exitosamente")


@router.post("/{order_id}/{action}")
async def transition_purchase_order(
    order_id: UUID,
    action: str,
    request: Optional[TransitionRequest] = None,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Move an order through submit, approve, order, receive or cancel."""
    service = PurchaseOrderService(db)
    handlers = {
        "submit": service.submit,
        "approve": service.approve,
        "order": service.place,
        "receive": service.receive,
        "cancel": service.cancel,
    }
    handler = handlers.get(action)
    if handler is None:
        raise NotFoundError(resource_type="route", resource_id=action, detail="Acción no encontrada")

    try:
        order = await handler(order_id, user["user_id"], request or TransitionRequest())
        return success_response(purchase_order_out(order), message=TRANSITION_MESSAGES[action])

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in purchase order transition",
            extra={"order_id": str(order_id), "action": action, "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e
