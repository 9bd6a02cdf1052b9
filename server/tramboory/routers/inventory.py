"""Inventory router: products, stock operations, movements, alerts and reports."""

import logging
from datetime import datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES, STAFF_ROLES
from ..models.inventory import AlertPriority, AlertType, Inventory, MovementType
from ..schemas.common import Pagination
from ..schemas.inventory import (
    AlertOut,
    InventoryOut,
    MovementOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    ResolveAlertRequest,
    StockAdjustRequest,
    StockConsumeRequest,
    StockInitiateRequest,
    StockReleaseRequest,
    StockReserveRequest,
    StockTransferRequest,
)
from ..services.availability import parse_date
from ..services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

DB_DEPENDENCY = Depends(get_db)
STAFF_DEPENDENCY = Depends(require_roles(*STAFF_ROLES))
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))


def inventory_out(inventory: Inventory) -> InventoryOut:
    """Inventory with the code and name of its product."""
    return InventoryOut.model_validate(inventory).model_copy(
        update={
            "product_code": inventory.product.product_id if inventory.product else None,
            "product_name": inventory.product.name if inventory.product else None,
        }
    )


def _stock_result(inventory: Inventory, movements: list) -> dict:
    return {
        "inventory": inventory_out(inventory),
        "movements": [MovementOut.model_validate(movement) for movement in movements],
    }


# Products


@router.get("/products")
async def list_products(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    products, total = await InventoryService(db).list_products(
        search=search, category=category, is_active=is_active, page=page, limit=limit
    )
    return success_response(
        [ProductOut.model_validate(product) for product in products],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("/products", status_code=201)
async def create_product(
    request: ProductCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        product = await InventoryService(db).create_product(request, created_by=user["user_id"])
        return success_response(ProductOut.model_validate(product), status_code=201, message="Producto creado exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in product creation",
            extra={"sku": request.sku, "user_id": user["user_id"], "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/products/without-inventory")
async def list_products_without_inventory(
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Active products not yet stocked anywhere, candidates for opening an inventory."""
    products = await InventoryService(db).products_without_inventory()
    return success_response([ProductOut.model_validate(product) for product in products])


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Look a product up by its ``PROD-`` code or its id."""
    product = await InventoryService(db).get_product_or_raise(product_id)
    return success_response(ProductOut.model_validate(product))


@router.put("/products/{product_id}")
async def update_product(
    product_id: str,
    request: ProductUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    product = await InventoryService(db).update_product(product_id, request)
    return success_response(ProductOut.model_validate(product), message="Producto actualizado exitosamente")


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Deactivate a product; refused while it still has stock."""
    product = await InventoryService(db).deactivate_product(product_id)
    return success_response(ProductOut.model_validate(product), message="Producto desactivado exitosamente")


@router.post("/products/{product_id}/reactivate")
async def reactivate_product(
    product_id: str,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    product = await InventoryService(db).reactivate_product(product_id)
    return success_response(ProductOut.model_validate(product), message="Producto reactivado exitosamente")


@router.get("/products/{product_id}/check-deletion")
async def check_product_deletion(
    product_id: str,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    eligibility = await InventoryService(db).check_deletion(product_id)
    return success_response(eligibility)


@router.get("/categories")
async def list_categories(
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    return success_response(await InventoryService(db).list_categories())


# Stock operations


@router.post("/stock/adjust")
async def adjust_stock(
    request: StockAdjustRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Add or remove stock at one location.

    Outflows consume batches first-in first-out; the alert check runs afterwards.
    """
    try:
        inventory, movement = await InventoryService(db).adjust_stock(request, performed_by=user["user_id"])
        logger.info(
            "Stock adjusted via API",
            extra={
                "movement_id": movement.movement_id,
                "product_id": request.product_id,
                "location_id": request.location_id,
                "type": request.type.value,
                "user_id": user["user_id"],
            },
        )
        return success_response(_stock_result(inventory, [movement]), message="Stock ajustado exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in stock adjustment",
            extra={"product_id": request.product_id, "location_id": request.location_id, "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.post("/stock/transfer")
async def transfer_stock(
    request: StockTransferRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        source, target, movements = await InventoryService(db).transfer_stock(request, performed_by=user["user_id"])
        return success_response(
            {
                "from": inventory_out(source),
                "to": inventory_out(target),
                "movements": [MovementOut.model_validate(movement) for movement in movements],
            },
            message="Transferencia realizada exitosamente",
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in stock transfer",
            extra={
                "product_id": request.product_id,
                "from_location_id": request.from_location_id,
                "to_location_id": request.to_location_id,
                "error": str(e),
            },
            exc_info=True,
        )
        raise InternalServerError() from e


@router.post("/stock/initiate", status_code=201)
async def initiate_stock(
    request: StockInitiateRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Open the inventory of a product at a location, optionally with its first batch."""
    inventory, movements = await InventoryService(db).initiate_stock(request, performed_by=user["user_id"])
    return success_response(
        _stock_result(inventory, movements), status_code=201, message="Inventario iniciado exitosamente"
    )


@router.post("/stock/reserve")
async def reserve_stock(
    request: StockReserveRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inventory, movement = await InventoryService(db).reserve_stock(request, performed_by=user["user_id"])
    return success_response(_stock_result(inventory, [movement]), message="Stock reservado exitosamente")


@router.post("/stock/release")
async def release_stock(
    request: StockReleaseRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inventory, movement = await InventoryService(db).release_stock(request, performed_by=user["user_id"])
    return success_response(_stock_result(inventory, [movement]), message="Reserva liberada exitosamente")


@router.post("/stock/consume")
async def consume_stock(
    request: StockConsumeRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inventory, movement = await InventoryService(db).consume_stock(request, performed_by=user["user_id"])
    return success_response(_stock_result(inventory, [movement]), message="Consumo registrado exitosamente")


@router.get("/stock")
async def list_stock(
    product_id: Optional[str] = Query(None, alias="productId"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    low_stock: bool = Query(False, alias="lowStock"),
    expiring_soon: bool = Query(False, alias="expiringSoon"),
    expiry_days: int = Query(7, alias="expiryDays", ge=1, le=365),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    inventories, total = await InventoryService(db).list_stock(
        product_id=product_id,
        location_id=location_id,
        low_stock=low_stock,
        expiring_soon=expiring_soon,
        expiry_days=expiry_days,
        page=page,
        limit=limit,
    )
    return success_response(
        [inventory_out(inventory) for inventory in inventories],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/movements")
async def list_movements(
    product_id: Optional[str] = Query(None, alias="productId"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    movement_type: Optional[MovementType] = Query(None, alias="type"),
    performed_by: Optional[str] = Query(None, alias="performedBy"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    start = datetime.combine(parse_date(start_date, "startDate"), time.min) if start_date else None
    end = datetime.combine(parse_date(end_date, "endDate"), time.max) if end_date else None
    movements, total = await InventoryService(db).list_movements(
        product_id=product_id,
        location_id=location_id,
        movement_type=movement_type,
        performed_by=performed_by,
        start_date=start,
        end_date=end,
        page=page,
        limit=limit,
    )
    return success_response(
        [MovementOut.model_validate(movement) for movement in movements],
        pagination=Pagination.build(page, limit, total),
    )


# Alerts


@router.get("/alerts")
async def list_alerts(
    is_active: Optional[bool] = Query(True, alias="isActive"),
    alert_type: Optional[AlertType] = Query(None, alias="type"),
    priority: Optional[AlertPriority] = Query(None),
    product_id: Optional[str] = Query(None, alias="productId"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Alerts ordered by priority, newest first within each priority."""
    alerts = await InventoryService(db).list_alerts(
        is_active=is_active,
        alert_type=alert_type,
        priority=priority,
        product_id=product_id,
        location_id=location_id,
    )
    return success_response([AlertOut.model_validate(alert) for alert in alerts], count=len(alerts))


@router.post("/alerts/check")
async def check_alerts(
    product_id: Optional[str] = Query(None, alias="productId"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    created = await InventoryService(db).check_alerts(product_id=product_id, location_id=location_id)
    return success_response(
        [AlertOut.model_validate(alert) for alert in created],
        message=f"{len(created)} alertas nuevas generadas",
    )


@router.patch("/alerts/{alert_id}/resolve")
async def resolve_alert(
    alert_id: str,
    request: Optional[ResolveAlertRequest] = None,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    resolution = request.resolution if request else None
    alert = await InventoryService(db).resolve_alert(alert_id, resolved_by=user["user_id"], resolution=resolution)
    return success_response(AlertOut.model_validate(alert), message="Alerta resuelta exitosamente")


@router.get("/summary")
async def get_summary(
    location_id: Optional[str] = Query(None, alias="locationId"),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Stock valuation per location, product and category with health counters."""
    summary = await InventoryService(db).summary(location_id=location_id)
    return success_response(summary)


@router.get("/reports")
async def get_report(
    report_type: str = Query("summary", alias="type"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Inventory report: ``summary``, ``movements``, ``valuation``, ``alerts`` or ``categories``."""
    report = await InventoryService(db).report(report_type, location_id=location_id)
    if "alerts" in report:
        report["alerts"] = [AlertOut.model_validate(alert) for alert in report["alerts"]]
    return success_response(report)
