"""Purchase order service: order lifecycle from draft to reception."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import business_today, utcnow
from ..core.exceptions import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from ..core.identifiers import new_business_id
from ..models.purchase_order import PurchaseOrder, PurchaseOrderStatus
from ..schemas.supplier import PurchaseOrderCreate, PurchaseOrderItem, PurchaseOrderUpdate, TransitionRequest
from .inventory_service import InventoryService
from .supplier_service import SupplierService

logger = logging.getLogger(__name__)

SUBTOTAL_TOLERANCE = 0.01

EDITABLE_STATUSES = (PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.PENDING)
CLOSED_STATUSES = (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED)


def _item_rows(items: list[PurchaseOrderItem]) -> list[dict]:
    return [
        {
            "productId": item.product_id,
            "productName": item.product_name,
            "quantity": item.quantity,
            "unit": item.unit,
            "unitPrice": item.unit_price,
            "totalPrice": round(item.quantity * item.unit_price, 2),
            "notes": item.notes,
        }
        for item in items
    ]


def order_view(order: PurchaseOrder, today: Optional[date] = None) -> dict:
    """Column values plus the delivery flags computed for ``today``."""
    today = today or business_today()
    view = {column.key: getattr(order, column.key) for column in PurchaseOrder.__table__.columns}
    view["is_overdue"] = order.is_overdue(today)
    view["days_until_delivery"] = order.days_until_delivery(today)
    view["delivery_status"] = order.delivery_status(today)
    return view


class PurchaseOrderService:
    """Purchase orders and their status transitions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.suppliers = SupplierService(db)
        self.inventory = InventoryService(db)

    async def get_order_or_raise(self, order_id: UUID) -> PurchaseOrder:
        order = await self.db.get(PurchaseOrder, order_id)
        if order is None:
            raise NotFoundError(
                resource_type="purchase_order",
                resource_id=str(order_id),
                detail="Orden de compra no encontrada",
            )
        return order

    async def _check_items(self, items: list[PurchaseOrderItem], subtotal: Optional[float]) -> list[dict]:
        for item in items:
            if await self.inventory.get_product(item.product_id) is None:
                raise NotFoundError(
                    resource_type="product",
                    resource_id=item.product_id,
                    detail="Uno o más productos no fueron encontrados",
                )
        rows = _item_rows(items)
        if subtotal is not None:
            calculated = round(sum(row["totalPrice"] for row in rows), 2)
            if abs(subtotal - calculated) > SUBTOTAL_TOLERANCE:
                raise ValidationError(
                    detail="El subtotal no coincide con la suma de los items",
                    errors={"subtotal": subtotal, "calculated": calculated},
                )
        return rows

    async def create_order(self, request: PurchaseOrderCreate, created_by: str) -> PurchaseOrder:
        """
        Create a purchase order in DRAFT or PENDING.

        Args:
            request: Order details; payment terms default to the supplier's
            created_by: User creating the order

        Returns:
            Created purchase order with totals computed from its items

        Raises:
            NotFoundError: If the supplier or a product does not exist
            ValidationError: If a client-sent subtotal does not match the items
        """
        supplier = await self.suppliers.get_supplier_or_raise(request.supplier_id)
        rows = await self._check_items(request.items, request.subtotal)

        terms = request.payment_terms
        order = PurchaseOrder(
            purchase_order_id=new_business_id("PO"),
            supplier_id=supplier.id,
            supplier_name=supplier.name,
            status=request.status,
            items=rows,
            tax_rate=request.tax_rate,
            currency="MXN",
            expected_delivery_date=request.expected_delivery_date,
            delivery_location=request.delivery_location,
            payment_method=terms.method if terms else supplier.payment_method,
            credit_days=terms.credit_days if terms else supplier.credit_days,
            notes=request.notes,
            created_by=created_by,
            created_at=utcnow(),
            status_history=[],
        )
        order.recalculate_totals()
        order.record_status(request.status, created_by, "Orden creada")

        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)
        logger.info(
            "Purchase order created",
            extra={
                "purchase_order_id": order.purchase_order_id,
                "supplier_id": supplier.supplier_id,
                "status": order.status,
                "total": order.total,
                "created_by": created_by,
            },
        )
        return order

    async def list_orders(
        self,
        status: Optional[PurchaseOrderStatus] = None,
        supplier_id: Optional[UUID] = None,
        overdue: bool = False,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[PurchaseOrder], int]:
        conditions = []
        if status:
            conditions.append(PurchaseOrder.status == status)
        if supplier_id:
            conditions.append(PurchaseOrder.supplier_id == supplier_id)
        if overdue:
            conditions.append(PurchaseOrder.expected_delivery_date < business_today())
            conditions.append(PurchaseOrder.status.not_in([s.value for s in CLOSED_STATUSES]))

        total = await self.db.scalar(select(func.count(PurchaseOrder.id)).where(*conditions))
        stmt = (
            select(PurchaseOrder)
            .where(*conditions)
            .order_by(PurchaseOrder.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def update_order(self, order_id: UUID, request: PurchaseOrderUpdate, updated_by: str) -> PurchaseOrder:
        order = await self.get_order_or_raise(order_id)
        if order.status not in EDITABLE_STATUSES:
            raise ConflictError(
                detail="Esta orden no puede ser modificada en su estado actual",
                conflicting_resource={"status": order.status},
            )

        changes = request.model_dump(exclude_unset=True)
        if request.items is not None:
            order.items = await self._check_items(request.items, None)
        if request.payment_terms is not None:
            order.payment_method = request.payment_terms.method
            order.credit_days = request.payment_terms.credit_days
        for key in ("tax_rate", "expected_delivery_date", "delivery_location", "notes"):
            if key in changes and changes[key] is not None:
                setattr(order, key, changes[key])
        order.recalculate_totals()

        await self.db.commit()
        await self.db.refresh(order)
        logger.info(
            "Purchase order updated",
            extra={"purchase_order_id": order.purchase_order_id, "fields": sorted(changes), "updated_by": updated_by},
        )
        return order

    async def delete_order(self, order_id: UUID) -> None:
        order = await self.get_order_or_raise(order_id)
        if order.status != PurchaseOrderStatus.DRAFT:
            raise ConflictError(
                detail="Solo se pueden eliminar órdenes en estado borrador",
                conflicting_resource={"status": order.status},
            )
        await self.db.delete(order)
        await self.db.commit()
        logger.info("Purchase order deleted", extra={"purchase_order_id": order.purchase_order_id})

    async def _transition(
        self, order: PurchaseOrder, target: PurchaseOrderStatus, allowed: bool, message: str, user_id: str, note: Optional[str]
    ) -> PurchaseOrder:
        if not allowed:
            logger.warning(
                "Purchase order transition refused",
                extra={"purchase_order_id": order.purchase_order_id, "from": order.status, "to": target.value},
            )
            raise InvalidTransitionError(current_status=str(order.status), target_status=target.value, detail=message)

        order.record_status(target, user_id, note)
        await self.db.commit()
        await self.db.refresh(order)
        logger.info(
            "Purchase order status changed",
            extra={"purchase_order_id": order.purchase_order_id, "status": target.value, "user_id": user_id},
        )
        return order

    async def submit(self, order_id: UUID, user_id: str, request: TransitionRequest) -> PurchaseOrder:
        order = await self.get_order_or_raise(order_id)
        return await self._transition(
            order,
            PurchaseOrderStatus.PENDING,
            order.status == PurchaseOrderStatus.DRAFT,
            "Solo las órdenes en borrador pueden enviarse a aprobación",
            user_id,
            request.note,
        )

    async def approve(self, order_id: UUID, user_id: str, request: TransitionRequest) -> PurchaseOrder:
        order = await self.get_order_or_raise(order_id)
        allowed = order.can_be_approved()
        if allowed:
            order.approved_by = user_id
            order.approved_at = utcnow()
        return await self._transition(
            order,
            PurchaseOrderStatus.APPROVED,
            allowed,
            "Esta orden no puede ser aprobada en su estado actual",
            user_id,
            request.note,
        )

    async def place(self, order_id: UUID, user_id: str, request: TransitionRequest) -> PurchaseOrder:
        order = await self.get_order_or_raise(order_id)
        allowed = order.can_be_ordered()
        if allowed:
            order.ordered_by = user_id
            order.ordered_at = utcnow()
            # credit is counted from the day the order is placed
            order.recalculate_totals()
        return await self._transition(
            order,
            PurchaseOrderStatus.ORDERED,
            allowed,
            "Esta orden no puede ser enviada en su estado actual",
            user_id,
            request.note,
        )

    async def receive(self, order_id: UUID, user_id: str, request: TransitionRequest) -> PurchaseOrder:
        order = await self.get_order_or_raise(order_id)
        allowed = order.can_be_received()
        if allowed:
            order.received_by = user_id
            order.received_at = utcnow()
            order.actual_delivery_date = request.actual_delivery_date or business_today()
        return await self._transition(
            order,
            PurchaseOrderStatus.RECEIVED,
            allowed,
            "Esta orden no puede ser recibida en su estado actual",
            user_id,
            request.note,
        )

    async def cancel(self, order_id: UUID, user_id: str, request: TransitionRequest) -> PurchaseOrder:
        order = await self.get_order_or_raise(order_id)
        allowed = order.can_be_cancelled()
        if allowed:
            if not request.reason:
                raise ValidationError(detail="Se requiere una razón para cancelar la orden")
            order.cancelled_by = user_id
            order.cancelled_at = utcnow()
            order.cancellation_reason = request.reason
        return await self._transition(
            order,
            PurchaseOrderStatus.CANCELLED,
            allowed,
            "Esta orden no puede ser cancelada en su estado actual",
            user_id,
            request.note or request.reason,
        )
