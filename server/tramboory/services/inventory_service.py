"""Inventory service: products, stock per location, movements and alerts."""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import business_today, utcnow
from ..core.config import settings
from ..core.exceptions import ConflictError, InsufficientStockError, NotFoundError, ValidationError
from ..core.identifiers import new_batch_id, new_business_id
from ..core.observability import metrics_collector
from ..models.inventory import (
    ALERT_PRIORITY_RANK,
    PRODUCT_CATEGORIES,
    AlertPriority,
    AlertType,
    BatchStatus,
    Inventory,
    InventoryAlert,
    InventoryBatch,
    InventoryMovement,
    MovementType,
    Product,
    ProductStatus,
)
from ..models.supplier import Supplier
from ..schemas.inventory import (
    ProductCreate,
    ProductUpdate,
    StockAdjustRequest,
    StockConsumeRequest,
    StockInitiateRequest,
    StockReleaseRequest,
    StockReserveRequest,
    StockTransferRequest,
)
from .unit_converter import to_base_unit

logger = logging.getLogger(__name__)

REPORT_TYPES = ("summary", "movements", "valuation", "alerts", "categories")


def _product_columns(data: dict) -> dict:
    levels = data.pop("stock_levels", None)
    if levels:
        data["min_stock"] = levels["minimum"]
        data["reorder_point"] = levels["reorder_point"]
        data["max_stock"] = levels["maximum"]
    if data.get("alternative_units") is not None:
        data["alternative_units"] = [
            {"code": unit["code"], "name": unit["name"], "conversionFactor": unit["conversion_factor"]}
            for unit in data["alternative_units"]
        ]
    return data


def _fmt(value: float) -> str:
    return f"{value:g}"


def _stock_value(inventory: Inventory) -> float:
    """Cost of the unexpired stock held, reserved share included."""
    return sum(
        (batch.quantity + batch.reserved_quantity) * batch.cost_per_unit
        for batch in inventory.batches
        if batch.status != BatchStatus.EXPIRED
    )


class InventoryService:
    """Stock bookkeeping with FIFO batches and alert evaluation."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Products

    async def list_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Product], int]:
        conditions = []
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(Product.name.ilike(pattern), Product.sku.ilike(pattern), Product.product_id.ilike(pattern))
            )
        if category:
            conditions.append(Product.category == category)
        if is_active is not None:
            conditions.append(Product.is_active.is_(is_active))

        total = await self.db.scalar(select(func.count(Product.id)).where(*conditions))
        stmt = (
            select(Product)
            .where(*conditions)
            .order_by(Product.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def get_product(self, product_ref: str | UUID) -> Optional[Product]:
        """Look a product up by its ``PROD-…`` code or its UUID."""
        if isinstance(product_ref, UUID):
            return await self.db.get(Product, product_ref)
        result = await self.db.execute(select(Product).where(Product.product_id == product_ref))
        product = result.scalar_one_or_none()
        if product is None:
            try:
                product = await self.db.get(Product, UUID(product_ref))
            except ValueError:
                return None
        return product

    async def get_product_or_raise(self, product_ref: str | UUID) -> Product:
        product = await self.get_product(product_ref)
        if product is None:
            raise NotFoundError(resource_type="product", resource_id=str(product_ref), detail="Producto no encontrado")
        return product

    async def _check_supplier(self, supplier_id: Optional[UUID]) -> None:
        if supplier_id and await self.db.get(Supplier, supplier_id) is None:
            raise NotFoundError(resource_type="supplier", resource_id=str(supplier_id), detail="Proveedor no encontrado")

    async def create_product(self, request: ProductCreate, created_by: Optional[str]) -> Product:
        """
        Create a product with a generated ``PROD-…`` code.

        Raises:
            NotFoundError: If the supplier does not exist
            ConflictError: If the SKU is already used
        """
        await self._check_supplier(request.supplier_id)
        existing = await self.db.execute(select(Product.id).where(Product.sku == request.sku))
        if existing.scalar_one_or_none():
            raise ConflictError(detail="Ya existe un producto con este SKU", conflicting_resource={"sku": request.sku})

        product = Product(
            product_id=new_business_id("PROD"),
            created_by=created_by,
            status=ProductStatus.ACTIVE,
            is_active=True,
            **_product_columns(request.model_dump()),
        )
        try:
            self.db.add(product)
            await self.db.commit()
            await self.db.refresh(product)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error("Product creation failed", extra={"sku": request.sku, "error": str(e)})
            raise ConflictError(detail="Ya existe un producto con este SKU")

        logger.info("Product created", extra={"product_id": product.product_id, "sku": product.sku})
        return product

    async def update_product(self, product_ref: str, request: ProductUpdate) -> Product:
        product = await self.get_product_or_raise(product_ref)
        data = _product_columns(request.model_dump(exclude_unset=True))
        data = {key: value for key, value in data.items() if value is not None}
        if "supplier_id" in data:
            await self._check_supplier(data["supplier_id"])
        if "status" in data:
            data["is_active"] = data["status"] == ProductStatus.ACTIVE

        for key, value in data.items():
            setattr(product, key, value)
        await self.db.commit()
        await self.db.refresh(product)
        logger.info("Product updated", extra={"product_id": product.product_id, "fields": sorted(data)})
        return product

    async def _stock_on_hand(self, product: Product) -> float:
        total = await self.db.scalar(
            select(func.coalesce(func.sum(Inventory.available + Inventory.reserved + Inventory.quarantine), 0))
            .where(Inventory.product_id == product.id)
        )
        return float(total or 0)

    async def deactivate_product(self, product_ref: str) -> Product:
        """
        Deactivate a product that no longer holds stock.

        Raises:
            ConflictError: If any location still holds stock of the product
        """
        product = await self.get_product_or_raise(product_ref)
        on_hand = await self._stock_on_hand(product)
        if on_hand > 0:
            raise ConflictError(
                detail="No se puede eliminar un producto con stock disponible",
                conflicting_resource={"productId": product.product_id, "stock": on_hand},
            )
        product.is_active = False
        product.status = ProductStatus.INACTIVE
        await self.db.commit()
        await self.db.refresh(product)
        logger.info("Product deactivated", extra={"product_id": product.product_id})
        return product

    async def reactivate_product(self, product_ref: str) -> Product:
        product = await self.get_product_or_raise(product_ref)
        product.is_active = True
        product.status = ProductStatus.ACTIVE
        await self.db.commit()
        await self.db.refresh(product)
        logger.info("Product reactivated", extra={"product_id": product.product_id})
        return product

    async def list_categories(self) -> dict:
        """Default categories merged with those already used by products."""
        result = await self.db.execute(select(Product.category).distinct())
        in_use = sorted({category for category in result.scalars().all() if category})
        known = {category.casefold() for category in PRODUCT_CATEGORIES}
        categories = sorted(
            set(PRODUCT_CATEGORIES) | {category for category in in_use if category.casefold() not in known},
            key=str.casefold,
        )
        return {
            "categories": categories,
            "source": "merged" if in_use else "default",
            "dbCount": len(in_use),
            "totalCount": len(categories),
        }

    async def products_without_inventory(self) -> list[Product]:
        """Active products that have never been stocked at any location."""
        stmt = (
            select(Product)
            .where(Product.is_active.is_(True), ~exists().where(Inventory.product_id == Product.id))
            .order_by(Product.name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def check_deletion(self, product_ref: str) -> dict:
        """
        Report what still references a product.

        A product with no inventory records and no movement history can be
        deleted outright; any product without stock on hand can be deactivated.
        """
        product = await self.get_product_or_raise(product_ref)
        inventories = await self.db.scalar(select(func.count(Inventory.id)).where(Inventory.product_id == product.id))
        movements = await self.db.scalar(
            select(func.count(InventoryMovement.id)).where(InventoryMovement.product_id == product.id)
        )
        on_hand = await self._stock_on_hand(product)

        blockers, warnings, recommendations = [], [], []
        if inventories:
            blockers.append(f"Producto tiene registros de inventario activos ({inventories})")
        if movements:
            blockers.append(f"Producto tiene historial de movimientos ({movements})")
            warnings.append("El producto tiene historial de movimientos. Su eliminación afectaría la trazabilidad.")
            recommendations.append("Considerar desactivar en lugar de eliminar")
        if on_hand > 0:
            warnings.append("El producto tiene existencias actuales. Debe ajustar inventario a cero antes de eliminar.")
            recommendations.append("Realizar ajuste de inventario para poner existencias en cero")
        if not blockers:
            recommendations.append("El producto puede eliminarse físicamente sin afectar datos históricos")

        can_delete = not blockers
        can_deactivate = on_hand <= 0
        lines = [
            f"Producto: {product.product_id} ({product.name})",
            f"Puede eliminarse físicamente: {'SÍ' if can_delete else 'NO'}",
            f"Puede desactivarse: {'SÍ' if can_deactivate else 'NO'}",
        ]
        lines += [f"Dependencia: {blocker}" for blocker in blockers]
        lines += [f"Advertencia: {warning}" for warning in warnings]
        lines += [f"Recomendación: {recommendation}" for recommendation in recommendations]

        return {
            "productId": product.product_id,
            "canDelete": can_delete,
            "canDeactivate": can_deactivate,
            "blockers": blockers,
            "dependencies": {"inventories": inventories or 0, "movements": movements or 0, "stockOnHand": on_hand},
            "warnings": warnings,
            "recommendations": recommendations,
            "report": "\n".join(lines),
        }

    # Stock

    async def get_inventory(self, product: Product, location_id: str) -> Optional[Inventory]:
        stmt = select(Inventory).where(Inventory.product_id == product.id, Inventory.location_id == location_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_or_create_inventory(self, product: Product, location_id: str, performed_by: str) -> Inventory:
        inventory = await self.get_inventory(product, location_id)
        if inventory is None:
            inventory = Inventory(
                product_id=product.id,
                location_id=location_id,
                unit=product.base_unit,
                available=0,
                reserved=0,
                quarantine=0,
                last_updated_by=performed_by,
                batches=[],
            )
            self.db.add(inventory)
        return inventory

    def _add_batch(
        self,
        inventory: Inventory,
        quantity: float,
        cost_per_unit: float,
        batch_id: Optional[str] = None,
        expiry_date: Optional[date] = None,
    ) -> InventoryBatch:
        batch = InventoryBatch(
            batch_id=batch_id or new_batch_id(),
            quantity=quantity,
            reserved_quantity=0,
            unit=inventory.unit,
            cost_per_unit=cost_per_unit,
            expiry_date=expiry_date,
            received_date=utcnow(),
            status=BatchStatus.AVAILABLE,
        )
        inventory.batches.append(batch)
        return batch

    def _take_fifo(self, inventory: Inventory, quantity: float, reserve: bool = False) -> float:
        """
        Remove ``quantity`` from available batches, oldest first.

        With ``reserve`` the quantity moves into each batch's reserved share instead
        of leaving the inventory. Returns the cost of what was taken.
        """
        remaining = quantity
        cost = 0.0
        for batch in sorted(inventory.batches, key=lambda b: b.received_date):
            if remaining <= 0:
                break
            if batch.status != BatchStatus.AVAILABLE or batch.quantity <= 0:
                continue
            take = min(batch.quantity, remaining)
            batch.quantity = round(batch.quantity - take, 6)
            if reserve:
                batch.reserved_quantity = round(batch.reserved_quantity + take, 6)
            cost += take * batch.cost_per_unit
            remaining = round(remaining - take, 6)

        for batch in list(inventory.batches):
            if batch.quantity <= 0 and batch.reserved_quantity <= 0:
                inventory.batches.remove(batch)
        return cost

    def _return_reserved(self, inventory: Inventory, quantity: float) -> None:
        remaining = quantity
        for batch in sorted(inventory.batches, key=lambda b: b.received_date):
            if remaining <= 0:
                break
            if batch.reserved_quantity <= 0:
                continue
            give = min(batch.reserved_quantity, remaining)
            batch.reserved_quantity = round(batch.reserved_quantity - give, 6)
            batch.quantity = round(batch.quantity + give, 6)
            remaining = round(remaining - give, 6)

    def _record_movement(
        self,
        movement_type: MovementType,
        product: Product,
        quantity: float,
        reason: str,
        performed_by: str,
        from_location: Optional[str] = None,
        to_location: Optional[str] = None,
        batch_id: Optional[str] = None,
        unit_cost: Optional[float] = None,
        notes: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> InventoryMovement:
        movement = InventoryMovement(
            movement_id=new_business_id("MOV"),
            type=movement_type,
            product_id=product.id,
            from_location=from_location,
            to_location=to_location,
            quantity=quantity,
            unit=product.base_unit,
            batch_id=batch_id,
            reason=reason,
            unit_cost=unit_cost,
            total_cost=round(unit_cost * quantity, 2) if unit_cost is not None else None,
            currency="MXN",
            performed_by=performed_by,
            notes=notes,
            extra_data=metadata or {},
        )
        self.db.add(movement)
        metrics_collector.record_stock_movement(movement_type.value)
        return movement

    async def _apply(
        self,
        product: Product,
        location_id: str,
        movement_type: MovementType,
        quantity: float,
        unit: str,
        reason: str,
        performed_by: str,
        batch_id: Optional[str] = None,
        cost_per_unit: Optional[float] = None,
        expiry_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> tuple[Inventory, InventoryMovement]:
        """Apply a signed quantity at one location without committing."""
        base_quantity = to_base_unit(quantity, unit, product)
        if base_quantity == 0:
            raise ValidationError("La cantidad debe ser distinta de cero")
        inventory = await self._get_or_create_inventory(product, location_id, performed_by)

        if base_quantity > 0:
            unit_cost = cost_per_unit if cost_per_unit is not None else product.cost_price
            batch = self._add_batch(inventory, base_quantity, unit_cost, batch_id, expiry_date)
            batch_id = batch.batch_id
            from_location, to_location = None, location_id
            moved = base_quantity
        else:
            moved = abs(base_quantity)
            inventory.mark_expired_batches(business_today())
            if inventory.available < moved:
                logger.warning(
                    "Stock outflow exceeds available quantity",
                    extra={
                        "product_id": product.product_id,
                        "location_id": location_id,
                        "available": inventory.available,
                        "requested": moved,
                    },
                )
                raise InsufficientStockError(
                    requested_quantity=moved,
                    available_quantity=inventory.available,
                    product_id=product.product_id,
                )
            cost = self._take_fifo(inventory, moved)
            unit_cost = cost_per_unit if cost_per_unit is not None else round(cost / moved, 6)
            from_location, to_location = location_id, None

        inventory.recalculate_totals()
        inventory.last_updated_by = performed_by

        movement = self._record_movement(
            movement_type,
            product,
            moved,
            reason,
            performed_by,
            from_location=from_location,
            to_location=to_location,
            batch_id=batch_id,
            unit_cost=unit_cost if unit_cost else None,
            notes=notes,
        )
        return inventory, movement

    async def adjust_stock(self, request: StockAdjustRequest, performed_by: str) -> tuple[Inventory, InventoryMovement]:
        """
        Add or remove stock at a location and record the movement.

        Args:
            request: Adjustment; the movement type decides the sign of the quantity
            performed_by: User making the adjustment

        Returns:
            The updated inventory and the recorded movement

        Raises:
            NotFoundError: If the product does not exist
            UnitConversionError: If the unit cannot be converted to the product's base unit
            InsufficientStockError: If an outflow exceeds the available quantity
        """
        product = await self.get_product_or_raise(request.product_id)
        inventory, movement = await self._apply(
            product,
            request.location_id,
            request.type,
            request.signed_quantity,
            request.unit,
            request.reason,
            performed_by,
            batch_id=request.batch_id,
            cost_per_unit=request.cost_per_unit,
            expiry_date=request.expiry_date,
            notes=request.notes,
        )
        await self.db.flush()
        await self._evaluate_alerts(inventory, product)
        await self.db.commit()
        await self.db.refresh(inventory)

        logger.info(
            "Stock adjusted",
            extra={
                "product_id": product.product_id,
                "location_id": request.location_id,
                "type": request.type.value,
                "quantity": request.signed_quantity,
                "unit": request.unit,
                "available": inventory.available,
                "performed_by": performed_by,
            },
        )
        return inventory, movement

    async def transfer_stock(
        self, request: StockTransferRequest, performed_by: str
    ) -> tuple[Inventory, Inventory, list[InventoryMovement]]:
        """Move stock between locations; both sides commit together or not at all."""
        product = await self.get_product_or_raise(request.product_id)
        try:
            source, outgoing = await self._apply(
                product,
                request.from_location_id,
                MovementType.TRANSFERENCIA,
                -request.quantity,
                request.unit,
                f"Transferencia a {request.to_location_id}",
                performed_by,
                notes=request.notes,
            )
            target, incoming = await self._apply(
                product,
                request.to_location_id,
                MovementType.TRANSFERENCIA,
                request.quantity,
                request.unit,
                f"Transferencia desde {request.from_location_id}",
                performed_by,
                cost_per_unit=outgoing.unit_cost,
                notes=request.notes,
            )
            await self.db.flush()
            await self._evaluate_alerts(source, product)
            await self._evaluate_alerts(target, product)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(source)
        await self.db.refresh(target)
        logger.info(
            "Stock transferred",
            extra={
                "product_id": product.product_id,
                "from_location": request.from_location_id,
                "to_location": request.to_location_id,
                "quantity": request.quantity,
                "unit": request.unit,
                "performed_by": performed_by,
            },
        )
        return source, target, [outgoing, incoming]

    async def _existing_inventory_or_raise(self, product: Product, location_id: str) -> Inventory:
        inventory = await self.get_inventory(product, location_id)
        if inventory is None:
            raise NotFoundError(
                resource_type="inventory",
                resource_id=f"{product.product_id}@{location_id}",
                detail="Inventario no encontrado",
            )
        return inventory

    async def reserve_stock(self, request: StockReserveRequest, performed_by: str) -> tuple[Inventory, InventoryMovement]:
        product = await self.get_product_or_raise(request.product_id)
        inventory = await self._existing_inventory_or_raise(product, request.location_id)
        quantity = to_base_unit(request.quantity, request.unit, product)
        inventory.mark_expired_batches(business_today())

        if inventory.available < quantity:
            raise InsufficientStockError(
                requested_quantity=quantity,
                available_quantity=inventory.available,
                product_id=product.product_id,
                detail=(
                    f"Stock insuficiente para reservar. Disponible: {_fmt(inventory.available)}, "
                    f"Solicitado: {_fmt(quantity)}"
                ),
            )

        self._take_fifo(inventory, quantity, reserve=True)
        inventory.recalculate_totals()
        inventory.last_updated_by = performed_by
        movement = self._record_movement(
            MovementType.AJUSTE,
            product,
            quantity,
            f"Reserva para {request.reserved_for}",
            performed_by,
            from_location=request.location_id,
            metadata={
                "reservedFor": request.reserved_for,
                "expiresAt": request.expires_at.isoformat() if request.expires_at else None,
                "isReservation": True,
            },
        )
        await self.db.flush()
        await self._evaluate_alerts(inventory, product)
        await self.db.commit()
        await self.db.refresh(inventory)
        logger.info(
            "Stock reserved",
            extra={"product_id": product.product_id, "location_id": request.location_id, "quantity": quantity},
        )
        return inventory, movement

    async def release_stock(self, request: StockReleaseRequest, performed_by: str) -> tuple[Inventory, InventoryMovement]:
        product = await self.get_product_or_raise(request.product_id)
        inventory = await self._existing_inventory_or_raise(product, request.location_id)
        quantity = to_base_unit(request.quantity, request.unit, product)

        if inventory.reserved < quantity:
            raise InsufficientStockError(
                requested_quantity=quantity,
                available_quantity=inventory.reserved,
                product_id=product.product_id,
                detail=(
                    f"Stock reservado insuficiente. Reservado: {_fmt(inventory.reserved)}, "
                    f"Solicitado: {_fmt(quantity)}"
                ),
            )

        self._return_reserved(inventory, quantity)
        inventory.recalculate_totals()
        inventory.last_updated_by = performed_by
        movement = self._record_movement(
            MovementType.AJUSTE,
            product,
            quantity,
            "Liberación de reserva",
            performed_by,
            to_location=request.location_id,
            metadata={"isReservationRelease": True},
        )
        await self.db.commit()
        await self.db.refresh(inventory)
        logger.info(
            "Stock reservation released",
            extra={"product_id": product.product_id, "location_id": request.location_id, "quantity": quantity},
        )
        return inventory, movement

    async def consume_stock(self, request: StockConsumeRequest, performed_by: str) -> tuple[Inventory, InventoryMovement]:
        adjustment = StockAdjustRequest(
            product_id=request.product_id,
            location_id=request.location_id,
            type=MovementType.SALIDA,
            quantity=request.quantity,
            unit=request.unit,
            reason=f"Consumo para {request.consumed_for}",
            notes=request.notes,
        )
        return await self.adjust_stock(adjustment, performed_by)

    async def initiate_stock(
        self, request: StockInitiateRequest, performed_by: str
    ) -> tuple[Inventory, list[InventoryMovement]]:
        """
        Open the inventory of a product at a location.

        A positive quantity is booked as the first batch with an ENTRADA movement.

        Raises:
            NotFoundError: If the product does not exist
            ConflictError: If the product already has inventory at that location
        """
        product = await self.get_product_or_raise(request.product_id)
        if await self.get_inventory(product, request.location_id) is not None:
            raise ConflictError(
                detail="Este producto ya tiene inventario en esta ubicación",
                conflicting_resource={"productId": product.product_id, "locationId": request.location_id},
            )

        movements = []
        if request.quantity > 0:
            inventory, movement = await self._apply(
                product,
                request.location_id,
                MovementType.ENTRADA,
                request.quantity,
                request.unit or product.base_unit,
                request.reason,
                performed_by,
                batch_id=request.batch_id,
                cost_per_unit=request.cost_per_unit,
                expiry_date=request.expiry_date,
                notes=request.notes,
            )
            movements.append(movement)
        else:
            inventory = await self._get_or_create_inventory(product, request.location_id, performed_by)

        try:
            await self.db.flush()
            await self._evaluate_alerts(inventory, product)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                "Inventory already opened concurrently",
                extra={"product_id": product.product_id, "location_id": request.location_id, "error": str(e)},
            )
            raise ConflictError(detail="Este producto ya tiene inventario en esta ubicación")
        await self.db.refresh(inventory)

        logger.info(
            "Inventory initiated",
            extra={
                "product_id": product.product_id,
                "location_id": request.location_id,
                "quantity": request.quantity,
                "performed_by": performed_by,
            },
        )
        return inventory, movements

    async def list_stock(
        self,
        product_id: Optional[str] = None,
        location_id: Optional[str] = None,
        low_stock: bool = False,
        expiring_soon: bool = False,
        expiry_days: int = 7,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Inventory], int]:
        conditions = []
        if product_id:
            product = await self.get_product(product_id)
            if product is None:
                return [], 0
            conditions.append(Inventory.product_id == product.id)
        if location_id:
            conditions.append(Inventory.location_id == location_id)
        if low_stock:
            minimum = select(Product.min_stock).where(Product.id == Inventory.product_id).scalar_subquery()
            conditions.append(Inventory.available <= minimum)
        if expiring_soon:
            cutoff = business_today() + timedelta(days=expiry_days)
            conditions.append(
                exists().where(
                    and_(
                        InventoryBatch.inventory_id == Inventory.id,
                        InventoryBatch.quantity > 0,
                        InventoryBatch.expiry_date.is_not(None),
                        InventoryBatch.expiry_date <= cutoff,
                    )
                )
            )

        total = await self.db.scalar(select(func.count(Inventory.id)).where(*conditions))
        stmt = (
            select(Inventory)
            .where(*conditions)
            .order_by(Inventory.updated_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def list_movements(
        self,
        product_id: Optional[str] = None,
        location_id: Optional[str] = None,
        movement_type: Optional[MovementType] = None,
        performed_by: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[InventoryMovement], int]:
        conditions = []
        if product_id:
            product = await self.get_product(product_id)
            if product is None:
                return [], 0
            conditions.append(InventoryMovement.product_id == product.id)
        if location_id:
            conditions.append(
                or_(InventoryMovement.from_location == location_id, InventoryMovement.to_location == location_id)
            )
        if movement_type:
            conditions.append(InventoryMovement.type == movement_type)
        if performed_by:
            conditions.append(InventoryMovement.performed_by == performed_by)
        if start_date:
            conditions.append(InventoryMovement.created_at >= start_date)
        if end_date:
            conditions.append(InventoryMovement.created_at <= end_date)

        total = await self.db.scalar(select(func.count(InventoryMovement.id)).where(*conditions))
        stmt = (
            select(InventoryMovement)
            .where(*conditions)
            .order_by(InventoryMovement.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    # Alerts

    async def _active_alert_exists(
        self, alert_type: AlertType, product: Product, location_id: str, batch_id: Optional[str]
    ) -> bool:
        stmt = select(InventoryAlert.id).where(
            InventoryAlert.type == alert_type,
            InventoryAlert.product_id == product.id,
            InventoryAlert.location_id == location_id,
            InventoryAlert.is_active.is_(True),
        )
        if batch_id is None:
            stmt = stmt.where(InventoryAlert.batch_id.is_(None))
        else:
            stmt = stmt.where(InventoryAlert.batch_id == batch_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    def _candidate_alerts(self, inventory: Inventory, product: Product, today: date) -> list[dict]:
        candidates = []
        available = inventory.available
        minimum = product.min_stock or 0
        reorder_point = product.reorder_point or 0

        if minimum > 0 and available <= minimum:
            candidates.append({
                "type": AlertType.LOW_STOCK,
                "priority": AlertPriority.CRITICAL if available == 0 else AlertPriority.HIGH,
                "title": f"Stock bajo: {product.name}",
                "message": f"El stock actual ({_fmt(available)}) está por debajo del mínimo ({_fmt(minimum)})",
                "threshold": minimum,
                "current_value": available,
            })

        if reorder_point > 0 and available <= reorder_point:
            candidates.append({
                "type": AlertType.REORDER_POINT,
                "priority": AlertPriority.MEDIUM,
                "title": f"Punto de reorden alcanzado: {product.name}",
                "message": f"Es momento de realizar un pedido. Stock actual: {_fmt(available)}",
                "threshold": reorder_point,
                "current_value": available,
            })

        warning_cutoff = today + timedelta(days=settings.expiry_warning_days)
        for batch in inventory.batches:
            if batch.quantity <= 0 or batch.expiry_date is None:
                continue
            if batch.expiry_date <= today:
                candidates.append({
                    "type": AlertType.EXPIRED_PRODUCT,
                    "priority": AlertPriority.CRITICAL,
                    "batch_id": batch.batch_id,
                    "title": f"Producto caducado: {product.name}",
                    "message": f"El lote {batch.batch_id} caducó el {batch.expiry_date.isoformat()}",
                    "expiry_date": batch.expiry_date,
                    "current_value": batch.quantity,
                })
            elif batch.expiry_date <= warning_cutoff:
                days_left = (batch.expiry_date - today).days
                candidates.append({
                    "type": AlertType.EXPIRY_WARNING,
                    "priority": AlertPriority.HIGH if days_left <= 3 else AlertPriority.MEDIUM,
                    "batch_id": batch.batch_id,
                    "title": f"Producto próximo a caducar: {product.name}",
                    "message": f"El lote {batch.batch_id} caduca en {days_left} días",
                    "expiry_date": batch.expiry_date,
                    "current_value": batch.quantity,
                })
        return candidates

    async def _evaluate_alerts(
        self, inventory: Inventory, product: Product, today: Optional[date] = None
    ) -> list[InventoryAlert]:
        """Raise alerts for ``inventory``; the caller commits."""
        today = today or business_today()
        created = []
        for candidate in self._candidate_alerts(inventory, product, today):
            batch_id = candidate.get("batch_id")
            if await self._active_alert_exists(candidate["type"], product, inventory.location_id, batch_id):
                continue
            alert = InventoryAlert(
                alert_id=new_business_id("ALERT"),
                product_id=product.id,
                location_id=inventory.location_id,
                is_active=True,
                **candidate,
            )
            self.db.add(alert)
            created.append(alert)
            metrics_collector.record_stock_alert(alert.type.value, alert.priority.value)
            logger.info(
                "Inventory alert raised",
                extra={
                    "alert_type": alert.type.value,
                    "priority": alert.priority.value,
                    "product_id": product.product_id,
                    "location_id": inventory.location_id,
                    "batch_id": batch_id,
                },
            )
        return created

    async def check_alerts(
        self,
        product_id: Optional[str] = None,
        location_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> list[InventoryAlert]:
        """Mark expired batches, evaluate every matching inventory and persist the new alerts."""
        today = today or business_today()
        stmt = select(Inventory)
        if product_id:
            product = await self.get_product_or_raise(product_id)
            stmt = stmt.where(Inventory.product_id == product.id)
        if location_id:
            stmt = stmt.where(Inventory.location_id == location_id)
        result = await self.db.execute(stmt)

        created = []
        expired = 0
        for inventory in result.scalars().all():
            expired += inventory.mark_expired_batches(today)
            created.extend(await self._evaluate_alerts(inventory, inventory.product, today))
        await self.db.commit()

        active = await self.db.scalar(select(func.count(InventoryAlert.id)).where(InventoryAlert.is_active.is_(True)))
        metrics_collector.set_active_stock_alerts(active or 0)
        logger.info(
            "Inventory alerts checked", extra={"created": len(created), "expired_batches": expired, "active": active}
        )
        return created

    async def list_alerts(
        self,
        is_active: Optional[bool] = True,
        alert_type: Optional[AlertType] = None,
        priority: Optional[AlertPriority] = None,
        product_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> list[InventoryAlert]:
        stmt = select(InventoryAlert)
        if is_active is not None:
            stmt = stmt.where(InventoryAlert.is_active.is_(is_active))
        if alert_type:
            stmt = stmt.where(InventoryAlert.type == alert_type)
        if priority:
            stmt = stmt.where(InventoryAlert.priority == priority)
        if product_id:
            product = await self.get_product(product_id)
            if product is None:
                return []
            stmt = stmt.where(InventoryAlert.product_id == product.id)
        if location_id:
            stmt = stmt.where(InventoryAlert.location_id == location_id)

        result = await self.db.execute(stmt.order_by(InventoryAlert.created_at.desc()))
        # sorted() is stable, so newest-first survives within each priority
        return sorted(result.scalars().all(), key=lambda alert: ALERT_PRIORITY_RANK[AlertPriority(alert.priority)])

    async def resolve_alert(self, alert_id: str, resolved_by: str, resolution: Optional[str] = None) -> InventoryAlert:
        result = await self.db.execute(select(InventoryAlert).where(InventoryAlert.alert_id == alert_id))
        alert = result.scalar_one_or_none()
        if alert is None:
            raise NotFoundError(resource_type="inventory_alert", resource_id=alert_id, detail="Alerta no encontrada")

        alert.is_active = False
        alert.resolved_by = resolved_by
        alert.resolved_at = utcnow()
        alert.resolution = resolution
        await self.db.commit()
        await self.db.refresh(alert)
        logger.info("Inventory alert resolved", extra={"alert_id": alert_id, "resolved_by": resolved_by})
        return alert

    # Reporting

    async def summary(self, today: Optional[date] = None, location_id: Optional[str] = None) -> dict:
        """Valuation and health counters across every location, or just one."""
        today = today or business_today()
        warning_cutoff = today + timedelta(days=settings.expiry_warning_days)

        alerts = select(func.count(InventoryAlert.id)).where(InventoryAlert.is_active.is_(True))
        stmt = select(Inventory)
        if location_id:
            alerts = alerts.where(InventoryAlert.location_id == location_id)
            stmt = stmt.where(Inventory.location_id == location_id)
        active_alerts = await self.db.scalar(alerts)
        result = await self.db.execute(stmt)
        inventories = list(result.scalars().all())
        if location_id:
            total_products = len({inventory.product_id for inventory in inventories})
        else:
            total_products = await self.db.scalar(select(func.count(Product.id)).where(Product.is_active.is_(True)))

        by_location: dict[str, float] = defaultdict(float)
        by_product: dict[str, dict] = {}
        by_category: dict[str, float] = defaultdict(float)
        low_stock = expired = expiring = 0
        total_value = 0.0
        last_updated: Optional[datetime] = None

        for inventory in inventories:
            product = inventory.product
            value = _stock_value(inventory)
            total_value += value
            by_location[inventory.location_id] += value
            by_category[product.category] += value
            entry = by_product.setdefault(
                product.product_id, {"productId": product.product_id, "name": product.name, "quantity": 0.0, "value": 0.0}
            )
            entry["quantity"] = round(entry["quantity"] + inventory.available, 6)
            entry["value"] += value

            if product.min_stock > 0 and inventory.available <= product.min_stock:
                low_stock += 1
            for batch in inventory.batches:
                if batch.quantity <= 0 or batch.expiry_date is None:
                    continue
                if batch.expiry_date <= today:
                    expired += 1
                elif batch.expiry_date <= warning_cutoff:
                    expiring += 1
            if last_updated is None or inventory.updated_at > last_updated:
                last_updated = inventory.updated_at

        for entry in by_product.values():
            entry["value"] = round(entry["value"], 2)

        return {
            "totalProducts": total_products or 0,
            "totalValue": round(total_value, 2),
            "byLocation": {location: round(value, 2) for location, value in by_location.items()},
            "byProduct": list(by_product.values()),
            "byCategory": {category: round(value, 2) for category, value in by_category.items()},
            "lowStockItems": low_stock,
            "expiredItems": expired,
            "expiringSoonItems": expiring,
            "activeAlerts": active_alerts or 0,
            "lastUpdated": last_updated,
        }

    async def _top_products(self, location_id: Optional[str], limit: int = 5) -> list[dict]:
        """Products with the most movements, with their current stock."""
        stmt = select(
            InventoryMovement.product_id,
            func.count(InventoryMovement.id).label("movements"),
            func.sum(InventoryMovement.quantity).label("quantity"),
        )
        if location_id:
            stmt = stmt.where(
                or_(InventoryMovement.from_location == location_id, InventoryMovement.to_location == location_id)
            )
        stmt = stmt.group_by(InventoryMovement.product_id).order_by(func.count(InventoryMovement.id).desc()).limit(limit)
        rows = (await self.db.execute(stmt)).all()

        top = []
        for row in rows:
            product = await self.db.get(Product, row.product_id)
            stock = select(func.coalesce(func.sum(Inventory.available), 0)).where(Inventory.product_id == row.product_id)
            if location_id:
                stock = stock.where(Inventory.location_id == location_id)
            current = float(await self.db.scalar(stock) or 0)
            top.append({
                "productId": product.product_id,
                "productName": product.name,
                "sku": product.sku,
                "totalMovements": row.movements,
                "totalQuantity": round(float(row.quantity or 0), 6),
                "currentStock": current,
                "value": round(current * product.cost_price, 2),
            })
        return top

    def _category_breakdown(self, inventories: list[Inventory]) -> list[dict]:
        categories = defaultdict(lambda: {"productCount": 0, "totalValue": 0.0})
        for inventory in inventories:
            entry = categories[inventory.product.category or "Sin categoría"]
            entry["productCount"] += 1
            entry["totalValue"] += _stock_value(inventory)
        total = sum(entry["totalValue"] for entry in categories.values())
        return sorted(
            (
                {
                    "category": category,
                    "productCount": entry["productCount"],
                    "totalValue": round(entry["totalValue"], 2),
                    "percentage": round(entry["totalValue"] / total * 100) if total > 0 else 0,
                }
                for category, entry in categories.items()
            ),
            key=lambda item: (-item["totalValue"], item["category"]),
        )

    async def _recent_movements(self, location_id: Optional[str], limit: int) -> list[dict]:
        stmt = select(InventoryMovement, Product.name).join(Product, Product.id == InventoryMovement.product_id)
        if location_id:
            stmt = stmt.where(
                or_(InventoryMovement.from_location == location_id, InventoryMovement.to_location == location_id)
            )
        stmt = stmt.order_by(InventoryMovement.created_at.desc()).limit(limit)
        return [
            {
                "date": movement.created_at,
                "movementId": movement.movement_id,
                "type": movement.type,
                "productName": name,
                "quantity": movement.quantity,
                "unit": movement.unit,
                "value": movement.total_cost or 0,
            }
            for movement, name in (await self.db.execute(stmt)).all()
        ]

    def _valuation(self, inventories: list[Inventory]) -> list[dict]:
        """Value of unexpired stock per product, at the cost of the batches holding it."""
        products: dict[str, dict] = {}
        for inventory in inventories:
            product = inventory.product
            entry = products.setdefault(
                product.product_id,
                {"productId": product.product_id, "name": product.name, "sku": product.sku, "unit": product.base_unit,
                 "quantity": 0.0, "value": 0.0},
            )
            for batch in inventory.batches:
                if batch.status == BatchStatus.EXPIRED:
                    continue
                held = batch.quantity + batch.reserved_quantity
                entry["quantity"] += held
                entry["value"] += held * batch.cost_per_unit
        valuation = []
        for entry in products.values():
            quantity = round(entry["quantity"], 6)
            valuation.append({
                **entry,
                "quantity": quantity,
                "value": round(entry["value"], 2),
                "averageCost": round(entry["value"] / quantity, 6) if quantity else 0,
            })
        return sorted(valuation, key=lambda item: (-item["value"], item["name"]))

    async def report(self, report_type: str = "summary", location_id: Optional[str] = None) -> dict:
        """
        Build one of the inventory reports.

        Every report carries the headline counters; ``summary`` adds top products,
        category breakdown and recent movements, the others add their own section.

        Raises:
            ValidationError: If the report type is unknown
        """
        if report_type not in REPORT_TYPES:
            raise ValidationError(
                detail="Tipo de reporte no válido. Use: summary, movements, valuation, alerts, o categories"
            )

        summary = await self.summary(location_id=location_id)
        stmt = select(Inventory)
        if location_id:
            stmt = stmt.where(Inventory.location_id == location_id)
        inventories = list((await self.db.execute(stmt)).scalars().all())

        report = {
            "type": report_type,
            "locationId": location_id,
            "summary": {
                "totalProducts": summary["totalProducts"],
                "totalValue": summary["totalValue"],
                "lowStockItems": summary["lowStockItems"],
                "expiringSoon": summary["expiringSoonItems"],
            },
            "topProducts": [],
            "categoryBreakdown": [],
            "movements": [],
        }
        if report_type == "summary":
            report["topProducts"] = await self._top_products(location_id)
            report["categoryBreakdown"] = self._category_breakdown(inventories)
            report["movements"] = await self._recent_movements(location_id, 10)
        elif report_type == "movements":
            report["movements"] = await self._recent_movements(location_id, 50)
        elif report_type == "valuation":
            report["valuation"] = self._valuation(inventories)
        elif report_type == "alerts":
            report["alerts"] = await self.list_alerts(is_active=True, location_id=location_id)
        else:
            report["categoryBreakdown"] = self._category_breakdown(inventories)
        return report
