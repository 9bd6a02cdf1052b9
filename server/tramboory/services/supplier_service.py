"""Supplier service: supplier records, penalties and the supplier portal."""

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.identifiers import supplier_code
from ..core.roles import UserRole
from ..models.purchase_order import PurchaseOrder, PurchaseOrderStatus
from ..models.supplier import (
    PENALTY_CONCEPTS,
    PENALTY_EXPIRY_DAYS,
    PenaltyConcept,
    PenaltySeverity,
    PenaltyStatus,
    Supplier,
    SupplierPenalty,
    severity_for_points,
)
from ..schemas.supplier import (
    PenaltyCreate,
    PenaltyUpdate,
    RatingUpdate,
    SupplierCreate,
    SupplierOrderStatusRequest,
    SupplierUpdate,
)

logger = logging.getLogger(__name__)

# Points used when a concept has no catalogue entry and the request gives none
FALLBACK_PENALTY_POINTS = 5


def penalty_concept_catalogue() -> list[dict]:
    """Every penalty concept with its label, category and defaults."""
    catalogue = []
    for concept in PenaltyConcept:
        label, category, severity, points = PENALTY_CONCEPTS.get(
            concept, (concept.value.replace("_", " ").title(), "Otros", None, None)
        )
        catalogue.append({
            "concept": concept.value,
            "label": label,
            "category": category,
            "defaultSeverity": severity.value if severity else None,
            "defaultPoints": points,
        })
    return catalogue


def _supplier_columns(data: dict) -> dict:
    terms = data.pop("payment_terms", None)
    if terms:
        data["payment_method"] = terms["method"]
        data["credit_days"] = terms["credit_days"]
        data["currency"] = terms["currency"]
    if data.get("contact_info") is not None:
        info = data["contact_info"]
        data["contact_info"] = {
            "primaryContact": info.get("primary_contact"),
            "phone": info.get("phone"),
            "email": info.get("email"),
            "position": info.get("position"),
        }
    if data.get("address") is not None:
        address = data["address"]
        data["address"] = {
            "street": address.get("street"),
            "city": address.get("city"),
            "state": address.get("state"),
            "zipCode": address.get("zip_code"),
            "country": address.get("country"),
        }
    return data


class SupplierService:
    """Supplier CRUD, ratings and portal links."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_supplier(self, supplier_id: UUID) -> Optional[Supplier]:
        return await self.db.get(Supplier, supplier_id)

    async def get_supplier_or_raise(self, supplier_id: UUID) -> Supplier:
        supplier = await self.get_supplier(supplier_id)
        if supplier is None:
            raise NotFoundError(resource_type="supplier", resource_id=str(supplier_id), detail="Proveedor no encontrado")
        return supplier

    async def get_supplier_by_code(self, code: str) -> Optional[Supplier]:
        result = await self.db.execute(select(Supplier).where(Supplier.code == code.strip().upper()))
        return result.scalar_one_or_none()

    async def get_supplier_for_user(self, user_id: str) -> Optional[Supplier]:
        result = await self.db.execute(select(Supplier).where(Supplier.user_id == user_id))
        return result.scalar_one_or_none()

    async def list_suppliers(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Supplier], int]:
        conditions = []
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(Supplier.name.ilike(pattern), Supplier.code.ilike(pattern), Supplier.description.ilike(pattern))
            )
        if is_active is not None:
            conditions.append(Supplier.is_active.is_(is_active))

        total = await self.db.scalar(select(func.count(Supplier.id)).where(*conditions))
        stmt = (
            select(Supplier)
            .where(*conditions)
            .order_by(Supplier.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def create_supplier(self, request: SupplierCreate, created_by: Optional[str]) -> Supplier:
        """
        Create a supplier numbered ``SUP000001``, ``SUP000002``...

        Raises:
            ConflictError: If another supplier uses the same code
        """
        existing = await self.get_supplier_by_code(request.code)
        if existing:
            logger.warning("Supplier code already exists", extra={"code": request.code})
            raise ConflictError(
                detail="Ya existe un proveedor con este código",
                conflicting_resource={"id": str(existing.id), "code": existing.code},
            )

        count = await self.db.scalar(select(func.count(Supplier.id)))
        supplier = Supplier(
            supplier_id=supplier_code((count or 0) + 1),
            created_by=created_by,
            **_supplier_columns(request.model_dump()),
        )
        try:
            self.db.add(supplier)
            await self.db.commit()
            await self.db.refresh(supplier)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error("Supplier creation failed", extra={"code": request.code, "error": str(e)})
            raise ConflictError(detail="Ya existe un proveedor con este código")

        logger.info("Supplier created", extra={"supplier_id": supplier.supplier_id, "code": supplier.code})
        return supplier

    async def update_supplier(self, supplier_id: UUID, request: SupplierUpdate) -> Supplier:
        supplier = await self.get_supplier_or_raise(supplier_id)
        data = _supplier_columns(request.model_dump(exclude_unset=True))
        data = {key: value for key, value in data.items() if value is not None}

        for key, value in data.items():
            setattr(supplier, key, value)
        if data.get("is_active") is True:
            supplier.activate()
        elif data.get("is_active") is False:
            supplier.deactivate()

        await self.db.commit()
        await self.db.refresh(supplier)
        logger.info("Supplier updated", extra={"supplier_id": supplier.supplier_id, "fields": sorted(data)})
        return supplier

    async def deactivate_supplier(self, supplier_id: UUID) -> Supplier:
        supplier = await self.get_supplier_or_raise(supplier_id)
        supplier.deactivate()
        await self.db.commit()
        await self.db.refresh(supplier)
        logger.info("Supplier deactivated", extra={"supplier_id": supplier.supplier_id})
        return supplier

    async def rate_supplier(self, supplier_id: UUID, request: RatingUpdate) -> Supplier:
        supplier = await self.get_supplier_or_raise(supplier_id)
        supplier.update_rating(request.quality, request.delivery, request.communication, request.pricing)
        await self.db.commit()
        await self.db.refresh(supplier)
        logger.info(
            "Supplier rated",
            extra={"supplier_id": supplier.supplier_id, "overall": supplier.rating_overall},
        )
        return supplier

    async def link_user(self, supplier_id: UUID, user_id: Optional[str]) -> Supplier:
        """
        Link a portal user to a supplier, or unlink it when ``user_id`` is None.

        Raises:
            ConflictError: If either side is already linked elsewhere
        """
        supplier = await self.get_supplier_or_raise(supplier_id)
        if user_id:
            if supplier.user_id and supplier.user_id != user_id:
                raise ConflictError(detail="Este proveedor ya está vinculado a otro usuario")
            other = await self.get_supplier_for_user(user_id)
            if other and other.id != supplier.id:
                raise ConflictError(detail="Este usuario ya está vinculado a otro proveedor")

        supplier.user_id = user_id
        await self.db.commit()
        await self.db.refresh(supplier)
        logger.info("Supplier user link updated", extra={"supplier_id": supplier.supplier_id, "user_id": user_id})
        return supplier


class PenaltyService:
    """Penalties lower a supplier's penalty score while they are active."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.suppliers = SupplierService(db)

    async def get_penalty_or_raise(self, penalty_id: UUID) -> SupplierPenalty:
        penalty = await self.db.get(SupplierPenalty, penalty_id)
        if penalty is None:
            raise NotFoundError(
                resource_type="supplier_penalty",
                resource_id=str(penalty_id),
                detail="Penalización no encontrada",
            )
        return penalty

    async def list_penalties(
        self,
        supplier_id: Optional[UUID] = None,
        status: Optional[PenaltyStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[SupplierPenalty], int]:
        conditions = []
        if supplier_id:
            conditions.append(SupplierPenalty.supplier_id == supplier_id)
        if status:
            conditions.append(SupplierPenalty.status == status)

        total = await self.db.scalar(select(func.count(SupplierPenalty.id)).where(*conditions))
        stmt = (
            select(SupplierPenalty)
            .where(*conditions)
            .order_by(SupplierPenalty.applied_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    def _resolve_terms(self, request: PenaltyCreate) -> tuple[PenaltyConcept, int, PenaltySeverity]:
        try:
            concept = PenaltyConcept(request.concept)
        except ValueError:
            raise ValidationError(detail="Concepto de penalización inválido", errors={"concept": request.concept})

        defaults = PENALTY_CONCEPTS.get(concept)
        points = request.penalty_value
        if points is None:
            points = defaults[3] if defaults else FALLBACK_PENALTY_POINTS
        if points < 1 or points > 100:
            raise ValidationError(detail="Los puntos de penalización deben estar entre 1 y 100")

        if request.severity:
            try:
                severity = PenaltySeverity(request.severity)
            except ValueError:
                raise ValidationError(detail="Severidad inválida", errors={"severity": request.severity})
        elif defaults:
            severity = defaults[2]
        else:
            severity = severity_for_points(int(points))
        return concept, int(points), severity

    async def create_penalty(self, request: PenaltyCreate, applied_by: str) -> SupplierPenalty:
        """
        Apply a penalty and subtract its points from the supplier's score.

        Raises:
            ValidationError: If the concept, points or severity are invalid
            NotFoundError: If the supplier does not exist
        """
        concept, points, severity = self._resolve_terms(request)
        supplier = await self.suppliers.get_supplier_or_raise(request.supplier_id)

        now = utcnow()
        penalty = SupplierPenalty(
            supplier_id=supplier.id,
            supplier_name=supplier.name,
            concept=concept,
            severity=severity,
            description=request.description.strip(),
            penalty_value=points,
            monetary_penalty=request.monetary_penalty or None,
            applied_by=applied_by,
            applied_at=now,
            expires_at=now + timedelta(days=PENALTY_EXPIRY_DAYS[severity]),
            status=PenaltyStatus.ACTIVE,
            evidence=request.evidence,
            notes=request.notes.strip() if request.notes else None,
        )
        supplier.penalty_score = (supplier.penalty_score or 0) - points

        self.db.add(penalty)
        await self.db.commit()
        await self.db.refresh(penalty)
        logger.info(
            "Penalty applied",
            extra={
                "penalty_id": str(penalty.id),
                "supplier_id": supplier.supplier_id,
                "concept": concept.value,
                "severity": severity.value,
                "points": points,
                "applied_by": applied_by,
            },
        )
        return penalty

    async def update_penalty(self, penalty_id: UUID, request: PenaltyUpdate, updated_by: str) -> SupplierPenalty:
        penalty = await self.get_penalty_or_raise(penalty_id)
        changes = {key: value for key, value in request.model_dump(exclude_unset=True).items() if value is not None}
        if not changes:
            raise ValidationError(detail="No hay campos válidos para actualizar")

        previous = PenaltyStatus(penalty.status)
        for key, value in changes.items():
            setattr(penalty, key, value)
        penalty.updated_by = updated_by

        new_status = changes.get("status")
        if new_status and new_status != previous:
            await self._apply_status_change(penalty, previous, new_status)

        await self.db.commit()
        await self.db.refresh(penalty)
        logger.info(
            "Penalty updated",
            extra={"penalty_id": str(penalty_id), "fields": sorted(changes), "updated_by": updated_by},
        )
        return penalty

    async def reverse_penalty(self, penalty_id: UUID, reversed_by: str) -> SupplierPenalty:
        penalty = await self.get_penalty_or_raise(penalty_id)
        previous = PenaltyStatus(penalty.status)
        if previous != PenaltyStatus.REVERSED:
            penalty.status = PenaltyStatus.REVERSED
            penalty.updated_by = reversed_by
            await self._apply_status_change(penalty, previous, PenaltyStatus.REVERSED)
            await self.db.commit()
            await self.db.refresh(penalty)
        logger.info("Penalty reversed", extra={"penalty_id": str(penalty_id), "reversed_by": reversed_by})
        return penalty

    async def _apply_status_change(
        self, penalty: SupplierPenalty, previous: PenaltyStatus, new_status: PenaltyStatus
    ) -> None:
        supplier = await self.suppliers.get_supplier(penalty.supplier_id)
        if supplier is None:
            return
        if previous == PenaltyStatus.ACTIVE and new_status != PenaltyStatus.ACTIVE:
            supplier.penalty_score = (supplier.penalty_score or 0) + penalty.penalty_value
        elif previous != PenaltyStatus.ACTIVE and new_status == PenaltyStatus.ACTIVE:
            supplier.penalty_score = (supplier.penalty_score or 0) - penalty.penalty_value


class SupplierPortalService:
    """What a supplier's portal user can see and do."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.suppliers = SupplierService(db)

    async def resolve_supplier(self, user: dict, supplier_id: Optional[UUID] = None) -> Supplier:
        """
        The supplier a request acts for.

        Portal users always act for their linked supplier; staff may name one.
        """
        if user.get("role") == UserRole.PROVEEDOR.value:
            supplier = await self.suppliers.get_supplier_for_user(user["user_id"])
            if supplier is None:
                raise NotFoundError(
                    resource_type="supplier",
                    resource_id=user["user_id"],
                    detail="No hay un proveedor vinculado a este usuario",
                )
            if supplier_id and supplier_id != supplier.id:
                raise AuthorizationError(detail="No tienes permisos para realizar esta acción")
            return supplier

        if supplier_id:
            return await self.suppliers.get_supplier_or_raise(supplier_id)
        supplier = await self.suppliers.get_supplier_for_user(user["user_id"])
        if supplier is None:
            raise ValidationError(detail="Se requiere el identificador del proveedor")
        return supplier

    async def list_orders(self, supplier: Supplier, status: Optional[PurchaseOrderStatus] = None) -> list[PurchaseOrder]:
        stmt = select(PurchaseOrder).where(PurchaseOrder.supplier_id == supplier.id)
        if status:
            stmt = stmt.where(PurchaseOrder.status == status)
        result = await self.db.execute(stmt.order_by(PurchaseOrder.created_at.desc()))
        return list(result.scalars().all())

    async def update_order_status(
        self, user: dict, order_id: UUID, request: SupplierOrderStatusRequest
    ) -> PurchaseOrder:
        """
        Record a status reported by the supplier.

        Raises:
            NotFoundError: If the order does not exist
            AuthorizationError: If a portal user touches another supplier's order
        """
        order = await self.db.get(PurchaseOrder, order_id)
        if order is None:
            raise NotFoundError(
                resource_type="purchase_order",
                resource_id=str(order_id),
                detail="Orden de compra no encontrada",
            )

        if user.get("role") == UserRole.PROVEEDOR.value:
            supplier = await self.suppliers.get_supplier_for_user(user["user_id"])
            if supplier is None or supplier.id != order.supplier_id:
                logger.warning(
                    "Supplier tried to update another supplier's order",
                    extra={"user_id": user["user_id"], "order_id": str(order_id)},
                )
                raise AuthorizationError(detail="No tienes permisos para realizar esta acción")

        order.record_status(request.status, user["user_id"], f"Status changed to {request.status.value} by supplier")
        if request.status == PurchaseOrderStatus.RECEIVED and order.actual_delivery_date is None:
            order.actual_delivery_date = utcnow().date()

        await self.db.commit()
        await self.db.refresh(order)
        logger.info(
            "Supplier updated order status",
            extra={"order_id": order.purchase_order_id, "status": request.status.value, "user_id": user["user_id"]},
        )
        return order
