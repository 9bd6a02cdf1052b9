"""Coupon service for discount codes."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.catalog import Coupon, DiscountType
from ..schemas.catalog import CouponCreate, CouponUpdate, CouponValidateRequest
from .pricing import coupon_discount, coupon_rejection, update_coupon_analytics

logger = logging.getLogger(__name__)


class CouponService:
    """Coupon CRUD, validation against a booking and usage tracking."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_coupons(self, include_inactive: bool = True) -> list[Coupon]:
        stmt = select(Coupon).order_by(Coupon.created_at.desc())
        if not include_inactive:
            stmt = stmt.where(Coupon.is_active.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_coupon_by_code(self, code: str) -> Optional[Coupon]:
        stmt = select(Coupon).where(Coupon.code == code.strip().upper())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_coupon_or_raise(self, coupon_id: UUID) -> Coupon:
        result = await self.db.execute(select(Coupon).where(Coupon.id == coupon_id))
        coupon = result.scalar_one_or_none()
        if coupon is None:
            raise NotFoundError(resource_type="coupon", resource_id=str(coupon_id), detail="Cupón no encontrado")
        return coupon

    async def create_coupon(self, request: CouponCreate, created_by: Optional[str]) -> Coupon:
        """
        Create a coupon with a unique, upper-cased code.

        Raises:
            ConflictError: If the code is already used
        """
        existing = await self.get_coupon_by_code(request.code)
        if existing:
            logger.warning("Coupon code already exists", extra={"code": request.code})
            raise ConflictError(
                detail="Ya existe un cupón con este código",
                conflicting_resource={"id": str(existing.id), "code": existing.code},
            )

        coupon = Coupon(
            **request.model_dump(),
            used_count=0,
            created_by=created_by,
            analytics={"totalUsage": 0, "totalDiscountGiven": 0, "avgOrderValue": 0},
        )
        try:
            self.db.add(coupon)
            await self.db.commit()
            await self.db.refresh(coupon)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error("Coupon creation failed", extra={"code": request.code, "error": str(e)})
            raise ConflictError(detail="Ya existe un cupón con este código")

        logger.info(
            "Coupon created",
            extra={"coupon_id": str(coupon.id), "code": coupon.code, "discount_type": coupon.discount_type},
        )
        return coupon

    async def update_coupon(self, coupon_id: UUID, request: CouponUpdate) -> Coupon:
        coupon = await self.get_coupon_or_raise(coupon_id)
        changes = {key: value for key, value in request.model_dump(exclude_unset=True).items() if value is not None}

        valid_from = changes.get("valid_from", coupon.valid_from)
        valid_until = changes.get("valid_until", coupon.valid_until)
        if valid_until <= valid_from:
            raise ValidationError(detail="La fecha de fin debe ser posterior a la fecha de inicio")
        value = changes.get("discount_value", coupon.discount_value)
        if coupon.discount_type == DiscountType.PERCENTAGE and not 0 < value <= 100:
            raise ValidationError(detail="El valor del descuento debe ser entre 1-100 para porcentajes")

        for key, value in changes.items():
            if key.endswith("_customer_emails"):
                value = [email.strip().lower() for email in value if email.strip()]
            setattr(coupon, key, value)

        await self.db.commit()
        await self.db.refresh(coupon)
        logger.info("Coupon updated", extra={"coupon_id": str(coupon_id), "fields": sorted(changes)})
        return coupon

    async def delete_coupon(self, coupon_id: UUID) -> None:
        coupon = await self.get_coupon_or_raise(coupon_id)
        await self.db.delete(coupon)
        await self.db.commit()
        logger.info("Coupon deleted", extra={"coupon_id": str(coupon_id), "code": coupon.code})

    async def validate_coupon(self, request: CouponValidateRequest, now: Optional[datetime] = None) -> dict:
        """Check a code against booking details and compute the discount it would give."""
        coupon = await self.get_coupon_by_code(request.code)
        if coupon is None:
            return {"valid": False, "reason": "Cupón no encontrado", "code": request.code.upper(), "discountAmount": 0}

        subtotal = request.subtotal
        if subtotal is None:
            subtotal = request.package_price + request.food_price + request.extras_price
        pricing = {
            "packagePrice": request.package_price,
            "foodPrice": request.food_price,
            "extrasPrice": request.extras_price,
            "subtotal": subtotal,
        }

        reason = coupon_rejection(
            coupon,
            event_date=request.event_date,
            event_time=request.event_time,
            subtotal=subtotal,
            customer_email=request.customer_email,
            guest_count=request.guest_count,
            now=now,
        )
        if reason:
            return {"valid": False, "reason": reason, "code": coupon.code, "discountAmount": 0, "coupon": coupon}

        return {
            "valid": True,
            "reason": "Cupón válido",
            "code": coupon.code,
            "discountAmount": coupon_discount(coupon, pricing),
            "coupon": coupon,
        }

    def record_use(self, coupon: Coupon, discount: float, order_value: float) -> None:
        """Count one use of ``coupon``; the caller commits."""
        coupon.used_count = (coupon.used_count or 0) + 1
        coupon.analytics = update_coupon_analytics(coupon.analytics, discount, order_value)
