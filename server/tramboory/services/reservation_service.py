"""Reservation service: booking, listing and status changes."""

import logging
from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import analytics_window, business_today, day_bounds, local_date, utcnow
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.roles import STAFF_ROLES
from ..models.catalog import EventTheme, ExtraService, FoodOption, Package
from ..models.reservation import PaymentStatus, Reservation, ReservationStatus
from ..models.system_config import SystemConfig
from ..schemas.reservation import CreateReservationRequest, PaymentStatusRequest, UpdateReservationRequest
from .availability import AvailabilityService, block_availability, generate_block_slots
from .catalog_service import CatalogService
from .coupon_service import CouponService
from .finance_service import FinanceService
from .pricing import (
    compute_totals,
    coupon_discount,
    coupon_rejection,
    day_of_week,
    find_theme_package,
    package_price_for,
    parse_food_extras,
)

logger = logging.getLogger(__name__)

STATUSES = {status.value for status in ReservationStatus}
PAYMENT_UPDATES = (PaymentStatus.PAID.value, PaymentStatus.PARTIAL.value)


class SlotUnavailableError(ConflictError):
    """Raised when the requested start time of a block is already full."""

    def __init__(self, event_date: date, event_time: str):
        super().__init__(
            detail="El horario seleccionado ya no está disponible",
            conflicting_resource={"eventDate": event_date.isoformat(), "eventTime": event_time},
        )
        self.problem_details.update({"code": "SLOT_FULL", "retryable": False})


def is_staff(user: dict) -> bool:
    return user["role"] in STAFF_ROLES


class ReservationService:
    """Service for reservation-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.availability = AvailabilityService(db)
        self.catalog = CatalogService(db)
        self.coupons = CouponService(db)

    def _check_booking_window(self, config: SystemConfig, event_date: date) -> None:
        today = business_today()
        earliest = today + timedelta(days=config.min_advance_booking_days)
        latest = today + timedelta(days=config.advance_booking_days)
        if event_date < earliest:
            raise ValidationError(
                detail=f"La reserva debe hacerse con al menos {config.min_advance_booking_days} días de anticipación",
                errors={"eventDate": event_date.isoformat(), "earliest": earliest.isoformat()},
            )
        if event_date > latest:
            raise ValidationError(
                detail=f"No se pueden hacer reservas con más de {config.advance_booking_days} días de anticipación",
                errors={"eventDate": event_date.isoformat(), "latest": latest.isoformat()},
            )

    async def _match_block(self, config: SystemConfig, event_date: date, event_time: str) -> Optional[dict]:
        """
        Return the block whose generated slots include ``event_time``.

        Raises:
            SlotUnavailableError: If that slot has no capacity left
        """
        for block in config.blocks_for(day_of_week(event_date)):
            slots = generate_block_slots(
                block["startTime"], block["endTime"], block["duration"], block.get("halfHourBreak", True)
            )
            if not any(slot["time"] == event_time for slot in slots):
                continue
            reservations = await self.availability.reservations_on(event_date)
            computed = block_availability(block, reservations, config.default_event_duration)
            slot = next(slot for slot in computed["slots"] if slot["time"] == event_time)
            if not slot["available"]:
                logger.warning(
                    "Reservation rejected - slot full",
                    extra={"event_date": event_date.isoformat(), "event_time": event_time, "block": block["name"]},
                )
                raise SlotUnavailableError(event_date, event_time)
            return block
        return None

    async def create_reservation(self, request: CreateReservationRequest, user: dict) -> Reservation:
        """
        Book a party and snapshot the prices of everything chosen.

        Args:
            request: Reservation details
            user: Authenticated caller

        Returns:
            Created reservation

        Raises:
            NotFoundError: If the package does not exist
            ValidationError: If the date is outside the booking window, is a closed
                rest day, or the coupon cannot be applied
            SlotUnavailableError: If the requested slot is full
        """
        config = await self.availability.config_service.get_active_config()
        package = await self.catalog.get_item_or_raise(Package, request.package_id)

        self._check_booking_window(config, request.event_date)

        rest_day = config.rest_day_for(day_of_week(request.event_date))
        if rest_day and not rest_day.get("canBeReleased", True):
            raise ValidationError(
                detail=f"El día seleccionado ({rest_day.get('name', 'día de descanso')}) no está disponible para reservas"
            )
        rest_day_fee = float(rest_day.get("fee") or 0) if rest_day else 0.0

        block = await self._match_block(config, request.event_date, request.event_time)

        package_price = package_price_for(package.pricing, request.event_date)

        food_price = 0.0
        food_snapshot = None
        if request.food_option_id:
            food = await self.catalog.get_item(FoodOption, request.food_option_id)
            if food is not None:
                extras = parse_food_extras(request.food_extras)
                food_price = food.base_price + sum(extra["price"] for extra in extras)
                food_snapshot = {
                    "id": str(food.id),
                    "name": food.name,
                    "basePrice": food.base_price,
                    "selectedExtras": extras,
                }

        extras_price = 0.0
        extra_services = []
        for service_id in request.extra_services:
            service = await self.catalog.get_item(ExtraService, service_id)
            if service is None:
                continue
            extras_price += service.price
            extra_services.append({"id": str(service.id), "name": service.name, "price": service.price, "quantity": 1})

        theme_price = 0.0
        theme_snapshot = None
        if request.event_theme_id and request.selected_theme_package:
            theme = await self.catalog.get_item(EventTheme, request.event_theme_id)
            theme_package = find_theme_package(theme.packages, request.selected_theme_package) if theme else None
            if theme_package:
                theme_price = float(theme_package.get("price") or 0)
                theme_snapshot = {
                    "id": str(theme.id),
                    "name": theme.name,
                    "selectedPackage": {
                        "name": theme_package["name"],
                        "pieces": theme_package.get("pieces", 0),
                        "price": theme_price,
                    },
                    "selectedTheme": request.selected_theme or (theme.themes[0] if theme.themes else ""),
                }

        pricing = compute_totals(package_price, food_price, extras_price, theme_price, rest_day_fee)

        coupon = None
        if request.coupon_code:
            coupon = await self.coupons.get_coupon_by_code(request.coupon_code)
            if coupon is None:
                raise ValidationError(detail="Cupón no encontrado")
            reason = coupon_rejection(
                coupon,
                event_date=request.event_date,
                event_time=request.event_time,
                subtotal=pricing["subtotal"],
                customer_email=request.customer.email,
                guest_count=package.max_guests,
            )
            if reason:
                raise ValidationError(detail=reason)
            discount = coupon_discount(coupon, pricing, extra_services)
            pricing = compute_totals(package_price, food_price, extras_price, theme_price, rest_day_fee, discount)

        reservation = Reservation(
            package_id=package.id,
            package={
                "id": str(package.id),
                "name": package.name,
                "maxGuests": package.max_guests,
                "basePrice": package_price,
            },
            event_date=request.event_date,
            event_time=request.event_time,
            event_duration=block["duration"] if block else None,
            event_block=(
                {"name": block["name"], "startTime": block["startTime"], "endTime": block["endTime"]}
                if block else None
            ),
            is_rest_day=rest_day is not None,
            rest_day_fee=rest_day_fee,
            food_option=food_snapshot,
            extra_services=extra_services,
            event_theme=theme_snapshot,
            customer_name=request.customer.name,
            customer_phone=request.customer.phone,
            customer_email=request.customer.email.lower(),
            child_name=request.child.name,
            child_age=request.child.age,
            special_comments=request.special_comments,
            pricing=pricing,
            coupon_code=coupon.code if coupon else None,
            status=ReservationStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            amount_paid=0,
            user_id=user["user_id"],
        )
        self.db.add(reservation)
        if coupon is not None:
            self.coupons.record_use(coupon, pricing["discount"], pricing["subtotal"])

        await self.db.commit()
        await self.db.refresh(reservation)

        metrics_collector.record_reservation_created(package.name)
        logger.info(
            "Reservation created",
            extra={
                "reservation_id": str(reservation.id),
                "event_date": reservation.event_date.isoformat(),
                "event_time": reservation.event_time,
                "package": package.name,
                "total": pricing["total"],
                "user_id": user["user_id"],
            },
        )
        return reservation

    async def get_reservation_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        result = await self.db.execute(select(Reservation).where(Reservation.id == reservation_id))
        return result.scalar_one_or_none()

    async def get_reservation_or_raise(self, reservation_id: UUID) -> Reservation:
        reservation = await self.get_reservation_by_id(reservation_id)
        if reservation is None:
            logger.warning("Reservation not found", extra={"reservation_id": str(reservation_id)})
            raise NotFoundError(
                resource_type="reservation",
                resource_id=str(reservation_id),
                detail="Reserva no encontrada",
            )
        return reservation

    async def get_reservation_for_user(self, reservation_id: UUID, user: dict) -> Reservation:
        """Staff may read any reservation; everyone else only their own."""
        reservation = await self.get_reservation_or_raise(reservation_id)
        if not is_staff(user) and reservation.user_id != user["user_id"]:
            raise AuthorizationError(detail="No tienes permisos para ver esta reserva")
        return reservation

    async def list_reservations(
        self,
        user: dict,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        customer_email: Optional[str] = None,
    ) -> list[Reservation]:
        stmt = select(Reservation)
        if not is_staff(user):
            stmt = stmt.where(Reservation.user_id == user["user_id"])
        if status:
            stmt = stmt.where(Reservation.status == status)
        if start_date and end_date:
            stmt = stmt.where(Reservation.event_date >= start_date, Reservation.event_date <= end_date)
        if customer_email:
            stmt = stmt.where(Reservation.customer_email == customer_email.lower())
        stmt = stmt.order_by(Reservation.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _after_confirmation(self, reservation: Reservation, newly_confirmed: bool = True) -> None:
        if newly_confirmed:
            metrics_collector.record_reservation_confirmed()
        try:
            await FinanceService(self.db).generate_for_confirmed_reservation(reservation)
        except Exception as e:
            # the status change stands even when the ledger entry cannot be written
            await self.db.rollback()
            await self.db.refresh(reservation)
            logger.error(
                "Automatic finance generation failed",
                extra={"reservation_id": str(reservation.id), "error": str(e)},
                exc_info=True,
            )

    async def update_reservation(self, reservation_id: UUID, request: UpdateReservationRequest) -> Reservation:
        """
        Raises:
            ValidationError: If the status is not a reservation status
            NotFoundError: If the reservation does not exist
        """
        changes = request.model_dump(exclude_unset=True)
        status = changes.pop("status", None)
        if status and status not in STATUSES:
            raise ValidationError(detail="Estado inválido")

        reservation = await self.get_reservation_or_raise(reservation_id)
        previous_status = reservation.status
        if status:
            reservation.status = status
        for key, value in changes.items():
            if value is not None:
                setattr(reservation, key, value)

        await self.db.commit()
        await self.db.refresh(reservation)

        logger.info(
            "Reservation updated",
            extra={
                "reservation_id": str(reservation_id),
                "previous_status": previous_status,
                "status": reservation.status,
            },
        )

        if status == ReservationStatus.CONFIRMED.value:
            await self._after_confirmation(
                reservation, newly_confirmed=previous_status != ReservationStatus.CONFIRMED
            )
        return reservation

    async def delete_reservation(self, reservation_id: UUID) -> None:
        reservation = await self.get_reservation_or_raise(reservation_id)
        await self.db.delete(reservation)
        await self.db.commit()
        logger.info("Reservation deleted", extra={"reservation_id": str(reservation_id)})

    async def update_payment_status(self, reservation_id: UUID, request: PaymentStatusRequest) -> Reservation:
        """
        Record a full or partial payment; a full payment also confirms the reservation.

        Raises:
            ValidationError: If the payment status is not ``paid`` or ``partial``
            NotFoundError: If the reservation does not exist
        """
        if request.payment_status not in PAYMENT_UPDATES:
            raise ValidationError(detail="Estado de pago inválido")

        reservation = await self.get_reservation_or_raise(reservation_id)
        reservation.payment_status = request.payment_status
        if request.amount_paid is not None:
            reservation.amount_paid = request.amount_paid
        reservation.payment_date = request.payment_date or utcnow()
        if request.payment_method:
            reservation.payment_method = request.payment_method
        if request.payment_notes:
            reservation.payment_notes = request.payment_notes

        confirming = (
            request.payment_status == PaymentStatus.PAID.value
            and reservation.status != ReservationStatus.CONFIRMED
        )
        if request.payment_status == PaymentStatus.PAID.value:
            reservation.status = ReservationStatus.CONFIRMED

        await self.db.commit()
        await self.db.refresh(reservation)

        logger.info(
            "Reservation payment status updated",
            extra={
                "reservation_id": str(reservation_id),
                "payment_status": request.payment_status,
                "amount_paid": reservation.amount_paid,
            },
        )

        if request.payment_status == PaymentStatus.PAID.value:
            await self._after_confirmation(reservation, newly_confirmed=confirming)
        return reservation

    async def analytics(self, range_name: str = "last30days", today: Optional[date] = None) -> dict:
        """
        Booking activity for a reporting range, by creation date.

        Monthly series cover the calendar year the range ends in. Cancelled
        reservations are counted but never add revenue.
        """
        start, end = analytics_window(range_name, today)
        created_from, created_to = day_bounds(start, end)
        stmt = select(Reservation).where(Reservation.created_at >= created_from, Reservation.created_at <= created_to)
        reservations = list((await self.db.execute(stmt)).scalars().all())

        statuses = Counter(ReservationStatus(reservation.status).value for reservation in reservations)
        occupied = statuses["confirmed"] + statuses["completed"]
        days = (end - start).days + 1
        config = await self.availability.config_service.get_active_config()
        possible = days * config.max_concurrent_events

        per_day = Counter(local_date(reservation.created_at) for reservation in reservations)
        daily = [per_day[start + timedelta(days=offset)] for offset in range(min(days, 30))]

        year_from, year_to = day_bounds(date(end.year, 1, 1), date(end.year, 12, 31))
        stmt = select(Reservation).where(Reservation.created_at >= year_from, Reservation.created_at <= year_to)
        monthly_counts = [0] * 12
        monthly_revenue = [0.0] * 12
        for reservation in (await self.db.execute(stmt)).scalars().all():
            month = local_date(reservation.created_at).month - 1
            monthly_counts[month] += 1
            if reservation.status != ReservationStatus.CANCELLED:
                monthly_revenue[month] += reservation.total

        by_package = defaultdict(lambda: {"count": 0, "revenue": 0.0})
        hours = Counter()
        for reservation in reservations:
            entry = by_package[(reservation.package or {}).get("name") or "Otros"]
            entry["count"] += 1
            if reservation.status != ReservationStatus.CANCELLED:
                entry["revenue"] += reservation.total
            hours[int(reservation.event_time.split(":")[0])] += 1

        packages = sorted(
            ({"package": name, "count": values["count"], "revenue": round(values["revenue"], 2)}
             for name, values in by_package.items()),
            key=lambda item: (-item["count"], -item["revenue"], item["package"]),
        )
        durations = [reservation.event_duration for reservation in reservations if reservation.event_duration]
        revenues = [reservation.total for reservation in reservations if reservation.total > 0]

        return {
            "range": {"name": range_name, "startDate": start, "endDate": end},
            "summary": {
                "totalReservations": len(reservations),
                "completedEvents": statuses["completed"],
                "cancelledEvents": statuses["cancelled"],
                "pendingReservations": statuses["pending"],
                "occupancyRate": round(occupied / possible * 100, 2) if possible else 0,
            },
            "dailyReservations": daily,
            "monthlyReservations": monthly_counts,
            "monthlyRevenue": [round(value, 2) for value in monthly_revenue],
            "byPackage": packages,
            "topPackages": packages[:5],
            "peakHours": [
                {"hour": hour, "count": count}
                for hour, count in sorted(hours.items(), key=lambda item: (-item[1], item[0]))[:3]
            ],
            "averageDuration": round(sum(durations) / len(durations), 2) if durations else 0,
            "averageRevenue": round(sum(revenues) / len(revenues), 2) if revenues else 0,
            "statusBreakdown": {status.value: statuses[status.value] for status in ReservationStatus},
        }
