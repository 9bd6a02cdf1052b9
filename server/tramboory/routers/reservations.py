"""Reservation router: booking, listings and public availability."""

import json
import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import ANALYTICS_RANGES
from ..core.database import get_db
from ..core.dependencies import CurrentUser, IdempotencyKey, require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES, STAFF_ROLES
from ..schemas.reservation import (
    AvailableBlocksOut,
    AvailableSlotsOut,
    CreateReservationRequest,
    DayDetails,
    PaymentStatusRequest,
    ReservationOut,
    UpdateReservationRequest,
)
from ..services.availability import AvailabilityService, parse_date
from ..services.idempotency_service import IdempotencyService
from ..services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reservations", tags=["reservations"])

DB_DEPENDENCY = Depends(get_db)
STAFF_DEPENDENCY = Depends(require_roles(*STAFF_ROLES))
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))
ANALYTICS_PATTERN = f"^({'|'.join(ANALYTICS_RANGES)})$"


async def _handle_idempotent_operation(
    method: str,
    idempotency_key: Optional[str],
    request_body: dict[str, Any],
    owner: str,
    operation_func,
    db: AsyncSession,
) -> JSONResponse:
    """Run an operation once per idempotency key and replay its response."""
    if not idempotency_key:
        return await operation_func()

    idempotency_service = IdempotencyService(db)

    cached_response = await idempotency_service.check_idempotency(
        idempotency_key=idempotency_key,
        method=method,
        request_body=request_body,
        owner=owner,
    )
    if cached_response:
        status_code, response_body = cached_response
        return JSONResponse(status_code=status_code, content=response_body)

    try:
        result = await operation_func()
    except ProblemDetailsException as e:
        await idempotency_service.store_response(
            idempotency_key=idempotency_key,
            method=method,
            request_body=request_body,
            status_code=e.status_code,
            response_body=e.problem_details,
            owner=owner,
        )
        raise

    await idempotency_service.store_response(
        idempotency_key=idempotency_key,
        method=method,
        request_body=request_body,
        status_code=result.status_code,
        response_body=json.loads(result.body),
        owner=owner,
    )
    return result


@router.get("/available-blocks")
async def get_available_blocks(
    date: Optional[str] = Query(None),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Time blocks for one date with the remaining capacity of each slot."""
    day = parse_date(date)
    blocks = await AvailabilityService(db).available_blocks(day)
    return success_response(AvailableBlocksOut.model_validate(blocks))


@router.get("/available-slots")
async def get_available_slots(
    date: Optional[str] = Query(None),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    day = parse_date(date)
    slots = await AvailabilityService(db).available_slots(day)
    return success_response(AvailableSlotsOut.model_validate(slots))


@router.get("/availability")
async def get_availability(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Calendar status per day between two dates."""
    start = parse_date(start_date, "startDate") if start_date else None
    end = parse_date(end_date, "endDate") if end_date else None
    availability, meta = await AvailabilityService(db).availability_range(start, end)
    return success_response(availability, meta=meta)


@router.post("", status_code=201)
async def create_reservation(
    request: CreateReservationRequest,
    user: dict = CurrentUser,
    idempotency_key: Optional[str] = IdempotencyKey,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Create a reservation for the authenticated user.

    Repeating the call with the same ``Idempotency-Key`` replays the first response.
    """
    reservation_service = ReservationService(db)

    async def operation() -> JSONResponse:
        reservation = await reservation_service.create_reservation(request, user)
        logger.info(
            "Reservation created via API",
            extra={
                "reservation_id": str(reservation.id),
                "event_date": reservation.event_date.isoformat(),
                "user_id": user["user_id"],
                "idempotency_key": idempotency_key,
            },
        )
        return success_response(
            ReservationOut.model_validate(reservation),
            status_code=201,
            message="Reserva creada exitosamente",
        )

    try:
        return await _handle_idempotent_operation(
            method="reservations/create",
            idempotency_key=idempotency_key,
            request_body=request.model_dump(mode="json"),
            owner=user["user_id"],
            operation_func=operation,
            db=db,
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in reservation creation",
            extra={
                "package_id": str(request.package_id),
                "event_date": request.event_date.isoformat(),
                "user_id": user["user_id"],
                "error": str(e),
            },
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("")
async def list_reservations(
    status: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    customer_email: Optional[str] = Query(None, alias="customerEmail"),
    user: dict = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    start = parse_date(start_date, "startDate") if start_date else None
    end = parse_date(end_date, "endDate") if end_date else None
    reservations = await ReservationService(db).list_reservations(
        user, status=status, start_date=start, end_date=end, customer_email=customer_email
    )
    return success_response([ReservationOut.model_validate(r) for r in reservations])


@router.get("/analytics")
async def get_reservation_analytics(
    range_name: str = Query("last30days", alias="range", pattern=ANALYTICS_PATTERN),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Counts, revenue and occupancy for a reporting range, by month and by package."""
    return success_response(await ReservationService(db).analytics(range_name))


@router.get("/{reservation_id}")
async def get_reservation(
    reservation_id: UUID,
    user: dict = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    reservation = await ReservationService(db).get_reservation_for_user(reservation_id, user)
    return success_response(ReservationOut.model_validate(reservation))


@router.patch("/{reservation_id}")
async def update_reservation(
    reservation_id: UUID,
    request: UpdateReservationRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Update status, time or notes; confirming also books the income record."""
    try:
        reservation = await ReservationService(db).update_reservation(reservation_id, request)
        logger.info(
            "Reservation updated via API",
            extra={"reservation_id": str(reservation_id), "updated_by": user["user_id"]},
        )
        return success_response(ReservationOut.model_validate(reservation), message="Reserva actualizada exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in reservation update",
            extra={"reservation_id": str(reservation_id), "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.delete("/{reservation_id}")
async def delete_reservation(
    reservation_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await ReservationService(db).delete_reservation(reservation_id)
    logger.info(
        "Reservation deleted via API",
        extra={"reservation_id": str(reservation_id), "deleted_by": user["user_id"]},
    )
    return success_response(message="Reserva eliminada exitosamente")


# Back-office calendar views

admin_router = APIRouter(prefix="/api/admin", tags=["admin"])


@admin_router.get("/availability/month")
async def get_month_availability(
    year: int = Query(0),
    month: int = Query(0),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Per-day capacity for a whole month."""
    availability = await AvailabilityService(db).month_availability(year, month)
    return success_response(availability)


@admin_router.get("/availability/day-details")
async def get_day_details(
    date: Optional[str] = Query(None),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    day = parse_date(date)
    details = await AvailabilityService(db).day_details(day)
    return success_response(DayDetails.model_validate(details))


@admin_router.post("/reservations/{reservation_id}/payment-status")
async def update_payment_status(
    reservation_id: UUID,
    request: PaymentStatusRequest,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Record a payment against a reservation.

    A ``paid`` status also confirms the reservation.
    """
    try:
        reservation = await ReservationService(db).update_payment_status(reservation_id, request)
        logger.info(
            "Payment status updated",
            extra={
                "reservation_id": str(reservation_id),
                "payment_status": request.payment_status,
                "updated_by": user["user_id"],
            },
        )
        return success_response(ReservationOut.model_validate(reservation), message="Estado de pago actualizado")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in payment status update",
            extra={"reservation_id": str(reservation_id), "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e
