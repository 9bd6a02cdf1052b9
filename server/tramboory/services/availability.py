"""Slot generation and venue availability."""

import logging
from calendar import monthrange
from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import business_today
from ..core.exceptions import ValidationError
from ..models.reservation import Reservation, ReservationStatus
from ..models.system_config import SystemConfig
from .config_service import SystemConfigService
from .pricing import day_of_week

logger = logging.getLogger(__name__)

DEFAULT_RANGE_DAYS = 90
# Days with this many bookings are shown as full on the public calendar
FULL_DAY_RESERVATIONS = 2


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def add_hours(start: str, hours: float) -> str:
    return format_minutes(to_minutes(start) + int(round(hours * 60)))


def generate_block_slots(
    start_time: str,
    end_time: str,
    duration_hours: float,
    half_hour_break: bool,
) -> list[dict]:
    """
    Slots of a time block as ``{time, endTime}``.

    Slots start every ``duration`` (plus 30 minutes when the block has a
    break) for as long as a whole event still fits before ``end_time``.
    """
    slots = []
    current = to_minutes(start_time)
    end = to_minutes(end_time)
    duration = int(round(duration_hours * 60))
    step = duration + (30 if half_hour_break else 0)
    if duration <= 0:
        return slots
    while current + duration <= end:
        slots.append({"time": format_minutes(current), "endTime": format_minutes(current + duration)})
        current += step
    return slots


def generate_time_slots(start_time: str, end_time: str, duration_hours: float) -> list[str]:
    """Start times from business hours stepped by the default event duration."""
    slots = []
    current = to_minutes(start_time)
    end = to_minutes(end_time)
    step = int(round(duration_hours * 60))
    if step <= 0:
        return slots
    while current < end:
        slots.append(format_minutes(current))
        current += step
    return slots


def overlaps(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open interval overlap of two ``HH:MM`` ranges."""
    return start1 < end2 and start2 < end1


def overlapping_reservations(
    reservations: Iterable[Reservation],
    slot_time: str,
    slot_duration: float,
    default_duration: float,
) -> list[Reservation]:
    slot_end = add_hours(slot_time, slot_duration)
    result = []
    for reservation in reservations:
        reservation_end = add_hours(reservation.event_time, reservation.event_duration or default_duration)
        if overlaps(reservation.event_time, reservation_end, slot_time, slot_end):
            result.append(reservation)
    return result


def parse_date(value: Optional[str], field: str = "date") -> date:
    """Parse an ISO ``YYYY-MM-DD`` query parameter."""
    if not value:
        raise ValidationError(detail=f"El parámetro {field} es requerido")
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(detail=f"Fecha inválida: {value}")


def reservation_summary(reservation: Reservation, default_duration: float) -> dict:
    return {
        "id": reservation.id,
        "customer": reservation.customer,
        "child": reservation.child,
        "eventTime": reservation.event_time,
        "eventDuration": reservation.event_duration or default_duration,
        "status": reservation.status,
        "paymentStatus": reservation.payment_status,
        "totalAmount": reservation.total,
        "packageName": (reservation.package or {}).get("name"),
        "specialComments": reservation.special_comments,
        "createdAt": reservation.created_at,
    }


def block_availability(
    block: dict,
    reservations: list[Reservation],
    default_duration: float,
    include_reservations: bool = False,
) -> dict:
    capacity = int(block.get("maxEventsPerBlock", 1))
    slots = []
    for slot in generate_block_slots(
        block["startTime"], block["endTime"], block["duration"], block.get("halfHourBreak", True)
    ):
        taken = overlapping_reservations(reservations, slot["time"], block["duration"], default_duration)
        entry = {
            "time": slot["time"],
            "endTime": slot["endTime"],
            "available": len(taken) < capacity,
            "remainingCapacity": max(capacity - len(taken), 0),
            "totalCapacity": capacity,
        }
        if include_reservations:
            entry["reservations"] = [reservation_summary(r, default_duration) for r in taken]
        slots.append(entry)
    return {
        "name": block["name"],
        "startTime": block["startTime"],
        "endTime": block["endTime"],
        "duration": block["duration"],
        "halfHourBreak": block.get("halfHourBreak", True),
        "slots": slots,
    }


class AvailabilityService:
    """Availability views over the active configuration and booked reservations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.config_service = SystemConfigService(db)

    async def reservations_between(self, start: date, end: date) -> list[Reservation]:
        stmt = (
            select(Reservation)
            .where(
                Reservation.event_date >= start,
                Reservation.event_date <= end,
                Reservation.status != ReservationStatus.CANCELLED,
            )
            .order_by(Reservation.event_date, Reservation.event_time)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def reservations_on(self, day: date) -> list[Reservation]:
        return await self.reservations_between(day, day)

    async def available_blocks(self, day: date, config: Optional[SystemConfig] = None) -> dict:
        """Blocks for the weekday of ``day`` with per-slot capacity."""
        config = config or await self.config_service.get_active_config()
        dow = day_of_week(day)
        rest_day = config.rest_day_for(dow)

        if rest_day and not rest_day.get("canBeReleased", True):
            return {
                "date": day,
                "dayOfWeek": dow,
                "isRestDay": True,
                "restDayInfo": rest_day,
                "canBeReleased": False,
                "restDayFee": float(rest_day.get("fee") or 0),
                "blocks": [],
            }

        reservations = await self.reservations_on(day)
        blocks = [
            block_availability(block, reservations, config.default_event_duration)
            for block in config.blocks_for(dow)
        ]

        logger.debug(
            "Computed available blocks",
            extra={"date": day.isoformat(), "blocks": len(blocks), "reservations": len(reservations)},
        )

        return {
            "date": day,
            "dayOfWeek": dow,
            "isRestDay": rest_day is not None,
            "restDayInfo": rest_day,
            "canBeReleased": True,
            "restDayFee": float(rest_day.get("fee") or 0) if rest_day else 0,
            "blocks": blocks,
            "businessHours": config.business_hours,
            "defaultEventDuration": config.default_event_duration,
        }

    async def available_slots(self, day: date) -> dict:
        """Business-hours slots matched by exact start time."""
        config = await self.config_service.get_active_config()
        hours = config.business_hours or {"start": "14:00", "end": "19:00"}
        reservations = await self.reservations_on(day)
        per_time = defaultdict(int)
        for reservation in reservations:
            per_time[reservation.event_time] += 1

        capacity = config.max_concurrent_events
        slots = [
            {
                "time": slot,
                "available": per_time[slot] < capacity,
                "remainingCapacity": max(capacity - per_time[slot], 0),
                "totalCapacity": capacity,
            }
            for slot in generate_time_slots(hours["start"], hours["end"], config.default_event_duration)
        ]
        rest_day = config.rest_day_for(day_of_week(day))
        return {
            "date": day,
            "isRestDay": rest_day is not None,
            "restDayFee": float(rest_day.get("fee") or 0) if rest_day else 0,
            "defaultEventDuration": config.default_event_duration,
            "slots": slots,
        }

    async def availability_range(self, start: Optional[date], end: Optional[date]) -> tuple[dict, dict]:
        """
        Calendar status per day: ``available``, ``limited`` or ``unavailable``.

        Returns the map and the meta block ``{startDate, endDate, totalDays}``.
        """
        start = start or business_today()
        end = end or start + timedelta(days=DEFAULT_RANGE_DAYS)
        if end < start:
            raise ValidationError(detail="La fecha final debe ser posterior a la inicial")

        config = await self.config_service.get_active_config()
        counts = defaultdict(int)
        for reservation in await self.reservations_between(start, end):
            counts[reservation.event_date] += 1

        availability = {}
        current = start
        while current <= end:
            dow = day_of_week(current)
            count = counts[current]
            has_blocks = bool(config.blocks_for(dow))
            rest_day = config.rest_day_for(dow)
            if (not has_blocks and rest_day is None) or count >= FULL_DAY_RESERVATIONS:
                availability[current.isoformat()] = "unavailable"
            elif count == 1:
                availability[current.isoformat()] = "limited"
            else:
                availability[current.isoformat()] = "available"
            current += timedelta(days=1)

        meta = {"startDate": start.isoformat(), "endDate": end.isoformat(), "totalDays": len(availability)}
        return availability, meta

    async def month_availability(self, year: int, month: int) -> dict:
        if not 1 <= year <= 9999 or not 1 <= month <= 12:
            raise ValidationError(detail="Los parámetros year y month son requeridos y deben ser válidos")

        config = await self.config_service.get_active_config()
        first = date(year, month, 1)
        last = date(year, month, monthrange(year, month)[1])
        by_date = defaultdict(list)
        for reservation in await self.reservations_between(first, last):
            by_date[reservation.event_date].append(reservation)

        result = {}
        current = first
        while current <= last:
            result[current.isoformat()] = self._day_availability(config, current, by_date[current])
            current += timedelta(days=1)
        return result

    def _day_availability(self, config: SystemConfig, day: date, reservations: list[Reservation]) -> dict:
        dow = day_of_week(day)
        rest_day = config.rest_day_for(dow)
        blocks = config.blocks_for(dow)
        total_slots = available_slots = 0

        if blocks and config.one_event_per_day:
            for block in blocks:
                total_slots += len(generate_block_slots(
                    block["startTime"], block["endTime"], block["duration"], block.get("halfHourBreak", True)
                ))
            available_slots = 0 if reservations else total_slots
        elif blocks:
            for block in blocks:
                slots = block_availability(block, reservations, config.default_event_duration)["slots"]
                total_slots += len(slots)
                available_slots += sum(1 for slot in slots if slot["available"])
        else:
            hours = config.business_hours or {"start": "14:00", "end": "19:00"}
            times = generate_time_slots(hours["start"], hours["end"], config.default_event_duration)
            total_slots = len(times)
            available_slots = sum(
                1 for slot in times
                if sum(1 for r in reservations if r.event_time == slot) < config.max_concurrent_events
            )

        if rest_day and not rest_day.get("canBeReleased", True):
            available_slots = 0

        return {
            "date": day,
            "available": available_slots > 0,
            "totalSlots": total_slots,
            "availableSlots": available_slots,
            "isRestDay": rest_day is not None,
            "restDayFee": float(rest_day.get("fee") or 0) if rest_day else None,
            "hasReservations": bool(reservations),
        }

    async def day_details(self, day: date) -> dict:
        config = await self.config_service.get_active_config()
        reservations = await self.reservations_on(day)
        summaries = [reservation_summary(r, config.default_event_duration) for r in reservations]
        total_revenue = round(sum(r.total for r in reservations), 2)
        dow = day_of_week(day)
        rest_day = config.rest_day_for(dow)
        blocks = [
            block_availability(block, reservations, config.default_event_duration, include_reservations=True)
            for block in config.blocks_for(dow)
        ]
        return {
            "date": day,
            "totalSlots": sum(len(block["slots"]) for block in blocks),
            "availableSlots": sum(1 for block in blocks for slot in block["slots"] if slot["available"]),
            "reservations": summaries,
            "totalRevenue": total_revenue,
            "averageEventValue": round(total_revenue / len(reservations), 2) if reservations else 0,
            "isRestDay": rest_day is not None,
            "restDayFee": float(rest_day.get("fee") or 0) if rest_day else None,
            "timeBlocks": blocks,
        }
