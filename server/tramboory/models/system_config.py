"""Venue scheduling configuration."""

from sqlalchemy import JSON, Boolean, CheckConstraint, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


DEFAULT_TIME_BLOCKS = [
    {
        "name": "Lunes a Viernes - Tarde",
        "days": [1, 3, 4, 5],
        "startTime": "14:00",
        "endTime": "19:00",
        "duration": 3.5,
        "halfHourBreak": True,
        "maxEventsPerBlock": 1,
    },
    {
        "name": "Fin de Semana - Tarde",
        "days": [6, 0],
        "startTime": "14:00",
        "endTime": "19:00",
        "duration": 3.5,
        "halfHourBreak": True,
        "maxEventsPerBlock": 1,
    },
    {
        "name": "Martes - Día de Descanso",
        "days": [2],
        "startTime": "14:00",
        "endTime": "19:00",
        "duration": 3.5,
        "halfHourBreak": True,
        "maxEventsPerBlock": 1,
    },
]

DEFAULT_REST_DAYS = [
    {"day": 2, "name": "Martes", "fee": 1500, "canBeReleased": True},
]


class SystemConfig(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Booking rules for the venue.

    Weekdays in ``time_blocks[].days`` and ``rest_days[].day`` count from
    0 = Sunday to 6 = Saturday. Only one configuration is active at a time.
    """

    __tablename__ = "system_configs"

    advance_booking_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    min_advance_booking_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    max_concurrent_events: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    default_event_duration: Mapped[float] = mapped_column(Float, nullable=False, default=3.5)
    # {start, end}
    business_hours: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # [{name, days, startTime, endTime, duration, halfHourBreak, maxEventsPerBlock}]
    time_blocks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    # [{day, name, fee, canBeReleased}]
    rest_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    one_event_per_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    __table_args__ = (
        CheckConstraint("advance_booking_days >= 1", name="ck_system_config_advance_days_positive"),
        CheckConstraint("min_advance_booking_days >= 0", name="ck_system_config_min_advance_non_negative"),
        CheckConstraint("max_concurrent_events >= 1", name="ck_system_config_max_concurrent_positive"),
        CheckConstraint(
            "default_event_duration >= 1 AND default_event_duration <= 24",
            name="ck_system_config_default_duration_range",
        ),
    )

    @classmethod
    def default(cls) -> "SystemConfig":
        """Configuration used when the venue has not saved one yet."""
        return cls(
            advance_booking_days=30,
            min_advance_booking_days=7,
            max_concurrent_events=1,
            default_event_duration=3.5,
            business_hours={"start": "14:00", "end": "19:00"},
            time_blocks=[dict(block, days=list(block["days"])) for block in DEFAULT_TIME_BLOCKS],
            rest_days=[dict(rest_day) for rest_day in DEFAULT_REST_DAYS],
            one_event_per_day=True,
            is_active=True,
        )

    def rest_day_for(self, day_of_week: int) -> dict | None:
        for rest_day in self.rest_days or []:
            if rest_day.get("day") == day_of_week:
                return rest_day
        return None

    def blocks_for(self, day_of_week: int) -> list[dict]:
        return [block for block in self.time_blocks or [] if day_of_week in block.get("days", [])]

    def __repr__(self) -> str:
        return f"<SystemConfig(id={self.id}, active={self.is_active}, blocks={len(self.time_blocks or [])})>"
