"""System configuration service."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ValidationError
from ..models.system_config import SystemConfig
from ..schemas.system_config import SystemConfigUpdate

logger = logging.getLogger(__name__)


class SystemConfigService:
    """Reads and updates the venue's active booking configuration."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_config(self) -> SystemConfig:
        """
        Return the active configuration, creating the default one on first access.
        """
        stmt = (
            select(SystemConfig)
            .where(SystemConfig.is_active.is_(True))
            .order_by(SystemConfig.updated_at.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        config = result.scalar_one_or_none()
        if config is not None:
            return config

        config = SystemConfig.default()
        self.db.add(config)
        await self.db.commit()
        await self.db.refresh(config)
        logger.info("Created default system configuration", extra={"config_id": str(config.id)})
        return config

    async def update_config(self, request: SystemConfigUpdate) -> SystemConfig:
        """
        Apply a partial update to the active configuration.

        Raises:
            ValidationError: If the minimum advance exceeds the maximum advance
        """
        config = await self.get_active_config()
        changes = {
            key: value
            for key, value in request.model_dump(exclude_unset=True, by_alias=True).items()
            if value is not None
        }
        advance = changes.get("advanceBookingDays", config.advance_booking_days)
        min_advance = changes.get("minAdvanceBookingDays", config.min_advance_booking_days)
        if min_advance > advance:
            raise ValidationError(
                detail="Los días mínimos de anticipación no pueden superar los días máximos",
                errors={"minAdvanceBookingDays": min_advance, "advanceBookingDays": advance},
            )

        if "advanceBookingDays" in changes:
            config.advance_booking_days = changes["advanceBookingDays"]
        if "minAdvanceBookingDays" in changes:
            config.min_advance_booking_days = changes["minAdvanceBookingDays"]
        if "maxConcurrentEvents" in changes:
            config.max_concurrent_events = changes["maxConcurrentEvents"]
        if "defaultEventDuration" in changes:
            config.default_event_duration = changes["defaultEventDuration"]
        if "businessHours" in changes:
            config.business_hours = changes["businessHours"]
        if "timeBlocks" in changes:
            config.time_blocks = changes["timeBlocks"]
        if "restDays" in changes:
            config.rest_days = changes["restDays"]
        if "oneEventPerDay" in changes:
            config.one_event_per_day = changes["oneEventPerDay"]

        await self.db.commit()
        await self.db.refresh(config)

        logger.info(
            "System configuration updated",
            extra={"config_id": str(config.id), "fields": sorted(changes)},
        )
        return config

    async def public_config(self) -> dict:
        config = await self.get_active_config()
        return {
            "advanceBookingDays": config.advance_booking_days,
            "minAdvanceBookingDays": config.min_advance_booking_days,
            "defaultEventDuration": config.default_event_duration,
            "timeBlocks": config.time_blocks,
            "restDays": config.rest_days,
        }
