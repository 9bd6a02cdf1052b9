"""Site content service: hero, gallery, carousel and contact page."""

import logging
import re
from typing import Optional, Type
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.content import (
    DEFAULT_CONTACT_SETTINGS,
    DEFAULT_HERO,
    GUEST_COUNT_BUCKETS,
    CarouselCard,
    ContactEventType,
    ContactMessage,
    ContactMessageStatus,
    ContactSettings,
    GalleryCategory,
    GalleryItem,
    HeroContent,
)
from ..schemas.common import EMAIL_PATTERN
from ..schemas.content import (
    CarouselCardCreate,
    CarouselCardUpdate,
    ContactMessageCreate,
    ContactSettingsUpdate,
    GalleryItemCreate,
    GalleryItemUpdate,
    HeroCreate,
    HeroUpdate,
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGES = {
    HeroContent: "Hero no encontrado",
    GalleryItem: "Elemento de galería no encontrado",
    CarouselCard: "Tarjeta no encontrada",
    ContactMessage: "Mensaje no encontrado",
}

REQUIRED_CONTACT_FIELDS = ("name", "email", "phone", "event_type", "message")


def _json_columns(request, exclude_unset: bool = False) -> dict:
    """Dump a request with nested models stored as camelCase JSON."""
    data = request.model_dump(exclude_unset=exclude_unset)
    for key in list(data):
        field = getattr(request, key)
        if hasattr(field, "model_dump"):
            data[key] = field.model_dump(by_alias=True, mode="json")
    return data


class ContentService:
    """Content shown on the public site and managed from the dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_or_raise(self, model: Type, item_id: UUID):
        item = await self.db.get(model, item_id)
        if item is None:
            raise NotFoundError(
                resource_type=model.__tablename__,
                resource_id=str(item_id),
                detail=NOT_FOUND_MESSAGES[model],
            )
        return item

    async def _save(self, item):
        self.db.add(item)
        await self.db.commit()
        await self.db.refresh(item)
        return item

    # Hero

    async def active_hero(self) -> HeroContent | dict:
        """The active hero, or the built-in default when none is active."""
        result = await self.db.execute(
            select(HeroContent).where(HeroContent.is_active.is_(True)).order_by(HeroContent.updated_at.desc()).limit(1)
        )
        return result.scalar_one_or_none() or dict(DEFAULT_HERO)

    async def list_heroes(self) -> list[HeroContent]:
        result = await self.db.execute(select(HeroContent).order_by(HeroContent.created_at.desc()))
        return list(result.scalars().all())

    async def get_hero(self, hero_id: UUID) -> HeroContent:
        return await self._get_or_raise(HeroContent, hero_id)

    async def _deactivate_heroes(self, keep: Optional[UUID] = None) -> None:
        stmt = update(HeroContent).where(HeroContent.is_active.is_(True))
        if keep is not None:
            stmt = stmt.where(HeroContent.id != keep)
        await self.db.execute(stmt.values(is_active=False))

    async def create_hero(self, request: HeroCreate, created_by: Optional[str]) -> HeroContent:
        hero = HeroContent(**_json_columns(request), created_by=created_by)
        if hero.is_active:
            await self._deactivate_heroes()
        await self._save(hero)
        logger.info("Hero created", extra={"hero_id": str(hero.id), "active": hero.is_active})
        return hero

    async def update_hero(self, hero_id: UUID, request: HeroUpdate) -> HeroContent:
        hero = await self.get_hero(hero_id)
        data = {key: value for key, value in _json_columns(request, exclude_unset=True).items() if value is not None}
        if data.get("is_active"):
            await self._deactivate_heroes(keep=hero.id)
        for key, value in data.items():
            setattr(hero, key, value)
        await self._save(hero)
        logger.info("Hero updated", extra={"hero_id": str(hero_id), "fields": sorted(data)})
        return hero

    async def activate_hero(self, hero_id: UUID) -> HeroContent:
        hero = await self.get_hero(hero_id)
        await self._deactivate_heroes(keep=hero.id)
        hero.is_active = True
        await self._save(hero)
        logger.info("Hero activated", extra={"hero_id": str(hero_id)})
        return hero

    async def delete_hero(self, hero_id: UUID) -> None:
        hero = await self.get_hero(hero_id)
        if hero.is_active:
            active = await self.db.scalar(select(func.count(HeroContent.id)).where(HeroContent.is_active.is_(True)))
            if active <= 1:
                raise ConflictError(detail="No se puede eliminar el hero activo. Activa otro hero primero.")
        await self.db.delete(hero)
        await self.db.commit()
        logger.info("Hero deleted", extra={"hero_id": str(hero_id)})

    # Gallery

    async def list_gallery(
        self,
        category: Optional[GalleryCategory] = None,
        featured: Optional[bool] = None,
        include_inactive: bool = False,
    ) -> list[GalleryItem]:
        stmt = select(GalleryItem)
        if not include_inactive:
            stmt = stmt.where(GalleryItem.active.is_(True))
        if category:
            stmt = stmt.where(GalleryItem.category == category)
        if featured is not None:
            stmt = stmt.where(GalleryItem.featured.is_(featured))
        result = await self.db.execute(stmt.order_by(GalleryItem.order, GalleryItem.created_at.desc()))
        return list(result.scalars().all())

    async def _next_order(self, model: Type) -> int:
        last = await self.db.scalar(select(func.max(model.order)))
        return (last or 0) + 1

    async def create_gallery_item(self, request: GalleryItemCreate) -> GalleryItem:
        data = request.model_dump()
        if data["order"] is None:
            data["order"] = await self._next_order(GalleryItem)
        item = await self._save(GalleryItem(**data))
        logger.info("Gallery item created", extra={"item_id": str(item.id), "order": item.order})
        return item

    async def update_gallery_item(self, item_id: UUID, request: GalleryItemUpdate) -> GalleryItem:
        item = await self._get_or_raise(GalleryItem, item_id)
        data = {key: value for key, value in request.model_dump(exclude_unset=True).items() if value is not None}
        for key, value in data.items():
            setattr(item, key, value)
        await self._save(item)
        logger.info("Gallery item updated", extra={"item_id": str(item_id), "fields": sorted(data)})
        return item

    async def delete_gallery_item(self, item_id: UUID) -> None:
        item = await self._get_or_raise(GalleryItem, item_id)
        await self.db.delete(item)
        await self.db.commit()
        logger.info("Gallery item deleted", extra={"item_id": str(item_id)})

    # Carousel

    async def list_carousel(self, include_inactive: bool = False) -> list[CarouselCard]:
        stmt = select(CarouselCard)
        if not include_inactive:
            stmt = stmt.where(CarouselCard.is_active.is_(True))
        result = await self.db.execute(stmt.order_by(CarouselCard.order, CarouselCard.created_at))
        return list(result.scalars().all())

    async def get_carousel_card(self, card_id: UUID) -> CarouselCard:
        return await self._get_or_raise(CarouselCard, card_id)

    async def create_carousel_card(self, request: CarouselCardCreate, created_by: Optional[str]) -> CarouselCard:
        data = _json_columns(request)
        if "order" not in request.model_fields_set:
            data["order"] = await self._next_order(CarouselCard)
        card = await self._save(CarouselCard(**data, created_by=created_by))
        logger.info("Carousel card created", extra={"card_id": str(card.id)})
        return card

    async def update_carousel_card(self, card_id: UUID, request: CarouselCardUpdate) -> CarouselCard:
        card = await self.get_carousel_card(card_id)
        data = {key: value for key, value in _json_columns(request, exclude_unset=True).items() if value is not None}
        for key, value in data.items():
            setattr(card, key, value)
        await self._save(card)
        logger.info("Carousel card updated", extra={"card_id": str(card_id), "fields": sorted(data)})
        return card

    async def delete_carousel_card(self, card_id: UUID) -> None:
        card = await self.get_carousel_card(card_id)
        await self.db.delete(card)
        await self.db.commit()
        logger.info("Carousel card deleted", extra={"card_id": str(card_id)})

    # Contact page

    async def contact_settings(self) -> ContactSettings | dict:
        result = await self.db.execute(
            select(ContactSettings).where(ContactSettings.is_active.is_(True)).order_by(ContactSettings.updated_at.desc()).limit(1)
        )
        return result.scalar_one_or_none() or dict(DEFAULT_CONTACT_SETTINGS)

    async def update_contact_settings(self, request: ContactSettingsUpdate, updated_by: str) -> ContactSettings:
        """Update the stored settings, creating them from the defaults the first time."""
        current = await self.contact_settings()
        if isinstance(current, dict):
            current = ContactSettings(
                business_name=DEFAULT_CONTACT_SETTINGS["businessName"],
                tagline=DEFAULT_CONTACT_SETTINGS["tagline"],
                phones=DEFAULT_CONTACT_SETTINGS["phones"],
                emails=DEFAULT_CONTACT_SETTINGS["emails"],
                whatsapp=DEFAULT_CONTACT_SETTINGS["whatsapp"],
                address=DEFAULT_CONTACT_SETTINGS["address"],
                business_hours=DEFAULT_CONTACT_SETTINGS["businessHours"],
                social_media=DEFAULT_CONTACT_SETTINGS["socialMedia"],
                is_active=True,
            )

        data = {key: value for key, value in request.model_dump(exclude_unset=True).items() if value is not None}
        for key, value in data.items():
            setattr(current, key, value)
        current.last_updated_by = updated_by
        await self._save(current)
        logger.info("Contact settings updated", extra={"fields": sorted(data), "updated_by": updated_by})
        return current

    async def create_contact_message(
        self,
        request: ContactMessageCreate,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ContactMessage:
        """
        Store a contact form submission.

        Raises:
            ValidationError: If a required field is missing or a value is malformed
        """
        missing = [field for field in REQUIRED_CONTACT_FIELDS if not (getattr(request, field) or "").strip()]
        if missing:
            raise ValidationError(detail="Faltan campos requeridos", errors={"missing": missing})
        if not re.match(EMAIL_PATTERN, request.email.strip()):
            raise ValidationError(detail="Formato de email inválido")
        try:
            event_type = ContactEventType(request.event_type)
        except ValueError:
            raise ValidationError(detail="Tipo de evento inválido", errors={"eventType": request.event_type})
        if request.guest_count and request.guest_count not in GUEST_COUNT_BUCKETS:
            raise ValidationError(detail="Número de invitados inválido", errors={"guestCount": request.guest_count})

        message = ContactMessage(
            name=request.name.strip(),
            email=request.email.strip().lower(),
            phone=request.phone.strip(),
            event_type=event_type,
            event_date=request.event_date,
            guest_count=request.guest_count,
            message=request.message.strip(),
            status=ContactMessageStatus.NUEVO,
            source="website",
            ip_address=ip_address or "unknown",
            user_agent=(user_agent or "unknown")[:500],
        )
        await self._save(message)
        logger.info("Contact message received", extra={"message_id": str(message.id), "event_type": event_type.value})
        return message

    async def list_contact_messages(
        self, status: Optional[ContactMessageStatus] = None, page: int = 1, limit: int = 50
    ) -> tuple[list[ContactMessage], int]:
        conditions = [ContactMessage.status == status] if status else []
        total = await self.db.scalar(select(func.count(ContactMessage.id)).where(*conditions))
        stmt = (
            select(ContactMessage)
            .where(*conditions)
            .order_by(ContactMessage.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def update_contact_message_status(self, message_id: UUID, status: ContactMessageStatus) -> ContactMessage:
        message = await self._get_or_raise(ContactMessage, message_id)
        message.status = status
        await self._save(message)
        logger.info("Contact message status updated", extra={"message_id": str(message_id), "status": status.value})
        return message
