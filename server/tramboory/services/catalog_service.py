"""Catalogue service: packages, event themes, food options, extra services and thematics."""

import logging
import re
import unicodedata
from typing import Optional, Type
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.catalog import EventTheme, ExtraService, FoodOption, Package, Thematic

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGES = {
    Package: "Paquete no encontrado",
    EventTheme: "Tema no encontrado",
    FoodOption: "Opción de comida no encontrada",
    ExtraService: "Servicio extra no encontrado",
    Thematic: "Temática no encontrada",
}


def slugify(value: str) -> str:
    """``"Fiesta de Súper Héroes"`` -> ``"fiesta-de-super-heroes"``."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return value.strip("-")


def _package_columns(data: dict) -> dict:
    pricing = data.pop("pricing", None)
    if pricing:
        data["weekday_price"] = pricing["weekday"]
        data["weekend_price"] = pricing["weekend"]
        data["holiday_price"] = pricing["holiday"]
    return data


class CatalogService:
    """CRUD shared by every catalogue resource."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_items(self, model: Type, include_inactive: bool = False) -> list:
        stmt = select(model)
        if not include_inactive:
            stmt = stmt.where(model.is_active.is_(True))
        if model is Thematic:
            stmt = stmt.order_by(Thematic.order, Thematic.created_at.desc())
        else:
            stmt = stmt.order_by(model.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_item(self, model: Type, item_id: UUID) -> Optional[object]:
        stmt = select(model).where(model.id == item_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_item_or_raise(self, model: Type, item_id: UUID):
        item = await self.get_item(model, item_id)
        if item is None:
            logger.warning(
                "Catalogue item not found",
                extra={"resource": model.__tablename__, "item_id": str(item_id)},
            )
            raise NotFoundError(
                resource_type=model.__tablename__,
                resource_id=str(item_id),
                detail=NOT_FOUND_MESSAGES[model],
            )
        return item

    async def get_thematic_by_slug(self, slug: str) -> Optional[Thematic]:
        result = await self.db.execute(select(Thematic).where(Thematic.slug == slug))
        return result.scalar_one_or_none()

    def _columns(self, model: Type, request) -> dict:
        data = request.model_dump(exclude_unset=True)
        # nested models are stored as camelCase JSON
        for key, value in list(data.items()):
            field = getattr(request, key)
            if isinstance(field, list) and field and hasattr(field[0], "model_dump"):
                data[key] = [item.model_dump(by_alias=True) for item in field]
        if model is Package:
            data = _package_columns(data)
        return data

    async def create_item(self, model: Type, request):
        """
        Create a catalogue item.

        Raises:
            ConflictError: If a thematic with the same slug already exists
        """
        data = self._columns(model, request)
        if model is Thematic:
            data["slug"] = data.get("slug") or slugify(data["title"])
            if await self.get_thematic_by_slug(data["slug"]):
                raise ConflictError(
                    detail="Ya existe una temática con este slug",
                    conflicting_resource={"slug": data["slug"]},
                )

        item = model(**data)
        try:
            self.db.add(item)
            await self.db.commit()
            await self.db.refresh(item)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Catalogue item creation failed due to integrity constraint",
                extra={"resource": model.__tablename__, "error": str(e)},
            )
            raise ConflictError(detail="El elemento ya existe o viola una restricción")

        logger.info(
            "Catalogue item created",
            extra={"resource": model.__tablename__, "item_id": str(item.id)},
        )
        return item

    async def update_item(self, model: Type, item_id: UUID, request):
        item = await self.get_item_or_raise(model, item_id)
        data = {key: value for key, value in self._columns(model, request).items() if value is not None}

        if model is Thematic and "title" in data and "slug" not in data:
            data["slug"] = slugify(data["title"])
        if model is Thematic and data.get("slug") and data["slug"] != item.slug:
            existing = await self.get_thematic_by_slug(data["slug"])
            if existing and existing.id != item.id:
                raise ConflictError(
                    detail="Ya existe una temática con este slug",
                    conflicting_resource={"slug": data["slug"]},
                )

        for key, value in data.items():
            setattr(item, key, value)

        try:
            await self.db.commit()
            await self.db.refresh(item)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Catalogue item update failed due to integrity constraint",
                extra={"resource": model.__tablename__, "item_id": str(item_id), "error": str(e)},
            )
            raise ConflictError(detail="La actualización viola una restricción")

        logger.info(
            "Catalogue item updated",
            extra={"resource": model.__tablename__, "item_id": str(item_id), "fields": sorted(data)},
        )
        return item

    async def delete_item(self, model: Type, item_id: UUID) -> None:
        item = await self.get_item_or_raise(model, item_id)
        await self.db.delete(item)
        await self.db.commit()
        logger.info(
            "Catalogue item deleted",
            extra={"resource": model.__tablename__, "item_id": str(item_id)},
        )
