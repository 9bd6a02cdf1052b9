"""Site content router: hero, gallery, carousel and contact page."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import OptionalUser, require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES, STAFF_ROLES, UserRole
from ..models.content import ContactMessageStatus, GalleryCategory
from ..schemas.common import Pagination
from ..schemas.content import (
    CarouselCardCreate,
    CarouselCardOut,
    CarouselCardUpdate,
    ContactMessageCreate,
    ContactMessageOut,
    ContactMessageStatusUpdate,
    ContactSettingsOut,
    ContactSettingsUpdate,
    GalleryItemCreate,
    GalleryItemOut,
    GalleryItemUpdate,
    HeroCreate,
    HeroOut,
    HeroUpdate,
)
from ..services.content_service import ContentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["content"])

DB_DEPENDENCY = Depends(get_db)
ADMIN_DEPENDENCY = Depends(require_roles(UserRole.ADMIN))
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))
STAFF_DEPENDENCY = Depends(require_roles(*STAFF_ROLES))


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (request.client.host if request.client else None)


def _sees_inactive(user: Optional[dict], include_inactive: bool) -> bool:
    return include_inactive and user is not None and user["role"] in MANAGEMENT_ROLES


# Hero


@router.get("/hero/active")
async def get_active_hero(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """The hero shown on the home page; a built-in default when none is active."""
    hero = await ContentService(db).active_hero()
    return success_response(HeroOut.model_validate(hero))


@router.get("/hero")
async def list_heroes(user: dict = ADMIN_DEPENDENCY, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    heroes = await ContentService(db).list_heroes()
    return success_response([HeroOut.model_validate(hero) for hero in heroes])


@router.post("/hero", status_code=201)
async def create_hero(
    request: HeroCreate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    hero = await ContentService(db).create_hero(request, created_by=user["user_id"])
    return success_response(HeroOut.model_validate(hero), status_code=201, message="Hero creado exitosamente")


@router.put("/hero/{hero_id}")
async def update_hero(
    hero_id: UUID,
    request: HeroUpdate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    hero = await ContentService(db).update_hero(hero_id, request)
    return success_response(HeroOut.model_validate(hero), message="Hero actualizado exitosamente")


@router.post("/hero/{hero_id}/activate")
async def activate_hero(
    hero_id: UUID,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    hero = await ContentService(db).activate_hero(hero_id)
    return success_response(HeroOut.model_validate(hero), message="Hero activado exitosamente")


@router.delete("/hero/{hero_id}")
async def delete_hero(
    hero_id: UUID,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await ContentService(db).delete_hero(hero_id)
    return success_response(message="Hero eliminado exitosamente")


# Gallery


@router.get("/gallery")
async def list_gallery(
    category: Optional[GalleryCategory] = Query(None),
    featured: Optional[bool] = Query(None),
    include_inactive: bool = Query(False, alias="includeInactive"),
    user: Optional[dict] = OptionalUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Active gallery items ordered by position, newest first within a position."""
    items = await ContentService(db).list_gallery(
        category=category,
        featured=featured,
        include_inactive=_sees_inactive(user, include_inactive),
    )
    return success_response([GalleryItemOut.model_validate(item) for item in items], count=len(items))


@router.post("/gallery", status_code=201)
async def create_gallery_item(
    request: GalleryItemCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    item = await ContentService(db).create_gallery_item(request)
    return success_response(GalleryItemOut.model_validate(item), status_code=201, message="Imagen agregada exitosamente")


@router.put("/gallery/{item_id}")
async def update_gallery_item(
    item_id: UUID,
    request: GalleryItemUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    item = await ContentService(db).update_gallery_item(item_id, request)
    return success_response(GalleryItemOut.model_validate(item), message="Imagen actualizada exitosamente")


@router.delete("/gallery/{item_id}")
async def delete_gallery_item(
    item_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await ContentService(db).delete_gallery_item(item_id)
    return success_response(message="Imagen eliminada exitosamente")


# Carousel


@router.get("/carousel")
async def list_carousel(
    include_inactive: bool = Query(False, alias="includeInactive"),
    user: Optional[dict] = OptionalUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    cards = await ContentService(db).list_carousel(include_inactive=_sees_inactive(user, include_inactive))
    return success_response([CarouselCardOut.model_validate(card) for card in cards])


@router.post("/carousel", status_code=201)
async def create_carousel_card(
    request: CarouselCardCreate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    card = await ContentService(db).create_carousel_card(request, created_by=user["user_id"])
    return success_response(CarouselCardOut.model_validate(card), status_code=201, message="Tarjeta creada exitosamente")


@router.get("/carousel/{card_id}")
async def get_carousel_card(card_id: UUID, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    card = await ContentService(db).get_carousel_card(card_id)
    return success_response(CarouselCardOut.model_validate(card))


@router.put("/carousel/{card_id}")
async def update_carousel_card(
    card_id: UUID,
    request: CarouselCardUpdate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    card = await ContentService(db).update_carousel_card(card_id, request)
    return success_response(CarouselCardOut.model_validate(card), message="Tarjeta actualizada exitosamente")


@router.delete("/carousel/{card_id}")
async def delete_carousel_card(
    card_id: UUID,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await ContentService(db).delete_carousel_card(card_id)
    return success_response(message="Tarjeta eliminada exitosamente")


# Contact page


@router.get("/contact-settings")
async def get_contact_settings(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    settings = await ContentService(db).contact_settings()
    return success_response(ContactSettingsOut.model_validate(settings))


@router.put("/contact-settings")
async def update_contact_settings(
    request: ContactSettingsUpdate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    settings = await ContentService(db).update_contact_settings(request, updated_by=user["user_id"])
    return success_response(ContactSettingsOut.model_validate(settings), message="Configuración de contacto actualizada")


@router.post("/contact", status_code=201)
async def submit_contact_message(
    body: ContactMessageCreate,
    request: Request,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Public contact form."""
    try:
        message = await ContentService(db).create_contact_message(
            body,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return success_response(
            {"id": message.id},
            status_code=201,
            message="Mensaje enviado exitosamente. Te contactaremos pronto.",
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error storing contact message", extra={"error": str(e)}, exc_info=True)
        raise InternalServerError() from e


@router.get("/contact")
async def list_contact_messages(
    status: Optional[ContactMessageStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    messages, total = await ContentService(db).list_contact_messages(status=status, page=page, limit=limit)
    return success_response(
        [ContactMessageOut.model_validate(message) for message in messages],
        pagination=Pagination.build(page, limit, total),
    )


@router.patch("/contact/{message_id}/status")
async def update_contact_message_status(
    message_id: UUID,
    request: ContactMessageStatusUpdate,
    user: dict = STAFF_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    message = await ContentService(db).update_contact_message_status(message_id, request.status)
    return success_response(ContactMessageOut.model_validate(message), message="Estado actualizado exitosamente")
