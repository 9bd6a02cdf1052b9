"""Catalogue router: packages, themes, food options, extras, thematics and coupons."""

import logging
from typing import Type
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_roles
from ..core.exceptions import InternalServerError, NotFoundError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES
from ..models.catalog import EventTheme, ExtraService, FoodOption, Package, Thematic
from ..schemas.catalog import (
    CouponCreate,
    CouponOut,
    CouponUpdate,
    CouponValidateRequest,
    CouponValidation,
    EventThemeCreate,
    EventThemeOut,
    EventThemeUpdate,
    ExtraServiceCreate,
    ExtraServiceOut,
    ExtraServiceUpdate,
    FoodOptionCreate,
    FoodOptionOut,
    FoodOptionUpdate,
    PackageCreate,
    PackageOut,
    PackageUpdate,
    ThematicCreate,
    ThematicOut,
    ThematicUpdate,
)
from ..services.catalog_service import CatalogService
from ..services.coupon_service import CouponService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

DB_DEPENDENCY = Depends(get_db)
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))


def _register_resource(
    path: str,
    model: Type,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    out_schema: Type[BaseModel],
    label: str,
) -> None:
    """Mount list/get/create/update/delete routes for one catalogue resource."""

    async def list_items(
        include_inactive: bool = Query(False, alias="includeInactive"),
        db: AsyncSession = DB_DEPENDENCY,
    ) -> JSONResponse:
        items = await CatalogService(db).list_items(model, include_inactive=include_inactive)
        return success_response([out_schema.model_validate(item) for item in items])

    async def get_item(item_id: UUID, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
        item = await CatalogService(db).get_item_or_raise(model, item_id)
        return success_response(out_schema.model_validate(item))

    async def create_item(
        request: create_schema,
        user: dict = MANAGEMENT_DEPENDENCY,
        db: AsyncSession = DB_DEPENDENCY,
    ) -> JSONResponse:
        try:
            item = await CatalogService(db).create_item(model, request)
            return success_response(
                out_schema.model_validate(item), status_code=201, message=f"{label} creado exitosamente"
            )

        except ProblemDetailsException:
            raise

        except Exception as e:
            logger.error(
                "Unexpected error in catalogue creation",
                extra={"resource": model.__tablename__, "user_id": user["user_id"], "error": str(e)},
                exc_info=True,
            )
            raise InternalServerError() from e

    async def update_item(
        item_id: UUID,
        request: update_schema,
        user: dict = MANAGEMENT_DEPENDENCY,
        db: AsyncSession = DB_DEPENDENCY,
    ) -> JSONResponse:
        try:
            item = await CatalogService(db).update_item(model, item_id, request)
            return success_response(out_schema.model_validate(item), message=f"{label} actualizado exitosamente")

        except ProblemDetailsException:
            raise

        except Exception as e:
            logger.error(
                "Unexpected error in catalogue update",
                extra={"resource": model.__tablename__, "item_id": str(item_id), "error": str(e)},
                exc_info=True,
            )
            raise InternalServerError() from e

    async def delete_item(
        item_id: UUID,
        user: dict = MANAGEMENT_DEPENDENCY,
        db: AsyncSession = DB_DEPENDENCY,
    ) -> JSONResponse:
        await CatalogService(db).delete_item(model, item_id)
        return success_response(message=f"{label} eliminado exitosamente")

    router.add_api_route(path, list_items, methods=["GET"], name=f"list_{model.__tablename__}")
    router.add_api_route(path, create_item, methods=["POST"], status_code=201, name=f"create_{model.__tablename__}")
    router.add_api_route(f"{path}/{{item_id}}", get_item, methods=["GET"], name=f"get_{model.__tablename__}")
    router.add_api_route(f"{path}/{{item_id}}", update_item, methods=["PUT"], name=f"update_{model.__tablename__}")
    router.add_api_route(f"{path}/{{item_id}}", delete_item, methods=["DELETE"], name=f"delete_{model.__tablename__}")


@router.get("/thematics/slug/{slug}")
async def get_thematic_by_slug(slug: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    thematic = await CatalogService(db).get_thematic_by_slug(slug)
    if thematic is None:
        raise NotFoundError(resource_type="thematic", resource_id=slug, detail="Temática no encontrada")
    return success_response(ThematicOut.model_validate(thematic))


_register_resource("/packages", Package, PackageCreate, PackageUpdate, PackageOut, "Paquete")
_register_resource("/event-themes", EventTheme, EventThemeCreate, EventThemeUpdate, EventThemeOut, "Tema")
_register_resource("/food-options", FoodOption, FoodOptionCreate, FoodOptionUpdate, FoodOptionOut, "Opción de comida")
_register_resource("/extra-services", ExtraService, ExtraServiceCreate, ExtraServiceUpdate, ExtraServiceOut, "Servicio extra")
_register_resource("/thematics", Thematic, ThematicCreate, ThematicUpdate, ThematicOut, "Temática")


# Coupons


@router.post("/coupons/validate", tags=["coupons"])
async def validate_coupon(
    request: CouponValidateRequest,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """
    Check a coupon code against the booking it would apply to.

    Invalid coupons still answer 200 with ``valid: false`` and the reason.
    """
    result = await CouponService(db).validate_coupon(request)
    logger.info(
        "Coupon validated",
        extra={"code": result["code"], "valid": result["valid"], "discount": result["discountAmount"]},
    )
    return success_response(CouponValidation.model_validate(result))


@router.get("/coupons", tags=["coupons"])
async def list_coupons(
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    coupons = await CouponService(db).list_coupons()
    return success_response([CouponOut.model_validate(coupon) for coupon in coupons])


@router.post("/coupons", status_code=201, tags=["coupons"])
async def create_coupon(
    request: CouponCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        coupon = await CouponService(db).create_coupon(request, created_by=user["user_id"])
        return success_response(CouponOut.model_validate(coupon), status_code=201, message="Cupón creado exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in coupon creation",
            extra={"code": request.code, "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/coupons/{coupon_id}", tags=["coupons"])
async def get_coupon(
    coupon_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    coupon = await CouponService(db).get_coupon_or_raise(coupon_id)
    return success_response(CouponOut.model_validate(coupon))


@router.put("/coupons/{coupon_id}", tags=["coupons"])
async def update_coupon(
    coupon_id: UUID,
    request: CouponUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    coupon = await CouponService(db).update_coupon(coupon_id, request)
    return success_response(CouponOut.model_validate(coupon), message="Cupón actualizado exitosamente")


@router.delete("/coupons/{coupon_id}", tags=["coupons"])
async def delete_coupon(
    coupon_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await CouponService(db).delete_coupon(coupon_id)
    return success_response(message="Cupón eliminado exitosamente")
