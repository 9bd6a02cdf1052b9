"""Finance router: ledger entries, children, statistics and tags."""

import logging
from datetime import datetime, time
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import ANALYTICS_RANGES
from ..core.database import get_db
from ..core.dependencies import require_roles
from ..core.exceptions import InternalServerError, ProblemDetailsException, ValidationError
from ..core.responses import success_response
from ..core.roles import MANAGEMENT_ROLES
from ..schemas.common import Pagination
from ..schemas.finance import (
    FinanceChildCreate,
    FinanceCreate,
    FinanceOut,
    FinanceUpdate,
    FinanceWithChildren,
    FromReservationsRequest,
    TagAction,
)
from ..services.availability import parse_date
from ..services.finance_service import FinanceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/finances", tags=["finances"])

DB_DEPENDENCY = Depends(get_db)
MANAGEMENT_DEPENDENCY = Depends(require_roles(*MANAGEMENT_ROLES))
ANALYTICS_PATTERN = f"^({'|'.join(ANALYTICS_RANGES)})$"


def _date_range(start_date: Optional[str], end_date: Optional[str]) -> tuple[Optional[datetime], Optional[datetime]]:
    """Both bounds or neither; the end date includes the whole day."""
    if not (start_date and end_date):
        return None, None
    start = parse_date(start_date, "startDate")
    end = parse_date(end_date, "endDate")
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def _with_children(item: dict) -> FinanceWithChildren:
    return FinanceWithChildren.model_validate(item["finance"]).model_copy(
        update={
            "children": [FinanceOut.model_validate(child) for child in item["children"]],
            "total_with_children": item["totalWithChildren"],
        }
    )


@router.get("")
async def list_finances(
    type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    tags: Optional[str] = Query(None, description="Comma separated; matches any"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Parent entries with their children, plus income/expense totals for the filter."""
    start, end = _date_range(start_date, end_date)
    tag_list = [tag for tag in (tags or "").split(",") if tag.strip()]
    items, total, stats = await FinanceService(db).list_finances(
        type=type,
        category=category,
        status=status,
        start_date=start,
        end_date=end,
        tags=tag_list,
        page=page,
        limit=limit,
    )
    return success_response(
        [_with_children(item) for item in items],
        pagination=Pagination.build(page, limit, total),
        stats=stats,
    )


@router.post("", status_code=201)
async def create_finance(
    request: FinanceCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        finance = await FinanceService(db).create_finance(request, created_by=user["user_id"])
        return success_response(FinanceOut.model_validate(finance), status_code=201, message="Finanza creada exitosamente")

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in finance creation",
            extra={"user_id": user["user_id"], "type": request.type, "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/stats")
async def get_finance_stats(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    period: str = Query("month", pattern="^(week|month|year)$"),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    start, end = _date_range(start_date, end_date)
    stats = await FinanceService(db).stats(start_date=start, end_date=end, period=period)
    stats["recentTransactions"] = [FinanceOut.model_validate(record) for record in stats["recentTransactions"]]
    return success_response(stats)


@router.get("/analytics")
async def get_finance_analytics(
    range_name: str = Query("last30days", alias="range", pattern=ANALYTICS_PATTERN),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    return success_response(await FinanceService(db).analytics(range_name))


@router.get("/tags")
async def list_tags(
    search: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    tags, stats = await FinanceService(db).tags(search=search, limit=limit)
    return success_response(tags, stats=stats)


@router.post("/tags")
async def manage_tags(
    request: TagAction,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Rename, delete, add or remove a tag across ledger entries."""
    message, modified = await FinanceService(db).manage_tags(request)
    logger.info(
        "Finance tags managed",
        extra={"action": request.action, "modified": modified, "user_id": user["user_id"]},
    )
    return success_response({"modifiedCount": modified}, message=message)


@router.get("/from-reservations")
async def preview_from_reservations(
    reservation_ids: str = Query("", alias="reservationIds", description="Comma separated reservation ids"),
    generate_type: str = Query("income", alias="generateType", pattern="^(income|expense|both)$"),
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    try:
        ids = [UUID(value.strip()) for value in reservation_ids.split(",") if value.strip()]
    except ValueError:
        raise ValidationError(detail="IDs de reserva inválidos")
    preview = await FinanceService(db).preview_from_reservations(ids, generate_type)
    return success_response(preview)


@router.post("/from-reservations")
async def generate_from_reservations(
    request: FromReservationsRequest,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Create ledger entries for existing reservations in bulk."""
    if not request.created_by:
        request = request.model_copy(update={"created_by": user["user_id"]})
    try:
        results = await FinanceService(db).generate_from_reservations(request)
        return success_response(
            results,
            message=f"Proceso completado: {results['created']} transacciones creadas, {results['skipped']} omitidas",
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error generating finances from reservations",
            extra={"reservations": len(request.reservation_ids), "error": str(e)},
            exc_info=True,
        )
        raise InternalServerError() from e


@router.get("/{finance_id}")
async def get_finance(
    finance_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    finance = await FinanceService(db).get_finance_or_raise(finance_id)
    return success_response(FinanceOut.model_validate(finance))


@router.put("/{finance_id}")
async def update_finance(
    finance_id: UUID,
    request: FinanceUpdate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Update an editable entry; system-generated entries are refused."""
    finance = await FinanceService(db).update_finance(finance_id, request)
    return success_response(FinanceOut.model_validate(finance), message="Finanza actualizada exitosamente")


@router.delete("/{finance_id}")
async def delete_finance(
    finance_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await FinanceService(db).delete_finance(finance_id)
    logger.info("Finance deleted via API", extra={"finance_id": str(finance_id), "deleted_by": user["user_id"]})
    return success_response(message="Finanza eliminada exitosamente")


@router.get("/{finance_id}/children")
async def get_children(
    finance_id: UUID,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    view = await FinanceService(db).children_view(finance_id)
    return success_response(
        {
            "parent": FinanceOut.model_validate(view["parent"]),
            "children": [FinanceOut.model_validate(child) for child in view["children"]],
            "totals": view["totals"],
        }
    )


@router.post("/{finance_id}/children", status_code=201)
async def create_child(
    finance_id: UUID,
    request: FinanceChildCreate,
    user: dict = MANAGEMENT_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    child = await FinanceService(db).create_child(finance_id, request, created_by=user["user_id"])
    return success_response(FinanceOut.model_validate(child), status_code=201, message="Finanza hija creada exitosamente")
