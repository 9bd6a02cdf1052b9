"""Finance ledger service."""

import logging
import re
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import analytics_window, day_bounds, local_date, utcnow
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.finance import Finance, FinanceCategory, FinancePaymentMethod, FinanceStatus, FinanceType
from ..models.reservation import Reservation, ReservationStatus
from ..schemas.common import clean_tags
from ..schemas.finance import FinanceChildCreate, FinanceCreate, FinanceUpdate, FromReservationsRequest, TagAction

logger = logging.getLogger(__name__)

SYSTEM_USER = "sistema"
MATERIAL_COST_RATE = 0.30
TYPES = {item.value for item in FinanceType}
CATEGORIES = {item.value for item in FinanceCategory}


def _check_type(value: Optional[str]) -> None:
    if value not in TYPES:
        raise ValidationError(detail='El tipo debe ser "income" o "expense"')


def _check_category(value: Optional[str]) -> None:
    if value not in CATEGORIES:
        raise ValidationError(detail="Categoría inválida")


def _check_amount(value) -> None:
    if value is None or value < 0:
        raise ValidationError(detail="El monto debe ser un número positivo")


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def package_tag(package_name: str) -> str:
    return re.sub(r"\s+", "-", package_name.lower())


def reservation_reference(prefix: str, reservation_id: UUID) -> str:
    """``RES-`` or ``MAT-`` followed by the last 8 characters of the id."""
    return f"{prefix}-{str(reservation_id)[-8:].upper()}"


def service_tags(reservation: Reservation) -> list[str]:
    tags = []
    if reservation.food_option:
        tags.append("comida")
    if reservation.extra_services:
        tags.append("extras")
    if reservation.event_theme:
        tags.append("decoracion")
    if reservation.is_rest_day:
        tags.append("dia-descanso")
    return tags


def material_cost(reservation: Reservation) -> float:
    return float(round(reservation.total * MATERIAL_COST_RATE))


def total_with_children(parent: Finance, children: Iterable[Finance]) -> float:
    """Parent amount plus children, where income adds and expense subtracts."""
    return parent.amount + sum(child.signed_amount for child in children)


class FinanceService:
    """Income and expense entries, their children and reservation-generated records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_finance(self, finance_id: UUID) -> Optional[Finance]:
        result = await self.db.execute(select(Finance).where(Finance.id == finance_id))
        return result.scalar_one_or_none()

    async def get_finance_or_raise(self, finance_id: UUID) -> Finance:
        finance = await self.get_finance(finance_id)
        if finance is None:
            logger.warning("Finance record not found", extra={"finance_id": str(finance_id)})
            raise NotFoundError(
                resource_type="finance",
                resource_id=str(finance_id),
                detail="Transacción financiera no encontrada",
            )
        return finance

    async def _reservation(self, reservation_id: UUID) -> Optional[Reservation]:
        result = await self.db.execute(select(Reservation).where(Reservation.id == reservation_id))
        return result.scalar_one_or_none()

    def _link(self, finance: Finance, reservation: Optional[Reservation]) -> None:
        if reservation is None:
            finance.reservation_id = None
            finance.reservation_customer_name = None
            finance.reservation_event_date = None
            return
        finance.reservation_id = reservation.id
        finance.reservation_customer_name = reservation.customer_name
        finance.reservation_event_date = reservation.event_date

    async def create_finance(self, request: FinanceCreate, created_by: Optional[str] = None) -> Finance:
        """
        Create a ledger entry.

        An unknown ``reservation_id`` is ignored; an unknown ``parent_id`` is refused.

        Raises:
            ValidationError: If type, category, amount or parent are invalid
        """
        _check_type(request.type)
        _check_category(request.category)
        _check_amount(request.amount)

        if request.parent_id and await self.get_finance(request.parent_id) is None:
            raise ValidationError(detail="La finanza padre no existe")

        finance = Finance(
            type=request.type,
            description=request.description.strip(),
            amount=float(request.amount),
            date=request.date or utcnow(),
            category=request.category,
            subcategory=request.subcategory.strip() if request.subcategory else None,
            tags=request.tags,
            payment_method=request.payment_method,
            reference=request.reference.strip() if request.reference else None,
            notes=request.notes.strip() if request.notes else None,
            status=request.status,
            created_by=created_by,
            parent_id=request.parent_id,
            is_system_generated=False,
            is_editable=True,
        )
        if request.reservation_id:
            self._link(finance, await self._reservation(request.reservation_id))

        self.db.add(finance)
        await self.db.commit()
        await self.db.refresh(finance)

        logger.info(
            "Finance record created",
            extra={"finance_id": str(finance.id), "type": finance.type, "amount": finance.amount},
        )
        return finance

    async def update_finance(self, finance_id: UUID, request: FinanceUpdate) -> Finance:
        """
        Raises:
            NotFoundError: If the record or the linked reservation does not exist
            AuthorizationError: If the record was generated by the system
            ValidationError: If type, category or amount are invalid
        """
        finance = await self.get_finance_or_raise(finance_id)
        if not finance.is_editable:
            raise AuthorizationError(detail="Esta transacción no puede ser editada")

        changes = request.model_dump(exclude_unset=True)
        if "type" in changes:
            _check_type(changes["type"])
        if "category" in changes:
            _check_category(changes["category"])
        if "amount" in changes:
            _check_amount(changes["amount"])

        if "reservation_id" in changes:
            reservation_id = changes.pop("reservation_id")
            reservation = None
            if reservation_id:
                reservation = await self._reservation(reservation_id)
                if reservation is None:
                    raise NotFoundError(
                        resource_type="reservation",
                        resource_id=str(reservation_id),
                        detail="Reserva no encontrada",
                    )
            self._link(finance, reservation)

        for key, value in changes.items():
            if isinstance(value, str):
                value = value.strip() or None
            if key in ("type", "description", "amount", "date", "category", "status") and value is None:
                continue
            if key == "tags":
                value = value or []
            setattr(finance, key, value)

        await self.db.commit()
        await self.db.refresh(finance)
        logger.info("Finance record updated", extra={"finance_id": str(finance_id), "fields": sorted(changes)})
        return finance

    async def delete_finance(self, finance_id: UUID) -> Finance:
        finance = await self.get_finance_or_raise(finance_id)
        await self.db.execute(delete(Finance).where(Finance.parent_id == finance_id))
        await self.db.delete(finance)
        await self.db.commit()
        logger.info("Finance record deleted", extra={"finance_id": str(finance_id)})
        return finance

    async def get_children(self, parent_id: UUID) -> list[Finance]:
        stmt = select(Finance).where(Finance.parent_id == parent_id).order_by(Finance.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _parent_or_raise(self, parent_id: UUID) -> Finance:
        parent = await self.get_finance(parent_id)
        if parent is None:
            raise NotFoundError(resource_type="finance", resource_id=str(parent_id), detail="Finanza padre no encontrada")
        return parent

    async def children_view(self, parent_id: UUID) -> dict:
        parent = await self._parent_or_raise(parent_id)
        children = await self.get_children(parent_id)
        children_amount = sum(child.signed_amount for child in children)
        return {
            "parent": parent,
            "children": children,
            "totals": {
                "parentAmount": parent.amount,
                "childrenAmount": children_amount,
                "totalWithChildren": parent.amount + children_amount,
            },
        }

    async def create_child(self, parent_id: UUID, request: FinanceChildCreate, created_by: Optional[str] = None) -> Finance:
        """A child inherits the category and reservation link of its parent."""
        parent = await self._parent_or_raise(parent_id)
        _check_type(request.type)
        _check_amount(request.amount)

        tags = list(request.tags)
        if parent.reservation_id and "relacionado-reserva" not in tags:
            tags.append("relacionado-reserva")

        child = Finance(
            type=request.type,
            description=request.description.strip(),
            amount=float(request.amount),
            date=request.date or utcnow(),
            category=parent.category,
            subcategory=request.subcategory.strip() if request.subcategory else None,
            reservation_id=parent.reservation_id,
            reservation_customer_name=parent.reservation_customer_name,
            reservation_event_date=parent.reservation_event_date,
            tags=tags,
            payment_method=request.payment_method,
            reference=request.reference.strip() if request.reference else None,
            notes=request.notes.strip() if request.notes else None,
            status=request.status,
            created_by=created_by,
            parent_id=parent.id,
            is_system_generated=False,
            is_editable=True,
        )
        self.db.add(child)
        await self.db.commit()
        await self.db.refresh(child)
        logger.info("Finance child created", extra={"finance_id": str(child.id), "parent_id": str(parent_id)})
        return child

    def _filters(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list:
        conditions = []
        if type:
            conditions.append(Finance.type == type)
        if category:
            conditions.append(Finance.category == category)
        if status:
            conditions.append(Finance.status == status)
        if start_date and end_date:
            conditions.append(Finance.date >= start_date)
            conditions.append(Finance.date <= end_date)
        return conditions

    async def _ids_with_any_tag(self, conditions: list, tags: list[str]) -> list[UUID]:
        # tags live in a JSON column, so the any-of match runs here
        result = await self.db.execute(select(Finance.id, Finance.tags).where(*conditions))
        wanted = set(tags)
        return [row.id for row in result if wanted.intersection(row.tags or [])]

    async def list_finances(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tags: Optional[list[str]] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[dict], int, dict]:
        """
        Parent entries with their children, newest first.

        Returns:
            ``(items, total_parents, stats)`` where each item is
            ``{"finance", "children", "totalWithChildren"}``
        """
        conditions = self._filters(type, category, status, start_date, end_date)
        tags = clean_tags(tags)
        if tags:
            conditions.append(Finance.id.in_(await self._ids_with_any_tag(conditions, tags)))

        parent_conditions = conditions + [Finance.parent_id.is_(None)]
        total = await self.db.scalar(select(func.count(Finance.id)).where(*parent_conditions))

        stmt = (
            select(Finance)
            .where(*parent_conditions)
            .order_by(Finance.date.desc(), Finance.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        parents = list((await self.db.execute(stmt)).scalars().all())

        items = []
        for parent in parents:
            children = await self.get_children(parent.id)
            items.append({
                "finance": parent,
                "children": children,
                "totalWithChildren": total_with_children(parent, children),
            })

        totals = await self._totals_by_type(conditions)
        stats = {
            "totalIncome": totals["income"]["total"],
            "totalExpense": totals["expense"]["total"],
            "balance": totals["income"]["total"] - totals["expense"]["total"],
            "totalTransactions": total or 0,
        }
        return items, total or 0, stats

    async def _totals_by_type(self, conditions: list) -> dict:
        stmt = (
            select(
                Finance.type,
                func.sum(Finance.amount).label("total"),
                func.count(Finance.id).label("count"),
                func.avg(Finance.amount).label("average"),
            )
            .where(*conditions)
            .group_by(Finance.type)
        )
        totals = {kind: {"total": 0.0, "count": 0, "average": 0.0} for kind in TYPES}
        for row in await self.db.execute(stmt):
            totals[row.type] = {
                "total": float(row.total or 0),
                "count": row.count,
                "average": float(row.average or 0),
            }
        return totals

    async def stats(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        period: str = "month",
    ) -> dict:
        """Summary, breakdowns, trends and recent activity for a date range."""
        if start_date and end_date:
            conditions = [Finance.date >= start_date, Finance.date <= end_date]
        else:
            now = utcnow()
            year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
            start_date, end_date = datetime(year, month, 1), None
            conditions = [Finance.date >= start_date]

        records = list((await self.db.execute(select(Finance).where(*conditions))).scalars().all())
        totals = await self._totals_by_type(conditions)
        income, expense = totals["income"], totals["expense"]

        categories = defaultdict(lambda: defaultdict(lambda: {"total": 0.0, "count": 0}))
        payment_methods = defaultdict(lambda: {"total": 0.0, "count": 0})
        trends = defaultdict(lambda: {"total": 0.0, "count": 0})
        tag_usage = defaultdict(lambda: {"count": 0, "totalAmount": 0.0})
        linked = {kind: {"total": 0.0, "count": 0} for kind in TYPES}

        for record in records:
            bucket = categories[record.type][record.category]
            bucket["total"] += record.amount
            bucket["count"] += 1
            if record.payment_method:
                payment_methods[record.payment_method]["total"] += record.amount
                payment_methods[record.payment_method]["count"] += 1
            trend = trends[self._period_key(record.date, period) + (record.type,)]
            trend["total"] += record.amount
            trend["count"] += 1
            for tag in record.tags or []:
                tag_usage[tag]["count"] += 1
                tag_usage[tag]["totalAmount"] += record.amount
            if record.reservation_id:
                linked[record.type]["total"] += record.amount
                linked[record.type]["count"] += 1

        recent = sorted(records, key=lambda record: record.created_at, reverse=True)[:5]
        top_tags = sorted(tag_usage.items(), key=lambda item: (-item[1]["count"], item[0]))[:10]

        return {
            "summary": {
                "totalIncome": income["total"],
                "totalExpense": expense["total"],
                "balance": income["total"] - expense["total"],
                "incomeCount": income["count"],
                "expenseCount": expense["count"],
                "totalTransactions": income["count"] + expense["count"],
                "avgIncome": round(income["average"], 2),
                "avgExpense": round(expense["average"], 2),
            },
            "categoryBreakdown": [
                {
                    "type": kind,
                    "categories": [{"category": name, **values} for name, values in by_category.items()],
                    "totalByType": sum(values["total"] for values in by_category.values()),
                }
                for kind, by_category in categories.items()
            ],
            "paymentMethods": sorted(
                ({"paymentMethod": method, **values} for method, values in payment_methods.items()),
                key=lambda item: -item["total"],
            ),
            "trends": [
                {"period": dict(zip(self._period_fields(period), key[:-1])), "type": key[-1], **values}
                for key, values in sorted(trends.items())
            ],
            "topTags": [{"tag": tag, **values} for tag, values in top_tags],
            "reservationRelated": linked,
            "recentTransactions": recent,
            "period": {"type": period, "startDate": start_date, "endDate": end_date},
        }

    async def _records_between(self, start: date, end: date) -> list[Finance]:
        start_at, end_at = day_bounds(start, end)
        stmt = select(Finance).where(Finance.date >= start_at, Finance.date <= end_at)
        return list((await self.db.execute(stmt)).scalars().all())

    async def analytics(self, range_name: str = "last30days", today: Optional[date] = None) -> dict:
        """
        Revenue figures for a reporting range.

        Revenue is completed income. Growth compares the range with the calendar
        month before the one it ends in; monthly revenue covers that whole year.
        """
        start, end = analytics_window(range_name, today)
        records = await self._records_between(start, end)

        def is_revenue(record: Finance) -> bool:
            return record.type == FinanceType.INCOME and record.status == FinanceStatus.COMPLETED

        revenue = [record for record in records if is_revenue(record)]
        total_revenue = sum(record.amount for record in revenue)
        pending = sum(
            record.amount
            for record in records
            if record.type == FinanceType.INCOME and record.status == FinanceStatus.PENDING
        )

        previous_end = end.replace(day=1) - timedelta(days=1)
        previous = await self._records_between(previous_end.replace(day=1), previous_end)
        previous_total = sum(record.amount for record in previous if is_revenue(record))
        growth = (total_revenue - previous_total) / previous_total * 100 if previous_total > 0 else 0

        days = (end - start).days + 1
        per_day = defaultdict(float)
        for record in revenue:
            per_day[local_date(record.date)] += record.amount
        daily = [round(per_day[start + timedelta(days=offset)], 2) for offset in range(min(days, 30))]

        monthly = [0.0] * 12
        for record in await self._records_between(date(end.year, 1, 1), date(end.year, 12, 31)):
            if is_revenue(record):
                monthly[local_date(record.date).month - 1] += record.amount

        services = defaultdict(lambda: {"revenue": 0.0, "bookings": 0})
        for record in revenue:
            service = services[FinanceCategory(record.category).value]
            service["revenue"] += record.amount
            service["bookings"] += 1
        top_services = sorted(
            ({"name": name, "revenue": round(values["revenue"], 2), "bookings": values["bookings"]}
             for name, values in services.items()),
            key=lambda item: (-item["revenue"], item["name"]),
        )[:5]

        by_status = defaultdict(float)
        for record in records:
            by_status[FinanceStatus(record.status).value] += record.amount

        return {
            "range": {"name": range_name, "startDate": start, "endDate": end},
            "summary": {
                "totalRevenue": round(total_revenue, 2),
                "pendingPayments": round(pending, 2),
                "monthlyGrowth": round(growth, 2),
            },
            "dailyRevenue": daily,
            "monthlyRevenue": [round(value, 2) for value in monthly],
            "topServices": top_services,
            "paymentStatus": {status.value: round(by_status[status.value], 2) for status in FinanceStatus},
        }

    @staticmethod
    def _period_fields(period: str) -> tuple:
        if period == "week":
            return ("year", "week")
        if period == "year":
            return ("year",)
        return ("year", "month")

    @staticmethod
    def _period_key(value: datetime, period: str) -> tuple:
        if period == "week":
            return (value.year, int(value.strftime("%U")))
        if period == "year":
            return (value.year,)
        return (value.year, value.month)

    async def tags(self, search: Optional[str] = None, limit: int = 50) -> tuple[list[dict], dict]:
        """Per-tag usage sorted by count then name, plus overall tag stats."""
        records = list((await self.db.execute(select(Finance))).scalars().all())
        pattern = re.compile(re.escape(search), re.IGNORECASE) if search else None

        usage = {}
        unique = set()
        tagged = 0
        for record in records:
            for tag in record.tags or []:
                unique.add(tag)
                tagged += 1
                if pattern and not pattern.search(tag):
                    continue
                entry = usage.setdefault(tag, {
                    "tag": tag,
                    "count": 0,
                    "totalAmount": 0.0,
                    "incomeAmount": 0.0,
                    "expenseAmount": 0.0,
                    "lastUsed": record.created_at,
                })
                entry["count"] += 1
                entry["totalAmount"] += record.amount
                if record.type == FinanceType.INCOME:
                    entry["incomeAmount"] += record.amount
                else:
                    entry["expenseAmount"] += record.amount
                entry["lastUsed"] = max(entry["lastUsed"], record.created_at)

        result = sorted(usage.values(), key=lambda entry: (-entry["count"], entry["tag"]))[:limit]
        for entry in result:
            for key in ("totalAmount", "incomeAmount", "expenseAmount"):
                entry[key] = round(entry[key], 2)

        stats = {
            "totalUniqueTags": len(unique),
            "totalTaggedTransactions": tagged,
            "returnedTags": len(result),
        }
        return result, stats

    async def manage_tags(self, request: TagAction) -> tuple[str, int]:
        """
        Rename, delete, add or remove a tag across records.

        Returns:
            ``(message, modified_count)``
        """
        old_tag = (request.old_tag or "").strip().lower()
        new_tag = (request.new_tag or "").strip().lower()

        if not request.action:
            raise ValidationError(detail="Acción requerida")
        if request.action == "rename" and not (old_tag and new_tag):
            raise ValidationError(detail="oldTag y newTag son requeridos para renombrar")
        if request.action == "delete" and not old_tag:
            raise ValidationError(detail="oldTag es requerido para eliminar")
        if request.action == "add" and not (new_tag and request.transaction_ids is not None):
            raise ValidationError(detail="newTag y transactionIds (array) son requeridos para agregar")
        if request.action == "remove" and not (old_tag and request.transaction_ids is not None):
            raise ValidationError(detail="oldTag y transactionIds (array) son requeridos para remover")

        stmt = select(Finance)
        if request.action in ("add", "remove"):
            stmt = stmt.where(Finance.id.in_(request.transaction_ids))
        records = (await self.db.execute(stmt)).scalars().all()

        modified = 0
        for record in records:
            tags = list(record.tags or [])
            if request.action == "rename" and old_tag in tags:
                updated = clean_tags([new_tag if tag == old_tag else tag for tag in tags])
            elif request.action in ("delete", "remove") and old_tag in tags:
                updated = [tag for tag in tags if tag != old_tag]
            elif request.action == "add" and new_tag not in tags:
                updated = tags + [new_tag]
            else:
                continue
            record.tags = updated
            modified += 1

        await self.db.commit()

        messages = {
            "rename": f'Etiqueta "{request.old_tag}" renombrada a "{request.new_tag}" en {modified} transacciones',
            "delete": f'Etiqueta "{request.old_tag}" eliminada de {modified} transacciones',
            "add": f'Etiqueta "{request.new_tag}" agregada a {modified} transacciones',
            "remove": f'Etiqueta "{request.old_tag}" removida de {modified} transacciones',
        }
        logger.info("Finance tags updated", extra={"action": request.action, "modified": modified})
        return messages[request.action], modified

    def _income_record(self, reservation: Reservation, created_by: Optional[str], status: FinanceStatus, notes: str, tags: list[str]) -> Finance:
        return Finance(
            type=FinanceType.INCOME,
            description=f"Ingreso por reserva - {reservation.customer_name}",
            amount=reservation.total,
            date=_as_datetime(reservation.event_date),
            category=FinanceCategory.RESERVATION,
            subcategory="evento",
            reservation_id=reservation.id,
            reservation_customer_name=reservation.customer_name,
            reservation_event_date=reservation.event_date,
            tags=tags + service_tags(reservation),
            payment_method=FinancePaymentMethod.CASH,
            reference=reservation_reference("RES", reservation.id),
            notes=notes,
            status=status,
            created_by=created_by,
            is_system_generated=True,
            is_editable=False,
        )

    def _expense_record(self, reservation: Reservation, created_by: Optional[str]) -> Finance:
        return Finance(
            type=FinanceType.EXPENSE,
            description=f"Gastos de materiales - Evento {reservation.customer_name}",
            amount=material_cost(reservation),
            date=_as_datetime(reservation.event_date),
            category=FinanceCategory.OPERATIONAL,
            subcategory="materiales",
            reservation_id=reservation.id,
            reservation_customer_name=reservation.customer_name,
            reservation_event_date=reservation.event_date,
            tags=["materiales", "evento", "operativo", package_tag(reservation.package["name"])],
            reference=reservation_reference("MAT", reservation.id),
            notes=f"Gasto estimado de materiales (30% del total). Evento: {reservation.child_name}",
            status=FinanceStatus.PENDING,
            created_by=created_by,
            is_system_generated=True,
            is_editable=False,
        )

    async def generate_for_confirmed_reservation(self, reservation: Reservation) -> Finance:
        """
        Create the income entry of a confirmed reservation.

        Does nothing new when a system-generated entry already exists for it.
        """
        stmt = select(Finance).where(
            Finance.reservation_id == reservation.id,
            Finance.is_system_generated.is_(True),
        )
        existing = (await self.db.execute(stmt)).scalars().first()
        if existing is not None:
            logger.info(
                "Finance record already generated for reservation",
                extra={"reservation_id": str(reservation.id), "finance_id": str(existing.id)},
            )
            return existing

        finance = self._income_record(
            reservation,
            created_by=SYSTEM_USER,
            status=FinanceStatus.COMPLETED,
            notes=(
                "Generado automáticamente al confirmar reserva. "
                f"Evento: {reservation.child_name} ({reservation.child_age} años)"
            ),
            tags=["reserva", "evento", "sistema", package_tag(reservation.package["name"])],
        )
        self.db.add(finance)
        await self.db.commit()
        await self.db.refresh(finance)

        metrics_collector.record_finance_generated("auto", FinanceType.INCOME.value)
        logger.info(
            "Finance record generated from confirmed reservation",
            extra={"reservation_id": str(reservation.id), "finance_id": str(finance.id), "amount": finance.amount},
        )
        return finance

    async def _reservations(self, reservation_ids: list[UUID]) -> list[Reservation]:
        result = await self.db.execute(select(Reservation).where(Reservation.id.in_(reservation_ids)))
        return list(result.scalars().all())

    async def _linked_records(self, reservation_id: UUID) -> list[Finance]:
        result = await self.db.execute(select(Finance).where(Finance.reservation_id == reservation_id))
        return list(result.scalars().all())

    async def generate_from_reservations(self, request: FromReservationsRequest) -> dict:
        """
        Bulk-create income and/or estimated material expense entries.

        Reservations that already have linked entries are skipped unless
        ``overwrite`` is set, in which case those entries are replaced.
        """
        if not request.reservation_ids:
            raise ValidationError(detail="Se requiere un array de IDs de reservas")

        reservations = await self._reservations(request.reservation_ids)
        if not reservations:
            raise NotFoundError(resource_type="reservation", detail="No se encontraron reservas")

        # a failed reservation rolls the session back and expires every loaded row
        reservation_keys = [reservation.id for reservation in reservations]
        results = {"created": 0, "skipped": 0, "errors": 0, "details": []}
        for key in reservation_keys:
            reservation_id = str(key)
            try:
                reservation = await self.db.get(Reservation, key)
                existing = await self._linked_records(reservation.id)
                if existing and not request.overwrite:
                    results["skipped"] += 1
                    results["details"].append({
                        "reservationId": reservation_id,
                        "status": "skipped",
                        "reason": "Ya existen transacciones para esta reserva",
                    })
                    continue
                if existing:
                    await self.db.execute(delete(Finance).where(Finance.reservation_id == reservation.id))

                records = []
                if request.generate_type in ("income", "both"):
                    records.append(self._income_record(
                        reservation,
                        created_by=request.created_by,
                        status=(
                            FinanceStatus.COMPLETED
                            if reservation.status == ReservationStatus.CONFIRMED
                            else FinanceStatus.PENDING
                        ),
                        notes=(
                            "Generado automáticamente desde reserva. "
                            f"Evento: {reservation.child_name} ({reservation.child_age} años)"
                        ),
                        tags=["reserva", "evento", package_tag(reservation.package["name"])],
                    ))
                if request.generate_type in ("expense", "both") and material_cost(reservation) > 0:
                    records.append(self._expense_record(reservation, request.created_by))

                self.db.add_all(records)
                await self.db.commit()
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    "Failed to generate finance records for reservation",
                    extra={"reservation_id": reservation_id, "error": str(e)},
                    exc_info=True,
                )
                results["errors"] += 1
                results["details"].append({"reservationId": reservation_id, "status": "error", "error": str(e)})
                continue

            if records:
                results["created"] += len(records)
                results["details"].append({
                    "reservationId": reservation_id,
                    "status": "created",
                    "transactionsCreated": len(records),
                    "transactions": [
                        {"id": record.id, "type": record.type, "amount": record.amount, "description": record.description}
                        for record in records
                    ],
                })
                for record in records:
                    metrics_collector.record_finance_generated("bulk", record.type)

        logger.info(
            "Finance generation from reservations completed",
            extra={key: results[key] for key in ("created", "skipped", "errors")},
        )
        return results

    async def preview_from_reservations(self, reservation_ids: list[UUID], generate_type: str = "income") -> dict:
        if not reservation_ids:
            raise ValidationError(detail="Se requieren IDs de reservas")

        preview = []
        total_income = total_expense = 0.0
        reservations = await self._reservations(reservation_ids)
        for reservation in reservations:
            existing = await self._linked_records(reservation.id)
            entry = {
                "reservationId": reservation.id,
                "customerName": reservation.customer_name,
                "eventDate": reservation.event_date,
                "reservationTotal": reservation.total,
                "hasExistingTransactions": bool(existing),
                "existingTransactionsCount": len(existing),
                "transactions": [],
            }
            if generate_type in ("income", "both"):
                entry["transactions"].append({
                    "type": "income",
                    "description": f"Ingreso por reserva - {reservation.customer_name}",
                    "amount": reservation.total,
                    "category": "reservation",
                })
                total_income += reservation.total
            cost = material_cost(reservation)
            if generate_type in ("expense", "both") and cost > 0:
                entry["transactions"].append({
                    "type": "expense",
                    "description": f"Gastos de materiales - Evento {reservation.customer_name}",
                    "amount": cost,
                    "category": "operational",
                })
                total_expense += cost
            preview.append(entry)

        return {
            "preview": preview,
            "summary": {
                "totalReservations": len(reservations),
                "totalIncome": total_income,
                "totalExpense": total_expense,
                "netAmount": total_income - total_expense,
                "reservationsWithExistingTransactions": sum(1 for entry in preview if entry["hasExistingTransactions"]),
            },
        }
