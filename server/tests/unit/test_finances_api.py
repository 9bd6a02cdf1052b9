"""Integration tests for the finance ledger endpoints."""

from datetime import date, timedelta
from uuid import UUID

import pytest

from tramboory.models.reservation import Reservation


def entry(**overrides):
    payload = {
        "type": "expense",
        "description": "Globos y decoración",
        "amount": 850,
        "date": "2024-05-10T12:00:00",
        "category": "operational",
        "tags": ["Decoración", "globos", "globos"],
        "paymentMethod": "cash",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_finance_endpoint(test_client, admin_headers):
    """Test ledger entry creation."""
    response = await test_client.post("/api/finances", json=entry(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["type"] == "expense"
    assert data["amount"] == 850
    assert data["tags"] == ["decoración", "globos"]
    assert data["isSystemGenerated"] is False
    assert data["isEditable"] is True
    assert data["createdBy"] == "user_admin"


@pytest.mark.asyncio
async def test_create_finance_validates_type_and_category(test_client, admin_headers):
    response = await test_client.post("/api/finances", json=entry(type="gasto"), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == 'El tipo debe ser "income" o "expense"'

    response = await test_client.post("/api/finances", json=entry(category="viajes"), headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Categoría inválida"

    response = await test_client.post("/api/finances", json=entry(amount=-10), headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_finances_require_management(test_client, seller_headers):
    response = await test_client.get("/api/finances", headers=seller_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_finances_with_stats(test_client, admin_headers):
    """Listings carry income/expense totals for the filter."""
    await test_client.post("/api/finances", json=entry(), headers=admin_headers)
    await test_client.post(
        "/api/finances",
        json=entry(type="income", description="Anticipo", amount=3000, category="other", tags=["anticipo"]),
        headers=admin_headers,
    )

    response = await test_client.get("/api/finances", headers=admin_headers)
    body = response.json()
    assert len(body["data"]) == 2
    assert body["stats"] == {"totalIncome": 3000, "totalExpense": 850, "balance": 2150, "totalTransactions": 2}
    assert body["pagination"]["total"] == 2

    response = await test_client.get("/api/finances", params={"type": "income"}, headers=admin_headers)
    assert [item["description"] for item in response.json()["data"]] == ["Anticipo"]

    response = await test_client.get("/api/finances", params={"tags": "globos,otro"}, headers=admin_headers)
    assert [item["description"] for item in response.json()["data"]] == ["Globos y decoración"]


@pytest.mark.asyncio
async def test_date_filter_includes_whole_end_day(test_client, admin_headers):
    await test_client.post("/api/finances", json=entry(date="2024-05-10T22:30:00"), headers=admin_headers)

    response = await test_client.get(
        "/api/finances", params={"startDate": "2024-05-01", "endDate": "2024-05-10"}, headers=admin_headers
    )
    assert len(response.json()["data"]) == 1

    response = await test_client.get(
        "/api/finances", params={"startDate": "2024-05-11", "endDate": "2024-05-31"}, headers=admin_headers
    )
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_children_count_towards_parent(test_client, admin_headers):
    """Children inherit the parent category and adjust its total."""
    parent = await test_client.post(
        "/api/finances",
        json=entry(type="income", description="Evento Sofía", amount=5000, category="reservation"),
        headers=admin_headers,
    )
    parent_id = parent.json()["data"]["id"]

    response = await test_client.post(
        f"/api/finances/{parent_id}/children",
        json={"type": "expense", "description": "Pastel", "amount": 600},
        headers=admin_headers,
    )
    assert response.status_code == 201
    child = response.json()["data"]
    assert child["parentId"] == parent_id
    assert child["category"] == "reservation"

    response = await test_client.get(f"/api/finances/{parent_id}/children", headers=admin_headers)
    totals = response.json()["data"]["totals"]
    assert totals == {"parentAmount": 5000, "childrenAmount": -600, "totalWithChildren": 4400}

    response = await test_client.get("/api/finances", headers=admin_headers)
    items = response.json()["data"]
    assert len(items) == 1
    assert items[0]["totalWithChildren"] == 4400
    assert items[0]["children"][0]["description"] == "Pastel"

    response = await test_client.delete(f"/api/finances/{parent_id}", headers=admin_headers)
    assert response.status_code == 200
    response = await test_client.get(f"/api/finances/{child['id']}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_child_of_unknown_parent(test_client, admin_headers):
    response = await test_client.post(
        "/api/finances/00000000-0000-0000-0000-000000000000/children",
        json={"type": "expense", "description": "Pastel", "amount": 600},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Finanza padre no encontrada"


@pytest.mark.asyncio
async def test_update_finance(test_client, admin_headers):
    created = await test_client.post("/api/finances", json=entry(), headers=admin_headers)
    finance_id = created.json()["data"]["id"]

    response = await test_client.put(
        f"/api/finances/{finance_id}", json={"amount": 900, "tags": ["Globos"]}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["amount"] == 900
    assert data["tags"] == ["globos"]
    assert data["description"] == "Globos y decoración"


@pytest.mark.asyncio
async def test_tag_usage_and_rename(test_client, admin_headers):
    await test_client.post("/api/finances", json=entry(), headers=admin_headers)
    await test_client.post("/api/finances", json=entry(tags=["globos"]), headers=admin_headers)

    response = await test_client.get("/api/finances/tags", headers=admin_headers)
    body = response.json()
    assert body["data"][0]["tag"] == "globos"
    assert body["data"][0]["count"] == 2
    assert body["data"][0]["expenseAmount"] == 1700
    assert body["stats"]["totalUniqueTags"] == 2

    response = await test_client.post(
        "/api/finances/tags", json={"action": "rename", "oldTag": "globos", "newTag": "inflables"}, headers=admin_headers
    )
    assert response.json()["data"] == {"modifiedCount": 2}

    response = await test_client.get("/api/finances/tags", params={"search": "infla"}, headers=admin_headers)
    assert [item["tag"] for item in response.json()["data"]] == ["inflables"]

    response = await test_client.post("/api/finances/tags", json={"action": "rename"}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_finance_stats(test_client, admin_headers):
    await test_client.post("/api/finances", json=entry(), headers=admin_headers)
    await test_client.post(
        "/api/finances", json=entry(type="income", amount=3000, category="other"), headers=admin_headers
    )

    response = await test_client.get(
        "/api/finances/stats",
        params={"startDate": "2024-05-01", "endDate": "2024-05-31", "period": "month"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["summary"]["totalIncome"] == 3000
    assert data["summary"]["totalExpense"] == 850
    assert data["summary"]["balance"] == 2150
    assert data["summary"]["totalTransactions"] == 2
    assert {trend["type"] for trend in data["trends"]} == {"income", "expense"}
    assert len(data["recentTransactions"]) == 2
    assert data["topTags"][0]["tag"] in ("decoración", "globos")


@pytest.mark.asyncio
async def test_system_generated_entries_are_locked(
    test_client, admin_headers, customer_headers, sample_package_data, sample_reservation_data
):
    """Entries created from a confirmed reservation cannot be edited."""
    package = await test_client.post("/api/packages", json=sample_package_data, headers=admin_headers)
    reservation = await test_client.post(
        "/api/reservations",
        json=dict(sample_reservation_data, packageId=package.json()["data"]["id"]),
        headers=customer_headers,
    )
    reservation_id = reservation.json()["data"]["id"]
    await test_client.patch(f"/api/reservations/{reservation_id}", json={"status": "confirmed"}, headers=admin_headers)

    finances = await test_client.get("/api/finances", headers=admin_headers)
    finance_id = finances.json()["data"][0]["id"]

    response = await test_client.put(f"/api/finances/{finance_id}", json={"amount": 1}, headers=admin_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "Esta transacción no puede ser editada"


@pytest.mark.asyncio
async def test_generate_from_reservations(
    test_client, admin_headers, customer_headers, sample_package_data, sample_reservation_data
):
    """Bulk generation writes income and material cost, then skips repeats."""
    package = await test_client.post("/api/packages", json=sample_package_data, headers=admin_headers)
    reservation = await test_client.post(
        "/api/reservations",
        json=dict(sample_reservation_data, packageId=package.json()["data"]["id"]),
        headers=customer_headers,
    )
    reservation_id = reservation.json()["data"]["id"]
    total = reservation.json()["data"]["pricing"]["total"]

    preview = await test_client.get(
        "/api/finances/from-reservations",
        params={"reservationIds": reservation_id, "generateType": "both"},
        headers=admin_headers,
    )
    summary = preview.json()["data"]["summary"]
    assert summary["totalIncome"] == total
    assert summary["totalExpense"] == round(total * 0.3)

    payload = {"reservationIds": [reservation_id], "generateType": "both"}
    response = await test_client.post("/api/finances/from-reservations", json=payload, headers=admin_headers)
    data = response.json()["data"]
    assert data["created"] == 2
    assert data["details"][0]["status"] == "created"

    response = await test_client.post("/api/finances/from-reservations", json=payload, headers=admin_headers)
    data = response.json()["data"]
    assert data["created"] == 0
    assert data["skipped"] == 1

    response = await test_client.post(
        "/api/finances/from-reservations", json=dict(payload, overwrite=True), headers=admin_headers
    )
    assert response.json()["data"]["created"] == 2

    response = await test_client.post(
        "/api/finances/from-reservations", json={"reservationIds": []}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_generate_from_reservations_reports_failures_per_reservation(
    test_client, test_session, admin_headers, customer_headers, sample_package_data, sample_reservation_data
):
    """A reservation that cannot be booked into the ledger is reported while the rest are created."""
    package = await test_client.post("/api/packages", json=sample_package_data, headers=admin_headers)
    package_id = package.json()["data"]["id"]
    ids = []
    for offset in (0, 1):
        event_date = date.fromisoformat(sample_reservation_data["eventDate"]) + timedelta(days=offset)
        response = await test_client.post(
            "/api/reservations",
            json=dict(sample_reservation_data, packageId=package_id, eventDate=event_date.isoformat()),
            headers=customer_headers,
        )
        assert response.status_code == 201
        ids.append(response.json()["data"]["id"])

    broken = await test_session.get(Reservation, UUID(ids[0]))
    broken.package = {"id": broken.package["id"], "basePrice": broken.package["basePrice"]}
    await test_session.commit()

    payload = {"reservationIds": ids, "generateType": "income"}
    response = await test_client.post("/api/finances/from-reservations", json=payload, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["errors"] == 1
    assert data["created"] == 1
    statuses = {detail["reservationId"]: detail["status"] for detail in data["details"]}
    assert statuses == {ids[0]: "error", ids[1]: "created"}


@pytest.mark.asyncio
async def test_finance_analytics(test_client, admin_headers, seller_headers):
    """Revenue counts completed income only; pending income is reported apart."""
    payloads = [
        entry(type="income", amount=1000, category="reservation", status="completed"),
        entry(type="income", amount=400, category="other", status="completed"),
        entry(type="income", amount=500, category="reservation", status="pending"),
        entry(amount=200),
    ]
    for payload in payloads:
        payload.pop("date")
        response = await test_client.post("/api/finances", json=payload, headers=admin_headers)
        assert response.status_code == 201

    response = await test_client.get("/api/finances/analytics", params={"range": "last7days"}, headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["summary"] == {"totalRevenue": 1400, "pendingPayments": 500, "monthlyGrowth": 0}
    assert len(data["dailyRevenue"]) == 8
    assert sum(data["dailyRevenue"]) == 1400
    assert sum(data["monthlyRevenue"]) == 1400
    assert data["topServices"][0] == {"name": "reservation", "revenue": 1000, "bookings": 1}
    assert data["paymentStatus"] == {"pending": 500, "completed": 1600, "cancelled": 0}

    response = await test_client.get("/api/finances/analytics", params={"range": "forever"}, headers=admin_headers)
    assert response.status_code == 400

    response = await test_client.get("/api/finances/analytics", headers=seller_headers)
    assert response.status_code == 403
