"""Integration tests for booking, availability and payment endpoints."""

from datetime import timedelta

import pytest
import pytest_asyncio

from tramboory.core.clock import business_today
from tramboory.core.roles import UserRole


def next_weekday(weekday: int):
    """First date inside the booking window falling on ``weekday`` (Monday = 0)."""
    day = business_today() + timedelta(days=7)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day


@pytest_asyncio.fixture
async def package_id(test_client, admin_headers, sample_package_data):
    response = await test_client.post("/api/packages", json=sample_package_data, headers=admin_headers)
    return response.json()["data"]["id"]


@pytest.fixture
def booking(sample_reservation_data, package_id):
    """Reservation request for the next bookable Monday."""
    return dict(sample_reservation_data, packageId=package_id, eventDate=next_weekday(0).isoformat())


@pytest.mark.asyncio
async def test_create_reservation_endpoint(test_client, customer_headers, booking):
    """Test reservation creation snapshots package and block."""
    response = await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Reserva creada exitosamente"
    data = body["data"]
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "pending"
    assert data["package"]["name"] == "Paquete Fiesta"
    assert data["package"]["basePrice"] == 5000
    assert data["eventDuration"] == 3.5
    assert data["eventBlock"]["name"] == "Lunes a Viernes - Tarde"
    assert data["isRestDay"] is False
    assert data["customer"]["email"] == "ana@example.com"
    assert data["child"] == {"name": "Sofía", "age": 6}
    assert data["pricing"]["subtotal"] == 5000
    assert data["pricing"]["total"] == 5000
    assert data["userId"] == "user_customer"


@pytest.mark.asyncio
async def test_create_reservation_missing_auth(test_client, booking):
    response = await test_client.post("/api/reservations", json=booking)

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert data["success"] is False


@pytest.mark.asyncio
async def test_create_reservation_unknown_package(test_client, customer_headers, booking):
    booking["packageId"] = "00000000-0000-0000-0000-000000000000"
    response = await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "Paquete no encontrado"


@pytest.mark.asyncio
async def test_rest_day_adds_fee(test_client, customer_headers, booking):
    """Tuesdays are a releasable rest day with a surcharge."""
    booking["eventDate"] = next_weekday(1).isoformat()
    response = await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["isRestDay"] is True
    assert data["restDayFee"] == 1500
    assert data["pricing"]["restDayFee"] == 1500
    assert data["pricing"]["subtotal"] == 5000
    assert data["pricing"]["total"] == 6500


@pytest.mark.asyncio
async def test_weekend_uses_weekend_price(test_client, customer_headers, booking):
    booking["eventDate"] = next_weekday(5).isoformat()
    response = await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    data = response.json()["data"]
    assert data["package"]["basePrice"] == 6500
    assert data["eventBlock"]["name"] == "Fin de Semana - Tarde"


@pytest.mark.asyncio
async def test_booking_window_enforced(test_client, customer_headers, booking):
    booking["eventDate"] = (business_today() + timedelta(days=2)).isoformat()
    response = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    assert response.status_code == 400
    assert "7 días de anticipación" in response.json()["error"]

    booking["eventDate"] = (business_today() + timedelta(days=45)).isoformat()
    response = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    assert response.status_code == 400
    assert "30 días" in response.json()["error"]


@pytest.mark.asyncio
async def test_full_slot_rejected(test_client, customer_headers, make_headers, booking):
    """A second booking of the same block slot is refused with a conflict."""
    first = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    assert first.status_code == 201

    other = make_headers(UserRole.CUSTOMER, user_id="user_other", email="otro@tramboory.test")
    second = await test_client.post("/api/reservations", json=booking, headers=other)

    assert second.status_code == 409
    data = second.json()
    assert data["code"] == "SLOT_FULL"
    assert data["retryable"] is False
    assert data["error"] == "El horario seleccionado ya no está disponible"


@pytest.mark.asyncio
async def test_cancelled_reservation_frees_slot(test_client, customer_headers, seller_headers, booking):
    first = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = first.json()["data"]["id"]

    response = await test_client.patch(
        f"/api/reservations/{reservation_id}", json={"status": "cancelled"}, headers=seller_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "cancelled"

    second = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    assert second.status_code == 201


@pytest.mark.asyncio
async def test_idempotent_create_replays_response(test_client, customer_headers, booking):
    """Repeating a keyed request returns the first reservation."""
    headers = dict(customer_headers, **{"Idempotency-Key": "reserva-ana-1"})
    first = await test_client.post("/api/reservations", json=booking, headers=headers)
    second = await test_client.post("/api/reservations", json=booking, headers=headers)

    assert first.status_code == second.status_code == 201
    assert first.json()["data"]["id"] == second.json()["data"]["id"]

    listing = await test_client.get("/api/reservations", headers=customer_headers)
    assert len(listing.json()["data"]) == 1


@pytest.mark.asyncio
async def test_idempotency_key_reused_with_other_body(test_client, customer_headers, booking):
    headers = dict(customer_headers, **{"Idempotency-Key": "reserva-ana-2"})
    await test_client.post("/api/reservations", json=booking, headers=headers)

    changed = dict(booking, specialComments="Otro comentario")
    response = await test_client.post("/api/reservations", json=changed, headers=headers)

    assert response.status_code == 409
    assert response.json()["code"] == "IDEMPOTENCY_KEY_MISMATCH"


@pytest.mark.asyncio
async def test_customers_only_see_their_reservations(
    test_client, customer_headers, seller_headers, make_headers, booking
):
    created = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = created.json()["data"]["id"]
    other = make_headers(UserRole.CUSTOMER, user_id="user_other")

    response = await test_client.get("/api/reservations", headers=other)
    assert response.json()["data"] == []

    response = await test_client.get(f"/api/reservations/{reservation_id}", headers=other)
    assert response.status_code == 403

    response = await test_client.get("/api/reservations", headers=seller_headers)
    assert [item["id"] for item in response.json()["data"]] == [reservation_id]

    response = await test_client.get(f"/api/reservations/{reservation_id}", headers=customer_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_reservation_requires_staff(test_client, customer_headers, booking):
    created = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = created.json()["data"]["id"]

    response = await test_client.patch(
        f"/api/reservations/{reservation_id}", json={"status": "confirmed"}, headers=customer_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_reservation_rejects_unknown_status(test_client, customer_headers, seller_headers, booking):
    created = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = created.json()["data"]["id"]

    response = await test_client.patch(
        f"/api/reservations/{reservation_id}", json={"status": "archivada"}, headers=seller_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Estado inválido"


@pytest.mark.asyncio
async def test_paid_status_confirms_and_books_income(test_client, customer_headers, admin_headers, booking):
    """A full payment confirms the reservation and writes one income entry."""
    created = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = created.json()["data"]["id"]

    for _ in range(2):
        response = await test_client.post(
            f"/api/admin/reservations/{reservation_id}/payment-status",
            json={"paymentStatus": "paid", "amountPaid": 5000, "paymentMethod": "transfer"},
            headers=admin_headers,
        )
        assert response.status_code == 200

    data = response.json()["data"]
    assert data["status"] == "confirmed"
    assert data["paymentStatus"] == "paid"
    assert data["amountPaid"] == 5000
    assert data["paymentDate"] is not None

    finances = await test_client.get("/api/finances", headers=admin_headers)
    entries = finances.json()["data"]
    assert len(entries) == 1
    income = entries[0]
    assert income["type"] == "income"
    assert income["category"] == "reservation"
    assert income["amount"] == 5000
    assert income["isSystemGenerated"] is True
    assert income["isEditable"] is False
    assert income["reservation"]["reservationId"] == reservation_id
    assert income["reference"] == f"RES-{reservation_id[-8:].upper()}"
    assert "paquete-fiesta" in income["tags"]


@pytest.mark.asyncio
async def test_partial_payment_keeps_pending(test_client, customer_headers, seller_headers, booking):
    created = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = created.json()["data"]["id"]

    response = await test_client.post(
        f"/api/admin/reservations/{reservation_id}/payment-status",
        json={"paymentStatus": "partial", "amountPaid": 2000},
        headers=seller_headers,
    )
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["paymentStatus"] == "partial"
    assert data["amountPaid"] == 2000


@pytest.mark.asyncio
async def test_invalid_payment_status(test_client, customer_headers, admin_headers, booking):
    created = await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    reservation_id = created.json()["data"]["id"]

    response = await test_client.post(
        f"/api/admin/reservations/{reservation_id}/payment-status",
        json={"paymentStatus": "refunded"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Estado de pago inválido"


@pytest.mark.asyncio
async def test_reservation_with_coupon(test_client, customer_headers, admin_headers, booking):
    """Coupons discount the booking and count one use."""
    coupon = {
        "code": "FIESTA500",
        "name": "Quinientos",
        "discountType": "fixed_amount",
        "discountValue": 500,
        "validFrom": "2024-01-01T00:00:00",
        "validUntil": "2099-01-01T00:00:00",
    }
    created = await test_client.post("/api/coupons", json=coupon, headers=admin_headers)
    coupon_id = created.json()["data"]["id"]

    response = await test_client.post(
        "/api/reservations", json=dict(booking, couponCode="fiesta500"), headers=customer_headers
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["couponCode"] == "FIESTA500"
    assert data["pricing"]["discount"] == 500
    assert data["pricing"]["total"] == 4500

    stored = await test_client.get(f"/api/coupons/{coupon_id}", headers=admin_headers)
    assert stored.json()["data"]["usedCount"] == 1
    assert stored.json()["data"]["analytics"]["totalDiscountGiven"] == 500


@pytest.mark.asyncio
async def test_unknown_coupon_rejects_reservation(test_client, customer_headers, booking):
    response = await test_client.post(
        "/api/reservations", json=dict(booking, couponCode="NOEXISTE"), headers=customer_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Cupón no encontrado"


@pytest.mark.asyncio
async def test_reservation_analytics(test_client, customer_headers, admin_headers, booking):
    """Bookings made today show up by day, by month and by package."""
    await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    response = await test_client.get(
        "/api/reservations/analytics", params={"range": "last7days"}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["summary"]["totalReservations"] == 1
    assert data["summary"]["pendingReservations"] == 1
    assert data["summary"]["occupancyRate"] == 0
    assert data["statusBreakdown"] == {"pending": 1, "confirmed": 0, "cancelled": 0, "completed": 0}
    assert len(data["dailyReservations"]) == 8
    assert sum(data["dailyReservations"]) == 1
    assert sum(data["monthlyReservations"]) == 1
    assert sum(data["monthlyRevenue"]) == 5000
    assert data["byPackage"] == [{"package": "Paquete Fiesta", "count": 1, "revenue": 5000}]
    assert data["peakHours"] == [{"hour": 14, "count": 1}]
    assert data["averageRevenue"] == 5000

    response = await test_client.get("/api/reservations/analytics", headers=customer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_available_blocks(test_client, customer_headers, booking):
    """Booked slots report no remaining capacity."""
    day = booking["eventDate"]
    response = await test_client.get("/api/reservations/available-blocks", params={"date": day})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["dayOfWeek"] == 1
    assert data["isRestDay"] is False
    slot = data["blocks"][0]["slots"][0]
    assert (slot["time"], slot["endTime"]) == ("14:00", "17:30")
    assert slot["available"] is True
    assert slot["remainingCapacity"] == slot["totalCapacity"] == 1

    await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    response = await test_client.get("/api/reservations/available-blocks", params={"date": day})
    slot = response.json()["data"]["blocks"][0]["slots"][0]
    assert slot["available"] is False
    assert slot["remainingCapacity"] == 0


@pytest.mark.asyncio
async def test_available_blocks_requires_date(test_client):
    response = await test_client.get("/api/reservations/available-blocks")
    assert response.status_code == 400
    assert response.json()["error"] == "El parámetro date es requerido"


@pytest.mark.asyncio
async def test_legacy_available_slots_match_exact_start_time(test_client, customer_headers, booking):
    """Business-hours slots only count reservations starting at the same time."""
    await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    response = await test_client.get("/api/reservations/available-slots", params={"date": booking["eventDate"]})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["defaultEventDuration"] == 3.5
    slots = {slot["time"]: slot for slot in data["slots"]}
    assert list(slots) == ["14:00", "17:30"]
    assert slots["14:00"]["available"] is False
    assert slots["14:00"]["remainingCapacity"] == 0
    assert slots["17:30"]["available"] is True
    assert slots["17:30"]["totalCapacity"] == 1


@pytest.mark.asyncio
async def test_availability_range(test_client, customer_headers, booking):
    await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    day = booking["eventDate"]

    response = await test_client.get(
        "/api/reservations/availability", params={"startDate": day, "endDate": day}
    )
    body = response.json()
    assert body["data"] == {day: "limited"}
    assert body["meta"] == {"startDate": day, "endDate": day, "totalDays": 1}


@pytest.mark.asyncio
async def test_month_availability(test_client, customer_headers, seller_headers, booking):
    await test_client.post("/api/reservations", json=booking, headers=customer_headers)
    year, month, _ = (int(part) for part in booking["eventDate"].split("-"))

    response = await test_client.get(
        "/api/admin/availability/month", params={"year": year, "month": month}, headers=seller_headers
    )
    assert response.status_code == 200
    day = response.json()["data"][booking["eventDate"]]
    assert day["totalSlots"] == 1
    assert day["availableSlots"] == 0
    assert day["available"] is False
    assert day["hasReservations"] is True

    response = await test_client.get(
        "/api/admin/availability/month", params={"year": year, "month": 13}, headers=seller_headers
    )
    assert response.status_code == 400

    response = await test_client.get(
        "/api/admin/availability/month", params={"year": 10000, "month": month}, headers=seller_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Los parámetros year y month son requeridos y deben ser válidos"


@pytest.mark.asyncio
async def test_day_details(test_client, customer_headers, seller_headers, booking):
    await test_client.post("/api/reservations", json=booking, headers=customer_headers)

    response = await test_client.get(
        "/api/admin/availability/day-details", params={"date": booking["eventDate"]}, headers=seller_headers
    )
    data = response.json()["data"]
    assert data["totalRevenue"] == 5000
    assert data["averageEventValue"] == 5000
    assert data["reservations"][0]["packageName"] == "Paquete Fiesta"
    assert data["timeBlocks"][0]["slots"][0]["reservations"][0]["customer"]["name"] == "Ana López"


@pytest.mark.asyncio
async def test_public_config(test_client):
    """The default configuration is created on first access."""
    response = await test_client.get("/api/public/config")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["advanceBookingDays"] == 30
    assert data["minAdvanceBookingDays"] == 7
    assert data["restDays"] == [{"day": 2, "name": "Martes", "fee": 1500, "canBeReleased": True}]


@pytest.mark.asyncio
async def test_update_system_config(test_client, admin_headers, manager_headers):
    response = await test_client.put(
        "/api/system-config", json={"advanceBookingDays": 60}, headers=manager_headers
    )
    assert response.status_code == 403

    response = await test_client.put(
        "/api/system-config", json={"advanceBookingDays": 60}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["advanceBookingDays"] == 60

    response = await test_client.put(
        "/api/system-config", json={"minAdvanceBookingDays": 90}, headers=admin_headers
    )
    assert response.status_code == 400

    response = await test_client.put(
        "/api/system-config",
        json={"restDays": [{"day": 2, "name": "Martes"}, {"day": 2, "name": "Otra vez"}]},
        headers=admin_headers,
    )
    assert response.status_code == 400
