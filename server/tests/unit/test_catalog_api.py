"""Integration tests for the catalogue and coupon endpoints."""

from datetime import datetime, timedelta

import pytest


def coupon_payload(**overrides):
    now = datetime.utcnow()
    payload = {
        "code": "fiesta10",
        "name": "Diez por ciento",
        "discountType": "percentage",
        "discountValue": 10,
        "validFrom": (now - timedelta(days=1)).isoformat(),
        "validUntil": (now + timedelta(days=60)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_package_endpoint(test_client, manager_headers, sample_package_data):
    """Test package creation by a manager."""
    response = await test_client.post("/api/packages", json=sample_package_data, headers=manager_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Paquete creado exitosamente"
    assert body["data"]["name"] == sample_package_data["name"]
    assert body["data"]["pricing"] == {"weekday": 5000, "weekend": 6500, "holiday": 7000}
    assert body["data"]["maxGuests"] == 60
    assert "id" in body["data"]


@pytest.mark.asyncio
async def test_create_package_requires_management(test_client, seller_headers, sample_package_data):
    """Sellers can read the catalogue but not change it."""
    response = await test_client.post("/api/packages", json=sample_package_data, headers=seller_headers)

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["status"] == 403


@pytest.mark.asyncio
async def test_create_package_missing_auth(test_client, sample_package_data):
    response = await test_client.post("/api/packages", json=sample_package_data)

    assert response.status_code == 401
    assert response.json()["error"] == "No autorizado"


@pytest.mark.asyncio
async def test_create_package_invalid_data(test_client, admin_headers):
    """Test package creation with invalid data."""
    response = await test_client.post(
        "/api/packages",
        json={"name": "", "pricing": {"weekday": -1, "weekend": 0, "holiday": 0}, "maxGuests": 0},
        headers=admin_headers,
    )

    assert response.status_code == 400
    data = response.json()
    assert data["status"] == 400
    paths = {violation["path"] for violation in data["violations"]}
    assert {"name", "pricing.weekday", "maxGuests"} <= paths


@pytest.mark.asyncio
async def test_package_listing_hides_inactive(test_client, admin_headers, sample_package_data):
    """Inactive packages only show up when asked for."""
    await test_client.post("/api/packages", json=sample_package_data, headers=admin_headers)
    hidden = dict(sample_package_data, name="Paquete retirado", isActive=False)
    await test_client.post("/api/packages", json=hidden, headers=admin_headers)

    response = await test_client.get("/api/packages")
    assert [item["name"] for item in response.json()["data"]] == ["Paquete Fiesta"]

    response = await test_client.get("/api/packages", params={"includeInactive": "true"})
    assert len(response.json()["data"]) == 2


@pytest.mark.asyncio
async def test_update_and_delete_package(test_client, admin_headers, sample_package_data):
    created = await test_client.post("/api/packages", json=sample_package_data, headers=admin_headers)
    package_id = created.json()["data"]["id"]

    response = await test_client.put(
        f"/api/packages/{package_id}",
        json={"pricing": {"weekday": 5200, "weekend": 6800, "holiday": 7200}},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["pricing"]["weekday"] == 5200
    assert response.json()["data"]["name"] == sample_package_data["name"]

    response = await test_client.delete(f"/api/packages/{package_id}", headers=admin_headers)
    assert response.status_code == 200

    response = await test_client.get(f"/api/packages/{package_id}")
    assert response.status_code == 404
    assert response.json()["error"] == "Paquete no encontrado"


@pytest.mark.asyncio
async def test_thematic_slug_generated_and_unique(test_client, admin_headers):
    """Thematic slugs come from the title and must be unique."""
    payload = {"title": "Fiesta de Súper Héroes"}
    response = await test_client.post("/api/thematics", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["slug"] == "fiesta-de-super-heroes"

    response = await test_client.get("/api/thematics/slug/fiesta-de-super-heroes")
    assert response.status_code == 200

    response = await test_client.post("/api/thematics", json=payload, headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_coupon_upper_cases_code(test_client, admin_headers):
    response = await test_client.post("/api/coupons", json=coupon_payload(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["code"] == "FIESTA10"
    assert data["usedCount"] == 0
    assert data["analytics"] == {"totalUsage": 0, "totalDiscountGiven": 0, "avgOrderValue": 0}

    response = await test_client.post("/api/coupons", json=coupon_payload(), headers=admin_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_create_coupon_rejects_bad_percentage(test_client, admin_headers):
    response = await test_client.post(
        "/api/coupons", json=coupon_payload(discountValue=150), headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_coupon_accepts_aware_datetimes(test_client, admin_headers):
    """Offsets are converted to UTC before storing."""
    response = await test_client.post(
        "/api/coupons",
        json=coupon_payload(validFrom="2024-01-01T00:00:00-06:00", validUntil="2030-01-01T00:00:00Z"),
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["data"]["validFrom"].startswith("2024-01-01T06:00:00")


@pytest.mark.asyncio
async def test_validate_unknown_coupon(test_client, bookable_date):
    """Validation is public and answers 200 for unknown codes."""
    response = await test_client.post(
        "/api/coupons/validate",
        json={"code": "nada", "eventDate": bookable_date.isoformat(), "subtotal": 5000},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["valid"] is False
    assert data["reason"] == "Cupón no encontrado"
    assert data["code"] == "NADA"
    assert data["discountAmount"] == 0


@pytest.mark.asyncio
async def test_validate_coupon_computes_discount(test_client, admin_headers, bookable_date):
    await test_client.post("/api/coupons", json=coupon_payload(minOrderAmount=1000), headers=admin_headers)

    response = await test_client.post(
        "/api/coupons/validate",
        json={
            "code": "fiesta10",
            "eventDate": bookable_date.isoformat(),
            "eventTime": "14:00",
            "packagePrice": 5000,
            "foodPrice": 1000,
        },
    )
    data = response.json()["data"]
    assert data["valid"] is True
    assert data["discountAmount"] == 600
    assert data["coupon"]["code"] == "FIESTA10"

    response = await test_client.post(
        "/api/coupons/validate",
        json={"code": "FIESTA10", "eventDate": bookable_date.isoformat(), "subtotal": 500},
    )
    data = response.json()["data"]
    assert data["valid"] is False
    assert data["reason"] == "Monto mínimo requerido: $1000"


@pytest.mark.asyncio
async def test_coupon_management_requires_role(test_client, customer_headers):
    response = await test_client.get("/api/coupons", headers=customer_headers)
    assert response.status_code == 403
