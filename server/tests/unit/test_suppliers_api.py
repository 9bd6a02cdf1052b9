"""Integration tests for suppliers, penalties, purchase orders and the supplier portal."""

from datetime import timedelta

import pytest
import pytest_asyncio

from tramboory.core.clock import business_today


@pytest_asyncio.fixture
async def supplier(test_client, admin_headers, sample_supplier_data):
    response = await test_client.post("/api/suppliers", json=sample_supplier_data, headers=admin_headers)
    assert response.status_code == 201
    return response.json()["data"]


@pytest_asyncio.fixture
async def product_code(test_client, admin_headers, sample_product_data):
    response = await test_client.post("/api/inventory/products", json=sample_product_data, headers=admin_headers)
    return response.json()["data"]["productId"]


def order_payload(supplier, product_code, **overrides):
    payload = {
        "supplierId": supplier["id"],
        "items": [
            {"productId": product_code, "productName": "Refresco de cola", "quantity": 10, "unit": "caja", "unitPrice": 35.5}
        ],
        "expectedDeliveryDate": (business_today() + timedelta(days=10)).isoformat(),
        "deliveryLocation": "bodega",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_supplier_endpoint(test_client, admin_headers, sample_supplier_data):
    """Test supplier creation."""
    response = await test_client.post(
        "/api/suppliers", json=dict(sample_supplier_data, code="dvalle"), headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["supplierId"] == "SUP000001"
    assert data["code"] == "DVALLE"
    assert data["paymentTerms"] == {"method": "transfer", "creditDays": 30, "currency": "MXN"}
    assert data["contactInfo"]["email"] == "ventas@dvalle.mx"
    assert data["penaltyScore"] == 0
    assert data["status"] == "ACTIVE"

    response = await test_client.post("/api/suppliers", json=sample_supplier_data, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Ya existe un proveedor con este código"


@pytest.mark.asyncio
async def test_supplier_requires_management(test_client, seller_headers, sample_supplier_data):
    response = await test_client.post("/api/suppliers", json=sample_supplier_data, headers=seller_headers)
    assert response.status_code == 403

    response = await test_client.get("/api/suppliers", headers=seller_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_rate_and_deactivate_supplier(test_client, admin_headers, supplier):
    response = await test_client.post(
        f"/api/suppliers/{supplier['id']}/rating",
        json={"quality": 5, "delivery": 4, "communication": 4, "pricing": 3},
        headers=admin_headers,
    )
    rating = response.json()["data"]["rating"]
    assert rating["overall"] == 4.0
    assert rating["reviewCount"] == 1

    response = await test_client.post(
        f"/api/suppliers/{supplier['id']}/rating",
        json={"quality": 6, "delivery": 4, "communication": 4, "pricing": 3},
        headers=admin_headers,
    )
    assert response.status_code == 400

    response = await test_client.delete(f"/api/suppliers/{supplier['id']}", headers=admin_headers)
    assert response.json()["data"]["isActive"] is False
    assert response.json()["data"]["status"] == "INACTIVE"

    response = await test_client.get("/api/suppliers", params={"isActive": "true"}, headers=admin_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_penalty_concepts(test_client, seller_headers):
    response = await test_client.get("/api/suppliers/penalties/concepts", headers=seller_headers)
    concepts = {entry["concept"]: entry for entry in response.json()["data"]}
    assert concepts["LATE_DELIVERY"]["defaultPoints"] == 8
    assert concepts["LATE_DELIVERY"]["defaultSeverity"] == "MODERATE"
    assert concepts["WRONG_DELIVERY_ADDRESS"]["defaultPoints"] is None


@pytest.mark.asyncio
async def test_penalty_lowers_score_until_reversed(test_client, admin_headers, supplier):
    """Active penalties subtract their points; reversing gives them back."""
    response = await test_client.post(
        "/api/suppliers/penalties",
        json={"supplierId": supplier["id"], "concept": "LATE_DELIVERY", "description": "Llegó 2 horas tarde"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    penalty = response.json()["data"]
    assert penalty["penaltyValue"] == 8
    assert penalty["severity"] == "MODERATE"
    assert penalty["status"] == "ACTIVE"
    assert penalty["supplierName"] == "Distribuidora del Valle"

    response = await test_client.get(f"/api/suppliers/{supplier['id']}", headers=admin_headers)
    assert response.json()["data"]["penaltyScore"] == -8

    response = await test_client.delete(f"/api/suppliers/penalties/{penalty['id']}", headers=admin_headers)
    assert response.json()["data"]["status"] == "REVERSED"
    response = await test_client.delete(f"/api/suppliers/penalties/{penalty['id']}", headers=admin_headers)
    assert response.status_code == 200

    response = await test_client.get(f"/api/suppliers/{supplier['id']}", headers=admin_headers)
    assert response.json()["data"]["penaltyScore"] == 0


@pytest.mark.asyncio
async def test_penalty_status_changes_adjust_score(test_client, admin_headers, supplier):
    response = await test_client.post(
        "/api/suppliers/penalties",
        json={"supplierId": supplier["id"], "concept": "QUALITY_ISSUES", "description": "Globos rotos"},
        headers=admin_headers,
    )
    penalty_id = response.json()["data"]["id"]

    await test_client.put(f"/api/suppliers/penalties/{penalty_id}", json={"status": "EXPIRED"}, headers=admin_headers)
    response = await test_client.get(f"/api/suppliers/{supplier['id']}", headers=admin_headers)
    assert response.json()["data"]["penaltyScore"] == 0

    await test_client.put(f"/api/suppliers/penalties/{penalty_id}", json={"status": "ACTIVE"}, headers=admin_headers)
    response = await test_client.get(f"/api/suppliers/{supplier['id']}", headers=admin_headers)
    assert response.json()["data"]["penaltyScore"] == -25

    response = await test_client.put(f"/api/suppliers/penalties/{penalty_id}", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "No hay campos válidos para actualizar"


@pytest.mark.asyncio
async def test_penalty_without_catalogue_defaults(test_client, admin_headers, supplier):
    response = await test_client.post(
        "/api/suppliers/penalties",
        json={"supplierId": supplier["id"], "concept": "WRONG_DELIVERY_ADDRESS", "description": "Otra sucursal"},
        headers=admin_headers,
    )
    penalty = response.json()["data"]
    assert penalty["penaltyValue"] == 5
    assert penalty["severity"] == "MINOR"

    response = await test_client.post(
        "/api/suppliers/penalties",
        json={
            "supplierId": supplier["id"],
            "concept": "OTHER",
            "description": "Reincidencia",
            "penaltyValue": 20,
        },
        headers=admin_headers,
    )
    assert response.json()["data"]["penaltyValue"] == 20


@pytest.mark.asyncio
async def test_penalty_validation(test_client, admin_headers, supplier):
    base = {"supplierId": supplier["id"], "description": "x"}

    response = await test_client.post(
        "/api/suppliers/penalties", json=dict(base, concept="INVENTADO"), headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Concepto de penalización inválido"

    response = await test_client.post(
        "/api/suppliers/penalties", json=dict(base, concept="OTHER", penaltyValue=150), headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Los puntos de penalización deben estar entre 1 y 100"

    response = await test_client.post(
        "/api/suppliers/penalties", json=dict(base, concept="OTHER", severity="TERRIBLE"), headers=admin_headers
    )
    assert response.status_code == 400

    response = await test_client.post(
        "/api/suppliers/penalties",
        json=dict(base, concept="OTHER", supplierId="00000000-0000-0000-0000-000000000000"),
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_purchase_order(test_client, admin_headers, supplier, product_code):
    """Totals come from the items; payment terms default to the supplier's."""
    response = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code), headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["purchaseOrderId"].startswith("PO-")
    assert data["status"] == "DRAFT"
    assert data["items"][0]["totalPrice"] == 355
    assert data["subtotal"] == 355
    assert data["tax"] == 56.8
    assert data["total"] == 411.8
    assert data["paymentMethod"] == "transfer"
    assert data["creditDays"] == 30
    assert data["deliveryStatus"] == "scheduled"
    assert data["daysUntilDelivery"] == 10
    assert data["statusHistory"][0]["status"] == "DRAFT"


@pytest.mark.asyncio
async def test_purchase_order_validation(test_client, admin_headers, supplier, product_code):
    response = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code, subtotal=300), headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "El subtotal no coincide con la suma de los items"

    response = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, "PROD-NOEXISTE"), headers=admin_headers
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Uno o más productos no fueron encontrados"

    response = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code, status="APPROVED"), headers=admin_headers
    )
    assert response.status_code == 400

    response = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code, items=[]), headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_purchase_order_lifecycle(test_client, admin_headers, supplier, product_code):
    """DRAFT to RECEIVED, one step at a time."""
    created = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code), headers=admin_headers
    )
    order_id = created.json()["data"]["id"]

    response = await test_client.post(f"/api/purchase-orders/{order_id}/approve", headers=admin_headers)
    assert response.status_code == 409

    for action, status in (("submit", "PENDING"), ("approve", "APPROVED"), ("order", "ORDERED")):
        response = await test_client.post(f"/api/purchase-orders/{order_id}/{action}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == status

    data = response.json()["data"]
    assert data["approvedBy"] == "user_admin"
    assert data["orderedAt"] is not None

    response = await test_client.put(
        f"/api/purchase-orders/{order_id}", json={"notes": "cambio"}, headers=admin_headers
    )
    assert response.status_code == 409

    response = await test_client.post(
        f"/api/purchase-orders/{order_id}/receive",
        json={"actualDeliveryDate": business_today().isoformat()},
        headers=admin_headers,
    )
    data = response.json()["data"]
    assert data["status"] == "RECEIVED"
    assert data["deliveryStatus"] == "delivered"
    assert [entry["status"] for entry in data["statusHistory"]] == [
        "DRAFT", "PENDING", "APPROVED", "ORDERED", "RECEIVED",
    ]

    response = await test_client.post(
        f"/api/purchase-orders/{order_id}/cancel", json={"reason": "tarde"}, headers=admin_headers
    )
    assert response.status_code == 409

    response = await test_client.delete(f"/api/purchase-orders/{order_id}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Solo se pueden eliminar órdenes en estado borrador"


@pytest.mark.asyncio
async def test_cancel_requires_reason(test_client, admin_headers, supplier, product_code):
    created = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code, status="PENDING"), headers=admin_headers
    )
    order_id = created.json()["data"]["id"]

    response = await test_client.post(f"/api/purchase-orders/{order_id}/cancel", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Se requiere una razón para cancelar la orden"

    response = await test_client.post(
        f"/api/purchase-orders/{order_id}/cancel", json={"reason": "Proveedor sin existencias"}, headers=admin_headers
    )
    data = response.json()["data"]
    assert data["status"] == "CANCELLED"
    assert data["cancellationReason"] == "Proveedor sin existencias"


@pytest.mark.asyncio
async def test_update_and_delete_draft_order(test_client, admin_headers, supplier, product_code):
    created = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code), headers=admin_headers
    )
    order_id = created.json()["data"]["id"]

    items = [{"productId": product_code, "productName": "Refresco", "quantity": 2, "unit": "caja", "unitPrice": 100}]
    response = await test_client.put(
        f"/api/purchase-orders/{order_id}", json={"items": items, "taxRate": 0}, headers=admin_headers
    )
    data = response.json()["data"]
    assert data["subtotal"] == 200
    assert data["total"] == 200

    response = await test_client.delete(f"/api/purchase-orders/{order_id}", headers=admin_headers)
    assert response.status_code == 200
    response = await test_client.get(f"/api/purchase-orders/{order_id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unknown_transition(test_client, admin_headers, supplier, product_code):
    created = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code), headers=admin_headers
    )
    order_id = created.json()["data"]["id"]
    response = await test_client.post(f"/api/purchase-orders/{order_id}/archive", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_supplier_portal(test_client, admin_headers, supplier_headers, supplier, product_code, sample_supplier_data):
    """Portal users only see and touch their own supplier's orders."""
    response = await test_client.get("/api/supplier/profile", headers=supplier_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "No hay un proveedor vinculado a este usuario"

    response = await test_client.post(
        f"/api/suppliers/{supplier['id']}/link", json={"userId": "user_proveedor"}, headers=admin_headers
    )
    assert response.json()["data"]["userId"] == "user_proveedor"

    other = await test_client.post(
        "/api/suppliers", json=dict(sample_supplier_data, name="Otra", code="OTRA"), headers=admin_headers
    )
    response = await test_client.post(
        f"/api/suppliers/{other.json()['data']['id']}/link", json={"userId": "user_proveedor"}, headers=admin_headers
    )
    assert response.status_code == 409

    own = await test_client.post(
        "/api/purchase-orders", json=order_payload(supplier, product_code), headers=admin_headers
    )
    foreign = await test_client.post(
        "/api/purchase-orders", json=order_payload(other.json()["data"], product_code), headers=admin_headers
    )

    response = await test_client.get("/api/supplier/profile", headers=supplier_headers)
    assert response.json()["data"]["code"] == "DVALLE"

    response = await test_client.get("/api/supplier/orders", headers=supplier_headers)
    assert [order["id"] for order in response.json()["data"]] == [own.json()["data"]["id"]]

    response = await test_client.get(
        "/api/supplier/orders", params={"supplierId": other.json()["data"]["id"]}, headers=supplier_headers
    )
    assert response.status_code == 403

    response = await test_client.patch(
        f"/api/supplier/orders/{foreign.json()['data']['id']}/status",
        json={"status": "ORDERED"},
        headers=supplier_headers,
    )
    assert response.status_code == 403

    response = await test_client.patch(
        f"/api/supplier/orders/{own.json()['data']['id']}/status",
        json={"status": "RECEIVED"},
        headers=supplier_headers,
    )
    data = response.json()["data"]
    assert data["status"] == "RECEIVED"
    assert data["actualDeliveryDate"] is not None
    assert data["statusHistory"][-1]["userId"] == "user_proveedor"


@pytest.mark.asyncio
async def test_portal_closed_to_other_roles(test_client, customer_headers, seller_headers):
    response = await test_client.get("/api/supplier/orders", headers=customer_headers)
    assert response.status_code == 403
    response = await test_client.get("/api/supplier/orders", headers=seller_headers)
    assert response.status_code == 403
