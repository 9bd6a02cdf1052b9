"""Integration tests for products, stock movements and alerts."""

from datetime import timedelta

import pytest
import pytest_asyncio

from tramboory.core.clock import business_today
from tramboory.models.inventory import PRODUCT_CATEGORIES


@pytest_asyncio.fixture
async def product(test_client, admin_headers, sample_product_data):
    response = await test_client.post("/api/inventory/products", json=sample_product_data, headers=admin_headers)
    assert response.status_code == 201
    return response.json()["data"]


async def adjust(client, headers, product_code, movement_type, quantity, unit="l", **extra):
    payload = {
        "productId": product_code,
        "locationId": "bodega",
        "type": movement_type,
        "quantity": quantity,
        "unit": unit,
        "reason": "Prueba",
    }
    payload.update(extra)
    return await client.post("/api/inventory/stock/adjust", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_create_product_endpoint(test_client, manager_headers, sample_product_data):
    """Test product creation."""
    response = await test_client.post("/api/inventory/products", json=sample_product_data, headers=manager_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["productId"].startswith("PROD-")
    assert data["sku"] == "REF-COLA-600"
    assert data["stockLevels"] == {"minimum": 5, "reorderPoint": 10, "maximum": 100}
    assert data["alternativeUnits"][0]["conversionFactor"] == 7.2
    assert data["status"] == "ACTIVE"

    response = await test_client.post("/api/inventory/products", json=sample_product_data, headers=manager_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Ya existe un producto con este SKU"


@pytest.mark.asyncio
async def test_products_are_managed_by_management(test_client, seller_headers, sample_product_data):
    response = await test_client.post("/api/inventory/products", json=sample_product_data, headers=seller_headers)
    assert response.status_code == 403

    response = await test_client.get("/api/inventory/products", headers=seller_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_get_product_by_code_or_uuid(test_client, admin_headers, product):
    response = await test_client.get(f"/api/inventory/products/{product['productId']}", headers=admin_headers)
    assert response.json()["data"]["id"] == product["id"]

    response = await test_client.get(f"/api/inventory/products/{product['id']}", headers=admin_headers)
    assert response.json()["data"]["productId"] == product["productId"]

    response = await test_client.get("/api/inventory/products/PROD-NOEXISTE", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Producto no encontrado"


@pytest.mark.asyncio
async def test_entry_in_alternative_unit(test_client, admin_headers, product):
    """Quantities are stored in the product's base unit."""
    response = await adjust(test_client, admin_headers, product["productId"], "ENTRADA", 3, unit="caja")

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["inventory"]["totals"]["available"] == pytest.approx(21.6)
    assert body["inventory"]["totals"]["unit"] == "l"
    assert body["inventory"]["productCode"] == product["productId"]
    assert len(body["inventory"]["batches"]) == 1
    assert body["inventory"]["batches"][0]["costPerUnit"] == 20

    movement = body["movements"][0]
    assert movement["type"] == "ENTRADA"
    assert movement["toLocation"] == "bodega"
    assert movement["quantity"] == pytest.approx(21.6)
    assert movement["unit"] == "l"


@pytest.mark.asyncio
async def test_unknown_unit_rejected(test_client, admin_headers, product):
    response = await adjust(test_client, admin_headers, product["productId"], "ENTRADA", 1, unit="bolsa")
    assert response.status_code == 400
    assert response.json()["error"] == "No se encontró conversión de bolsa a l"


@pytest.mark.asyncio
async def test_outflow_consumes_oldest_batches_first(test_client, admin_headers, product):
    """Outflow cost is the weighted cost of the batches it drains."""
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 10, costPerUnit=10)
    await adjust(test_client, admin_headers, code, "ENTRADA", 10, costPerUnit=20)

    response = await adjust(test_client, admin_headers, code, "SALIDA", 15)
    assert response.status_code == 200
    body = response.json()["data"]
    assert body["inventory"]["totals"]["available"] == 5
    batches = body["inventory"]["batches"]
    assert len(batches) == 1
    assert batches[0]["quantity"] == 5
    assert batches[0]["costPerUnit"] == 20

    movement = body["movements"][0]
    assert movement["type"] == "SALIDA"
    assert movement["fromLocation"] == "bodega"
    assert movement["quantity"] == 15
    assert movement["cost"]["totalCost"] == 200
    assert movement["cost"]["currency"] == "MXN"


@pytest.mark.asyncio
async def test_outflow_above_available_is_refused(test_client, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 4)

    response = await adjust(test_client, admin_headers, code, "MERMA", 6)
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "Stock insuficiente. Disponible: 4, Solicitado: 6"
    assert body["requested_quantity"] == 6
    assert body["available_quantity"] == 4

    response = await test_client.get(
        "/api/inventory/stock", params={"productId": code}, headers=admin_headers
    )
    assert response.json()["data"][0]["totals"]["available"] == 4


@pytest.mark.asyncio
async def test_zero_quantity_rejected(test_client, admin_headers, product):
    response = await adjust(test_client, admin_headers, product["productId"], "AJUSTE", 0)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_low_stock_alerts_raised_once(test_client, admin_headers, product):
    """Crossing the reorder point and the minimum raises one alert each."""
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 12)
    await adjust(test_client, admin_headers, code, "SALIDA", 3)
    await adjust(test_client, admin_headers, code, "SALIDA", 5)
    await adjust(test_client, admin_headers, code, "SALIDA", 1)

    response = await test_client.get("/api/inventory/alerts", headers=admin_headers)
    body = response.json()
    assert body["count"] == 2
    assert [alert["type"] for alert in body["data"]] == ["LOW_STOCK", "REORDER_POINT"]
    low_stock = body["data"][0]
    assert low_stock["priority"] == "HIGH"
    assert low_stock["threshold"] == 5
    assert low_stock["currentValue"] == 4

    response = await test_client.post("/api/inventory/alerts/check", headers=admin_headers)
    assert response.json()["data"] == []

    response = await test_client.patch(
        f"/api/inventory/alerts/{low_stock['alertId']}/resolve",
        json={"resolution": "Pedido enviado"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    resolved = response.json()["data"]
    assert resolved["isActive"] is False
    assert resolved["resolvedBy"] == "user_admin"

    response = await test_client.get("/api/inventory/alerts", headers=admin_headers)
    assert response.json()["count"] == 1


@pytest.mark.asyncio
async def test_empty_location_raises_critical_alert(test_client, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 2)

    response = await test_client.get(
        "/api/inventory/alerts", params={"type": "LOW_STOCK"}, headers=admin_headers
    )
    alert = response.json()["data"][0]
    assert alert["priority"] == "HIGH"
    await test_client.patch(f"/api/inventory/alerts/{alert['alertId']}/resolve", headers=admin_headers)

    await adjust(test_client, admin_headers, code, "SALIDA", 2)
    response = await test_client.get(
        "/api/inventory/alerts", params={"type": "LOW_STOCK"}, headers=admin_headers
    )
    assert [alert["priority"] for alert in response.json()["data"]] == ["CRITICAL"]


@pytest.mark.asyncio
async def test_resolve_unknown_alert(test_client, admin_headers):
    response = await test_client.patch("/api/inventory/alerts/ALERT-NADA/resolve", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_transfer_between_locations(test_client, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 30, costPerUnit=12)

    response = await test_client.post(
        "/api/inventory/stock/transfer",
        json={"productId": code, "fromLocationId": "bodega", "toLocationId": "salon", "quantity": 8, "unit": "l"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["from"]["totals"]["available"] == 22
    assert data["to"]["totals"]["available"] == 8
    assert data["to"]["batches"][0]["costPerUnit"] == 12
    assert [movement["type"] for movement in data["movements"]] == ["TRANSFERENCIA", "TRANSFERENCIA"]
    assert data["movements"][0]["fromLocation"] == "bodega"
    assert data["movements"][1]["toLocation"] == "salon"


@pytest.mark.asyncio
async def test_transfer_validation(test_client, admin_headers, product):
    code = product["productId"]
    response = await test_client.post(
        "/api/inventory/stock/transfer",
        json={"productId": code, "fromLocationId": "bodega", "toLocationId": "bodega", "quantity": 1, "unit": "l"},
        headers=admin_headers,
    )
    assert response.status_code == 400

    await adjust(test_client, admin_headers, code, "ENTRADA", 1)
    response = await test_client.post(
        "/api/inventory/stock/transfer",
        json={"productId": code, "fromLocationId": "bodega", "toLocationId": "salon", "quantity": 5, "unit": "l"},
        headers=admin_headers,
    )
    assert response.status_code == 409

    response = await test_client.get("/api/inventory/stock", params={"locationId": "salon"}, headers=admin_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_reserve_and_release(test_client, admin_headers, product):
    """Reserved stock leaves the available total until released."""
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 20)

    payload = {"productId": code, "locationId": "bodega", "quantity": 6, "unit": "l", "reservedFor": "RES-1234"}
    response = await test_client.post("/api/inventory/stock/reserve", json=payload, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()["data"]
    assert body["inventory"]["totals"]["available"] == 14
    assert body["inventory"]["totals"]["reserved"] == 6
    assert body["movements"][0]["metadata"]["reservedFor"] == "RES-1234"

    response = await test_client.post(
        "/api/inventory/stock/reserve", json=dict(payload, quantity=50), headers=admin_headers
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Stock insuficiente para reservar. Disponible: 14, Solicitado: 50"

    release = {"productId": code, "locationId": "bodega", "quantity": 4, "unit": "l"}
    response = await test_client.post("/api/inventory/stock/release", json=release, headers=admin_headers)
    totals = response.json()["data"]["inventory"]["totals"]
    assert totals["available"] == 18
    assert totals["reserved"] == 2

    response = await test_client.post(
        "/api/inventory/stock/release", json=dict(release, quantity=3), headers=admin_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_reserve_without_inventory(test_client, admin_headers, product):
    response = await test_client.post(
        "/api/inventory/stock/reserve",
        json={"productId": product["productId"], "locationId": "salon", "quantity": 1, "unit": "l", "reservedFor": "x"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Inventario no encontrado"


@pytest.mark.asyncio
async def test_consume_records_outflow(test_client, seller_headers, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 10)

    response = await test_client.post(
        "/api/inventory/stock/consume",
        json={"productId": code, "locationId": "bodega", "quantity": 1, "unit": "caja", "consumedFor": "Evento Sofía"},
        headers=seller_headers,
    )
    assert response.status_code == 200
    body = response.json()["data"]
    assert body["inventory"]["totals"]["available"] == pytest.approx(2.8)
    assert body["movements"][0]["reason"] == "Consumo para Evento Sofía"

    response = await test_client.get(
        "/api/inventory/movements", params={"type": "SALIDA"}, headers=admin_headers
    )
    assert response.json()["pagination"]["total"] == 1


@pytest.mark.asyncio
async def test_deactivate_product_with_stock(test_client, admin_headers, product):
    """A product can only be deactivated once its stock is gone."""
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 2)

    response = await test_client.delete(f"/api/inventory/products/{code}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "No se puede eliminar un producto con stock disponible"

    await adjust(test_client, admin_headers, code, "SALIDA", 2)
    response = await test_client.delete(f"/api/inventory/products/{code}", headers=admin_headers)
    assert response.status_code == 200

    response = await test_client.get(f"/api/inventory/products/{code}", headers=admin_headers)
    assert response.json()["data"]["status"] == "INACTIVE"

    response = await test_client.post(f"/api/inventory/products/{code}/reactivate", headers=admin_headers)
    assert response.json()["data"]["isActive"] is True


@pytest.mark.asyncio
async def test_inventory_summary(test_client, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 10, costPerUnit=15)
    await adjust(test_client, admin_headers, code, "ENTRADA", 3, costPerUnit=15, locationId="salon")

    response = await test_client.get("/api/inventory/summary", headers=admin_headers)
    data = response.json()["data"]
    assert data["totalProducts"] == 1
    assert data["totalValue"] == 195
    assert data["byLocation"] == {"bodega": 150, "salon": 45}
    assert data["byCategory"] == {"bebidas": 195}
    assert data["byProduct"][0]["quantity"] == 13
    assert data["lowStockItems"] == 1


@pytest.mark.asyncio
async def test_quantity_lost_in_conversion_rejected(test_client, admin_headers, product):
    """A quantity that rounds to nothing in the base unit is refused before touching stock."""
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 5)

    response = await adjust(test_client, admin_headers, code, "AJUSTE", -0.0000001)
    assert response.status_code == 400
    assert response.json()["error"] == "La cantidad debe ser distinta de cero"

    response = await test_client.get("/api/inventory/stock", params={"productId": code}, headers=admin_headers)
    assert response.json()["data"][0]["totals"]["available"] == 5


@pytest.mark.asyncio
async def test_expired_batches_leave_available_stock(test_client, admin_headers, product):
    """The alert sweep flags expired batches, which can no longer be taken out or reserved."""
    code = product["productId"]
    expired_on = business_today() - timedelta(days=2)
    await adjust(test_client, admin_headers, code, "ENTRADA", 8, expiryDate=expired_on.isoformat())

    response = await test_client.post("/api/inventory/alerts/check", headers=admin_headers)
    assert response.status_code == 200
    assert "LOW_STOCK" in [alert["type"] for alert in response.json()["data"]]

    response = await test_client.get("/api/inventory/stock", params={"productId": code}, headers=admin_headers)
    inventory = response.json()["data"][0]
    assert [batch["status"] for batch in inventory["batches"]] == ["expired"]
    assert inventory["totals"]["available"] == 0

    response = await adjust(test_client, admin_headers, code, "SALIDA", 1)
    assert response.status_code == 409
    assert response.json()["available_quantity"] == 0

    response = await test_client.post(
        "/api/inventory/stock/reserve",
        json={"productId": code, "locationId": "bodega", "quantity": 1, "unit": "l", "reservedFor": "RES-1"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_outflow_skips_batches_expired_since_last_sweep(test_client, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 4, expiryDate=business_today().isoformat())
    await adjust(test_client, admin_headers, code, "ENTRADA", 6)

    response = await adjust(test_client, admin_headers, code, "SALIDA", 5)
    assert response.status_code == 200
    inventory = response.json()["data"]["inventory"]
    assert inventory["totals"]["available"] == 1
    statuses = {batch["status"]: batch["quantity"] for batch in inventory["batches"]}
    assert statuses == {"expired": 4, "available": 1}


@pytest.mark.asyncio
async def test_expired_product_alert_is_critical(test_client, admin_headers, product):
    code = product["productId"]
    expired_on = business_today() - timedelta(days=1)
    response = await adjust(test_client, admin_headers, code, "ENTRADA", 30, expiryDate=expired_on.isoformat())
    batch_id = response.json()["data"]["inventory"]["batches"][0]["batchId"]

    response = await test_client.get(
        "/api/inventory/alerts", params={"type": "EXPIRED_PRODUCT"}, headers=admin_headers
    )
    alerts = response.json()["data"]
    assert len(alerts) == 1
    assert alerts[0]["priority"] == "CRITICAL"
    assert alerts[0]["batchId"] == batch_id
    assert alerts[0]["expiryDate"] == expired_on.isoformat()
    assert alerts[0]["currentValue"] == 30


@pytest.mark.asyncio
async def test_expiry_warning_priority_follows_days_left(test_client, admin_headers, product):
    """Batches expiring within three days are HIGH, later ones inside the window MEDIUM."""
    code = product["productId"]
    today = business_today()
    soon = (today + timedelta(days=3)).isoformat()
    later = (today + timedelta(days=6)).isoformat()
    for expiry in (soon, later, (today + timedelta(days=30)).isoformat()):
        await adjust(test_client, admin_headers, code, "ENTRADA", 30, expiryDate=expiry)

    response = await test_client.get(
        "/api/inventory/alerts", params={"type": "EXPIRY_WARNING"}, headers=admin_headers
    )
    alerts = {alert["expiryDate"]: alert for alert in response.json()["data"]}
    assert set(alerts) == {soon, later}
    assert alerts[soon]["priority"] == "HIGH"
    assert alerts[soon]["message"].endswith("caduca en 3 días")
    assert alerts[later]["priority"] == "MEDIUM"
    assert all(alert["batchId"] for alert in alerts.values())


@pytest.mark.asyncio
async def test_stock_filtered_by_expiring_soon(test_client, admin_headers, product):
    code = product["productId"]
    today = business_today()
    await adjust(test_client, admin_headers, code, "ENTRADA", 10, expiryDate=(today + timedelta(days=5)).isoformat())
    await adjust(test_client, admin_headers, code, "ENTRADA", 10, locationId="salon")

    response = await test_client.get("/api/inventory/stock", params={"expiringSoon": "true"}, headers=admin_headers)
    assert [inventory["locationId"] for inventory in response.json()["data"]] == ["bodega"]

    response = await test_client.get(
        "/api/inventory/stock", params={"expiringSoon": "true", "expiryDays": 3}, headers=admin_headers
    )
    assert response.json()["data"] == []

    response = await test_client.get("/api/inventory/stock", headers=admin_headers)
    assert len(response.json()["data"]) == 2


@pytest.mark.asyncio
async def test_categories_merge_defaults_with_products(test_client, admin_headers, product, sample_product_data):
    """Categories in use are added to the defaults unless they only differ in case."""
    await test_client.post(
        "/api/inventory/products",
        json=dict(sample_product_data, sku="PIN-GRANDE", name="Piñata grande", category="piñatas"),
        headers=admin_headers,
    )

    response = await test_client.get("/api/inventory/categories", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["source"] == "merged"
    assert data["dbCount"] == 2
    assert data["totalCount"] == len(PRODUCT_CATEGORIES) + 1
    assert "piñatas" in data["categories"]
    assert "bebidas" not in data["categories"]
    assert data["categories"] == sorted(data["categories"], key=str.casefold)


@pytest.mark.asyncio
async def test_initiate_stock_opens_location_once(test_client, admin_headers, product):
    code = product["productId"]
    response = await test_client.get("/api/inventory/products/without-inventory", headers=admin_headers)
    assert [item["productId"] for item in response.json()["data"]] == [code]

    payload = {"productId": code, "locationId": "cocina"}
    response = await test_client.post("/api/inventory/stock/initiate", json=payload, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()["data"]
    assert body["inventory"]["locationId"] == "cocina"
    assert body["inventory"]["totals"]["available"] == 0
    assert body["inventory"]["batches"] == []
    assert body["movements"] == []

    response = await test_client.post("/api/inventory/stock/initiate", json=payload, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Este producto ya tiene inventario en esta ubicación"

    response = await test_client.get("/api/inventory/products/without-inventory", headers=admin_headers)
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_initiate_stock_with_first_batch(test_client, admin_headers, product):
    payload = {
        "productId": product["productId"],
        "locationId": "salon",
        "quantity": 2,
        "unit": "caja",
        "batchId": "INIT-001",
        "costPerUnit": 18,
    }
    response = await test_client.post("/api/inventory/stock/initiate", json=payload, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()["data"]
    assert body["inventory"]["totals"]["available"] == pytest.approx(14.4)
    assert body["inventory"]["batches"][0]["batchId"] == "INIT-001"
    movement = body["movements"][0]
    assert movement["type"] == "ENTRADA"
    assert movement["reason"] == "Inventario inicial"
    assert movement["toLocation"] == "salon"

    response = await test_client.post(
        "/api/inventory/stock/initiate", json=dict(payload, productId="PROD-NOEXISTE"), headers=admin_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_check_deletion_reports_dependencies(test_client, admin_headers, seller_headers, product):
    code = product["productId"]
    url = f"/api/inventory/products/{code}/check-deletion"

    response = await test_client.get(url, headers=admin_headers)
    data = response.json()["data"]
    assert data["canDelete"] is True
    assert data["canDeactivate"] is True
    assert data["blockers"] == []

    await adjust(test_client, admin_headers, code, "ENTRADA", 3)
    response = await test_client.get(url, headers=admin_headers)
    data = response.json()["data"]
    assert data["canDelete"] is False
    assert data["canDeactivate"] is False
    assert data["blockers"] == [
        "Producto tiene registros de inventario activos (1)",
        "Producto tiene historial de movimientos (1)",
    ]
    assert data["dependencies"] == {"inventories": 1, "movements": 1, "stockOnHand": 3}
    assert "Puede eliminarse físicamente: NO" in data["report"]

    await adjust(test_client, admin_headers, code, "SALIDA", 3)
    response = await test_client.get(url, headers=admin_headers)
    assert response.json()["data"]["canDeactivate"] is True

    response = await test_client.get(url, headers=seller_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_inventory_reports(test_client, admin_headers, product):
    code = product["productId"]
    await adjust(test_client, admin_headers, code, "ENTRADA", 10, costPerUnit=15)
    await adjust(test_client, admin_headers, code, "SALIDA", 4)
    await adjust(test_client, admin_headers, code, "ENTRADA", 2, costPerUnit=15, locationId="salon")

    response = await test_client.get("/api/inventory/reports", headers=admin_headers)
    assert response.status_code == 200
    report = response.json()["data"]
    assert report["type"] == "summary"
    assert report["summary"] == {"totalProducts": 1, "totalValue": 120, "lowStockItems": 1, "expiringSoon": 0}
    top = report["topProducts"][0]
    assert top["productId"] == code
    assert top["totalMovements"] == 3
    assert top["currentStock"] == 8
    assert report["categoryBreakdown"] == [
        {"category": "bebidas", "productCount": 2, "totalValue": 120, "percentage": 100}
    ]
    assert sorted(movement["type"] for movement in report["movements"]) == ["ENTRADA", "ENTRADA", "SALIDA"]

    response = await test_client.get(
        "/api/inventory/reports", params={"type": "valuation", "locationId": "bodega"}, headers=admin_headers
    )
    report = response.json()["data"]
    assert report["summary"]["totalValue"] == 90
    assert report["valuation"] == [
        {
            "productId": code,
            "name": "Refresco de cola",
            "sku": "REF-COLA-600",
            "unit": "l",
            "quantity": 6,
            "value": 90,
            "averageCost": 15,
        }
    ]

    response = await test_client.get(
        "/api/inventory/reports", params={"type": "alerts", "locationId": "salon"}, headers=admin_headers
    )
    alerts = response.json()["data"]["alerts"]
    assert {alert["type"] for alert in alerts} == {"LOW_STOCK", "REORDER_POINT"}
    assert all(alert["locationId"] == "salon" for alert in alerts)

    response = await test_client.get("/api/inventory/reports", params={"type": "ventas"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == (
        "Tipo de reporte no válido. Use: summary, movements, valuation, alerts, o categories"
    )
