"""Unit tests for roles, tokens and page access."""

from datetime import timedelta

import pytest

from tramboory.core.dependencies import decode_token, extract_bearer_token, issue_token
from tramboory.core.exceptions import AuthenticationError
from tramboory.core.roles import (
    UserRole,
    can_manage_role,
    has_permission,
    is_higher_role,
    is_protected_page,
    normalize_role,
    resolve_page_access,
)


def test_normalize_role_falls_back_to_customer():
    assert normalize_role("ADMIN") == UserRole.ADMIN
    assert normalize_role(" gerente ") == UserRole.GERENTE
    assert normalize_role("superuser") == UserRole.CUSTOMER
    assert normalize_role(None) == UserRole.CUSTOMER


def test_permissions():
    assert has_permission(UserRole.ADMIN, "anything")
    assert has_permission(UserRole.PROVEEDOR, "manage_inventory")
    assert not has_permission(UserRole.CUSTOMER, "view_reports")


def test_role_management_and_hierarchy():
    assert can_manage_role(UserRole.ADMIN, UserRole.GERENTE)
    assert can_manage_role(UserRole.GERENTE, UserRole.VENDEDOR)
    assert not can_manage_role(UserRole.GERENTE, UserRole.ADMIN)
    assert not can_manage_role(UserRole.VENDEDOR, UserRole.CUSTOMER)
    assert is_higher_role(UserRole.ADMIN, UserRole.CUSTOMER)
    assert not is_higher_role(UserRole.VENDEDOR, UserRole.PROVEEDOR)


def test_protected_pages():
    assert is_protected_page("/dashboard/finanzas")
    assert is_protected_page("/bienvenida")
    assert not is_protected_page("/api/dashboard")
    assert not is_protected_page("/galeria")


@pytest.mark.parametrize(
    "path,role,expected",
    [
        ("/dashboard", UserRole.ADMIN, None),
        ("/dashboard", UserRole.VENDEDOR, None),
        ("/dashboard", UserRole.PROVEEDOR, "/proveedor"),
        ("/dashboard", UserRole.CUSTOMER, "/reservaciones"),
        ("/proveedor/ordenes", UserRole.PROVEEDOR, None),
        ("/proveedor/ordenes", UserRole.VENDEDOR, "/reservaciones"),
        ("/inventario", UserRole.PROVEEDOR, "/proveedor"),
        ("/inventario", UserRole.GERENTE, None),
        ("/reservaciones", UserRole.CUSTOMER, None),
        ("/", UserRole.CUSTOMER, None),
        ("/perfil", UserRole.CUSTOMER, "/reservaciones"),
    ],
)
def test_resolve_page_access(path, role, expected):
    assert resolve_page_access(path, role) == expected


def test_token_round_trip():
    token = issue_token("user_1", UserRole.GERENTE, email="g@tramboory.test", name="Gerente")
    user = decode_token(token)
    assert user == {"user_id": "user_1", "email": "g@tramboory.test", "name": "Gerente", "role": UserRole.GERENTE}


def test_expired_token_rejected():
    token = issue_token("user_1", expires_in=timedelta(seconds=-5))
    with pytest.raises(AuthenticationError):
        decode_token(token)


def test_extract_bearer_token():
    assert extract_bearer_token(None) is None
    assert extract_bearer_token("Bearer abc") == "abc"
    with pytest.raises(AuthenticationError):
        extract_bearer_token("Basic abc")
    with pytest.raises(AuthenticationError):
        extract_bearer_token("Bearer")


@pytest.mark.asyncio
async def test_access_check_endpoint(test_client, supplier_headers):
    response = await test_client.get("/api/access/check", params={"path": "/dashboard"}, headers=supplier_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data == {"role": "proveedor", "path": "/dashboard", "allowed": False, "redirectTo": "/proveedor"}


@pytest.mark.asyncio
async def test_access_check_anonymous_is_customer(test_client):
    response = await test_client.get("/api/access/check", params={"path": "/reservaciones"})
    data = response.json()["data"]
    assert data["role"] == "customer"
    assert data["allowed"] is True


@pytest.mark.asyncio
async def test_roles_catalogue(test_client):
    response = await test_client.get("/api/access/roles")
    roles = [entry["role"] for entry in response.json()["data"]]
    assert roles == ["admin", "gerente", "proveedor", "vendedor", "customer"]


@pytest.mark.asyncio
async def test_invalid_token_rejected(test_client):
    response = await test_client.get("/api/reservations", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Token inválido o expirado"
