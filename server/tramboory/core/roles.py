"""User roles, permissions and page access rules."""

from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """Role carried in the ``role`` claim of a session token."""

    CUSTOMER = "customer"
    ADMIN = "admin"
    PROVEEDOR = "proveedor"
    VENDEDOR = "vendedor"
    GERENTE = "gerente"


DEFAULT_ROLE = UserRole.CUSTOMER

ROLES: dict[UserRole, dict] = {
    UserRole.CUSTOMER: {
        "label": "Cliente",
        "description": "Usuario cliente con acceso básico",
        "permissions": ["view_profile", "edit_profile", "view_products"],
    },
    UserRole.ADMIN: {
        "label": "Administrador",
        "description": "Acceso completo al sistema",
        "permissions": ["*"],
    },
    UserRole.PROVEEDOR: {
        "label": "Proveedor",
        "description": "Gestión de productos y inventario",
        "permissions": ["view_profile", "edit_profile", "manage_products", "view_orders", "manage_inventory"],
    },
    UserRole.VENDEDOR: {
        "label": "Vendedor",
        "description": "Gestión de ventas y clientes",
        "permissions": [
            "view_profile", "edit_profile", "view_products",
            "manage_sales", "view_customers", "create_orders",
        ],
    },
    UserRole.GERENTE: {
        "label": "Gerente",
        "description": "Supervisión y reportes",
        "permissions": [
            "view_profile", "edit_profile", "view_products",
            "view_sales", "view_customers", "view_reports", "manage_team",
        ],
    },
}

# Highest first
ROLE_HIERARCHY = [
    UserRole.ADMIN,
    UserRole.GERENTE,
    UserRole.PROVEEDOR,
    UserRole.VENDEDOR,
    UserRole.CUSTOMER,
]

# Groups used by route guards and API dependencies
MANAGEMENT_ROLES = (UserRole.ADMIN, UserRole.GERENTE)
STAFF_ROLES = (UserRole.ADMIN, UserRole.GERENTE, UserRole.VENDEDOR)
SUPPLIER_PORTAL_ROLES = (UserRole.ADMIN, UserRole.GERENTE, UserRole.PROVEEDOR)

PROTECTED_PAGE_PREFIXES = ("/dashboard", "/reservaciones", "/proveedor", "/inventario")
PROTECTED_PAGE_PATHS = ("/bienvenida",)
CUSTOMER_PAGE_PREFIXES = ("/reservaciones", "/bienvenida")


def normalize_role(value: Optional[str]) -> UserRole:
    """Map a raw claim value to a role, falling back to the default role."""
    if not value:
        return DEFAULT_ROLE
    try:
        return UserRole(str(value).strip().lower())
    except ValueError:
        return DEFAULT_ROLE


def role_label(role: UserRole) -> str:
    return ROLES[role]["label"]


def has_permission(role: UserRole, permission: str) -> bool:
    """Return True if the role is granted the permission (admin holds ``*``)."""
    permissions = ROLES.get(role, {}).get("permissions", [])
    return "*" in permissions or permission in permissions


def can_manage_role(current: UserRole, target: UserRole) -> bool:
    """Admins manage every role; managers manage sellers and customers."""
    if current == UserRole.ADMIN:
        return True
    return current == UserRole.GERENTE and target in (UserRole.VENDEDOR, UserRole.CUSTOMER)


def is_higher_role(role: UserRole, other: UserRole) -> bool:
    return ROLE_HIERARCHY.index(role) < ROLE_HIERARCHY.index(other)


def is_protected_page(path: str) -> bool:
    """Pages that require a signed-in user. API paths are never page routes."""
    if path.startswith("/api/"):
        return False
    return path in PROTECTED_PAGE_PATHS or path.startswith(PROTECTED_PAGE_PREFIXES)


def resolve_page_access(path: str, role: UserRole) -> Optional[str]:
    """
    Decide whether a role may open a page.

    Args:
        path: Request path of the page
        role: Role of the signed-in user

    Returns:
        The path to redirect to, or None when access is granted
    """
    if path.startswith("/dashboard"):
        if role == UserRole.PROVEEDOR:
            return "/proveedor"
        if role not in STAFF_ROLES:
            return "/reservaciones"

    if path.startswith("/proveedor") and role not in SUPPLIER_PORTAL_ROLES:
        return "/reservaciones"

    if path.startswith("/inventario"):
        if role == UserRole.PROVEEDOR:
            return "/proveedor"
        if role not in STAFF_ROLES:
            return "/reservaciones"

    if role == UserRole.CUSTOMER:
        if path != "/" and not path.startswith(CUSTOMER_PAGE_PREFIXES):
            return "/reservaciones"

    return None
