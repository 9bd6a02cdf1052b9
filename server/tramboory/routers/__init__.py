"""FastAPI routers package."""

from .access import router as access_router
from .catalog import router as catalog_router
from .content import router as content_router
from .finances import router as finances_router
from .health import router as health_router
from .inventory import router as inventory_router
from .metrics import router as metrics_router
from .posts import router as posts_router
from .purchase_orders import router as purchase_orders_router
from .reservations import admin_router as reservations_admin_router
from .reservations import router as reservations_router
from .suppliers import portal_router as supplier_portal_router
from .suppliers import router as suppliers_router
from .system_config import router as system_config_router

__all__ = [
    "access_router",
    "catalog_router",
    "content_router",
    "finances_router",
    "health_router",
    "inventory_router",
    "metrics_router",
    "posts_router",
    "purchase_orders_router",
    "reservations_admin_router",
    "reservations_router",
    "supplier_portal_router",
    "suppliers_router",
    "system_config_router",
]
