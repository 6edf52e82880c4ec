"""API layer module.

Contains FastAPI routers, request schemas, dependencies and the
response envelope.
"""

from catalog_service.api.attributes import router as attributes_router
from catalog_service.api.auth import router as auth_router
from catalog_service.api.categories import router as categories_router
from catalog_service.api.health import router as health_router
from catalog_service.api.options import router as options_router
from catalog_service.api.products import router as products_router

__all__ = [
    "attributes_router",
    "auth_router",
    "categories_router",
    "health_router",
    "options_router",
    "products_router",
]
