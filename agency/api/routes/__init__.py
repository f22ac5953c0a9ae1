from __future__ import annotations

from agency.api.routes.admin import router as admin_router
from agency.api.routes.blog import router as blog_router
from agency.api.routes.contacts import admin_router as contacts_admin_router
from agency.api.routes.contacts import router as contacts_router
from agency.api.routes.customers import router as customers_router
from agency.api.routes.health import router as health_router
from agency.api.routes.services import router as services_router

__all__ = [
    "admin_router",
    "blog_router",
    "contacts_admin_router",
    "contacts_router",
    "customers_router",
    "health_router",
    "services_router",
]
