"""FastAPI dependencies resolving per-app resources from ``app.state``."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency.core.auth import is_admin_key
from agency.services.blog_service import BlogService
from agency.services.contact_service import ContactService
from agency.services.customer_service import CustomerService
from agency.services.dashboard_service import DashboardService
from agency.services.service_catalog_service import ServiceCatalogService


def get_session_maker(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_maker


SessionMaker = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)]


def get_customer_service(session_maker: SessionMaker) -> CustomerService:
    return CustomerService(session_maker)


def get_contact_service(session_maker: SessionMaker) -> ContactService:
    return ContactService(session_maker)


def get_service_catalog(session_maker: SessionMaker) -> ServiceCatalogService:
    return ServiceCatalogService(session_maker)


def get_blog_service(session_maker: SessionMaker) -> BlogService:
    return BlogService(session_maker)


def get_dashboard_service(session_maker: SessionMaker) -> DashboardService:
    return DashboardService(session_maker)


async def get_is_admin(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> bool:
    """True when the caller presented a valid admin key; never rejects."""
    return is_admin_key(x_api_key)
