"""Headline counters for the admin dashboard."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency.schemas.dashboard import DashboardStats
from agency.services.blog_service import BlogService
from agency.services.contact_service import ContactService
from agency.services.customer_service import CustomerService
from agency.services.service_catalog_service import ServiceCatalogService


class DashboardService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._customers = CustomerService(session_maker)
        self._contacts = ContactService(session_maker)
        self._services = ServiceCatalogService(session_maker)
        self._blog = BlogService(session_maker)

    async def stats(self) -> DashboardStats:
        return DashboardStats(
            customers=await self._customers.count(),
            contacts=await self._contacts.stats(),
            services=await self._services.stats(),
            blog=await self._blog.stats(),
        )
