"""Dashboard counters shown on the admin landing page."""

from __future__ import annotations

from pydantic import BaseModel

from agency.schemas.blog import BlogStats
from agency.schemas.contacts import ContactStats
from agency.schemas.services import ServiceStats


class DashboardStats(BaseModel):
    customers: int = 0
    contacts: ContactStats
    services: ServiceStats
    blog: BlogStats
