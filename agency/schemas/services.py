"""Pydantic schemas for the services catalog."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class ServiceCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None
    sort_order: int = 0


class ServiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int | None = None
    title: str
    slug: str
    short_description: str | None = None
    description: str | None = None
    price_from: float | None = None
    is_popular: bool
    is_featured: bool
    is_active: bool
    views: int
    created_at: datetime
    updated_at: datetime


class ServiceCreate(BaseModel):
    title: str = Field(..., max_length=200)
    slug: str | None = Field(default=None, max_length=220, description="Derived from the title when omitted.")
    category_id: int | None = None
    short_description: str | None = Field(default=None, max_length=500)
    description: str | None = None
    price_from: float | None = Field(default=None, ge=0)
    is_popular: bool = False
    is_featured: bool = False
    is_active: bool = True


class ServiceUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    slug: str | None = Field(default=None, max_length=220)
    category_id: int | None = None
    short_description: str | None = Field(default=None, max_length=500)
    description: str | None = None
    price_from: float | None = Field(default=None, ge=0)
    is_popular: bool | None = None
    is_featured: bool | None = None
    is_active: bool | None = None


class CategoryWithServices(ServiceCategoryOut):
    services: List[ServiceOut] = Field(default_factory=list)


class ServiceStats(BaseModel):
    total: int = 0
    active: int = 0


class ServiceCategoryCreate(BaseModel):
    name: str = Field(..., max_length=120)
    slug: str | None = Field(default=None, max_length=140)
    description: str | None = None
    sort_order: int = 0


InquiryStatus = Literal["pending", "contacted", "quoted", "accepted", "rejected", "completed"]
InquiryPriority = Literal["low", "normal", "high", "urgent"]


class ServiceInquiryCreate(BaseModel):
    """Project request form on a service page.

    Required fields are optional here so the service reports every missing
    field at once, like the contact form.
    """

    client_name: str | None = Field(default=None, max_length=200)
    client_email: str | None = Field(default=None, max_length=320)
    project_description: str | None = Field(default=None, max_length=10_000)
    client_phone: str | None = Field(default=None, max_length=64)
    client_company: str | None = Field(default=None, max_length=200)
    budget_range: str | None = Field(default=None, max_length=100)
    timeline: str | None = Field(default=None, max_length=100)
    additional_requirements: str | None = Field(default=None, max_length=10_000)


class InquiryServiceRef(BaseModel):
    title: str
    slug: str


class ServiceInquiryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    service_id: int
    client_name: str
    client_email: str
    client_phone: str | None = None
    client_company: str | None = None
    project_description: str
    budget_range: str | None = None
    timeline: str | None = None
    additional_requirements: str | None = None
    status: InquiryStatus
    priority: InquiryPriority
    created_at: datetime


class ServiceInquiryListItem(ServiceInquiryOut):
    service: InquiryServiceRef


class ServiceInquirySubmitted(BaseModel):
    id: int
    message: str = "Thank you for your interest. We will contact you shortly."


class ServiceInquiryListResponse(BaseModel):
    data: List[ServiceInquiryListItem] = Field(default_factory=list)
    total: int
    limit: int
    offset: int
