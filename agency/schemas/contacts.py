"""Pydantic schemas for contact-form submissions (leads)."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

ContactType = Literal["general", "sales", "support", "partnership", "media", "career"]
ContactPriority = Literal["low", "medium", "high", "urgent"]
ContactStatus = Literal["new", "in_progress", "pending", "resolved", "closed"]
ContactMethod = Literal["email", "phone", "whatsapp"]


class ContactCreate(BaseModel):
    """Public contact form payload.

    Required fields are declared optional here so missing values are reported
    together by the service instead of one validation error per field.
    """

    full_name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    subject: str | None = Field(default=None, max_length=300)
    message: str | None = Field(default=None, max_length=10_000)
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=200)
    contact_type: ContactType = "general"
    preferred_contact_method: ContactMethod = "email"
    best_time_to_contact: str | None = Field(default=None, max_length=100)
    is_newsletter_subscribed: bool = False
    source: str | None = Field(default=None, max_length=64)
    utm_source: str | None = Field(default=None, max_length=200)
    utm_medium: str | None = Field(default=None, max_length=200)
    utm_campaign: str | None = Field(default=None, max_length=200)
    utm_term: str | None = Field(default=None, max_length=200)
    utm_content: str | None = Field(default=None, max_length=200)


class ContactUpdate(BaseModel):
    """Admin triage update; every field is optional."""

    status: ContactStatus | None = None
    priority: ContactPriority | None = None
    tags: List[str] | None = None
    notes: str | None = Field(default=None, max_length=10_000)


class ContactProcessRequest(BaseModel):
    processed_by: str | None = Field(default=None, max_length=200)
    notes: str | None = Field(default=None, max_length=10_000)


class ContactOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    phone: str | None = None
    company: str | None = None
    subject: str
    message: str
    contact_type: str
    priority: str
    status: str
    source: str
    preferred_contact_method: str
    best_time_to_contact: str | None = None
    is_newsletter_subscribed: bool
    is_processed: bool
    processed_at: datetime | None = None
    processed_by: str | None = None
    notes: str | None = None
    tags: List[str] = Field(default_factory=list)
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    created_at: datetime
    updated_at: datetime


class ContactSubmitted(BaseModel):
    """Acknowledgement returned to the public form."""

    id: int
    message: str = "Thank you for contacting us. We will get back to you soon."


class ContactListResponse(BaseModel):
    data: List[ContactOut] = Field(default_factory=list)
    total: int
    limit: int
    offset: int


class ContactStats(BaseModel):
    total: int = 0
    new: int = 0
    in_progress: int = 0
    pending: int = 0
    resolved: int = 0
    closed: int = 0
    unprocessed: int = 0
