"""Pydantic schemas for the customer sign-up form and its admin views."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from agency.schemas.common import PaginationInfo


class CustomerCreate(BaseModel):
    name: str = Field(..., description="Customer display name.", max_length=200)
    email: str = Field(..., description="Contact e-mail; stored lower-cased.", max_length=320)


class CustomerUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: datetime


class CustomerListResponse(BaseModel):
    data: List[CustomerOut] = Field(default_factory=list)
    pagination: PaginationInfo


class CustomerCountResponse(BaseModel):
    count: int = Field(..., description="Number of customers matching the optional search.")
