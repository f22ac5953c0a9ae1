from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from agency.api.dependencies import get_customer_service
from agency.core.auth import verify_api_key
from agency.core.rate_limit import enforce_rate_limit
from agency.schemas.customers import (
    CustomerCountResponse,
    CustomerCreate,
    CustomerListResponse,
    CustomerOut,
    CustomerUpdate,
)
from agency.services.customer_service import CustomerService

router = APIRouter(prefix="/customers", tags=["Customers"])

Customers = Annotated[CustomerService, Depends(get_customer_service)]


@router.post(
    "",
    response_model=CustomerOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
async def create_customer(payload: CustomerCreate, customers: Customers) -> CustomerOut:
    """Register a customer from the public sign-up form.

    Rate limited per client. Returns 409 when the e-mail is already registered.
    """
    customer = await customers.create(payload.name, payload.email)
    return CustomerOut.model_validate(customer)


@router.get(
    "",
    response_model=CustomerListResponse,
    dependencies=[Depends(verify_api_key)],
)
async def list_customers(
    customers: Customers,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str | None = Query(None, max_length=200),
    sort_by: str = Query("created_at", description="id, name, email or created_at"),
    sort_order: str = Query("desc", description="asc or desc"),
) -> CustomerListResponse:
    items, pagination = await customers.list(
        page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order
    )
    return CustomerListResponse(
        data=[CustomerOut.model_validate(c) for c in items],
        pagination=pagination,
    )


@router.get(
    "/count",
    response_model=CustomerCountResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def count_customers(
    customers: Customers,
    search: str | None = Query(None, max_length=200),
) -> CustomerCountResponse:
    """Public customer counter shown on the landing page.

    Rate limited per client; the response carries ``X-RateLimit-*`` headers
    and a rejected request gets HTTP 429 with a ``Retry-After`` hint.
    """
    return CustomerCountResponse(count=await customers.count(search))


@router.put(
    "/{customer_id}",
    response_model=CustomerOut,
    dependencies=[Depends(verify_api_key)],
)
async def update_customer(customer_id: int, payload: CustomerUpdate, customers: Customers) -> CustomerOut:
    customer = await customers.update(customer_id, name=payload.name, email=payload.email)
    return CustomerOut.model_validate(customer)


@router.delete(
    "/{customer_id}",
    response_model=CustomerOut,
    dependencies=[Depends(verify_api_key)],
)
async def delete_customer(customer_id: int, customers: Customers) -> CustomerOut:
    customer = await customers.delete(customer_id)
    return CustomerOut.model_validate(customer)
