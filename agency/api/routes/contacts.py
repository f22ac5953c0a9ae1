from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request, status

from agency.api.dependencies import get_contact_service
from agency.core.auth import verify_api_key
from agency.core.rate_limit import derive_client_key
from agency.schemas.contacts import (
    ContactCreate,
    ContactListResponse,
    ContactOut,
    ContactPriority,
    ContactProcessRequest,
    ContactStatus,
    ContactSubmitted,
    ContactType,
    ContactUpdate,
)
from agency.services.contact_service import DEFAULT_LIST_LIMIT, DEFAULT_SEARCH_LIMIT, ContactService

router = APIRouter(prefix="/contacts", tags=["Contacts"])
admin_router = APIRouter(prefix="/contacts", tags=["Contacts"], dependencies=[Depends(verify_api_key)])

Contacts = Annotated[ContactService, Depends(get_contact_service)]


@router.post("", response_model=ContactSubmitted, status_code=status.HTTP_201_CREATED)
async def submit_contact(payload: ContactCreate, request: Request, contacts: Contacts) -> ContactSubmitted:
    """Store a contact form submission as a new lead.

    Missing required fields and malformed e-mails return 400 with the
    offending field names in ``error.details``.
    """
    contact = await contacts.create(
        payload,
        ip_address=derive_client_key(request.headers),
        user_agent=request.headers.get("user-agent"),
    )
    return ContactSubmitted(id=contact.id)


@admin_router.get("", response_model=ContactListResponse)
async def list_contacts(
    contacts: Contacts,
    status_filter: ContactStatus | None = Query(None, alias="status"),
    contact_type: ContactType | None = Query(None),
    priority: ContactPriority | None = Query(None),
    is_processed: bool | None = Query(None),
    search: str | None = Query(None, max_length=200),
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ContactListResponse:
    items, total = await contacts.list(
        status=status_filter,
        contact_type=contact_type,
        priority=priority,
        is_processed=is_processed,
        search=search,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
        offset=offset,
    )
    return ContactListResponse(
        data=[ContactOut.model_validate(c) for c in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@admin_router.get("/search", response_model=list[ContactOut])
async def search_contacts(
    contacts: Contacts,
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=100),
) -> list[ContactOut]:
    return [ContactOut.model_validate(c) for c in await contacts.search(q, limit=limit)]


@admin_router.get("/{contact_id}", response_model=ContactOut)
async def get_contact(contact_id: int, contacts: Contacts) -> ContactOut:
    return ContactOut.model_validate(await contacts.get(contact_id))


@admin_router.patch("/{contact_id}", response_model=ContactOut)
async def update_contact(contact_id: int, payload: ContactUpdate, contacts: Contacts) -> ContactOut:
    """Apply status, priority, tags and notes changes in one transaction.

    A 400 on any field leaves the contact unchanged.
    """
    return ContactOut.model_validate(await contacts.update(contact_id, payload))


@admin_router.post("/{contact_id}/processed", response_model=ContactOut)
async def mark_contact_processed(
    contact_id: int,
    contacts: Contacts,
    payload: ContactProcessRequest | None = None,
) -> ContactOut:
    payload = payload or ContactProcessRequest()
    contact = await contacts.mark_processed(contact_id, payload.processed_by, payload.notes)
    return ContactOut.model_validate(contact)


@admin_router.delete("/{contact_id}", response_model=ContactOut)
async def delete_contact(
    contact_id: int,
    contacts: Contacts,
    mode: Literal["soft", "hard"] = Query("soft"),
) -> ContactOut:
    """Archive a contact (status ``closed``). ``mode=hard`` is refused with 403."""
    contact = await contacts.delete(contact_id, hard=mode == "hard")
    return ContactOut.model_validate(contact)
