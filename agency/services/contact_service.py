"""Lead capture from the contact form and its triage on the dashboard."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import get_args

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency.core.errors import AuthenticationAppError, ValidationAppError
from agency.core.logging import hash_identifier
from agency.db.models import Contact
from agency.schemas.contacts import ContactCreate, ContactPriority, ContactStats, ContactStatus, ContactUpdate
from agency.services.db_errors import like_pattern, not_found, translate_db_errors
from agency.utils.text import clean_optional, is_valid_email, normalize_text

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("full_name", "email", "subject", "message")
CONTACT_STATUSES: tuple[str, ...] = get_args(ContactStatus)
CONTACT_PRIORITIES: tuple[str, ...] = get_args(ContactPriority)
DEFAULT_LIST_LIMIT = 50
DEFAULT_SEARCH_LIMIT = 20


def _check_choice(value: str, allowed: tuple[str, ...], field: str) -> None:
    if value not in allowed:
        raise ValidationAppError(
            code=f"invalid_{field}",
            message=f"Invalid {field} '{value}'",
            details={"field": field, "allowed": list(allowed)},
        )


def clean_tags(tags: list[str]) -> list[str]:
    """Trim tags, dropping blanks and duplicates while keeping order."""
    seen: list[str] = []
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class ContactService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _get_or_404(self, session: AsyncSession, contact_id: int) -> Contact:
        contact = await session.get(Contact, contact_id)
        if contact is None:
            raise not_found("contact", contact_id)
        return contact

    async def create(
        self,
        form: ContactCreate,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Contact:
        """Validate, sanitize and store a contact form submission.

        Raises:
            ValidationAppError: When required fields are blank or the e-mail is malformed.
        """
        missing = [name for name in REQUIRED_FIELDS if not clean_optional(getattr(form, name))]
        if missing:
            raise ValidationAppError(
                code="missing_required_fields",
                message=f"Missing required fields: {', '.join(missing)}",
                details={"fields": missing},
            )

        email = clean_optional(form.email).lower()
        if not is_valid_email(email):
            raise ValidationAppError(
                code="invalid_email",
                message="Email format is invalid",
                details={"field": "email"},
            )

        contact = Contact(
            full_name=clean_optional(form.full_name),
            email=email,
            phone=clean_optional(form.phone),
            company=clean_optional(form.company),
            subject=clean_optional(form.subject),
            message=normalize_text(form.message),
            contact_type=form.contact_type,
            priority="medium",
            status="new",
            source=clean_optional(form.source) or "website",
            preferred_contact_method=form.preferred_contact_method,
            best_time_to_contact=clean_optional(form.best_time_to_contact),
            is_newsletter_subscribed=form.is_newsletter_subscribed,
            is_processed=False,
            tags=[],
            utm_source=clean_optional(form.utm_source),
            utm_medium=clean_optional(form.utm_medium),
            utm_campaign=clean_optional(form.utm_campaign),
            utm_term=clean_optional(form.utm_term),
            utm_content=clean_optional(form.utm_content),
            ip_address=clean_optional(ip_address),
            user_agent=clean_optional(user_agent),
        )

        with translate_db_errors("create", "contact"):
            async with self._session_maker() as session:
                session.add(contact)
                await session.commit()

        logger.info(
            "contact.created",
            extra={
                "contact_id": contact.id,
                "contact_type": contact.contact_type,
                "email_hash": hash_identifier(email),
            },
        )
        return contact

    async def list(
        self,
        *,
        status: str | None = None,
        contact_type: str | None = None,
        priority: str | None = None,
        is_processed: bool | None = None,
        search: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> tuple[list[Contact], int]:
        """Filtered contacts, newest first, plus the unpaginated total."""
        conditions = []
        if status is not None:
            _check_choice(status, CONTACT_STATUSES, "status")
            conditions.append(Contact.status == status)
        if contact_type is not None:
            conditions.append(Contact.contact_type == contact_type)
        if priority is not None:
            _check_choice(priority, CONTACT_PRIORITIES, "priority")
            conditions.append(Contact.priority == priority)
        if is_processed is not None:
            conditions.append(Contact.is_processed == is_processed)
        if date_from is not None:
            conditions.append(Contact.created_at >= date_from)
        if date_to is not None:
            conditions.append(Contact.created_at <= date_to)
        term = clean_optional(search)
        if term:
            pattern = like_pattern(term)
            conditions.append(
                or_(
                    Contact.full_name.ilike(pattern, escape="\\"),
                    Contact.email.ilike(pattern, escape="\\"),
                    Contact.subject.ilike(pattern, escape="\\"),
                    Contact.company.ilike(pattern, escape="\\"),
                )
            )

        stmt = (
            select(Contact)
            .where(*conditions)
            .order_by(Contact.created_at.desc(), Contact.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(Contact).where(*conditions)

        with translate_db_errors("list", "contact"):
            async with self._session_maker() as session:
                total = await session.scalar(count_stmt) or 0
                contacts = list((await session.scalars(stmt)).all())
        return contacts, total

    async def get(self, contact_id: int) -> Contact:
        with translate_db_errors("get", "contact"):
            async with self._session_maker() as session:
                return await self._get_or_404(session, contact_id)

    async def search(self, term: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[Contact]:
        if not clean_optional(term):
            raise ValidationAppError(
                code="missing_search_term",
                message="Search term is required",
                details={"field": "q"},
            )
        contacts, _ = await self.list(search=term, limit=limit)
        return contacts

    async def update_status(self, contact_id: int, status: str, notes: str | None = None) -> Contact:
        _check_choice(status, CONTACT_STATUSES, "status")
        with translate_db_errors("update_status", "contact"):
            async with self._session_maker() as session:
                contact = await self._get_or_404(session, contact_id)
                contact.status = status
                if clean_optional(notes):
                    contact.notes = notes.strip()
                await session.commit()

        logger.info("contact.status_updated", extra={"contact_id": contact_id, "status": status})
        return contact

    async def update_priority(self, contact_id: int, priority: str) -> Contact:
        _check_choice(priority, CONTACT_PRIORITIES, "priority")
        return await self.update(contact_id, ContactUpdate(priority=priority))

    async def add_tags(self, contact_id: int, tags: list[str]) -> Contact:
        """Merge ``tags`` into the contact's tags."""
        return await self.update(contact_id, ContactUpdate(tags=tags))

    async def update(self, contact_id: int, changes: ContactUpdate) -> Contact:
        """Apply status, priority, tags and notes in a single transaction.

        The payload is validated up front, so a rejected update writes nothing.
        Tags are merged into the existing ones.
        """
        if changes.status is not None:
            _check_choice(changes.status, CONTACT_STATUSES, "status")
        if changes.priority is not None:
            _check_choice(changes.priority, CONTACT_PRIORITIES, "priority")
        new_tags = None
        if changes.tags is not None:
            new_tags = clean_tags(changes.tags)
            if not new_tags:
                raise ValidationAppError(
                    code="missing_tags",
                    message="At least one non-empty tag is required",
                    details={"field": "tags"},
                )

        with translate_db_errors("update", "contact"):
            async with self._session_maker() as session:
                contact = await self._get_or_404(session, contact_id)
                if changes.status is not None:
                    contact.status = changes.status
                if changes.priority is not None:
                    contact.priority = changes.priority
                if new_tags is not None:
                    # Assign a new list so the JSON column is flagged as modified.
                    contact.tags = clean_tags([*(contact.tags or []), *new_tags])
                if changes.notes is not None:
                    contact.notes = clean_optional(changes.notes)
                await session.commit()

        logger.info(
            "contact.updated",
            extra={"contact_id": contact_id, "fields": sorted(changes.model_dump(exclude_none=True))},
        )
        return contact

    async def mark_processed(
        self,
        contact_id: int,
        processed_by: str | None = None,
        notes: str | None = None,
    ) -> Contact:
        with translate_db_errors("mark_processed", "contact"):
            async with self._session_maker() as session:
                contact = await self._get_or_404(session, contact_id)
                contact.is_processed = True
                contact.processed_at = datetime.now(timezone.utc)
                contact.processed_by = clean_optional(processed_by)
                if clean_optional(notes):
                    contact.notes = notes.strip()
                await session.commit()

        logger.info("contact.processed", extra={"contact_id": contact_id})
        return contact

    async def delete(self, contact_id: int, *, hard: bool = False) -> Contact:
        """Archive a contact by closing it.

        Leads are kept for reporting, so hard deletes are refused.
        """
        if hard:
            logger.warning("contact.hard_delete_refused", extra={"contact_id": contact_id})
            raise AuthenticationAppError(
                code="hard_delete_not_allowed",
                message="Contacts cannot be permanently deleted; archive them instead",
                details={"resource": "contact", "resource_id": contact_id},
            )
        return await self.archive(contact_id)

    async def archive(self, contact_id: int) -> Contact:
        contact = await self.update_status(contact_id, "closed")
        logger.info("contact.archived", extra={"contact_id": contact_id})
        return contact

    async def stats(self) -> ContactStats:
        by_status = select(Contact.status, func.count()).group_by(Contact.status)
        unprocessed = select(func.count()).select_from(Contact).where(Contact.is_processed.is_(False))

        with translate_db_errors("stats", "contact"):
            async with self._session_maker() as session:
                counts = {row[0]: row[1] for row in (await session.execute(by_status)).all()}
                pending_work = await session.scalar(unprocessed) or 0

        return ContactStats(
            total=sum(counts.values()),
            unprocessed=pending_work,
            **{status: counts.get(status, 0) for status in CONTACT_STATUSES},
        )
