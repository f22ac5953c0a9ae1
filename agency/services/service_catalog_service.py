"""Services catalog shown on the public services page, and the project
inquiries visitors send from it."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency.core.errors import ConflictAppError, ValidationAppError
from agency.core.logging import hash_identifier
from agency.db.models import Service, ServiceCategory, ServiceInquiry
from agency.schemas.services import (
    ServiceCategoryCreate,
    ServiceCreate,
    ServiceInquiryCreate,
    ServiceStats,
    ServiceUpdate,
)
from agency.services.db_errors import like_pattern, not_found, translate_db_errors
from agency.utils.text import clean_optional, is_valid_email, normalize_text, slugify

logger = logging.getLogger(__name__)

INQUIRY_REQUIRED_FIELDS = ("client_name", "client_email", "project_description")
DEFAULT_INQUIRY_LIMIT = 50
_NON_NULLABLE_FLAGS = frozenset({"is_popular", "is_featured", "is_active"})


def _resolve_slug(slug: str | None, title: str) -> str:
    resolved = slugify(slug or title)
    if not resolved:
        raise ValidationAppError(
            code="invalid_slug",
            message="A slug could not be derived; provide a title or slug with letters or digits",
            details={"field": "slug"},
        )
    return resolved


class ServiceCatalogService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _ensure_slug_free(self, session: AsyncSession, slug: str, exclude_id: int | None = None) -> None:
        stmt = select(Service.id).where(Service.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Service.id != exclude_id)
        if await session.scalar(stmt) is not None:
            raise ConflictAppError(
                code="service_slug_exists",
                message=f"A service with slug '{slug}' already exists",
                details={"field": "slug", "resource": "service"},
            )

    async def _ensure_category(self, session: AsyncSession, category_id: int | None) -> None:
        if category_id is not None and await session.get(ServiceCategory, category_id) is None:
            raise not_found("service_category", category_id)

    async def list(
        self,
        *,
        category: str | None = None,
        search: str | None = None,
        popular: bool | None = None,
        featured: bool | None = None,
        limit: int | None = None,
    ) -> list[Service]:
        """Active services, featured first then alphabetical."""
        stmt = select(Service).where(Service.is_active.is_(True))
        if category:
            stmt = stmt.join(ServiceCategory, Service.category_id == ServiceCategory.id).where(
                ServiceCategory.slug == category
            )
        term = clean_optional(search)
        if term:
            pattern = like_pattern(term)
            stmt = stmt.where(
                or_(
                    Service.title.ilike(pattern, escape="\\"),
                    Service.short_description.ilike(pattern, escape="\\"),
                    Service.description.ilike(pattern, escape="\\"),
                )
            )
        if popular is not None:
            stmt = stmt.where(Service.is_popular.is_(popular))
        if featured is not None:
            stmt = stmt.where(Service.is_featured.is_(featured))
        stmt = stmt.order_by(Service.is_featured.desc(), Service.title.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        with translate_db_errors("list", "service"):
            async with self._session_maker() as session:
                return list((await session.scalars(stmt)).all())

    async def get_by_slug(self, slug: str) -> Service:
        stmt = select(Service).where(Service.slug == slug, Service.is_active.is_(True))
        with translate_db_errors("get", "service"):
            async with self._session_maker() as session:
                service = await session.scalar(stmt)
        if service is None:
            raise not_found("service", slug)
        return service

    async def list_categories(self) -> list[ServiceCategory]:
        stmt = select(ServiceCategory).order_by(ServiceCategory.sort_order.asc(), ServiceCategory.name.asc())
        with translate_db_errors("list_categories", "service_category"):
            async with self._session_maker() as session:
                return list((await session.scalars(stmt)).all())

    async def create_category(self, data: ServiceCategoryCreate) -> ServiceCategory:
        name = clean_optional(data.name)
        if not name:
            raise ValidationAppError(
                code="missing_required_fields",
                message="Name is required",
                details={"fields": ["name"]},
            )
        slug = _resolve_slug(data.slug, name)

        with translate_db_errors("create_category", "service_category"):
            async with self._session_maker() as session:
                if await session.scalar(select(ServiceCategory.id).where(ServiceCategory.slug == slug)) is not None:
                    raise ConflictAppError(
                        code="service_category_slug_exists",
                        message=f"A service category with slug '{slug}' already exists",
                        details={"field": "slug", "resource": "service_category"},
                    )
                category = ServiceCategory(
                    name=name,
                    slug=slug,
                    description=clean_optional(data.description),
                    sort_order=data.sort_order,
                )
                session.add(category)
                await session.commit()

        logger.info("service_category.created", extra={"category_id": category.id, "slug": slug})
        return category

    async def category_with_services(self, slug: str) -> tuple[ServiceCategory, list[Service]]:
        with translate_db_errors("get_category", "service_category"):
            async with self._session_maker() as session:
                category = await session.scalar(select(ServiceCategory).where(ServiceCategory.slug == slug))
                if category is None:
                    raise not_found("service_category", slug)
                services = (
                    await session.scalars(
                        select(Service)
                        .where(Service.category_id == category.id, Service.is_active.is_(True))
                        .order_by(Service.is_featured.desc(), Service.title.asc())
                    )
                ).all()
        return category, list(services)

    async def create(self, data: ServiceCreate) -> Service:
        title = clean_optional(data.title)
        if not title:
            raise ValidationAppError(
                code="missing_required_fields",
                message="Title is required",
                details={"fields": ["title"]},
            )
        slug = _resolve_slug(data.slug, title)

        with translate_db_errors("create", "service"):
            async with self._session_maker() as session:
                await self._ensure_slug_free(session, slug)
                await self._ensure_category(session, data.category_id)
                service = Service(
                    **data.model_dump(exclude={"title", "slug"}),
                    title=title,
                    slug=slug,
                    views=0,
                )
                session.add(service)
                await session.commit()

        logger.info("service.created", extra={"service_id": service.id, "slug": slug})
        return service

    async def update(self, service_id: int, data: ServiceUpdate) -> Service:
        changes = data.model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k not in _NON_NULLABLE_FLAGS}
        if "title" in changes:
            changes["title"] = clean_optional(changes["title"])
            if not changes["title"]:
                raise ValidationAppError(
                    code="missing_required_fields",
                    message="Title cannot be blank",
                    details={"fields": ["title"]},
                )

        with translate_db_errors("update", "service"):
            async with self._session_maker() as session:
                service = await session.get(Service, service_id)
                if service is None:
                    raise not_found("service", service_id)
                if "slug" in changes:
                    changes["slug"] = _resolve_slug(changes["slug"], changes.get("title") or service.title)
                    await self._ensure_slug_free(session, changes["slug"], exclude_id=service_id)
                if "category_id" in changes:
                    await self._ensure_category(session, changes["category_id"])
                for field, value in changes.items():
                    setattr(service, field, value)
                await session.commit()

        logger.info("service.updated", extra={"service_id": service_id, "fields": sorted(changes)})
        return service

    async def delete(self, service_id: int) -> Service:
        with translate_db_errors("delete", "service"):
            async with self._session_maker() as session:
                service = await session.get(Service, service_id)
                if service is None:
                    raise not_found("service", service_id)
                await session.delete(service)
                await session.commit()

        logger.info("service.deleted", extra={"service_id": service_id})
        return service

    async def track_view(self, slug: str) -> int:
        """Increment the view counter atomically and return the new value."""
        with translate_db_errors("track_view", "service"):
            async with self._session_maker() as session:
                result = await session.execute(
                    update(Service)
                    .where(Service.slug == slug, Service.is_active.is_(True))
                    .values(views=Service.views + 1)
                )
                if result.rowcount == 0:
                    raise not_found("service", slug)
                await session.commit()
                return await session.scalar(select(Service.views).where(Service.slug == slug)) or 0

    async def create_inquiry(
        self,
        slug: str,
        form: ServiceInquiryCreate,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ServiceInquiry:
        """Store a project request for an active service.

        Raises:
            ValidationAppError: When required fields are blank or the e-mail is malformed.
            NotFoundAppError: When no active service has ``slug``.
        """
        missing = [name for name in INQUIRY_REQUIRED_FIELDS if not clean_optional(getattr(form, name))]
        if missing:
            raise ValidationAppError(
                code="missing_required_fields",
                message=f"Missing required fields: {', '.join(missing)}",
                details={"fields": missing},
            )
        email = clean_optional(form.client_email).lower()
        if not is_valid_email(email):
            raise ValidationAppError(
                code="invalid_email",
                message="Email format is invalid",
                details={"field": "client_email"},
            )

        with translate_db_errors("create_inquiry", "service_inquiry"):
            async with self._session_maker() as session:
                service_id = await session.scalar(
                    select(Service.id).where(Service.slug == slug, Service.is_active.is_(True))
                )
                if service_id is None:
                    raise not_found("service", slug)
                inquiry = ServiceInquiry(
                    service_id=service_id,
                    client_name=clean_optional(form.client_name),
                    client_email=email,
                    client_phone=clean_optional(form.client_phone),
                    client_company=clean_optional(form.client_company),
                    project_description=normalize_text(form.project_description),
                    budget_range=clean_optional(form.budget_range),
                    timeline=clean_optional(form.timeline),
                    additional_requirements=clean_optional(form.additional_requirements),
                    status="pending",
                    priority="normal",
                    ip_address=clean_optional(ip_address),
                    user_agent=clean_optional(user_agent),
                )
                session.add(inquiry)
                await session.commit()

        logger.info(
            "service_inquiry.created",
            extra={"inquiry_id": inquiry.id, "service_slug": slug, "email_hash": hash_identifier(email)},
        )
        return inquiry

    async def list_inquiries(
        self,
        *,
        service_slug: str | None = None,
        limit: int = DEFAULT_INQUIRY_LIMIT,
        offset: int = 0,
    ) -> tuple[list[tuple[ServiceInquiry, str, str]], int]:
        """(inquiry, service title, service slug) rows, newest first, plus the total."""
        conditions = []
        if service_slug:
            conditions.append(Service.slug == service_slug)

        stmt = (
            select(ServiceInquiry, Service.title, Service.slug)
            .join(Service, ServiceInquiry.service_id == Service.id)
            .where(*conditions)
            .order_by(ServiceInquiry.created_at.desc(), ServiceInquiry.id.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt = (
            select(func.count())
            .select_from(ServiceInquiry)
            .join(Service, ServiceInquiry.service_id == Service.id)
            .where(*conditions)
        )

        with translate_db_errors("list_inquiries", "service_inquiry"):
            async with self._session_maker() as session:
                total = await session.scalar(count_stmt) or 0
                rows = [(row[0], row[1], row[2]) for row in (await session.execute(stmt)).all()]
        return rows, total

    async def stats(self) -> ServiceStats:
        with translate_db_errors("stats", "service"):
            async with self._session_maker() as session:
                total = await session.scalar(select(func.count()).select_from(Service)) or 0
                active = (
                    await session.scalar(
                        select(func.count()).select_from(Service).where(Service.is_active.is_(True))
                    )
                    or 0
                )
        return ServiceStats(total=total, active=active)
