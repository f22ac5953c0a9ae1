"""Customer sign-ups and their administration.

The public form creates customers and reads the headline count; the
dashboard lists, edits and deletes them.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency.core.errors import ConflictAppError, ValidationAppError
from agency.core.logging import hash_identifier
from agency.db.models import Customer
from agency.schemas.common import PaginationInfo
from agency.services.db_errors import like_pattern, not_found, translate_db_errors
from agency.utils.text import clean_optional, is_valid_email

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "id": Customer.id,
    "name": Customer.name,
    "email": Customer.email,
    "created_at": Customer.created_at,
}
MAX_PAGE_SIZE = 100


def _validated_name(name: str | None) -> str:
    cleaned = clean_optional(name)
    if not cleaned:
        raise ValidationAppError(
            code="missing_required_fields",
            message="Name is required",
            details={"fields": ["name"]},
        )
    return cleaned


def _validated_email(email: str | None) -> str:
    cleaned = (clean_optional(email) or "").lower()
    if not cleaned:
        raise ValidationAppError(
            code="missing_required_fields",
            message="Email is required",
            details={"fields": ["email"]},
        )
    if not is_valid_email(cleaned):
        raise ValidationAppError(
            code="invalid_email",
            message="Email format is invalid",
            details={"field": "email"},
        )
    return cleaned


def _search_clause(search: str | None):
    term = clean_optional(search)
    if not term:
        return None
    pattern = like_pattern(term)
    return or_(
        Customer.name.ilike(pattern, escape="\\"),
        Customer.email.ilike(pattern, escape="\\"),
    )


class CustomerService:
    """CRUD over the ``customers`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def create(self, name: str | None, email: str | None) -> Customer:
        name = _validated_name(name)
        email = _validated_email(email)

        with translate_db_errors("create", "customer"):
            async with self._session_maker() as session:
                existing = await session.scalar(select(Customer.id).where(Customer.email == email))
                if existing is not None:
                    raise ConflictAppError(
                        code="customer_email_exists",
                        message="A customer with this email already exists",
                        details={"field": "email", "resource": "customer"},
                    )
                customer = Customer(name=name, email=email)
                session.add(customer)
                await session.commit()

        logger.info(
            "customer.created",
            extra={"customer_id": customer.id, "email_hash": hash_identifier(email)},
        )
        return customer

    async def list(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[Customer], PaginationInfo]:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationAppError(
                code="invalid_pagination",
                message=f"page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}",
                details={"fields": ["page", "limit"]},
            )
        column = SORTABLE_FIELDS.get(sort_by)
        if column is None:
            raise ValidationAppError(
                code="invalid_sort_field",
                message=f"Cannot sort customers by '{sort_by}'",
                details={"field": "sort_by", "allowed": sorted(SORTABLE_FIELDS)},
            )
        if sort_order not in ("asc", "desc"):
            raise ValidationAppError(
                code="invalid_sort_order",
                message="sort_order must be 'asc' or 'desc'",
                details={"field": "sort_order", "allowed": ["asc", "desc"]},
            )

        clause = _search_clause(search)
        stmt = select(Customer)
        count_stmt = select(func.count()).select_from(Customer)
        if clause is not None:
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)

        ordering = column.asc() if sort_order == "asc" else column.desc()
        stmt = stmt.order_by(ordering, Customer.id.asc()).offset((page - 1) * limit).limit(limit)

        with translate_db_errors("list", "customer"):
            async with self._session_maker() as session:
                total = await session.scalar(count_stmt) or 0
                customers = list((await session.scalars(stmt)).all())

        return customers, PaginationInfo.build(page=page, limit=limit, total=total)

    async def count(self, search: str | None = None) -> int:
        stmt = select(func.count()).select_from(Customer)
        clause = _search_clause(search)
        if clause is not None:
            stmt = stmt.where(clause)

        with translate_db_errors("count", "customer"):
            async with self._session_maker() as session:
                return await session.scalar(stmt) or 0

    async def update(self, customer_id: int, *, name: str | None = None, email: str | None = None) -> Customer:
        if name is None and email is None:
            raise ValidationAppError(
                code="empty_update",
                message="Provide at least one of name or email",
                details={"fields": ["name", "email"]},
            )
        new_name = _validated_name(name) if name is not None else None
        new_email = _validated_email(email) if email is not None else None

        with translate_db_errors("update", "customer"):
            async with self._session_maker() as session:
                customer = await session.get(Customer, customer_id)
                if customer is None:
                    raise not_found("customer", customer_id)
                if new_email is not None and new_email != customer.email:
                    taken = await session.scalar(
                        select(Customer.id).where(Customer.email == new_email, Customer.id != customer_id)
                    )
                    if taken is not None:
                        raise ConflictAppError(
                            code="customer_email_exists",
                            message="A customer with this email already exists",
                            details={"field": "email", "resource": "customer"},
                        )
                    customer.email = new_email
                if new_name is not None:
                    customer.name = new_name
                await session.commit()

        logger.info("customer.updated", extra={"customer_id": customer_id})
        return customer

    async def delete(self, customer_id: int) -> Customer:
        with translate_db_errors("delete", "customer"):
            async with self._session_maker() as session:
                customer = await session.get(Customer, customer_id)
                if customer is None:
                    raise not_found("customer", customer_id)
                await session.delete(customer)
                await session.commit()

        logger.info("customer.deleted", extra={"customer_id": customer_id})
        return customer
