"""Blog posts and categories.

Published posts are public. Drafts and archived posts are only listed for
admin callers; the route layer decides who is an admin and passes
``include_drafts`` accordingly.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, get_args

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agency.core.errors import ConflictAppError, ValidationAppError
from agency.db.models import BlogCategory, BlogPost
from agency.schemas.blog import BlogCategoryCreate, BlogPostCreate, BlogPostUpdate, BlogStats, PostStatus
from agency.schemas.common import PaginationInfo
from agency.services.contact_service import clean_tags
from agency.services.db_errors import like_pattern, not_found, translate_db_errors
from agency.utils.text import clean_optional, generate_excerpt, reading_time_minutes, slugify

logger = logging.getLogger(__name__)

POST_STATUSES: tuple[str, ...] = get_args(PostStatus)
SORTABLE_FIELDS = {
    "created_at": BlogPost.created_at,
    "updated_at": BlogPost.updated_at,
    "published_at": BlogPost.published_at,
    "title": BlogPost.title,
    "views": BlogPost.views,
}
MAX_PAGE_SIZE = 100
POPULAR_LIMIT = 5
_NON_NULLABLE_FLAGS = frozenset({"is_featured", "allow_comments"})


def _required_text(value: str | None, field: str) -> str:
    cleaned = clean_optional(value)
    if not cleaned:
        raise ValidationAppError(
            code="missing_required_fields",
            message=f"{field.capitalize()} is required",
            details={"fields": [field]},
        )
    return cleaned


def _resolve_slug(slug: str | None, title: str) -> str:
    resolved = slugify(slug or title)
    if not resolved:
        raise ValidationAppError(
            code="invalid_slug",
            message="A slug could not be derived; provide a title or slug with letters or digits",
            details={"field": "slug"},
        )
    return resolved


def _apply_status(post: BlogPost, status: str) -> None:
    post.status = status
    if status == "published" and post.published_at is None:
        post.published_at = datetime.now(timezone.utc)


class BlogService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _ensure_slug_free(self, session: AsyncSession, slug: str, exclude_id: int | None = None) -> None:
        stmt = select(BlogPost.id).where(BlogPost.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(BlogPost.id != exclude_id)
        if await session.scalar(stmt) is not None:
            raise ConflictAppError(
                code="blog_post_slug_exists",
                message=f"A post with slug '{slug}' already exists",
                details={"field": "slug", "resource": "blog_post"},
            )

    async def _ensure_category(self, session: AsyncSession, category_id: int | None) -> None:
        if category_id is not None and await session.get(BlogCategory, category_id) is None:
            raise not_found("blog_category", category_id)

    async def list(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        status: str | None = None,
        category_id: int | None = None,
        author_id: str | None = None,
        tag: str | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        include_drafts: bool = False,
    ) -> tuple[list[BlogPost], PaginationInfo]:
        """Paginated posts.

        Without ``include_drafts`` only published posts are returned and a
        ``status`` filter other than ``published`` yields an empty page.
        """
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
                message=f"Cannot sort posts by '{sort_by}'",
                details={"field": "sort_by", "allowed": sorted(SORTABLE_FIELDS)},
            )
        if sort_order not in ("asc", "desc"):
            raise ValidationAppError(
                code="invalid_sort_order",
                message="sort_order must be 'asc' or 'desc'",
                details={"field": "sort_order", "allowed": ["asc", "desc"]},
            )
        if status is not None and status not in POST_STATUSES:
            raise ValidationAppError(
                code="invalid_status",
                message=f"Invalid status '{status}'",
                details={"field": "status", "allowed": list(POST_STATUSES)},
            )

        conditions = []
        if not include_drafts:
            conditions.append(BlogPost.status == "published")
        if status is not None:
            conditions.append(BlogPost.status == status)
        if category_id is not None:
            conditions.append(BlogPost.category_id == category_id)
        if author_id:
            conditions.append(BlogPost.author_id == author_id)
        term = clean_optional(search)
        if term:
            pattern = like_pattern(term)
            conditions.append(
                or_(
                    BlogPost.title.ilike(pattern, escape="\\"),
                    BlogPost.excerpt.ilike(pattern, escape="\\"),
                    BlogPost.content.ilike(pattern, escape="\\"),
                )
            )

        stmt = select(BlogPost).where(*conditions)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        stmt = stmt.order_by(ordering, BlogPost.id.desc())

        with translate_db_errors("list", "blog_post"):
            async with self._session_maker() as session:
                if tag:
                    # Tags live in a JSON list, so tag filtering happens in Python.
                    candidates = [p for p in (await session.scalars(stmt)).all() if tag in (p.tags or [])]
                    total = len(candidates)
                    posts = candidates[(page - 1) * limit : page * limit]
                else:
                    count_stmt = select(func.count()).select_from(BlogPost).where(*conditions)
                    total = await session.scalar(count_stmt) or 0
                    posts = list((await session.scalars(stmt.offset((page - 1) * limit).limit(limit))).all())

        return posts, PaginationInfo.build(page=page, limit=limit, total=total)

    async def get_by_slug(self, slug: str, *, include_drafts: bool = False) -> BlogPost:
        """Fetch a post by slug, counting a view when it is published."""
        stmt = select(BlogPost).where(BlogPost.slug == slug)
        if not include_drafts:
            stmt = stmt.where(BlogPost.status == "published")
        with translate_db_errors("get", "blog_post"):
            async with self._session_maker() as session:
                post = await session.scalar(stmt)
                if post is None:
                    raise not_found("blog_post", slug)
                if post.status == "published":
                    await session.execute(
                        update(BlogPost)
                        .where(BlogPost.id == post.id)
                        .values(views=BlogPost.views + 1)
                        .execution_options(synchronize_session=False)
                    )
                    await session.commit()
                    await session.refresh(post)
        return post

    async def popular(self, limit: int = POPULAR_LIMIT) -> list[BlogPost]:
        """Published posts with the most views."""
        stmt = (
            select(BlogPost)
            .where(BlogPost.status == "published")
            .order_by(BlogPost.views.desc(), BlogPost.id.desc())
            .limit(limit)
        )
        with translate_db_errors("popular", "blog_post"):
            async with self._session_maker() as session:
                return list((await session.scalars(stmt)).all())

    async def create(self, data: BlogPostCreate) -> BlogPost:
        title = _required_text(data.title, "title")
        content = _required_text(data.content, "content")
        slug = _resolve_slug(data.slug, title)

        post = BlogPost(
            title=title,
            slug=slug,
            content=content,
            excerpt=clean_optional(data.excerpt) or generate_excerpt(content),
            author_id=_required_text(data.author_id, "author_id"),
            category_id=data.category_id,
            is_featured=data.is_featured,
            allow_comments=data.allow_comments,
            tags=clean_tags(data.tags),
            meta_title=clean_optional(data.meta_title),
            meta_description=clean_optional(data.meta_description),
            featured_image=clean_optional(data.featured_image),
            reading_time=reading_time_minutes(content),
            views=0,
        )
        _apply_status(post, data.status)

        with translate_db_errors("create", "blog_post"):
            async with self._session_maker() as session:
                await self._ensure_slug_free(session, slug)
                await self._ensure_category(session, data.category_id)
                session.add(post)
                await session.commit()

        logger.info("blog.post_created", extra={"post_id": post.id, "slug": slug, "status": post.status})
        return post

    async def update(self, post_id: int, data: BlogPostUpdate) -> BlogPost:
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k not in _NON_NULLABLE_FLAGS}
        for field in ("title", "content"):
            if field in changes:
                changes[field] = _required_text(changes[field], field)
        if "tags" in changes:
            changes["tags"] = clean_tags(changes["tags"] or [])
        status = changes.pop("status", None)

        with translate_db_errors("update", "blog_post"):
            async with self._session_maker() as session:
                post = await session.get(BlogPost, post_id)
                if post is None:
                    raise not_found("blog_post", post_id)
                if "slug" in changes:
                    changes["slug"] = _resolve_slug(changes["slug"], changes.get("title") or post.title)
                    await self._ensure_slug_free(session, changes["slug"], exclude_id=post_id)
                if "category_id" in changes:
                    await self._ensure_category(session, changes["category_id"])
                if "content" in changes:
                    changes["reading_time"] = reading_time_minutes(changes["content"])
                    if "excerpt" not in changes:
                        changes["excerpt"] = generate_excerpt(changes["content"])
                if "excerpt" in changes and not clean_optional(changes["excerpt"]):
                    changes["excerpt"] = generate_excerpt(changes.get("content") or post.content)
                for field, value in changes.items():
                    setattr(post, field, value)
                if status is not None:
                    _apply_status(post, status)
                await session.commit()

        logger.info("blog.post_updated", extra={"post_id": post_id, "fields": sorted(changes)})
        return post

    async def _set_status(self, post_id: int, status: str) -> BlogPost:
        with translate_db_errors("set_status", "blog_post"):
            async with self._session_maker() as session:
                post = await session.get(BlogPost, post_id)
                if post is None:
                    raise not_found("blog_post", post_id)
                _apply_status(post, status)
                await session.commit()

        logger.info("blog.post_status_changed", extra={"post_id": post_id, "status": status})
        return post

    async def publish(self, post_id: int) -> BlogPost:
        return await self._set_status(post_id, "published")

    async def unpublish(self, post_id: int) -> BlogPost:
        return await self._set_status(post_id, "draft")

    async def delete(self, post_id: int) -> BlogPost:
        with translate_db_errors("delete", "blog_post"):
            async with self._session_maker() as session:
                post = await session.get(BlogPost, post_id)
                if post is None:
                    raise not_found("blog_post", post_id)
                await session.delete(post)
                await session.commit()

        logger.info("blog.post_deleted", extra={"post_id": post_id})
        return post

    async def list_categories(self) -> list[BlogCategory]:
        with translate_db_errors("list_categories", "blog_category"):
            async with self._session_maker() as session:
                return list((await session.scalars(select(BlogCategory).order_by(BlogCategory.name.asc()))).all())

    async def create_category(self, data: BlogCategoryCreate) -> BlogCategory:
        name = _required_text(data.name, "name")
        slug = _resolve_slug(data.slug, name)

        with translate_db_errors("create_category", "blog_category"):
            async with self._session_maker() as session:
                if await session.scalar(select(BlogCategory.id).where(BlogCategory.slug == slug)) is not None:
                    raise ConflictAppError(
                        code="blog_category_slug_exists",
                        message=f"A blog category with slug '{slug}' already exists",
                        details={"field": "slug", "resource": "blog_category"},
                    )
                category = BlogCategory(name=name, slug=slug, description=clean_optional(data.description))
                session.add(category)
                await session.commit()

        logger.info("blog.category_created", extra={"category_id": category.id, "slug": slug})
        return category

    async def stats(self) -> BlogStats:
        stmt = select(BlogPost.status, func.count()).group_by(BlogPost.status)
        with translate_db_errors("stats", "blog_post"):
            async with self._session_maker() as session:
                counts = {row[0]: row[1] for row in (await session.execute(stmt)).all()}
        return BlogStats(
            total=sum(counts.values()),
            published=counts.get("published", 0),
            drafts=counts.get("draft", 0),
        )
