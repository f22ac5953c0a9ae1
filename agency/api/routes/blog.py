from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from agency.api.dependencies import get_blog_service, get_is_admin
from agency.core.auth import verify_api_key
from agency.schemas.blog import (
    BlogCategoryCreate,
    BlogCategoryOut,
    BlogPostCreate,
    BlogPostListResponse,
    BlogPostOut,
    BlogPostUpdate,
    PostStatus,
)
from agency.services.blog_service import POPULAR_LIMIT, BlogService

router = APIRouter(prefix="/blog", tags=["Blog"])

Blog = Annotated[BlogService, Depends(get_blog_service)]
IsAdmin = Annotated[bool, Depends(get_is_admin)]


@router.get("/posts", response_model=BlogPostListResponse)
async def list_posts(
    blog: Blog,
    is_admin: IsAdmin,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: PostStatus | None = Query(None, alias="status"),
    category_id: int | None = Query(None),
    author_id: str | None = Query(None, max_length=128),
    tag: str | None = Query(None, max_length=100),
    search: str | None = Query(None, max_length=200),
    sort_by: str = Query("created_at", description="created_at, updated_at, published_at, title or views"),
    sort_order: str = Query("desc", description="asc or desc"),
    include_drafts: bool = Query(False, description="Admin only; ignored for public callers"),
) -> BlogPostListResponse:
    """List blog posts.

    Public callers only ever see published posts. Admin callers (valid
    ``X-API-Key``) see other statuses when they ask for ``include_drafts`` or
    filter by an explicit ``status``.
    """
    drafts_visible = is_admin and (include_drafts or status_filter is not None)
    posts, pagination = await blog.list(
        page=page,
        limit=limit,
        status=status_filter,
        category_id=category_id,
        author_id=author_id,
        tag=tag,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        include_drafts=drafts_visible,
    )
    return BlogPostListResponse(
        data=[BlogPostOut.model_validate(p) for p in posts],
        pagination=pagination,
    )


@router.get("/posts/popular", response_model=list[BlogPostOut])
async def popular_posts(blog: Blog, limit: int = Query(POPULAR_LIMIT, ge=1, le=50)) -> list[BlogPostOut]:
    return [BlogPostOut.model_validate(p) for p in await blog.popular(limit)]


@router.get("/posts/{slug}", response_model=BlogPostOut)
async def get_post(slug: str, blog: Blog, is_admin: IsAdmin) -> BlogPostOut:
    """Read a post. Each read of a published post counts as a view."""
    return BlogPostOut.model_validate(await blog.get_by_slug(slug, include_drafts=is_admin))


@router.post(
    "/posts",
    response_model=BlogPostOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)],
)
async def create_post(payload: BlogPostCreate, blog: Blog) -> BlogPostOut:
    """Create a post. Slug, excerpt and reading time are derived when omitted."""
    return BlogPostOut.model_validate(await blog.create(payload))


@router.put("/posts/{post_id}", response_model=BlogPostOut, dependencies=[Depends(verify_api_key)])
async def update_post(post_id: int, payload: BlogPostUpdate, blog: Blog) -> BlogPostOut:
    return BlogPostOut.model_validate(await blog.update(post_id, payload))


@router.post("/posts/{post_id}/publish", response_model=BlogPostOut, dependencies=[Depends(verify_api_key)])
async def publish_post(post_id: int, blog: Blog) -> BlogPostOut:
    return BlogPostOut.model_validate(await blog.publish(post_id))


@router.post("/posts/{post_id}/unpublish", response_model=BlogPostOut, dependencies=[Depends(verify_api_key)])
async def unpublish_post(post_id: int, blog: Blog) -> BlogPostOut:
    return BlogPostOut.model_validate(await blog.unpublish(post_id))


@router.delete("/posts/{post_id}", response_model=BlogPostOut, dependencies=[Depends(verify_api_key)])
async def delete_post(post_id: int, blog: Blog) -> BlogPostOut:
    return BlogPostOut.model_validate(await blog.delete(post_id))


@router.get("/categories", response_model=list[BlogCategoryOut])
async def list_blog_categories(blog: Blog) -> list[BlogCategoryOut]:
    return [BlogCategoryOut.model_validate(c) for c in await blog.list_categories()]


@router.post(
    "/categories",
    response_model=BlogCategoryOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)],
)
async def create_blog_category(payload: BlogCategoryCreate, blog: Blog) -> BlogCategoryOut:
    return BlogCategoryOut.model_validate(await blog.create_category(payload))
