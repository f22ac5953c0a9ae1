"""Pydantic schemas for blog posts and categories."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from agency.schemas.common import PaginationInfo

PostStatus = Literal["draft", "published", "archived"]


class BlogCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: str | None = None


class BlogCategoryCreate(BaseModel):
    name: str = Field(..., max_length=120)
    slug: str | None = Field(default=None, max_length=140)
    description: str | None = None


class BlogPostCreate(BaseModel):
    title: str = Field(..., max_length=300)
    content: str
    slug: str | None = Field(default=None, max_length=320, description="Derived from the title when omitted.")
    excerpt: str | None = Field(default=None, max_length=500, description="Derived from the content when omitted.")
    status: PostStatus = "draft"
    author_id: str = Field(default="admin", max_length=128)
    category_id: int | None = None
    is_featured: bool = False
    allow_comments: bool = True
    tags: List[str] = Field(default_factory=list)
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    featured_image: str | None = Field(default=None, max_length=1024)


class BlogPostUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=300)
    content: str | None = None
    slug: str | None = Field(default=None, max_length=320)
    excerpt: str | None = Field(default=None, max_length=500)
    status: PostStatus | None = None
    category_id: int | None = None
    is_featured: bool | None = None
    allow_comments: bool | None = None
    tags: List[str] | None = None
    meta_title: str | None = Field(default=None, max_length=300)
    meta_description: str | None = Field(default=None, max_length=500)
    featured_image: str | None = Field(default=None, max_length=1024)


class BlogPostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    status: str
    author_id: str
    category_id: int | None = None
    is_featured: bool
    allow_comments: bool
    tags: List[str] = Field(default_factory=list)
    meta_title: str | None = None
    meta_description: str | None = None
    featured_image: str | None = None
    reading_time: int
    views: int
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class BlogPostListResponse(BaseModel):
    data: List[BlogPostOut] = Field(default_factory=list)
    pagination: PaginationInfo


class BlogStats(BaseModel):
    total: int = 0
    published: int = 0
    drafts: int = 0
