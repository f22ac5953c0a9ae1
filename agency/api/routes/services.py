from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from agency.api.dependencies import get_service_catalog
from agency.core.auth import verify_api_key
from agency.core.rate_limit import derive_client_key
from agency.schemas.services import (
    CategoryWithServices,
    InquiryServiceRef,
    ServiceCategoryCreate,
    ServiceCategoryOut,
    ServiceCreate,
    ServiceInquiryCreate,
    ServiceInquiryListItem,
    ServiceInquiryListResponse,
    ServiceInquiryOut,
    ServiceInquirySubmitted,
    ServiceOut,
    ServiceUpdate,
)
from agency.services.service_catalog_service import DEFAULT_INQUIRY_LIMIT, ServiceCatalogService

router = APIRouter(prefix="/services", tags=["Services"])

Catalog = Annotated[ServiceCatalogService, Depends(get_service_catalog)]


@router.get("", response_model=list[ServiceOut])
async def list_services(
    catalog: Catalog,
    category: str | None = Query(None, description="Category slug"),
    search: str | None = Query(None, max_length=200),
    popular: bool | None = Query(None),
    featured: bool | None = Query(None),
    limit: int | None = Query(None, ge=1, le=100),
) -> list[ServiceOut]:
    """Active services for the public catalog, featured first."""
    services = await catalog.list(
        category=category, search=search, popular=popular, featured=featured, limit=limit
    )
    return [ServiceOut.model_validate(s) for s in services]


@router.get("/categories", response_model=list[ServiceCategoryOut])
async def list_service_categories(catalog: Catalog) -> list[ServiceCategoryOut]:
    return [ServiceCategoryOut.model_validate(c) for c in await catalog.list_categories()]


@router.post(
    "/categories",
    response_model=ServiceCategoryOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)],
)
async def create_service_category(payload: ServiceCategoryCreate, catalog: Catalog) -> ServiceCategoryOut:
    return ServiceCategoryOut.model_validate(await catalog.create_category(payload))


@router.get("/categories/{slug}", response_model=CategoryWithServices)
async def get_service_category(slug: str, catalog: Catalog) -> CategoryWithServices:
    category, services = await catalog.category_with_services(slug)
    return CategoryWithServices(
        **ServiceCategoryOut.model_validate(category).model_dump(),
        services=[ServiceOut.model_validate(s) for s in services],
    )


@router.get(
    "/inquiries",
    response_model=ServiceInquiryListResponse,
    dependencies=[Depends(verify_api_key)],
)
async def list_service_inquiries(
    catalog: Catalog,
    service: str | None = Query(None, description="Service slug"),
    limit: int = Query(DEFAULT_INQUIRY_LIMIT, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ServiceInquiryListResponse:
    rows, total = await catalog.list_inquiries(service_slug=service, limit=limit, offset=offset)
    return ServiceInquiryListResponse(
        data=[
            ServiceInquiryListItem(
                **ServiceInquiryOut.model_validate(inquiry).model_dump(),
                service=InquiryServiceRef(title=title, slug=slug),
            )
            for inquiry, title, slug in rows
        ],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{slug}", response_model=ServiceOut)
async def get_service(slug: str, catalog: Catalog) -> ServiceOut:
    return ServiceOut.model_validate(await catalog.get_by_slug(slug))


@router.post("/{slug}/views")
async def track_service_view(slug: str, catalog: Catalog) -> dict:
    return {"slug": slug, "views": await catalog.track_view(slug)}


@router.post("/{slug}/inquiries", response_model=ServiceInquirySubmitted, status_code=status.HTTP_201_CREATED)
async def submit_service_inquiry(
    slug: str, payload: ServiceInquiryCreate, request: Request, catalog: Catalog
) -> ServiceInquirySubmitted:
    """Store a project request for the service. 404 when the service is not listed."""
    inquiry = await catalog.create_inquiry(
        slug,
        payload,
        ip_address=derive_client_key(request.headers),
        user_agent=request.headers.get("user-agent"),
    )
    return ServiceInquirySubmitted(id=inquiry.id)


@router.post(
    "",
    response_model=ServiceOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)],
)
async def create_service(payload: ServiceCreate, catalog: Catalog) -> ServiceOut:
    return ServiceOut.model_validate(await catalog.create(payload))


@router.put(
    "/{service_id}",
    response_model=ServiceOut,
    dependencies=[Depends(verify_api_key)],
)
async def update_service(service_id: int, payload: ServiceUpdate, catalog: Catalog) -> ServiceOut:
    return ServiceOut.model_validate(await catalog.update(service_id, payload))


@router.delete(
    "/{service_id}",
    response_model=ServiceOut,
    dependencies=[Depends(verify_api_key)],
)
async def delete_service(service_id: int, catalog: Catalog) -> ServiceOut:
    return ServiceOut.model_validate(await catalog.delete(service_id))
