"""Catalog router - FastAPI endpoints for services, reviews and projects"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    ProjectCreate,
    ProjectResponse,
    ReviewCreate,
    ReviewResponse,
    ServiceCreate,
    ServiceResponse,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def get_services(service: CatalogService = Depends(get_catalog_service)):
    """List the service catalog (seeded with defaults on first use)"""
    return [ServiceResponse.from_service(s) for s in service.get_services()]


@router.get("/services/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return ServiceResponse.from_service(service.get_service(service_id))


@router.post("/services", response_model=ServiceResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ServiceResponse.from_service(service.create_service(data))


# ============================================================================
# REVIEWS
# ============================================================================


@router.post("/services/{service_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    service_id: int,
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    """Review a service and refresh its average rating"""
    return ReviewResponse.from_review(service.create_review(service_id, data, current_user))


@router.get("/services/{service_id}/reviews", response_model=list[ReviewResponse])
async def get_service_reviews(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    """Reviews for one service, newest first"""
    return [ReviewResponse.from_review(r) for r in service.get_reviews(service_id)]


@router.get("/reviews", response_model=list[ReviewResponse])
async def get_reviews(service: CatalogService = Depends(get_catalog_service)):
    return [ReviewResponse.from_review(r) for r in service.get_reviews()]


@router.patch("/reviews/{review_id}/verify", response_model=ReviewResponse)
async def verify_review(
    review_id: int,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ReviewResponse.from_review(service.verify_review(review_id))


# ============================================================================
# PROJECTS
# ============================================================================


@router.get("/projects", response_model=list[ProjectResponse])
async def get_projects(
    service_id: int = Query(..., alias="serviceId"),
    service: CatalogService = Depends(get_catalog_service),
):
    """Portfolio of completed jobs for one service, newest first"""
    return [ProjectResponse.from_project(p) for p in service.get_projects(service_id)]


@router.post("/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    data: ProjectCreate,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    return ProjectResponse.from_project(service.create_project(data))


__all__ = [
    "router",
    "get_catalog_service",
    "get_services",
    "get_service",
    "create_service",
    "create_review",
    "get_service_reviews",
    "get_reviews",
    "verify_review",
    "get_projects",
    "create_project",
]
