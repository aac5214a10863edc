"""Catalog service - Business logic for services, reviews and project portfolios"""

import logging
import math
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Project, Review, Service, User
from ..scheduling.time_calculator import to_utc_naive
from .repository import CatalogRepository
from .schemas import ProjectCreate, ReviewCreate, ServiceCreate

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    {
        "name": "General Home Maintenance",
        "description": (
            "Comprehensive home maintenance and repairs including door repairs, window maintenance, "
            "gutter cleaning, small fixes, and other miscellaneous tasks to keep your home in top condition."
        ),
        "category": "General Repairs",
        "image_url": "https://images.unsplash.com/photo-1581783898377-1c85bf937427",
        "rating": 5,
    },
    {
        "name": "Plumbing Repairs",
        "description": "Expert plumbing services including leak repairs, pipe maintenance, and fixture installations.",
        "category": "Plumbing",
        "image_url": "https://images.unsplash.com/photo-1607472586893-edb57bdc0e39",
        "rating": 5,
    },
    {
        "name": "Electrical Work",
        "description": "Professional electrical services including wiring, lighting installation, and electrical repairs.",
        "category": "Electrical",
        "image_url": "https://images.unsplash.com/photo-1621905252507-b35492cc74b4",
        "rating": 5,
    },
]


def round_rating(average: float) -> int:
    """Round half up, clamped to 1-5"""
    return max(1, min(5, math.floor(average + 0.5)))


class CatalogService:
    """Service layer for the service catalog and reviews"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def seed_default_services(self) -> list[Service]:
        """Insert the default services when the catalog is empty"""
        if self.repo.count_services(self.db) > 0:
            return []
        logger.info(f"🌱 Seeding {len(DEFAULT_SERVICES)} default services")
        return self.repo.bulk_create_services(self.db, DEFAULT_SERVICES)

    def get_services(self) -> list[Service]:
        services = self.repo.get_services(self.db)
        if not services:
            services = self.seed_default_services()
        return services

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service_by_id(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, data: ServiceCreate) -> Service:
        logger.info(f"📥 Creating service: {data.name}")
        return self.repo.create_service(
            self.db,
            name=data.name,
            description=data.description,
            category=data.category,
            image_url=data.imageUrl,
            rating=5,
        )

    # ---- Reviews ----

    def create_review(self, service_id: int, data: ReviewCreate, user: Optional[User] = None) -> Review:
        """Store a review, then refresh the service's rounded average rating"""
        service = self.get_service(service_id)
        author = (data.authorName or "").strip() or (user.username if user else "Anonymous")

        review = self.repo.create_review(
            self.db,
            service_id=service.id,
            user_id=user.id if user else None,
            author_name=author,
            rating=data.rating,
            comment=data.comment,
        )
        logger.info(f"✅ Review {review.id} created for service {service.id}")

        try:
            average = self.repo.average_rating(self.db, service.id)
            if average is not None:
                self.repo.update_service_rating(self.db, service, round_rating(float(average)))
                logger.info(f"⭐ Service {service.id} rating updated to {service.rating}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error updating rating for service {service.id}: {e}")

        return review

    def get_reviews(self, service_id: Optional[int] = None) -> list[Review]:
        if service_id is None:
            return self.repo.get_reviews(self.db)
        self.get_service(service_id)
        return self.repo.get_reviews_by_service(self.db, service_id)

    def verify_review(self, review_id: int, verified: bool = True) -> Review:
        review = self.repo.get_review_by_id(self.db, review_id)
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")
        return self.repo.set_review_verified(self.db, review, verified)

    # ---- Projects ----

    def get_projects(self, service_id: int) -> list[Project]:
        self.get_service(service_id)
        projects = self.repo.get_projects_by_service(self.db, service_id)
        logger.info(f"📂 Found {len(projects)} projects for service {service_id}")
        return projects

    def create_project(self, data: ProjectCreate) -> Project:
        """Add a completed job to a service's portfolio; the service must exist"""
        service = self.get_service(data.serviceId)
        project_date = data.projectDate
        if project_date.tzinfo is not None:
            project_date = to_utc_naive(project_date)

        project = self.repo.create_project(
            self.db,
            service_id=service.id,
            title=data.title,
            description=data.description,
            image_urls=data.imageUrls,
            comment=data.comment,
            customer_name=data.customerName,
            project_date=project_date,
        )
        logger.info(f"✅ Project {project.id} added to service {service.id} with {len(data.imageUrls)} image(s)")
        return project
