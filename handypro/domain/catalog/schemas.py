"""Catalog domain schemas - services, reviews and project portfolio"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ..scheduling.time_calculator import from_utc_naive


class ServiceCreate(BaseModel):
    """Schema for adding a service to the catalog"""

    name: str
    description: str
    category: str
    imageUrl: Optional[str] = None

    @field_validator("name", "description", "category")
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: str
    category: str
    imageUrl: Optional[str] = None
    rating: int

    @classmethod
    def from_service(cls, service) -> "ServiceResponse":
        return cls(
            id=service.id,
            name=service.name,
            description=service.description,
            category=service.category,
            imageUrl=service.image_url,
            rating=service.rating,
        )


class ReviewCreate(BaseModel):
    """Schema for a review; authorName defaults to the reviewer's username"""

    rating: int
    comment: str
    authorName: Optional[str] = None

    @field_validator("rating")
    @classmethod
    def validate_rating(cls, v):
        if not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v

    @field_validator("comment")
    @classmethod
    def validate_comment(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class ReviewResponse(BaseModel):
    id: int
    serviceId: int
    userId: Optional[int] = None
    authorName: str
    rating: int
    comment: str
    verified: bool
    createdAt: Optional[datetime] = None

    @classmethod
    def from_review(cls, review) -> "ReviewResponse":
        return cls(
            id=review.id,
            serviceId=review.service_id,
            userId=review.user_id,
            authorName=review.author_name,
            rating=review.rating,
            comment=review.comment,
            verified=review.verified,
            createdAt=review.created_at,
        )


class ProjectCreate(BaseModel):
    """Schema for adding a completed job to a service's portfolio.

    Images are referenced by URL; at least one is required.
    """

    serviceId: int
    title: str
    description: str
    imageUrls: list[str]
    comment: Optional[str] = None
    customerName: Optional[str] = None
    projectDate: datetime  # values without an offset are read as UTC

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("imageUrls")
    @classmethod
    def validate_image_urls(cls, v):
        urls = [url.strip() for url in v if url and url.strip()]
        if not urls:
            raise ValueError("At least one image is required")
        for url in urls:
            if not (url.startswith(("http://", "https://")) or url.startswith("/")):
                raise ValueError(f"Invalid image URL: {url}")
        return urls

    @field_validator("comment", "customerName")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class ProjectResponse(BaseModel):
    id: int
    serviceId: int
    title: str
    description: str
    imageUrls: list[str]
    comment: Optional[str] = None
    customerName: Optional[str] = None
    projectDate: datetime
    createdAt: Optional[datetime] = None

    @classmethod
    def from_project(cls, project) -> "ProjectResponse":
        return cls(
            id=project.id,
            serviceId=project.service_id,
            title=project.title,
            description=project.description,
            imageUrls=list(project.image_urls or []),
            comment=project.comment,
            customerName=project.customer_name,
            projectDate=from_utc_naive(project.project_date),
            createdAt=project.created_at,
        )
