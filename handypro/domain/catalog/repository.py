"""Catalog repository - Database operations for services, reviews and projects"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Project, Review, Service


class CatalogRepository:
    """Repository for service, review and project database operations"""

    @staticmethod
    def get_services(db: Session) -> list[Service]:
        return db.query(Service).order_by(Service.id.asc()).all()

    @staticmethod
    def count_services(db: Session) -> int:
        return db.query(func.count(Service.id)).scalar() or 0

    @staticmethod
    def get_service_by_id(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def bulk_create_services(db: Session, services: list[dict]) -> list[Service]:
        created = [Service(**data) for data in services]
        db.add_all(created)
        db.commit()
        for service in created:
            db.refresh(service)
        return created

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def get_review_by_id(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def get_reviews(db: Session) -> list[Review]:
        return db.query(Review).order_by(Review.created_at.desc(), Review.id.desc()).all()

    @staticmethod
    def get_reviews_by_service(db: Session, service_id: int) -> list[Review]:
        """Reviews for a service, newest first"""
        return (
            db.query(Review)
            .filter(Review.service_id == service_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def average_rating(db: Session, service_id: int) -> Optional[float]:
        return db.query(func.avg(Review.rating)).filter(Review.service_id == service_id).scalar()

    @staticmethod
    def update_service_rating(db: Session, service: Service, rating: int) -> Service:
        service.rating = rating
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def set_review_verified(db: Session, review: Review, verified: bool) -> Review:
        review.verified = verified
        db.commit()
        db.refresh(review)
        return review

    @staticmethod
    def get_projects_by_service(db: Session, service_id: int) -> list[Project]:
        """Portfolio entries for a service, newest first"""
        return (
            db.query(Project)
            .filter(Project.service_id == service_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )

    @staticmethod
    def create_project(db: Session, **project_data) -> Project:
        project = Project(**project_data)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
