"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Booking, Service
from .errors import PersistenceError


class BookingRepository:
    """Repository for booking database operations.

    Write paths roll back and raise PersistenceError on any SQLAlchemy failure.
    """

    @staticmethod
    def get_bookings(db: Session, email: Optional[str] = None) -> list[Booking]:
        """Get all bookings, optionally for one client email"""
        query = db.query(Booking)
        if email:
            query = query.filter(Booking.client_email == email.strip().lower())
        return query.order_by(Booking.appointment_date.desc()).all()

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_unconfirmed_bookings(db: Session) -> list[Booking]:
        """Bookings persisted but never confirmed by the calendar"""
        return (
            db.query(Booking)
            .filter(Booking.confirmed.is_(False), Booking.calendar_sync_error.isnot(None))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def service_exists(db: Session, service_id: int) -> bool:
        return db.query(Service.id).filter(Service.id == service_id).first() is not None

    @staticmethod
    def create_pending_booking(db: Session, **booking_data) -> Booking:
        """Insert a booking in the pending, unconfirmed state"""
        booking = Booking(status="pending", confirmed=False, **booking_data)
        try:
            db.add(booking)
            db.commit()
            db.refresh(booking)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("The booking could not be saved.") from e
        return booking

    @staticmethod
    def mark_confirmed(db: Session, booking: Booking, event_id: str) -> Booking:
        booking.status = "confirmed"
        booking.confirmed = True
        booking.google_calendar_event_id = event_id
        booking.calendar_sync_error = None
        try:
            db.commit()
            db.refresh(booking)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(
                "The calendar event was created but the booking could not be confirmed."
            ) from e
        return booking

    @staticmethod
    def record_sync_failure(
        db: Session, booking: Booking, reason: str, event_id: Optional[str] = None
    ) -> Booking:
        """Leave the booking pending and remember why the calendar step failed"""
        booking.calendar_sync_error = reason[:1000]
        if event_id:
            booking.google_calendar_event_id = event_id
        try:
            db.commit()
            db.refresh(booking)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError("The booking sync failure could not be recorded.") from e
        return booking
