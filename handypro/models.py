from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), default="user", nullable=False)  # user, admin
    # Password reset - only the SHA-256 digest of the emailed token is stored
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reviews = relationship("Review", back_populates="user")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    image_url = Column(String(500), nullable=True)
    rating = Column(Integer, default=5, nullable=False)  # rounded average of reviews, 1-5
    created_at = Column(DateTime, server_default=func.now())

    bookings = relationship("Booking", back_populates="service")
    quote_requests = relationship("QuoteRequest", back_populates="service")
    reviews = relationship("Review", back_populates="service")
    projects = relationship("Project", back_populates="service")


class QuoteRequest(Base):
    __tablename__ = "quote_requests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    description = Column(Text, nullable=False)
    address = Column(String(500), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    service = relationship("Service", back_populates="quote_requests")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False, index=True)
    client_phone = Column(String(50), nullable=False)
    appointment_date = Column(DateTime, nullable=False, index=True)  # UTC, window start
    appointment_end = Column(DateTime, nullable=False)  # UTC, exclusive window end
    notes = Column(Text, nullable=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed
    confirmed = Column(Boolean, default=False, nullable=False)

    # Google Calendar sync
    google_calendar_event_id = Column(String(500), nullable=True, index=True)
    calendar_sync_error = Column(Text, nullable=True)  # set when event creation failed after persist

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="bookings")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    author_name = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    service = relationship("Service", back_populates="reviews")
    user = relationship("User", back_populates="reviews")


class Project(Base):
    """Completed job shown in a service's portfolio"""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_urls = Column(JSON, default=list, nullable=False)  # hosted image URLs, at least one
    comment = Column(Text, nullable=True)  # customer's words about the job
    customer_name = Column(String(255), nullable=True)
    project_date = Column(DateTime, nullable=False)  # UTC
    created_at = Column(DateTime, server_default=func.now())

    service = relationship("Service", back_populates="projects")
