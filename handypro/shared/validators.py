"""Shared validation utilities"""

import re
from datetime import datetime, timezone
from typing import Optional

MIN_PASSWORD_LENGTH = 8


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize US phone number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        Normalized phone number in E.164 format (+1XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Handle +1 prefix
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    # US phone numbers should have 10 digits
    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits for US numbers")

    # Format as E.164 for storage
    return f"+1{digits}"


def validate_contact_phone(phone: Optional[str]) -> str:
    """
    Require a phone number; US numbers are normalized to E.164,
    anything else with 7-15 digits is kept as entered.
    """
    if phone is None or not phone.strip():
        raise ValueError("Phone number is required")

    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10 or (len(digits) == 11 and digits.startswith("1")):
        return validate_us_phone(phone)
    if not 7 <= len(digits) <= 15:
        raise ValueError("Invalid phone number")
    return phone


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_required_email(email: Optional[str]) -> str:
    if not email or not email.strip():
        raise ValueError("Email is required")
    return validate_email(email)


def validate_password(password: str) -> str:
    """Minimum length only; hashing handles the rest"""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def validate_future_datetime(value: datetime, now: Optional[datetime] = None) -> datetime:
    """Reject naive timestamps and anything not strictly in the future"""
    if value.tzinfo is None:
        raise ValueError("Timestamp must include a timezone offset")
    now = now or datetime.now(timezone.utc)
    if value <= now:
        raise ValueError("Appointment date must be in the future")
    return value
