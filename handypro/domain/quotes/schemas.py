"""Quote request schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_contact_phone, validate_required_email


class QuoteRequestCreate(BaseModel):
    """Schema for a public quote request"""

    name: str
    email: str
    phone: str
    serviceId: int
    description: str
    address: str

    @field_validator("name", "description", "address")
    @classmethod
    def not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return validate_required_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_contact_phone(v)


class QuoteRequestResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    serviceId: int
    description: str
    address: str
    createdAt: Optional[datetime] = None

    @classmethod
    def from_quote_request(cls, quote) -> "QuoteRequestResponse":
        return cls(
            id=quote.id,
            name=quote.name,
            email=quote.email,
            phone=quote.phone,
            serviceId=quote.service_id,
            description=quote.description,
            address=quote.address,
            createdAt=quote.created_at,
        )
