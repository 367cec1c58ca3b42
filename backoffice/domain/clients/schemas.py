"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_required_text


class ClientCreate(BaseModel):
    """Schema for creating a new client"""

    name: str
    taxId: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Name")

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class ClientUpdate(BaseModel):
    """Schema for updating an existing client"""

    name: Optional[str] = None
    taxId: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None:
            return validate_required_text(v, "Name")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    name: str
    taxId: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    postalCode: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]


def client_response(client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        taxId=client.tax_id,
        email=client.email,
        phone=client.phone,
        address=client.address,
        city=client.city,
        postalCode=client.postal_code,
        notes=client.notes,
        created_at=client.created_at,
    )
