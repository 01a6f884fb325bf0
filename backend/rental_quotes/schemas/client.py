"""
Pydantic schemas for the Client entity
Project: PPP Rental (Wynajem sprzętu)
"""

import datetime
import re
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def normalize_nip(nip: Optional[str]) -> Optional[str]:
    """
    Normalizes a Polish NIP (tax id).

    Dashes and spaces are removed; the result must have 10 digits.

    Raises:
        ValueError: invalid format
    """
    if nip is None:
        return None
    normalized = re.sub(r"[\s-]", "", nip)
    if not normalized:
        return None
    if not re.match(r"^\d{10}$", normalized):
        raise ValueError("NIP must contain 10 digits")
    return normalized


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Strips spaces; accepts an optional leading + followed by digits."""
    if phone is None:
        return None
    normalized = phone.strip().replace(" ", "")
    if not normalized:
        return None
    if not re.match(r"^\+?\d+$", normalized):
        raise ValueError("Invalid phone number")
    return normalized


class ClientBase(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=255, description="Company name")
    contact_person: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    nip: Optional[str] = Field(None, max_length=20, description="Tax identification number")

    @field_validator("company_name", mode="before")
    @classmethod
    def strip_company_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("nip")
    @classmethod
    def validate_nip(cls, v: Optional[str]) -> Optional[str]:
        return normalize_nip(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_person: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    nip: Optional[str] = Field(None, max_length=20)

    @field_validator("nip")
    @classmethod
    def validate_nip(cls, v: Optional[str]) -> Optional[str]:
        return normalize_nip(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)


class ClientRead(ClientBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    # Stored values are not re-validated on read.
    email: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
