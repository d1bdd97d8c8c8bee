"""Pydantic schemas used across the backend API."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict


def as_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC; label them before they leave."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class TokenRead(BaseModel):
    """A bearer token as handed to its owner, exactly once."""

    token: str
    expiry: UTCDateTime


class UserRegister(BaseModel):
    """Payload for user registration."""

    name: str = ""
    email: str = ""
    password: str = ""


class UserLogin(BaseModel):
    """Credentials supplied during login."""

    email: str = ""
    password: str = ""


class ActivationRequest(BaseModel):
    token: str = ""


class RefreshRequest(BaseModel):
    refresh_token: str = ""


class PasswordResetRequest(BaseModel):
    email: str = ""


class PasswordUpdateRequest(BaseModel):
    token: str = ""
    password: str = ""


class UserRead(BaseModel):
    """Public representation of a user; the password hash is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: UTCDateTime
    name: str
    email: str
    activated: bool
    version: int


class VehicleBase(BaseModel):
    """Shared properties for vehicle operations."""

    license_plate: str = ""
    make: str = ""
    model: str = ""
    year: int = 0
    vin: str = ""
    color: str = ""
    body_type: str = ""


class VehicleCreate(VehicleBase):
    """Vehicle payload for creation."""


class VehicleUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    license_plate: str | None = None
    make: str | None = None
    model: str | None = None
    year: int | None = None
    vin: str | None = None
    color: str | None = None
    body_type: str | None = None


class VehicleRead(VehicleBase):
    """Vehicle representation returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: UTCDateTime
    version: int


class MetadataRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

