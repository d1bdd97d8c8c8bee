"""Vehicle model for the backend API."""
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, VersionedMixin


class Vehicle(VersionedMixin, Base):
    __tablename__ = "vehicles"

    license_plate: Mapped[str] = mapped_column(String, nullable=False)
    make: Mapped[str] = mapped_column(String, nullable=False)
    model: Mapped[str] = mapped_column(String, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    vin: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)
    body_type: Mapped[str] = mapped_column(String, nullable=False)
