"""User accounts."""
from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, VersionedMixin


class User(VersionedMixin, Base):
    """Registered user; never deleted, only activated or re-passworded."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    activated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
