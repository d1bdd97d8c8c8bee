"""Persisted half of a bearer token: its hash, owner, scope and expiry."""
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from ..tokens import Scope
from .base import Base


class Token(Base):
    __tablename__ = "tokens"

    __table_args__ = (Index("ix_tokens_user_scope", "user_id", "scope"),)

    hash: Mapped[bytes] = mapped_column(LargeBinary(32), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    scope: Mapped[Scope] = mapped_column(
        Enum(
            Scope,
            name="token_scope",
            native_enum=False,
            length=32,
            values_callable=lambda scopes: [s.value for s in scopes],
        ),
        nullable=False,
    )
    expiry: Mapped[datetime] = mapped_column(DateTime, nullable=False)
