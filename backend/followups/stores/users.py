"""User persistence."""
from __future__ import annotations

from sqlalchemy import exc as sa_exc
from sqlalchemy import select

from ..errors import DuplicateEmail, NotFound
from ..models import User
from .base import Store
from .versioning import update_versioned


class UserStore(Store):

    async def insert(self, name: str, email: str, password_hash: str) -> User:
        """Persist a new, unactivated user at version 1."""

        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            activated=False,
            version=1,
        )
        self.session.add(user)
        try:
            await self.commit()
        except sa_exc.IntegrityError as exc:
            await self.rollback()
            if "email" in str(exc.orig).lower():
                raise DuplicateEmail() from exc
            raise
        return user

    async def get(self, user_id: int) -> User:
        if user_id < 1:
            raise NotFound()
        user = (await self.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if user is None:
            raise NotFound()
        return user

    async def get_by_email(self, email: str) -> User:
        result = await self.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFound()
        return user

    async def update(self, user: User, **changes) -> int:
        return await update_versioned(self, user, changes)
