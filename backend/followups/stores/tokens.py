"""Token persistence: insert, scoped lookup, purge."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select

from .. import tokens as codec
from ..errors import InvalidOrExpiredToken
from ..models import Token, User
from ..models.base import utcnow
from ..tokens import Scope
from .base import Store


@dataclass(frozen=True)
class IssuedToken:
    """A freshly minted token; the only place the plaintext ever exists."""

    plaintext: str
    hash: bytes
    user_id: int
    scope: Scope
    expiry: datetime


class TokenStore(Store):

    async def create(self, user_id: int, ttl: timedelta, scope: Scope) -> IssuedToken:
        plaintext, digest = codec.mint()
        issued = IssuedToken(
            plaintext=plaintext,
            hash=digest,
            user_id=user_id,
            scope=scope,
            expiry=utcnow() + ttl,
        )
        self.session.add(
            Token(hash=digest, user_id=user_id, scope=scope, expiry=issued.expiry)
        )
        await self.commit()
        return issued

    async def find_valid(self, plaintext: str, scope: Scope) -> User:
        """Return the owner of an unexpired token of ``scope``.

        Malformed, unknown, expired and wrong-scope tokens all raise the
        same ``InvalidOrExpiredToken``.
        """

        if not codec.is_well_formed(plaintext):
            raise InvalidOrExpiredToken()

        statement = (
            select(User)
            .join(Token, Token.user_id == User.id)
            .where(
                Token.hash == codec.hash_of(plaintext),
                Token.scope == scope,
                Token.expiry > utcnow(),
            )
        )
        user = (await self.execute(statement)).scalar_one_or_none()
        if user is None:
            raise InvalidOrExpiredToken()
        return user

    async def purge_for_user_scope(self, user_id: int, scope: Scope) -> None:
        await self.execute(
            delete(Token).where(Token.user_id == user_id, Token.scope == scope)
        )
        await self.commit()

    async def purge_all_for_user(self, user_id: int) -> None:
        await self.execute(delete(Token).where(Token.user_id == user_id))
        await self.commit()
