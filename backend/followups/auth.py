"""Authentication flows built on opaque, scoped tokens.

Each public coroutine is one flow.  Token purges always run after the user
row has been committed, so an ``EditConflict`` leaves every token intact.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import structlog
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from .background import BackgroundTaskGroup
from .errors import InvalidCredentials, InvalidOrExpiredToken, NotFound
from .mailer import Mailer
from .models import User
from .stores import IssuedToken, TokenStore, UserStore
from .tokens import Scope, is_well_formed
from .validation import (
    Validator,
    validate_email,
    validate_password_plaintext,
    validate_registration,
)

logger = structlog.get_logger(__name__)

ACTIVATION_TTL = timedelta(days=3)
AUTHENTICATION_TTL = timedelta(hours=24)
REFRESH_TTL = timedelta(days=30)
PASSWORD_RESET_TTL = timedelta(hours=3)

# Use PBKDF2-SHA256 instead of bcrypt to avoid bcrypt backend issues
password_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return password_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against the stored hash."""
    return password_context.verify(password, password_hash)


@dataclass(frozen=True)
class LoginTokens:
    authentication: IssuedToken
    refresh: IssuedToken


class AuthService:
    """Register, activate, log in, refresh and reset passwords."""

    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer,
        background: BackgroundTaskGroup,
        timeout: float | None = None,
    ) -> None:
        self.users = UserStore(session, timeout)
        self.tokens = TokenStore(session, timeout)
        self.mailer = mailer
        self.background = background

    async def register(self, name: str, email: str, password: str) -> User:
        v = Validator()
        validate_registration(v, name, email, password)
        v.raise_if_invalid()

        user = await self.users.insert(name, email, hash_password(password))
        token = await self.tokens.create(user.id, ACTIVATION_TTL, Scope.ACTIVATION)

        self._send_later(
            user.email,
            "user_welcome.j2",
            {"user_id": user.id, "activation_token": token.plaintext},
        )
        return user

    async def activate(self, token_plaintext: str) -> User:
        user = await self._owner_of(token_plaintext, Scope.ACTIVATION)

        await self.users.update(user, activated=True)
        await self.tokens.purge_for_user_scope(user.id, Scope.ACTIVATION)
        return user

    async def login(self, email: str, password: str) -> LoginTokens:
        v = Validator()
        validate_email(v, email)
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        try:
            user = await self.users.get_by_email(email)
        except NotFound:
            # Spend the same hashing effort as a real check.
            password_context.dummy_verify()
            raise InvalidCredentials() from None

        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        return LoginTokens(
            authentication=await self.tokens.create(
                user.id, AUTHENTICATION_TTL, Scope.AUTHENTICATION
            ),
            refresh=await self.tokens.create(user.id, REFRESH_TTL, Scope.REFRESH),
        )

    async def refresh(self, refresh_plaintext: str) -> IssuedToken:
        """Issue a new authentication token; the refresh token is left as is."""

        user = await self._owner_of(refresh_plaintext, Scope.REFRESH)
        return await self.tokens.create(user.id, AUTHENTICATION_TTL, Scope.AUTHENTICATION)

    async def request_password_reset(self, email: str) -> None:
        """Mail a reset token if the address is registered.

        Returns normally for unknown addresses too.
        """

        v = Validator()
        validate_email(v, email)
        v.raise_if_invalid()

        try:
            user = await self.users.get_by_email(email)
        except NotFound:
            return

        token = await self.tokens.create(user.id, PASSWORD_RESET_TTL, Scope.PASSWORD_RESET)
        self._send_later(
            user.email,
            "password_reset.j2",
            {"password_reset_token": token.plaintext},
        )

    async def confirm_password_reset(self, token_plaintext: str, password: str) -> User:
        v = Validator()
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        user = await self._owner_of(token_plaintext, Scope.PASSWORD_RESET)

        await self.users.update(user, password_hash=hash_password(password))
        await self.tokens.purge_all_for_user(user.id)
        return user

    async def authenticate(self, token_plaintext: str) -> User:
        """Resolve a bearer token from the Authorization header."""

        return await self._owner_of(token_plaintext, Scope.AUTHENTICATION)

    async def _owner_of(self, token_plaintext: str, scope: Scope) -> User:
        if not is_well_formed(token_plaintext):
            raise InvalidOrExpiredToken()
        return await self.tokens.find_valid(token_plaintext, scope)

    def _send_later(self, recipient: str, template: str, data: dict) -> None:
        async def job() -> None:
            await self.mailer.send(recipient, template, data)

        self.background.spawn(job(), name=template, context={"email": recipient})
