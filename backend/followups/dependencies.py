"""Reusable FastAPI dependencies."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import AuthService
from .background import BackgroundTaskGroup
from .database import get_session
from .errors import AuthenticationRequired, InactiveAccount, InvalidOrExpiredToken
from .mailer import Mailer
from .models import User
from .stores import VehicleStore

# Use simple Bearer auth instead of OAuth2 password flow
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields an AsyncSession."""
    async for session in get_session():
        yield session


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_background(request: Request) -> BackgroundTaskGroup:
    return request.app.state.background


def get_auth_service(
    session: AsyncSession = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    background: BackgroundTaskGroup = Depends(get_background),
) -> AuthService:
    return AuthService(session, mailer, background)


def get_vehicle_store(session: AsyncSession = Depends(get_db_session)) -> VehicleStore:
    return VehicleStore(session)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    service: AuthService = Depends(get_auth_service),
) -> User | None:
    """
    Return the user owning the authentication token in the
    Authorization: Bearer <token> header, or None for anonymous requests.
    """

    if credentials is None:
        if request.headers.get("Authorization"):
            raise InvalidOrExpiredToken()
        return None

    return await service.authenticate(credentials.credentials)


async def require_activated_user(
    user: User | None = Depends(get_current_user),
) -> User:
    """Ensure the caller is authenticated and has activated their account."""

    if user is None:
        raise AuthenticationRequired()
    if not user.activated:
        raise InactiveAccount()
    return user
