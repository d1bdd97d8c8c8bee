"""Login and refresh endpoints issuing bearer tokens."""
from fastapi import APIRouter, Depends, status

from ..auth import AuthService
from ..dependencies import get_auth_service
from ..schemas import RefreshRequest, TokenRead, UserLogin
from ..stores import IssuedToken

router = APIRouter(prefix="/v1/tokens", tags=["auth"])


def token_read(token: IssuedToken) -> TokenRead:
    return TokenRead(token=token.plaintext, expiry=token.expiry)


@router.post("/authentication", status_code=status.HTTP_201_CREATED)
async def create_authentication_token(
    payload: UserLogin, service: AuthService = Depends(get_auth_service)
) -> dict:
    """Authenticate a user and return an authentication and a refresh token."""

    tokens = await service.login(payload.email, payload.password)
    return {
        "authentication_token": token_read(tokens.authentication),
        "refresh_token": token_read(tokens.refresh),
    }


@router.put("/refresh", status_code=status.HTTP_201_CREATED)
async def refresh_authentication_token(
    payload: RefreshRequest, service: AuthService = Depends(get_auth_service)
) -> dict:
    token = await service.refresh(payload.refresh_token)
    return {"authentication_token": token_read(token)}
