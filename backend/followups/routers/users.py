"""User registration, activation and password reset endpoints."""
from fastapi import APIRouter, Depends, status

from ..auth import AuthService
from ..dependencies import get_auth_service
from ..schemas import (
    ActivationRequest,
    PasswordResetRequest,
    PasswordUpdateRequest,
    UserRead,
    UserRegister,
)

router = APIRouter(prefix="/v1/users", tags=["users"])

RESET_REQUESTED_MESSAGE = (
    "an email will be sent to you containing password reset instructions"
)


@router.post("/register", status_code=status.HTTP_202_ACCEPTED)
async def register_user(
    payload: UserRegister, service: AuthService = Depends(get_auth_service)
) -> dict:
    """Create an unactivated account and mail its activation token."""

    user = await service.register(payload.name, payload.email, payload.password)
    return {"user": UserRead.model_validate(user)}


@router.put("/activated")
async def activate_user(
    payload: ActivationRequest, service: AuthService = Depends(get_auth_service)
) -> dict:
    user = await service.activate(payload.token)
    return {"user": UserRead.model_validate(user)}


@router.put("/resetpassword")
async def request_password_reset(
    payload: PasswordResetRequest, service: AuthService = Depends(get_auth_service)
) -> dict:
    """Same answer whether or not the address belongs to an account."""

    await service.request_password_reset(payload.email)
    return {"message": RESET_REQUESTED_MESSAGE}


@router.put("/updatepassword")
async def update_password(
    payload: PasswordUpdateRequest, service: AuthService = Depends(get_auth_service)
) -> dict:
    await service.confirm_password_reset(payload.token, payload.password)
    return {"message": "your password was successfully reset"}
