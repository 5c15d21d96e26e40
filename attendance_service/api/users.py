from fastapi import APIRouter, Depends, status

from attendance_service.core.config import Settings
from attendance_service.core.deps import get_app_settings, get_current_user, get_user_service
from attendance_service.core.security import create_access_token
from attendance_service.schemas.user import (
    MessageResponse,
    PasswordChange,
    RegisterResponse,
    TokenResponse,
    UserLogin,
    UserRead,
    UserRegister,
    UserResponse,
)
from attendance_service.services.users import UserService

router = APIRouter(
    prefix="/api/users",
    tags=["users"],
)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    payload: UserRegister,
    settings: Settings = Depends(get_app_settings),
    users: UserService = Depends(get_user_service),
):
    user = await users.register(payload.name, payload.email, payload.password)
    token = create_access_token(str(user["_id"]), settings)
    return RegisterResponse(token=token, user=UserRead.from_document(user))


@router.post(
    "/login",
    response_model=TokenResponse,
)
async def login_user(
    payload: UserLogin,
    settings: Settings = Depends(get_app_settings),
    users: UserService = Depends(get_user_service),
):
    user = await users.authenticate(payload.email, payload.password)
    return TokenResponse(token=create_access_token(str(user["_id"]), settings))


@router.get(
    "/me",
    response_model=UserResponse,
)
async def get_me(current_user: dict = Depends(get_current_user)):
    return UserResponse(user=UserRead.from_document(current_user))


@router.put(
    "/me/password",
    response_model=MessageResponse,
)
async def change_password(
    payload: PasswordChange,
    current_user: dict = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    await users.change_password(current_user["_id"], payload.currentPassword, payload.newPassword)
    return MessageResponse(message="Password updated successfully")
