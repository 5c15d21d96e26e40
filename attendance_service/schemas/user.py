from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from attendance_service.schemas.base import DocumentModel


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PasswordChange(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6, max_length=72)


class UserRead(DocumentModel):
    """password 필드는 절대 포함하지 않음"""
    id: str
    name: str
    email: str
    role: str
    date: Optional[datetime] = None


class TokenResponse(BaseModel):
    success: bool = True
    token: str


class RegisterResponse(TokenResponse):
    user: UserRead


class UserResponse(BaseModel):
    success: bool = True
    user: UserRead


class MessageResponse(BaseModel):
    success: bool = True
    message: str
