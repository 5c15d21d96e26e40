from datetime import datetime
from typing import Callable

from fastapi import Depends, Request

from attendance_service.core.clock import utcnow
from attendance_service.core.config import Settings
from attendance_service.core.db import MongoStore, get_store
from attendance_service.core.errors import AuthError
from attendance_service.core.security import decode_access_token
from attendance_service.services.attendance import AttendanceService
from attendance_service.services.employees import EmployeeService
from attendance_service.services.users import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clock(request: Request) -> Callable[[], datetime]:
    return getattr(request.app.state, "clock", utcnow)


def get_user_service(
    store: MongoStore = Depends(get_store),
) -> UserService:
    return UserService(store)


def get_employee_service(
    store: MongoStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> EmployeeService:
    return EmployeeService(store, settings, clock=clock)


def get_attendance_service(
    store: MongoStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AttendanceService:
    return AttendanceService(store, tz_name=settings.TIMEZONE, clock=clock)


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    users: UserService = Depends(get_user_service),
) -> dict:
    """
    x-auth-token 헤더의 JWT를 검증하고 현재 사용자(비밀번호 제외)를 반환.
    토큰이 없거나, 만료/위조되었거나, 사용자가 삭제된 경우 401.
    """
    token = request.headers.get(settings.AUTH_HEADER)
    if not token:
        raise AuthError("Unauthorized")

    user_id = decode_access_token(token.strip(), settings)
    user = await users.find_user(user_id)
    if user is None:
        raise AuthError("Unauthorized")
    return user
