from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from attendance_service.core.config import Settings
from attendance_service.core.errors import AuthError


def hash_password(password: str) -> str:
    # salt는 매번 새로 생성 (rounds=10)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10))
    return hashed.decode("utf-8")


def verify_password(candidate: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(candidate.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # 저장된 값이 bcrypt 해시 형식이 아님
        return False


def create_access_token(user_id: str, settings: Settings) -> str:
    payload = {
        "user": {"id": user_id},
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> str:
    """토큰을 검증하고 user id를 돌려준다."""
    try:
        data = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthError("Unauthorized")

    user_id = (data.get("user") or {}).get("id")
    if not user_id:
        raise AuthError("Unauthorized")
    return user_id
