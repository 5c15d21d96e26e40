from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


def new_user_document(
    name: str,
    email: str,
    password_hash: str,
    created_at: datetime,
    role: Role = Role.USER,
) -> dict:
    # password에는 항상 bcrypt 해시만 들어간다
    return {
        "name": name,
        "email": email,
        "password": password_hash,
        "role": role.value,
        "date": created_at,
    }
