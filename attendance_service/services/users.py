import logging
from datetime import datetime
from typing import Callable, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError

from attendance_service.core.clock import utcnow
from attendance_service.core.db import MongoStore
from attendance_service.core.errors import AuthError, ConflictError, NotFoundError
from attendance_service.core.security import hash_password, verify_password
from attendance_service.models.user import new_user_document

logger = logging.getLogger(__name__)

# 응답/의존성에서 password는 절대 꺼내지 않는다
PUBLIC_FIELDS = {"password": 0}


class UserService:
    """
    사용자 등록/로그인.
    비밀번호 해싱은 저장 직전에 여기서 명시적으로 한다.
    """

    def __init__(self, store: MongoStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def register(self, name: str, email: str, password: str) -> dict:
        if await self.store.users.find_one({"email": email}, {"_id": 1}):
            raise ConflictError("User already exists")

        doc = new_user_document(name, email, hash_password(password), self.clock())
        try:
            result = await self.store.users.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("User already exists")

        doc["_id"] = result.inserted_id
        doc.pop("password")
        logger.info("User %s registered", result.inserted_id)
        return doc

    async def authenticate(self, email: str, password: str) -> dict:
        user = await self.store.users.find_one({"email": email})
        if user is None or not verify_password(password, user["password"]):
            raise AuthError("Invalid credentials")
        user.pop("password")
        return user

    async def find_user(self, user_id: str) -> Optional[dict]:
        try:
            oid = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None
        return await self.store.users.find_one({"_id": oid}, PUBLIC_FIELDS)

    async def change_password(self, user_id: ObjectId, current: str, new: str) -> None:
        user = await self.store.users.find_one({"_id": user_id})
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(current, user["password"]):
            raise AuthError("Invalid credentials")

        await self.store.users.update_one(
            {"_id": user_id},
            {"$set": {"password": hash_password(new)}},
        )
        logger.info("Password changed for user %s", user_id)
