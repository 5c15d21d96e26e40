import logging
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING

from attendance_service.core.config import Settings
from attendance_service.core.errors import InvalidIdentifierError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
EMPLOYEES_COLLECTION = "employees"
ATTENDANCE_COLLECTION = "attendance"


class MongoStore:
    """
    MongoDB 연결 핸들.

    전역 싱글톤 대신 앱 시작 시 한 번 만들어서 app.state.store에 넣고,
    각 서비스에는 의존성 주입으로 넘긴다.
    client는 AsyncIOMotorClient와 같은 인터페이스면 무엇이든 된다 (테스트에선 mongomock-motor).
    """

    def __init__(self, client: Any, db_name: str):
        self.client = client
        self.db = client[db_name]

    @classmethod
    def from_settings(cls, settings: Settings) -> "MongoStore":
        client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            socketTimeoutMS=settings.MONGODB_SOCKET_TIMEOUT_MS,
        )
        logger.info("MongoDB client created for database %s", settings.MONGODB_DB_NAME)
        return cls(client, settings.MONGODB_DB_NAME)

    @property
    def users(self) -> AsyncIOMotorCollection:
        return self.db[USERS_COLLECTION]

    @property
    def employees(self) -> AsyncIOMotorCollection:
        return self.db[EMPLOYEES_COLLECTION]

    @property
    def attendance(self) -> AsyncIOMotorCollection:
        return self.db[ATTENDANCE_COLLECTION]

    async def ensure_indexes(self) -> None:
        """
        애플리케이션 시작 시 한 번 호출.
        (employee, date) unique 인덱스가 "하루 한 건" 규칙의 최종 방어선이다.
        이미 있으면 아무 일도 안 함.
        """
        await self.users.create_index([("email", ASCENDING)], unique=True)
        await self.employees.create_index([("email", ASCENDING)], unique=True)
        await self.employees.create_index([("employeeId", ASCENDING)], unique=True)
        await self.attendance.create_index(
            [("employee", ASCENDING), ("date", ASCENDING)],
            unique=True,
        )
        await self.attendance.create_index([("checkInTime", DESCENDING)])
        logger.info("MongoDB indexes ensured")

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB client closed")


def parse_object_id(value: Any, label: str = "ID") -> ObjectId:
    """문자열 -> ObjectId. 형식이 잘못되면 400 (InvalidIdentifierError)."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise InvalidIdentifierError(f"Invalid {label}")


# FastAPI 의존성 주입용
def get_store(request: Request) -> MongoStore:
    return request.app.state.store
