import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from attendance_service.core.clock import utcnow
from attendance_service.core.config import Settings
from attendance_service.core.db import MongoStore, parse_object_id
from attendance_service.core.errors import ConflictError, NotFoundError
from attendance_service.core.uploads import remove_profile_image
from attendance_service.models.employee import new_employee_document
from attendance_service.schemas.employee import EmployeeCreate

logger = logging.getLogger(__name__)


def _duplicate_message(exc: DuplicateKeyError) -> str:
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    if "employeeId" in key_pattern or "employeeId" in str(exc):
        return "Employee ID already exists"
    return "Employee already exists"


class EmployeeService:
    """직원 CRUD"""

    def __init__(
        self,
        store: MongoStore,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.settings = settings
        self.clock = clock

    async def create_employee(
        self,
        payload: EmployeeCreate,
        profile_image: Optional[str] = None,
    ) -> dict:
        # 이메일 / 사번 중복 먼저 확인 (동시 요청은 unique 인덱스가 막음)
        if await self.store.employees.find_one({"email": payload.email}, {"_id": 1}):
            raise ConflictError("Employee already exists")
        if await self.store.employees.find_one({"employeeId": payload.employeeId}, {"_id": 1}):
            raise ConflictError("Employee ID already exists")

        doc = new_employee_document(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            address=payload.address,
            position=payload.position,
            department=payload.department,
            employee_id=payload.employeeId,
            created_at=self.clock(),
            profile_image=profile_image,
            face_descriptor=payload.faceDescriptor,
        )
        try:
            result = await self.store.employees.insert_one(doc)
        except DuplicateKeyError as exc:
            raise ConflictError(_duplicate_message(exc))

        doc["_id"] = result.inserted_id
        logger.info("Employee %s registered (%s)", doc["employeeId"], result.inserted_id)
        return doc

    async def list_employees(self) -> List[dict]:
        cursor = self.store.employees.find({}, sort=[("createdAt", DESCENDING)])
        return await cursor.to_list(length=None)

    async def get_employee(self, employee_id: str) -> dict:
        oid = parse_object_id(employee_id, "employee ID")
        employee = await self.store.employees.find_one({"_id": oid})
        if employee is None:
            raise NotFoundError("Employee not found")
        return employee

    async def update_employee(
        self,
        employee_id: str,
        fields: Dict[str, Any],
        profile_image: Optional[str] = None,
    ) -> dict:
        """
        부분 수정. fields에 들어있는 키만 $set.
        새 이미지가 올라오면 기존 이미지는 best-effort로 삭제.
        """
        oid = parse_object_id(employee_id, "employee ID")
        current = await self.store.employees.find_one({"_id": oid})
        if current is None:
            raise NotFoundError("Employee not found")

        changes = dict(fields)
        if profile_image is not None:
            changes["profileImage"] = profile_image

        if not changes:
            return current

        # 다른 직원이 이미 쓰는 이메일 / 사번으로는 바꿀 수 없음
        others = {"_id": {"$ne": oid}}
        if "email" in changes and await self.store.employees.find_one(
            {**others, "email": changes["email"]}, {"_id": 1}
        ):
            raise ConflictError("Employee already exists")
        if "employeeId" in changes and await self.store.employees.find_one(
            {**others, "employeeId": changes["employeeId"]}, {"_id": 1}
        ):
            raise ConflictError("Employee ID already exists")

        try:
            updated = await self.store.employees.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise ConflictError(_duplicate_message(exc))

        if updated is None:
            raise NotFoundError("Employee not found")

        old_image = current.get("profileImage")
        if profile_image is not None and old_image and old_image != profile_image:
            remove_profile_image(old_image, self.settings)
        return updated

    async def delete_employee(self, employee_id: str) -> None:
        """
        직원 삭제 + 프로필 이미지 파일 삭제 시도.
        이미지 삭제 실패는 로그만 남기고 삭제 자체는 진행한다.
        attendance 기록은 그대로 남는다.
        """
        oid = parse_object_id(employee_id, "employee ID")
        employee = await self.store.employees.find_one({"_id": oid})
        if employee is None:
            raise NotFoundError("Employee not found")

        remove_profile_image(employee.get("profileImage"), self.settings)

        await self.store.employees.delete_one({"_id": oid})
        logger.info("Employee %s deleted", employee.get("employeeId"))
