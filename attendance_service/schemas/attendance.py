from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from attendance_service.models.attendance import AttendanceStatus
from attendance_service.schemas.base import DocumentModel
from attendance_service.schemas.employee import EmployeeRead


class AttendanceMark(BaseModel):
    """POST /attendance 요청 바디"""
    employeeId: str = Field(..., min_length=1)
    status: Optional[AttendanceStatus] = None
    note: Optional[str] = None


class AttendanceUpdate(BaseModel):
    """PUT /attendance/{id} 요청 바디

    보낸 필드만 반영한다 (model_fields_set 기준).
    빈 문자열 note도 "보낸 값"으로 취급.
    checkOutTime: null 은 퇴근 기록 취소.
    """
    model_config = ConfigDict(extra="forbid")  # 정의되지 않은 필드가 들어오면 400

    status: Optional[AttendanceStatus] = None
    checkInTime: Optional[datetime] = None
    checkOutTime: Optional[datetime] = None
    note: Optional[str] = None

    @field_validator("checkInTime", "checkOutTime")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # timezone 없는 값은 UTC로 간주
        if v is None:
            return v
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v.replace(microsecond=v.microsecond // 1000 * 1000)

    @model_validator(mode="after")
    def check_not_null(self) -> "AttendanceUpdate":
        for name in ("status", "checkInTime"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def provided(self) -> dict:
        return self.model_dump(exclude_unset=True)


class AttendanceRead(DocumentModel):
    """응답용 스키마"""
    id: str
    employee: Optional[str] = None
    date: Optional[datetime] = None
    checkInTime: datetime
    checkOutTime: Optional[datetime] = None
    status: str
    workHours: Optional[float] = None
    note: Optional[str] = None


class AttendanceRecordRead(AttendanceRead):
    """목록 조회용: 직원 정보 일부 포함"""
    employeeName: Optional[str] = None
    employeeId: Optional[str] = None
    department: Optional[str] = None


class AttendanceDetail(AttendanceRead):
    """단건 조회용: 직원 Document 전체 포함 (삭제된 직원이면 null)"""
    employee: Optional[EmployeeRead] = None


class AttendanceResponse(BaseModel):
    success: bool = True
    message: str
    attendance: AttendanceRead


class AttendanceDetailResponse(BaseModel):
    success: bool = True
    attendance: AttendanceDetail


class AttendancePage(BaseModel):
    success: bool = True
    count: int
    totalPages: int
    currentPage: int
    records: List[AttendanceRecordRead]


class StatusCount(BaseModel):
    status: Optional[str] = None
    count: int


class DailyCount(BaseModel):
    date: str
    count: int


class DepartmentCount(BaseModel):
    department: Optional[str] = None
    count: int


class AttendanceStats(BaseModel):
    success: bool = True
    statusStats: List[StatusCount]
    dailyStats: List[DailyCount]
    departmentStats: List[DepartmentCount]
    totalEmployees: int
    presentToday: int
