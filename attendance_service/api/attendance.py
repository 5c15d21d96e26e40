from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from attendance_service.core.deps import get_attendance_service, get_current_user
from attendance_service.models.attendance import AttendanceStatus
from attendance_service.schemas.attendance import (
    AttendanceDetail,
    AttendanceDetailResponse,
    AttendanceMark,
    AttendancePage,
    AttendanceRead,
    AttendanceRecordRead,
    AttendanceResponse,
    AttendanceStats,
    AttendanceUpdate,
)
from attendance_service.schemas.employee import EmployeeRead
from attendance_service.schemas.user import MessageResponse
from attendance_service.services.attendance import AttendanceService

router = APIRouter(
    prefix="/api/attendance",
    tags=["attendance"],
    dependencies=[Depends(get_current_user)],
)


@router.post(
    "",
    response_model=AttendanceResponse,
)
async def mark_attendance(
    payload: AttendanceMark,
    service: AttendanceService = Depends(get_attendance_service),
):
    """
    출근/퇴근 처리 (같은 엔드포인트):
    - 오늘 첫 요청이면 출근
    - 두 번째 요청이면 퇴근 + workHours 계산
    - 세 번째부터는 400
    """
    message, record = await service.mark_attendance(
        payload.employeeId,
        status=payload.status,
        note=payload.note,
    )
    return AttendanceResponse(message=message, attendance=AttendanceRead.from_document(record))


@router.get(
    "",
    response_model=AttendancePage,
)
async def list_attendance(
    employee_id: Optional[str] = Query(None, alias="employeeId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    status_filter: Optional[AttendanceStatus] = Query(None, alias="status"),
    department: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    service: AttendanceService = Depends(get_attendance_service),
):
    """
    근태 기록 목록 조회 (checkInTime 내림차순):
    GET /api/attendance?department=Sales&startDate=2025-11-01&endDate=2025-11-30&page=2
    """
    result = await service.get_attendance(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        status=status_filter,
        department=department,
        page=page,
        limit=limit,
    )
    return AttendancePage(
        count=result["count"],
        totalPages=result["totalPages"],
        currentPage=result["currentPage"],
        records=[AttendanceRecordRead.from_document(r) for r in result["records"]],
    )


# /{attendance_id} 보다 먼저 등록해야 "stats"가 id로 잡히지 않음
@router.get(
    "/stats",
    response_model=AttendanceStats,
)
async def attendance_stats(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    department: Optional[str] = None,
    service: AttendanceService = Depends(get_attendance_service),
):
    stats = await service.get_attendance_stats(
        start_date=start_date,
        end_date=end_date,
        department=department,
    )
    return AttendanceStats(**stats)


@router.get(
    "/{attendance_id}",
    response_model=AttendanceDetailResponse,
)
async def get_attendance(
    attendance_id: str,
    service: AttendanceService = Depends(get_attendance_service),
):
    record, employee = await service.get_attendance_by_id(attendance_id)
    detail = dict(record)
    detail["employee"] = EmployeeRead.from_document(employee) if employee else None
    return AttendanceDetailResponse(attendance=AttendanceDetail.from_document(detail))


@router.put(
    "/{attendance_id}",
    response_model=AttendanceResponse,
)
async def update_attendance(
    attendance_id: str,
    payload: AttendanceUpdate,
    service: AttendanceService = Depends(get_attendance_service),
):
    record = await service.update_attendance(attendance_id, payload.provided())
    return AttendanceResponse(
        message="Attendance record updated successfully",
        attendance=AttendanceRead.from_document(record),
    )


@router.delete(
    "/{attendance_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def delete_attendance(
    attendance_id: str,
    service: AttendanceService = Depends(get_attendance_service),
):
    await service.delete_attendance(attendance_id)
    return MessageResponse(message="Attendance record deleted successfully")
