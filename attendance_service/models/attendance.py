from datetime import datetime
from enum import Enum
from typing import Optional

from bson import ObjectId


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LEAVE = "Leave"
    HALF_DAY = "Half Day"
    LATE = "Late"


def new_attendance_document(
    employee_id: ObjectId,
    day_start: datetime,
    check_in: datetime,
    status: AttendanceStatus = AttendanceStatus.PRESENT,
    note: Optional[str] = None,
) -> dict:
    """
    attendance 컬렉션 Document.
    date = 해당 날짜의 자정(UTC 환산) -> (employee, date) unique 인덱스의 키
    """
    return {
        "employee": employee_id,
        "date": day_start,
        "checkInTime": check_in,
        "checkOutTime": None,
        "status": status.value,
        "workHours": None,
        "note": note or "",
    }
