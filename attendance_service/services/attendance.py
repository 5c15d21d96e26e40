import asyncio
import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from attendance_service.core.clock import date_bounds, day_bounds, local_date, round_hours, utcnow
from attendance_service.core.db import MongoStore, parse_object_id
from attendance_service.core.errors import ConflictError, InvalidStateError, NotFoundError
from attendance_service.models.attendance import AttendanceStatus, new_attendance_document

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def compute_work_hours(check_in: datetime, check_out: datetime) -> float:
    """
    (checkOut - checkIn) 시간 단위, 소수점 2자리.
    음수면 InvalidStateError.
    """
    delta = check_out - check_in
    if delta < timedelta(0):
        raise InvalidStateError("Invalid check-out time")
    return round_hours(delta)


def clamp_pagination(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    page = DEFAULT_PAGE if page is None else max(1, page)
    limit = DEFAULT_LIMIT if limit is None else min(MAX_LIMIT, max(1, limit))
    return page, limit


def employee_lookup_stages(department: Optional[str] = None) -> List[dict]:
    """attendance -> employees 조인 (+ 선택적으로 부서 필터)"""
    stages: List[dict] = [
        {
            "$lookup": {
                "from": "employees",
                "localField": "employee",
                "foreignField": "_id",
                "as": "employeeDetails",
            }
        },
        {"$unwind": "$employeeDetails"},
    ]
    if department:
        stages.append({"$match": {"employeeDetails.department": department}})
    return stages


def day_label_expression(tz_name: str) -> dict:
    """checkInTime -> "YYYY-MM-DD" (TIMEZONE 기준)"""
    expr: Dict[str, Any] = {"format": "%Y-%m-%d", "date": "$checkInTime"}
    if tz_name != "UTC":
        expr["timezone"] = tz_name
    return {"$dateToString": expr}


class AttendanceService:
    """
    출퇴근 처리 + 조회/통계.

    직원 1명당 하루(TIMEZONE 기준 자정~자정)에 attendance Document는 최대 1개:
    NoRecord -> (출근) CheckedIn -> (퇴근) CheckedOut, 퇴근은 딱 한 번만.
    """

    def __init__(
        self,
        store: MongoStore,
        tz_name: str = "UTC",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.tz_name = tz_name
        self.clock = clock

    async def mark_attendance(
        self,
        employee_id: str,
        status: Optional[AttendanceStatus] = None,
        note: Optional[str] = None,
    ) -> Tuple[str, dict]:
        """
        출근/퇴근 처리:
        - 오늘 기록이 없으면 출근 Document 생성
        - 오늘 기록이 있고 checkOutTime이 없으면 퇴근 처리 + workHours 계산
        - 이미 퇴근했으면 400 (Conflict)
        반환값: (메시지, Document)
        """
        oid = parse_object_id(employee_id, "employee ID")

        # 먼저 직원이 존재하는지 확인
        employee = await self.store.employees.find_one({"_id": oid}, {"_id": 1})
        if employee is None:
            raise NotFoundError("Employee not found")

        now = self.clock()
        start, end = day_bounds(now, self.tz_name)

        existing = await self.store.attendance.find_one(
            {"employee": oid, "date": {"$gte": start, "$lt": end}}
        )

        if existing is None:
            return "Checked in successfully", await self._check_in(oid, start, now, status, note)

        if existing.get("checkOutTime") is None:
            return "Checked out successfully", await self._check_out(existing, now, note)

        raise ConflictError("Already checked out for today")

    async def _check_in(
        self,
        employee_oid,
        day_start: datetime,
        now: datetime,
        status: Optional[AttendanceStatus],
        note: Optional[str],
    ) -> dict:
        doc = new_attendance_document(
            employee_oid,
            day_start,
            now,
            status=status or AttendanceStatus.PRESENT,
            note=note,
        )
        try:
            result = await self.store.attendance.insert_one(doc)
        except DuplicateKeyError:
            # 동시에 들어온 출근 요청 중 늦은 쪽
            raise ConflictError("Attendance already recorded for today")

        doc["_id"] = result.inserted_id
        logger.info("Employee %s checked in at %s", employee_oid, now.isoformat())
        return doc

    async def _check_out(self, record: dict, now: datetime, note: Optional[str]) -> dict:
        work_hours = compute_work_hours(record["checkInTime"], now)

        changes: Dict[str, Any] = {"checkOutTime": now, "workHours": work_hours}
        if note is not None:
            changes["note"] = note

        # checkOutTime이 아직 None일 때만 갱신 -> 퇴근은 한 번만 성공
        updated = await self.store.attendance.find_one_and_update(
            {"_id": record["_id"], "checkOutTime": None},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise ConflictError("Already checked out for today")

        logger.info(
            "Employee %s checked out at %s (%.2f h)",
            record["employee"],
            now.isoformat(),
            work_hours,
        )
        return updated

    async def get_attendance_by_id(self, attendance_id: str) -> Tuple[dict, Optional[dict]]:
        oid = parse_object_id(attendance_id, "attendance ID")
        record = await self.store.attendance.find_one({"_id": oid})
        if record is None:
            raise NotFoundError("Attendance record not found")

        employee = await self.store.employees.find_one({"_id": record["employee"]})
        return record, employee

    def _list_match(
        self,
        employee_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        status: Optional[AttendanceStatus],
    ) -> dict:
        query: Dict[str, Any] = {}
        if employee_id:
            query["employee"] = parse_object_id(employee_id, "employee ID")

        check_in_range: Dict[str, datetime] = {}
        if start_date is not None:
            check_in_range["$gte"] = date_bounds(start_date, self.tz_name)[0]
        if end_date is not None:
            # endDate 하루 전체 포함
            check_in_range["$lt"] = date_bounds(end_date, self.tz_name)[1]
        if check_in_range:
            query["checkInTime"] = check_in_range

        if status is not None:
            query["status"] = status.value
        return query

    async def get_attendance(
        self,
        employee_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        department: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> dict:
        """
        필터 + 페이지네이션 목록 조회 (checkInTime 내림차순).
        count는 부서 필터까지 적용한 뒤의 전체 건수 (records와 항상 일치).
        """
        page, limit = clamp_pagination(page, limit)
        query = self._list_match(employee_id, start_date, end_date, status)
        pipeline = [{"$match": query}, *employee_lookup_stages(department)]

        count_pipeline = [*pipeline, {"$count": "total"}]
        records_pipeline = [
            *pipeline,
            {"$sort": {"checkInTime": -1}},
            {"$skip": (page - 1) * limit},
            {"$limit": limit},
            {
                "$project": {
                    "_id": 1,
                    "employee": 1,
                    "date": 1,
                    "checkInTime": 1,
                    "checkOutTime": 1,
                    "workHours": 1,
                    "status": 1,
                    "note": 1,
                    "employeeName": "$employeeDetails.name",
                    "employeeId": "$employeeDetails.employeeId",
                    "department": "$employeeDetails.department",
                }
            },
        ]

        count_rows, records = await asyncio.gather(
            self._aggregate(count_pipeline),
            self._aggregate(records_pipeline),
        )
        total = count_rows[0]["total"] if count_rows else 0

        return {
            "count": total,
            "totalPages": math.ceil(total / limit),
            "currentPage": page,
            "records": records,
        }

    async def get_attendance_stats(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        department: Optional[str] = None,
    ) -> dict:
        """
        통계 조회. 날짜를 안 주면 "오늘"(자정 ~ 23:59:59.999).
        statusStats / dailyStats / departmentStats 는 같은 필터 결과를 서로 다르게 group 한 것.
        하위 쿼리 5개는 서로 독립이라 동시에 실행.
        """
        today = local_date(self.clock(), self.tz_name)
        start = date_bounds(start_date or today, self.tz_name)[0]
        end = date_bounds(end_date or today, self.tz_name)[1] - timedelta(milliseconds=1)

        pipeline = [
            {"$match": {"checkInTime": {"$gte": start, "$lte": end}}},
            *employee_lookup_stages(department),
        ]

        employee_filter: Dict[str, Any] = {"isActive": True}
        if department:
            employee_filter["department"] = department

        today_start, today_end = date_bounds(today, self.tz_name)

        status_rows, daily_rows, department_rows, total_employees, present_today = await asyncio.gather(
            self._aggregate([*pipeline, {"$group": {"_id": "$status", "count": {"$sum": 1}}}]),
            self._aggregate(
                [
                    *pipeline,
                    {"$group": {"_id": day_label_expression(self.tz_name), "count": {"$sum": 1}}},
                    {"$sort": {"_id": 1}},
                ]
            ),
            self._aggregate(
                [*pipeline, {"$group": {"_id": "$employeeDetails.department", "count": {"$sum": 1}}}]
            ),
            self.store.employees.count_documents(employee_filter),
            self.store.attendance.count_documents(
                {"checkInTime": {"$gte": today_start, "$lt": today_end}}
            ),
        )

        return {
            "statusStats": [{"status": r["_id"], "count": r["count"]} for r in status_rows],
            "dailyStats": [{"date": r["_id"], "count": r["count"]} for r in daily_rows],
            "departmentStats": [
                {"department": r["_id"], "count": r["count"]} for r in department_rows
            ],
            "totalEmployees": total_employees,
            "presentToday": present_today,
        }

    async def update_attendance(self, attendance_id: str, fields: Dict[str, Any]) -> dict:
        """
        관리자 정정. fields에 들어있는 키만 덮어쓴다.
        checkInTime/checkOutTime 중 하나라도 바뀌고 둘 다 있으면 workHours 재계산,
        checkInTime이 바뀌면 date(그 날의 시작)도 다시 계산,
        음수면 아무것도 저장하지 않고 400.
        """
        oid = parse_object_id(attendance_id, "attendance ID")
        record = await self.store.attendance.find_one({"_id": oid})
        if record is None:
            raise NotFoundError("Attendance record not found")

        changes: Dict[str, Any] = {}
        if "status" in fields:
            changes["status"] = AttendanceStatus(fields["status"]).value
        if "note" in fields:
            changes["note"] = fields["note"] if fields["note"] is not None else ""
        if "checkInTime" in fields:
            changes["checkInTime"] = fields["checkInTime"]
            # 출근 시각이 다른 날로 옮겨지면 date 키도 따라간다
            changes["date"] = day_bounds(fields["checkInTime"], self.tz_name)[0]
        if "checkOutTime" in fields:
            changes["checkOutTime"] = fields["checkOutTime"]

        if "checkInTime" in changes or "checkOutTime" in changes:
            check_in = changes.get("checkInTime", record.get("checkInTime"))
            check_out = changes.get("checkOutTime", record.get("checkOutTime"))
            if check_in is not None and check_out is not None:
                changes["workHours"] = compute_work_hours(check_in, check_out)
            else:
                changes["workHours"] = None

        if not changes:
            return record

        if "date" in changes and changes["date"] != record.get("date"):
            clash = await self.store.attendance.find_one(
                {"_id": {"$ne": oid}, "employee": record["employee"], "date": changes["date"]},
                {"_id": 1},
            )
            if clash is not None:
                raise ConflictError("Attendance already recorded for that day")

        try:
            updated = await self.store.attendance.find_one_and_update(
                {"_id": oid},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # (employee, date) unique 인덱스: 그 날에는 이미 기록이 있음
            raise ConflictError("Attendance already recorded for that day")
        if updated is None:
            raise NotFoundError("Attendance record not found")
        return updated

    async def delete_attendance(self, attendance_id: str) -> None:
        oid = parse_object_id(attendance_id, "attendance ID")
        result = await self.store.attendance.delete_one({"_id": oid})
        if result.deleted_count == 0:
            raise NotFoundError("Attendance record not found")

    async def _aggregate(self, pipeline: List[dict]) -> List[dict]:
        cursor = self.store.attendance.aggregate(pipeline)
        return await cursor.to_list(length=None)
