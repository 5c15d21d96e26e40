import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from attendance_service.core.config import Settings
from attendance_service.core.deps import get_app_settings, get_current_user, get_employee_service
from attendance_service.core.errors import AppError, ValidationError
from attendance_service.core.uploads import remove_profile_image, save_profile_image
from attendance_service.schemas.base import validate_model
from attendance_service.schemas.employee import (
    EmployeeCreate,
    EmployeeListResponse,
    EmployeeRead,
    EmployeeResponse,
    EmployeeUpdate,
)
from attendance_service.schemas.user import MessageResponse
from attendance_service.services.employees import EmployeeService

router = APIRouter(
    prefix="/api/employees",
    tags=["employees"],
    dependencies=[Depends(get_current_user)],
)

FACE_DESCRIPTOR_MESSAGE = "faceDescriptor must be a JSON array of numbers"


def _parse_face_descriptor(raw: Optional[str]) -> Optional[List[Any]]:
    """폼으로 들어온 JSON 문자열 -> list. 빈 문자열은 "없음"."""
    if raw is None or raw.strip() == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError(
            FACE_DESCRIPTOR_MESSAGE,
            errors=[{"field": "faceDescriptor", "message": FACE_DESCRIPTOR_MESSAGE}],
        )
    if not isinstance(value, list):
        raise ValidationError(
            FACE_DESCRIPTOR_MESSAGE,
            errors=[{"field": "faceDescriptor", "message": FACE_DESCRIPTOR_MESSAGE}],
        )
    return value


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_employee(
    name: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    address: str = Form(...),
    position: str = Form(...),
    department: str = Form(...),
    employeeId: str = Form(...),
    faceDescriptor: Optional[str] = Form(None),
    profileImage: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_app_settings),
    service: EmployeeService = Depends(get_employee_service),
):
    """
    직원 등록 (multipart/form-data):
    - 이메일/사번 중복이면 400
    - profileImage 파일은 선택
    """
    payload = validate_model(
        EmployeeCreate,
        {
            "name": name,
            "email": email,
            "phone": phone,
            "address": address,
            "position": position,
            "department": department,
            "employeeId": employeeId,
            "faceDescriptor": _parse_face_descriptor(faceDescriptor),
        },
    )

    image_path = None
    if _has_file(profileImage):
        image_path = await save_profile_image(profileImage, settings)

    try:
        employee = await service.create_employee(payload, profile_image=image_path)
    except AppError:
        # 등록 실패 시 방금 저장한 파일은 아무도 참조하지 않음
        remove_profile_image(image_path, settings)
        raise
    return EmployeeResponse(employee=EmployeeRead.from_document(employee))


@router.get(
    "",
    response_model=EmployeeListResponse,
)
async def list_employees(
    service: EmployeeService = Depends(get_employee_service),
):
    employees = await service.list_employees()
    return EmployeeListResponse(employees=[EmployeeRead.from_document(e) for e in employees])


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
)
async def get_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service),
):
    employee = await service.get_employee(employee_id)
    return EmployeeResponse(employee=EmployeeRead.from_document(employee))


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
)
async def update_employee(
    employee_id: str,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    position: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    employeeId: Optional[str] = Form(None),
    isActive: Optional[bool] = Form(None),
    faceDescriptor: Optional[str] = Form(None),
    profileImage: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_app_settings),
    service: EmployeeService = Depends(get_employee_service),
):
    """
    직원 부분 수정 (multipart/form-data).
    보내지 않은 필드는 그대로 둔다. isActive=false 처럼 falsy 값도 반영된다.
    (FastAPI는 빈 폼 값을 "안 보냄"으로 처리함)
    """
    sent: Dict[str, Any] = {
        key: value
        for key, value in {
            "name": name,
            "email": email,
            "phone": phone,
            "address": address,
            "position": position,
            "department": department,
            "employeeId": employeeId,
            "isActive": isActive,
        }.items()
        if value is not None
    }
    if faceDescriptor is not None:
        sent["faceDescriptor"] = _parse_face_descriptor(faceDescriptor)

    payload = validate_model(EmployeeUpdate, sent)

    # 존재/ID 형식 확인 후에 파일 저장
    await service.get_employee(employee_id)

    image_path = None
    if _has_file(profileImage):
        image_path = await save_profile_image(profileImage, settings)

    try:
        employee = await service.update_employee(employee_id, payload.provided(), profile_image=image_path)
    except AppError:
        remove_profile_image(image_path, settings)
        raise
    return EmployeeResponse(employee=EmployeeRead.from_document(employee))


@router.delete(
    "/{employee_id}",
    response_model=MessageResponse,
)
async def delete_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service),
):
    await service.delete_employee(employee_id)
    return MessageResponse(message="Employee deleted successfully")
