from datetime import datetime
from typing import List, Optional


def new_employee_document(
    *,
    name: str,
    email: str,
    phone: str,
    address: str,
    position: str,
    department: str,
    employee_id: str,
    created_at: datetime,
    profile_image: Optional[str] = None,
    face_descriptor: Optional[List[float]] = None,
) -> dict:
    # faceDescriptor는 해석하지 않고 그대로 저장 (외부 얼굴 인식 시스템용)
    return {
        "name": name,
        "email": email,
        "phone": phone,
        "address": address,
        "position": position,
        "department": department,
        "employeeId": employee_id,
        "profileImage": profile_image,
        "faceDescriptor": face_descriptor,
        "isActive": True,
        "createdAt": created_at,
    }
