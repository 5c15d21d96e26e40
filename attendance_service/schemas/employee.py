from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from attendance_service.schemas.base import DocumentModel


class EmployeeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    address: str = Field(..., min_length=1, max_length=255)
    position: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    employeeId: str = Field(..., min_length=1, max_length=50)


class EmployeeCreate(EmployeeBase):
    """POST /employees 폼 필드 (profileImage 파일은 별도)"""
    faceDescriptor: Optional[List[float]] = None


class EmployeeUpdate(BaseModel):
    """PUT /employees/{id} 폼 필드. 보낸 필드만 반영."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=255)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    employeeId: Optional[str] = Field(None, min_length=1, max_length=50)
    isActive: Optional[bool] = None
    faceDescriptor: Optional[List[float]] = None

    def provided(self) -> dict:
        return self.model_dump(exclude_unset=True)


class EmployeeRead(DocumentModel):
    """응답용 스키마"""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    employeeId: str
    profileImage: Optional[str] = None
    faceDescriptor: Optional[List[float]] = None
    isActive: bool = True
    createdAt: Optional[datetime] = None


class EmployeeResponse(BaseModel):
    success: bool = True
    employee: EmployeeRead


class EmployeeListResponse(BaseModel):
    success: bool = True
    employees: List[EmployeeRead]
