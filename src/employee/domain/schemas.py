"""Pydantic schemas validating employee input before it reaches the domain."""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

from employee.domain.model import EmployeeStatus, RoleType

MAX_BULK_EMPLOYEES = 100


class UpdateEmployeeData(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    surname: Optional[str] = Field(None, max_length=100)
    job_title: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    role_type: Optional[RoleType] = None
    hire_date: Optional[date] = None
    avatar_url: Optional[HttpUrl] = None

    @field_validator("username", "email", "name", "role_type")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be cleared")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value):
        return value.lower()

    def changes(self) -> dict:
        """Only the fields the caller actually supplied."""
        changes = self.model_dump(exclude_unset=True)
        if changes.get("avatar_url") is not None:
            changes["avatar_url"] = str(changes["avatar_url"])
        return changes


class CreateEmployeeData(UpdateEmployeeData):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    role_type: RoleType = RoleType.EMPLOYEE
    password: str = Field(..., min_length=8)

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "jdoe",
                "email": "jane.doe@acme.io",
                "name": "Jane",
                "surname": "Doe",
                "job_title": "Engineer",
                "department": "Platform",
                "role_type": "employee",
                "hire_date": "2024-03-01",
                "password": "changeme123",
            }
        }
    }


class EmployeeFilters(BaseModel):
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    department: Optional[str] = None
    role_type: Optional[RoleType] = None
    search: Optional[str] = None
    limit: int = Field(50, ge=1, le=100)
    offset: int = Field(0, ge=0)
    sort_by: Literal["name", "email", "job_title", "department", "hire_date"] = "name"
    sort_order: Literal["asc", "desc"] = "asc"


class BulkOperation(BaseModel):
    employee_ids: List[int] = Field(..., min_length=1, max_length=MAX_BULK_EMPLOYEES)
    operation: Literal["deactivate", "update_department", "update_role", "export"]
