"""Domain events published by the employee management slice."""

from dataclasses import dataclass
from types import MappingProxyType
from datetime import datetime
from typing import Any, ClassVar, Mapping, Optional, Tuple

from shared.domain.events import Payload
from employee.domain.model import Employee, OffboardingTask, PermissionChanges, RoleType

SOURCE = "employee-management"


@dataclass(frozen=True)
class EmployeeCreated(Payload):
    event_type: ClassVar[str] = "employee.created"
    source: ClassVar[str] = SOURCE
    employee: Employee
    created_by: int
    welcome_email_sent: bool = False


@dataclass(frozen=True)
class EmployeeUpdated(Payload):
    event_type: ClassVar[str] = "employee.updated"
    source: ClassVar[str] = SOURCE
    employee: Employee
    previous_data: Mapping[str, Any]
    updated_by: int
    updated_fields: Tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "previous_data", MappingProxyType(dict(self.previous_data)))


@dataclass(frozen=True)
class EmployeeDeactivated(Payload):
    event_type: ClassVar[str] = "employee.deactivated"
    source: ClassVar[str] = SOURCE
    employee_id: int
    employee: Employee
    deactivated_by: int
    reason: Optional[str]
    effective_date: datetime
    offboarding_tasks: Tuple[OffboardingTask, ...] = ()


@dataclass(frozen=True)
class EmployeeRoleChanged(Payload):
    event_type: ClassVar[str] = "employee.role_changed"
    source: ClassVar[str] = SOURCE
    employee_id: int
    previous_role: RoleType
    new_role: RoleType
    changed_by: int
    effective_date: datetime
    permissions: PermissionChanges = PermissionChanges()


@dataclass(frozen=True)
class EmployeeDepartmentChanged(Payload):
    event_type: ClassVar[str] = "employee.department_changed"
    source: ClassVar[str] = SOURCE
    employee_id: int
    employee: Employee
    previous_department: Optional[str]
    new_department: str
    changed_by: int
    effective_date: datetime
    manager_changed: bool = False
    new_manager_id: Optional[int] = None
