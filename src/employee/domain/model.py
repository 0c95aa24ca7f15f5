from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, FrozenSet, Optional


class RoleType(str, Enum):
    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"
    CORPORATE_ADMIN = "corporate_admin"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# Permission sets granted per role, used to describe role changes.
ROLE_PERMISSIONS: Dict[RoleType, FrozenSet[str]] = {
    RoleType.EMPLOYEE: frozenset({"profile:read", "posts:write", "surveys:respond"}),
    RoleType.MANAGER: frozenset({
        "profile:read", "posts:write", "surveys:respond",
        "team:read", "leave:approve",
    }),
    RoleType.ADMIN: frozenset({
        "profile:read", "posts:write", "surveys:respond",
        "team:read", "leave:approve",
        "employees:manage", "surveys:manage",
    }),
    RoleType.CORPORATE_ADMIN: frozenset({
        "profile:read", "posts:write", "surveys:respond",
        "team:read", "leave:approve",
        "employees:manage", "surveys:manage", "organizations:manage",
    }),
}

# Fields that can be changed through an employee update.
UPDATABLE_FIELDS = (
    "email",
    "username",
    "name",
    "surname",
    "job_title",
    "department",
    "location",
    "avatar_url",
    "role_type",
    "hire_date",
)


@dataclass(frozen=True)
class Employee:
    id: int
    organization_id: int
    email: str
    username: str
    name: str
    surname: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None
    role_type: RoleType = RoleType.EMPLOYEE
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    hire_date: Optional[date] = None
    password_hash: Optional[str] = field(default=None, repr=False, compare=False)
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    def without_credentials(self) -> "Employee":
        """Copy safe to hand to event subscribers."""
        return replace(self, password_hash=None)

    def snapshot(self) -> Dict[str, object]:
        """Values of all updatable fields, keyed by field name."""
        return {name: getattr(self, name) for name in UPDATABLE_FIELDS}


@dataclass(frozen=True)
class EmployeeDependencies:
    """Open work an employee still owns in other parts of the platform."""
    has_active_posts: bool = False
    has_active_leave: bool = False
    has_open_recognitions: bool = False


@dataclass(frozen=True)
class OffboardingTask:
    task: str
    due_date: date
    assigned_to: Optional[int] = None


@dataclass(frozen=True)
class PermissionChanges:
    added: tuple = ()
    removed: tuple = ()


def permission_changes(previous: RoleType, new: RoleType) -> PermissionChanges:
    before = ROLE_PERMISSIONS[previous]
    after = ROLE_PERMISSIONS[new]
    return PermissionChanges(
        added=tuple(sorted(after - before)),
        removed=tuple(sorted(before - after)),
    )


def offboarding_tasks(dependencies: EmployeeDependencies, today: date) -> tuple:
    """Derive the offboarding checklist from an employee's open dependencies."""
    tasks = []
    if dependencies.has_active_posts:
        tasks.append(OffboardingTask(
            task="Archive or transfer active social posts",
            due_date=today + timedelta(days=7),
        ))
    if dependencies.has_active_leave:
        tasks.append(OffboardingTask(
            task="Complete or transfer pending leave requests",
            due_date=today + timedelta(days=3),
        ))
    if dependencies.has_open_recognitions:
        tasks.append(OffboardingTask(
            task="Process pending recognitions given or received",
            due_date=today + timedelta(days=5),
        ))
    return tuple(tasks)
