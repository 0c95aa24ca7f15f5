"""Employee lifecycle operations: create, update, deactivate."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

import pydantic

from employee.adapters.repository import AbstractEmployeeRepository
from employee.domain import events
from employee.domain.model import (
    UPDATABLE_FIELDS,
    Employee,
    EmployeeStatus,
    RoleType,
    offboarding_tasks,
    permission_changes,
)
from employee.domain.schemas import (
    BulkOperation,
    CreateEmployeeData,
    EmployeeFilters,
    UpdateEmployeeData,
)
from shared.domain.errors import (
    AlreadyInactiveError,
    DuplicateError,
    IllegalRoleError,
    NotFoundError,
    ValidationError,
)
from shared.domain.events import DomainEvent, utcnow
from shared.service_layer.messagebus import EventBus
from shared.services.passwords import hash_password

logger = logging.getLogger(__name__)


def _validate(schema, data, subject: str):
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError.from_pydantic(e, subject) from e


class EmployeeService:
    """Validates employee changes, persists them and announces them on the bus.

    Every business rule is checked before the repository is touched, and events
    are published only after the repository call returned.
    """

    def __init__(
        self,
        repository: AbstractEmployeeRepository,
        bus: EventBus,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.bus = bus
        self.clock = clock

    async def create_employee(
        self,
        data: Union[CreateEmployeeData, Dict[str, Any]],
        organization_id: int,
        created_by: int,
    ) -> Employee:
        validated = _validate(CreateEmployeeData, data, "employee data")

        if validated.role_type == RoleType.CORPORATE_ADMIN:
            raise IllegalRoleError(
                validated.role_type.value,
                "Cannot create corporate admin users through employee creation",
            )

        now = self.clock()
        if validated.hire_date and validated.hire_date > now.date():
            raise ValidationError("Hire date cannot be in the future")

        await self._ensure_unique(
            organization_id,
            email=validated.email,
            name=validated.name,
            surname=validated.surname,
        )

        fields = validated.model_dump(exclude={"password"})
        if fields.get("avatar_url") is not None:
            fields["avatar_url"] = str(fields["avatar_url"])
        fields.update(
            organization_id=organization_id,
            status=EmployeeStatus.ACTIVE,
            password_hash=hash_password(validated.password),
            created_at=now,
        )
        employee = await self.repository.add(fields)

        await self.bus.publish(DomainEvent.create(
            events.EmployeeCreated(employee=employee.without_credentials(), created_by=created_by),
            organization_id=organization_id,
            user_id=created_by,
            timestamp=now,
        ))
        logger.info(f"Employee {employee.id} created in organization {organization_id} by {created_by}")
        return employee

    async def update_employee(
        self,
        employee_id: int,
        data: Union[UpdateEmployeeData, Dict[str, Any]],
        updated_by: int,
        organization_id: Optional[int] = None,
    ) -> Employee:
        validated = _validate(UpdateEmployeeData, data, "employee update")
        current = await self._get_scoped(employee_id, organization_id)
        changes = validated.changes()

        if changes.get("role_type") == RoleType.CORPORATE_ADMIN:
            raise IllegalRoleError(
                RoleType.CORPORATE_ADMIN.value,
                "Cannot promote employee to corporate admin",
            )

        updated_fields = tuple(
            name for name in UPDATABLE_FIELDS
            if name in changes and getattr(current, name) != changes[name]
        )
        if not updated_fields:
            logger.info(f"No changes for employee {employee_id}, skipping update")
            return current

        now = self.clock()
        if "hire_date" in updated_fields and changes["hire_date"] and changes["hire_date"] > now.date():
            raise ValidationError("Hire date cannot be in the future")
        if "email" in updated_fields:
            await self._ensure_unique(current.organization_id, email=changes["email"], exclude_id=employee_id)

        updated = await self.repository.update(
            employee_id, {name: changes[name] for name in updated_fields}
        )
        public = updated.without_credentials()

        await self.bus.publish(DomainEvent.create(
            events.EmployeeUpdated(
                employee=public,
                previous_data=current.snapshot(),
                updated_by=updated_by,
                updated_fields=updated_fields,
            ),
            organization_id=updated.organization_id,
            user_id=updated_by,
            timestamp=now,
        ))

        if "role_type" in updated_fields:
            await self.bus.publish(DomainEvent.create(
                events.EmployeeRoleChanged(
                    employee_id=employee_id,
                    previous_role=current.role_type,
                    new_role=updated.role_type,
                    changed_by=updated_by,
                    effective_date=now,
                    permissions=permission_changes(current.role_type, updated.role_type),
                ),
                organization_id=updated.organization_id,
                user_id=updated_by,
                timestamp=now,
            ))

        if "department" in updated_fields and updated.department:
            await self.bus.publish(DomainEvent.create(
                events.EmployeeDepartmentChanged(
                    employee_id=employee_id,
                    employee=public,
                    previous_department=current.department,
                    new_department=updated.department,
                    changed_by=updated_by,
                    effective_date=now,
                ),
                organization_id=updated.organization_id,
                user_id=updated_by,
                timestamp=now,
            ))

        logger.info(f"Employee {employee_id} updated by {updated_by}: {', '.join(updated_fields)}")
        return updated

    async def deactivate_employee(
        self,
        employee_id: int,
        reason: Optional[str],
        deactivated_by: int,
        organization_id: Optional[int] = None,
    ) -> Employee:
        current = await self._get_scoped(employee_id, organization_id)
        if current.status == EmployeeStatus.INACTIVE:
            raise AlreadyInactiveError(employee_id)

        now = self.clock()
        dependencies = await self.repository.check_dependencies(employee_id)
        tasks = offboarding_tasks(dependencies, now.date())

        deactivated = await self.repository.deactivate(employee_id)

        await self.bus.publish(DomainEvent.create(
            events.EmployeeDeactivated(
                employee_id=employee_id,
                employee=deactivated.without_credentials(),
                deactivated_by=deactivated_by,
                reason=reason,
                effective_date=now,
                offboarding_tasks=tasks,
            ),
            organization_id=deactivated.organization_id,
            user_id=deactivated_by,
            timestamp=now,
        ))
        logger.info(
            f"Employee {employee_id} deactivated by {deactivated_by} "
            f"({len(tasks)} offboarding tasks)"
        )
        return deactivated

    async def get_employee(self, employee_id: int, organization_id: Optional[int] = None) -> Employee:
        return await self._get_scoped(employee_id, organization_id)

    async def list_employees(
        self, organization_id: int, raw_filters: Optional[Dict[str, Any]] = None
    ) -> List[Employee]:
        filters = self.validate_employee_filters(raw_filters or {})
        return await self.repository.list(organization_id, filters)

    @staticmethod
    def validate_employee_filters(raw: Dict[str, Any]) -> EmployeeFilters:
        return _validate(EmployeeFilters, raw, "filters")

    @staticmethod
    def validate_bulk_operation(employee_ids: List[int], operation: str) -> BulkOperation:
        return _validate(
            BulkOperation,
            {"employee_ids": employee_ids, "operation": operation},
            "bulk operation",
        )

    async def _get_scoped(self, employee_id: int, organization_id: Optional[int]) -> Employee:
        employee = await self.repository.get(employee_id)
        if employee is None or (organization_id is not None and employee.organization_id != organization_id):
            raise NotFoundError("Employee", employee_id)
        return employee

    async def _ensure_unique(
        self,
        organization_id: int,
        email: Optional[str] = None,
        name: Optional[str] = None,
        surname: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ):
        duplicates = await self.repository.find_duplicates(
            organization_id, email=email, name=name, surname=surname, exclude_id=exclude_id
        )
        for existing in duplicates:
            if email and existing.email.lower() == email.lower():
                raise DuplicateError(f"An employee with email {email} already exists in this organization")
        for existing in duplicates:
            if surname and existing.name == name and existing.surname == surname:
                raise DuplicateError(f"An employee named {name} {surname} already exists in this organization")
