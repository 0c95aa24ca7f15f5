import abc
import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, insert, or_, select, update

from employee.domain.model import Employee, EmployeeDependencies, EmployeeStatus, RoleType
from employee.domain.schemas import EmployeeFilters
from shared.adapters.orm import employees
from shared.domain.errors import NotFoundError
from shared.domain.events import as_utc

logger = logging.getLogger(__name__)


class AbstractEmployeeRepository(abc.ABC):
    """Persistence port for the employee aggregate."""

    @abc.abstractmethod
    async def add(self, fields: Dict[str, Any]) -> Employee:
        raise NotImplementedError

    @abc.abstractmethod
    async def get(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    @abc.abstractmethod
    async def update(self, employee_id: int, changes: Dict[str, Any]) -> Employee:
        raise NotImplementedError

    @abc.abstractmethod
    async def deactivate(self, employee_id: int) -> Employee:
        raise NotImplementedError

    @abc.abstractmethod
    async def check_dependencies(self, employee_id: int) -> EmployeeDependencies:
        raise NotImplementedError

    @abc.abstractmethod
    async def find_duplicates(
        self,
        organization_id: int,
        email: Optional[str] = None,
        name: Optional[str] = None,
        surname: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> List[Employee]:
        """Employees of the organization sharing the email, or name and surname."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list(self, organization_id: int, filters: EmployeeFilters) -> List[Employee]:
        raise NotImplementedError


def _to_row(values: Dict[str, Any]) -> Dict[str, Any]:
    row = {}
    for key, value in values.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = as_utc(value)
        row[key] = value
    return row


def _to_employee(row) -> Employee:
    return Employee(
        id=row.id,
        organization_id=row.organization_id,
        email=row.email,
        username=row.username,
        name=row.name,
        surname=row.surname,
        job_title=row.job_title,
        department=row.department,
        location=row.location,
        avatar_url=row.avatar_url,
        role_type=RoleType(row.role_type),
        status=EmployeeStatus(row.status),
        hire_date=row.hire_date,
        password_hash=row.password_hash,
        created_at=as_utc(row.created_at),
    )


class SqlAlchemyEmployeeRepository(AbstractEmployeeRepository):
    """Employee persistence over synchronous SQLAlchemy sessions.

    Each public coroutine runs its session block in a worker thread so queries
    never block the event loop.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _fetch(self, session, employee_id: int):
        return session.execute(select(employees).where(employees.c.id == employee_id)).first()

    async def add(self, fields):
        return await asyncio.to_thread(self._add, fields)

    async def get(self, employee_id):
        return await asyncio.to_thread(self._get, employee_id)

    async def update(self, employee_id, changes):
        return await asyncio.to_thread(self._update, employee_id, changes)

    async def deactivate(self, employee_id):
        return await self.update(employee_id, {"status": EmployeeStatus.INACTIVE})

    async def check_dependencies(self, employee_id):
        # Posts, leave and recognitions are owned by other services.
        logger.debug(f"No local dependencies tracked for employee {employee_id}")
        return EmployeeDependencies()

    async def find_duplicates(self, organization_id, email=None, name=None, surname=None, exclude_id=None):
        conditions = []
        if email:
            conditions.append(func.lower(employees.c.email) == email.lower())
        if name and surname:
            conditions.append(and_(employees.c.name == name, employees.c.surname == surname))
        if not conditions:
            return []

        stmt = select(employees).where(employees.c.organization_id == organization_id, or_(*conditions))
        if exclude_id is not None:
            stmt = stmt.where(employees.c.id != exclude_id)
        return await asyncio.to_thread(self._select, stmt)

    async def list(self, organization_id, filters):
        stmt = select(employees).where(
            employees.c.organization_id == organization_id,
            employees.c.status == filters.status.value,
        )
        if filters.department:
            stmt = stmt.where(employees.c.department == filters.department)
        if filters.role_type:
            stmt = stmt.where(employees.c.role_type == filters.role_type.value)
        if filters.search:
            pattern = f"%{filters.search.lower()}%"
            stmt = stmt.where(or_(
                func.lower(employees.c.name).like(pattern),
                func.lower(employees.c.surname).like(pattern),
                func.lower(employees.c.email).like(pattern),
                func.lower(employees.c.username).like(pattern),
            ))

        column = employees.c[filters.sort_by]
        stmt = stmt.order_by(
            column.desc() if filters.sort_order == "desc" else column.asc(),
            employees.c.id,
        ).limit(filters.limit).offset(filters.offset)
        return await asyncio.to_thread(self._select, stmt)

    def _add(self, fields):
        with self.session_factory() as session, session.begin():
            result = session.execute(insert(employees).values(**_to_row(fields)))
            row = self._fetch(session, result.inserted_primary_key[0])
        logger.debug(f"Inserted employee {row.id} for organization {row.organization_id}")
        return _to_employee(row)

    def _get(self, employee_id):
        with self.session_factory() as session:
            row = self._fetch(session, employee_id)
        return _to_employee(row) if row else None

    def _update(self, employee_id, changes):
        with self.session_factory() as session, session.begin():
            session.execute(
                update(employees).where(employees.c.id == employee_id).values(**_to_row(changes))
            )
            row = self._fetch(session, employee_id)
        if row is None:
            raise NotFoundError("Employee", employee_id)
        return _to_employee(row)

    def _select(self, stmt):
        with self.session_factory() as session:
            rows = session.execute(stmt).all()
        return [_to_employee(row) for row in rows]
