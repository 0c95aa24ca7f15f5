"""
Employee API - thin router translating HTTP calls to EmployeeService operations.
"""
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Request

from employee.domain.model import Employee
from shared.bootstrap import Container
from shared.entrypoints.dependencies import current_organization_id, current_user_id, get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/employees", tags=["employees"])


def serialize_employee(employee: Employee) -> Dict[str, Any]:
    data = asdict(employee)
    data.pop("password_hash", None)
    return data


@router.post("", status_code=201)
async def create_employee(
    payload: Dict[str, Any] = Body(...),
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    employee = await container.employee_service.create_employee(payload, organization_id, user_id)
    return serialize_employee(employee)


@router.get("")
async def list_employees(
    request: Request,
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    filters = dict(request.query_params)
    employees: List[Employee] = await container.employee_service.list_employees(organization_id, filters)
    return {"employees": [serialize_employee(e) for e in employees], "count": len(employees)}


@router.post("/bulk/validate")
async def validate_bulk_operation(
    payload: Dict[str, Any] = Body(...),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    operation = container.employee_service.validate_bulk_operation(
        payload.get("employee_ids", []), payload.get("operation")
    )
    return operation.model_dump()


@router.get("/offboarding/tasks")
async def list_offboarding_tasks(
    limit: int = 50,
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    return container.employee_handlers.get_offboarding_tasks(organization_id, limit)


@router.get("/{employee_id}")
async def get_employee(
    employee_id: int,
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    employee = await container.employee_service.get_employee(employee_id, organization_id)
    return serialize_employee(employee)


@router.patch("/{employee_id}")
async def update_employee(
    employee_id: int,
    payload: Dict[str, Any] = Body(...),
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    employee = await container.employee_service.update_employee(
        employee_id, payload, user_id, organization_id
    )
    return serialize_employee(employee)


@router.post("/{employee_id}/deactivate")
async def deactivate_employee(
    employee_id: int,
    payload: Optional[Dict[str, Any]] = Body(None),
    user_id: int = Depends(current_user_id),
    organization_id: int = Depends(current_organization_id),
    container: Container = Depends(get_container),
):
    reason = (payload or {}).get("reason")
    employee = await container.employee_service.deactivate_employee(
        employee_id, reason, user_id, organization_id
    )
    return serialize_employee(employee)
