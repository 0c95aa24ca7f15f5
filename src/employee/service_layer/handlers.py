import logging
from collections import deque
from typing import Deque, List

from employee.domain import events
from shared.adapters.redis_adapter import EMPLOYEE_CHANNEL, AbstractEventPublisher
from shared.domain.events import DomainEvent
from shared.service_layer.messagebus import EventBus

logger = logging.getLogger(__name__)

SUBSCRIBER_ID = "employee-management-slice"
SIGNIFICANT_FIELDS = ("role_type", "department", "status")


class EmployeeEventHandlers:
    """Cross-cutting reactions to employee lifecycle events."""

    def __init__(self, bus: EventBus, publisher: AbstractEventPublisher, checklist_size: int = 1000):
        self.bus = bus
        self.publisher = publisher
        self.subscription_ids: List[str] = []
        self.offboarding_checklist: Deque[dict] = deque(maxlen=checklist_size)

    def initialize(self) -> None:
        if self.subscription_ids:
            logger.debug("Employee event handlers already initialized")
            return

        for event_type, handler in (
            (events.EmployeeCreated.event_type, self.handle_employee_created),
            (events.EmployeeUpdated.event_type, self.handle_employee_updated),
            (events.EmployeeDeactivated.event_type, self.handle_employee_deactivated),
            (events.EmployeeRoleChanged.event_type, self.handle_role_changed),
            (events.EmployeeDepartmentChanged.event_type, self.handle_department_changed),
        ):
            self.subscription_ids.append(
                self.bus.subscribe(event_type, handler, SUBSCRIBER_ID, priority=1)
            )
        logger.info(f"Employee event handlers initialized ({len(self.subscription_ids)} subscriptions)")

    def destroy(self) -> None:
        for subscription_id in self.subscription_ids:
            self.bus.unsubscribe(subscription_id)
        self.subscription_ids = []
        logger.info("Employee event handlers destroyed")

    cleanup = destroy

    def get_offboarding_tasks(self, organization_id: int, limit: int = 50) -> List[dict]:
        """Most recent offboarding checklist entries of one organization, newest first."""
        tasks = [t for t in reversed(self.offboarding_checklist) if t["organization_id"] == organization_id]
        return tasks[:limit]

    async def handle_employee_created(self, event: DomainEvent[events.EmployeeCreated]):
        employee = event.data.employee
        logger.info(
            f"Employee created: id={employee.id} organization={event.organization_id} "
            f"department={employee.department} role={employee.role_type.value} by={event.data.created_by}"
        )
        await self.publisher.publish(EMPLOYEE_CHANNEL, event)

    async def handle_employee_updated(self, event: DomainEvent[events.EmployeeUpdated]):
        significant = [f for f in event.data.updated_fields if f in SIGNIFICANT_FIELDS]
        logger.info(
            f"Employee updated: id={event.data.employee.id} by={event.data.updated_by} "
            f"fields={list(event.data.updated_fields)}"
        )
        if significant:
            logger.info(f"Significant changes for employee {event.data.employee.id}: {significant}")
        await self.publisher.publish(EMPLOYEE_CHANNEL, event)

    async def handle_employee_deactivated(self, event: DomainEvent[events.EmployeeDeactivated]):
        data = event.data
        logger.info(
            f"Employee deactivated: id={data.employee_id} by={data.deactivated_by} reason={data.reason}"
        )
        for task in data.offboarding_tasks:
            self.offboarding_checklist.append({
                "employee_id": data.employee_id,
                "organization_id": event.organization_id,
                "task": task.task,
                "due_date": task.due_date,
                "assigned_to": task.assigned_to or data.deactivated_by,
            })
        if data.offboarding_tasks:
            logger.info(f"{len(data.offboarding_tasks)} offboarding tasks queued for employee {data.employee_id}")
        await self.publisher.publish(EMPLOYEE_CHANNEL, event)

    async def handle_role_changed(self, event: DomainEvent[events.EmployeeRoleChanged]):
        data = event.data
        logger.info(
            f"Employee {data.employee_id} role changed {data.previous_role.value} -> {data.new_role.value}, "
            f"permissions added={list(data.permissions.added)} removed={list(data.permissions.removed)}"
        )
        await self.publisher.publish(EMPLOYEE_CHANNEL, event)

    async def handle_department_changed(self, event: DomainEvent[events.EmployeeDepartmentChanged]):
        data = event.data
        logger.info(
            f"Employee {data.employee_id} moved from {data.previous_department} to {data.new_department}"
        )
        await self.publisher.publish(EMPLOYEE_CHANNEL, event)
