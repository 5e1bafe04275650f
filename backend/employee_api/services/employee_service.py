"""
Employee record operations: create, filtered listing, lookup, partial update
and soft delete.

Listing and updates go through the query builder; single-row reads and
inserts use the ORM directly.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, List, Mapping

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.core.exceptions import ConflictError, NoOpError, NotFoundError, ValidationError
from employee_api.models.employee import Employee
from employee_api.schemas.employee import EmployeeCreate, EmployeeFilter
from employee_api.services.query_builder import build_filtered_select, build_partial_update
from employee_api.services.store import UPDATE_CONFLICT_MESSAGES, store_errors

logger = logging.getLogger("employee_api.employees")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass
class EmployeePage:
    employees: List[Employee]
    total: int
    limit: int
    offset: int


def parse_hire_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar date."""
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise ValidationError("Invalid hire date format", "Use YYYY-MM-DD format")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid hire date format", "Use YYYY-MM-DD format")


def employee_not_found() -> NotFoundError:
    return NotFoundError("Employee not found", "Employee with the specified ID does not exist")


class EmployeeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _exists(self, *criteria) -> bool:
        async with store_errors(self.db, "employees"):
            count = await self.db.scalar(select(func.count()).select_from(Employee).where(*criteria))
        return bool(count)

    async def create(self, data: EmployeeCreate) -> Employee:
        """
        Insert a new employee.

        The NIP and email pre-checks give specific messages; the unique
        indexes still decide when two requests race.
        """
        hire_date = parse_hire_date(data.hire_date)

        if await self._exists(Employee.nip == data.nip):
            raise ConflictError("NIP already exists", "Employee with this NIP already exists")
        if await self._exists(Employee.email == data.email):
            raise ConflictError("Email already exists", "Employee with this email already exists")

        employee = Employee(
            nip=data.nip,
            name=data.name,
            email=data.email,
            phone=data.phone,
            position=data.position,
            department=data.department,
            salary=data.salary,
            hire_date=hire_date,
            is_active=True,
        )
        async with store_errors(self.db, "employees"):
            self.db.add(employee)
            await self.db.commit()
            await self.db.refresh(employee)

        logger.info(f"Created employee {employee.id} (NIP {employee.nip})")
        return employee

    async def list(self, filters: EmployeeFilter) -> EmployeePage:
        """Return one page of matching employees plus the total match count."""
        built = build_filtered_select(filters)

        async with store_errors(self.db, "employees"):
            count_result = await self.db.execute(
                text(built.count_query.sql), built.count_query.bind_params
            )
            total = count_result.scalar_one()

            result = await self.db.execute(
                select(Employee).from_statement(text(built.query.sql)),
                built.query.bind_params,
            )
            employees = list(result.scalars().all())

        return EmployeePage(employees=employees, total=total, limit=built.limit, offset=built.offset)

    async def get(self, employee_id: int) -> Employee:
        async with store_errors(self.db, "employees"):
            employee = await self.db.get(Employee, employee_id)
        if employee is None:
            raise employee_not_found()
        return employee

    async def update(self, employee_id: int, fields: Mapping[str, Any]) -> Employee:
        """
        Apply a partial update.

        Args:
            employee_id: Target employee
            fields: Only the fields present in the request, with their values

        Raises:
            NoOpError: No field was given; the store is not touched
            NotFoundError: No such employee
            ConflictError: The new email belongs to another employee
        """
        if not fields:
            raise NoOpError()

        await self.get(employee_id)

        if "email" in fields and await self._exists(
            Employee.email == fields["email"], Employee.id != employee_id
        ):
            raise ConflictError(*UPDATE_CONFLICT_MESSAGES[("employees", "email")])

        built = build_partial_update(employee_id, fields, datetime.now(timezone.utc))
        async with store_errors(self.db, "employees", UPDATE_CONFLICT_MESSAGES):
            result = await self.db.execute(text(built.sql), built.bind_params)
            updated_id = result.scalar_one_or_none()
            await self.db.commit()
        if updated_id is None:
            raise employee_not_found()

        logger.info(f"Updated employee {employee_id}: {', '.join(sorted(fields))}")
        async with store_errors(self.db, "employees"):
            return await self.db.get(Employee, employee_id, populate_existing=True)

    async def soft_delete(self, employee_id: int) -> None:
        """Mark an employee inactive. Deleting an inactive employee succeeds again."""
        await self.get(employee_id)

        built = build_partial_update(employee_id, {"is_active": False}, datetime.now(timezone.utc))
        async with store_errors(self.db, "employees"):
            result = await self.db.execute(text(built.sql), built.bind_params)
            updated_id = result.scalar_one_or_none()
            await self.db.commit()
        if updated_id is None:
            raise employee_not_found()

        logger.info(f"Deactivated employee {employee_id}")
