from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status

from employee_api.api.deps import get_current_claims, get_employee_service, parse_employee_id
from employee_api.core.tokens import TokenClaims
from employee_api.schemas.employee import (
    EmployeeCreate,
    EmployeeFilter,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeUpdate,
)
from employee_api.schemas.response import APIResponse, success_response
from employee_api.services.employee_service import EmployeeService

router = APIRouter()


@router.post("", response_model=APIResponse[EmployeeResponse], status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_in: EmployeeCreate,
    service: EmployeeService = Depends(get_employee_service),
    claims: TokenClaims = Depends(get_current_claims),
) -> Any:
    """
    Create an employee.
    """
    employee = await service.create(employee_in)
    return success_response(
        "Employee created successfully",
        EmployeeResponse.model_validate(employee),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("", response_model=APIResponse[EmployeeListResponse])
async def read_employees(
    department: Optional[str] = Query(None),
    position: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Partial match on name, email or NIP"),
    limit: Optional[int] = Query(None, description="Page size, clamped to 1..100 (default 10)"),
    offset: Optional[int] = Query(None, description="Rows to skip, negative values mean 0"),
    service: EmployeeService = Depends(get_employee_service),
    claims: TokenClaims = Depends(get_current_claims),
) -> Any:
    """
    List employees matching every given filter, newest first.
    """
    filters = EmployeeFilter(
        department=department,
        position=position,
        is_active=is_active,
        search=search,
        limit=limit,
        offset=offset,
    )
    page = await service.list(filters)
    return success_response(
        "Employees retrieved successfully",
        EmployeeListResponse(
            employees=[EmployeeResponse.model_validate(e) for e in page.employees],
            total=page.total,
            limit=page.limit,
            offset=page.offset,
        ),
    )


@router.get("/{employee_id}", response_model=APIResponse[EmployeeResponse])
async def read_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service),
    claims: TokenClaims = Depends(get_current_claims),
) -> Any:
    """
    Get employee by ID.
    """
    employee = await service.get(parse_employee_id(employee_id))
    return success_response("Employee retrieved successfully", EmployeeResponse.model_validate(employee))


@router.put("/{employee_id}", response_model=APIResponse[EmployeeResponse])
async def update_employee(
    employee_id: str,
    employee_in: EmployeeUpdate,
    service: EmployeeService = Depends(get_employee_service),
    claims: TokenClaims = Depends(get_current_claims),
) -> Any:
    """
    Update the fields present in the body; absent fields keep their value.
    """
    employee = await service.update(parse_employee_id(employee_id), employee_in.provided_fields())
    return success_response("Employee updated successfully", EmployeeResponse.model_validate(employee))


@router.delete("/{employee_id}", response_model=APIResponse[None])
async def delete_employee(
    employee_id: str,
    service: EmployeeService = Depends(get_employee_service),
    claims: TokenClaims = Depends(get_current_claims),
) -> Any:
    """
    Soft delete: the employee is kept but marked inactive.
    """
    await service.soft_delete(parse_employee_id(employee_id))
    return success_response("Employee deleted successfully")
