from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from staff_api.core.dependencies import get_employee_service
from staff_api.models.employee import EmployeeCreated, EmployeeCreateRequest, EmployeeFull
from staff_api.services.employee_service import (
    EmployeeService,
    EmployeeServiceError,
    EmployeeValidationError,
)

router = APIRouter(tags=["employees"])


@router.post("/employee", response_model=EmployeeCreated)
async def create_employee(
    request: EmployeeCreateRequest,
    service: EmployeeService = Depends(get_employee_service),  # noqa: B008
):
    try:
        new_id = await service.create_employee(request)
    except EmployeeValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    except EmployeeServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e

    return EmployeeCreated(id=new_id)


@router.get("/employees", response_model=list[EmployeeFull])
async def list_employees(
    service: EmployeeService = Depends(get_employee_service),  # noqa: B008
):
    try:
        return await service.list_employees()
    except EmployeeServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
