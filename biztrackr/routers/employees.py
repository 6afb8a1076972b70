"""
Employees router - owner-scoped CRUD over employee records.
"""

from fastapi import APIRouter, Depends, status

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.models import EmployeeCreate, EmployeeRole, EmployeeUpdate
from biztrackr.services import BookkeepingService
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_service(storage: StorageBackend = Depends(get_storage)) -> BookkeepingService:
    return BookkeepingService(storage)


@router.get("/")
def list_employees(
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    employees = service.list_employees(owner_id)
    logger.info("employees_list", owner_id=owner_id, count=len(employees))
    return {
        "success": True,
        "data": [employee.model_dump(mode="json") for employee in employees],
        "count": len(employees),
        "total_monthly_salaries": sum(e.monthly_salary for e in employees),
    }


@router.get("/roles")
def list_roles():
    return {"success": True, "data": [role.value for role in EmployeeRole]}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: EmployeeCreate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    employee = service.create_employee(owner_id, payload)
    return {"success": True, "data": employee.model_dump(mode="json")}


@router.get("/{employee_id}")
def get_employee(
    employee_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    employee = service.get_employee(owner_id, employee_id)
    return {"success": True, "data": employee.model_dump(mode="json")}


@router.patch("/{employee_id}")
def update_employee(
    employee_id: str,
    payload: EmployeeUpdate,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    employee = service.update_employee(owner_id, employee_id, payload)
    return {"success": True, "data": employee.model_dump(mode="json")}


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: BookkeepingService = Depends(get_service),
):
    employee = service.delete_employee(owner_id, employee_id)
    return {"success": True, "data": {"id": employee.id}}
