"""员工API（支持回收站，按数据范围过滤）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission, apply_scope, ensure_in_scope
from erp.core.logging_config import get_logger
from erp.models.employees.department import Department
from erp.models.employees.employee import Employee
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.employees import EmployeeCreate, EmployeeUpdate, EmployeeResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)

ENUM_FIELDS = ("employee_type", "gender", "marital")


def _build_response(employee: Employee) -> dict:
    return EmployeeResponse.model_validate(employee).model_dump(mode="json")


async def _get_employee(db: AsyncSession, id: int, user: User, **kwargs) -> Employee:
    employee = await get_or_404(db, Employee, id, "Employee", **kwargs)
    await ensure_in_scope(db, employee, user, Employee.user_id)
    return employee


async def _validate(db: AsyncSession, data: dict, employee: Employee = None):
    """校验外键与唯一性，并把枚举转换为字符串"""
    errors = ErrorBag()
    await errors.exists(db, Department, data.get("department_id"), "department_id")
    await errors.exists(db, Employee, data.get("parent_id"), "parent_id")
    await errors.exists(db, Employee, data.get("coach_id"), "coach_id")
    await errors.exists(db, User, data.get("user_id"), "user_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    if data.get("work_email"):
        await errors.unique(db, Employee.work_email, data["work_email"], "work_email",
                            ignore_id=employee.id if employee else None)

    if employee is not None:
        if data.get("parent_id") == employee.id:
            errors.add("parent_id", "An employee cannot be their own manager.")
        if data.get("coach_id") == employee.id:
            errors.add("coach_id", "An employee cannot be their own coach.")
    errors.raise_if_any()

    for field in ENUM_FIELDS:
        if data.get(field) is not None:
            data[field] = data[field].value


@router.get("")
async def list_employees(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_employee_employee")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    work_email: Optional[str] = Query(None, alias="filter[work_email]"),
    department_id: Optional[str] = Query(None, alias="filter[department_id]"),
    parent_id: Optional[str] = Query(None, alias="filter[parent_id]"),
    employee_type: Optional[str] = Query(None, alias="filter[employee_type]"),
    company_id: Optional[str] = Query(None, alias="filter[company_id]"),
    is_active: Optional[str] = Query(None, alias="filter[is_active]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Employee)
    query = apply_scope(query, Employee, current_user, Employee.user_id)
    query = apply_trashed(query, Employee, trashed)
    query = apply_partial(query, Employee.name, name)
    query = apply_partial(query, Employee.work_email, work_email)
    query = apply_exact(query, Employee.department_id, department_id)
    query = apply_exact(query, Employee.parent_id, parent_id)
    query = apply_exact(query, Employee.employee_type, employee_type)
    query = apply_exact(query, Employee.company_id, company_id)
    query = apply_exact(query, Employee.is_active, is_active, boolean=True)
    query = apply_sort(query, Employee, params.sort, ["id", "name", "job_title", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_employee(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_employee_employee")),
    employee_in: EmployeeCreate) -> Any:
    data = employee_in.model_dump()
    await _validate(db, data)

    employee = Employee(**data, creator_id=current_user.id)
    if employee.company_id is None:
        employee.company_id = current_user.default_company_id
    db.add(employee)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "employee", employee.id, employee.name)
    await db.commit()
    logger.info(f"👤 新增员工 {employee.name}")

    employee = await _get_employee(db, employee.id, current_user)
    return item_response(_build_response(employee), "Employee created successfully.")


@router.get("/{id}")
async def get_employee(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_employee_employee")),
    id: int) -> Any:
    employee = await _get_employee(db, id, current_user)
    return item_response(_build_response(employee))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_employee(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_employee_employee")),
    id: int,
    employee_in: EmployeeUpdate) -> Any:
    employee = await _get_employee(db, id, current_user)
    data = employee_in.model_dump(exclude_unset=True)
    await _validate(db, data, employee)

    for field, value in data.items():
        setattr(employee, field, value)
    await create_audit_log(db, current_user.id, "update", "employee", employee.id, employee.name)
    await db.commit()

    employee = await _get_employee(db, employee.id, current_user)
    return item_response(_build_response(employee), "Employee updated successfully.")


@router.delete("/{id}")
async def delete_employee(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_employee_employee")),
    id: int) -> Any:
    employee = await _get_employee(db, id, current_user)
    employee.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "employee", employee.id, employee.name)
    await db.commit()
    return {"message": "Employee deleted successfully."}


@router.post("/{id}/restore")
async def restore_employee(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_employee_employee")),
    id: int) -> Any:
    employee = await _get_employee(db, id, current_user, with_trashed=True)
    employee.restore()
    await create_audit_log(db, current_user.id, "restore", "employee", employee.id, employee.name)
    await db.commit()

    employee = await _get_employee(db, employee.id, current_user)
    return item_response(_build_response(employee), "Employee restored successfully.")


@router.delete("/{id}/force")
async def force_delete_employee(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_employee_employee")),
    id: int) -> Any:
    """彻底删除；其他员工和部门对该员工的引用置空"""
    employee = await _get_employee(db, id, current_user, with_trashed=True)
    await db.execute(update(Employee).where(Employee.parent_id == employee.id).values(parent_id=None))
    await db.execute(update(Employee).where(Employee.coach_id == employee.id).values(coach_id=None))
    await db.execute(update(Department).where(Department.manager_id == employee.id).values(manager_id=None))

    await create_audit_log(db, current_user.id, "force_delete", "employee", employee.id, employee.name)
    await db.delete(employee)
    await db.commit()
    return {"message": "Employee permanently deleted successfully."}
