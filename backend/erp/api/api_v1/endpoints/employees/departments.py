"""部门API（支持回收站）"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.employees.department import Department
from erp.models.employees.employee import Employee
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.employees import DepartmentCreate, DepartmentUpdate, DepartmentResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(department: Department) -> dict:
    return DepartmentResponse.model_validate(department).model_dump(mode="json")


async def _is_descendant(db: AsyncSession, candidate: Department, department_id: int) -> bool:
    """candidate 是否是 department_id 自身或其下级"""
    node = candidate
    while node is not None:
        if node.id == department_id:
            return True
        node = await db.get(Department, node.parent_id) if node.parent_id else None
    return False


async def _validate(db: AsyncSession, data: dict, department: Department = None) -> Optional[Department]:
    """校验外键，返回上级部门"""
    errors = ErrorBag()
    await errors.exists(db, Employee, data.get("manager_id"), "manager_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    parent = await errors.exists(db, Department, data.get("parent_id"), "parent_id")
    if parent is not None and department is not None and await _is_descendant(db, parent, department.id):
        errors.invalid("parent_id")
    errors.raise_if_any()
    return parent


async def _refresh_children(db: AsyncSession, department: Department):
    result = await db.execute(select(Department).where(Department.parent_id == department.id))
    for child in result.scalars().all():
        child.compute_complete_name(department)
        await _refresh_children(db, child)


@router.get("")
async def list_departments(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_employee_department")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    parent_id: Optional[str] = Query(None, alias="filter[parent_id]"),
    manager_id: Optional[str] = Query(None, alias="filter[manager_id]"),
    company_id: Optional[str] = Query(None, alias="filter[company_id]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Department)
    query = apply_trashed(query, Department, trashed)
    query = apply_partial(query, Department.name, name)
    query = apply_exact(query, Department.parent_id, parent_id)
    query = apply_exact(query, Department.manager_id, manager_id)
    query = apply_exact(query, Department.company_id, company_id)
    query = apply_sort(query, Department, params.sort, ["id", "name", "complete_name", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_employee_department")),
    department_in: DepartmentCreate) -> Any:
    data = department_in.model_dump()
    parent = await _validate(db, data)

    department = Department(**data, creator_id=current_user.id)
    department.compute_complete_name(parent)
    db.add(department)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "department", department.id, department.name)
    await db.commit()

    department = await get_or_404(db, Department, department.id, "Department")
    return item_response(_build_response(department), "Department created successfully.")


@router.get("/{id}")
async def get_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_employee_department")),
    id: int) -> Any:
    department = await get_or_404(db, Department, id, "Department")
    return item_response(_build_response(department))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_employee_department")),
    id: int,
    department_in: DepartmentUpdate) -> Any:
    department = await get_or_404(db, Department, id, "Department")
    data = department_in.model_dump(exclude_unset=True)
    parent = await _validate(db, data, department)

    for field, value in data.items():
        setattr(department, field, value)
    if "name" in data or "parent_id" in data:
        if "parent_id" not in data and department.parent_id:
            parent = await db.get(Department, department.parent_id)
        department.compute_complete_name(parent)
        await _refresh_children(db, department)

    await create_audit_log(db, current_user.id, "update", "department", department.id, department.name)
    await db.commit()

    department = await get_or_404(db, Department, department.id, "Department")
    return item_response(_build_response(department), "Department updated successfully.")


@router.delete("/{id}")
async def delete_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_employee_department")),
    id: int) -> Any:
    department = await get_or_404(db, Department, id, "Department")
    department.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "department", department.id, department.name)
    await db.commit()
    return {"message": "Department deleted successfully."}


@router.post("/{id}/restore")
async def restore_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_employee_department")),
    id: int) -> Any:
    department = await get_or_404(db, Department, id, "Department", with_trashed=True)
    department.restore()
    await create_audit_log(db, current_user.id, "restore", "department", department.id, department.name)
    await db.commit()

    department = await get_or_404(db, Department, department.id, "Department")
    return item_response(_build_response(department), "Department restored successfully.")


@router.delete("/{id}/force")
async def force_delete_department(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_employee_department")),
    id: int) -> Any:
    """彻底删除；下级部门与员工的引用置空"""
    department = await get_or_404(db, Department, id, "Department", with_trashed=True)
    children = await db.execute(select(Department).where(Department.parent_id == department.id))
    for child in children.scalars().all():
        child.parent_id = None
        child.compute_complete_name(None)
    employees = await db.execute(select(Employee).where(Employee.department_id == department.id))
    for employee in employees.scalars().all():
        employee.department_id = None

    await create_audit_log(db, current_user.id, "force_delete", "department", department.id, department.name)
    await db.delete(department)
    await db.commit()
    return {"message": "Department permanently deleted successfully."}
