"""角色管理API"""

import re
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.core.permissions import PERMISSIONS
from erp.models.security.role import Role
from erp.models.security.user import User
from erp.schemas.security import RoleCreate, RoleUpdate, RoleResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)


def _build_response(role: Role) -> dict:
    return RoleResponse.model_validate(role).model_dump(mode="json")


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


async def _validate(db: AsyncSession, data: dict, role_id: Optional[int] = None):
    errors = ErrorBag()
    if "name" in data:
        await errors.unique(db, Role.name, data["name"], "name", ignore_id=role_id)
    if data.get("code"):
        await errors.unique(db, Role.code, data["code"], "code", ignore_id=role_id)
    for index, code in enumerate(data.get("permissions") or []):
        if code not in PERMISSIONS:
            errors.invalid(f"permissions.{index}")
    errors.raise_if_any()


@router.get("/permissions")
async def list_permissions(
    current_user: User = Depends(require_permission("view_any_security_role"))) -> Any:
    """全部可分配的权限编码"""
    return {"data": [{"code": code, "label": label} for code, label in PERMISSIONS.items()]}


@router.get("")
async def list_roles(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_security_role")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    is_active: Optional[str] = Query(None, alias="filter[is_active]")) -> Any:
    query = select(Role)
    query = apply_partial(query, Role.name, name)
    query = apply_exact(query, Role.is_active, is_active, boolean=True)
    query = apply_sort(query, Role, params.sort, ["id", "name", "code", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_security_role")),
    role_in: RoleCreate) -> Any:
    data = role_in.model_dump()
    if not data.get("code"):
        data["code"] = _slugify(data["name"])
    await _validate(db, data)

    role = Role(**data, creator_id=current_user.id)
    db.add(role)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "role", role.id, role.name, f"创建角色 {role.name}")
    await db.commit()
    logger.info(f"🛡️ 创建角色: {role.code} ({len(role.permissions or [])} 项权限)")

    role = await get_or_404(db, Role, role.id, "Role")
    return item_response(_build_response(role), "Role created successfully.")


@router.get("/{id}")
async def get_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_security_role")),
    id: int) -> Any:
    role = await get_or_404(db, Role, id, "Role")
    return item_response(_build_response(role))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_security_role")),
    id: int,
    role_in: RoleUpdate) -> Any:
    role = await get_or_404(db, Role, id, "Role")
    data = role_in.model_dump(exclude_unset=True)
    await _validate(db, data, role_id=role.id)

    for field, value in data.items():
        setattr(role, field, value)
    await create_audit_log(db, current_user.id, "update", "role", role.id, role.name, f"更新角色 {role.name}")
    await db.commit()

    role = await get_or_404(db, Role, role.id, "Role")
    return item_response(_build_response(role), "Role updated successfully.")


@router.delete("/{id}")
async def delete_role(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_security_role")),
    id: int) -> Any:
    role = await get_or_404(db, Role, id, "Role", options=[selectinload(Role.users)])
    if role.is_system:
        raise action_failed("System roles cannot be deleted.")

    await create_audit_log(db, current_user.id, "delete", "role", role.id, role.name, f"删除角色 {role.name}")
    await db.delete(role)
    await db.commit()
    return {"message": "Role deleted successfully."}
