"""用户管理API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.core.security import get_password_hash
from erp.models.security.role import Role
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.security import UserCreate, UserUpdate, UserResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)


def build_user_response(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


async def _load_roles(db: AsyncSession, role_ids: List[int]) -> List[Role]:
    if not role_ids:
        return []
    result = await db.execute(select(Role).where(Role.id.in_(role_ids)))
    return list(result.scalars().all())


async def _validate(db: AsyncSession, data: dict, user_id: Optional[int] = None):
    errors = ErrorBag()
    if "email" in data:
        await errors.unique(db, User.email, data["email"], "email", ignore_id=user_id)
    await errors.exists(db, Company, data.get("default_company_id"), "default_company_id")
    await errors.exists_all(db, Role, data.get("role_ids"), "role_ids")
    errors.raise_if_any()


@router.get("")
async def list_users(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_security_user")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    email: Optional[str] = Query(None, alias="filter[email]"),
    is_active: Optional[str] = Query(None, alias="filter[is_active]")) -> Any:
    """获取用户列表"""
    query = select(User)
    query = apply_partial(query, User.name, name)
    query = apply_partial(query, User.email, email)
    query = apply_exact(query, User.is_active, is_active, boolean=True)
    query = apply_sort(query, User, params.sort, ["id", "name", "email", "created_at"])
    return await paginate(db, query, params, build_user_response)


@router.post("", status_code=201)
async def create_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_security_user")),
    user_in: UserCreate) -> Any:
    """创建用户"""
    data = user_in.model_dump()
    await _validate(db, data)

    role_ids = data.pop("role_ids")
    data["password"] = get_password_hash(data["password"])
    data["resource_permission"] = user_in.resource_permission.value
    user = User(**data)
    user.roles = await _load_roles(db, role_ids)
    db.add(user)
    await db.flush()

    await create_audit_log(db, current_user.id, "create", "user", user.id, user.name, f"创建用户 {user.email}")
    await db.commit()
    logger.info(f"👤 创建用户: {user.email}")

    user = await get_or_404(db, User, user.id, "User")
    return item_response(build_user_response(user), "User created successfully.")


@router.get("/{id}")
async def get_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_security_user")),
    id: int) -> Any:
    user = await get_or_404(db, User, id, "User")
    return item_response(build_user_response(user))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_security_user")),
    id: int,
    user_in: UserUpdate) -> Any:
    """更新用户（部分更新）"""
    user = await get_or_404(db, User, id, "User")
    data = user_in.model_dump(exclude_unset=True)
    await _validate(db, data, user_id=user.id)

    if "role_ids" in data:
        user.roles = await _load_roles(db, data.pop("role_ids") or [])
    if data.get("password"):
        data["password"] = get_password_hash(data["password"])
    if data.get("resource_permission") is not None:
        data["resource_permission"] = data["resource_permission"].value
    for field, value in data.items():
        setattr(user, field, value)

    await create_audit_log(db, current_user.id, "update", "user", user.id, user.name, f"更新用户 {user.email}")
    await db.commit()

    user = await get_or_404(db, User, user.id, "User")
    return item_response(build_user_response(user), "User updated successfully.")


@router.delete("/{id}")
async def delete_user(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_security_user")),
    id: int) -> Any:
    user = await get_or_404(db, User, id, "User")
    if user.id == current_user.id:
        raise action_failed("You cannot delete your own account.")

    await create_audit_log(db, current_user.id, "delete", "user", user.id, user.name, f"删除用户 {user.email}")
    await db.delete(user)
    await db.commit()
    logger.info(f"🗑️ 删除用户: {user.email}")
    return {"message": "User deleted successfully."}
