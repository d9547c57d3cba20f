"""依赖注入 - 数据库会话、当前用户、权限与数据范围"""
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.exceptions import UNAUTHENTICATED, UNAUTHORIZED
from erp.core.security import decode_access_token
from erp.db.session import SessionLocal
from erp.models.enums import ResourcePermission
from erp.models.security.user import User

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话依赖
    """
    async with SessionLocal() as session:
        yield session


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """解析 Bearer 令牌，返回当前登录用户"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail=UNAUTHENTICATED)
    subject = decode_access_token(credentials.credentials)
    if subject is None or not str(subject).isdigit():
        raise HTTPException(status_code=401, detail=UNAUTHENTICATED)
    user = await db.get(User, int(subject))
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail=UNAUTHENTICATED)
    return user


def require_permission(code: str):
    """
    权限检查依赖

    用法：current_user: User = Depends(require_permission("view_any_account_bill"))
    """
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if not current_user.has_permission(code):
            raise HTTPException(status_code=403, detail=UNAUTHORIZED)
        return current_user
    return checker


def get_client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


# ===== 数据范围（resource permission） =====

def scope_condition(model, user: User, owner_column=None):
    """按用户的数据范围生成过滤条件，global 返回 None

    - group: 创建人或负责人与当前用户属于同一默认公司
    - individual: 本人创建或本人负责
    """
    if user.resource_permission == ResourcePermission.GLOBAL.value:
        return None

    columns = [model.creator_id]
    if owner_column is not None:
        columns.append(owner_column)

    if user.resource_permission == ResourcePermission.GROUP.value and user.default_company_id:
        same_company = select(User.id).where(User.default_company_id == user.default_company_id)
        return or_(*[col.in_(same_company) for col in columns])

    return or_(*[col == user.id for col in columns])


def apply_scope(query, model, user: User, owner_column=None):
    condition = scope_condition(model, user, owner_column)
    if condition is not None:
        query = query.where(condition)
    return query


async def ensure_in_scope(db: AsyncSession, record, user: User, owner_column=None):
    """记录不在当前用户数据范围内时返回 403"""
    model = type(record)
    condition = scope_condition(model, user, owner_column)
    if condition is None:
        return
    found = await db.execute(select(model.id).where(model.id == record.id, condition))
    if found.scalar_one_or_none() is None:
        raise HTTPException(status_code=403, detail=UNAUTHORIZED)
