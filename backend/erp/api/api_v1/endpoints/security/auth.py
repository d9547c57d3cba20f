"""登录认证API"""

from typing import Any
from datetime import timedelta
from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.config import settings
from erp.core.deps import get_db, get_current_user, get_client_ip
from erp.core.exceptions import ValidationFailed
from erp.core.logging_config import get_logger
from erp.core.security import create_access_token, verify_password
from erp.models.security.user import User
from erp.schemas.security import LoginRequest
from erp.api.api_v1.endpoints.security.users import build_user_response
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)


@router.post("/login")
async def login(
    *,
    db: AsyncSession = Depends(get_db),
    request: Request,
    login_in: LoginRequest) -> Any:
    """邮箱 + 密码登录，返回 Bearer 令牌"""
    result = await db.execute(select(User).where(User.email == login_in.email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(login_in.password, user.password):
        logger.warning(f"🔒 登录失败: {login_in.email}")
        raise ValidationFailed.single("email", "These credentials do not match our records.")
    if not user.is_active:
        raise ValidationFailed.single("email", "This account is inactive.")

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(user.id, expires_delta=expires)

    await create_audit_log(
        db, user_id=user.id, action="login", resource_type="user",
        resource_id=user.id, resource_name=user.name,
        description=f"用户登录: {user.email}", ip_address=get_client_ip(request)
    )
    await db.commit()
    logger.info(f"🔑 用户登录: {user.email}")

    return {
        "data": {
            "access_token": token,
            "token_type": "Bearer",
            "expires_in": int(expires.total_seconds()),
            "user": build_user_response(user),
        },
        "message": "Logged in successfully.",
    }


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)) -> Any:
    """当前用户信息及有效权限"""
    data = build_user_response(current_user)
    data["permissions"] = sorted(current_user.get_all_permissions())
    return {"data": data}


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)) -> Any:
    # 令牌无状态，客户端丢弃即可
    logger.info(f"👋 用户登出: {current_user.email}")
    return {"message": "Logged out successfully."}
