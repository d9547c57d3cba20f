"""操作日志API"""

from typing import Any, Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import get_db, require_permission
from erp.api.api_v1.common import ListParams, paginate, apply_sort, apply_exact
from erp.core.exceptions import ValidationFailed
from erp.models.security.user import User
from erp.models.support.audit_log import AuditLog
from erp.schemas.support import AuditLogResponse

router = APIRouter()


def build_log_response(log: AuditLog) -> dict:
    """构建日志响应"""
    data = AuditLogResponse.model_validate(log).model_dump(mode="json")
    data["user_name"] = log.user.name if log.user else None
    return data


def _parse_date(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationFailed.single(field, f"The {field.replace('_', ' ')} field must be a valid date.")


@router.get("")
async def list_logs(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_support_audit_log")),
    params: ListParams = Depends(),
    action: Optional[str] = Query(None, alias="filter[action]"),
    resource_type: Optional[str] = Query(None, alias="filter[resource_type]"),
    resource_id: Optional[str] = Query(None, alias="filter[resource_id]"),
    user_id: Optional[str] = Query(None, alias="filter[user_id]"),
    date_from: Optional[str] = Query(None, alias="filter[date_from]"),
    date_to: Optional[str] = Query(None, alias="filter[date_to]")) -> Any:
    """获取操作日志列表"""
    query = select(AuditLog).options(selectinload(AuditLog.user))
    query = apply_exact(query, AuditLog.action, action)
    query = apply_exact(query, AuditLog.resource_type, resource_type)
    query = apply_exact(query, AuditLog.resource_id, resource_id)
    query = apply_exact(query, AuditLog.user_id, user_id)

    start = _parse_date(date_from, "date_from")
    end = _parse_date(date_to, "date_to")
    if start:
        query = query.where(AuditLog.created_at >= start)
    if end:
        # 截止日期包含当天
        query = query.where(AuditLog.created_at < end + timedelta(days=1))

    query = apply_sort(query, AuditLog, params.sort, ["id", "action", "resource_type", "created_at"], default="-id")
    return await paginate(db, query, params, build_log_response)


# 日志记录工具函数
async def create_audit_log(
    db: AsyncSession,
    user_id: Optional[int],
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    resource_name: Optional[str] = None,
    description: Optional[str] = None,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None,
    ip_address: Optional[str] = None) -> AuditLog:
    """创建审计日志（随业务事务一起提交）"""
    log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        description=description,
        old_value=old_value,
        new_value=new_value,
        ip_address=ip_address
    )
    db.add(log)
    return log
