"""作业状态流转：待办、检查可用性、验证、取消、退回"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.models.enums import OperationState, StockMoveState
from erp.models.security.user import User
from erp.api.api_v1.common import item_response
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from .core import OperationKind, build_operation_response, get_operation, load_operation
from . import stock_ops

logger = get_logger(__name__)


def register_actions(router: APIRouter, kind: OperationKind):

    @router.post("/{id}/todo")
    async def set_operation_todo(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        """草稿 → 待处理"""
        operation = await get_operation(db, kind, id, current_user)
        if operation.state != OperationState.DRAFT.value:
            raise action_failed("Only draft operations can be set to todo.")
        if not operation.moves:
            raise action_failed("Cannot set operation to todo without moves.")

        await stock_ops.confirm_operation(db, operation)
        await create_audit_log(db, current_user.id, "todo", kind.resource, operation.id, operation.name)
        await db.commit()

        operation = await get_operation(db, kind, operation.id, current_user)
        return item_response(build_operation_response(operation), f"{kind.label} set to todo successfully.")

    @router.post("/{id}/check-availability")
    async def check_operation_availability(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        operation = await get_operation(db, kind, id, current_user)
        if operation.state not in (OperationState.CONFIRMED.value, OperationState.ASSIGNED.value):
            raise action_failed("Only confirmed or assigned operations can check availability.")
        if not any(move.state in stock_ops.RESERVABLE_STATES for move in operation.moves):
            raise action_failed("No operation moves are eligible for availability check.")

        await stock_ops.check_availability(db, operation)
        await create_audit_log(db, current_user.id, "check_availability", kind.resource,
                               operation.id, operation.name)
        await db.commit()
        logger.info(f"🔍 作业 {operation.name} 检查可用性，状态 {operation.state}")

        operation = await get_operation(db, kind, operation.id, current_user)
        return item_response(build_operation_response(operation), f"{kind.label} availability checked successfully.")

    @router.post("/{id}/validate")
    async def validate_operation(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        operation = await get_operation(db, kind, id, current_user)
        if operation.is_closed:
            raise action_failed("Only non-done and non-canceled operations can be validated.")
        if not operation.moves:
            raise action_failed("Cannot validate an operation without moves.")

        await stock_ops.validate_operation(db, operation)
        await create_audit_log(db, current_user.id, "validate", kind.resource, operation.id, operation.name,
                               f"验证作业 {operation.name}")
        await db.commit()

        operation = await get_operation(db, kind, operation.id, current_user)
        return item_response(build_operation_response(operation), f"{kind.label} validated successfully.")

    @router.post("/{id}/cancel")
    async def cancel_operation(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        operation = await get_operation(db, kind, id, current_user)
        if operation.is_closed:
            raise action_failed("Only non-done and non-canceled operations can be canceled.")

        await stock_ops.cancel_operation(db, operation)
        await create_audit_log(db, current_user.id, "cancel", kind.resource, operation.id, operation.name)
        await db.commit()

        operation = await get_operation(db, kind, operation.id, current_user)
        return item_response(build_operation_response(operation), f"{kind.label} canceled successfully.")

    @router.post("/{id}/return")
    async def return_operation(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int) -> Any:
        """按已完成数量生成反向作业，返回新作业"""
        operation = await get_operation(db, kind, id, current_user)
        if operation.state != OperationState.DONE.value:
            raise action_failed("Only done operations can be returned.")
        if not any(move.state == StockMoveState.DONE.value and move.quantity for move in operation.moves):
            raise action_failed("There are no done moves to return.")

        returned = await stock_ops.create_return(db, operation, current_user.id)
        await create_audit_log(db, current_user.id, "return", kind.resource, operation.id, operation.name,
                               f"退回作业 {operation.name}，生成 {returned.name}")
        await db.commit()

        # 退回作业可能使用其他类型（如收货的退回为发货），不按当前接口类型过滤
        returned = await load_operation(db, returned.id)
        return item_response(build_operation_response(returned), f"{kind.label} return created successfully.")
