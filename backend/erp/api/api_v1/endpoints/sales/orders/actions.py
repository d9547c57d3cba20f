"""销售订单状态流转：确认、取消、重置草稿，及订单发货查询"""

from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.models.enums import LocationType, OperationState, OperationTypeKind, ProductType, SaleOrderState
from erp.models.inventories.operation import Operation
from erp.models.inventories.operation_type import OperationType
from erp.models.products.product import Product
from erp.models.sales.order import SaleOrder
from erp.models.security.user import User
from erp.api.api_v1.common import ListParams, paginate, apply_exact, apply_sort, parse_includes, item_response
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from erp.api.api_v1.endpoints.inventories.warehouses import get_virtual_location
from erp.api.api_v1.endpoints.inventories.operations import stock_ops
from erp.api.api_v1.endpoints.inventories.operations.core import (
    LOAD_OPTIONS as OPERATION_LOAD_OPTIONS, SORTS as OPERATION_SORTS,
    build_operation_response, next_operation_name
)
from erp.api.api_v1.endpoints.inventories.operations.crud import sync_moves
from .core import EDITABLE_STATES, build_order_response, get_order

logger = get_logger(__name__)

DELIVERY_INCLUDES = ["operationType", "moves", "partner", "sourceLocation", "destinationLocation"]


async def _load_deliveries(db: AsyncSession, order: SaleOrder) -> List[Operation]:
    result = await db.execute(
        select(Operation)
        .where(Operation.sale_order_id == order.id)
        .options(*OPERATION_LOAD_OPTIONS)
        .order_by(Operation.id)
    )
    return list(result.scalars().all())


async def _create_delivery(db: AsyncSession, order: SaleOrder, user_id: int) -> Optional[Operation]:
    """为可库存商品生成出库作业并确认；没有可库存商品或出库类型时跳过"""
    items = []
    for line in order.lines:
        product = await db.get(Product, line.product_id)
        if product.type == ProductType.GOODS.value and product.is_storable:
            items.append({"product_id": line.product_id, "product_uom_qty": line.product_uom_qty,
                          "uom_id": line.uom_id})
    if not items:
        return None

    result = await db.execute(
        select(OperationType)
        .where(OperationType.type == OperationTypeKind.OUTGOING.value,
               OperationType.deleted_at.is_(None),
               OperationType.source_location_id.is_not(None))
        .order_by(OperationType.sequence, OperationType.id)
        .limit(1)
    )
    operation_type = result.scalar_one_or_none()
    if operation_type is None:
        logger.warning(f"⚠️ 没有可用的发货作业类型，订单 {order.name} 未生成发货")
        return None

    destination_id = operation_type.destination_location_id
    if destination_id is None:
        destination_id = (await get_virtual_location(db, LocationType.CUSTOMER.value)).id

    operation = Operation(
        name=await next_operation_name(db, operation_type),
        origin=order.name,
        state=OperationState.DRAFT.value,
        scheduled_at=order.commitment_date or datetime.utcnow(),
        partner_id=order.partner_id,
        operation_type_id=operation_type.id,
        source_location_id=operation_type.source_location_id,
        destination_location_id=destination_id,
        sale_order_id=order.id,
        user_id=order.user_id,
        company_id=order.company_id,
        creator_id=user_id,
    )
    operation.moves = []
    await sync_moves(db, operation, items, user_id)
    db.add(operation)
    await db.flush()

    await stock_ops.confirm_operation(db, operation)
    return operation


def register_actions(router: APIRouter):

    @router.post("/{id}/confirm")
    async def confirm_order(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("update_sale_order")),
        id: int) -> Any:
        """报价 → 销售订单，并生成发货"""
        order = await get_order(db, id, current_user)
        if order.state not in EDITABLE_STATES:
            raise action_failed("Only draft or sent orders can be confirmed.")

        order.state = SaleOrderState.SALE.value
        order.date_order = datetime.utcnow()
        delivery = await _create_delivery(db, order, current_user.id)

        description = f"确认订单 {order.name}"
        if delivery is not None:
            description += f"，生成发货 {delivery.name}"
        await create_audit_log(db, current_user.id, "confirm", "sale_order", order.id, order.name, description)
        await db.commit()
        logger.info(f"✅ {description}")

        order = await get_order(db, order.id, current_user)
        return item_response(build_order_response(order), "Order confirmed successfully.")


    @router.post("/{id}/cancel")
    async def cancel_order(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("update_sale_order")),
        id: int) -> Any:
        """取消订单及其未完成的发货"""
        order = await get_order(db, id, current_user)
        if order.state == SaleOrderState.CANCEL.value:
            raise action_failed("Order is already cancelled.")

        deliveries = await _load_deliveries(db, order)
        if any(delivery.state == OperationState.DONE.value for delivery in deliveries):
            raise action_failed("Cannot cancel an order with done deliveries.")

        for delivery in deliveries:
            if not delivery.is_closed:
                await stock_ops.cancel_operation(db, delivery)
        order.state = SaleOrderState.CANCEL.value

        await create_audit_log(db, current_user.id, "cancel", "sale_order", order.id, order.name)
        await db.commit()

        order = await get_order(db, order.id, current_user)
        return item_response(build_order_response(order), "Order cancelled successfully.")


    @router.post("/{id}/reset-to-draft")
    async def reset_order_to_draft(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("update_sale_order")),
        id: int) -> Any:
        order = await get_order(db, id, current_user)
        if order.state != SaleOrderState.CANCEL.value:
            raise action_failed("Only cancelled orders can be reset to draft.")

        order.state = SaleOrderState.DRAFT.value
        await create_audit_log(db, current_user.id, "reset_to_draft", "sale_order", order.id, order.name)
        await db.commit()

        order = await get_order(db, order.id, current_user)
        return item_response(build_order_response(order), "Order reset to draft successfully.")


    @router.get("/{id}/deliveries")
    async def list_order_deliveries(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("view_sale_order")),
        params: ListParams = Depends(),
        id: int,
        include: Optional[str] = Query(None),
        state: Optional[str] = Query(None, alias="filter[state]")) -> Any:
        """订单关联的发货作业"""
        order = await get_order(db, id, current_user)
        includes = parse_includes(include, DELIVERY_INCLUDES)

        query = select(Operation).where(Operation.sale_order_id == order.id).options(*OPERATION_LOAD_OPTIONS)
        query = apply_exact(query, Operation.state, state)
        query = apply_sort(query, Operation, params.sort, OPERATION_SORTS)
        return await paginate(db, query, params, lambda op: build_operation_response(op, includes))
