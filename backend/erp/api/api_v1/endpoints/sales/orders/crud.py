"""销售订单增删改查"""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission, apply_scope
from erp.core.exceptions import action_failed, ValidationFailed
from erp.core.logging_config import get_logger
from erp.models.enums import SaleOrderState
from erp.models.inventories.operation import Operation
from erp.models.sales.order import SaleOrder
from erp.models.security.user import User
from erp.schemas.sales import SaleOrderCreate, SaleOrderUpdate
from erp.api.api_v1.common import (
    ListParams, paginate, apply_sort, apply_exact, apply_partial, parse_includes, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from .core import (
    LOAD_OPTIONS, INCLUDES, SORTS, EDITABLE_STATES,
    build_order_response, get_order, validate_order, default_currency_id, build_lines, next_order_name
)

logger = get_logger(__name__)


def register_crud(router: APIRouter):

    @router.get("")
    async def list_orders(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("view_any_sale_order")),
        params: ListParams = Depends(),
        include: Optional[str] = Query(None),
        id: Optional[str] = Query(None, alias="filter[id]"),
        name: Optional[str] = Query(None, alias="filter[name]"),
        state: Optional[str] = Query(None, alias="filter[state]"),
        partner_id: Optional[str] = Query(None, alias="filter[partner_id]"),
        user_id: Optional[str] = Query(None, alias="filter[user_id]"),
        company_id: Optional[str] = Query(None, alias="filter[company_id]")) -> Any:
        includes = parse_includes(include, INCLUDES)
        query = select(SaleOrder).options(*LOAD_OPTIONS)
        query = apply_scope(query, SaleOrder, current_user, SaleOrder.user_id)
        query = apply_exact(query, SaleOrder.id, id)
        query = apply_partial(query, SaleOrder.name, name)
        query = apply_exact(query, SaleOrder.state, state)
        query = apply_exact(query, SaleOrder.partner_id, partner_id)
        query = apply_exact(query, SaleOrder.user_id, user_id)
        query = apply_exact(query, SaleOrder.company_id, company_id)
        query = apply_sort(query, SaleOrder, params.sort, SORTS, default="-id")
        return await paginate(db, query, params, lambda order: build_order_response(order, includes))


    @router.post("", status_code=201)
    async def create_order(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("create_sale_order")),
        order_in: SaleOrderCreate) -> Any:
        data = order_in.model_dump()
        await validate_order(db, data)

        if data["company_id"] is None:
            data["company_id"] = current_user.default_company_id
        if data["currency_id"] is None:
            data["currency_id"] = await default_currency_id(db, data["company_id"])
            if data["currency_id"] is None:
                raise ValidationFailed.single("currency_id", "The currency id field is required.")

        items = data.pop("order_lines")
        order = SaleOrder(**data, state=SaleOrderState.DRAFT.value, creator_id=current_user.id)
        order.name = await next_order_name(db)
        order.date_order = order.date_order or datetime.utcnow()
        if order.user_id is None:
            order.user_id = current_user.id
        order.lines = await build_lines(db, items)
        order.recalculate_totals()

        db.add(order)
        await db.flush()
        await create_audit_log(db, current_user.id, "create", "sale_order", order.id, order.name,
                               f"创建销售订单，金额 {order.amount_total}")
        await db.commit()
        logger.info(f"🛒 创建销售订单 {order.name}，金额 {order.amount_total}")

        order = await get_order(db, order.id, current_user)
        return item_response(build_order_response(order), "Order created successfully.")


    @router.get("/{id}")
    async def get_order_detail(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("view_sale_order")),
        id: int,
        include: Optional[str] = Query(None)) -> Any:
        includes = parse_includes(include, INCLUDES)
        order = await get_order(db, id, current_user)
        return item_response(build_order_response(order, includes))


    @router.api_route("/{id}", methods=["PUT", "PATCH"])
    async def update_order(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("update_sale_order")),
        id: int,
        order_in: SaleOrderUpdate) -> Any:
        """报价阶段可修改；提供 order_lines 时整体替换"""
        order = await get_order(db, id, current_user)
        if order.state not in EDITABLE_STATES:
            raise action_failed("Only draft or sent orders can be updated.")

        data = order_in.model_dump(exclude_unset=True)
        await validate_order(db, data)

        items = data.pop("order_lines", None)
        if items is not None:
            order.lines = await build_lines(db, items)
        for field, value in data.items():
            setattr(order, field, value)
        order.recalculate_totals()

        await create_audit_log(db, current_user.id, "update", "sale_order", order.id, order.name)
        await db.commit()

        order = await get_order(db, order.id, current_user)
        return item_response(build_order_response(order), "Order updated successfully.")


    @router.delete("/{id}")
    async def delete_order(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission("delete_sale_order")),
        id: int) -> Any:
        order = await get_order(db, id, current_user)
        if order.state not in (SaleOrderState.DRAFT.value, SaleOrderState.CANCEL.value):
            raise action_failed("Only draft or cancelled orders can be deleted.")

        # 已取消的发货保留，解除与订单的关联
        await db.execute(update(Operation).where(Operation.sale_order_id == order.id).values(sale_order_id=None))
        await create_audit_log(db, current_user.id, "delete", "sale_order", order.id, order.name)
        await db.delete(order)
        await db.commit()
        return {"message": "Order deleted successfully."}
