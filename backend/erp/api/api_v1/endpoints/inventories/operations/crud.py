"""作业增删改查"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission, apply_scope
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.models.enums import OperationState, OperationTypeKind, StockMoveState
from erp.models.inventories.location import Location
from erp.models.inventories.move import StockMove
from erp.models.inventories.operation import Operation
from erp.models.inventories.operation_type import OperationType
from erp.models.partners.partner import Partner
from erp.models.products.product import Product
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.models.support.uom import UOM
from erp.schemas.inventories import OperationCreate, OperationUpdate
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, parse_includes, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from .core import (
    OperationKind, LOAD_OPTIONS, INCLUDES, SORTS,
    build_operation_response, kind_condition, get_operation, next_operation_name
)
from .stock_ops import confirm_operation, release_move

logger = get_logger(__name__)


async def _resolve_operation_type(
    db: AsyncSession, kind: OperationKind, type_id: Optional[int], errors: ErrorBag
) -> Optional[OperationType]:
    """未指定作业类型时取该类作业的第一个类型"""
    if type_id is None:
        result = await db.execute(
            select(OperationType)
            .where(OperationType.type == kind.type, OperationType.deleted_at.is_(None))
            .order_by(OperationType.sequence, OperationType.id)
            .limit(1)
        )
        operation_type = result.scalar_one_or_none()
        if operation_type is None:
            errors.add("operation_type_id", "No operation type is configured for this resource.")
        return operation_type

    operation_type = await errors.exists(db, OperationType, type_id, "operation_type_id")
    if operation_type is not None and operation_type.type != kind.type:
        errors.add("operation_type_id", "The selected operation type does not match this resource.")
        return None
    return operation_type


async def _validate_moves(db: AsyncSession, items: List[Dict], errors: ErrorBag):
    for index, item in enumerate(items):
        prefix = f"moves.{index}"
        product = await errors.exists(db, Product, item.get("product_id"), f"{prefix}.product_id")
        if product is not None and product.is_configurable:
            errors.add(
                f"{prefix}.product_id",
                f"The product '{product.name}' is configurable and cannot be used in operations. "
                f"Please select a product variant instead."
            )
        uom = await errors.exists(db, UOM, item.get("uom_id"), f"{prefix}.uom_id")
        await errors.same_uom_category(db, uom, product, f"{prefix}.uom_id")
        await errors.exists(db, Location, item.get("final_location_id"), f"{prefix}.final_location_id")


async def validate_operation_data(
    db: AsyncSession, kind: OperationKind, data: Dict, operation: Optional[Operation] = None
) -> Optional[OperationType]:
    """校验作业数据，补全作业类型和库位；返回作业类型"""
    errors = ErrorBag()
    if operation is None or "operation_type_id" in data:
        operation_type = await _resolve_operation_type(db, kind, data.get("operation_type_id"), errors)
    else:
        operation_type = operation.operation_type

    await errors.exists(db, Partner, data.get("partner_id"), "partner_id")
    await errors.exists(db, User, data.get("user_id"), "user_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    await errors.exists(db, Location, data.get("source_location_id"), "source_location_id")
    await errors.exists(db, Location, data.get("destination_location_id"), "destination_location_id")
    if data.get("moves") is not None:
        await _validate_moves(db, data["moves"], errors)

    if operation is None and operation_type is not None:
        data["operation_type_id"] = operation_type.id
        if data.get("source_location_id") is None:
            data["source_location_id"] = operation_type.source_location_id
        if data.get("destination_location_id") is None:
            data["destination_location_id"] = operation_type.destination_location_id
        if data["source_location_id"] is None:
            errors.required("source_location_id")
        if data["destination_location_id"] is None:
            errors.required("destination_location_id")

    errors.raise_if_any()
    return operation_type


async def _default_company(db: AsyncSession, operation: Operation, operation_type: OperationType) -> Optional[int]:
    """出库取来源库位的公司，其余取目的库位的公司"""
    location_id = operation.destination_location_id
    if operation_type.type == OperationTypeKind.OUTGOING.value:
        location_id = operation.source_location_id
    location = await db.get(Location, location_id)
    return location.company_id if location is not None else None


async def sync_moves(db: AsyncSession, operation: Operation, items: List[Dict], user_id: int):
    """按 id 更新已有移动，新增缺失的，删除未提交的"""
    existing = {move.id: move for move in operation.moves}
    destination = await db.get(Location, operation.destination_location_id)
    moves = []
    for item in items:
        move = existing.pop(item.get("id"), None) if item.get("id") else None
        product = await db.get(Product, item["product_id"])
        if move is None:
            move = StockMove(
                state=StockMoveState.DRAFT.value,
                quantity=None,
                is_picked=False,
                reserved_qty=Decimal("0"),
                creator_id=user_id,
            )
        move.product_id = product.id
        move.name = product.name
        move.uom_id = item.get("uom_id") or product.uom_id
        move.product_uom_qty = Decimal(str(item["product_uom_qty"]))
        move.description_picking = item.get("description_picking")
        move.final_location_id = item.get("final_location_id")
        move.scheduled_at = item.get("scheduled_at") or operation.scheduled_at
        move.deadline = item.get("deadline") or operation.deadline
        if item.get("quantity") is not None:
            move.quantity = Decimal(str(item["quantity"]))
        move.is_picked = item.get("is_picked", False)

        move.product_qty = Decimal(str(item["product_uom_qty"]))
        if move.uom_id and product.uom_id and move.uom_id != product.uom_id:
            uom = await db.get(UOM, move.uom_id)
            move.product_qty = Decimal(str(
                uom.compute_quantity(item["product_uom_qty"], await db.get(UOM, product.uom_id), True, "HALF-UP")
            ))

        move.reference = operation.name
        move.origin = operation.origin
        move.source_location_id = operation.source_location_id
        move.destination_location_id = operation.destination_location_id
        move.operation_type_id = operation.operation_type_id
        move.warehouse_id = destination.warehouse_id if destination is not None else None
        move.company_id = operation.company_id
        moves.append(move)

    for move in existing.values():
        await release_move(db, move)
    operation.moves = moves


def register_crud(router: APIRouter, kind: OperationKind):

    @router.get("")
    async def list_operations(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("view_any"))),
        params: ListParams = Depends(),
        include: Optional[str] = Query(None),
        id: Optional[str] = Query(None, alias="filter[id]"),
        name: Optional[str] = Query(None, alias="filter[name]"),
        origin: Optional[str] = Query(None, alias="filter[origin]"),
        state: Optional[str] = Query(None, alias="filter[state]"),
        move_type: Optional[str] = Query(None, alias="filter[move_type]"),
        partner_id: Optional[str] = Query(None, alias="filter[partner_id]"),
        user_id: Optional[str] = Query(None, alias="filter[user_id]"),
        company_id: Optional[str] = Query(None, alias="filter[company_id]"),
        operation_type_id: Optional[str] = Query(None, alias="filter[operation_type_id]")) -> Any:
        includes = parse_includes(include, INCLUDES)
        query = select(Operation).where(kind_condition(kind)).options(*LOAD_OPTIONS)
        query = apply_scope(query, Operation, current_user, Operation.user_id)
        query = apply_exact(query, Operation.id, id)
        query = apply_partial(query, Operation.name, name)
        query = apply_partial(query, Operation.origin, origin)
        query = apply_exact(query, Operation.state, state)
        query = apply_exact(query, Operation.move_type, move_type)
        query = apply_exact(query, Operation.partner_id, partner_id)
        query = apply_exact(query, Operation.user_id, user_id)
        query = apply_exact(query, Operation.company_id, company_id)
        query = apply_exact(query, Operation.operation_type_id, operation_type_id)
        query = apply_sort(query, Operation, params.sort, SORTS, default="-id")
        return await paginate(db, query, params, lambda op: build_operation_response(op, includes))

    @router.post("", status_code=201)
    async def create_operation(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("create"))),
        operation_in: OperationCreate) -> Any:
        data = operation_in.model_dump()
        data["move_type"] = operation_in.move_type.value
        operation_type = await validate_operation_data(db, kind, data)

        items = data.pop("moves") or []
        operation = Operation(**data, state=OperationState.DRAFT.value, creator_id=current_user.id)
        operation.name = await next_operation_name(db, operation_type)
        operation.scheduled_at = operation.scheduled_at or datetime.utcnow()
        if operation.user_id is None:
            operation.user_id = current_user.id
        if operation.company_id is None:
            operation.company_id = await _default_company(db, operation, operation_type)
        operation.moves = []
        await sync_moves(db, operation, items, current_user.id)

        db.add(operation)
        await db.flush()
        await create_audit_log(
            db, current_user.id, "create", kind.resource, operation.id, operation.name,
            f"创建作业 {operation.name}，{len(items)} 个移动"
        )
        await db.commit()
        logger.info(f"📦 创建作业 {operation.name}")

        operation = await get_operation(db, kind, operation.id, current_user)
        return item_response(build_operation_response(operation), f"{kind.label} created successfully.")

    @router.get("/{id}")
    async def get_operation_detail(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("view"))),
        id: int,
        include: Optional[str] = Query(None)) -> Any:
        includes = parse_includes(include, INCLUDES)
        operation = await get_operation(db, kind, id, current_user)
        return item_response(build_operation_response(operation, includes))

    @router.api_route("/{id}", methods=["PUT", "PATCH"])
    async def update_operation(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("update"))),
        id: int,
        operation_in: OperationUpdate) -> Any:
        """提供 moves 时按 id 同步移动明细"""
        operation = await get_operation(db, kind, id, current_user)

        data = operation_in.model_dump(exclude_unset=True)
        if data.get("moves") is not None and operation.state in (
                OperationState.DONE.value, OperationState.CANCELED.value):
            raise action_failed("Cannot change moves of a done or canceled operation.")
        if data.get("move_type") is not None:
            data["move_type"] = operation_in.move_type.value
        await validate_operation_data(db, kind, data, operation)

        items = data.pop("moves", None)
        for field, value in data.items():
            setattr(operation, field, value)
        if items is not None:
            await sync_moves(db, operation, items, current_user.id)
            if operation.state != OperationState.DRAFT.value:
                # 已确认的作业中新增的移动随之确认
                await confirm_operation(db, operation)
        operation.compute_state()

        await create_audit_log(db, current_user.id, "update", kind.resource, operation.id, operation.name)
        await db.commit()

        operation = await get_operation(db, kind, operation.id, current_user)
        return item_response(build_operation_response(operation), f"{kind.label} updated successfully.")

    @router.delete("/{id}")
    async def delete_operation(
        *,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_permission(kind.permission("delete"))),
        id: int) -> Any:
        operation = await get_operation(db, kind, id, current_user)
        if operation.state == OperationState.DONE.value:
            raise action_failed("Done operations cannot be deleted.")

        for move in operation.moves:
            await release_move(db, move)
        await create_audit_log(db, current_user.id, "delete", kind.resource, operation.id, operation.name)
        await db.delete(operation)
        await db.commit()
        return {"message": f"{kind.label} deleted successfully."}
