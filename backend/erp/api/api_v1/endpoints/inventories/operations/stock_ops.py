"""
库存作业的库存变动逻辑
- 确认（todo）、检查可用性（预留）、验证（出入库）、取消（释放预留）、退回
- 只有内部库位持有库存数量（ProductQuantity）
- 函数只修改会话中的对象，由调用方提交事务
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.logging_config import get_logger
from erp.models.enums import OperationState, StockMoveState
from erp.models.inventories.location import Location
from erp.models.inventories.move import StockMove
from erp.models.inventories.operation import Operation
from erp.models.inventories.operation_type import OperationType
from erp.models.inventories.product_quantity import ProductQuantity
from erp.models.products.product import Product
from erp.models.sales.order import SaleOrderLine
from erp.models.support.uom import UOM

from .core import LOAD_OPTIONS, next_operation_name

logger = get_logger(__name__)

ZERO = Decimal("0")
CLOSED_STATES = (StockMoveState.DONE.value, StockMoveState.CANCELED.value)
RESERVABLE_STATES = (StockMoveState.CONFIRMED.value, StockMoveState.PARTIALLY_ASSIGNED.value)


def _d(value) -> Decimal:
    return Decimal(str(value or 0))


async def _is_internal(db: AsyncSession, location_id: int) -> bool:
    location = await db.get(Location, location_id)
    return location is not None and location.is_internal


async def _quants(db: AsyncSession, product_id: int, location_id: int) -> List[ProductQuantity]:
    """某库位某商品的库存记录，先入先出"""
    result = await db.execute(
        select(ProductQuantity)
        .where(ProductQuantity.product_id == product_id, ProductQuantity.location_id == location_id)
        .order_by(ProductQuantity.incoming_at.asc(), ProductQuantity.id.asc())
    )
    return list(result.scalars().all())


async def update_quant(
    db: AsyncSession,
    product_id: int,
    location_id: int,
    delta: Decimal,
    lot_id: Optional[int] = None,
    package_id: Optional[int] = None,
    company_id: Optional[int] = None) -> ProductQuantity:
    """增减库存数量（不存在则创建）"""
    result = await db.execute(
        select(ProductQuantity).where(
            ProductQuantity.product_id == product_id,
            ProductQuantity.location_id == location_id,
            ProductQuantity.lot_id.is_(None) if lot_id is None else ProductQuantity.lot_id == lot_id,
            ProductQuantity.package_id.is_(None) if package_id is None else ProductQuantity.package_id == package_id,
        ).limit(1)
    )
    quant = result.scalar_one_or_none()
    if quant is None:
        quant = ProductQuantity(
            product_id=product_id, location_id=location_id, lot_id=lot_id, package_id=package_id,
            quantity=ZERO, reserved_quantity=ZERO, company_id=company_id
        )
        db.add(quant)
    quant.quantity = _d(quant.quantity) + delta
    if delta > 0 and quant.incoming_at is None:
        quant.incoming_at = datetime.utcnow()
    return quant


async def _reserve(db: AsyncSession, product_id: int, location_id: int, needed: Decimal) -> Decimal:
    """从库存记录中预留，返回实际预留数量"""
    reserved = ZERO
    for quant in await _quants(db, product_id, location_id):
        if needed <= 0:
            break
        take = min(quant.available_quantity, needed)
        if take <= 0:
            continue
        quant.reserved_quantity = _d(quant.reserved_quantity) + take
        reserved += take
        needed -= take
    return reserved


async def _release(db: AsyncSession, product_id: int, location_id: int, qty: Decimal):
    for quant in await _quants(db, product_id, location_id):
        if qty <= 0:
            break
        take = min(_d(quant.reserved_quantity), qty)
        quant.reserved_quantity = _d(quant.reserved_quantity) - take
        qty -= take


async def release_move(db: AsyncSession, move: StockMove):
    """释放移动的预留"""
    reserved = _d(move.reserved_qty)
    if reserved > 0 and await _is_internal(db, move.source_location_id):
        await _release(db, move.product_id, move.source_location_id, reserved)
    move.reserved_qty = ZERO


async def to_product_qty(db: AsyncSession, move: StockMove, qty) -> Decimal:
    """把移动单位下的数量换算为商品库存单位"""
    product = await db.get(Product, move.product_id)
    if move.uom_id is None or product.uom_id is None or move.uom_id == product.uom_id:
        return _d(qty)
    uom = await db.get(UOM, move.uom_id)
    product_uom = await db.get(UOM, product.uom_id)
    return _d(uom.compute_quantity(float(qty), product_uom, True, "HALF-UP"))


async def _assign_move(db: AsyncSession, move: StockMove):
    """按来源库位预留；非内部库位无需预留"""
    demand = _d(move.product_qty)
    if not await _is_internal(db, move.source_location_id):
        move.reserved_qty = demand
        move.state = StockMoveState.ASSIGNED.value
        return

    needed = demand - _d(move.reserved_qty)
    if needed > 0:
        move.reserved_qty = _d(move.reserved_qty) + await _reserve(db, move.product_id, move.source_location_id, needed)

    reserved = _d(move.reserved_qty)
    if reserved >= demand:
        move.state = StockMoveState.ASSIGNED.value
    elif reserved > 0:
        move.state = StockMoveState.PARTIALLY_ASSIGNED.value
    else:
        move.state = StockMoveState.CONFIRMED.value


async def confirm_operation(db: AsyncSession, operation: Operation) -> Operation:
    """草稿移动 → 已确认；来源不是内部库位的移动直接就绪"""
    for move in operation.moves:
        if move.state != StockMoveState.DRAFT.value:
            continue
        move.state = StockMoveState.CONFIRMED.value
        if not await _is_internal(db, move.source_location_id):
            await _assign_move(db, move)
    operation.compute_state()
    return operation


async def check_availability(db: AsyncSession, operation: Operation) -> Operation:
    """为已确认 / 部分就绪的移动预留库存"""
    for move in operation.moves:
        if move.state in RESERVABLE_STATES:
            await _assign_move(db, move)
    operation.compute_state()
    return operation


async def _update_sale_delivered(db: AsyncSession, operation: Operation, done: dict):
    """发货完成后累计销售订单行的已交付数量"""
    result = await db.execute(
        select(SaleOrderLine).where(SaleOrderLine.order_id == operation.sale_order_id).order_by(SaleOrderLine.id)
    )
    lines = result.scalars().all()
    for product_id, qty in done.items():
        matching = [line for line in lines if line.product_id == product_id]
        for line in matching:
            if qty <= 0:
                break
            open_qty = _d(line.product_uom_qty) - _d(line.qty_delivered)
            # 超出订购数量的部分计入最后一行
            take = qty if line is matching[-1] else min(open_qty, qty)
            if take <= 0:
                continue
            line.qty_delivered = _d(line.qty_delivered) + take
            qty -= take


async def validate_operation(db: AsyncSession, operation: Operation) -> Operation:
    """
    验证作业：
    1. 草稿先确认
    2. 未填写数量的移动按需求数量完成
    3. 来源为内部库位时出库，目的为内部库位时入库
    """
    if operation.state == OperationState.DRAFT.value:
        await confirm_operation(db, operation)

    done = {}
    for move in operation.moves:
        if move.state in CLOSED_STATES:
            continue
        if move.quantity is None:
            move.quantity = move.product_uom_qty
        qty = await to_product_qty(db, move, move.quantity)

        await release_move(db, move)
        if await _is_internal(db, move.source_location_id):
            await update_quant(db, move.product_id, move.source_location_id, -qty, company_id=move.company_id)
        if await _is_internal(db, move.destination_location_id):
            await update_quant(db, move.product_id, move.destination_location_id, qty, company_id=move.company_id)

        move.is_picked = True
        move.state = StockMoveState.DONE.value
        done[move.product_id] = done.get(move.product_id, ZERO) + qty

    operation.state = OperationState.DONE.value
    operation.closed_at = datetime.utcnow()

    if operation.sale_order_id and done:
        await _update_sale_delivered(db, operation, done)

    logger.info(f"📦 作业 {operation.name} 已完成，移动 {len(done)} 种商品")
    return operation


async def cancel_operation(db: AsyncSession, operation: Operation) -> Operation:
    """取消作业并释放预留"""
    for move in operation.moves:
        if move.state in CLOSED_STATES:
            continue
        await release_move(db, move)
        move.state = StockMoveState.CANCELED.value
    operation.state = OperationState.CANCELED.value
    return operation


async def create_return(db: AsyncSession, operation: Operation, user_id: int) -> Operation:
    """按已完成数量生成退回作业（来源与目的互换），并立即确认"""
    operation_type = operation.operation_type
    if operation_type.return_operation_type_id:
        operation_type = await db.get(OperationType, operation_type.return_operation_type_id)

    returned = Operation(
        name=await next_operation_name(db, operation_type),
        origin=f"Return of {operation.name}",
        move_type=operation.move_type,
        state=OperationState.DRAFT.value,
        scheduled_at=datetime.utcnow(),
        partner_id=operation.partner_id,
        operation_type_id=operation_type.id,
        source_location_id=operation.destination_location_id,
        destination_location_id=operation.source_location_id,
        return_id=operation.id,
        user_id=operation.user_id,
        company_id=operation.company_id,
        creator_id=user_id,
    )
    returned.moves = [
        StockMove(
            name=move.name,
            reference=returned.name,
            origin=returned.origin,
            state=StockMoveState.DRAFT.value,
            procure_method=move.procure_method,
            product_id=move.product_id,
            uom_id=move.uom_id,
            product_uom_qty=move.quantity,
            product_qty=await to_product_qty(db, move, move.quantity),
            quantity=None,
            reserved_qty=ZERO,
            scheduled_at=returned.scheduled_at,
            source_location_id=returned.source_location_id,
            destination_location_id=returned.destination_location_id,
            operation_type_id=operation_type.id,
            origin_returned_move_id=move.id,
            warehouse_id=move.warehouse_id,
            company_id=move.company_id,
            creator_id=user_id,
        )
        for move in operation.moves
        if move.state == StockMoveState.DONE.value and _d(move.quantity) > 0
    ]
    db.add(returned)
    await db.flush()

    await confirm_operation(db, returned)
    logger.info(f"↩️ 作业 {operation.name} 生成退回 {returned.name}")
    return returned


async def check_pending_availability(db: AsyncSession) -> int:
    """为所有等待库存的作业重新预留（定时任务调用），返回处理的作业数"""
    result = await db.execute(
        select(Operation)
        .where(Operation.state.in_((
            OperationState.CONFIRMED.value, OperationState.WAITING.value, OperationState.ASSIGNED.value
        )))
        .options(*LOAD_OPTIONS)
    )
    operations = [
        operation for operation in result.scalars().all()
        if any(move.state in RESERVABLE_STATES for move in operation.moves)
    ]
    for operation in operations:
        await check_availability(db, operation)
    await db.commit()
    return len(operations)
