"""
库存作业公共部分

收货、发货、内部调拨、代发共用作业表，按作业类型的 type 区分。
"""

from typing import Dict, Iterable, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from erp.core.deps import ensure_in_scope
from erp.models.enums import OperationTypeKind
from erp.models.inventories.move import StockMove
from erp.models.inventories.operation import Operation
from erp.models.inventories.operation_type import OperationType
from erp.models.inventories.warehouse import Warehouse
from erp.models.security.user import User
from erp.schemas.inventories import OperationResponse, StockMoveResponse


class OperationKind:
    """一类作业的配置"""

    def __init__(self, type: str, label: str, resource: str):
        self.type = type                # incoming
        self.label = label              # Receipt
        self.resource = resource        # inventory_receipt

    def permission(self, ability: str) -> str:
        return f"{ability}_{self.resource}"


RECEIPT = OperationKind(OperationTypeKind.INCOMING.value, "Receipt", "inventory_receipt")
DELIVERY = OperationKind(OperationTypeKind.OUTGOING.value, "Delivery", "inventory_delivery")
INTERNAL = OperationKind(OperationTypeKind.INTERNAL.value, "Internal transfer", "inventory_internal")
DROPSHIP = OperationKind(OperationTypeKind.DROPSHIP.value, "Dropship", "inventory_dropship")

LOAD_OPTIONS = [
    selectinload(Operation.moves),
    selectinload(Operation.operation_type),
    selectinload(Operation.partner),
    selectinload(Operation.source_location),
    selectinload(Operation.destination_location),
]

INCLUDES = ["operationType", "moves", "partner", "sourceLocation", "destinationLocation"]

SORTS = ["id", "name", "state", "scheduled_at", "deadline", "created_at", "updated_at"]


def _brief(obj, *fields) -> Optional[Dict]:
    if obj is None:
        return None
    return {field: getattr(obj, field) for field in ("id",) + fields}


def build_move_response(move: StockMove) -> dict:
    return StockMoveResponse.model_validate(move).model_dump(mode="json")


def build_operation_response(operation: Operation, includes: Iterable[str] = INCLUDES) -> dict:
    """构建作业响应；includes 控制附带的关联数据"""
    data = OperationResponse.model_validate(operation).model_dump(mode="json")
    if "moves" in includes:
        data["moves"] = [build_move_response(move) for move in operation.moves]
    if "operationType" in includes:
        data["operation_type"] = _brief(operation.operation_type, "name", "type", "sequence_code")
    if "partner" in includes:
        data["partner"] = _brief(operation.partner, "name")
    if "sourceLocation" in includes:
        data["source_location"] = _brief(operation.source_location, "name", "full_name", "type")
    if "destinationLocation" in includes:
        data["destination_location"] = _brief(operation.destination_location, "name", "full_name", "type")
    return data


def kind_condition(kind: OperationKind):
    return Operation.operation_type.has(OperationType.type == kind.type)


async def load_operation(db: AsyncSession, operation_id: int) -> Optional[Operation]:
    result = await db.execute(
        select(Operation)
        .where(Operation.id == operation_id)
        .options(*LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_operation(db: AsyncSession, kind: OperationKind, operation_id: int, user: User) -> Operation:
    """加载作业；类型与接口不符返回 404，不在数据范围内返回 403"""
    operation = await load_operation(db, operation_id)
    if operation is None or operation.operation_type is None or operation.operation_type.type != kind.type:
        raise HTTPException(status_code=404, detail=f"{kind.label} not found.")
    await ensure_in_scope(db, operation, user, Operation.user_id)
    return operation


async def next_operation_name(db: AsyncSession, operation_type: OperationType) -> str:
    """作业编号：{仓库简码}/{类型前缀}/{五位序号}，如 WH/IN/00001"""
    prefix = f"{operation_type.sequence_code}/"
    if operation_type.warehouse_id:
        warehouse = await db.get(Warehouse, operation_type.warehouse_id)
        if warehouse is not None:
            prefix = f"{warehouse.code}/{prefix}"

    result = await db.execute(select(Operation.name).where(Operation.name.like(f"{prefix}%")))
    numbers = [
        int(name.rsplit("/", 1)[1]) for name in result.scalars().all()
        if name and name.rsplit("/", 1)[1].isdigit()
    ]
    return f"{prefix}{max(numbers, default=0) + 1:05d}"
