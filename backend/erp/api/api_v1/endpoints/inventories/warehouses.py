"""
仓库API

创建仓库时自动生成：
- 视图库位（名称为仓库简码）
- 库存库位（{code}/Stock）
- 收货 / 发货 / 内部调拨 三种作业类型
"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.logging_config import get_logger
from erp.models.enums import LocationType, OperationTypeKind
from erp.models.inventories.location import Location
from erp.models.inventories.operation_type import OperationType
from erp.models.inventories.warehouse import Warehouse
from erp.models.partners.partner import Partner
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import WarehouseCreate, WarehouseUpdate, WarehouseResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, apply_trashed,
    get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()
logger = get_logger(__name__)

VIRTUAL_LOCATIONS = {
    LocationType.SUPPLIER.value: "Vendors",
    LocationType.CUSTOMER.value: "Customers",
    LocationType.INVENTORY.value: "Inventory adjustment",
}


def _build_response(warehouse: Warehouse) -> dict:
    return WarehouseResponse.model_validate(warehouse).model_dump(mode="json")


async def get_virtual_location(db: AsyncSession, location_type: str) -> Location:
    """供应商、客户、盘点调整等虚拟库位，不存在时创建"""
    result = await db.execute(
        select(Location)
        .where(
            Location.type == location_type,
            Location.is_scrap.isnot(True),
            Location.deleted_at.is_(None),
        )
        .order_by(Location.id)
        .limit(1)
    )
    location = result.scalar_one_or_none()
    if location is None:
        location = Location(name=VIRTUAL_LOCATIONS[location_type], type=location_type)
        location.compute_paths(None)
        db.add(location)
        await db.flush()
    return location


async def get_scrap_location(db: AsyncSession) -> Location:
    """报废库位，不存在时创建"""
    result = await db.execute(
        select(Location)
        .where(Location.is_scrap.is_(True), Location.deleted_at.is_(None))
        .order_by(Location.id)
        .limit(1)
    )
    location = result.scalar_one_or_none()
    if location is None:
        location = Location(name="Scrap", type=LocationType.INVENTORY.value, is_scrap=True)
        location.compute_paths(None)
        db.add(location)
        await db.flush()
    return location


async def _create_defaults(db: AsyncSession, warehouse: Warehouse, user_id: int):
    view = Location(
        name=warehouse.code, type=LocationType.VIEW.value,
        warehouse_id=warehouse.id, company_id=warehouse.company_id, creator_id=user_id
    )
    view.compute_paths(None)
    db.add(view)
    await db.flush()

    stock = Location(
        name="Stock", type=LocationType.INTERNAL.value, parent_id=view.id,
        warehouse_id=warehouse.id, company_id=warehouse.company_id, creator_id=user_id
    )
    stock.compute_paths(view)
    db.add(stock)
    await db.flush()

    supplier = await get_virtual_location(db, LocationType.SUPPLIER.value)
    customer = await get_virtual_location(db, LocationType.CUSTOMER.value)

    def _type(name, kind, code, source, destination, sequence):
        return OperationType(
            name=name, type=kind, sequence_code=code, sequence=sequence,
            source_location_id=source.id, destination_location_id=destination.id,
            warehouse_id=warehouse.id, company_id=warehouse.company_id, creator_id=user_id
        )

    in_type = _type("Receipts", OperationTypeKind.INCOMING.value, "IN", supplier, stock, 1)
    out_type = _type("Delivery Orders", OperationTypeKind.OUTGOING.value, "OUT", stock, customer, 2)
    internal_type = _type("Internal Transfers", OperationTypeKind.INTERNAL.value, "INT", stock, stock, 3)
    db.add_all([in_type, out_type, internal_type])
    await db.flush()

    in_type.return_operation_type_id = out_type.id
    out_type.return_operation_type_id = in_type.id

    warehouse.view_location_id = view.id
    warehouse.lot_stock_location_id = stock.id
    warehouse.in_type_id = in_type.id
    warehouse.out_type_id = out_type.id
    warehouse.internal_type_id = internal_type.id


async def _validate(db: AsyncSession, data: dict, warehouse_id: Optional[int] = None):
    errors = ErrorBag()
    await errors.unique(db, Warehouse.name, data.get("name"), "name", ignore_id=warehouse_id)
    await errors.unique(db, Warehouse.code, data.get("code"), "code", ignore_id=warehouse_id)
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    await errors.exists(db, Partner, data.get("partner_id"), "partner_id")
    errors.raise_if_any()


@router.get("")
async def list_warehouses(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_warehouse")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    code: Optional[str] = Query(None, alias="filter[code]"),
    company_id: Optional[str] = Query(None, alias="filter[company_id]"),
    trashed: Optional[str] = Query(None, alias="filter[trashed]")) -> Any:
    query = select(Warehouse)
    query = apply_trashed(query, Warehouse, trashed)
    query = apply_partial(query, Warehouse.name, name)
    query = apply_exact(query, Warehouse.code, code)
    query = apply_exact(query, Warehouse.company_id, company_id)
    query = apply_sort(query, Warehouse, params.sort, ["id", "name", "code", "sequence", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_warehouse")),
    warehouse_in: WarehouseCreate) -> Any:
    """创建仓库及其默认库位和作业类型"""
    data = warehouse_in.model_dump()
    await _validate(db, data)

    warehouse = Warehouse(**data, creator_id=current_user.id)
    db.add(warehouse)
    await db.flush()
    await _create_defaults(db, warehouse, current_user.id)

    await create_audit_log(db, current_user.id, "create", "warehouse", warehouse.id, warehouse.name)
    await db.commit()
    logger.info(f"🏭 创建仓库: {warehouse.code} {warehouse.name}")

    warehouse = await get_or_404(db, Warehouse, warehouse.id, "Warehouse")
    return item_response(_build_response(warehouse), "Warehouse created successfully.")


@router.get("/{id}")
async def get_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_warehouse")),
    id: int) -> Any:
    warehouse = await get_or_404(db, Warehouse, id, "Warehouse")
    return item_response(_build_response(warehouse))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_warehouse")),
    id: int,
    warehouse_in: WarehouseUpdate) -> Any:
    """更新仓库；简码变化时同步视图库位和库存库位的名称"""
    warehouse = await get_or_404(db, Warehouse, id, "Warehouse")
    data = warehouse_in.model_dump(exclude_unset=True)
    await _validate(db, data, warehouse_id=warehouse.id)

    code_changed = "code" in data and data["code"] != warehouse.code
    for field, value in data.items():
        setattr(warehouse, field, value)

    if code_changed and warehouse.view_location_id:
        view = await db.get(Location, warehouse.view_location_id)
        view.name = warehouse.code
        view.compute_paths(None)
        result = await db.execute(select(Location).where(Location.parent_id == view.id))
        for child in result.scalars().all():
            child.compute_paths(view)

    await create_audit_log(db, current_user.id, "update", "warehouse", warehouse.id, warehouse.name)
    await db.commit()

    warehouse = await get_or_404(db, Warehouse, warehouse.id, "Warehouse")
    return item_response(_build_response(warehouse), "Warehouse updated successfully.")


@router.delete("/{id}")
async def delete_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_warehouse")),
    id: int) -> Any:
    warehouse = await get_or_404(db, Warehouse, id, "Warehouse")
    warehouse.soft_delete()
    await create_audit_log(db, current_user.id, "delete", "warehouse", warehouse.id, warehouse.name)
    await db.commit()
    return {"message": "Warehouse deleted successfully."}


@router.post("/{id}/restore")
async def restore_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("restore_inventory_warehouse")),
    id: int) -> Any:
    warehouse = await get_or_404(db, Warehouse, id, "Warehouse", with_trashed=True)
    warehouse.restore()
    await create_audit_log(db, current_user.id, "restore", "warehouse", warehouse.id, warehouse.name)
    await db.commit()

    warehouse = await get_or_404(db, Warehouse, warehouse.id, "Warehouse")
    return item_response(_build_response(warehouse), "Warehouse restored successfully.")


@router.delete("/{id}/force")
async def force_delete_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("force_delete_inventory_warehouse")),
    id: int) -> Any:
    """彻底删除仓库；其库位和作业类型保留，但解除与仓库的关联"""
    warehouse = await get_or_404(db, Warehouse, id, "Warehouse", with_trashed=True)
    await db.execute(update(Location).where(Location.warehouse_id == warehouse.id).values(warehouse_id=None))
    await db.execute(update(OperationType).where(OperationType.warehouse_id == warehouse.id).values(warehouse_id=None))

    await create_audit_log(db, current_user.id, "force_delete", "warehouse", warehouse.id, warehouse.name)
    await db.delete(warehouse)
    await db.commit()
    return {"message": "Warehouse permanently deleted successfully."}
