"""
报废API

- 创建时自动补全：单位取商品单位，来源取首个仓库的库存库位，目的取报废库位
- validate：从来源库位扣减库存，目的为内部库位时入库，并生成一条已完成的移动
- 已完成的报废单不可修改、删除
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.core.exceptions import action_failed
from erp.core.logging_config import get_logger
from erp.models.enums import ScrapState, StockMoveState
from erp.models.inventories.location import Location
from erp.models.inventories.lot import Lot
from erp.models.inventories.move import StockMove
from erp.models.inventories.operation import Operation
from erp.models.inventories.package import Package
from erp.models.inventories.product_quantity import ProductQuantity
from erp.models.inventories.scrap import Scrap
from erp.models.inventories.warehouse import Warehouse
from erp.models.partners.partner import Partner
from erp.models.products.product import Product
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.models.support.uom import UOM
from erp.schemas.inventories import ScrapCreate, ScrapUpdate, ScrapResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from erp.api.api_v1.endpoints.inventories.warehouses import get_scrap_location
from erp.api.api_v1.endpoints.inventories.operations.stock_ops import to_product_qty, update_quant

router = APIRouter()
logger = get_logger(__name__)

RESOLVED_FIELDS = ("uom_id", "source_location_id", "destination_location_id")


def _build_response(scrap: Scrap) -> dict:
    return ScrapResponse.model_validate(scrap).model_dump(mode="json")


async def _next_scrap_name(db: AsyncSession) -> str:
    """报废单号 SP/ + 五位序号"""
    result = await db.execute(select(Scrap.name).where(Scrap.name.like("SP/%")))
    numbers = [int(name[3:]) for name in result.scalars().all() if name[3:].isdigit()]
    return f"SP/{max(numbers, default=0) + 1:05d}"


async def _resolve_defaults(db: AsyncSession, data: dict, user: User, scrap: Optional[Scrap] = None) -> dict:
    """补全单位、库位、公司；无法补全时返回 422"""
    if data.get("uom_id") is None and data.get("product_id") is not None:
        product = await db.get(Product, data["product_id"])
        data["uom_id"] = product.uom_id if product is not None else None

    if scrap is not None:
        for field in ("uom_id", "source_location_id", "destination_location_id", "company_id"):
            if data.get(field) is None:
                data[field] = getattr(scrap, field)
        return data

    if data.get("source_location_id") is None:
        result = await db.execute(
            select(Warehouse).where(Warehouse.deleted_at.is_(None)).order_by(Warehouse.id).limit(1)
        )
        warehouse = result.scalar_one_or_none()
        data["source_location_id"] = warehouse.lot_stock_location_id if warehouse is not None else None
    if data.get("destination_location_id") is None:
        data["destination_location_id"] = (await get_scrap_location(db)).id
    if data.get("company_id") is None:
        data["company_id"] = user.default_company_id
        if data["company_id"] is None and data["source_location_id"] is not None:
            source = await db.get(Location, data["source_location_id"])
            data["company_id"] = source.company_id if source is not None else None

    errors = ErrorBag()
    for field in RESOLVED_FIELDS:
        if data.get(field) is None:
            errors.add(field, f"The {field} field could not be resolved automatically.")
    errors.raise_if_any()
    return data


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    product = await errors.exists(db, Product, data.get("product_id"), "product_id")
    if product is not None and product.is_configurable:
        errors.add(
            "product_id",
            f"The product '{product.name}' is configurable and cannot be used in inventory. "
            f"Please select a product variant instead."
        )
    uom = await errors.exists(db, UOM, data.get("uom_id"), "uom_id")
    await errors.same_uom_category(db, uom, product, "uom_id")
    await errors.exists(db, Lot, data.get("lot_id"), "lot_id")
    await errors.exists(db, Package, data.get("package_id"), "package_id")
    await errors.exists(db, Partner, data.get("partner_id"), "partner_id")
    await errors.exists(db, Operation, data.get("operation_id"), "operation_id")
    await errors.exists(db, Location, data.get("source_location_id"), "source_location_id")
    await errors.exists(db, Location, data.get("destination_location_id"), "destination_location_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()
    return product


@router.get("")
async def list_scraps(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_scrap")),
    params: ListParams = Depends(),
    id: Optional[str] = Query(None, alias="filter[id]"),
    name: Optional[str] = Query(None, alias="filter[name]"),
    state: Optional[str] = Query(None, alias="filter[state]"),
    product_id: Optional[str] = Query(None, alias="filter[product_id]"),
    operation_id: Optional[str] = Query(None, alias="filter[operation_id]"),
    source_location_id: Optional[str] = Query(None, alias="filter[source_location_id]"),
    destination_location_id: Optional[str] = Query(None, alias="filter[destination_location_id]"),
    company_id: Optional[str] = Query(None, alias="filter[company_id]")) -> Any:
    query = select(Scrap)
    query = apply_exact(query, Scrap.id, id)
    query = apply_partial(query, Scrap.name, name)
    query = apply_exact(query, Scrap.state, state)
    query = apply_exact(query, Scrap.product_id, product_id)
    query = apply_exact(query, Scrap.operation_id, operation_id)
    query = apply_exact(query, Scrap.source_location_id, source_location_id)
    query = apply_exact(query, Scrap.destination_location_id, destination_location_id)
    query = apply_exact(query, Scrap.company_id, company_id)
    query = apply_sort(
        query, Scrap, params.sort, ["id", "name", "state", "qty", "closed_at", "created_at", "updated_at"]
    )
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_scrap(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_scrap")),
    scrap_in: ScrapCreate) -> Any:
    data = await _resolve_defaults(db, scrap_in.model_dump(), current_user)
    await _validate(db, data)

    data["qty"] = Decimal(str(data["qty"]))
    scrap = Scrap(
        **data,
        name=await _next_scrap_name(db),
        state=ScrapState.DRAFT.value,
        creator_id=current_user.id,
    )
    db.add(scrap)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "inventory_scrap", scrap.id, scrap.name)
    await db.commit()

    scrap = await get_or_404(db, Scrap, scrap.id, "Scrap")
    return item_response(_build_response(scrap), "Scrap created successfully.")


@router.get("/{id}")
async def get_scrap(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_scrap")),
    id: int) -> Any:
    scrap = await get_or_404(db, Scrap, id, "Scrap")
    return item_response(_build_response(scrap))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_scrap(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_scrap")),
    id: int,
    scrap_in: ScrapUpdate) -> Any:
    scrap = await get_or_404(db, Scrap, id, "Scrap")
    if scrap.state == ScrapState.DONE.value:
        raise action_failed("Done scraps cannot be updated.")

    data = scrap_in.model_dump(exclude_unset=True)
    # 更换商品而未指定单位时，单位跟随新商品
    if "product_id" in data and "uom_id" not in data:
        data["uom_id"] = None
    data = await _resolve_defaults(db, data, current_user, scrap)
    check = {field: getattr(scrap, field) for field in ("product_id", "lot_id", "package_id")}
    check.update(data)
    await _validate(db, check)

    if "qty" in data:
        data["qty"] = Decimal(str(data["qty"]))
    for field, value in data.items():
        setattr(scrap, field, value)
    await create_audit_log(db, current_user.id, "update", "inventory_scrap", scrap.id, scrap.name)
    await db.commit()

    scrap = await get_or_404(db, Scrap, scrap.id, "Scrap")
    return item_response(_build_response(scrap), "Scrap updated successfully.")


@router.delete("/{id}")
async def delete_scrap(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_scrap")),
    id: int) -> Any:
    scrap = await get_or_404(db, Scrap, id, "Scrap")
    if scrap.state == ScrapState.DONE.value:
        raise action_failed("Done scraps cannot be deleted.")

    await create_audit_log(db, current_user.id, "delete", "inventory_scrap", scrap.id, scrap.name)
    await db.delete(scrap)
    await db.commit()
    return {"message": "Scrap deleted successfully."}


@router.post("/{id}/validate")
async def validate_scrap(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_scrap")),
    id: int) -> Any:
    """完成报废：来源库位同批次同包裹的库存须足够"""
    scrap = await get_or_404(db, Scrap, id, "Scrap")
    if scrap.state != ScrapState.DRAFT.value:
        raise action_failed("Only draft scraps can be validated.")

    qty = await to_product_qty(db, scrap, scrap.qty)
    result = await db.execute(
        select(ProductQuantity).where(
            ProductQuantity.product_id == scrap.product_id,
            ProductQuantity.location_id == scrap.source_location_id,
            ProductQuantity.lot_id.is_(None) if scrap.lot_id is None else ProductQuantity.lot_id == scrap.lot_id,
            ProductQuantity.package_id.is_(None) if scrap.package_id is None
            else ProductQuantity.package_id == scrap.package_id,
        ).limit(1)
    )
    source_quant = result.scalar_one_or_none()
    if source_quant is None or Decimal(str(source_quant.quantity or 0)) < qty:
        raise action_failed("Insufficient source quantity for this scrap.")

    source = await db.get(Location, scrap.source_location_id)
    destination = await db.get(Location, scrap.destination_location_id)
    if source.is_internal:
        await update_quant(db, scrap.product_id, source.id, -qty,
                           lot_id=scrap.lot_id, package_id=scrap.package_id, company_id=scrap.company_id)
    if destination.is_internal:
        await update_quant(db, scrap.product_id, destination.id, qty,
                           lot_id=scrap.lot_id, package_id=scrap.package_id, company_id=scrap.company_id)

    now = datetime.utcnow()
    product = await db.get(Product, scrap.product_id)
    db.add(StockMove(
        name=f"Scrap: {product.name}",
        reference=scrap.name,
        origin=scrap.origin,
        state=StockMoveState.DONE.value,
        is_picked=True,
        product_id=scrap.product_id,
        uom_id=scrap.uom_id,
        product_uom_qty=scrap.qty,
        product_qty=qty,
        quantity=scrap.qty,
        reserved_qty=Decimal("0"),
        scheduled_at=now,
        source_location_id=scrap.source_location_id,
        destination_location_id=scrap.destination_location_id,
        scrap_id=scrap.id,
        company_id=scrap.company_id,
        creator_id=current_user.id,
    ))
    scrap.state = ScrapState.DONE.value
    scrap.closed_at = now

    await create_audit_log(db, current_user.id, "validate", "inventory_scrap", scrap.id, scrap.name,
                           f"报废 {qty}")
    await db.commit()
    logger.info(f"🗑️ 报废单 {scrap.name} 已完成，扣减 {qty}")

    scrap = await get_or_404(db, Scrap, scrap.id, "Scrap")
    return item_response(_build_response(scrap), "Scrap validated successfully.")
