"""
库存数量（盘点）API

- 录入实盘数量：同一商品+库位+批次+包裹只有一条记录，重复录入即覆盖
- apply：把盘点差异记为一条已完成的盘点调整移动，并更新在库数量
- clear：清除录入的实盘数量
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
from erp.models.enums import LocationType, StockMoveState
from erp.models.inventories.location import Location
from erp.models.inventories.lot import Lot
from erp.models.inventories.move import StockMove
from erp.models.inventories.package import Package
from erp.models.inventories.product_quantity import ProductQuantity
from erp.models.products.product import Product
from erp.models.security.user import User
from erp.schemas.inventories import QuantityCreate, QuantityUpdate, QuantityResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log
from erp.api.api_v1.endpoints.inventories.warehouses import get_virtual_location

router = APIRouter()
logger = get_logger(__name__)


def _build_response(quant: ProductQuantity) -> dict:
    return QuantityResponse.model_validate(quant).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict) -> Optional[Location]:
    errors = ErrorBag()
    product = await errors.exists(db, Product, data.get("product_id"), "product_id")
    if product is not None and product.is_configurable:
        errors.add(
            "product_id",
            f"The product '{product.name}' is configurable and cannot be used in inventory. "
            f"Please select a product variant instead."
        )
    location = await errors.exists(db, Location, data.get("location_id"), "location_id")
    if location is not None and not location.is_internal:
        errors.add("location_id", "Quantities can only be counted on internal locations.")
    await errors.exists(db, Lot, data.get("lot_id"), "lot_id")
    await errors.exists(db, Package, data.get("package_id"), "package_id")
    errors.raise_if_any()
    return location


@router.get("")
async def list_quantities(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_quantity")),
    params: ListParams = Depends(),
    product_id: Optional[str] = Query(None, alias="filter[product_id]"),
    location_id: Optional[str] = Query(None, alias="filter[location_id]"),
    lot_id: Optional[str] = Query(None, alias="filter[lot_id]"),
    package_id: Optional[str] = Query(None, alias="filter[package_id]"),
    inventory_quantity_set: Optional[str] = Query(None, alias="filter[inventory_quantity_set]")) -> Any:
    query = select(ProductQuantity)
    query = apply_exact(query, ProductQuantity.product_id, product_id)
    query = apply_exact(query, ProductQuantity.location_id, location_id)
    query = apply_exact(query, ProductQuantity.lot_id, lot_id)
    query = apply_exact(query, ProductQuantity.package_id, package_id)
    query = apply_exact(query, ProductQuantity.inventory_quantity_set, inventory_quantity_set, boolean=True)
    query = apply_sort(
        query, ProductQuantity, params.sort,
        ["id", "quantity", "reserved_quantity", "inventory_date", "incoming_at", "created_at"]
    )
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def count_quantity(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_quantity")),
    quantity_in: QuantityCreate) -> Any:
    """录入实盘数量，记录不存在时创建"""
    data = quantity_in.model_dump()
    location = await _validate(db, data)

    result = await db.execute(
        select(ProductQuantity).where(
            ProductQuantity.product_id == data["product_id"],
            ProductQuantity.location_id == data["location_id"],
            ProductQuantity.lot_id.is_(None) if data["lot_id"] is None
            else ProductQuantity.lot_id == data["lot_id"],
            ProductQuantity.package_id.is_(None) if data["package_id"] is None
            else ProductQuantity.package_id == data["package_id"],
        ).limit(1)
    )
    quant = result.scalar_one_or_none()
    if quant is None:
        quant = ProductQuantity(
            product_id=data["product_id"], location_id=data["location_id"],
            lot_id=data["lot_id"], package_id=data["package_id"],
            quantity=Decimal("0"), reserved_quantity=Decimal("0"),
            company_id=location.company_id, creator_id=current_user.id
        )
        db.add(quant)
    quant.inventory_date = data["inventory_date"] or quant.inventory_date
    quant.set_inventory_quantity(data["inventory_quantity"], current_user.id)

    await db.flush()
    await create_audit_log(db, current_user.id, "count", "product_quantity", quant.id, location.full_name,
                           f"录入实盘数量 {data['inventory_quantity']}")
    await db.commit()

    quant = await get_or_404(db, ProductQuantity, quant.id, "Quantity")
    return item_response(_build_response(quant), "Quantity counted successfully.")


@router.get("/{id}")
async def get_quantity(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_quantity")),
    id: int) -> Any:
    quant = await get_or_404(db, ProductQuantity, id, "Quantity")
    return item_response(_build_response(quant))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_quantity(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_quantity")),
    id: int,
    quantity_in: QuantityUpdate) -> Any:
    quant = await get_or_404(db, ProductQuantity, id, "Quantity")
    if quantity_in.inventory_date is not None:
        quant.inventory_date = quantity_in.inventory_date
    quant.set_inventory_quantity(quantity_in.inventory_quantity, current_user.id)

    await create_audit_log(db, current_user.id, "count", "product_quantity", quant.id, None,
                           f"录入实盘数量 {quantity_in.inventory_quantity}")
    await db.commit()

    quant = await get_or_404(db, ProductQuantity, quant.id, "Quantity")
    return item_response(_build_response(quant), "Quantity updated successfully.")


@router.delete("/{id}")
async def delete_quantity(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_quantity")),
    id: int) -> Any:
    quant = await get_or_404(db, ProductQuantity, id, "Quantity")
    if Decimal(str(quant.reserved_quantity or 0)) > 0:
        raise action_failed("Reserved quantities cannot be deleted.")

    await create_audit_log(db, current_user.id, "delete", "product_quantity", quant.id, None)
    await db.delete(quant)
    await db.commit()
    return {"message": "Quantity deleted successfully."}


@router.post("/{id}/apply")
async def apply_quantity(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_quantity")),
    id: int) -> Any:
    """应用盘点：差异为正从盘点调整库位移入，为负移出到盘点调整库位"""
    quant = await get_or_404(db, ProductQuantity, id, "Quantity")
    if not quant.inventory_quantity_set:
        raise action_failed("Only counted quantities can be applied.")

    diff = Decimal(str(quant.inventory_quantity or 0)) - Decimal(str(quant.quantity or 0))
    if diff:
        adjustment = await get_virtual_location(db, LocationType.INVENTORY.value)
        product = await db.get(Product, quant.product_id)
        source_id, destination_id = adjustment.id, quant.location_id
        if diff < 0:
            source_id, destination_id = destination_id, source_id
        now = datetime.utcnow()
        db.add(StockMove(
            name=f"Product Quantity Updated: {product.name}",
            reference="Product Quantity Updated",
            state=StockMoveState.DONE.value,
            is_inventory=True,
            is_picked=True,
            product_id=product.id,
            uom_id=product.uom_id,
            product_uom_qty=abs(diff),
            product_qty=abs(diff),
            quantity=abs(diff),
            reserved_qty=Decimal("0"),
            scheduled_at=now,
            source_location_id=source_id,
            destination_location_id=destination_id,
            company_id=quant.company_id,
            creator_id=current_user.id,
        ))
        quant.quantity = Decimal(str(quant.inventory_quantity))
        if diff > 0 and quant.incoming_at is None:
            quant.incoming_at = now
    quant.clear_inventory_quantity()
    quant.inventory_date = None

    await create_audit_log(db, current_user.id, "apply", "product_quantity", quant.id, None,
                           f"应用盘点，差异 {diff}")
    await db.commit()
    logger.info(f"📋 盘点调整 quant #{quant.id}，差异 {diff}")

    quant = await get_or_404(db, ProductQuantity, quant.id, "Quantity")
    return item_response(_build_response(quant), "Quantity applied successfully.")


@router.post("/{id}/clear")
async def clear_quantity(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_quantity")),
    id: int) -> Any:
    quant = await get_or_404(db, ProductQuantity, id, "Quantity")
    quant.clear_inventory_quantity()
    await create_audit_log(db, current_user.id, "clear", "product_quantity", quant.id, None, "清除盘点数量")
    await db.commit()

    quant = await get_or_404(db, ProductQuantity, quant.id, "Quantity")
    return item_response(_build_response(quant), "Quantity cleared successfully.")
