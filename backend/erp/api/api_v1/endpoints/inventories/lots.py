"""批次/序列号API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from erp.core.deps import get_db, require_permission
from erp.models.inventories.lot import Lot
from erp.models.products.product import Product
from erp.models.security.user import User
from erp.models.support.company import Company
from erp.schemas.inventories import LotCreate, LotUpdate, LotResponse
from erp.api.api_v1.common import (
    ListParams, ErrorBag, paginate, apply_sort, apply_exact, apply_partial, get_or_404, item_response
)
from erp.api.api_v1.endpoints.support.audit_logs import create_audit_log

router = APIRouter()


def _build_response(lot: Lot) -> dict:
    return LotResponse.model_validate(lot).model_dump(mode="json")


async def _validate(db: AsyncSession, data: dict):
    errors = ErrorBag()
    await errors.exists(db, Product, data.get("product_id"), "product_id")
    await errors.exists(db, Company, data.get("company_id"), "company_id")
    errors.raise_if_any()


@router.get("")
async def list_lots(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_any_inventory_lot")),
    params: ListParams = Depends(),
    name: Optional[str] = Query(None, alias="filter[name]"),
    product_id: Optional[str] = Query(None, alias="filter[product_id]")) -> Any:
    query = select(Lot)
    query = apply_partial(query, Lot.name, name)
    query = apply_exact(query, Lot.product_id, product_id)
    query = apply_sort(query, Lot, params.sort, ["id", "name", "created_at"])
    return await paginate(db, query, params, _build_response)


@router.post("", status_code=201)
async def create_lot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("create_inventory_lot")),
    lot_in: LotCreate) -> Any:
    data = lot_in.model_dump()
    await _validate(db, data)

    lot = Lot(**data, creator_id=current_user.id)
    db.add(lot)
    await db.flush()
    await create_audit_log(db, current_user.id, "create", "lot", lot.id, lot.name)
    await db.commit()

    lot = await get_or_404(db, Lot, lot.id, "Lot")
    return item_response(_build_response(lot), "Lot created successfully.")


@router.get("/{id}")
async def get_lot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("view_inventory_lot")),
    id: int) -> Any:
    lot = await get_or_404(db, Lot, id, "Lot")
    return item_response(_build_response(lot))


@router.api_route("/{id}", methods=["PUT", "PATCH"])
async def update_lot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("update_inventory_lot")),
    id: int,
    lot_in: LotUpdate) -> Any:
    lot = await get_or_404(db, Lot, id, "Lot")
    data = lot_in.model_dump(exclude_unset=True)
    await _validate(db, data)

    for field, value in data.items():
        setattr(lot, field, value)
    await create_audit_log(db, current_user.id, "update", "lot", lot.id, lot.name)
    await db.commit()

    lot = await get_or_404(db, Lot, lot.id, "Lot")
    return item_response(_build_response(lot), "Lot updated successfully.")


@router.delete("/{id}")
async def delete_lot(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission("delete_inventory_lot")),
    id: int) -> Any:
    lot = await get_or_404(db, Lot, id, "Lot")
    await create_audit_log(db, current_user.id, "delete", "lot", lot.id, lot.name)
    await db.delete(lot)
    await db.commit()
    return {"message": "Lot deleted successfully."}
